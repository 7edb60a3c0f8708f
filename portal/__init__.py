# portal/__init__.py
# ------------------
# Package initializer for the demand forecasting portal

from .api_client import ForecastBackendClient
from .catalog import get_model, list_models
from .config import settings
from .exporters import export_arima_to_xlsx, export_arimax_to_xlsx, export_xgboost_to_zip
from .forecast_service import run_upload_pipeline

__all__ = [
    "ForecastBackendClient",
    "get_model",
    "list_models",
    "settings",
    "export_arima_to_xlsx",
    "export_arimax_to_xlsx",
    "export_xgboost_to_zip",
    "run_upload_pipeline",
]

__version__ = "1.0.0"
