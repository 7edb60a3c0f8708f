# portal/config.py
# ----------------

import logging
from typing import Optional
from urllib.parse import urljoin

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # App Settings
    app_name: str = "Demand Forecasting Portal"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # External forecasting backend
    api_base_url: str = "http://localhost:8000"
    request_timeout: int = 120
    long_request_timeout: int = 300  # Prophet / CatBoost forecasts

    # Local download service
    service_host: str = "127.0.0.1"
    service_port: int = 8100
    allowed_origins: list[str] = ["*"]

    # Spreadsheet export
    sheet_name_max_length: int = 31
    min_column_width: int = 12

    # Upload preview
    preview_rows: int = 10

    # Streamlit UI
    demo_videos_dir: str = "assets/demovideos"

    # Forecast request defaults
    arimax_forecast_periods: int = 30
    linear_regression_months: int = 5
    prophet_forecast_days: int = 30
    catboost_forecast_days: int = 30
    sarima_steps: int = 30
    max_forecast_months: int = 12

    # Trend Detection Thresholds
    trend_strong_up: float = 10.0
    trend_up_threshold: float = 5.0
    trend_down_threshold: float = -5.0
    trend_strong_down: float = -10.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global settings instance
settings = Settings()


def api_url(path: str, base_url: Optional[str] = None) -> str:
    """
    Build an absolute backend URL from a relative endpoint path.

    Args:
        path: Endpoint path such as '/api/arima/train/'
        base_url: Override for settings.api_base_url

    Returns:
        str: Absolute URL
    """
    base = (base_url or settings.api_base_url).rstrip("/") + "/"
    return urljoin(base, path.lstrip("/"))


def validate_forecast_horizon(months: int) -> dict:
    """
    Validate a requested forecast horizon (in months).

    Returns:
        dict: {"valid": bool, "message": str}
    """
    if months < 1:
        return {"valid": False, "message": "Forecast horizon must be at least 1 month"}
    if months > settings.max_forecast_months:
        return {
            "valid": False,
            "message": f"Forecast horizon must be between 1 and {settings.max_forecast_months} months",
        }
    return {"valid": True, "message": f"{months}-month forecast"}


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    return logging.getLogger("portal")
