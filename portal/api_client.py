# portal/api_client.py
# --------------------
# Responsibility:
# - Talk to the external forecasting backend (one-shot requests, no retries)
# - Map transport and HTTP failures to a single user-facing message

import logging
from typing import Any, Dict, Optional

import requests

from .config import api_url, settings
from .errors import BackendConnectionError, BackendError

logger = logging.getLogger(__name__)

CONNECT_MESSAGE = (
    "Unable to connect to backend server. "
    "Please ensure the forecasting backend is running at {base}."
)


class ForecastBackendClient:
    """Thin wrapper over the backend's per-model endpoints."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[int] = None,
    ):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout or settings.request_timeout

    # --- transport ---

    def _request(
        self,
        method: str,
        path: str,
        action: str,
        timeout: Optional[int] = None,
        **kwargs,
    ) -> Any:
        url = api_url(path, self.base_url)
        logger.info("%s %s", method, url)
        try:
            response = self.session.request(method, url, timeout=timeout or self.timeout, **kwargs)
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            logger.warning("Backend unreachable for %s: %s", action, e)
            raise BackendConnectionError(CONNECT_MESSAGE.format(base=self.base_url)) from e

        if not response.ok:
            detail = _error_detail(response)
            message = detail or f"{action} failed: {response.reason or response.status_code}"
            logger.warning("%s failed with status %s: %s", action, response.status_code, message)
            raise BackendError(message, status_code=response.status_code)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise BackendError(f"{action} failed: invalid JSON response", status_code=response.status_code) from e

    def _upload(self, path: str, action: str, file_name: str, content: bytes,
                field: str = "file", data: Optional[Dict[str, Any]] = None,
                timeout: Optional[int] = None) -> Any:
        files = {field: (file_name, content, "text/csv")}
        form = {k: str(v) for k, v in (data or {}).items()}
        return self._request("POST", path, action, files=files, data=form, timeout=timeout)

    # --- ARIMA / ARIMAX ---

    def upload_arima_dataset(self, file_name: str, content: bytes, model: str = "arima",
                             date_column: str = "date", demand_column: str = "demand") -> dict:
        return self._upload(
            f"/api/{model}/upload-dataset/", "Upload", file_name, content,
            data={"date_column": date_column, "demand_column": demand_column},
        )

    def train_arima(self, model: str = "arima") -> dict:
        return self._request("POST", f"/api/{model}/train/", "Training")

    def predict_arima(self, model: str = "arima", periods: Optional[int] = None,
                      prediction_type: str = "auto", include_confidence: bool = True) -> dict:
        body = {
            "prediction_type": prediction_type,
            "periods": periods or settings.arimax_forecast_periods,
            "include_confidence": include_confidence,
        }
        return self._request("POST", f"/api/{model}/predict/", "Prediction", json=body)

    # --- XGBoost (M1) ---

    def predict_xgboost(self, file_name: str, content: bytes) -> dict:
        return self._upload("/api/m1/", "Upload", file_name, content)

    # --- LightGBM (M2) ---

    def upload_train_lightgbm(self, file_name: str, content: bytes) -> dict:
        return self._upload("/api/m2/upload-train/", "Training", file_name, content, field="csv_file")

    def analyze_lightgbm(self, file_name: str, content: bytes) -> dict:
        return self._upload("/api/m2/analyze/", "Analysis", file_name, content, field="csv_file")

    # --- CatBoost (M3) ---

    def predict_catboost(self, file_name: str, content: bytes, forecast_days: Optional[int] = None) -> dict:
        return self._upload(
            "/api/m3/predict/", "Prediction", file_name, content,
            data={"forecast_days": forecast_days or settings.catboost_forecast_days},
            timeout=settings.long_request_timeout,
        )

    def forecast_catboost(self, store_id: str, product_id: str, forecast_days: Optional[int] = None) -> dict:
        # other model inputs fall back to the backend's defaults
        body = {
            "input_data": {"store_id": store_id, "product_id": product_id},
            "forecast_days": forecast_days or settings.catboost_forecast_days,
        }
        return self._request("POST", "/api/m3/forecast/", "Forecast", json=body,
                             timeout=settings.long_request_timeout)

    # --- Linear regression (M5) and log-log pricing (M6) ---

    def upload_dataset(self, file_name: str, content: bytes) -> dict:
        return self._upload("/api/m5/upload-dataset/", "Upload", file_name, content)

    def upload_dataset_m6(self, file_name: str, content: bytes) -> dict:
        return self._upload("/api/m6/upload-dataset/", "M6 upload", file_name, content)

    def analyze_dataset(self, dataset_id: int) -> dict:
        return self._request("GET", f"/api/m5/analyze-dataset/{dataset_id}/", "Analysis")

    def train_model(self, dataset_id: int, target_column: str = "demand") -> dict:
        return self._request(
            "POST", "/api/m5/train-forecast/", "Training",
            json={"dataset_id": dataset_id, "target_column": target_column},
        )

    def predict_future(self, dataset_id: int, months: Optional[int] = None, target_column: str = "demand") -> dict:
        return self._request(
            "POST", "/api/m5/predict-future/", "Prediction",
            json={
                "dataset_id": dataset_id,
                "months": months or settings.linear_regression_months,
                "target_column": target_column,
            },
        )

    def get_datasets(self) -> list:
        return self._request("GET", "/api/m5/datasets/", "Failed to fetch datasets")

    def predict_from_future_file(self, dataset_id: int, file_name: str, content: bytes,
                                 target_column: str = "demand", date_column: str = "date") -> dict:
        return self._upload(
            "/api/m5/predict-from-future-file/", "Future prediction", file_name, content,
            data={"dataset_id": dataset_id, "target_column": target_column, "date_column": date_column},
        )

    def optimize_pricing_linear(self, dataset_id: int, price_column: str = "price",
                                demand_column: str = "demand") -> dict:
        return self._request(
            "POST", "/api/m5/optimize-pricing-linear/", "Pricing (linear)",
            json={"dataset_id": dataset_id, "price_column": price_column, "demand_column": demand_column},
        )

    def optimize_pricing_loglog(self, dataset_id: int, price_column: str = "price",
                                demand_column: str = "demand") -> dict:
        return self._request(
            "POST", "/api/m6/optimize-pricing-loglog/", "Pricing (log-log)",
            json={"dataset_id": dataset_id, "price_column": price_column, "demand_column": demand_column},
        )

    # --- Prophet / SARIMA / SARIMAX ---

    def forecast_prophet(self, file_name: str, content: bytes, forecast_days: Optional[int] = None) -> dict:
        return self._upload(
            "/api/prophet/forecast/", "Forecast", file_name, content,
            data={"forecast_days": forecast_days or settings.prophet_forecast_days},
            timeout=settings.long_request_timeout,
        )

    def forecast_sarima(self, file_name: str, content: bytes, steps: Optional[int] = None) -> dict:
        return self._upload(
            "/api/sarima/forecast/", "Forecast", file_name, content,
            data={"steps": steps or settings.sarima_steps},
        )

    def forecast_sarimax_batch(self, file_name: str, content: bytes, steps: Optional[int] = None,
                               group_cols: str = "StoreID,ProductID") -> dict:
        data = {"group_cols": group_cols}
        if steps and steps > 0:
            data["steps"] = int(steps)
        return self._upload("/api/sarimax/sarimax-batch-forecast/", "Forecast", file_name, content, data=data)


def _error_detail(response: requests.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        text = (response.text or "").strip()
        return text[:500] or None
    if isinstance(body, dict):
        detail = body.get("error") or body.get("detail")
        return str(detail) if detail else None
    return None
