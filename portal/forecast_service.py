# portal/forecast_service.py
# --------------------------
# Responsibility:
# - Drive each model's upload flow against the backend, step by step
# - Normalize backend payloads into forecast rows for charts, tables and exports
# - Summarize a forecast (trend, change) for the metric cards

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import pandas as pd

from .api_client import ForecastBackendClient
from .catalog import ModelSpec, get_model
from .config import settings
from .data_preparation import (
    FilePreview,
    build_context_maps,
    build_file_preview,
    build_price_series,
    get_data_summary,
    read_csv_bytes,
    store_products,
)
from .errors import PortalError, ValidationError
from .mock_results import MOCK_RESULTS, arima_export_rows
from .schemas import ArimaExportInput, ArimaxExportInput, XgbExportInput, XgbPredictionRow, XgbPriceRow
from .upload_progress import UploadTracker

logger = logging.getLogger(__name__)


@dataclass
class ForecastRow:
    date: str
    prediction: float
    lower: Optional[float] = None
    upper: Optional[float] = None
    actual: Optional[float] = None


@dataclass
class UploadResult:
    slug: str
    payload: Dict[str, Any]
    preview: FilePreview
    category_map: Dict[str, str] = field(default_factory=dict)
    context_map: Dict[str, dict] = field(default_factory=dict)
    price_series: Dict[str, List[XgbPriceRow]] = field(default_factory=dict)
    data_summary: Dict[str, Any] = field(default_factory=dict)
    store_products: Dict[str, List[str]] = field(default_factory=dict)


# =============================================================================
# RESULT SHAPING
# =============================================================================

def _num(value) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _first(record: dict, *keys):
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return None


def _row_from_record(record: dict, index: int) -> Optional[ForecastRow]:
    prediction = _num(_first(record, "prediction", "predicted", "predicted_demand", "forecast",
                             "yhat", "PredictedMonthlyDemand", "PredictedDailySales", "value"))
    if prediction is None:
        return None
    date = _first(record, "date", "Date", "ds", "month")
    return ForecastRow(
        date=str(date) if date is not None else str(_first(record, "index") or index + 1),
        prediction=prediction,
        lower=_num(_first(record, "lower", "lower_bound", "confidence_lower", "yhat_lower", "Lower_Bound")),
        upper=_num(_first(record, "upper", "upper_bound", "confidence_upper", "yhat_upper", "Upper_Bound")),
        actual=_num(_first(record, "actual", "Actual_Units")),
    )


def _sort_by_date(rows: List[ForecastRow]) -> List[ForecastRow]:
    keys = pd.to_datetime(pd.Series([r.date for r in rows], dtype=object), format="mixed", errors="coerce")
    if keys.isna().any():
        return rows
    order = sorted(range(len(rows)), key=lambda i: keys.iloc[i])
    return [rows[i] for i in order]


def normalize_forecast_rows(payload: Any) -> List[ForecastRow]:
    """
    Flatten the backend's forecast shapes into ForecastRow records.

    Accepted shapes:
        {"dates": [...], "predictions": [...], "confidence_intervals": {"lower", "upper"}}
        {"predictions" | "forecast" | "future_predictions" | "forecast_data": [record, ...]}
        [record, ...]
    """
    if payload is None:
        return []

    if isinstance(payload, dict) and isinstance(payload.get("dates"), list):
        predictions = payload.get("predictions") or []
        ci = payload.get("confidence_intervals") or {}
        lower = ci.get("lower") or []
        upper = ci.get("upper") or []
        rows = []
        for i, (date, value) in enumerate(zip(payload["dates"], predictions)):
            rows.append(ForecastRow(
                date=str(date),
                prediction=float(value),
                lower=_num(lower[i]) if i < len(lower) else None,
                upper=_num(upper[i]) if i < len(upper) else None,
            ))
        return _sort_by_date(rows)

    records = payload
    if isinstance(payload, dict):
        records = (
            payload.get("predictions")
            or payload.get("forecast")
            or payload.get("future_predictions")
            or payload.get("forecast_data")
            or []
        )
    if not isinstance(records, list):
        return []

    rows = [row for i, r in enumerate(records) if isinstance(r, dict) for row in [_row_from_record(r, i)] if row]
    return _sort_by_date(rows)


def normalize_feature_importance(value: Any) -> List[Tuple[str, float]]:
    """Dict or list-of-dicts feature importance, sorted descending."""
    if not value:
        return []
    if isinstance(value, dict):
        pairs = [(str(k), float(v)) for k, v in value.items()]
    else:
        pairs = [(str(item["feature"]), float(item["importance"])) for item in value if "feature" in item]
    return sorted(pairs, key=lambda p: p[1], reverse=True)


def calculate_trend(change_percent: float) -> str:
    """
    Determine trend direction based on a percentage change.

    Returns:
        str: 'Strong Up', 'Up', 'Down', 'Strong Down', or 'Stable'
    """
    if change_percent >= settings.trend_strong_up:
        return "Strong Up"
    elif change_percent > settings.trend_up_threshold:
        return "Up"
    elif change_percent <= settings.trend_strong_down:
        return "Strong Down"
    elif change_percent < settings.trend_down_threshold:
        return "Down"
    return "Stable"


def summarize_forecast(rows: List[ForecastRow]) -> dict:
    """Headline numbers for the metric cards."""
    if not rows:
        return {"periods": 0, "total": 0, "average": 0, "change_percent": 0.0, "trend": "Stable"}

    first, last = rows[0].prediction, rows[-1].prediction
    change = ((last - first) / first * 100) if first else 0.0
    total = sum(r.prediction for r in rows)
    return {
        "periods": len(rows),
        "total": round(total, 2),
        "average": round(total / len(rows), 2),
        "first": first,
        "last": last,
        "peak": max(r.prediction for r in rows),
        "change_percent": round(change, 2),
        "trend": calculate_trend(change),
    }


# =============================================================================
# UPLOAD FLOWS
# =============================================================================

def _upload_to_backend(slug: str, client: ForecastBackendClient, file_name: str,
                       content: bytes, options: dict) -> dict:
    """First network call of each model's flow."""
    if not get_model(slug).uses_backend:
        return {}
    if slug in ("arima", "arimax"):
        return client.upload_arima_dataset(file_name, content, model=slug)
    if slug == "xgboost":
        return client.predict_xgboost(file_name, content)
    if slug == "lightgbm":
        return client.upload_train_lightgbm(file_name, content)
    if slug == "catboost":
        return client.predict_catboost(file_name, content, forecast_days=options.get("forecast_days"))
    if slug == "linear-regression":
        payload = client.upload_dataset(file_name, content)
        try:
            payload["dataset_id_m6"] = client.upload_dataset_m6(file_name, content).get("dataset_id")
        except PortalError as e:
            logger.warning("M6 mirror upload skipped: %s", e.message)
        return payload
    if slug == "prophet":
        return client.forecast_prophet(file_name, content, forecast_days=options.get("forecast_days"))
    if slug == "sarima":
        return client.forecast_sarima(file_name, content, steps=options.get("steps"))
    if slug == "sarimax":
        months = options.get("months", 1)
        return client.forecast_sarimax_batch(file_name, content, steps=max(1, int(months * 30)))
    raise PortalError(f"{get_model(slug).name} results are precomputed and do not accept uploads")


def _train(slug: str, client: ForecastBackendClient, file_name: str, content: bytes, payload: dict) -> str:
    if slug in ("arima", "arimax"):
        payload["model_info"] = client.train_arima(model=slug).get("model_info")
    elif slug == "lightgbm":
        payload["analysis"] = client.analyze_lightgbm(file_name, content)
    elif slug == "linear-regression":
        payload["training"] = client.train_model(payload["dataset_id"], "demand")
    return "Model trained"


def _predict(slug: str, client: ForecastBackendClient, payload: dict, options: dict) -> str:
    if slug in ("arima", "arimax"):
        periods = options.get("periods") or settings.arimax_forecast_periods
        payload["prediction"] = client.predict_arima(model=slug, periods=periods)
    elif slug == "linear-regression":
        payload["prediction"] = client.predict_future(payload["dataset_id"], options.get("months"), "demand")
    return "Forecast generated"


def run_upload_pipeline(
    slug: str,
    file_name: str,
    content: bytes,
    client: Optional[ForecastBackendClient] = None,
    tracker: Optional[UploadTracker] = None,
    sleep: Optional[Callable[[float], None]] = None,
    **options,
) -> UploadResult:
    """
    Upload a dataset for one model and collect everything the results page needs.

    Strict-header models are validated locally before anything is sent.
    A failing step is marked 'error' with its message and the error re-raised.

    Args:
        slug: Catalog slug of the model
        file_name: Name of the uploaded file
        content: Raw CSV bytes
        client: Backend client (default: one built from settings)
        tracker: Progress tracker (default: the model's step set)
        sleep: Optional pause between cosmetic steps, e.g. time.sleep
        **options: periods / months / steps / forecast_days overrides

    Returns:
        UploadResult
    """
    model: ModelSpec = get_model(slug)
    client = client or ForecastBackendClient()
    tracker = tracker or UploadTracker(model.flow)
    current = None

    def begin(step_id: str, message: str):
        nonlocal current
        current = step_id
        tracker.start(step_id, message)

    def pause(seconds: float):
        if sleep is not None:
            sleep(seconds)

    try:
        preview = build_file_preview(file_name, content, model)

        if model.strict_headers:
            begin("validate", "Checking headers...")
            if preview.has_errors:
                raise ValidationError(preview.validation_errors)
            tracker.complete("validate", "Headers verified")

        begin("upload", "Uploading file...")
        payload = _upload_to_backend(slug, client, file_name, content, options)
        tracker.complete("upload", "File uploaded")

        if not model.strict_headers:
            begin("validate", "Validating file format...")
            pause(0.3)
            if preview.has_errors:
                raise ValidationError(preview.validation_errors)
            tracker.complete("validate", "Validation passed")

        begin("parse", "Analyzing columns...")
        if "count" in payload:
            tracker.complete("parse", f"{payload.get('count') or 0} predictions")
        else:
            tracker.complete("parse", f"{preview.column_count} columns detected")

        if tracker.has("train"):
            begin("train", f"Training {model.name} model...")
            tracker.complete("train", _train(slug, client, file_name, content, payload))

        if tracker.has("predict"):
            begin("predict", "Generating forecast...")
            tracker.complete("predict", _predict(slug, client, payload, options))

        begin("ready", "Preparing results...")
        category_map, context_map, price_series, products = {}, {}, {}, {}
        df = read_csv_bytes(content)
        data_summary = get_data_summary(df)
        if model.exporter == "xgboost":
            category_map, context_map = build_context_maps(df)
            price_series = build_price_series(df)
            products = store_products(df)
        pause(0.6)
        tracker.complete("ready", "Ready")

    except PortalError as e:
        tracker.fail(current, e.message)
        logger.warning("%s upload failed at step '%s': %s", model.name, current, e.message)
        raise

    logger.info("%s upload finished for %s", model.name, file_name)
    return UploadResult(
        slug=slug,
        payload=payload,
        preview=preview,
        category_map=category_map,
        context_map=context_map,
        price_series=price_series,
        data_summary=data_summary,
        store_products=products,
    )


# =============================================================================
# FOLLOW-UP REQUESTS (results page)
# =============================================================================

PRICING_METHODS = ("linear", "loglog")


def _with_default_band(rows: List[ForecastRow], lower_factor: float, upper_factor: float) -> List[ForecastRow]:
    for row in rows:
        if row.upper is None:
            row.upper = row.prediction * upper_factor
        if row.lower is None:
            row.lower = max(0.0, row.prediction * lower_factor)
    return rows


def _dataset_id(result: UploadResult) -> int:
    dataset_id = result.payload.get("dataset_id") or (result.payload.get("training") or {}).get("dataset_id")
    if not dataset_id:
        raise PortalError("Missing dataset id. Please re-upload and train again.")
    return int(dataset_id)


def forecast_from_future_file(
    result: UploadResult,
    file_name: str,
    content: bytes,
    client: Optional[ForecastBackendClient] = None,
    date_column: str = "date",
) -> List[ForecastRow]:
    """
    Predict demand for a file of future feature rows with the trained
    linear regression model of this upload.

    Rows without a band get +20% / -30% around the prediction.
    """
    client = client or ForecastBackendClient()
    response = client.predict_from_future_file(_dataset_id(result), file_name, content,
                                               target_column="demand", date_column=date_column)
    rows = normalize_forecast_rows({"future_predictions": response.get("future_predictions") or []})
    return _with_default_band(rows, 0.7, 1.2)


def optimize_pricing(result: UploadResult, method: str = "linear",
                     client: Optional[ForecastBackendClient] = None) -> dict:
    """
    Price elasticity and optimization for a linear regression upload.

    The log-log method runs on the dataset mirrored to M6 when that upload
    succeeded, and on the M5 dataset otherwise.
    """
    if method not in PRICING_METHODS:
        raise PortalError(f"Unknown pricing method '{method}'")

    client = client or ForecastBackendClient()
    dataset_id = _dataset_id(result)
    if method == "linear":
        return client.optimize_pricing_linear(dataset_id, "price", "demand")
    return client.optimize_pricing_loglog(result.payload.get("dataset_id_m6") or dataset_id, "price", "demand")


def forecast_selection(store_id: str, product_id: str, forecast_days: Optional[int] = None,
                       client: Optional[ForecastBackendClient] = None) -> List[ForecastRow]:
    """CatBoost forecast for one store / product; missing bands default to +/-20%."""
    client = client or ForecastBackendClient()
    response = client.forecast_catboost(store_id, product_id, forecast_days=forecast_days)
    forecast = (response.get("result") or {}).get("forecast") or response.get("forecast") or []
    return _with_default_band(normalize_forecast_rows({"forecast": forecast}), 0.8, 1.2)


# =============================================================================
# EXPORT INPUTS
# =============================================================================

def build_arima_export_input(slug: str, payload: Optional[dict] = None):
    """
    ARIMA / ARIMAX export input from a prediction payload.

    Falls back to the precomputed results when the payload has no forecast,
    and (ARIMAX) to the precomputed pricing table when none was returned.
    """
    if slug not in ("arima", "arimax"):
        raise PortalError(f"No spreadsheet export for model '{slug}'")

    payload = payload or {}
    rows = normalize_forecast_rows(payload.get("prediction") or payload)

    if rows:
        lower_key, upper_key = ("lower", "upper") if slug == "arima" else ("lower_bound", "upper_bound")
        forecast = [
            {"date": r.date, "prediction": r.prediction, lower_key: r.lower, upper_key: r.upper}
            for r in rows
        ]
    else:
        forecast = arima_export_rows(slug)

    if slug == "arima":
        return ArimaExportInput(forecast=forecast)
    pricing = payload.get("pricing") or MOCK_RESULTS["arimax"]["pricing"]
    return ArimaxExportInput(forecast=forecast, pricing=pricing)


def build_xgboost_export_input(result: UploadResult) -> XgbExportInput:
    """
    Archive input for an XGBoost upload: backend predictions, monthly price
    series from the uploaded file, and every uploaded (store, product) pair.
    """
    predictions = []
    for record in result.payload.get("predictions") or []:
        store, product = record.get("StoreID"), record.get("ProductID")
        demand = _num(record.get("PredictedMonthlyDemand"))
        if store is None or product is None or demand is None:
            continue
        predictions.append(XgbPredictionRow(
            StoreID=str(store),
            ProductID=str(product),
            Date=str(record.get("Date", "")),
            PredictedMonthlyDemand=demand,
        ))

    return XgbExportInput(
        predictions=predictions,
        price_series_by_key=result.price_series,
        expected_products=result.store_products,
    )
