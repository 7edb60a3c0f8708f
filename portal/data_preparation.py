# portal/data_preparation.py
# --------------------------
# Responsibility:
# - Parse uploaded CSV files and validate their headers per model
# - Build the file preview shown before results
# - Derive (StoreID, ProductID) lookup maps and monthly price series
#   from an uploaded XGBoost dataset

import io
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from .catalog import ModelSpec
from .config import settings
from .errors import ValidationError
from .schemas import XgbPriceRow

NUMERIC_CONTEXT_COLUMNS = (
    "Price",
    "DiscountPct",
    "PromotionFlag",
    "CompetitionPrice",
    "HolidayFlag",
    "AdSpend",
    "UnemploymentRate",
    "Inflation",
    "Temperature",
    "Precipitation",
    "MedianIncome",
    "CompetitorStoresNearby",
)


@dataclass
class FilePreview:
    file_name: str
    file_size: int
    row_count: int
    column_count: int
    columns: List[str]
    preview_data: List[dict]
    validation_errors: List[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return len(self.validation_errors) > 0

    def to_dict(self) -> dict:
        return {
            "file_name": self.file_name,
            "file_size": self.file_size,
            "file_size_label": format_file_size(self.file_size),
            "row_count": self.row_count,
            "column_count": self.column_count,
            "columns": self.columns,
            "preview_data": self.preview_data,
            "validation_errors": self.validation_errors,
        }


def make_key(*parts) -> str:
    return "::".join(str(p).strip() for p in parts)


def format_file_size(num_bytes: int) -> str:
    """Human readable size using 1024 steps ('0 Bytes', '1.5 KB')."""
    if num_bytes <= 0:
        return "0 Bytes"
    sizes = ["Bytes", "KB", "MB", "GB"]
    i = min(int(math.floor(math.log(num_bytes, 1024))), len(sizes) - 1)
    value = round(num_bytes / (1024 ** i), 2)
    return f"{value:g} {sizes[i]}"


def read_csv_bytes(content: bytes) -> pd.DataFrame:
    """
    Parse uploaded CSV content with every column kept as text.

    Raises:
        ValidationError: If the file is unreadable or has no rows
    """
    try:
        df = pd.read_csv(io.BytesIO(content), dtype=str, keep_default_na=False)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as csv_error:
        raise ValidationError([f"Failed to read CSV file: {csv_error}"]) from csv_error

    if df.empty:
        raise ValidationError(["The uploaded CSV file is empty"])

    df.columns = [str(c).strip() for c in df.columns]
    return df


def validate_headers(columns: Sequence[str], required: Sequence[str], strict: bool = False) -> List[str]:
    """
    Check uploaded headers against a model's template.

    Args:
        columns: Headers found in the file
        required: Headers the model needs
        strict: Require exactly the template headers, in template order

    Returns:
        list: Error messages (empty when valid)
    """
    incoming = [c.strip() for c in columns]

    if not strict:
        lowered = {c.lower() for c in incoming}
        missing = [c for c in required if c.lower() not in lowered]
        return [f"Missing required columns: {', '.join(missing)}"] if missing else []

    missing = [c for c in required if c not in incoming]
    if missing:
        return [f"Missing required columns: {', '.join(missing)}"]

    extra = [c for c in incoming if c not in required]
    if extra:
        return [f"Unexpected columns present: {', '.join(extra)}"]

    if list(required) != incoming[:len(required)]:
        return ["Column order must exactly match the template sample."]
    return []


def build_file_preview(file_name: str, content: bytes, model: ModelSpec) -> FilePreview:
    """Summarize an upload for display; header problems are reported, not raised."""
    try:
        df = read_csv_bytes(content)
    except ValidationError as e:
        return FilePreview(
            file_name=file_name,
            file_size=len(content),
            row_count=0,
            column_count=0,
            columns=[],
            preview_data=[],
            validation_errors=e.errors,
        )

    columns = df.columns.tolist()
    errors = validate_headers(columns, model.required_columns, strict=model.strict_headers)
    return FilePreview(
        file_name=file_name,
        file_size=len(content),
        row_count=len(df),
        column_count=len(columns),
        columns=columns,
        preview_data=df.head(settings.preview_rows).to_dict(orient="records"),
        validation_errors=errors,
    )


def _parse_number(value):
    try:
        number = float(value)
    except (TypeError, ValueError):
        return value
    if not math.isfinite(number):
        return value
    return int(number) if number.is_integer() else number


def build_context_maps(df: pd.DataFrame) -> Tuple[Dict[str, str], Dict[str, dict]]:
    """
    Index an uploaded store/product dataset.

    Returns:
        tuple: (category_map keyed 'store::product', first category seen wins;
                context_map keyed 'store::product::date' with the full row,
                numeric columns parsed)
    """
    category_map: Dict[str, str] = {}
    context_map: Dict[str, dict] = {}

    if not {"StoreID", "ProductID"}.issubset(df.columns):
        return category_map, context_map

    for record in df.to_dict(orient="records"):
        store = str(record.get("StoreID", "")).strip()
        product = str(record.get("ProductID", "")).strip()
        if not store or not product:
            continue

        category = str(record.get("Category", "")).strip()
        if category:
            category_map.setdefault(make_key(store, product), category)

        date = str(record.get("Date", "")).strip()
        if date:
            ctx_key = make_key(store, product, date)
            if ctx_key not in context_map:
                context_map[ctx_key] = {
                    col: (_parse_number(val) if col in NUMERIC_CONTEXT_COLUMNS and val != "" else val)
                    for col, val in record.items()
                }

    return category_map, context_map


def store_products(df: pd.DataFrame) -> Dict[str, List[str]]:
    """Store -> sorted products for every non-empty (StoreID, ProductID) pair in the upload."""
    if not {"StoreID", "ProductID"}.issubset(df.columns):
        return {}

    pairs: Dict[str, set] = {}
    for store, product in zip(df["StoreID"], df["ProductID"]):
        store, product = str(store).strip(), str(product).strip()
        if store and product:
            pairs.setdefault(store, set()).add(product)
    return {store: sorted(products) for store, products in pairs.items()}


def build_price_series(df: pd.DataFrame) -> Dict[str, List[XgbPriceRow]]:
    """
    Monthly price ranges per 'store::product' key.

    current_price is the last observed Price of the month; the bounds span
    the observed Price and CompetitionPrice values of that month.
    """
    needed = {"StoreID", "ProductID", "Date", "Price"}
    if not needed.issubset(df.columns):
        return {}

    frame = df.copy()
    frame["_date"] = pd.to_datetime(frame["Date"], format="mixed", errors="coerce")
    frame["_price"] = pd.to_numeric(frame["Price"], errors="coerce")
    if "CompetitionPrice" in frame.columns:
        frame["_competition"] = pd.to_numeric(frame["CompetitionPrice"], errors="coerce")
    else:
        frame["_competition"] = float("nan")
    frame = frame.dropna(subset=["_date", "_price"]).sort_values("_date", kind="stable")
    frame["_month"] = frame["_date"].dt.strftime("%Y-%m")

    series: Dict[str, List[XgbPriceRow]] = {}
    for (store, product, month), group in frame.groupby(["StoreID", "ProductID", "_month"], sort=True):
        observed = pd.concat([group["_price"], group["_competition"]]).dropna()
        series.setdefault(make_key(store, product), []).append(XgbPriceRow(
            month=month,
            current_price=float(group["_price"].iloc[-1]),
            upper_bound=float(observed.max()),
            lower_bound=float(observed.min()),
        ))
    return series


def find_col(keywords: list, columns: list) -> Optional[str]:
    """Auto-detect column based on keywords."""
    for col in columns:
        if any(keyword in col.lower() for keyword in keywords):
            return col
    return columns[0] if columns else None


def get_data_summary(df: pd.DataFrame, date_col: Optional[str] = None, value_col: Optional[str] = None) -> dict:
    """
    Generate a summary of an uploaded dataset.

    Date and value columns are auto-detected when not given.
    """
    columns = df.columns.tolist()
    date_col = date_col or find_col(["date", "time", "period", "day", "month"], columns)
    value_col = value_col or find_col(["demand", "unit", "qty", "sold", "sales", "quantity"], columns)

    dates = pd.to_datetime(df[date_col], format="mixed", errors="coerce").dropna() if date_col else pd.Series(dtype="datetime64[ns]")
    values = pd.to_numeric(df[value_col], errors="coerce").dropna() if value_col else pd.Series(dtype=float)

    return {
        "rows": len(df),
        "columns": columns,
        "date_range_start": dates.min().strftime("%Y-%m-%d") if not dates.empty else None,
        "date_range_end": dates.max().strftime("%Y-%m-%d") if not dates.empty else None,
        "demand_column": value_col,
        "mean": round(float(values.mean()), 2) if not values.empty else None,
        "min": float(values.min()) if not values.empty else None,
        "max": float(values.max()) if not values.empty else None,
        "std": round(float(values.std()), 2) if len(values) > 1 else None,
    }
