# portal/exporters.py
# -------------------
# Responsibility:
# - Turn computed forecast / pricing rows into downloadable spreadsheets
# - ARIMA / ARIMAX: one workbook
# - XGBoost: one workbook per store (one sheet per product), zipped together
#
# Progress is reported through two callbacks:
#   on_store_progress(current, total) and on_product_progress(current)

import io
import logging
import re
import zipfile
from typing import Callable, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from .config import settings
from .errors import ExportError
from .schemas import ArimaExportInput, ArimaxExportInput, XgbExportInput

logger = logging.getLogger(__name__)

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
ZIP_MIME = "application/zip"
PLACEHOLDER_TEXT = "No data available for this product"

StoreProgress = Callable[[int, int], None]
ProductProgress = Callable[[int], None]

_INVALID_SHEET_CHARS = re.compile(r"[\[\]:*?/\\]")
_UNSAFE_FILE_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


def _noop(*args):
    return None


def _load_openpyxl():
    try:
        import openpyxl
        from openpyxl.utils import get_column_letter
    except ImportError as e:
        raise ExportError("Missing dependency: openpyxl") from e
    return openpyxl, get_column_letter


# =============================================================================
# SHEET HELPERS
# =============================================================================

def sheet_name(name: str, used: Iterable[str] = ()) -> str:
    """
    Excel-safe sheet title: forbidden characters replaced, truncated to the
    sheet-name limit and made unique (case-insensitively) against `used`.
    """
    limit = settings.sheet_name_max_length
    base = _INVALID_SHEET_CHARS.sub("_", str(name)).strip() or "Sheet"
    taken = {u.lower() for u in used}

    candidate = base[:limit]
    n = 2
    while candidate.lower() in taken:
        suffix = f"~{n}"
        candidate = base[:limit - len(suffix)] + suffix
        n += 1
    return candidate


def safe_file_stem(name: str) -> str:
    return _UNSAFE_FILE_CHARS.sub("_", str(name))


def column_widths(rows: Sequence[Sequence]) -> List[int]:
    """Width per header column (row 2): longest cell text + 2, at least min_column_width."""
    if len(rows) < 2:
        return []
    widths = []
    for ci in range(len(rows[1])):
        longest = max(len(_cell_text(row[ci] if ci < len(row) else None)) for row in rows)
        widths.append(max(settings.min_column_width, longest + 2))
    return widths


def _cell_text(value) -> str:
    return "" if value is None else str(value)


def _append_sheet(workbook, title: str, rows: List[list]):
    _, get_column_letter = _load_openpyxl()
    ws = workbook.create_sheet(title=sheet_name(title, workbook.sheetnames))
    for row in rows:
        ws.append(row)
    for ci, width in enumerate(column_widths(rows), start=1):
        ws.column_dimensions[get_column_letter(ci)].width = width
    return ws


def _new_workbook():
    openpyxl, _ = _load_openpyxl()
    workbook = openpyxl.Workbook()
    workbook.remove(workbook.active)
    return workbook


def _workbook_bytes(workbook) -> bytes:
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def _date_order(values: Sequence[str], month_only: bool = False) -> List[int]:
    """Indices of `values` in ascending date order; unparseable dates last, stable."""
    raw = [f"{v}-01" if month_only else v for v in values]
    parsed = pd.to_datetime(pd.Series(raw, dtype=object), format="mixed", errors="coerce")
    return sorted(
        range(len(values)),
        key=lambda i: (1, 0) if pd.isna(parsed.iloc[i]) else (0, parsed.iloc[i].value),
    )


# =============================================================================
# ARIMA / ARIMAX
# =============================================================================

def export_arima_to_xlsx(
    data: ArimaExportInput,
    on_store_progress: Optional[StoreProgress] = None,
    on_product_progress: Optional[ProductProgress] = None,
) -> bytes:
    """Single 'Forecast' sheet with the ARIMA forecast and its bounds."""
    on_store_progress = on_store_progress or _noop
    on_product_progress = on_product_progress or _noop

    workbook = _new_workbook()
    on_store_progress(0, 1)
    on_product_progress(0)

    header = ["Date", "Prediction", "Lower", "Upper", "LowerTight", "UpperTight"]
    rows = [["ARIMA Forecast"], header]
    rows += [
        [r.date, r.prediction, r.lower, r.upper, r.lower_tight, r.upper_tight]
        for r in data.forecast
    ]
    _append_sheet(workbook, "Forecast", rows)

    on_product_progress(1)
    on_store_progress(1, 1)
    logger.info("ARIMA export: %d forecast rows", len(data.forecast))
    return _workbook_bytes(workbook)


def export_arimax_to_xlsx(
    data: ArimaxExportInput,
    on_store_progress: Optional[StoreProgress] = None,
    on_product_progress: Optional[ProductProgress] = None,
) -> bytes:
    """'Forecast' and 'Pricing' sheets for an ARIMAX run."""
    on_store_progress = on_store_progress or _noop
    on_product_progress = on_product_progress or _noop

    workbook = _new_workbook()
    on_store_progress(0, 1)
    on_product_progress(0)

    forecast_rows = [
        ["ARIMAX Forecast"],
        ["Date", "Prediction", "LowerBound", "UpperBound", "LowerTight", "UpperTight"],
    ]
    forecast_rows += [
        [r.date, r.prediction, r.lower_bound, r.upper_bound, r.lower_tight, r.upper_tight]
        for r in data.forecast
    ]
    _append_sheet(workbook, "Forecast", forecast_rows)

    pricing_rows = [
        ["Price Analysis"],
        ["Price", "PredictedDemand", "Profit", "DemandLower", "DemandUpper", "ProfitLower", "ProfitUpper"],
    ]
    pricing_rows += [
        [r.price, r.predicted_demand, r.profit, r.demand_lower, r.demand_upper, r.profit_lower, r.profit_upper]
        for r in data.pricing
    ]
    _append_sheet(workbook, "Pricing", pricing_rows)

    on_product_progress(1)
    on_store_progress(1, 1)
    logger.info("ARIMAX export: %d forecast rows, %d pricing rows", len(data.forecast), len(data.pricing))
    return _workbook_bytes(workbook)


# =============================================================================
# XGBOOST (per store archive)
# =============================================================================

def group_products_by_store(data: XgbExportInput) -> Dict[str, List[str]]:
    """
    Store -> sorted distinct products.

    Stores keep first-seen order from the predictions; expected products add
    stores/products the predictions do not mention.
    """
    store_map: Dict[str, set] = {}
    for row in data.predictions:
        store_map.setdefault(row.StoreID, set()).add(row.ProductID)
    for store, products in data.expected_products.items():
        store_map.setdefault(store, set()).update(products)
    return {store: sorted(products) for store, products in store_map.items()}


def build_product_sheet_rows(data: XgbExportInput, store_id: str, product_id: str) -> List[list]:
    """Demand section, then pricing section; a single placeholder cell when both are empty."""
    demand = [r for r in data.predictions if r.StoreID == store_id and r.ProductID == product_id]
    demand = [demand[i] for i in _date_order([r.Date for r in demand])]

    prices = list(data.price_series_by_key.get(f"{store_id}::{product_id}", []))
    prices = [prices[i] for i in _date_order([p.month for p in prices], month_only=True)]

    rows: List[list] = []
    if demand:
        rows.append(["Demand Forecast"])
        rows.append(["Date", "StoreID", "ProductID", "PredictedMonthlyDemand"])
        rows += [[r.Date, r.StoreID, r.ProductID, r.PredictedMonthlyDemand] for r in demand]
    if prices:
        if rows:
            rows.append([None])
        rows.append(["Price Analysis"])
        rows.append(["Month", "CurrentPrice", "UpperBound", "LowerBound"])
        rows += [[p.month, p.current_price, p.upper_bound, p.lower_bound] for p in prices]
    if not rows:
        rows.append([PLACEHOLDER_TEXT])
    return rows


def export_xgboost_to_zip(
    data: XgbExportInput,
    on_store_progress: Optional[StoreProgress] = None,
    on_product_progress: Optional[ProductProgress] = None,
) -> bytes:
    """
    One workbook per store, one sheet per product, all in a single zip.

    Args:
        data: Predictions, optional monthly price series keyed
            'StoreID::ProductID', optional expected products per store
        on_store_progress: Called with (stores done, store total)
        on_product_progress: Called with products done in the current store

    Returns:
        bytes: Zip archive containing '<store>.xlsx' files

    Raises:
        ExportError: If the spreadsheet dependency is missing
    """
    on_store_progress = on_store_progress or _noop
    on_product_progress = on_product_progress or _noop

    _load_openpyxl()
    stores = group_products_by_store(data)
    total = len(stores)

    archive = io.BytesIO()
    with zipfile.ZipFile(archive, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        on_store_progress(0, total)

        used_names = set()
        for s, (store_id, products) in enumerate(stores.items()):
            workbook = _new_workbook()
            on_product_progress(0)

            for p, product_id in enumerate(products):
                _append_sheet(workbook, product_id, build_product_sheet_rows(data, store_id, product_id))
                on_product_progress(p + 1)

            stem = safe_file_stem(store_id)
            file_name, suffix = f"{stem}.xlsx", s + 1
            while file_name in used_names:
                file_name = f"{stem}_{suffix}.xlsx"
                suffix += 1
            used_names.add(file_name)
            zf.writestr(file_name, _workbook_bytes(workbook))

            on_store_progress(s + 1, total)
            on_product_progress(0)

    logger.info("XGBoost export: %d stores, %d prediction rows", total, len(data.predictions))
    return archive.getvalue()


def default_archive_name(prefix: str = "export", extension: str = "zip") -> str:
    return f"{prefix}_{pd.Timestamp.now().strftime('%Y-%m-%d')}.{extension}"


EXPORTERS = {
    "arima": (export_arima_to_xlsx, ArimaExportInput, XLSX_MIME, "xlsx"),
    "arimax": (export_arimax_to_xlsx, ArimaxExportInput, XLSX_MIME, "xlsx"),
    "xgboost": (export_xgboost_to_zip, XgbExportInput, ZIP_MIME, "zip"),
}
