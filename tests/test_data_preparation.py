import pandas as pd
import pytest

from portal.catalog import XGBOOST_HEADERS, get_model
from portal.data_preparation import (
    build_context_maps,
    build_file_preview,
    build_price_series,
    format_file_size,
    get_data_summary,
    make_key,
    read_csv_bytes,
    store_products,
    validate_headers,
)
from portal.errors import ValidationError

from .conftest import xgboost_csv


def test_format_file_size():
    assert format_file_size(0) == "0 Bytes"
    assert format_file_size(500) == "500 Bytes"
    assert format_file_size(1536) == "1.5 KB"
    assert format_file_size(3 * 1024 * 1024) == "3 MB"


def test_make_key():
    assert make_key("S001", " P001 ") == "S001::P001"
    assert make_key("S001", "P001", "2024-01-01") == "S001::P001::2024-01-01"


def test_read_csv_keeps_text():
    df = read_csv_bytes(b"date,demand\n2024-01-01,007\n")
    assert df["demand"].tolist() == ["007"]


def test_read_csv_rejects_empty_file():
    with pytest.raises(ValidationError) as exc:
        read_csv_bytes(b"date,demand\n")
    assert exc.value.errors == ["The uploaded CSV file is empty"]


def test_read_csv_rejects_no_content():
    with pytest.raises(ValidationError, match="Failed to read CSV file"):
        read_csv_bytes(b"")


class TestValidateHeaders:
    def test_loose_is_case_insensitive(self):
        assert validate_headers(["Date", "Demand", "extra"], ["date", "demand"]) == []

    def test_loose_reports_missing(self):
        assert validate_headers(["date"], ["date", "demand"]) == ["Missing required columns: demand"]

    def test_strict_accepts_template(self):
        assert validate_headers(list(XGBOOST_HEADERS), XGBOOST_HEADERS, strict=True) == []

    def test_strict_missing(self):
        errors = validate_headers(list(XGBOOST_HEADERS[:-2]), XGBOOST_HEADERS, strict=True)
        assert errors == ["Missing required columns: MedianIncome, CompetitorStoresNearby"]

    def test_strict_unexpected(self):
        errors = validate_headers(list(XGBOOST_HEADERS) + ["Extra"], XGBOOST_HEADERS, strict=True)
        assert errors == ["Unexpected columns present: Extra"]

    def test_strict_order(self):
        swapped = list(XGBOOST_HEADERS)
        swapped[0], swapped[1] = swapped[1], swapped[0]
        errors = validate_headers(swapped, XGBOOST_HEADERS, strict=True)
        assert errors == ["Column order must exactly match the template sample."]


def test_file_preview_valid():
    content = b"date,demand\n2024-01-01,10\n2024-01-02,12\n"
    preview = build_file_preview("data.csv", content, get_model("arima"))
    assert not preview.has_errors
    assert preview.row_count == 2
    assert preview.column_count == 2
    assert preview.columns == ["date", "demand"]
    assert preview.preview_data[0] == {"date": "2024-01-01", "demand": "10"}
    assert preview.to_dict()["file_size_label"] == f"{len(content)} Bytes"


def test_file_preview_limits_rows():
    body = "".join(f"2024-01-{d:02d},{d}\n" for d in range(1, 21))
    preview = build_file_preview("data.csv", ("date,demand\n" + body).encode(), get_model("arima"))
    assert preview.row_count == 20
    assert len(preview.preview_data) == 10


def test_file_preview_reports_errors_instead_of_raising():
    preview = build_file_preview("bad.csv", b"", get_model("arima"))
    assert preview.has_errors
    assert preview.row_count == 0

    preview = build_file_preview("wrong.csv", b"a,b\n1,2\n", get_model("xgboost"))
    assert preview.validation_errors[0].startswith("Missing required columns")


def _xgboost_frame():
    content = xgboost_csv([
        {"Date": "2024-01-05", "StoreID": "S1", "ProductID": "P1", "Category": "Tops",
         "Price": "10", "CompetitionPrice": "12"},
        {"Date": "2024-01-20", "StoreID": "S1", "ProductID": "P1", "Category": "Shirts",
         "Price": "8", "CompetitionPrice": "9.5"},
        {"Date": "2024-02-03", "StoreID": "S1", "ProductID": "P1", "Category": "Tops",
         "Price": "11", "CompetitionPrice": ""},
        {"Date": "2024-01-07", "StoreID": "S2", "ProductID": "P9", "Category": "Shoes",
         "Price": "50", "CompetitionPrice": "45"},
    ])
    return read_csv_bytes(content)


def test_context_maps():
    category_map, context_map = build_context_maps(_xgboost_frame())
    assert category_map == {"S1::P1": "Tops", "S2::P9": "Shoes"}
    row = context_map["S1::P1::2024-01-05"]
    assert row["Price"] == 10
    assert row["CompetitionPrice"] == 12
    assert row["Category"] == "Tops"


def test_context_maps_without_ids():
    assert build_context_maps(pd.DataFrame({"date": ["2024-01-01"]})) == ({}, {})


def test_store_products_include_blank_category():
    df = read_csv_bytes(xgboost_csv([
        {"Date": "2024-01-01", "StoreID": "S2", "ProductID": "P9", "Category": ""},
        {"Date": "2024-01-01", "StoreID": "S1", "ProductID": "P2", "Category": "Tops"},
        {"Date": "2024-01-02", "StoreID": "S1", "ProductID": "P1", "Category": ""},
        {"Date": "2024-01-03", "StoreID": "", "ProductID": "P3", "Category": "Tops"},
    ]))
    assert store_products(df) == {"S2": ["P9"], "S1": ["P1", "P2"]}


def test_store_products_without_ids():
    assert store_products(pd.DataFrame({"date": ["2024-01-01"]})) == {}


def test_price_series_monthly_ranges():
    series = build_price_series(_xgboost_frame())
    s1 = series["S1::P1"]
    assert [p.month for p in s1] == ["2024-01", "2024-02"]
    january = s1[0]
    assert january.current_price == 8
    assert january.upper_bound == 12
    assert january.lower_bound == 8
    february = s1[1]
    assert (february.current_price, february.upper_bound, february.lower_bound) == (11, 11, 11)
    assert series["S2::P9"][0].lower_bound == 45


def test_price_series_needs_price_column():
    assert build_price_series(pd.DataFrame({"StoreID": ["S1"]})) == {}


def test_data_summary_detects_columns():
    df = read_csv_bytes(b"Date,UnitsSold\n2024-01-01,10\n2024-01-03,20\n2024-01-02,30\n")
    summary = get_data_summary(df)
    assert summary["rows"] == 3
    assert summary["demand_column"] == "UnitsSold"
    assert summary["date_range_start"] == "2024-01-01"
    assert summary["date_range_end"] == "2024-01-03"
    assert summary["mean"] == 20
    assert summary["min"] == 10
    assert summary["max"] == 30
