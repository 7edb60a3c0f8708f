# portal/samples.py
# -----------------
# Template datasets offered for download on each model page.

import io
from typing import Dict, List

import pandas as pd

from .catalog import XGBOOST_HEADERS, get_model


def _xgboost_rows() -> List[dict]:
    rows = [
        ("2024-01-01", 925, 12, 0, 759, "Winter", 519, 6.013890880411348, 5.453264869089431, 17.38800277190036, 16, 38921, 15),
        ("2024-02-01", 1985, 5, 0, 1977, "Winter", 2172, 6.228196763887352, 5.907182589647006, 29.305207652983846, 4, 39225, 18),
    ]
    out = []
    for date, price, disc, promo, comp, season, ad, unemp, infl, temp, precip, income, nearby in rows:
        out.append(dict(zip(XGBOOST_HEADERS, (
            date, "S001", "P001", "T-Shirt Basic", "T-Shirt", "Basic", "Bhubaneswar", "East",
            price, disc, promo, comp, season, 0, "", ad, unemp, infl, temp, precip, income, nearby,
        ))))
    return out


SAMPLE_ROWS: Dict[str, List[dict]] = {
    "catboost": [
        {"Date": "2024-01-01", "Demand": 1300, "Price": 30, "Inventory Level": 5200, "Seasonal Factor": 1.3, "Promotional": 0},
        {"Date": "2024-01-02", "Demand": 1220, "Price": 30, "Inventory Level": 5050, "Seasonal Factor": 1.3, "Promotional": 0},
        {"Date": "2024-01-03", "Demand": 1380, "Price": 28, "Inventory Level": 4900, "Seasonal Factor": 1.3, "Promotional": 1},
    ],
    "lightgbm": [
        {"Date": "2024-01-01", "Demand": 1300, "Price": 30, "Inventory Level": 5200, "Seasonal Factor": 1.3, "Promotional": 0},
        {"Date": "2024-01-02", "Demand": 1220, "Price": 30, "Inventory Level": 5050, "Seasonal Factor": 1.3, "Promotional": 0},
        {"Date": "2024-01-03", "Demand": 1380, "Price": 28, "Inventory Level": 4900, "Seasonal Factor": 1.3, "Promotional": 1},
    ],
    "linear-regression": [
        {"date": "2023-01-01", "demand": 150, "price": 25.5, "promotion": 0, "temperature": 18.2},
        {"date": "2023-02-01", "demand": 162, "price": 24.9, "promotion": 1, "temperature": 19.6},
        {"date": "2023-03-01", "demand": 171, "price": 24.5, "promotion": 0, "temperature": 23.1},
    ],
    "prophet": [
        {"Date": "2024-01-01", "UnitsSold": 150, "Price": 1250.00},
        {"Date": "2024-01-02", "UnitsSold": 155, "Price": 1250.00},
        {"Date": "2024-01-03", "UnitsSold": 148, "Price": 1275.00},
    ],
    "arima": [
        {"date": "2024-01-01", "demand": 1035},
        {"date": "2024-01-02", "demand": 982},
        {"date": "2024-01-03", "demand": 989},
    ],
    "arimax": [
        {"date": "2024-01-01", "demand": 1035, "price": 49.9, "promotion": 0},
        {"date": "2024-01-02", "demand": 982, "price": 49.9, "promotion": 0},
        {"date": "2024-01-03", "demand": 1104, "price": 44.9, "promotion": 1},
    ],
    "sarima": [
        {"date": "2024-01-01", "sales": 1200},
        {"date": "2024-01-02", "sales": 1150},
        {"date": "2024-01-03", "sales": 1300},
    ],
    "sarimax": [
        {"Date": "1/1/2024", "StoreID": "S001", "ProductID": "P001", "Price": 925, "Discount_Percentage": 12, "Promotion": 0, "Holiday_Flag": 1, "Ad_Spend": 519},
        {"Date": "2/1/2024", "StoreID": "S001", "ProductID": "P001", "Price": 1985, "Discount_Percentage": 5, "Promotion": 1, "Holiday_Flag": 0, "Ad_Spend": 2172},
        {"Date": "3/1/2024", "StoreID": "S001", "ProductID": "P001", "Price": 713, "Discount_Percentage": 13, "Promotion": 0, "Holiday_Flag": 0, "Ad_Spend": 158},
    ],
    "varima": [
        {"date": "2024-01-01", "demand": 1200, "price": 30.0, "inventory": 5200},
        {"date": "2024-01-02", "demand": 1180, "price": 30.0, "inventory": 5010},
        {"date": "2024-01-03", "demand": 1265, "price": 28.5, "inventory": 4850},
    ],
}
SAMPLE_ROWS["xgboost"] = _xgboost_rows()


def get_sample_rows(slug: str) -> List[dict]:
    get_model(slug)
    if slug not in SAMPLE_ROWS:
        raise KeyError(f"No sample dataset for model '{slug}'")
    return [dict(row) for row in SAMPLE_ROWS[slug]]


def sample_frame(slug: str) -> pd.DataFrame:
    return pd.DataFrame(get_sample_rows(slug))


def sample_csv(slug: str) -> bytes:
    buffer = io.StringIO()
    sample_frame(slug).to_csv(buffer, index=False, lineterminator="\n")
    return buffer.getvalue().encode("utf-8")


def sample_filename(slug: str) -> str:
    return get_model(slug).sample_file
