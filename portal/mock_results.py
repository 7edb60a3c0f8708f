# portal/mock_results.py
# ----------------------
# Precomputed results for the model pages that do not query the backend
# (or only use it for the upload step).

from datetime import date, timedelta
from typing import Dict, List, Optional

from .catalog import get_model


def _daily_series(days: int, base: float, slope: float, actual_days: int,
                  band: float, bump: float = 35, dip: float = -25) -> List[dict]:
    start = date(2024, 1, 1)
    rows = []
    for i in range(days):
        level = base + i * slope
        row = {
            "date": (start + timedelta(days=i)).isoformat(),
            "predicted": level + 9,
            "confidence_upper": level + band,
            "confidence_lower": level - band,
        }
        if i < actual_days:
            row["actual"] = level + (bump if i % 5 == 0 else dip)
        rows.append(row)
    return rows


_TEN_DAY_FORECAST = [
    {"date": "2024-01-01", "actual": 1250, "predicted": 1240, "confidence_upper": 1300, "confidence_lower": 1180},
    {"date": "2024-01-02", "actual": 1180, "predicted": 1175, "confidence_upper": 1235, "confidence_lower": 1115},
    {"date": "2024-01-03", "actual": 1320, "predicted": 1310, "confidence_upper": 1370, "confidence_lower": 1250},
    {"date": "2024-01-04", "actual": 1450, "predicted": 1435, "confidence_upper": 1495, "confidence_lower": 1375},
    {"date": "2024-01-05", "actual": 1380, "predicted": 1370, "confidence_upper": 1430, "confidence_lower": 1310},
    {"date": "2024-01-06", "predicted": 1285, "confidence_upper": 1345, "confidence_lower": 1225},
    {"date": "2024-01-07", "predicted": 1145, "confidence_upper": 1205, "confidence_lower": 1085},
    {"date": "2024-01-08", "predicted": 1215, "confidence_upper": 1275, "confidence_lower": 1155},
    {"date": "2024-01-09", "predicted": 1335, "confidence_upper": 1395, "confidence_lower": 1275},
    {"date": "2024-01-10", "predicted": 1475, "confidence_upper": 1535, "confidence_lower": 1415},
]


MOCK_RESULTS: Dict[str, dict] = {
    "arima": {
        "forecast": _daily_series(30, 1000, 7, 18, 65),
        "feature_importance": [
            {"feature": "AR terms", "importance": 0.34},
            {"feature": "MA terms", "importance": 0.29},
            {"feature": "Seasonality", "importance": 0.21},
            {"feature": "Trend", "importance": 0.16},
        ],
        "parameters": [
            {"name": "p", "value": 2, "description": "Autoregressive order"},
            {"name": "d", "value": 1, "description": "Differencing order"},
            {"name": "q", "value": 2, "description": "Moving average order"},
            {"name": "seasonal", "value": "(1,1,1)12", "description": "Seasonal ARIMA"},
        ],
        "metrics": [
            {"title": "MAPE", "value": "7.4%", "change": 0.9, "change_type": "decrease"},
            {"title": "RMSE", "value": "63.8", "change": 2.4, "change_type": "decrease"},
            {"title": "Seasonality", "value": "12", "description": "Detected period"},
            {"title": "Stationarity", "value": "Differenced", "description": "d=1"},
        ],
    },
    "arimax": {
        "forecast": _daily_series(30, 1040, 6, 18, 55, bump=30, dip=-20),
        "feature_importance": [
            {"feature": "Price", "importance": 0.31},
            {"feature": "Promotion", "importance": 0.26},
            {"feature": "AR terms", "importance": 0.24},
            {"feature": "MA terms", "importance": 0.19},
        ],
        "parameters": [
            {"name": "p", "value": 2, "description": "Autoregressive order"},
            {"name": "d", "value": 1, "description": "Differencing order"},
            {"name": "q", "value": 1, "description": "Moving average order"},
            {"name": "exog", "value": "price, promotion", "description": "Exogenous regressors"},
        ],
        "metrics": [
            {"title": "MAPE", "value": "6.1%", "change": 1.3, "change_type": "decrease"},
            {"title": "RMSE", "value": "54.2", "change": 3.1, "change_type": "decrease"},
            {"title": "AIC", "value": "1412.6", "description": "Model fit"},
            {"title": "Exogenous", "value": "2", "description": "Drivers used"},
        ],
        "pricing": [
            {"price": 39.9, "predicted_demand": 1310, "profit": 19519, "demand_lower": 1240, "demand_upper": 1380,
             "profit_lower": 18476, "profit_upper": 20562},
            {"price": 44.9, "predicted_demand": 1205, "profit": 23979.5, "demand_lower": 1141, "demand_upper": 1269,
             "profit_lower": 22705.9, "profit_upper": 25253.1},
            {"price": 49.9, "predicted_demand": 1090, "profit": 27141, "demand_lower": 1031, "demand_upper": 1149,
             "profit_lower": 25671.9, "profit_upper": 28610.1},
            {"price": 54.9, "predicted_demand": 955, "profit": 28554.5, "demand_lower": 902, "demand_upper": 1008,
             "profit_lower": 26969.8, "profit_upper": 30139.2},
            {"price": 59.9, "predicted_demand": 810, "profit": 28269, "demand_lower": 763, "demand_upper": 857,
             "profit_lower": 26628.7, "profit_upper": 29909.3},
        ],
    },
    "sarima": {
        "forecast": _TEN_DAY_FORECAST,
        "parameters": [
            {"name": "order", "value": "(1,1,1)", "description": "Non-seasonal (p,d,q)"},
            {"name": "seasonal_order", "value": "(1,1,1,12)", "description": "Seasonal (P,D,Q,s)"},
            {"name": "trend", "value": "c", "description": "Constant trend term"},
        ],
        "metrics": [
            {"title": "MAPE", "value": "6.8%", "change": 1.1, "change_type": "decrease"},
            {"title": "Seasonal Period", "value": "12", "description": "Months"},
        ],
    },
    "varima": {
        "forecast": _TEN_DAY_FORECAST,
        "parameters": [
            {"name": "p", "value": 2, "description": "Vector autoregressive order"},
            {"name": "q", "value": 1, "description": "Vector moving average order"},
            {"name": "variables", "value": "demand, price, inventory", "description": "Jointly modeled series"},
        ],
        "metrics": [
            {"title": "Forecast Accuracy", "value": "91.6%", "change": 1.8, "change_type": "increase"},
            {"title": "MAPE", "value": "8.4%", "change": 0.7, "change_type": "decrease"},
            {"title": "Series", "value": "3", "description": "Modeled jointly"},
        ],
    },
    "lstm": {
        "forecast": _daily_series(30, 980, 8, 18, 55),
        "feature_importance": [
            {"feature": "lag_7", "importance": 0.28},
            {"feature": "lag_14", "importance": 0.22},
            {"feature": "moving_avg", "importance": 0.20},
            {"feature": "promo", "importance": 0.18},
            {"feature": "price", "importance": 0.12},
        ],
        "parameters": [
            {"name": "hidden_units", "value": 128, "description": "Size of hidden state"},
            {"name": "num_layers", "value": 2, "description": "Number of LSTM layers"},
            {"name": "dropout", "value": 0.2, "description": "Dropout regularization"},
            {"name": "sequence_length", "value": 30, "description": "Input sequence length"},
            {"name": "learning_rate", "value": 0.001, "description": "Optimizer learning rate"},
        ],
        "metrics": [
            {"title": "MAPE", "value": "5.9%", "change": 1.4, "change_type": "decrease"},
            {"title": "RMSE", "value": "48.7", "change": 2.2, "change_type": "decrease"},
        ],
    },
    "tft": {
        "forecast": _TEN_DAY_FORECAST,
        "feature_importance": [
            {"feature": "Price", "importance": 0.30},
            {"feature": "Day of Week", "importance": 0.24},
            {"feature": "Promotion", "importance": 0.22},
            {"feature": "Holiday", "importance": 0.14},
            {"feature": "Weather", "importance": 0.10},
        ],
        "parameters": [
            {"name": "hidden_size", "value": 64, "description": "Hidden layer width"},
            {"name": "attention_heads", "value": 4, "description": "Multi-head attention"},
            {"name": "dropout", "value": 0.1, "description": "Dropout regularization"},
            {"name": "max_encoder_length", "value": 60, "description": "Lookback window"},
        ],
        "metrics": [
            {"title": "MAPE", "value": "5.2%", "change": 1.9, "change_type": "decrease"},
            {"title": "Horizons", "value": "7", "description": "Days predicted jointly"},
        ],
    },
    "random-forest": {
        "forecast": _TEN_DAY_FORECAST,
        "feature_importance": [
            {"feature": "Price", "importance": 0.32},
            {"feature": "Seasonal Factor", "importance": 0.25},
            {"feature": "Inventory Level", "importance": 0.20},
            {"feature": "Promotional", "importance": 0.13},
            {"feature": "Historical Average", "importance": 0.10},
        ],
        "parameters": [
            {"name": "n_estimators", "value": 200, "description": "Number of trees in the forest"},
            {"name": "max_depth", "value": 10, "description": "Maximum depth of trees"},
            {"name": "min_samples_split", "value": 5, "description": "Minimum samples to split a node"},
            {"name": "min_samples_leaf", "value": 2, "description": "Minimum samples in a leaf"},
            {"name": "max_features", "value": "sqrt", "description": "Number of features to consider for splits"},
        ],
        "metrics": [
            {"title": "R² Score", "value": "0.91", "change": 0.03, "change_type": "increase"},
            {"title": "MAPE", "value": "6.5%", "change": 0.8, "change_type": "decrease"},
        ],
    },
    "lightgbm": {
        "feature_importance": [
            {"feature": "price", "importance": 0.30},
            {"feature": "inventory_level", "importance": 0.26},
            {"feature": "seasonal_factor", "importance": 0.24},
            {"feature": "promotional", "importance": 0.12},
            {"feature": "date", "importance": 0.08},
        ],
        "parameters": [
            {"name": "Number of Estimators", "value": "500"},
            {"name": "Learning Rate", "value": "0.1"},
            {"name": "Max Depth", "value": "8"},
            {"name": "Feature Fraction", "value": "0.8"},
            {"name": "Bagging Fraction", "value": "0.9"},
            {"name": "Memory Usage", "value": "156 MB"},
        ],
        "metrics": [
            {"title": "Accuracy Score", "value": "94.2%", "change": 2.1, "change_type": "increase"},
            {"title": "MAPE", "value": "5.8%", "change": 0.3, "change_type": "decrease"},
            {"title": "RMSE", "value": "12.4", "change": 1.2, "change_type": "decrease"},
            {"title": "Training Speed", "value": "2.3s"},
        ],
    },
}


def get_mock_results(slug: str) -> Optional[dict]:
    """Precomputed results for a model, or None when its page uses backend data."""
    get_model(slug)
    return MOCK_RESULTS.get(slug)


def arima_export_rows(slug: str = "arima") -> List[dict]:
    """Mock forecast in the ARIMA / ARIMAX export row shape."""
    results = MOCK_RESULTS[slug]
    lower_key, upper_key = ("lower", "upper") if slug == "arima" else ("lower_bound", "upper_bound")
    rows = []
    for r in results["forecast"]:
        half = (r["confidence_upper"] - r["confidence_lower"]) / 4
        rows.append({
            "date": r["date"],
            "prediction": r["predicted"],
            lower_key: r["confidence_lower"],
            upper_key: r["confidence_upper"],
            "lower_tight": r["predicted"] - half,
            "upper_tight": r["predicted"] + half,
        })
    return rows
