# portal/evaluation.py
# --------------------
# Responsibility:
# - Accuracy metrics for backend training responses that ship
#   actual-vs-predicted series without precomputed scores

from typing import Dict, Optional, Sequence

import numpy as np


def calculate_basic_metrics(actual: Sequence[float], predicted: Sequence[float]) -> Dict[str, float]:
    """
    Calculate basic forecast accuracy metrics.

    Args:
        actual: Actual values
        predicted: Predicted values

    Returns:
        dict: Dictionary of metrics (MAE, RMSE, MAPE, R2)
    """
    actual = np.asarray(actual, dtype=float)
    predicted = np.asarray(predicted, dtype=float)

    if len(actual) != len(predicted):
        raise ValueError("Actual and predicted series must have same length")

    if len(actual) == 0:
        return {"mae": 0, "rmse": 0, "mape": 0, "r2_score": 0}

    # Mean Absolute Error
    mae = np.mean(np.abs(actual - predicted))

    # Root Mean Square Error
    rmse = np.sqrt(np.mean((actual - predicted) ** 2))

    # Mean Absolute Percentage Error (handle zeros)
    non_zero_mask = actual != 0
    if non_zero_mask.sum() > 0:
        mape = np.mean(np.abs((actual[non_zero_mask] - predicted[non_zero_mask]) / actual[non_zero_mask])) * 100
    else:
        mape = 0

    ss_res = np.sum((actual - predicted) ** 2)
    ss_tot = np.sum((actual - actual.mean()) ** 2)
    r2 = 1 - ss_res / ss_tot if ss_tot > 0 else 0.0

    return {
        "mae": round(float(mae), 2),
        "rmse": round(float(rmse), 2),
        "mape": round(float(mape), 2),
        "r2_score": round(float(r2), 4),
    }


def metrics_from_training(response: dict) -> Optional[Dict[str, float]]:
    """Prefer the backend's metrics; fall back to scoring actual_vs_predicted."""
    if response.get("metrics"):
        return response["metrics"]
    pairs = response.get("actual_vs_predicted") or {}
    if pairs.get("actual") and pairs.get("predicted"):
        return calculate_basic_metrics(pairs["actual"], pairs["predicted"])
    return None
