import pytest

from portal.evaluation import calculate_basic_metrics, metrics_from_training


def test_basic_metrics():
    metrics = calculate_basic_metrics([100, 200, 300], [110, 190, 300])
    assert metrics["mae"] == pytest.approx(6.67, abs=0.01)
    assert metrics["rmse"] == pytest.approx(8.16, abs=0.01)
    assert metrics["mape"] == pytest.approx(5.0, abs=0.01)


def test_mape_ignores_zero_actuals():
    metrics = calculate_basic_metrics([0, 100], [5, 90])
    assert metrics["mape"] == 10.0


def test_length_mismatch():
    with pytest.raises(ValueError):
        calculate_basic_metrics([1, 2], [1])


def test_empty_series():
    assert calculate_basic_metrics([], []) == {"mae": 0, "rmse": 0, "mape": 0, "r2_score": 0}


def test_metrics_from_training_prefers_backend():
    assert metrics_from_training({"metrics": {"mae": 1.0}}) == {"mae": 1.0}


def test_metrics_from_training_scores_pairs():
    metrics = metrics_from_training({"actual_vs_predicted": {"actual": [10, 20], "predicted": [10, 20]}})
    assert metrics["mae"] == 0
    assert metrics["r2_score"] == 1.0


def test_metrics_from_training_without_data():
    assert metrics_from_training({}) is None
