import pytest

from portal.api_client import ForecastBackendClient
from portal.errors import BackendError, PortalError, ValidationError
from portal.forecast_service import (
    ForecastRow,
    UploadResult,
    build_arima_export_input,
    build_xgboost_export_input,
    calculate_trend,
    forecast_from_future_file,
    forecast_selection,
    normalize_feature_importance,
    normalize_forecast_rows,
    optimize_pricing,
    run_upload_pipeline,
    summarize_forecast,
)
from portal.mock_results import MOCK_RESULTS
from portal.samples import sample_csv
from portal.schemas import ArimaExportInput, ArimaxExportInput
from portal.upload_progress import StepStatus, UploadTracker

from .conftest import FakeSession, make_response, xgboost_csv


def _client(*responses):
    session = FakeSession(*responses)
    return ForecastBackendClient(base_url="http://backend.test", session=session), session


# --- result shaping ---

def test_normalize_dates_predictions_shape():
    rows = normalize_forecast_rows({
        "dates": ["2024-01-02", "2024-01-01"],
        "predictions": [12, 11],
        "confidence_intervals": {"lower": [10, 9], "upper": [14, 13]},
    })
    assert rows == [
        ForecastRow(date="2024-01-01", prediction=11.0, lower=9.0, upper=13.0),
        ForecastRow(date="2024-01-02", prediction=12.0, lower=10.0, upper=14.0),
    ]


def test_normalize_record_lists():
    rows = normalize_forecast_rows({"forecast": [
        {"ds": "2024-01-01", "yhat": 5, "yhat_lower": 4, "yhat_upper": 6},
    ]})
    assert rows == [ForecastRow(date="2024-01-01", prediction=5.0, lower=4.0, upper=6.0)]

    rows = normalize_forecast_rows({"future_predictions": [{"date": "2024-02-01", "predicted_demand": 7}]})
    assert rows[0].prediction == 7.0

    rows = normalize_forecast_rows([{"date": "2024-01-01", "predicted": 3, "actual": 2}])
    assert rows[0].actual == 2.0


def test_normalize_skips_rows_without_prediction():
    assert normalize_forecast_rows({"predictions": [{"date": "2024-01-01"}]}) == []
    assert normalize_forecast_rows(None) == []
    assert normalize_forecast_rows({"predictions": "n/a"}) == []


def test_normalize_feature_importance():
    assert normalize_feature_importance({"a": 0.2, "b": 0.5}) == [("b", 0.5), ("a", 0.2)]
    assert normalize_feature_importance([{"feature": "x", "importance": 1}]) == [("x", 1.0)]
    assert normalize_feature_importance(None) == []


@pytest.mark.parametrize("change,label", [
    (15, "Strong Up"), (10, "Strong Up"), (7, "Up"), (0, "Stable"), (-7, "Down"), (-10, "Strong Down"),
])
def test_calculate_trend(change, label):
    assert calculate_trend(change) == label


def test_summarize_forecast():
    rows = [ForecastRow("2024-01-01", 100), ForecastRow("2024-01-02", 150), ForecastRow("2024-01-03", 120)]
    summary = summarize_forecast(rows)
    assert summary["periods"] == 3
    assert summary["total"] == 370
    assert summary["peak"] == 150
    assert summary["change_percent"] == 20.0
    assert summary["trend"] == "Strong Up"


def test_summarize_empty():
    assert summarize_forecast([])["trend"] == "Stable"


# --- upload pipeline ---

def test_xgboost_pipeline_success():
    content = xgboost_csv([
        {"Date": "2024-01-01", "StoreID": "S1", "ProductID": "P1", "Category": "Tops", "Price": "10"},
        {"Date": "2024-01-01", "StoreID": "S1", "ProductID": "P2", "Category": "Tops", "Price": "20"},
    ])
    predictions = [{"StoreID": "S1", "ProductID": "P1", "Date": "2024-02-01", "PredictedMonthlyDemand": 40}]
    client, session = _client(make_response(body={"count": 1, "predictions": predictions}))
    tracker = UploadTracker(["upload", "validate", "parse", "ready"])

    result = run_upload_pipeline("xgboost", "data.csv", content, client=client, tracker=tracker)

    assert tracker.is_finished
    assert tracker.get("parse").message == "1 predictions"
    assert tracker.get("validate").message == "Headers verified"
    assert result.category_map == {"S1::P1": "Tops", "S1::P2": "Tops"}
    assert [p.month for p in result.price_series["S1::P1"]] == ["2024-01"]
    assert session.calls[0]["url"].endswith("/api/m1/")


def test_xgboost_bad_headers_never_reach_backend():
    client, session = _client()
    tracker = UploadTracker(["upload", "validate", "parse", "ready"])

    with pytest.raises(ValidationError, match="Missing required columns"):
        run_upload_pipeline("xgboost", "bad.csv", b"a,b\n1,2\n", client=client, tracker=tracker)

    assert session.calls == []
    assert tracker.get("validate").status == StepStatus.ERROR
    assert tracker.get("upload").status == StepStatus.PENDING


def test_backend_failure_marks_upload_step():
    client, _ = _client(make_response(400, {"error": "Bad file"}, reason="Bad Request"))
    tracker = UploadTracker(["upload", "validate", "parse", "ready"])

    with pytest.raises(BackendError):
        run_upload_pipeline("sarima", "s.csv", sample_csv("sarima"), client=client, tracker=tracker)

    step = tracker.get("upload")
    assert step.status == StepStatus.ERROR
    assert step.message == "Bad file"


def test_arimax_pipeline_runs_train_and_predict():
    prediction = {"dates": ["2024-01-01"], "predictions": [5], "confidence_intervals": {"lower": [4], "upper": [6]}}
    client, session = _client(
        make_response(body={"status": "uploaded"}),
        make_response(body={"model_info": {"order": [1, 1, 1]}}),
        make_response(body=prediction),
    )
    seen = []
    tracker = UploadTracker(["upload", "validate", "parse", "train", "predict", "ready"], listener=seen.append)

    result = run_upload_pipeline("arimax", "a.csv", sample_csv("arimax"), client=client, tracker=tracker, periods=12)

    assert tracker.is_finished
    assert result.payload["model_info"] == {"order": [1, 1, 1]}
    assert result.payload["prediction"] == prediction
    assert session.calls[2]["json"]["periods"] == 12
    assert seen[-1][-1].status == StepStatus.COMPLETED


def test_train_failure_marks_train_step():
    client, _ = _client(
        make_response(body={"dataset_id": 4}),
        make_response(body={"dataset_id": 9}),
        make_response(500, {"detail": "Training crashed"}, reason="Server Error"),
    )
    tracker = UploadTracker(["upload", "validate", "parse", "train", "predict", "ready"])

    with pytest.raises(BackendError):
        run_upload_pipeline("linear-regression", "l.csv", sample_csv("linear-regression"),
                            client=client, tracker=tracker)

    assert tracker.get("upload").status == StepStatus.COMPLETED
    assert tracker.get("train").status == StepStatus.ERROR
    assert tracker.get("predict").status == StepStatus.PENDING


def test_varima_upload_stays_local():
    client, session = _client()
    result = run_upload_pipeline("varima", "v.csv", sample_csv("varima"), client=client)
    assert result.payload == {}
    assert session.calls == []


def test_results_only_model_rejects_upload():
    with pytest.raises(PortalError, match="precomputed"):
        run_upload_pipeline("lstm", "x.csv", b"date\n2024-01-01\n", client=_client()[0])


def test_sleep_hook_is_called():
    pauses = []
    client, _ = _client(make_response(body={}))
    result = run_upload_pipeline("sarima", "s.csv", sample_csv("sarima"), client=client, sleep=pauses.append)
    assert pauses == [0.3, 0.6]
    assert result.data_summary["rows"] == 3
    assert result.data_summary["demand_column"] == "sales"


# --- export inputs ---

def test_arima_export_input_from_prediction():
    payload = {"prediction": {"dates": ["2024-01-01"], "predictions": [5],
                              "confidence_intervals": {"lower": [4], "upper": [6]}}}
    data = build_arima_export_input("arima", payload)
    assert isinstance(data, ArimaExportInput)
    row = data.forecast[0]
    assert (row.date, row.prediction, row.lower, row.upper) == ("2024-01-01", 5, 4, 6)


def test_arimax_export_input_falls_back_to_precomputed():
    data = build_arima_export_input("arimax", {})
    assert isinstance(data, ArimaxExportInput)
    assert len(data.forecast) == len(MOCK_RESULTS["arimax"]["forecast"])
    assert len(data.pricing) == len(MOCK_RESULTS["arimax"]["pricing"])


def test_arima_export_input_unknown_model():
    with pytest.raises(PortalError):
        build_arima_export_input("sarima", {})


def test_xgboost_export_input():
    result = UploadResult(
        slug="xgboost",
        payload={"predictions": [
            {"StoreID": "S1", "ProductID": "P1", "Date": "2024-02-01", "PredictedMonthlyDemand": "40"},
            {"StoreID": "S1", "ProductID": "P1", "Date": "2024-03-01", "PredictedMonthlyDemand": None},
        ]},
        preview=None,
        category_map={"S1::P1": "Tops"},
        store_products={"S1": ["P1", "P2"], "S2": ["P5"]},
    )
    data = build_xgboost_export_input(result)
    assert len(data.predictions) == 1
    assert data.predictions[0].PredictedMonthlyDemand == 40
    assert data.expected_products == {"S1": ["P1", "P2"], "S2": ["P5"]}


def test_xgboost_export_input_keeps_pairs_without_category():
    content = xgboost_csv([
        {"Date": "2024-01-01", "StoreID": "S1", "ProductID": "P1", "Category": "Tops", "Price": "10"},
        {"Date": "2024-01-01", "StoreID": "S_BLANKCAT", "ProductID": "P7", "Category": "", "Price": "5"},
    ])
    predictions = [{"StoreID": "S1", "ProductID": "P1", "Date": "2024-02-01", "PredictedMonthlyDemand": 40}]
    client, _ = _client(make_response(body={"count": 1, "predictions": predictions}))
    tracker = UploadTracker(["upload", "validate", "parse", "ready"])

    result = run_upload_pipeline("xgboost", "data.csv", content, client=client, tracker=tracker)
    data = build_xgboost_export_input(result)

    assert "S_BLANKCAT::P7" not in result.category_map
    assert data.expected_products == {"S1": ["P1"], "S_BLANKCAT": ["P7"]}


# --- follow-up requests ---

def _linear_result(**payload):
    return UploadResult(slug="linear-regression", payload=payload, preview=None)


def test_linear_regression_upload_mirrors_to_m6():
    client, session = _client(
        make_response(body={"dataset_id": 4}),
        make_response(body={"dataset_id": 9}),
        make_response(body={"metrics": {"mae": 1.0}}),
        make_response(body={"future_predictions": []}),
    )
    result = run_upload_pipeline("linear-regression", "l.csv", sample_csv("linear-regression"), client=client)

    assert result.payload["dataset_id"] == 4
    assert result.payload["dataset_id_m6"] == 9
    assert session.calls[1]["url"].endswith("/api/m6/upload-dataset/")


def test_linear_regression_upload_survives_m6_failure():
    client, _ = _client(
        make_response(body={"dataset_id": 4}),
        make_response(500, {"error": "M6 down"}, reason="Server Error"),
        make_response(body={"metrics": {}}),
        make_response(body={"future_predictions": []}),
    )
    tracker = UploadTracker(["upload", "validate", "parse", "train", "predict", "ready"])

    result = run_upload_pipeline("linear-regression", "l.csv", sample_csv("linear-regression"),
                                 client=client, tracker=tracker)

    assert tracker.is_finished
    assert result.payload["dataset_id"] == 4
    assert "dataset_id_m6" not in result.payload


def test_forecast_from_future_file_fills_missing_band():
    client, session = _client(make_response(body={"future_predictions": [
        {"date": "2024-02-01", "predicted_demand": 100},
        {"date": "2024-01-01", "predicted_demand": 50, "confidence_lower": 40, "confidence_upper": 65},
    ]}))

    rows = forecast_from_future_file(_linear_result(dataset_id=4), "f.csv", b"date\n", client=client)

    assert [r.date for r in rows] == ["2024-01-01", "2024-02-01"]
    assert (rows[0].lower, rows[0].upper) == (40, 65)
    assert rows[1].lower == pytest.approx(70)
    assert rows[1].upper == pytest.approx(120)
    assert session.calls[0]["data"]["dataset_id"] == "4"


def test_forecast_from_future_file_needs_dataset_id():
    client, session = _client()
    with pytest.raises(PortalError, match="Missing dataset id"):
        forecast_from_future_file(_linear_result(), "f.csv", b"date\n", client=client)
    assert session.calls == []


def test_optimize_pricing_linear_uses_m5_dataset():
    client, session = _client(make_response(body={"optimal_price": 12.5}))
    response = optimize_pricing(_linear_result(dataset_id=4, dataset_id_m6=9), "linear", client=client)
    assert response == {"optimal_price": 12.5}
    assert session.calls[0]["url"].endswith("/api/m5/optimize-pricing-linear/")
    assert session.calls[0]["json"]["dataset_id"] == 4


def test_optimize_pricing_loglog_prefers_m6_dataset():
    client, session = _client(make_response(body={}), make_response(body={}))
    optimize_pricing(_linear_result(dataset_id=4, dataset_id_m6=9), "loglog", client=client)
    optimize_pricing(_linear_result(dataset_id=4), "loglog", client=client)
    assert [c["json"]["dataset_id"] for c in session.calls] == [9, 4]
    assert session.calls[0]["url"].endswith("/api/m6/optimize-pricing-loglog/")


def test_optimize_pricing_unknown_method():
    with pytest.raises(PortalError):
        optimize_pricing(_linear_result(dataset_id=4), "quadratic", client=_client()[0])


def test_forecast_selection_defaults_band():
    client, session = _client(make_response(body={"result": {"forecast": [
        {"date": "2024-01-02", "prediction": 10},
        {"date": "2024-01-01", "prediction": 8, "lower_bound": 7, "upper_bound": 9},
    ]}}))

    rows = forecast_selection("S1", "P1", 2, client=client)

    assert [r.date for r in rows] == ["2024-01-01", "2024-01-02"]
    assert (rows[0].lower, rows[0].upper) == (7, 9)
    assert rows[1].lower == pytest.approx(8)
    assert rows[1].upper == pytest.approx(12)
    assert session.calls[0]["json"]["input_data"] == {"store_id": "S1", "product_id": "P1"}
