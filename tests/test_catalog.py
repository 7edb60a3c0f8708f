import pytest

from portal.catalog import MODELS, XGBOOST_HEADERS, get_model, list_models, slug_for
from portal.samples import get_sample_rows, sample_csv, sample_filename


def test_listed_models_in_order():
    assert [m.slug for m in list_models()] == [
        "xgboost", "catboost", "lightgbm", "linear-regression",
        "prophet", "arima", "arimax", "sarima", "sarimax", "varima",
    ]


def test_hidden_models_only_on_request():
    hidden = {"lstm", "tft", "random-forest"}
    assert hidden.isdisjoint(m.slug for m in list_models())
    assert hidden.issubset(m.slug for m in list_models(include_hidden=True))


def test_get_model_unknown():
    with pytest.raises(KeyError, match="Unknown model 'nope'"):
        get_model("nope")


def test_slug_for():
    assert slug_for("Linear Regression") == "linear-regression"
    assert slug_for("xgboost") == "xgboost"
    assert slug_for("Some New Model") == "some-new-model"


def test_only_known_exporters():
    assert {m.exporter for m in MODELS} == {None, "arima", "arimax", "xgboost"}


def test_every_upload_model_has_a_valid_sample():
    for model in list_models():
        rows = get_sample_rows(model.slug)
        assert rows, model.slug
        columns = {c.lower() for c in rows[0]}
        assert {c.lower() for c in model.required_columns} <= columns, model.slug


def test_xgboost_sample_matches_template_order():
    header = sample_csv("xgboost").decode("utf-8").splitlines()[0]
    assert header.split(",") == list(XGBOOST_HEADERS)


def test_sample_filename():
    assert sample_filename("linear-regression") == "linear_regression_sample_dataset.csv"


def test_results_only_model_has_no_sample():
    with pytest.raises(KeyError):
        get_sample_rows("tft")


def test_sample_rows_are_copies():
    rows = get_sample_rows("arima")
    rows[0]["demand"] = -1
    assert get_sample_rows("arima")[0]["demand"] != -1
