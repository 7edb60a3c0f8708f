import io
import json

import pytest
import requests
from openpyxl import load_workbook

from portal.catalog import XGBOOST_HEADERS
from portal.schemas import XgbExportInput


def make_response(status_code=200, body=None, reason="OK", raw=None):
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason
    if raw is not None:
        response._content = raw
    elif body is not None:
        response._content = json.dumps(body).encode("utf-8")
    else:
        response._content = b""
    return response


class FakeSession:
    """Records requests and replays queued responses (or raises queued exceptions)."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        outcome = self.responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def fake_session():
    return FakeSession


def read_workbook(content: bytes):
    return load_workbook(io.BytesIO(content))


def sheet_values(ws):
    return [list(row) for row in ws.iter_rows(values_only=True)]


def xgboost_csv(rows):
    lines = [",".join(XGBOOST_HEADERS)]
    for row in rows:
        values = {h: "" for h in XGBOOST_HEADERS}
        values.update(row)
        lines.append(",".join(str(values[h]) for h in XGBOOST_HEADERS))
    return ("\n".join(lines) + "\n").encode("utf-8")


@pytest.fixture
def two_store_input():
    return XgbExportInput(predictions=[
        {"StoreID": "A", "ProductID": "P2", "Date": "2024-02-01", "PredictedMonthlyDemand": 20},
        {"StoreID": "A", "ProductID": "P1", "Date": "2024-01-02", "PredictedMonthlyDemand": 12},
        {"StoreID": "A", "ProductID": "P1", "Date": "2024-01-01", "PredictedMonthlyDemand": 11},
        {"StoreID": "B", "ProductID": "P1", "Date": "2024-01-01", "PredictedMonthlyDemand": 5},
    ])
