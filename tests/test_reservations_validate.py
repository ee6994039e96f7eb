"""Tests for the draft validation endpoint."""

import pytest
from fastapi.testclient import TestClient

from aurora.api.factory import create_app
from aurora.domain.gate import SessionGate

from .helpers import TEST_SENDER, draft_json

URL = "/reservations/validate"


@pytest.fixture
def client():
    return TestClient(create_app(gate=SessionGate()))


def _post(client, **draft_overrides):
    return client.post(URL, json={"sender_id": TEST_SENDER, "draft": draft_json(**draft_overrides)})


class TestValidateDraft:
    def test_valid_draft_is_admitted(self, client):
        response = _post(client)

        assert response.status_code == 200
        assert response.json() == {"admitted": True, "warnings": []}

    def test_lunch_overlap_returns_warning_text(self, client):
        response = _post(client, startTime="12:00", endTime="14:00")

        body = response.json()
        assert body["admitted"] is True
        assert len(body["warnings"]) == 1
        assert "almuerzo" in body["warnings"][0]

    def test_outside_business_hours(self, client):
        response = _post(client, startTime="20:00", endTime="22:00")

        body = response.json()
        assert body["admitted"] is False
        assert body["reason"] == "outside_business_hours"
        assert body["detail"]["field"] == "start_time"
        assert body["reply"]

    def test_amount_too_high(self, client):
        body = _post(client, totalPrice=10000).json()

        assert body["reason"] == "invalid_amount"
        assert body["detail"]["issue"] == "too_high"

    def test_non_numeric_price_reaches_gate(self, client):
        body = _post(client, totalPrice="cincuenta").json()

        assert body["reason"] == "invalid_amount"
        assert body["detail"]["issue"] == "not_numeric"

    def test_free_booking(self, client):
        body = _post(client, totalPrice=0, wasFree=True).json()

        assert body["admitted"] is True

    def test_rate_limit_applies(self, client):
        statuses = [_post(client).status_code for _ in range(6)]

        assert statuses == [200] * 5 + [429]

    def test_unknown_field_is_422(self, client):
        response = client.post(
            URL,
            json={"sender_id": TEST_SENDER, "draft": draft_json(), "unexpected": 1},
        )

        assert response.status_code == 422


def test_health():
    client = TestClient(create_app(gate=SessionGate()))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
