"""Tests for dashboard routes."""

import math

import pytest

import dashboard
from controller import InputStateController
from db import MemoryInputStore


@pytest.fixture
def client():
    dashboard.start(MemoryInputStore())
    dashboard.app.config["TESTING"] = True
    yield dashboard.app.test_client()
    dashboard.run(dashboard.controller.flush())


class TestFormatNum:
    """Tests for format_num."""

    def test_placeholder(self):
        assert dashboard.format_num(None) == "—"
        assert dashboard.format_num(math.nan) == "—"

    def test_number(self):
        assert dashboard.format_num(24.2) == "24.2"


class TestApi:
    """Tests for the JSON API."""

    def test_initial_state(self, client):
        response = client.get("/api/state")

        assert response.status_code == 200
        data = response.get_json()
        assert data["state"] == "ready"
        assert data["results"]["bmi"] is None
        assert data["display"]["unit_preference"] == "metric"

    def test_bmi_scenario(self, client):
        client.post("/api/edit", json={"field": "weight_kg", "value": "70"})
        response = client.post("/api/edit", json={"field": "height_cm", "value": "170"})

        data = response.get_json()
        assert data["results"]["bmi"] == 24.2
        assert data["results"]["bmi_status"] == "green"

    def test_body_fat_scenario(self, client):
        client.post("/api/gender", json={"value": "male"})
        client.post("/api/age", json={"value": "25"})
        client.post("/api/edit", json={"field": "height_cm", "value": "180"})
        client.post("/api/edit", json={"field": "neck_cm", "value": "38"})
        response = client.post("/api/edit", json={"field": "abdomen_cm", "value": "90"})

        results = response.get_json()["results"]
        assert results["body_fat_pct"] == pytest.approx(19.9)
        assert results["body_fat_status"] == "green"

    def test_imperial_display(self, client):
        client.post("/api/units", json={"value": "imperial"})
        response = client.post("/api/edit", json={"field": "height_cm", "value": "70"})

        display = response.get_json()["display"]
        assert display["height_cm"] == 70.0
        assert display["units"]["height_cm"] == "in"
        assert dashboard.controller.state["height_cm"] == pytest.approx(177.8)

    def test_bad_value(self, client):
        response = client.post("/api/edit", json={"field": "height_cm", "value": "tall"})
        assert response.status_code == 400
        assert "error" in response.get_json()

    def test_missing_field(self, client):
        response = client.post("/api/edit", json={"value": "1"})
        assert response.status_code == 400

    def test_bad_gender(self, client):
        response = client.post("/api/gender", json={"value": "robot"})
        assert response.status_code == 400


class TestPages:
    """Tests for rendered pages."""

    def test_index_placeholders(self, client):
        response = client.get("/")

        assert response.status_code == 200
        body = response.get_data(as_text=True)
        assert "Body fat: —%" in body
        assert "BMI: —" in body

    def test_index_female_fields(self, client):
        client.post("/api/gender", json={"value": "female"})
        body = client.get("/").get_data(as_text=True)

        assert 'id="hip_cm"' in body
        assert 'id="abdomen_cm"' not in body


class TestStartup:
    """Tests for requests before and during loading."""

    @pytest.fixture
    def loading_client(self, monkeypatch):
        monkeypatch.setattr(dashboard, "controller", InputStateController(MemoryInputStore()))
        return dashboard.app.test_client()

    def test_state_while_loading(self, loading_client):
        response = loading_client.get("/api/state")

        assert response.status_code == 503
        assert response.get_json()["state"] == "loading"

    def test_edit_while_loading(self, loading_client):
        response = loading_client.post("/api/edit", json={"field": "height_cm", "value": "180"})

        assert response.status_code == 503
        assert dashboard.controller.state["height_cm"] is None

    def test_index_while_loading(self, loading_client):
        response = loading_client.get("/")

        assert response.status_code == 503
        assert "Loading" in response.get_data(as_text=True)

    def test_first_request_starts_controller(self, monkeypatch):
        monkeypatch.setattr(dashboard, "controller", None)
        monkeypatch.setattr(dashboard, "STORE_KIND", "memory")

        response = dashboard.app.test_client().get("/api/state")

        assert response.status_code == 200
        assert response.get_json()["state"] == "ready"
        assert dashboard.controller is not None

    def test_loop_timeout(self, client, monkeypatch):
        def slow(coro, timeout=5):
            coro.close()
            raise dashboard.FutureTimeout()

        monkeypatch.setattr(dashboard, "run", slow)

        assert client.get("/api/state").status_code == 503
        assert client.get("/").status_code == 503
