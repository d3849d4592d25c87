"""
Tests for the HTTP surface: routing, query validation and error mapping.
"""
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from cradle.api.insights import get_insights_service
from cradle.db.models import Category
from cradle.main import app

from conftest import NOW, BABY_ID, CALLER_ID, feeding_entry

BASE = f"/babies/{BABY_ID}/insights"


@pytest.fixture
def client(service):
    # No `with` block: lifespan (database, Redis) is not started
    app.dependency_overrides[get_insights_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestInsightsRoutes:

    def test_trends(self, client, store):
        store.add(Category.FEEDING, feeding_entry(NOW - timedelta(hours=2)))

        response = client.get(f"{BASE}/trends/weekly", params={"caller_id": CALLER_ID})

        assert response.status_code == 200
        body = response.json()
        assert body["period"] == "weekly"
        assert body["baby_name"] == "Maya"
        assert body["aggregated_data"]["feeding"]["total_feedings"] == 1
        assert body["ai_summary_generated"] is False

    def test_unknown_period(self, client):
        response = client.get(f"{BASE}/trends/hourly", params={"caller_id": CALLER_ID})

        assert response.status_code == 422

    def test_weekly_summary(self, client):
        response = client.get(f"{BASE}/weekly-summary", params={"caller_id": CALLER_ID})

        assert response.status_code == 200
        assert response.json()["aggregated_data"]["sleep"]["consistency_score"] == 50

    def test_daily_summary_date_param(self, client):
        response = client.get(f"{BASE}/daily-summary", params={"caller_id": CALLER_ID, "date": "2026-03-14"})

        assert response.status_code == 200
        body = response.json()
        assert body["date"] == "2026-03-14"
        assert len(body["hourly_breakdown"]) == 24

    def test_anomalies(self, client):
        response = client.get(f"{BASE}/anomalies", params={"caller_id": CALLER_ID, "analysis_hours": 24})

        assert response.status_code == 200
        assert response.json()["analysis_data"]["analysis_hours"] == 24

    def test_sleep_prediction(self, client):
        response = client.get(f"{BASE}/sleep-prediction", params={"caller_id": CALLER_ID})

        assert response.status_code == 200
        assert response.json()["recommended_wake_window_minutes"] == 75


class TestValidationAndErrors:

    def test_caller_id_is_required(self, client):
        assert client.get(f"{BASE}/weekly-summary").status_code == 422

    @pytest.mark.parametrize("days", [2, 31])
    def test_analysis_days_out_of_range(self, client, days):
        response = client.get(f"{BASE}/sleep-prediction", params={"caller_id": CALLER_ID, "analysis_days": days})

        assert response.status_code == 422

    @pytest.mark.parametrize("hours", [11, 169])
    def test_analysis_hours_out_of_range(self, client, hours):
        response = client.get(f"{BASE}/anomalies", params={"caller_id": CALLER_ID, "analysis_hours": hours})

        assert response.status_code == 422

    def test_access_denied_maps_to_403(self, client):
        response = client.get(f"{BASE}/trends/daily", params={"caller_id": "stranger"})

        assert response.status_code == 403
        assert response.json() == {"detail": "You do not have access to this baby"}

    def test_unknown_baby_maps_to_404(self, client, store):
        store.caregivers.add(("ghost", CALLER_ID))

        response = client.get("/babies/ghost/insights/weekly-summary", params={"caller_id": CALLER_ID})

        assert response.status_code == 404
        assert response.json() == {"detail": "Baby not found"}

    def test_reversed_dates_map_to_422(self, client):
        response = client.get(f"{BASE}/weekly-summary", params={
            "caller_id": CALLER_ID, "start_date": "2026-03-07", "end_date": "2026-03-01",
        })

        assert response.status_code == 422
