"""
test_routes.py - HTTP surface over the in-memory repository.

The report repository and the insight session manager singletons are
swapped for test instances; session timers are manual, so insight timing is
driven by `timers.advance(...)` exactly as in the scheduler tests.
"""

import pytest
from fastapi.testclient import TestClient

from conftest import BOLE, FailingRepository
from radar.main import app
from radar.services.insight_session import InsightSessionManager, set_insight_session_manager
from radar.services.report_repository import InMemoryReportRepository, set_report_repository
from radar.utils.timestamps import utc_now

LOCATION = {"lat": BOLE.latitude, "lon": BOLE.longitude}


@pytest.fixture()
def now():
    # map endpoints compare against wall time
    return utc_now()


@pytest.fixture()
def repository():
    repository = InMemoryReportRepository(confirmation_threshold=3)
    set_report_repository(repository)
    yield repository
    set_report_repository(None)


@pytest.fixture()
def manager(timers, clock, config):
    manager = InsightSessionManager(timers=timers, clock=clock, config=config)
    set_insight_session_manager(manager)
    yield manager
    set_insight_session_manager(None)


@pytest.fixture()
def client(repository, manager):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def failing_client(manager):
    set_report_repository(FailingRepository())
    with TestClient(app) as c:
        yield c
    set_report_repository(None)


# ── health ────────────────────────────────────────────────────────────────────

class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_db_health(self, client, repository, make_report):
        repository.add(make_report("r1", "water"))
        body = client.get("/health/db").json()
        assert body["repository"] == "InMemoryReportRepository"
        assert body["report_count"] == 1

    def test_db_health_unavailable(self, failing_client):
        response = failing_client.get("/health/db")
        assert response.status_code == 503
        assert response.json()["detail"]["retryable"] is True

    def test_root(self, client):
        assert client.get("/").json()["service"] == "Neighborhood Radar"


# ── reports ───────────────────────────────────────────────────────────────────

class TestReports:

    def test_submit_and_list(self, client):
        response = client.post("/reports", json={
            "title": "Fuel available at Total",
            "category": "fuel",
            "location": {"latitude": BOLE.latitude, "longitude": BOLE.longitude},
            "metadata": {"availability": True, "queue_length": "short"},
        })
        assert response.status_code == 201
        created = response.json()
        assert created["status"] == "pending"
        assert created["confirmations"] == 0

        listed = client.get("/reports", params={"category": ["fuel"]}).json()
        assert [r["id"] for r in listed] == [created["id"]]
        assert client.get("/reports", params={"category": ["water"]}).json() == []

    def test_invalid_submission(self, client):
        response = client.post("/reports", json={"title": "", "category": "weather"})
        assert response.status_code == 422

    def test_off_globe_location_rejected(self, client):
        response = client.post("/reports", json={
            "title": "Water cut",
            "category": "water",
            "location": {"latitude": 500, "longitude": -999},
        })
        assert response.status_code == 422
        assert client.get("/reports").json() == []

    def test_confirm_until_confirmed(self, client, repository, make_report):
        repository.add(make_report("r1", "water", confirmations=1))
        assert client.post("/reports/r1/confirm").json()["status"] == "pending"
        body = client.post("/reports/r1/confirm").json()
        assert body["confirmations"] == 3
        assert body["status"] == "confirmed"

    def test_confirm_unknown(self, client):
        assert client.post("/reports/missing/confirm").status_code == 404

    def test_list_unavailable(self, failing_client):
        response = failing_client.get("/reports")
        assert response.status_code == 503
        assert response.json()["detail"]["retryable"] is True


# ── map ───────────────────────────────────────────────────────────────────────

class TestMap:

    @pytest.fixture(autouse=True)
    def seeded(self, repository, make_report):
        for report in [
            make_report("w1", "water", north_km=0.2, hours_ago=1),
            make_report("w2", "water", north_km=0.5, hours_ago=1.5),
            make_report("f1", "fuel", north_km=1.5, hours_ago=1),
            make_report("t1", "traffic", north_km=0.7, hours_ago=6),
        ]:
            repository.add(report)

    def test_categories_without_location(self, client):
        body = client.get("/map/categories").json()
        assert len(body) == 8
        assert all(c["closest_distance_km"] is None and not c["has_nearby"] for c in body)

    def test_categories_with_location(self, client):
        body = {c["category"]: c for c in client.get("/map/categories", params=LOCATION).json()}
        assert body["water"]["nearby_count"] == 2
        assert body["water"]["has_recent"] is True
        assert body["fuel"]["nearby_count"] == 0
        assert body["traffic"]["has_recent"] is False

    def test_nearby_radius(self, client):
        ids = [r["id"] for r in client.get("/map/nearby", params=LOCATION).json()]
        assert set(ids) == {"w1", "w2", "t1"}
        wide = client.get("/map/nearby", params={**LOCATION, "radius_km": 2, "category": ["fuel"]}).json()
        assert [r["id"] for r in wide] == ["f1"]

    def test_summary(self, client):
        body = client.get("/map/summary", params=LOCATION).json()
        assert [i["category"] for i in body] == ["water", "traffic"]
        assert body[0]["latest_report"]["id"] == "w1"

    def test_summary_without_location(self, client):
        assert client.get("/map/summary").json() == []

    def test_hotspots(self, client):
        body = client.get("/map/hotspots").json()
        assert "hotspots" in body
        assert body["suggestion"] is None

    def test_stories_below_zoom(self, client):
        assert client.get("/map/stories", params={"zoom": 10}).json() == []

    def test_micro_trends_without_location(self, client):
        assert client.get("/map/micro-trends").json() == []

    def test_bad_coordinates(self, client):
        assert client.get("/map/categories", params={"lat": 120, "lon": 38.7}).status_code == 422


# ── insight sessions ──────────────────────────────────────────────────────────

class TestInsightSessions:

    @pytest.fixture()
    def cluster(self, repository, make_report):
        for i in range(3):
            repository.add(make_report(f"w{i}", "water", north_km=0.3 * i, hours_ago=1))

    def _open(self, client):
        response = client.post("/insights/sessions", json={
            "location": {"latitude": BOLE.latitude, "longitude": BOLE.longitude},
        })
        assert response.status_code == 201
        return response.json()

    def test_insight_appears_after_idle(self, client, timers, cluster):
        session = self._open(client)
        assert session["phase"] == "active"

        timers.advance(22)
        body = client.get(f"/insights/sessions/{session['session_id']}").json()
        assert body["insight"]["phase"] == "displaying"
        assert body["insight"]["trend"]["kind"] == "cluster"
        assert body["insight"]["trend"]["message"] == "3 water shortage reports confirmed nearby"
        assert len(body["categories"]) == 8

    def test_tap_returns_highlight_ids(self, client, timers, cluster):
        session_id = self._open(client)["session_id"]
        timers.advance(22)
        body = client.post(f"/insights/sessions/{session_id}/tap").json()
        assert body["trend"]["kind"] == "cluster"
        assert sorted(body["highlighted_report_ids"]) == ["w0", "w1", "w2"]

    def test_interaction_delays_analysis(self, client, timers, cluster):
        session_id = self._open(client)["session_id"]
        timers.advance(15)
        body = client.post(f"/insights/sessions/{session_id}/interactions", json={"kind": "pan"}).json()
        assert body["phase"] == "active"
        timers.advance(15)
        assert client.get(f"/insights/sessions/{session_id}").json()["insight"]["trend"] is None

    def test_location_arrives_later(self, client, timers, cluster):
        session_id = client.post("/insights/sessions", json={}).json()["session_id"]
        timers.advance(30)
        assert client.get(f"/insights/sessions/{session_id}").json()["insight"]["phase"] == "idle"

        client.put(f"/insights/sessions/{session_id}/location", json={
            "location": {"latitude": BOLE.latitude, "longitude": BOLE.longitude},
        })
        client.post(f"/insights/sessions/{session_id}/interactions", json={"kind": "gesture"})
        timers.advance(22)
        assert client.get(f"/insights/sessions/{session_id}").json()["insight"]["phase"] == "displaying"

    def test_dismiss_without_insight(self, client):
        session_id = self._open(client)["session_id"]
        assert client.post(f"/insights/sessions/{session_id}/dismiss").json()["trend"] is None

    def test_close_session(self, client, manager):
        session_id = self._open(client)["session_id"]
        assert client.delete(f"/insights/sessions/{session_id}").status_code == 204
        assert len(manager) == 0
        assert client.get(f"/insights/sessions/{session_id}").status_code == 404

    def test_unknown_session(self, client):
        assert client.post("/insights/sessions/nope/interactions", json={"kind": "zoom"}).status_code == 404

    def test_open_with_store_down(self, failing_client, manager):
        response = failing_client.post("/insights/sessions", json={})
        assert response.status_code == 503
        assert len(manager) == 0
