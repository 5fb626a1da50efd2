"""Tests de la API HTTP (FastAPI TestClient con dependencias sustituidas)."""

from dataclasses import replace
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from conftest import local_ts, make_readings
from ingest_api.deps import get_db_engine, get_metrics_config, get_metrics_service
from ingest_api.main import app


def _store(reading_repo, profile, samples):
    for reading in make_readings(profile, samples):
        reading_repo.save_reading(reading)


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_ready(self, client):
        response = client.get("/ready")
        assert response.status_code == 200
        assert response.json() == {"status": "ready"}

    def test_not_ready(self, client):
        broken = MagicMock()
        broken.connect.side_effect = RuntimeError("db down")
        app.dependency_overrides[get_db_engine] = lambda: broken

        response = client.get("/ready")
        assert response.status_code == 503


class TestLiveData:

    def test_single_machine(self, client, registered, reading_repo, onoff_profile):
        _store(reading_repo, onoff_profile, [(local_ts(8, 15), 1), (local_ts(9, 59, 58), 1)])

        response = client.get("/machines/M001/live")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        data = body["data"]
        assert data["machine_id"] == "M001"
        assert data["machine_type"] == "onoff"
        assert data["date"] == "2024-01-15"
        assert data["late_start_minutes"] == 15
        assert data["current_status"] == "on"
        assert data["actual_start_local_time"] == "08:15:00"
        assert data["scheduled_start_time"] == "08:00"
        assert data["scheduled_stop_time"] == "17:00"
        assert data["last_value"] == 1

    def test_unknown_machine_404(self, client, registered):
        response = client.get("/machines/NOPE/live")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Machine not found"}

    def test_all_machines(self, client, registered):
        response = client.get("/machines/live")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["count"] == 3
        assert {m["machine_id"] for m in body["data"]} == {"A001", "C001", "M001"}
        for m in body["data"]:
            assert m["current_status"] == "unknown"
            assert m["actual_start_time"] is None
            assert m["actual_start_local_time"] is None

    def test_all_machines_with_incomplete_counter_profile(
        self, client, registered, reading_repo, counter_profile
    ):
        external = replace(counter_profile, machine_id="C_EXT", parts_per_hour=None)
        registered.upsert_machine(external)
        _store(reading_repo, external, [(local_ts(9, 0), 0), (local_ts(9, 1), 4)])

        response = client.get("/machines/live")

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 4
        by_id = {m["machine_id"]: m for m in body["data"]}
        assert by_id["C_EXT"]["current_status"] == "unknown"

    def test_internal_error_500(self, client):
        service = MagicMock()
        service.live_data_for_all.side_effect = RuntimeError("boom")
        app.dependency_overrides[get_metrics_service] = lambda: service

        response = client.get("/machines/live")

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Internal server error"}


class TestReadings:

    def test_timeline_today(self, client, registered, reading_repo, current_profile):
        _store(reading_repo, current_profile, [(local_ts(9), 6.0), (local_ts(9, 0, 5), 2.0)])

        response = client.get("/machines/A001/readings")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["machine_id"] == "A001"
        assert data["count"] == 2
        assert [p["status"] for p in data["points"]] == ["on", "off"]

    def test_timeline_for_date(self, client, registered):
        response = client.get("/machines/M001/readings", params={"date": "2024-01-14"})

        assert response.status_code == 200
        assert response.json()["data"]["date"] == "2024-01-14"
        assert response.json()["data"]["points"] == []

    def test_bad_date_422(self, client, registered):
        response = client.get("/machines/M001/readings", params={"date": "15/01/2024"})
        assert response.status_code == 422

    def test_unknown_machine_404(self, client, registered):
        response = client.get("/machines/NOPE/readings")
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Machine not found"}


class TestIngestStats:

    def test_listener_not_running(self, client):
        response = client.get("/ingest/stats")

        assert response.status_code == 200
        assert response.json() == {"running": False}


class TestDependencies:

    def test_metrics_config_built_once(self, engine):
        settings = SimpleNamespace(
            local_utc_offset_minutes=330,
            upload_frequency_seconds=5.0,
            upload_deviation_seconds=2.0,
        )
        get_metrics_config.cache_clear()
        try:
            with patch("ingest_api.deps.get_settings", return_value=settings) as mock_settings, \
                 patch("ingest_api.deps.get_engine", return_value=engine):
                first = get_metrics_service()
                second = get_metrics_service()

            assert mock_settings.call_count == 1
            assert first.config is second.config
            assert first.config.staleness_threshold_seconds == 7.0
        finally:
            get_metrics_config.cache_clear()
