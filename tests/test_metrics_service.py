"""Tests del registro, el almacén de lecturas y el servicio de consultas."""

from dataclasses import replace
from datetime import timedelta

import pytest

from conftest import DAY, local_ts, make_readings
from machine_metrics.models import MachineStatus, MachineType, Reading
from machine_metrics.service import MetricsService


def _store(reading_repo, profile, samples):
    for reading in make_readings(profile, samples):
        reading_repo.save_reading(reading)


class TestMachineRepository:

    def test_upsert_and_get(self, machine_repo, current_profile):
        assert machine_repo.upsert_machine(current_profile) is True

        loaded = machine_repo.get_machine("A001")
        assert loaded == current_profile

    def test_upsert_existing_updates(self, machine_repo, onoff_profile):
        machine_repo.upsert_machine(onoff_profile)
        changed = replace(onoff_profile, scheduled_stop="18:30", machine_name="Press 1b")

        assert machine_repo.upsert_machine(changed) is False
        assert machine_repo.get_machine("M001") == changed

    def test_get_unknown(self, machine_repo):
        assert machine_repo.get_machine("nope") is None

    def test_list_machines(self, registered):
        ids = [m.machine_id for m in registered.list_machines()]
        assert ids == ["A001", "C001", "M001"]

        counters = registered.list_machines(MachineType.COUNTER)
        assert [m.machine_id for m in counters] == ["C001"]


class TestReadingRepository:

    def test_range_is_half_open_and_ascending(self, reading_repo, onoff_profile):
        _store(
            reading_repo,
            onoff_profile,
            [(local_ts(9, 0, 10), 1), (local_ts(9, 0, 0), 0), (local_ts(9, 0, 20), 1)],
        )

        found = reading_repo.find_readings("M001", local_ts(9, 0, 0), local_ts(9, 0, 20))

        assert [r.timestamp for r in found] == [local_ts(9, 0, 0), local_ts(9, 0, 10)]
        assert all(r.timestamp.tzinfo is not None for r in found)
        assert all(r.id is not None for r in found)

    def test_filters_by_machine(self, reading_repo, onoff_profile, current_profile):
        _store(reading_repo, onoff_profile, [(local_ts(9), 1)])
        _store(reading_repo, current_profile, [(local_ts(9), 5.5)])

        found = reading_repo.find_readings("A001", local_ts(0), local_ts(23))
        assert [(r.machine_id, r.value) for r in found] == [("A001", 5.5)]

    def test_millisecond_precision_roundtrip(self, reading_repo):
        ts = local_ts(9).replace(microsecond=250000)
        reading_repo.save_reading(Reading("M001", MachineType.ONOFF, 1, ts))

        (found,) = reading_repo.find_readings("M001", local_ts(0), local_ts(23))
        assert found.timestamp == ts

    def test_delete_all(self, reading_repo, onoff_profile):
        _store(reading_repo, onoff_profile, [(local_ts(9), 1), (local_ts(9, 1), 0)])

        assert reading_repo.delete_all() == 2
        assert reading_repo.find_readings("M001", local_ts(0), local_ts(23)) == []


class TestMetricsService:

    def test_unknown_machine(self, metrics_service):
        assert metrics_service.live_data_for("nope") is None
        assert metrics_service.timeline_for("nope") is None

    def test_live_data_uses_only_today(self, metrics_service, registered, reading_repo, onoff_profile):
        yesterday = local_ts(9) - timedelta(days=1)
        _store(reading_repo, onoff_profile, [(yesterday, 1), (local_ts(8, 15), 1), (local_ts(9, 59, 58), 1)])

        metrics = metrics_service.live_data_for("M001")

        assert metrics.date == DAY
        assert metrics.actual_start_time == local_ts(8, 15)
        assert metrics.late_start_minutes == 15
        assert metrics.current_status is MachineStatus.ON
        assert metrics.last_updated == local_ts(9, 59, 58)

    def test_all_machines_includes_no_data(self, metrics_service, registered, reading_repo, onoff_profile):
        _store(reading_repo, onoff_profile, [(local_ts(9, 59, 58), 1)])

        results = {m.machine_id: m for m in metrics_service.live_data_for_all()}

        assert set(results) == {"A001", "C001", "M001"}
        assert results["M001"].current_status is MachineStatus.ON
        for machine_id in ("A001", "C001"):
            assert results[machine_id].current_status is MachineStatus.UNKNOWN
            assert results[machine_id].total_on_time_minutes == 0
            assert results[machine_id].efficiency_percentage == 0

    def test_timeline_follows_activity_predicate(
        self, metrics_service, registered, reading_repo, counter_profile
    ):
        _store(
            reading_repo,
            counter_profile,
            [(local_ts(9, 0), 0), (local_ts(9, 1), 2), (local_ts(9, 2), 2), (local_ts(9, 3), 5)],
        )

        timeline = metrics_service.timeline_for("C001")

        assert timeline.date == DAY
        assert [p.status for p in timeline.points] == [
            MachineStatus.OFF,
            MachineStatus.ON,
            MachineStatus.OFF,
            MachineStatus.ON,
        ]

    def test_timeline_for_other_day(self, metrics_service, registered, reading_repo, current_profile):
        previous_day = DAY - timedelta(days=1)
        _store(
            reading_repo,
            current_profile,
            [(local_ts(9, day=previous_day), 6.0), (local_ts(9, 0, 5, day=previous_day), 1.0)],
        )

        timeline = metrics_service.timeline_for("A001", previous_day)

        assert [p.status for p in timeline.points] == [MachineStatus.ON, MachineStatus.OFF]
        assert metrics_service.timeline_for("A001").points == []

    def test_rereads_store_on_every_query(self, metrics_service, registered, reading_repo, onoff_profile):
        assert metrics_service.live_data_for("M001").current_status is MachineStatus.UNKNOWN

        _store(reading_repo, onoff_profile, [(local_ts(9, 59, 58), 1)])

        assert metrics_service.live_data_for("M001").current_status is MachineStatus.ON

    @pytest.mark.parametrize("now_minute", [0, 7 * 60, 12 * 60, 23 * 60 + 59])
    def test_date_is_local_date_of_now(self, machine_repo, reading_repo, onoff_profile, now_minute):
        machine_repo.upsert_machine(onoff_profile)
        now = local_ts(0) + timedelta(minutes=now_minute)
        service = MetricsService(machine_repo, reading_repo, clock=lambda: now)

        assert service.live_data_for("M001").date == DAY

    def test_counter_without_rate_does_not_break_listing(
        self, metrics_service, registered, reading_repo, counter_profile
    ):
        external = replace(counter_profile, machine_id="C_EXT", parts_per_hour=None)
        registered.upsert_machine(external)
        _store(reading_repo, external, [(local_ts(9, 0), 0), (local_ts(9, 1), 4)])

        results = {m.machine_id: m for m in metrics_service.live_data_for_all()}

        assert set(results) == {"A001", "C001", "C_EXT", "M001"}
        assert results["C_EXT"].current_status is MachineStatus.UNKNOWN
        assert results["C_EXT"].total_on_time_minutes == 0
        assert metrics_service.live_data_for("C_EXT").efficiency_percentage == 0
