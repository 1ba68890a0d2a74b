"""Tests del log append-only de telemetría."""

from datetime import date, time

import pytest

from hydro_api.core.domain import ChillerState, OperatingMode, TelemetryRecord
from hydro_api.core.errors import StoreUnavailable
from hydro_api.infrastructure.persistence import LogStore
from hydro_api.ingest import TelemetryLogWriter


def _record(hour: int, **fields) -> TelemetryRecord:
    return TelemetryRecord(record_date=date(2025, 12, 29), record_time=time(hour, 0, 0), **fields)


@pytest.fixture
def writer(log_store) -> TelemetryLogWriter:
    return TelemetryLogWriter(log_store)


class TestTelemetryLogWriter:

    def test_appends_full_record(self, writer, log_store):
        record = _record(
            1,
            ldr_value=1174,
            battery_voltage=56.5,
            temperature=30.0,
            chiller_state=ChillerState.OFF,
            fsm_state="S0",
            operating_mode=OperatingMode.AUTO,
        )

        entry_id = writer.append(record)
        entry = log_store.latest()

        assert entry.id == entry_id
        assert entry.record.ldr_value == 1174
        assert entry.record.battery_voltage == pytest.approx(56.5)
        assert entry.record.temperature == pytest.approx(30.0)
        assert entry.record.chiller_state is ChillerState.OFF
        assert entry.record.fsm_state == "S0"
        assert entry.created_at is not None

    def test_absent_fields_are_stored_as_null(self, writer, log_store):
        writer.append(_record(2, ldr_value=5))
        entry = log_store.latest()

        assert entry.record.battery_voltage is None
        assert entry.record.temperature is None
        assert entry.record.chiller_state is None
        assert entry.record.fsm_state is None

    def test_record_without_any_field_is_still_logged(self, writer, log_store):
        writer.append(_record(3))
        assert log_store.count() == 1

    def test_every_record_is_a_new_row(self, writer, log_store):
        ids = [writer.append(_record(h, ldr_value=h)) for h in (1, 2, 3)]

        assert len(set(ids)) == 3
        assert ids == sorted(ids)
        assert log_store.count() == 3

    def test_store_failure_is_raised(self, bare_engine):
        writer = TelemetryLogWriter(LogStore(bare_engine))

        with pytest.raises(StoreUnavailable):
            writer.append(_record(1, ldr_value=1))


class TestLogStoreReads:

    def test_recent_entries_newest_first(self, writer, log_store):
        for hour in (1, 2, 3):
            writer.append(_record(hour, ldr_value=hour))

        hours = [entry.record.record_time.hour for entry in log_store.list_recent(limit=10)]
        assert hours == [3, 2, 1]

    def test_limit_and_offset(self, writer, log_store):
        for hour in range(1, 6):
            writer.append(_record(hour))

        page = log_store.list_recent(limit=2, offset=2)
        assert [entry.record.record_time.hour for entry in page] == [3, 2]

    def test_latest_when_empty(self, log_store):
        assert log_store.latest() is None
        assert log_store.count() == 0

    def test_entry_dict_has_no_mode(self, writer, log_store):
        writer.append(_record(1, operating_mode=OperatingMode.MANUAL))
        row = log_store.latest().to_dict()

        assert "mode" not in row
        assert row["record_time"] == "01:00:00"
