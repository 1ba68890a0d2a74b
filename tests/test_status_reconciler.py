"""Tests de reconciliación de system_status (merge campo a campo)."""

import threading
from datetime import date, time

import pytest
from sqlalchemy import func, select

from hydro_api.core.domain import (
    ChillerState,
    OperatingMode,
    StatusRecord,
    SystemMode,
    TelemetryRecord,
)
from hydro_api.core.errors import StoreUnavailable
from hydro_api.infrastructure.persistence import StatusStore, system_status
from hydro_api.ingest import StatusReconciler

RECORD_DATE = date(2025, 12, 29)
RECORD_TIME = time(0, 47, 9)


def _record(**fields) -> TelemetryRecord:
    return TelemetryRecord(record_date=RECORD_DATE, record_time=RECORD_TIME, **fields)


def _status_rows(engine) -> int:
    with engine.connect() as conn:
        return conn.execute(select(func.count()).select_from(system_status)).scalar_one()


@pytest.fixture
def reconciler(status_store, clock) -> StatusReconciler:
    return StatusReconciler(status_store, clock=clock)


@pytest.fixture
def manual_status(status_store) -> StatusRecord:
    """Fila actual: manual / OFF / S2."""
    with status_store.locked() as uow:
        seeded = StatusRecord(
            mode=SystemMode.MANUAL,
            chiller_status=ChillerState.OFF,
            fsm_state="S2",
            record_date=date(2025, 1, 1),
            record_time=time(8, 0, 0),
        )
        return uow.upsert(seeded)


# =============================================================================
# MERGE PURO
# =============================================================================

class TestStatusMerge:

    def test_present_fields_overwrite_absent_fields_survive(self, fixed_now):
        base = StatusRecord.defaults(fixed_now)
        merged = base.merge(_record(fsm_state="S4"))

        assert merged.fsm_state == "S4"
        assert merged.chiller_status is base.chiller_status
        assert merged.mode is base.mode
        assert (merged.record_date, merged.record_time) == (RECORD_DATE, RECORD_TIME)

    def test_mode_is_lowercased(self, fixed_now):
        merged = StatusRecord.defaults(fixed_now).merge(_record(operating_mode=OperatingMode.MANUAL))
        assert merged.mode is SystemMode.MANUAL
        assert merged.to_dict()["mode"] == "manual"

    def test_defaults(self, fixed_now):
        record = StatusRecord.defaults(fixed_now)

        assert record.mode is SystemMode.AUTO
        assert record.chiller_status is ChillerState.OFF
        assert record.fsm_state == "S0"
        assert record.record_time.microsecond == 0


# =============================================================================
# RECONCILER CONTRA LA BD
# =============================================================================

class TestStatusReconciler:

    def test_record_without_status_fields_is_noop(self, reconciler, manual_status, engine, status_store):
        result = reconciler.reconcile(_record(ldr_value=10, temperature=21.5))

        assert result is None
        assert _status_rows(engine) == 1
        assert status_store.get_current() == manual_status

    def test_noop_never_touches_the_store(self, clock):
        class ExplodingStore:
            def locked(self, operation="status update"):
                raise AssertionError("store must not be used")

        assert StatusReconciler(ExplodingStore(), clock=clock).reconcile(_record(ldr_value=1)) is None

    def test_chiller_only_keeps_mode_and_state(self, reconciler, manual_status):
        updated = reconciler.reconcile(_record(chiller_state=ChillerState.ON))

        assert updated.id == manual_status.id
        assert updated.chiller_status is ChillerState.ON
        assert updated.mode is SystemMode.MANUAL
        assert updated.fsm_state == "S2"
        assert updated.record_date == RECORD_DATE
        assert updated.record_time == RECORD_TIME

    def test_device_mode_overrides_stored_mode(self, reconciler, manual_status):
        updated = reconciler.reconcile(_record(operating_mode=OperatingMode.AUTO))
        assert updated.mode is SystemMode.AUTO

    def test_updates_in_place(self, reconciler, manual_status, engine):
        reconciler.reconcile(_record(fsm_state="S1"))
        reconciler.reconcile(_record(fsm_state="S3"))

        assert _status_rows(engine) == 1

    def test_creates_row_lazily_from_defaults(self, reconciler, engine):
        assert _status_rows(engine) == 0

        created = reconciler.reconcile(_record(fsm_state="S5"))

        assert created.id is not None
        assert created.fsm_state == "S5"
        assert created.mode is SystemMode.AUTO
        assert created.chiller_status is ChillerState.OFF
        assert _status_rows(engine) == 1

    def test_concurrent_first_messages_create_a_single_row(self, reconciler, engine):
        errors = []

        def worker(index: int) -> None:
            try:
                reconciler.reconcile(_record(fsm_state=f"S{index}"))
            except Exception as e:  # pragma: no cover - se reporta abajo
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert _status_rows(engine) == 1

    def test_store_failure_is_raised(self, bare_engine, clock):
        reconciler = StatusReconciler(StatusStore(bare_engine, clock=clock), clock=clock)

        with pytest.raises(StoreUnavailable):
            reconciler.reconcile(_record(chiller_state=ChillerState.ON))


class TestStatusStore:

    def test_ensure_initialized_seeds_defaults_once(self, status_store, engine):
        first = status_store.ensure_initialized()
        second = status_store.ensure_initialized()

        assert first.id == second.id
        assert first.mode is SystemMode.AUTO
        assert _status_rows(engine) == 1

    def test_get_current_empty(self, status_store):
        assert status_store.get_current() is None

    def test_get_current_returns_newest_row(self, status_store, fixed_now):
        with status_store.locked() as uow:
            uow.upsert(StatusRecord.defaults(fixed_now))
        with status_store.locked() as uow:
            newest = uow.upsert(StatusRecord.defaults(fixed_now).merge(_record(fsm_state="S9")))

        assert status_store.get_current().id == newest.id
