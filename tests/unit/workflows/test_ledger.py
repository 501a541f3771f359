"""AuditLedger: append-only history, prefix stability, integrity checks."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from app.domain.exceptions import RecordNotFoundError, StorageError, WrongDepartmentError
from app.domain.models.actor import Department
from app.domain.models.record import AuditAction, AuditEntry
from app.domain.models.stages import ApplicationStage, RecordKind
from app.workflows.ledger import AuditLedger, check_integrity, is_extension_of

APP = RecordKind.APPLICATION


@pytest.mark.asyncio
async def test_history_is_prefix_stable_across_transitions(engine, seed, staff, clock):
    await seed(APP, "app-1", ApplicationStage.SUBMITTED, Department.BPLO)
    snapshots = [await engine.history(APP, "app-1")]

    for actor_id, action in [("u_bplo", "verify_and_forward"), ("u_eval", "inspection_approved")]:
        clock.advance(minutes=10)
        await engine.invoke(staff[actor_id], APP, "app-1", action)
        snapshots.append(await engine.history(APP, "app-1"))

    for previous, current in zip(snapshots, snapshots[1:]):
        assert len(current) == len(previous) + 1
        assert is_extension_of(previous, current)
    check_integrity(snapshots[-1])


@pytest.mark.asyncio
async def test_failed_transition_does_not_append(engine, seed, staff):
    await seed(APP, "app-1", ApplicationStage.SUBMITTED, Department.BPLO)
    before = await engine.history(APP, "app-1")

    with pytest.raises(WrongDepartmentError):
        await engine.invoke(staff["u_eng"], APP, "app-1", "verify_and_forward")

    assert await engine.history(APP, "app-1") == before


@pytest.mark.asyncio
async def test_since_and_latest(engine, seed, staff):
    await seed(APP, "app-1", ApplicationStage.SUBMITTED, Department.BPLO)
    await engine.invoke(staff["u_bplo"], APP, "app-1", "verify_and_forward")

    newer = await engine.ledger.since(APP, "app-1", 1)
    assert [e.action for e in newer] == [AuditAction.FORWARDED]
    assert (await engine.ledger.latest(APP, "app-1")).action == AuditAction.FORWARDED
    with pytest.raises(ValueError):
        await engine.ledger.since(APP, "app-1", -1)


@pytest.mark.asyncio
async def test_history_of_missing_record(engine):
    with pytest.raises(RecordNotFoundError):
        await engine.history(APP, "app-404")


@pytest.mark.asyncio
async def test_read_failure_is_storage_error():
    repository = AsyncMock()
    repository.get = AsyncMock(side_effect=ConnectionError("db down"))
    ledger = AuditLedger(repository)

    with pytest.raises(StorageError):
        await ledger.history(APP, "app-1")


def test_check_integrity_rejects_bad_histories(make_record, staff):
    created = make_record(APP, "app-1", ApplicationStage.SUBMITTED, Department.BPLO).history[0]
    forwarded = AuditEntry(
        stage=ApplicationStage.FOR_INSPECTION,
        actor=staff["u_bplo"].snapshot(),
        action=AuditAction.FORWARDED,
        timestamp=created.timestamp + timedelta(minutes=1),
    )
    earlier = AuditEntry(
        stage=ApplicationStage.FOR_ASSESSMENT,
        actor=staff["u_eval"].snapshot(),
        action=AuditAction.FORWARDED,
        timestamp=created.timestamp - timedelta(minutes=1),
    )

    check_integrity([created, forwarded])
    with pytest.raises(ValueError, match="empty"):
        check_integrity([])
    with pytest.raises(ValueError, match="start with Created"):
        check_integrity([forwarded])
    with pytest.raises(ValueError, match="first entry"):
        check_integrity([created, created])
    with pytest.raises(ValueError, match="decrease"):
        check_integrity([created, forwarded, earlier])


def test_is_extension_of_detects_rewrites(make_record, staff):
    created = make_record(APP, "app-1", ApplicationStage.SUBMITTED, Department.BPLO).history[0]
    other = AuditEntry(
        stage=ApplicationStage.SUBMITTED,
        actor=staff["u_mayor"].snapshot(),
        action=AuditAction.CREATED,
        timestamp=created.timestamp,
    )
    assert is_extension_of((created,), (created,))
    assert not is_extension_of((created,), (other,))
    assert not is_extension_of((created, created), (created,))
