"""TransitionExecutor via WorkflowEngine: effects, payload checks, atomicity, metrics, locking."""

from datetime import timedelta
from decimal import Decimal

import pytest

from app.domain.exceptions import (
    InvalidPayloadError,
    RecordNotFoundError,
    StaleStateError,
    StorageError,
    UnknownActionError,
    WrongDepartmentError,
)
from app.domain.models.actor import Department
from app.domain.models.record import AuditAction
from app.domain.models.stages import ApplicationStage, DocumentStage, RecordKind, VoucherStage
from app.infrastructure.memory.record_repository import InMemoryRecordRepository
from app.scalability.distributed_lock import DistributedLock, InProcessLockBackend
from app.workflows.engine import WorkflowEngine
from app.workflows.executor import LATENCY_METRIC, TRANSITIONS_METRIC
from app.workflows.stage_graph import legal_transitions

APP = RecordKind.APPLICATION
DOC = RecordKind.DOCUMENT
VOUCHER = RecordKind.VOUCHER


@pytest.mark.asyncio
async def test_verify_and_forward_moves_to_engineering(engine, seed, staff):
    await seed(APP, "app-1", ApplicationStage.SUBMITTED, Department.BPLO)

    record = await engine.invoke(staff["u_bplo"], APP, "app-1", "verify_and_forward")

    assert record.current_stage == ApplicationStage.FOR_INSPECTION
    assert record.custodian.department == Department.ENGINEERING
    assert len(record.history) == 2
    assert record.history[-1].action == AuditAction.FORWARDED
    assert record.history[-1].stage == ApplicationStage.FOR_INSPECTION
    assert record.version == 2


@pytest.mark.asyncio
async def test_zero_assessment_is_invalid_and_changes_nothing(engine, seed, staff):
    before = await seed(APP, "app-1", ApplicationStage.FOR_ASSESSMENT, Department.TREASURY)

    with pytest.raises(InvalidPayloadError) as exc:
        await engine.invoke(
            staff["u_treasurer"], APP, "app-1", "submit_assessment", {"assessed_amount": 0}
        )

    assert exc.value.record == before
    assert await engine.get(APP, "app-1") == before


@pytest.mark.asyncio
async def test_assessment_sets_amount_and_keeps_treasury(engine, seed, staff):
    await seed(APP, "app-1", ApplicationStage.FOR_ASSESSMENT, Department.TREASURY)

    record = await engine.invoke(
        staff["u_treasurer"], APP, "app-1", "submit_assessment", {"assessed_amount": 5000}
    )

    assert record.current_stage == ApplicationStage.FOR_PAYMENT
    assert record.attributes["assessed_amount"] == Decimal("5000")
    assert record.custodian.department == Department.TREASURY
    assert record.history[-1].action == AuditAction.ASSESSED


@pytest.mark.asyncio
async def test_accountant_cannot_certify_budget(engine, seed, staff, voucher_attributes):
    before = await seed(VOUCHER, "v-2", VoucherStage.BUDGET_REVIEW, Department.BUDGET, voucher_attributes)

    with pytest.raises(WrongDepartmentError):
        await engine.invoke(staff["u_acct"], VOUCHER, "v-2", "certify_budget")

    assert await engine.get(VOUCHER, "v-2") == before


@pytest.mark.asyncio
async def test_mayor_signs_document(engine, seed, staff, clock):
    await seed(DOC, "doc-103", DocumentStage.FOR_APPROVAL, Department.MAYORS_OFFICE)
    now = clock.advance(hours=2)

    record = await engine.invoke(staff["u_mayor"], DOC, "doc-103", "sign_and_approve")

    assert record.current_stage == DocumentStage.APPROVED
    assert record.custodian.department == Department.RECORDS
    entry = record.history[-1]
    assert entry.action == AuditAction.SIGNED
    assert entry.actor == staff["u_mayor"].snapshot()
    assert entry.timestamp == now


@pytest.mark.asyncio
async def test_payment_seals_assessed_amount(engine, seed, staff):
    await seed(
        APP,
        "app-1",
        ApplicationStage.FOR_PAYMENT,
        Department.TREASURY,
        {"assessed_amount": Decimal("5000.00"), "payment_status": "Unpaid"},
    )

    record = await engine.invoke(staff["u_treasurer"], APP, "app-1", "confirm_payment")

    assert record.attributes["payment_status"] == "Paid"
    assert {"assessed_amount", "payment_status"} <= record.sealed_attributes
    assert record.custodian.department == Department.MAYORS_OFFICE


@pytest.mark.asyncio
async def test_sealed_attribute_cannot_be_rewritten(engine, seed, staff):
    before = await seed(
        APP,
        "app-1",
        ApplicationStage.FOR_ASSESSMENT,
        Department.TREASURY,
        {"assessed_amount": Decimal("5000.00")},
        sealed=frozenset({"assessed_amount"}),
    )

    with pytest.raises(InvalidPayloadError, match="sealed"):
        await engine.invoke(
            staff["u_treasurer"], APP, "app-1", "submit_assessment", {"assessed_amount": 1}
        )
    assert await engine.get(APP, "app-1") == before


@pytest.mark.asyncio
async def test_undeclared_payload_keys_are_rejected(engine, seed, staff):
    await seed(APP, "app-1", ApplicationStage.SUBMITTED, Department.BPLO)

    with pytest.raises(InvalidPayloadError):
        await engine.invoke(
            staff["u_bplo"], APP, "app-1", "verify_and_forward", {"assessed_amount": 1}
        )


@pytest.mark.asyncio
async def test_notes_are_recorded(engine, seed, staff):
    await seed(APP, "app-1", ApplicationStage.SUBMITTED, Department.BPLO)

    record = await engine.invoke(
        staff["u_bplo"], APP, "app-1", "return_for_revision", {"notes": "Missing barangay clearance"}
    )

    assert record.current_stage == ApplicationStage.RETURNED
    assert record.history[-1].notes == "Missing barangay clearance"


@pytest.mark.asyncio
async def test_timestamp_never_goes_backwards(engine, seed, staff, clock):
    created = await seed(APP, "app-1", ApplicationStage.SUBMITTED, Department.BPLO)
    clock.current = created.history[-1].timestamp - timedelta(minutes=5)

    record = await engine.invoke(staff["u_bplo"], APP, "app-1", "verify_and_forward")

    assert record.history[-1].timestamp == created.history[-1].timestamp


@pytest.mark.asyncio
async def test_route_records_holder(engine, seed, staff):
    await seed(DOC, "doc-1", DocumentStage.RECEIVED, Department.MENRO)

    record = await engine.invoke(
        staff["u_menro_head"],
        DOC,
        "doc-1",
        "route",
        {"to_department": Department.MSWDO.value, "to_holder_id": "u_mswdo_chief"},
    )

    assert record.current_stage == DocumentStage.ROUTED
    assert record.custodian.department == Department.MSWDO
    assert record.custodian.holder_id == "u_mswdo_chief"


@pytest.mark.asyncio
async def test_return_to_origin_goes_to_originating_department(engine, seed, staff):
    await seed(
        DOC,
        "doc-1",
        DocumentStage.UNDER_REVIEW,
        Department.MENRO,
        {"originating_department": Department.MSWDO.value},
    )

    record = await engine.invoke(staff["u_menro_head"], DOC, "doc-1", "return_to_origin")

    assert record.current_stage == DocumentStage.RETURNED
    assert record.custodian.department == Department.MSWDO


@pytest.mark.asyncio
async def test_return_to_origin_without_origin_falls_back_to_receiving(engine, seed, staff):
    await seed(DOC, "doc-1", DocumentStage.UNDER_REVIEW, Department.MENRO)

    record = await engine.invoke(staff["u_menro_head"], DOC, "doc-1", "return_to_origin")

    assert record.custodian.department == Department.RECEIVING


@pytest.mark.asyncio
async def test_endorsement_must_target_an_executive_office(engine, seed, staff):
    before = await seed(DOC, "doc-1", DocumentStage.UNDER_REVIEW, Department.MENRO)

    with pytest.raises(InvalidPayloadError, match="cannot hold"):
        await engine.invoke(
            staff["u_menro_head"],
            DOC,
            "doc-1",
            "endorse_for_approval",
            {"to_department": Department.TREASURY.value},
        )
    assert await engine.get(DOC, "doc-1") == before


@pytest.mark.asyncio
async def test_voucher_return_is_terminal_and_goes_home(engine, seed, staff, voucher_attributes):
    await seed(VOUCHER, "v-1", VoucherStage.ACCOUNTING_AUDIT, Department.ACCOUNTING, voucher_attributes)

    record = await engine.invoke(staff["u_acct"], VOUCHER, "v-1", "return", {"notes": "No ORS attached"})

    assert record.current_stage == VoucherStage.RETURNED
    assert record.custodian.department == Department.ENGINEERING
    assert record.attributes["status"] == "Returned"
    assert legal_transitions(VOUCHER, record.current_stage) == ()


@pytest.mark.asyncio
async def test_missing_record(engine, staff):
    with pytest.raises(RecordNotFoundError):
        await engine.invoke(staff["u_bplo"], APP, "app-404", "verify_and_forward")


@pytest.mark.asyncio
async def test_matching_expected_version_applies(engine, seed, staff):
    await seed(APP, "app-1", ApplicationStage.SUBMITTED, Department.BPLO)

    record = await engine.invoke(staff["u_bplo"], APP, "app-1", "verify_and_forward", expected_version=1)

    assert record.version == 2


@pytest.mark.asyncio
async def test_stale_expected_version_is_rejected_before_the_guard(engine, seed, staff):
    await seed(APP, "app-1", ApplicationStage.SUBMITTED, Department.BPLO)
    advanced = await engine.invoke(staff["u_bplo"], APP, "app-1", "verify_and_forward")

    # The same click replayed: without the version this would be an unknown-action error.
    with pytest.raises(StaleStateError) as exc:
        await engine.invoke(staff["u_bplo"], APP, "app-1", "verify_and_forward", expected_version=1)

    assert exc.value.record == advanced
    assert await engine.get(APP, "app-1") == advanced


@pytest.mark.asyncio
async def test_terminal_stage_rejects_every_action(engine, seed, staff):
    await seed(APP, "app-1", ApplicationStage.RELEASED, Department.RECORDS)

    with pytest.raises(UnknownActionError):
        await engine.invoke(staff["u_records"], APP, "app-1", "mark_released")


@pytest.mark.asyncio
async def test_custodian_matches_rule_target_along_application_path(engine, seed, staff):
    await seed(APP, "app-1", ApplicationStage.SUBMITTED, Department.BPLO)
    steps = [
        ("u_bplo", "verify_and_forward", None),
        ("u_eval", "inspection_approved", None),
        ("u_treasurer", "submit_assessment", {"assessed_amount": "1250.50"}),
        ("u_treasurer", "confirm_payment", None),
        ("u_mayor", "sign_and_approve", None),
        ("u_records", "mark_released", None),
    ]
    for actor_id, action, payload in steps:
        before = await engine.get(APP, "app-1")
        rule = next(r for r in legal_transitions(APP, before.current_stage) if r.action == action)
        record = await engine.invoke(staff[actor_id], APP, "app-1", action, payload)
        assert record.custodian.department == rule.target_department
        assert record.current_stage == rule.target_stage
    assert record.current_stage == ApplicationStage.RELEASED
    assert len(record.history) == len(steps) + 1


class FailingCommitRepository(InMemoryRecordRepository):
    async def commit(self, **kwargs):
        raise RuntimeError("connection reset by peer")


@pytest.mark.asyncio
async def test_storage_failure_surfaces_unmodified_record(staff, make_record, clock):
    repository = FailingCommitRepository()
    before = await repository.create(make_record(APP, "app-1", ApplicationStage.SUBMITTED, Department.BPLO))
    engine = WorkflowEngine(repository, clock=clock)

    with pytest.raises(StorageError) as exc:
        await engine.invoke(staff["u_bplo"], APP, "app-1", "verify_and_forward")

    assert exc.value.record == before
    assert await repository.get(APP, "app-1") == before


@pytest.mark.asyncio
async def test_metrics_count_outcomes(engine, seed, staff, metrics):
    await seed(APP, "app-1", ApplicationStage.SUBMITTED, Department.BPLO)

    with pytest.raises(WrongDepartmentError):
        await engine.invoke(staff["u_treasurer"], APP, "app-1", "verify_and_forward")
    await engine.invoke(staff["u_bplo"], APP, "app-1", "verify_and_forward")

    exported = metrics.export_metrics()
    counters = exported["counters_by_labels"][TRANSITIONS_METRIC]
    assert counters[f"{TRANSITIONS_METRIC}:kind=application,outcome=success"] == 1
    assert counters[f"{TRANSITIONS_METRIC}:kind=application,outcome=WRONG_DEPARTMENT"] == 1
    assert exported["histograms"][f"{LATENCY_METRIC}:action=verify_and_forward"]["count"] == 2


@pytest.mark.asyncio
async def test_held_lock_yields_stale_state(repository, seed, staff, clock):
    backend = InProcessLockBackend()
    engine = WorkflowEngine(repository, clock=clock, lock=DistributedLock(backend))
    before = await seed(APP, "app-1", ApplicationStage.SUBMITTED, Department.BPLO)
    other = DistributedLock(backend)
    assert await other.acquire("workflow:application:app-1", ttl=30)

    with pytest.raises(StaleStateError) as exc:
        await engine.invoke(staff["u_bplo"], APP, "app-1", "verify_and_forward")

    assert exc.value.record == before


@pytest.mark.asyncio
async def test_lock_is_released_after_transition(repository, seed, staff, clock):
    backend = InProcessLockBackend()
    engine = WorkflowEngine(repository, clock=clock, lock=DistributedLock(backend))
    await seed(APP, "app-1", ApplicationStage.SUBMITTED, Department.BPLO)

    await engine.invoke(staff["u_bplo"], APP, "app-1", "verify_and_forward")
    with pytest.raises(WrongDepartmentError):
        await engine.invoke(staff["u_bplo"], APP, "app-1", "inspection_approved")

    assert await backend.get("lock:workflow:application:app-1") is None
