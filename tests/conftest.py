"""Shared fixtures: staff actors, a controllable clock, in-memory engine and facades."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

import pytest

from app.application.intake import RecordIntake
from app.domain.models.actor import Actor, Department, JobLevel, Role
from app.domain.models.record import AuditAction, AuditEntry, Custodian, Record
from app.domain.models.stages import RecordKind, Stage
from app.infrastructure.memory.profile_directory import DEFAULT_STAFF, InMemoryProfileDirectory
from app.infrastructure.memory.record_repository import InMemoryRecordRepository
from app.observability.metrics import MetricsCollector
from app.workflows.engine import WorkflowEngine
from app.workflows.facades import ApplicationWorkflow, DocumentWorkflow, VoucherWorkflow

T0 = datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = T0) -> None:
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def staff() -> Dict[str, Actor]:
    """Seeded roster plus a few extra desk officers used by the routing tests."""
    roster = {a.id: a for a in DEFAULT_STAFF}
    roster["u_menro_head"] = Actor(
        "u_menro_head", "Ms. Verde", Role.DEPT_HEAD, Department.MENRO, JobLevel.DEPT_HEAD
    )
    roster["u_mswdo_chief"] = Actor(
        "u_mswdo_chief", "Mr. Kalinga", Role.HEAD, Department.MSWDO, JobLevel.DIVISION_CHIEF
    )
    roster["u_treasury_clerk"] = Actor(
        "u_treasury_clerk", "Nena Cruz", Role.CLERK, Department.TREASURY, JobLevel.CLERK
    )
    roster["u_budget_clerk"] = Actor(
        "u_budget_clerk", "Ben Reyes", Role.CLERK, Department.BUDGET, JobLevel.CLERK
    )
    return roster


@pytest.fixture
def repository():
    return InMemoryRecordRepository()


@pytest.fixture
def metrics():
    return MetricsCollector()


@pytest.fixture
def engine(repository, clock, metrics):
    return WorkflowEngine(repository, clock=clock, metrics=metrics)


@pytest.fixture
def profiles():
    return InMemoryProfileDirectory()


@pytest.fixture
def intake(repository, clock):
    return RecordIntake(repository, clock=clock)


@pytest.fixture
def applications(engine, profiles):
    return ApplicationWorkflow(engine, profiles)


@pytest.fixture
def documents(engine, profiles):
    return DocumentWorkflow(engine, profiles)


@pytest.fixture
def vouchers(engine, profiles):
    return VoucherWorkflow(engine, profiles)


@pytest.fixture
def make_record(staff):
    """Build a record already sitting in `stage`, with a plausible single-entry history."""

    def _make(
        kind: RecordKind,
        record_id: str,
        stage: Stage,
        department: Department,
        attributes: Optional[Dict[str, Any]] = None,
        *,
        version: int = 1,
        sealed=frozenset(),
        holder_id: Optional[str] = None,
    ) -> Record:
        creator = staff["u_clerk"].snapshot()
        return Record(
            record_id=record_id,
            kind=kind,
            current_stage=stage,
            custodian=Custodian(department=department, holder_id=holder_id),
            attributes=attributes or {},
            history=(AuditEntry(stage=stage, actor=creator, action=AuditAction.CREATED, timestamp=T0),),
            version=version,
            sealed_attributes=sealed,
        )

    return _make


@pytest.fixture
def seed(repository, make_record):
    """Create a record in the repository and return it."""

    async def _seed(*args, **kwargs) -> Record:
        return await repository.create(make_record(*args, **kwargs))

    return _seed


@pytest.fixture
def voucher_attributes():
    return {
        "payee": "Talibon Hardware",
        "particulars": "Road repair materials",
        "amount": Decimal("45000.00"),
        "voucher_type": "Disbursement Voucher",
        "status": "Pending",
        "originating_department": Department.ENGINEERING.value,
    }
