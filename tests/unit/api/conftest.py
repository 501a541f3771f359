"""Fixtures for API unit tests: in-memory workflow services, AsyncClient, actor headers."""

import pytest
from httpx import ASGITransport, AsyncClient

from app.api.dependencies import WorkflowServices, get_services
from app.application.intake import RecordIntake
from app.infrastructure.memory.profile_directory import InMemoryProfileDirectory
from app.infrastructure.memory.record_repository import InMemoryRecordRepository
from app.main import app
from app.observability.metrics import MetricsCollector
from app.scalability.distributed_lock import DistributedLock, InProcessLockBackend
from app.workflows.engine import WorkflowEngine


@pytest.fixture
def services():
    repository = InMemoryRecordRepository()
    metrics = MetricsCollector()
    engine = WorkflowEngine(repository, lock=DistributedLock(InProcessLockBackend()), metrics=metrics)
    return WorkflowServices(
        engine=engine,
        intake=RecordIntake(repository),
        profiles=InMemoryProfileDirectory(),
        metrics=metrics,
    )


@pytest.fixture
def app_with_overrides(services):
    """App wired to fresh in-memory services."""
    app.dependency_overrides[get_services] = lambda: services
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(app_with_overrides):
    transport = ASGITransport(app=app_with_overrides)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def _headers(user_id: str, email: str, department: str, job_level: str) -> dict:
    return {
        "X-Actor-ID": user_id,
        "X-Actor-Email": email,
        "X-Actor-Department": department,
        "X-Actor-Job-Level": job_level,
    }


@pytest.fixture
def as_user():
    """Header sets for seeded staff, keyed by user id."""
    return {
        "u_bplo": _headers("u_bplo", "bplo@talibon.gov.ph", "BPLO", "CLERK"),
        "u_eng": _headers("u_eng", "eng@talibon.gov.ph", "Engineering Office", "DEPT_HEAD"),
        "u_treasurer": _headers("u_treasurer", "treasury@talibon.gov.ph", "Treasury Office", "DEPT_HEAD"),
        "u_mayor": _headers("u_mayor", "mayor@talibon.gov.ph", "Mayor's Office", "EXECUTIVE"),
        "u_records": _headers("u_records", "records@talibon.gov.ph", "Records Office", "OFFICER"),
        "u_acct": _headers("u_acct", "acct@talibon.gov.ph", "Accounting Office", "DEPT_HEAD"),
    }
