"""FastAPI dependency injection: workflow services, session claims, acting user."""

from dataclasses import dataclass, field
from typing import Annotated, Dict, Optional

from fastapi import Depends, Request

from app.application.intake import RecordIntake
from app.config.settings import AppSettings, get_settings
from app.domain.models.actor import Actor
from app.domain.models.stages import RecordKind
from app.infrastructure.cache.redis_client import RedisClient
from app.infrastructure.database.record_repository_db import DbRecordRepository
from app.infrastructure.database.session import get_sessionmaker
from app.infrastructure.memory.profile_directory import InMemoryProfileDirectory
from app.infrastructure.memory.record_repository import InMemoryRecordRepository
from app.observability.metrics import MetricsCollector
from app.scalability.distributed_lock import DistributedLock, InProcessLockBackend
from app.security.actor_resolver import ProfileActorResolver, SessionClaims
from app.workflows.engine import WorkflowEngine
from app.workflows.facades import ApplicationWorkflow, DocumentWorkflow, RecordWorkflow, VoucherWorkflow
from app.workflows.interface import ProfileDirectory, RecordRepository

ACTOR_ID_HEADER = "X-Actor-ID"
ACTOR_EMAIL_HEADER = "X-Actor-Email"
ACTOR_DEPARTMENT_HEADER = "X-Actor-Department"
ACTOR_JOB_LEVEL_HEADER = "X-Actor-Job-Level"


@dataclass
class WorkflowServices:
    engine: WorkflowEngine
    intake: RecordIntake
    profiles: ProfileDirectory
    metrics: Optional[MetricsCollector] = None
    redis: Optional[RedisClient] = None
    workflows: Dict[RecordKind, RecordWorkflow] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.workflows:
            self.workflows = {
                RecordKind.APPLICATION: ApplicationWorkflow(self.engine, self.profiles),
                RecordKind.DOCUMENT: DocumentWorkflow(self.engine, self.profiles),
                RecordKind.VOUCHER: VoucherWorkflow(self.engine, self.profiles),
            }

    def workflow(self, kind: RecordKind) -> RecordWorkflow:
        return self.workflows[kind]


def _build_repository(settings: AppSettings) -> RecordRepository:
    if settings.repository_backend == "database":
        return DbRecordRepository(get_sessionmaker())
    return InMemoryRecordRepository()


def build_services(settings: AppSettings) -> WorkflowServices:
    """Wire repository, lock, metrics and engine from settings."""
    repository = _build_repository(settings)
    redis_client: Optional[RedisClient] = None
    lock: Optional[DistributedLock] = None
    if settings.lock_backend == "redis":
        redis_client = RedisClient(settings.redis_url)
        lock = DistributedLock(redis_client)
    elif settings.lock_backend == "memory":
        lock = DistributedLock(InProcessLockBackend())
    metrics = MetricsCollector() if settings.enable_metrics else None
    engine = WorkflowEngine(
        repository,
        lock=lock,
        lock_ttl_seconds=settings.lock_ttl_seconds,
        metrics=metrics,
    )
    return WorkflowServices(
        engine=engine,
        intake=RecordIntake(repository),
        profiles=InMemoryProfileDirectory(),
        metrics=metrics,
        redis=redis_client,
    )


_services: WorkflowServices | None = None


def get_services() -> WorkflowServices:
    """Return singleton workflow services."""
    global _services
    if _services is None:
        _services = build_services(get_settings())
    return _services


async def shutdown_services() -> None:
    global _services
    if _services is not None and _services.redis is not None:
        await _services.redis.close()
    _services = None


def get_session_claims(request: Request) -> SessionClaims:
    """Claims forwarded by the auth layer. Raises AuthenticationError (401) if incomplete."""
    headers = request.headers
    return SessionClaims.from_raw(
        user_id=headers.get(ACTOR_ID_HEADER),
        email=headers.get(ACTOR_EMAIL_HEADER),
        department=headers.get(ACTOR_DEPARTMENT_HEADER),
        job_level=headers.get(ACTOR_JOB_LEVEL_HEADER),
    )


async def get_actor(
    claims: Annotated[SessionClaims, Depends(get_session_claims)],
    services: Annotated[WorkflowServices, Depends(get_services)],
) -> Actor:
    return await ProfileActorResolver(claims, services.profiles).current()


def get_correlation_id(request: Request) -> str:
    """Extract correlation_id from request.state (set by middleware)."""
    return getattr(request.state, "correlation_id", "") or ""
