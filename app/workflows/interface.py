"""Collaborator protocols the workflow engine depends on. Infrastructure implements them."""

from datetime import datetime, timezone
from typing import Any, FrozenSet, List, Mapping, Optional, Protocol

from app.domain.models.actor import Actor, Department
from app.domain.models.record import AuditEntry, Custodian, Record
from app.domain.models.stages import RecordKind, Stage


class RecordRepository(Protocol):
    """Storage for workflow records. The only shared mutable resource of the engine."""

    async def get(self, kind: RecordKind, record_id: str) -> Optional[Record]:
        """Return the record, or None if it does not exist."""
        ...

    async def create(self, record: Record) -> Record:
        """Persist a new record. Raises DuplicateRecordError if the id exists."""
        ...

    async def list_by_custodian(
        self,
        kind: RecordKind,
        department: Department,
        holder_id: Optional[str] = None,
    ) -> List[Record]:
        """Records of `kind` held by `department` (and by `holder_id` when given), oldest first."""
        ...

    async def commit(
        self,
        *,
        kind: RecordKind,
        record_id: str,
        expected_version: int,
        stage: Stage,
        custodian: Custodian,
        attributes: Mapping[str, Any],
        sealed_attributes: FrozenSet[str],
        entry: AuditEntry,
    ) -> Record:
        """
        Atomically replace stage, custodian, attributes and sealed set, append `entry`
        to history and bump the version. Applies only if the stored version equals
        `expected_version`; otherwise raises VersionConflictError. Any other failure
        raises RepositoryError.
        """
        ...


class Clock(Protocol):
    def now(self) -> datetime:
        """Current time, timezone-aware UTC."""
        ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class ActorResolver(Protocol):
    """Resolves the acting user for the current request."""

    async def current(self) -> Actor:
        ...


class ProfileDirectory(Protocol):
    """Staff profiles keyed by user id."""

    async def get_profile(self, user_id: str) -> Optional[Actor]:
        ...
