"""DB-backed record repository. PostgreSQL tables workflow_records and workflow_audit_entries."""

from collections import defaultdict
from datetime import timezone
from decimal import Decimal
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.exceptions import DuplicateRecordError, RepositoryError, VersionConflictError
from app.domain.models.actor import ActorSnapshot, Department, Role
from app.domain.models.record import AuditAction, AuditEntry, Custodian, Record
from app.domain.models.stages import RecordKind, Stage, parse_stage
from app.infrastructure.database.models import WorkflowAuditEntryRow, WorkflowRecordRow

# JSONB has no decimal type; money attributes round-trip as strings.
DECIMAL_ATTRIBUTES = frozenset({"assessed_amount", "amount"})


def _dump_attributes(attributes: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: str(v) if isinstance(v, Decimal) else v for k, v in attributes.items()}


def _load_attributes(raw: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        k: Decimal(v) if k in DECIMAL_ATTRIBUTES and v is not None else v
        for k, v in (raw or {}).items()
    }


def _entry_row(kind: RecordKind, record_id: str, sequence: int, entry: AuditEntry) -> WorkflowAuditEntryRow:
    return WorkflowAuditEntryRow(
        kind=kind.value,
        record_id=record_id,
        sequence=sequence,
        stage=entry.stage.value,
        action=entry.action.value,
        actor=entry.actor.to_dict(),
        timestamp=entry.timestamp,
        notes=entry.notes,
    )


def _to_entry(kind: RecordKind, row: WorkflowAuditEntryRow) -> AuditEntry:
    timestamp = row.timestamp
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    actor = row.actor
    return AuditEntry(
        stage=parse_stage(kind, row.stage),
        actor=ActorSnapshot(
            actor_id=actor["actor_id"],
            name=actor["name"],
            role=Role(actor["role"]),
            department=Department(actor["department"]),
        ),
        action=AuditAction(row.action),
        timestamp=timestamp,
        notes=row.notes,
    )


def _to_record(row: WorkflowRecordRow, entries: Sequence[WorkflowAuditEntryRow]) -> Record:
    kind = RecordKind(row.kind)
    return Record(
        record_id=row.record_id,
        kind=kind,
        current_stage=parse_stage(kind, row.current_stage),
        custodian=Custodian(
            department=Department(row.custodian_department),
            holder_id=row.custodian_holder_id,
        ),
        attributes=_load_attributes(row.attributes),
        history=tuple(_to_entry(kind, e) for e in entries),
        version=row.version,
        sealed_attributes=frozenset(row.sealed_attributes or ()),
    )


class DbRecordRepository:
    """
    Implements RecordRepository. One session per call; commit is a single transaction:
    a version-guarded UPDATE plus an audit insert with a unique sequence number.
    """

    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory

    async def get(self, kind: RecordKind, record_id: str) -> Optional[Record]:
        try:
            async with self._session_factory() as session:
                return await self._load(session, kind, record_id)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Read failed for {kind.value} {record_id}: {e}") from e

    async def create(self, record: Record) -> Record:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(
                        WorkflowRecordRow(
                            kind=record.kind.value,
                            record_id=record.record_id,
                            current_stage=record.current_stage.value,
                            custodian_department=record.custodian.department.value,
                            custodian_holder_id=record.custodian.holder_id,
                            attributes=_dump_attributes(record.attributes),
                            sealed_attributes=sorted(record.sealed_attributes),
                            version=record.version,
                        )
                    )
                    for sequence, entry in enumerate(record.history):
                        session.add(_entry_row(record.kind, record.record_id, sequence, entry))
        except IntegrityError as e:
            raise DuplicateRecordError(f"{record.kind.value} {record.record_id} already exists") from e
        except SQLAlchemyError as e:
            raise RepositoryError(f"Create failed for {record.kind.value} {record.record_id}: {e}") from e
        return record

    async def list_by_custodian(
        self,
        kind: RecordKind,
        department: Department,
        holder_id: Optional[str] = None,
    ) -> List[Record]:
        conditions = [
            WorkflowRecordRow.kind == kind.value,
            WorkflowRecordRow.custodian_department == department.value,
        ]
        if holder_id is not None:
            conditions.append(WorkflowRecordRow.custodian_holder_id == holder_id)
        try:
            async with self._session_factory() as session:
                rows = (
                    await session.execute(
                        select(WorkflowRecordRow)
                        .where(*conditions)
                        .order_by(WorkflowRecordRow.created_at, WorkflowRecordRow.record_id)
                    )
                ).scalars().all()
                if not rows:
                    return []
                entries = (
                    await session.execute(
                        select(WorkflowAuditEntryRow)
                        .where(
                            WorkflowAuditEntryRow.kind == kind.value,
                            WorkflowAuditEntryRow.record_id.in_([r.record_id for r in rows]),
                        )
                        .order_by(WorkflowAuditEntryRow.record_id, WorkflowAuditEntryRow.sequence)
                    )
                ).scalars().all()
        except SQLAlchemyError as e:
            raise RepositoryError(
                f"Listing {kind.value} records for {department.value} failed: {e}"
            ) from e
        by_record: Dict[str, List[WorkflowAuditEntryRow]] = defaultdict(list)
        for entry in entries:
            by_record[entry.record_id].append(entry)
        return [_to_record(row, by_record[row.record_id]) for row in rows]

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
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    stmt = (
                        update(WorkflowRecordRow)
                        .where(
                            WorkflowRecordRow.kind == kind.value,
                            WorkflowRecordRow.record_id == record_id,
                            WorkflowRecordRow.version == expected_version,
                        )
                        .values(
                            current_stage=stage.value,
                            custodian_department=custodian.department.value,
                            custodian_holder_id=custodian.holder_id,
                            attributes=_dump_attributes(attributes),
                            sealed_attributes=sorted(sealed_attributes),
                            version=expected_version + 1,
                        )
                        .execution_options(synchronize_session=False)
                    )
                    result = await session.execute(stmt)
                    if result.rowcount != 1:
                        raise VersionConflictError(
                            f"{kind.value} {record_id}: version {expected_version} is no longer current"
                        )
                    # History length equals version, so the new entry's index is expected_version.
                    session.add(_entry_row(kind, record_id, expected_version, entry))
                    await session.flush()
                    updated = await self._load(session, kind, record_id)
        except VersionConflictError:
            raise
        except IntegrityError as e:
            raise VersionConflictError(
                f"{kind.value} {record_id}: concurrent append at sequence {expected_version}"
            ) from e
        except SQLAlchemyError as e:
            raise RepositoryError(f"Commit failed for {kind.value} {record_id}: {e}") from e
        if updated is None:
            raise RepositoryError(f"{kind.value} {record_id} vanished during commit")
        return updated

    async def _load(self, session: AsyncSession, kind: RecordKind, record_id: str) -> Optional[Record]:
        row = (
            await session.execute(
                select(WorkflowRecordRow).where(
                    WorkflowRecordRow.kind == kind.value,
                    WorkflowRecordRow.record_id == record_id,
                )
            )
        ).scalar_one_or_none()
        if row is None:
            return None
        entries = (
            await session.execute(
                select(WorkflowAuditEntryRow)
                .where(
                    WorkflowAuditEntryRow.kind == kind.value,
                    WorkflowAuditEntryRow.record_id == record_id,
                )
                .order_by(WorkflowAuditEntryRow.sequence)
            )
        ).scalars().all()
        return _to_record(row, entries)
