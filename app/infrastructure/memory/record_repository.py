"""In-memory record repository. Same protocol and CAS semantics as the database adapter."""

import threading
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from app.application.exceptions import DuplicateRecordError, VersionConflictError
from app.domain.models.actor import Department
from app.domain.models.record import AuditEntry, Custodian, Record
from app.domain.models.stages import RecordKind, Stage


class InMemoryRecordRepository:
    """
    Records keyed by (kind, record_id). A single mutex makes every commit an atomic
    compare-and-swap, safe for concurrent asyncio tasks and threads.
    """

    def __init__(self) -> None:
        self._mutex = threading.Lock()
        self._records: Dict[Tuple[RecordKind, str], Record] = {}

    async def get(self, kind: RecordKind, record_id: str) -> Optional[Record]:
        with self._mutex:
            return self._records.get((kind, record_id))

    async def create(self, record: Record) -> Record:
        key = (record.kind, record.record_id)
        with self._mutex:
            if key in self._records:
                raise DuplicateRecordError(f"{record.kind.value} {record.record_id} already exists")
            self._records[key] = record
        return record

    async def list_by_custodian(
        self,
        kind: RecordKind,
        department: Department,
        holder_id: Optional[str] = None,
    ) -> List[Record]:
        with self._mutex:
            return [
                r
                for (k, _), r in self._records.items()
                if k == kind
                and r.custodian.department == department
                and (holder_id is None or r.custodian.holder_id == holder_id)
            ]

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
        key = (kind, record_id)
        with self._mutex:
            current = self._records.get(key)
            if current is None or current.version != expected_version:
                found = current.version if current is not None else None
                raise VersionConflictError(
                    f"{kind.value} {record_id}: expected version {expected_version}, found {found}"
                )
            updated = Record(
                record_id=record_id,
                kind=kind,
                current_stage=stage,
                custodian=custodian,
                attributes=attributes,
                history=current.history + (entry,),
                version=current.version + 1,
                sealed_attributes=sealed_attributes,
            )
            self._records[key] = updated
        return updated
