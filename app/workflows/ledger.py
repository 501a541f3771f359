"""Audit ledger: read-only access to a record's append-only history."""

from typing import Optional, Sequence, Tuple

from app.domain.exceptions import RecordNotFoundError, StorageError
from app.domain.models.record import AuditAction, AuditEntry
from app.domain.models.stages import RecordKind
from app.workflows.interface import RecordRepository


def check_integrity(history: Sequence[AuditEntry]) -> None:
    """
    Raise ValueError unless the history starts with a single Created entry and its
    timestamps never decrease.
    """
    if not history:
        raise ValueError("History must not be empty")
    if history[0].action != AuditAction.CREATED:
        raise ValueError(f"History must start with Created, got {history[0].action.value}")
    for previous, current in zip(history, history[1:]):
        if current.action == AuditAction.CREATED:
            raise ValueError("Created may only appear as the first entry")
        if current.timestamp < previous.timestamp:
            raise ValueError(
                f"Timestamps decrease: {current.timestamp.isoformat()} after "
                f"{previous.timestamp.isoformat()}"
            )


def is_extension_of(previous: Sequence[AuditEntry], current: Sequence[AuditEntry]) -> bool:
    """True if `current` keeps every entry of `previous` in place (prefix stability)."""
    return len(current) >= len(previous) and tuple(current[: len(previous)]) == tuple(previous)


class AuditLedger:
    """Read side of the ledger. Never mutates; safe to call at any time."""

    def __init__(self, repository: RecordRepository) -> None:
        self._repository = repository

    async def history(self, kind: RecordKind, record_id: str) -> Tuple[AuditEntry, ...]:
        return await self._read(kind, record_id)

    async def since(self, kind: RecordKind, record_id: str, cursor: int) -> Tuple[AuditEntry, ...]:
        """Entries appended after the first `cursor` entries; for incremental readers."""
        if cursor < 0:
            raise ValueError("cursor must be >= 0")
        return (await self._read(kind, record_id))[cursor:]

    async def latest(self, kind: RecordKind, record_id: str) -> Optional[AuditEntry]:
        history = await self._read(kind, record_id)
        return history[-1] if history else None

    async def _read(self, kind: RecordKind, record_id: str) -> Tuple[AuditEntry, ...]:
        try:
            record = await self._repository.get(kind, record_id)
        except Exception as e:
            raise StorageError(f"Could not read history of {kind.value} {record_id}: {e}") from e
        if record is None:
            raise RecordNotFoundError(f"{kind.value.capitalize()} not found: {record_id}")
        return record.history
