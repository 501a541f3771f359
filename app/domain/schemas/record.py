"""API response and request schemas for workflow records."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app.domain.models.record import AuditEntry, Record


class ActorSnapshotResponse(BaseModel):
    actor_id: str
    name: str
    role: str
    department: str


class AuditEntryResponse(BaseModel):
    stage: str
    actor: ActorSnapshotResponse
    action: str
    timestamp: datetime
    notes: Optional[str] = None

    @classmethod
    def from_entry(cls, entry: AuditEntry) -> "AuditEntryResponse":
        return cls(
            stage=entry.stage.value,
            actor=ActorSnapshotResponse(**entry.actor.to_dict()),
            action=entry.action.value,
            timestamp=entry.timestamp,
            notes=entry.notes,
        )


class RecordResponse(BaseModel):
    """Record read model. Decimal attributes are serialized as strings."""

    record_id: str
    kind: str
    current_stage: str
    custodian_department: str
    custodian_holder_id: Optional[str] = None
    attributes: Dict[str, Any]
    sealed_attributes: List[str]
    version: int
    history: List[AuditEntryResponse]

    @classmethod
    def from_record(cls, record: Record) -> "RecordResponse":
        return cls(
            record_id=record.record_id,
            kind=record.kind.value,
            current_stage=record.current_stage.value,
            custodian_department=record.custodian.department.value,
            custodian_holder_id=record.custodian.holder_id,
            attributes={k: _plain(v) for k, v in record.attributes.items()},
            sealed_attributes=sorted(record.sealed_attributes),
            version=record.version,
            history=[AuditEntryResponse.from_entry(e) for e in record.history],
        )


class LegalActionsResponse(BaseModel):
    record_id: str
    stage: str
    version: int
    actions: List[str]


class ActionRequest(BaseModel):
    """Body of POST .../actions/{action}. The payload is validated by the transition rule."""

    payload: Dict[str, Any] = Field(default_factory=dict)
    # Version the caller last read; a mismatch is rejected as stale.
    expected_version: Optional[int] = Field(None, ge=1)


def _plain(value: Any) -> Any:
    return str(value) if isinstance(value, Decimal) else value
