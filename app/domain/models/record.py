"""Workflow record and audit entry. Pure domain, no ORM or infrastructure."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, FrozenSet, Mapping, Optional, Tuple

from app.domain.models.actor import ActorSnapshot, Department
from app.domain.models.stages import RecordKind, Stage


class AuditAction(str, Enum):
    CREATED = "Created"
    FORWARDED = "Forwarded"
    RETURNED = "Returned"
    REJECTED = "Rejected"
    APPROVED = "Approved"
    SIGNED = "Signed"
    ASSESSED = "Assessed"
    RELEASED = "Released"
    ARCHIVED = "Archived"


@dataclass(frozen=True)
class Custodian:
    """Department currently responsible for a record, optionally a specific holder."""

    department: Department
    holder_id: Optional[str] = None


@dataclass(frozen=True)
class AuditEntry:
    """One immutable ledger line. `stage` is the stage entered with this entry."""

    stage: Stage
    actor: ActorSnapshot
    action: AuditAction
    timestamp: datetime
    notes: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "stage": self.stage.value,
            "actor": self.actor.to_dict(),
            "action": self.action.value,
            "timestamp": self.timestamp.isoformat(),
            "notes": self.notes,
        }


@dataclass(frozen=True)
class Record:
    """
    Case record (Application, Document or Voucher).
    Stage, custodian, attributes and history change only through the transition executor,
    which always produces a new Record; instances are never mutated.
    """

    record_id: str
    kind: RecordKind
    current_stage: Stage
    custodian: Custodian
    attributes: Mapping[str, Any]
    history: Tuple[AuditEntry, ...]
    version: int = 1
    sealed_attributes: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))
        object.__setattr__(self, "history", tuple(self.history))
        object.__setattr__(self, "sealed_attributes", frozenset(self.sealed_attributes))

    @property
    def last_entry(self) -> Optional[AuditEntry]:
        return self.history[-1] if self.history else None

    def to_dict(self) -> dict:
        return {
            "record_id": self.record_id,
            "kind": self.kind.value,
            "current_stage": self.current_stage.value,
            "custodian_department": self.custodian.department.value,
            "custodian_holder_id": self.custodian.holder_id,
            "attributes": dict(self.attributes),
            "sealed_attributes": sorted(self.sealed_attributes),
            "version": self.version,
            "history": [e.to_dict() for e in self.history],
        }
