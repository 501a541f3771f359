"""Domain models: actors, stages, records, audit entries."""

from app.domain.models.actor import Actor, ActorSnapshot, Department, JobLevel, Role
from app.domain.models.record import AuditAction, AuditEntry, Custodian, Record
from app.domain.models.stages import (
    ApplicationStage,
    DocumentStage,
    RecordKind,
    Stage,
    VoucherStage,
    parse_stage,
)

__all__ = [
    "Actor",
    "ActorSnapshot",
    "ApplicationStage",
    "AuditAction",
    "AuditEntry",
    "Custodian",
    "Department",
    "DocumentStage",
    "JobLevel",
    "Record",
    "RecordKind",
    "Role",
    "Stage",
    "VoucherStage",
    "parse_stage",
]
