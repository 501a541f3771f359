"""Domain layer: models, schemas, exceptions. Pure business logic only."""

from app.domain.exceptions import (
    InvalidPayloadError,
    RecordNotFoundError,
    StaleStateError,
    StorageError,
    UnknownActionError,
    WorkflowError,
    WorkflowErrorCode,
    WrongDepartmentError,
    WrongRoleError,
)
from app.domain.models import Actor, Department, JobLevel, Record, RecordKind, Role

__all__ = [
    "Actor",
    "Department",
    "InvalidPayloadError",
    "JobLevel",
    "Record",
    "RecordKind",
    "RecordNotFoundError",
    "Role",
    "StaleStateError",
    "StorageError",
    "UnknownActionError",
    "WorkflowError",
    "WorkflowErrorCode",
    "WrongDepartmentError",
    "WrongRoleError",
]
