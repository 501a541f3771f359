"""Workflow error taxonomy. Pure domain layer, no HTTP."""

from enum import Enum
from typing import TYPE_CHECKING, ClassVar, Optional

if TYPE_CHECKING:
    from app.domain.models.record import Record


class WorkflowErrorCode(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    UNKNOWN_ACTION = "UNKNOWN_ACTION"
    WRONG_DEPARTMENT = "WRONG_DEPARTMENT"
    WRONG_ROLE = "WRONG_ROLE"
    INVALID_PAYLOAD = "INVALID_PAYLOAD"
    STALE_STATE = "STALE_STATE"
    STORAGE_ERROR = "STORAGE_ERROR"


class WorkflowError(Exception):
    """
    Base for all workflow errors.
    `record` is the record as it stands after the failed call: unmodified for every
    error except StaleStateError, where it is the re-read, already-advanced record.
    """

    code: ClassVar[WorkflowErrorCode]

    def __init__(self, message: str, *, record: Optional["Record"] = None) -> None:
        self.message = message
        self.record = record
        super().__init__(message)


class RecordNotFoundError(WorkflowError):
    """Raised when the record id does not exist. Never retried."""

    code = WorkflowErrorCode.NOT_FOUND


class UnknownActionError(WorkflowError):
    """Raised when the action is not defined for the record's current stage."""

    code = WorkflowErrorCode.UNKNOWN_ACTION


class WrongDepartmentError(WorkflowError):
    """Raised when the record is not currently with the actor's department."""

    code = WorkflowErrorCode.WRONG_DEPARTMENT


class WrongRoleError(WorkflowError):
    """Raised when the department matches but role or job level does not."""

    code = WorkflowErrorCode.WRONG_ROLE


class InvalidPayloadError(WorkflowError):
    """Raised when the action payload fails validation. Resubmit with corrected input."""

    code = WorkflowErrorCode.INVALID_PAYLOAD


class StaleStateError(WorkflowError):
    """Raised when another transition advanced the record first. Re-fetch and decide."""

    code = WorkflowErrorCode.STALE_STATE


class StorageError(WorkflowError):
    """Raised when the repository failed. Outcome unknown; re-read before retrying."""

    code = WorkflowErrorCode.STORAGE_ERROR
