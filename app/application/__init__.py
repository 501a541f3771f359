# Application layer: services that orchestrate domain and infrastructure.

from app.application.exceptions import (
    ApplicationError,
    DuplicateRecordError,
    RepositoryError,
    VersionConflictError,
)
from app.application.intake import RecordIntake

__all__ = [
    "ApplicationError",
    "DuplicateRecordError",
    "RecordIntake",
    "RepositoryError",
    "VersionConflictError",
]
