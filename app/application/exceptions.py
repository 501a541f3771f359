"""Application-layer exceptions. Do not reuse domain exceptions."""


class ApplicationError(Exception):
    """Base for all application-layer errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class RepositoryError(ApplicationError):
    """Raised by record repositories when storage fails. Outcome of a commit is unknown."""


class VersionConflictError(RepositoryError):
    """Raised when commit's expected version no longer matches the stored record."""


class DuplicateRecordError(RepositoryError):
    """Raised when intake tries to create a record id that already exists."""
