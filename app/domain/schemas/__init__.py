"""Domain schemas. Intake requests and API read models."""

from app.domain.schemas.intake import (
    ApplicationIntakeRequest,
    DocumentIntakeRequest,
    DocumentType,
    Priority,
    VoucherIntakeRequest,
    VoucherType,
)
from app.domain.schemas.record import (
    ActionRequest,
    AuditEntryResponse,
    LegalActionsResponse,
    RecordResponse,
)

__all__ = [
    "ActionRequest",
    "ApplicationIntakeRequest",
    "AuditEntryResponse",
    "DocumentIntakeRequest",
    "DocumentType",
    "LegalActionsResponse",
    "Priority",
    "RecordResponse",
    "VoucherIntakeRequest",
    "VoucherType",
]
