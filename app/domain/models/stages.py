"""Record kinds and their stage enumerations."""

from enum import Enum
from typing import Dict, Type, Union


class RecordKind(str, Enum):
    APPLICATION = "application"
    DOCUMENT = "document"
    VOUCHER = "voucher"


class ApplicationStage(str, Enum):
    """Business-permit application stages."""

    SUBMITTED = "Submitted"
    FOR_INSPECTION = "For Inspection"
    FOR_ASSESSMENT = "For Assessment"
    FOR_PAYMENT = "For Payment"
    FOR_APPROVAL = "For Approval"
    APPROVED = "Approved"
    RELEASED = "Released"
    RETURNED = "Returned"
    REJECTED = "Rejected"


class DocumentStage(str, Enum):
    """Internal document routing stages."""

    RECEIVED = "Received"
    ROUTED = "Routed"
    UNDER_REVIEW = "Under Review"
    FOR_APPROVAL = "For Approval"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    RETURNED = "Returned"
    ARCHIVED = "Archived"


class VoucherStage(str, Enum):
    """Financial voucher stages. Linear; Returned is a terminal failure stage."""

    PREPARATION = "Preparation"
    BUDGET_REVIEW = "Budget Review"
    ACCOUNTING_AUDIT = "Accounting Audit"
    MAYOR_APPROVAL = "Mayor Approval"
    TREASURY_RELEASE = "Treasury Release"
    RELEASED = "Released"
    RETURNED = "Returned"


Stage = Union[ApplicationStage, DocumentStage, VoucherStage]

STAGE_TYPES: Dict[RecordKind, Type[Enum]] = {
    RecordKind.APPLICATION: ApplicationStage,
    RecordKind.DOCUMENT: DocumentStage,
    RecordKind.VOUCHER: VoucherStage,
}


def parse_stage(kind: RecordKind, value: str) -> Stage:
    """Stage values overlap across kinds ("Approved"), so parsing needs the kind."""
    return STAGE_TYPES[kind](value)  # type: ignore[return-value]
