"""Pydantic schemas for record intake. Strict validation, no DB or infrastructure."""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class VoucherType(str, Enum):
    ORS = "Obligation Request"
    DV = "Disbursement Voucher"
    PR = "Purchase Request"
    PAYROLL = "Payroll"


class DocumentType(str, Enum):
    MEMO = "Memorandum"
    LETTER_IN = "Incoming Letter"
    LETTER_OUT = "Outgoing Letter"
    ENDORSEMENT = "Endorsement"
    PERMIT = "Permit Application"
    RESOLUTION = "Resolution"
    ORDINANCE = "Ordinance"
    PAYROLL = "Payroll/Voucher"
    CONTRACT = "Contract/MOA"
    PROJECT_PROPOSAL = "Project Proposal"


class Priority(str, Enum):
    ROUTINE = "Routine"
    URGENT = "Urgent"
    HIGHLY_URGENT = "Highly Urgent"


class _IntakeRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    record_id: Optional[str] = Field(None, min_length=1, max_length=64)
    notes: Optional[str] = Field(None, max_length=2000)


class ApplicationIntakeRequest(_IntakeRequest):
    """Business-permit application as filed at the BPLO counter."""

    applicant_name: str = Field(..., min_length=1, max_length=200)
    application_type: str = Field(..., min_length=1, max_length=100, description="e.g. New, Renewal")
    business_name: Optional[str] = Field(None, max_length=200)
    reference_number: Optional[str] = Field(None, min_length=1, max_length=64)


class DocumentIntakeRequest(_IntakeRequest):
    """Internal document entering the routing system."""

    title: str = Field(..., min_length=1, max_length=300)
    doc_type: DocumentType
    priority: Priority = Priority.ROUTINE
    tracking_id: Optional[str] = Field(None, min_length=1, max_length=64)


class VoucherIntakeRequest(_IntakeRequest):
    """Financial voucher in preparation."""

    payee: str = Field(..., min_length=1, max_length=200)
    particulars: str = Field(..., min_length=1, max_length=2000)
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    voucher_type: VoucherType
    ref_number: Optional[str] = Field(None, min_length=1, max_length=64)

