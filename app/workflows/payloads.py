"""Action payload models: the preconditions a transition rule places on caller input."""

from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.domain.models.actor import Department


class ActionPayload(BaseModel):
    """
    Default payload: optional notes only. Unknown keys are rejected so that an action
    cannot smuggle attribute changes it does not own.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    notes: Optional[str] = Field(None, max_length=2000)

    def attribute_updates(self) -> Dict[str, Any]:
        """Attributes this payload sets on the record."""
        return {}


class AssessmentPayload(ActionPayload):
    """Fee assessment. Amount must be strictly positive."""

    assessed_amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)

    def attribute_updates(self) -> Dict[str, Any]:
        return {"assessed_amount": self.assessed_amount}


class RoutingPayload(ActionPayload):
    """Route to a department (and optionally a named holder)."""

    to_department: Department
    to_holder_id: Optional[str] = Field(None, min_length=1)
