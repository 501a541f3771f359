"""Business-permit application workflow."""

from decimal import Decimal
from typing import Optional, Union

from app.domain.models.actor import Actor
from app.domain.models.record import Record
from app.domain.models.stages import RecordKind
from app.workflows.facades.base import RecordWorkflow, with_notes


class ApplicationWorkflow(RecordWorkflow):
    kind = RecordKind.APPLICATION

    async def verify_and_forward(self, actor: Actor, record_id: str, notes: Optional[str] = None) -> Record:
        """BPLO verified the requirements; send to Engineering for inspection."""
        return await self.invoke(actor, record_id, "verify_and_forward", with_notes(notes))

    async def return_for_revision(self, actor: Actor, record_id: str, notes: Optional[str] = None) -> Record:
        return await self.invoke(actor, record_id, "return_for_revision", with_notes(notes))

    async def inspection_approved(self, actor: Actor, record_id: str, notes: Optional[str] = None) -> Record:
        return await self.invoke(actor, record_id, "inspection_approved", with_notes(notes))

    async def mark_non_compliant(self, actor: Actor, record_id: str, notes: Optional[str] = None) -> Record:
        return await self.invoke(actor, record_id, "mark_non_compliant", with_notes(notes))

    async def submit_assessment(
        self,
        actor: Actor,
        record_id: str,
        amount: Union[Decimal, int, str, None],
        notes: Optional[str] = None,
    ) -> Record:
        """Treasury fee assessment. `amount` must be given and strictly positive."""
        await self._require(record_id, "assessed_amount", amount)
        return await self.invoke(
            actor, record_id, "submit_assessment", with_notes(notes, assessed_amount=amount)
        )

    async def confirm_payment(self, actor: Actor, record_id: str, notes: Optional[str] = None) -> Record:
        """Marks the fee paid and seals the assessed amount."""
        return await self.invoke(actor, record_id, "confirm_payment", with_notes(notes))

    async def sign_and_approve(self, actor: Actor, record_id: str, notes: Optional[str] = None) -> Record:
        return await self.invoke(actor, record_id, "sign_and_approve", with_notes(notes))

    async def mark_released(self, actor: Actor, record_id: str, notes: Optional[str] = None) -> Record:
        return await self.invoke(actor, record_id, "mark_released", with_notes(notes))

    async def reject(self, actor: Actor, record_id: str, notes: Optional[str] = None) -> Record:
        return await self.invoke(actor, record_id, "reject", with_notes(notes))
