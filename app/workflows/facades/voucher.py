"""Financial voucher workflow. Linear signing chain; any signatory may return it."""

from typing import Optional

from app.domain.exceptions import UnknownActionError
from app.domain.models.actor import Actor
from app.domain.models.record import Record
from app.domain.models.stages import RecordKind
from app.workflows.facades.base import RecordWorkflow, with_notes

RETURN_ACTION = "return"


class VoucherWorkflow(RecordWorkflow):
    kind = RecordKind.VOUCHER

    async def submit_for_review(self, actor: Actor, record_id: str, notes: Optional[str] = None) -> Record:
        return await self.invoke(actor, record_id, "submit_for_review", with_notes(notes))

    async def certify_budget(self, actor: Actor, record_id: str, notes: Optional[str] = None) -> Record:
        """Budget certification; seals the voucher amount."""
        return await self.invoke(actor, record_id, "certify_budget", with_notes(notes))

    async def audit(self, actor: Actor, record_id: str, notes: Optional[str] = None) -> Record:
        return await self.invoke(actor, record_id, "audit", with_notes(notes))

    async def approve(self, actor: Actor, record_id: str, notes: Optional[str] = None) -> Record:
        return await self.invoke(actor, record_id, "approve", with_notes(notes))

    async def release(self, actor: Actor, record_id: str, notes: Optional[str] = None) -> Record:
        return await self.invoke(actor, record_id, "release", with_notes(notes))

    async def return_voucher(self, actor: Actor, record_id: str, notes: Optional[str] = None) -> Record:
        """Send the voucher back to its originating department. Terminal."""
        return await self.invoke(actor, record_id, RETURN_ACTION, with_notes(notes))

    async def sign_current_stage(self, actor: Actor, record_id: str, notes: Optional[str] = None) -> Record:
        """
        Advance along whichever forward rule the current stage offers.
        Authorization is still decided by the guard for that rule.
        """
        record = await self.get(record_id)
        graph = self._engine.guard.graph(self.kind)
        forward = [r.action for r in graph.legal_transitions(record.current_stage) if r.action != RETURN_ACTION]
        if not forward:
            raise UnknownActionError(
                f"Voucher {record_id} in stage '{record.current_stage.value}' has no next signatory",
                record=record,
            )
        return await self.invoke(actor, record_id, forward[0], with_notes(notes))
