"""Internal document routing workflow."""

from typing import Optional

from app.domain.models.actor import Actor, Department
from app.domain.models.record import Record
from app.domain.models.stages import RecordKind
from app.workflows.facades.base import RecordWorkflow, with_notes


class DocumentWorkflow(RecordWorkflow):
    kind = RecordKind.DOCUMENT

    async def route(
        self,
        actor: Actor,
        record_id: str,
        to_department: Optional[Department],
        to_holder_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Record:
        await self._require(record_id, "to_department", to_department)
        payload = with_notes(notes, to_department=to_department, to_holder_id=to_holder_id)
        return await self.invoke(actor, record_id, "route", payload)

    async def accept_for_review(self, actor: Actor, record_id: str, notes: Optional[str] = None) -> Record:
        return await self.invoke(actor, record_id, "accept_for_review", with_notes(notes))

    async def forward_for_evaluation(
        self,
        actor: Actor,
        record_id: str,
        to_department: Optional[Department],
        to_holder_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Record:
        """Pass the document along the endorsement chain; it stays Under Review."""
        await self._require(record_id, "to_department", to_department)
        payload = with_notes(notes, to_department=to_department, to_holder_id=to_holder_id)
        return await self.invoke(actor, record_id, "forward_for_evaluation", payload)

    async def endorse_for_approval(
        self,
        actor: Actor,
        record_id: str,
        to_department: Department = Department.MAYORS_OFFICE,
        notes: Optional[str] = None,
    ) -> Record:
        payload = with_notes(notes, to_department=to_department)
        return await self.invoke(actor, record_id, "endorse_for_approval", payload)

    async def sign_and_approve(self, actor: Actor, record_id: str, notes: Optional[str] = None) -> Record:
        return await self.invoke(actor, record_id, "sign_and_approve", with_notes(notes))

    async def return_to_origin(self, actor: Actor, record_id: str, notes: Optional[str] = None) -> Record:
        return await self.invoke(actor, record_id, "return_to_origin", with_notes(notes))

    async def reject(self, actor: Actor, record_id: str, notes: Optional[str] = None) -> Record:
        return await self.invoke(actor, record_id, "reject", with_notes(notes))

    async def archive(self, actor: Actor, record_id: str, notes: Optional[str] = None) -> Record:
        return await self.invoke(actor, record_id, "archive", with_notes(notes))
