"""Shared facade behaviour: binds a record kind to the workflow engine."""

from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple

from app.domain.exceptions import InvalidPayloadError
from app.domain.models.actor import Actor
from app.domain.models.record import AuditEntry, Record
from app.domain.models.stages import RecordKind
from app.security.actor_resolver import SessionClaims, resolve_actor
from app.workflows.engine import WorkflowEngine
from app.workflows.interface import ProfileDirectory


class RecordWorkflow:
    """
    Thin, kind-bound wrapper over WorkflowEngine. Named operations only build payloads
    and delegate to `invoke`; every decision is made by the guard and executor.
    """

    kind: ClassVar[RecordKind]

    def __init__(self, engine: WorkflowEngine, profiles: Optional[ProfileDirectory] = None) -> None:
        self._engine = engine
        self._profiles = profiles

    async def get(self, record_id: str) -> Record:
        return await self._engine.get(self.kind, record_id)

    async def list_legal_actions(self, actor: Actor, record_id: str) -> List[str]:
        return await self._engine.list_legal_actions(actor, self.kind, record_id)

    async def available_actions(self, actor: Actor, record_id: str) -> Tuple[Record, List[str]]:
        return await self._engine.available_actions(actor, self.kind, record_id)

    async def inbox(self, actor: Actor, *, mine_only: bool = False) -> List[Record]:
        """Records of this kind waiting on the actor (or the actor's department)."""
        return await self._engine.inbox(actor, self.kind, mine_only=mine_only)

    async def invoke(
        self,
        actor: Actor,
        record_id: str,
        action: str,
        payload: Optional[Mapping[str, Any]] = None,
        *,
        expected_version: Optional[int] = None,
    ) -> Record:
        return await self._engine.invoke(
            actor, self.kind, record_id, action, payload, expected_version=expected_version
        )

    async def history(self, record_id: str) -> Tuple[AuditEntry, ...]:
        return await self._engine.history(self.kind, record_id)

    async def resolve_actor(self, claims: SessionClaims) -> Actor:
        return await resolve_actor(claims, self._profiles)

    async def _require(self, record_id: str, field: str, value: Any) -> None:
        """Reject a missing required argument before the engine is called."""
        if value is None:
            record = await self.get(record_id)
            raise InvalidPayloadError(f"'{field}' is required", record=record)


def with_notes(notes: Optional[str], **fields: Any) -> Dict[str, Any]:
    payload = {k: v for k, v in fields.items() if v is not None}
    if notes is not None:
        payload["notes"] = notes
    return payload
