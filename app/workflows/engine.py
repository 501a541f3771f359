"""Workflow engine: the interface exposed to facades and outer layers."""

import logging
from typing import Any, List, Mapping, Optional, Tuple

from app.domain.exceptions import StorageError
from app.domain.models.actor import Actor
from app.domain.models.record import AuditEntry, Record
from app.domain.models.stages import RecordKind
from app.observability.metrics import MetricsCollector
from app.scalability.distributed_lock import DistributedLock
from app.workflows.executor import TransitionExecutor
from app.workflows.guard import AuthorizationGuard
from app.workflows.interface import Clock, RecordRepository
from app.workflows.ledger import AuditLedger


class WorkflowEngine:
    """
    Wires guard, executor and ledger around one repository.
    `invoke` is the single mutation entry point; everything else is read-only.
    """

    def __init__(
        self,
        repository: RecordRepository,
        *,
        clock: Optional[Clock] = None,
        guard: Optional[AuthorizationGuard] = None,
        lock: Optional[DistributedLock] = None,
        lock_ttl_seconds: int = 10,
        metrics: Optional[MetricsCollector] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._repository = repository
        self._guard = guard or AuthorizationGuard()
        self._executor = TransitionExecutor(
            repository,
            guard=self._guard,
            clock=clock,
            lock=lock,
            lock_ttl_seconds=lock_ttl_seconds,
            metrics=metrics,
            logger=logger,
        )
        self._ledger = AuditLedger(repository)

    @property
    def repository(self) -> RecordRepository:
        return self._repository

    @property
    def guard(self) -> AuthorizationGuard:
        return self._guard

    @property
    def ledger(self) -> AuditLedger:
        return self._ledger

    async def get(self, kind: RecordKind, record_id: str) -> Record:
        return await self._executor.load(kind, record_id)

    async def list_legal_actions(self, actor: Actor, kind: RecordKind, record_id: str) -> List[str]:
        """Actions the actor may invoke on the record as it stands now."""
        _, actions = await self.available_actions(actor, kind, record_id)
        return actions

    async def available_actions(
        self, actor: Actor, kind: RecordKind, record_id: str
    ) -> Tuple[Record, List[str]]:
        """The record and the actor's legal actions, read together so the version matches."""
        record = await self._executor.load(kind, record_id)
        return record, self._guard.legal_actions(actor, record)

    async def inbox(self, actor: Actor, kind: RecordKind, *, mine_only: bool = False) -> List[Record]:
        """
        Records of `kind` currently with the actor's department that the actor can act on.
        With `mine_only`, only records whose named holder is the actor.
        """
        holder_id = actor.id if mine_only else None
        try:
            records = await self._repository.list_by_custodian(kind, actor.department, holder_id)
        except Exception as e:
            raise StorageError(
                f"Could not list {kind.value} records for {actor.department.value}: {e}"
            ) from e
        return [r for r in records if self._guard.legal_actions(actor, r)]

    async def invoke(
        self,
        actor: Actor,
        kind: RecordKind,
        record_id: str,
        action: str,
        payload: Optional[Mapping[str, Any]] = None,
        *,
        expected_version: Optional[int] = None,
    ) -> Record:
        return await self._executor.apply(
            actor, kind, record_id, action, payload, expected_version=expected_version
        )

    async def history(self, kind: RecordKind, record_id: str) -> Tuple[AuditEntry, ...]:
        return await self._ledger.history(kind, record_id)
