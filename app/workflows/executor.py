"""
Transition executor: applies one guarded transition through the repository.

A call either commits stage, custodian, attributes and one audit entry together, or
raises a WorkflowError and leaves the stored record untouched. At most one stage
advance per call. Single-record serialization comes from the repository's version
compare-and-swap, optionally reinforced by a per-record lock.
"""

import logging
import time
from typing import Any, Dict, FrozenSet, Mapping, Optional, cast

from pydantic import ValidationError

from app.application.exceptions import VersionConflictError
from app.domain.exceptions import (
    InvalidPayloadError,
    RecordNotFoundError,
    StaleStateError,
    StorageError,
    WorkflowError,
)
from app.domain.models.actor import Actor, Department
from app.domain.models.record import AuditEntry, Custodian, Record
from app.domain.models.stages import RecordKind
from app.observability.metrics import MetricsCollector
from app.scalability.distributed_lock import DistributedLock
from app.workflows.guard import AuthorizationGuard
from app.workflows.interface import Clock, RecordRepository, SystemClock
from app.workflows.payloads import ActionPayload, RoutingPayload
from app.workflows.stage_graph import CustodianTarget, TransitionRule

TRANSITIONS_METRIC = "workflow_transitions_total"
LATENCY_METRIC = "workflow_transition_latency_ms"
OUTCOME_SUCCESS = "success"


def _lock_key(kind: RecordKind, record_id: str) -> str:
    return f"workflow:{kind.value}:{record_id}"


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err["loc"]) or "payload"
        parts.append(f"{location}: {err['msg']}")
    return "; ".join(parts)


class TransitionExecutor:
    """Read, guard, validate, build, commit. Never retries; never swallows a rejection."""

    def __init__(
        self,
        repository: RecordRepository,
        *,
        guard: Optional[AuthorizationGuard] = None,
        clock: Optional[Clock] = None,
        lock: Optional[DistributedLock] = None,
        lock_ttl_seconds: int = 10,
        metrics: Optional[MetricsCollector] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._repository = repository
        self._guard = guard or AuthorizationGuard()
        self._clock = clock or SystemClock()
        self._lock = lock
        self._lock_ttl = lock_ttl_seconds
        self._metrics = metrics
        self._logger = logger or logging.getLogger(__name__)

    @property
    def guard(self) -> AuthorizationGuard:
        return self._guard

    async def load(self, kind: RecordKind, record_id: str) -> Record:
        """Fetch a record. Raises RecordNotFoundError or StorageError."""
        try:
            record = await self._repository.get(kind, record_id)
        except Exception as e:
            raise StorageError(f"Could not read {kind.value} {record_id}: {e}") from e
        if record is None:
            raise RecordNotFoundError(f"{kind.value.capitalize()} not found: {record_id}")
        return record

    async def apply(
        self,
        actor: Actor,
        kind: RecordKind,
        record_id: str,
        action: str,
        payload: Optional[Mapping[str, Any]] = None,
        *,
        expected_version: Optional[int] = None,
    ) -> Record:
        """
        Apply `action` to the record on behalf of `actor`. Returns the updated record.

        `expected_version` is the version the caller last saw. When given, a record that
        has moved on since raises StaleStateError before the guard runs.
        """
        started = time.perf_counter()
        log_context = {
            "kind": kind.value,
            "record_id": record_id,
            "action": action,
            "actor_id": actor.id,
        }
        try:
            if self._lock is None:
                record = await self._apply(actor, kind, record_id, action, payload, expected_version)
            else:
                record = await self._apply_locked(actor, kind, record_id, action, payload, expected_version)
        except WorkflowError as e:
            self._observe(kind, action, e.code.value, started)
            self._logger.info(
                "transition_rejected",
                extra={**log_context, "outcome": e.code.value, "error": e.message},
            )
            raise
        self._observe(kind, action, OUTCOME_SUCCESS, started)
        return record

    async def _apply_locked(
        self,
        actor: Actor,
        kind: RecordKind,
        record_id: str,
        action: str,
        payload: Optional[Mapping[str, Any]],
        expected_version: Optional[int],
    ) -> Record:
        key = _lock_key(kind, record_id)
        try:
            acquired = await self._lock.acquire(key, self._lock_ttl)
        except Exception as e:
            raise StorageError(f"Lock backend unavailable for {kind.value} {record_id}: {e}") from e
        if not acquired:
            current = await self.load(kind, record_id)
            raise StaleStateError(
                f"Another transition on {kind.value} {record_id} is in progress; "
                "re-fetch before retrying",
                record=current,
            )
        try:
            return await self._apply(actor, kind, record_id, action, payload, expected_version)
        finally:
            try:
                await self._lock.release(key)
            except Exception as e:
                # The TTL frees the key; the transition outcome stands.
                self._logger.warning(
                    "transition_lock_release_failed",
                    extra={"kind": kind.value, "record_id": record_id, "error": str(e)},
                )

    async def _apply(
        self,
        actor: Actor,
        kind: RecordKind,
        record_id: str,
        action: str,
        payload: Optional[Mapping[str, Any]],
        expected_version: Optional[int],
    ) -> Record:
        record = await self.load(kind, record_id)
        if expected_version is not None and record.version != expected_version:
            raise StaleStateError(
                f"{kind.value.capitalize()} {record_id} is at version {record.version} "
                f"(stage '{record.current_stage.value}'), not {expected_version}; "
                "re-fetch before retrying",
                record=record,
            )
        rule = self._guard.can_transition(actor, record, action)
        parsed = self._parse_payload(rule, payload, record)
        attributes = self._next_attributes(rule, parsed, record)
        custodian = self._next_custodian(rule, parsed, record)
        sealed: FrozenSet[str] = record.sealed_attributes | rule.seals
        entry = AuditEntry(
            stage=rule.target_stage,
            actor=actor.snapshot(),
            action=rule.audit_action,
            timestamp=self._timestamp(record),
            notes=parsed.notes,
        )
        try:
            updated = await self._repository.commit(
                kind=kind,
                record_id=record_id,
                expected_version=record.version,
                stage=rule.target_stage,
                custodian=custodian,
                attributes=attributes,
                sealed_attributes=sealed,
                entry=entry,
            )
        except VersionConflictError as e:
            current = await self.load(kind, record_id)
            self._logger.warning(
                "transition_conflict",
                extra={
                    "kind": kind.value,
                    "record_id": record_id,
                    "action": action,
                    "version": record.version,
                    "current_version": current.version,
                },
            )
            raise StaleStateError(
                f"{kind.value.capitalize()} {record_id} was advanced by another transition "
                f"(now '{current.current_stage.value}', version {current.version}); "
                "re-fetch before retrying",
                record=current,
            ) from e
        except Exception as e:
            self._logger.error(
                "storage_failure",
                extra={"kind": kind.value, "record_id": record_id, "action": action, "error": str(e)},
            )
            raise StorageError(
                f"Commit failed for {kind.value} {record_id}; outcome unknown, re-read before retrying: {e}",
                record=record,
            ) from e

        self._logger.info(
            "transition_applied",
            extra={
                "kind": kind.value,
                "record_id": record_id,
                "action": action,
                "actor_id": actor.id,
                "from_stage": record.current_stage.value,
                "to_stage": updated.current_stage.value,
                "custodian": updated.custodian.department.value,
                "version": updated.version,
            },
        )
        return updated

    def _parse_payload(
        self,
        rule: TransitionRule,
        payload: Optional[Mapping[str, Any]],
        record: Record,
    ) -> ActionPayload:
        try:
            return rule.payload_model.model_validate(payload if payload is not None else {})
        except ValidationError as e:
            raise InvalidPayloadError(
                f"Invalid payload for '{rule.action}': {_format_validation_error(e)}",
                record=record,
            ) from e

    def _next_attributes(
        self,
        rule: TransitionRule,
        parsed: ActionPayload,
        record: Record,
    ) -> Dict[str, Any]:
        updates: Dict[str, Any] = dict(parsed.attribute_updates())
        updates.update(rule.effects)
        sealed = record.sealed_attributes.intersection(updates)
        if sealed:
            raise InvalidPayloadError(
                f"{', '.join(sorted(sealed))} on {record.kind.value} {record.record_id} "
                "is sealed and cannot change",
                record=record,
            )
        attributes = dict(record.attributes)
        attributes.update(updates)
        return attributes

    def _next_custodian(
        self,
        rule: TransitionRule,
        parsed: ActionPayload,
        record: Record,
    ) -> Custodian:
        target = rule.custodian_target
        if target == CustodianTarget.FIXED:
            custodian = Custodian(department=rule.target_department)
        elif target == CustodianTarget.SAME:
            custodian = record.custodian
        elif target == CustodianTarget.ROUTED:
            # Routed rules carry a RoutingPayload; the graph checks this at import.
            routing = cast(RoutingPayload, parsed)
            custodian = Custodian(department=routing.to_department, holder_id=routing.to_holder_id)
        else:
            origin = record.attributes.get("originating_department")
            custodian = Custodian(department=Department(origin) if origin else Department.RECEIVING)

        legal = self._guard.graph(record.kind).custodians_for(rule.target_stage)
        if custodian.department not in legal:
            allowed = ", ".join(sorted(d.value for d in legal))
            raise InvalidPayloadError(
                f"{custodian.department.value} cannot hold a {record.kind.value} in stage "
                f"'{rule.target_stage.value}'; expected one of: {allowed}",
                record=record,
            )
        return custodian

    def _timestamp(self, record: Record):
        now = self._clock.now()
        last = record.last_entry
        if last is not None and now < last.timestamp:
            return last.timestamp
        return now

    def _observe(self, kind: RecordKind, action: str, outcome: str, started: float) -> None:
        if self._metrics is None:
            return
        self._metrics.increment(TRANSITIONS_METRIC, kind=kind.value, outcome=outcome)
        self._metrics.observe_latency(
            LATENCY_METRIC, (time.perf_counter() - started) * 1000, action=action
        )
