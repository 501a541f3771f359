"""
Authorization guard: the only place that decides whether an actor may act on a record.
No role is privileged; overrides exist only as explicit rules in the stage graph.
"""

from typing import List, Mapping, Optional

from app.domain.exceptions import UnknownActionError, WrongDepartmentError, WrongRoleError
from app.domain.models.actor import Actor
from app.domain.models.record import Record
from app.domain.models.stages import RecordKind
from app.workflows.stage_graph import STAGE_GRAPHS, StageGraph, TransitionRule


class AuthorizationGuard:
    """Evaluate transition rules of the record's current stage against an actor."""

    def __init__(self, graphs: Optional[Mapping[RecordKind, StageGraph]] = None) -> None:
        self._graphs = graphs if graphs is not None else STAGE_GRAPHS

    def graph(self, kind: RecordKind) -> StageGraph:
        return self._graphs[kind]

    def can_transition(self, actor: Actor, record: Record, action: str) -> TransitionRule:
        """
        Return the first rule for `action` the actor satisfies.

        Raises UnknownActionError if the stage defines no such action, WrongDepartmentError
        if no candidate rule is acted on from the actor's department, and WrongRoleError if
        a department matches but role or job level does not.
        """
        rules = self.graph(record.kind).legal_transitions(record.current_stage)
        candidates = [r for r in rules if r.action == action]
        if not candidates:
            raise UnknownActionError(
                f"Action '{action}' is not defined for {record.kind.value} "
                f"{record.record_id} in stage '{record.current_stage.value}'",
                record=record,
            )
        for rule in candidates:
            if rule.permits(actor, record):
                return rule
        same_department = [r for r in candidates if r.acting_department(record) == actor.department]
        if not same_department:
            raise WrongDepartmentError(
                f"{record.kind.value.capitalize()} {record.record_id} is currently with "
                f"{record.custodian.department.value}; {actor.department.value} cannot '{action}' it",
                record=record,
            )
        raise WrongRoleError(
            f"Role {actor.role.value} ({actor.job_level.value}) may not '{action}' "
            f"{record.kind.value} {record.record_id} in stage '{record.current_stage.value}'",
            record=record,
        )

    def legal_actions(self, actor: Actor, record: Record) -> List[str]:
        """Actions the actor may invoke right now, de-duplicated, in graph order."""
        actions: List[str] = []
        for rule in self.graph(record.kind).legal_transitions(record.current_stage):
            if rule.action not in actions and rule.permits(actor, record):
                actions.append(rule.action)
        return actions
