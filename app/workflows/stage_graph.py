"""
Static stage graphs for the three record kinds.

Each stage declares its legal custodian departments and the outgoing transition rules.
Adding a stage or a role is a data change here; the guard and executor read this table
and contain no per-kind branching. Graphs validate themselves at import.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple, Type

from app.domain.models.actor import Actor, Department, JobLevel, Role
from app.domain.models.record import AuditAction, Record
from app.domain.models.stages import (
    STAGE_TYPES,
    ApplicationStage,
    DocumentStage,
    RecordKind,
    Stage,
    VoucherStage,
)
from app.workflows.payloads import ActionPayload, AssessmentPayload, RoutingPayload


class CustodianTarget(str, Enum):
    """How a rule picks the custodian after the transition."""

    FIXED = "fixed"  # rule.target_department
    SAME = "same"  # stays with the current custodian
    ROUTED = "routed"  # payload.to_department
    ORIGIN = "origin"  # attributes["originating_department"]


ALL_DEPARTMENTS: FrozenSet[Department] = frozenset(Department)
ALL_ROLES: FrozenSet[Role] = frozenset(Role)


@dataclass(frozen=True)
class TransitionRule:
    """
    One labeled edge of a stage graph.
    The guard passes when the actor's role (and job level, if constrained) is allowed and
    the actor belongs to the acting department: `required_department` when set,
    otherwise the record's current custodian department.
    """

    action: str
    audit_action: AuditAction
    allowed_roles: FrozenSet[Role]
    target_stage: Stage
    target_department: Optional[Department] = None
    custodian_target: CustodianTarget = CustodianTarget.FIXED
    required_department: Optional[Department] = None
    allowed_job_levels: Optional[FrozenSet[JobLevel]] = None
    payload_model: Type[ActionPayload] = ActionPayload
    effects: Tuple[Tuple[str, Any], ...] = ()
    seals: FrozenSet[str] = frozenset()

    def acting_department(self, record: Record) -> Department:
        return self.required_department or record.custodian.department

    def permits_role(self, actor: Actor) -> bool:
        if actor.role not in self.allowed_roles:
            return False
        return self.allowed_job_levels is None or actor.job_level in self.allowed_job_levels

    def permits(self, actor: Actor, record: Record) -> bool:
        return actor.department == self.acting_department(record) and self.permits_role(actor)


@dataclass(frozen=True)
class StageSpec:
    stage: Stage
    custodians: FrozenSet[Department]
    rules: Tuple[TransitionRule, ...] = ()

    @property
    def terminal(self) -> bool:
        return not self.rules


@dataclass(frozen=True)
class StageGraph:
    """Finite stage graph for one record kind. Read-only; safe for concurrent reads."""

    kind: RecordKind
    initial_stage: Stage
    stages: Mapping[Stage, StageSpec] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "stages", MappingProxyType(dict(self.stages)))
        _validate_graph(self)

    def spec(self, stage: Stage) -> StageSpec:
        try:
            return self.stages[stage]
        except KeyError:
            raise ValueError(f"Stage {stage!r} is not part of the {self.kind.value} graph") from None

    def legal_transitions(self, stage: Stage) -> Tuple[TransitionRule, ...]:
        return self.spec(stage).rules

    def custodians_for(self, stage: Stage) -> FrozenSet[Department]:
        return self.spec(stage).custodians

    def is_terminal(self, stage: Stage) -> bool:
        return self.spec(stage).terminal

    @property
    def terminal_stages(self) -> FrozenSet[Stage]:
        return frozenset(s for s, spec in self.stages.items() if spec.terminal)


def _validate_graph(graph: StageGraph) -> None:
    """Structural checks run once at import. Raises ValueError on a malformed table."""
    stage_type = STAGE_TYPES[graph.kind]
    if graph.initial_stage not in graph.stages:
        raise ValueError(f"{graph.kind.value}: initial stage {graph.initial_stage!r} not declared")
    for stage, spec in graph.stages.items():
        if not isinstance(stage, stage_type) or spec.stage != stage:
            raise ValueError(f"{graph.kind.value}: stage key {stage!r} does not match its spec")
        if not spec.custodians:
            raise ValueError(f"{graph.kind.value}: stage {stage.value} has no legal custodian")
        for rule in spec.rules:
            if rule.target_stage not in graph.stages:
                raise ValueError(
                    f"{graph.kind.value}: {stage.value} --{rule.action}--> unknown stage {rule.target_stage!r}"
                )
            target_custodians = graph.stages[rule.target_stage].custodians
            if rule.custodian_target == CustodianTarget.FIXED:
                if rule.target_department not in target_custodians:
                    raise ValueError(
                        f"{graph.kind.value}: {rule.action} targets {rule.target_department!r}, "
                        f"not a custodian of {rule.target_stage.value}"
                    )
            if rule.custodian_target == CustodianTarget.SAME and not spec.custodians <= target_custodians:
                raise ValueError(
                    f"{graph.kind.value}: {rule.action} keeps custodian but {rule.target_stage.value} "
                    f"does not accept every custodian of {stage.value}"
                )
            if rule.custodian_target == CustodianTarget.ROUTED and not issubclass(
                rule.payload_model, RoutingPayload
            ):
                raise ValueError(f"{graph.kind.value}: routed rule {rule.action} needs a routing payload")
            if not rule.allowed_roles:
                raise ValueError(f"{graph.kind.value}: rule {rule.action} allows no role")


def _build(kind: RecordKind, initial: Stage, specs: Iterable[StageSpec]) -> StageGraph:
    return StageGraph(kind=kind, initial_stage=initial, stages={s.stage: s for s in specs})


_EXECUTIVE = frozenset({JobLevel.EXECUTIVE})

# ---------------------------------------------------------------------------
# Application (business permit)
# ---------------------------------------------------------------------------

_APP_INTAKE_ROLES = frozenset({Role.CLERK, Role.STAFF, Role.ADMIN_CLERK})
_APP_INSPECTORS = frozenset({Role.ENGINEERING, Role.EVALUATOR})
_TREASURERS = frozenset({Role.TREASURER})
_MAYOR = frozenset({Role.MAYOR})


def _application_reject(roles: FrozenSet[Role]) -> TransitionRule:
    return TransitionRule(
        action="reject",
        audit_action=AuditAction.REJECTED,
        allowed_roles=roles,
        target_stage=ApplicationStage.REJECTED,
        target_department=Department.RECEIVING,
    )


# Executive override: the Mayor may reject from any pre-approval stage without the
# record being routed to the Mayor's Office first.
_MAYOR_REJECT = TransitionRule(
    action="reject",
    audit_action=AuditAction.REJECTED,
    allowed_roles=_MAYOR,
    allowed_job_levels=_EXECUTIVE,
    required_department=Department.MAYORS_OFFICE,
    target_stage=ApplicationStage.REJECTED,
    target_department=Department.RECEIVING,
)

APPLICATION_GRAPH = _build(
    RecordKind.APPLICATION,
    ApplicationStage.SUBMITTED,
    [
        StageSpec(
            ApplicationStage.SUBMITTED,
            frozenset({Department.BPLO}),
            (
                TransitionRule(
                    action="verify_and_forward",
                    audit_action=AuditAction.FORWARDED,
                    allowed_roles=_APP_INTAKE_ROLES,
                    target_stage=ApplicationStage.FOR_INSPECTION,
                    target_department=Department.ENGINEERING,
                ),
                TransitionRule(
                    action="return_for_revision",
                    audit_action=AuditAction.RETURNED,
                    allowed_roles=_APP_INTAKE_ROLES,
                    target_stage=ApplicationStage.RETURNED,
                    target_department=Department.RECEIVING,
                ),
                _application_reject(_APP_INTAKE_ROLES | {Role.DEPT_HEAD, Role.HEAD}),
                _MAYOR_REJECT,
            ),
        ),
        StageSpec(
            ApplicationStage.FOR_INSPECTION,
            frozenset({Department.ENGINEERING}),
            (
                TransitionRule(
                    action="inspection_approved",
                    audit_action=AuditAction.FORWARDED,
                    allowed_roles=_APP_INSPECTORS,
                    target_stage=ApplicationStage.FOR_ASSESSMENT,
                    target_department=Department.TREASURY,
                ),
                TransitionRule(
                    action="mark_non_compliant",
                    audit_action=AuditAction.RETURNED,
                    allowed_roles=_APP_INSPECTORS,
                    target_stage=ApplicationStage.RETURNED,
                    target_department=Department.RECEIVING,
                ),
                _application_reject(_APP_INSPECTORS | {Role.DEPT_HEAD}),
                _MAYOR_REJECT,
            ),
        ),
        StageSpec(
            ApplicationStage.FOR_ASSESSMENT,
            frozenset({Department.TREASURY}),
            (
                TransitionRule(
                    action="submit_assessment",
                    audit_action=AuditAction.ASSESSED,
                    allowed_roles=_TREASURERS,
                    target_stage=ApplicationStage.FOR_PAYMENT,
                    target_department=Department.TREASURY,
                    payload_model=AssessmentPayload,
                ),
                _application_reject(_TREASURERS),
                _MAYOR_REJECT,
            ),
        ),
        StageSpec(
            ApplicationStage.FOR_PAYMENT,
            frozenset({Department.TREASURY}),
            (
                TransitionRule(
                    action="confirm_payment",
                    audit_action=AuditAction.FORWARDED,
                    allowed_roles=_TREASURERS,
                    target_stage=ApplicationStage.FOR_APPROVAL,
                    target_department=Department.MAYORS_OFFICE,
                    effects=(("payment_status", "Paid"),),
                    seals=frozenset({"assessed_amount", "payment_status"}),
                ),
                _application_reject(_TREASURERS),
                _MAYOR_REJECT,
            ),
        ),
        StageSpec(
            ApplicationStage.FOR_APPROVAL,
            frozenset({Department.MAYORS_OFFICE}),
            (
                TransitionRule(
                    action="sign_and_approve",
                    audit_action=AuditAction.SIGNED,
                    allowed_roles=_MAYOR,
                    allowed_job_levels=_EXECUTIVE,
                    target_stage=ApplicationStage.APPROVED,
                    target_department=Department.RECORDS,
                ),
                TransitionRule(
                    action="reject",
                    audit_action=AuditAction.REJECTED,
                    allowed_roles=_MAYOR,
                    allowed_job_levels=_EXECUTIVE,
                    target_stage=ApplicationStage.REJECTED,
                    target_department=Department.RECEIVING,
                ),
            ),
        ),
        StageSpec(
            ApplicationStage.APPROVED,
            frozenset({Department.RECORDS}),
            (
                TransitionRule(
                    action="mark_released",
                    audit_action=AuditAction.RELEASED,
                    allowed_roles=frozenset({Role.RELEASE_OFFICER, Role.RECORDS_OFFICER}),
                    target_stage=ApplicationStage.RELEASED,
                    target_department=Department.RECORDS,
                ),
            ),
        ),
        StageSpec(ApplicationStage.RELEASED, frozenset({Department.RECORDS})),
        StageSpec(ApplicationStage.RETURNED, frozenset({Department.RECEIVING})),
        StageSpec(ApplicationStage.REJECTED, frozenset({Department.RECEIVING})),
    ],
)

# ---------------------------------------------------------------------------
# Document (internal routing)
# ---------------------------------------------------------------------------

_STAFF_LEVELS = frozenset(
    {JobLevel.CLERK, JobLevel.OFFICER, JobLevel.DIVISION_CHIEF, JobLevel.DEPT_HEAD}
)
_REVIEWER_LEVELS = frozenset({JobLevel.DEPT_HEAD, JobLevel.DIVISION_CHIEF})
_ENDORSER_LEVELS = frozenset({JobLevel.DEPT_HEAD, JobLevel.DIVISION_CHIEF, JobLevel.OFFICER})
_SIGNATORIES = frozenset({Role.MAYOR, Role.VICE_MAYOR})
_EXECUTIVE_OFFICES = frozenset({Department.MAYORS_OFFICE, Department.VICE_MAYORS_OFFICE})


def _document_exits(roles: FrozenSet[Role], levels: FrozenSet[JobLevel]) -> Tuple[TransitionRule, ...]:
    return (
        TransitionRule(
            action="return_to_origin",
            audit_action=AuditAction.RETURNED,
            allowed_roles=roles,
            allowed_job_levels=levels,
            target_stage=DocumentStage.RETURNED,
            custodian_target=CustodianTarget.ORIGIN,
        ),
        TransitionRule(
            action="reject",
            audit_action=AuditAction.REJECTED,
            allowed_roles=roles,
            allowed_job_levels=levels,
            target_stage=DocumentStage.REJECTED,
            target_department=Department.RECORDS,
        ),
    )


def _document_archive(roles: FrozenSet[Role], levels: Optional[FrozenSet[JobLevel]]) -> TransitionRule:
    return TransitionRule(
        action="archive",
        audit_action=AuditAction.ARCHIVED,
        allowed_roles=roles,
        allowed_job_levels=levels,
        target_stage=DocumentStage.ARCHIVED,
        target_department=Department.RECORDS,
    )


DOCUMENT_GRAPH = _build(
    RecordKind.DOCUMENT,
    DocumentStage.RECEIVED,
    [
        StageSpec(
            DocumentStage.RECEIVED,
            ALL_DEPARTMENTS,
            (
                TransitionRule(
                    action="route",
                    audit_action=AuditAction.FORWARDED,
                    allowed_roles=ALL_ROLES,
                    allowed_job_levels=_STAFF_LEVELS,
                    target_stage=DocumentStage.ROUTED,
                    custodian_target=CustodianTarget.ROUTED,
                    payload_model=RoutingPayload,
                ),
            ),
        ),
        StageSpec(
            DocumentStage.ROUTED,
            ALL_DEPARTMENTS,
            (
                TransitionRule(
                    action="accept_for_review",
                    audit_action=AuditAction.FORWARDED,
                    allowed_roles=ALL_ROLES,
                    allowed_job_levels=_STAFF_LEVELS,
                    target_stage=DocumentStage.UNDER_REVIEW,
                    custodian_target=CustodianTarget.SAME,
                ),
            ),
        ),
        StageSpec(
            DocumentStage.UNDER_REVIEW,
            ALL_DEPARTMENTS,
            (
                # Endorsement chain: may revisit Under Review any number of times.
                TransitionRule(
                    action="forward_for_evaluation",
                    audit_action=AuditAction.FORWARDED,
                    allowed_roles=ALL_ROLES,
                    allowed_job_levels=_REVIEWER_LEVELS,
                    target_stage=DocumentStage.UNDER_REVIEW,
                    custodian_target=CustodianTarget.ROUTED,
                    payload_model=RoutingPayload,
                ),
                TransitionRule(
                    action="endorse_for_approval",
                    audit_action=AuditAction.FORWARDED,
                    allowed_roles=ALL_ROLES,
                    allowed_job_levels=_ENDORSER_LEVELS,
                    target_stage=DocumentStage.FOR_APPROVAL,
                    custodian_target=CustodianTarget.ROUTED,
                    payload_model=RoutingPayload,
                ),
            )
            + _document_exits(ALL_ROLES, _REVIEWER_LEVELS),
        ),
        StageSpec(
            DocumentStage.FOR_APPROVAL,
            _EXECUTIVE_OFFICES,
            (
                TransitionRule(
                    action="sign_and_approve",
                    audit_action=AuditAction.SIGNED,
                    allowed_roles=_SIGNATORIES,
                    allowed_job_levels=_EXECUTIVE,
                    target_stage=DocumentStage.APPROVED,
                    target_department=Department.RECORDS,
                ),
            )
            + _document_exits(_SIGNATORIES, _EXECUTIVE),
        ),
        StageSpec(
            DocumentStage.APPROVED,
            frozenset({Department.RECORDS}),
            (_document_archive(frozenset({Role.RECORDS_OFFICER}), None),),
        ),
        StageSpec(
            DocumentStage.REJECTED,
            frozenset({Department.RECORDS}),
            (_document_archive(frozenset({Role.RECORDS_OFFICER}), None),),
        ),
        StageSpec(
            DocumentStage.RETURNED,
            ALL_DEPARTMENTS,
            (_document_archive(ALL_ROLES, _STAFF_LEVELS),),
        ),
        StageSpec(DocumentStage.ARCHIVED, frozenset({Department.RECORDS})),
    ],
)

# ---------------------------------------------------------------------------
# Voucher (financial). Strictly linear; Returned is terminal.
# ---------------------------------------------------------------------------

_VOUCHER_RETURN_EFFECTS = (("status", "Returned"),)


def _voucher_stage(
    stage: VoucherStage,
    custodians: FrozenSet[Department],
    forward: TransitionRule,
) -> StageSpec:
    returned = TransitionRule(
        action="return",
        audit_action=AuditAction.RETURNED,
        allowed_roles=forward.allowed_roles,
        allowed_job_levels=forward.allowed_job_levels,
        target_stage=VoucherStage.RETURNED,
        custodian_target=CustodianTarget.ORIGIN,
        effects=_VOUCHER_RETURN_EFFECTS,
    )
    return StageSpec(stage, custodians, (forward, returned))


VOUCHER_GRAPH = _build(
    RecordKind.VOUCHER,
    VoucherStage.PREPARATION,
    [
        _voucher_stage(
            VoucherStage.PREPARATION,
            ALL_DEPARTMENTS,
            TransitionRule(
                action="submit_for_review",
                audit_action=AuditAction.SIGNED,
                allowed_roles=ALL_ROLES,
                allowed_job_levels=_STAFF_LEVELS,
                target_stage=VoucherStage.BUDGET_REVIEW,
                target_department=Department.BUDGET,
            ),
        ),
        _voucher_stage(
            VoucherStage.BUDGET_REVIEW,
            frozenset({Department.BUDGET}),
            TransitionRule(
                action="certify_budget",
                audit_action=AuditAction.SIGNED,
                allowed_roles=frozenset({Role.BUDGET_OFFICER}),
                target_stage=VoucherStage.ACCOUNTING_AUDIT,
                target_department=Department.ACCOUNTING,
                seals=frozenset({"amount"}),
            ),
        ),
        _voucher_stage(
            VoucherStage.ACCOUNTING_AUDIT,
            frozenset({Department.ACCOUNTING}),
            TransitionRule(
                action="audit",
                audit_action=AuditAction.SIGNED,
                allowed_roles=frozenset({Role.ACCOUNTANT}),
                target_stage=VoucherStage.MAYOR_APPROVAL,
                target_department=Department.MAYORS_OFFICE,
            ),
        ),
        _voucher_stage(
            VoucherStage.MAYOR_APPROVAL,
            frozenset({Department.MAYORS_OFFICE}),
            TransitionRule(
                action="approve",
                audit_action=AuditAction.SIGNED,
                allowed_roles=_MAYOR,
                allowed_job_levels=_EXECUTIVE,
                target_stage=VoucherStage.TREASURY_RELEASE,
                target_department=Department.TREASURY,
            ),
        ),
        _voucher_stage(
            VoucherStage.TREASURY_RELEASE,
            frozenset({Department.TREASURY}),
            TransitionRule(
                action="release",
                audit_action=AuditAction.RELEASED,
                allowed_roles=_TREASURERS,
                target_stage=VoucherStage.RELEASED,
                target_department=Department.TREASURY,
                effects=(("status", "Approved"),),
            ),
        ),
        StageSpec(VoucherStage.RELEASED, frozenset({Department.TREASURY})),
        StageSpec(VoucherStage.RETURNED, ALL_DEPARTMENTS),
    ],
)

STAGE_GRAPHS: Mapping[RecordKind, StageGraph] = MappingProxyType(
    {
        RecordKind.APPLICATION: APPLICATION_GRAPH,
        RecordKind.DOCUMENT: DOCUMENT_GRAPH,
        RecordKind.VOUCHER: VOUCHER_GRAPH,
    }
)


def graph_for(kind: RecordKind) -> StageGraph:
    return STAGE_GRAPHS[kind]


def legal_transitions(kind: RecordKind, stage: Stage) -> Tuple[TransitionRule, ...]:
    """Outgoing rules for a stage. Pure; empty exactly for terminal stages."""
    return STAGE_GRAPHS[kind].legal_transitions(stage)


def action_names(kind: RecordKind) -> Dict[str, Tuple[Stage, ...]]:
    """Every action name of a kind mapped to the stages that offer it, in graph order."""
    names: Dict[str, Tuple[Stage, ...]] = {}
    for stage, spec in STAGE_GRAPHS[kind].stages.items():
        for rule in spec.rules:
            existing = names.get(rule.action, ())
            if stage not in existing:
                names[rule.action] = existing + (stage,)
    return names
