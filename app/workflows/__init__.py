"""Workflow engine: stage graphs, authorization guard, transition executor, audit ledger."""

from app.workflows.engine import WorkflowEngine
from app.workflows.executor import TransitionExecutor
from app.workflows.guard import AuthorizationGuard
from app.workflows.ledger import AuditLedger
from app.workflows.stage_graph import STAGE_GRAPHS, StageGraph, TransitionRule, legal_transitions

__all__ = [
    "AuditLedger",
    "AuthorizationGuard",
    "STAGE_GRAPHS",
    "StageGraph",
    "TransitionExecutor",
    "TransitionRule",
    "WorkflowEngine",
    "legal_transitions",
]
