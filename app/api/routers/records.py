"""Records API router: intake, read, legal actions, transitions, history."""

from typing import Annotated, Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from app.api.dependencies import WorkflowServices, get_actor, get_services
from app.domain.models.actor import Actor
from app.domain.models.stages import RecordKind
from app.domain.schemas.record import (
    ActionRequest,
    AuditEntryResponse,
    LegalActionsResponse,
    RecordResponse,
)

router = APIRouter()


@router.post("/{kind}", response_model=RecordResponse, status_code=status.HTTP_201_CREATED)
async def open_record(
    kind: RecordKind,
    body: Annotated[Dict[str, Any], Body()],
    actor: Annotated[Actor, Depends(get_actor)],
    services: Annotated[WorkflowServices, Depends(get_services)],
):
    """Open a new record in its initial stage. Fields are validated by the intake schema for `kind`."""
    record = await services.intake.open(actor, kind, body)
    return RecordResponse.from_record(record)


@router.get("/{kind}", response_model=List[RecordResponse])
async def list_inbox(
    kind: RecordKind,
    actor: Annotated[Actor, Depends(get_actor)],
    services: Annotated[WorkflowServices, Depends(get_services)],
    mine: Annotated[bool, Query()] = False,
):
    """Work queue: records held by the caller's department that the caller can act on now."""
    records = await services.workflow(kind).inbox(actor, mine_only=mine)
    return [RecordResponse.from_record(r) for r in records]


@router.get("/{kind}/{record_id}", response_model=RecordResponse)
async def get_record(
    kind: RecordKind,
    record_id: str,
    actor: Annotated[Actor, Depends(get_actor)],
    services: Annotated[WorkflowServices, Depends(get_services)],
):
    record = await services.workflow(kind).get(record_id)
    return RecordResponse.from_record(record)


@router.get("/{kind}/{record_id}/actions", response_model=LegalActionsResponse)
async def list_actions(
    kind: RecordKind,
    record_id: str,
    actor: Annotated[Actor, Depends(get_actor)],
    services: Annotated[WorkflowServices, Depends(get_services)],
):
    """Actions the calling actor may invoke right now."""
    record, actions = await services.workflow(kind).available_actions(actor, record_id)
    return LegalActionsResponse(
        record_id=record.record_id,
        stage=record.current_stage.value,
        version=record.version,
        actions=actions,
    )


@router.post("/{kind}/{record_id}/actions/{action}", response_model=RecordResponse)
async def invoke_action(
    kind: RecordKind,
    record_id: str,
    action: str,
    actor: Annotated[Actor, Depends(get_actor)],
    services: Annotated[WorkflowServices, Depends(get_services)],
    body: Optional[ActionRequest] = None,
):
    payload = body.payload if body is not None else None
    expected_version = body.expected_version if body is not None else None
    record = await services.workflow(kind).invoke(
        actor, record_id, action, payload, expected_version=expected_version
    )
    return RecordResponse.from_record(record)


@router.get("/{kind}/{record_id}/history", response_model=List[AuditEntryResponse])
async def get_history(
    kind: RecordKind,
    record_id: str,
    actor: Annotated[Actor, Depends(get_actor)],
    services: Annotated[WorkflowServices, Depends(get_services)],
):
    history = await services.workflow(kind).history(record_id)
    return [AuditEntryResponse.from_entry(e) for e in history]
