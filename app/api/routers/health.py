# app/api/routers/health.py

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from app.api.dependencies import WorkflowServices, get_services
from app.config.settings import get_settings

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    """Liveness with correlation ID from request state."""
    settings = get_settings()
    return {
        "status": "ok",
        "correlation_id": request.state.correlation_id,
        "environment": settings.environment,
        "version": settings.version,
        "repository_backend": settings.repository_backend,
        "lock_backend": settings.lock_backend,
    }


@router.get("/metrics")
async def metrics(services: Annotated[WorkflowServices, Depends(get_services)]):
    """Transition counters and latency summaries."""
    if services.metrics is None:
        return {"enabled": False}
    return {"enabled": True, **services.metrics.export_metrics()}
