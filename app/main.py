# app/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from app.api.dependencies import shutdown_services
from app.api.middleware import (
    ActorContextMiddleware,
    CorrelationIdMiddleware,
    RequestAuditMiddleware,
)
from app.api.routers import health, records
from app.application.exceptions import ApplicationError
from app.config.logging import configure_logging
from app.config.settings import get_settings
from app.domain.exceptions import WorkflowError, WorkflowErrorCode
from app.domain.schemas.record import RecordResponse
from app.infrastructure.database.session import dispose_engine
from app.security.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

settings = get_settings()
configure_logging(settings.log_level)

STATUS_BY_CODE = {
    WorkflowErrorCode.NOT_FOUND: 404,
    WorkflowErrorCode.UNKNOWN_ACTION: 400,
    WorkflowErrorCode.WRONG_DEPARTMENT: 403,
    WorkflowErrorCode.WRONG_ROLE: 403,
    WorkflowErrorCode.INVALID_PAYLOAD: 422,
    WorkflowErrorCode.STALE_STATE: 409,
    WorkflowErrorCode.STORAGE_ERROR: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await shutdown_services()
    await dispose_engine()


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    debug=settings.debug,
    lifespan=lifespan,
)

# Middleware order: last added runs first (outermost). Request flow: CorrelationId -> ActorContext -> RequestAudit.
app.add_middleware(RequestAuditMiddleware)
app.add_middleware(ActorContextMiddleware)
app.add_middleware(CorrelationIdMiddleware)


@app.exception_handler(WorkflowError)
async def workflow_error_handler(request, exc: WorkflowError):
    content = {"detail": exc.message, "code": exc.code.value}
    if exc.record is not None:
        content["record"] = RecordResponse.from_record(exc.record).model_dump(mode="json")
    return JSONResponse(status_code=STATUS_BY_CODE.get(exc.code, 400), content=content)


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request, exc: AuthenticationError):
    return JSONResponse(status_code=401, content={"detail": exc.message})


@app.exception_handler(ApplicationError)
async def application_error_handler(request, exc: ApplicationError):
    return JSONResponse(status_code=500, content={"detail": exc.message})


@app.exception_handler(Exception)
async def unexpected_error_handler(request, exc: Exception):
    logger.exception("unhandled_error", extra={"path": request.url.path})
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


# Routers: /health, /metrics, /records
app.include_router(health.router)
app.include_router(records.router, prefix="/records")
