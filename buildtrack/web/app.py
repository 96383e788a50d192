"""FastAPI application for BuildTrack."""

from __future__ import annotations

from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from buildtrack.core.logging import configure_logging
from buildtrack.errors import (
    Conflict,
    EmptyScheduleInput,
    InvalidPhaseReference,
    InvariantViolation,
)
from buildtrack.web.routes import engine, projects

# Initialize structured logging
configure_logging()
logger = structlog.get_logger()

app = FastAPI(
    title="BuildTrack",
    description="Construction progress roll-up and line-of-balance scheduling",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)


# Request Logging Middleware
class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        structlog.contextvars.clear_contextvars()

        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        structlog.contextvars.bind_contextvars(request_id=request_id)

        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
        )

        try:
            response = await call_next(request)

            logger.info(
                "request_completed",
                status_code=response.status_code,
            )
            return response

        except Exception as exc:
            logger.error("request_failed", error=str(exc))
            raise


app.add_middleware(RequestLoggingMiddleware)


# Exception Handlers
@app.exception_handler(InvalidPhaseReference)
async def invalid_phase_handler(request: Request, exc: InvalidPhaseReference):
    return JSONResponse(
        status_code=404,
        content={"detail": str(exc), "phase_id": exc.phase_id},
    )


@app.exception_handler(InvariantViolation)
async def invariant_violation_handler(request: Request, exc: InvariantViolation):
    return JSONResponse(
        status_code=422,
        content={
            "detail": str(exc),
            "violations": [v.model_dump() for v in exc.violations],
        },
    )


@app.exception_handler(EmptyScheduleInput)
async def empty_schedule_handler(request: Request, exc: EmptyScheduleInput):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(Conflict)
async def conflict_handler(request: Request, exc: Conflict):
    logger.warning(
        "progress_conflict",
        unit_id=exc.unit_id,
        phase_id=exc.phase_id,
        expected=exc.expected,
        actual=exc.actual,
    )
    return JSONResponse(
        status_code=409,
        content={"detail": str(exc), "expected": exc.expected, "actual": exc.actual},
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


# Include Routers
app.include_router(engine.router)
app.include_router(projects.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
