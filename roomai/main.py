import asyncio
import contextlib
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from roomai.api.routes import designs, health, rooms
from roomai.config import settings
from roomai.database import dispose_engine, get_session_factory
from roomai.errors import AppError
from roomai.logging import configure_logging
from roomai.providers.adapter import GenerationProviderAdapter
from roomai.services.generation_job import DesignGenerationJob
from roomai.services.sweeper import run_periodic_sweep, sweep_stale_designs

configure_logging()

logger = structlog.get_logger()

SHUTDOWN_DRAIN_SECONDS = 10.0


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Own the generation job and the stale-design sweep for the process lifetime."""
    session_factory = get_session_factory()
    job = DesignGenerationJob(session_factory, GenerationProviderAdapter())
    app.state.generation_job = job

    sweep_task: asyncio.Task[None] | None = None
    if settings.sweep_interval_seconds > 0:
        sweep_task = asyncio.create_task(
            run_periodic_sweep(session_factory, settings.sweep_interval_seconds),
            name="stale-design-sweep",
        )
    else:
        try:
            await sweep_stale_designs(session_factory)
        except Exception:
            logger.exception("stale_design_sweep_failed")

    logger.info(
        "app_started",
        environment=settings.environment,
        mock_providers=settings.use_mock_providers,
        default_provider=settings.default_ai_provider,
    )
    try:
        yield
    finally:
        await job.drain(timeout=SHUTDOWN_DRAIN_SECONDS)
        if sweep_task is not None:
            sweep_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweep_task
        await dispose_engine()
        logger.info("app_stopped")


app = FastAPI(
    title="RoomAI API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url=None,
    lifespan=lifespan,
)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", request.headers.get("X-Request-ID", ""))


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Attach a unique request ID to every request for log correlation.

    Sets the ID in structlog context vars (appears in all log entries for the
    request, including the generation task spawned by it) and returns it in
    the X-Request-ID response header.
    """
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Typed service errors -> ErrorResponse JSON with the error's status code."""
    if exc.status_code >= 500:
        logger.error("app_error", path=request.url.path, error=exc.error, message=exc.message)
    response = JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error, "message": exc.message, "retryable": exc.retryable},
    )
    response.headers["X-Request-ID"] = _request_id(request)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Return ErrorResponse JSON for Pydantic validation errors.

    FastAPI's default 422 returns {"detail": [...]}, which doesn't match
    the ErrorResponse contract clients parse.
    """
    messages = []
    for err in exc.errors():
        loc = " → ".join(str(part) for part in err["loc"])
        messages.append(f"{loc}: {err['msg']}")
    response = JSONResponse(
        status_code=422,
        content={
            "error": "validation_error",
            "message": "; ".join(messages),
            "retryable": False,
        },
    )
    response.headers["X-Request-ID"] = _request_id(request)
    return response


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return consistent ErrorResponse JSON for unhandled exceptions."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    response = JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred",
            "retryable": True,
        },
    )
    response.headers["X-Request-ID"] = _request_id(request)
    return response


app.include_router(health.router)
app.include_router(designs.router, prefix="/api/v1")
app.include_router(rooms.router, prefix="/api/v1")
