"""FastAPI application factory for the Aurora admission gate."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request, Response

from aurora.config import GateSettings, load_settings
from aurora.domain.gate import SessionGate
from aurora.domain.rate_limit import RateWindowSweeper
from aurora.observability.correlation import CORRELATION_ID_HEADER, correlation_scope
from aurora.observability.logging import get_logger
from aurora.observability.redaction import safe_log_context

from .routes import public, reservations, webhooks_wassenger

logger = get_logger(__name__)


def create_app(
    gate: SessionGate | None = None,
    settings: GateSettings | None = None,
) -> FastAPI:
    """Create FastAPI app around one SessionGate.

    Args:
        gate: Pre-built gate (tests inject isolated instances).
        settings: Gate settings; read from AURORA_* env vars when None.
            Ignored if `gate` is given.

    Returns:
        Configured FastAPI application.
    """
    if gate is None:
        gate = SessionGate(settings or load_settings())
    gate_settings = gate.settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        sweeper = None
        if gate_settings.sweep_interval_seconds > 0:
            sweeper = RateWindowSweeper(
                gate.rate_limiter,
                interval_seconds=gate_settings.sweep_interval_seconds,
                max_age=timedelta(seconds=gate_settings.stale_window_seconds),
            )
            sweeper.start()
            logger.info(
                "rate window sweeper started",
                extra={
                    "extra_fields": safe_log_context(
                        interval_seconds=gate_settings.sweep_interval_seconds
                    )
                },
            )
        try:
            yield
        finally:
            if sweeper is not None:
                sweeper.stop(timeout=5)

    app = FastAPI(
        title="Aurora",
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.gate = gate

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        with correlation_scope(request.headers.get(CORRELATION_ID_HEADER)) as cid:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = cid
            return response

    app.include_router(public.router)
    app.include_router(webhooks_wassenger.router)
    app.include_router(reservations.router)

    return app
