"""ASGI application for the Crusade ledger."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from crusade.api import routes
from crusade.api.runtime import ApiState, build_state
from crusade.config import get_settings

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


async def _corrupt_snapshot(request: Request, exc: Exception) -> JSONResponse:
    logger.error("snapshot behind %s failed validation: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": "stored campaign snapshot is invalid"},
    )


def create_app(*, state_factory: Callable[[], ApiState] = build_state) -> FastAPI:
    """Build the Crusade API around the state returned by ``state_factory``."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state = state_factory()
        app.state.api_state = state
        logger.info(
            "serving campaigns from %s with %s rules",
            state.settings.data_dir,
            state.rules.edition,
        )
        try:
            yield
        finally:
            await state.shutdown()

    app = FastAPI(
        title="Crusade Ledger",
        description="Campaign progression for Crusade narrative play",
        version=API_VERSION,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_settings().cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ValidationError, _corrupt_snapshot)
    app.include_router(routes.router)
    return app


app = create_app()
