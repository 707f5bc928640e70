"""FastAPI application factory with lifespan management."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from realmtick.api.dependencies import set_engine_manager
from realmtick.api.engine_manager import EngineManager
from realmtick.api.routes import api_router
from realmtick.config import TickConfig
from realmtick.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def create_app(config: TickConfig | None = None, manager: EngineManager | None = None) -> FastAPI:
    """Build and return the fully-configured FastAPI application.

    A pre-built ``manager`` may be supplied (tests hand in one bound to an
    in-memory store); otherwise one is created from ``config`` at startup.
    """
    if config is None:
        config = manager.config if manager is not None else TickConfig()

    _config = config

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        setup_logging(_config.log_level)
        active = manager if manager is not None else EngineManager(_config)
        set_engine_manager(active)
        active.start()
        logger.info("API server started — daily scheduler %s.",
                    "enabled" if _config.scheduler_enabled else "disabled")
        yield
        active.stop()
        set_engine_manager(None)
        logger.info("API server shutting down.")

    app = FastAPI(
        title="RealmTick World Engine",
        description=(
            "Daily world-advancement engine for a persistent multiplayer realm.\n\n"
            "## API Groups\n\n"
            "- **Control** — Manual tick trigger and tick health\n"
            "- **Actions** — Collect finished gathering/crafting actions\n"
            "- **Travel** — Route lookup over the location graph\n"
            "- **Events** — Recently emitted engine notifications\n"
        ),
        version="0.1.0",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "Control", "description": "Operator controls: run the daily sequence now, check whether ticks are stale."},
            {"name": "Actions", "description": "Atomic collection of completed timed actions. Each action can be collected exactly once."},
            {"name": "Travel", "description": "Shortest gate-to-gate routes between towns."},
            {"name": "Events", "description": "Ring buffer of notifications emitted during ticks and collections."},
        ],
    )

    # CORS: allow any origin in dev
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    return app
