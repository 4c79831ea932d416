"""FastAPI application factory with CORS and lifespan management."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import date, timedelta
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hitrate.api.deps import app_state
from hitrate.config import load_config
from hitrate.performance import PerformanceService
from hitrate.registry.db import Database
from hitrate.registry.queries import Registry
from hitrate.settlement.settler import OutcomeSettler

logger = logging.getLogger(__name__)


async def _daily_settlement_loop(settler: OutcomeSettler) -> None:
    """Background task: settle yesterday's predictions at startup and then every 24h."""
    while True:
        day = date.today() - timedelta(days=1)
        try:
            result = await asyncio.to_thread(settler.settle, day)
            if result.settled:
                logger.info("Daily settlement: settled %d predictions", len(result.settled))
        except Exception:
            logger.exception("Daily settlement for %s failed", day)
        await asyncio.sleep(86400)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage startup/shutdown of the DB and dependent services."""
    config = load_config()

    db = Database(config.db_dsn)
    db.connect()
    registry = Registry(db)

    performance = PerformanceService.from_config(registry, config)
    settler = OutcomeSettler(registry, performance, delay_seconds=config.settle_delay_seconds)

    app_state.config = config
    app_state.db = db
    app_state.registry = registry
    app_state.performance = performance
    app_state.settler = settler

    settlement_task = asyncio.create_task(_daily_settlement_loop(settler))
    logger.info("API started, DB and settlement task ready")
    yield

    settlement_task.cancel()
    db.close()
    logger.info("API shutdown complete")


def create_app(*, use_lifespan: bool = True, cors_origins: list[str] | None = None) -> FastAPI:
    """Build and return the FastAPI application.

    Args:
        use_lifespan: If False, skip the production lifespan (useful for testing
            where deps are injected via app_state directly).
        cors_origins: Frontends allowed to call the API.
    """
    app = FastAPI(
        title="Hitrate API",
        version="0.1.0",
        lifespan=lifespan if use_lifespan else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins or ["http://localhost:5173", "http://localhost:4173"],
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    from hitrate.api.routes import performance, predictions, settlement, system

    prefix = "/api/hitrate"
    app.include_router(predictions.router, prefix=prefix, tags=["predictions"])
    app.include_router(performance.router, prefix=prefix, tags=["performance"])
    app.include_router(settlement.router, prefix=prefix, tags=["settlement"])
    app.include_router(system.router, prefix=prefix, tags=["system"])

    return app
