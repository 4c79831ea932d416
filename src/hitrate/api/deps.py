"""Dependency injection for the FastAPI application."""

from __future__ import annotations

from hitrate.config import AppConfig
from hitrate.performance import PerformanceService
from hitrate.registry.db import Database
from hitrate.registry.queries import Registry
from hitrate.settlement.settler import OutcomeSettler


class AppState:
    """Holds shared application state initialised during lifespan."""

    def __init__(self) -> None:
        self.config: AppConfig | None = None
        self.db: Database | None = None
        self.registry: Registry | None = None
        self.performance: PerformanceService | None = None
        self.settler: OutcomeSettler | None = None


# Singleton shared across the app
app_state = AppState()


def get_registry() -> Registry:
    if app_state.registry is None:
        raise RuntimeError("Registry not initialised")
    return app_state.registry


def get_performance() -> PerformanceService:
    if app_state.performance is None:
        raise RuntimeError("PerformanceService not initialised")
    return app_state.performance


def get_settler() -> OutcomeSettler:
    if app_state.settler is None:
        raise RuntimeError("OutcomeSettler not initialised")
    return app_state.settler
