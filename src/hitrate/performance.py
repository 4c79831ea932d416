"""Registry-backed performance service.

Fetches predictions and outcomes first, then hands them to the pure
EvaluationEngine. Shared by the CLI, the API and the settlement job.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

from hitrate.config import AppConfig
from hitrate.evaluation.engine import DayEvaluation, EvaluationEngine, RangeEvaluation
from hitrate.models.metrics import DailyMetrics
from hitrate.registry.queries import Registry

logger = logging.getLogger(__name__)


class PerformanceService:
    def __init__(
        self,
        registry: Registry,
        engine: EvaluationEngine,
        persist_metrics: bool = True,
        trend_days: int = 30,
    ) -> None:
        self._registry = registry
        self._engine = engine
        self._persist = persist_metrics
        self._trend_days = trend_days

    @classmethod
    def from_config(cls, registry: Registry, config: AppConfig) -> PerformanceService:
        return cls(
            registry,
            EvaluationEngine.from_config(config),
            persist_metrics=config.persist_metrics,
            trend_days=config.trend_days,
        )

    @property
    def trend_days(self) -> int:
        return self._trend_days

    def default_range(self, end: date | None = None) -> tuple[date, date]:
        """The last ``trend_days`` calendar days ending at ``end`` (default today)."""
        end = end or date.today()
        return end - timedelta(days=self._trend_days - 1), end

    def evaluate_day(self, day: date, persist: bool = True) -> DayEvaluation:
        """Evaluate ``day`` from stored records.

        The snapshot is stored only when ``persist`` is set and persistence
        is enabled; read-only callers pass ``persist=False``.
        """
        predictions = self._registry.get_predictions(day, day)
        outcomes = self._registry.get_outcomes(list(predictions))
        evaluation = self._engine.evaluate_day(day, predictions, outcomes)

        if evaluation.skipped:
            logger.warning(
                "%d predictions skipped on %s: %s",
                len(evaluation.skipped), day,
                ", ".join(s.prediction_id for s in evaluation.skipped),
            )
        if persist and self._persist and evaluation.metrics.total_predictions > 0:
            self._registry.save_daily_metrics(evaluation.metrics)
        return evaluation

    def evaluate_range(
        self, start: date, end: date, today: date | None = None,
    ) -> RangeEvaluation:
        if start > end:
            raise ValueError(f"start {start} is after end {end}")
        predictions = self._registry.get_predictions(start, end)
        outcomes = self._registry.get_outcomes(list(predictions))
        return self._engine.evaluate_range(start, end, predictions, outcomes, today=today)

    def latest_day(self) -> date | None:
        return self._registry.get_latest_metrics_date()

    def stored_metrics(self, start: date, end: date) -> list[DailyMetrics]:
        """Persisted snapshots in the range, ascending by date."""
        if start > end:
            raise ValueError(f"start {start} is after end {end}")
        stored = self._registry.get_daily_metrics(start, end)
        return [stored[d] for d in sorted(stored)]
