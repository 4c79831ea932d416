"""Post-market settlement: record realized outcomes for a day's predictions."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date

from hitrate.models.metrics import DailyMetrics
from hitrate.models.prediction import Outcome
from hitrate.performance import PerformanceService
from hitrate.registry.queries import Registry
from hitrate.settlement.market_data import DailyBar, lookup_daily_bar

logger = logging.getLogger(__name__)

BarLookup = Callable[[str, date], DailyBar | None]


@dataclass
class SettlementResult:
    day: date
    settled: list[str] = field(default_factory=list)  # prediction ids
    missing_symbols: list[str] = field(default_factory=list)
    metrics: DailyMetrics | None = None


class OutcomeSettler:
    """Looks up each unsettled prediction's session bar and stores an Outcome.

    Direction correctness is left unset so the classifier derives it from
    the previous close. Symbols without a bar stay unresolved.
    """

    def __init__(
        self,
        registry: Registry,
        service: PerformanceService,
        lookup: BarLookup = lookup_daily_bar,
        delay_seconds: float = 0.1,
    ) -> None:
        self._registry = registry
        self._service = service
        self._lookup = lookup
        self._delay = delay_seconds

    def settle(self, day: date) -> SettlementResult:
        result = SettlementResult(day=day)
        pending = self._registry.get_unsettled_predictions(day)
        if not pending:
            logger.info("No unsettled predictions for %s", day)
            return result

        logger.info("Settling %d predictions for %s", len(pending), day)
        bars: dict[str, DailyBar | None] = {}
        outcomes: list[Outcome] = []

        for i, prediction in enumerate(pending):
            if prediction.symbol not in bars:
                if i > 0 and self._delay > 0:
                    time.sleep(self._delay)
                bars[prediction.symbol] = self._lookup(prediction.symbol, day)
            bar = bars[prediction.symbol]
            if bar is None:
                continue
            outcomes.append(Outcome(
                prediction_id=prediction.id,
                actual_high=bar.high,
                actual_low=bar.low,
                actual_close=bar.close,
                actual_volume=bar.volume,
            ))

        result.missing_symbols = sorted(s for s, bar in bars.items() if bar is None)
        if outcomes:
            self._registry.upsert_outcomes(outcomes)
            result.settled = [o.prediction_id for o in outcomes]
            result.metrics = self._service.evaluate_day(day).metrics

        logger.info(
            "Settled %d/%d predictions for %s (%d symbols without data)",
            len(result.settled), len(pending), day, len(result.missing_symbols),
        )
        return result
