"""Evaluation pipeline: classify -> aggregate -> trend/calibration -> recommend.

The engine performs no I/O. Callers fetch predictions and outcomes from
the registry first and hand them in as mappings keyed by prediction id.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date

from hitrate.config import AppConfig
from hitrate.evaluation.aggregator import MIN_SIGNAL_SAMPLE, compute_daily_metrics, rollup
from hitrate.evaluation.calibration import CalibrationReport, calibration_report
from hitrate.evaluation.classifier import classify_batch
from hitrate.evaluation.recommendations import generate_recommendations
from hitrate.evaluation.trend import build_trend
from hitrate.models.evaluation import ClassifiedPrediction, SkippedPrediction
from hitrate.models.metrics import DailyMetrics, RollupMetrics, TrendPoint
from hitrate.models.prediction import Outcome, Prediction
from hitrate.models.recommendation import Recommendation

logger = logging.getLogger(__name__)


@dataclass
class DayEvaluation:
    metrics: DailyMetrics
    classified: list[ClassifiedPrediction]
    skipped: list[SkippedPrediction]
    recommendations: list[Recommendation]
    calibration: CalibrationReport


@dataclass
class RangeEvaluation:
    start: date
    end: date
    daily: dict[date, DailyMetrics]
    trend: list[TrendPoint]
    rollup: RollupMetrics
    recommendations: list[Recommendation]
    calibration: CalibrationReport
    skipped: list[SkippedPrediction] = field(default_factory=list)


class EvaluationEngine:
    """Stateless facade over the evaluation stages."""

    def __init__(self, min_signal_sample: int = MIN_SIGNAL_SAMPLE, workers: int = 1) -> None:
        self._min_signal_sample = min_signal_sample
        self._workers = max(1, workers)

    @classmethod
    def from_config(cls, config: AppConfig) -> EvaluationEngine:
        return cls(min_signal_sample=config.min_signal_sample, workers=config.workers)

    def evaluate_day(
        self,
        day: date,
        predictions: Mapping[str, Prediction],
        outcomes: Mapping[str, Outcome],
    ) -> DayEvaluation:
        """Evaluate one trading date's predictions."""
        classified, skipped = classify_batch(predictions, outcomes)
        metrics = compute_daily_metrics(day, classified, self._min_signal_sample)
        return DayEvaluation(
            metrics=metrics,
            classified=classified,
            skipped=skipped,
            recommendations=generate_recommendations(metrics),
            calibration=calibration_report(classified),
        )

    def daily_metrics(
        self, classified: list[ClassifiedPrediction],
    ) -> dict[date, DailyMetrics]:
        """DailyMetrics per prediction date, fanned out when workers > 1.

        Each date only depends on its own predictions, so the result is the
        same whether computed sequentially or in parallel.
        """
        by_date: dict[date, list[ClassifiedPrediction]] = defaultdict(list)
        for c in classified:
            by_date[c.prediction.prediction_date].append(c)

        days = sorted(by_date)
        if self._workers > 1 and len(days) > 1:
            with ThreadPoolExecutor(max_workers=self._workers) as pool:
                results = list(pool.map(
                    lambda d: compute_daily_metrics(d, by_date[d], self._min_signal_sample),
                    days,
                ))
        else:
            results = [
                compute_daily_metrics(d, by_date[d], self._min_signal_sample) for d in days
            ]
        return dict(zip(days, results))

    def evaluate_range(
        self,
        start: date,
        end: date,
        predictions: Mapping[str, Prediction],
        outcomes: Mapping[str, Outcome],
        today: date | None = None,
    ) -> RangeEvaluation:
        """Evaluate every date in [start, end] and roll the days up."""
        classified, skipped = classify_batch(predictions, outcomes)
        daily = self.daily_metrics(classified)
        trend = build_trend(start, end, daily, today=today)
        summary = rollup(list(daily.values()), start=start, end=end)

        logger.info(
            "Evaluated %s..%s: %d days with predictions, %d skipped",
            start, end, summary.days, len(skipped),
        )

        return RangeEvaluation(
            start=start,
            end=end,
            daily=daily,
            trend=trend,
            rollup=summary,
            recommendations=generate_recommendations(summary),
            calibration=calibration_report(classified),
            skipped=skipped,
        )
