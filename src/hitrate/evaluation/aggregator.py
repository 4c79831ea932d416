"""Daily metrics aggregation and multi-day rollups.

A day's DailyMetrics is computed from that day's classified predictions
only. Ratios are taken over the resolved subset; an empty subset leaves
the ratio as None rather than 0.

Rollups across several days are the unweighted mean of the daily values.
A day with two predictions weighs the same as a day with twenty, so a
rollup can differ materially from pooling all raw predictions.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from collections.abc import Callable, Sequence
from datetime import date

from hitrate.evaluation.calibration import (
    confidence_accuracy_correlation,
    confidence_calibration,
)
from hitrate.models.evaluation import ClassifiedPrediction
from hitrate.models.metrics import RATIO_FIELDS, DailyMetrics, RollupMetrics
from hitrate.models.prediction import MarketRegime

logger = logging.getLogger(__name__)

MIN_SIGNAL_SAMPLE = 5


def _mean(values: Sequence[float]) -> float | None:
    return sum(values) / len(values) if values else None


def _rate(resolved: Sequence[ClassifiedPrediction], attr: str) -> float | None:
    flags = [getattr(c, attr) for c in resolved]
    if not flags:
        return None
    return sum(1 for f in flags if f) / len(flags)


def _average(resolved: Sequence[ClassifiedPrediction], attr: str) -> float | None:
    return _mean([getattr(c, attr) for c in resolved])


def directional_accuracy(classified: Sequence[ClassifiedPrediction]) -> float | None:
    return _rate([c for c in classified if c.is_resolved], "direction_correct")


def regime_accuracy(
    classified: Sequence[ClassifiedPrediction], regime: MarketRegime,
) -> float | None:
    return directional_accuracy(
        [c for c in classified if c.prediction.market_regime == regime]
    )


def signal_extremes(
    classified: Sequence[ClassifiedPrediction],
    min_sample: int = MIN_SIGNAL_SAMPLE,
) -> tuple[str | None, str | None]:
    """Best and worst signal categories by directional accuracy.

    Only categories with at least ``min_sample`` resolved predictions are
    compared. Both are None unless two or more categories qualify with
    different accuracies. Ties go to the alphabetically first category.
    """
    by_signal: dict[str, list[ClassifiedPrediction]] = defaultdict(list)
    for c in classified:
        if c.is_resolved and c.prediction.signal:
            by_signal[c.prediction.signal].append(c)

    scores = {
        signal: directional_accuracy(group)
        for signal, group in sorted(by_signal.items())
        if len(group) >= min_sample
    }
    if len(scores) < 2:
        return None, None

    # scores is in alphabetical order, so next() picks the first of any tie
    top = max(scores.values())
    bottom = min(scores.values())
    if top == bottom:
        return None, None
    best = next(s for s, acc in scores.items() if acc == top)
    worst = next(s for s, acc in scores.items() if acc == bottom)
    return best, worst


def compute_daily_metrics(
    day: date,
    classified: Sequence[ClassifiedPrediction],
    min_signal_sample: int = MIN_SIGNAL_SAMPLE,
) -> DailyMetrics:
    """Reduce one day's classified predictions into a DailyMetrics."""
    resolved = [c for c in classified if c.is_resolved]
    confidences = [c.confidence for c in classified if c.confidence is not None]
    best, worst = signal_extremes(classified, min_signal_sample)

    metrics = DailyMetrics(
        date=day,
        total_predictions=len(classified),
        resolved_predictions=len(resolved),
        directional_accuracy=_rate(resolved, "direction_correct"),
        high_accuracy_avg=_average(resolved, "high_accuracy"),
        low_accuracy_avg=_average(resolved, "low_accuracy"),
        close_accuracy_avg=_average(resolved, "close_accuracy"),
        high_within_half_percent=_rate(resolved, "high_within_half_percent"),
        low_within_half_percent=_rate(resolved, "low_within_half_percent"),
        close_within_half_percent=_rate(resolved, "close_within_half_percent"),
        hit_target_rate=_rate(resolved, "hit_target"),
        closed_target_rate=_rate(resolved, "closed_target"),
        confidence_calibration=confidence_calibration(classified),
        confidence_accuracy_correlation=confidence_accuracy_correlation(classified),
        average_confidence=_mean(confidences),
        trending_market_accuracy=regime_accuracy(classified, MarketRegime.TRENDING),
        choppy_market_accuracy=regime_accuracy(classified, MarketRegime.CHOPPY),
        best_performing_signal=best,
        worst_performing_signal=worst,
    )
    logger.debug(
        "Metrics for %s: %d predictions, %d resolved",
        day, metrics.total_predictions, metrics.resolved_predictions,
    )
    return metrics


def _most_frequent(
    days: Sequence[DailyMetrics], getter: Callable[[DailyMetrics], str | None],
) -> str | None:
    """Most frequent non-empty value; ties go to the most recent day."""
    counts = Counter(v for v in (getter(m) for m in days) if v)
    if not counts:
        return None
    top = max(counts.values())
    for m in sorted(days, key=lambda m: m.date, reverse=True):
        value = getter(m)
        if value and counts[value] == top:
            return value
    return None


def rollup(
    metrics: Sequence[DailyMetrics],
    start: date | None = None,
    end: date | None = None,
) -> RollupMetrics:
    """Unweighted mean of daily metrics.

    Each ratio is averaged over the days on which it is resolved. Days with
    no predictions do not count toward ``days``.
    """
    days = [m for m in metrics if m.total_predictions > 0]
    dates = [m.date for m in metrics]
    if start is None or end is None:
        if not dates:
            raise ValueError("rollup needs a date range or at least one day of metrics")
        start = start or min(dates)
        end = end or max(dates)

    averaged = {
        name: _mean([getattr(m, name) for m in days if getattr(m, name) is not None])
        for name in RATIO_FIELDS
    }

    return RollupMetrics(
        start=start,
        end=end,
        days=len(days),
        total_predictions=sum(m.total_predictions for m in days),
        best_performing_signal=_most_frequent(days, lambda m: m.best_performing_signal),
        worst_performing_signal=_most_frequent(days, lambda m: m.worst_performing_signal),
        **averaged,
    )
