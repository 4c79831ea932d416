"""Trend series: one plottable point per calendar day.

Unlike DailyMetrics, a TrendPoint always carries numbers. Days without
predictions get zeros and ``no_data=True``. Days with predictions but an
unresolved ratio (typically today, before the close) fall back to
TREND_FALLBACK for that ratio.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, timedelta

from hitrate.models.metrics import DailyMetrics, TrendPoint

TREND_FALLBACK = 0.0


def date_range(start: date, end: date) -> list[date]:
    if start > end:
        raise ValueError(f"start {start} is after end {end}")
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def _or_fallback(value: float | None) -> float:
    return value if value is not None else TREND_FALLBACK


def trend_point(day: date, metrics: DailyMetrics | None, live: bool = False) -> TrendPoint:
    if metrics is None or metrics.total_predictions == 0:
        return TrendPoint(
            date=day,
            accuracy=0.0,
            confidence=0.0,
            predictions_count=0,
            hit_target_rate=0.0,
            closed_target_rate=0.0,
            high_accuracy=0.0,
            low_accuracy=0.0,
            no_data=True,
            live=live,
        )
    return TrendPoint(
        date=day,
        accuracy=_or_fallback(metrics.directional_accuracy),
        confidence=_or_fallback(metrics.average_confidence),
        predictions_count=metrics.total_predictions,
        hit_target_rate=_or_fallback(metrics.hit_target_rate),
        closed_target_rate=_or_fallback(metrics.closed_target_rate),
        high_accuracy=_or_fallback(metrics.high_accuracy_avg),
        low_accuracy=_or_fallback(metrics.low_accuracy_avg),
        live=live,
    )


def build_trend(
    start: date,
    end: date,
    metrics_by_date: Mapping[date, DailyMetrics],
    today: date | None = None,
) -> list[TrendPoint]:
    """Build an ascending series covering every date in [start, end].

    ``today`` only marks the matching point as live; the builder never
    reads the clock.
    """
    return [
        trend_point(day, metrics_by_date.get(day), live=(day == today))
        for day in date_range(start, end)
    ]
