from __future__ import annotations

from dataclasses import dataclass
from datetime import date

# Ratio fields shared by DailyMetrics and RollupMetrics. Each is None
# (unresolved) when the underlying sample is empty.
RATIO_FIELDS: tuple[str, ...] = (
    "directional_accuracy",
    "high_accuracy_avg",
    "low_accuracy_avg",
    "close_accuracy_avg",
    "high_within_half_percent",
    "low_within_half_percent",
    "close_within_half_percent",
    "hit_target_rate",
    "closed_target_rate",
    "confidence_calibration",
    "confidence_accuracy_correlation",
    "average_confidence",
    "trending_market_accuracy",
    "choppy_market_accuracy",
)


@dataclass(frozen=True)
class DailyMetrics:
    date: date
    total_predictions: int
    resolved_predictions: int
    directional_accuracy: float | None = None
    high_accuracy_avg: float | None = None
    low_accuracy_avg: float | None = None
    close_accuracy_avg: float | None = None
    high_within_half_percent: float | None = None
    low_within_half_percent: float | None = None
    close_within_half_percent: float | None = None
    hit_target_rate: float | None = None
    closed_target_rate: float | None = None
    confidence_calibration: float | None = None  # >0 overconfident
    confidence_accuracy_correlation: float | None = None
    average_confidence: float | None = None
    trending_market_accuracy: float | None = None
    choppy_market_accuracy: float | None = None
    best_performing_signal: str | None = None
    worst_performing_signal: str | None = None


@dataclass(frozen=True)
class RollupMetrics:
    """Unweighted mean of daily metrics over a date range.

    Each day counts once regardless of how many predictions it held, so
    the result can differ from a pooled recomputation over raw predictions.
    """

    start: date
    end: date
    days: int
    total_predictions: int
    directional_accuracy: float | None = None
    high_accuracy_avg: float | None = None
    low_accuracy_avg: float | None = None
    close_accuracy_avg: float | None = None
    high_within_half_percent: float | None = None
    low_within_half_percent: float | None = None
    close_within_half_percent: float | None = None
    hit_target_rate: float | None = None
    closed_target_rate: float | None = None
    confidence_calibration: float | None = None
    confidence_accuracy_correlation: float | None = None
    average_confidence: float | None = None
    trending_market_accuracy: float | None = None
    choppy_market_accuracy: float | None = None
    best_performing_signal: str | None = None
    worst_performing_signal: str | None = None


@dataclass(frozen=True)
class TrendPoint:
    """One plottable day of a trend series.

    Check ``no_data`` before reading a 0.0 rate as a real accuracy floor.
    """

    date: date
    accuracy: float
    confidence: float
    predictions_count: int
    hit_target_rate: float
    closed_target_rate: float
    high_accuracy: float
    low_accuracy: float
    no_data: bool = False
    live: bool = False
