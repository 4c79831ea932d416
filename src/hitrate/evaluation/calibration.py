"""Calibration analysis: how well stated confidence tracks realized accuracy.

Computes the signed calibration score (mean confidence minus directional
accuracy), the Pearson correlation between confidence and correctness, and
a bucketed view with Expected Calibration Error and Brier score.

The excellent/good/poor bands returned by calibration_band are a display
convention for the dashboard. They are not a statistical test.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field

from hitrate.models.evaluation import ClassifiedPrediction

logger = logging.getLogger(__name__)

EXCELLENT_BAND = 0.1
GOOD_BAND = 0.2


@dataclass
class CalibrationBucket:
    """A single calibration bin (e.g. 0.7–0.8 confidence range)."""

    low: float
    high: float
    count: int = 0
    correct: int = 0

    @property
    def accuracy(self) -> float | None:
        return self.correct / self.count if self.count > 0 else None

    @property
    def midpoint(self) -> float:
        return (self.low + self.high) / 2

    @property
    def gap(self) -> float | None:
        """Calibration gap: |accuracy - midpoint|."""
        if self.accuracy is None:
            return None
        return abs(self.accuracy - self.midpoint)

    def contains(self, confidence: float) -> bool:
        return self.low <= confidence < self.high or (self.high == 1.0 and confidence == 1.0)


@dataclass
class CalibrationReport:
    total_resolved: int
    total_correct: int
    buckets: list[CalibrationBucket]
    calibration: float | None
    band: str | None
    correlation: float | None
    ece: float | None  # Expected Calibration Error
    brier: float | None  # Brier score
    adjustments: dict[str, float] = field(default_factory=dict)


BUCKET_RANGES = [
    (0.0, 0.5),
    (0.5, 0.6),
    (0.6, 0.7),
    (0.7, 0.8),
    (0.8, 0.9),
    (0.9, 1.0),
]


def _scored(classified: Sequence[ClassifiedPrediction]) -> list[tuple[float, bool]]:
    """(confidence, correct) for resolved predictions that report confidence."""
    return [
        (c.confidence, bool(c.direction_correct))
        for c in classified
        if c.is_resolved and c.confidence is not None
    ]


def confidence_calibration(classified: Sequence[ClassifiedPrediction]) -> float | None:
    """Mean confidence minus directional accuracy. Positive = overconfident."""
    scored = _scored(classified)
    if not scored:
        return None
    mean_conf = sum(conf for conf, _ in scored) / len(scored)
    accuracy = sum(1 for _, ok in scored if ok) / len(scored)
    return mean_conf - accuracy


def calibration_band(score: float | None) -> str | None:
    if score is None:
        return None
    magnitude = abs(score)
    if magnitude <= EXCELLENT_BAND:
        return "excellent"
    if magnitude <= GOOD_BAND:
        return "good"
    return "poor"


def pearson(xs: Sequence[float], ys: Sequence[float]) -> float | None:
    """Pearson correlation, None when undefined (n < 2 or zero variance)."""
    n = len(xs)
    if n < 2 or n != len(ys):
        return None
    # Float means of a constant series leave a rounding residue, not 0.
    if len(set(xs)) < 2 or len(set(ys)) < 2:
        return None
    mean_x = sum(xs) / n
    mean_y = sum(ys) / n
    cov = sum((x - mean_x) * (y - mean_y) for x, y in zip(xs, ys))
    var_x = sum((x - mean_x) ** 2 for x in xs)
    var_y = sum((y - mean_y) ** 2 for y in ys)
    if var_x == 0 or var_y == 0:
        return None
    return cov / math.sqrt(var_x * var_y)


def confidence_accuracy_correlation(
    classified: Sequence[ClassifiedPrediction],
) -> float | None:
    scored = _scored(classified)
    if len(scored) < 2:
        return None
    stated = {
        c.prediction.confidence
        for c in classified
        if c.is_resolved and c.prediction.confidence is not None
    }
    if len(stated) < 2:
        return None
    confidences = [conf for conf, _ in scored]
    outcomes = [1.0 if ok else 0.0 for _, ok in scored]
    return pearson(confidences, outcomes)


def compute_buckets(
    scored: Sequence[tuple[float, bool]],
) -> tuple[list[CalibrationBucket], float | None, float | None]:
    """Compute calibration buckets, ECE, and Brier score.

    Args:
        scored: List of (confidence, was_correct) tuples.

    Returns:
        Tuple of (buckets, ece, brier_score). ECE and Brier are None for
        an empty input.
    """
    buckets = [CalibrationBucket(low=lo, high=hi) for lo, hi in BUCKET_RANGES]

    for conf, correct in scored:
        for bucket in buckets:
            if bucket.contains(conf):
                bucket.count += 1
                if correct:
                    bucket.correct += 1
                break

    total = len(scored)
    if total == 0:
        return buckets, None, None

    ece = sum(
        (b.count / total) * b.gap for b in buckets if b.count > 0 and b.gap is not None
    )
    brier = sum((conf - (1.0 if ok else 0.0)) ** 2 for conf, ok in scored) / total
    return buckets, ece, brier


def confidence_adjustments(buckets: Sequence[CalibrationBucket]) -> dict[str, float]:
    """Suggest confidence adjustments per bucket.

    Returns a dict like {"0.7-0.8": -0.05} meaning reduce confidence
    by 5% for predictions in the 0.7-0.8 range. Buckets with fewer than
    five predictions are ignored.
    """
    adjustments: dict[str, float] = {}
    for bucket in buckets:
        if bucket.count < 5 or bucket.accuracy is None:
            continue
        gap = bucket.accuracy - bucket.midpoint
        if abs(gap) > 0.10:
            adjustments[f"{bucket.low:.1f}-{bucket.high:.1f}"] = round(gap, 3)
    return adjustments


def calibration_report(classified: Sequence[ClassifiedPrediction]) -> CalibrationReport:
    scored = _scored(classified)
    buckets, ece, brier = compute_buckets(scored)
    score = confidence_calibration(classified)

    logger.debug("Calibration over %d scored predictions: score=%s", len(scored), score)

    return CalibrationReport(
        total_resolved=len(scored),
        total_correct=sum(1 for _, ok in scored if ok),
        buckets=buckets,
        calibration=score,
        band=calibration_band(score),
        correlation=confidence_accuracy_correlation(classified),
        ece=ece,
        brier=brier,
        adjustments=confidence_adjustments(buckets),
    )
