from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from hitrate.models.prediction import Prediction


@dataclass(frozen=True)
class ClassifiedPrediction:
    """A prediction joined with its outcome, if one has arrived.

    Every outcome-dependent field is None while the prediction is
    unresolved. None means "not known yet" and is never the same as False.
    """

    prediction: Prediction
    target_price: Decimal
    hit_target: bool | None = None
    closed_target: bool | None = None
    direction_correct: bool | None = None
    actual_gain_percentage: Decimal | None = None
    high_accuracy: float | None = None
    low_accuracy: float | None = None
    close_accuracy: float | None = None
    high_within_half_percent: bool | None = None
    low_within_half_percent: bool | None = None
    close_within_half_percent: bool | None = None

    @property
    def is_resolved(self) -> bool:
        return self.direction_correct is not None

    @property
    def confidence(self) -> float | None:
        conf = self.prediction.confidence
        return float(conf) if conf is not None else None


@dataclass(frozen=True)
class SkippedPrediction:
    prediction_id: str
    reason: str
