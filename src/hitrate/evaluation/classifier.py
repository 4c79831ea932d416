"""Target classification: joins one prediction with its realized outcome.

The target price is derived from the previous close and the expected
percentage gain. Bullish calls (expected gain >= 0) hit when the session
high reaches the target and close on target when the close holds at or
above it; bearish calls mirror this with the session low and a close at
or below the target.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from decimal import Decimal

from hitrate.models.evaluation import ClassifiedPrediction, SkippedPrediction
from hitrate.models.prediction import Outcome, Prediction

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
HALF_PERCENT = 0.005


class ValidationError(ValueError):
    """A prediction breaks an invariant and cannot be evaluated."""

    def __init__(self, prediction_id: str, reason: str) -> None:
        super().__init__(f"Prediction {prediction_id!r}: {reason}")
        self.prediction_id = prediction_id
        self.reason = reason


def validate_prediction(prediction: Prediction) -> None:
    """Raise ValidationError if the prediction cannot be evaluated."""
    if not prediction.id or not str(prediction.id).strip():
        raise ValidationError(str(prediction.id or ""), "missing prediction id")
    if prediction.previous_close is None or prediction.previous_close <= 0:
        raise ValidationError(
            prediction.id, f"previous_close must be > 0, got {prediction.previous_close}"
        )
    if prediction.confidence is not None and not (
        Decimal("0") <= prediction.confidence <= Decimal("1")
    ):
        raise ValidationError(
            prediction.id, f"confidence must be between 0 and 1, got {prediction.confidence}"
        )


def target_price(prediction: Prediction) -> Decimal:
    return prediction.previous_close * (1 + prediction.expected_gain_percentage / HUNDRED)


def price_accuracy(predicted: Decimal, actual: Decimal) -> float:
    """1 - relative error, clamped to [0, 1]."""
    error = abs(float((predicted - actual) / actual))
    return min(1.0, max(0.0, 1.0 - error))


def _within_half_percent(predicted: Decimal, actual: Decimal) -> bool:
    return abs(float((predicted - actual) / actual)) <= HALF_PERCENT


def classify(prediction: Prediction, outcome: Outcome | None = None) -> ClassifiedPrediction:
    """Classify one prediction against its outcome.

    The prediction is assumed valid (see validate_prediction). A missing or
    incomplete outcome leaves every outcome-dependent field unresolved.
    """
    target = target_price(prediction)

    if outcome is None or not outcome.is_complete:
        return ClassifiedPrediction(prediction=prediction, target_price=target)

    high = outcome.actual_high
    low = outcome.actual_low
    close = outcome.actual_close
    previous = prediction.previous_close

    if prediction.is_bullish:
        hit = high >= target
        closed = close >= target
    else:
        hit = low <= target
        closed = close <= target

    if outcome.direction_correct is not None:
        direction = outcome.direction_correct
    else:
        direction = (close > previous) == prediction.is_bullish

    return ClassifiedPrediction(
        prediction=prediction,
        target_price=target,
        hit_target=hit,
        closed_target=closed,
        direction_correct=direction,
        actual_gain_percentage=(close - previous) / previous * HUNDRED,
        high_accuracy=price_accuracy(prediction.predicted_high, high),
        low_accuracy=price_accuracy(prediction.predicted_low, low),
        close_accuracy=price_accuracy(prediction.predicted_close, close),
        high_within_half_percent=_within_half_percent(prediction.predicted_high, high),
        low_within_half_percent=_within_half_percent(prediction.predicted_low, low),
        close_within_half_percent=_within_half_percent(prediction.predicted_close, close),
    )


def classify_batch(
    predictions: Mapping[str, Prediction],
    outcomes: Mapping[str, Outcome],
) -> tuple[list[ClassifiedPrediction], list[SkippedPrediction]]:
    """Classify every valid prediction; report invalid ones instead of raising.

    Returns (classified, skipped). Classified results are ordered by
    prediction date, rank and id so the output does not depend on the
    order of the input mappings.
    """
    classified: list[ClassifiedPrediction] = []
    skipped: list[SkippedPrediction] = []

    for key, prediction in predictions.items():
        try:
            validate_prediction(prediction)
        except ValidationError as e:
            logger.warning("Skipping prediction %s: %s", key, e.reason)
            skipped.append(SkippedPrediction(prediction_id=key, reason=e.reason))
            continue
        classified.append(classify(prediction, outcomes.get(prediction.id)))

    orphans = set(outcomes) - {p.id for p in predictions.values()}
    if orphans:
        logger.debug("Ignoring %d outcomes with no matching prediction", len(orphans))

    classified.sort(
        key=lambda c: (c.prediction.prediction_date, c.prediction.rank, c.prediction.id)
    )
    skipped.sort(key=lambda s: s.prediction_id)
    return classified, skipped
