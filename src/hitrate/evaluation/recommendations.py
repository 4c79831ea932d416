"""Rule-based recommendations from a metrics snapshot.

Rules live in an ordered table and are evaluated top to bottom; every rule
is independent, so several may fire. A rule only reads resolved values and
stays silent when any input is None. An empty result means nothing needs
attention.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from hitrate.models.metrics import DailyMetrics, RollupMetrics
from hitrate.models.recommendation import Priority, Recommendation, RecommendationType

Metrics = DailyMetrics | RollupMetrics

LOW_ACCURACY = 0.6
HIGH_ACCURACY = 0.75
MIN_CORRELATION = 0.3
REGIME_GAP = 0.2
MIN_PRICE_ACCURACY = 0.5


def _price_accuracy(m: Metrics) -> float | None:
    values = (m.high_accuracy_avg, m.low_accuracy_avg, m.close_accuracy_avg)
    if any(v is None for v in values):
        return None
    return sum(values) / 3


def _low_accuracy(m: Metrics) -> Recommendation | None:
    acc = m.directional_accuracy
    if acc is None or acc >= LOW_ACCURACY:
        return None
    return Recommendation(
        type=RecommendationType.WARNING,
        title="Low Directional Accuracy",
        description=(
            f"Current accuracy at {acc:.1%}. Consider reviewing signal weighting "
            "and market condition detection."
        ),
        priority=Priority.HIGH,
        metric="directional_accuracy",
        value=acc,
    )


def _high_accuracy(m: Metrics) -> Recommendation | None:
    acc = m.directional_accuracy
    if acc is None or acc <= HIGH_ACCURACY:
        return None
    return Recommendation(
        type=RecommendationType.SUCCESS,
        title="Excellent Directional Accuracy",
        description=(
            f"Strong performance at {acc:.1%}. Current model configuration is working well."
        ),
        priority=Priority.LOW,
        metric="directional_accuracy",
        value=acc,
    )


def _weak_correlation(m: Metrics) -> Recommendation | None:
    corr = m.confidence_accuracy_correlation
    if corr is None or corr >= MIN_CORRELATION:
        return None
    return Recommendation(
        type=RecommendationType.IMPROVEMENT,
        title="Poor Confidence Calibration",
        description=(
            f"Confidence/accuracy correlation is {corr:.2f}. Confidence scores are not "
            "separating right calls from wrong ones; consider recalibrating confidence scoring."
        ),
        priority=Priority.HIGH,
        metric="confidence_accuracy_correlation",
        value=corr,
    )


def _worst_signal(m: Metrics) -> Recommendation | None:
    signal = m.worst_performing_signal
    if not signal:
        return None
    return Recommendation(
        type=RecommendationType.IMPROVEMENT,
        title="Underperforming Signal Detected",
        description=(
            f"{signal} signal shows the weakest directional accuracy. Consider reducing "
            "its weight or investigating data quality."
        ),
        priority=Priority.MEDIUM,
        metric="worst_performing_signal",
    )


def _choppy_gap(m: Metrics) -> Recommendation | None:
    choppy = m.choppy_market_accuracy
    trending = m.trending_market_accuracy
    if choppy is None or trending is None or choppy >= trending - REGIME_GAP:
        return None
    return Recommendation(
        type=RecommendationType.IMPROVEMENT,
        title="Choppy Market Performance Gap",
        description=(
            f"Choppy market accuracy ({choppy:.1%}) trails trending markets "
            f"({trending:.1%}). Consider adding volatility-adjusted parameters."
        ),
        priority=Priority.MEDIUM,
        metric="choppy_market_accuracy",
        value=choppy,
    )


def _poor_price_targets(m: Metrics) -> Recommendation | None:
    avg = _price_accuracy(m)
    if avg is None or avg >= MIN_PRICE_ACCURACY:
        return None
    return Recommendation(
        type=RecommendationType.WARNING,
        title="Poor Price Target Accuracy",
        description=(
            f"High/low/close predictions average {avg:.1%} accuracy. Consider reviewing "
            "technical analysis components and volatility models."
        ),
        priority=Priority.HIGH,
        metric="price_accuracy",
        value=avg,
    )


@dataclass(frozen=True)
class Rule:
    name: str
    evaluate: Callable[[Metrics], Recommendation | None]


RULES: tuple[Rule, ...] = (
    Rule("low_directional_accuracy", _low_accuracy),
    Rule("high_directional_accuracy", _high_accuracy),
    Rule("weak_confidence_correlation", _weak_correlation),
    Rule("worst_signal", _worst_signal),
    Rule("choppy_market_gap", _choppy_gap),
    Rule("poor_price_accuracy", _poor_price_targets),
)


def generate_recommendations(
    metrics: Metrics, rules: tuple[Rule, ...] = RULES,
) -> list[Recommendation]:
    """Evaluate rules in table order and collect those that fire."""
    recs: list[Recommendation] = []
    for rule in rules:
        rec = rule.evaluate(metrics)
        if rec is not None:
            recs.append(rec)
    return recs
