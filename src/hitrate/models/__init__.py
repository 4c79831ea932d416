from __future__ import annotations

from hitrate.models.evaluation import ClassifiedPrediction, SkippedPrediction
from hitrate.models.metrics import RATIO_FIELDS, DailyMetrics, RollupMetrics, TrendPoint
from hitrate.models.prediction import MarketRegime, Outcome, Prediction
from hitrate.models.recommendation import Priority, Recommendation, RecommendationType

__all__ = [
    # prediction
    "MarketRegime",
    "Prediction",
    "Outcome",
    # evaluation
    "ClassifiedPrediction",
    "SkippedPrediction",
    # metrics
    "RATIO_FIELDS",
    "DailyMetrics",
    "RollupMetrics",
    "TrendPoint",
    # recommendation
    "RecommendationType",
    "Priority",
    "Recommendation",
]
