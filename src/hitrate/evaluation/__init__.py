from hitrate.evaluation.aggregator import compute_daily_metrics, rollup
from hitrate.evaluation.calibration import CalibrationReport, calibration_band, calibration_report
from hitrate.evaluation.classifier import ValidationError, classify, classify_batch, target_price
from hitrate.evaluation.engine import DayEvaluation, EvaluationEngine, RangeEvaluation
from hitrate.evaluation.recommendations import generate_recommendations
from hitrate.evaluation.trend import build_trend

__all__ = [
    "CalibrationReport",
    "DayEvaluation",
    "EvaluationEngine",
    "RangeEvaluation",
    "ValidationError",
    "build_trend",
    "calibration_band",
    "calibration_report",
    "classify",
    "classify_batch",
    "compute_daily_metrics",
    "generate_recommendations",
    "rollup",
    "target_price",
]
