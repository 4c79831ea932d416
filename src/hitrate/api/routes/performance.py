"""Prediction performance endpoints: daily metrics, trends, rollups, advice."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from hitrate.api.deps import get_performance
from hitrate.api.routes.shared import parse_day
from hitrate.evaluation.calibration import calibration_band
from hitrate.evaluation.engine import RangeEvaluation
from hitrate.models.recommendation import Recommendation
from hitrate.models.serialize import jsonable
from hitrate.performance import PerformanceService

router = APIRouter()


def _range(
    service: PerformanceService, start: str | None, end: str | None, today: date | None = None,
) -> RangeEvaluation:
    end_day = parse_day(end, "end") or today or date.today()
    start_day = parse_day(start, "start") or service.default_range(end_day)[0]
    try:
        return service.evaluate_range(start_day, end_day, today=today)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None


def _recommendations_payload(recs: list[Recommendation]) -> dict:
    return {
        "status": "attention" if recs else "healthy",
        "recommendations": jsonable(recs),
    }


@router.get("/performance/daily/{day}")
def get_daily(day: str, service: PerformanceService = Depends(get_performance)) -> dict:
    """DailyMetrics for one date, recomputed from stored records.

    Unresolved metrics are returned as null.
    """
    evaluation = service.evaluate_day(parse_day(day, "day"), persist=False)
    metrics = evaluation.metrics
    return {
        "metrics": jsonable(metrics),
        "calibrationBand": calibration_band(metrics.confidence_calibration),
        "skipped": [s.prediction_id for s in evaluation.skipped],
        **_recommendations_payload(evaluation.recommendations),
    }


@router.get("/performance/trend")
def get_trend(
    start: str | None = Query(None, description="First date (YYYY-MM-DD)"),
    end: str | None = Query(None, description="Last date (YYYY-MM-DD), default today"),
    today: str | None = Query(None, description="Date to mark as live, default today"),
    service: PerformanceService = Depends(get_performance),
) -> dict:
    """One point per calendar date, ascending. Check no_data before reading a 0."""
    live_day = parse_day(today, "today") or date.today()
    evaluation = _range(service, start, end, today=live_day)
    return {
        "start": evaluation.start.isoformat(),
        "end": evaluation.end.isoformat(),
        "points": jsonable(evaluation.trend),
    }


@router.get("/performance/rollup")
def get_rollup(
    start: str | None = Query(None),
    end: str | None = Query(None),
    service: PerformanceService = Depends(get_performance),
) -> dict:
    """Unweighted mean of daily metrics over the range."""
    evaluation = _range(service, start, end)
    return {
        "rollup": jsonable(evaluation.rollup),
        "weighting": "unweighted_daily_mean",
        "skipped": [s.prediction_id for s in evaluation.skipped],
    }


@router.get("/performance/snapshots")
def get_snapshots(
    start: str | None = Query(None),
    end: str | None = Query(None),
    service: PerformanceService = Depends(get_performance),
) -> dict:
    """Stored daily snapshots as last persisted; dates never evaluated are absent."""
    end_day = parse_day(end, "end") or date.today()
    start_day = parse_day(start, "start") or service.default_range(end_day)[0]
    try:
        snapshots = service.stored_metrics(start_day, end_day)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    return {
        "start": start_day.isoformat(),
        "end": end_day.isoformat(),
        "snapshots": jsonable(snapshots),
    }


@router.get("/performance/recommendations")
def get_recommendations(
    day: str | None = Query(None, description="Single date; default latest stored date"),
    start: str | None = Query(None),
    end: str | None = Query(None),
    service: PerformanceService = Depends(get_performance),
) -> dict:
    """Recommendations for a day, or for a rollup when start/end are given."""
    if start or end:
        evaluation = _range(service, start, end)
        return {"scope": "rollup", **_recommendations_payload(evaluation.recommendations)}

    target = parse_day(day, "day") or service.latest_day()
    if target is None:
        return {"scope": "day", "date": None, "status": "no_data", "recommendations": []}
    evaluation = service.evaluate_day(target, persist=False)
    return {
        "scope": "day",
        "date": target.isoformat(),
        **_recommendations_payload(evaluation.recommendations),
    }


@router.get("/performance/calibration")
def get_calibration(
    start: str | None = Query(None),
    end: str | None = Query(None),
    service: PerformanceService = Depends(get_performance),
) -> dict:
    """Calibration buckets, ECE and Brier score over the range."""
    report = _range(service, start, end).calibration
    return {
        "buckets": [
            {
                "low": b.low,
                "high": b.high,
                "midpoint": b.midpoint,
                "accuracy": b.accuracy,
                "count": b.count,
            }
            for b in report.buckets
        ],
        "calibration": report.calibration,
        "band": report.band,
        "correlation": report.correlation,
        "ece": report.ece,
        "brierScore": report.brier,
        "adjustments": report.adjustments,
        "totalPredictions": report.total_resolved,
    }
