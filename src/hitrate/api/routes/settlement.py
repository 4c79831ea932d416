"""Outcome settlement endpoint."""

from __future__ import annotations

from datetime import date, timedelta

from fastapi import APIRouter, Depends, Query

from hitrate.api.deps import get_settler
from hitrate.api.routes.shared import parse_day
from hitrate.models.serialize import jsonable
from hitrate.settlement.settler import OutcomeSettler

router = APIRouter()


@router.post("/settlement/run")
def run_settlement(
    day: str | None = Query(None, description="Trading date, default yesterday"),
    settler: OutcomeSettler = Depends(get_settler),
) -> dict:
    """Fetch realized bars for a date's unsettled predictions and store outcomes."""
    target = parse_day(day, "day") or date.today() - timedelta(days=1)
    result = settler.settle(target)
    return {
        "date": target.isoformat(),
        "settledCount": len(result.settled),
        "settled": result.settled,
        "missingSymbols": result.missing_symbols,
        "metrics": jsonable(result.metrics),
    }
