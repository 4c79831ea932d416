"""Prediction ingestion endpoints."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from hitrate.api.deps import get_registry
from hitrate.api.routes.shared import parse_day
from hitrate.models.prediction import MarketRegime, Prediction
from hitrate.models.serialize import jsonable
from hitrate.registry.queries import Registry

logger = logging.getLogger(__name__)


class PredictionRequest(BaseModel):
    id: str = Field(min_length=1)
    symbol: str
    rank: int
    prediction_date: date
    predicted_high: Decimal
    predicted_low: Decimal
    predicted_close: Decimal
    previous_close: Decimal = Field(gt=0)
    expected_gain_percentage: Decimal
    confidence: Annotated[Decimal, Field(ge=0, le=1)] | None = None
    market_regime: MarketRegime | None = None
    signal: str | None = None

    def to_model(self) -> Prediction:
        return Prediction(**self.model_dump())


class PredictionBatch(BaseModel):
    predictions: list[PredictionRequest]


router = APIRouter()


@router.post("/predictions")
def ingest_predictions(
    batch: PredictionBatch, registry: Registry = Depends(get_registry),
) -> dict:
    """Store a batch of predictions; an existing id is overwritten."""
    if not batch.predictions:
        raise HTTPException(status_code=400, detail="No predictions supplied")
    predictions = [p.to_model() for p in batch.predictions]
    stored = registry.insert_predictions(predictions)
    logger.info("Ingested %d predictions", stored)
    return {"stored": stored, "ids": [p.id for p in predictions]}


@router.get("/predictions/{day}")
def list_predictions(day: str, registry: Registry = Depends(get_registry)) -> dict:
    """Stored predictions for one date, ordered by rank."""
    target = parse_day(day, "day")
    predictions = registry.get_predictions(target, target)
    return {"date": target.isoformat(), "predictions": jsonable(list(predictions.values()))}
