from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import StrEnum


class MarketRegime(StrEnum):
    TRENDING = "trending"
    CHOPPY = "choppy"


@dataclass(frozen=True)
class Prediction:
    id: str
    symbol: str
    rank: int
    prediction_date: date
    predicted_high: Decimal
    predicted_low: Decimal
    predicted_close: Decimal
    previous_close: Decimal
    expected_gain_percentage: Decimal
    confidence: Decimal | None = None  # 0-1
    market_regime: MarketRegime | None = None
    signal: str | None = None

    @property
    def is_bullish(self) -> bool:
        """Zero expected gain counts as a bullish call."""
        return self.expected_gain_percentage >= 0


@dataclass(frozen=True)
class Outcome:
    """Realized session data for one prediction.

    The three prices form a group: an outcome missing any of them (or
    carrying a non-positive price) is treated as if it did not exist.
    """

    prediction_id: str
    actual_high: Decimal | None = None
    actual_low: Decimal | None = None
    actual_close: Decimal | None = None
    actual_volume: int | None = None
    direction_correct: bool | None = None

    @property
    def is_complete(self) -> bool:
        prices = (self.actual_high, self.actual_low, self.actual_close)
        return all(p is not None and p > 0 for p in prices)
