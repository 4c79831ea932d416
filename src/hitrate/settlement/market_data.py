"""Realized daily bars for settling predictions, looked up via yfinance."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

import yfinance as yf

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DailyBar:
    symbol: str
    day: date
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: int | None


def _price(rows, column: str) -> Decimal:
    return Decimal(str(round(float(rows[column].squeeze()), 4)))


def lookup_daily_bar(symbol: str, day: date) -> DailyBar | None:
    """Fetch the session bar for ``symbol`` on exactly ``day``.

    Returns None when the market was closed, the symbol is unknown, or the
    lookup fails. Unlike a closing-price lookup there is no fallback to a
    neighbouring session: an outcome must describe the predicted day.
    """
    try:
        df = yf.download(
            symbol,
            start=day.isoformat(),
            end=(day + timedelta(days=1)).isoformat(),
            progress=False,
            auto_adjust=False,
        )
        if df is None or df.empty:
            logger.warning("No bar for %s on %s", symbol, day)
            return None

        rows = df[df.index.date == day]
        if rows.empty:
            logger.warning("No bar for %s on %s (got %d other rows)", symbol, day, len(df))
            return None

        volume = rows["Volume"].squeeze() if "Volume" in rows else None
        return DailyBar(
            symbol=symbol,
            day=day,
            open=_price(rows, "Open"),
            high=_price(rows, "High"),
            low=_price(rows, "Low"),
            close=_price(rows, "Close"),
            volume=int(volume) if volume is not None else None,
        )
    except Exception:
        logger.exception("Bar lookup failed for %s on %s", symbol, day)
        return None
