from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from hitrate.models.metrics import RATIO_FIELDS, DailyMetrics
from hitrate.models.prediction import MarketRegime, Outcome, Prediction
from hitrate.registry.db import Database

logger = logging.getLogger(__name__)

_PREDICTION_COLUMNS = (
    "id, symbol, rank, prediction_date, predicted_high, predicted_low, predicted_close, "
    "previous_close, expected_gain_percentage, confidence, market_regime, signal"
)

_METRIC_COLUMNS = (
    "date", "total_predictions", "resolved_predictions",
    *RATIO_FIELDS,
    "best_performing_signal", "worst_performing_signal",
)


def _dec(value) -> Decimal | None:
    return Decimal(str(value)) if value is not None else None


def _float(value) -> float | None:
    return float(value) if value is not None else None


class Registry:
    """Query layer bridging the models and the hitrate schema."""

    def __init__(self, db: Database) -> None:
        self._db = db

    @property
    def db(self) -> Database:
        return self._db

    # ------------------------------------------------------------------
    # Predictions
    # ------------------------------------------------------------------

    def insert_predictions(self, predictions: list[Prediction]) -> int:
        """Insert or update predictions. Returns count of affected rows."""
        query = f"""
            INSERT INTO hitrate.predictions ({_PREDICTION_COLUMNS})
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (id) DO UPDATE SET
                symbol = EXCLUDED.symbol,
                rank = EXCLUDED.rank,
                prediction_date = EXCLUDED.prediction_date,
                predicted_high = EXCLUDED.predicted_high,
                predicted_low = EXCLUDED.predicted_low,
                predicted_close = EXCLUDED.predicted_close,
                previous_close = EXCLUDED.previous_close,
                expected_gain_percentage = EXCLUDED.expected_gain_percentage,
                confidence = EXCLUDED.confidence,
                market_regime = EXCLUDED.market_regime,
                signal = EXCLUDED.signal
        """
        params = [
            (
                p.id, p.symbol, p.rank, p.prediction_date, p.predicted_high,
                p.predicted_low, p.predicted_close, p.previous_close,
                p.expected_gain_percentage, p.confidence,
                str(p.market_regime) if p.market_regime else None, p.signal,
            )
            for p in predictions
        ]
        return self._db.execute_many(query, params)

    def get_predictions(self, start: date, end: date) -> dict[str, Prediction]:
        """Predictions dated within [start, end], keyed by id."""
        rows = self._db.execute(
            f"SELECT {_PREDICTION_COLUMNS} FROM hitrate.predictions "
            "WHERE prediction_date BETWEEN %s AND %s ORDER BY prediction_date, rank",
            (start, end),
        )
        predictions = [self._row_to_prediction(r) for r in rows]
        return {p.id: p for p in predictions}

    def get_unsettled_predictions(self, day: date) -> list[Prediction]:
        """Predictions for ``day`` that have no complete outcome yet."""
        rows = self._db.execute(
            "SELECT p.* FROM hitrate.predictions p "
            "LEFT JOIN hitrate.prediction_outcomes o ON o.prediction_id = p.id "
            "WHERE p.prediction_date = %s AND (o.prediction_id IS NULL "
            "OR o.actual_high IS NULL OR o.actual_low IS NULL OR o.actual_close IS NULL) "
            "ORDER BY p.rank",
            (day,),
        )
        return [self._row_to_prediction(r) for r in rows]

    @staticmethod
    def _row_to_prediction(r: dict) -> Prediction:
        regime = r.get("market_regime")
        return Prediction(
            id=str(r["id"]),
            symbol=r["symbol"],
            rank=int(r["rank"]),
            prediction_date=r["prediction_date"],
            predicted_high=_dec(r["predicted_high"]),
            predicted_low=_dec(r["predicted_low"]),
            predicted_close=_dec(r["predicted_close"]),
            previous_close=_dec(r["previous_close"]),
            expected_gain_percentage=_dec(r["expected_gain_percentage"]),
            confidence=_dec(r.get("confidence")),
            market_regime=MarketRegime(regime) if regime else None,
            signal=r.get("signal"),
        )

    # ------------------------------------------------------------------
    # Outcomes
    # ------------------------------------------------------------------

    def get_outcomes(self, prediction_ids: list[str]) -> dict[str, Outcome]:
        """Outcomes for the given predictions, keyed by prediction id."""
        if not prediction_ids:
            return {}
        rows = self._db.execute(
            "SELECT prediction_id, actual_high, actual_low, actual_close, "
            "actual_volume, direction_correct "
            "FROM hitrate.prediction_outcomes WHERE prediction_id = ANY(%s)",
            (list(prediction_ids),),
        )
        return {
            str(r["prediction_id"]): Outcome(
                prediction_id=str(r["prediction_id"]),
                actual_high=_dec(r["actual_high"]),
                actual_low=_dec(r["actual_low"]),
                actual_close=_dec(r["actual_close"]),
                actual_volume=r.get("actual_volume"),
                direction_correct=r.get("direction_correct"),
            )
            for r in rows
        }

    def upsert_outcomes(self, outcomes: list[Outcome]) -> int:
        """Record realized outcomes; a later settlement replaces an earlier one."""
        query = """
            INSERT INTO hitrate.prediction_outcomes
                (prediction_id, actual_high, actual_low, actual_close,
                 actual_volume, direction_correct, settled_at)
            VALUES (%s, %s, %s, %s, %s, %s, NOW())
            ON CONFLICT (prediction_id) DO UPDATE SET
                actual_high = EXCLUDED.actual_high,
                actual_low = EXCLUDED.actual_low,
                actual_close = EXCLUDED.actual_close,
                actual_volume = EXCLUDED.actual_volume,
                direction_correct = EXCLUDED.direction_correct,
                settled_at = NOW()
        """
        params = [
            (
                o.prediction_id, o.actual_high, o.actual_low, o.actual_close,
                o.actual_volume, o.direction_correct,
            )
            for o in outcomes
        ]
        return self._db.execute_many(query, params)

    # ------------------------------------------------------------------
    # Daily performance snapshots
    # ------------------------------------------------------------------

    def save_daily_metrics(self, metrics: DailyMetrics) -> None:
        """Store a DailyMetrics snapshot, replacing any earlier one for the date."""
        columns = ", ".join(_METRIC_COLUMNS)
        placeholders = ", ".join(["%s"] * len(_METRIC_COLUMNS))
        updates = ", ".join(f"{c} = EXCLUDED.{c}" for c in _METRIC_COLUMNS if c != "date")
        self._db.execute(
            f"INSERT INTO hitrate.daily_performance ({columns}, computed_at) "
            f"VALUES ({placeholders}, NOW()) "
            f"ON CONFLICT (date) DO UPDATE SET {updates}, computed_at = NOW()",
            tuple(getattr(metrics, c) for c in _METRIC_COLUMNS),
        )
        logger.debug("Saved daily metrics for %s", metrics.date)

    def get_daily_metrics(self, start: date, end: date) -> dict[date, DailyMetrics]:
        rows = self._db.execute(
            f"SELECT {', '.join(_METRIC_COLUMNS)} FROM hitrate.daily_performance "
            "WHERE date BETWEEN %s AND %s ORDER BY date",
            (start, end),
        )
        return {r["date"]: self._row_to_metrics(r) for r in rows}

    def get_latest_metrics_date(self) -> date | None:
        rows = self._db.execute("SELECT MAX(date) AS latest FROM hitrate.daily_performance")
        return rows[0]["latest"] if rows else None

    @staticmethod
    def _row_to_metrics(r: dict) -> DailyMetrics:
        return DailyMetrics(
            date=r["date"],
            total_predictions=int(r["total_predictions"]),
            resolved_predictions=int(r["resolved_predictions"]),
            best_performing_signal=r.get("best_performing_signal"),
            worst_performing_signal=r.get("worst_performing_signal"),
            **{name: _float(r.get(name)) for name in RATIO_FIELDS},
        )
