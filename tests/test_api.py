"""Tests for the FastAPI REST API layer.

Uses FastAPI TestClient with a mocked Registry injected into app_state;
the evaluation services on top of it are real.
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from hitrate.api.app import create_app
from hitrate.api.deps import app_state
from hitrate.evaluation.engine import EvaluationEngine
from hitrate.models.metrics import DailyMetrics
from hitrate.models.prediction import Outcome, Prediction
from hitrate.performance import PerformanceService
from hitrate.registry.queries import Registry
from hitrate.settlement.market_data import DailyBar
from hitrate.settlement.settler import OutcomeSettler

DAY = date(2024, 3, 4)


def _prediction(id: str, confidence: str = "0.7") -> Prediction:
    return Prediction(
        id=id, symbol="AAPL", rank=1, prediction_date=DAY,
        predicted_high=Decimal("106"), predicted_low=Decimal("99"),
        predicted_close=Decimal("104"), previous_close=Decimal("100"),
        expected_gain_percentage=Decimal("5"), confidence=Decimal(confidence),
    )


def _outcome(id: str, close: str) -> Outcome:
    return Outcome(
        prediction_id=id, actual_high=Decimal("106"),
        actual_low=Decimal("99"), actual_close=Decimal(close),
    )


@pytest.fixture
def registry() -> MagicMock:
    reg = MagicMock(spec=Registry)
    reg.get_predictions.return_value = {}
    reg.get_outcomes.return_value = {}
    reg.get_unsettled_predictions.return_value = []
    reg.get_latest_metrics_date.return_value = None
    reg.get_daily_metrics.return_value = {}
    return reg


@pytest.fixture
def client(registry: MagicMock) -> TestClient:
    """Create a TestClient with mocked dependencies injected into app_state."""
    # Build the app without lifespan (we inject deps manually)
    app = create_app(use_lifespan=False)

    performance = PerformanceService(registry, EvaluationEngine(), trend_days=7)
    app_state.registry = registry
    app_state.performance = performance
    app_state.settler = OutcomeSettler(
        registry, performance,
        lookup=lambda symbol, day: DailyBar(
            symbol=symbol, day=day, open=Decimal("100"), high=Decimal("106"),
            low=Decimal("99"), close=Decimal("104"), volume=10,
        ),
        delay_seconds=0,
    )

    with TestClient(app, raise_server_exceptions=False) as c:
        yield c

    # Cleanup
    app_state.registry = None
    app_state.performance = None
    app_state.settler = None


def _two_of_four(registry: MagicMock) -> None:
    registry.get_predictions.return_value = {f"p{i}": _prediction(f"p{i}") for i in range(4)}
    registry.get_outcomes.return_value = {
        "p0": _outcome("p0", "104"),
        "p1": _outcome("p1", "104"),
        "p2": _outcome("p2", "98"),
        "p3": _outcome("p3", "98"),
    }


# ------------------------------------------------------------------
# Daily performance
# ------------------------------------------------------------------


class TestDaily:
    def test_daily_metrics(self, client: TestClient, registry: MagicMock) -> None:
        _two_of_four(registry)
        resp = client.get("/api/hitrate/performance/daily/2024-03-04")
        assert resp.status_code == 200
        data = resp.json()
        assert data["metrics"]["date"] == "2024-03-04"
        assert data["metrics"]["directional_accuracy"] == pytest.approx(0.5)
        assert data["calibrationBand"] == "good"
        assert data["status"] == "attention"
        assert data["recommendations"][0]["type"] == "warning"
        assert data["recommendations"][0]["priority"] == "high"
        registry.save_daily_metrics.assert_not_called()

    def test_unresolved_metrics_are_null(self, client: TestClient, registry: MagicMock) -> None:
        registry.get_predictions.return_value = {"p0": _prediction("p0")}
        resp = client.get("/api/hitrate/performance/daily/2024-03-04")
        data = resp.json()
        assert data["metrics"]["total_predictions"] == 1
        assert data["metrics"]["directional_accuracy"] is None
        assert data["calibrationBand"] is None
        assert data["status"] == "healthy"
        assert data["recommendations"] == []

    def test_invalid_date(self, client: TestClient) -> None:
        resp = client.get("/api/hitrate/performance/daily/not-a-date")
        assert resp.status_code == 400


# ------------------------------------------------------------------
# Trend and rollup
# ------------------------------------------------------------------


class TestTrend:
    def test_trend_covers_range(self, client: TestClient, registry: MagicMock) -> None:
        _two_of_four(registry)
        resp = client.get(
            "/api/hitrate/performance/trend",
            params={"start": "2024-03-01", "end": "2024-03-07", "today": "2024-03-07"},
        )
        assert resp.status_code == 200
        points = resp.json()["points"]
        assert len(points) == 7
        assert [p["date"] for p in points] == sorted(p["date"] for p in points)
        assert sum(1 for p in points if p["no_data"]) == 6
        assert points[-1]["live"] is True
        day_point = next(p for p in points if p["date"] == "2024-03-04")
        assert day_point["accuracy"] == pytest.approx(0.5)

    def test_default_range_uses_trend_days(self, client: TestClient) -> None:
        resp = client.get("/api/hitrate/performance/trend", params={"end": "2024-03-10"})
        data = resp.json()
        assert data["start"] == "2024-03-04"
        assert len(data["points"]) == 7

    def test_start_after_end(self, client: TestClient) -> None:
        resp = client.get(
            "/api/hitrate/performance/trend",
            params={"start": "2024-03-07", "end": "2024-03-01"},
        )
        assert resp.status_code == 400


class TestRollup:
    def test_rollup(self, client: TestClient, registry: MagicMock) -> None:
        _two_of_four(registry)
        resp = client.get(
            "/api/hitrate/performance/rollup",
            params={"start": "2024-03-01", "end": "2024-03-07"},
        )
        data = resp.json()
        assert data["weighting"] == "unweighted_daily_mean"
        assert data["rollup"]["days"] == 1
        assert data["rollup"]["directional_accuracy"] == pytest.approx(0.5)


class TestSnapshots:
    def test_stored_snapshots(self, client: TestClient, registry: MagicMock) -> None:
        stored = DailyMetrics(
            date=DAY, total_predictions=4, resolved_predictions=4, directional_accuracy=0.5,
        )
        registry.get_daily_metrics.return_value = {DAY: stored}
        resp = client.get(
            "/api/hitrate/performance/snapshots",
            params={"start": "2024-03-01", "end": "2024-03-07"},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert [s["date"] for s in data["snapshots"]] == ["2024-03-04"]
        assert data["snapshots"][0]["directional_accuracy"] == pytest.approx(0.5)
        assert data["snapshots"][0]["hit_target_rate"] is None
        registry.get_daily_metrics.assert_called_once_with(date(2024, 3, 1), date(2024, 3, 7))
        registry.get_predictions.assert_not_called()

    def test_start_after_end(self, client: TestClient) -> None:
        resp = client.get(
            "/api/hitrate/performance/snapshots",
            params={"start": "2024-03-07", "end": "2024-03-01"},
        )
        assert resp.status_code == 400


# ------------------------------------------------------------------
# Recommendations and calibration
# ------------------------------------------------------------------


class TestRecommendations:
    def test_no_stored_day(self, client: TestClient) -> None:
        resp = client.get("/api/hitrate/performance/recommendations")
        assert resp.json() == {
            "scope": "day", "date": None, "status": "no_data", "recommendations": [],
        }

    def test_latest_stored_day(self, client: TestClient, registry: MagicMock) -> None:
        _two_of_four(registry)
        registry.get_latest_metrics_date.return_value = DAY
        data = client.get("/api/hitrate/performance/recommendations").json()
        assert data["scope"] == "day"
        assert data["date"] == "2024-03-04"
        assert data["recommendations"][0]["title"] == "Low Directional Accuracy"
        registry.save_daily_metrics.assert_not_called()

    def test_rollup_scope(self, client: TestClient, registry: MagicMock) -> None:
        _two_of_four(registry)
        data = client.get(
            "/api/hitrate/performance/recommendations",
            params={"start": "2024-03-01", "end": "2024-03-07"},
        ).json()
        assert data["scope"] == "rollup"
        assert data["status"] == "attention"


class TestCalibration:
    def test_calibration_report(self, client: TestClient, registry: MagicMock) -> None:
        _two_of_four(registry)
        data = client.get(
            "/api/hitrate/performance/calibration",
            params={"start": "2024-03-04", "end": "2024-03-04"},
        ).json()
        assert data["totalPredictions"] == 4
        assert data["calibration"] == pytest.approx(0.2)
        assert data["band"] == "good"
        assert len(data["buckets"]) == 6
        assert data["brierScore"] is not None


# ------------------------------------------------------------------
# Predictions and settlement
# ------------------------------------------------------------------


class TestPredictions:
    def test_ingest(self, client: TestClient, registry: MagicMock) -> None:
        registry.insert_predictions.return_value = 1
        resp = client.post("/api/hitrate/predictions", json={"predictions": [{
            "id": "p1", "symbol": "AAPL", "rank": 1, "prediction_date": "2024-03-04",
            "predicted_high": "106", "predicted_low": "99", "predicted_close": "104",
            "previous_close": "100", "expected_gain_percentage": "5",
            "confidence": 0.7, "market_regime": "trending",
        }]})
        assert resp.status_code == 200
        assert resp.json() == {"stored": 1, "ids": ["p1"]}
        stored = registry.insert_predictions.call_args[0][0]
        assert stored[0].previous_close == Decimal("100")
        assert stored[0].market_regime == "trending"

    def test_ingest_rejects_bad_previous_close(self, client: TestClient) -> None:
        resp = client.post("/api/hitrate/predictions", json={"predictions": [{
            "id": "p1", "symbol": "AAPL", "rank": 1, "prediction_date": "2024-03-04",
            "predicted_high": "106", "predicted_low": "99", "predicted_close": "104",
            "previous_close": "0", "expected_gain_percentage": "5",
        }]})
        assert resp.status_code == 422

    def test_ingest_empty_batch(self, client: TestClient) -> None:
        resp = client.post("/api/hitrate/predictions", json={"predictions": []})
        assert resp.status_code == 400

    def test_list_for_day(self, client: TestClient, registry: MagicMock) -> None:
        registry.get_predictions.return_value = {"p1": _prediction("p1")}
        data = client.get("/api/hitrate/predictions/2024-03-04").json()
        assert data["date"] == "2024-03-04"
        assert data["predictions"][0]["previous_close"] == 100.0


class TestSettlement:
    def test_run_settlement(self, client: TestClient, registry: MagicMock) -> None:
        registry.get_unsettled_predictions.return_value = [_prediction("p1")]
        registry.get_predictions.return_value = {"p1": _prediction("p1")}
        registry.get_outcomes.return_value = {"p1": _outcome("p1", "104")}
        resp = client.post("/api/hitrate/settlement/run", params={"day": "2024-03-04"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["settledCount"] == 1
        assert data["missingSymbols"] == []
        assert data["metrics"]["directional_accuracy"] == 1.0
        registry.upsert_outcomes.assert_called_once()

    def test_defaults_to_yesterday(self, client: TestClient) -> None:
        data = client.post("/api/hitrate/settlement/run").json()
        assert data["date"] == (date.today() - timedelta(days=1)).isoformat()
        assert data["settledCount"] == 0
        assert data["metrics"] is None


# ------------------------------------------------------------------
# System
# ------------------------------------------------------------------


class TestSystem:
    def test_health(self, client: TestClient, registry: MagicMock) -> None:
        registry.db.health_check.return_value = True
        registry.get_latest_metrics_date.return_value = DAY
        data = client.get("/api/hitrate/system/health").json()
        assert data["status"] == "healthy"
        assert data["latestMetricsDate"] == "2024-03-04"

    def test_degraded(self, client: TestClient, registry: MagicMock) -> None:
        registry.db.health_check.return_value = False
        data = client.get("/api/hitrate/system/health").json()
        assert data["status"] == "degraded"
        assert data["latestMetricsDate"] is None
