from __future__ import annotations

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from hitrate.config import AppConfig
from hitrate.evaluation.engine import EvaluationEngine
from hitrate.models.metrics import DailyMetrics
from hitrate.models.prediction import Outcome, Prediction
from hitrate.performance import PerformanceService
from hitrate.registry.queries import Registry

DAY = date(2024, 3, 4)


def _prediction(id: str = "p1", previous: str = "100") -> Prediction:
    return Prediction(
        id=id, symbol="AAPL", rank=1, prediction_date=DAY,
        predicted_high=Decimal("106"), predicted_low=Decimal("99"),
        predicted_close=Decimal("104"), previous_close=Decimal(previous),
        expected_gain_percentage=Decimal("5"), confidence=Decimal("0.8"),
    )


@pytest.fixture
def registry() -> MagicMock:
    reg = MagicMock(spec=Registry)
    reg.get_predictions.return_value = {"p1": _prediction()}
    reg.get_outcomes.return_value = {
        "p1": Outcome(
            prediction_id="p1", actual_high=Decimal("106"),
            actual_low=Decimal("99"), actual_close=Decimal("104"),
        ),
    }
    return reg


class TestEvaluateDay:
    def test_persists_snapshot(self, registry: MagicMock) -> None:
        service = PerformanceService(registry, EvaluationEngine())
        evaluation = service.evaluate_day(DAY)
        assert evaluation.metrics.directional_accuracy == 1.0
        registry.get_predictions.assert_called_once_with(DAY, DAY)
        registry.get_outcomes.assert_called_once_with(["p1"])
        registry.save_daily_metrics.assert_called_once_with(evaluation.metrics)

    def test_persistence_disabled(self, registry: MagicMock) -> None:
        service = PerformanceService(registry, EvaluationEngine(), persist_metrics=False)
        service.evaluate_day(DAY)
        registry.save_daily_metrics.assert_not_called()

    def test_read_only_evaluation_not_persisted(self, registry: MagicMock) -> None:
        service = PerformanceService(registry, EvaluationEngine())
        evaluation = service.evaluate_day(DAY, persist=False)
        assert evaluation.metrics.directional_accuracy == 1.0
        registry.save_daily_metrics.assert_not_called()

    def test_empty_day_not_persisted(self, registry: MagicMock) -> None:
        registry.get_predictions.return_value = {}
        registry.get_outcomes.return_value = {}
        service = PerformanceService(registry, EvaluationEngine())
        evaluation = service.evaluate_day(DAY)
        assert evaluation.metrics.total_predictions == 0
        registry.save_daily_metrics.assert_not_called()

    def test_skipped_reported(self, registry: MagicMock) -> None:
        registry.get_predictions.return_value = {
            "p1": _prediction(), "bad": _prediction("bad", previous="0"),
        }
        service = PerformanceService(registry, EvaluationEngine())
        evaluation = service.evaluate_day(DAY)
        assert [s.prediction_id for s in evaluation.skipped] == ["bad"]
        assert evaluation.metrics.total_predictions == 1


class TestEvaluateRange:
    def test_fetches_whole_range(self, registry: MagicMock) -> None:
        service = PerformanceService(registry, EvaluationEngine())
        end = date(2024, 3, 6)
        evaluation = service.evaluate_range(DAY, end)
        registry.get_predictions.assert_called_once_with(DAY, end)
        assert len(evaluation.trend) == 3
        assert evaluation.rollup.days == 1

    def test_start_after_end(self, registry: MagicMock) -> None:
        service = PerformanceService(registry, EvaluationEngine())
        with pytest.raises(ValueError):
            service.evaluate_range(date(2024, 3, 6), DAY)
        registry.get_predictions.assert_not_called()


class TestDefaults:
    def test_default_range(self, registry: MagicMock) -> None:
        service = PerformanceService(registry, EvaluationEngine(), trend_days=7)
        start, end = service.default_range(date(2024, 3, 10))
        assert start == date(2024, 3, 4)
        assert end == date(2024, 3, 10)

    def test_from_config(self, registry: MagicMock) -> None:
        config = AppConfig(db_dsn="", trend_days=14, persist_metrics=False)
        service = PerformanceService.from_config(registry, config)
        assert service.trend_days == 14
        service.evaluate_day(DAY)
        registry.save_daily_metrics.assert_not_called()

    def test_latest_day(self, registry: MagicMock) -> None:
        registry.get_latest_metrics_date.return_value = DAY
        service = PerformanceService(registry, EvaluationEngine())
        assert service.latest_day() == DAY


class TestStoredMetrics:
    def test_ascending_by_date(self, registry: MagicMock) -> None:
        later = DailyMetrics(date=date(2024, 3, 5), total_predictions=2, resolved_predictions=2)
        earlier = DailyMetrics(date=DAY, total_predictions=4, resolved_predictions=0)
        registry.get_daily_metrics.return_value = {later.date: later, earlier.date: earlier}
        service = PerformanceService(registry, EvaluationEngine())
        assert service.stored_metrics(DAY, date(2024, 3, 6)) == [earlier, later]
        registry.get_daily_metrics.assert_called_once_with(DAY, date(2024, 3, 6))

    def test_start_after_end(self, registry: MagicMock) -> None:
        service = PerformanceService(registry, EvaluationEngine())
        with pytest.raises(ValueError):
            service.stored_metrics(date(2024, 3, 6), DAY)
        registry.get_daily_metrics.assert_not_called()
