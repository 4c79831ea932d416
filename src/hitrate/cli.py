"""CLI entry point for Hitrate.

Provides commands for the evaluation workflow:
  - evaluate: Compute (and store) a day's performance metrics
  - trend: Print the day-by-day trend over a date range
  - recommend: Print recommendations for a day or a rollup
  - settle: Record realized outcomes for a day's predictions
  - migrate: Run database migrations
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date, timedelta

from hitrate.config import load_config
from hitrate.evaluation.calibration import calibration_band
from hitrate.models.recommendation import Recommendation
from hitrate.models.serialize import jsonable
from hitrate.performance import PerformanceService
from hitrate.registry.db import Database
from hitrate.registry.queries import Registry


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _fmt(value: float | None, pct: bool = True) -> str:
    if value is None:
        return "N/A"
    return f"{value:.1%}" if pct else f"{value:+.3f}"


def _connect() -> tuple[Database, PerformanceService]:
    config = load_config()
    db = Database(config.db_dsn)
    db.connect()
    return db, PerformanceService.from_config(Registry(db), config)


def _print_recommendations(recs: list[Recommendation]) -> None:
    if not recs:
        print("All systems performing well. No recommendations.")
        return
    for rec in recs:
        print(f"  [{rec.priority.value.upper():6s}] {rec.type.value}: {rec.title}")
        print(f"           {rec.description}")


def cmd_evaluate(args: argparse.Namespace) -> None:
    """Compute and store a day's metrics."""
    db, service = _connect()
    try:
        evaluation = service.evaluate_day(args.day)
    finally:
        db.close()

    m = evaluation.metrics
    if args.json:
        print(json.dumps({
            "metrics": jsonable(m),
            "skipped": [s.prediction_id for s in evaluation.skipped],
            "recommendations": jsonable(evaluation.recommendations),
        }, indent=2))
        return

    print(f"Performance for {m.date}:")
    print(f"  Predictions: {m.total_predictions} ({m.resolved_predictions} resolved)")
    print(f"  Directional accuracy: {_fmt(m.directional_accuracy)}")
    print(f"  Hit target: {_fmt(m.hit_target_rate)}  Closed target: {_fmt(m.closed_target_rate)}")
    print(
        f"  Price accuracy H/L/C: {_fmt(m.high_accuracy_avg)} / "
        f"{_fmt(m.low_accuracy_avg)} / {_fmt(m.close_accuracy_avg)}"
    )
    band = calibration_band(m.confidence_calibration)
    print(
        f"  Calibration: {_fmt(m.confidence_calibration, pct=False)} ({band or 'N/A'}), "
        f"correlation {_fmt(m.confidence_accuracy_correlation, pct=False)}"
    )
    print(
        f"  Trending/choppy accuracy: {_fmt(m.trending_market_accuracy)} / "
        f"{_fmt(m.choppy_market_accuracy)}"
    )
    if m.best_performing_signal:
        print(f"  Best signal: {m.best_performing_signal}  Worst: {m.worst_performing_signal}")
    if evaluation.skipped:
        print(f"\nSkipped {len(evaluation.skipped)} invalid predictions:")
        for s in evaluation.skipped:
            print(f"  {s.prediction_id}: {s.reason}")
    print("\nRecommendations:")
    _print_recommendations(evaluation.recommendations)


def cmd_trend(args: argparse.Namespace) -> None:
    """Print the trend table for a date range."""
    db, service = _connect()
    try:
        end = args.end or date.today()
        start = args.start or end - timedelta(days=(args.days or service.trend_days) - 1)
        evaluation = service.evaluate_range(start, end, today=date.today())
    except ValueError as e:
        logging.error("Invalid trend range: %s", e)
        sys.exit(1)
    finally:
        db.close()

    print(f"Trend {start} .. {end}:")
    print(f"  {'date':10s} {'n':>4s} {'acc':>7s} {'conf':>7s} {'hit':>7s} {'closed':>7s}")
    for p in evaluation.trend:
        if p.no_data:
            print(f"  {p.date.isoformat():10s} {0:4d}  no data")
            continue
        flag = "  (live)" if p.live else ""
        print(
            f"  {p.date.isoformat():10s} {p.predictions_count:4d} {p.accuracy:7.1%} "
            f"{p.confidence:7.1%} {p.hit_target_rate:7.1%} {p.closed_target_rate:7.1%}{flag}"
        )
    r = evaluation.rollup
    print(
        f"\nRollup over {r.days} days (unweighted daily mean): "
        f"accuracy {_fmt(r.directional_accuracy)}, {r.total_predictions} predictions"
    )


def cmd_recommend(args: argparse.Namespace) -> None:
    """Print recommendations for a day or a date range."""
    db, service = _connect()
    try:
        if args.start or args.end:
            end = args.end or date.today()
            start = args.start or end - timedelta(days=service.trend_days - 1)
            try:
                recs = service.evaluate_range(start, end).recommendations
            except ValueError as e:
                logging.error("Invalid recommendation range: %s", e)
                sys.exit(1)
            print(f"Recommendations for {start} .. {end} (rollup):")
        else:
            day = args.day or service.latest_day()
            if day is None:
                print("No stored metrics yet.")
                return
            recs = service.evaluate_day(day, persist=False).recommendations
            print(f"Recommendations for {day}:")
    finally:
        db.close()
    _print_recommendations(recs)


def cmd_settle(args: argparse.Namespace) -> None:
    """Record realized outcomes for a day's predictions."""
    from hitrate.settlement.settler import OutcomeSettler

    config = load_config()
    db = Database(config.db_dsn)
    db.connect()
    try:
        registry = Registry(db)
        service = PerformanceService.from_config(registry, config)
        settler = OutcomeSettler(registry, service, delay_seconds=config.settle_delay_seconds)
        day = args.day or date.today() - timedelta(days=1)
        result = settler.settle(day)
    finally:
        db.close()

    print(f"Settled {len(result.settled)} predictions for {day}")
    if result.missing_symbols:
        print(f"  No market data: {', '.join(result.missing_symbols)}")
    if result.metrics is not None:
        print(f"  Directional accuracy: {_fmt(result.metrics.directional_accuracy)}")


def cmd_migrate(args: argparse.Namespace) -> None:
    """Run database migrations."""
    config = load_config()
    db = Database(config.db_dsn)
    db.connect()
    try:
        applied = db.run_migrations()
    finally:
        db.close()
    print(f"Migrations complete ({len(applied)} applied).")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="hitrate",
        description="Prediction evaluation and calibration engine",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subs = parser.add_subparsers(dest="command", required=True)

    # evaluate
    p_eval = subs.add_parser("evaluate", help="Compute a day's performance metrics")
    p_eval.add_argument("day", type=date.fromisoformat, help="Trading date (YYYY-MM-DD)")
    p_eval.add_argument("--json", action="store_true", help="Print JSON instead of a summary")

    # trend
    p_trend = subs.add_parser("trend", help="Print the trend over a date range")
    p_trend.add_argument("--start", type=date.fromisoformat, help="First date")
    p_trend.add_argument("--end", type=date.fromisoformat, help="Last date (default today)")
    p_trend.add_argument("--days", type=int, help="Range length when --start is omitted")

    # recommend
    p_rec = subs.add_parser("recommend", help="Print recommendations")
    p_rec.add_argument("day", nargs="?", type=date.fromisoformat,
                       help="Trading date (default: latest stored)")
    p_rec.add_argument("--start", type=date.fromisoformat, help="Rollup start date")
    p_rec.add_argument("--end", type=date.fromisoformat, help="Rollup end date")

    # settle
    p_settle = subs.add_parser("settle", help="Record realized outcomes for a date")
    p_settle.add_argument("day", nargs="?", type=date.fromisoformat,
                          help="Trading date (default yesterday)")

    # migrate
    subs.add_parser("migrate", help="Run database migrations")

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    commands = {
        "evaluate": cmd_evaluate,
        "trend": cmd_trend,
        "recommend": cmd_recommend,
        "settle": cmd_settle,
        "migrate": cmd_migrate,
    }
    commands[args.command](args)


if __name__ == "__main__":
    main()
