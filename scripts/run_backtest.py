#!/usr/bin/env python3
"""
Command-line backtest runner.

Usage:
    python scripts/run_backtest.py --strategy macd-crossover --symbol AAPL \
        --start 2023-01-01 --end 2023-12-31 --data-dir ./data
    python scripts/run_backtest.py --request request.json --json
    python scripts/run_backtest.py --list
    python scripts/run_backtest.py --suggest --symbols AAPL,MSFT --cash 5000 --data-dir ./data
"""

import argparse
import json
import sys
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from stratsim_engine.backtest.engine import BacktestEngine
from stratsim_engine.backtest.models import BacktestRequest, BacktestResult
from stratsim_engine.config import get_settings
from stratsim_engine.data.csv_store import CsvDataService
from stratsim_engine.errors import BacktestError
from stratsim_engine.logging import setup_logging
from stratsim_engine.optimization.active_choice import ActiveChoiceStore
from stratsim_engine.optimization.models import StrategySuggestion, SuggestionRequest
from stratsim_engine.optimization.selector import build_regimes
from stratsim_engine.optimization.suggestion import StrategySuggester
from stratsim_engine.strategies.registry import create_default_registry


def _parse_date(value: str) -> datetime:
    dt = datetime.fromisoformat(value)
    return dt if dt.tzinfo else dt.replace(tzinfo=UTC)


def build_request(args: argparse.Namespace) -> BacktestRequest:
    """Build the request from a JSON file or from individual flags."""
    if args.request:
        payload = json.loads(Path(args.request).read_text())
        return BacktestRequest.model_validate(payload)

    if not (args.strategy and args.symbol and args.start and args.end):
        raise SystemExit("--strategy, --symbol, --start and --end are required without --request")

    return BacktestRequest(
        symbol=args.symbol,
        start_date=_parse_date(args.start),
        end_date=_parse_date(args.end),
        initial_cash=args.cash,
        strategy_id=args.strategy,
        strategy_params=json.loads(args.params) if args.params else {},
        source_name=args.source,
        interval=args.interval,
    )


def print_summary(result: BacktestResult) -> None:
    """Print a human-readable summary."""
    print(f"\n{'='*60}")
    print(f"Run ID: {result.run_id}")
    print(f"Strategy: {result.strategy_id} on {result.symbol}")
    print(f"Bars processed: {result.data_points_processed}")
    print(f"{'='*60}")
    print(f"Initial value:  {result.initial_portfolio_value:,.2f}")
    print(f"Final value:    {result.final_portfolio_value:,.2f}")
    print(f"P&L:            {result.total_profit_or_loss:,.2f} ({result.profit_or_loss_percentage:.2f}%)")
    print(f"Trades:         {result.total_trades}")

    print("\nMetrics:")
    for key in ("sharpe_ratio", "max_drawdown", "cagr", "win_rate"):
        value = getattr(result, key)
        print(f"  {key}: {value:.4f}" if value is not None else f"  {key}: n/a")

    if result.decision_log is not None:
        regimes = build_regimes(result.decision_log, [p.timestamp for p in result.equity_curve])
        print(f"\nSelector regimes: {len(regimes)}")
        for regime in regimes:
            print(
                f"  {regime.start.date()} -> {regime.end.date()} "
                f"({regime.bars} bars): {regime.strategy_id or 'HOLD'}"
            )


def print_suggestion(suggestion: StrategySuggestion) -> None:
    """Print a human-readable suggestion."""
    print(f"\n{'='*60}")
    for evaluation in suggestion.evaluations:
        print(
            f"  {evaluation.symbol:10} {evaluation.strategy_id:20} "
            f"P&L {evaluation.pnl:,.2f}  score {evaluation.evaluation_score:.4f}"
        )
    print(f"{'='*60}")
    if suggestion.suggested_strategy_id:
        print(f"Suggested: {suggestion.suggested_strategy_name} on {suggestion.symbol}")
        print(f"Parameters: {json.dumps(suggestion.suggested_parameters, sort_keys=True)}")
    print(suggestion.message)


def run_suggestion(args, registry, data_service, settings) -> int:
    symbols = [s.strip() for s in args.symbols.split(",") if s.strip()] if args.symbols else None
    try:
        request = SuggestionRequest(
            symbols=symbols,
            initial_cash=args.cash,
            evaluation_metric=args.metric,
            overall_metric=args.metric,
            interval=args.interval or "1d",
            source_name=args.source,
            as_of=_parse_date(args.end) if args.end else None,
        )
        suggestion = StrategySuggester(registry, data_service, settings=settings).suggest(request)
    except (BacktestError, PydanticValidationError) as e:
        print(f"Suggestion failed: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(suggestion.model_dump_json(indent=2))
    else:
        print_suggestion(suggestion)
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Run a StratSim backtest")
    parser.add_argument("--request", help="JSON file holding a full backtest request")
    parser.add_argument("--strategy", help="Strategy id")
    parser.add_argument("--symbol", help="Symbol to backtest")
    parser.add_argument("--start", help="Start date (ISO format)")
    parser.add_argument("--end", help="End date (ISO format)")
    parser.add_argument("--cash", type=float, default=10000.0, help="Initial cash")
    parser.add_argument("--params", help="Strategy parameters as a JSON object")
    parser.add_argument("--interval", help="Bar interval, e.g. 1d")
    parser.add_argument("--source", help="Data source sub-directory")
    parser.add_argument("--data-dir", help="Directory holding <symbol>.csv files")
    parser.add_argument("--json", action="store_true", help="Print the full result as JSON")
    parser.add_argument("--list", action="store_true", help="List available strategies")
    parser.add_argument(
        "--suggest", action="store_true", help="Suggest a strategy for --cash across symbols"
    )
    parser.add_argument("--symbols", help="Comma-separated symbols for --suggest (default: all)")
    parser.add_argument("--metric", default="pnl", help="Metric for --suggest: pnl, sharpe, winRate")
    args = parser.parse_args()

    settings = get_settings()
    setup_logging(level=settings.log_level, json_output=settings.json_logs)
    registry = create_default_registry(ActiveChoiceStore(), settings=settings)

    if args.list:
        for descriptor in registry.list_strategies():
            print(f"{descriptor.id:20} {descriptor.name}")
        return 0

    data_dir = Path(args.data_dir) if args.data_dir else settings.data_dir
    data_service = CsvDataService(data_dir)

    if args.suggest:
        return run_suggestion(args, registry, data_service, settings)

    engine = BacktestEngine(registry, data_service, settings=settings)

    try:
        result = engine.run(build_request(args))
    except BacktestError as e:
        print(f"Backtest failed: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(result.model_dump_json(indent=2))
    else:
        print_summary(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
