from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Optional, Sequence

import pandas as pd

from .backtest import BacktestConfig, BacktestResult, rolling_backtest
from .data import load_sales_records
from .exceptions import InsufficientDataError
from .models import DEFAULT_HORIZON, MIN_FIT_POINTS, describe_fit, trend_direction
from .pipeline import ForecastConfig, PipelineResult, run_pipeline


def summarize_result(result: PipelineResult) -> str:
    data = result.data
    model = result.model
    lines: list[str] = []

    lines.append("Data summary:")
    lines.append(f"  Records kept: {len(data.valid_records)} (dropped {data.dropped_count})")
    lines.append(f"  Products: {data.product_count}")
    lines.append(f"  Date range: {data.start_date} to {data.end_date} ({len(data.time_series)} days with sales)")
    lines.append(f"  Total revenue: {data.total_revenue:,.2f}")
    lines.append(f"  Average revenue per record: {data.average_revenue:,.2f}")

    lines.append("\nLinear trend:")
    lines.append(f"  Revenue = {model.intercept:.2f} + {model.slope:.2f} x Days")
    lines.append(f"  R^2: {model.r_squared:.4f} ({describe_fit(model.r_squared)} fit)")
    lines.append(
        f"  Sales are {trend_direction(model.slope)} by approximately {abs(model.slope):,.2f} per day"
    )
    return "\n".join(lines)


def summarize_backtest(backtest: BacktestResult) -> str:
    if backtest.metrics.empty:
        return "Backtest skipped: not enough daily points."
    return (
        f"Backtest over {int(backtest.summary['folds'])} folds: "
        f"WMAPE {backtest.summary['wmape']:.4f}, MAE {backtest.summary['mae']:,.2f}"
    )


def _int_at_least(minimum: int) -> Callable[[str], int]:
    def parse(raw: str) -> int:
        try:
            value = int(raw)
        except ValueError:
            raise argparse.ArgumentTypeError(f"invalid integer: {raw!r}") from None
        if value < minimum:
            raise argparse.ArgumentTypeError(f"must be at least {minimum}, got {value}")
        return value

    return parse


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Daily revenue trend with an ordinary least squares forecast.",
    )
    parser.add_argument(
        "--sales-path",
        type=Path,
        required=True,
        help="Path to the input sales CSV (columns: date, product, quantity, revenue).",
    )
    parser.add_argument(
        "--horizon",
        type=_int_at_least(1),
        default=DEFAULT_HORIZON,
        help=f"Number of future days to forecast (default: {DEFAULT_HORIZON}).",
    )
    parser.add_argument(
        "--backtest-horizon",
        type=_int_at_least(1),
        default=7,
        help="Holdout length in days for each backtest fold (default: 7).",
    )
    parser.add_argument(
        "--min-train",
        type=_int_at_least(MIN_FIT_POINTS),
        default=14,
        help="Minimum daily points before starting rolling backtests (default: 14).",
    )
    parser.add_argument(
        "--forecast-output",
        type=Path,
        help="Optional path to write the forecast as CSV.",
    )
    parser.add_argument(
        "--series-output",
        type=Path,
        help="Optional path to write the daily series with fitted values as CSV.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    raw_records = load_sales_records(args.sales_path)
    try:
        result = run_pipeline(raw_records, ForecastConfig(horizon=args.horizon))
    except InsufficientDataError as exc:
        print(f"Cannot build a forecast: {exc}", file=sys.stderr)
        return 1

    print(summarize_result(result))

    backtest = rolling_backtest(
        result.data.time_series,
        BacktestConfig(horizon=args.backtest_horizon, min_train=args.min_train),
    )
    print("\n" + summarize_backtest(backtest))

    print(f"\nForecast (first 10 of {len(result.model.forecasts)} days):")
    print(
        result.model.forecasts.head(10).to_string(
            index=False,
            columns=["date", "y"],
            header=["date", "forecast"],
            float_format=lambda x: f"{x:.2f}",
        )
    )

    if args.forecast_output:
        result.model.forecasts.to_csv(args.forecast_output, index=False)
        print(f"\nSaved forecast to {args.forecast_output}")

    if args.series_output:
        fitted = result.data.time_series.assign(fitted=pd.Series(result.model.predictions))
        fitted.to_csv(args.series_output, index=False)
        print(f"Saved daily series to {args.series_output}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
