"""Daily revenue trend fitting and forecasting with ordinary least squares."""

from .backtest import BacktestConfig, BacktestResult, rolling_backtest
from .data import aggregate_daily_revenue, load_sales_records, validate_records
from .exceptions import InsufficientDataError
from .models import LinearTrendFit, fit_linear_trend, forecast_linear_trend
from .pipeline import (
    ForecastConfig,
    PipelineResult,
    PreprocessResult,
    RegressionModel,
    preprocess,
    run_pipeline,
    train_and_forecast,
)

__all__ = [
    "BacktestConfig",
    "BacktestResult",
    "ForecastConfig",
    "InsufficientDataError",
    "LinearTrendFit",
    "PipelineResult",
    "PreprocessResult",
    "RegressionModel",
    "aggregate_daily_revenue",
    "fit_linear_trend",
    "forecast_linear_trend",
    "load_sales_records",
    "preprocess",
    "rolling_backtest",
    "run_pipeline",
    "train_and_forecast",
    "validate_records",
]

__version__ = "0.1.0"
