from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

from .data import RawRecords, aggregate_daily_revenue, validate_records
from .exceptions import InsufficientDataError
from .models import (
    DEFAULT_HORIZON,
    R_SQUARED_FLOOR,
    fit_linear_trend,
    forecast_linear_trend,
)

logger = logging.getLogger(__name__)


@dataclass
class ForecastConfig:
    horizon: int = DEFAULT_HORIZON
    r_squared_floor: float = R_SQUARED_FLOOR

    def __post_init__(self) -> None:
        if self.horizon < 1:
            raise ValueError(f"Forecast horizon must be positive, got {self.horizon}.")


@dataclass(frozen=True, eq=False)
class PreprocessResult:
    valid_records: pd.DataFrame
    dropped_count: int
    time_series: pd.DataFrame
    total_revenue: float
    average_revenue: float
    product_count: int
    start_date: str
    end_date: str

    @property
    def record_count(self) -> int:
        return len(self.valid_records) + self.dropped_count


@dataclass(frozen=True, eq=False)
class RegressionModel:
    slope: float
    intercept: float
    r_squared: float
    predictions: np.ndarray
    forecasts: pd.DataFrame


@dataclass(frozen=True, eq=False)
class PipelineResult:
    data: PreprocessResult
    model: RegressionModel


def preprocess(raw_records: RawRecords) -> PreprocessResult:
    valid, dropped = validate_records(raw_records)
    if valid.empty:
        raise InsufficientDataError(
            f"No records survived validation ({dropped} dropped).",
            required=1,
            available=0,
        )

    series = aggregate_daily_revenue(valid)
    total_revenue = float(valid["revenue"].sum())
    logger.info(
        "Validated %d records (%d dropped) into %d daily points",
        len(valid),
        dropped,
        len(series),
    )

    return PreprocessResult(
        valid_records=valid,
        dropped_count=dropped,
        time_series=series,
        total_revenue=total_revenue,
        average_revenue=total_revenue / len(valid),
        product_count=int(valid["product"].nunique()),
        start_date=str(series["date"].iloc[0]),
        end_date=str(series["date"].iloc[-1]),
    )


def train_and_forecast(time_series: pd.DataFrame, config: ForecastConfig | None = None) -> RegressionModel:
    if config is None:
        config = ForecastConfig()
    fit = fit_linear_trend(time_series, r_squared_floor=config.r_squared_floor)
    forecasts = forecast_linear_trend(time_series, fit.slope, fit.intercept, horizon=config.horizon)
    logger.info(
        "Fitted revenue = %.2f + %.2f * day (R^2=%.4f); forecast %d days",
        fit.intercept,
        fit.slope,
        fit.r_squared,
        config.horizon,
    )

    return RegressionModel(
        slope=fit.slope,
        intercept=fit.intercept,
        r_squared=fit.r_squared,
        predictions=fit.predictions,
        forecasts=forecasts,
    )


def run_pipeline(raw_records: RawRecords, config: ForecastConfig | None = None) -> PipelineResult:
    data = preprocess(raw_records)
    model = train_and_forecast(data.time_series, config)
    return PipelineResult(data=data, model=model)
