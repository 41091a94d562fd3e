from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd
from dateutil.relativedelta import relativedelta
from sklearn.linear_model import LinearRegression

from .data import SERIES_COLUMNS
from .exceptions import InsufficientDataError

DEFAULT_HORIZON = 30
R_SQUARED_FLOOR = 0.0
MIN_FIT_POINTS = 2


@dataclass(frozen=True, eq=False)
class LinearTrendFit:
    slope: float
    intercept: float
    r_squared: float
    predictions: np.ndarray

    def predict(self, x: np.ndarray) -> np.ndarray:
        return self.slope * np.asarray(x, dtype=float) + self.intercept


def fit_linear_trend(series: pd.DataFrame, r_squared_floor: float = R_SQUARED_FLOOR) -> LinearTrendFit:
    """Ordinary least squares of daily revenue ``y`` on the day offset ``x``.

    A series whose points all share one ``x`` gets a flat line through the
    mean. A constant ``y`` is fully explained by that line and scores an R²
    of 1; otherwise a negative R² is raised to ``r_squared_floor``.
    """
    if len(series) < MIN_FIT_POINTS:
        raise InsufficientDataError(
            f"Linear trend needs at least {MIN_FIT_POINTS} points, got {len(series)}.",
            required=MIN_FIT_POINTS,
            available=len(series),
        )

    x = series["x"].to_numpy(dtype=float)
    y = series["y"].to_numpy(dtype=float)
    y_mean = float(y.mean())
    # Compared against y[0]: the mean of equal floats can drift in the last bit.
    constant_y = bool(np.all(y == y[0]))

    if constant_y:
        slope = 0.0
        intercept = float(y[0])
    elif np.sum((x - x.mean()) ** 2) == 0:
        slope = 0.0
        intercept = y_mean
    else:
        regressor = LinearRegression()
        regressor.fit(x.reshape(-1, 1), y)
        slope = float(regressor.coef_[0])
        intercept = float(regressor.intercept_)

    predictions = slope * x + intercept
    total_sum_squares = float(np.sum((y - y_mean) ** 2))
    residual_sum_squares = float(np.sum((y - predictions) ** 2))

    if constant_y or total_sum_squares == 0:
        r_squared = 1.0
    else:
        r_squared = max(r_squared_floor, 1.0 - residual_sum_squares / total_sum_squares)

    return LinearTrendFit(slope=slope, intercept=intercept, r_squared=r_squared, predictions=predictions)


def forecast_linear_trend(
    series: pd.DataFrame,
    slope: float,
    intercept: float,
    horizon: int = DEFAULT_HORIZON,
) -> pd.DataFrame:
    if series.empty:
        raise InsufficientDataError("Cannot extend an empty series.", required=1, available=0)
    if horizon < 1:
        raise ValueError(f"Forecast horizon must be positive, got {horizon}.")

    last_row = series.loc[series["x"].idxmax()]
    last_x = int(last_row["x"])
    last_date = pd.Timestamp(last_row["date"])

    steps = np.arange(1, horizon + 1)
    future_x = last_x + steps
    projected = slope * future_x.astype(float) + intercept
    future_dates = [(last_date + relativedelta(days=int(step))).strftime("%Y-%m-%d") for step in steps]

    forecasts = pd.DataFrame(
        {
            "x": future_x,
            "y": np.maximum(projected, 0.0),
            "date": future_dates,
            "original_revenue": projected,
        }
    )
    return forecasts[list(SERIES_COLUMNS)]


def describe_fit(r_squared: float) -> str:
    if r_squared > 0.7:
        return "good"
    if r_squared > 0.5:
        return "moderate"
    return "low"


def trend_direction(slope: float) -> str:
    return "increasing" if slope > 0 else "decreasing"
