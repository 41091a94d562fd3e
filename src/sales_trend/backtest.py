from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List

import numpy as np
import pandas as pd

from .metrics import mae, wmape
from .models import MIN_FIT_POINTS, fit_linear_trend

logger = logging.getLogger(__name__)


@dataclass
class BacktestConfig:
    horizon: int = 7
    min_train: int = 14
    step: int = 1

    def __post_init__(self) -> None:
        if self.horizon < 1 or self.step < 1:
            raise ValueError("Backtest horizon and step must be positive.")
        if self.min_train < MIN_FIT_POINTS:
            raise ValueError(f"Backtest needs at least {MIN_FIT_POINTS} training points.")


@dataclass
class BacktestResult:
    metrics: pd.DataFrame
    summary: Dict[str, float] = field(default_factory=dict)


def rolling_backtest(series: pd.DataFrame, config: BacktestConfig) -> BacktestResult:
    """Refit the trend on each expanding prefix and score the following days.

    Holdout predictions are clamped at zero the same way forecasts are, and
    are evaluated at the holdout points' own day offsets, so gaps in the
    daily series are respected.
    """
    records: List[dict] = []
    ordered = series.sort_values("x").reset_index(drop=True)

    for cutoff in range(config.min_train, len(ordered) - config.horizon + 1, config.step):
        train = ordered.iloc[:cutoff]
        test = ordered.iloc[cutoff : cutoff + config.horizon]
        fit = fit_linear_trend(train)
        predicted = np.maximum(fit.predict(test["x"].to_numpy()), 0.0)
        actual = test["y"].to_numpy(dtype=float)
        records.append(
            {
                "cutoff": train["date"].iloc[-1],
                "train_points": cutoff,
                "slope": fit.slope,
                "r_squared": fit.r_squared,
                "wmape": wmape(actual, predicted),
                "mae": mae(actual, predicted),
            }
        )

    metrics = pd.DataFrame.from_records(
        records,
        columns=["cutoff", "train_points", "slope", "r_squared", "wmape", "mae"],
    )
    if metrics.empty:
        logger.info(
            "Series of %d points too short for a %d+%d backtest",
            len(ordered),
            config.min_train,
            config.horizon,
        )
        return BacktestResult(metrics=metrics)

    summary = {
        "folds": float(len(metrics)),
        "wmape": float(metrics["wmape"].mean()),
        "mae": float(metrics["mae"].mean()),
    }
    return BacktestResult(metrics=metrics, summary=summary)
