from __future__ import annotations

import logging
import math
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from dateutil import parser as date_parser

from .exceptions import InsufficientDataError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: Sequence[str] = ("date", "product", "quantity", "revenue")
SERIES_COLUMNS: Sequence[str] = ("x", "y", "date", "original_revenue")

# Fill components a partial date string leaves out, e.g. "2024-03" -> 2024-03-01.
# Parsing against two different years exposes strings that carry no year.
_DATE_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 1, 1))

RawRecords = Union[pd.DataFrame, Iterable[Mapping[str, Any]]]


def load_sales_records(sales_path: Path) -> pd.DataFrame:
    df = pd.read_csv(
        sales_path,
        dtype=str,
        keep_default_na=False,
        skipinitialspace=True,
        on_bad_lines="skip",
    )
    df.columns = [str(column).strip().lower() for column in df.columns]
    missing = set(REQUIRED_COLUMNS) - set(df.columns)
    if missing:
        raise ValueError(f"Sales data missing required columns: {sorted(missing)}")
    if df.empty:
        raise ValueError("No data rows found in the sales file.")

    records = df[list(REQUIRED_COLUMNS)].copy()
    for column in REQUIRED_COLUMNS:
        records[column] = records[column].str.strip()
    logger.debug("Loaded %d raw records from %s", len(records), sales_path)
    return records


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return None if pd.isna(value) else value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = [date_parser.parse(value.strip(), default=default) for default in _DATE_DEFAULTS]
    except (ValueError, OverflowError):
        return None
    if parsed[0].year != parsed[1].year:
        return None
    return parsed[0].date()


def _coerce_number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _is_label(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _as_frame(raw_records: RawRecords) -> pd.DataFrame:
    if isinstance(raw_records, pd.DataFrame):
        frame = raw_records.copy()
    else:
        frame = pd.DataFrame.from_records(list(raw_records))
    for column in REQUIRED_COLUMNS:
        if column not in frame.columns:
            frame[column] = None
    return frame.reset_index(drop=True)


def validate_records(raw_records: RawRecords) -> Tuple[pd.DataFrame, int]:
    """Keep the records usable for analysis and count the ones dropped.

    A record survives only if every field checks out: a parseable date, a
    non-empty product label and finite, non-negative quantity and revenue.
    Nothing is repaired. Surviving rows keep their input order and gain a
    ``ds`` column holding the parsed calendar date.
    """
    frame = _as_frame(raw_records)

    parsed_dates = frame["date"].map(_parse_date)
    quantity = frame["quantity"].map(_coerce_number).astype(float)
    revenue = frame["revenue"].map(_coerce_number).astype(float)

    keep = (
        parsed_dates.notna()
        & frame["product"].map(_is_label).astype(bool)
        & np.isfinite(quantity)
        & (quantity >= 0)
        & np.isfinite(revenue)
        & (revenue >= 0)
    )

    valid = pd.DataFrame(
        {
            "date": frame.loc[keep, "date"],
            "product": frame.loc[keep, "product"],
            "quantity": quantity[keep],
            "revenue": revenue[keep],
            "ds": pd.to_datetime(parsed_dates[keep]),
        }
    ).reset_index(drop=True)

    dropped = len(frame) - len(valid)
    if dropped:
        logger.debug("Dropped %d of %d raw records during validation", dropped, len(frame))
    return valid, dropped


def aggregate_daily_revenue(valid_records: pd.DataFrame) -> pd.DataFrame:
    if valid_records.empty:
        raise InsufficientDataError("No validated records to aggregate.", required=1, available=0)

    # Group on the parsed calendar date so differently formatted strings for
    # the same day land in one bucket.
    daily = valid_records.groupby("ds", sort=True)["revenue"].sum()
    days = pd.DatetimeIndex(daily.index)
    offsets = (days - days[0]).days

    series = pd.DataFrame(
        {
            "x": offsets.to_numpy(dtype=int),
            "y": daily.to_numpy(dtype=float),
            "date": days.strftime("%Y-%m-%d").to_numpy(),
        }
    )
    series["original_revenue"] = series["y"].copy()
    return series
