"""Tests for record validation, daily aggregation and CSV loading."""

import math

import pandas as pd
import pytest

from sales_trend.data import aggregate_daily_revenue, load_sales_records, validate_records
from sales_trend.exceptions import InsufficientDataError


def _record(date="2024-01-01", product="widget", quantity=1, revenue=100.0):
    return {"date": date, "product": product, "quantity": quantity, "revenue": revenue}


# ---------------------------------------------------------------------------
# validate_records
# ---------------------------------------------------------------------------


class TestValidateRecords:
    def test_counts_add_up(self):
        raw = [
            _record(),
            _record(revenue=math.nan),
            _record(date="not a date"),
            _record(product=""),
            _record(quantity=-1),
            _record(date="2024-01-02", revenue=50),
        ]
        valid, dropped = validate_records(raw)
        assert dropped + len(valid) == len(raw)
        assert dropped == 4
        assert list(valid["date"]) == ["2024-01-01", "2024-01-02"]

    def test_numeric_strings_are_accepted(self):
        valid, dropped = validate_records([_record(quantity="3", revenue=" 12.5 ")])
        assert dropped == 0
        assert valid["quantity"].iloc[0] == 3.0
        assert valid["revenue"].iloc[0] == 12.5

    def test_non_numeric_values_are_dropped(self):
        raw = [_record(quantity="abc"), _record(revenue=None), _record(revenue="inf")]
        valid, dropped = validate_records(raw)
        assert valid.empty
        assert dropped == 3

    def test_zero_values_are_kept(self):
        valid, dropped = validate_records([_record(quantity=0, revenue=0)])
        assert dropped == 0
        assert len(valid) == 1

    def test_blank_product_is_dropped(self):
        valid, dropped = validate_records([_record(product="   "), _record(product=None)])
        assert valid.empty
        assert dropped == 2

    def test_missing_fields_are_dropped(self):
        raw = [{"date": "2024-01-01", "product": "widget", "revenue": 10.0}, _record()]
        valid, dropped = validate_records(raw)
        assert dropped == 1
        assert len(valid) == 1

    def test_input_order_is_preserved(self):
        raw = [
            _record(date="2024-01-03", product="c"),
            _record(date="2024-01-01", product="a"),
            _record(date="2024-01-02", product="b"),
        ]
        valid, _ = validate_records(raw)
        assert list(valid["product"]) == ["c", "a", "b"]

    @pytest.mark.parametrize("text", ["Monday", "March", "5 June", "10:30"])
    def test_dates_without_a_year_are_dropped(self, text):
        valid, dropped = validate_records([_record(date=text), _record(date="2024-01-02")])
        assert dropped == 1
        assert list(valid["date"]) == ["2024-01-02"]

    @pytest.mark.parametrize(
        "text, expected",
        [("2024-03", "2024-03-01"), ("Jan 5 2024", "2024-01-05"), ("2024-02-29", "2024-02-29")],
    )
    def test_dates_with_a_year_are_kept(self, text, expected):
        valid, dropped = validate_records([_record(date=text)])
        assert dropped == 0
        assert valid["ds"].iloc[0] == pd.Timestamp(expected)

    def test_original_date_text_is_untouched(self):
        valid, _ = validate_records([_record(date="2024-01-05T10:30:00")])
        assert valid["date"].iloc[0] == "2024-01-05T10:30:00"
        assert valid["ds"].iloc[0] == pd.Timestamp("2024-01-05")

    def test_accepts_dataframe_with_missing_column(self):
        frame = pd.DataFrame({"date": ["2024-01-01"], "product": ["widget"], "revenue": [10.0]})
        valid, dropped = validate_records(frame)
        assert valid.empty
        assert dropped == 1

    def test_empty_input(self):
        valid, dropped = validate_records([])
        assert valid.empty
        assert dropped == 0


# ---------------------------------------------------------------------------
# aggregate_daily_revenue
# ---------------------------------------------------------------------------


class TestAggregateDailyRevenue:
    def test_sums_revenue_per_day(self):
        valid, _ = validate_records(
            [
                _record(date="2024-01-01", revenue=100),
                _record(date="2024-01-01", product="gadget", revenue=50),
                _record(date="2024-01-02", revenue=200),
            ]
        )
        series = aggregate_daily_revenue(valid)
        assert list(series["x"]) == [0, 1]
        assert list(series["y"]) == [150.0, 200.0]
        assert list(series["original_revenue"]) == [150.0, 200.0]
        assert list(series["date"]) == ["2024-01-01", "2024-01-02"]

    def test_equivalent_date_strings_share_a_day(self):
        valid, _ = validate_records(
            [
                _record(date="2024-01-05", revenue=10),
                _record(date="2024-01-05T18:45:00", revenue=5),
                _record(date="2024-01-04", revenue=1),
            ]
        )
        series = aggregate_daily_revenue(valid)
        assert list(series["date"]) == ["2024-01-04", "2024-01-05"]
        assert list(series["y"]) == [1.0, 15.0]

    def test_offsets_span_month_and_year_boundaries(self):
        valid, _ = validate_records(
            [
                _record(date="2024-03-01"),
                _record(date="2023-12-31"),
                _record(date="2024-01-01"),
            ]
        )
        series = aggregate_daily_revenue(valid)
        assert list(series["x"]) == [0, 1, 61]
        assert series["date"].iloc[0] == "2023-12-31"

    def test_gaps_are_not_filled(self):
        valid, _ = validate_records([_record(date="2024-01-01"), _record(date="2024-01-05")])
        series = aggregate_daily_revenue(valid)
        assert len(series) == 2
        assert list(series["x"]) == [0, 4]

    def test_strictly_increasing(self):
        dates = ["2024-02-10", "2024-01-15", "2024-02-10", "2024-01-01", "2024-01-20"]
        valid, _ = validate_records([_record(date=d) for d in dates])
        series = aggregate_daily_revenue(valid)
        assert series["x"].iloc[0] == 0
        assert series["x"].is_monotonic_increasing and series["x"].is_unique
        assert series["date"].is_monotonic_increasing and series["date"].is_unique

    def test_empty_input_raises(self):
        valid, _ = validate_records([])
        with pytest.raises(InsufficientDataError):
            aggregate_daily_revenue(valid)


# ---------------------------------------------------------------------------
# load_sales_records
# ---------------------------------------------------------------------------


class TestLoadSalesRecords:
    def test_normalises_headers_and_values(self, tmp_path):
        path = tmp_path / "sales.csv"
        path.write_text(
            " Date , Product ,Quantity,Revenue\n"
            "2024-01-01, widget ,2,100.5\n"
            "2024-01-02,gadget,1,\n"
        )
        records = load_sales_records(path)
        assert list(records.columns) == ["date", "product", "quantity", "revenue"]
        assert records["product"].iloc[0] == "widget"
        assert records["revenue"].iloc[0] == "100.5"

        valid, dropped = validate_records(records)
        assert len(valid) == 1
        assert dropped == 1

    def test_missing_columns(self, tmp_path):
        path = tmp_path / "sales.csv"
        path.write_text("date,product,quantity\n2024-01-01,widget,1\n")
        with pytest.raises(ValueError, match="revenue"):
            load_sales_records(path)

    def test_header_only_file(self, tmp_path):
        path = tmp_path / "sales.csv"
        path.write_text("date,product,quantity,revenue\n")
        with pytest.raises(ValueError):
            load_sales_records(path)
