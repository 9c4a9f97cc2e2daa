"""
Tests for the dense calendar grid.
"""

import pandas as pd
import pytest

from wqroll.grid import build_calendar_grid, grid_for_readings, validate_calendar_grid


class TestBuildCalendarGrid:

    def test_row_count_is_sites_times_day_span(self, site_col):
        grid = build_calendar_grid(["A", "B", "C"], "2020-01-01", "2020-01-10")
        assert len(grid) == 3 * 10
        assert list(grid.columns) == [site_col, "Date"]

    def test_one_row_per_site_day(self, site_col):
        grid = build_calendar_grid(["A", "B"], "2019-12-30", "2020-01-02")
        assert not grid.duplicated(subset=[site_col, "Date"]).any()
        for _, days in grid.groupby(site_col)["Date"]:
            assert days.tolist() == list(pd.date_range("2019-12-30", "2020-01-02"))

    def test_order_is_deterministic(self, site_col):
        first = build_calendar_grid(["C", "A", "B", "A"], "2020-01-01", "2020-01-03")
        second = build_calendar_grid(["B", "C", "A"], "2020-01-01", "2020-01-03")
        pd.testing.assert_frame_equal(first, second)
        assert first[site_col].tolist()[:3] == ["A", "A", "A"]

    def test_single_day_range(self):
        grid = build_calendar_grid(["A"], "2020-02-29", "2020-02-29")
        assert len(grid) == 1

    def test_leap_year_span(self):
        grid = build_calendar_grid(["A"], "2020-02-01", "2020-03-01")
        assert len(grid) == 30

    def test_empty_sites_rejected(self):
        with pytest.raises(ValueError):
            build_calendar_grid([], "2020-01-01", "2020-01-02")

    def test_reversed_range_rejected(self):
        with pytest.raises(ValueError):
            build_calendar_grid(["A"], "2020-01-02", "2020-01-01")


class TestGridForReadings:

    def test_spans_observed_sites_and_dates(self, site_col):
        readings = pd.DataFrame({
            site_col: ["A", "B", "A"],
            "Date": pd.to_datetime(["2020-01-05", "2020-01-01", "2020-01-03"]),
        })
        grid = grid_for_readings(readings)
        assert len(grid) == 2 * 5
        assert grid["Date"].min() == pd.Timestamp("2020-01-01")
        assert grid["Date"].max() == pd.Timestamp("2020-01-05")


class TestValidateCalendarGrid:

    def test_valid_grid_passes(self):
        grid = build_calendar_grid(["A", "B"], "2020-01-01", "2020-01-31")
        assert validate_calendar_grid(grid, 2, "2020-01-01", "2020-01-31")

    def test_missing_row_fails(self):
        grid = build_calendar_grid(["A", "B"], "2020-01-01", "2020-01-31").drop(index=5)
        with pytest.raises(ValueError):
            validate_calendar_grid(grid, 2, "2020-01-01", "2020-01-31")

    def test_duplicate_row_fails(self):
        grid = build_calendar_grid(["A", "B"], "2020-01-01", "2020-01-31")
        grid = pd.concat([grid.iloc[:-1], grid.iloc[[0]]], ignore_index=True)
        with pytest.raises(ValueError):
            validate_calendar_grid(grid, 2, "2020-01-01", "2020-01-31")
