"""
Tests for aligning readings onto the calendar grid.
"""

import math

import pandas as pd
import pytest

from wqroll.alignment import align_to_grid, resolve_duplicates
from wqroll.exceptions import JoinKeyMismatch
from wqroll.grid import build_calendar_grid


@pytest.fixture
def grid():
    return build_calendar_grid(["A", "B"], "2020-01-01", "2020-01-05")


@pytest.fixture
def readings(site_col):
    return pd.DataFrame({
        site_col: ["B", "A", "A"],
        "Date": pd.to_datetime(["2020-01-03", "2020-01-01", "2020-01-05"]),
        "DO.Average": [7.0, 8.0, 9.0],
        "Note": ["b", "a1", "a5"],
    })


class TestAlignToGrid:

    def test_every_grid_row_appears_once(self, grid, readings, site_col):
        aligned = align_to_grid(grid, readings)
        assert len(aligned) == len(grid)
        assert not aligned.duplicated(subset=[site_col, "Date"]).any()

    def test_values_land_on_their_day(self, grid, readings, site_col):
        aligned = align_to_grid(grid, readings).set_index([site_col, "Date"])
        assert aligned.loc[("A", pd.Timestamp("2020-01-01")), "DO.Average"] == 8.0
        assert aligned.loc[("A", pd.Timestamp("2020-01-05")), "DO.Average"] == 9.0
        assert aligned.loc[("B", pd.Timestamp("2020-01-03")), "DO.Average"] == 7.0
        assert math.isnan(aligned.loc[("A", pd.Timestamp("2020-01-02")), "DO.Average"])
        assert aligned["DO.Average"].notna().sum() == 3

    def test_sorted_by_site_then_date(self, grid, readings, site_col):
        aligned = align_to_grid(grid, readings)
        assert aligned[site_col].tolist() == ["A"] * 5 + ["B"] * 5
        for _, days in aligned.groupby(site_col)["Date"]:
            assert days.is_monotonic_increasing


class TestDuplicatePolicy:

    @pytest.fixture
    def duplicated(self, readings, site_col):
        extra = pd.DataFrame({
            site_col: ["A"],
            "Date": pd.to_datetime(["2020-01-01"]),
            "DO.Average": [10.0],
            "Note": ["a1-second"],
        })
        return pd.concat([readings, extra], ignore_index=True)

    def test_first_keeps_source_order(self, duplicated, site_col):
        out = resolve_duplicates(duplicated, policy="first")
        row = out[(out[site_col] == "A") & (out["Date"] == "2020-01-01")]
        assert len(row) == 1
        assert row["DO.Average"].iloc[0] == 8.0

    def test_mean_averages_numeric_columns(self, duplicated, site_col):
        out = resolve_duplicates(duplicated, policy="mean")
        row = out[(out[site_col] == "A") & (out["Date"] == "2020-01-01")]
        assert len(row) == 1
        assert row["DO.Average"].iloc[0] == 9.0
        assert row["Note"].iloc[0] == "a1"
        assert list(out.columns) == list(duplicated.columns)

    def test_error_raises_join_key_mismatch(self, duplicated):
        with pytest.raises(JoinKeyMismatch) as exc_info:
            resolve_duplicates(duplicated, policy="error")
        assert len(exc_info.value.keys) == 1

    def test_unknown_policy_rejected(self, duplicated):
        with pytest.raises(ValueError):
            resolve_duplicates(duplicated, policy="last")

    def test_alignment_applies_policy(self, grid, duplicated):
        aligned = align_to_grid(grid, duplicated, policy="first")
        assert len(aligned) == len(grid)

    def test_no_duplicates_returns_input(self, readings):
        assert resolve_duplicates(readings, policy="error") is readings
