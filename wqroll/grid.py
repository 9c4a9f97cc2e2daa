"""
Calendar Grid
=============

Dense (site, day) template that sparse readings are aligned onto, so that a
trailing window of N rows always spans N calendar days.
"""

import pandas as pd

import config
from .logging_config import get_logger

logger = get_logger(__name__)


def build_calendar_grid(sites, start_dt, end_dt, site_col=None):
    """
    Generate every (site, day) pair for the closed range [start_dt, end_dt].

    Sites are sorted and days ascend within each site, so the grid order is
    reproducible for a given input.

    Returns:
        pd.DataFrame: Columns [site_col, "Date"], |sites| * day-span rows
    """
    site_col = site_col or config.SITE_CODE_COLUMN
    sites = sorted({str(s) for s in sites if pd.notna(s)})
    if not sites:
        raise ValueError("Cannot build a calendar grid with no sites")

    start_dt = pd.Timestamp(start_dt).normalize()
    end_dt = pd.Timestamp(end_dt).normalize()
    if start_dt > end_dt:
        raise ValueError(f"Grid start {start_dt.date()} is after end {end_dt.date()}")

    days = pd.date_range(start_dt, end_dt, freq="D", name="Date")
    logger.info(f"Generating daily entries from {start_dt.date()} to {end_dt.date()} ({len(days)} days)")

    df_list = []
    for site in sites:
        df_list.append(pd.DataFrame({site_col: site, "Date": days}))

    grid = pd.concat(df_list, ignore_index=True)
    logger.info(f"Generated calendar grid with {len(grid)} site-day rows ({len(sites)} sites x {len(days)} days)")
    return grid


def grid_for_readings(readings, site_col=None):
    """Grid spanning the sites and date range present in cleaned readings."""
    site_col = site_col or config.SITE_CODE_COLUMN
    if readings.empty:
        raise ValueError("No cleaned readings to build a calendar grid from")
    return build_calendar_grid(readings[site_col].unique(), readings["Date"].min(), readings["Date"].max(), site_col)


def validate_calendar_grid(grid, n_sites, start_dt, end_dt, site_col=None):
    """Check the one-row-per-(site, day), no-gap invariant."""
    site_col = site_col or config.SITE_CODE_COLUMN
    span = (pd.Timestamp(end_dt).normalize() - pd.Timestamp(start_dt).normalize()).days + 1
    expected = n_sites * span

    if len(grid) != expected:
        raise ValueError(f"Calendar grid has {len(grid)} rows, expected {expected} ({n_sites} x {span})")
    if grid.duplicated(subset=[site_col, "Date"]).any():
        raise ValueError("Calendar grid contains duplicate (site, day) rows")
    per_site = grid.groupby(site_col)["Date"].agg(["min", "max", "count"])
    if (per_site["count"] != span).any():
        raise ValueError("Calendar grid has gaps for some sites")
    return True
