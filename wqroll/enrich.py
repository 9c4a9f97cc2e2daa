"""
Output Enrichment
=================

Calendar, water-year and season labels plus the fixed output schema.
"""

import os
import tempfile

import pandas as pd

import config
from .cleaning import water_year_series
from .logging_config import get_logger
from .rolling import rolled_columns

logger = get_logger(__name__)

ID_COLUMNS = ["Site.Date", "Site", "Date", "Month", "Year", "WaterYear", "Season"]


def season_for_month(month, rules=None, default=None):
    """First rule whose months contain `month`, else the default label."""
    rules = config.SEASON_RULES if rules is None else rules
    default = config.DEFAULT_SEASON if default is None else default
    for rule in rules:
        if int(month) in rule["months"]:
            return rule["label"]
    return default


def output_columns(parameters=None, windows=None):
    return ID_COLUMNS + rolled_columns(parameters, windows)


def enrich(joined, parameters=None, windows=None):
    """Add Month, Year, WaterYear and Season, then select the output schema."""
    df = joined.copy()
    dates = pd.to_datetime(df["Date"])
    df["Month"] = dates.dt.month.astype(int)
    df["Year"] = dates.dt.year.astype(int)
    df["WaterYear"] = water_year_series(dates).astype(int)
    df["Season"] = df["Month"].map(season_for_month)
    df["Site"] = df["Site"].astype(int)

    columns = output_columns(parameters, windows)
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise KeyError(f"Enriched table is missing output columns: {missing}")

    counts = df["Season"].value_counts().to_dict()
    logger.info(f"Season labels: {counts}")
    return df[columns].reset_index(drop=True)


def write_output(df, path=None, date_format=None):
    """
    Write the final table as CSV with a 1-based row index.

    The file is written beside the target and moved into place, so a failed
    write leaves no partial output.
    """
    path = path or config.FINAL_OUTPUT_PATH
    date_format = date_format or config.OUTPUT_DATE_FORMAT

    out = df.copy()
    out.index = pd.RangeIndex(1, len(out) + 1)
    out["Date"] = pd.to_datetime(out["Date"]).dt.strftime(date_format)

    output_dir = os.path.dirname(os.path.abspath(path))
    os.makedirs(output_dir, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(prefix=".wq_final_", suffix=".csv", dir=output_dir)
    try:
        with os.fdopen(fd, "w", newline="") as f:
            out.to_csv(f, index=True)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise

    logger.info(f"Wrote {len(out)} rows x {len(out.columns)} columns to {path}")
    return path
