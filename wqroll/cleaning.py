"""
Water-Quality Cleaning
======================

Site-code normalization, detection-limit censoring, water-year annotation and
water-year filtering of the raw WQ feed.

Censored readings become NaN rather than the floor value so that they do not
bias the rolling means downstream.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import numpy as np
import pandas as pd

import config
from .exceptions import JoinKeyMismatch, ParseError
from .logging_config import get_logger

logger = get_logger(__name__)

# Readings and limits are both decimal literals from CSV, so equality is exact
# up to float noise.
_LIMIT_ATOL = 1e-9


@dataclass(frozen=True)
class DetectionLimitEra:
    """Detection limits in force for a closed range of sample years (None = open)."""

    first_year: Optional[int]
    last_year: Optional[int]
    limits: dict = field(default_factory=dict)


def eras_from_config(rules=None) -> list[DetectionLimitEra]:
    rules = config.DETECTION_LIMIT_ERAS if rules is None else rules
    return [
        DetectionLimitEra(r.get("first_year"), r.get("last_year"), dict(r.get("limits", {})))
        for r in rules
    ]


def era_thresholds(eras, column):
    """(first_year, last_year, threshold) tuples for one column, as used by censor()."""
    return [(era.first_year, era.last_year, era.limits[column]) for era in eras if column in era.limits]


def censor(value, sample_year, limits_by_era):
    """
    Treat a value reported at the detection limit as missing.

    Args:
        value: Reading
        sample_year: Sample year used to pick the era
        limits_by_era: Iterable of (first_year, last_year, threshold) tuples,
            either bound may be None

    Returns:
        NaN if value equals the era threshold, else value
    """
    if value is None or pd.isna(value) or sample_year is None or pd.isna(sample_year):
        return value
    for first_year, last_year, threshold in limits_by_era:
        if first_year is not None and sample_year < first_year:
            continue
        if last_year is not None and sample_year > last_year:
            continue
        if np.isclose(value, threshold, rtol=0.0, atol=_LIMIT_ATOL):
            return np.nan
        return value
    return value


def censor_detection_limits(df, eras=None, year_col=None):
    """Vectorized censor() over every column named in the era table."""
    eras = eras_from_config() if eras is None else eras
    year_col = year_col or config.WQ_SAMPLE_YEAR_COLUMN
    df = df.copy()

    columns = list(dict.fromkeys(c for era in eras for c in era.limits))
    years = df[year_col]
    for col in columns:
        if col not in df.columns:
            continue
        censored = pd.Series(False, index=df.index)
        values = df[col].to_numpy(dtype=float)
        for first_year, last_year, threshold in era_thresholds(eras, col):
            in_era = years.notna()
            if first_year is not None:
                in_era &= years >= first_year
            if last_year is not None:
                in_era &= years <= last_year
            at_limit = np.isclose(values, threshold, rtol=0.0, atol=_LIMIT_ATOL)
            censored |= in_era & at_limit
        df.loc[censored, col] = np.nan
        logger.info(f"{col}: {int(censored.sum())} readings at detection limit set to missing")
    return df


def censor_qualified(df, qualifier_map=None, flag=None):
    """Set bacteria counts whose qualifier is `flag` ("<") to missing, in any era."""
    qualifier_map = config.BACTERIA_QUALIFIERS if qualifier_map is None else qualifier_map
    flag = config.CENSORED_QUALIFIER if flag is None else flag
    df = df.copy()

    for value_col, qualifier_col in qualifier_map.items():
        if value_col not in df.columns or qualifier_col not in df.columns:
            logger.debug(f"Skipping qualifier censoring for {value_col}: column(s) absent")
            continue
        below = df[qualifier_col].fillna("").astype(str).str.strip() == flag
        df.loc[below, value_col] = np.nan
        logger.info(f"{value_col}: {int(below.sum())} readings qualified '{flag}' set to missing")
    return df


def water_year(date):
    """USGS water year: Oct 1 of Y-1 through Sep 30 of Y belongs to Y."""
    date = pd.Timestamp(date)
    return date.year + 1 if date.month >= 10 else date.year


def water_year_series(dates):
    dates = pd.to_datetime(dates)
    return (dates.dt.year + (dates.dt.month >= 10).astype(int)).astype("Int64")


def parse_dates(df, column=None, fmt=None):
    """Parse a date column to midnight timestamps, dropping unparseable rows."""
    column = column or config.WQ_DATE_COLUMN
    fmt = config.WQ_DATE_FORMAT if fmt is None else fmt
    df = df.copy()

    raw = df[column].astype("string").str.strip()
    df[column] = pd.to_datetime(raw, format=fmt, errors="coerce").dt.normalize()
    bad = df[column].isna()
    if bad.all() and len(df):
        raise ParseError(column, f"no dates match format {fmt!r}")
    if bad.any():
        logger.warning(f"Dropping {int(bad.sum())} rows with unparseable {column}")
    return df.loc[~bad]


def prepare_crosswalk(df, new_col=None, legacy_col=None, excluded_rows=None):
    """
    Reduce the site metadata sheet to a unique New_site_code -> legacy code map.

    Args:
        df: Site metadata sheet as parsed
        new_col: Column holding the current site codes
        legacy_col: Column holding the legacy codes. None picks the one of
            the columns at config.CROSSWALK_COLUMN_POSITIONS that is not new_col
        excluded_rows: 1-based sheet rows to leave out (retired or repeated sites)

    Returns:
        pd.DataFrame: Columns [new_col, config.SITE_CODE_COLUMN]
    """
    new_col = new_col or config.CROSSWALK_NEW_COLUMN
    legacy_col = config.CROSSWALK_LEGACY_COLUMN if legacy_col is None else legacy_col
    excluded_rows = config.CROSSWALK_EXCLUDED_ROWS if excluded_rows is None else excluded_rows

    if new_col not in df.columns:
        raise ParseError("site_crosswalk", f"missing column {new_col!r}", [new_col])
    if legacy_col is None:
        columns = list(df.columns)
        candidates = [columns[i] for i in config.CROSSWALK_COLUMN_POSITIONS if i < len(columns)]
        if new_col not in candidates:
            raise ParseError("site_crosswalk", f"{new_col!r} is not at positions {config.CROSSWALK_COLUMN_POSITIONS}")
        others = [c for c in candidates if c != new_col]
        if not others:
            raise ParseError("site_crosswalk", f"no legacy code column next to {new_col!r}")
        legacy_col = others[0]
    elif legacy_col not in df.columns:
        raise ParseError("site_crosswalk", f"missing column {legacy_col!r}", [legacy_col])

    excluded = set(excluded_rows)
    keep = [i for i in range(len(df)) if i + 1 not in excluded]
    if len(keep) < len(df):
        logger.info(f"Site crosswalk: leaving out sheet rows {sorted(r for r in excluded if r <= len(df))}")
    crosswalk = df.iloc[keep][[new_col, legacy_col]].copy()
    for col in (new_col, legacy_col):
        crosswalk[col] = crosswalk[col].astype("string").str.strip().replace("", pd.NA)
    crosswalk = crosswalk.dropna()

    duplicated = crosswalk[new_col].duplicated(keep="first")
    if duplicated.any():
        # first mapping wins
        logger.warning(str(JoinKeyMismatch("site_crosswalk", crosswalk.loc[duplicated, new_col].unique())))
        crosswalk = crosswalk.loc[~duplicated]

    logger.info(f"Site crosswalk: {len(crosswalk)} mappings ({legacy_col!r} as legacy code)")
    return crosswalk.rename(columns={legacy_col: config.SITE_CODE_COLUMN}).reset_index(drop=True)


def normalize_sites(wq, crosswalk, site_col=None, new_col=None):
    """Attach legacy site codes and drop readings whose site has no mapping."""
    site_col = site_col or config.WQ_SITE_COLUMN
    new_col = new_col or config.CROSSWALK_NEW_COLUMN
    code_col = config.SITE_CODE_COLUMN

    wq = wq.drop(columns=[code_col], errors="ignore")
    merged = wq.merge(crosswalk, how="left", left_on=site_col, right_on=new_col, validate="many_to_one")
    if new_col != site_col:
        merged = merged.drop(columns=[new_col])

    unmatched = merged[code_col].isna()
    n_ids = merged[site_col].nunique()
    dropped_ids = merged.loc[unmatched, site_col].dropna().unique()
    if unmatched.any():
        share = len(dropped_ids) / n_ids if n_ids else 0.0
        logger.info(
            f"Dropping {int(unmatched.sum())} readings from {len(dropped_ids)} of {n_ids} "
            f"site IDs ({share:.1%}) with no legacy site code: {sorted(map(str, dropped_ids))}"
        )
    return merged.loc[~unmatched].reset_index(drop=True)


def filter_water_years(df, start=None, end=None, column="WaterYear"):
    start = config.WATER_YEAR_START if start is None else start
    end = config.WATER_YEAR_END if end is None else end
    keep = df[column].between(start, end)
    logger.info(f"Water years {start}-{end}: keeping {int(keep.sum())} of {len(df)} readings")
    return df.loc[keep].reset_index(drop=True)


def clean_readings(raw, crosswalk, eras=None, water_years=None):
    """
    Run the full cleaning stage.

    Args:
        raw: Coerced water-quality feed (see loader.coerce_water_quality)
        crosswalk: Output of prepare_crosswalk()
        eras: Detection-limit eras (defaults to config)
        water_years: (start, end) closed range (defaults to config)

    Returns:
        pd.DataFrame: Site_code, Date, Sample.Year, WaterYear, parameter and
        extra columns. Every row has a non-missing Site_code.
    """
    logger.info(f"Cleaning {len(raw)} raw water-quality readings")
    start, end = water_years if water_years is not None else (None, None)

    df = normalize_sites(raw, crosswalk)
    df = censor_detection_limits(df, eras=eras)
    df = censor_qualified(df)
    df = parse_dates(df)
    df["WaterYear"] = water_year_series(df[config.WQ_DATE_COLUMN])
    df = filter_water_years(df, start, end)

    value_cols = list(dict.fromkeys(list(config.PARAMETERS.values()) + list(config.EXTRA_WQ_COLUMNS)))
    keep = [config.SITE_CODE_COLUMN, config.WQ_DATE_COLUMN, config.WQ_SAMPLE_YEAR_COLUMN, "WaterYear"]
    keep += [c for c in value_cols if c in df.columns]
    df = df[keep].rename(columns={config.WQ_DATE_COLUMN: "Date"})
    df[config.SITE_CODE_COLUMN] = df[config.SITE_CODE_COLUMN].astype(str)

    logger.info(
        f"Cleaned readings: {len(df)} rows, {df[config.SITE_CODE_COLUMN].nunique()} sites, "
        f"{df['Date'].nunique()} sampling days"
    )
    return df
