"""
BMI Sample Join
===============

Restricts the rolled series to the sites with benthic macroinvertebrate (BMI)
sampling and keeps only the days on which a BMI sample was collected.
Matching is on the exact "{site}_{YYYY-MM-DD}" key; there is no nearest-date
fallback.
"""

import pandas as pd

import config
from .exceptions import JoinKeyMismatch
from .logging_config import get_logger

logger = get_logger(__name__)

KEY_COLUMN = "Site.Date"


def site_label_to_int(label, prefix=None):
    """'DC 12' -> 12. Labels without the prefix are parsed as-is."""
    prefix = config.SITE_LABEL_PREFIX if prefix is None else prefix
    text = str(label).strip()
    if prefix and text.startswith(prefix):
        text = text[len(prefix):]
    try:
        return int(float(text))
    except ValueError:
        raise ValueError(f"Site label {label!r} is not a numbered site") from None


def make_site_date_key(site, date):
    return f"{site}_{pd.Timestamp(date):%Y-%m-%d}"


def _site_date_keys(sites, dates):
    return sites.astype(str) + "_" + pd.to_datetime(dates).dt.strftime("%Y-%m-%d")


def prepare_bio_dates(bio, site_col=None, date_col=None, fmt=None, prefix=None):
    """
    Build the unique set of BMI sample keys.

    Returns:
        pd.DataFrame: Single column "Site.Date", in source order
    """
    site_col = site_col or config.BMI_SITE_COLUMN
    date_col = date_col or config.BMI_DATE_COLUMN
    fmt = config.BMI_DATE_FORMAT if fmt is None else fmt

    df = bio[[site_col, date_col]].copy()
    sites = df[site_col].map(lambda s: _safe_site_number(s, prefix))
    dates = pd.to_datetime(df[date_col].astype("string").str.strip(), format=fmt, errors="coerce")

    bad = sites.isna() | dates.isna()
    if bad.any():
        logger.warning(f"Dropping {int(bad.sum())} BMI sample rows with unreadable site or date")

    keys = _site_date_keys(sites[~bad].astype(int), dates[~bad])
    out = pd.DataFrame({KEY_COLUMN: keys.to_numpy()})

    duplicated = out[KEY_COLUMN].duplicated(keep="first")
    if duplicated.any():
        logger.warning(str(JoinKeyMismatch("bio_dates", out.loc[duplicated, KEY_COLUMN].unique())))
        out = out.loc[~duplicated]

    logger.info(f"BMI sample dates: {len(out)} unique site-date keys")
    return out.reset_index(drop=True)


def _safe_site_number(value, prefix):
    if pd.isna(value):
        return None
    try:
        return site_label_to_int(value, prefix)
    except ValueError:
        return None


def join_bio_samples(rolled, bio_keys, allowed_sites=None, prefix=None, site_col=None):
    """
    Inner-join the rolled series to BMI sample keys.

    Args:
        rolled: Output of add_rolling_means()
        bio_keys: Output of prepare_bio_dates()
        allowed_sites: Legacy site codes with BMI sampling
        prefix: Label prefix stripped to obtain the integer site number

    Returns:
        pd.DataFrame: "Site.Date", integer "Site", and the rolled columns,
        in BMI sample order
    """
    allowed_sites = config.BMI_SITES if allowed_sites is None else allowed_sites
    site_col = site_col or config.SITE_CODE_COLUMN

    subset = rolled[rolled[site_col].isin(allowed_sites)].copy()
    absent = sorted(set(allowed_sites) - set(subset[site_col].unique()))
    if absent:
        logger.warning(f"BMI sites with no water-quality data: {absent}")

    subset["Site"] = subset[site_col].map(lambda s: site_label_to_int(s, prefix)).astype(int)
    subset[KEY_COLUMN] = _site_date_keys(subset["Site"], subset["Date"])
    subset = subset.drop(columns=[site_col])

    joined = pd.merge(bio_keys[[KEY_COLUMN]], subset, on=KEY_COLUMN, how="inner", validate="one_to_one")

    unmatched = len(bio_keys) - len(joined)
    if unmatched:
        logger.info(f"{unmatched} BMI sample keys have no water-quality row and are not in the output")
    logger.info(f"Joined {len(joined)} BMI sample days across {joined['Site'].nunique()} sites")
    return joined.reset_index(drop=True)
