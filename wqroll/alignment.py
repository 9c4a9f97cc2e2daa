"""
Grid Alignment
==============

Left-joins cleaned readings onto the dense calendar grid keyed by
(site, day). Days without a reading keep missing values.
"""

import pandas as pd

import config
from .exceptions import JoinKeyMismatch
from .logging_config import get_logger

logger = get_logger(__name__)

DUPLICATE_POLICIES = ("first", "mean", "error")


def resolve_duplicates(readings, keys=None, policy=None):
    """
    Collapse readings to at most one row per key.

    Policies:
        first: keep the first record in source order
        mean:  average numeric columns, first value for the rest
        error: raise JoinKeyMismatch
    """
    keys = keys or [config.SITE_CODE_COLUMN, "Date"]
    policy = policy or config.DUPLICATE_POLICY
    if policy not in DUPLICATE_POLICIES:
        raise ValueError(f"Unknown duplicate policy {policy!r}; expected one of {DUPLICATE_POLICIES}")

    dup_mask = readings.duplicated(subset=keys, keep=False)
    if not dup_mask.any():
        return readings

    dup_keys = list(readings.loc[dup_mask, keys].drop_duplicates().itertuples(index=False, name=None))
    mismatch = JoinKeyMismatch("alignment", dup_keys)
    if policy == "error":
        raise mismatch
    logger.warning(f"{mismatch}; resolving with policy '{policy}'")

    if policy == "first":
        return readings.drop_duplicates(subset=keys, keep="first").reset_index(drop=True)

    numeric_cols = [c for c in readings.select_dtypes(include="number").columns if c not in keys]
    other_cols = [c for c in readings.columns if c not in keys and c not in numeric_cols]
    agg = {c: "mean" for c in numeric_cols}
    agg.update({c: "first" for c in other_cols})
    collapsed = readings.groupby(keys, sort=False, as_index=False).agg(agg)
    return collapsed[list(readings.columns)]


def align_to_grid(grid, readings, policy=None, site_col=None):
    """
    Join readings onto the grid; every grid row appears exactly once.

    Returns:
        pd.DataFrame: Grid columns plus reading columns, sorted by site then date
    """
    site_col = site_col or config.SITE_CODE_COLUMN
    keys = [site_col, "Date"]

    readings = resolve_duplicates(readings, keys=keys, policy=policy)
    aligned = pd.merge(grid, readings, on=keys, how="left", validate="one_to_one", indicator=True)

    if len(aligned) != len(grid):
        raise JoinKeyMismatch("alignment", [f"grid={len(grid)}", f"aligned={len(aligned)}"])

    orphan = readings.merge(grid[keys], on=keys, how="left", indicator=True)["_merge"] == "left_only"
    if orphan.any():
        logger.warning(f"{int(orphan.sum())} readings fall outside the calendar grid and were not aligned")

    matched = int((aligned["_merge"] == "both").sum())
    logger.info(f"Aligned {matched} readings onto {len(grid)} grid rows ({len(grid) - matched} empty days)")
    aligned = aligned.drop(columns="_merge")
    return aligned.sort_values(keys, kind="mergesort").reset_index(drop=True)
