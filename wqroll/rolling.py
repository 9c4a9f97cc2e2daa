"""
Rolling Aggregation
===================

Multi-timescale trailing means over the dense daily calendar.

For each parameter and window W the value on day d is the mean of the
non-missing readings on days d-W+1 .. d at the same site. A window with no
readings is missing. Windows are counted in rows, which equals calendar days
only because the input is a gap-free daily grid; that is checked up front.
"""

import numpy as np
import pandas as pd
from tqdm import tqdm

import config
from .logging_config import get_logger

logger = get_logger(__name__)


def rolling_column_name(label, window):
    return f"{label}{window}"


def rolled_columns(parameters=None, windows=None):
    """Output names in parameter-major, window-ascending order."""
    parameters = config.PARAMETERS if parameters is None else parameters
    windows = config.ROLLING_WINDOWS if windows is None else windows
    return [rolling_column_name(label, w) for label in parameters for w in sorted(windows)]


def _check_dense(df, group_col):
    steps = df.groupby(group_col, sort=False)["Date"].diff().dropna()
    if not (steps == pd.Timedelta(days=1)).all():
        raise ValueError("Rolling means need a gap-free, date-sorted daily grid per site")


def trailing_mean(series, window, require_full_span=True):
    """
    Right-aligned mean over `window` rows, skipping NaN.

    With require_full_span the first window-1 rows are NaN, since their window
    reaches back before the start of the series.
    """
    result = series.rolling(window=window, min_periods=1).mean()
    if require_full_span and window > 1:
        result.iloc[: window - 1] = np.nan
    return result


def add_rolling_means(aligned, parameters=None, windows=None, group_col=None, require_full_span=None):
    """
    Append one trailing-mean column per (parameter, window).

    Args:
        aligned: Output of align_to_grid()
        parameters: Mapping of output label -> source column
        windows: Window lengths in days
        group_col: Site column; windows never cross sites
        require_full_span: Leave windows that start before the site's first
            calendar day missing

    Returns:
        pd.DataFrame: aligned plus the rolled columns
    """
    parameters = config.PARAMETERS if parameters is None else parameters
    windows = sorted(config.ROLLING_WINDOWS if windows is None else windows)
    group_col = group_col or config.SITE_CODE_COLUMN
    require_full_span = config.ROLLING_REQUIRE_FULL_SPAN if require_full_span is None else require_full_span

    if any(int(w) < 1 for w in windows):
        raise ValueError(f"Window lengths must be positive: {windows}")

    df = aligned.sort_values([group_col, "Date"], kind="mergesort").reset_index(drop=True)
    _check_dense(df, group_col)

    grouped = df.groupby(group_col, sort=False)
    new_columns = {}
    for label, source_col in tqdm(parameters.items(), desc="Rolling means", disable=None):
        if source_col not in df.columns:
            raise KeyError(f"Parameter column {source_col!r} ({label}) missing from aligned data")
        values = grouped[source_col]
        for window in windows:
            rolled = values.transform(lambda s, w=window: trailing_mean(s, w, require_full_span))
            new_columns[rolling_column_name(label, window)] = rolled
        logger.debug(f"{label}: rolled {source_col} over windows {windows}")

    rolled_df = pd.concat([df, pd.DataFrame(new_columns, index=df.index)], axis=1)
    logger.info(f"Computed {len(new_columns)} rolling-mean columns for {df[group_col].nunique()} sites")
    return rolled_df
