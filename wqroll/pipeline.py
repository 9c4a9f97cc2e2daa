"""
WQ Rolling Summary Pipeline
===========================

Loads the water-quality, site-code and BMI-date tables, then:
1. Cleans readings (legacy site codes, detection limits, water years)
2. Expands a dense per-site daily calendar
3. Aligns readings onto the calendar
4. Computes 30/90/180/365-day trailing means per site
5. Keeps the BMI sites and exact BMI sample days
6. Adds Month/Year/WaterYear/Season and writes one CSV

Nothing is written unless every stage succeeds.
"""

from datetime import datetime

import config
from .alignment import align_to_grid
from .cleaning import clean_readings, prepare_crosswalk
from .enrich import enrich, write_output
from .grid import grid_for_readings, validate_calendar_grid
from .loader import load_sources
from .logging_config import get_logger, setup_logging
from .rolling import add_rolling_means
from .sampling import join_bio_samples, prepare_bio_dates

logger = get_logger(__name__)


def run_pipeline(locations=None, output_path=None, sources=None, write=True, duplicate_policy=None):
    """
    Run every stage once and return the final table.

    Args:
        locations: SourceLocations; defaults to config.py URLs
        output_path: CSV destination; defaults to config.FINAL_OUTPUT_PATH
        sources: Pre-loaded LoadedSources (skips fetching)
        write: Write the CSV when True
        duplicate_policy: Same-day duplicate handling ("first", "mean", "error")

    Returns:
        pd.DataFrame: Final table in output schema order
    """
    logger.info("======= Starting WQ rolling summary pipeline =======")
    start_time = datetime.now()

    if sources is None:
        sources = load_sources(locations)

    crosswalk = prepare_crosswalk(sources.site_crosswalk)
    cleaned = clean_readings(sources.water_quality, crosswalk)

    grid = grid_for_readings(cleaned)
    validate_calendar_grid(
        grid,
        cleaned[config.SITE_CODE_COLUMN].nunique(),
        cleaned["Date"].min(),
        cleaned["Date"].max(),
    )

    aligned = align_to_grid(grid, cleaned, policy=duplicate_policy)
    rolled = add_rolling_means(aligned)

    bio_keys = prepare_bio_dates(sources.bio_dates)
    joined = join_bio_samples(rolled, bio_keys)
    final = enrich(joined)

    if write:
        write_output(final, output_path)

    logger.info(f"======= Pipeline finished in {datetime.now() - start_time} =======")
    return final


def main():
    setup_logging(
        log_level=config.LOG_LEVEL,
        enable_file_logging=config.ENABLE_FILE_LOGGING,
        log_dir=config.LOG_DIR,
    )
    run_pipeline()
    return 0
