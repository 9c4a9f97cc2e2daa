"""
Source Loader
=============

Fetches the three input tables (water-quality records, site-code crosswalk,
BMI sample dates) and parses them into DataFrames with checked columns.

Locations are URLs or local paths taken from config.py. A failed fetch or a
malformed table aborts the run; there is no partial load.
"""

import io
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import pandas as pd
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

import config
from .exceptions import ParseError, SourceUnavailableError
from .logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class SourceLocations:
    """Where each input table lives."""

    water_quality: str
    site_crosswalk: str
    bio_dates: str

    @classmethod
    def from_config(cls):
        return cls(
            water_quality=config.WQ_DATA_URL,
            site_crosswalk=config.SITE_CODES_URL,
            bio_dates=config.BMI_DATES_URL,
        )


@dataclass
class LoadedSources:
    """Parsed input tables."""

    water_quality: pd.DataFrame
    site_crosswalk: pd.DataFrame
    bio_dates: pd.DataFrame


def wq_required_columns():
    """Columns the water-quality feed must carry."""
    columns = [config.WQ_SITE_COLUMN, config.WQ_SAMPLE_YEAR_COLUMN, config.WQ_DATE_COLUMN]
    columns += list(config.PARAMETERS.values())
    columns += list(config.EXTRA_WQ_COLUMNS)
    # E. coli qualifier is mandatory; other qualifier columns are optional
    columns.append(config.BACTERIA_QUALIFIERS["Bacteria_EColi"])
    return list(dict.fromkeys(columns))


def _is_remote(location):
    return str(location).lower().startswith(("http://", "https://"))


def build_session(max_retries=None, backoff_factor=None):
    """requests session with bounded retry on connection errors, 429 and 5xx."""
    retries = config.HTTP_MAX_RETRIES if max_retries is None else max_retries
    backoff = config.HTTP_BACKOFF_FACTOR if backoff_factor is None else backoff_factor

    retry = Retry(
        total=retries,
        connect=retries,
        read=retries,
        status=retries,
        backoff_factor=backoff,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset(["GET"]),
        raise_on_status=False,
    )
    session = requests.Session()
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update({"User-Agent": "wqroll/0.1.0"})
    return session


def _decode(payload, location):
    """Strict decode with the configured source encoding; bad bytes are a parse failure."""
    try:
        return payload.decode(config.SOURCE_ENCODING)
    except UnicodeDecodeError as e:
        raise ParseError(location, f"not valid {config.SOURCE_ENCODING} text ({e})") from e


def fetch_text(location, session=None, timeout=None):
    """
    Retrieve the raw text at a URL or local path.

    Local and remote payloads are decoded the same way, with any BOM removed.

    Raises:
        SourceUnavailableError: If the location cannot be reached or read
        ParseError: If the payload is not valid text in SOURCE_ENCODING
    """
    timeout = config.HTTP_TIMEOUT_SECONDS if timeout is None else timeout

    if not _is_remote(location):
        logger.info(f"Reading local file {location}")
        if not os.path.isfile(location):
            raise SourceUnavailableError(location, "file not found")
        try:
            with open(location, "rb") as f:
                payload = f.read()
        except OSError as e:
            raise SourceUnavailableError(location, str(e)) from e
        return _decode(payload, location)

    own_session = session is None
    session = session or build_session()
    try:
        logger.info(f"Downloading {location}")
        response = session.get(location, timeout=timeout)
        response.raise_for_status()
        logger.debug(f"Received {len(response.content) / 1024:.1f} KB from {location}")
        payload = response.content
    except requests.HTTPError as e:
        status = e.response.status_code if e.response is not None else "?"
        logger.error(f"HTTP {status} fetching {location}")
        raise SourceUnavailableError(location, f"HTTP {status}") from e
    except requests.RequestException as e:
        logger.error(f"Failed to download {location}: {e}")
        raise SourceUnavailableError(location, str(e)) from e
    finally:
        if own_session:
            session.close()
    return _decode(payload, location)


def parse_table(text, name, required_columns=()):
    """
    Parse delimited text into a DataFrame and check its columns.

    Raises:
        ParseError: On empty/malformed payloads or missing required columns
    """
    if not text or not text.strip():
        raise ParseError(name, "payload is empty")

    try:
        df = pd.read_csv(io.StringIO(text), sep=",", dtype=str, keep_default_na=True)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise ParseError(name, f"not delimited tabular data ({e})") from e

    df.columns = [str(c).strip() for c in df.columns]
    missing = [c for c in required_columns if c not in df.columns]
    if missing:
        raise ParseError(name, f"missing columns {missing}", missing_columns=missing)

    logger.info(f"Parsed {name}: {len(df)} rows, {len(df.columns)} columns")
    return df


def coerce_water_quality(df):
    """Numeric parameter columns to float, qualifiers to stripped strings."""
    df = df.copy()
    numeric_cols = [config.WQ_SAMPLE_YEAR_COLUMN] + list(config.PARAMETERS.values()) + list(config.EXTRA_WQ_COLUMNS)
    for col in dict.fromkeys(numeric_cols):
        if col in df.columns:
            before = df[col].notna().sum()
            df[col] = pd.to_numeric(df[col].str.strip(), errors="coerce")
            lost = before - df[col].notna().sum()
            if lost:
                logger.debug(f"{col}: {lost} non-numeric entries set to missing")

    for qualifier_col in config.BACTERIA_QUALIFIERS.values():
        if qualifier_col in df.columns:
            df[qualifier_col] = df[qualifier_col].fillna("").astype(str).str.strip()

    df[config.WQ_SITE_COLUMN] = df[config.WQ_SITE_COLUMN].astype("string").str.strip()
    return df


def _load_one(name, location, required_columns, session, timeout):
    text = fetch_text(location, session=session, timeout=timeout)
    return parse_table(text, name, required_columns)


def load_sources(locations=None, parallel=None, session=None, timeout=None):
    """
    Fetch and parse all three input tables.

    Args:
        locations: SourceLocations (defaults to config.py)
        parallel: Issue the three fetches concurrently. Each worker then opens
            its own session, since requests.Session is not thread-safe.
        session: Optional requests session for serial remote fetches
        timeout: Per-request timeout in seconds

    Returns:
        LoadedSources
    """
    locations = locations or SourceLocations.from_config()
    parallel = config.PARALLEL_FETCH if parallel is None else parallel

    jobs = {
        "water_quality": (locations.water_quality, wq_required_columns()),
        "site_crosswalk": (locations.site_crosswalk, [config.CROSSWALK_NEW_COLUMN]),
        "bio_dates": (locations.bio_dates, [config.BMI_SITE_COLUMN, config.BMI_DATE_COLUMN]),
    }

    if parallel:
        with ThreadPoolExecutor(max_workers=len(jobs)) as executor:
            # session=None: fetch_text opens and closes one per job
            futures = {
                name: executor.submit(_load_one, name, loc, cols, None, timeout)
                for name, (loc, cols) in jobs.items()
            }
            # result() re-raises the first failure in job order
            tables = {name: future.result() for name, future in futures.items()}
    else:
        own_session = session is None and any(_is_remote(loc) for loc, _ in jobs.values())
        if own_session:
            session = build_session()
        try:
            tables = {
                name: _load_one(name, loc, cols, session, timeout)
                for name, (loc, cols) in jobs.items()
            }
        finally:
            if own_session:
                session.close()

    return LoadedSources(
        water_quality=coerce_water_quality(tables["water_quality"]),
        site_crosswalk=tables["site_crosswalk"],
        bio_dates=tables["bio_dates"],
    )
