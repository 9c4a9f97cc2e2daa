# WQ Rolling Summary Configuration
# Settings for data sources, cleaning rules, rolling windows and output

# Data Sources

# SSI water-quality records exported from Airtable (2000-2024, corrected)
WQ_DATA_URL = "https://raw.githubusercontent.com/jnherrmann/BMI-Climate-Flow-WQ-Project/refs/heads/main/2000_2024_QW_data_corrected.csv"

# Monitoring site metadata, used to convert new site codes back to legacy codes
SITE_CODES_URL = "https://raw.githubusercontent.com/jnherrmann/SSI-metadata/refs/heads/main/SSI_Monitoring%20_Sites%20_Metadata.csv"

# BMI sample dates (project-specific, not an exhaustive list)
BMI_DATES_URL = "https://raw.githubusercontent.com/jnherrmann/BMI-Climate-Flow-WQ-Project/refs/heads/main/BMIdates_WY2003_2022_updated.csv"

# Network settings for the three fetches
HTTP_TIMEOUT_SECONDS = 60
HTTP_MAX_RETRIES = 3
HTTP_BACKOFF_FACTOR = 1.0
PARALLEL_FETCH = True

# Payload encoding for all three sources; utf-8-sig also accepts a leading BOM
SOURCE_ENCODING = "utf-8-sig"

# Input Schema

WQ_SITE_COLUMN = "Site.ID"
WQ_SAMPLE_YEAR_COLUMN = "Sample.Year"
WQ_DATE_COLUMN = "Date"
WQ_DATE_FORMAT = "%m/%d/%Y"

CROSSWALK_NEW_COLUMN = "New_site_code"
# None = whichever of the columns at CROSSWALK_COLUMN_POSITIONS (0-based) is
# not CROSSWALK_NEW_COLUMN; the sheet keeps the new and legacy codes side by side
CROSSWALK_LEGACY_COLUMN = None
CROSSWALK_COLUMN_POSITIONS = (1, 2)
# Sheet rows (1-based, header excluded) left out of the crosswalk
CROSSWALK_EXCLUDED_ROWS = [11, 31, 32, 33]

BMI_SITE_COLUMN = "Site"
BMI_DATE_COLUMN = "Date"
# None = let pandas infer (the BMI sheet is stored as YYYY-MM-DD)
BMI_DATE_FORMAT = None

# Normalized site code column carried from cleaning onward
SITE_CODE_COLUMN = "Site_code"

# Parameters

# Output label -> source column. Order here is the output column order.
PARAMETERS = {
    "DO": "DO.Average",
    "Cond": "Cond.Average",
    "H2OTemp": "H2OTemp.Average",
    "pH": "pH.Average",
    "Turb": "Turb.Average",
    "Nitrate": "NO3.Average",
    "Phosphate": "PO4.Average",
    "TotColiform": "Bacteria_TC",
}

# Trailing window lengths in calendar days
ROLLING_WINDOWS = [30, 90, 180, 365]

# Windows reaching back before a site's first calendar day are left missing
ROLLING_REQUIRE_FULL_SPAN = True

# Detection Limits

# Nutrient values reported exactly at the detection limit are treated as missing.
# 2000-2020: NO3 <0.1 mg/L, PO4 <0.05 mg/L
# 2021-present: NO3 <0.23 mg/L, PO4 <0.06 mg/L
DETECTION_LIMIT_ERAS = [
    {"first_year": None, "last_year": 2020, "limits": {"NO3.Average": 0.1, "PO4.Average": 0.05}},
    {"first_year": 2021, "last_year": None, "limits": {"NO3.Average": 0.23, "PO4.Average": 0.06}},
]

# Bacteria counts flagged "<" (below 1 MPN) are treated as missing.
# Qualifier columns not present in the feed are skipped.
BACTERIA_QUALIFIERS = {
    "Bacteria_EColi": "Bacteria_EColi.Qualifier",
    "Bacteria_TC": "Bacteria_TC.Qualifier",
}
CENSORED_QUALIFIER = "<"

# Carried through cleaning and alignment but not rolled
EXTRA_WQ_COLUMNS = ["Bacteria_EColi"]

# Water years of interest (closed range)
WATER_YEAR_START = 2001
WATER_YEAR_END = 2023

# Duplicate (site, day) readings: "first", "mean" or "error"
DUPLICATE_POLICY = "first"

# BMI Sampling Sites

# Deer Creek sites with BMI samples
BMI_SITES = [
    "DC 1", "DC 2", "DC 4", "DC 6", "DC 8", "DC 9",
    "DC 11", "DC 12", "DC 13", "DC 15", "DC 16",
]
SITE_LABEL_PREFIX = "DC "

# Seasons

# Snowmelt peak flow months; every other month is baseflow
SEASON_RULES = [
    {"label": "Peak", "months": [5, 6, 7]},
]
DEFAULT_SEASON = "Base"

# Output

FINAL_OUTPUT_PATH = "./data/processed/WQ_final.csv"
OUTPUT_DATE_FORMAT = "%Y-%m-%d"

# Logging
LOG_LEVEL = "INFO"
ENABLE_FILE_LOGGING = True
LOG_DIR = "./logs"
