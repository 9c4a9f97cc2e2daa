"""
Shared fixtures for pipeline tests.
"""

import numpy as np
import pandas as pd
import pytest

import config
from wqroll.cleaning import eras_from_config
from wqroll.loader import coerce_water_quality

WQ_HEADER = [
    "Site.ID", "Sample.Year", "Date",
    "DO.Average", "Cond.Average", "H2OTemp.Average", "pH.Average", "Turb.Average",
    "NO3.Average", "PO4.Average", "Bacteria_TC", "Bacteria_EColi", "Bacteria_EColi.Qualifier",
]


def make_raw_wq(rows):
    """Raw WQ frame (all strings, as read from CSV) from partial row dicts."""
    records = []
    for row in rows:
        record = {col: np.nan for col in WQ_HEADER}
        record.update({k: (str(v) if v is not None else np.nan) for k, v in row.items()})
        records.append(record)
    return pd.DataFrame(records, columns=WQ_HEADER).astype(object)


@pytest.fixture
def raw_wq():
    rows = [
        {"Site.ID": "DC-01", "Sample.Year": 2020, "Date": "04/01/2020", "DO.Average": 8.0, "NO3.Average": 0.3},
        {"Site.ID": "DC-01", "Sample.Year": 2020, "Date": "05/20/2020", "DO.Average": 9.0, "NO3.Average": 0.1},
        {"Site.ID": "DC-02", "Sample.Year": 2021, "Date": "06/10/2021", "DO.Average": 7.5, "NO3.Average": 0.1,
         "Bacteria_EColi": 1, "Bacteria_EColi.Qualifier": "<"},
        {"Site.ID": "ZZ-00", "Sample.Year": 2020, "Date": "04/02/2020", "DO.Average": 6.0},
        {"Site.ID": "DC-02", "Sample.Year": 2023, "Date": "10/15/2023", "DO.Average": 7.0},
    ]
    return coerce_water_quality(make_raw_wq(rows))


@pytest.fixture
def site_metadata():
    return pd.DataFrame({
        "Site_Name": ["Deer Creek 1", "Deer Creek 2", "Retired", "Deer Creek 2 dup"],
        "New_site_code": ["DC-01", "DC-02", "", "DC-02"],
        "Old_site_code": ["DC 1", "DC 2", "DC 0", "DC 22"],
        "Notes": ["", "", "", ""],
    })


@pytest.fixture
def eras():
    return eras_from_config()


@pytest.fixture
def site_col():
    return config.SITE_CODE_COLUMN


@pytest.fixture
def wq_factory():
    return make_raw_wq
