"""
Tests for the BMI sample-date join.
"""

import pandas as pd
import pytest

from wqroll.sampling import (
    KEY_COLUMN,
    join_bio_samples,
    make_site_date_key,
    prepare_bio_dates,
    site_label_to_int,
)


class TestKeys:

    def test_site_label_to_int(self):
        assert site_label_to_int("DC 12", "DC ") == 12
        assert site_label_to_int("4", "DC ") == 4
        assert site_label_to_int(6, "DC ") == 6

    def test_non_numeric_label_rejected(self):
        with pytest.raises(ValueError):
            site_label_to_int("Bear Creek", "DC ")

    def test_make_site_date_key(self):
        assert make_site_date_key(4, "2021-06-03") == "4_2021-06-03"
        assert make_site_date_key(11, pd.Timestamp("2019-10-01 13:45")) == "11_2019-10-01"


class TestPrepareBioDates:

    def test_keys_deduplicated_and_bad_rows_dropped(self):
        bio = pd.DataFrame({
            "Site": ["1", "1", "2", "x", "4"],
            "Date": ["2020-06-10", "2020-06-10", "2020-06-01", "2020-06-01", "not a date"],
            "Notes": ["", "repeat", "", "", ""],
        })
        keys = prepare_bio_dates(bio, fmt=None)
        assert keys[KEY_COLUMN].tolist() == ["1_2020-06-10", "2_2020-06-01"]


class TestJoinBioSamples:

    @pytest.fixture
    def rolled(self, site_col):
        days = pd.date_range("2020-06-01", periods=3, freq="D")
        frames = []
        for site in ("DC 1", "DC 2", "XX 9"):
            frames.append(pd.DataFrame({site_col: site, "Date": days, "DO30": [1.0, 2.0, 3.0]}))
        return pd.concat(frames, ignore_index=True)

    def test_exact_key_inner_join(self, rolled):
        bio_keys = pd.DataFrame({KEY_COLUMN: ["2_2020-06-02", "1_2020-06-03", "1_2020-07-01", "3_2020-06-01"]})
        joined = join_bio_samples(rolled, bio_keys, allowed_sites=["DC 1", "DC 2", "DC 3"], prefix="DC ")

        assert joined[KEY_COLUMN].tolist() == ["2_2020-06-02", "1_2020-06-03"]
        assert joined["Site"].tolist() == [2, 1]
        assert joined["DO30"].tolist() == [2.0, 3.0]

    def test_rows_outside_allow_list_dropped(self, rolled):
        bio_keys = pd.DataFrame({KEY_COLUMN: ["1_2020-06-01", "9_2020-06-01"]})
        joined = join_bio_samples(rolled, bio_keys, allowed_sites=["DC 1"], prefix="DC ")
        assert joined[KEY_COLUMN].tolist() == ["1_2020-06-01"]

    def test_no_nearest_date_matching(self, rolled):
        bio_keys = pd.DataFrame({KEY_COLUMN: ["1_2020-05-31", "1_2020-06-04"]})
        joined = join_bio_samples(rolled, bio_keys, allowed_sites=["DC 1"], prefix="DC ")
        assert joined.empty
