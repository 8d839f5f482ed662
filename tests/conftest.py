"""Shared fixtures: a small shooting-incident extract in source (unsorted) order."""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from data_cleaning import derive_features, normalize_missing, prune_columns

# (date, time, murder flag) in chronological order
CHRONOLOGICAL = [
    ("01/05/2020", "23:15:00", "false"),
    ("02/10/2020", "07:00:00", "false"),
    ("03/15/2020", "19:00:00", "true"),
    ("06/01/2020", "23:45:00", "false"),
    ("07/04/2020", "02:30:00", "true"),
    ("01/20/2021", "14:00:00", "true"),
    ("03/03/2021", "23:05:00", "false"),
    ("05/05/2021", "18:59:59", "false"),
    ("08/08/2021", "02:10:00", "true"),
    ("12/31/2021", "10:00:00", "false"),
]

# Order the rows arrive in from the source
SOURCE_ORDER = [3, 0, 6, 1, 9, 4, 2, 8, 5, 7]


def make_raw_frame() -> pd.DataFrame:
    rows = [CHRONOLOGICAL[i] for i in SOURCE_ORDER]
    n = len(rows)
    return pd.DataFrame({
        "INCIDENT_KEY": range(1000, 1000 + n),
        "OCCUR_DATE": [r[0] for r in rows],
        "OCCUR_TIME": [r[1] for r in rows],
        "BORO": ["BRONX", "BROOKLYN", "QUEENS", "BRONX", "MANHATTAN",
                 "BROOKLYN", "BRONX", "STATEN ISLAND", "QUEENS", "BROOKLYN"],
        "LOC_OF_OCCUR_DESC": [np.nan] * 8 + ["OUTSIDE", "INSIDE"],
        "PERP_SEX": ["M", "(null)", "M", "F", "(null)", "M", "M", "(null)", "U", "M"],
        "STATISTICAL_MURDER_FLAG": [r[2] for r in rows],
        "CASE_NOTE": [np.nan] * 9 + ["follow-up"],
        "REPORT_SOURCE": ["patrol"] * n,
    })


@pytest.fixture
def raw_df():
    return make_raw_frame()


@pytest.fixture
def raw_csv(tmp_path):
    path = tmp_path / "shootings.csv"
    make_raw_frame().to_csv(path, index=False)
    return path


@pytest.fixture
def derived_df(raw_df):
    pruned, _ = prune_columns(normalize_missing(raw_df))
    return derive_features(pruned)
