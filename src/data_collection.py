"""
Data Collection
Fetches the NYPD Shooting Incident dataset and checks its schema.
"""

import logging
from pathlib import Path

import pandas as pd

from pipeline_errors import ParseError, SchemaError

log = logging.getLogger(__name__)

# NYC Open Data, "NYPD Shooting Incident Data (Historic)"
DATASET_URL = "https://data.cityofnewyork.us/api/views/833y-ss3q/rows.csv?accessType=DOWNLOAD"

DATE_COL   = "OCCUR_DATE"
TIME_COL   = "OCCUR_TIME"
MURDER_COL = "STATISTICAL_MURDER_FLAG"

REQUIRED_COLUMNS = (DATE_COL, TIME_COL, MURDER_COL)

# "1.0"/"0.0" come from an integer 0/1 column that pandas read as float because of a gap
_TRUE_VALUES  = {"true", "t", "y", "yes", "1", "1.0"}
_FALSE_VALUES = {"false", "f", "n", "no", "0", "0.0"}


def _is_remote(source: str) -> bool:
    return str(source).lower().startswith(("http://", "https://"))


def check_schema(df: pd.DataFrame, required=REQUIRED_COLUMNS):
    missing_cols = [c for c in required if c not in df.columns]
    if missing_cols:
        raise SchemaError(f"Dataset is missing expected columns: {missing_cols}", stage="load")


def _normalise_flags(values: pd.Series) -> pd.Series:
    return values.astype("string").str.strip().str.lower()


def invalid_flag_mask(values: pd.Series) -> pd.Series:
    """True where a murder-flag value is missing or not boolean-like."""
    normalised = _normalise_flags(values)
    valid = normalised.isin(_TRUE_VALUES | _FALSE_VALUES)
    return ~pd.Series(valid, index=values.index).fillna(False).astype(bool)


def coerce_murder_flag(values: pd.Series) -> pd.Series:
    """
    Map the boolean-like murder flag ("true"/"false", "Y"/"N", 1/0, bools)
    to a plain bool column. Anything else, including a missing value, is a
    parse failure for that row.
    """
    if values.dtype == bool:
        return values.copy()

    bad = invalid_flag_mask(values)
    if bad.any():
        row = bad.idxmax()
        raise ParseError(
            f"Column {values.name!r}, row {row}: unrecognised flag value {values.loc[row]!r} "
            f"({int(bad.sum()):,} bad rows in total)",
        )
    is_true = _normalise_flags(values).isin(_TRUE_VALUES)
    return pd.Series(is_true, index=values.index, name=values.name).fillna(False).astype(bool)


def load_data(source: str = DATASET_URL) -> pd.DataFrame:
    """Read the incident CSV from a URL or local path and verify its columns."""
    if not _is_remote(source) and not Path(source).exists():
        raise FileNotFoundError(f"Data file not found: {source}")

    log.info(f"Loading: {source}")
    # Keep date/time as text: parsing is the feature stage's job
    df = pd.read_csv(source, dtype={DATE_COL: str, TIME_COL: str}, low_memory=False)
    log.info(f"Loaded {len(df):,} rows × {len(df.columns)} columns")

    check_schema(df)
    return df


if __name__ == "__main__":
    df = load_data()
    print(f"Columns: {list(df.columns)}")
    print(df.head())
