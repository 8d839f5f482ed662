"""Loader and schema checks."""

import pandas as pd
import pytest

from data_collection import (
    MURDER_COL, check_schema, coerce_murder_flag, invalid_flag_mask, load_data,
)
from pipeline_errors import ParseError, PipelineError, SchemaError


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_data(str(tmp_path / "nope.csv"))


def test_load_keeps_date_and_time_as_text(raw_csv):
    df = load_data(str(raw_csv))

    assert len(df) == 10
    assert df["OCCUR_DATE"].iloc[0] == "06/01/2020"
    assert df["OCCUR_TIME"].iloc[0] == "23:45:00"


def test_load_rejects_missing_columns(tmp_path):
    path = tmp_path / "partial.csv"
    pd.DataFrame({"OCCUR_DATE": ["01/01/2020"], "BORO": ["BRONX"]}).to_csv(path, index=False)

    with pytest.raises(SchemaError) as exc:
        load_data(str(path))
    assert "OCCUR_TIME" in str(exc.value)
    assert MURDER_COL in str(exc.value)
    assert exc.value.stage == "load"


def test_schema_error_is_a_pipeline_error():
    with pytest.raises(PipelineError):
        check_schema(pd.DataFrame({"x": [1]}))


def test_coerce_flag_variants():
    values = pd.Series(["true", "FALSE", "Y", "n", " 1 ", "0", True, False], name=MURDER_COL)
    result = coerce_murder_flag(values)

    assert result.dtype == bool
    assert result.tolist() == [True, False, True, False, True, False, True, False]


def test_coerce_flag_bool_passthrough():
    values = pd.Series([True, False], name=MURDER_COL)
    assert coerce_murder_flag(values).tolist() == [True, False]


def test_coerce_flag_rejects_unknown_and_missing():
    values = pd.Series(["true", "maybe", None], name=MURDER_COL)

    assert invalid_flag_mask(values).tolist() == [False, True, True]
    with pytest.raises(ParseError) as exc:
        coerce_murder_flag(values)
    assert "row 1" in str(exc.value)
    assert "'maybe'" in str(exc.value)


def test_coerce_flag_accepts_float_zero_one():
    # An integer 0/1 column with a gap is read back as float
    values = pd.Series([1.0, 0.0, 1.0], name=MURDER_COL)

    assert not invalid_flag_mask(values).any()
    assert coerce_murder_flag(values).tolist() == [True, False, True]


def test_float_flag_gap_is_still_missing():
    values = pd.Series([1.0, float("nan")], name=MURDER_COL)
    assert invalid_flag_mask(values).tolist() == [False, True]
