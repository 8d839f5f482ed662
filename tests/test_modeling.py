"""Lagged-outcome logistic regression."""

import pandas as pd
import pytest

from data_cleaning import LAG_COL, MURDER_COL
from modeling import LagModel, fit_lag_model, predict_next
from pipeline_errors import InsufficientDataError, SchemaError


def _frame(pairs, with_first=True):
    """Build a frame from (lag, murder) pairs; optionally prepend a record with no lag."""
    lags = [lag for lag, _ in pairs]
    murders = [m for _, m in pairs]
    if with_first:
        lags = [None] + lags
        murders = [False] + murders
    return pd.DataFrame({
        "OCCUR_DATE": pd.date_range("2020-01-01", periods=len(murders), freq="D"),
        MURDER_COL: murders,
        LAG_COL: pd.array(lags, dtype="boolean"),
    })


def test_fit_recovers_conditional_rates():
    pairs = ([(False, False)] * 4 + [(False, True)] * 2
             + [(True, False)] + [(True, True)])
    model = fit_lag_model(_frame(pairs))

    assert model.n_obs == 8
    assert model.predict(False) == pytest.approx(1 / 3, abs=1e-4)
    assert model.predict(True) == pytest.approx(1 / 2, abs=1e-4)
    assert 0 < model.predict(True) < 1


def test_predict_next_uses_last_outcome():
    pairs = ([(False, False)] * 4 + [(False, True)] * 2
             + [(True, False)] + [(True, True)])
    df = _frame(pairs)
    model = fit_lag_model(df)

    # Last record is a murder, so the next record's lag is True
    assert predict_next(df, model) == pytest.approx(model.predict(True))


def test_all_zero_outcome_is_separated():
    df = _frame([(False, False)] * 10)
    with pytest.raises(InsufficientDataError):
        fit_lag_model(df)


def test_lag_perfectly_predicts_outcome():
    pairs = [(False, False)] * 3 + [(True, True)] * 3
    with pytest.raises(InsufficientDataError):
        fit_lag_model(_frame(pairs))


def test_quasi_separation_is_detected():
    pairs = [(False, False), (False, True), (True, True), (True, True)]
    with pytest.raises(InsufficientDataError) as exc:
        fit_lag_model(_frame(pairs))
    assert "separated" in str(exc.value)


def test_too_few_records():
    with pytest.raises(InsufficientDataError):
        fit_lag_model(_frame([(True, True)]))


def test_records_without_lag_are_ignored():
    with pytest.raises(InsufficientDataError):
        fit_lag_model(_frame([], with_first=True))


def test_fit_on_derived_data(derived_df):
    model = fit_lag_model(derived_df)

    assert model.n_obs == 9
    # After a non-murder: 3 of 5 records are murders
    assert model.predict(False) == pytest.approx(0.6, abs=1e-4)
    # After a murder: 1 of 4
    assert model.predict(True) == pytest.approx(0.25, abs=1e-4)


def test_model_predict_is_pure_logistic():
    model = LagModel(intercept=0.0, slope=0.0, n_obs=2)
    assert model.predict(True) == pytest.approx(0.5)


def test_predict_next_on_empty():
    with pytest.raises(InsufficientDataError):
        predict_next(pd.DataFrame({MURDER_COL: []}), LagModel(0.0, 0.0, 0))


def test_predict_next_orders_records_by_date():
    unsorted = pd.DataFrame({
        "OCCUR_DATE": pd.to_datetime(["2020-01-05", "2020-01-01", "2020-01-02",
                                      "2020-01-03", "2020-01-04"]),
        MURDER_COL: [False, True, False, True, True],
    })
    model = LagModel(intercept=0.0, slope=2.0, n_obs=4)

    # 01-05 is the latest record and is not a murder
    assert predict_next(unsorted, model) == pytest.approx(model.predict(False))
    assert predict_next(unsorted, model) == pytest.approx(0.5)


def test_predict_next_needs_dates():
    with pytest.raises(SchemaError):
        predict_next(pd.DataFrame({MURDER_COL: [True]}), LagModel(0.0, 0.0, 0))
