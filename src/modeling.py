"""
modeling.py
Lagged-outcome logistic regression: does a murder make the next recorded
shooting more likely to be a murder?

This is a demonstration fit. There is no train/test split, no validation and
no calibration check, and the model only scores one hypothetical record at a
time. Do not read its output as a calibrated probability.
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
import statsmodels.formula.api as smf

from data_cleaning import DATE_COL, LAG_COL, MURDER_COL
from pipeline_errors import InsufficientDataError, SchemaError

log = logging.getLogger(__name__)

MIN_RECORDS = 2


@dataclass(frozen=True)
class LagModel:
    """Fitted coefficients of murder ~ lagged murder (log-odds scale)."""
    intercept: float
    slope: float
    n_obs: int

    def predict(self, lag_outcome: bool) -> float:
        """Probability that a record whose predecessor had `lag_outcome` is a murder."""
        z = self.intercept + self.slope * float(bool(lag_outcome))
        return float(1.0 / (1.0 + np.exp(-z)))


def _check_fittable(frame: pd.DataFrame):
    """
    With a single binary predictor the MLE is finite only when every observed
    lag value is followed by both outcomes; anything else is (quasi-)separated.
    """
    if len(frame) < MIN_RECORDS:
        raise InsufficientDataError(
            f"Need at least {MIN_RECORDS} records with a defined lag, got {len(frame)}"
        )
    if frame["murder"].nunique() < 2:
        raise InsufficientDataError(
            f"Only one outcome class present (murder={bool(frame['murder'].iloc[0])}); "
            "the fit is perfectly separated"
        )
    if frame["lag"].nunique() < 2:
        raise InsufficientDataError("Lagged outcome is constant; the slope is not identifiable")

    table = pd.crosstab(frame["lag"], frame["murder"])
    if (table == 0).any().any():
        raise InsufficientDataError(
            f"Outcome is separated by the lagged outcome:\n{table.to_string()}"
        )


def fit_lag_model(df: pd.DataFrame) -> LagModel:
    """Fit murder ~ lagged murder by maximum likelihood on records with a defined lag."""
    usable = df[df[LAG_COL].notna()]
    frame = pd.DataFrame({
        "murder": usable[MURDER_COL].astype(int),
        "lag":    usable[LAG_COL].astype(int),
    })
    _check_fittable(frame)

    result = smf.logit("murder ~ lag", data=frame).fit(disp=False)
    model = LagModel(
        intercept=float(result.params["Intercept"]),
        slope=float(result.params["lag"]),
        n_obs=int(result.nobs),
    )
    log.info(f"Lag model fitted on {model.n_obs:,} records: "
             f"intercept={model.intercept:.4f}, slope={model.slope:.4f}")
    return model


def predict_next(df: pd.DataFrame, model: LagModel) -> float:
    """Probability that the record following the chronologically last one is a murder."""
    if df.empty:
        raise InsufficientDataError("No records to take the last outcome from")
    if DATE_COL not in df.columns:
        raise SchemaError(f"Cannot order records, missing column {DATE_COL!r}", stage="estimate")
    last_outcome = bool(df.sort_values(DATE_COL, kind="stable")[MURDER_COL].iloc[-1])
    return model.predict(last_outcome)
