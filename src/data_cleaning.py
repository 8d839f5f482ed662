"""
data_cleaning.py
Cleaning & Feature Pipeline for NYPD Shooting Incident Analysis

Design principles:
- Every transformation is logged with before/after counts
- No silent data loss: unparseable dates/times abort the run, or are
  rejected and counted in the audit trail when the caller asks for that
- Functions are pure (input → output): each step copies its input
- A single `run_pipeline()` call reproduces results end-to-end
"""

import json
import logging
from datetime import date, datetime
from pathlib import Path

import numpy as np
import pandas as pd

from data_collection import (
    DATASET_URL, DATE_COL, TIME_COL, MURDER_COL, REQUIRED_COLUMNS,
    check_schema, coerce_murder_flag, invalid_flag_mask, load_data,
)
from pipeline_errors import ParseError

# ── Logging Setup ─────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger(__name__)


# ── Constants ─────────────────────────────────────────────────────────────────

DATE_FORMAT = "%m/%d/%Y"
TIME_FORMAT = "%H:%M:%S"

# Columns dropped when more than this fraction of rows is missing
SPARSITY_THRESHOLD = 0.5

# Daytime is [DAY_START, DAY_END) on the 24h clock
DAY_START, DAY_END = 7, 19

# The source writes "(null)" for unknown perpetrator fields
MISSING_TOKENS = ["(null)"]

# Out of analytic scope no matter how complete they are
OUT_OF_SCOPE_COLUMNS = [
    "INCIDENT_KEY",
    "BORO", "PRECINCT", "JURISDICTION_CODE",
    "LOC_OF_OCCUR_DESC", "LOC_CLASSFCTN_DESC", "LOCATION_DESC",
    "PERP_AGE_GROUP", "PERP_SEX", "PERP_RACE",
    "VIC_AGE_GROUP", "VIC_SEX", "VIC_RACE",
    "X_COORD_CD", "Y_COORD_CD", "Latitude", "Longitude", "Lon_Lat",
]

# Derived columns
YEAR_COL    = "YEAR"
HOUR_COL    = "HOUR"
DAYTIME_COL = "IS_DAYTIME"
LAG_COL     = "LAG_MURDER"

PARSE_POLICIES = ("raise", "reject")


# ── Audit Trail ───────────────────────────────────────────────────────────────

class AuditTrail:
    """Tracks every cleaning decision with before/after row counts and change stats."""

    def __init__(self, total_rows: int):
        self.total_rows = total_rows
        self.steps: list[dict] = []

    def record(self, step: str, description: str, changed: int, detail: str = ""):
        pct = changed / self.total_rows * 100 if self.total_rows else 0.0
        self.steps.append({
            "step": step,
            "description": description,
            "rows_affected": changed,
            "pct_affected": round(pct, 2),
            "detail": detail,
        })
        log.info(f"[{step}] {description} → {changed:,} affected ({pct:.1f}%) {detail}")

    def save(self, path: str):
        class _NumpyEncoder(json.JSONEncoder):
            """Convert numpy int/float types to native Python before serialising."""
            def default(self, obj):
                if isinstance(obj, np.integer):
                    return int(obj)
                if isinstance(obj, np.floating):
                    return float(obj)
                if isinstance(obj, np.ndarray):
                    return obj.tolist()
                return super().default(obj)

        with open(path, "w") as f:
            json.dump({"total_rows": self.total_rows, "steps": self.steps}, f,
                      indent=2, cls=_NumpyEncoder)
        log.info(f"Audit trail saved → {path}")

    def summary(self):
        print("\n" + "=" * 65)
        print("PIPELINE AUDIT SUMMARY")
        print("=" * 65)
        print(f"{'Step':<22} {'Affected':>10} {'%':>7}  Description")
        print("-" * 65)
        for s in self.steps:
            print(f"{s['step']:<22} {s['rows_affected']:>10,} {s['pct_affected']:>6.1f}%  {s['description']}")
        print("=" * 65)


# ── Step 1: Missing Values ────────────────────────────────────────────────────

def normalize_missing(df: pd.DataFrame) -> pd.DataFrame:
    """Turn placeholder tokens and blank strings into real nulls."""
    df = df.replace(MISSING_TOKENS, np.nan)
    return df.replace(r"^\s*$", np.nan, regex=True)


def missing_ratios(df: pd.DataFrame) -> pd.Series:
    """Fraction of rows with no value, per column. An empty frame scores 0."""
    return normalize_missing(df).isna().mean().fillna(0.0)


# ── Step 2: Column Pruning ────────────────────────────────────────────────────

def prune_columns(
    df: pd.DataFrame,
    threshold: float = SPARSITY_THRESHOLD,
    exclude=OUT_OF_SCOPE_COLUMNS,
    keep=REQUIRED_COLUMNS,
    audit: AuditTrail = None,
) -> tuple[pd.DataFrame, dict]:
    """
    Drop columns whose missing ratio exceeds `threshold`, plus every column
    on the `exclude` list. Columns in `keep` are never dropped for sparsity.

    Returns the pruned frame and {column: missing ratio} for the columns
    removed because they were too sparse.
    """
    ratios = missing_ratios(df)

    out_of_scope = [c for c in exclude if c in df.columns]
    too_sparse = {
        col: float(ratios[col])
        for col in df.columns
        if col not in out_of_scope and col not in keep and ratios[col] > threshold
    }

    pruned = df.drop(columns=out_of_scope + list(too_sparse))

    if audit is not None:
        rounded = {c: round(r, 3) for c, r in too_sparse.items()}
        audit.record("Out-of-scope columns", "Fixed exclusion list dropped", len(out_of_scope),
                     f"({out_of_scope})")
        audit.record("Sparse columns", f"Columns >{threshold:.0%} missing dropped", len(too_sparse),
                     f"({rounded})")
    return pruned, too_sparse


# ── Step 3: Parse Dates & Times ───────────────────────────────────────────────

def parse_occur_date(text: str) -> date:
    try:
        return datetime.strptime(str(text).strip(), DATE_FORMAT).date()
    except ValueError:
        raise ParseError(f"Date {text!r} does not match {DATE_FORMAT}") from None


def parse_occur_hour(text: str) -> int:
    try:
        return datetime.strptime(str(text).strip(), TIME_FORMAT).hour
    except ValueError:
        raise ParseError(f"Time {text!r} does not match {TIME_FORMAT}") from None


def _handle_bad_rows(df: pd.DataFrame, bad: pd.Series, column: str,
                     audit: AuditTrail, on_error: str) -> pd.DataFrame:
    """Abort on the first bad row, or drop all of them and record the count."""
    if on_error not in PARSE_POLICIES:
        raise ValueError(f"on_error must be one of {PARSE_POLICIES}, got {on_error!r}")

    n_bad = int(bad.sum())
    if n_bad and on_error == "raise":
        row = bad.idxmax()
        raise ParseError(
            f"Column {column!r}, row {row}: cannot parse {df.at[row, column]!r} "
            f"({n_bad:,} bad rows in total)"
        )

    if audit is not None:
        audit.record(f"Parse: {column}", "Unparseable rows rejected", n_bad)
    return df.loc[~bad].copy()


def _stripped(values: pd.Series) -> pd.Series:
    return values.astype("string").str.strip()


def parse_dates(df: pd.DataFrame, audit: AuditTrail = None, on_error: str = "raise") -> pd.DataFrame:
    parsed = pd.to_datetime(_stripped(df[DATE_COL]), format=DATE_FORMAT, errors="coerce")
    df = _handle_bad_rows(df, parsed.isna(), DATE_COL, audit, on_error)

    df[DATE_COL] = parsed.loc[df.index]
    df[YEAR_COL] = df[DATE_COL].dt.year.astype(int)
    return df


def parse_times(df: pd.DataFrame, audit: AuditTrail = None, on_error: str = "raise") -> pd.DataFrame:
    parsed = pd.to_datetime(_stripped(df[TIME_COL]), format=TIME_FORMAT, errors="coerce")
    df = _handle_bad_rows(df, parsed.isna(), TIME_COL, audit, on_error)

    df[HOUR_COL] = parsed.loc[df.index].dt.hour.astype(int)
    return df


def parse_murder_flag(df: pd.DataFrame, audit: AuditTrail = None, on_error: str = "raise") -> pd.DataFrame:
    df = _handle_bad_rows(df, invalid_flag_mask(df[MURDER_COL]), MURDER_COL, audit, on_error)
    df[MURDER_COL] = coerce_murder_flag(df[MURDER_COL])
    return df


# ── Step 4: Day / Night ───────────────────────────────────────────────────────

def is_daytime(hour: int) -> bool:
    return DAY_START <= hour < DAY_END


def flag_daytime(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df[DAYTIME_COL] = (df[HOUR_COL] >= DAY_START) & (df[HOUR_COL] < DAY_END)
    return df


# ── Step 5: Lagged Outcome ────────────────────────────────────────────────────

def add_lag_outcome(df: pd.DataFrame) -> pd.DataFrame:
    """
    Sort by occurrence date and attach the previous record's murder flag.

    The sort is stable and by date only, so same-day incidents keep their
    source order. The lag runs over the whole sorted sequence; the first
    record has no predecessor and gets <NA>.
    """
    df = df.sort_values(DATE_COL, kind="stable")
    df[LAG_COL] = df[MURDER_COL].astype("boolean").shift(1)
    return df


# ── Feature Orchestrator ──────────────────────────────────────────────────────

def derive_features(df: pd.DataFrame, audit: AuditTrail = None, on_error: str = "raise") -> pd.DataFrame:
    check_schema(df)
    df = parse_dates(df, audit, on_error)
    df = parse_times(df, audit, on_error)
    df = parse_murder_flag(df, audit, on_error)
    df = flag_daytime(df)
    df = add_lag_outcome(df)

    if audit is not None:
        audit.record("Derived features", "Year, hour, day/night and lagged outcome added", len(df),
                     f"({YEAR_COL}, {HOUR_COL}, {DAYTIME_COL}, {LAG_COL})")
    return df


# ── Pipeline Orchestrator ─────────────────────────────────────────────────────

def run_pipeline(
    input_path: str = DATASET_URL,
    output_path: str = None,
    audit_path: str = None,
    threshold: float = SPARSITY_THRESHOLD,
    on_error: str = "raise",
) -> pd.DataFrame:
    """
    End-to-end cleaning pipeline. Call this to fully reproduce derived data.

    Parameters
    ----------
    input_path  : URL or path of the raw shooting incident CSV
    output_path : optional path for the derived CSV
    audit_path  : optional path for the JSON audit log
    threshold   : missing ratio above which a column is dropped
    on_error    : "raise" aborts on the first unparseable value,
                  "reject" drops such rows and counts them

    Returns
    -------
    Derived DataFrame, sorted by occurrence date
    """
    log.info("=" * 60)
    log.info("NYPD SHOOTING INCIDENTS — PIPELINE START")
    log.info("=" * 60)

    df = load_data(input_path)
    audit = AuditTrail(total_rows=len(df))

    df = normalize_missing(df)
    df, _ = prune_columns(df, threshold=threshold, audit=audit)
    df = derive_features(df, audit, on_error)

    # ── Save ──────────────────────────────────────────────────────────────────
    if output_path:
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(output_path, index=False)
        log.info(f"Derived data saved → {output_path}")
    log.info(f"Final shape: {df.shape[0]:,} rows × {df.shape[1]} columns")

    if audit_path:
        Path(audit_path).parent.mkdir(parents=True, exist_ok=True)
        audit.save(audit_path)
    audit.summary()

    return df


# ── Entry Point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    run_pipeline(
        input_path=DATASET_URL,
        output_path="data/processed/shootings_derived.csv",
        audit_path="data/pipeline_audit.json",
    )
