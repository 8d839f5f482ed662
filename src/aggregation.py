"""
aggregation.py
Group summaries over derived shooting records.

A group summary is a DataFrame indexed by the grouping key with two columns:
`count` (records in the group) and `positive_count` (those flagged as murder).
Only keys present in the input appear; there are no zero-count rows.
"""

import logging
from dataclasses import dataclass

import pandas as pd

from data_cleaning import DAYTIME_COL, HOUR_COL, LAG_COL, MURDER_COL, YEAR_COL
from pipeline_errors import EmptyGroupError, SchemaError

log = logging.getLogger(__name__)

GROUP_KEYS = (YEAR_COL, HOUR_COL, DAYTIME_COL)


@dataclass(frozen=True)
class Extremum:
    """Key(s) reaching the max or min group count. Ties keep every key."""
    keys: tuple
    count: int


def summarize_by(df: pd.DataFrame, key: str, require_lag: bool = False) -> pd.DataFrame:
    """
    Count records and murders per value of `key` (YEAR, HOUR or IS_DAYTIME).

    With `require_lag`, records whose lagged outcome is undefined are left
    out first, so the counts match what the estimator sees.
    """
    if key not in GROUP_KEYS:
        raise SchemaError(f"Unknown grouping key {key!r}; expected one of {GROUP_KEYS}",
                          stage="aggregate")
    needed = (key, MURDER_COL, LAG_COL) if require_lag else (key, MURDER_COL)
    missing = [c for c in needed if c not in df.columns]
    if missing:
        raise SchemaError(f"Cannot group, missing columns: {missing}", stage="aggregate")

    if require_lag:
        df = df[df[LAG_COL].notna()]

    summary = (
        df.groupby(key, sort=True, observed=True)[MURDER_COL]
        .agg(count="size", positive_count="sum")
        .astype(int)
    )
    log.info(f"Summarised {len(df):,} records into {len(summary)} {key} groups")
    return summary


def count_extremes(summary: pd.DataFrame, which: str = "max", single: bool = False) -> Extremum:
    """
    Key(s) with the largest (`which="max"`) or smallest (`which="min"`) count.

    Every tied key is returned in ascending order; `single=True` keeps only
    the smallest of them.
    """
    if which not in ("max", "min"):
        raise ValueError(f"which must be 'max' or 'min', got {which!r}")
    if summary.empty:
        raise EmptyGroupError(f"No groups to take the {which} of")

    counts = summary["count"]
    target = counts.max() if which == "max" else counts.min()
    keys = tuple(sorted(counts[counts == target].index.tolist()))
    if single:
        keys = keys[:1]
    return Extremum(keys=keys, count=int(target))


def hourly_extremes(summary: pd.DataFrame, single: bool = False) -> dict:
    """Busiest and quietest hours of the day from an hourly summary."""
    return {
        "max": count_extremes(summary, "max", single=single),
        "min": count_extremes(summary, "min", single=single),
    }
