"""
eda.py
Exploratory Data Analysis for NYPD Shooting Incidents

Design principles:
- Every chart answers one question: how has the yearly volume moved, how
  much happens after dark, and which hours are busiest
- Charts only draw group summaries; all counting lives in aggregation.py
- The lag model is printed as a demonstration, never as a forecast
- All outputs are reproducible and saved with descriptive names
"""

import warnings
from pathlib import Path

import matplotlib.pyplot as plt
import matplotlib.ticker as mticker
import pandas as pd
import seaborn as sns

from aggregation import hourly_extremes, summarize_by
from data_cleaning import (
    DATE_COL, DAY_END, DAY_START, DAYTIME_COL, HOUR_COL, LAG_COL, MURDER_COL, YEAR_COL,
)
from modeling import fit_lag_model, predict_next

warnings.filterwarnings("ignore")

# ── Style ─────────────────────────────────────────────────────────────────────
ACCENT   = "#D62728"   # red: murders, peak hour
NEUTRAL  = "#4C72B0"   # blue: standard bars
MUTED    = "#B0B0B0"
BG_GRAY  = "#F7F7F7"
FIG_DIR  = Path("data/processed/eda/plots")

plt.rcParams.update({
    "figure.facecolor": BG_GRAY,
    "axes.facecolor":   BG_GRAY,
    "axes.spines.top":  False,
    "axes.spines.right": False,
    "axes.labelsize":   11,
    "axes.titlesize":   13,
    "axes.titleweight": "bold",
    "xtick.labelsize":  9,
    "ytick.labelsize":  9,
    "font.family":      "sans-serif",
})


# ── Helpers ───────────────────────────────────────────────────────────────────

def _save(fig: plt.Figure, name: str, fig_dir: Path = FIG_DIR) -> Path:
    fig_dir = Path(fig_dir)
    fig_dir.mkdir(parents=True, exist_ok=True)
    path = fig_dir / f"{name}.png"
    fig.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    print(f"  ✓ Saved → {path}")
    return path


def _source_note(ax, note="Source: NYPD Shooting Incident Data / data.cityofnewyork.us"):
    ax.annotate(note, xy=(0, -0.12), xycoords="axes fraction",
                fontsize=7, color="gray")


def fmt_thousands(ax, axis="y"):
    fmt = mticker.FuncFormatter(lambda x, _: f"{x:,.0f}")
    if axis == "y":
        ax.yaxis.set_major_formatter(fmt)
    else:
        ax.xaxis.set_major_formatter(fmt)


def _banner(title: str):
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)


def load_derived_data(filepath: str) -> pd.DataFrame:
    """Read the CSV written by run_pipeline() and restore its column types."""
    print(f"Loading derived data from: {filepath}")
    df = pd.read_csv(filepath, parse_dates=[DATE_COL], low_memory=False)
    df[MURDER_COL]  = df[MURDER_COL].astype(bool)
    df[DAYTIME_COL] = df[DAYTIME_COL].astype(bool)
    df[LAG_COL]     = df[LAG_COL].astype("boolean")
    print(f"  Loaded {len(df):,} rows × {df.shape[1]} columns\n")
    return df


# ── EDA 1: Yearly Trend ───────────────────────────────────────────────────────

def eda_yearly_trend(df: pd.DataFrame, fig_dir: Path = FIG_DIR) -> pd.DataFrame:
    """
    Q: Is shooting volume rising or falling, and do murders follow it?
    """
    _banner("EDA 1 | YEARLY TREND")
    yearly = summarize_by(df, YEAR_COL)

    fig, ax = plt.subplots(figsize=(12, 5))
    ax.bar(yearly.index, yearly["count"], color=NEUTRAL, label="All shootings")
    ax.bar(yearly.index, yearly["positive_count"], color=ACCENT, label="Murders")
    ax.set_xticks(yearly.index)
    ax.set_xticklabels(yearly.index, rotation=45)
    ax.set_title("Shooting Incidents per Year")
    ax.set_ylabel("Number of Incidents")
    fmt_thousands(ax)
    ax.legend(fontsize=8)
    _source_note(ax)

    plt.tight_layout()
    _save(fig, "01_yearly_trend", fig_dir)

    if not yearly.empty:
        print(f"  Busiest year: {yearly['count'].idxmax()} ({yearly['count'].max():,} incidents)")
    return yearly


# ── EDA 2: Day vs Night ───────────────────────────────────────────────────────

def eda_day_night(df: pd.DataFrame, fig_dir: Path = FIG_DIR) -> pd.DataFrame:
    """
    Q: What share of shootings happens outside daytime hours?
    """
    _banner("EDA 2 | DAY VS NIGHT")
    split = summarize_by(df, DAYTIME_COL)

    labels = {True: f"Daytime ({DAY_START}:00-{DAY_END}:00)", False: "Nighttime"}
    colors = {True: MUTED, False: NEUTRAL}

    fig, ax = plt.subplots(figsize=(6, 6))
    ax.pie(split["count"], labels=[labels[k] for k in split.index],
           colors=[colors[k] for k in split.index],
           autopct="%1.1f%%", startangle=90, wedgeprops={"edgecolor": "white"})
    ax.set_title("Shootings by Time of Day")

    _save(fig, "02_day_night", fig_dir)

    for flag, row in split.iterrows():
        print(f"  {labels[flag]}: {row['count']:,} incidents, {row['positive_count']:,} murders")
    return split


# ── EDA 3: Hour of Day ────────────────────────────────────────────────────────

def eda_hourly(df: pd.DataFrame, fig_dir: Path = FIG_DIR) -> dict:
    """
    Q: Which hours of the day see the most and the fewest shootings?
    """
    _banner("EDA 3 | HOUR OF DAY")
    hourly = summarize_by(df, HOUR_COL)
    extremes = hourly_extremes(hourly)

    bar_colors = [
        ACCENT if h in extremes["max"].keys else (MUTED if h in extremes["min"].keys else NEUTRAL)
        for h in hourly.index
    ]
    hour_labels = [f"{h:02d}" for h in hourly.index]
    fig, ax = plt.subplots(figsize=(12, 5))
    sns.barplot(x=hour_labels, y=hourly["count"].values, hue=hour_labels,
                palette=dict(zip(hour_labels, bar_colors)), legend=False, ax=ax)
    ax.set_title("Shootings by Hour of Day\n(Red = peak hour, grey = quietest hour)")
    ax.set_xlabel("Hour of Day")
    ax.set_ylabel("Number of Incidents")
    fmt_thousands(ax)
    _source_note(ax)

    plt.tight_layout()
    _save(fig, "03_hourly_histogram", fig_dir)

    for which in ("max", "min"):
        e = extremes[which]
        hours = ", ".join(f"{h}:00" for h in e.keys)
        print(f"  {which.upper()} hour(s): {hours} ({e.count:,} incidents)")
    return extremes


# ── EDA 4: Lagged-Outcome Model ───────────────────────────────────────────────

def eda_lag_model(df: pd.DataFrame) -> float:
    """
    Q: Given the last recorded shooting, how likely is the next one a murder?
    Demonstration only: no validation, not calibrated.
    """
    _banner("EDA 4 | LAGGED-OUTCOME MODEL")
    model = fit_lag_model(df)
    probability = predict_next(df, model)

    print(f"  Fitted on {model.n_obs:,} records "
          f"(intercept={model.intercept:.3f}, slope={model.slope:.3f})")
    print(f"  P(next incident is a murder) = {probability:.4f}")
    return probability


# ── Pipeline Orchestrator ─────────────────────────────────────────────────────

def run_eda(cleaned_data_path: str, fig_dir: Path = FIG_DIR) -> dict:
    """
    Run the full EDA in one call.
    Figures are saved to `fig_dir`; returns the printed scalar results.
    """
    df = load_derived_data(cleaned_data_path)

    eda_yearly_trend(df, fig_dir)
    eda_day_night(df, fig_dir)
    extremes = eda_hourly(df, fig_dir)
    probability = eda_lag_model(df)

    print("\n" + "=" * 60)
    print(f"✓ EDA COMPLETE — {len(list(Path(fig_dir).glob('*.png')))} figures saved to {fig_dir}/")
    print("=" * 60)

    return {
        "predicted_probability": probability,
        "max_hours": extremes["max"].keys,
        "max_count": extremes["max"].count,
        "min_hours": extremes["min"].keys,
        "min_count": extremes["min"].count,
    }


# ── Entry Point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    run_eda("data/processed/shootings_derived.csv")
