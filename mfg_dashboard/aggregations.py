"""
Aggregation functions: pure functions with no side effects.

Groups filtered machine-event rows by month, calendar day or machine and
reduces a numeric column to sums, averages, min/max. Rows with an
unparseable date or a non-numeric target value are left out of that one
aggregate only; they still count for every other aggregate they are valid
for.
"""

import logging

import pandas as pd

from .config import (
    COL_DATE,
    COL_DOWNTIME,
    COL_MACHINE_ID,
    COL_MACHINE_TYPE,
    COL_OEE,
    COL_PRODUCTION,
    DECIMALS,
    MIN_MACHINE_SAMPLES,
    MONTH_NAMES,
    OEE_BANDS,
    OEE_HIGH_THRESHOLD,
    OEE_LOW_THRESHOLD,
    TOP_N,
)
from .loaders.utils import (
    clean_text,
    coerce_numeric,
    event_months,
    format_event_date,
    parse_event_dates,
    safe_float,
)

logger = logging.getLogger(__name__)

MACHINE_COLUMNS = ["machine_id", "machine_type", "label", "total", "occurrences", "average"]


def _column(rows: pd.DataFrame, name: str) -> pd.Series:
    """Return a column, or an all-missing Series when the frame lacks it."""
    if name in rows.columns:
        return rows[name]
    return pd.Series(None, index=rows.index, dtype="object")


# ---------------------------------------------------------------------------
# By month / by day
# ---------------------------------------------------------------------------

def _by_month(rows: pd.DataFrame, column: str, value_name: str, how: str) -> pd.DataFrame:
    frame = pd.DataFrame({
        "month_number": event_months(_column(rows, COL_DATE)),
        "value": coerce_numeric(_column(rows, column)),
    }).dropna()

    if frame.empty:
        return pd.DataFrame(columns=["month", "month_number", value_name, "count"])

    result = (
        frame.groupby("month_number")
        .agg(total=("value", how), count=("value", "count"))
        .reset_index()
        .sort_values("month_number")
    )
    result["month_number"] = result["month_number"].astype(int)
    result.insert(0, "month", result["month_number"].map(lambda m: MONTH_NAMES[m - 1]))
    result = result.rename(columns={"total": value_name})
    result[value_name] = result[value_name].round(DECIMALS)
    return result.reset_index(drop=True)


def _by_day(rows: pd.DataFrame, column: str, value_name: str, how: str) -> pd.DataFrame:
    frame = pd.DataFrame({
        "day": parse_event_dates(_column(rows, COL_DATE)),
        "value": coerce_numeric(_column(rows, column)),
    }).dropna()

    if frame.empty:
        return pd.DataFrame(columns=["date", "day", value_name, "count"])

    # groupby sorts the datetime key, which gives calendar order
    result = (
        frame.groupby("day")
        .agg(total=("value", how), count=("value", "count"))
        .reset_index()
    )
    result.insert(0, "date", result["day"].map(format_event_date))
    result = result.rename(columns={"total": value_name})
    result[value_name] = result[value_name].round(DECIMALS)
    return result.reset_index(drop=True)


def monthly_downtime(rows: pd.DataFrame) -> pd.DataFrame:
    """Total downtime minutes per calendar month.

    Returns
    -------
    DataFrame with columns: month (name), month_number, downtime, count.
    Ordered January -> December. Months from different years share a bucket.
    """
    return _by_month(rows, COL_DOWNTIME, "downtime", "sum")


def monthly_production(rows: pd.DataFrame) -> pd.DataFrame:
    """Total production units per calendar month."""
    return _by_month(rows, COL_PRODUCTION, "production", "sum")


def monthly_oee(rows: pd.DataFrame) -> pd.DataFrame:
    """Average OEE per calendar month."""
    return _by_month(rows, COL_OEE, "average_oee", "mean")


def daily_downtime(rows: pd.DataFrame) -> pd.DataFrame:
    """Total downtime minutes per calendar day.

    Returns
    -------
    DataFrame with columns: date (DD-MM-YYYY), day (Timestamp), downtime,
    count. Ordered chronologically.
    """
    return _by_day(rows, COL_DOWNTIME, "downtime", "sum")


def daily_production(rows: pd.DataFrame) -> pd.DataFrame:
    """Total production units per calendar day."""
    return _by_day(rows, COL_PRODUCTION, "production", "sum")


def daily_oee(rows: pd.DataFrame) -> pd.DataFrame:
    """Average OEE per calendar day."""
    return _by_day(rows, COL_OEE, "average_oee", "mean")


# ---------------------------------------------------------------------------
# By machine
# ---------------------------------------------------------------------------

def _first_non_empty(values: pd.Series) -> str:
    return next((v for v in values if v), "Unknown")


def machine_totals(rows: pd.DataFrame, column: str) -> pd.DataFrame:
    """Sum and count a numeric column per Machine_ID.

    Rows without a machine id or without a numeric value are skipped.

    Returns
    -------
    DataFrame with columns:
        machine_id, machine_type, label, total, occurrences, average
    where average = total / occurrences. Ordered by machine_id.
    """
    frame = pd.DataFrame({
        "machine_id": _column(rows, COL_MACHINE_ID).map(clean_text),
        "machine_type": _column(rows, COL_MACHINE_TYPE).map(clean_text),
        "value": coerce_numeric(_column(rows, column)),
    })
    frame = frame[(frame["machine_id"] != "") & frame["value"].notna()]

    if frame.empty:
        return pd.DataFrame(columns=MACHINE_COLUMNS)

    result = (
        frame.groupby("machine_id")
        .agg(
            machine_type=("machine_type", _first_non_empty),
            total=("value", "sum"),
            occurrences=("value", "count"),
        )
        .reset_index()
    )
    result["average"] = (result["total"] / result["occurrences"]).round(DECIMALS)
    result["total"] = result["total"].round(DECIMALS)
    result["label"] = result["machine_id"] + " (" + result["machine_type"] + ")"
    return result[MACHINE_COLUMNS]


def machine_downtime(rows: pd.DataFrame) -> pd.DataFrame:
    """Downtime totals and average minutes per occurrence, per machine."""
    return machine_totals(rows, COL_DOWNTIME)


def machine_production(rows: pd.DataFrame) -> pd.DataFrame:
    """Production totals per machine."""
    return machine_totals(rows, COL_PRODUCTION)


def machine_oee(rows: pd.DataFrame, min_samples: int = MIN_MACHINE_SAMPLES) -> pd.DataFrame:
    """Average OEE per machine, keeping machines with >= min_samples readings."""
    table = machine_totals(rows, COL_OEE)
    return table[table["occurrences"] >= min_samples].reset_index(drop=True)


def top_machines(table: pd.DataFrame, n: int = TOP_N, by: str = "total") -> pd.DataFrame:
    """Highest n machines by `by`; ties broken by machine_id."""
    ranked = table.sort_values([by, "machine_id"], ascending=[False, True])
    return ranked.head(n).reset_index(drop=True)


def bottom_machines(table: pd.DataFrame, n: int = TOP_N, by: str = "total") -> pd.DataFrame:
    """Lowest n machines by `by`, lowest first; ties broken by machine_id."""
    ranked = table.sort_values([by, "machine_id"], ascending=[True, True])
    return ranked.head(n).reset_index(drop=True)


# ---------------------------------------------------------------------------
# Summary statistics
# ---------------------------------------------------------------------------

def summary_stats(values) -> dict[str, float]:
    """Return average/minimum/maximum of the numeric entries in `values`.

    Unparseable entries are skipped. With no valid entries every statistic
    is 0.0, never NaN.
    """
    if not isinstance(values, pd.Series):
        values = pd.Series(list(values), dtype="object")
    numeric = coerce_numeric(values).dropna()
    if numeric.empty:
        return {"average": 0.0, "minimum": 0.0, "maximum": 0.0}

    return {
        "average": round(float(numeric.mean()), DECIMALS),
        "minimum": round(float(numeric.min()), DECIMALS),
        "maximum": round(float(numeric.max()), DECIMALS),
    }


def downtime_stats(rows: pd.DataFrame) -> dict[str, float]:
    return summary_stats(_column(rows, COL_DOWNTIME))


def production_stats(rows: pd.DataFrame) -> dict[str, float]:
    return summary_stats(_column(rows, COL_PRODUCTION))


def oee_stats(rows: pd.DataFrame) -> dict[str, float]:
    return summary_stats(_column(rows, COL_OEE))


# ---------------------------------------------------------------------------
# Classification / formatting
# ---------------------------------------------------------------------------

def classify_oee(value) -> str:
    """Return 'red', 'amber', 'green' or 'grey' for an OEE percentage.

    Logic
    -----
    red    if value < OEE_LOW_THRESHOLD (65)
    amber  if value < OEE_HIGH_THRESHOLD (85)
    green  otherwise
    grey   when the value is missing or not numeric
    """
    number = safe_float(value)
    if number is None:
        return "grey"
    if number < OEE_LOW_THRESHOLD:
        return "red"
    if number < OEE_HIGH_THRESHOLD:
        return "amber"
    return "green"


def oee_band_label(value) -> str:
    return OEE_BANDS[classify_oee(value)]


def format_minutes(minutes: float) -> str:
    """Render minutes as '45 min' below an hour, '2h 5m' above."""
    if minutes < 60:
        return f"{minutes:g} min"
    hours, mins = divmod(int(round(minutes)), 60)
    return f"{hours}h {mins}m"
