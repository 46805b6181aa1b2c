"""
Shared parsing utilities: fail-soft numeric coercion, day-month-year date
parsing, header detection.

None of these functions raise on bad input. Unparseable values come back as
None (scalars) or NaN/NaT (Series) so every aggregator excludes them the
same way.
"""

import logging
import math
from datetime import date
from typing import Any

import numpy as np
import pandas as pd

from ..config import DATE_FORMAT

logger = logging.getLogger(__name__)


def safe_float(val: Any) -> float | None:
    """Coerce a value to float, returning None for non-numeric values."""
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, str):
        # Skip formula strings and text labels
        val = val.strip()
        if val.startswith("=") or not val:
            return None
        # Handle percentage strings like "78%"
        if val.endswith("%"):
            val = val[:-1].strip()
        try:
            result = float(val)
        except ValueError:
            return None
    else:
        try:
            result = float(val)
        except (ValueError, TypeError):
            return None
    if not math.isfinite(result):
        return None
    return result


def coerce_numeric(series: pd.Series) -> pd.Series:
    """Apply safe_float element-wise; invalid entries become NaN."""
    if pd.api.types.is_numeric_dtype(series) and not pd.api.types.is_bool_dtype(series):
        return series.astype("float64").replace([np.inf, -np.inf], np.nan)
    return series.map(safe_float).astype("float64")


def parse_event_date(val: Any) -> pd.Timestamp | None:
    """Parse a DD-MM-YYYY date string.

    Returns None for anything that is not a real calendar date in that
    format ("not-a-date", "31-02-2023", "2023-01-05", empty).
    """
    if val is None:
        return None
    if isinstance(val, pd.Timestamp):
        return None if pd.isna(val) else val
    text = str(val).strip()
    if not text:
        return None
    parsed = pd.to_datetime(text, format=DATE_FORMAT, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed


def parse_event_dates(series: pd.Series) -> pd.Series:
    """Vectorised parse_event_date; unparseable entries become NaT."""
    if series.empty:
        return pd.Series(pd.NaT, index=series.index, dtype="datetime64[ns]")
    text = series.astype("string").str.strip()
    return pd.to_datetime(text, format=DATE_FORMAT, errors="coerce")


def event_months(series: pd.Series) -> pd.Series:
    """Month number (1-12) of each date, NaN where the date is unparseable."""
    return parse_event_dates(series).dt.month.astype("float64")


def format_event_date(ts: pd.Timestamp) -> str:
    """Render a timestamp back into the DD-MM-YYYY source format."""
    return ts.strftime(DATE_FORMAT)


def clean_text(val: Any) -> str:
    """Normalise a cell to a stripped string; missing values become ''."""
    if val is None:
        return ""
    if isinstance(val, date):
        # Workbook date cells come back as datetime objects
        return val.strftime(DATE_FORMAT)
    if isinstance(val, float) and math.isnan(val):
        return ""
    if isinstance(val, float) and val.is_integer():
        # Workbook cells come back as floats for integer-looking ids
        return str(int(val))
    return str(val).strip()


def find_header_row(
    sheet,
    signature: set[str],
    max_rows: int = 20,
) -> int | None:
    """Scan an openpyxl sheet for the row containing signature strings.

    Returns the 1-based row index where at least two cells match values
    in `signature`, or None if not found within `max_rows`.
    """
    for row_idx, row in enumerate(
        sheet.iter_rows(min_row=1, max_row=max_rows, values_only=True), start=1
    ):
        matches = 0
        for value in row:
            if value is not None and str(value).strip() in signature:
                matches += 1
        if matches >= 2:
            return row_idx
    return None
