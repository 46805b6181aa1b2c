"""
Filter engine: a conjunction of equality filters over the row set.

Pure functions: the input frame is never modified, and the result keeps the
original index so it is always a subset of the input.
"""

import dataclasses
import logging
from dataclasses import dataclass

import pandas as pd

from .config import COL_DATE, FILTER_COLUMNS
from .loaders.utils import clean_text, event_months, safe_float

logger = logging.getLogger(__name__)


def _is_blank(value) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def month_number(value) -> int | None:
    """Return a month filter value as an int 1-12, or None if invalid."""
    number = safe_float(value)
    if number is None or not number.is_integer():
        return None
    number = int(number)
    if not 1 <= number <= 12:
        return None
    return number


@dataclass(frozen=True)
class FilterSelection:
    """Active filter selection. None or '' means no constraint."""

    plant_id: str | None = None
    plant_name: str | None = None
    product_line: str | None = None
    shift: str | None = None
    month: int | str | None = None

    def active(self) -> dict[str, object]:
        """Mapping of constrained field -> value."""
        return {
            name: value
            for name, value in dataclasses.asdict(self).items()
            if not _is_blank(value)
        }

    def is_empty(self) -> bool:
        return not self.active()

    def replace(self, **changes) -> "FilterSelection":
        return dataclasses.replace(self, **changes)


def apply_filters(
    rows: pd.DataFrame,
    selection: FilterSelection | None = None,
) -> pd.DataFrame:
    """Return the rows matching every active filter.

    Rules
    -----
    - plant_id, plant_name, product_line, shift: exact string equality
      against the stripped cell text.
    - month: numeric comparison with the month of the DD-MM-YYYY Date.
      Rows whose date does not parse never match; a month value outside
      1-12 matches nothing.
    - An empty selection keeps every row.
    """
    mask = pd.Series(True, index=rows.index)
    if selection is None:
        return rows.loc[mask]

    for name, value in selection.active().items():
        if name == "month":
            month = month_number(value)
            if month is None or COL_DATE not in rows.columns:
                logger.warning("Month filter %r matches no rows", value)
                mask = mask & False
                continue
            mask = mask & (event_months(rows[COL_DATE]) == month)
            continue

        col = FILTER_COLUMNS[name]
        if col not in rows.columns:
            logger.warning("Column '%s' not present; filter %s matches no rows", col, name)
            mask = mask & False
            continue
        mask = mask & (rows[col].map(clean_text) == clean_text(value))

    result = rows.loc[mask]
    logger.debug("Filters %s kept %d of %d rows", selection.active(), len(result), len(rows))
    return result
