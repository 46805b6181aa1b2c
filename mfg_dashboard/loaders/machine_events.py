"""
Loader for the machine-events export.

Source: Data2.csv, one row per machine-shift observation, either a local
file or a static file served over HTTP. Workbook exports of the same table
(.xlsx / .xlsm) are read with openpyxl.

Columns:
    Plant_ID, Plant_Name, Product_Line, Shift, Machine_ID, Machine_Type,
    Date (DD-MM-YYYY), Downtime_Minutes, Production_Units, OEE
"""

import io
import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

import openpyxl
import pandas as pd
import requests

from ..config import (
    COL_DATE,
    DATA_SOURCE,
    FILTER_OPTION_KEYS,
    LOAD_TIMEOUT_SECONDS,
    NUMERIC_COLUMNS,
    REQUIRED_COLUMNS,
    WORKBOOK_SUFFIXES,
)
from .utils import clean_text, coerce_numeric, event_months, find_header_row

logger = logging.getLogger(__name__)

LOAD_OK = "ok"
LOAD_FETCH_ERROR = "fetch_error"
LOAD_PARSE_ERROR = "parse_error"
LOAD_TIMEOUT = "timeout"


class SourceError(Exception):
    """Base class for failures reading the machine-events source."""


class SourceFetchError(SourceError):
    """Network failure, non-success HTTP status or unreadable file."""


class SourceTimeoutError(SourceError):
    """The source did not answer within the allowed time."""


class SourceParseError(SourceError):
    """The payload is not a readable machine-events table."""


def _empty_rows() -> pd.DataFrame:
    return pd.DataFrame(columns=REQUIRED_COLUMNS)


@dataclass(frozen=True, eq=False)
class LoadResult:
    """Outcome of one load attempt.

    `status` is one of "ok", "fetch_error", "parse_error", "timeout".
    On failure `rows` is empty and `error` carries a user-facing message.
    """

    status: str
    rows: pd.DataFrame = field(default_factory=_empty_rows)
    filter_options: dict[str, list] = field(default_factory=dict)
    error: str | None = None
    source: str = ""

    @property
    def ok(self) -> bool:
        return self.status == LOAD_OK


def _is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def _is_workbook(name: str) -> bool:
    path = urlparse(name).path if _is_url(name) else name
    return Path(path).suffix.lower() in WORKBOOK_SUFFIXES


# ---------------------------------------------------------------------------
# Fetch
# ---------------------------------------------------------------------------

def fetch_source(source: str, timeout: float = LOAD_TIMEOUT_SECONDS) -> bytes:
    """Return the raw bytes of a local file or an http(s) URL.

    Raises
    ------
    SourceTimeoutError : the HTTP request timed out.
    SourceFetchError : connection failure, non-2xx status, or unreadable file.
    """
    if _is_url(source):
        try:
            response = requests.get(source, timeout=timeout)
            response.raise_for_status()
        except requests.Timeout as exc:
            raise SourceTimeoutError(
                f"Timed out fetching {source} after {timeout:g}s"
            ) from exc
        except requests.RequestException as exc:
            raise SourceFetchError(f"Failed to fetch {source}: {exc}") from exc
        return response.content

    path = Path(source)
    try:
        return path.read_bytes()
    except OSError as exc:
        raise SourceFetchError(f"Failed to read {path}: {exc}") from exc


# ---------------------------------------------------------------------------
# Parse
# ---------------------------------------------------------------------------

def _read_csv(payload: bytes | str, name: str) -> pd.DataFrame:
    if isinstance(payload, bytes):
        try:
            payload = payload.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise SourceParseError(f"{name or 'Source'} is not UTF-8 text") from exc

    try:
        return pd.read_csv(
            io.StringIO(payload),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError as exc:
        raise SourceParseError(f"{name or 'Source'} is empty") from exc
    except pd.errors.ParserError as exc:
        raise SourceParseError(f"Error parsing CSV: {exc}") from exc


def _read_workbook(payload: bytes, name: str) -> pd.DataFrame:
    """Read the first worksheet of a workbook export.

    Assumptions
    -----------
    - The header row sits within the first 20 rows and carries at least
      two of the expected column names.
    - Everything below the header is data; fully blank rows are skipped.
    """
    try:
        wb = openpyxl.load_workbook(io.BytesIO(payload), read_only=True, data_only=True)
    except Exception as exc:
        logger.exception("Failed to open workbook: %s", name)
        raise SourceParseError(f"Could not open workbook {name}: {exc}") from exc

    try:
        ws = wb.worksheets[0]
        header_row = find_header_row(ws, set(REQUIRED_COLUMNS))
        if header_row is None:
            raise SourceParseError(f"No machine-events header found in {name}")

        rows_iter = ws.iter_rows(min_row=header_row, values_only=True)
        header = [clean_text(v) for v in next(rows_iter)]
        named = [c for c in header if c]
        repeated = sorted({c for c in named if named.count(c) > 1})
        if repeated:
            raise SourceParseError(
                f"Duplicate columns in header of {name}: {', '.join(repeated)}"
            )

        records = []
        for values in rows_iter:
            if values is None or all(v is None for v in values):
                continue
            records.append({
                col: clean_text(val)
                for col, val in zip(header, values)
                if col
            })
    finally:
        wb.close()

    return pd.DataFrame(records, columns=[c for c in header if c])


def _normalise_rows(raw: pd.DataFrame, name: str) -> pd.DataFrame:
    """Strip text, add missing columns, drop blank rows, coerce numerics."""
    df = raw.copy()
    df.columns = [str(c).strip() for c in df.columns]
    if df.columns.duplicated().any():
        repeated = sorted(set(df.columns[df.columns.duplicated()]))
        raise SourceParseError(
            f"Duplicate columns in {name or 'source'}: {', '.join(repeated)}"
        )

    present = [c for c in REQUIRED_COLUMNS if c in df.columns]
    if not present:
        raise SourceParseError(
            f"{name or 'Source'} has none of the expected columns "
            f"({', '.join(REQUIRED_COLUMNS)})"
        )

    for col in df.columns:
        df[col] = df[col].map(clean_text)

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        logger.warning("Columns missing from %s, filled empty: %s", name, missing)
        for col in missing:
            df[col] = ""

    blank = (df == "").all(axis=1)
    if blank.any():
        df = df.loc[~blank]

    for col in NUMERIC_COLUMNS:
        df[col] = coerce_numeric(df[col])

    return df.reset_index(drop=True)


def parse_machine_events(payload: bytes | str, name: str = "") -> pd.DataFrame:
    """Parse a machine-events payload into a row DataFrame.

    Parameters
    ----------
    payload : Raw file content (CSV text/bytes or workbook bytes).
    name : File name or URL, used to pick the format and in messages.

    Returns
    -------
    DataFrame with every REQUIRED_COLUMNS column. Text columns are stripped
    strings ('' when missing); Downtime_Minutes, Production_Units and OEE
    are float64 with NaN where the value was not numeric.

    Raises
    ------
    SourceParseError : the payload cannot be read as a table.
    """
    if _is_workbook(name):
        if isinstance(payload, str):
            raise SourceParseError(f"Workbook {name} must be read as bytes")
        raw = _read_workbook(payload, name)
    else:
        raw = _read_csv(payload, name)

    df = _normalise_rows(raw, name)
    logger.info("Parsed %d machine-event rows from %s", len(df), name or "payload")
    return df


def extract_filter_options(rows: pd.DataFrame) -> dict[str, list]:
    """Distinct sorted values of each filterable column.

    Returns
    -------
    Dict with keys plant_ids, plant_names, product_lines, shifts (sorted
    non-empty strings) and months (sorted ints 1-12 found in Date).
    """
    options: dict[str, list] = {}
    for key, col in FILTER_OPTION_KEYS.items():
        if col not in rows.columns:
            options[key] = []
            continue
        values = rows[col].map(clean_text)
        options[key] = sorted(v for v in values.unique() if v)

    if COL_DATE in rows.columns:
        months = event_months(rows[COL_DATE]).dropna().unique()
        options["months"] = sorted(int(m) for m in months)
    else:
        options["months"] = []

    return options


def _fetch_and_parse(source: str, timeout: float) -> tuple[pd.DataFrame, dict[str, list]]:
    payload = fetch_source(source, timeout)
    rows = parse_machine_events(payload, source)
    return rows, extract_filter_options(rows)


def load_machine_events(
    source: str | Path = DATA_SOURCE,
    timeout: float = LOAD_TIMEOUT_SECONDS,
) -> LoadResult:
    """Fetch, parse and index the machine-events source.

    Runs under a hard overall deadline of `timeout` seconds. Expected
    failures are returned as a LoadResult state rather than raised.

    Returns
    -------
    LoadResult with status "ok" (rows + filter_options populated), or
    "fetch_error" / "parse_error" / "timeout" with an error message.
    """
    source = str(source)
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="machine-events-load")
    future = executor.submit(_fetch_and_parse, source, timeout)

    try:
        rows, options = future.result(timeout=timeout)
    except (FutureTimeoutError, SourceTimeoutError):
        logger.error("Loading %s timed out after %ss", source, timeout)
        return LoadResult(
            status=LOAD_TIMEOUT,
            error=f"Loading timed out after {timeout:g} seconds. Please try again.",
            source=source,
        )
    except SourceFetchError as exc:
        logger.error("Fetch failed: %s", exc)
        return LoadResult(
            status=LOAD_FETCH_ERROR,
            error=f"Failed to load data: {exc}",
            source=source,
        )
    except SourceParseError as exc:
        logger.error("Parse failed: %s", exc)
        return LoadResult(
            status=LOAD_PARSE_ERROR,
            error=f"Error parsing data: {exc}",
            source=source,
        )
    except Exception as exc:
        logger.exception("Unexpected failure loading %s", source)
        return LoadResult(
            status=LOAD_PARSE_ERROR,
            error=f"Error parsing data: {exc}",
            source=source,
        )
    finally:
        executor.shutdown(wait=False)

    logger.info("Loaded %d machine-event rows from %s", len(rows), source)
    return LoadResult(status=LOAD_OK, rows=rows, filter_options=options, source=source)
