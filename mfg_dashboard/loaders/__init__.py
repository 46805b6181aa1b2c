"""Data ingestion loaders for the machine-events export."""

from .machine_events import LoadResult, load_machine_events, parse_machine_events
from .machine_events import fetch_source, extract_filter_options
from .machine_events import (
    SourceError,
    SourceFetchError,
    SourceParseError,
    SourceTimeoutError,
)

__all__ = [
    "LoadResult",
    "load_machine_events",
    "parse_machine_events",
    "fetch_source",
    "extract_filter_options",
    "SourceError",
    "SourceFetchError",
    "SourceParseError",
    "SourceTimeoutError",
]
