"""
Dashboard-ready output functions.

These are the entry points for the Streamlit front end. DashboardController
owns the single loaded dataset and the active filter selection; the view
functions turn a filtered row set into plain dicts of DataFrames suitable
for rendering cards and charts.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor

import pandas as pd

from .aggregations import (
    bottom_machines,
    classify_oee,
    daily_downtime,
    daily_oee,
    daily_production,
    downtime_stats,
    machine_downtime,
    machine_oee,
    machine_production,
    monthly_downtime,
    monthly_oee,
    monthly_production,
    oee_stats,
    production_stats,
    top_machines,
)
from .config import DATA_SOURCE, LOAD_TIMEOUT_SECONDS, MONTH_NAMES, REQUIRED_COLUMNS, TOP_N
from .filters import FilterSelection, apply_filters
from .loaders import LoadResult, load_machine_events

logger = logging.getLogger(__name__)

STATUS_IDLE = "idle"
STATUS_LOADING = "loading"
STATUS_READY = "ready"
STATUS_ERROR = "error"


class DashboardController:
    """Owns the dataset, the filter selection and the load lifecycle.

    Each load runs on its own background worker, so a reload starts at once
    even while an older load is stalled. Only the most recent load can commit:
    starting a reload supersedes any load still in flight, and its result
    is discarded. Filtering is deferred until `filtered` is read, so a newer
    filter change replaces any recomputation that has not happened yet.
    """

    def __init__(
        self,
        source: str = DATA_SOURCE,
        timeout: float = LOAD_TIMEOUT_SECONDS,
        loader=load_machine_events,
    ):
        self.source = str(source)
        self.timeout = timeout
        self._loader = loader
        self._generation = 0
        self._pending: tuple[int, Future] | None = None
        self._executor: ThreadPoolExecutor | None = None

        self.status = STATUS_IDLE
        self.error: str | None = None
        self.rows = pd.DataFrame(columns=REQUIRED_COLUMNS)
        self.filter_options: dict[str, list] = {}
        self._filters = FilterSelection()
        self._filtered: pd.DataFrame | None = None

    # ------------------------------------------------------------------
    # Load lifecycle
    # ------------------------------------------------------------------
    def start_reload(self) -> Future:
        """Start loading the source from scratch and return immediately."""
        if self._pending is not None:
            self._pending[1].cancel()
        self._release_worker()

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="dashboard-reload")
        self._executor = executor
        self._generation += 1
        future = executor.submit(self._loader, self.source, self.timeout)
        self._pending = (self._generation, future)
        self.status = STATUS_LOADING
        self.error = None
        logger.info("Reload #%d of %s started", self._generation, self.source)
        return future

    def poll(self) -> bool:
        """Commit the pending load if it has finished. Returns True once committed."""
        if self._pending is None:
            return False
        generation, future = self._pending
        if not future.done():
            return False
        self._commit(generation, future.result())
        return True

    def wait(self) -> str:
        """Block until the pending load finishes, commit it, return the status."""
        if self._pending is not None:
            generation, future = self._pending
            self._commit(generation, future.result())
        return self.status

    def reload(self) -> str:
        self.start_reload()
        return self.wait()

    def _commit(self, generation: int, result: LoadResult) -> None:
        if generation != self._generation:
            logger.info("Discarding superseded reload #%d", generation)
            return
        self._pending = None

        if result.ok:
            self.rows = result.rows
            self.filter_options = result.filter_options
            self.status = STATUS_READY
            self.error = None
        else:
            # Previous rows stay in place; the error is shown with a retry action
            self.status = STATUS_ERROR
            self.error = result.error
        self._filtered = None

    def _release_worker(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None

    def close(self) -> None:
        self._release_worker()

    @property
    def is_loading(self) -> bool:
        return self.status == STATUS_LOADING

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------
    @property
    def filters(self) -> FilterSelection:
        return self._filters

    def set_filters(self, selection: FilterSelection | None = None, **changes) -> None:
        """Replace the selection and/or change individual fields."""
        new = selection if selection is not None else self._filters
        if changes:
            new = new.replace(**changes)
        if new != self._filters:
            self._filters = new
            self._filtered = None

    def reset_filters(self) -> None:
        self.set_filters(FilterSelection())

    @property
    def filtered(self) -> pd.DataFrame:
        if self._filtered is None:
            self._filtered = apply_filters(self.rows, self._filters)
        return self._filtered

    @property
    def has_data(self) -> bool:
        return not self.rows.empty

    @property
    def empty_result(self) -> bool:
        """True when data is loaded but no row matches the filters."""
        return self.has_data and self.filtered.empty

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    def downtime_view(self, top_n: int = TOP_N) -> dict:
        return get_downtime_view(self.filtered, top_n)

    def production_view(self, top_n: int = TOP_N) -> dict:
        return get_production_view(self.filtered, top_n)

    def oee_view(self, top_n: int = TOP_N) -> dict:
        return get_oee_view(self.filtered, top_n)

    def summary_text(self) -> str:
        return filter_summary(len(self.rows), len(self.filtered))


def get_downtime_view(rows: pd.DataFrame, top_n: int = TOP_N) -> dict:
    """Everything the downtime page renders.

    Returns
    -------
    Dict with keys:
        stats (average/minimum/maximum minutes), monthly, daily,
        top_machines, bottom_machines (DataFrames), row_count
    """
    machines = machine_downtime(rows)
    return {
        "stats": downtime_stats(rows),
        "monthly": monthly_downtime(rows),
        "daily": daily_downtime(rows),
        "top_machines": top_machines(machines, top_n),
        "bottom_machines": bottom_machines(machines, top_n),
        "row_count": len(rows),
    }


def get_production_view(rows: pd.DataFrame, top_n: int = TOP_N) -> dict:
    """Production page data; same shape as get_downtime_view."""
    machines = machine_production(rows)
    return {
        "stats": production_stats(rows),
        "monthly": monthly_production(rows),
        "daily": daily_production(rows),
        "top_machines": top_machines(machines, top_n),
        "bottom_machines": bottom_machines(machines, top_n),
        "row_count": len(rows),
    }


def get_oee_view(rows: pd.DataFrame, top_n: int = TOP_N) -> dict:
    """OEE page data.

    Monthly and daily frames carry a `rag` column from classify_oee.
    Machines are ranked by average OEE and need MIN_MACHINE_SAMPLES readings.
    """
    monthly = monthly_oee(rows)
    daily = daily_oee(rows)
    monthly["rag"] = monthly["average_oee"].map(classify_oee)
    daily["rag"] = daily["average_oee"].map(classify_oee)

    machines = machine_oee(rows)
    return {
        "stats": oee_stats(rows),
        "monthly": monthly,
        "daily": daily,
        "top_machines": top_machines(machines, top_n, by="average"),
        "bottom_machines": bottom_machines(machines, top_n, by="average"),
        "row_count": len(rows),
    }


def month_label(month: int) -> str:
    """'January' for 1, ..., 'December' for 12."""
    return MONTH_NAMES[int(month) - 1]


def filter_summary(total: int, shown: int) -> str:
    """Footer line describing how many rows the filters kept."""
    text = f"Showing data for {shown} entries"
    if shown != total:
        text += f" (filtered from {total} total entries)"
    return text
