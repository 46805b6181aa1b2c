import threading
import time

import pandas as pd
import pytest

from mfg_dashboard.dashboard import (
    DashboardController,
    filter_summary,
    get_downtime_view,
    get_oee_view,
    month_label,
)
from mfg_dashboard.filters import FilterSelection
from mfg_dashboard.loaders import LoadResult


@pytest.fixture
def controller(sample_csv_path):
    ctrl = DashboardController(sample_csv_path)
    yield ctrl
    ctrl.close()


def _stub_loader(*results):
    """Loader returning the given LoadResults in order."""
    queue = list(results)

    def loader(source, timeout):
        return queue.pop(0)

    return loader


def test_starts_idle(controller):
    assert controller.status == "idle"
    assert not controller.has_data
    assert controller.filtered.empty


def test_reload_populates_rows_and_options(controller):
    assert controller.reload() == "ready"
    assert len(controller.rows) == 5
    assert controller.filter_options["shifts"] == ["Evening", "Morning", "Night"]
    assert controller.error is None


def test_poll_commits_finished_load(controller):
    assert controller.poll() is False

    future = controller.start_reload()
    assert controller.status == "loading"
    assert controller.is_loading
    future.result(timeout=5)

    assert controller.poll() is True
    assert controller.status == "ready"
    assert controller.poll() is False


def test_failed_load_surfaces_error_and_retry_recovers(tmp_path, sample_csv_text):
    path = tmp_path / "Data2.csv"
    ctrl = DashboardController(path)
    try:
        assert ctrl.reload() == "error"
        assert "Failed to load data" in ctrl.error
        assert not ctrl.has_data

        path.write_text(sample_csv_text)
        assert ctrl.reload() == "ready"
        assert ctrl.error is None
        assert len(ctrl.rows) == 5
    finally:
        ctrl.close()


def test_failed_reload_keeps_previous_rows(sample_rows):
    ctrl = DashboardController(
        "Data2.csv",
        loader=_stub_loader(
            LoadResult(status="ok", rows=sample_rows, filter_options={"months": [1, 2]}),
            LoadResult(status="timeout", error="Loading timed out."),
        ),
    )
    try:
        ctrl.reload()
        assert ctrl.reload() == "error"
        assert ctrl.error == "Loading timed out."
        assert len(ctrl.rows) == 5
        assert ctrl.filter_options == {"months": [1, 2]}
    finally:
        ctrl.close()


def test_newer_reload_supersedes_pending_one(sample_rows):
    started = threading.Event()
    release = threading.Event()
    calls = []

    def loader(source, timeout):
        calls.append(source)
        if len(calls) == 1:
            started.set()
            release.wait(5)
            return LoadResult(status="ok", rows=sample_rows.head(1), filter_options={})
        return LoadResult(status="ok", rows=sample_rows, filter_options={})

    ctrl = DashboardController("Data2.csv", loader=loader)
    try:
        first = ctrl.start_reload()
        assert started.wait(5)
        ctrl.start_reload()

        release.set()
        first.result(timeout=5)
        assert ctrl.wait() == "ready"
        assert len(calls) == 2
        assert len(ctrl.rows) == len(sample_rows)
    finally:
        ctrl.close()


def test_newer_reload_does_not_wait_for_stalled_one(sample_rows):
    started = threading.Event()
    release = threading.Event()

    def loader(source, timeout):
        if not started.is_set():
            started.set()
            release.wait(10)
            return LoadResult(status="timeout", error="Loading timed out.")
        return LoadResult(status="ok", rows=sample_rows, filter_options={})

    ctrl = DashboardController("Data2.csv", timeout=0.5, loader=loader)
    try:
        first = ctrl.start_reload()
        assert started.wait(5)
        ctrl.start_reload()

        began = time.monotonic()
        assert ctrl.wait() == "ready"
        assert time.monotonic() - began < 0.5
        assert not first.done()
        assert len(ctrl.rows) == len(sample_rows)

        release.set()
        first.result(timeout=5)
        assert ctrl.poll() is False
        assert ctrl.status == "ready"
    finally:
        release.set()
        ctrl.close()


def test_set_filters_and_reset(controller):
    controller.reload()

    controller.set_filters(plant_id="P01")
    assert list(controller.filtered.index) == [0, 1, 4]

    controller.set_filters(month=2)
    assert controller.filters == FilterSelection(plant_id="P01", month=2)
    assert list(controller.filtered.index) == [4]

    controller.reset_filters()
    assert len(controller.filtered) == 5


def test_filtered_is_cached_until_filters_change(controller):
    controller.reload()
    first = controller.filtered
    assert controller.filtered is first

    controller.set_filters(plant_id=None)
    assert controller.filtered is first

    controller.set_filters(FilterSelection(shift="Night"))
    assert controller.filtered is not first
    assert list(controller.filtered.index) == [3]


def test_empty_result_is_not_an_error(controller):
    controller.reload()
    controller.set_filters(plant_id="P99")
    assert controller.empty_result
    assert controller.status == "ready"
    assert controller.downtime_view()["stats"] == {"average": 0.0, "minimum": 0.0, "maximum": 0.0}
    assert controller.downtime_view()["monthly"].empty


def test_downtime_view(sample_rows):
    view = get_downtime_view(sample_rows, top_n=2)
    assert set(view) == {"stats", "monthly", "daily", "top_machines", "bottom_machines", "row_count"}
    assert view["row_count"] == 5
    assert list(view["monthly"]["downtime"]) == [80.0, 20.0]
    assert list(view["top_machines"]["machine_id"]) == ["M1", "M2"]
    assert list(view["bottom_machines"]["machine_id"]) == ["M3", "M2"]


def test_production_view_follows_filters(controller):
    controller.reload()
    controller.set_filters(product_line="Pumps")
    view = controller.production_view()
    assert view["row_count"] == 3
    assert view["stats"] == {"average": 25.0, "minimum": 10.0, "maximum": 40.0}
    assert list(view["top_machines"]["machine_id"]) == ["M2"]


def test_oee_view_carries_rag(sample_rows):
    view = get_oee_view(sample_rows)
    assert list(view["monthly"]["rag"]) == ["green", "amber"]
    assert list(view["daily"]["rag"]) == ["amber", "green", "red", "green"]
    # no machine has three readings in the sample
    assert view["top_machines"].empty


def test_oee_view_on_empty_rows():
    view = get_oee_view(pd.DataFrame())
    assert view["monthly"].empty
    assert "rag" in view["monthly"].columns


def test_summary_text(controller):
    controller.reload()
    assert controller.summary_text() == "Showing data for 5 entries"
    controller.set_filters(plant_id="P02")
    assert controller.summary_text() == "Showing data for 2 entries (filtered from 5 total entries)"


def test_filter_summary_and_month_label():
    assert filter_summary(10, 10) == "Showing data for 10 entries"
    assert filter_summary(10, 0) == "Showing data for 0 entries (filtered from 10 total entries)"
    assert month_label(1) == "January"
    assert month_label(12) == "December"
