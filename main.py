"""
Machine-events dashboard: end-to-end analytics pipeline.

Loads the configured export (writing a synthetic one first if it does not
exist), applies a sample filter and prints smoke-test summaries.

Usage:
    python main.py [SOURCE]
"""

import logging
import sys
from pathlib import Path

from mfg_dashboard.aggregations import format_minutes
from mfg_dashboard.config import DATA_SOURCE, DEFAULT_SOURCE_FILE
from mfg_dashboard.dashboard import DashboardController, month_label
from mfg_dashboard.simulator import write_sample_csv

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def _print_view(title: str, view: dict, value_col: str) -> None:
    print(f"\n{title}")
    print("-" * 40)
    print(f"  Rows: {view['row_count']}")
    print(f"  Stats: {view['stats']}")
    if not view["monthly"].empty:
        print(view["monthly"][["month", value_col]].to_string(index=False))
    if not view["top_machines"].empty:
        print("\n  Top machines:")
        print(view["top_machines"][["label", "total", "occurrences", "average"]].to_string(index=False))
    if not view["bottom_machines"].empty:
        print("\n  Bottom machines:")
        print(view["bottom_machines"][["label", "total", "occurrences", "average"]].to_string(index=False))


def main() -> int:
    """Run the full analytics pipeline and print smoke-test outputs."""
    source = sys.argv[1] if len(sys.argv) > 1 else DATA_SOURCE

    if source == str(DEFAULT_SOURCE_FILE) and not Path(source).exists():
        logger.warning("%s not found; writing a synthetic sample", source)
        write_sample_csv(source)

    print("=" * 70)
    print("  MACHINE EVENTS — Manufacturing Analytics Dashboard")
    print("  Analytics Pipeline Smoke Test")
    print("=" * 70)

    # ------------------------------------------------------------------
    # 1. Load source data
    # ------------------------------------------------------------------
    controller = DashboardController(source)
    status = controller.reload()
    if status != "ready":
        print(f"\n[FAIL] {controller.error}")
        controller.close()
        return 1

    options = controller.filter_options
    print(f"\nLoaded {len(controller.rows)} rows from {source}")
    print(f"  Plants:        {options['plant_ids']}")
    print(f"  Product lines: {options['product_lines']}")
    print(f"  Shifts:        {options['shifts']}")
    print(f"  Months:        {[month_label(m) for m in options['months']]}")

    # ------------------------------------------------------------------
    # 2. Unfiltered views
    # ------------------------------------------------------------------
    downtime = controller.downtime_view()
    _print_view("[ DOWNTIME ]", downtime, "downtime")
    print(f"  Average downtime: {format_minutes(downtime['stats']['average'])}")

    _print_view("[ PRODUCTION ]", controller.production_view(), "production")

    oee = controller.oee_view()
    print("\n[ OEE ]")
    print("-" * 40)
    print(f"  Stats: {oee['stats']}")
    if not oee["monthly"].empty:
        print(oee["monthly"][["month", "average_oee", "rag"]].to_string(index=False))

    # ------------------------------------------------------------------
    # 3. Filtered views
    # ------------------------------------------------------------------
    if options["plant_ids"] and options["shifts"]:
        controller.set_filters(plant_id=options["plant_ids"][0], shift=options["shifts"][0])
        print(f"\nFilters: {controller.filters.active()}")
        print(f"  {controller.summary_text()}")
        if controller.empty_result:
            print("  No data available for the selected filters")
        else:
            _print_view("[ DOWNTIME — filtered ]", controller.downtime_view(), "downtime")

    print("\n" + "=" * 70)
    print("  Pipeline complete.")
    print("=" * 70)
    controller.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
