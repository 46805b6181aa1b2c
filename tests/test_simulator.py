import pandas as pd

from mfg_dashboard.config import REQUIRED_COLUMNS
from mfg_dashboard.loaders import load_machine_events
from mfg_dashboard.loaders.utils import parse_event_dates
from mfg_dashboard.simulator import generate_machine_events, write_sample_csv


def test_generated_events_match_source_schema():
    df = generate_machine_events(n_days=5)
    assert list(df.columns) == REQUIRED_COLUMNS
    # 3 plants x 4 machines x 3 shifts per day
    assert len(df) == 5 * 12 * 3
    assert parse_event_dates(df["Date"]).notna().all()
    assert df["OEE"].between(0, 100).all()
    assert (df["Downtime_Minutes"] >= 0).all()


def test_generation_is_reproducible():
    pd.testing.assert_frame_equal(
        generate_machine_events(n_days=3, seed=1),
        generate_machine_events(n_days=3, seed=1),
    )


def test_written_sample_loads(tmp_path):
    path = write_sample_csv(tmp_path / "data" / "Data2.csv", start_date="2023-01-25", n_days=10)
    result = load_machine_events(path)

    assert result.ok
    assert len(result.rows) == 10 * 12 * 3
    assert result.filter_options["months"] == [1, 2]
    assert result.filter_options["plant_ids"] == ["P01", "P02", "P03"]
    assert result.filter_options["shifts"] == ["Evening", "Morning", "Night"]
