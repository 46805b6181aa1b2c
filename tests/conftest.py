"""Test configuration and shared fixtures."""

import pytest

from mfg_dashboard.loaders import parse_machine_events

# Five observations plus a blank line. Row 4 has an unparseable date and a
# non-numeric production value; row 5 has no downtime and a "%" OEE.
SAMPLE_CSV = """\
Plant_ID,Plant_Name,Product_Line,Shift,Machine_ID,Machine_Type,Date,Downtime_Minutes,Production_Units,OEE
P01,Northfield,Brakes,Morning,M1,Lathe,01-01-2023,30,100,80
P01,Northfield,Brakes,Evening,M1,Lathe,15-01-2023,50,50,90

P02,Riverside,Pumps,Morning,M2,Press,01-02-2023,20,10,60
P02,Riverside,Pumps,Night,M3,Welder,not-a-date,15,abc,70
P01,Northfield,Pumps,Morning,M2,Press,02-02-2023,,40,85%
"""


@pytest.fixture
def sample_csv_text():
    return SAMPLE_CSV


@pytest.fixture
def sample_csv_path(tmp_path):
    path = tmp_path / "Data2.csv"
    path.write_text(SAMPLE_CSV, encoding="utf-8")
    return path


@pytest.fixture
def sample_rows():
    """Rows as the loader produces them."""
    return parse_machine_events(SAMPLE_CSV.encode("utf-8"), "Data2.csv")
