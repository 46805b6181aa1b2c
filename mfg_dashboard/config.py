"""
Configuration: data source, column names, thresholds, constants.

FILTER_COLUMNS maps each filter field to the source column it constrains.
The source location may be overridden with MFG_DASHBOARD_SOURCE, which is
the only environment variable read anywhere in the package.
"""

import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Data source, adjust if the export moves
# ---------------------------------------------------------------------------
DATA_DIR = Path(__file__).resolve().parent.parent / "data"

DEFAULT_SOURCE_FILE = DATA_DIR / "Data2.csv"
DATA_SOURCE = os.environ.get("MFG_DASHBOARD_SOURCE", str(DEFAULT_SOURCE_FILE))

WORKBOOK_SUFFIXES = (".xlsx", ".xlsm")

# Upper bound for fetch + parse, in seconds
LOAD_TIMEOUT_SECONDS = 30

# ---------------------------------------------------------------------------
# Source schema
# ---------------------------------------------------------------------------
COL_PLANT_ID = "Plant_ID"
COL_PLANT_NAME = "Plant_Name"
COL_PRODUCT_LINE = "Product_Line"
COL_SHIFT = "Shift"
COL_MACHINE_ID = "Machine_ID"
COL_MACHINE_TYPE = "Machine_Type"
COL_DATE = "Date"
COL_DOWNTIME = "Downtime_Minutes"
COL_PRODUCTION = "Production_Units"
COL_OEE = "OEE"

REQUIRED_COLUMNS = [
    COL_PLANT_ID,
    COL_PLANT_NAME,
    COL_PRODUCT_LINE,
    COL_SHIFT,
    COL_MACHINE_ID,
    COL_MACHINE_TYPE,
    COL_DATE,
    COL_DOWNTIME,
    COL_PRODUCTION,
    COL_OEE,
]

NUMERIC_COLUMNS = [COL_DOWNTIME, COL_PRODUCTION, COL_OEE]

# Dates are day-month-year throughout the source exports
DATE_FORMAT = "%d-%m-%Y"

# filter field -> source column (month is matched against COL_DATE)
FILTER_COLUMNS: dict[str, str] = {
    "plant_id": COL_PLANT_ID,
    "plant_name": COL_PLANT_NAME,
    "product_line": COL_PRODUCT_LINE,
    "shift": COL_SHIFT,
}

# filter-options key -> source column, for populating select boxes
FILTER_OPTION_KEYS: dict[str, str] = {
    "plant_ids": COL_PLANT_ID,
    "plant_names": COL_PLANT_NAME,
    "product_lines": COL_PRODUCT_LINE,
    "shifts": COL_SHIFT,
}

# Sidebar select boxes, in display order: filter field -> (label, options key)
FILTER_CONTROLS: dict[str, tuple[str, str]] = {
    "plant_id": ("Plant ID", "plant_ids"),
    "plant_name": ("Plant Name", "plant_names"),
    "product_line": ("Product Line", "product_lines"),
    "shift": ("Shift", "shifts"),
    "month": ("Month", "months"),
}

# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------
TOP_N = 5
MIN_MACHINE_SAMPLES = 3
DECIMALS = 2

# OEE bands: below LOW is red, below HIGH is amber, otherwise green
OEE_LOW_THRESHOLD = 65.0
OEE_HIGH_THRESHOLD = 85.0

OEE_BANDS: dict[str, str] = {
    "red": "Below Target",
    "amber": "Acceptable",
    "green": "Excellent",
    "grey": "No Data",
}

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]
