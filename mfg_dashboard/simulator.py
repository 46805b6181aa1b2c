"""
Simulated data generator for the machine-events dashboard.

Generates a machine-shift event table in the same layout as the Data2.csv
export. All values are synthetic.
"""

from pathlib import Path

import numpy as np
import pandas as pd

from .config import DATE_FORMAT, REQUIRED_COLUMNS

# ---------------------------------------------------------------------------
# Typical plant parameters (realistic ranges)
# ---------------------------------------------------------------------------
_PLANTS = [
    ("P01", "Northfield Assembly"),
    ("P02", "Riverside Components"),
    ("P03", "Eastgate Stamping"),
]

_PRODUCT_LINES = ["Brake Systems", "Fuel Pumps", "Sensors"]

_SHIFTS = ["Morning", "Evening", "Night"]

# machine type -> (production mean, production std, downtime mean, base OEE)
_MACHINE_TYPES = {
    "CNC Lathe": (420, 45, 35, 82),
    "Press": (610, 60, 50, 76),
    "Welder": (300, 30, 25, 88),
    "Injection Molder": (520, 55, 40, 79),
}

_MACHINES_PER_PLANT = 4


def _machine_roster() -> list[tuple[str, str, str, str]]:
    """(plant_id, plant_name, machine_id, machine_type) for every machine."""
    types = list(_MACHINE_TYPES)
    roster = []
    for p_idx, (plant_id, plant_name) in enumerate(_PLANTS):
        for m_idx in range(_MACHINES_PER_PLANT):
            machine_id = f"M{p_idx * _MACHINES_PER_PLANT + m_idx + 1:03d}"
            machine_type = types[(p_idx + m_idx) % len(types)]
            roster.append((plant_id, plant_name, machine_id, machine_type))
    return roster


def generate_machine_events(
    start_date: str = "2023-01-01",
    n_days: int = 90,
    seed: int = 42,
) -> pd.DataFrame:
    """Generate one event per machine per shift per day.

    Dates are written as DD-MM-YYYY strings and numeric fields are rounded
    the way the plant export rounds them.
    """
    rng = np.random.default_rng(seed)
    dates = pd.date_range(start_date, periods=n_days, freq="D")
    roster = _machine_roster()

    rows = []
    for date in dates:
        date_str = date.strftime(DATE_FORMAT)
        # Weekends run lighter
        is_weekend = date.dayofweek >= 5
        for plant_id, plant_name, machine_id, machine_type in roster:
            prod_mean, prod_std, down_mean, base_oee = _MACHINE_TYPES[machine_type]
            product_line = _PRODUCT_LINES[int(machine_id[1:]) % len(_PRODUCT_LINES)]
            for shift in _SHIFTS:
                factor = 0.8 if is_weekend else 1.0
                production = max(rng.normal(prod_mean * factor, prod_std), 0)
                downtime = max(rng.exponential(down_mean), 0)
                oee = float(np.clip(base_oee + rng.normal(0, 6) - downtime / 20, 20, 99.5))

                rows.append({
                    "Plant_ID": plant_id,
                    "Plant_Name": plant_name,
                    "Product_Line": product_line,
                    "Shift": shift,
                    "Machine_ID": machine_id,
                    "Machine_Type": machine_type,
                    "Date": date_str,
                    "Downtime_Minutes": round(downtime, 1),
                    "Production_Units": int(round(production)),
                    "OEE": round(oee, 2),
                })

    return pd.DataFrame(rows, columns=REQUIRED_COLUMNS)


def write_sample_csv(path: str | Path, **kwargs) -> Path:
    """Write generate_machine_events(**kwargs) to `path` as CSV."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    generate_machine_events(**kwargs).to_csv(path, index=False)
    return path
