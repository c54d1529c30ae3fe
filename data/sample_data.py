"""Generate a synthetic layout and schedule for demos and manual testing."""

import pandas as pd
import random
import os

from config.defaults import ROW_HEIGHT, GRID_UNIT
from models.month import current_month, month_day


def generate_layout() -> list:
    """Reactor rows (name, capacity, pixel drop point) spread over the default zones."""
    random.seed(42)
    capacities = [100, 500, 1000, 2000, 3000, 5000]
    rows = []
    for zone_row in range(4):
        for slot in range(4):
            rows.append({
                "name": f"R-{zone_row + 1}{slot + 1:02d}",
                "capacity": random.choice(capacities),
                "x": 260 + slot * 12 * GRID_UNIT,
                "y": zone_row * ROW_HEIGHT + ROW_HEIGHT // 2,
            })
    return rows


def generate_schedule_df(month: str = None) -> pd.DataFrame:
    """Generate a month's production schedule for the sample reactors."""
    month = month or current_month()
    random.seed(7)
    products = [
        ("OLED", "HTL-201"), ("OLED", "EML-Blue"), ("API", "Int-A7"),
        ("API", "Sitagliptin Int."), ("신사업", "Battery Additive"), ("Catalyst", "Pd-Ligand X"),
    ]
    rows = []
    for reactor in generate_layout():
        if random.random() < 0.25:
            continue  # idle reactor
        start = random.randint(1, 12)
        for _ in range(random.randint(1, 3)):
            length = random.randint(3, 10)
            category, product = random.choice(products)
            rows.append({
                "Reactor": reactor["name"],
                "Category": category,
                "Product": product,
                "Start Date": month_day(month, start),
                "End Date": month_day(month, start + length - 1),
                "Quantity (g)": random.choice([500, 1000, 2500, 5000]),
                "Unit Price": random.choice([20000, 50000, 120000]),
            })
            start += length + random.randint(0, 4)
    return pd.DataFrame(rows)


def generate_sample_csv(output_dir: str, month: str = None):
    """Write a sample schedule CSV to the given directory."""
    os.makedirs(output_dir, exist_ok=True)
    generate_schedule_df(month).to_csv(os.path.join(output_dir, "schedule.csv"), index=False)


def generate_sample_excel(output_dir: str, month: str = None):
    """Write the sample schedule as an Excel workbook."""
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, "schedule.xlsx")
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        generate_schedule_df(month).to_excel(writer, sheet_name="Schedule", index=False)


if __name__ == "__main__":
    out = os.path.join(os.path.dirname(__file__), "..", "sample_files")
    generate_sample_csv(out)
    generate_sample_excel(out)
    print("Sample schedule files generated in sample_files/")
