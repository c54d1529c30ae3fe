"""File upload parsing — CSV/XLSX production schedules into batches."""

import pandas as pd
from typing import List, Tuple

from config.defaults import DEFAULT_CATEGORY
from models.batch import Batch


def _iso_date(value) -> str:
    """ISO date string, or '' when the cell cannot be read as a date."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    ts = pd.to_datetime(value, errors="coerce")
    if pd.isna(ts):
        return ""
    return ts.date().isoformat()


def _text(row, column: str) -> str:
    value = row.get(column)
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    return str(value).strip()


def parse_schedule(df: pd.DataFrame) -> List[Tuple[str, Batch]]:
    """Convert a schedule DataFrame into (reactor name, Batch) pairs.

    Unreadable dates and numbers are kept as blanks/zeros; they simply contribute
    nothing to utilization or revenue.
    """
    entries = []
    for _, row in df.iterrows():
        entries.append((
            _text(row, "Reactor"),
            Batch(
                category=_text(row, "Category") or DEFAULT_CATEGORY,
                name=_text(row, "Product"),
                start_date=_iso_date(row.get("Start Date")),
                end_date=_iso_date(row.get("End Date")),
                quantity=row.get("Quantity (g)", 0),
                unit_price=row.get("Unit Price", 0),
            ),
        ))
    return entries


def load_file(uploaded_file) -> pd.DataFrame:
    """Load an uploaded file (CSV or XLSX) into a DataFrame."""
    name = uploaded_file.name.lower()
    if name.endswith(".csv"):
        return pd.read_csv(uploaded_file)
    elif name.endswith(".xlsx") or name.endswith(".xls"):
        return pd.read_excel(uploaded_file, engine="openpyxl")
    else:
        raise ValueError(f"Unsupported file format: {name}. Use CSV or XLSX.")
