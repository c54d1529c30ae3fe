"""Schema validation for uploaded schedule files."""

from dataclasses import dataclass, field
from typing import Iterable, List
import pandas as pd


@dataclass
class ValidationResult:
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


SCHEDULE_REQUIRED_COLUMNS = [
    "Reactor",
    "Product",
    "Start Date",
    "End Date",
]

SCHEDULE_OPTIONAL_COLUMNS = [
    "Category",
    "Quantity (g)",
    "Unit Price",
]


def _check_required_columns(df: pd.DataFrame, required: List[str], file_label: str) -> ValidationResult:
    result = ValidationResult()
    missing = [col for col in required if col not in df.columns]
    if missing:
        result.is_valid = False
        result.errors.append(f"{file_label}: Missing required columns: {', '.join(missing)}")
    if df.empty:
        result.is_valid = False
        result.errors.append(f"{file_label}: File contains no data rows.")
    return result


def validate_schedule(df: pd.DataFrame) -> ValidationResult:
    result = _check_required_columns(df, SCHEDULE_REQUIRED_COLUMNS, "Schedule")
    if not result.is_valid:
        return result

    if df["Reactor"].isna().any() or (df["Reactor"].astype(str).str.strip() == "").any():
        result.is_valid = False
        result.errors.append("Schedule: Every row needs a Reactor name.")

    # Malformed dates and numbers are tolerated but flagged
    for col in ["Start Date", "End Date"]:
        parsed = pd.to_datetime(df[col], errors="coerce")
        bad = int(parsed.isna().sum())
        if bad:
            result.warnings.append(f"Schedule: {bad} row(s) with unreadable {col}; they count as 0 days.")

    starts = pd.to_datetime(df["Start Date"], errors="coerce")
    ends = pd.to_datetime(df["End Date"], errors="coerce")
    reversed_rows = int((ends < starts).sum())
    if reversed_rows:
        result.warnings.append(f"Schedule: {reversed_rows} row(s) end before they start; they count as 0 days.")

    for col in ["Quantity (g)", "Unit Price"]:
        if col in df.columns:
            numeric = pd.to_numeric(df[col], errors="coerce")
            bad = int((numeric.isna() & df[col].notna()).sum() + (numeric < 0).sum())
            if bad:
                result.warnings.append(f"Schedule: {bad} row(s) with invalid {col}; treated as 0.")

    if "Category" not in df.columns:
        result.warnings.append("Schedule: No Category column; all batches default to OLED.")

    return result


def validate_against_layout(df: pd.DataFrame, reactor_names: Iterable[str]) -> ValidationResult:
    """Check that reactor names exist in the selected month's layout."""
    result = ValidationResult()
    known = set(reactor_names)
    uploaded = set(df["Reactor"].dropna().astype(str).str.strip())
    unknown = uploaded - known
    if unknown:
        result.warnings.append(
            f"Reactors not in this month's layout: {', '.join(sorted(unknown))}. "
            "These rows will be ignored."
        )
    return result
