import math
import uuid
from dataclasses import dataclass, field

from config.defaults import (
    DEFAULT_CATEGORY, REVENUE_DIVISOR,
    DEFAULT_BATCH_START_DAY, DEFAULT_BATCH_END_DAY,
)
from models.month import month_day


def generate_id() -> str:
    return str(uuid.uuid4())


def safe_num(value) -> float:
    """Coerce user input to a non-negative float; anything else becomes 0."""
    if isinstance(value, bool):
        return 0.0
    try:
        n = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(n) or n < 0:
        return 0.0
    return n


@dataclass
class Batch:
    batch_id: str = field(default_factory=generate_id)
    category: str = DEFAULT_CATEGORY
    name: str = ""
    start_date: str = ""        # ISO YYYY-MM-DD, may be malformed
    end_date: str = ""
    quantity: float = 0.0       # grams
    unit_price: float = 0.0     # currency per gram

    def __post_init__(self):
        self.quantity = safe_num(self.quantity)
        self.unit_price = safe_num(self.unit_price)
        self.category = "" if self.category is None else str(self.category)
        self.name = "" if self.name is None else str(self.name)

    @property
    def revenue(self) -> float:
        """Revenue in billions of currency units."""
        return self.quantity * self.unit_price / REVENUE_DIVISOR

    def to_dict(self) -> dict:
        return {
            "id": self.batch_id,
            "category": self.category,
            "name": self.name,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "quantity": self.quantity,
            "price": self.unit_price,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Batch":
        return cls(
            batch_id=str(data.get("id") or data.get("batch_id") or generate_id()),
            category=data.get("category", DEFAULT_CATEGORY),
            name=data.get("name", ""),
            start_date=str(data.get("startDate") or data.get("start_date") or ""),
            end_date=str(data.get("endDate") or data.get("end_date") or ""),
            quantity=data.get("quantity", 0),
            unit_price=data.get("price", data.get("unit_price", 0)),
        )

    @classmethod
    def default_for_month(cls, month: str) -> "Batch":
        """Blank batch covering the first days of the month."""
        return cls(
            category=DEFAULT_CATEGORY,
            start_date=month_day(month, DEFAULT_BATCH_START_DAY),
            end_date=month_day(month, DEFAULT_BATCH_END_DAY),
        )
