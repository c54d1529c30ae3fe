from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from config.defaults import DEFAULT_CATEGORY, LEGACY_PRODUCT_END_DAY
from models.batch import Batch
from models.month import month_day


class ReactorStatus(str, Enum):
    RUNNING = "Running"
    MAINTENANCE = "Maintenance"
    IDLE = "Idle"

    @classmethod
    def parse(cls, value) -> Optional["ReactorStatus"]:
        """Status from a stored/override value; empty or unknown means auto."""
        if isinstance(value, cls):
            return value
        for status in cls:
            if status.value == value:
                return status
        return None


def derive_status(utilization_pct: float, override: Optional[ReactorStatus] = None) -> ReactorStatus:
    if override is not None:
        return override
    return ReactorStatus.RUNNING if utilization_pct > 0 else ReactorStatus.IDLE


@dataclass
class ReactorLog:
    """Stored schedule of one reactor for one month."""
    reactor_id: str
    month: str
    batches: List[Batch] = field(default_factory=list)
    status_override: Optional[ReactorStatus] = None

    def to_dict(self) -> dict:
        return {
            "reactor_id": self.reactor_id,
            "month": self.month,
            "items": [b.to_dict() for b in self.batches],
            "status_override": self.status_override.value if self.status_override else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ReactorLog":
        month = str(data.get("month") or "")[:7]
        items = data.get("items")
        if isinstance(items, list) and items:
            batches = [Batch.from_dict(i) for i in items if isinstance(i, dict)]
        elif data.get("product"):
            # Logs written before multi-batch scheduling held one product name
            batches = [Batch(
                category=DEFAULT_CATEGORY,
                name=str(data["product"]),
                start_date=month_day(month, 1),
                end_date=month_day(month, LEGACY_PRODUCT_END_DAY),
            )]
        else:
            batches = []
        override = ReactorStatus.parse(data.get("status_override"))
        if override is None and "status_override" not in data:
            # Older logs only stored the final status; keep explicit Maintenance
            if ReactorStatus.parse(data.get("status")) is ReactorStatus.MAINTENANCE:
                override = ReactorStatus.MAINTENANCE
        return cls(
            reactor_id=str(data["reactor_id"]),
            month=month,
            batches=batches,
            status_override=override,
        )


@dataclass
class ReactorLogView:
    """Derived log: recomputed from the stored batches on every read."""
    reactor_id: str
    month: str
    batches: List[Batch]
    utilization_pct: float
    status: ReactorStatus
    total_revenue: float
    status_override: Optional[ReactorStatus] = None

    @property
    def display_product(self) -> str:
        if not self.batches:
            return ""
        first = self.batches[0].name
        if len(self.batches) > 1:
            return f"{first} +{len(self.batches) - 1}"
        return first
