from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class AuditEntry:
    timestamp: datetime
    action: str              # "move", "add", "delete", "save_batches", "add_zone", ...
    month: Optional[str]
    reactor_id: Optional[str]
    detail: str = ""


@dataclass
class Notice:
    level: str               # "info", "success", "warning", "error"
    message: str
    timestamp: datetime = field(default_factory=datetime.now)
