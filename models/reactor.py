import uuid
from dataclasses import dataclass, field
from typing import Optional, Union

from config.defaults import (
    CAPACITY_CLASSES, CAPACITY_NODE_SIZES, DEFAULT_CAPACITY, DEFAULT_REACTOR_TYPE,
)


@dataclass(frozen=True)
class Position:
    x: int
    y: int
    zone_id: Optional[int] = None


@dataclass
class Reactor:
    reactor_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    capacity: int = DEFAULT_CAPACITY        # litres
    zone_id: Optional[int] = None
    x: int = 0
    y: int = 0
    reactor_type: str = DEFAULT_REACTOR_TYPE

    @property
    def capacity_class(self) -> Union[int, str]:
        return self.capacity if self.capacity in CAPACITY_CLASSES else "default"

    @property
    def node_size(self) -> int:
        return CAPACITY_NODE_SIZES[self.capacity_class]

    @property
    def position(self) -> Position:
        return Position(self.x, self.y, self.zone_id)

    def move_to(self, position: Position):
        self.x = position.x
        self.y = position.y
        self.zone_id = position.zone_id

    def to_dict(self) -> dict:
        return {
            "id": self.reactor_id,
            "name": self.name,
            "capacity": self.capacity,
            "zone_id": self.zone_id,
            "x_pos": self.x,
            "y_pos": self.y,
            "type": self.reactor_type,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Reactor":
        try:
            capacity = int(data.get("capacity") or DEFAULT_CAPACITY)
        except (TypeError, ValueError):
            capacity = DEFAULT_CAPACITY
        zone_id = data.get("zone_id")
        return cls(
            reactor_id=str(data.get("id") or data.get("reactor_id") or uuid.uuid4()),
            name=str(data.get("name") or ""),
            capacity=capacity,
            zone_id=int(zone_id) if zone_id is not None else None,
            x=int(round(float(data.get("x_pos", data.get("x", 0)) or 0))),
            y=int(round(float(data.get("y_pos", data.get("y", 0)) or 0))),
            reactor_type=str(data.get("type") or DEFAULT_REACTOR_TYPE),
        )
