"""Layout geometry and drag-and-drop commands for the reactor canvas.

Everything here is pure: pixel coordinates in, zones/positions/commands out. The
canvas widget only reports pointer events; committing a command is left to the
layout snapshot manager.
"""

import math
import uuid
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from config.defaults import (
    ROW_HEIGHT, GRID_UNIT, MIN_CANVAS_HEIGHT, CANVAS_WIDTH, DEFAULT_CAPACITY,
)
from models.reactor import Position
from models.zone import Zone


def zone_band(zone: Zone) -> Tuple[int, int]:
    """Vertical pixel band [top, bottom) of a zone's lane."""
    top = zone.row_index * ROW_HEIGHT
    return top, top + ROW_HEIGHT


def row_center(zone: Zone) -> int:
    return zone.row_index * ROW_HEIGHT + ROW_HEIGHT // 2


def resolve_zone(y: float, zones: List[Zone]) -> Optional[Zone]:
    """Zone whose row band contains y, or None when y falls outside every band."""
    if y is None or y < 0:
        return None
    row = math.floor(y / ROW_HEIGHT)
    for zone in zones:
        if zone.row_index == row:
            return zone
    return None


def snap_x(x: float) -> int:
    """Round to the nearest grid unit, halves rounding up."""
    return int(math.floor(x / GRID_UNIT + 0.5) * GRID_UNIT)


def snap_position(x: float, y: float, zones: List[Zone]) -> Optional[Position]:
    """Map a raw pixel drop point to a grid-snapped position inside a zone lane."""
    if x is None or x < 0:
        return None
    zone = resolve_zone(y, zones)
    if zone is None:
        return None
    return Position(x=snap_x(x), y=row_center(zone), zone_id=zone.zone_id)


def canvas_height(zones: List[Zone]) -> int:
    rows = max((z.row_index for z in zones), default=-1) + 1
    return max(rows * ROW_HEIGHT, MIN_CANVAS_HEIGHT)


def is_inside_canvas(x: float, y: float, zones: List[Zone], width: int = CANVAS_WIDTH) -> bool:
    return 0 <= x <= width and 0 <= y <= canvas_height(zones)


# --- Drag commands ---

DRAG_NEW = "NEW"
DRAG_EXISTING = "EXISTING"


@dataclass
class DragState:
    """Captured on pointer-down: a palette item or an existing reactor being moved."""
    kind: str                       # DRAG_NEW or DRAG_EXISTING
    reactor_id: str
    capacity: int = DEFAULT_CAPACITY
    ghost_x: float = 0.0
    ghost_y: float = 0.0


@dataclass(frozen=True)
class PlaceCommand:
    reactor_id: str
    position: Position


@dataclass(frozen=True)
class AddCommand:
    reactor_id: str
    capacity: int
    position: Position


LayoutCommand = Union[PlaceCommand, AddCommand]


def begin_new_drag(capacity: int, x: float = 0.0, y: float = 0.0) -> DragState:
    return DragState(DRAG_NEW, str(uuid.uuid4()), capacity, x, y)


def begin_move_drag(reactor_id: str, capacity: int, x: float = 0.0, y: float = 0.0) -> DragState:
    return DragState(DRAG_EXISTING, reactor_id, capacity, x, y)


def update_ghost(drag: DragState, x: float, y: float) -> DragState:
    """Pointer-move: only the transient ghost position changes."""
    drag.ghost_x = x
    drag.ghost_y = y
    return drag


def resolve_drop(
    drag: Optional[DragState],
    x: float,
    y: float,
    zones: List[Zone],
    inside_canvas: Optional[bool] = None,
) -> Optional[LayoutCommand]:
    """Pointer-up: turn the drop point into exactly one command, or None to discard."""
    if drag is None:
        return None
    if inside_canvas is None:
        inside_canvas = is_inside_canvas(x, y, zones)
    if not inside_canvas:
        return None

    position = snap_position(x, y, zones)
    if position is None:
        return None

    if drag.kind == DRAG_EXISTING:
        return PlaceCommand(reactor_id=drag.reactor_id, position=position)
    return AddCommand(reactor_id=drag.reactor_id, capacity=drag.capacity, position=position)
