"""Room records and the directed room graph of a level.

Rooms are keyed by their grid coordinates (``"x,y"``). Row 0 is the top of
the grid, so north decreases ``y`` and south increases it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from .errors import DuplicateRoomError
from .items import Item
from .puzzles import Puzzle


class Direction(str, Enum):
    NORTH = 'north'
    SOUTH = 'south'
    EAST = 'east'
    WEST = 'west'

    @property
    def delta(self) -> Tuple[int, int]:
        return _DELTAS[self]

    @property
    def opposite(self) -> "Direction":
        return _OPPOSITES[self]

    @classmethod
    def parse(cls, value) -> Optional["Direction"]:
        """Return the direction named by `value` (case-insensitive, n/s/e/w allowed) or None."""
        if isinstance(value, Direction):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().lower()
        key = _ALIASES.get(key, key)
        for member in cls:
            if member.value == key:
                return member
        return None


_DELTAS = {
    Direction.NORTH: (0, -1),
    Direction.SOUTH: (0, 1),
    Direction.EAST: (1, 0),
    Direction.WEST: (-1, 0),
}
_OPPOSITES = {
    Direction.NORTH: Direction.SOUTH,
    Direction.SOUTH: Direction.NORTH,
    Direction.EAST: Direction.WEST,
    Direction.WEST: Direction.EAST,
}
_ALIASES = {'n': 'north', 's': 'south', 'e': 'east', 'w': 'west'}


def room_key(x: int, y: int) -> str:
    return f"{x},{y}"


def parse_key(room_id: str) -> Tuple[int, int]:
    x, y = room_id.split(',')
    return int(x), int(y)


@dataclass
class Room:
    x: int
    y: int
    name: str = ''
    description: str = ''
    detailed_description: str = ''
    items: List[Item] = field(default_factory=list)
    exits: Dict[str, str] = field(default_factory=dict)
    barrier: Optional[Item] = None
    puzzle: Optional[Puzzle] = None
    visited: bool = False
    has_treasure: bool = False
    has_hidden_passages: bool = False
    secrets_revealed: bool = False

    def __post_init__(self):
        if not self.name:
            self.name = f"Room {self.id}"

    @property
    def id(self) -> str:
        return room_key(self.x, self.y)

    @property
    def coords(self) -> Tuple[int, int]:
        return self.x, self.y

    # --- hazards / puzzle -------------------------------------------------
    @property
    def has_barrier(self) -> bool:
        return self.barrier is not None and not self.barrier.defeated

    @property
    def has_puzzle(self) -> bool:
        return self.puzzle is not None

    @property
    def has_unsolved_puzzle(self) -> bool:
        return self.puzzle is not None and not self.puzzle.solved

    @property
    def contents(self) -> List[Item]:
        """Items in the room, excluding defeated hazards."""
        return [item for item in self.items if item.is_active]

    @property
    def active_traps(self) -> List[Item]:
        return [item for item in self.items if item.is_trap and not item.defeated]

    def add_item(self, item: Item) -> None:
        if item is not None:
            self.items.append(item)

    def remove_item(self, item: Item) -> bool:
        for idx, existing in enumerate(self.items):
            if existing is item:
                del self.items[idx]
                return True
        return False

    def find_item(self, name: str) -> Optional[Item]:
        if not name:
            return None
        wanted = name.strip().lower()
        for item in self.contents:
            if item.name.lower() == wanted:
                return item
        return None

    @property
    def exit_names(self) -> List[str]:
        return list(self.exits.keys())

    # --- collaborator entry points -----------------------------------------
    def enter(self, player):
        from .encounters import on_enter

        return on_enter(self, player)

    def reveal_hidden_passage(self, player, item_source, graph: "RoomGraph", rng):
        """Delegate to `encounters.reveal_hidden_passage`; the new passage is two-way."""
        from .encounters import reveal_hidden_passage

        return reveal_hidden_passage(self, player, item_source, graph, rng)

    def describe(self) -> str:
        """Full description shown on the first visit and by `look`."""
        lines = [self.description, f"Exits: {', '.join(self.exit_names) or 'none'}"]
        if self.has_barrier:
            lines.append(
                f"A {self.barrier.name} blocks further progress. (Required Power: {self.barrier.required_power})"
            )
        if self.has_unsolved_puzzle:
            lines.append(f"There's an unsolved puzzle in this room: {self.puzzle.description}")
        visible = self.contents
        if visible:
            lines.append("You see the following items in the room:")
            lines.extend(f"- {item.name}: {item.description}" for item in visible)
        if self.has_hidden_passages and not self.secrets_revealed:
            lines.append("You sense there might be hidden secrets in this room...")
        if self.has_treasure:
            lines.append("There is a treasure here!")
        return "\n".join(lines)


class RoomGraph:
    """Mapping of room id -> Room with directed, labelled exits."""

    def __init__(self):
        self._rooms: Dict[str, Room] = {}

    def create_room(self, x: int, y: int, **attrs) -> Room:
        key = room_key(x, y)
        if key in self._rooms:
            raise DuplicateRoomError(f"room {key} already exists")
        room = Room(x=x, y=y, **attrs)
        self._rooms[key] = room
        return room

    def add_room(self, room: Room) -> Room:
        if room.id in self._rooms:
            raise DuplicateRoomError(f"room {room.id} already exists")
        self._rooms[room.id] = room
        return room

    def connect(self, room_id: str, direction, target_id: str) -> bool:
        """Add or overwrite one directed edge. Unknown ids or directions are ignored."""
        d = Direction.parse(direction)
        if d is None or room_id not in self._rooms or target_id not in self._rooms:
            return False
        self._rooms[room_id].exits[d.value] = target_id
        return True

    def connect_both(self, room_id: str, direction, target_id: str) -> bool:
        d = Direction.parse(direction)
        if d is None:
            return False
        forward = self.connect(room_id, d, target_id)
        backward = self.connect(target_id, d.opposite, room_id)
        return forward and backward

    def neighbors_of(self, room_id: str) -> List[Tuple[str, str]]:
        room = self._rooms.get(room_id)
        if room is None:
            return []
        return list(room.exits.items())

    def get(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def at(self, x: int, y: int) -> Optional[Room]:
        return self._rooms.get(room_key(x, y))

    def bounds(self) -> Tuple[int, int, int, int]:
        """(min_x, min_y, max_x, max_y) over every room, hidden rooms included."""
        xs = [r.x for r in self._rooms.values()]
        ys = [r.y for r in self._rooms.values()]
        return min(xs), min(ys), max(xs), max(ys)

    def edge_count(self) -> int:
        return sum(len(r.exits) for r in self._rooms.values())

    def __contains__(self, room_id) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def __iter__(self) -> Iterator[Room]:
        return iter(self._rooms.values())

    def ids(self) -> List[str]:
        return list(self._rooms.keys())


__all__ = ["Direction", "Room", "RoomGraph", "room_key", "parse_key"]
