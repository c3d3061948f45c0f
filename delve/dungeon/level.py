"""One generated floor of the dungeon."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .config import Difficulty
from .rooms import Room, RoomGraph


@dataclass
class Level:
    graph: RoomGraph
    start_id: str
    treasure_id: str
    width: int
    height: int
    difficulty: Difficulty
    level_number: int = 1
    metrics: Dict[str, Any] = field(default_factory=dict)

    @property
    def start_room(self) -> Room:
        return self.graph.get(self.start_id)

    @property
    def treasure_room(self) -> Room:
        return self.graph.get(self.treasure_id)

    def room_by_id(self, room_id: str) -> Optional[Room]:
        return self.graph.get(room_id)

    @property
    def rooms(self):
        return list(self.graph)

    def reveal_hidden_passage(self, room_id: str, player, item_source, rng):
        return self.graph.get(room_id).reveal_hidden_passage(player, item_source, self.graph, rng)


__all__ = ["Level"]
