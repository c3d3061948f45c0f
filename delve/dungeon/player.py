"""Player state: power points, inventory and position.

The player only holds room ids; rooms themselves belong to the level.
"""
from __future__ import annotations

from typing import List, Optional, Set

from .config import INVENTORY_CAPACITY, Difficulty, profile_for
from .items import Item


class Inventory:
    def __init__(self, capacity: int = INVENTORY_CAPACITY, items: Optional[List[Item]] = None):
        self.capacity = capacity
        self._items: List[Item] = list(items or [])

    @property
    def items(self) -> List[Item]:
        return list(self._items)

    @property
    def is_full(self) -> bool:
        return len(self._items) >= self.capacity

    def add(self, item: Item) -> bool:
        if item is None or self.is_full:
            return False
        self._items.append(item)
        return True

    def remove(self, item: Item) -> bool:
        for idx, existing in enumerate(self._items):
            if existing is item:
                del self._items[idx]
                return True
        return False

    def find(self, name: str) -> Optional[Item]:
        if not name:
            return None
        wanted = name.strip().lower()
        for item in self._items:
            if item.name.lower() == wanted:
                return item
        return None

    def first_passage_revealer(self) -> Optional[Item]:
        for item in self._items:
            if item.reveals_passages:
                return item
        return None

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(list(self._items))


class Player:
    def __init__(self, difficulty=Difficulty.NORMAL, name: str = "Adventurer", power: Optional[int] = None):
        self.difficulty = Difficulty.parse(difficulty)
        self.name = name
        self.power = self.starting_power if power is None else power
        self.inventory = Inventory()
        self.current_room_id: Optional[str] = None
        self.previous_room_id: Optional[str] = None
        self.visited: Set[str] = set()

    @property
    def starting_power(self) -> int:
        return profile_for(self.difficulty).starting_power

    def adjust_power(self, delta: int) -> int:
        self.power += delta
        return self.power

    @property
    def depleted(self) -> bool:
        return self.power <= 0

    @property
    def status(self) -> str:
        if self.power >= 75:
            return "Healthy"
        if self.power >= 50:
            return "Wounded"
        if self.power >= 25:
            return "Critical"
        return "Near Death"

    @property
    def effects(self) -> List[str]:
        effects = []
        if self.power < 25:
            effects.append("Weakened")
        if self.power < 50:
            effects.append("Slowed")
        return effects

    def move_to(self, room_id: str) -> None:
        self.previous_room_id = self.current_room_id
        self.current_room_id = room_id
        self.visited.add(room_id)

    def place_at(self, room_id: str) -> None:
        """Position at a level start with no room to retreat to."""
        self.current_room_id = room_id
        self.previous_room_id = None
        self.visited.add(room_id)

    def reset(self) -> None:
        self.power = self.starting_power
        self.inventory.clear()
        self.visited.clear()
        self.current_room_id = None
        self.previous_room_id = None

    def score(self) -> int:
        return self.power + len(self.visited) * 10 + len(self.inventory) * 5


__all__ = ["Player", "Inventory"]
