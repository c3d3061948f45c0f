"""Items found in dungeon rooms and the factory that rolls them.

Every item is one `Item` record tagged with an `ItemKind`:

  * HEALING  restores `power` points when used, then is consumed.
  * TOOL     a reusable tool (charges count down, consumed at zero; `None`
             charges means unlimited) or a single-use spell.
  * HAZARD   a barrier (gate passable at `2 * power`) or a trap (deals
             `power` damage once). Hazards are never picked up.

Behaviour on use is a dispatch over the kind (see `use_item`); the factory
draws every random choice from the `random.Random` it was built with.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from .config import profile_for


class ItemKind(str, Enum):
    HEALING = 'healing'
    TOOL = 'tool'
    HAZARD = 'hazard'


@dataclass
class Item:
    name: str
    description: str
    kind: ItemKind
    power: int = 0
    charges: Optional[int] = None
    is_spell: bool = False
    reveals_passages: bool = False
    is_barrier: bool = False
    defeated: bool = False

    @property
    def is_hazard(self) -> bool:
        return self.kind is ItemKind.HAZARD

    @property
    def is_trap(self) -> bool:
        return self.is_hazard and not self.is_barrier

    @property
    def is_active(self) -> bool:
        """Hazards stay active until defeated; other items are always active."""
        return not (self.is_hazard and self.defeated)

    @property
    def required_power(self) -> int:
        return self.power * 2 if self.is_barrier else 0

    @property
    def can_pick_up(self) -> bool:
        return not self.is_hazard

    def defeat(self) -> None:
        # one-way: a defeated hazard never reactivates
        self.defeated = True

    def consume_charge(self) -> bool:
        """Spend one use. Returns True when the item is exhausted."""
        if self.is_spell:
            self.charges = 0
            return True
        if self.charges is None:
            return False
        self.charges = max(0, self.charges - 1)
        return self.charges <= 0

    def summary(self) -> str:
        if self.kind is ItemKind.HEALING:
            return f"{self.name} (+{self.power} power)"
        if self.kind is ItemKind.TOOL:
            if self.is_spell:
                return f"{self.name} (spell, power {self.power})"
            uses = 'unlimited' if self.charges is None else self.charges
            return f"{self.name} (tool, uses: {uses})"
        if self.is_barrier:
            return f"{self.name} (barrier, requires {self.required_power} power)"
        return f"{self.name} (trap, {self.power} damage)"


@dataclass
class ItemUseResult:
    message: str
    consumed: bool
    power_change: int = 0


def _use_healing(item: Item, player) -> ItemUseResult:
    before = player.power
    player.adjust_power(item.power)
    return ItemUseResult(
        message=f"You use the {item.name} and restore {item.power} power points.",
        consumed=True,
        power_change=player.power - before,
    )


def _use_tool(item: Item, player) -> ItemUseResult:
    if item.is_spell:
        item.consume_charge()
        return ItemUseResult(message=f"You cast {item.name} with power of {item.power}!", consumed=True)
    exhausted = item.consume_charge()
    if item.charges is None:
        return ItemUseResult(message=f"You use the {item.name}.", consumed=False)
    msg = f"You use the {item.name}. Durability: {item.charges}"
    if exhausted:
        msg += f"\nThe {item.name} crumbles to dust."
    return ItemUseResult(message=msg, consumed=exhausted)


def _use_hazard(item: Item, player) -> ItemUseResult:
    return ItemUseResult(message=f"The {item.name} cannot be used.", consumed=False)


_USE_HANDLERS: Dict[ItemKind, Callable[[Item, object], ItemUseResult]] = {
    ItemKind.HEALING: _use_healing,
    ItemKind.TOOL: _use_tool,
    ItemKind.HAZARD: _use_hazard,
}


def use_item(item: Item, player) -> ItemUseResult:
    return _USE_HANDLERS[item.kind](item, player)


HEALING_NAMES = [
    "Health Potion", "Magic Elixir", "Healing Crystal", "Restoration Brew",
    "Healing Herbs", "Bandages", "Medkit", "Energy Drink",
]
TOOL_NAMES = [
    "Torch", "Rope", "Lockpick", "Grappling Hook",
    "Fireball Scroll", "Ice Shard Wand", "Lightning Staff", "Wind Rune",
]
# name, description, base damage
NEGATIVE_ITEMS = [
    ("Poison Trap", "A deadly trap that releases toxic fumes.", 15),
    ("Curse Rune", "An ancient rune that drains your power.", 18),
    ("Shadow Wisp", "A malevolent spirit that saps your strength.", 12),
    ("Thorny Vines", "Sharp thorns that cause damage when touched.", 10),
]
BARRIER_BASE_DAMAGE = 15
TREASURE_HEAL = 50
TREASURE_STAFF_POWER = 30


class ItemFactory:
    """Rolls items from fixed name pools, scaled by difficulty tuning."""

    def __init__(self, rng: random.Random | None = None, healing_rate: float = 0.4, barrier_strength: float = 1.0):
        self.rng = rng or random.Random()
        self.healing_rate = max(0.0, min(1.0, healing_rate))
        self.barrier_strength = max(0.1, min(2.0, barrier_strength))

    @classmethod
    def for_difficulty(cls, difficulty, rng: random.Random | None = None) -> "ItemFactory":
        profile = profile_for(difficulty)
        return cls(rng, healing_rate=profile.healing_rate, barrier_strength=profile.barrier_strength)

    def create_random_item(self) -> Item:
        """A benign pickup: healing item, tool or spell with equal odds for the kind."""
        if self.rng.random() < 0.5:
            return self.create_random_healing_item()
        if self.rng.random() < 0.5:
            return self.create_random_tool_item()
        return self.create_random_spell_item()

    def create_random_healing_item(self) -> Item:
        name = self.rng.choice(HEALING_NAMES)
        return Item(
            name=name,
            description=f"A {name.lower()} that restores health",
            kind=ItemKind.HEALING,
            power=int(20 * self.healing_rate),
        )

    def create_random_spell_item(self) -> Item:
        name = self.rng.choice(TOOL_NAMES)
        return Item(
            name=name,
            description=f"A {name.lower()} spell",
            kind=ItemKind.TOOL,
            power=self.rng.randint(10, 29),
            charges=1,
            is_spell=True,
        )

    def create_random_tool_item(self) -> Item:
        name = self.rng.choice(TOOL_NAMES)
        durability = self.rng.randint(3, 7)
        return Item(
            name=name,
            description=f"A {name.lower()} that can be used multiple times",
            kind=ItemKind.TOOL,
            power=durability,
            charges=durability,
            reveals_passages=name.lower() == 'torch',
        )

    def create_barrier(self) -> Item:
        damage = int(BARRIER_BASE_DAMAGE * self.barrier_strength)
        return Item(
            name="Magical Barrier",
            description=f"A shimmering wall of magical energy blocks your path. Power required: {damage * 2}",
            kind=ItemKind.HAZARD,
            power=damage,
            is_barrier=True,
        )

    def create_random_negative_item(self) -> Item:
        name, description, base = self.rng.choice(NEGATIVE_ITEMS)
        return Item(
            name=name,
            description=description,
            kind=ItemKind.HAZARD,
            power=int(base * self.barrier_strength),
        )

    def create_treasure_items(self) -> List[Item]:
        return [
            Item(
                name="Legendary Healing Crystal",
                description="A rare crystal pulsing with restorative energy",
                kind=ItemKind.HEALING,
                power=TREASURE_HEAL,
            ),
            Item(
                name="Ancient Mystic Staff",
                description="A powerful magical artifact from a forgotten age",
                kind=ItemKind.TOOL,
                power=TREASURE_STAFF_POWER,
                charges=None,
                reveals_passages=True,
            ),
        ]


__all__ = [
    "Item",
    "ItemKind",
    "ItemUseResult",
    "ItemFactory",
    "use_item",
]
