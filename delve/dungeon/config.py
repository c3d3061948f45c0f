"""Difficulty tables and generation settings.

All per-difficulty constants live here so the generator, the item factory
and the session read from a single table.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from flask import current_app, has_app_context

from .errors import ConfigurationError


class Difficulty(str, Enum):
    EASY = 'easy'
    NORMAL = 'normal'
    HARD = 'hard'

    @classmethod
    def parse(cls, value) -> "Difficulty":
        """Accept an enum member, its name/value, or the menu numbers 1-3."""
        if isinstance(value, Difficulty):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str):
            key = value.strip().lower()
            by_number = {'1': cls.EASY, '2': cls.NORMAL, '3': cls.HARD}
            if key in by_number:
                return by_number[key]
            for member in cls:
                if key == member.value:
                    return member
        raise ConfigurationError(f"unknown difficulty: {value!r}")


@dataclass(frozen=True)
class DifficultyProfile:
    size_range: Tuple[int, int]
    item_chance: int
    puzzle_chance: int
    hidden_chance: int
    barrier_chance: int
    negative_chance: int
    starting_power: int
    healing_rate: float
    barrier_strength: float
    puzzle_modifier: float


PROFILES: Dict[Difficulty, DifficultyProfile] = {
    Difficulty.EASY: DifficultyProfile(
        size_range=(4, 7), item_chance=20, puzzle_chance=15, hidden_chance=15,
        barrier_chance=20, negative_chance=10, starting_power=100,
        healing_rate=0.6, barrier_strength=0.7, puzzle_modifier=0.8,
    ),
    Difficulty.NORMAL: DifficultyProfile(
        size_range=(5, 10), item_chance=30, puzzle_chance=20, hidden_chance=10,
        barrier_chance=35, negative_chance=25, starting_power=75,
        healing_rate=0.4, barrier_strength=1.0, puzzle_modifier=1.0,
    ),
    Difficulty.HARD: DifficultyProfile(
        size_range=(7, 12), item_chance=40, puzzle_chance=25, hidden_chance=5,
        barrier_chance=50, negative_chance=40, starting_power=150,
        healing_rate=0.2, barrier_strength=1.3, puzzle_modifier=1.2,
    ),
}

# Extra percentage points applied to rooms in the central band of the grid
MIDDLE_BARRIER_BONUS = 20
MIDDLE_NEGATIVE_BONUS = 15
# Secondary roll turning a placed item into a hazard on non-easy levels
HAZARD_ITEM_CHANCE = 30
DETOUR_CHANCE = 0.3

PUZZLE_REWARD = 10
PUZZLE_PENALTY = 5
TREASURE_BASE_BONUS = 50
INVENTORY_CAPACITY = 20


def profile_for(difficulty) -> DifficultyProfile:
    return PROFILES[Difficulty.parse(difficulty)]


def _env_flag(name: str, default: bool) -> bool:
    if name not in os.environ:
        return default
    return os.environ.get(name, '').lower() not in {'0', 'false', 'no', ''}


@dataclass
class GenerationSettings:
    """Runtime knobs shared by the generator and the session.

    Explicit arguments win; unset fields fall back to the Flask app config
    (when an app context is active), then to the environment, then to the
    defaults (3 levels, metrics on).
    """

    levels: Optional[int] = None
    enable_metrics: Optional[bool] = None

    def __post_init__(self):
        cfg = current_app.config if has_app_context() else {}
        if self.levels is None:
            raw = cfg.get('DELVE_LEVELS', os.environ.get('DELVE_LEVELS', 3))
            try:
                self.levels = int(raw)
            except (TypeError, ValueError):
                raise ConfigurationError(f"DELVE_LEVELS must be an integer, got {raw!r}")
        if self.enable_metrics is None:
            if 'DELVE_ENABLE_METRICS' in cfg:
                self.enable_metrics = bool(cfg['DELVE_ENABLE_METRICS'])
            else:
                self.enable_metrics = _env_flag('DELVE_ENABLE_METRICS', True)
        if self.levels < 1:
            raise ConfigurationError(f"levels must be positive, got {self.levels}")


__all__ = [
    "Difficulty",
    "DifficultyProfile",
    "PROFILES",
    "profile_for",
    "GenerationSettings",
]
