"""Level generation: grid rooms, decoration, barrier overlay and path repair.

Phases run in a fixed order and draw every random choice from the single
`random.Random` handed to the generator, so one seed always produces the
same level.
"""
from __future__ import annotations

import random
import time
from typing import Dict, Optional, Tuple

from ..logging_utils import get_logger
from .config import (
    HAZARD_ITEM_CHANCE,
    MIDDLE_BARRIER_BONUS,
    MIDDLE_NEGATIVE_BONUS,
    Difficulty,
    DifficultyProfile,
    GenerationSettings,
    profile_for,
)
from .connectivity import ensure_reachable
from .errors import ConfigurationError
from .items import ItemFactory
from .level import Level
from .metrics import init_metrics
from .puzzles import generate_puzzle
from .rooms import Direction, RoomGraph, room_key

logger = get_logger("delve.generator")

ROOM_DESCRIPTIONS = [
    "You are in a dark room.",
    "You find yourself in a dimly lit chamber.",
    "You enter a mysterious room with ancient markings.",
    "This room is filled with echoes of the past.",
    "A cold draft blows through this shadowy room.",
]
DETAILED_DESCRIPTIONS = [
    "This is a dimly lit room with rough stone walls. You can barely make out the outlines of the room in the flickering light.",
    "Ancient runes cover the walls of this chamber, glowing faintly in the darkness.",
    "Cobwebs hang from the ceiling, and the air is thick with dust and mystery.",
    "The stone floor is worn smooth by countless footsteps of those who came before.",
    "Strange symbols are etched into the walls, their meaning lost to time.",
]
_TREASURE_ATTEMPTS = 1000


def _percent(rng: random.Random, chance: int) -> bool:
    return rng.randrange(100) < chance


def in_middle_band(x: int, y: int, width: int, height: int) -> bool:
    return width // 4 < x < (width * 3) // 4 and height // 4 < y < (height * 3) // 4


class LevelGenerator:
    def __init__(self, rng: random.Random, item_factory: Optional[ItemFactory] = None,
                 settings: Optional[GenerationSettings] = None):
        self.rng = rng
        self.item_factory = item_factory
        self.settings = settings or GenerationSettings()

    def generate(self, difficulty, level_number: int = 1, width: Optional[int] = None,
                 height: Optional[int] = None) -> Level:
        difficulty = Difficulty.parse(difficulty)
        profile = profile_for(difficulty)
        factory = self.item_factory or ItemFactory.for_difficulty(difficulty, self.rng)

        enable_metrics = self.settings.enable_metrics
        metrics: Dict = init_metrics() if enable_metrics else {}
        phase_times: Dict[str, int] = {}
        start = time.perf_counter()

        def _phase(label, fn, *a, **k):
            if not enable_metrics:
                return fn(*a, **k)
            ps = time.perf_counter()
            r = fn(*a, **k)
            phase_times[label] = int((time.perf_counter() - ps) * 1000)
            return r

        width, height = self._dimensions(profile, width, height)
        graph = _phase('create_rooms', self._create_rooms, width, height)
        start_id = room_key(0, 0)
        treasure_id, distance, attempts = _phase('place_treasure', self._place_treasure, graph, factory, width, height)
        _phase('decorate', self._decorate, graph, factory, profile, difficulty, {start_id, treasure_id}, metrics)
        _phase('connect', self._connect_grid, graph, width, height)
        _phase('overlay_barriers', self._overlay_barriers, graph, factory, profile, width, height,
               {start_id, treasure_id}, metrics)
        report = _phase('ensure_reachable', ensure_reachable, graph, start_id, treasure_id, self.rng)

        if enable_metrics:
            metrics['rooms_created'] = len(graph)
            metrics['edges_created'] = graph.edge_count()
            metrics['treasure_distance'] = distance
            metrics['treasure_attempts'] = attempts
            metrics['repairs_performed'] = 1 if report.repaired else 0
            metrics['path_length'] = len(report.path)
            metrics['phase_ms'] = phase_times
            metrics['runtime_ms'] = round((time.perf_counter() - start) * 1000, 3)

        level = Level(
            graph=graph,
            start_id=start_id,
            treasure_id=treasure_id,
            width=width,
            height=height,
            difficulty=difficulty,
            level_number=level_number,
            metrics=metrics,
        )
        logger.info(
            event="level_generated",
            difficulty=difficulty.value,
            level_number=level_number,
            width=width,
            height=height,
            treasure=treasure_id,
            repaired=report.repaired,
            runtime_ms=metrics.get('runtime_ms'),
        )
        return level

    # --- phases -----------------------------------------------------------
    def _dimensions(self, profile: DifficultyProfile, width, height) -> Tuple[int, int]:
        lo, hi = profile.size_range
        if width is None:
            width = self.rng.randint(lo, hi)
        if height is None:
            height = self.rng.randint(lo, hi)
        if width <= 0 or height <= 0:
            raise ConfigurationError(f"grid dimensions must be positive, got {width}x{height}")
        if width * height < 2:
            raise ConfigurationError("a level needs at least two rooms to place start and treasure apart")
        return width, height

    def _create_rooms(self, width: int, height: int) -> RoomGraph:
        graph = RoomGraph()
        for y in range(height):
            for x in range(width):
                graph.create_room(
                    x,
                    y,
                    description=self.rng.choice(ROOM_DESCRIPTIONS),
                    detailed_description=self.rng.choice(DETAILED_DESCRIPTIONS),
                )
        return graph

    def _place_treasure(self, graph: RoomGraph, factory: ItemFactory, width: int, height: int):
        # minimum Manhattan distance is max(width, height) / 2, compared without truncation
        limit = max(width, height)
        tx, ty = width - 1, height - 1
        attempts = 0
        for attempts in range(1, _TREASURE_ATTEMPTS + 1):
            cx, cy = self.rng.randrange(width), self.rng.randrange(height)
            if 2 * (cx + cy) >= limit:
                tx, ty = cx, cy
                break
        room = graph.at(tx, ty)
        room.has_treasure = True
        for item in factory.create_treasure_items():
            room.add_item(item)
        return room.id, tx + ty, attempts

    def _decorate(self, graph: RoomGraph, factory: ItemFactory, profile: DifficultyProfile,
                  difficulty: Difficulty, skip: set, metrics: Dict) -> None:
        for room in graph:
            if room.id in skip:
                continue
            if _percent(self.rng, profile.item_chance):
                if difficulty is not Difficulty.EASY and _percent(self.rng, HAZARD_ITEM_CHANCE):
                    room.add_item(factory.create_random_negative_item())
                    _bump(metrics, 'traps_placed')
                else:
                    room.add_item(factory.create_random_item())
                    _bump(metrics, 'items_placed')
            if _percent(self.rng, profile.puzzle_chance):
                room.puzzle = generate_puzzle(self.rng, profile.puzzle_modifier)
                _bump(metrics, 'puzzles_placed')
            if _percent(self.rng, profile.hidden_chance):
                room.has_hidden_passages = True
                _bump(metrics, 'hidden_flags')

    def _connect_grid(self, graph: RoomGraph, width: int, height: int) -> None:
        for room in graph:
            for d in Direction:
                dx, dy = d.delta
                nx, ny = room.x + dx, room.y + dy
                if 0 <= nx < width and 0 <= ny < height:
                    graph.connect(room.id, d, room_key(nx, ny))

    def _overlay_barriers(self, graph: RoomGraph, factory: ItemFactory, profile: DifficultyProfile,
                          width: int, height: int, skip: set, metrics: Dict) -> None:
        for room in graph:
            if room.id in skip:
                continue
            barrier_chance = profile.barrier_chance
            negative_chance = profile.negative_chance
            if in_middle_band(room.x, room.y, width, height):
                barrier_chance += MIDDLE_BARRIER_BONUS
                negative_chance += MIDDLE_NEGATIVE_BONUS
            if _percent(self.rng, barrier_chance):
                room.barrier = factory.create_barrier()
                _bump(metrics, 'barriers_placed')
            if _percent(self.rng, negative_chance):
                room.add_item(factory.create_random_negative_item())
                _bump(metrics, 'traps_placed')


def _bump(metrics: Dict, key: str) -> None:
    if metrics:
        metrics[key] = metrics.get(key, 0) + 1


def generate_level(difficulty, level_number: int = 1, rng: Optional[random.Random] = None,
                   item_factory: Optional[ItemFactory] = None, **kwargs) -> Level:
    """Build one level. A fresh unseeded RNG is used when none is given."""
    return LevelGenerator(rng or random.Random(), item_factory).generate(difficulty, level_number, **kwargs)


__all__ = ["LevelGenerator", "generate_level", "in_middle_band", "ROOM_DESCRIPTIONS", "DETAILED_DESCRIPTIONS"]
