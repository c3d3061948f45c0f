"""Public dungeon package interface.

The core simulation: level generation, room graph, encounters and player
state. Nothing here touches Flask request state or the database.
"""

from .config import Difficulty, GenerationSettings
from .connectivity import ensure_reachable, is_reachable, synthesize_path
from .encounters import EncounterOutcome, PuzzleResult, RevealResult, on_enter, resolve_puzzle, reveal_hidden_passage
from .errors import ConfigurationError, DelveError, DuplicateRoomError, GenerationInvariantError
from .generator import LevelGenerator, generate_level
from .items import Item, ItemFactory, ItemKind, use_item
from .level import Level
from .player import Inventory, Player
from .puzzles import Puzzle, generate_puzzle
from .rooms import Direction, Room, RoomGraph  # noqa: F401

__all__ = [
    "Difficulty",
    "GenerationSettings",
    "ensure_reachable",
    "is_reachable",
    "synthesize_path",
    "EncounterOutcome",
    "PuzzleResult",
    "RevealResult",
    "on_enter",
    "resolve_puzzle",
    "reveal_hidden_passage",
    "ConfigurationError",
    "DelveError",
    "DuplicateRoomError",
    "GenerationInvariantError",
    "LevelGenerator",
    "generate_level",
    "Item",
    "ItemFactory",
    "ItemKind",
    "use_item",
    "Level",
    "Inventory",
    "Player",
    "Puzzle",
    "generate_puzzle",
    "Direction",
    "Room",
    "RoomGraph",
]
