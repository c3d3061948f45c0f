"""Adventure session: command sequencing on top of the dungeon core.

Responsibilities:
    * Own the session state machine (UNSET -> SELECTING -> RUNNING ->
      RESTARTING/ENDED) and the per-session ``random.Random``.
    * Parse player commands (with aliases) and dispatch them to handlers.
    * Move the player, resolve encounters, and react to depletion and to
      reaching the treasure room (bonus, next level, victory).
    * Produce JSON-safe snapshots for the save service and the HTTP API.

Design notes:
    - One RNG per session, passed explicitly to the generator, the item
      factory and every reveal/puzzle call. A seed reproduces the whole run.
    - Levels are generated lazily: the next level is only built when the
      treasure room of the current one is reached.
    - While a room's barrier is still active the only permitted move is back
      to the room the player came from.
"""

from __future__ import annotations

import random
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ..dungeon.config import TREASURE_BASE_BONUS, Difficulty, GenerationSettings
from ..dungeon.encounters import EncounterOutcome, resolve_puzzle
from ..dungeon.errors import ConfigurationError
from ..dungeon.generator import LevelGenerator
from ..dungeon.items import ItemFactory, use_item
from ..dungeon.level import Level
from ..dungeon.player import Player
from ..dungeon.rooms import Direction, Room
from ..dungeon.serialization import level_from_dict, level_to_dict, player_from_dict, player_to_dict
from ..logging_utils import get_logger

logger = get_logger("delve.session")

TIPS = [
    "Remember to check your inventory often!",
    "Some puzzles might require specific items to solve.",
    "Exploring thoroughly can reveal hidden passages and treasures.",
    "Your choices matter - they might affect the game's outcome!",
    "Don't forget to save your progress regularly.",
    "Use the 'look' command to examine your surroundings in detail.",
    "Stuck? Try using the 'hint' command for a random tip!",
    "The 'map' command shows where you've been - use it to avoid getting lost!",
    "Negative items can be dangerous, but sometimes risk brings great rewards.",
    "Solving puzzles can often yield valuable rewards or reveal secrets.",
]

INTRO = (
    "=== Welcome to Delve ===\n"
    "You stand before an ancient dungeon, its mysteries beckoning...\n"
    "Navigate treacherous rooms, solve puzzles, collect items and overcome magical barriers.\n"
    "Find the treasure room to complete each level."
)

DIFFICULTY_MENU = (
    "=== Choose Your Difficulty ===\n"
    "1. Easy:   start with 100 power, more healing, weaker barriers\n"
    "2. Normal: start with 75 power, balanced items, standard barriers\n"
    "3. Hard:   start with 150 power, fewer healing items, stronger barriers\n"
    "Enter difficulty (1-3):"
)

HELP_TEXT = (
    "=== Available Commands ===\n"
    "move/go <direction>      Move north, south, east or west (n/s/e/w also work)\n"
    "look                     Examine your surroundings in detail\n"
    "take/pickup/grab <item>  Pick up an item\n"
    "drop <item>              Drop an item from your inventory\n"
    "use <item>               Use an item from your inventory\n"
    "inventory/inv            Display your inventory\n"
    "solve [answer]           Show the room's puzzle or answer it\n"
    "reveal                   Use a torch to reveal hidden passages\n"
    "status                   Display your current status\n"
    "map                      Display the explored map\n"
    "hint                     Get a random gameplay tip\n"
    "quit                     Exit the game"
)

COMMAND_ALIASES = {
    "move": ["go", "walk", "run", "travel"],
    "look": ["examine", "inspect", "observe"],
    "take": ["pickup", "grab", "collect"],
    "inventory": ["inv", "items", "bag"],
    "hint": ["tips", "tip"],
    "quit": ["exit", "leave", "end"],
}
_ALIAS_LOOKUP = {alias: primary for primary, aliases in COMMAND_ALIASES.items() for alias in aliases}


class SessionState(str, Enum):
    UNSET = "unset"
    SELECTING = "selecting"
    RUNNING = "running"
    RESTARTING = "restarting"
    ENDED = "ended"


@dataclass
class CommandResult:
    messages: List[str]
    state: SessionState
    depleted: bool = False
    level_completed: bool = False
    victory: bool = False
    score: Optional[int] = None
    encounter: Optional[EncounterOutcome] = field(default=None, repr=False)

    @property
    def text(self) -> str:
        return "\n".join(m for m in self.messages if m)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "messages": list(self.messages),
            "state": self.state.value,
            "depleted": self.depleted,
            "level_completed": self.level_completed,
            "victory": self.victory,
            "score": self.score,
        }


def resolve_alias(action: str) -> str:
    return _ALIAS_LOOKUP.get(action, action)


class AdventureSession:
    """A single player's run through the dungeon."""

    def __init__(self, seed: Optional[int] = None, player_name: str = "Adventurer",
                 settings: Optional[GenerationSettings] = None, session_id: Optional[str] = None):
        # 0 is a valid deterministic seed; None means pick one
        self.seed = seed if seed is not None else random.randint(1, 1_000_000)
        self.rng = random.Random(self.seed)
        self.id = session_id or uuid.uuid4().hex
        self.player_name = player_name or "Adventurer"
        self.settings = settings or GenerationSettings()
        self.state = SessionState.UNSET
        self.player: Optional[Player] = None
        self.level: Optional[Level] = None
        self.level_index = 0
        self.item_factory: Optional[ItemFactory] = None
        self.log = logger.bind(session=self.id[:8])
        self._handlers: Dict[str, Callable[[str], CommandResult]] = {
            "move": self._cmd_move,
            "look": self._cmd_look,
            "take": self._cmd_take,
            "drop": self._cmd_drop,
            "use": self._cmd_use,
            "inventory": self._cmd_inventory,
            "solve": self._cmd_solve,
            "reveal": self._cmd_reveal,
            "status": self._cmd_status,
            "map": self._cmd_map,
            "hint": self._cmd_hint,
            "help": self._cmd_help,
            "quit": self._cmd_quit,
        }

    # --- lifecycle ---------------------------------------------------------
    @property
    def difficulty(self) -> Optional[Difficulty]:
        return self.player.difficulty if self.player else None

    @property
    def total_levels(self) -> int:
        return self.settings.levels

    @property
    def current_room(self) -> Optional[Room]:
        if self.level is None or self.player is None:
            return None
        return self.level.room_by_id(self.player.current_room_id)

    def _result(self, *messages: str, **kw) -> CommandResult:
        return CommandResult(messages=[m for m in messages if m], state=self.state, **kw)

    def start(self) -> CommandResult:
        if self.state is not SessionState.UNSET:
            return self._result("The adventure has already begun.")
        self.state = SessionState.SELECTING
        return self._result(INTRO, DIFFICULTY_MENU)

    def select_difficulty(self, choice) -> CommandResult:
        if self.state is SessionState.UNSET:
            self.start()
        if self.state is not SessionState.SELECTING:
            return self._result("Difficulty has already been chosen.")
        try:
            difficulty = Difficulty.parse(choice)
        except ConfigurationError:
            return self._result("Please enter a valid number (1-3):")
        self.player = Player(difficulty, name=self.player_name)
        self.item_factory = ItemFactory.for_difficulty(difficulty, self.rng)
        self.level_index = 0
        self.log.info(event="difficulty_selected", difficulty=difficulty.value, seed=self.seed)
        opening = self._enter_new_level()
        self.state = SessionState.RUNNING
        return self._result(
            f"Difficulty set to: {difficulty.name}\nYour adventure begins with {self.player.power} Power Points.",
            opening,
            self._tip(),
        )

    def _generate_level(self) -> Level:
        generator = LevelGenerator(self.rng, self.item_factory, self.settings)
        return generator.generate(self.player.difficulty, self.level_index + 1)

    def _enter_new_level(self) -> str:
        self.level = self._generate_level()
        start = self.level.start_room
        self.player.place_at(start.id)
        outcome = start.enter(self.player)
        return outcome.message

    # --- command entry point -----------------------------------------------
    def handle(self, command: str) -> CommandResult:
        command = (command or "").strip()
        if self.state is SessionState.UNSET:
            return self.start()
        if self.state is SessionState.SELECTING:
            if not command:
                return self._result("Please enter a number between 1-3:")
            return self.select_difficulty(command)
        if self.state is SessionState.ENDED:
            return self._result("The game is over. Start a new game to play again.", score=self.player.score() if self.player else None)
        if self.state is SessionState.RESTARTING:
            return self._handle_restart_choice(command)
        if not command:
            return self._result("Please enter a valid command.")

        parts = command.lower().split(None, 1)
        action = resolve_alias(parts[0])
        args = parts[1].strip() if len(parts) > 1 else ""
        if Direction.parse(action) is not None:
            return self._cmd_move(action)
        handler = self._handlers.get(action)
        if handler is None:
            return self._result("Unknown command. Type 'help' for available commands.")
        return handler(args)

    # --- movement ----------------------------------------------------------
    def _cmd_move(self, args: str) -> CommandResult:
        if not args:
            return self._result("Move where? Try: north, south, east, or west")
        direction = Direction.parse(args)
        if direction is None:
            return self._result("Invalid direction. Please use: north, south, east, or west")
        room = self.current_room
        target_id = room.exits.get(direction.value)
        if target_id is None:
            return self._result(
                f"You cannot go {direction.value} from here. Available exits: {', '.join(room.exit_names) or 'none'}"
            )
        lead = None
        if room.has_barrier and self.player.power >= room.barrier.required_power:
            room.barrier.defeat()
            lead = f"Your power overwhelms the {room.barrier.name}! The path is now clear."
        if room.has_barrier and target_id != self.player.previous_room_id:
            return self._result(
                f"The {room.barrier.name} holds you back. You can only retreat the way you came."
            )
        target = self.level.room_by_id(target_id)
        self.player.move_to(target_id)
        outcome = target.enter(self.player)
        if lead:
            outcome.messages.insert(0, lead)
        self.log.debug(event="moved", room=target_id, power=self.player.power)
        if outcome.depleted:
            return self._deplete(outcome.message, encounter=outcome)
        if target.has_treasure:
            return self._treasure_found(outcome)
        return self._result(outcome.message, encounter=outcome)

    def _deplete(self, *messages: str, encounter: Optional[EncounterOutcome] = None) -> CommandResult:
        self.state = SessionState.RESTARTING
        self.log.info(event="player_depleted", level_number=self.level_index + 1)
        return self._result(
            *messages,
            "=== GAME OVER ===\nWould you like to restart the level? (restart/quit)",
            depleted=True,
            encounter=encounter,
        )

    def _treasure_found(self, outcome: EncounterOutcome) -> CommandResult:
        bonus = TREASURE_BASE_BONUS + self.player.power // 2
        self.player.adjust_power(bonus)
        lines = [
            outcome.message,
            "=== TREASURE ROOM DISCOVERED! ===\n"
            f"Congratulations! You've found the treasure room!\nYou receive {bonus} bonus power points!",
        ]
        self.log.info(event="treasure_found", level_number=self.level_index + 1, bonus=bonus, power=self.player.power)
        if self.level_index + 1 >= self.total_levels:
            return self._victory(lines, outcome)
        self.level_index += 1
        # new floor: visited rooms reset, inventory and power carry over
        self.player.visited.clear()
        opening = self._enter_new_level()
        lines.append(f"=== LEVEL {self.level_index + 1} ===\nYou enter a new section of the dungeon...\n{opening}")
        lines.append(self._tip())
        return self._result(*lines, level_completed=True, encounter=outcome)

    def _victory(self, lines: List[str], outcome: EncounterOutcome) -> CommandResult:
        self.state = SessionState.ENDED
        score = self.player.score()
        lines.append(
            "CONGRATULATIONS! You've completed all levels!\n"
            "=== GAME COMPLETE! ===\n"
            f"Final Score: {score}\nPower Points: {self.player.power}\nRooms Explored: {len(self.player.visited)}"
        )
        self.log.info(event="game_won", score=score)
        return self._result(*lines, level_completed=True, victory=True, score=score, encounter=outcome)

    # --- restart -------------------------------------------------------------
    def _handle_restart_choice(self, command: str) -> CommandResult:
        choice = command.lower()
        if choice in ("restart", "yes", "y"):
            return self.restart()
        if resolve_alias(choice) == "quit" or choice in ("no", "n"):
            return self._cmd_quit("")
        return self._result("Your power has been depleted. Type 'restart' to try the level again or 'quit' to leave.")

    def restart(self) -> CommandResult:
        if self.state is not SessionState.RESTARTING:
            return self._result("There is nothing to restart.")
        self.player.reset()
        opening = self._enter_new_level()
        self.state = SessionState.RUNNING
        self.log.info(event="level_restarted", level_number=self.level_index + 1)
        return self._result(
            f"=== Level Restarted ===\nYour power has been restored to {self.player.power} points.",
            opening,
            self._tip(),
        )

    # --- room interaction ------------------------------------------------------
    def _cmd_look(self, args: str) -> CommandResult:
        room = self.current_room
        lines = [room.detailed_description, f"Exits: {', '.join(room.exit_names) or 'none'}"]
        if room.has_barrier:
            lines.append(f"A {room.barrier.name} blocks further progress. (Required Power: {room.barrier.required_power})")
        contents = room.contents
        if contents:
            lines.append("You see the following items:")
            lines.extend(f"- {item.name}: {item.description}" for item in contents)
        if room.has_hidden_passages and not room.secrets_revealed:
            lines.append("You sense there might be hidden secrets in this room...")
        return self._result("\n".join(lines))

    def _cmd_take(self, args: str) -> CommandResult:
        if not args:
            return self._result("What do you want to pick up?")
        room = self.current_room
        item = room.find_item(args)
        if item is None or not item.can_pick_up:
            return self._result(f"There is no {args} here.")
        if not self.player.inventory.add(item):
            return self._result("Your inventory is full.")
        room.remove_item(item)
        return self._result(f"You pick up the {item.name}.")

    def _cmd_drop(self, args: str) -> CommandResult:
        if not args:
            return self._result("What do you want to drop?")
        item = self.player.inventory.find(args)
        if item is None:
            return self._result(f"You don't have a {args} in your inventory.")
        self.player.inventory.remove(item)
        self.current_room.add_item(item)
        return self._result(f"You drop the {item.name}.")

    def _cmd_use(self, args: str) -> CommandResult:
        if not args:
            return self._result("What do you want to use?")
        item = self.player.inventory.find(args)
        if item is None:
            return self._result(f"You don't have a {args} in your inventory.")
        outcome = use_item(item, self.player)
        lines = [outcome.message]
        if outcome.consumed:
            self.player.inventory.remove(item)
            lines.append(f"The {item.name} was consumed.")
        return self._result(*lines)

    def _cmd_inventory(self, args: str) -> CommandResult:
        items = self.player.inventory.items
        if not items:
            return self._result("Your inventory is empty.")
        lines = [f"Your inventory contains ({len(items)}/{self.player.inventory.capacity}):"]
        lines.extend(f"- {item.summary()}" for item in items)
        return self._result("\n".join(lines))

    def _cmd_solve(self, args: str) -> CommandResult:
        room = self.current_room
        if not args:
            if room.puzzle is None:
                return self._result("There's no puzzle in this room.")
            if room.puzzle.solved:
                return self._result("You've already solved this puzzle!")
            return self._result(
                f"=== Puzzle Challenge ===\n{room.puzzle.description}\nQuestion: {room.puzzle.question}\n"
                "Type 'solve <your answer>' to submit your answer"
            )
        result = resolve_puzzle(room, self.player, args, self.rng)
        if result.depleted:
            return self._deplete(result.message)
        return self._result(result.message)

    def _cmd_reveal(self, args: str) -> CommandResult:
        room = self.current_room
        result = room.reveal_hidden_passage(self.player, self.item_factory, self.level.graph, self.rng)
        return self._result(result.message)

    # --- information -----------------------------------------------------------
    def _cmd_status(self, args: str) -> CommandResult:
        p = self.player
        lines = [
            "=== Player Status ===",
            f"Power: {p.power}",
            f"Status: {p.status}",
            f"Effects: {', '.join(p.effects) or 'none'}",
            f"Current Location: Room {p.current_room_id}",
            f"Difficulty: {p.difficulty.name}",
            f"Level: {self.level_index + 1} of {self.total_levels}",
            f"Rooms Explored: {len(p.visited)}",
            f"Items in Inventory: {len(p.inventory)}",
        ]
        return self._result("\n".join(lines))

    def _cmd_map(self, args: str) -> CommandResult:
        room = self.current_room
        lines = [
            "=== Map Information ===",
            render_map(self.level, self.player),
            f"Current Position: Room {room.id}",
            f"Explored Rooms: {len(self.player.visited)}",
            f"Available Exits: {', '.join(room.exit_names) or 'none'}",
        ]
        return self._result("\n".join(lines))

    def _tip(self) -> str:
        return f"Tip: {self.rng.choice(TIPS)}"

    def _cmd_hint(self, args: str) -> CommandResult:
        return self._result(self._tip())

    def _cmd_help(self, args: str) -> CommandResult:
        return self._result(HELP_TEXT)

    def _cmd_quit(self, args: str) -> CommandResult:
        self.state = SessionState.ENDED
        score = self.player.score() if self.player else None
        self.log.info(event="game_quit", score=score)
        return self._result("Thanks for playing! Goodbye!", score=score)

    # --- snapshots ---------------------------------------------------------------
    def snapshot(self) -> Dict[str, Any]:
        """Client-facing view of the session (no puzzle answers, no hidden data)."""
        data: Dict[str, Any] = {
            "session_id": self.id,
            "seed": self.seed,
            "state": self.state.value,
            "level": self.level_index + 1,
            "total_levels": self.total_levels,
        }
        if self.player is not None:
            data["player"] = {
                "name": self.player.name,
                "difficulty": self.player.difficulty.value,
                "power": self.player.power,
                "status": self.player.status,
                "effects": self.player.effects,
                "inventory": [item.summary() for item in self.player.inventory],
                "rooms_explored": len(self.player.visited),
                "score": self.player.score(),
            }
        room = self.current_room
        if room is not None:
            data["room"] = {
                "id": room.id,
                "name": room.name,
                "description": room.description,
                "exits": room.exit_names,
                "items": [item.name for item in room.contents],
                "barrier": room.barrier.required_power if room.has_barrier else None,
                "puzzle": room.puzzle.question if room.has_unsolved_puzzle else None,
                "has_treasure": room.has_treasure,
            }
        return data

    def map_view(self) -> Dict[str, Any]:
        if self.level is None:
            return {"rooms": [], "current": None}
        rooms = []
        for room in self.level.graph:
            if room.id not in self.player.visited:
                continue
            rooms.append({
                "id": room.id,
                "x": room.x,
                "y": room.y,
                "exits": room.exit_names,
                "treasure": room.has_treasure,
                "blocked": room.has_barrier,
            })
        return {
            "width": self.level.width,
            "height": self.level.height,
            "rooms": rooms,
            "current": self.player.current_room_id,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Full persisted state, including the RNG position."""
        version, internal, gauss = self.rng.getstate()
        return {
            "session_id": self.id,
            "seed": self.seed,
            "rng_state": [version, list(internal), gauss],
            "player_name": self.player_name,
            "state": self.state.value,
            "level_index": self.level_index,
            "player": player_to_dict(self.player) if self.player else None,
            "level": level_to_dict(self.level) if self.level else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], settings: Optional[GenerationSettings] = None) -> "AdventureSession":
        session = cls(
            seed=data.get("seed"),
            player_name=data.get("player_name") or "Adventurer",
            settings=settings,
            session_id=data.get("session_id"),
        )
        rng_state = data.get("rng_state")
        if rng_state:
            version, internal, gauss = rng_state
            session.rng.setstate((version, tuple(internal), gauss))
        session.state = SessionState(data.get("state", SessionState.UNSET.value))
        session.level_index = int(data.get("level_index", 0))
        if data.get("player"):
            session.player = player_from_dict(data["player"])
            session.item_factory = ItemFactory.for_difficulty(session.player.difficulty, session.rng)
        if data.get("level"):
            session.level = level_from_dict(data["level"])
        return session


def render_map(level: Level, player: Player) -> str:
    """ASCII map of the explored part of the level.

    ``@`` player, ``T`` treasure, ``#`` blocked, ``+`` explored, ``?`` unexplored.
    """
    min_x, min_y, max_x, max_y = level.graph.bounds()
    rows = []
    for y in range(min_y, max_y + 1):
        row = []
        for x in range(min_x, max_x + 1):
            room = level.graph.at(x, y)
            if room is None:
                row.append(" ")
            elif room.id == player.current_room_id:
                row.append("@")
            elif room.id not in player.visited:
                row.append("?")
            elif room.has_treasure:
                row.append("T")
            elif room.has_barrier:
                row.append("#")
            else:
                row.append("+")
        rows.append(" ".join(row))
    return "\n".join(rows)


def new_game(difficulty, seed: Optional[int] = None, player_name: str = "Adventurer",
             settings: Optional[GenerationSettings] = None) -> tuple[AdventureSession, CommandResult]:
    """Create a session and skip straight past the difficulty menu."""
    session = AdventureSession(seed=seed, player_name=player_name, settings=settings)
    intro = session.start()
    result = session.select_difficulty(difficulty)
    result.messages = intro.messages[:1] + result.messages
    return session, result


__all__ = [
    "AdventureSession",
    "CommandResult",
    "SessionState",
    "TIPS",
    "COMMAND_ALIASES",
    "new_game",
    "render_map",
]
