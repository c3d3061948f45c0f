"""Room entry resolution, puzzle answers and hidden passage reveals.

These functions mutate the room and the player they are given and return a
result record describing what happened. Outcomes the player can cause
(insufficient power, wrong answer, no torch) are values, never exceptions.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import List, Optional

from ..logging_utils import get_logger
from .config import PUZZLE_PENALTY, PUZZLE_REWARD
from .items import Item
from .puzzles import Puzzle
from .rooms import Direction, Room, RoomGraph

logger = get_logger("delve.encounters")


@dataclass
class EncounterOutcome:
    room_id: str
    first_visit: bool = False
    barrier: Optional[Item] = None
    barrier_cleared: bool = False
    shortfall: int = 0
    traps_triggered: List[Item] = field(default_factory=list)
    damage_taken: int = 0
    puzzle: Optional[Puzzle] = None
    depleted: bool = False
    messages: List[str] = field(default_factory=list)

    @property
    def blocked(self) -> bool:
        return self.barrier is not None and not self.barrier_cleared

    @property
    def message(self) -> str:
        return "\n".join(self.messages)


def _barrier_notice(barrier: Item) -> str:
    return f"A {barrier.name} blocks further progress. (Required Power: {barrier.required_power})"


def on_enter(room: Room, player) -> EncounterOutcome:
    outcome = EncounterOutcome(room_id=room.id)
    if not room.visited:
        room.visited = True
        outcome.first_visit = True
        outcome.messages.append(room.describe())
    else:
        if room.has_barrier:
            outcome.messages.append(_barrier_notice(room.barrier))
        if room.has_unsolved_puzzle:
            outcome.messages.append(f"There's an unsolved puzzle in this room: {room.puzzle.description}")

    if room.has_barrier:
        barrier = room.barrier
        outcome.barrier = barrier
        required = barrier.required_power
        if player.power >= required:
            barrier.defeat()
            outcome.barrier_cleared = True
            outcome.messages.append(f"Your power overwhelms the {barrier.name}! The path is now clear.")
        else:
            outcome.shortfall = required - player.power
            outcome.messages.append(
                f"You need {outcome.shortfall} more power points to overcome this barrier.\n"
                "Try finding items or solving puzzles to increase your power!"
            )

    for trap in room.active_traps:
        player.adjust_power(-trap.power)
        trap.defeat()
        room.remove_item(trap)
        outcome.traps_triggered.append(trap)
        outcome.damage_taken += trap.power
        outcome.messages.append(f"You triggered a {trap.name}! It deals {trap.power} damage!")

    if room.has_unsolved_puzzle:
        outcome.puzzle = room.puzzle

    if player.depleted:
        outcome.depleted = True
        outcome.messages.append("Your power has been depleted!")

    logger.debug(
        event="room_entered",
        room=room.id,
        first_visit=outcome.first_visit,
        blocked=outcome.blocked,
        traps=len(outcome.traps_triggered),
        power=player.power,
    )
    return outcome


@dataclass
class PuzzleResult:
    attempted: bool
    solved: bool
    message: str
    power_change: int = 0
    bonus_item: Optional[Item] = None
    depleted: bool = False


def resolve_puzzle(room: Room, player, answer, rng: random.Random) -> PuzzleResult:
    puzzle = room.puzzle
    if puzzle is None:
        return PuzzleResult(attempted=False, solved=False, message="There is no puzzle in this room.")
    if puzzle.solved:
        return PuzzleResult(attempted=False, solved=True, message="You have already solved this puzzle.")

    if not puzzle.check_answer(answer):
        player.adjust_power(-PUZZLE_PENALTY)
        msg = f"That's not correct. You lose {PUZZLE_PENALTY} power points."
        return PuzzleResult(
            attempted=True,
            solved=False,
            message=msg,
            power_change=-PUZZLE_PENALTY,
            depleted=player.depleted,
        )

    puzzle.mark_solved()
    player.adjust_power(PUZZLE_REWARD)
    lines = [f"Correct! You solved the puzzle and gain {PUZZLE_REWARD} power points."]
    bonus = None
    candidates = [item for item in room.contents if item.can_pick_up]
    if candidates:
        bonus = rng.choice(candidates)
        lines.append(f"The puzzle reveals a {bonus.name}!")
    logger.debug(event="puzzle_solved", room=room.id, bonus=bonus.name if bonus else None)
    return PuzzleResult(
        attempted=True,
        solved=True,
        message="\n".join(lines),
        power_change=PUZZLE_REWARD,
        bonus_item=bonus,
    )


@dataclass
class RevealResult:
    success: bool
    message: str
    new_room: Optional[Room] = None
    direction: Optional[str] = None


def reveal_hidden_passage(room: Room, player, item_source, graph: RoomGraph, rng: random.Random) -> RevealResult:
    """Open a passage from `room` to a free neighbour; the reverse exit is added too."""
    if not room.has_hidden_passages:
        return RevealResult(False, "There don't seem to be any hidden passages in this room.")
    tool = player.inventory.first_passage_revealer()
    if tool is None:
        return RevealResult(False, "You need a Torch or similar item to reveal hidden passages.")
    free = [d for d in Direction if d.value not in room.exits]
    if not free:
        return RevealResult(False, "You search but find no new passages.")

    if tool.consume_charge():
        player.inventory.remove(tool)
    direction = rng.choice(free)
    dx, dy = direction.delta
    target = graph.at(room.x + dx, room.y + dy)
    if target is None:
        target = graph.create_room(
            room.x + dx,
            room.y + dy,
            name="Hidden Room",
            description="You discovered a secret room!",
            detailed_description=f"This hidden chamber was revealed by your {tool.name}.",
        )
        target.add_item(item_source.create_random_healing_item())
    graph.connect_both(room.id, direction, target.id)
    room.has_hidden_passages = False
    room.secrets_revealed = True
    logger.info(event="hidden_passage_revealed", room=room.id, direction=direction.value, target=target.id)
    return RevealResult(
        True,
        f"The {tool.name} reveals a hidden passage to the {direction.value}!",
        new_room=target,
        direction=direction.value,
    )


__all__ = [
    "EncounterOutcome",
    "PuzzleResult",
    "RevealResult",
    "on_enter",
    "resolve_puzzle",
    "reveal_hidden_passage",
]
