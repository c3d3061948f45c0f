"""Reachability checks and path repair for generated levels.

A room holding an active barrier is treated as a closed node: the walk never
steps into it. Repair carves a meandering 4-connected walk from start to
target, clearing barriers and restoring edges along the way.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import List, Set, Tuple

from ..logging_utils import get_logger
from .config import DETOUR_CHANCE
from .errors import GenerationInvariantError
from .rooms import Direction, RoomGraph, parse_key, room_key

logger = get_logger("delve.connectivity")

Coord2D = Tuple[int, int]


def is_reachable(graph: RoomGraph, start_id: str, target_id: str) -> bool:
    if start_id not in graph or target_id not in graph:
        return False
    if start_id == target_id:
        return True
    stack = [start_id]
    visited: Set[str] = {start_id}
    while stack:
        current = stack.pop()
        for _direction, nxt in graph.neighbors_of(current):
            if nxt in visited:
                continue
            room = graph.get(nxt)
            if room is None or room.has_barrier:
                continue
            if nxt == target_id:
                return True
            visited.add(nxt)
            stack.append(nxt)
    return False


def reachable_set(graph: RoomGraph, start_id: str) -> Set[str]:
    """Every room id reachable from `start_id` without entering a barrier room."""
    if start_id not in graph:
        return set()
    stack = [start_id]
    visited: Set[str] = {start_id}
    while stack:
        current = stack.pop()
        for _direction, nxt in graph.neighbors_of(current):
            room = graph.get(nxt)
            if nxt in visited or room is None or room.has_barrier:
                continue
            visited.add(nxt)
            stack.append(nxt)
    return visited


def _direction_between(a: Coord2D, b: Coord2D) -> Direction:
    delta = (b[0] - a[0], b[1] - a[1])
    for d in Direction:
        if d.delta == delta:
            return d
    raise GenerationInvariantError(f"cells {a} and {b} are not adjacent")


def _open_cell(graph: RoomGraph, prev: Coord2D | None, cell: Coord2D) -> None:
    room = graph.at(*cell)
    if room is None:
        raise GenerationInvariantError(f"path walked onto missing room {room_key(*cell)}")
    room.barrier = None
    if prev is None:
        return
    d = _direction_between(prev, cell)
    src, dst = room_key(*prev), room_key(*cell)
    if graph.get(src).exits.get(d.value) != dst:
        graph.connect(src, d, dst)
    if room.exits.get(d.opposite.value) != src:
        graph.connect(dst, d.opposite, src)


def synthesize_path(graph: RoomGraph, start_id: str, target_id: str, rng: random.Random) -> List[str]:
    """Carve a walk from start to target and return the visited room ids in order.

    Each step closes the x or y gap (coin flip when both are open); after a
    step there is a chance of a one-cell vertical detour. A step cap bounds
    the walk and finishes it with a straight run when reached.
    """
    sx, sy = parse_key(start_id)
    tx, ty = parse_key(target_id)
    min_x, min_y, max_x, max_y = graph.bounds()
    width = max_x - min_x + 1
    height = max_y - min_y + 1
    max_steps = 3 * (abs(tx - sx) + abs(ty - sy) + width + height)

    cur: Coord2D = (sx, sy)
    path: List[Coord2D] = [cur]
    _open_cell(graph, None, cur)

    def step(nxt: Coord2D) -> None:
        nonlocal cur
        _open_cell(graph, cur, nxt)
        path.append(nxt)
        cur = nxt

    steps = 0
    while cur != (tx, ty) and steps < max_steps:
        cx, cy = cur
        x_open, y_open = cx != tx, cy != ty
        move_x = x_open and (not y_open or rng.random() < 0.5)
        if move_x:
            step((cx + (1 if tx > cx else -1), cy))
        else:
            step((cx, cy + (1 if ty > cy else -1)))
        steps += 1
        if cur == (tx, ty):
            break
        if rng.random() < DETOUR_CHANCE:
            cx, cy = cur
            if rng.random() < 0.5 and cy > min_y and graph.at(cx, cy - 1) is not None:
                step((cx, cy - 1))
            elif cy < max_y and graph.at(cx, cy + 1) is not None:
                step((cx, cy + 1))
            steps += 1

    # Straight fallback once the cap is hit
    while cur[0] != tx:
        step((cur[0] + (1 if tx > cur[0] else -1), cur[1]))
    while cur[1] != ty:
        step((cur[0], cur[1] + (1 if ty > cur[1] else -1)))

    return [room_key(x, y) for x, y in path]


@dataclass
class RepairReport:
    repaired: bool = False
    path: List[str] = field(default_factory=list)


def ensure_reachable(graph: RoomGraph, start_id: str, target_id: str, rng: random.Random) -> RepairReport:
    if is_reachable(graph, start_id, target_id):
        return RepairReport()
    path = synthesize_path(graph, start_id, target_id, rng)
    if not is_reachable(graph, start_id, target_id):
        logger.error(event="path_repair_failed", start=start_id, target=target_id, path_len=len(path))
        raise GenerationInvariantError(f"{target_id} still unreachable from {start_id} after path synthesis")
    logger.debug(event="path_repaired", start=start_id, target=target_id, path_len=len(path))
    return RepairReport(repaired=True, path=path)


__all__ = ["is_reachable", "reachable_set", "synthesize_path", "ensure_reachable", "RepairReport"]
