"""Plain-dict snapshots of levels and players.

The dicts are JSON-safe and are what the save service stores in the
database and what the HTTP API returns.
"""
from __future__ import annotations

from typing import Any, Dict

from .config import Difficulty
from .items import Item, ItemKind
from .level import Level
from .player import Inventory, Player
from .puzzles import Puzzle
from .rooms import Room, RoomGraph


def item_to_dict(item: Item) -> Dict[str, Any]:
    return {
        'name': item.name,
        'description': item.description,
        'kind': item.kind.value,
        'power': item.power,
        'charges': item.charges,
        'is_spell': item.is_spell,
        'reveals_passages': item.reveals_passages,
        'is_barrier': item.is_barrier,
        'defeated': item.defeated,
    }


def item_from_dict(data: Dict[str, Any]) -> Item:
    return Item(
        name=data['name'],
        description=data.get('description', ''),
        kind=ItemKind(data['kind']),
        power=int(data.get('power', 0)),
        charges=data.get('charges'),
        is_spell=bool(data.get('is_spell', False)),
        reveals_passages=bool(data.get('reveals_passages', False)),
        is_barrier=bool(data.get('is_barrier', False)),
        defeated=bool(data.get('defeated', False)),
    )


def puzzle_to_dict(puzzle: Puzzle) -> Dict[str, Any]:
    return {
        'question': puzzle.question,
        'answer': puzzle.answer,
        'description': puzzle.description,
        'solved': puzzle.solved,
    }


def room_to_dict(room: Room) -> Dict[str, Any]:
    return {
        'x': room.x,
        'y': room.y,
        'name': room.name,
        'description': room.description,
        'detailed_description': room.detailed_description,
        'items': [item_to_dict(i) for i in room.items],
        'exits': dict(room.exits),
        'barrier': item_to_dict(room.barrier) if room.barrier is not None else None,
        'puzzle': puzzle_to_dict(room.puzzle) if room.puzzle is not None else None,
        'visited': room.visited,
        'has_treasure': room.has_treasure,
        'has_hidden_passages': room.has_hidden_passages,
        'secrets_revealed': room.secrets_revealed,
    }


def room_from_dict(data: Dict[str, Any]) -> Room:
    return Room(
        x=int(data['x']),
        y=int(data['y']),
        name=data.get('name', ''),
        description=data.get('description', ''),
        detailed_description=data.get('detailed_description', ''),
        items=[item_from_dict(i) for i in data.get('items', [])],
        exits=dict(data.get('exits', {})),
        barrier=item_from_dict(data['barrier']) if data.get('barrier') else None,
        puzzle=Puzzle(**data['puzzle']) if data.get('puzzle') else None,
        visited=bool(data.get('visited', False)),
        has_treasure=bool(data.get('has_treasure', False)),
        has_hidden_passages=bool(data.get('has_hidden_passages', False)),
        secrets_revealed=bool(data.get('secrets_revealed', False)),
    )


def level_to_dict(level: Level) -> Dict[str, Any]:
    return {
        'width': level.width,
        'height': level.height,
        'difficulty': level.difficulty.value,
        'level_number': level.level_number,
        'start': level.start_id,
        'treasure': level.treasure_id,
        'rooms': [room_to_dict(r) for r in level.graph],
        'metrics': level.metrics,
    }


def level_from_dict(data: Dict[str, Any]) -> Level:
    graph = RoomGraph()
    for rd in data['rooms']:
        graph.add_room(room_from_dict(rd))
    return Level(
        graph=graph,
        start_id=data['start'],
        treasure_id=data['treasure'],
        width=int(data['width']),
        height=int(data['height']),
        difficulty=Difficulty.parse(data['difficulty']),
        level_number=int(data.get('level_number', 1)),
        metrics=dict(data.get('metrics') or {}),
    )


def player_to_dict(player: Player) -> Dict[str, Any]:
    return {
        'name': player.name,
        'difficulty': player.difficulty.value,
        'power': player.power,
        'inventory': [item_to_dict(i) for i in player.inventory],
        'current_room': player.current_room_id,
        'previous_room': player.previous_room_id,
        'visited': sorted(player.visited),
    }


def player_from_dict(data: Dict[str, Any]) -> Player:
    player = Player(data['difficulty'], name=data.get('name') or "Adventurer", power=int(data['power']))
    player.inventory = Inventory(items=[item_from_dict(i) for i in data.get('inventory', [])])
    player.current_room_id = data.get('current_room')
    player.previous_room_id = data.get('previous_room')
    player.visited = set(data.get('visited', []))
    return player


__all__ = [
    "item_to_dict",
    "item_from_dict",
    "room_to_dict",
    "room_from_dict",
    "level_to_dict",
    "level_from_dict",
    "player_to_dict",
    "player_from_dict",
]
