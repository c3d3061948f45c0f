import random

from delve.dungeon.config import Difficulty
from delve.dungeon.items import ItemFactory, ItemKind
from delve.dungeon.level import Level
from delve.dungeon.rooms import RoomGraph
from tests.dungeon_test_utils import grid_graph, player_with, torch


def _lone_room_graph():
    g = RoomGraph()
    room = g.create_room(0, 0)
    g.create_room(1, 0)
    g.connect_both("0,0", "east", "1,0")
    room.has_hidden_passages = True
    return g, room


def test_reveal_needs_hidden_passages():
    g, room = _lone_room_graph()
    room.has_hidden_passages = False
    player = player_with(50)
    player.inventory.add(torch())
    result = room.reveal_hidden_passage(player, ItemFactory(), g, random.Random(1))
    assert not result.success
    assert "any hidden passages" in result.message


def test_reveal_needs_a_torch():
    g, room = _lone_room_graph()
    result = room.reveal_hidden_passage(player_with(50), ItemFactory(), g, random.Random(1))
    assert not result.success
    assert "Torch" in result.message
    assert room.has_hidden_passages
    assert len(g) == 2


def test_reveal_creates_hidden_room_in_free_direction():
    g, room = _lone_room_graph()
    player = player_with(50)
    tool = torch(3)
    player.inventory.add(tool)
    result = room.reveal_hidden_passage(player, ItemFactory(rng=random.Random(2)), g, random.Random(4))
    assert result.success
    assert result.direction in {"north", "south", "west"}
    new_room = result.new_room
    assert new_room.name == "Hidden Room"
    assert [i.kind for i in new_room.items] == [ItemKind.HEALING]
    assert room.exits[result.direction] == new_room.id
    assert room.id in new_room.exits.values()
    assert not room.has_hidden_passages
    assert room.secrets_revealed
    assert tool.charges == 2
    assert len(g) == 3


def test_reveal_reuses_existing_neighbour():
    g = grid_graph(3, 3, connect=False)
    centre = g.get("1,1")
    g.connect_both("1,1", "east", "2,1")
    centre.has_hidden_passages = True
    player = player_with(50)
    player.inventory.add(torch(5))
    result = centre.reveal_hidden_passage(player, ItemFactory(), g, random.Random(7))
    assert result.success
    assert len(g) == 9
    assert result.new_room is g.get(centre.exits[result.direction])
    assert result.new_room.items == []


def test_reveal_with_no_free_direction_keeps_torch_charge():
    g = grid_graph(3, 3)
    centre = g.get("1,1")
    centre.has_hidden_passages = True
    player = player_with(50)
    tool = torch(3)
    player.inventory.add(tool)
    result = centre.reveal_hidden_passage(player, ItemFactory(), g, random.Random(1))
    assert not result.success
    assert tool.charges == 3


def test_last_torch_charge_removes_torch():
    g, room = _lone_room_graph()
    player = player_with(50)
    player.inventory.add(torch(1))
    result = room.reveal_hidden_passage(player, ItemFactory(), g, random.Random(1))
    assert result.success
    assert player.inventory.find("torch") is None


def test_level_reveal_delegates_to_room():
    g, room = _lone_room_graph()
    level = Level(graph=g, start_id="0,0", treasure_id="1,0", width=2, height=1, difficulty=Difficulty.EASY)
    player = player_with(50)
    player.inventory.add(ItemFactory().create_treasure_items()[1])
    result = level.reveal_hidden_passage("0,0", player, ItemFactory(), random.Random(3))
    assert result.success
    # the staff has unlimited uses
    assert player.inventory.find("ancient mystic staff") is not None
    assert len(level.rooms) == 3
