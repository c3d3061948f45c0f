import random

import pytest

from delve.dungeon.config import Difficulty
from delve.dungeon.errors import ConfigurationError
from delve.dungeon.items import Item, ItemFactory, ItemKind, use_item
from delve.dungeon.player import Inventory, Player
from tests.dungeon_test_utils import potion, torch, trap


@pytest.mark.parametrize(
    "difficulty,healing,required",
    [
        (Difficulty.EASY, 12, 20),
        (Difficulty.NORMAL, 8, 30),
        (Difficulty.HARD, 4, 38),
    ],
)
def test_factory_scales_with_difficulty(difficulty, healing, required):
    f = ItemFactory.for_difficulty(difficulty, random.Random(1))
    assert f.create_random_healing_item().power == healing
    assert f.create_barrier().required_power == required


def test_factory_clamps_tuning():
    f = ItemFactory(healing_rate=5, barrier_strength=0)
    assert f.healing_rate == 1.0
    assert f.barrier_strength == 0.1


def test_random_items_are_never_hazards():
    f = ItemFactory(rng=random.Random(3))
    kinds = {f.create_random_item().kind for _ in range(300)}
    assert ItemKind.HAZARD not in kinds
    assert kinds == {ItemKind.HEALING, ItemKind.TOOL}


def test_negative_items_are_traps():
    f = ItemFactory(rng=random.Random(5))
    for _ in range(20):
        item = f.create_random_negative_item()
        assert item.is_trap and not item.is_barrier
        assert not item.can_pick_up
        assert 10 <= item.power <= 18


def test_torch_reveals_passages_other_tools_do_not():
    f = ItemFactory(rng=random.Random(0))
    for _ in range(100):
        tool = f.create_random_tool_item()
        assert 3 <= tool.charges <= 7
        assert tool.reveals_passages == (tool.name == "Torch")


def test_healing_use_restores_and_is_consumed():
    player = Player(Difficulty.NORMAL, power=40)
    result = use_item(potion(8), player)
    assert result.consumed
    assert result.power_change == 8
    assert player.power == 48


def test_spell_is_single_use():
    spell = ItemFactory(rng=random.Random(2)).create_random_spell_item()
    result = use_item(spell, Player())
    assert result.consumed
    assert spell.charges == 0
    assert "You cast" in result.message


def test_tool_consumed_when_charges_run_out():
    tool = torch(2)
    first = use_item(tool, Player())
    assert not first.consumed and tool.charges == 1
    second = use_item(tool, Player())
    assert second.consumed and tool.charges == 0
    assert "crumbles to dust" in second.message


def test_unlimited_tool_never_consumed():
    staff = ItemFactory().create_treasure_items()[1]
    for _ in range(5):
        assert not use_item(staff, Player()).consumed
    assert staff.charges is None


def test_hazards_cannot_be_used():
    player = Player(power=50)
    result = use_item(trap(10), player)
    assert not result.consumed
    assert player.power == 50


def test_defeated_hazard_inactive_but_tools_stay_active():
    t = trap(10)
    assert t.is_active
    t.defeat()
    assert not t.is_active
    assert potion().is_active


def test_inventory_capacity():
    inv = Inventory(capacity=3)
    items = [potion() for _ in range(4)]
    assert [inv.add(i) for i in items] == [True, True, True, False]
    assert inv.is_full and len(inv) == 3
    assert inv.remove(items[0]) and not inv.remove(items[3])
    assert inv.find("HEALTH potion") is items[1]


def test_inventory_items_is_a_copy():
    inv = Inventory()
    inv.add(potion())
    inv.items.clear()
    assert len(inv) == 1


def test_starting_power_per_difficulty():
    assert Player(Difficulty.EASY).power == 100
    assert Player("normal").power == 75
    assert Player(3).power == 150


@pytest.mark.parametrize(
    "power,status,effects",
    [
        (80, "Healthy", []),
        (75, "Healthy", []),
        (60, "Wounded", []),
        (40, "Critical", ["Slowed"]),
        (10, "Near Death", ["Weakened", "Slowed"]),
    ],
)
def test_player_status_bands(power, status, effects):
    p = Player(power=power)
    assert p.status == status
    assert p.effects == effects


def test_score_counts_power_rooms_and_items():
    p = Player(power=50)
    p.place_at("0,0")
    p.move_to("1,0")
    p.inventory.add(potion())
    assert p.score() == 50 + 20 + 5
    assert p.previous_room_id == "0,0"


def test_reset_restores_starting_state():
    p = Player(Difficulty.HARD, power=3)
    p.place_at("2,2")
    p.inventory.add(potion())
    p.reset()
    assert p.power == 150
    assert len(p.inventory) == 0
    assert p.visited == set()
    assert p.current_room_id is None


@pytest.mark.parametrize("raw", [0, 4, "5", "extreme", True, None, 2.0])
def test_difficulty_parse_rejects_unknown(raw):
    with pytest.raises(ConfigurationError):
        Difficulty.parse(raw)


@pytest.mark.parametrize(
    "raw,expected",
    [(1, Difficulty.EASY), ("2", Difficulty.NORMAL), ("Hard", Difficulty.HARD), (Difficulty.EASY, Difficulty.EASY)],
)
def test_difficulty_parse(raw, expected):
    assert Difficulty.parse(raw) is expected


def test_item_summary_strings():
    assert potion(8).summary() == "Health Potion (+8 power)"
    assert torch(3).summary() == "Torch (tool, uses: 3)"
    assert trap(10).summary() == "Thorny Vines (trap, 10 damage)"
    barrier = Item("Magical Barrier", "", ItemKind.HAZARD, power=15, is_barrier=True)
    assert barrier.summary() == "Magical Barrier (barrier, requires 30 power)"
