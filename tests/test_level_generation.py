import random

import pytest

from delve.dungeon import ConfigurationError, Difficulty, GenerationSettings, LevelGenerator, generate_level
from delve.dungeon.config import profile_for
from delve.dungeon.connectivity import is_reachable
from delve.dungeon.rooms import parse_key
from delve.dungeon.serialization import room_to_dict

SEEDS = [1, 7, 42, 1234, 99991]


def _gen(difficulty, seed, **kw):
    gen = LevelGenerator(random.Random(seed), settings=GenerationSettings(levels=3, enable_metrics=True))
    return gen.generate(difficulty, **kw)


@pytest.mark.parametrize("difficulty", list(Difficulty))
@pytest.mark.parametrize("seed", SEEDS)
def test_treasure_reachable_from_start(difficulty, seed):
    level = _gen(difficulty, seed)
    assert is_reachable(level.graph, level.start_id, level.treasure_id)


@pytest.mark.parametrize("difficulty", list(Difficulty))
@pytest.mark.parametrize("seed", SEEDS)
def test_rooms_inside_grid_and_exits_adjacent(difficulty, seed):
    level = _gen(difficulty, seed)
    lo, hi = profile_for(difficulty).size_range
    assert lo <= level.width <= hi and lo <= level.height <= hi
    assert len(level.graph) == level.width * level.height
    for room in level.graph:
        assert 0 <= room.x < level.width and 0 <= room.y < level.height
        for _d, target in room.exits.items():
            assert target in level.graph
            tx, ty = parse_key(target)
            assert abs(tx - room.x) + abs(ty - room.y) == 1


@pytest.mark.parametrize("difficulty", list(Difficulty))
@pytest.mark.parametrize("seed", SEEDS)
def test_single_treasure_far_enough_from_start(difficulty, seed):
    level = _gen(difficulty, seed)
    treasures = [r for r in level.graph if r.has_treasure]
    assert [r.id for r in treasures] == [level.treasure_id]
    tx, ty = parse_key(level.treasure_id)
    assert 2 * (tx + ty) >= max(level.width, level.height)
    names = {i.name for i in level.treasure_room.items}
    assert {"Legendary Healing Crystal", "Ancient Mystic Staff"} <= names


@pytest.mark.parametrize("seed", SEEDS)
def test_start_and_treasure_rooms_are_clear(seed):
    level = _gen(Difficulty.HARD, seed)
    for room in (level.start_room, level.treasure_room):
        assert not room.has_barrier
        assert room.active_traps == []
        assert room.puzzle is None


def test_same_seed_same_level():
    a = _gen(Difficulty.NORMAL, 2024)
    b = _gen(Difficulty.NORMAL, 2024)
    assert (a.width, a.height, a.treasure_id) == (b.width, b.height, b.treasure_id)
    assert [room_to_dict(r) for r in a.graph] == [room_to_dict(r) for r in b.graph]


def test_different_seeds_usually_differ():
    levels = [_gen("normal", s) for s in range(20)]
    layouts = {(lv.width, lv.height, lv.treasure_id) for lv in levels}
    assert len(layouts) > 1


def test_explicit_dimensions_override_profile():
    level = _gen(Difficulty.EASY, 5, width=3, height=2)
    assert (level.width, level.height) == (3, 2)
    assert len(level.graph) == 6


def test_two_room_level_places_treasure_in_other_room():
    level = _gen(Difficulty.NORMAL, 3, width=1, height=2)
    assert level.start_id == "0,0"
    assert level.treasure_id == "0,1"
    assert is_reachable(level.graph, "0,0", "0,1")


@pytest.mark.parametrize("size", [(1, 1), (0, 5), (5, 0), (-2, 3)])
def test_degenerate_dimensions_raise(size):
    with pytest.raises(ConfigurationError):
        _gen(Difficulty.NORMAL, 1, width=size[0], height=size[1])


def test_unknown_difficulty_raises():
    with pytest.raises(ConfigurationError):
        generate_level("impossible", rng=random.Random(1))


def test_generate_level_accepts_menu_numbers():
    level = generate_level(3, level_number=2, rng=random.Random(11))
    assert level.difficulty is Difficulty.HARD
    assert level.level_number == 2


def test_metrics_recorded_when_enabled():
    level = _gen(Difficulty.NORMAL, 8)
    m = level.metrics
    for key in ["rooms_created", "edges_created", "barriers_placed", "traps_placed",
                "treasure_distance", "repairs_performed", "path_length", "runtime_ms", "phase_ms"]:
        assert key in m
    assert m["rooms_created"] == level.width * level.height
    assert m["edges_created"] == level.graph.edge_count()
    # path repair may clear some of the placed barriers
    assert m["barriers_placed"] >= sum(1 for r in level.graph if r.barrier is not None)
    assert set(m["phase_ms"]) >= {"create_rooms", "place_treasure", "connect", "ensure_reachable"}


def test_metrics_disabled_leaves_level_metrics_empty():
    gen = LevelGenerator(random.Random(8), settings=GenerationSettings(enable_metrics=False))
    level = gen.generate(Difficulty.NORMAL)
    assert level.metrics == {}


@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_trap_metric_matches_placed_traps(difficulty):
    for seed in SEEDS:
        level = _gen(difficulty, seed)
        assert level.metrics["traps_placed"] == sum(len(r.active_traps) for r in level.graph)
