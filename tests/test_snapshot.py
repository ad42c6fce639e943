import gzip
import json

import pytest

from worldbuilder.runtime.actions import assign_workers, place_building, scout_territory
from worldbuilder.runtime.quests import activate_quest
from worldbuilder.runtime.snapshot import (
    load_snapshot,
    load_world,
    restore_world,
    save_snapshot,
    save_world,
    snapshot_world,
    world_signature,
)
from worldbuilder.runtime.tick import run_for
from worldbuilder.runtime.timebase import Season
from worldbuilder.state import WorldState, check_invariants, create_initial_state
from worldbuilder.world.quests import QuestStatus
from worldbuilder.world.terrain import Terrain, grid_from_rows


def _world():
    rows = ["~" * 40]
    rows += ["b" + "." * 39 for _ in range(38)]
    rows.append("^" * 40)
    world = create_initial_state(grid_from_rows(rows), seed=7)
    world.resources.update({"gold": 600.0, "bamboo": 200.0})
    place_building(world, "ricePaddy", 15, 15)
    assign_workers(world, world.building_at(15, 15), 2)
    place_building(world, "bambooGrove", 1, 15)
    assign_workers(world, world.building_at(1, 15), 1)
    scout_territory(world, "north")
    activate_quest(world, "open-market")
    return world


def test_snapshot_round_trip_preserves_world(tmp_path):
    world = _world()
    run_for(world, 10)
    path = tmp_path / "save.json.gz"

    digest = save_snapshot(snapshot_world(world), path)
    restored = restore_world(load_snapshot(path))

    assert len(digest) == 64
    assert isinstance(restored, WorldState)
    assert world_signature(restored) == world_signature(world)
    assert restored.explored_areas == world.explored_areas
    assert restored.season is Season.SPRING
    assert restored.tile(0, 15).terrain is Terrain.BAMBOO
    assert restored.tile(0, 15).resource_amount == world.tile(0, 15).resource_amount < 100.0
    assert restored.discovered_territories == world.discovered_territories
    paddy = restored.building_at(15, 15)
    assert paddy is not None and paddy.workers == 2
    assert paddy is restored.buildings[paddy.building_id]
    assert next(q for q in restored.quests if q.quest_id == "open-market").status is QuestStatus.ACTIVE
    check_invariants(restored)


def test_restored_world_continues_identically(tmp_path):
    world = _world()
    path = tmp_path / "save.json"
    save_world(world, path)
    restored = load_world(path)

    run_for(world, 20)
    run_for(restored, 20)

    assert world_signature(restored) == world_signature(world)


def test_explored_set_is_written_as_sorted_keys(tmp_path):
    world = _world()
    path = tmp_path / "save.json.gz"
    save_world(world, path)

    with gzip.open(path, "rb") as fp:
        data = json.loads(fp.read().decode("utf-8"))
    explored = data["world"]["data"]["explored_areas"]["__set__"]

    assert explored == sorted(explored)
    assert "20,20" in explored
    assert data["map_seed"] == 7


def test_digest_is_stable(tmp_path):
    world = _world()
    snapshot = snapshot_world(world)
    first = save_snapshot(snapshot, tmp_path / "a.json", gzip_output=False)
    second = save_snapshot(snapshot, tmp_path / "b.json.gz")
    assert first == second


def test_missing_saves(tmp_path):
    assert load_world(tmp_path / "nothing.json") is None
    with pytest.raises(FileNotFoundError):
        load_snapshot(tmp_path / "nothing.json")


def test_signature_tracks_simulation_state():
    world = _world()
    before = world_signature(world)
    world.resources["rice"] += 1
    assert world_signature(world) != before
