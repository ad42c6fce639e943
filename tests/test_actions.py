import pytest

from worldbuilder.event import EventBus
from worldbuilder.runtime.actions import (
    Direction,
    FailureReason,
    apply_speed_boost,
    assign_workers,
    can_afford,
    can_place_building,
    demolish_building,
    place_building,
    remove_workers,
    scout_territory,
    sell_resource,
    start_quest,
)
from worldbuilder.runtime.events import BUILDING_PLACED
from worldbuilder.runtime.snapshot import world_signature
from worldbuilder.state import check_invariants, create_initial_state
from worldbuilder.world.quests import QuestStatus
from worldbuilder.world.terrain import Terrain, coord_key, grid_from_rows


def _rows(size: int = 20) -> list[str]:
    rows = ["~" * size]
    rows += ["b" + "." * (size - 1) for _ in range(size - 2)]
    rows.append("^" * size)
    return rows


def _world(size: int = 20):
    return create_initial_state(grid_from_rows(_rows(size)))


def test_house_costs_and_half_refund():
    world = _world()
    world.resources.update({"gold": 200.0, "bamboo": 50.0, "rice": 100.0})

    result = place_building(world, "house", 5, 5)
    assert result.success
    assert result.message == "Built House!"
    assert world.resources["gold"] == 170
    assert world.resources["bamboo"] == 35
    building = world.building_at(5, 5)
    assert building is not None and building.level == 1 and building.workers == 0

    result = demolish_building(world, 5, 5)
    assert result.success
    assert world.resources["gold"] == 185
    assert world.resources["bamboo"] == 42
    assert world.tile(5, 5).building_id is None
    assert building.building_id not in world.buildings
    check_invariants(world)


@pytest.mark.parametrize(
    "building_type,x,y,reason",
    [
        ("house", -1, 5, FailureReason.INVALID_POSITION),
        ("house", 5, 40, FailureReason.INVALID_POSITION),
        ("house", 0, 5, FailureReason.WRONG_TERRAIN),
        ("house", 5, 0, FailureReason.WRONG_TERRAIN),
        ("house", 10, 10, FailureReason.TILE_OCCUPIED),
        ("silkFarm", 5, 5, FailureReason.BUILDING_LOCKED),
        ("fishingDock", 5, 5, FailureReason.MISSING_ADJACENCY),
        ("pagoda", 5, 5, FailureReason.UNKNOWN_BUILDING),
    ],
)
def test_placement_failure_reasons(building_type, x, y, reason):
    world = _world()
    result = can_place_building(world, building_type, x, y)
    assert not result.success
    assert result.reason is reason


def test_locked_is_reported_before_cost():
    world = _world()
    world.resources["gold"] = 0.0
    assert can_place_building(world, "silkFarm", 5, 5).reason is FailureReason.BUILDING_LOCKED
    assert can_place_building(world, "house", 5, 5).reason is FailureReason.INSUFFICIENT_RESOURCES
    assert not can_afford(world, "house")


def test_failed_placement_leaves_world_untouched():
    world = _world()
    world.resources["gold"] = 10.0
    before = world_signature(world)

    check = can_place_building(world, "house", 5, 5)
    result = place_building(world, "house", 5, 5)

    assert not result.success
    assert result.message == check.message
    assert result.reason is check.reason
    assert world_signature(world) == before


def test_adjacency_satisfied_next_to_river_and_bamboo():
    world = _world()
    assert place_building(world, "fishingDock", 5, 1).success
    assert place_building(world, "bambooGrove", 1, 5).success
    check_invariants(world)


def test_premium_building_needs_gems():
    world = _world()
    world.resources["gold"] = 300.0
    result = place_building(world, "premiumPagoda", 5, 5)
    assert result.reason is FailureReason.INSUFFICIENT_PREMIUM

    world.premium_currency = 60
    result = place_building(world, "premiumPagoda", 5, 5)
    assert result.success
    assert world.premium_currency == 10
    assert world.resources["gold"] == 100


def test_demolish_returns_workers_and_caps_refund():
    world = _world()
    assert place_building(world, "ricePaddy", 5, 5).success
    assert assign_workers(world, world.building_at(5, 5), 2).success
    world.resources["gold"] = world.max_resources["gold"]

    assert demolish_building(world, 5, 5).success
    assert world.used_workers == 0
    assert world.resources["gold"] == world.max_resources["gold"]
    check_invariants(world)


def test_demolish_empty_tile():
    world = _world()
    result = demolish_building(world, 5, 5)
    assert result.reason is FailureReason.NOTHING_TO_DEMOLISH


def test_assign_then_remove_restores_staffing():
    world = _world()
    place_building(world, "ricePaddy", 5, 5)
    building = world.building_at(5, 5)

    assert assign_workers(world, building, 2).success
    assert building.workers == 2 and world.used_workers == 2
    assert remove_workers(world, building, 2).success
    assert building.workers == 0 and world.used_workers == 0


def test_assign_is_limited_by_need_and_availability():
    world = _world()
    world.resources.update({"gold": 500.0, "bamboo": 200.0})
    for x in (3, 5, 7):
        assert place_building(world, "ricePaddy", x, 5).success
    first, second, third = (world.building_at(x, 5) for x in (3, 5, 7))

    assert assign_workers(world, first, 10).message == "Assigned 2 worker(s)"
    assert assign_workers(world, second, 2).success
    assert assign_workers(world, third, 2).message == "Assigned 1 worker(s)"
    assert world.used_workers == world.workers == 5

    result = assign_workers(world, third, 1)
    assert result.reason is FailureReason.NO_WORKERS_AVAILABLE
    assert assign_workers(world, first, 1).reason is FailureReason.NO_WORKERS_AVAILABLE
    check_invariants(world)


def test_remove_from_unstaffed_building():
    world = _world()
    place_building(world, "ricePaddy", 5, 5)
    result = remove_workers(world, world.building_at(5, 5), 1)
    assert result.reason is FailureReason.NOTHING_TO_REMOVE


def test_staffing_unknown_building():
    world = _world()
    assert assign_workers(world, "building:999", 1).reason is FailureReason.UNKNOWN_BUILDING


def test_sell_requires_market_and_refuses_gold():
    world = _world()
    assert sell_resource(world, "gold", 10).reason is FailureReason.NOT_SELLABLE
    assert sell_resource(world, "rice", 10).reason is FailureReason.NO_MARKET

    assert place_building(world, "market", 5, 5).success
    gold = world.resources["gold"]
    world.resources["rice"] = 5.0

    result = sell_resource(world, "rice", 100)
    assert result.success
    assert world.resources["rice"] == 0
    assert world.resources["gold"] == gold + 5

    assert sell_resource(world, "rice", 10).reason is FailureReason.NOTHING_TO_SELL
    assert sell_resource(world, "tea", 10).success
    assert world.resources["gold"] == gold + 5 + 30


def test_sell_floors_gold():
    world = _world()
    place_building(world, "market", 5, 5)
    gold = world.resources["gold"]
    world.resources["tea"] = 0.5
    assert sell_resource(world, "tea", 1).success
    assert world.resources["gold"] == gold + 1
    assert world.resources["tea"] == 0


def test_sale_proceeds_are_capped_at_gold_storage():
    world = _world()
    place_building(world, "market", 5, 5)
    cap = world.max_resources["gold"]
    world.resources["gold"] = cap - 5
    world.resources["tea"] = 50.0

    assert sell_resource(world, "tea", 10).success

    assert world.resources["gold"] == cap
    assert world.resources["tea"] == 40.0


def test_speed_boost_spends_gems():
    world = _world()
    place_building(world, "ricePaddy", 5, 5)
    building = world.building_at(5, 5)

    result = apply_speed_boost(world, building, now_ms=1000.0)
    assert result.success
    assert building.speed_boost_until == 61000.0
    assert world.premium_currency == 5

    assert apply_speed_boost(world, building, 30000, now_ms=2000.0).success
    assert building.speed_boost_until == 32000.0
    assert world.premium_currency == 0
    assert apply_speed_boost(world, building, now_ms=3000.0).reason is FailureReason.INSUFFICIENT_PREMIUM


def test_scout_reveals_block_beyond_explored_edge():
    world = _world(40)
    gold = world.resources["gold"]
    assert world.explored_bounds() == (10, 10, 29, 29)

    result = scout_territory(world, Direction.NORTH)
    assert result.success
    assert world.resources["gold"] == gold - 50
    assert coord_key(15, 2) in world.explored_areas
    assert coord_key(22, 9) in world.explored_areas
    assert coord_key(14, 2) not in world.explored_areas
    assert world.visibility_grid[2][15] is True
    territory = world.discovered_territories["north-1"]
    assert territory["revealed"] == 64

    # Second northern scout is clipped by the map edge.
    assert scout_territory(world, "north").success
    assert world.discovered_territories["north-2"]["revealed"] == 16


def test_scout_east_and_failures():
    world = _world(40)
    assert scout_territory(world, "east", 10).success
    assert coord_key(30, 16) in world.explored_areas
    assert coord_key(37, 22) in world.explored_areas
    assert coord_key(37, 23) not in world.explored_areas

    assert scout_territory(world, "up").reason is FailureReason.INVALID_DIRECTION
    world.resources["gold"] = 20.0
    before = set(world.explored_areas)
    assert scout_territory(world, Direction.WEST).reason is FailureReason.INSUFFICIENT_RESOURCES
    assert world.explored_areas == before


def test_start_quest_action():
    world = _world()
    assert start_quest(world, "open-market").success
    assert next(q for q in world.quests if q.quest_id == "open-market").status is QuestStatus.ACTIVE
    assert not start_quest(world, "open-market").success
    assert start_quest(world, "missing").reason is FailureReason.UNKNOWN_QUEST


def test_actions_publish_events_and_count_metrics():
    world = _world()
    bus = EventBus()
    seen = []
    bus.subscribe(seen.append, event_type=BUILDING_PLACED)

    place_building(world, "house", 5, 5, bus=bus)
    place_building(world, "house", 5, 5, bus=bus)
    bus.dispatch()

    assert [event.payload["type"] for event in seen] == ["house"]
    assert world.metrics.counter("actions.place_building.ok") == 1
    assert world.metrics.counter("actions.failures.tile_occupied") == 1
    assert world.event_ring.of_type(BUILDING_PLACED)[0]["x"] == 5


def test_placed_tile_keeps_terrain():
    world = _world()
    place_building(world, "house", 5, 5)
    assert world.tile(5, 5).terrain is Terrain.PLAINS
