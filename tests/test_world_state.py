import pytest

from worldbuilder.runtime.timebase import Season, advance_clock, season_for_day
from worldbuilder.state import WorldState, check_invariants, create_initial_state
from worldbuilder.world.buildings import Building, get_building_def
from worldbuilder.world.terrain import (
    Terrain,
    adjacent_tiles,
    coord_key,
    grid_from_rows,
    parse_coord_key,
)


def test_grid_from_rows_assigns_terrain_and_stock():
    grid = grid_from_rows([".~", "b^"])
    assert grid[0][1].terrain is Terrain.RIVER
    assert grid[0][1].resource_amount == 120.0
    assert grid[1][0].terrain is Terrain.BAMBOO
    assert grid[0][0].resource_amount is None
    assert (grid[1][1].x, grid[1][1].y) == (1, 1)


@pytest.mark.parametrize("rows", [["..", "."], [".x"]])
def test_grid_from_rows_rejects_bad_maps(rows):
    with pytest.raises(ValueError):
        grid_from_rows(rows)


def test_adjacency_is_eight_connected_and_clipped():
    grid = grid_from_rows(["..." for _ in range(3)])
    assert len(adjacent_tiles(grid, 1, 1)) == 8
    assert len(adjacent_tiles(grid, 0, 0)) == 3


def test_coord_keys():
    assert coord_key(3, -1) == "3,-1"
    assert parse_coord_key("3,-1") == (3, -1)


def test_initial_state_layout():
    rows = ["^" * 30 for _ in range(30)]
    world = create_initial_state(grid_from_rows(rows), seed=3, now_ms=500.0)

    castle = world.building_at(15, 15)
    house = world.building_at(13, 15)
    assert castle.type == "castle" and castle.is_starting_building
    assert house.type == "house"
    assert world.tile(13, 13).terrain is Terrain.PLAINS
    assert world.tile(13, 13).is_starting_area
    assert world.tile(12, 12).terrain is Terrain.MOUNTAIN
    assert world.explored_bounds() == (5, 5, 24, 24)
    assert world.max_population == 5 + 10 + 4
    assert world.max_resources["gold"] == 1500
    assert world.population == 5.0 and world.workers == 5
    assert world.population_types == {"farmer": 3, "merchant": 1, "warrior": 1, "monk": 0, "fisherman": 0}
    assert world.premium_currency == 10
    assert world.season is Season.SPRING and world.day_time == 0.5
    assert world.last_update == 500.0 and world.map_seed == 3
    check_invariants(world)


def test_empty_map_is_rejected():
    with pytest.raises(ValueError):
        create_initial_state([])


def test_link_rejects_occupied_and_off_map_tiles():
    world = create_initial_state(grid_from_rows(["." * 10 for _ in range(10)]))
    with pytest.raises(ValueError):
        world.link_building(Building(building_id="b:x", type="house", x=5, y=5))
    with pytest.raises(ValueError):
        world.link_building(Building(building_id="b:y", type="house", x=50, y=5))


def test_unknown_building_type_is_a_programming_error():
    with pytest.raises(KeyError):
        get_building_def("skyscraper")


def test_building_ids_are_sequential():
    world = WorldState()
    assert [world.new_building_id() for _ in range(3)] == ["building:0", "building:1", "building:2"]


def test_clock_wraps_days_and_seasons():
    world = WorldState()
    assert not advance_clock(world, 60.0)
    assert world.day_count == 1 and world.day_time == pytest.approx(0.0)
    assert advance_clock(world, 120.0 * 3)
    assert world.day_count == 4
    assert world.season is Season.SUMMER
    assert season_for_day(16) is Season.SPRING
