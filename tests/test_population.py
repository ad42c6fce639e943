import pytest

from worldbuilder.runtime.events import POPULATION_STARVED, WORKERS_RECLAIMED
from worldbuilder.runtime.population import PopulationConfig, process_population, reclaim_workers
from worldbuilder.state import check_invariants, create_initial_state
from worldbuilder.world.buildings import Building
from worldbuilder.world.terrain import grid_from_rows


def _world():
    return create_initial_state(grid_from_rows(["." * 20 for _ in range(20)]))


def _place(world, building_type, x, y, workers=0):
    building = Building(building_id=world.new_building_id(), type=building_type, x=x, y=y, workers=workers)
    world.link_building(building)
    world.used_workers += workers
    return building


def _staffed_world(population: float = 10.0):
    world = _world()
    world.population = population
    world.sync_workers()
    _place(world, "ricePaddy", 1, 1, workers=2)
    _place(world, "teaPlantation", 3, 1, workers=2)
    _place(world, "jadeMine", 5, 1, workers=3)
    _place(world, "market", 7, 1, workers=1)
    _place(world, "silkFarm", 1, 3, workers=2)
    return world


def test_starvation_shrinks_population_and_trims_workers():
    world = _staffed_world(10.0)
    world.resources["rice"] = 0.0
    assert world.used_workers == 10
    check_invariants(world)

    delta = process_population(world, 10.0)

    assert delta == pytest.approx(-2.0)
    assert world.population == pytest.approx(8.0)
    assert world.workers == 8
    assert world.used_workers <= world.workers
    assert sum(b.workers for b in world.buildings.values()) == world.used_workers
    assert world.event_ring.of_type(POPULATION_STARVED)
    assert world.event_ring.of_type(WORKERS_RECLAIMED)[0]["count"] == 2
    check_invariants(world)


def test_population_never_drops_below_one():
    world = _staffed_world(10.0)
    world.resources["rice"] = 0.0

    for _ in range(20):
        process_population(world, 5.0)

    assert world.population == 1.0
    assert world.workers == 1
    assert world.used_workers <= 1
    check_invariants(world)


def test_fed_population_grows_toward_housing():
    world = _world()
    world.resources["rice"] = 100.0

    process_population(world, 1.0)

    assert world.resources["rice"] == pytest.approx(97.5)
    assert world.population == pytest.approx(5.1)
    assert world.workers == 5


def test_growth_stops_at_housing_cap():
    world = _world()
    world.resources["rice"] = 300.0
    world.population = world.max_population
    world.sync_workers()

    process_population(world, 1.0)

    assert world.population == world.max_population


def test_no_growth_when_food_is_low():
    world = _world()
    world.resources["rice"] = 22.0

    process_population(world, 1.0)

    assert world.resources["rice"] == pytest.approx(19.5)
    assert world.population == 5.0


def test_rates_come_from_config():
    world = _world()
    world.pop_cfg = PopulationConfig(starvation_per_second=1.0)
    world.resources["rice"] = 0.0

    process_population(world, 2.0)

    assert world.population == pytest.approx(3.0)


def test_reclaim_drains_buildings_in_placement_order():
    world = _staffed_world(10.0)
    first = world.buildings["building:2"]
    world.population = 7.0
    world.sync_workers()

    assert reclaim_workers(world) == 3
    assert first.type == "ricePaddy"
    assert first.workers == 0
    assert world.buildings["building:3"].workers == 1
    assert world.used_workers == 7
