import pytest

from worldbuilder.event import EventBus
from worldbuilder.runtime.actions import assign_workers, place_building
from worldbuilder.runtime.events import SEASON_CHANGED
from worldbuilder.runtime.snapshot import world_signature
from worldbuilder.runtime.tick import TickConfig, advance, run_for
from worldbuilder.runtime.timebase import Season
from worldbuilder.state import InvariantViolation, check_invariants, create_initial_state
from worldbuilder.world.terrain import grid_from_rows


def _world():
    rows = ["~" * 20]
    rows += ["b" + "." * 19 for _ in range(18)]
    rows.append("^" * 20)
    return create_initial_state(grid_from_rows(rows), now_ms=10_000.0)


def _busy_world():
    world = _world()
    world.resources.update({"gold": 800.0, "bamboo": 200.0})
    for building_type, x, y in (("ricePaddy", 5, 5), ("fishingDock", 5, 1), ("market", 7, 5)):
        assert place_building(world, building_type, x, y).success
        assign_workers(world, world.building_at(x, y), 2)
    return world


@pytest.mark.parametrize("now_ms", [10_000.0, 9_000.0, 0.0])
def test_non_positive_delta_is_a_no_op(now_ms):
    world = _busy_world()
    before = world_signature(world)

    report = advance(world, now_ms)

    assert not report.ran
    assert world_signature(world) == before
    assert world.last_update == 10_000.0
    assert world.total_play_time == 0.0


def test_elapsed_is_clamped():
    world = _world()
    world.resources["rice"] = 100.0

    report = advance(world, 10_000.0 + 60_000.0)

    assert report.elapsed_seconds == 5.0
    assert world.last_update == 70_000.0
    assert world.total_play_time == 60_000.0
    # 5 people eat 0.5 each per second for the clamped 5 seconds.
    assert world.resources["rice"] == pytest.approx(87.5)


def test_tick_runs_engines_in_order():
    world = _world()
    world.resources["rice"] = 0.0
    assert place_building(world, "ricePaddy", 5, 5).success
    assign_workers(world, world.building_at(5, 5), 2)

    advance(world, 11_000.0)

    # Production runs before population, so the harvest feeds people this tick.
    assert world.resources["rice"] == pytest.approx(3.0 - 2.5)
    assert world.population == 5.0


def test_long_run_keeps_invariants():
    world = _busy_world()
    world.tick_cfg = TickConfig(check_invariants=True)
    bus = EventBus()

    reports = run_for(world, 300, step_ms=500.0, bus=bus)

    assert len(reports) == 600
    assert world.last_update == pytest.approx(10_000.0 + 300_000.0)
    check_invariants(world)
    assert world.metrics.counter("ticks.processed") == 600
    assert bus.pending == 0
    assert tuple(bus.outbox) == ()


@pytest.mark.parametrize("step_ms", [0.0, -250.0])
def test_run_for_rejects_non_positive_steps(step_ms):
    world = _world()
    with pytest.raises(ValueError):
        run_for(world, 1.0, step_ms=step_ms)
    assert world.last_update == 10_000.0


def test_capacity_recomputed_each_tick():
    world = _world()
    world.resources.update({"gold": 800.0, "bamboo": 200.0})
    place_building(world, "warehouse", 5, 5)
    world.resources["rice"] = 450.0

    advance(world, 10_001.0)
    assert world.max_resources["rice"] == 500.0

    world.unlink_building(world.building_at(5, 5).building_id)
    advance(world, 10_002.0)
    assert world.max_resources["rice"] == 300.0
    assert world.resources["rice"] <= 300.0


def test_season_changes_with_the_clock():
    world = _world()
    world.tick_cfg = TickConfig(seconds_per_day=1.0, days_per_season=1)
    bus = EventBus()
    seen = []
    bus.subscribe(seen.append, event_type=SEASON_CHANGED)

    report = advance(world, 11_000.0, bus=bus)
    bus.dispatch()

    assert report.season_changed
    assert world.day_count == 1
    assert world.day_time == pytest.approx(0.5)
    assert world.season is Season.SUMMER
    assert seen[0].payload["season"] == "summer"


def test_invariant_checker_flags_defects():
    world = _world()
    world.resources["rice"] = world.max_resources["rice"] + 1
    with pytest.raises(InvariantViolation):
        check_invariants(world)

    world = _world()
    world.used_workers = world.workers + 1
    with pytest.raises(InvariantViolation):
        check_invariants(world)


def test_same_inputs_same_world():
    first = _busy_world()
    second = _busy_world()
    run_for(first, 30)
    run_for(second, 30)
    assert world_signature(first) == world_signature(second)
