from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Any

from worldbuilder.event import EventBus, EventPriority
from worldbuilder.runtime import config
from worldbuilder.runtime.events import POPULATION_GREW, POPULATION_STARVED, WORKERS_RECLAIMED, emit
from worldbuilder.runtime.telemetry import ensure_metrics
from worldbuilder.world.resources import FOOD


@dataclass(slots=True)
class PopulationConfig:
    food_per_capita: float = config.FOOD_CONSUMPTION_PER_CAPITA
    min_food_for_growth: float = config.MIN_FOOD_FOR_GROWTH
    growth_per_second: float = config.POPULATION_GROWTH_PER_SECOND
    starvation_per_second: float = config.STARVATION_PER_SECOND
    min_population: float = config.MIN_POPULATION


def ensure_population_config(world: Any) -> PopulationConfig:
    cfg = getattr(world, "pop_cfg", None)
    if isinstance(cfg, PopulationConfig):
        return cfg
    cfg = PopulationConfig()
    world.pop_cfg = cfg
    return cfg


def _placement_key(building: Any) -> tuple:
    _, _, raw = building.building_id.rpartition(":")
    return (0, int(raw), "") if raw.isdigit() else (1, 0, building.building_id)


def reclaim_workers(world: Any) -> int:
    """Unstaff workers one at a time until ``used_workers <= workers``.

    Buildings are drained in placement order. Returns the number freed.
    """

    freed = 0
    ordered = sorted(world.buildings.values(), key=_placement_key)
    while world.used_workers > world.workers:
        staffed = next((b for b in ordered if b.workers > 0), None)
        if staffed is None:
            # Counter drifted from the buildings; trust the buildings.
            world.used_workers = sum(b.workers for b in world.buildings.values())
            break
        staffed.workers -= 1
        world.used_workers -= 1
        freed += 1
    return freed


def process_population(world: Any, elapsed_seconds: float, *, bus: EventBus | None = None) -> float:
    """Feed, grow or starve the population; return the population delta."""

    if elapsed_seconds <= 0:
        return 0.0
    cfg = ensure_population_config(world)
    metrics = ensure_metrics(world)
    before = world.population

    food_needed = world.population * cfg.food_per_capita * elapsed_seconds
    food = world.resources.get(FOOD, 0.0)

    if food >= food_needed:
        world.resources[FOOD] = food - food_needed
        metrics.inc("population.food_consumed", food_needed)
        if world.resources[FOOD] > cfg.min_food_for_growth and world.population < world.max_population:
            growth = cfg.growth_per_second * elapsed_seconds
            world.population = min(world.population + growth, world.max_population)
            world.sync_workers()
            if math.floor(world.population) > math.floor(before):
                emit(world, bus, POPULATION_GREW, {"population": world.population})
    else:
        world.resources[FOOD] = 0.0
        metrics.inc("population.food_consumed", food)
        metrics.inc("population.starving_seconds", elapsed_seconds)
        loss = cfg.starvation_per_second * elapsed_seconds
        world.population = max(cfg.min_population, world.population - loss)
        world.sync_workers()
        freed = reclaim_workers(world)
        if freed:
            metrics.inc("population.workers_reclaimed", freed)
            emit(world, bus, WORKERS_RECLAIMED, {"count": freed, "workers": world.workers})
        emit(
            world,
            bus,
            POPULATION_STARVED,
            {"population": world.population, "lost": before - world.population},
            priority=EventPriority.HIGH,
        )

    metrics.set_gauge("population.current", world.population)
    return world.population - before


__all__ = [
    "PopulationConfig",
    "ensure_population_config",
    "process_population",
    "reclaim_workers",
]
