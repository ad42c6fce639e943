"""Derived capacities: housing and storage recomputed from placed buildings."""

from __future__ import annotations

from typing import Any, Dict, Mapping

from worldbuilder.runtime import config
from worldbuilder.world.buildings import get_building_def
from worldbuilder.world.resources import BASE_STORAGE


def calculate_max_population(world: Any, *, base_housing: int = config.BASE_HOUSING) -> float:
    capacity = float(base_housing) + float(getattr(world, "bonus_housing", 0.0))
    for building in world.buildings.values():
        capacity += get_building_def(building.type).housing
    return capacity


def calculate_max_storage(world: Any, *, base: Mapping[str, float] = BASE_STORAGE) -> Dict[str, float]:
    storage = {key: float(value) for key, value in base.items()}
    for building in world.buildings.values():
        for resource, bonus in get_building_def(building.type).storage.items():
            storage[resource] = storage.get(resource, 0.0) + float(bonus)
    return storage


def clamp_resources(world: Any) -> None:
    """Clamp every pool into ``[0, max_resources[k]]``."""

    for resource, amount in list(world.resources.items()):
        cap = world.max_resources.get(resource, 0.0)
        world.resources[resource] = min(max(0.0, amount), cap)


def add_capped(world: Any, resource: str, amount: float) -> float:
    """Add ``amount`` to ``resource`` without exceeding capacity; return what was added."""

    current = world.resources.get(resource, 0.0)
    cap = world.max_resources.get(resource, 0.0)
    new_amount = min(current + amount, cap)
    new_amount = max(new_amount, min(current, cap))
    world.resources[resource] = new_amount
    return new_amount - current


def recompute_capacities(world: Any) -> None:
    world.max_population = calculate_max_population(world)
    world.max_resources = calculate_max_storage(world)
    clamp_resources(world)


__all__ = [
    "add_capped",
    "calculate_max_population",
    "calculate_max_storage",
    "clamp_resources",
    "recompute_capacities",
]
