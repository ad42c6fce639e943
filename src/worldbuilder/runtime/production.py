from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from worldbuilder.event import EventBus, EventPriority
from worldbuilder.runtime import config
from worldbuilder.runtime.capacity import add_capped
from worldbuilder.runtime.events import RESOURCE_PRODUCED, TILE_DEPLETED, emit
from worldbuilder.runtime.telemetry import ensure_metrics
from worldbuilder.world.buildings import Building, BuildingDefinition, get_building_def
from worldbuilder.world.terrain import Terrain, adjacent_tiles


@dataclass(slots=True)
class ProductionConfig:
    speed_boost_multiplier: float = config.SPEED_BOOST_MULTIPLIER
    depletion_ratio: float = config.DEPLETION_RATIO
    emit_production_events: bool = False


def ensure_production_config(world: Any) -> ProductionConfig:
    cfg = getattr(world, "prod_cfg", None)
    if isinstance(cfg, ProductionConfig):
        return cfg
    cfg = ProductionConfig()
    world.prod_cfg = cfg
    return cfg


def is_staffed(building: Building, definition: BuildingDefinition) -> bool:
    return definition.workers == 0 or building.workers >= definition.workers


def has_terrain_nearby(world: Any, x: int, y: int, terrain: Terrain) -> bool:
    return any(tile.terrain == terrain and tile.has_resource for tile in adjacent_tiles(world.grid, x, y))


def has_required_adjacency(world: Any, building: Building) -> bool:
    rule = get_building_def(building.type).production
    if rule is None or rule.requires is None:
        return True
    return has_terrain_nearby(world, building.x, building.y, rule.requires)


def deplete_adjacent_resource(
    world: Any,
    building: Building,
    produced: float,
    *,
    ratio: float = config.DEPLETION_RATIO,
    bus: EventBus | None = None,
) -> float:
    """Draw down neighbouring terrain in proportion to ``produced``.

    Returns the total terrain resource removed. A tile drained to zero reverts
    to plains and stops supporting adjacency.
    """

    rule = get_building_def(building.type).production
    if rule is None or rule.requires is None or produced <= 0 or ratio <= 0:
        return 0.0

    remaining = produced * ratio
    drained = 0.0
    for tile in adjacent_tiles(world.grid, building.x, building.y):
        if remaining <= 0:
            break
        if tile.terrain != rule.requires or not tile.has_resource:
            continue
        take = min(tile.resource_amount or 0.0, remaining)
        tile.resource_amount = (tile.resource_amount or 0.0) - take
        remaining -= take
        drained += take
        if (tile.resource_amount or 0.0) <= 0:
            terrain = tile.terrain.value
            tile.clear_resource()
            ensure_metrics(world).inc("production.tiles_depleted")
            emit(
                world,
                bus,
                TILE_DEPLETED,
                {"x": tile.x, "y": tile.y, "terrain": terrain, "building_id": building.building_id},
                priority=EventPriority.HIGH,
            )
    return drained


def process_production(world: Any, elapsed_seconds: float, *, now_ms: float, bus: EventBus | None = None) -> Dict[str, float]:
    """Run one production pass; return actual amounts added per resource."""

    cfg = ensure_production_config(world)
    metrics = ensure_metrics(world)
    produced_totals: Dict[str, float] = {}
    if elapsed_seconds <= 0:
        return produced_totals

    for building in list(world.buildings.values()):
        definition = get_building_def(building.type)
        rule = definition.production
        if rule is None:
            continue
        if not is_staffed(building, definition):
            metrics.inc("production.skipped_unstaffed")
            continue
        if rule.requires is not None and not has_required_adjacency(world, building):
            metrics.inc("production.skipped_adjacency")
            continue

        rate = rule.rate
        if building.boost_active(now_ms):
            rate *= cfg.speed_boost_multiplier

        actual = add_capped(world, rule.output, rate * elapsed_seconds)
        building.production_progress += actual
        if actual <= 0:
            continue
        produced_totals[rule.output] = produced_totals.get(rule.output, 0.0) + actual
        if rule.requires is not None:
            deplete_adjacent_resource(world, building, actual, ratio=cfg.depletion_ratio, bus=bus)
        if cfg.emit_production_events:
            emit(
                world,
                bus,
                RESOURCE_PRODUCED,
                {"building_id": building.building_id, "resource": rule.output, "amount": actual},
                priority=EventPriority.LOW,
            )

    for resource, amount in produced_totals.items():
        metrics.inc(f"production.output.{resource}", amount)
    metrics.set_gauge("production.last_pass", dict(sorted(produced_totals.items())))
    return produced_totals


def building_output_rate(building: Building) -> float:
    """Nominal per-second output scaled by staffing (full rate for workerless buildings)."""

    definition = get_building_def(building.type)
    rule = definition.production
    if rule is None:
        return 0.0
    if definition.workers == 0:
        return rule.rate
    if building.workers <= 0:
        return 0.0
    return rule.rate * building.workers / definition.workers


def production_rates(world: Any) -> Dict[str, float]:
    """Per-resource output per second, for display only."""

    rates: Dict[str, float] = {}
    for building in world.buildings.values():
        rule = get_building_def(building.type).production
        if rule is None:
            continue
        rate = building_output_rate(building)
        if rate > 0:
            rates[rule.output] = rates.get(rule.output, 0.0) + rate
    return rates


__all__ = [
    "ProductionConfig",
    "building_output_rate",
    "deplete_adjacent_resource",
    "ensure_production_config",
    "has_required_adjacency",
    "has_terrain_nearby",
    "is_staffed",
    "process_production",
    "production_rates",
]
