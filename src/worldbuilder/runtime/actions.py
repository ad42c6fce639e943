"""Player actions: validate, then apply.

Every action returns an :class:`ActionResult`. Validation always runs to
completion before the first mutation, so a failed action leaves World State
untouched. Failures are ordinary values; only programming defects raise.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import math
from typing import Any, Dict

from worldbuilder.event import EventBus
from worldbuilder.runtime import config
from worldbuilder.runtime.capacity import add_capped
from worldbuilder.runtime.events import (
    BUILDING_DEMOLISHED,
    BUILDING_PLACED,
    RESOURCE_SOLD,
    SPEED_BOOST_APPLIED,
    TERRITORY_SCOUTED,
    WORKERS_ASSIGNED,
    WORKERS_REMOVED,
    emit,
)
from worldbuilder.runtime.production import has_terrain_nearby
from worldbuilder.runtime.progression import current_settlement_level, is_building_unlocked
from worldbuilder.runtime.quests import activate_quest, find_quest
from worldbuilder.runtime.telemetry import ensure_metrics
from worldbuilder.world.buildings import BUILDINGS, Building, get_building_def, is_known_building, market_price
from worldbuilder.world.quests import QuestStatus
from worldbuilder.world.resources import CURRENCY, resource_key
from worldbuilder.world.terrain import BUILDABLE_TERRAIN, rect_coords


class FailureReason(str, Enum):
    OK = "ok"
    INVALID_POSITION = "invalid_position"
    WRONG_TERRAIN = "wrong_terrain"
    TILE_OCCUPIED = "tile_occupied"
    BUILDING_LOCKED = "building_locked"
    INSUFFICIENT_RESOURCES = "insufficient_resources"
    INSUFFICIENT_PREMIUM = "insufficient_premium"
    MISSING_ADJACENCY = "missing_adjacency"
    NO_MARKET = "no_market"
    NOT_SELLABLE = "not_sellable"
    NOTHING_TO_SELL = "nothing_to_sell"
    NOTHING_TO_REMOVE = "nothing_to_remove"
    NO_WORKERS_AVAILABLE = "no_workers_available"
    NOTHING_TO_DEMOLISH = "nothing_to_demolish"
    UNKNOWN_BUILDING = "unknown_building"
    UNKNOWN_QUEST = "unknown_quest"
    INVALID_DIRECTION = "invalid_direction"


@dataclass(frozen=True, slots=True)
class ActionResult:
    success: bool
    message: str
    reason: FailureReason = FailureReason.OK

    @classmethod
    def ok(cls, message: str) -> "ActionResult":
        return cls(True, message, FailureReason.OK)

    @classmethod
    def fail(cls, reason: FailureReason, message: str) -> "ActionResult":
        return cls(False, message, reason)


class Direction(str, Enum):
    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"


@dataclass(slots=True)
class ScoutConfig:
    region_width: int = config.SCOUT_REGION_WIDTH
    region_height: int = config.SCOUT_REGION_HEIGHT
    default_gold_cost: float = config.SCOUT_DEFAULT_GOLD_COST


def _tally(world: Any, action: str, result: ActionResult) -> ActionResult:
    metrics = ensure_metrics(world)
    metrics.inc(f"actions.{action}.{'ok' if result.success else 'failed'}")
    if not result.success:
        metrics.inc(f"actions.failures.{result.reason.value}")
    return result


# ---------------------------------------------------------------------------
# Building placement
# ---------------------------------------------------------------------------


def can_afford(world: Any, building_type: str) -> bool:
    definition = get_building_def(building_type)
    return all(world.resources.get(resource, 0.0) >= (amount or 0.0) for resource, amount in definition.cost.items())


def can_place_building(world: Any, building_type: str, x: int, y: int) -> ActionResult:
    if not is_known_building(building_type):
        return ActionResult.fail(FailureReason.UNKNOWN_BUILDING, f"Unknown building type: {building_type}")
    tile = world.tile(x, y)
    if tile is None:
        return ActionResult.fail(FailureReason.INVALID_POSITION, "Invalid position")
    if tile.terrain != BUILDABLE_TERRAIN:
        return ActionResult.fail(FailureReason.WRONG_TERRAIN, f"Cannot build on {tile.terrain.value}")
    if tile.building_id is not None:
        return ActionResult.fail(FailureReason.TILE_OCCUPIED, "Tile already has a building")

    definition = get_building_def(building_type)
    if not is_building_unlocked(building_type, current_settlement_level(world)):
        return ActionResult.fail(FailureReason.BUILDING_LOCKED, f"{definition.name} is locked at this settlement level")
    if not can_afford(world, building_type):
        return ActionResult.fail(FailureReason.INSUFFICIENT_RESOURCES, "Not enough resources")
    if definition.premium and world.premium_currency < config.PREMIUM_BUILDING_GEM_COST:
        return ActionResult.fail(
            FailureReason.INSUFFICIENT_PREMIUM,
            f"Requires {config.PREMIUM_BUILDING_GEM_COST} gems (Premium)",
        )
    rule = definition.production
    if rule is not None and rule.requires is not None and not has_terrain_nearby(world, x, y, rule.requires):
        return ActionResult.fail(FailureReason.MISSING_ADJACENCY, f"Must be placed next to {rule.requires.value}")
    return ActionResult.ok("OK")


def place_building(world: Any, building_type: str, x: int, y: int, *, bus: EventBus | None = None) -> ActionResult:
    check = can_place_building(world, building_type, x, y)
    if not check.success:
        return _tally(world, "place_building", check)

    definition = get_building_def(building_type)
    for resource, amount in definition.cost.items():
        world.resources[resource] = world.resources.get(resource, 0.0) - (amount or 0.0)
    if definition.premium:
        world.premium_currency -= config.PREMIUM_BUILDING_GEM_COST

    building = Building(building_id=world.new_building_id(), type=building_type, x=x, y=y)
    world.link_building(building)
    emit(world, bus, BUILDING_PLACED, {"building_id": building.building_id, "type": building_type, "x": x, "y": y})
    return _tally(world, "place_building", ActionResult.ok(f"Built {definition.name}!"))


def demolish_building(world: Any, x: int, y: int, *, bus: EventBus | None = None) -> ActionResult:
    building = world.building_at(x, y)
    if building is None:
        return _tally(world, "demolish_building", ActionResult.fail(FailureReason.NOTHING_TO_DEMOLISH, "No building here"))

    definition = get_building_def(building.type)
    world.used_workers -= building.workers
    building.workers = 0

    refunds: Dict[str, float] = {}
    for resource, amount in definition.cost.items():
        refund = math.floor((amount or 0.0) * config.DEMOLISH_REFUND_RATIO)
        refunds[resource] = add_capped(world, resource, refund)

    world.unlink_building(building.building_id)
    emit(
        world,
        bus,
        BUILDING_DEMOLISHED,
        {"building_id": building.building_id, "type": building.type, "x": x, "y": y, "refund": refunds},
    )
    return _tally(
        world,
        "demolish_building",
        ActionResult.ok(f"Demolished {definition.name}. 50% resources refunded."),
    )


# ---------------------------------------------------------------------------
# Staffing
# ---------------------------------------------------------------------------


def _resolve(world: Any, building: Building | str) -> Building | None:
    building_id = building if isinstance(building, str) else building.building_id
    return world.buildings.get(building_id)


def assign_workers(world: Any, building: Building | str, count: int, *, bus: EventBus | None = None) -> ActionResult:
    target = _resolve(world, building)
    if target is None:
        return _tally(world, "assign_workers", ActionResult.fail(FailureReason.UNKNOWN_BUILDING, "No such building"))

    definition = get_building_def(target.type)
    available = world.workers - world.used_workers
    needed = definition.workers - target.workers
    to_assign = min(int(count), available, needed)
    if to_assign <= 0:
        return _tally(
            world,
            "assign_workers",
            ActionResult.fail(FailureReason.NO_WORKERS_AVAILABLE, "No workers available or building fully staffed"),
        )

    target.workers += to_assign
    world.used_workers += to_assign
    emit(world, bus, WORKERS_ASSIGNED, {"building_id": target.building_id, "count": to_assign})
    return _tally(world, "assign_workers", ActionResult.ok(f"Assigned {to_assign} worker(s)"))


def remove_workers(world: Any, building: Building | str, count: int, *, bus: EventBus | None = None) -> ActionResult:
    target = _resolve(world, building)
    if target is None:
        return _tally(world, "remove_workers", ActionResult.fail(FailureReason.UNKNOWN_BUILDING, "No such building"))

    to_remove = min(int(count), target.workers)
    if to_remove <= 0:
        return _tally(world, "remove_workers", ActionResult.fail(FailureReason.NOTHING_TO_REMOVE, "No workers to remove"))

    target.workers -= to_remove
    world.used_workers -= to_remove
    emit(world, bus, WORKERS_REMOVED, {"building_id": target.building_id, "count": to_remove})
    return _tally(world, "remove_workers", ActionResult.ok(f"Removed {to_remove} worker(s)"))


# ---------------------------------------------------------------------------
# Trade and premium
# ---------------------------------------------------------------------------


def sell_resource(world: Any, resource: str, amount: float, *, bus: EventBus | None = None) -> ActionResult:
    key = resource_key(resource)
    if key is None:
        return _tally(world, "sell_resource", ActionResult.fail(FailureReason.NOTHING_TO_SELL, f"Unknown resource: {resource}"))
    if key == CURRENCY:
        return _tally(world, "sell_resource", ActionResult.fail(FailureReason.NOT_SELLABLE, "Can't sell gold"))
    if not any(BUILDINGS[b.type].is_market for b in world.buildings.values()):
        return _tally(world, "sell_resource", ActionResult.fail(FailureReason.NO_MARKET, "Build a Market first!"))

    available = world.resources.get(key, 0.0)
    to_sell = min(float(amount), available)
    if to_sell <= 0:
        return _tally(world, "sell_resource", ActionResult.fail(FailureReason.NOTHING_TO_SELL, f"No {key} to sell"))

    gold_gained = math.floor(to_sell * market_price(key))
    world.resources[key] = available - to_sell
    credited = add_capped(world, CURRENCY, gold_gained)
    emit(world, bus, RESOURCE_SOLD, {"resource": key, "amount": to_sell, "gold": credited})
    return _tally(
        world,
        "sell_resource",
        ActionResult.ok(f"Sold {math.floor(to_sell)} {key} for {gold_gained} gold"),
    )


def apply_speed_boost(
    world: Any,
    building: Building | str,
    duration_ms: float = config.SPEED_BOOST_DEFAULT_MS,
    *,
    now_ms: float | None = None,
    bus: EventBus | None = None,
) -> ActionResult:
    """Double a building's output until ``now + duration``.

    ``now_ms`` defaults to the world's last tick timestamp.
    """

    target = _resolve(world, building)
    if target is None:
        return _tally(world, "apply_speed_boost", ActionResult.fail(FailureReason.UNKNOWN_BUILDING, "No such building"))
    if world.premium_currency < config.SPEED_BOOST_GEM_COST:
        return _tally(world, "apply_speed_boost", ActionResult.fail(FailureReason.INSUFFICIENT_PREMIUM, "Not enough gems"))

    now = world.last_update if now_ms is None else now_ms
    world.premium_currency -= config.SPEED_BOOST_GEM_COST
    target.speed_boost_until = float(now) + float(duration_ms)
    emit(world, bus, SPEED_BOOST_APPLIED, {"building_id": target.building_id, "until": target.speed_boost_until})
    return _tally(
        world,
        "apply_speed_boost",
        ActionResult.ok(f"Speed boost active for {duration_ms / 1000:g}s!"),
    )


# ---------------------------------------------------------------------------
# Exploration and quests
# ---------------------------------------------------------------------------


def scout_region(world: Any, direction: Direction, cfg: ScoutConfig) -> tuple[int, int, int, int]:
    """Inclusive rectangle revealed by scouting ``direction`` (may leave the map)."""

    bounds = world.explored_bounds()
    if bounds is None:
        cx, cy = world.width // 2, world.height // 2
        bounds = (cx, cy, cx, cy)
    x0, y0, x1, y1 = bounds
    w, h = cfg.region_width, cfg.region_height
    mid_x = (x0 + x1) // 2
    mid_y = (y0 + y1) // 2
    if direction is Direction.NORTH:
        return mid_x - w // 2, y0 - h, mid_x - w // 2 + w - 1, y0 - 1
    if direction is Direction.SOUTH:
        return mid_x - w // 2, y1 + 1, mid_x - w // 2 + w - 1, y1 + h
    if direction is Direction.EAST:
        return x1 + 1, mid_y - h // 2, x1 + w, mid_y - h // 2 + h - 1
    return x0 - w, mid_y - h // 2, x0 - 1, mid_y - h // 2 + h - 1


def scout_territory(
    world: Any,
    direction: Direction | str,
    cost: float | None = None,
    *,
    cfg: ScoutConfig | None = None,
    bus: EventBus | None = None,
) -> ActionResult:
    cfg = cfg or ScoutConfig()
    try:
        heading = Direction(direction)
    except ValueError:
        return _tally(world, "scout_territory", ActionResult.fail(FailureReason.INVALID_DIRECTION, f"Unknown direction: {direction}"))
    price = cfg.default_gold_cost if cost is None else float(cost)
    if world.resources.get(CURRENCY, 0.0) < price:
        return _tally(world, "scout_territory", ActionResult.fail(FailureReason.INSUFFICIENT_RESOURCES, "Not enough gold to scout"))

    region = scout_region(world, heading, cfg)
    world.resources[CURRENCY] = world.resources.get(CURRENCY, 0.0) - price
    revealed = world.reveal(rect_coords(*region))

    terrain_counts: Dict[str, int] = {}
    for x, y in rect_coords(*region):
        tile = world.tile(x, y)
        if tile is not None:
            terrain_counts[tile.terrain.value] = terrain_counts.get(tile.terrain.value, 0) + 1
    territory_id = f"{heading.value}-{len(world.discovered_territories) + 1}"
    world.discovered_territories[territory_id] = {
        "direction": heading.value,
        "region": list(region),
        "revealed": revealed,
        "terrain": dict(sorted(terrain_counts.items())),
    }
    ensure_metrics(world).inc("exploration.tiles_revealed", revealed)
    emit(world, bus, TERRITORY_SCOUTED, {"territory_id": territory_id, "direction": heading.value, "revealed": revealed})
    return _tally(world, "scout_territory", ActionResult.ok(f"Scouted {heading.value}: {revealed} new tiles revealed"))


def start_quest(world: Any, quest_id: str, *, bus: EventBus | None = None) -> ActionResult:
    quest = find_quest(world, quest_id)
    if quest is None:
        return _tally(world, "start_quest", ActionResult.fail(FailureReason.UNKNOWN_QUEST, f"Unknown quest: {quest_id}"))
    if quest.status is not QuestStatus.AVAILABLE:
        return _tally(
            world,
            "start_quest",
            ActionResult.fail(FailureReason.UNKNOWN_QUEST, f"{quest.name} is already {quest.status.value}"),
        )
    activate_quest(world, quest_id, bus=bus)
    return _tally(world, "start_quest", ActionResult.ok(f"Quest started: {quest.name}"))


__all__ = [
    "ActionResult",
    "Direction",
    "FailureReason",
    "ScoutConfig",
    "apply_speed_boost",
    "assign_workers",
    "can_afford",
    "can_place_building",
    "demolish_building",
    "place_building",
    "remove_workers",
    "scout_region",
    "scout_territory",
    "sell_resource",
    "start_quest",
]
