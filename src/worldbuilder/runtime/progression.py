"""Settlement tier derivation and one-time level-up rewards.

The current tier is a pure function of World State. ``last_settlement_level``
only records the highest tier already rewarded, so a tier's reward is paid
once even if the settlement later dips below it and climbs back.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Any, FrozenSet, List, Mapping

from worldbuilder.event import EventBus, EventPriority
from worldbuilder.runtime.capacity import add_capped
from worldbuilder.runtime.events import LEVEL_UP, emit
from worldbuilder.runtime.production import building_output_rate
from worldbuilder.runtime.telemetry import ensure_metrics
from worldbuilder.world.buildings import get_building_def
from worldbuilder.world.levels import (
    MAX_LEVEL,
    MIN_LEVEL,
    REWARD_ROLE_SPLIT,
    SETTLEMENT_LEVELS,
    LevelDefinition,
)
from worldbuilder.world.resources import CURRENCY
from worldbuilder.world.terrain import rect_coords


@dataclass(slots=True)
class LevelProgress:
    current_level: int
    next_level: LevelDefinition | None
    population_progress: float
    building_diversity_progress: float
    gold_production_progress: float
    population_missing: float
    buildings_missing: int
    gold_missing: float


@dataclass(slots=True)
class LevelUpResult:
    leveled_up: bool
    previous_level: int
    new_level: int
    rewarded_levels: List[int]


def calculate_gold_production(world: Any) -> float:
    """Gold output of staffed producers, per second divided by 60."""

    per_second = 0.0
    for building in world.buildings.values():
        rule = get_building_def(building.type).production
        if rule is None or rule.output != CURRENCY:
            continue
        per_second += building_output_rate(building)
    return per_second / 60.0


def can_reach_level(world: Any, level_def: LevelDefinition) -> bool:
    if world.population < level_def.population_required:
        return False
    if len(world.distinct_building_types()) < level_def.building_types_required:
        return False
    if calculate_gold_production(world) < level_def.gold_production_required:
        return False
    if level_def.quests_required > 0 and len(world.completed_quests) < level_def.quests_required:
        return False
    return True


def current_settlement_level(world: Any, *, levels: Mapping[int, LevelDefinition] = SETTLEMENT_LEVELS) -> int:
    for level in sorted(levels, reverse=True):
        if can_reach_level(world, levels[level]):
            return level
    return MIN_LEVEL


def unlocked_buildings(level: int, *, levels: Mapping[int, LevelDefinition] = SETTLEMENT_LEVELS) -> FrozenSet[str]:
    unlocked: set[str] = set()
    for tier in range(MIN_LEVEL, int(level) + 1):
        level_def = levels.get(tier)
        if level_def is not None:
            unlocked.update(level_def.unlocked_buildings)
    return frozenset(unlocked)


def is_building_unlocked(building_type: str, level: int) -> bool:
    return building_type in unlocked_buildings(level)


def building_unlock_level(building_type: str) -> int | None:
    for level in sorted(SETTLEMENT_LEVELS):
        if building_type in SETTLEMENT_LEVELS[level].unlocked_buildings:
            return level
    return None


def _fraction(have: float, need: float) -> float:
    if need <= 0:
        return 1.0
    return min(1.0, have / need)


def level_progress(world: Any) -> LevelProgress:
    current = current_settlement_level(world)
    next_def = SETTLEMENT_LEVELS.get(current + 1) if current < MAX_LEVEL else None
    if next_def is None:
        return LevelProgress(current, None, 1.0, 1.0, 1.0, 0.0, 0, 0.0)

    diversity = len(world.distinct_building_types())
    gold = calculate_gold_production(world)
    return LevelProgress(
        current_level=current,
        next_level=next_def,
        population_progress=_fraction(world.population, next_def.population_required),
        building_diversity_progress=_fraction(diversity, next_def.building_types_required),
        gold_production_progress=_fraction(gold, next_def.gold_production_required),
        population_missing=max(0.0, next_def.population_required - world.population),
        buildings_missing=max(0, next_def.building_types_required - diversity),
        gold_missing=max(0.0, next_def.gold_production_required - gold),
    )


def _expand_explored_window(world: Any, tiles: int) -> int:
    bounds = world.explored_bounds()
    if bounds is None or tiles <= 0:
        return 0
    x0, y0, x1, y1 = bounds
    return world.reveal(rect_coords(x0 - tiles, y0 - tiles, x1 + tiles, y1 + tiles))


def apply_level_rewards(world: Any, level_def: LevelDefinition) -> None:
    rewards = level_def.rewards
    if rewards.gold:
        add_capped(world, CURRENCY, rewards.gold)
    if rewards.population:
        world.bonus_housing += rewards.population
        world.max_population += rewards.population
        world.population += rewards.population
        world.workers = int(math.floor(world.population))
        for role, share, round_up in REWARD_ROLE_SPLIT:
            raw = rewards.population * share
            world.population_types[role] = world.population_types.get(role, 0) + (
                math.ceil(raw) if round_up else math.floor(raw)
            )
    if rewards.map_expansion:
        _expand_explored_window(world, rewards.map_expansion)


def check_level_up(world: Any, *, bus: EventBus | None = None) -> LevelUpResult:
    """Derive the tier and pay the reached tier's reward when it rises.

    Tiers skipped over in a single check are not paid; ``last_settlement_level``
    only records the highest tier already rewarded.
    """

    previous = world.last_settlement_level
    current = current_settlement_level(world)
    world.settlement_level = current
    if current <= previous:
        return LevelUpResult(False, previous, current, [])

    apply_level_rewards(world, SETTLEMENT_LEVELS[current])
    rewarded = [current]
    world.last_settlement_level = current
    ensure_metrics(world).inc("progression.level_ups")
    emit(
        world,
        bus,
        LEVEL_UP,
        {
            "previous_level": previous,
            "new_level": current,
            "name": SETTLEMENT_LEVELS[current].name,
            "rewarded_levels": list(rewarded),
        },
        priority=EventPriority.HIGH,
    )
    return LevelUpResult(True, previous, current, rewarded)


__all__ = [
    "LevelProgress",
    "LevelUpResult",
    "apply_level_rewards",
    "building_unlock_level",
    "calculate_gold_production",
    "can_reach_level",
    "check_level_up",
    "current_settlement_level",
    "is_building_unlocked",
    "level_progress",
    "unlocked_buildings",
]
