"""Settlement tier table.

Each tier lists the thresholds a settlement must meet, the building types it
unlocks and a one-time reward bundle. Gold thresholds are expressed in the
same unit the progression engine derives (per-second gold output divided by
sixty).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Tuple


@dataclass(frozen=True, slots=True)
class LevelRewards:
    gold: float = 0.0
    population: int = 0
    map_expansion: int = 0  # tiles revealed on each side of the explored window


@dataclass(frozen=True, slots=True)
class LevelDefinition:
    level: int
    name: str
    population_required: float
    building_types_required: int
    gold_production_required: float
    quests_required: int = 0
    unlocked_buildings: Tuple[str, ...] = ()
    rewards: LevelRewards = field(default_factory=LevelRewards)


SETTLEMENT_LEVELS: Mapping[int, LevelDefinition] = {
    1: LevelDefinition(
        level=1,
        name="Village",
        population_required=0,
        building_types_required=0,
        gold_production_required=0.0,
        unlocked_buildings=(
            "house",
            "ricePaddy",
            "teaPlantation",
            "fishingDock",
            "bambooGrove",
            "jadeMine",
            "warehouse",
            "market",
            "teaHouse",
            "premiumPagoda",
            "premiumPalace",
        ),
    ),
    2: LevelDefinition(
        level=2,
        name="Hamlet",
        population_required=15,
        building_types_required=3,
        gold_production_required=0.015,
        unlocked_buildings=("silkFarm", "watchtower"),
        rewards=LevelRewards(gold=100, population=5, map_expansion=2),
    ),
    3: LevelDefinition(
        level=3,
        name="Town",
        population_required=30,
        building_types_required=5,
        gold_production_required=0.03,
        unlocked_buildings=("dojo", "temple", "ironMine"),
        rewards=LevelRewards(gold=200, population=10, map_expansion=2),
    ),
    4: LevelDefinition(
        level=4,
        name="Large Town",
        population_required=50,
        building_types_required=7,
        gold_production_required=0.06,
        unlocked_buildings=("harbor", "shipyard", "blacksmith"),
        rewards=LevelRewards(gold=300, population=15, map_expansion=3),
    ),
    5: LevelDefinition(
        level=5,
        name="City",
        population_required=75,
        building_types_required=9,
        gold_production_required=0.1,
        unlocked_buildings=("castle", "inn"),
        rewards=LevelRewards(gold=500, population=20, map_expansion=3),
    ),
    6: LevelDefinition(
        level=6,
        name="Metropolis",
        population_required=100,
        building_types_required=11,
        gold_production_required=0.15,
        quests_required=1,
        rewards=LevelRewards(gold=750, population=25, map_expansion=4),
    ),
    7: LevelDefinition(
        level=7,
        name="Grand Metropolis",
        population_required=130,
        building_types_required=12,
        gold_production_required=0.2,
        quests_required=2,
        rewards=LevelRewards(gold=1000, population=30, map_expansion=4),
    ),
    8: LevelDefinition(
        level=8,
        name="Imperial City",
        population_required=160,
        building_types_required=14,
        gold_production_required=0.28,
        quests_required=3,
        rewards=LevelRewards(gold=1500, population=35, map_expansion=5),
    ),
    9: LevelDefinition(
        level=9,
        name="Empire Capital",
        population_required=190,
        building_types_required=16,
        gold_production_required=0.36,
        quests_required=4,
        rewards=LevelRewards(gold=2000, population=40, map_expansion=5),
    ),
    10: LevelDefinition(
        level=10,
        name="Legendary Kingdom",
        population_required=220,
        building_types_required=18,
        gold_production_required=0.45,
        quests_required=5,
        rewards=LevelRewards(gold=2500, population=50, map_expansion=6),
    ),
}

MIN_LEVEL = 1
MAX_LEVEL = max(SETTLEMENT_LEVELS)

# Fractions of a population reward handed to each role; (role, share, round-up).
REWARD_ROLE_SPLIT: Tuple[Tuple[str, float, bool], ...] = (
    ("farmer", 0.5, True),
    ("merchant", 0.2, True),
    ("warrior", 0.15, True),
    ("monk", 0.1, False),
    ("fisherman", 0.05, False),
)


__all__ = [
    "LevelDefinition",
    "LevelRewards",
    "MAX_LEVEL",
    "MIN_LEVEL",
    "REWARD_ROLE_SPLIT",
    "SETTLEMENT_LEVELS",
]
