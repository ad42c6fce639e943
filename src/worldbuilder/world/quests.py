"""Quest schema, quest templates and tutorial script."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Tuple


class QuestStatus(str, Enum):
    AVAILABLE = "available"
    ACTIVE = "active"
    COMPLETED = "completed"


class ObjectiveKind(str, Enum):
    BUILD_BUILDING = "buildBuilding"
    BUILD_TEMPLE = "buildTemple"
    GATHER_RESOURCE = "gatherResource"
    REACH_POPULATION = "reachPopulation"
    EXPLORE_AREA = "exploreArea"
    ESTABLISH_TRADE = "establishTrade"
    DEFEND_ATTACK = "defendAttack"


@dataclass(slots=True)
class TargetArea:
    x: int
    y: int
    radius: int


@dataclass(slots=True)
class QuestObjective:
    kind: ObjectiveKind
    description: str = ""
    building_type: str | None = None
    resource: str | None = None
    target_amount: float = 0.0
    target_area: TargetArea | None = None


@dataclass(slots=True)
class QuestReward:
    gold: float = 0.0
    resources: Dict[str, float] = field(default_factory=dict)
    population: float = 0.0


@dataclass(slots=True)
class Quest:
    quest_id: str
    name: str
    objectives: List[QuestObjective]
    reward: QuestReward
    description: str = ""
    category: str = "general"
    status: QuestStatus = QuestStatus.AVAILABLE
    progress: float = 0.0


# Gold floor for the trade objective: a market must exist and gold exceed it.
TRADE_GOLD_FLOOR = 100.0


QUEST_TEMPLATES: Mapping[str, Quest] = {
    "exploreMountain": Quest(
        quest_id="explore-mountain",
        name="Explore the Mountain Pass",
        description="Scout the northern mountains for jade and trade routes.",
        category="explore",
        objectives=[
            QuestObjective(
                kind=ObjectiveKind.EXPLORE_AREA,
                target_area=TargetArea(x=15, y=2, radius=3),
                description="Explore the northern mountain pass",
            )
        ],
        reward=QuestReward(gold=200, resources={"jade": 50}),
    ),
    "tradeRoute": Quest(
        quest_id="establish-trade",
        name="Establish Trade Route",
        description="Build a harbor and shipyard and stock silk for trade.",
        category="trade",
        objectives=[
            QuestObjective(kind=ObjectiveKind.BUILD_BUILDING, building_type="harbor", description="Build a Harbor"),
            QuestObjective(kind=ObjectiveKind.BUILD_BUILDING, building_type="shipyard", description="Build a Shipyard"),
            QuestObjective(
                kind=ObjectiveKind.GATHER_RESOURCE,
                resource="silk",
                target_amount=100,
                description="Gather 100 silk for trade",
            ),
        ],
        reward=QuestReward(gold=500, population=5),
    ),
    "buildTemple": Quest(
        quest_id="build-temple",
        name="Build a Sacred Temple",
        description="A temple attracts monks and blessings.",
        category="culture",
        objectives=[QuestObjective(kind=ObjectiveKind.BUILD_TEMPLE, description="Build a Temple")],
        reward=QuestReward(gold=300, resources={"jade": 10}, population=3),
    ),
    "defendRealm": Quest(
        quest_id="defend-realm",
        name="Prepare Defense",
        description="Raise a watchtower and a dojo against coming threats.",
        category="defense",
        objectives=[
            QuestObjective(kind=ObjectiveKind.DEFEND_ATTACK, description="Build a Watchtower and a Dojo"),
        ],
        reward=QuestReward(gold=250, population=2),
    ),
    "populationGrowth": Quest(
        quest_id="population-growth",
        name="Grow Your Population",
        description="Build housing and paddies until fifty people call the realm home.",
        category="population",
        objectives=[
            QuestObjective(
                kind=ObjectiveKind.REACH_POPULATION,
                target_amount=50,
                description="Reach a population of 50",
            )
        ],
        reward=QuestReward(gold=400, population=5),
    ),
    "luxuryGoods": Quest(
        quest_id="luxury-production",
        name="Master Luxury Goods",
        description="Run a tea plantation, a silk farm and a market.",
        category="trade",
        objectives=[
            QuestObjective(
                kind=ObjectiveKind.BUILD_BUILDING, building_type="teaPlantation", description="Build a Tea Plantation"
            ),
            QuestObjective(kind=ObjectiveKind.BUILD_BUILDING, building_type="silkFarm", description="Build a Silk Farm"),
            QuestObjective(kind=ObjectiveKind.BUILD_BUILDING, building_type="market", description="Build a Market"),
            QuestObjective(
                kind=ObjectiveKind.GATHER_RESOURCE,
                resource="tea",
                target_amount=50,
                description="Produce 50 tea",
            ),
        ],
        reward=QuestReward(gold=350, resources={"silk": 25}),
    ),
    "openMarket": Quest(
        quest_id="open-market",
        name="Open the Market",
        description="Trade surplus goods and keep a healthy treasury.",
        category="trade",
        objectives=[
            QuestObjective(
                kind=ObjectiveKind.ESTABLISH_TRADE,
                description=f"Own a market with more than {int(TRADE_GOLD_FLOOR)} gold",
            )
        ],
        reward=QuestReward(gold=150, resources={"tea": 20}),
    ),
}

STARTING_QUESTS: Tuple[str, ...] = (
    "tradeRoute",
    "buildTemple",
    "defendRealm",
    "populationGrowth",
    "luxuryGoods",
    "openMarket",
)


@dataclass(frozen=True, slots=True)
class TutorialStep:
    step: int
    message: str
    objective: str


TUTORIAL_STEPS: Tuple[TutorialStep, ...] = (
    TutorialStep(1, "Welcome to the Eastern Realm! Build a house to shelter your people.", "Build a house."),
    TutorialStep(2, "Good! Now build a Rice Paddy to feed the population.", "Build a Rice Paddy."),
    TutorialStep(3, "Excellent! Assign workers to the paddy.", "Assign workers to the Rice Paddy."),
    TutorialStep(4, "Your realm is growing! Keep building houses and paddies.", "Continue building your settlement."),
)


def new_quest(template_key: str) -> Quest:
    """Return an independent copy of a quest template."""

    return copy.deepcopy(QUEST_TEMPLATES[template_key])


def starting_quests() -> List[Quest]:
    return [new_quest(key) for key in STARTING_QUESTS]


__all__ = [
    "ObjectiveKind",
    "QUEST_TEMPLATES",
    "Quest",
    "QuestObjective",
    "QuestReward",
    "QuestStatus",
    "STARTING_QUESTS",
    "TRADE_GOLD_FLOOR",
    "TUTORIAL_STEPS",
    "TargetArea",
    "TutorialStep",
    "new_quest",
    "starting_quests",
]
