"""Building schema and the immutable building definition registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping

from worldbuilder.world.terrain import Terrain


@dataclass(frozen=True, slots=True)
class ProductionRule:
    output: str
    rate: float  # units per second when fully staffed
    requires: Terrain | None = None  # adjacent terrain with remaining resource


@dataclass(frozen=True, slots=True)
class BuildingDefinition:
    type: str
    name: str
    cost: Mapping[str, float]
    workers: int = 0
    production: ProductionRule | None = None
    housing: int = 0
    storage: Mapping[str, float] = field(default_factory=dict)
    premium: bool = False
    category: str = "general"
    description: str = ""

    @property
    def is_market(self) -> bool:
        return self.category == "market"


@dataclass(slots=True)
class Building:
    building_id: str
    type: str
    x: int
    y: int
    level: int = 1
    workers: int = 0
    production_progress: float = 0.0
    speed_boost_until: float | None = None
    is_starting_building: bool = False

    def boost_active(self, now_ms: float) -> bool:
        return self.speed_boost_until is not None and self.speed_boost_until > now_ms


def _define(**kwargs) -> BuildingDefinition:
    kwargs["cost"] = MappingProxyType(dict(kwargs.get("cost", {})))
    kwargs["storage"] = MappingProxyType(dict(kwargs.get("storage", {})))
    return BuildingDefinition(**kwargs)


_BUILDINGS: Dict[str, BuildingDefinition] = {
    "house": _define(
        type="house",
        name="House",
        cost={"gold": 30, "bamboo": 15},
        housing=4,
        description="Shelter for four villagers.",
    ),
    "ricePaddy": _define(
        type="ricePaddy",
        name="Rice Paddy",
        cost={"gold": 40, "bamboo": 10},
        workers=2,
        production=ProductionRule(output="rice", rate=3.0),
        description="Grows rice to feed the settlement.",
    ),
    "teaPlantation": _define(
        type="teaPlantation",
        name="Tea Plantation",
        cost={"gold": 60, "bamboo": 20},
        workers=2,
        production=ProductionRule(output="tea", rate=1.5),
        description="Terraced tea bushes.",
    ),
    "fishingDock": _define(
        type="fishingDock",
        name="Fishing Dock",
        cost={"gold": 50, "bamboo": 20},
        workers=2,
        production=ProductionRule(output="rice", rate=2.0, requires=Terrain.RIVER),
        description="Fishermen work the river. Place next to a river.",
    ),
    "bambooGrove": _define(
        type="bambooGrove",
        name="Bamboo Cutter",
        cost={"gold": 30},
        workers=1,
        production=ProductionRule(output="bamboo", rate=2.0, requires=Terrain.BAMBOO),
        description="Harvests bamboo. Place next to a bamboo grove.",
    ),
    "jadeMine": _define(
        type="jadeMine",
        name="Jade Mine",
        cost={"gold": 100, "bamboo": 30},
        workers=3,
        production=ProductionRule(output="jade", rate=0.5, requires=Terrain.MOUNTAIN),
        description="Extracts jade. Place next to a mountain.",
    ),
    "warehouse": _define(
        type="warehouse",
        name="Warehouse",
        cost={"gold": 60, "bamboo": 25},
        storage={"rice": 200, "tea": 100, "silk": 50, "jade": 50, "iron": 100, "bamboo": 200, "gold": 500},
        description="Raises storage capacity for every resource.",
    ),
    "market": _define(
        type="market",
        name="Market",
        cost={"gold": 100, "bamboo": 30},
        workers=1,
        category="market",
        description="Sell surplus goods for gold.",
    ),
    "teaHouse": _define(
        type="teaHouse",
        name="Tea House",
        cost={"gold": 120, "bamboo": 30, "tea": 20},
        workers=2,
        production=ProductionRule(output="gold", rate=1.0),
        description="Travellers pay gold for tea and rest.",
    ),
    "silkFarm": _define(
        type="silkFarm",
        name="Silk Farm",
        cost={"gold": 80, "bamboo": 25, "tea": 10},
        workers=3,
        production=ProductionRule(output="silk", rate=1.0),
        description="Silkworms and looms.",
    ),
    "watchtower": _define(
        type="watchtower",
        name="Watchtower",
        cost={"gold": 80, "bamboo": 30},
        workers=1,
        description="Keeps watch over the borders.",
    ),
    "dojo": _define(
        type="dojo",
        name="Dojo",
        cost={"gold": 180, "bamboo": 40, "iron": 20},
        workers=2,
        description="Trains warriors.",
    ),
    "temple": _define(
        type="temple",
        name="Temple",
        cost={"gold": 200, "bamboo": 50, "jade": 20},
        workers=1,
        housing=2,
        description="Home to monks and a place of blessing.",
    ),
    "ironMine": _define(
        type="ironMine",
        name="Iron Mine",
        cost={"gold": 120, "bamboo": 40},
        workers=3,
        production=ProductionRule(output="iron", rate=1.0, requires=Terrain.MOUNTAIN),
        description="Digs iron ore. Place next to a mountain.",
    ),
    "harbor": _define(
        type="harbor",
        name="Harbor",
        cost={"gold": 250, "bamboo": 60},
        workers=3,
        production=ProductionRule(output="gold", rate=2.0, requires=Terrain.RIVER),
        description="River trade brings gold. Place next to a river.",
    ),
    "shipyard": _define(
        type="shipyard",
        name="Shipyard",
        cost={"gold": 300, "bamboo": 80, "iron": 40},
        workers=4,
        description="Builds trading junks.",
    ),
    "blacksmith": _define(
        type="blacksmith",
        name="Blacksmith",
        cost={"gold": 150, "bamboo": 20, "iron": 30},
        workers=2,
        storage={"iron": 100},
        description="Forges tools and keeps an iron store.",
    ),
    "castle": _define(
        type="castle",
        name="Castle",
        cost={"gold": 600, "jade": 50, "iron": 80},
        housing=10,
        storage={"gold": 1000},
        description="Seat of the realm.",
    ),
    "inn": _define(
        type="inn",
        name="Inn",
        cost={"gold": 200, "bamboo": 40, "tea": 30},
        workers=2,
        housing=6,
        production=ProductionRule(output="gold", rate=1.5),
        description="Lodging for merchants.",
    ),
    "premiumPagoda": _define(
        type="premiumPagoda",
        name="Golden Pagoda",
        cost={"gold": 200},
        production=ProductionRule(output="gold", rate=3.0),
        premium=True,
        description="Generates gold with no workers. (Premium)",
    ),
    "premiumPalace": _define(
        type="premiumPalace",
        name="Jade Palace",
        cost={"gold": 300},
        housing=12,
        premium=True,
        description="Housing for twelve. (Premium)",
    ),
}

BUILDINGS: Mapping[str, BuildingDefinition] = MappingProxyType(_BUILDINGS)

MARKET_PRICES: Mapping[str, float] = MappingProxyType(
    {
        "rice": 1.0,
        "bamboo": 2.0,
        "tea": 3.0,
        "iron": 6.0,
        "silk": 8.0,
        "jade": 12.0,
    }
)
DEFAULT_MARKET_PRICE = 1.0


def get_building_def(building_type: str) -> BuildingDefinition:
    try:
        return BUILDINGS[building_type]
    except KeyError:
        raise KeyError(f"Unknown building type: {building_type}") from None


def is_known_building(building_type: str) -> bool:
    return building_type in BUILDINGS


def market_price(resource: str) -> float:
    return MARKET_PRICES.get(resource, DEFAULT_MARKET_PRICE)


__all__ = [
    "BUILDINGS",
    "Building",
    "BuildingDefinition",
    "DEFAULT_MARKET_PRICE",
    "MARKET_PRICES",
    "ProductionRule",
    "get_building_def",
    "is_known_building",
    "market_price",
]
