"""Static tables and grid helpers: terrain, buildings, tiers and quest templates."""

from .buildings import BUILDINGS, Building, BuildingDefinition, ProductionRule, get_building_def
from .levels import SETTLEMENT_LEVELS, LevelDefinition, LevelRewards
from .quests import QUEST_TEMPLATES, ObjectiveKind, Quest, QuestObjective, QuestReward, QuestStatus
from .resources import CURRENCY, FOOD, ResourceKind
from .terrain import Terrain, Tile, grid_from_rows

__all__ = [
    "BUILDINGS",
    "Building",
    "BuildingDefinition",
    "CURRENCY",
    "FOOD",
    "LevelDefinition",
    "LevelRewards",
    "ObjectiveKind",
    "ProductionRule",
    "QUEST_TEMPLATES",
    "Quest",
    "QuestObjective",
    "QuestReward",
    "QuestStatus",
    "ResourceKind",
    "SETTLEMENT_LEVELS",
    "Terrain",
    "Tile",
    "grid_from_rows",
]
