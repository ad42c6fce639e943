"""Simulation engines, telemetry and the tick orchestrator.

Persistence (``runtime.snapshot``) and the headless CLI (``runtime.sim_cli``)
are imported from their own modules.
"""

from .actions import (
    ActionResult,
    Direction,
    FailureReason,
    apply_speed_boost,
    assign_workers,
    can_afford,
    can_place_building,
    demolish_building,
    place_building,
    remove_workers,
    scout_territory,
    sell_resource,
    start_quest,
)
from .production import production_rates
from .progression import building_unlock_level, current_settlement_level, level_progress
from .tick import TickConfig, TickReport, advance, run_for

__all__ = [
    "ActionResult",
    "Direction",
    "FailureReason",
    "TickConfig",
    "TickReport",
    "advance",
    "apply_speed_boost",
    "assign_workers",
    "building_unlock_level",
    "can_afford",
    "can_place_building",
    "current_settlement_level",
    "demolish_building",
    "level_progress",
    "place_building",
    "production_rates",
    "remove_workers",
    "run_for",
    "scout_territory",
    "sell_resource",
    "start_quest",
]
