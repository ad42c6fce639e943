"""Event emission shared by the action layer and the engines."""

from __future__ import annotations

from typing import Any, Mapping

from worldbuilder.event import Event, EventBus, EventPriority
from worldbuilder.runtime.telemetry import record_event

BUILDING_PLACED = "BUILDING_PLACED"
BUILDING_DEMOLISHED = "BUILDING_DEMOLISHED"
WORKERS_ASSIGNED = "WORKERS_ASSIGNED"
WORKERS_REMOVED = "WORKERS_REMOVED"
RESOURCE_SOLD = "RESOURCE_SOLD"
SPEED_BOOST_APPLIED = "SPEED_BOOST_APPLIED"
TERRITORY_SCOUTED = "TERRITORY_SCOUTED"
RESOURCE_PRODUCED = "RESOURCE_PRODUCED"
TILE_DEPLETED = "TILE_DEPLETED"
POPULATION_GREW = "POPULATION_GREW"
POPULATION_STARVED = "POPULATION_STARVED"
WORKERS_RECLAIMED = "WORKERS_RECLAIMED"
QUEST_ACTIVATED = "QUEST_ACTIVATED"
QUEST_COMPLETED = "QUEST_COMPLETED"
LEVEL_UP = "LEVEL_UP"
SEASON_CHANGED = "SEASON_CHANGED"


def emit(
    world: Any,
    bus: EventBus | None,
    event_type: str,
    payload: Mapping[str, object] | None = None,
    *,
    priority: EventPriority = EventPriority.NORMAL,
) -> None:
    """Record ``event_type`` in the world's event ring and publish it on ``bus``."""

    body = dict(payload or {})
    record_event(world, {"type": event_type, **body})
    if bus is None:
        return
    bus.publish(
        Event(
            id=bus.next_id(),
            type=event_type,
            t_ms=float(getattr(world, "last_update", 0.0)),
            payload=body,
            priority=priority,
        )
    )


__all__ = [
    "BUILDING_DEMOLISHED",
    "BUILDING_PLACED",
    "LEVEL_UP",
    "POPULATION_GREW",
    "POPULATION_STARVED",
    "QUEST_ACTIVATED",
    "QUEST_COMPLETED",
    "RESOURCE_PRODUCED",
    "RESOURCE_SOLD",
    "SEASON_CHANGED",
    "SPEED_BOOST_APPLIED",
    "TERRITORY_SCOUTED",
    "TILE_DEPLETED",
    "WORKERS_ASSIGNED",
    "WORKERS_RECLAIMED",
    "WORKERS_REMOVED",
    "emit",
]
