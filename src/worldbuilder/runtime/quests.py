from __future__ import annotations

from typing import Any, List

from worldbuilder.event import EventBus, EventPriority
from worldbuilder.runtime.capacity import add_capped
from worldbuilder.runtime.events import QUEST_ACTIVATED, QUEST_COMPLETED, emit
from worldbuilder.runtime.telemetry import ensure_metrics
from worldbuilder.world.buildings import BUILDINGS
from worldbuilder.world.quests import (
    TRADE_GOLD_FLOOR,
    TUTORIAL_STEPS,
    ObjectiveKind,
    Quest,
    QuestObjective,
    QuestStatus,
)
from worldbuilder.world.resources import CURRENCY
from worldbuilder.world.terrain import coord_key, in_bounds, rect_coords


def find_quest(world: Any, quest_id: str) -> Quest | None:
    return next((q for q in world.quests if q.quest_id == quest_id), None)


def _has_market(world: Any) -> bool:
    return any(BUILDINGS[b.type].is_market for b in world.buildings.values())


def is_objective_complete(world: Any, objective: QuestObjective) -> bool:
    """Evaluate ``objective`` against the current world.

    Explore objectives require every on-map tile of the target square to be
    explored; tiles of the square that fall outside the grid are ignored.
    """

    kind = objective.kind
    if kind is ObjectiveKind.BUILD_BUILDING:
        return objective.building_type is not None and world.has_building_type(objective.building_type)
    if kind is ObjectiveKind.BUILD_TEMPLE:
        return world.has_building_type("temple")
    if kind is ObjectiveKind.GATHER_RESOURCE:
        if objective.resource is None:
            return False
        return world.resources.get(objective.resource, 0.0) >= objective.target_amount
    if kind is ObjectiveKind.REACH_POPULATION:
        return world.population >= objective.target_amount
    if kind is ObjectiveKind.EXPLORE_AREA:
        area = objective.target_area
        if area is None:
            return False
        corners = (area.x - area.radius, area.y - area.radius, area.x + area.radius, area.y + area.radius)
        return all(
            coord_key(x, y) in world.explored_areas for x, y in rect_coords(*corners) if in_bounds(world.grid, x, y)
        )
    if kind is ObjectiveKind.ESTABLISH_TRADE:
        return _has_market(world) and world.resources.get(CURRENCY, 0.0) > TRADE_GOLD_FLOOR
    if kind is ObjectiveKind.DEFEND_ATTACK:
        return world.has_building_type("watchtower") and world.has_building_type("dojo")
    return False


def quest_progress(world: Any, quest: Quest) -> float:
    if not quest.objectives:
        return 1.0
    done = sum(1 for objective in quest.objectives if is_objective_complete(world, objective))
    return min(1.0, done / len(quest.objectives))


def activate_quest(world: Any, quest_id: str, *, bus: EventBus | None = None) -> bool:
    quest = find_quest(world, quest_id)
    if quest is None or quest.status is not QuestStatus.AVAILABLE:
        return False
    quest.status = QuestStatus.ACTIVE
    emit(world, bus, QUEST_ACTIVATED, {"quest_id": quest_id})
    return True


def complete_quest(world: Any, quest_id: str, *, bus: EventBus | None = None) -> bool:
    """Mark an active quest completed and pay its reward exactly once."""

    quest = find_quest(world, quest_id)
    if quest is None or quest.status is not QuestStatus.ACTIVE:
        return False
    quest.status = QuestStatus.COMPLETED
    quest.progress = 1.0
    world.completed_quests.append(quest.quest_id)

    reward = quest.reward
    if reward.gold:
        add_capped(world, CURRENCY, reward.gold)
    for resource, amount in sorted(reward.resources.items()):
        add_capped(world, resource, amount)
    if reward.population:
        world.population = max(world.population, min(world.population + reward.population, world.max_population))
        world.sync_workers()

    ensure_metrics(world).inc("quests.completed")
    emit(
        world,
        bus,
        QUEST_COMPLETED,
        {"quest_id": quest.quest_id, "name": quest.name, "gold": reward.gold},
        priority=EventPriority.HIGH,
    )
    return True


def update_quest_progress(world: Any, *, bus: EventBus | None = None) -> List[str]:
    """Re-evaluate every open quest; return ids completed during this pass.

    Objectives are checked from scratch each pass. The stored ``progress``
    never moves backwards; completion needs every objective true right now.
    """

    completed: List[str] = []
    for quest in list(world.quests):
        if quest.status is QuestStatus.COMPLETED:
            continue
        fresh = quest_progress(world, quest)
        quest.progress = max(quest.progress, fresh)
        if fresh >= 1.0 and quest.status is QuestStatus.ACTIVE:
            if complete_quest(world, quest.quest_id, bus=bus):
                completed.append(quest.quest_id)
    return completed


def tutorial_message(step: int) -> str | None:
    entry = next((t for t in TUTORIAL_STEPS if t.step == step), None)
    return entry.message if entry is not None else None


def advance_tutorial(world: Any) -> int:
    """Move to the next tutorial step; 0 marks the tutorial finished."""

    if world.tutorial_step <= 0:
        return 0
    world.tutorial_step += 1
    if world.tutorial_step > len(TUTORIAL_STEPS):
        world.tutorial_step = 0
    return world.tutorial_step


__all__ = [
    "activate_quest",
    "advance_tutorial",
    "complete_quest",
    "find_quest",
    "is_objective_complete",
    "quest_progress",
    "tutorial_message",
    "update_quest_progress",
]
