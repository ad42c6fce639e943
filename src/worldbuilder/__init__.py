"""Worldbuilder settlement simulation package public façade."""

from .event import Event, EventBus, EventPriority
from .runtime.actions import ActionResult, Direction, FailureReason
from .runtime.tick import advance, run_for
from .state import InvariantViolation, WorldState, check_invariants, create_initial_state
from .world.terrain import grid_from_rows

__all__ = [
    "ActionResult",
    "Direction",
    "Event",
    "EventBus",
    "EventPriority",
    "FailureReason",
    "InvariantViolation",
    "WorldState",
    "advance",
    "check_invariants",
    "create_initial_state",
    "grid_from_rows",
    "run_for",
]
