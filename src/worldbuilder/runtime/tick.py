"""Tick orchestrator: one call advances the whole simulation to ``now_ms``.

Phase order is fixed: capacities, production, population, clock, quests,
progression. Elapsed time is clamped so a long pause (a backgrounded tab, a
suspended laptop) cannot dump hours of production into a single step.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from worldbuilder.event import EventBus
from worldbuilder.runtime import config
from worldbuilder.runtime.capacity import recompute_capacities
from worldbuilder.runtime.events import SEASON_CHANGED, emit
from worldbuilder.runtime.population import process_population
from worldbuilder.runtime.production import process_production
from worldbuilder.runtime.progression import LevelUpResult, check_level_up
from worldbuilder.runtime.quests import update_quest_progress
from worldbuilder.runtime.telemetry import ensure_metrics
from worldbuilder.runtime.timebase import advance_clock


@dataclass(slots=True)
class TickConfig:
    max_tick_seconds: float = config.MAX_TICK_SECONDS
    seconds_per_day: float = config.SECONDS_PER_DAY
    days_per_season: int = config.DAYS_PER_SEASON
    check_invariants: bool = False


def ensure_tick_config(world: Any) -> TickConfig:
    cfg = getattr(world, "tick_cfg", None)
    if isinstance(cfg, TickConfig):
        return cfg
    cfg = TickConfig()
    world.tick_cfg = cfg
    return cfg


@dataclass(slots=True)
class TickReport:
    elapsed_seconds: float = 0.0
    produced: Dict[str, float] = field(default_factory=dict)
    population_delta: float = 0.0
    season_changed: bool = False
    completed_quests: List[str] = field(default_factory=list)
    level: LevelUpResult | None = None

    @property
    def ran(self) -> bool:
        return self.elapsed_seconds > 0


def elapsed_seconds(world: Any, now_ms: float, *, max_tick_seconds: float = config.MAX_TICK_SECONDS) -> float:
    return min((float(now_ms) - float(world.last_update)) / 1000.0, float(max_tick_seconds))


def advance(world: Any, now_ms: float, *, bus: EventBus | None = None) -> TickReport:
    """Advance ``world`` to ``now_ms``; a non-positive delta is a no-op."""

    cfg = ensure_tick_config(world)
    elapsed = elapsed_seconds(world, now_ms, max_tick_seconds=cfg.max_tick_seconds)
    report = TickReport()
    if elapsed <= 0:
        return report
    report.elapsed_seconds = elapsed

    recompute_capacities(world)
    report.produced = process_production(world, elapsed, now_ms=now_ms, bus=bus)
    report.population_delta = process_population(world, elapsed, bus=bus)

    report.season_changed = advance_clock(
        world,
        elapsed,
        seconds_per_day=cfg.seconds_per_day,
        days_per_season=cfg.days_per_season,
    )
    if report.season_changed:
        emit(world, bus, SEASON_CHANGED, {"season": world.season.value, "day": world.day_count})

    report.completed_quests = update_quest_progress(world, bus=bus)
    report.level = check_level_up(world, bus=bus)

    world.total_play_time += float(now_ms) - float(world.last_update)
    world.last_update = float(now_ms)

    metrics = ensure_metrics(world)
    metrics.inc("ticks.processed")
    metrics.inc("ticks.seconds_simulated", elapsed)

    if cfg.check_invariants:
        from worldbuilder.state import check_invariants

        check_invariants(world)
    return report


def run_for(world: Any, seconds: float, *, step_ms: float = 1000.0, bus: EventBus | None = None) -> List[TickReport]:
    """Step the world forward ``seconds`` of game time in fixed increments.

    Each step dispatches ``bus`` and clears its outbox so a long run does not
    accumulate every published event.
    """

    if step_ms <= 0:
        raise ValueError(f"step_ms must be positive, got {step_ms}")
    reports: List[TickReport] = []
    target = float(world.last_update) + float(seconds) * 1000.0
    while world.last_update < target:
        now = min(target, float(world.last_update) + step_ms)
        reports.append(advance(world, now, bus=bus))
        if bus is not None:
            bus.dispatch()
            bus.clear_outbox()
    return reports


__all__ = [
    "TickConfig",
    "TickReport",
    "advance",
    "elapsed_seconds",
    "ensure_tick_config",
    "run_for",
]
