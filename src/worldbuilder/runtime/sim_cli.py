"""Headless harness: advance a settlement for a while and print where it ended up."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

from worldbuilder.event import EventBus
from worldbuilder.runtime.production import production_rates
from worldbuilder.runtime.progression import level_progress
from worldbuilder.runtime.snapshot import load_snapshot, restore_world, save_world
from worldbuilder.runtime.tick import run_for
from worldbuilder.state import WorldState, create_initial_state
from worldbuilder.world.levels import SETTLEMENT_LEVELS
from worldbuilder.world.terrain import grid_from_rows

DEFAULT_MAP_ROWS = tuple(
    "." * 12 + "~" * 2 + "." * 8 + "^" * 2 + "." * 6 if y % 7 else "b" * 6 + "." * 24
    for y in range(30)
)


def _read_map(path: Path) -> list[str]:
    rows = [line.rstrip("\n") for line in path.read_text(encoding="utf-8").splitlines()]
    return [row for row in rows if row and not row.startswith("#")]


def build_world(args: argparse.Namespace) -> WorldState:
    if args.snapshot is not None:
        return restore_world(load_snapshot(args.snapshot))
    rows = _read_map(args.map) if args.map is not None else list(DEFAULT_MAP_ROWS)
    return create_initial_state(grid_from_rows(rows), seed=args.seed)


def format_summary(world: WorldState) -> list[str]:
    level_def = SETTLEMENT_LEVELS[world.settlement_level]
    lines = [
        f"Level {world.settlement_level} ({level_def.name}), day {world.day_count}, {world.season.value}",
        f"Population {world.population:.2f}/{world.max_population:.0f}, "
        f"workers {world.used_workers}/{world.workers}",
        "Resources: "
        + ", ".join(
            f"{key} {world.resources.get(key, 0.0):.1f}/{world.max_resources.get(key, 0.0):.0f}"
            for key in sorted(world.resources)
        ),
    ]
    rates = production_rates(world)
    if rates:
        lines.append("Rates/s: " + ", ".join(f"{key} {value:.2f}" for key, value in sorted(rates.items())))
    progress = level_progress(world)
    if progress.next_level is not None:
        lines.append(
            f"Next tier {progress.next_level.name}: pop {progress.population_progress:.0%}, "
            f"buildings {progress.building_diversity_progress:.0%}, gold {progress.gold_production_progress:.0%}"
        )
    for quest in world.quests:
        lines.append(f"  [{quest.status.value}] {quest.name} {quest.progress:.0%}")
    return lines


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the settlement simulation headless")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--snapshot", type=Path, help="Resume from a saved snapshot")
    source.add_argument("--map", type=Path, help="Text map, one terrain symbol per tile")
    parser.add_argument("--seconds", type=float, default=60.0, help="Simulated seconds to run")
    parser.add_argument("--step-ms", type=float, default=1000.0, help="Tick length in milliseconds")
    parser.add_argument("--seed", type=int, default=0, help="Map seed recorded on a new world")
    parser.add_argument("--save", type=Path, help="Write the final world to this path")
    parser.add_argument("--events", type=int, default=0, help="Print the last N recorded events")
    args = parser.parse_args(argv)

    if args.seconds < 0:
        parser.error("--seconds must be non-negative")
    if args.step_ms <= 0:
        parser.error("--step-ms must be positive")
    try:
        world = build_world(args)
    except FileNotFoundError as exc:
        parser.error(f"no such file: {exc}")
    except ValueError as exc:
        parser.error(str(exc))

    bus = EventBus()
    run_for(world, args.seconds, step_ms=args.step_ms, bus=bus)

    for line in format_summary(world):
        print(line)
    if args.events:
        for event in world.event_ring.tail(args.events):
            print(f"  event {event}")
    if args.save is not None:
        digest = save_world(world, args.save)
        print(f"Saved {args.save} sha256={digest}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
