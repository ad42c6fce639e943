"""Day/night and season clock.

The clock is presentation-facing state that the simulation owns. It advances
purely as a function of elapsed seconds and never reads the food balance.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Tuple

from worldbuilder.runtime import config


class Season(str, Enum):
    SPRING = "spring"
    SUMMER = "summer"
    AUTUMN = "autumn"
    WINTER = "winter"

    @classmethod
    def ordered(cls) -> Tuple["Season", ...]:
        return (cls.SPRING, cls.SUMMER, cls.AUTUMN, cls.WINTER)


def season_for_day(day_count: int, *, days_per_season: int = config.DAYS_PER_SEASON) -> Season:
    seasons = Season.ordered()
    return seasons[(max(0, int(day_count)) // max(1, int(days_per_season))) % len(seasons)]


def advance_clock(
    world: Any,
    elapsed_seconds: float,
    *,
    seconds_per_day: float = config.SECONDS_PER_DAY,
    days_per_season: int = config.DAYS_PER_SEASON,
) -> bool:
    """Advance ``day_time``/``day_count``/``season``; return True if the season changed."""

    if elapsed_seconds <= 0:
        return False
    total = float(world.day_time) + float(elapsed_seconds) / max(1e-9, float(seconds_per_day))
    whole_days = int(total)
    world.day_time = total - whole_days
    world.day_count += whole_days
    season = season_for_day(world.day_count, days_per_season=days_per_season)
    changed = season != world.season
    world.season = season
    return changed


__all__ = ["Season", "advance_clock", "season_for_day"]
