"""Level thresholds and computation.

Levels 1-10 use hand-tuned cumulative XP thresholds. Above level 10 the
threshold grows geometrically: floor(12000 * 1.5 ** (level - 10)).
"""

from __future__ import annotations

import math

from greenkiddo.gamification.schemas import LevelState

DEFAULT_LEVEL_CAP = 100

# Cumulative XP required to reach levels 1..10 (index = level - 1)
BASE_THRESHOLDS: list[int] = [0, 100, 250, 500, 1000, 2000, 3500, 5500, 8000, 12000]
GROWTH_BASE = 12000
GROWTH_FACTOR = 1.5

LEVEL_TITLES: dict[int, str] = {
    1: "Seedling",
    2: "Sprout",
    3: "Sapling",
    4: "Young Tree",
    5: "Growing Tree",
    6: "Mature Tree",
    7: "Forest Guardian",
    8: "Eco Warrior",
    9: "Sustainability Master",
    10: "Green Champion",
}


def xp_for_level(level: int) -> int:
    """Cumulative XP required to reach a level."""
    if level < 1:
        raise ValueError(f"Level must be >= 1, got {level}")
    if level <= len(BASE_THRESHOLDS):
        return BASE_THRESHOLDS[level - 1]
    return math.floor(GROWTH_BASE * GROWTH_FACTOR ** (level - 10))


def get_level_title(level: int) -> str:
    if level <= 10:
        return LEVEL_TITLES.get(level, f"Level {level}")
    if level <= 20:
        return f"Eco Master {level - 10}"
    if level <= 30:
        return f"Sustainability Legend {level - 20}"
    return f"Green Hero {level}"


def calculate_level(total_xp: int, level_cap: int = DEFAULT_LEVEL_CAP) -> LevelState:
    """Compute the level state for a cumulative XP total.

    Pure: the same total always yields an identical LevelState.
    """
    if total_xp < 0:
        raise ValueError(f"Total XP must be >= 0, got {total_xp}")

    current = 1
    for level in range(2, level_cap + 1):
        if total_xp < xp_for_level(level):
            break
        current = level

    floor_xp = xp_for_level(current)
    xp_to_next = xp_for_level(current + 1) - floor_xp if current < level_cap else 0

    return LevelState(
        current=current,
        current_xp=total_xp - floor_xp,
        xp_to_next_level=xp_to_next,
        total_xp=total_xp,
        title=get_level_title(current),
    )


def list_levels(limit: int = 20) -> list[dict]:
    """Level table for display: level, title, cumulative XP."""
    return [
        {"level": level, "title": get_level_title(level), "cumulative": xp_for_level(level)}
        for level in range(1, limit + 1)
    ]
