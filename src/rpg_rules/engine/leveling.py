"""XP curves, level resolution and point grants.

The XP needed to advance from level L is

    floor((base * L ** exponent + linear * L) * multiplier)

for the selected preset curve, and 0 once the level cap is reached. The
cap is ``tunables.levels.default_max_level``, which
``tunables_for_preset`` aligns with the preset's own cap.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from rpg_rules.engine.tunables import PointGrant, Tunables, XpCurve
from rpg_rules.models.enums import XpPreset


@dataclass(frozen=True)
class LevelGainResult:
    """Outcome of adding experience.

    Attributes:
        level: Level after the gain.
        xp: Experience into the new level.
        xp_to_next: Experience needed for the next level; 0 at the cap.
        levels_gained: Number of levels gained.
        stat_points: Attribute points granted by the gained levels.
        skill_points: Skill points granted by the gained levels.
    """

    level: int
    xp: int
    xp_to_next: int
    levels_gained: int
    stat_points: int
    skill_points: int


def xp_curve(tunables: Tunables, preset: XpPreset | str = XpPreset.STANDARD) -> XpCurve:
    """Look up the XP curve of a preset."""
    return tunables.levels.xp_presets.get(preset)


def max_level(tunables: Tunables) -> int:
    """Level cap in effect."""
    return tunables.levels.default_max_level


def xp_to_next(
    level: int,
    *,
    preset: XpPreset | str = XpPreset.STANDARD,
    tunables: Tunables,
) -> int:
    """Experience needed to advance from ``level`` to the next level.

    Args:
        level: Current level; values below 1 count as 1.
        preset: XP curve preset.
        tunables: Balance constants.

    Returns:
        Experience required, or 0 at the level cap.
    """
    level = max(1, int(level))
    if level >= max_level(tunables):
        return 0
    curve = xp_curve(tunables, preset)
    return math.floor((curve.base * level**curve.exponent + curve.linear * level) * curve.multiplier)


def xp_to_reach_level(
    level: int,
    *,
    preset: XpPreset | str = XpPreset.STANDARD,
    tunables: Tunables,
) -> int:
    """Total experience needed to go from level 1 to ``level``."""
    target = min(max(1, int(level)), max_level(tunables))
    return sum(xp_to_next(current, preset=preset, tunables=tunables) for current in range(1, target))


def points_granted_for_level(level: int, tunables: Tunables) -> PointGrant:
    """Points granted on reaching ``level``; level 1 grants nothing.

    Every level above 1 grants the per-level points plus any milestone
    bonus for that exact level.
    """
    level = int(level)
    if level <= 1:
        return PointGrant()
    levels = tunables.levels
    bonus = levels.milestone_bonuses.get(level, PointGrant())
    return PointGrant(
        stat_points=levels.stat_points_per_level + bonus.stat_points,
        skill_points=levels.skill_points_per_level + bonus.skill_points,
    )


def total_points_through_level(level: int, tunables: Tunables) -> PointGrant:
    """Points granted by every level from 2 through ``level``."""
    stat_points = skill_points = 0
    for current in range(2, max(1, int(level)) + 1):
        grant = points_granted_for_level(current, tunables)
        stat_points += grant.stat_points
        skill_points += grant.skill_points
    return PointGrant(stat_points=stat_points, skill_points=skill_points)


def resolve_level_from_xp(
    total_xp: int,
    *,
    preset: XpPreset | str = XpPreset.STANDARD,
    tunables: Tunables,
) -> tuple[int, int]:
    """Convert lifetime experience into a level.

    Args:
        total_xp: Experience collected since level 1.
        preset: XP curve preset.
        tunables: Balance constants.

    Returns:
        (level, experience into that level).
    """
    remaining = max(0, int(total_xp))
    level = 1
    while level < max_level(tunables):
        needed = xp_to_next(level, preset=preset, tunables=tunables)
        if needed <= 0 or remaining < needed:
            break
        remaining -= needed
        level += 1
    if level >= max_level(tunables):
        remaining = 0
    return level, remaining


def apply_xp_gain(
    level: int,
    xp: int,
    amount: int,
    *,
    preset: XpPreset | str = XpPreset.STANDARD,
    tunables: Tunables,
) -> LevelGainResult:
    """Add experience and resolve any level-ups.

    Negative gains count as zero. Experience stops accumulating at the
    level cap.

    Args:
        level: Current level.
        xp: Experience into the current level.
        amount: Experience gained.
        preset: XP curve preset.
        tunables: Balance constants.

    Returns:
        New level, leftover experience and points granted.
    """
    start = max(1, int(level))
    current = start
    pool = max(0, int(xp)) + max(0, int(amount))
    stat_points = skill_points = 0

    while current < max_level(tunables):
        needed = xp_to_next(current, preset=preset, tunables=tunables)
        if pool < needed:
            break
        pool -= needed
        current += 1
        grant = points_granted_for_level(current, tunables)
        stat_points += grant.stat_points
        skill_points += grant.skill_points

    if current >= max_level(tunables):
        pool = 0

    return LevelGainResult(
        level=current,
        xp=pool,
        xp_to_next=xp_to_next(current, preset=preset, tunables=tunables),
        levels_gained=current - start,
        stat_points=stat_points,
        skill_points=skill_points,
    )


__all__ = [
    "LevelGainResult",
    "xp_curve",
    "max_level",
    "xp_to_next",
    "xp_to_reach_level",
    "points_granted_for_level",
    "total_points_through_level",
    "resolve_level_from_xp",
    "apply_xp_gain",
]
