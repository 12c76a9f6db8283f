"""Skill cost and power formulas."""

from __future__ import annotations

import math

from rpg_rules.engine.stats import clamp
from rpg_rules.engine.tunables import Tunables
from rpg_rules.models.skills import Skill


def effective_rank(skill: Skill, rank: int | None = None) -> int:
    """Normalize a rank into [1, max_rank], defaulting to the skill's own rank."""
    value = skill.rank if rank is None else int(rank)
    return max(1, min(skill.max_rank, value))


def compute_skill_mp_cost(
    skill: Skill,
    actor_level: int,
    *,
    rank: int | None = None,
    tunables: Tunables,
) -> int:
    """Compute the mp cost of one skill use.

    cost = ceil(base + rank * mp_cost_scale + level * mp_level_scale),
    clamped to [0, mp_cost_max].

    Args:
        skill: Skill being used.
        actor_level: Level of the user.
        rank: Rank override; the skill's rank when omitted.
        tunables: Balance constants.

    Returns:
        Integer mp cost.
    """
    level_scale = (
        tunables.skills.default_mp_level_scale if skill.mp_level_scale is None else skill.mp_level_scale
    )
    raw = (
        skill.mp_cost_base
        + effective_rank(skill, rank) * skill.mp_cost_scale
        + max(1, int(actor_level)) * level_scale
    )
    return int(clamp(math.ceil(round(raw, 6)), 0, tunables.skills.mp_cost_max))


def compute_skill_power(
    skill: Skill,
    actor_level: int,
    *,
    rank: int | None = None,
    tunables: Tunables,
) -> int:
    """Compute the flat power a skill adds to the user's offensive stat.

    power = floor(base + rank * power_scale * rank_power_weight
    + floor(level * level_scale)), at least 0.

    Args:
        skill: Skill being used.
        actor_level: Level of the user.
        rank: Rank override; the skill's rank when omitted.
        tunables: Balance constants.

    Returns:
        Integer skill power.
    """
    level_scale = tunables.skills.default_level_scale if skill.level_scale is None else skill.level_scale
    rank_part = effective_rank(skill, rank) * skill.power_scale * tunables.skills.rank_power_weight
    level_part = math.floor(max(1, int(actor_level)) * level_scale)
    return max(0, math.floor(skill.base_power + rank_part + level_part))


def power_summary(skill: Skill, actor_level: int, *, tunables: Tunables) -> str:
    """One-line preview of a skill's power and cost at a level."""
    power = compute_skill_power(skill, actor_level, tunables=tunables)
    cost = compute_skill_mp_cost(skill, actor_level, tunables=tunables)
    name = skill.name or skill.id
    return f"{name} r{effective_rank(skill)}/{skill.max_rank}: power {power}, {cost} mp ({skill.element.value})"


__all__ = [
    "effective_rank",
    "compute_skill_mp_cost",
    "compute_skill_power",
    "power_summary",
]
