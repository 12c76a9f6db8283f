"""Stat deriver: base stats plus modifiers into derived combat stats.

Derivation is pure and total. Every stat goes through the same fixed
pipeline: raw value from the per-point coefficients, then all flat
modifiers, then all percent modifiers, then the stat's policy (floor,
clamp or diminishing-returns curve). Because modifiers are summed before
they are applied, the result does not depend on the order their sources
are listed in.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from rpg_rules.engine.tunables import Tunables
from rpg_rules.models.enums import Element, Stat
from rpg_rules.models.stats import BaseStats, DerivedStats, Resistances, StatModifier


@dataclass(frozen=True)
class DerivedStatsResult:
    """Output of the stat deriver.

    Attributes:
        derived: Derived combat statistics.
        resistances: Per-element resistances after curves and clamps.
    """

    derived: DerivedStats
    resistances: Resistances


def clamp(value: float, low: float, high: float) -> float:
    """Clamp a value into [low, high]; non-finite values become ``low``."""
    if not math.isfinite(value):
        return low
    return max(low, min(high, value))


def apply_diminishing(
    value: float,
    soft_cap: float,
    hard_cap: float,
    overflow_slope: float,
) -> float:
    """Apply a diminishing-returns curve to a mitigation stat.

    Values up to the soft cap pass through unchanged. Above it the excess
    is scaled by the overflow slope (itself clamped to [0, 1]) and the
    result never exceeds the hard cap.

    Args:
        value: Raw stat value.
        soft_cap: Breakpoint where returns start diminishing.
        hard_cap: Ceiling of the curve.
        overflow_slope: Fraction of the excess above the soft cap kept.

    Returns:
        The curved value; 0 for non-finite input.

    Example:
        >>> apply_diminishing(280, 180, 420, 0.35)
        215.0
    """
    if not math.isfinite(value):
        return 0.0
    if value <= soft_cap:
        return value
    slope = clamp(overflow_slope, 0.0, 1.0)
    return clamp(soft_cap + (value - soft_cap) * slope, 0.0, hard_cap)


def grow_base_stats(base: BaseStats, growth: BaseStats, level: int) -> BaseStats:
    """Apply per-level growth to level-1 base stats.

    Each axis becomes floor(base + growth * (level - 1)), at least 1.

    Args:
        base: Level-1 attributes.
        growth: Gain per level.
        level: Current level; values below 1 count as 1.

    Returns:
        Attributes at the given level.
    """
    steps = max(0, int(level) - 1)
    return BaseStats(
        **{
            name: max(1, math.floor(getattr(base, name) + getattr(growth, name) * steps))
            for name in BaseStats.model_fields
        }
    )


def _raw_stats(base: BaseStats, level: int, tunables: Tunables) -> dict[Stat, float]:
    coeff = tunables.stats
    return {
        Stat.HP: base.vitality * coeff.hp_per_vit + level * coeff.hp_per_level,
        Stat.MP: base.intelligence * coeff.mp_per_int + level * coeff.mp_per_level,
        Stat.ATTACK: base.strength * coeff.atk_per_str + level * coeff.atk_per_level,
        Stat.DEFENSE: base.vitality * coeff.def_per_vit,
        Stat.MAGIC_ATTACK: base.intelligence * coeff.matk_per_int + level * coeff.atk_per_level,
        Stat.MAGIC_DEFENSE: base.wisdom * coeff.mdef_per_wis,
        Stat.ACCURACY: coeff.acc_base + base.dexterity * coeff.acc_per_dex,
        Stat.EVASION: coeff.eva_base + base.dexterity * coeff.eva_per_dex,
        Stat.CRIT: base.dexterity * coeff.crit_per_dex,
        Stat.CRIT_RESIST: base.wisdom * coeff.crit_res_per_wis,
        Stat.RESIST: base.wisdom * coeff.res_per_wis,
        Stat.SPEED: coeff.speed_base + base.dexterity * coeff.speed_per_dex,
        Stat.HEAL_BONUS: base.wisdom * coeff.heal_bonus_per_wis,
        Stat.BARRIER: coeff.barrier_base,
    }


def _apply_policy(stat: Stat, value: float, tunables: Tunables) -> float:
    caps = tunables.caps
    curves = tunables.diminishing_returns
    slope = curves.overflow_slope

    if stat == Stat.HP:
        return float(max(1, math.floor(value)))
    if stat == Stat.MP:
        return float(max(0, math.floor(value)))
    if stat == Stat.DEFENSE:
        return apply_diminishing(max(0.0, value), curves.defense.soft_cap, curves.defense.hard_cap, slope)
    if stat == Stat.MAGIC_DEFENSE:
        curve = curves.magic_defense
        return apply_diminishing(max(0.0, value), curve.soft_cap, curve.hard_cap, slope)
    if stat == Stat.RESIST:
        curved = apply_diminishing(value, curves.resist.soft_cap, curves.resist.hard_cap, slope)
        return clamp(curved, caps.resist_min, caps.resist_max)
    if stat == Stat.ACCURACY:
        return max(1.0, value)
    if stat == Stat.CRIT:
        return clamp(value, caps.crit_min, caps.crit_max)
    if stat == Stat.CRIT_RESIST:
        return clamp(value, 0.0, caps.crit_resist_max)
    if stat == Stat.SPEED:
        return clamp(value, caps.speed_min, caps.speed_max)
    if stat == Stat.HEAL_BONUS:
        return clamp(value, 0.0, caps.heal_bonus_max)
    # attack, magic attack, evasion, barrier
    return max(0.0, value)


def curve_resistance(value: float, tunables: Tunables) -> float:
    """Run a resistance value through the resist curve and global clamp."""
    curve = tunables.diminishing_returns.resist
    curved = apply_diminishing(value, curve.soft_cap, curve.hard_cap, tunables.diminishing_returns.overflow_slope)
    return clamp(curved, tunables.caps.resist_min, tunables.caps.resist_max)


def derive_stats(
    base: BaseStats | None,
    equipment_mods: StatModifier | None,
    status_mods: StatModifier | None,
    tunables: Tunables,
    *,
    level: int = 1,
    resistances: Resistances | None = None,
) -> DerivedStatsResult:
    """Derive combat statistics.

    Missing inputs count as zero. Flat modifiers from all sources are
    added before any percent modifier is applied.

    Args:
        base: Primary attributes at the actor's current level.
        equipment_mods: Combined modifiers from equipment.
        status_mods: Combined modifiers from active statuses.
        tunables: Balance constants.
        level: Actor level used by per-level coefficients.
        resistances: Innate per-element resistances.

    Returns:
        Derived stats and per-element resistances.
    """
    base = base or BaseStats()
    level = max(1, int(level))
    mods = StatModifier.combine(equipment_mods or StatModifier(), status_mods or StatModifier())

    raw = _raw_stats(base, level, tunables)
    values: dict[str, float] = {}
    for stat in Stat:
        value = (raw[stat] + mods.flat.get(stat)) * (1.0 + mods.pct.get(stat))
        values[stat.value] = _apply_policy(stat, value, tunables)
    derived = DerivedStats(**values)

    innate = resistances or Resistances()
    wis_bonus = base.wisdom * tunables.stats.element_res_per_wis
    derived_resistances = Resistances(
        **{
            element.value: curve_resistance(innate.get(element) + wis_bonus + mods.resist.get(element), tunables)
            for element in Element
        }
    )
    return DerivedStatsResult(derived=derived, resistances=derived_resistances)


__all__ = [
    "DerivedStatsResult",
    "clamp",
    "apply_diminishing",
    "grow_base_stats",
    "curve_resistance",
    "derive_stats",
]
