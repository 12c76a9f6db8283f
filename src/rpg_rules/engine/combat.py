"""Combat resolver: hit, crit and damage or healing of a skill use.

The stochastic resolver and the variance-free ``expected_damage`` share
the same pipeline helpers, so previews and real outcomes cannot drift.

Draw order per skill use is fixed and logged:

* damage skills draw ``<label>:hit``; on a hit they also draw
  ``<label>:crit`` and ``<label>:variance``. A miss costs one draw.
* healing skills never miss and draw ``<label>:crit`` then
  ``<label>:variance``.
"""

from __future__ import annotations

import math

from rpg_rules.core.logging import get_logger
from rpg_rules.engine.rng import SeededRng
from rpg_rules.engine.skills import compute_skill_power
from rpg_rules.engine.stats import clamp, grow_base_stats
from rpg_rules.engine.tunables import Tunables
from rpg_rules.models.actor import Actor
from rpg_rules.models.combat import DamageRoll
from rpg_rules.models.enums import DamageKind, Element
from rpg_rules.models.skills import Skill


logger = get_logger(__name__)


def _finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0


# =============================================================================
# Probabilities
# =============================================================================


def compute_hit_chance(
    attacker_accuracy: float,
    target_evasion: float,
    *,
    skill_hit_bonus: float = 0.0,
    tunables: Tunables,
) -> float:
    """Compute the probability that an attack connects.

    hit = clamp(hit_base + acc_per_point * (accuracy - evasion) + bonus,
    hit_min, hit_max). No build is ever unhittable or guaranteed to hit.

    Args:
        attacker_accuracy: Attacker's derived accuracy.
        target_evasion: Target's derived evasion.
        skill_hit_bonus: Skill's hit bonus as a fraction.
        tunables: Balance constants.

    Returns:
        Hit probability within the configured caps.
    """
    combat = tunables.combat
    value = (
        combat.hit_base
        + combat.acc_per_point * (_finite(attacker_accuracy) - _finite(target_evasion))
        + _finite(skill_hit_bonus)
    )
    return clamp(value, tunables.caps.hit_min, tunables.caps.hit_max)


def compute_crit_chance(
    attacker_crit: float,
    target_crit_resist: float,
    *,
    skill_crit_bonus: float = 0.0,
    tunables: Tunables,
) -> float:
    """Compute the critical-hit probability within the crit caps."""
    value = _finite(attacker_crit) + _finite(skill_crit_bonus) - _finite(target_crit_resist)
    return clamp(value, tunables.caps.crit_min, tunables.caps.crit_max)


# =============================================================================
# Pipeline
# =============================================================================


def default_damage_kind(skill: Skill) -> DamageKind:
    """Infer the damage kind of a skill from its tags and element."""
    if skill.is_heal:
        return DamageKind.HEALING
    return DamageKind.PHYSICAL if skill.element == Element.PHYSICAL else DamageKind.MAGICAL


def offensive_amount(attacker: Actor, kind: DamageKind, skill_power: float, tunables: Tunables) -> float:
    """Raw offensive value before mitigation.

    Physical: (attack + power) * (1 + strength * physical_str_scale).
    Magical and healing: (magic attack + power) * (1 + intelligence *
    magical_int_scale).
    """
    base = grow_base_stats(attacker.stats_base, attacker.stats_growth, attacker.level)
    derived = attacker.stats_derived
    if kind == DamageKind.PHYSICAL:
        return (derived.attack + skill_power) * (1.0 + base.strength * tunables.combat.physical_str_scale)
    return (derived.magic_attack + skill_power) * (1.0 + base.intelligence * tunables.combat.magical_int_scale)


def mitigated_amount(raw: float, target: Actor, kind: DamageKind, tunables: Tunables) -> float:
    """Apply the target's (already curved) defense or magic defense.

    mitigated = raw * K / (K + defense) with K the mitigation constant.
    """
    defense = target.stats_derived.defense if kind == DamageKind.PHYSICAL else target.stats_derived.magic_defense
    constant = tunables.combat.mitigation_constant
    return raw * constant / (constant + max(0.0, defense))


def resistance_factor(target: Actor, element: Element, tunables: Tunables) -> float:
    """Damage multiplier left after the target's elemental resistance."""
    resist = clamp(target.resistances_derived.get(element), tunables.caps.resist_min, tunables.caps.resist_max)
    return 1.0 - resist


def _pre_roll_amount(
    attacker: Actor,
    target: Actor,
    skill: Skill,
    kind: DamageKind,
    skill_power: float,
    tunables: Tunables,
) -> float:
    raw = offensive_amount(attacker, kind, skill_power, tunables)
    if kind == DamageKind.HEALING:
        return raw * (1.0 + target.stats_derived.heal_bonus)
    return mitigated_amount(raw, target, kind, tunables) * resistance_factor(target, skill.element, tunables)


def _crit_chance_for(attacker: Actor, target: Actor, skill: Skill, kind: DamageKind, tunables: Tunables) -> float:
    target_resist = 0.0 if kind == DamageKind.HEALING else target.stats_derived.crit_resist
    return compute_crit_chance(
        attacker.stats_derived.crit,
        target_resist,
        skill_crit_bonus=skill.crit_bonus,
        tunables=tunables,
    )


def _resolve_inputs(
    attacker: Actor,
    skill: Skill,
    skill_power: float | None,
    damage_kind: DamageKind | str | None,
    tunables: Tunables,
) -> tuple[DamageKind, float]:
    kind = default_damage_kind(skill) if damage_kind is None else DamageKind(damage_kind)
    power = compute_skill_power(skill, attacker.level, tunables=tunables) if skill_power is None else skill_power
    return kind, _finite(float(power))


# =============================================================================
# Resolution
# =============================================================================


def resolve_skill_use(
    rng: SeededRng,
    attacker: Actor,
    target: Actor,
    skill: Skill,
    *,
    skill_power: float | None = None,
    damage_kind: DamageKind | str | None = None,
    tunables: Tunables,
    label: str | None = None,
) -> DamageRoll:
    """Resolve one skill use with seeded rolls.

    Args:
        rng: Generator supplying and logging the draws.
        attacker: Acting actor.
        target: Receiving actor (the user itself for self heals).
        skill: Skill used.
        skill_power: Flat power; computed from the skill when omitted.
        damage_kind: Pipeline override; inferred from the skill when omitted.
        tunables: Balance constants.
        label: Prefix of the draw labels; '<attacker>:<skill>' by default.

    Returns:
        The resolved outcome with the roll-log indices it consumed.

    Raises:
        ValueError: If ``damage_kind`` is not a known damage kind.
    """
    kind, power = _resolve_inputs(attacker, skill, skill_power, damage_kind, tunables)
    prefix = label or f"{attacker.id}:{skill.id}"
    combat = tunables.combat
    indices: list[int] = []

    if kind == DamageKind.HEALING:
        hit_chance = 1.0
    else:
        hit_chance = compute_hit_chance(
            attacker.stats_derived.accuracy,
            target.stats_derived.evasion,
            skill_hit_bonus=skill.hit_bonus,
            tunables=tunables,
        )
        indices.append(rng.draws)
        if rng.next_float(f"{prefix}:hit", chance=hit_chance) >= hit_chance:
            logger.debug("skill missed", attacker=attacker.id, skill=skill.id, hit_chance=hit_chance)
            return DamageRoll(
                attacker_id=attacker.id,
                target_id=target.id,
                skill_id=skill.id,
                kind=kind,
                element=skill.element,
                hit=False,
                hit_chance=hit_chance,
                barrier_after=target.barrier,
                roll_indices=tuple(indices),
            )

    crit_chance = _crit_chance_for(attacker, target, skill, kind, tunables)
    indices.append(rng.draws)
    crit = rng.next_float(f"{prefix}:crit", chance=crit_chance) < crit_chance
    indices.append(rng.draws)
    variance_roll = rng.next_float(f"{prefix}:variance", pct=combat.variance_pct)
    variance = 1.0 + (variance_roll * 2.0 - 1.0) * combat.variance_pct

    amount = _pre_roll_amount(attacker, target, skill, kind, power, tunables)
    if crit:
        amount *= combat.crit_multiplier
    amount = math.floor(round(amount * variance, 6))

    if kind == DamageKind.HEALING:
        final = max(1, amount)
        return DamageRoll(
            attacker_id=attacker.id,
            target_id=target.id,
            skill_id=skill.id,
            kind=kind,
            element=skill.element,
            hit=True,
            crit=crit,
            hit_chance=hit_chance,
            crit_chance=crit_chance,
            amount=final,
            hp_change=final,
            barrier_after=target.barrier,
            roll_indices=tuple(indices),
        )

    final = max(combat.min_damage_on_hit, amount)
    absorbed = int(min(target.barrier, final))
    if absorbed > 0:
        hp_change = final - absorbed if combat.barrier_break_spillover else 0
    else:
        hp_change = final

    return DamageRoll(
        attacker_id=attacker.id,
        target_id=target.id,
        skill_id=skill.id,
        kind=kind,
        element=skill.element,
        hit=True,
        crit=crit,
        hit_chance=hit_chance,
        crit_chance=crit_chance,
        amount=final,
        absorbed=absorbed,
        hp_change=hp_change,
        barrier_after=max(0.0, target.barrier - absorbed),
        roll_indices=tuple(indices),
    )


def expected_damage(
    attacker: Actor,
    target: Actor,
    skill: Skill,
    *,
    skill_power: float | None = None,
    damage_kind: DamageKind | str | None = None,
    tunables: Tunables,
) -> float:
    """Variance-free expected outcome of a skill use.

    Runs the same pipeline as ``resolve_skill_use`` with the crit
    multiplier weighted by crit chance and, for damage, the result
    weighted by hit chance. No rolls are drawn.

    Args:
        attacker: Acting actor.
        target: Receiving actor.
        skill: Skill used.
        skill_power: Flat power; computed from the skill when omitted.
        damage_kind: Pipeline override; inferred from the skill when omitted.
        tunables: Balance constants.

    Returns:
        Expected damage (or healing) per use.
    """
    kind, power = _resolve_inputs(attacker, skill, skill_power, damage_kind, tunables)
    crit_chance = _crit_chance_for(attacker, target, skill, kind, tunables)
    crit_factor = 1.0 + crit_chance * (tunables.combat.crit_multiplier - 1.0)
    amount = _pre_roll_amount(attacker, target, skill, kind, power, tunables) * crit_factor

    if kind == DamageKind.HEALING:
        return amount
    hit_chance = compute_hit_chance(
        attacker.stats_derived.accuracy,
        target.stats_derived.evasion,
        skill_hit_bonus=skill.hit_bonus,
        tunables=tunables,
    )
    return amount * hit_chance


__all__ = [
    "compute_hit_chance",
    "compute_crit_chance",
    "default_damage_kind",
    "offensive_amount",
    "mitigated_amount",
    "resistance_factor",
    "resolve_skill_use",
    "expected_damage",
]
