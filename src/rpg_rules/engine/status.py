"""Status engine: application, ticking, stat aggregation and cleansing.

Status lists are tuples kept in canonical order (status id, then
attribution key), so logically identical states serialize identically.
At most one instance exists per (status id, source actor, source skill).

Application resolves repeats through the definition's stacking mode:

* ``none``: the new instance is ignored.
* ``refresh``: duration and rank take the maximum; potency (stat mods,
  tick formula) comes from the new instance.
* ``stack``: the stack counter grows up to ``max_stacks``.
* ``intensify``: the intensity counter grows up to the intensity cap.

Stacks and intensity are independent counters. Only intensity scales
tick amounts and stat modifiers.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass

from rpg_rules.core.constants import IMMUNITY_WILDCARD
from rpg_rules.core.logging import get_logger
from rpg_rules.engine.stats import clamp, grow_base_stats
from rpg_rules.engine.tunables import Tunables
from rpg_rules.models.actor import Actor
from rpg_rules.models.enums import ApplyReason, Element, StackingMode, StatusCategory, TickKind
from rpg_rules.models.stats import StatModifier
from rpg_rules.models.status import (
    ActiveStatus,
    StatusEffectDefinition,
    StatusMetadata,
    StatusTickEvent,
)


logger = get_logger(__name__)


@dataclass(frozen=True)
class StatusApplyResult:
    """Outcome of one status application.

    Attributes:
        statuses: New status list in canonical order.
        applied: Whether the list changed.
        reason: What happened.
        status: The created or updated instance, if any.
    """

    statuses: tuple[ActiveStatus, ...]
    applied: bool
    reason: ApplyReason
    status: ActiveStatus | None = None


@dataclass(frozen=True)
class StatusTickResult:
    """Outcome of ticking a status list for one turn.

    Attributes:
        statuses: Surviving statuses in canonical order.
        events: Tick and expiry events in status order.
    """

    statuses: tuple[ActiveStatus, ...]
    events: tuple[StatusTickEvent, ...]

    @property
    def total_damage(self) -> int:
        """Sum of damage dealt by this tick."""
        return sum(event.amount for event in self.events if event.kind == TickKind.DAMAGE)

    @property
    def total_healing(self) -> int:
        """Sum of healing done by this tick."""
        return sum(event.amount for event in self.events if event.kind == TickKind.HEAL)


# =============================================================================
# Helpers
# =============================================================================


def sort_statuses(statuses: Iterable[ActiveStatus]) -> tuple[ActiveStatus, ...]:
    """Return statuses in canonical (id, attribution key) order."""
    return tuple(sorted(statuses, key=lambda status: status.sort_key))


def tick_element(status: ActiveStatus) -> Element:
    """Element of a status's ticks; heals default to holy, the rest to physical."""
    if status.tick_formula.element is not None:
        return status.tick_formula.element
    return Element.HOLY if status.category == StatusCategory.HOT else Element.PHYSICAL


def has_status_immunity(
    statuses: Sequence[ActiveStatus],
    status_id: str,
    category: StatusCategory | str,
) -> bool:
    """Check whether current statuses block an incoming status.

    An entry in any status's granted immunities blocks the incoming status
    when it equals the status id, its category, or the wildcard 'all'.
    Matching is case-insensitive.

    Args:
        statuses: Statuses currently on the target.
        status_id: Incoming status id.
        category: Incoming status category.

    Returns:
        True if the target is immune.
    """
    blocked = {status_id.strip().lower(), StatusCategory(category).value, IMMUNITY_WILDCARD}
    return any(blocked.intersection(status.metadata.immunities_granted) for status in statuses)


def resolve_status_metadata(definition: StatusEffectDefinition, tunables: Tunables) -> StatusMetadata:
    """Resolve the configuration an instance of a definition carries."""
    return StatusMetadata(
        max_stacks=definition.max_stacks,
        intensity_cap=definition.intensity_cap or tunables.statuses.default_intensity_cap,
        tick_rate=definition.tick_rate,
        stacking=definition.stacking,
        immunities_granted=definition.immunities_granted,
        rule_version=tunables.rule_version,
    )


def create_active_status(
    definition: StatusEffectDefinition,
    *,
    now_turn: int,
    source_actor_id: str = "",
    source_skill_id: str = "",
    rank: int = 1,
    tunables: Tunables,
) -> ActiveStatus:
    """Instantiate a definition as a fresh active status.

    The first tick is due ``tick_rate`` turns after application.
    """
    metadata = resolve_status_metadata(definition, tunables)
    return ActiveStatus(
        id=definition.id,
        source_actor_id=source_actor_id,
        source_skill_id=source_skill_id,
        category=definition.category,
        remaining_turns=definition.duration_turns,
        next_tick_turn=int(now_turn) + metadata.tick_rate,
        stacks=1,
        intensity=1,
        rank=max(1, int(rank)),
        stat_mods=definition.stat_mods,
        tick_formula=definition.tick_formula,
        dispellable=definition.dispellable,
        cleanse_tags=definition.cleanse_tags,
        metadata=metadata,
    )


# =============================================================================
# Application
# =============================================================================


def _merge_existing(existing: ActiveStatus, incoming: ActiveStatus) -> tuple[ActiveStatus, ApplyReason]:
    mode = incoming.metadata.stacking
    remaining = max(existing.remaining_turns, incoming.remaining_turns)
    rank = max(existing.rank, incoming.rank)

    if mode == StackingMode.REFRESH:
        updated = existing.model_copy(
            update={
                "remaining_turns": remaining,
                "next_tick_turn": incoming.next_tick_turn,
                "rank": rank,
                "stat_mods": incoming.stat_mods,
                "tick_formula": incoming.tick_formula,
                "dispellable": incoming.dispellable,
                "cleanse_tags": incoming.cleanse_tags,
                "metadata": incoming.metadata,
            }
        )
        return updated, ApplyReason.REFRESHED

    if mode == StackingMode.STACK:
        updated = existing.model_copy(
            update={
                "stacks": min(incoming.metadata.max_stacks, existing.stacks + 1),
                "remaining_turns": remaining,
                "next_tick_turn": min(existing.next_tick_turn, incoming.next_tick_turn),
                "rank": rank,
                "metadata": incoming.metadata,
            }
        )
        return updated, ApplyReason.STACKED

    # intensify
    updated = existing.model_copy(
        update={
            "intensity": min(incoming.metadata.intensity_cap, existing.intensity + 1),
            "remaining_turns": remaining,
            "rank": rank,
            "metadata": incoming.metadata,
        }
    )
    return updated, ApplyReason.INTENSIFIED


def apply_status_effect(
    statuses: Sequence[ActiveStatus],
    definition: StatusEffectDefinition,
    *,
    now_turn: int = 0,
    source_actor_id: str = "",
    source_skill_id: str = "",
    rank: int = 1,
    tunables: Tunables,
) -> StatusApplyResult:
    """Apply a status to a target's status list.

    Rejections are reported through ``reason`` rather than raised.

    Args:
        statuses: Target's current statuses.
        definition: Status to apply.
        now_turn: Current turn number.
        source_actor_id: Applying actor.
        source_skill_id: Applying skill.
        rank: Rank of the applying skill.
        tunables: Balance constants.

    Returns:
        The new status list with the application outcome.
    """
    current = sort_statuses(statuses)

    if has_status_immunity(current, definition.id, definition.category):
        logger.debug("status rejected", status_id=definition.id, reason=ApplyReason.IMMUNE.value)
        return StatusApplyResult(statuses=current, applied=False, reason=ApplyReason.IMMUNE)

    incoming = create_active_status(
        definition,
        now_turn=now_turn,
        source_actor_id=source_actor_id,
        source_skill_id=source_skill_id,
        rank=rank,
        tunables=tunables,
    )
    existing = next((status for status in current if status.stable_key == incoming.stable_key), None)

    if existing is None:
        return StatusApplyResult(
            statuses=sort_statuses((*current, incoming)),
            applied=True,
            reason=ApplyReason.APPLIED,
            status=incoming,
        )

    if definition.stacking == StackingMode.NONE:
        logger.debug("status rejected", status_id=definition.id, reason=ApplyReason.IGNORED_NONE.value)
        return StatusApplyResult(
            statuses=current, applied=False, reason=ApplyReason.IGNORED_NONE, status=existing
        )

    updated, reason = _merge_existing(existing, incoming)
    replaced = tuple(updated if status.stable_key == updated.stable_key else status for status in current)
    return StatusApplyResult(statuses=replaced, applied=True, reason=reason, status=updated)


# =============================================================================
# Ticking
# =============================================================================


def compute_tick_amount(
    status: ActiveStatus,
    source: Actor,
    target: Actor,
    tunables: Tunables,
) -> int:
    """Compute one tick of a periodic status.

    Damage ticks scale from the source's magic attack and are reduced by
    the target's resistance to the tick element. Heal ticks scale from the
    source's wisdom and are raised by the target's heal bonus. Both add a
    flat base plus a per-rank amount, are multiplied by intensity, and
    round up.

    Args:
        status: Ticking status.
        source: Actor credited with the status.
        target: Actor carrying the status.
        tunables: Balance constants.

    Returns:
        Non-negative integer amount; 0 for non-periodic statuses.
    """
    formula = status.tick_formula
    defaults = tunables.statuses
    rank_tick = defaults.default_rank_tick if formula.rank_tick is None else formula.rank_tick
    intensity = max(1, status.intensity)

    if status.category == StatusCategory.DOT:
        scale = defaults.default_dot_scale if formula.dot_scale is None else formula.dot_scale
        raw = source.stats_derived.magic_attack * scale + formula.base_tick + status.rank * rank_tick
        resist = clamp(
            target.resistances_derived.get(tick_element(status)),
            tunables.caps.resist_min,
            tunables.caps.resist_max,
        )
        amount = raw * (1.0 - resist) * intensity
    elif status.category == StatusCategory.HOT:
        scale = defaults.default_hot_scale if formula.hot_scale is None else formula.hot_scale
        wisdom = grow_base_stats(source.stats_base, source.stats_growth, source.level).wisdom
        raw = wisdom * scale + formula.base_tick + status.rank * rank_tick
        amount = raw * (1.0 + target.stats_derived.heal_bonus) * intensity
    else:
        return 0

    return max(0, math.ceil(round(amount, 6)))


def tick_statuses(
    statuses: Sequence[ActiveStatus],
    *,
    now_turn: int,
    target: Actor,
    source: Actor | None = None,
    sources: Mapping[str, Actor] | None = None,
    resolve_source: Callable[[ActiveStatus], Actor | None] | None = None,
    tunables: Tunables,
) -> StatusTickResult:
    """Advance every status on a target by one turn.

    Each status loses one remaining turn whether or not it ticks. Periodic
    statuses whose next tick is due emit a tick event. A status reaching
    zero remaining turns is dropped; if it ticked on that turn its tick
    event carries ``expired=True``, otherwise a separate amount-0 expiry
    event is emitted.

    The source of each status comes from ``resolve_source`` when given,
    then from ``sources`` by ``source_actor_id``, then falls back to
    ``source`` and finally to the target. Callers whose actors may share
    an id resolve sources themselves.

    Args:
        statuses: Target's current statuses.
        now_turn: Current turn number.
        target: Actor carrying the statuses.
        source: Default source actor.
        sources: Source actors keyed by id.
        resolve_source: Per-status source lookup tried first.
        tunables: Balance constants.

    Returns:
        Surviving statuses and the emitted events.
    """
    lookup = dict(sources or {})
    survivors: list[ActiveStatus] = []
    events: list[StatusTickEvent] = []

    for status in sort_statuses(statuses):
        remaining = max(0, status.remaining_turns - 1)
        expired = remaining == 0
        element = tick_element(status)
        ticked = status.category.is_periodic and now_turn >= status.next_tick_turn
        next_tick = status.next_tick_turn

        if ticked:
            resolved = resolve_source(status) if resolve_source is not None else None
            origin = resolved or lookup.get(status.source_actor_id) or source or target
            amount = compute_tick_amount(status, origin, target, tunables)
            kind = TickKind.DAMAGE if status.category == StatusCategory.DOT else TickKind.HEAL
            events.append(
                StatusTickEvent(
                    status_id=status.id,
                    source_actor_id=status.source_actor_id,
                    source_skill_id=status.source_skill_id,
                    category=status.category,
                    amount=amount,
                    kind=kind,
                    element=element,
                    remaining_turns=remaining,
                    expired=expired,
                )
            )
            next_tick = now_turn + status.metadata.tick_rate
        elif expired:
            events.append(
                StatusTickEvent(
                    status_id=status.id,
                    source_actor_id=status.source_actor_id,
                    source_skill_id=status.source_skill_id,
                    category=status.category,
                    amount=0,
                    kind=TickKind.EXPIRE,
                    element=element,
                    remaining_turns=0,
                    expired=True,
                )
            )

        if not expired:
            survivors.append(
                status.model_copy(update={"remaining_turns": remaining, "next_tick_turn": next_tick})
            )

    return StatusTickResult(statuses=sort_statuses(survivors), events=tuple(events))


# =============================================================================
# Aggregation and Cleansing
# =============================================================================


def stat_mods_from_statuses(statuses: Iterable[ActiveStatus]) -> StatModifier:
    """Combine the stat modifiers of active statuses.

    Each status's modifier is scaled by its intensity (at least 1).
    """
    return StatModifier.combine(
        *(status.stat_mods.scaled(max(1, status.intensity)) for status in statuses)
    )


def cleanse_statuses(
    statuses: Sequence[ActiveStatus],
    *,
    remove_ids: Iterable[str] = (),
    remove_control: bool | None = None,
    remove_debuffs: bool = False,
    remove_tags: Iterable[str] = (),
    keep_undispellable: bool = False,
    tunables: Tunables,
) -> tuple[ActiveStatus, ...]:
    """Remove statuses matching a cleanse request.

    A status is removed when its id is listed, it is a control status and
    control removal is on (tunables policy unless overridden), it is a
    debuff and debuff removal was requested, or it shares a cleanse tag
    with the request. Non-dispellable statuses survive when
    ``keep_undispellable`` is set. Id and tag matching is case-insensitive.

    Args:
        statuses: Target's current statuses.
        remove_ids: Status ids to remove.
        remove_control: Override for the control-removal policy.
        remove_debuffs: Remove every debuff.
        remove_tags: Cleanse tags to remove.
        keep_undispellable: Protect non-dispellable statuses.
        tunables: Balance constants.

    Returns:
        Surviving statuses in canonical order.
    """
    ids = {status_id.strip().lower() for status_id in remove_ids}
    tags = {tag.strip().lower() for tag in remove_tags}
    control = tunables.statuses.cleanse_removes_control if remove_control is None else remove_control

    def matches(status: ActiveStatus) -> bool:
        if keep_undispellable and not status.dispellable:
            return False
        return (
            status.id.lower() in ids
            or (control and status.category == StatusCategory.CONTROL)
            or (remove_debuffs and status.category == StatusCategory.DEBUFF)
            or bool(tags.intersection(status.cleanse_tags))
        )

    survivors = [status for status in statuses if not matches(status)]
    removed = len(statuses) - len(survivors)
    if removed:
        logger.debug("statuses cleansed", removed=removed, remaining=len(survivors))
    return sort_statuses(survivors)


__all__ = [
    "StatusApplyResult",
    "StatusTickResult",
    "sort_statuses",
    "tick_element",
    "has_status_immunity",
    "resolve_status_metadata",
    "create_active_status",
    "apply_status_effect",
    "compute_tick_amount",
    "tick_statuses",
    "stat_mods_from_statuses",
    "cleanse_statuses",
]
