"""Actor-level operations: recompute, equip, unequip and XP grants.

Each operation returns a new Actor with ``stats_derived`` and
``resistances_derived`` refreshed, so the cached snapshot always matches
the actor's base stats, equipment and statuses. ``stats_base`` itself is
never rewritten; level growth is applied on the fly.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from rpg_rules.core.exceptions import ValidationError
from rpg_rules.core.logging import get_logger
from rpg_rules.engine.equipment import SetBonus, aggregate_equipment_mods, can_equip_item
from rpg_rules.engine.leveling import apply_xp_gain
from rpg_rules.engine.stats import derive_stats, grow_base_stats
from rpg_rules.engine.status import stat_mods_from_statuses
from rpg_rules.engine.tunables import Tunables
from rpg_rules.models.actor import Actor
from rpg_rules.models.enums import EquipmentSlot, XpPreset
from rpg_rules.models.items import Item
from rpg_rules.models.stats import BaseStats


logger = get_logger(__name__)


def effective_base_stats(actor: Actor) -> BaseStats:
    """Base stats at the actor's current level."""
    return grow_base_stats(actor.stats_base, actor.stats_growth, actor.level)


def recompute_actor_stats(
    actor: Actor,
    tunables: Tunables,
    *,
    set_bonuses: Mapping[str, Sequence[SetBonus]] | None = None,
) -> Actor:
    """Refresh an actor's derived stats from its current inputs.

    Args:
        actor: Actor to refresh.
        tunables: Balance constants.
        set_bonuses: Set definitions; the built-in sets when omitted.

    Returns:
        A new actor with refreshed derived stats and resistances.
    """
    result = derive_stats(
        effective_base_stats(actor),
        aggregate_equipment_mods(actor.equipment, set_bonuses),
        stat_mods_from_statuses(actor.statuses),
        tunables,
        level=actor.level,
        resistances=actor.resistances,
    )
    return actor.model_copy(
        update={"stats_derived": result.derived, "resistances_derived": result.resistances}
    )


def equip_item(
    actor: Actor,
    item: Item,
    tunables: Tunables,
    *,
    slot: EquipmentSlot | str | None = None,
) -> Actor:
    """Equip an item, replacing whatever occupied the slot.

    Args:
        actor: Wearer.
        item: Item to equip.
        tunables: Balance constants.
        slot: Explicit slot; resolved from the item when omitted.

    Returns:
        A new actor wearing the item with refreshed stats.

    Raises:
        ValidationError: If the actor may not equip the item.
    """
    check = can_equip_item(actor, item, slot)
    if not check.ok or check.slot is None:
        raise ValidationError(
            f"Cannot equip {item.id!r}: {check.reason}",
            field_name="equipment",
            invalid_value=item.id,
        )
    updated = actor.model_copy(update={"equipment": actor.equipment.with_item(check.slot, item)})
    logger.debug("item equipped", actor=actor.id, item=item.id, slot=check.slot.value)
    return recompute_actor_stats(updated, tunables)


def unequip_slot(actor: Actor, slot: EquipmentSlot | str, tunables: Tunables) -> Actor:
    """Empty an equipment slot and refresh stats."""
    updated = actor.model_copy(update={"equipment": actor.equipment.with_item(slot, None)})
    return recompute_actor_stats(updated, tunables)


def grant_xp(
    actor: Actor,
    amount: int,
    tunables: Tunables,
    *,
    preset: XpPreset | str = XpPreset.STANDARD,
) -> Actor:
    """Add experience to an actor, applying level-ups and point grants.

    Args:
        actor: Actor gaining experience.
        amount: Experience gained.
        tunables: Balance constants.
        preset: XP curve preset.

    Returns:
        A new actor with level, experience, points and stats updated.
    """
    gain = apply_xp_gain(actor.level, actor.xp, amount, preset=preset, tunables=tunables)
    updated = actor.model_copy(
        update={
            "level": gain.level,
            "xp": gain.xp,
            "xp_to_next": gain.xp_to_next,
            "stat_points_available": actor.stat_points_available + gain.stat_points,
            "skill_points_available": actor.skill_points_available + gain.skill_points,
        }
    )
    if gain.levels_gained:
        logger.debug("actor leveled", actor=actor.id, level=gain.level, gained=gain.levels_gained)
        return recompute_actor_stats(updated, tunables)
    return updated


__all__ = [
    "effective_base_stats",
    "recompute_actor_stats",
    "equip_item",
    "unequip_slot",
    "grant_xp",
]
