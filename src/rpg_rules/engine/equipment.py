"""Equipment aggregation, set bonuses, equip validation and item comparison.

Only data flows through here: items are summed into one StatModifier and
set bonuses are added for matching set tags. Equip requests are checked
and candidate items are scored against the equipped ones. Updating the
actor record lives in ``rpg_rules.engine.actors``.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from rpg_rules.models.actor import Actor
from rpg_rules.models.enums import EquipmentSlot
from rpg_rules.models.items import Equipment, Item
from rpg_rules.models.stats import Resistances, StatModifier, StatValues


@dataclass(frozen=True)
class SetBonus:
    """Bonus granted once enough pieces of a set are equipped.

    Attributes:
        pieces: Equipped pieces needed.
        mods: Modifier granted; every reached tier adds its own.
    """

    pieces: int
    mods: StatModifier


@dataclass(frozen=True)
class EquipValidation:
    """Result of an equip check.

    Attributes:
        ok: Whether the item may be equipped.
        reason: Why not, when ``ok`` is False.
        slot: Slot the item would occupy.
    """

    ok: bool
    reason: str | None = None
    slot: EquipmentSlot | None = None


DEFAULT_SET_BONUSES: Mapping[str, tuple[SetBonus, ...]] = {
    "stormcaller": (
        SetBonus(pieces=2, mods=StatModifier(flat=StatValues(speed=4, accuracy=6))),
        SetBonus(
            pieces=3,
            mods=StatModifier(
                flat=StatValues(speed=8, accuracy=10),
                resist=Resistances(lightning=0.08),
            ),
        ),
    ),
    "oakguard": (
        SetBonus(pieces=2, mods=StatModifier(flat=StatValues(defense=8, hp=24))),
        SetBonus(
            pieces=3,
            mods=StatModifier(
                flat=StatValues(defense=16, hp=60),
                resist=Resistances(stun=0.1),
            ),
        ),
    ),
}
"""Built-in equipment sets keyed by set tag."""


def aggregate_item_mods(items: Sequence[Item]) -> StatModifier:
    """Sum the stat modifiers of several items."""
    return StatModifier.combine(*(item.stats_flat for item in items))


def set_piece_counts(equipment: Equipment) -> dict[str, int]:
    """Count equipped pieces per set tag, sorted by tag."""
    counts = Counter(item.set_tag for item in equipment.items() if item.set_tag)
    return dict(sorted(counts.items()))


def apply_set_bonuses(
    equipment: Equipment,
    set_bonuses: Mapping[str, Sequence[SetBonus]] | None = None,
) -> StatModifier:
    """Compute the set bonuses earned by an equipment loadout.

    Tiers accumulate: a three-piece set earns both its two-piece and its
    three-piece bonus.

    Args:
        equipment: Equipped items.
        set_bonuses: Set definitions; the built-in sets when omitted.

    Returns:
        Combined modifier of every active set bonus.
    """
    definitions = DEFAULT_SET_BONUSES if set_bonuses is None else set_bonuses
    earned: list[StatModifier] = []
    for tag, count in set_piece_counts(equipment).items():
        earned.extend(bonus.mods for bonus in definitions.get(tag, ()) if count >= bonus.pieces)
    return StatModifier.combine(*earned)


def aggregate_equipment_mods(
    equipment: Equipment,
    set_bonuses: Mapping[str, Sequence[SetBonus]] | None = None,
) -> StatModifier:
    """Combine item modifiers and set bonuses of a loadout."""
    return aggregate_item_mods(equipment.items()).plus(apply_set_bonuses(equipment, set_bonuses))


def resolve_slot(equipment: Equipment, item: Item, slot: EquipmentSlot | str | None = None) -> EquipmentSlot:
    """Pick the slot an item goes into.

    Accessories without an explicit slot take the first empty accessory
    slot, falling back to the item's own slot.
    """
    if slot is not None:
        return EquipmentSlot(slot)
    if item.slot.is_accessory:
        for candidate in (EquipmentSlot.ACCESSORY1, EquipmentSlot.ACCESSORY2):
            if equipment.get(candidate) is None:
                return candidate
    return item.slot


def can_equip_item(actor: Actor, item: Item, slot: EquipmentSlot | str | None = None) -> EquipValidation:
    """Check whether an actor may equip an item.

    Args:
        actor: Prospective wearer.
        item: Item to equip.
        slot: Explicit target slot.

    Returns:
        Validation result naming the failing rule, if any.
    """
    target = resolve_slot(actor.equipment, item, slot)
    fits = item.slot == target or (item.slot.is_accessory and target.is_accessory)
    if not fits:
        return EquipValidation(ok=False, reason="wrong_slot", slot=target)
    if actor.level < item.level_req:
        return EquipValidation(ok=False, reason="level_too_low", slot=target)
    if item.class_tags:
        allowed = {tag.strip().lower() for tag in item.class_tags}
        if not allowed.intersection(actor.class_tags):
            return EquipValidation(ok=False, reason="class_restricted", slot=target)
    return EquipValidation(ok=True, slot=target)


# =============================================================================
# Comparison
# =============================================================================


COMPARE_WEIGHTS: Mapping[str, float] = {
    "hp": 1.25,
    "defense": 1.25,
    "magic_defense": 1.25,
    "attack": 1.35,
    "magic_attack": 1.35,
    "accuracy": 1.15,
    "evasion": 1.15,
    "speed": 1.2,
}
"""Score weight per stat when comparing items; other stats weigh 1."""

RESIST_COMPARE_WEIGHT = 1.1
"""Score weight of every resistance line, elemental or not."""


@dataclass(frozen=True)
class CompareDiff:
    """One stat that differs between two items.

    Keys name flat stats as-is ('attack'), percentage stats with a
    '_pct' suffix and elemental resistances with a '_resist' suffix.
    """

    key: str
    current: float
    candidate: float
    delta: float


@dataclass(frozen=True)
class ItemComparison:
    """Weighted stat comparison of a candidate against the equipped item.

    Attributes:
        slot: Slot of the candidate.
        score_delta: Weighted sum of every stat delta.
        better: Whether the candidate scores at least as well.
        diffs: Differing stats, largest absolute delta first.
        summary: One-line verdict.
    """

    slot: EquipmentSlot
    score_delta: float
    better: bool
    diffs: tuple[CompareDiff, ...]
    summary: str


def _comparable_stats(item: Item | None) -> dict[str, float]:
    if item is None:
        return {}
    mods = item.stats_flat
    values: dict[str, float] = {}
    for name in StatValues.model_fields:
        values[name] = getattr(mods.flat, name)
        values[f"{name}_pct"] = getattr(mods.pct, name)
    for name in Resistances.model_fields:
        values[f"{name}_resist"] = getattr(mods.resist, name)
    return values


def compare_weight(key: str) -> float:
    """Score weight of a comparison key."""
    stat = key.removesuffix("_pct")
    if stat.endswith("resist"):
        return RESIST_COMPARE_WEIGHT
    return COMPARE_WEIGHTS.get(stat, 1.0)


def compare_item(current: Item | None, candidate: Item) -> ItemComparison:
    """Compare a candidate item against the item it would replace.

    Deltas smaller than 0.0001 are ignored. The score is the sum of the
    deltas, each multiplied by its stat's weight; a score of zero still
    counts as better.

    Args:
        current: Equipped item, or None for an empty slot.
        candidate: Item being considered.

    Returns:
        The comparison, with diffs sorted by absolute delta.
    """
    now = _comparable_stats(current)
    new = _comparable_stats(candidate)
    diffs: list[CompareDiff] = []
    score = 0.0
    for key in new:
        delta = new[key] - now.get(key, 0.0)
        if abs(delta) < 1e-4:
            continue
        diffs.append(CompareDiff(key=key, current=now.get(key, 0.0), candidate=new[key], delta=delta))
        score += delta * compare_weight(key)

    diffs.sort(key=lambda diff: abs(diff.delta), reverse=True)
    better = score >= 0
    summary = f"Upgrade score +{score:.1f}" if better else f"Downgrade score {score:.1f}"
    return ItemComparison(
        slot=candidate.slot,
        score_delta=score,
        better=better,
        diffs=tuple(diffs),
        summary=summary,
    )


__all__ = [
    "SetBonus",
    "EquipValidation",
    "DEFAULT_SET_BONUSES",
    "aggregate_item_mods",
    "set_piece_counts",
    "apply_set_bonuses",
    "aggregate_equipment_mods",
    "resolve_slot",
    "can_equip_item",
    "COMPARE_WEIGHTS",
    "RESIST_COMPARE_WEIGHT",
    "CompareDiff",
    "ItemComparison",
    "compare_weight",
    "compare_item",
]
