"""Deterministic loot generation.

Every random decision is drawn from a sub-stream derived from
``(seed, label)``, so the same seed and labels always produce the same
items. A batch gives item ``i`` its own sub-seed ``derive_seed(seed,
"loot:i")`` and rerolls use fresh labels, so no sub-seed is ever reused.

Budget allocation: an item's total stat budget is the rarity budget
scaled by level. It is split into one implicit slot line plus the
rarity's affix count. Every part except the last takes a drawn share of
what is left and the last part takes the remainder, so the budget is
always allocated exactly once.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence

from rpg_rules.core.constants import MAX_LOOT_REROLLS
from rpg_rules.core.logging import get_logger
from rpg_rules.engine.rng import SeededRng, derive_seed, normalize_seed, seeded_float
from rpg_rules.engine.tunables import AffixDefinition, Tunables
from rpg_rules.models.enums import BindPolicy, EquipmentSlot, Rarity, RollKind
from rpg_rules.models.items import Item, LootBatch, StatRoll
from rpg_rules.models.stats import Resistances, StatModifier, StatValues


logger = get_logger(__name__)


SLOT_BASE_NAMES: Mapping[EquipmentSlot, str] = {
    EquipmentSlot.WEAPON: "Blade",
    EquipmentSlot.OFFHAND: "Buckler",
    EquipmentSlot.HEAD: "Helm",
    EquipmentSlot.CHEST: "Cuirass",
    EquipmentSlot.LEGS: "Greaves",
    EquipmentSlot.ACCESSORY1: "Ring",
    EquipmentSlot.ACCESSORY2: "Amulet",
}
"""Base item name per slot."""

RARITY_PREFIXES: Mapping[Rarity, str] = {
    Rarity.COMMON: "Plain",
    Rarity.UNCOMMON: "Sturdy",
    Rarity.RARE: "Gleaming",
    Rarity.EPIC: "Storied",
    Rarity.LEGENDARY: "Fabled",
    Rarity.MYTHIC: "Mythforged",
}
"""Name prefix per rarity tier."""


# =============================================================================
# Rolls
# =============================================================================


def roll_rarity(seed: int, label: str, tunables: Tunables) -> Rarity:
    """Roll a rarity tier from the configured weights.

    One draw from the ``(seed, label)`` sub-stream is mapped onto the
    cumulative weights in tier order; the first bucket the draw falls
    under wins and zero-weight tiers never do.

    Args:
        seed: Parent seed.
        label: Purpose of the roll.
        tunables: Balance constants.

    Returns:
        The rolled rarity.
    """
    rng = SeededRng(derive_seed(seed, label))
    return rng.weighted_pick(tunables.loot.rarity_weights.pairs(), "rarity")


def level_budget(rarity: Rarity | str, level: int, tunables: Tunables) -> float:
    """Total stat budget of an item: rarity budget * (1 + level * budget_per_level)."""
    loot = tunables.loot
    return loot.rarity_stat_budget.get(rarity) * (1.0 + max(1, int(level)) * loot.budget_per_level)


def slot_weights(
    *,
    level: int,
    preferred_slots: Iterable[EquipmentSlot | str] = (),
    equipped_scores: Mapping[EquipmentSlot | str, float] | None = None,
    recent_slots: Iterable[EquipmentSlot | str] = (),
    tunables: Tunables,
) -> tuple[tuple[EquipmentSlot, float], ...]:
    """Compute smart-drop slot weights.

    Base slot weights are boosted for slots the actor can use and for
    slots whose equipped item scores below a common item of this level,
    and reduced for slots that already dropped in the same batch.

    Args:
        level: Actor level.
        preferred_slots: Slots the actor can use.
        equipped_scores: Item power of the equipped item per slot.
        recent_slots: Slots already dropped in this batch.
        tunables: Balance constants.

    Returns:
        (slot, weight) pairs in slot order.
    """
    loot = tunables.loot
    preferred = {EquipmentSlot(slot) for slot in preferred_slots}
    recent = {EquipmentSlot(slot) for slot in recent_slots}
    scores = {EquipmentSlot(slot): float(score) for slot, score in (equipped_scores or {}).items()}
    baseline = level_budget(Rarity.COMMON, level, tunables)

    weights: list[tuple[EquipmentSlot, float]] = []
    for slot in EquipmentSlot:
        weight = loot.slot_base_weights.get(slot)
        if slot in preferred:
            weight *= loot.smart_drop_usable_bonus
        if equipped_scores is not None and scores.get(slot, 0.0) < baseline:
            weight *= loot.smart_drop_undergeared_bonus
        if slot in recent:
            weight *= loot.duplicate_avoidance_penalty
        weights.append((slot, weight))
    return tuple(weights)


def roll_slot(
    seed: int,
    label: str,
    *,
    level: int = 1,
    preferred_slots: Iterable[EquipmentSlot | str] = (),
    equipped_scores: Mapping[EquipmentSlot | str, float] | None = None,
    recent_slots: Iterable[EquipmentSlot | str] = (),
    tunables: Tunables,
) -> EquipmentSlot:
    """Roll an equipment slot with smart-drop weighting."""
    weights = slot_weights(
        level=level,
        preferred_slots=preferred_slots,
        equipped_scores=equipped_scores,
        recent_slots=recent_slots,
        tunables=tunables,
    )
    return SeededRng(derive_seed(seed, label)).weighted_pick(weights, "slot")


# =============================================================================
# Items
# =============================================================================


def _bind_policy(rarity: Rarity, tunables: Tunables) -> BindPolicy:
    if rarity.tier >= tunables.loot.bind_on_pickup_tier:
        return BindPolicy.ON_PICKUP
    if rarity.tier >= tunables.loot.bind_on_equip_tier:
        return BindPolicy.ON_EQUIP
    return BindPolicy.NONE


def _affix_roll(affix: AffixDefinition, budget: float) -> StatRoll:
    value = budget / affix.cost
    # resistances are fractions and need finer rounding than point stats
    digits = 4 if affix.element is not None else 2
    return StatRoll(
        stat=affix.stat,
        element=affix.element,
        value=round(value, digits),
        budget=budget,
        kind=RollKind.AFFIX,
        label=affix.label,
    )


def _modifier_from_rolls(rolls: Sequence[StatRoll]) -> StatModifier:
    flat: Counter[str] = Counter()
    resist: Counter[str] = Counter()
    for roll in rolls:
        if roll.stat is not None:
            flat[roll.stat.value] += roll.value
        elif roll.element is not None:
            resist[roll.element.value] += roll.value
    return StatModifier(flat=StatValues(**flat), resist=Resistances(**resist))


def split_budget(rng: SeededRng, total: float, parts: int, tunables: Tunables) -> tuple[float, ...]:
    """Split a budget into ``parts`` shares that sum to ``total``.

    Each part but the last takes a drawn fraction in
    [affix_share_min, affix_share_max] of the remaining budget.
    """
    loot = tunables.loot
    remaining = total
    shares: list[float] = []
    for index in range(max(1, parts) - 1):
        part = remaining * rng.uniform(loot.affix_share_min, loot.affix_share_max, f"budget:{index}")
        shares.append(part)
        remaining -= part
    shares.append(remaining)
    return tuple(shares)


def generate_loot_item(
    seed: int,
    label: str,
    *,
    level: int,
    rarity: Rarity | str,
    slot: EquipmentSlot | str,
    tunables: Tunables,
) -> Item:
    """Generate one item of a given rarity and slot.

    Draw order: one affix pick per affix (without repetition), then one
    budget share per part except the last.

    Args:
        seed: Parent seed.
        label: Purpose of the roll; together with the seed it fixes the item.
        level: Actor level the item is scaled for.
        rarity: Rarity tier.
        slot: Equipment slot.
        tunables: Balance constants.

    Returns:
        The generated item.
    """
    rng = SeededRng(derive_seed(seed, label))
    level = max(1, int(level))
    rarity = Rarity(rarity)
    slot = EquipmentSlot(slot)
    loot = tunables.loot

    pool = list(loot.affix_pool)
    affixes: list[AffixDefinition] = []
    for index in range(min(loot.affix_count_by_rarity.get(rarity), len(pool))):
        affixes.append(pool.pop(rng.randint(0, len(pool) - 1, f"affix:{index}")))

    total = level_budget(rarity, level, tunables)
    budgets = split_budget(rng, total, len(affixes) + 1, tunables)

    implicit = loot.slot_implicits.get(slot)
    rolls = [
        StatRoll(
            stat=implicit.stat,
            value=round(budgets[0] / implicit.cost, 2),
            budget=budgets[0],
            kind=RollKind.IMPLICIT,
            label=SLOT_BASE_NAMES[slot],
        )
    ]
    rolls.extend(_affix_roll(affix, budget) for affix, budget in zip(affixes, budgets[1:], strict=True))

    name = f"{RARITY_PREFIXES[rarity]} {SLOT_BASE_NAMES[slot]}"
    if affixes:
        name = f"{name} {affixes[0].label}"

    price_base = total + level * tunables.economy.price_per_level
    price = max(1, math.floor(price_base * loot.rarity_price_mult.get(rarity)))
    return Item(
        id=f"itm-{derive_seed(seed, f'{label}:id'):08x}",
        name=name,
        slot=slot,
        rarity=rarity,
        level_req=max(1, level - 1),
        stats_flat=_modifier_from_rolls(rolls),
        rolls=tuple(rolls),
        item_power=round(total, 2),
        bind_policy=_bind_policy(rarity, tunables),
        drop_tier=rarity.tier,
        value_buy=price,
        value_sell=max(1, math.floor(price * tunables.economy.sell_rate)),
        rule_version=tunables.rule_version,
    )


# =============================================================================
# Batches
# =============================================================================


def generate_gold_drop(seed: int, *, level: int, tunables: Tunables) -> int:
    """Roll the gold accompanying a drop.

    gold = floor((base + level * per_level) * (1 + spread * (2u - 1)))
    """
    loot = tunables.loot
    expected = loot.gold_drop_base + max(1, int(level)) * loot.gold_drop_per_level
    roll = seeded_float(seed, "gold")
    return max(0, math.floor(expected * (1.0 + loot.gold_drop_spread * (roll * 2.0 - 1.0))))


def _roll_batch_item(
    seed: int,
    sub_label: str,
    *,
    level: int,
    preferred_slots: Sequence[EquipmentSlot | str],
    equipped_scores: Mapping[EquipmentSlot | str, float] | None,
    recent_slots: Sequence[EquipmentSlot],
    tunables: Tunables,
) -> Item:
    item_seed = derive_seed(seed, sub_label)
    rarity = roll_rarity(item_seed, "rarity", tunables)
    slot = roll_slot(
        item_seed,
        "slot",
        level=level,
        preferred_slots=preferred_slots,
        equipped_scores=equipped_scores,
        recent_slots=recent_slots,
        tunables=tunables,
    )
    return generate_loot_item(item_seed, "item", level=level, rarity=rarity, slot=slot, tunables=tunables)


def generate_loot_batch(
    seed: int,
    *,
    actor_level: int,
    count: int,
    preferred_slots: Iterable[EquipmentSlot | str] = (),
    equipped_scores: Mapping[EquipmentSlot | str, float] | None = None,
    avoid_item_ids: Iterable[str] = (),
    tunables: Tunables,
) -> LootBatch:
    """Generate a reproducible batch of items plus gold.

    Item ``i`` rolls rarity, slot and stats from sub-seed
    ``derive_seed(seed, "loot:i")``. An item whose id was already seen
    (in this batch or in ``avoid_item_ids``) is rerolled from
    ``"loot:i:reroll:n"`` a bounded number of times.

    Args:
        seed: Batch seed.
        actor_level: Level the items are scaled for.
        count: Number of items; negative counts yield none.
        preferred_slots: Slots the actor can use.
        equipped_scores: Item power of the equipped item per slot.
        avoid_item_ids: Item ids the caller already holds.
        tunables: Balance constants.

    Returns:
        The generated batch.
    """
    level = max(1, int(actor_level))
    preferred = tuple(preferred_slots)
    seen_ids = set(avoid_item_ids)
    recent_slots: list[EquipmentSlot] = []
    items: list[Item] = []

    for index in range(max(0, int(count))):
        options = {
            "level": level,
            "preferred_slots": preferred,
            "equipped_scores": equipped_scores,
            "recent_slots": recent_slots,
            "tunables": tunables,
        }
        item = _roll_batch_item(seed, f"loot:{index}", **options)
        attempt = 0
        while item.id in seen_ids and attempt < MAX_LOOT_REROLLS:
            attempt += 1
            item = _roll_batch_item(seed, f"loot:{index}:reroll:{attempt}", **options)
        seen_ids.add(item.id)
        recent_slots.append(item.slot)
        items.append(item)

    batch = LootBatch(
        seed=normalize_seed(seed),
        actor_level=level,
        items=tuple(items),
        gold=generate_gold_drop(seed, level=level, tunables=tunables),
    )
    logger.debug("loot batch generated", seed=batch.seed, count=len(items), gold=batch.gold)
    return batch


def rarity_distribution(items: Iterable[Item]) -> dict[Rarity, float]:
    """Observed share of each rarity tier among items."""
    counts = Counter(item.rarity for item in items)
    total = sum(counts.values())
    return {rarity: (counts[rarity] / total if total else 0.0) for rarity in Rarity}


__all__ = [
    "SLOT_BASE_NAMES",
    "RARITY_PREFIXES",
    "roll_rarity",
    "level_budget",
    "slot_weights",
    "roll_slot",
    "split_budget",
    "generate_loot_item",
    "generate_gold_drop",
    "generate_loot_batch",
    "rarity_distribution",
]
