"""Shop pricing and stock generation.

Prices start from an item's generated ``value_buy`` and grow with its
rarity, its required level and the campaign's progress (act and
chapter inflation). Vendors buy back at ``sell_rate`` of the buy price.

Shop stock reuses the loot generator. The shop's biome biases which
slots are stocked and its faction biases rarity; both only reweight the
ordinary loot tables. Entry ``i`` draws its rarity from the
``(seed, "shop:i:rarity")`` sub-stream and its slot from
``(seed, "shop:i:slot")``, so a shop restocked with the same seed and
context offers the same goods.

Example:
    >>> from rpg_rules.engine import build_tunables
    >>> from rpg_rules.models import EconomyContext
    >>> context = EconomyContext(actor_level=8, act=1, biome="forest", faction="wardens")
    >>> stock = generate_shop_inventory(3, count=4, context=context, tunables=build_tunables())
    >>> all(entry.sell_price <= entry.buy_price for entry in stock)
    True
"""

from __future__ import annotations

import math
from collections.abc import Mapping

from rpg_rules.core.logging import get_logger
from rpg_rules.engine.loot import generate_loot_item
from rpg_rules.engine.rng import SeededRng, derive_seed
from rpg_rules.engine.tunables import Tunables
from rpg_rules.models.enums import EquipmentSlot, Rarity
from rpg_rules.models.items import EconomyContext, Item, ShopStockEntry


logger = get_logger(__name__)


BIOME_SLOT_BIAS: Mapping[str, Mapping[EquipmentSlot, float]] = {
    "forest": {EquipmentSlot.WEAPON: 1.2, EquipmentSlot.ACCESSORY1: 1.15, EquipmentSlot.ACCESSORY2: 1.1},
    "desert": {EquipmentSlot.HEAD: 1.2, EquipmentSlot.CHEST: 1.15, EquipmentSlot.LEGS: 1.1},
    "mountain": {EquipmentSlot.CHEST: 1.2, EquipmentSlot.OFFHAND: 1.15, EquipmentSlot.WEAPON: 1.05},
    "coast": {EquipmentSlot.ACCESSORY1: 1.2, EquipmentSlot.ACCESSORY2: 1.2, EquipmentSlot.OFFHAND: 1.1},
    "ruins": {EquipmentSlot.WEAPON: 1.2, EquipmentSlot.OFFHAND: 1.1, EquipmentSlot.HEAD: 1.05},
    "town": {},
}
"""Slot weight multipliers per biome; unknown biomes trade like a town."""

FACTION_RARITY_BIAS: Mapping[str, Mapping[Rarity, float]] = {
    "artisans": {Rarity.UNCOMMON: 1.15, Rarity.RARE: 1.1},
    "wardens": {Rarity.RARE: 1.2, Rarity.EPIC: 1.1},
    "mystics": {Rarity.EPIC: 1.2, Rarity.LEGENDARY: 1.1},
    "freebooters": {Rarity.COMMON: 1.2, Rarity.UNCOMMON: 1.1},
}
"""Rarity weight multipliers per faction; unknown factions add no bias."""


# =============================================================================
# Prices
# =============================================================================


def inflation_multiplier(context: EconomyContext, tunables: Tunables) -> float:
    """Price multiplier from campaign progress.

    1 + act * inflation_per_act + chapter * inflation_per_chapter, with
    negative acts and chapters counted as 0.
    """
    economy = tunables.economy
    act = max(0, math.floor(context.act))
    chapter = max(0, math.floor(context.chapter))
    return 1.0 + act * economy.inflation_per_act + chapter * economy.inflation_per_chapter


def compute_buy_price(item: Item, context: EconomyContext, tunables: Tunables) -> int:
    """Price a shop asks for an item.

    buy = floor(base * rarity_price_mult * level_mult * inflation), where
    base = max(1, floor(value_buy * buy_base_multiplier)) and
    level_mult = 1 + max(1, level_req) * level_price_scale.

    Args:
        item: Item on offer.
        context: Shop context.
        tunables: Balance constants.

    Returns:
        Buy price of at least 1.
    """
    economy = tunables.economy
    base = max(1, math.floor(item.value_buy * economy.buy_base_multiplier))
    rarity_mult = tunables.loot.rarity_price_mult.get(item.rarity)
    level_mult = 1.0 + max(1, item.level_req) * economy.level_price_scale
    price = base * rarity_mult * level_mult * inflation_multiplier(context, tunables)
    return max(1, math.floor(round(price, 6)))


def compute_sell_price(buy_price: int, tunables: Tunables) -> int:
    """Price a vendor pays for an item: floor(buy * sell_rate), at least 1."""
    return max(1, math.floor(buy_price * tunables.economy.sell_rate))


# =============================================================================
# Stock
# =============================================================================


def shop_slot_weights(biome: str, tunables: Tunables) -> tuple[tuple[EquipmentSlot, float], ...]:
    """Base slot weights scaled by a biome's bias, in slot order."""
    bias = BIOME_SLOT_BIAS.get(biome.strip().lower(), BIOME_SLOT_BIAS["town"])
    return tuple(
        (slot, tunables.loot.slot_base_weights.get(slot) * bias.get(slot, 1.0)) for slot in EquipmentSlot
    )


def shop_rarity_weights(faction: str, tunables: Tunables) -> tuple[tuple[Rarity, float], ...]:
    """Rarity weights scaled by a faction's bias, in tier order."""
    bias = FACTION_RARITY_BIAS.get(faction.strip().lower(), {})
    return tuple(
        (rarity, weight * bias.get(rarity, 1.0)) for rarity, weight in tunables.loot.rarity_weights.pairs()
    )


def _pick_slot(seed: int, label: str, weights: tuple[tuple[EquipmentSlot, float], ...]) -> EquipmentSlot:
    if not any(weight > 0 for _, weight in weights):
        return EquipmentSlot.WEAPON
    return SeededRng(derive_seed(seed, label)).weighted_pick(weights, "slot")


def generate_shop_inventory(
    seed: int,
    *,
    count: int,
    context: EconomyContext,
    tunables: Tunables,
) -> tuple[ShopStockEntry, ...]:
    """Stock a shop with priced items.

    Entry ``i`` rolls a faction-biased rarity, then a biome-biased slot,
    then generates the item from label ``"shop:i:<slot>:<rarity>"`` at
    the context's actor level. The item's ``value_buy`` and
    ``value_sell`` are replaced by the shop prices.

    Args:
        seed: Shop seed.
        count: Number of entries; values below 1 count as 1.
        context: Shop context.
        tunables: Balance constants.

    Returns:
        Stock entries in generation order.
    """
    level = max(1, int(context.actor_level))
    slot_weights = shop_slot_weights(context.biome, tunables)
    rarity_weights = shop_rarity_weights(context.faction, tunables)

    stock: list[ShopStockEntry] = []
    for index in range(max(1, int(count))):
        rarity = SeededRng(derive_seed(seed, f"shop:{index}:rarity")).weighted_pick(rarity_weights, "rarity")
        slot = _pick_slot(seed, f"shop:{index}:slot", slot_weights)
        item = generate_loot_item(
            seed,
            f"shop:{index}:{slot.value}:{rarity.value}",
            level=level,
            rarity=rarity,
            slot=slot,
            tunables=tunables,
        )
        buy_price = compute_buy_price(item, context, tunables)
        sell_price = compute_sell_price(buy_price, tunables)
        stock.append(
            ShopStockEntry(
                item=item.model_copy(update={"value_buy": buy_price, "value_sell": sell_price}),
                buy_price=buy_price,
                sell_price=sell_price,
            )
        )

    logger.debug(
        "shop stocked",
        seed=seed,
        count=len(stock),
        biome=context.biome,
        faction=context.faction,
        level=level,
    )
    return tuple(stock)


__all__ = [
    "BIOME_SLOT_BIAS",
    "FACTION_RARITY_BIAS",
    "inflation_multiplier",
    "compute_buy_price",
    "compute_sell_price",
    "shop_slot_weights",
    "shop_rarity_weights",
    "generate_shop_inventory",
]
