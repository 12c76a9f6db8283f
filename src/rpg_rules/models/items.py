"""Pydantic V2 schemas for items, equipment, loot batches and shop stock.

Items are immutable once generated. Equipping only changes which actor
references an item; the Equipment record holds one optional item per
named slot.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from rpg_rules.core.constants import RULE_VERSION
from rpg_rules.models.enums import BindPolicy, Element, EquipmentSlot, Rarity, RollKind, Stat
from rpg_rules.models.stats import StatModifier


class StatRoll(BaseModel):
    """One rolled stat line on a generated item.

    Exactly one of ``stat`` or ``element`` is set: stat lines add a flat
    derived stat, element lines add a resistance.

    Attributes:
        stat: Derived stat the line improves.
        element: Element whose resistance the line improves.
        value: Magnitude added.
        budget: Share of the item's stat budget spent on this line.
        kind: Implicit slot line or affix.
        label: Affix name shown on the item.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    stat: Stat | None = None
    element: Element | None = None
    value: float
    budget: Annotated[float, Field(ge=0)]
    kind: RollKind
    label: str = ""

    @model_validator(mode="after")
    def validate_target(self) -> "StatRoll":
        """Ensure the line targets exactly one stat or element.

        Returns:
            Self if validation passes.

        Raises:
            ValueError: If both or neither targets are set.
        """
        if (self.stat is None) == (self.element is None):
            raise ValueError("StatRoll needs exactly one of stat or element")
        return self


class Item(BaseModel):
    """A piece of equipment.

    Attributes:
        id: Unique item identifier.
        name: Display name.
        slot: Equipment slot the item fits.
        rarity: Rarity tier.
        level_req: Minimum actor level to equip.
        stats_flat: Stat changes granted while equipped.
        rolls: Generated stat lines backing ``stats_flat``.
        grants_skill_ids: Skills granted while equipped.
        set_tag: Equipment set the item belongs to.
        class_tags: Classes allowed to equip it; empty means any.
        item_power: Total stat budget spent on the item.
        bind_policy: When the item binds to its owner.
        drop_tier: Numeric tier used by drop tables.
        value_buy: Purchase price.
        value_sell: Vendor sell price.
        rule_version: Rules version that generated the item.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=100)
    slot: EquipmentSlot
    rarity: Rarity = Rarity.COMMON
    level_req: Annotated[int, Field(ge=1)] = 1
    stats_flat: StatModifier = Field(default_factory=StatModifier)
    rolls: tuple[StatRoll, ...] = ()
    grants_skill_ids: tuple[str, ...] = ()
    set_tag: str | None = None
    class_tags: tuple[str, ...] = ()
    item_power: Annotated[float, Field(ge=0)] = 0.0
    bind_policy: BindPolicy = BindPolicy.NONE
    drop_tier: Annotated[int, Field(ge=0)] = 0
    value_buy: Annotated[int, Field(ge=0)] = 0
    value_sell: Annotated[int, Field(ge=0)] = 0
    rule_version: str = RULE_VERSION


class Equipment(BaseModel):
    """Items currently equipped, one optional item per slot."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    weapon: Item | None = None
    offhand: Item | None = None
    head: Item | None = None
    chest: Item | None = None
    legs: Item | None = None
    accessory1: Item | None = None
    accessory2: Item | None = None

    @model_validator(mode="after")
    def validate_slots(self) -> "Equipment":
        """Ensure every item sits in a slot it fits.

        Accessories may go in either accessory slot.

        Returns:
            Self if validation passes.

        Raises:
            ValueError: If an item is placed in a foreign slot.
        """
        for slot in EquipmentSlot:
            item = getattr(self, slot.value)
            if item is None:
                continue
            fits = item.slot == slot or (item.slot.is_accessory and slot.is_accessory)
            if not fits:
                raise ValueError(f"{item.slot.value} item {item.id!r} cannot go in slot {slot.value}")
        return self

    def get(self, slot: EquipmentSlot | str) -> Item | None:
        """Get the item in a slot, if any."""
        return getattr(self, EquipmentSlot(slot).value)

    def with_item(self, slot: EquipmentSlot | str, item: Item | None) -> Equipment:
        """Return a copy with one slot replaced.

        Args:
            slot: Slot to change.
            item: New occupant, or None to empty the slot.

        Returns:
            A new validated Equipment record.
        """
        data = {s.value: getattr(self, s.value) for s in EquipmentSlot}
        data[EquipmentSlot(slot).value] = item
        return Equipment(**data)

    def items(self) -> tuple[Item, ...]:
        """Equipped items in slot declaration order."""
        return tuple(
            item for slot in EquipmentSlot if (item := getattr(self, slot.value)) is not None
        )


class LootBatch(BaseModel):
    """Result of a loot batch roll.

    Attributes:
        seed: Seed the batch was generated from.
        actor_level: Level the batch was scaled for.
        items: Generated items in generation order.
        gold: Gold dropped alongside the items.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    seed: int
    actor_level: Annotated[int, Field(ge=1)]
    items: tuple[Item, ...] = ()
    gold: Annotated[int, Field(ge=0)] = 0

    @property
    def rarity_counts(self) -> dict[str, int]:
        """Count items per rarity tier.

        Returns:
            Mapping of every rarity tier to its item count.
        """
        counts = {rarity.value: 0 for rarity in Rarity}
        for item in self.items:
            counts[item.rarity.value] += 1
        return counts


class EconomyContext(BaseModel):
    """Where and when a shop trades.

    Attributes:
        actor_level: Level of the shopping actor; stock is scaled for it.
        act: Campaign act; later acts inflate prices.
        chapter: Chapter within the campaign; later chapters inflate prices.
        biome: Biome of the shop (e.g., 'forest'); biases the slots stocked.
        faction: Faction running the shop (e.g., 'wardens'); biases rarity.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    actor_level: Annotated[int, Field(ge=1)] = 1
    act: int = 0
    chapter: int = 0
    biome: str = "town"
    faction: str = ""

    @field_validator("biome", "faction", mode="before")
    @classmethod
    def normalize_key(cls, value: str | None) -> str:
        """Lower-case and strip biome and faction names."""
        return str(value or "").strip().lower()


class ShopStockEntry(BaseModel):
    """One item offered by a shop, with its prices.

    The item's own ``value_buy`` and ``value_sell`` equal the entry prices.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    item: Item
    buy_price: Annotated[int, Field(ge=1)]
    sell_price: Annotated[int, Field(ge=1)]


__all__ = [
    "StatRoll",
    "Item",
    "Equipment",
    "LootBatch",
    "EconomyContext",
    "ShopStockEntry",
]
