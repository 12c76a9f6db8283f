"""Pydantic V2 data models for the rpg-rules core.

Every record is frozen and closed (extra keys rejected), so two equal
states serialize identically and unknown keys cannot be silently
ignored.

Modules:
    enums: Closed vocabularies (stats, elements, rarity, slots...)
    stats: BaseStats, DerivedStats, Resistances, StatModifier
    status: Status definitions, active instances and tick events
    skills: Skill
    items: Item, Equipment, LootBatch, EconomyContext, ShopStockEntry
    actor: Actor
    combat: DamageRoll and fight events
"""

from __future__ import annotations

# =============================================================================
# Enums
# =============================================================================
from rpg_rules.models.enums import (
    ApplyReason,
    BaseStat,
    BindPolicy,
    CombatEventKind,
    DamageKind,
    Element,
    EquipmentSlot,
    Rarity,
    RollKind,
    StackingMode,
    Stat,
    StatusCategory,
    Targeting,
    TickKind,
    Winner,
    XpPreset,
)

# =============================================================================
# Stats
# =============================================================================
from rpg_rules.models.stats import (
    BaseStats,
    DerivedStats,
    Resistances,
    StatModifier,
    StatValues,
)

# =============================================================================
# Status Effects
# =============================================================================
from rpg_rules.models.status import (
    ActiveStatus,
    StatusEffectDefinition,
    StatusMetadata,
    StatusTickEvent,
    TickFormula,
)

# =============================================================================
# Skills, Items and Actors
# =============================================================================
from rpg_rules.models.skills import Skill
from rpg_rules.models.items import EconomyContext, Equipment, Item, LootBatch, ShopStockEntry, StatRoll
from rpg_rules.models.actor import Actor

# =============================================================================
# Combat
# =============================================================================
from rpg_rules.models.combat import DamageRoll, FightEvent


__all__ = [
    # Enums
    "ApplyReason",
    "BaseStat",
    "BindPolicy",
    "CombatEventKind",
    "DamageKind",
    "Element",
    "EquipmentSlot",
    "Rarity",
    "RollKind",
    "StackingMode",
    "Stat",
    "StatusCategory",
    "Targeting",
    "TickKind",
    "Winner",
    "XpPreset",
    # Stats
    "BaseStats",
    "DerivedStats",
    "Resistances",
    "StatModifier",
    "StatValues",
    # Status effects
    "ActiveStatus",
    "StatusEffectDefinition",
    "StatusMetadata",
    "StatusTickEvent",
    "TickFormula",
    # Skills, items, actors
    "Skill",
    "Equipment",
    "Item",
    "LootBatch",
    "StatRoll",
    "EconomyContext",
    "ShopStockEntry",
    "Actor",
    # Combat
    "DamageRoll",
    "FightEvent",
]
