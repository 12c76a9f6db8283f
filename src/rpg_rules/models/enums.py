"""Enumeration types for the rpg-rules core.

Every closed vocabulary the rules operate on lives here: stat and element
names, status categories and stacking modes, rarity tiers and equipment
slots. Declaration order is meaningful wherever a tier order matters
(rarity, equipment slots).
"""

from __future__ import annotations

from enum import StrEnum


# =============================================================================
# Stats
# =============================================================================


class BaseStat(StrEnum):
    """Primary attributes an actor invests points into."""

    STRENGTH = "strength"
    DEXTERITY = "dexterity"
    INTELLIGENCE = "intelligence"
    VITALITY = "vitality"
    WISDOM = "wisdom"

    @property
    def abbreviation(self) -> str:
        """Get the three-letter abbreviation.

        Returns:
            Upper-case abbreviation (e.g., 'STR' for STRENGTH).
        """
        return self.value[:3].upper()


class Stat(StrEnum):
    """Derived combat statistics produced by the stat deriver."""

    HP = "hp"
    MP = "mp"
    ATTACK = "attack"
    DEFENSE = "defense"
    MAGIC_ATTACK = "magic_attack"
    MAGIC_DEFENSE = "magic_defense"
    ACCURACY = "accuracy"
    EVASION = "evasion"
    CRIT = "crit"
    CRIT_RESIST = "crit_resist"
    RESIST = "resist"
    SPEED = "speed"
    HEAL_BONUS = "heal_bonus"
    BARRIER = "barrier"

    @property
    def is_fraction(self) -> bool:
        """Whether the stat is expressed as a fraction rather than points.

        Returns:
            True for crit, crit resist, resist and heal bonus.
        """
        return self in {Stat.CRIT, Stat.CRIT_RESIST, Stat.RESIST, Stat.HEAL_BONUS}


class Element(StrEnum):
    """Damage elements, each with its own resistance value."""

    PHYSICAL = "physical"
    FIRE = "fire"
    ICE = "ice"
    LIGHTNING = "lightning"
    POISON = "poison"
    BLEED = "bleed"
    STUN = "stun"
    HOLY = "holy"
    SHADOW = "shadow"
    ARCANE = "arcane"
    WIND = "wind"
    EARTH = "earth"
    WATER = "water"


# =============================================================================
# Status Effects
# =============================================================================


class StatusCategory(StrEnum):
    """Broad classes of status effect."""

    DOT = "dot"
    HOT = "hot"
    BUFF = "buff"
    DEBUFF = "debuff"
    CONTROL = "control"

    @property
    def is_periodic(self) -> bool:
        """Check whether statuses of this category tick.

        Returns:
            True for damage-over-time and heal-over-time.
        """
        return self in {StatusCategory.DOT, StatusCategory.HOT}


class StackingMode(StrEnum):
    """Policy applied when an active status is applied again."""

    NONE = "none"
    REFRESH = "refresh"
    STACK = "stack"
    INTENSIFY = "intensify"


class ApplyReason(StrEnum):
    """Outcome tag returned by status application."""

    APPLIED = "applied"
    IGNORED_NONE = "ignored_none"
    REFRESHED = "refreshed"
    STACKED = "stacked"
    INTENSIFIED = "intensified"
    IMMUNE = "immune"

    @property
    def changed_state(self) -> bool:
        """Check whether the status list was modified.

        Returns:
            False for rejected applications.
        """
        return self not in {ApplyReason.IGNORED_NONE, ApplyReason.IMMUNE}


class TickKind(StrEnum):
    """What a status tick does to its target."""

    DAMAGE = "damage"
    HEAL = "heal"
    EXPIRE = "expire"


# =============================================================================
# Skills and Combat
# =============================================================================


class Targeting(StrEnum):
    """Target selection mode of a skill."""

    SELF = "self"
    SINGLE = "single"
    TILE = "tile"
    AREA = "area"


class DamageKind(StrEnum):
    """Offensive pipeline a skill use runs through."""

    PHYSICAL = "physical"
    MAGICAL = "magical"
    HEALING = "healing"


class Winner(StrEnum):
    """Outcome of a simulated fight."""

    A = "a"
    B = "b"
    DRAW = "draw"


class CombatEventKind(StrEnum):
    """Kinds of entries in a fight event log."""

    SKILL = "skill"
    TICK = "tick"
    STATUS = "status"
    DEFEAT = "defeat"


# =============================================================================
# Items and Loot
# =============================================================================


class Rarity(StrEnum):
    """Loot rarity tiers, ordered from most to least common."""

    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"
    MYTHIC = "mythic"

    @property
    def tier(self) -> int:
        """Get the zero-based tier index.

        Returns:
            Position of the rarity in declaration order.
        """
        return list(Rarity).index(self)


class EquipmentSlot(StrEnum):
    """Named equipment slots on an actor."""

    WEAPON = "weapon"
    OFFHAND = "offhand"
    HEAD = "head"
    CHEST = "chest"
    LEGS = "legs"
    ACCESSORY1 = "accessory1"
    ACCESSORY2 = "accessory2"

    @property
    def is_accessory(self) -> bool:
        """Check whether the slot holds an accessory.

        Returns:
            True for both accessory slots.
        """
        return self in {EquipmentSlot.ACCESSORY1, EquipmentSlot.ACCESSORY2}


class BindPolicy(StrEnum):
    """When an item becomes bound to its owner."""

    NONE = "none"
    ON_EQUIP = "bind_on_equip"
    ON_PICKUP = "bind_on_pickup"


class RollKind(StrEnum):
    """Source of a stat line on a generated item."""

    IMPLICIT = "implicit"
    AFFIX = "affix"


class XpPreset(StrEnum):
    """Named XP curve presets."""

    FAST = "fast"
    STANDARD = "standard"
    GRINDY = "grindy"


__all__ = [
    "BaseStat",
    "Stat",
    "Element",
    "StatusCategory",
    "StackingMode",
    "ApplyReason",
    "TickKind",
    "Targeting",
    "DamageKind",
    "Winner",
    "CombatEventKind",
    "Rarity",
    "EquipmentSlot",
    "BindPolicy",
    "RollKind",
    "XpPreset",
]
