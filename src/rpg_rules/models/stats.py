"""Pydantic V2 schemas for stats, resistances and stat modifiers.

Every stat-bearing record is closed: one field per stat or element, no
free-form maps. Unknown keys are rejected at construction, and missing
or non-finite numbers become zero so the deriver stays total.
"""

from __future__ import annotations

import math
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rpg_rules.models.enums import BaseStat, Element, Stat


class NumericRecord(BaseModel):
    """Immutable record whose fields are all plain floats."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("*", mode="before")
    @classmethod
    def coerce_number(cls, value: Any) -> Any:
        """Map missing and non-finite inputs to zero.

        Args:
            value: Raw field input.

        Returns:
            The input, or 0.0 when it is None, NaN or infinite.
        """
        if value is None:
            return 0.0
        if isinstance(value, float) and not math.isfinite(value):
            return 0.0
        return value

    def plus(self, other: Self) -> Self:
        """Add another record field by field.

        Args:
            other: Record of the same type.

        Returns:
            A new record holding the sums.
        """
        return self.model_copy(
            update={name: getattr(self, name) + getattr(other, name) for name in type(self).model_fields}
        )

    def scaled(self, factor: float) -> Self:
        """Multiply every field by a factor.

        Args:
            factor: Multiplier applied to each field.

        Returns:
            A new record holding the scaled values.
        """
        return self.model_copy(
            update={name: getattr(self, name) * factor for name in type(self).model_fields}
        )

    @property
    def is_zero(self) -> bool:
        """Check whether every field is zero.

        Returns:
            True if no field carries a value.
        """
        return all(getattr(self, name) == 0 for name in type(self).model_fields)


class BaseStats(NumericRecord):
    """Primary attributes of an actor.

    Attributes:
        strength: Scales physical attack and physical damage.
        dexterity: Scales accuracy, evasion, crit and speed.
        intelligence: Scales mp, magic attack and magical damage.
        vitality: Scales hp and defense.
        wisdom: Scales magic defense, resistances and healing.
    """

    strength: float = Field(default=0.0, description="Strength")
    dexterity: float = Field(default=0.0, description="Dexterity")
    intelligence: float = Field(default=0.0, description="Intelligence")
    vitality: float = Field(default=0.0, description="Vitality")
    wisdom: float = Field(default=0.0, description="Wisdom")

    def get(self, stat: BaseStat | str) -> float:
        """Read one attribute by name."""
        return float(getattr(self, BaseStat(stat).value))


class StatValues(NumericRecord):
    """One value per derived stat, used for flat and percent modifiers.

    Percent modifiers are fractions: 0.1 means +10%.
    """

    hp: float = 0.0
    mp: float = 0.0
    attack: float = 0.0
    defense: float = 0.0
    magic_attack: float = 0.0
    magic_defense: float = 0.0
    accuracy: float = 0.0
    evasion: float = 0.0
    crit: float = 0.0
    crit_resist: float = 0.0
    resist: float = 0.0
    speed: float = 0.0
    heal_bonus: float = 0.0
    barrier: float = 0.0

    def get(self, stat: Stat | str) -> float:
        """Read one stat by name."""
        return float(getattr(self, Stat(stat).value))


class DerivedStats(StatValues):
    """Snapshot of an actor's derived combat statistics.

    Always the output of the stat deriver; never edited by hand.
    """


class Resistances(NumericRecord):
    """Per-element resistance fractions (0.1 means 10% less damage)."""

    physical: float = 0.0
    fire: float = 0.0
    ice: float = 0.0
    lightning: float = 0.0
    poison: float = 0.0
    bleed: float = 0.0
    stun: float = 0.0
    holy: float = 0.0
    shadow: float = 0.0
    arcane: float = 0.0
    wind: float = 0.0
    earth: float = 0.0
    water: float = 0.0

    def get(self, element: Element | str) -> float:
        """Read the resistance for one element."""
        return float(getattr(self, Element(element).value))


class StatModifier(BaseModel):
    """Flat and percent stat changes plus resistance changes.

    Attributes:
        flat: Additive changes, applied first.
        pct: Fractional multipliers, applied after all flat changes.
        resist: Additive per-element resistance changes.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    flat: StatValues = Field(default_factory=StatValues)
    pct: StatValues = Field(default_factory=StatValues)
    resist: Resistances = Field(default_factory=Resistances)

    @classmethod
    def combine(cls, *mods: StatModifier) -> StatModifier:
        """Sum any number of modifiers.

        Summation is commutative, so the result does not depend on the
        order the sources are listed in.

        Args:
            *mods: Modifiers to add together.

        Returns:
            A single combined modifier.
        """
        combined = cls()
        for mod in mods:
            combined = combined.plus(mod)
        return combined

    def plus(self, other: StatModifier) -> StatModifier:
        """Add another modifier component by component."""
        return StatModifier(
            flat=self.flat.plus(other.flat),
            pct=self.pct.plus(other.pct),
            resist=self.resist.plus(other.resist),
        )

    def scaled(self, factor: float) -> StatModifier:
        """Multiply every component by a factor."""
        return StatModifier(
            flat=self.flat.scaled(factor),
            pct=self.pct.scaled(factor),
            resist=self.resist.scaled(factor),
        )

    @property
    def is_empty(self) -> bool:
        """Check whether the modifier changes nothing.

        Returns:
            True if all components are zero.
        """
        return self.flat.is_zero and self.pct.is_zero and self.resist.is_zero


__all__ = [
    "NumericRecord",
    "BaseStats",
    "StatValues",
    "DerivedStats",
    "Resistances",
    "StatModifier",
]
