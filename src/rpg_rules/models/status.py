"""Pydantic V2 schemas for status effects.

A StatusEffectDefinition is authored content describing a status; an
ActiveStatus is one live instance of it on an actor. Tick events are the
records the status engine emits while ticking.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rpg_rules.core.constants import MIN_TICK_RATE, RULE_VERSION
from rpg_rules.models.enums import Element, StackingMode, StatusCategory, TickKind
from rpg_rules.models.stats import StatModifier


def _normalize_tags(value: tuple[str, ...] | list[str] | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(sorted({str(tag).strip().lower() for tag in value if str(tag).strip()}))


class TickFormula(BaseModel):
    """Coefficients of a periodic status tick.

    Unset coefficients fall back to the tunables defaults at tick time.

    Attributes:
        element: Element of the tick; dots default to physical, hots to holy.
        base_tick: Flat amount added to every tick.
        dot_scale: Multiplier on the source's magic attack for damage ticks.
        hot_scale: Multiplier on the source's wisdom for heal ticks.
        rank_tick: Amount added per rank of the status.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    element: Element | None = None
    base_tick: float = Field(default=0.0, ge=0)
    dot_scale: float | None = Field(default=None, ge=0)
    hot_scale: float | None = Field(default=None, ge=0)
    rank_tick: float | None = Field(default=None, ge=0)


class StatusMetadata(BaseModel):
    """Configuration resolved when a status instance is created.

    Attributes:
        max_stacks: Upper bound of the stack counter.
        intensity_cap: Upper bound of the intensity counter.
        tick_rate: Turns between two ticks.
        stacking: Stacking mode copied from the definition.
        immunities_granted: Status ids or categories this status blocks.
        rule_version: Rules version that created the instance.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_stacks: Annotated[int, Field(ge=1)] = 1
    intensity_cap: Annotated[int, Field(ge=1)] = 1
    tick_rate: Annotated[int, Field(ge=MIN_TICK_RATE)] = 1
    stacking: StackingMode = StackingMode.REFRESH
    immunities_granted: tuple[str, ...] = ()
    rule_version: str = RULE_VERSION

    @field_validator("immunities_granted", mode="before")
    @classmethod
    def normalize_immunities(cls, value: tuple[str, ...] | list[str] | None) -> tuple[str, ...]:
        """Lower-case, de-duplicate and sort immunity entries."""
        return _normalize_tags(value)


class StatusEffectDefinition(BaseModel):
    """Authored description of a status effect.

    Attributes:
        id: Stable status identifier (e.g., 'burning').
        name: Display name.
        category: Status category.
        duration_turns: Turns the status lasts once applied.
        tick_rate: Turns between ticks for periodic statuses.
        stacking: Policy for repeated application.
        max_stacks: Stack cap for 'stack' mode.
        intensity_cap: Intensity cap for 'intensify' mode; tunables default if unset.
        tick_formula: Tick coefficients for periodic statuses.
        stat_mods: Stat changes while active, per stack of intensity.
        immunities_granted: Status ids or categories blocked while active.
        dispellable: Whether cleansing may remove it.
        cleanse_tags: Tags a cleanse can target.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1, max_length=64, description="Status id")
    name: str = Field(default="", max_length=100, description="Display name")
    category: StatusCategory = Field(description="Status category")
    duration_turns: Annotated[int, Field(ge=1)] = 1
    tick_rate: Annotated[int, Field(ge=MIN_TICK_RATE)] = 1
    stacking: StackingMode = StackingMode.REFRESH
    max_stacks: Annotated[int, Field(ge=1)] = 1
    intensity_cap: int | None = Field(default=None, ge=1)
    tick_formula: TickFormula = Field(default_factory=TickFormula)
    stat_mods: StatModifier = Field(default_factory=StatModifier)
    immunities_granted: tuple[str, ...] = ()
    dispellable: bool = True
    cleanse_tags: tuple[str, ...] = ()

    @field_validator("immunities_granted", "cleanse_tags", mode="before")
    @classmethod
    def normalize_tags(cls, value: tuple[str, ...] | list[str] | None) -> tuple[str, ...]:
        """Lower-case, de-duplicate and sort tag lists.

        Args:
            value: Raw tag collection.

        Returns:
            Sorted tuple of unique lower-case tags.
        """
        return _normalize_tags(value)


class ActiveStatus(BaseModel):
    """A live status instance on an actor.

    At most one instance exists per (id, source actor, source skill) key,
    and lists of instances are kept sorted by (id, stable_key).

    Attributes:
        id: Status identifier.
        source_actor_id: Id of the actor that applied it.
        source_skill_id: Id of the skill that applied it.
        category: Status category.
        remaining_turns: Turns left before expiry.
        next_tick_turn: Turn number of the next tick.
        stacks: Stack counter.
        intensity: Intensity counter.
        rank: Rank of the applying skill.
        stat_mods: Stat changes per unit of intensity.
        tick_formula: Tick coefficients.
        dispellable: Whether cleansing may remove it.
        cleanse_tags: Tags a cleanse can target.
        metadata: Configuration resolved at application time.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1, max_length=64)
    source_actor_id: str = ""
    source_skill_id: str = ""
    category: StatusCategory
    remaining_turns: Annotated[int, Field(ge=0)]
    next_tick_turn: int = 0
    stacks: Annotated[int, Field(ge=1)] = 1
    intensity: Annotated[int, Field(ge=1)] = 1
    rank: Annotated[int, Field(ge=1)] = 1
    stat_mods: StatModifier = Field(default_factory=StatModifier)
    tick_formula: TickFormula = Field(default_factory=TickFormula)
    dispellable: bool = True
    cleanse_tags: tuple[str, ...] = ()
    metadata: StatusMetadata = Field(default_factory=StatusMetadata)

    @property
    def stable_key(self) -> str:
        """Attribution key identifying the instance.

        Returns:
            'id:source_actor_id:source_skill_id'.
        """
        return f"{self.id}:{self.source_actor_id}:{self.source_skill_id}"

    @property
    def sort_key(self) -> tuple[str, str]:
        """Key of the canonical list order."""
        return (self.id, self.stable_key)


class StatusTickEvent(BaseModel):
    """Record of one tick or expiry of a status.

    Attributes:
        status_id: Status that ticked.
        source_actor_id: Actor credited with the tick.
        source_skill_id: Skill that applied the status.
        category: Status category.
        amount: Damage dealt or healing done; 0 for pure expiry events.
        kind: Damage, heal or expire.
        element: Element of the tick.
        remaining_turns: Turns left after this tick.
        expired: Whether the status was removed by this tick.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    status_id: str
    source_actor_id: str = ""
    source_skill_id: str = ""
    category: StatusCategory
    amount: Annotated[int, Field(ge=0)] = 0
    kind: TickKind
    element: Element
    remaining_turns: Annotated[int, Field(ge=0)] = 0
    expired: bool = False


__all__ = [
    "TickFormula",
    "StatusMetadata",
    "StatusEffectDefinition",
    "ActiveStatus",
    "StatusTickEvent",
]
