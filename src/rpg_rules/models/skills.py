"""Pydantic V2 schema for skills.

Skills are data: the combat resolver and the skill formulas interpret
them. Unset level scales fall back to the tunables defaults.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from rpg_rules.models.enums import Element, Targeting
from rpg_rules.models.status import StatusEffectDefinition


class Skill(BaseModel):
    """A usable ability.

    Attributes:
        id: Stable skill identifier.
        name: Display name.
        element: Element of the damage or healing.
        tags: Free classification tags ('heal' marks a healing skill).
        targeting: Target selection mode.
        rank: Current rank.
        max_rank: Highest reachable rank.
        mp_cost_base: Flat mp cost.
        mp_cost_scale: Extra mp cost per rank.
        mp_level_scale: Extra mp cost per actor level.
        base_power: Flat power.
        power_scale: Extra power per rank.
        level_scale: Extra power per actor level.
        hit_bonus: Hit chance bonus as a fraction.
        crit_bonus: Crit chance bonus as a fraction.
        status_apply: Status applied to the target on a damaging hit.
        description: Free text shown in previews.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1, max_length=64, description="Skill id")
    name: str = Field(default="", max_length=100, description="Display name")
    element: Element = Element.PHYSICAL
    tags: tuple[str, ...] = ()
    targeting: Targeting = Targeting.SINGLE
    rank: Annotated[int, Field(ge=1)] = 1
    max_rank: Annotated[int, Field(ge=1)] = 1
    mp_cost_base: Annotated[float, Field(ge=0)] = 0.0
    mp_cost_scale: Annotated[float, Field(ge=0)] = 0.0
    mp_level_scale: float | None = Field(default=None, ge=0)
    base_power: Annotated[float, Field(ge=0)] = 0.0
    power_scale: Annotated[float, Field(ge=0)] = 0.0
    level_scale: float | None = Field(default=None, ge=0)
    hit_bonus: float = 0.0
    crit_bonus: float = 0.0
    status_apply: StatusEffectDefinition | None = None
    description: str = Field(default="", max_length=500)

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, value: tuple[str, ...] | list[str] | None) -> tuple[str, ...]:
        """Lower-case and de-duplicate tags, keeping first-seen order."""
        if not value:
            return ()
        seen: dict[str, None] = {}
        for tag in value:
            cleaned = str(tag).strip().lower()
            if cleaned:
                seen.setdefault(cleaned, None)
        return tuple(seen)

    @model_validator(mode="after")
    def validate_rank(self) -> "Skill":
        """Ensure the current rank does not exceed the maximum rank.

        Returns:
            Self if validation passes.

        Raises:
            ValueError: If rank is greater than max_rank.
        """
        if self.rank > self.max_rank:
            raise ValueError(f"rank ({self.rank}) must not exceed max_rank ({self.max_rank})")
        return self

    @property
    def is_heal(self) -> bool:
        """Check whether the skill heals instead of damaging.

        Returns:
            True if the skill carries the 'heal' tag.
        """
        return "heal" in self.tags


__all__ = ["Skill"]
