"""Pydantic V2 schema for actors.

An Actor is a plain immutable snapshot. ``stats_derived`` and
``resistances`` are outputs of the stat deriver; rules operations return
new actors through ``model_copy`` rather than mutating in place.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rpg_rules.models.items import Equipment
from rpg_rules.models.skills import Skill
from rpg_rules.models.stats import BaseStats, DerivedStats, Resistances
from rpg_rules.models.status import ActiveStatus


class Actor(BaseModel):
    """A combatant: player character, companion or monster.

    Attributes:
        id: Unique actor identifier.
        name: Display name.
        level: Current level.
        xp: Experience collected toward the next level.
        xp_to_next: Experience needed for the next level; 0 at max level.
        class_tags: Class identifiers used by equip restrictions.
        stats_base: Level-1 primary attributes.
        stats_growth: Attribute gain per level after the first.
        stats_derived: Cached deriver output.
        equipment: Equipped items.
        resistances: Innate per-element resistances before derivation.
        resistances_derived: Cached per-element resistances after derivation.
        statuses: Active statuses in canonical order.
        skills: Known skills.
        mp: Current mana.
        barrier: Current damage-absorbing barrier.
        coins: Currency held.
        stat_points_available: Unspent attribute points.
        skill_points_available: Unspent skill points.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1, max_length=64)
    name: str = Field(default="", max_length=100)
    level: Annotated[int, Field(ge=1)] = 1
    xp: Annotated[int, Field(ge=0)] = 0
    xp_to_next: Annotated[int, Field(ge=0)] = 0
    class_tags: tuple[str, ...] = ()
    stats_base: BaseStats = Field(default_factory=BaseStats)
    stats_growth: BaseStats = Field(default_factory=BaseStats)
    stats_derived: DerivedStats = Field(default_factory=DerivedStats)
    equipment: Equipment = Field(default_factory=Equipment)
    resistances: Resistances = Field(default_factory=Resistances)
    resistances_derived: Resistances = Field(default_factory=Resistances)
    statuses: tuple[ActiveStatus, ...] = ()
    skills: tuple[Skill, ...] = ()
    mp: Annotated[float, Field(ge=0)] = 0.0
    barrier: Annotated[float, Field(ge=0)] = 0.0
    coins: Annotated[int, Field(ge=0)] = 0
    stat_points_available: Annotated[int, Field(ge=0)] = 0
    skill_points_available: Annotated[int, Field(ge=0)] = 0

    @field_validator("class_tags", mode="before")
    @classmethod
    def normalize_class_tags(cls, value: tuple[str, ...] | list[str] | None) -> tuple[str, ...]:
        """Lower-case and sort class tags."""
        if not value:
            return ()
        return tuple(sorted({str(tag).strip().lower() for tag in value if str(tag).strip()}))

    @field_validator("statuses", mode="after")
    @classmethod
    def order_statuses(cls, value: tuple[ActiveStatus, ...]) -> tuple[ActiveStatus, ...]:
        """Keep statuses in canonical (id, stable key) order."""
        return tuple(sorted(value, key=lambda status: status.sort_key))

    def skill(self, skill_id: str) -> Skill | None:
        """Look up a known skill by id."""
        return next((skill for skill in self.skills if skill.id == skill_id), None)


__all__ = ["Actor"]
