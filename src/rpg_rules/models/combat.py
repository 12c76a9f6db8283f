"""Pydantic V2 schemas for combat outcomes and fight event logs."""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from rpg_rules.models.enums import ApplyReason, CombatEventKind, DamageKind, Element


class DamageRoll(BaseModel):
    """Outcome of one resolved skill use.

    Attributes:
        attacker_id: Acting actor.
        target_id: Receiving actor.
        skill_id: Skill used.
        kind: Offensive pipeline used.
        element: Element of the damage or healing.
        hit: Whether the skill connected.
        crit: Whether it was a critical.
        hit_chance: Clamped hit probability.
        crit_chance: Clamped crit probability.
        amount: Final integer damage or healing before barrier absorption.
        absorbed: Portion taken by the target's barrier.
        hp_change: Portion reaching hit points.
        barrier_after: Target barrier left after absorption.
        roll_indices: Roll-log indices of the draws consumed.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    attacker_id: str
    target_id: str
    skill_id: str
    kind: DamageKind
    element: Element
    hit: bool
    crit: bool = False
    hit_chance: Annotated[float, Field(ge=0, le=1)]
    crit_chance: Annotated[float, Field(ge=0, le=1)] = 0.0
    amount: Annotated[int, Field(ge=0)] = 0
    absorbed: Annotated[int, Field(ge=0)] = 0
    hp_change: Annotated[int, Field(ge=0)] = 0
    barrier_after: Annotated[float, Field(ge=0)] = 0.0
    roll_indices: tuple[int, ...] = ()

    @property
    def is_heal(self) -> bool:
        """Check whether the roll restored hit points."""
        return self.kind == DamageKind.HEALING


class FightEvent(BaseModel):
    """One entry in a simulated fight's event log.

    Attributes:
        sequence: Position of the event in the log.
        turn: Turn number; each actor acts once per turn.
        kind: Event kind.
        actor_id: Acting actor (status source for tick events).
        target_id: Affected actor.
        skill_id: Skill involved, if any.
        status_id: Status involved, if any.
        element: Element of the damage or healing.
        hit: Hit flag for skill events.
        crit: Crit flag for skill events.
        amount: Damage or healing amount.
        absorbed: Barrier absorption.
        reason: Status application reason for status events.
        expired: Whether a tick event removed its status.
        target_hp: Target hit points after the event.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    sequence: Annotated[int, Field(ge=0)]
    turn: Annotated[int, Field(ge=1)]
    kind: CombatEventKind
    actor_id: str
    target_id: str
    skill_id: str = ""
    status_id: str = ""
    element: Element | None = None
    hit: bool | None = None
    crit: bool | None = None
    amount: Annotated[int, Field(ge=0)] = 0
    absorbed: Annotated[int, Field(ge=0)] = 0
    reason: ApplyReason | None = None
    expired: bool = False
    target_hp: float = 0.0


__all__ = [
    "DamageRoll",
    "FightEvent",
]
