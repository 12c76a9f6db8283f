"""Fight simulator: two builds trade skill uses until one falls.

Each turn opens with both sides ticking their statuses, side A first, and
refreshing their derived stats. Then both sides act once, faster side
first (ties broken by actor id, then by side), using their build's skill
on the opponent (or on themselves for heals). Status sources are resolved
by side, so mirror matches with equal actor ids are credited correctly.

The fight ends on a defeat or at the turn cap; reaching the cap, or both
sides falling, is a draw.

All randomness comes from one SeededRng per fight, so the event log and
the roll log are reproducible from the seed alone.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from rpg_rules.core.constants import DEFAULT_MAX_TURNS
from rpg_rules.core.exceptions import SimulationError
from rpg_rules.core.logging import get_logger
from rpg_rules.engine.actors import recompute_actor_stats
from rpg_rules.engine.combat import default_damage_kind, resolve_skill_use
from rpg_rules.engine.rng import RollRecord, SeededRng
from rpg_rules.engine.skills import compute_skill_power
from rpg_rules.engine.status import apply_status_effect, tick_statuses
from rpg_rules.engine.tunables import Tunables
from rpg_rules.models.actor import Actor
from rpg_rules.models.combat import DamageRoll, FightEvent
from rpg_rules.models.enums import CombatEventKind, DamageKind, TickKind, Winner
from rpg_rules.models.skills import Skill
from rpg_rules.models.status import ActiveStatus


logger = get_logger(__name__)


@dataclass(frozen=True)
class SimBuild:
    """An actor snapshot paired with the one skill it uses in a simulation.

    Attributes:
        actor: Combatant; its derived stats are refreshed before the fight.
        skill: Skill used every turn.
        damage_kind: Pipeline override; inferred from the skill when None.
    """

    actor: Actor
    skill: Skill
    damage_kind: DamageKind | str | None = None


@dataclass(frozen=True)
class FightResult:
    """Outcome of a simulated fight.

    Attributes:
        seed: Seed the fight ran with.
        turns: Turns played.
        winner: Winning side, or draw.
        hp_a: Side A hit points at the end.
        hp_b: Side B hit points at the end.
        total_damage_by_a: Hit-point damage dealt by side A, status ticks included.
        total_damage_by_b: Hit-point damage dealt by side B, status ticks included.
        events: Ordered event log.
        rolls: Ordered roll log of every draw made.
    """

    seed: int
    turns: int
    winner: Winner
    hp_a: int
    hp_b: int
    total_damage_by_a: int
    total_damage_by_b: int
    events: tuple[FightEvent, ...]
    rolls: tuple[RollRecord, ...]

    def to_dict(self) -> dict[str, Any]:
        """Convert the result to a JSON-compatible dictionary."""
        return {
            "seed": self.seed,
            "turns": self.turns,
            "winner": self.winner.value,
            "hp_a": self.hp_a,
            "hp_b": self.hp_b,
            "total_damage_by_a": self.total_damage_by_a,
            "total_damage_by_b": self.total_damage_by_b,
            "events": [event.model_dump(mode="json") for event in self.events],
            "rolls": [
                {"index": roll.index, "label": roll.label, "value": roll.value} for roll in self.rolls
            ],
        }


@dataclass
class _Side:
    """Mutable per-fight state of one build."""

    name: Winner
    actor: Actor
    skill: Skill
    kind: DamageKind
    hp: int
    damage_dealt: int = 0

    @property
    def max_hp(self) -> int:
        return max(1, math.floor(self.actor.stats_derived.hp))

    @property
    def down(self) -> bool:
        return self.hp <= 0

    @property
    def order_key(self) -> tuple[float, str, str]:
        return (-self.actor.stats_derived.speed, self.actor.id, self.name.value)


def _resolve_kind(build: SimBuild, seed: int) -> DamageKind:
    if build.damage_kind is None:
        return default_damage_kind(build.skill)
    try:
        return DamageKind(build.damage_kind)
    except ValueError as e:
        raise SimulationError(
            f"Unknown damage kind {build.damage_kind!r} for {build.actor.id!r}",
            seed=seed,
            invariant="damage_kind",
        ) from e


def _prepare_side(name: Winner, build: SimBuild, seed: int, tunables: Tunables) -> _Side:
    actor = recompute_actor_stats(build.actor, tunables)
    actor = actor.model_copy(update={"barrier": max(actor.barrier, actor.stats_derived.barrier)})
    return _Side(
        name=name,
        actor=actor,
        skill=build.skill,
        kind=_resolve_kind(build, seed),
        hp=max(1, math.floor(actor.stats_derived.hp)),
    )


class _FightLog:
    """Append-only event list that numbers its entries."""

    def __init__(self) -> None:
        self._events: list[FightEvent] = []

    def add(self, **fields: Any) -> None:
        self._events.append(FightEvent(sequence=len(self._events), **fields))

    def freeze(self) -> tuple[FightEvent, ...]:
        return tuple(self._events)


def _status_origin(holder: _Side, other: _Side, status: ActiveStatus) -> _Side | None:
    """Side that applied a status, matched on actor and skill.

    A healing build only ever applies statuses to itself, so its own heal
    skill identifies it even when both actors share an id.
    """
    if (
        holder.kind == DamageKind.HEALING
        and status.source_skill_id == holder.skill.id
        and status.source_actor_id == holder.actor.id
    ):
        return holder
    if status.source_actor_id == other.actor.id:
        return other
    if status.source_actor_id == holder.actor.id:
        return holder
    return None


def _tick_side(side: _Side, other: _Side, turn: int, log: _FightLog, tunables: Tunables) -> None:
    if not side.actor.statuses:
        return
    origins = {status.stable_key: _status_origin(side, other, status) for status in side.actor.statuses}

    def resolve(status: ActiveStatus) -> Actor | None:
        origin = origins.get(status.stable_key)
        return origin.actor if origin is not None else None

    result = tick_statuses(
        side.actor.statuses,
        now_turn=turn,
        target=side.actor,
        resolve_source=resolve,
        tunables=tunables,
    )
    side.actor = recompute_actor_stats(
        side.actor.model_copy(update={"statuses": result.statuses}), tunables
    )
    for event in result.events:
        origin = origins.get(f"{event.status_id}:{event.source_actor_id}:{event.source_skill_id}")
        if event.kind == TickKind.DAMAGE:
            side.hp = max(0, side.hp - event.amount)
            if origin is other:
                other.damage_dealt += event.amount
        elif event.kind == TickKind.HEAL:
            side.hp = min(side.max_hp, side.hp + event.amount)
        log.add(
            turn=turn,
            kind=CombatEventKind.TICK,
            actor_id=event.source_actor_id or side.actor.id,
            target_id=side.actor.id,
            status_id=event.status_id,
            element=event.element,
            amount=event.amount,
            expired=event.expired,
            target_hp=side.hp,
        )
    side.hp = min(side.hp, side.max_hp)


def _apply_skill_status(
    attacker: _Side,
    receiver: _Side,
    roll: DamageRoll,
    turn: int,
    log: _FightLog,
    tunables: Tunables,
) -> None:
    definition = attacker.skill.status_apply
    if definition is None or not roll.hit:
        return
    if not roll.is_heal and roll.hp_change <= 0:
        return
    result = apply_status_effect(
        receiver.actor.statuses,
        definition,
        now_turn=turn,
        source_actor_id=attacker.actor.id,
        source_skill_id=attacker.skill.id,
        rank=attacker.skill.rank,
        tunables=tunables,
    )
    if result.applied:
        receiver.actor = recompute_actor_stats(
            receiver.actor.model_copy(update={"statuses": result.statuses}), tunables
        )
        receiver.hp = min(receiver.hp, receiver.max_hp)
    log.add(
        turn=turn,
        kind=CombatEventKind.STATUS,
        actor_id=attacker.actor.id,
        target_id=receiver.actor.id,
        skill_id=attacker.skill.id,
        status_id=definition.id,
        reason=result.reason,
        target_hp=receiver.hp,
    )


def _act(
    attacker: _Side,
    defender: _Side,
    rng: SeededRng,
    turn: int,
    log: _FightLog,
    tunables: Tunables,
) -> None:
    receiver = attacker if attacker.kind == DamageKind.HEALING else defender
    roll = resolve_skill_use(
        rng,
        attacker.actor,
        receiver.actor,
        attacker.skill,
        skill_power=compute_skill_power(attacker.skill, attacker.actor.level, tunables=tunables),
        damage_kind=attacker.kind,
        tunables=tunables,
        label=f"sim:{turn}:{attacker.actor.id}:{receiver.actor.id}:{attacker.skill.id}",
    )

    if roll.is_heal:
        receiver.hp = min(receiver.max_hp, receiver.hp + roll.hp_change)
    elif roll.hit:
        receiver.actor = receiver.actor.model_copy(update={"barrier": roll.barrier_after})
        receiver.hp = max(0, receiver.hp - roll.hp_change)
        attacker.damage_dealt += roll.hp_change

    log.add(
        turn=turn,
        kind=CombatEventKind.SKILL,
        actor_id=attacker.actor.id,
        target_id=receiver.actor.id,
        skill_id=attacker.skill.id,
        element=roll.element,
        hit=roll.hit,
        crit=roll.crit,
        amount=roll.hp_change,
        absorbed=roll.absorbed,
        target_hp=receiver.hp,
    )
    _apply_skill_status(attacker, receiver, roll, turn, log, tunables)


def _log_defeats(sides: tuple[_Side, _Side], turn: int, log: _FightLog) -> bool:
    fallen = [side for side in sides if side.down]
    for side in fallen:
        log.add(
            turn=turn,
            kind=CombatEventKind.DEFEAT,
            actor_id=side.actor.id,
            target_id=side.actor.id,
            target_hp=0,
        )
    return bool(fallen)


def simulate_fight(
    seed: int,
    build_a: SimBuild,
    build_b: SimBuild,
    *,
    max_turns: int = DEFAULT_MAX_TURNS,
    tunables: Tunables,
) -> FightResult:
    """Fight two builds against each other.

    Args:
        seed: Seed of the fight's single generator.
        build_a: First build.
        build_b: Second build.
        max_turns: Turn cap; values below 1 count as 1.
        tunables: Balance constants.

    Returns:
        Turn count, winner (draw at the cap) and the full event and roll logs.

    Raises:
        SimulationError: If a build names an unknown damage kind.
    """
    cap = max(1, int(max_turns))
    rng = SeededRng(seed)
    side_a = _prepare_side(Winner.A, build_a, seed, tunables)
    side_b = _prepare_side(Winner.B, build_b, seed, tunables)
    sides = (side_a, side_b)
    log = _FightLog()

    logger.debug(
        "fight started",
        seed=rng.seed,
        a=side_a.actor.id,
        b=side_b.actor.id,
        hp_a=side_a.hp,
        hp_b=side_b.hp,
    )

    turn = 0
    finished = False
    while turn < cap and not finished:
        turn += 1
        _tick_side(side_a, side_b, turn, log, tunables)
        _tick_side(side_b, side_a, turn, log, tunables)
        if _log_defeats(sides, turn, log):
            break
        for attacker in sorted(sides, key=lambda side: side.order_key):
            defender = side_b if attacker is side_a else side_a
            _act(attacker, defender, rng, turn, log, tunables)
            if _log_defeats(sides, turn, log):
                finished = True
                break

    if side_a.down == side_b.down:
        winner = Winner.DRAW
    else:
        winner = Winner.B if side_a.down else Winner.A

    logger.debug("fight finished", seed=rng.seed, turns=turn, winner=winner.value, rolls=rng.draws)

    return FightResult(
        seed=rng.seed,
        turns=turn,
        winner=winner,
        hp_a=side_a.hp,
        hp_b=side_b.hp,
        total_damage_by_a=side_a.damage_dealt,
        total_damage_by_b=side_b.damage_dealt,
        events=log.freeze(),
        rolls=rng.roll_log,
    )


__all__ = [
    "SimBuild",
    "FightResult",
    "simulate_fight",
]
