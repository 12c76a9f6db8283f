"""Tests for the fight simulator."""

from __future__ import annotations

import json
from typing import Any

import pytest

from rpg_rules.core.exceptions import SimulationError
from rpg_rules.engine.simulator import SimBuild, simulate_fight
from rpg_rules.engine.tunables import build_tunables
from rpg_rules.models import ApplyReason, BaseStats, CombatEventKind, Skill, Winner


@pytest.fixture
def duel(make_actor: Any, strike_skill: Skill) -> tuple[SimBuild, SimBuild]:
    """Two identical level-10 fighters with different ids."""
    return SimBuild(make_actor("alpha"), strike_skill), SimBuild(make_actor("beta"), strike_skill)


class TestSimulateFight:
    """Tests for simulate_fight."""

    def test_deterministic(self, duel: tuple[SimBuild, SimBuild], tunables: Any) -> None:
        """Test that a seed reproduces the whole fight."""
        first = simulate_fight(11, *duel, tunables=tunables)
        second = simulate_fight(11, *duel, tunables=tunables)

        assert first == second
        assert first.to_dict() == second.to_dict()

    def test_seeds_vary(self, duel: tuple[SimBuild, SimBuild], tunables: Any) -> None:
        """Test that different seeds give different roll logs."""
        rolls = {tuple(record.value for record in simulate_fight(seed, *duel, tunables=tunables).rolls) for seed in range(5)}
        assert len(rolls) == 5

    def test_winner_matches_hp(self, duel: tuple[SimBuild, SimBuild], tunables: Any) -> None:
        """Test that the winner is the side left standing."""
        for seed in range(20):
            result = simulate_fight(seed, *duel, tunables=tunables)
            if result.winner == Winner.A:
                assert result.hp_a > 0 and result.hp_b == 0
            elif result.winner == Winner.B:
                assert result.hp_b > 0 and result.hp_a == 0
            else:
                assert (result.hp_a > 0) == (result.hp_b > 0)

    def test_stronger_build_wins(self, make_actor: Any, strike_skill: Skill, tunables: Any) -> None:
        """Test a lopsided fight."""
        strong = SimBuild(make_actor("veteran", level=40), strike_skill)
        weak = SimBuild(make_actor("recruit", level=1), strike_skill)

        result = simulate_fight(3, weak, strong, tunables=tunables)

        assert result.winner == Winner.B
        assert result.events[-1].kind == CombatEventKind.DEFEAT
        assert result.events[-1].actor_id == "recruit"

    def test_turn_cap_is_draw(self, duel: tuple[SimBuild, SimBuild], tunables: Any) -> None:
        """Test that reaching the cap with both standing is a draw."""
        result = simulate_fight(5, *duel, max_turns=1, tunables=tunables)

        assert result.turns == 1
        assert result.winner == Winner.DRAW
        assert result.hp_a > 0 and result.hp_b > 0

    def test_cap_floor(self, duel: tuple[SimBuild, SimBuild], tunables: Any) -> None:
        """Test that caps below one still play a turn."""
        assert simulate_fight(5, *duel, max_turns=0, tunables=tunables).turns == 1

    def test_unknown_damage_kind(self, make_actor: Any, strike_skill: Skill, tunables: Any) -> None:
        """Test that a bad pipeline override raises SimulationError."""
        broken = SimBuild(make_actor("alpha"), strike_skill, damage_kind="psychic")

        with pytest.raises(SimulationError) as exc_info:
            simulate_fight(99, broken, SimBuild(make_actor("beta"), strike_skill), tunables=tunables)

        assert exc_info.value.details["seed"] == 99
        assert exc_info.value.details["invariant"] == "damage_kind"


class TestFightLog:
    """Tests for the event and roll logs."""

    def test_sequence_numbers(self, duel: tuple[SimBuild, SimBuild], tunables: Any) -> None:
        """Test that events are numbered in order and turns never go back."""
        result = simulate_fight(8, *duel, tunables=tunables)

        assert [event.sequence for event in result.events] == list(range(len(result.events)))
        turns = [event.turn for event in result.events]
        assert turns == sorted(turns)
        assert turns[-1] == result.turns

    def test_roll_labels(self, duel: tuple[SimBuild, SimBuild], tunables: Any) -> None:
        """Test that every draw is labelled by turn, actors and skill."""
        result = simulate_fight(8, *duel, tunables=tunables)

        assert result.rolls[0].label.startswith("sim:1:")
        assert all(record.label.startswith("sim:") for record in result.rolls)
        assert [record.index for record in result.rolls] == list(range(len(result.rolls)))

    def test_faster_side_acts_first(self, make_actor: Any, strike_skill: Skill, tunables: Any) -> None:
        """Test speed ordering regardless of build position."""
        quick = make_actor("zephyr", stats_base=BaseStats(strength=20, dexterity=60, intelligence=16, vitality=20, wisdom=14))
        slow = make_actor("anvil")

        result = simulate_fight(1, SimBuild(slow, strike_skill), SimBuild(quick, strike_skill), tunables=tunables)

        assert result.events[0].actor_id == "zephyr"

    def test_speed_tie_broken_by_id(self, make_actor: Any, strike_skill: Skill, tunables: Any) -> None:
        """Test that equal speed falls back to actor id order."""
        result = simulate_fight(
            1,
            SimBuild(make_actor("beta"), strike_skill),
            SimBuild(make_actor("alpha"), strike_skill),
            tunables=tunables,
        )
        assert result.events[0].actor_id == "alpha"

    def test_damage_totals_match_events(self, duel: tuple[SimBuild, SimBuild], tunables: Any) -> None:
        """Test that reported damage equals the logged skill damage."""
        result = simulate_fight(21, *duel, tunables=tunables)

        by_alpha = sum(
            event.amount
            for event in result.events
            if event.kind == CombatEventKind.SKILL and event.actor_id == "alpha"
        )
        assert result.total_damage_by_a == by_alpha

    def test_to_dict_is_json(self, duel: tuple[SimBuild, SimBuild], tunables: Any) -> None:
        """Test that the result serializes to JSON."""
        payload = simulate_fight(2, *duel, tunables=tunables).to_dict()

        decoded = json.loads(json.dumps(payload))
        assert decoded["winner"] in {"a", "b", "draw"}
        assert decoded["events"][0]["kind"] == "skill"


class TestStatusesInFights:
    """Tests for statuses applied and ticked during a fight."""

    def test_dot_applied_and_ticked(self, make_actor: Any, burning_wisp: Any) -> None:
        """Test that an on-hit dot lands and ticks on later turns."""
        tunables = build_tunables({"caps": {"hit_min": 1.0, "hit_max": 1.0}})
        ember = Skill(id="ember", element="fire", base_power=10, status_apply=burning_wisp)
        result = simulate_fight(
            4,
            SimBuild(make_actor("alpha"), ember),
            SimBuild(make_actor("beta"), Skill(id="jab", base_power=1)),
            tunables=tunables,
        )

        applied = [event for event in result.events if event.kind == CombatEventKind.STATUS]
        ticks = [event for event in result.events if event.kind == CombatEventKind.TICK]

        assert applied[0].reason == ApplyReason.APPLIED
        assert applied[0].target_id == "beta"
        assert ticks
        assert all(tick.actor_id == "alpha" and tick.target_id == "beta" for tick in ticks)
        assert ticks[0].turn >= 2

    def test_tick_damage_credited(self, make_actor: Any, burning_wisp: Any) -> None:
        """Test that dot damage counts toward the applying side."""
        tunables = build_tunables({"caps": {"hit_min": 1.0, "hit_max": 1.0}})
        ember = Skill(id="ember", element="fire", base_power=10, status_apply=burning_wisp)
        result = simulate_fight(
            4,
            SimBuild(make_actor("alpha"), ember),
            SimBuild(make_actor("beta"), Skill(id="jab", base_power=1)),
            tunables=tunables,
        )

        direct = sum(e.amount for e in result.events if e.kind == CombatEventKind.SKILL and e.actor_id == "alpha")
        ticked = sum(e.amount for e in result.events if e.kind == CombatEventKind.TICK and e.actor_id == "alpha")
        assert result.total_damage_by_a == direct + ticked

    def test_self_heal_targets_user(self, make_actor: Any, mend_skill: Skill, strike_skill: Skill, tunables: Any) -> None:
        """Test that healing builds heal themselves."""
        result = simulate_fight(
            6,
            SimBuild(make_actor("cleric"), mend_skill),
            SimBuild(make_actor("brute"), strike_skill),
            max_turns=5,
            tunables=tunables,
        )

        heals = [e for e in result.events if e.kind == CombatEventKind.SKILL and e.actor_id == "cleric"]
        assert heals
        assert all(event.target_id == "cleric" and event.hit for event in heals)
        assert result.total_damage_by_a == 0

    def test_refreshed_dot_ticks_when_applier_acts_first(self, make_actor: Any, burning_wisp: Any) -> None:
        """Test that a dot refreshed every turn still ticks at the start of each round."""
        tunables = build_tunables({"caps": {"hit_min": 1.0, "hit_max": 1.0}})
        ember = Skill(id="ember", element="fire", base_power=10, status_apply=burning_wisp)
        result = simulate_fight(
            9,
            SimBuild(make_actor("aaa"), ember),
            SimBuild(make_actor("zzz"), Skill(id="jab", base_power=1)),
            max_turns=3,
            tunables=tunables,
        )

        skills = [e for e in result.events if e.kind == CombatEventKind.SKILL]
        ticks = [e for e in result.events if e.kind == CombatEventKind.TICK]
        assert skills[0].actor_id == "aaa"
        assert [tick.turn for tick in ticks] == [2, 3]
        assert all(tick.amount > 0 and tick.target_id == "zzz" for tick in ticks)

    def test_ticks_precede_actions_each_round(self, make_actor: Any, burning_wisp: Any) -> None:
        """Test that a round's ticks are logged before its skill uses."""
        tunables = build_tunables({"caps": {"hit_min": 1.0, "hit_max": 1.0}})
        ember = Skill(id="ember", element="fire", base_power=10, status_apply=burning_wisp)
        result = simulate_fight(
            9,
            SimBuild(make_actor("zzz"), ember),
            SimBuild(make_actor("aaa"), Skill(id="jab", base_power=1)),
            max_turns=3,
            tunables=tunables,
        )

        for turn in (2, 3):
            kinds = [e.kind for e in result.events if e.turn == turn]
            assert kinds[0] == CombatEventKind.TICK
            assert kinds.index(CombatEventKind.SKILL) > 0

    def test_mirror_ids_credit_the_applier(self, make_actor: Any, burning_wisp: Any) -> None:
        """Test that ticks use the applying side even when both actors share an id."""
        tunables = build_tunables({"caps": {"hit_min": 1.0, "hit_max": 1.0}})
        ember = Skill(id="ember", element="fire", base_power=10, status_apply=burning_wisp)
        jab = Skill(id="jab", base_power=1)
        sage = BaseStats(strength=10, dexterity=18, intelligence=60, vitality=20, wisdom=14)
        dunce = BaseStats(strength=10, dexterity=18, intelligence=2, vitality=20, wisdom=14)

        def fight(id_a: str, id_b: str) -> Any:
            return simulate_fight(
                9,
                SimBuild(make_actor(id_a, stats_base=sage), ember),
                SimBuild(make_actor(id_b, stats_base=dunce), jab),
                max_turns=4,
                tunables=tunables,
            )

        mirror = fight("twin", "twin")
        distinct = fight("twin_a", "twin_b")

        def tick_amounts(result: Any) -> list[int]:
            return [e.amount for e in result.events if e.kind == CombatEventKind.TICK]

        assert tick_amounts(mirror)
        assert tick_amounts(mirror) == tick_amounts(distinct)
        assert mirror.total_damage_by_a == distinct.total_damage_by_a
