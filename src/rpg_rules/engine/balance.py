"""Offline balance harness.

Runs many seeded fights between two builds and aggregates the outcomes,
so formula changes can be checked against the designed time-to-kill
band. ``build_sample_build`` produces the reference builds used by the
balance test-suite and by the ``rpg-rules-balance`` command.

Example:
    $ rpg-rules-balance --trials 200 --level 12
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass
from typing import Any

from rpg_rules.core.config import get_settings
from rpg_rules.core.constants import DEFAULT_MAX_TURNS
from rpg_rules.core.exceptions import ConfigurationError, RpgRulesError
from rpg_rules.core.logging import bind_context, clear_context, configure_logging, get_logger
from rpg_rules.engine.actors import recompute_actor_stats
from rpg_rules.engine.simulator import SimBuild, simulate_fight
from rpg_rules.engine.tunables import Tunables, tunables_for_preset
from rpg_rules.models.actor import Actor
from rpg_rules.models.enums import DamageKind, Element, Winner
from rpg_rules.models.skills import Skill
from rpg_rules.models.stats import BaseStats, Resistances


logger = get_logger(__name__)


SAMPLE_RESISTANCES = Resistances(
    physical=0.08,
    fire=0.1,
    ice=0.1,
    lightning=0.1,
    poison=0.1,
    bleed=0.1,
    stun=0.1,
    holy=0.08,
    shadow=0.08,
    arcane=0.08,
    wind=0.08,
    earth=0.08,
    water=0.08,
)
"""Innate resistances every sample build starts with."""


@dataclass(frozen=True)
class BalanceReport:
    """Aggregated outcome of a batch of simulated fights.

    Attributes:
        trials: Fights run.
        wins_a: Fights won by side A.
        wins_b: Fights won by side B.
        draws: Fights ending in a draw.
        average_turns: Mean fight length in turns.
        min_turns: Shortest fight.
        max_turns: Longest fight.
    """

    trials: int
    wins_a: int
    wins_b: int
    draws: int
    average_turns: float
    min_turns: int
    max_turns: int

    def within_band(self, low: float, high: float) -> bool:
        """Check whether the average fight length lies in [low, high]."""
        return low <= self.average_turns <= high

    def to_dict(self) -> dict[str, Any]:
        """Convert the report to a JSON-compatible dictionary."""
        return asdict(self)


def build_sample_build(
    actor_id: str,
    name: str,
    *,
    level: int,
    offense: int,
    defense: int,
    control: int,
    support: int,
    mobility: int,
    utility: int,
    skill_name: str,
    skill_power: float,
    skill_power_scale: float = 5.0,
    mp_cost: int = 4,
    element: Element = Element.PHYSICAL,
    damage_kind: DamageKind = DamageKind.PHYSICAL,
    tunables: Tunables,
) -> SimBuild:
    """Build a reference combatant from six design axes.

    Offense, defense and control map onto strength, vitality and
    intelligence; wisdom is the mean of support and utility; mobility
    drives dexterity. Every attribute grows by one point per level.

    Args:
        actor_id: Actor id; also prefixes the skill id.
        name: Display name.
        level: Actor level.
        offense: Strength at level 1.
        defense: Vitality at level 1.
        control: Intelligence at level 1.
        support: Wisdom contribution.
        mobility: Dexterity at level 1.
        utility: Wisdom contribution.
        skill_name: Display name of the build's skill.
        skill_power: Base power of the skill.
        skill_power_scale: Power per skill rank.
        mp_cost: Flat mp cost of the skill.
        element: Element of the skill.
        damage_kind: Pipeline the skill runs through.
        tunables: Balance constants.

    Returns:
        A build with freshly derived stats.
    """
    skill = Skill(
        id=f"{actor_id}-skill",
        name=skill_name,
        element=element,
        tags=("heal",) if damage_kind == DamageKind.HEALING else ("melee",),
        rank=1,
        max_rank=5,
        mp_cost_base=max(0, int(mp_cost)),
        mp_cost_scale=0.6,
        mp_level_scale=0.08,
        base_power=skill_power,
        power_scale=skill_power_scale,
        level_scale=0.45,
        hit_bonus=0.06,
        crit_bonus=0.04,
        description="Simulation skill",
    )
    actor = Actor(
        id=actor_id,
        name=name,
        level=level,
        class_tags=("hybrid",),
        stats_base=BaseStats(
            strength=offense,
            vitality=defense,
            intelligence=control,
            wisdom=(support + utility) // 2,
            dexterity=mobility,
        ),
        stats_growth=BaseStats(strength=1, dexterity=1, intelligence=1, vitality=1, wisdom=1),
        resistances=SAMPLE_RESISTANCES,
        skills=(skill,),
    )
    return SimBuild(actor=recompute_actor_stats(actor, tunables), skill=skill, damage_kind=damage_kind)


def run_balance_trials(
    build_a: SimBuild,
    build_b: SimBuild,
    *,
    seeds: Iterable[int],
    max_turns: int = DEFAULT_MAX_TURNS,
    tunables: Tunables,
) -> BalanceReport:
    """Fight two builds once per seed and aggregate the results.

    Args:
        build_a: First build.
        build_b: Second build.
        seeds: One fight per seed.
        max_turns: Turn cap of each fight.
        tunables: Balance constants.

    Returns:
        Win counts and fight-length statistics.

    Raises:
        ValueError: If ``seeds`` is empty.
    """
    turns: list[int] = []
    wins = {Winner.A: 0, Winner.B: 0, Winner.DRAW: 0}
    try:
        for seed in seeds:
            bind_context(trial_seed=seed)
            result = simulate_fight(seed, build_a, build_b, max_turns=max_turns, tunables=tunables)
            turns.append(result.turns)
            wins[result.winner] += 1
    finally:
        clear_context()

    if not turns:
        raise ValueError("run_balance_trials needs at least one seed")

    report = BalanceReport(
        trials=len(turns),
        wins_a=wins[Winner.A],
        wins_b=wins[Winner.B],
        draws=wins[Winner.DRAW],
        average_turns=sum(turns) / len(turns),
        min_turns=min(turns),
        max_turns=max(turns),
    )
    logger.info("balance trials finished", **report.to_dict())
    return report


def sample_duel(level: int, tunables: Tunables) -> tuple[SimBuild, SimBuild]:
    """Two near-equal physical knights of the same level."""
    knight_a = build_sample_build(
        "a",
        "Knight A",
        level=level,
        offense=22,
        defense=20,
        control=18,
        support=16,
        mobility=18,
        utility=14,
        skill_name="Measured Slash",
        skill_power=18,
        tunables=tunables,
    )
    knight_b = build_sample_build(
        "b",
        "Knight B",
        level=level,
        offense=21,
        defense=21,
        control=17,
        support=16,
        mobility=17,
        utility=14,
        skill_name="Measured Slash",
        skill_power=18,
        tunables=tunables,
    )
    return knight_a, knight_b


# =============================================================================
# Command Line
# =============================================================================


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="rpg-rules-balance",
        description="Fight two near-equal sample builds over many seeds and report time-to-kill.",
    )
    parser.add_argument("--trials", type=int, default=settings.simulation.trials, help="Number of fights")
    parser.add_argument("--seed-base", type=int, default=settings.simulation.seed_base, help="First seed")
    parser.add_argument(
        "--max-turns", type=int, default=settings.simulation.max_turns, help="Turn cap per fight"
    )
    parser.add_argument("--level", type=int, default=12, help="Level of both sample builds")
    parser.add_argument(
        "--preset",
        default=settings.tunables.xp_preset,
        help="XP preset used to build tunables",
    )
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the balance harness from the command line.

    Returns:
        0 when the average fight length lies inside the configured band,
        1 when it does not, 2 on invalid input or a rules version mismatch.
    """
    args = _parse_args(argv)
    settings = get_settings()
    configure_logging(level=settings.effective_log_level, json_format=settings.json_logs)

    if args.trials < 1:
        logger.error("trials must be positive", trials=args.trials)
        return 2

    try:
        tunables = tunables_for_preset(args.preset)
        if tunables.rule_version != settings.rule_version:
            raise ConfigurationError(
                f"Tunables are rules {tunables.rule_version!r} but settings expect {settings.rule_version!r}",
                config_key="rule_version",
            )
        build_a, build_b = sample_duel(max(1, args.level), tunables)
        report = run_balance_trials(
            build_a,
            build_b,
            seeds=range(args.seed_base, args.seed_base + args.trials),
            max_turns=args.max_turns,
            tunables=tunables,
        )
    except RpgRulesError as e:
        logger.error("balance run failed", error=e.message, **e.details)
        return 2

    band = (settings.simulation.ttk_band_min, settings.simulation.ttk_band_max)
    in_band = report.within_band(*band)
    if args.json:
        print(json.dumps({**report.to_dict(), "ttk_band": list(band), "within_band": in_band}, indent=2))
    else:
        print(f"trials:        {report.trials}")
        print(f"wins a/b/draw: {report.wins_a}/{report.wins_b}/{report.draws}")
        print(f"turns avg:     {report.average_turns:.2f} (min {report.min_turns}, max {report.max_turns})")
        print(f"ttk band:      {band[0]:g}-{band[1]:g} ({'ok' if in_band else 'OUT OF BAND'})")
    return 0 if in_band else 1


__all__ = [
    "SAMPLE_RESISTANCES",
    "BalanceReport",
    "build_sample_build",
    "sample_duel",
    "run_balance_trials",
    "main",
]


if __name__ == "__main__":
    sys.exit(main())
