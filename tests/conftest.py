"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the rpg-rules test suite.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest


if TYPE_CHECKING:
    from collections.abc import Callable, Generator


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from rpg_rules.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def reset_structlog_config() -> Generator[None, None, None]:
    """Restore structlog defaults so no test logs to another test's captured stream."""
    import structlog

    yield
    structlog.reset_defaults()


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up mock environment variables for testing.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "RPG_RULES_DEBUG": "true",
        "RPG_RULES_LOG_LEVEL": "WARNING",
        "RPG_RULES_SIM_TRIALS": "25",
        "RPG_RULES_TUNABLES_XP_PRESET": "fast",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture
def tunables() -> Any:
    """Provide the default balance constants.

    Returns:
        Default Tunables value.
    """
    from rpg_rules.engine.tunables import build_tunables

    return build_tunables()


# =============================================================================
# Actor Fixtures
# =============================================================================


@pytest.fixture
def make_actor(tunables: Any) -> Callable[..., Any]:
    """Provide a factory for actors with freshly derived stats.

    Returns:
        Callable taking an id plus Actor field overrides.
    """
    from rpg_rules.engine.actors import recompute_actor_stats
    from rpg_rules.models import Actor, BaseStats

    def factory(actor_id: str = "hero", **overrides: Any) -> Any:
        fields: dict[str, Any] = {
            "id": actor_id,
            "name": actor_id.title(),
            "level": 10,
            "stats_base": BaseStats(strength=20, dexterity=18, intelligence=16, vitality=20, wisdom=14),
            "stats_growth": BaseStats(strength=1, dexterity=1, intelligence=1, vitality=1, wisdom=1),
        }
        fields.update(overrides)
        return recompute_actor_stats(Actor(**fields), tunables)

    return factory


@pytest.fixture
def strike_skill() -> Any:
    """Provide a basic physical strike.

    Returns:
        Skill instance.
    """
    from rpg_rules.models import Skill

    return Skill(
        id="strike",
        name="Strike",
        tags=["melee"],
        rank=1,
        max_rank=5,
        mp_cost_base=4,
        mp_cost_scale=0.6,
        mp_level_scale=0.08,
        base_power=24,
        power_scale=4,
        level_scale=0.45,
        hit_bonus=0.06,
        crit_bonus=0.04,
        description="Basic strike",
    )


@pytest.fixture
def mend_skill() -> Any:
    """Provide a direct healing skill.

    Returns:
        Skill instance.
    """
    from rpg_rules.models import Element, Skill

    return Skill(id="mend", name="Mend", element=Element.HOLY, tags=["heal"], base_power=12)


@pytest.fixture
def sample_duel(tunables: Any) -> tuple[Any, Any]:
    """Provide the two near-equal level-12 knights.

    Returns:
        (build_a, build_b) tuple.
    """
    from rpg_rules.engine.balance import sample_duel

    return sample_duel(12, tunables)


# =============================================================================
# Status Fixtures
# =============================================================================


@pytest.fixture
def burning_wisp() -> Any:
    """Provide a low-rank fire damage-over-time status.

    Returns:
        StatusEffectDefinition instance.
    """
    from rpg_rules.models import Element, StatusEffectDefinition, TickFormula

    return StatusEffectDefinition(
        id="burning_wisp",
        name="Burning Wisp",
        category="dot",
        duration_turns=3,
        tick_formula=TickFormula(element=Element.FIRE, base_tick=3, dot_scale=0.18, rank_tick=1),
    )


@pytest.fixture
def warm_bloom() -> Any:
    """Provide a short holy heal-over-time status.

    Returns:
        StatusEffectDefinition instance.
    """
    from rpg_rules.models import Element, StatusEffectDefinition, TickFormula

    return StatusEffectDefinition(
        id="warm_bloom",
        name="Warm Bloom",
        category="hot",
        duration_turns=2,
        tick_formula=TickFormula(element=Element.HOLY, base_tick=6, hot_scale=0.28, rank_tick=0),
    )


@pytest.fixture
def bleed() -> Any:
    """Provide a stacking bleed with a three-stack cap.

    Returns:
        StatusEffectDefinition instance.
    """
    from rpg_rules.models import StatusEffectDefinition

    return StatusEffectDefinition(
        id="bleed",
        category="dot",
        duration_turns=4,
        stacking="stack",
        max_stacks=3,
    )
