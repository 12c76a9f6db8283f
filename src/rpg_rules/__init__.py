"""rpg-rules - Deterministic rules core for a turn-based RPG.

Derives combat statistics, resolves skill uses, runs status effects,
generates loot, stocks shops and simulates fights. Every operation is a pure function
of plain records plus an explicit Tunables value; randomness comes only
from a seeded generator whose draws are logged for replay.

Example:
    >>> from rpg_rules import build_tunables, generate_loot_batch
    >>>
    >>> tunables = build_tunables({"combat": {"crit_multiplier": 1.75}})
    >>> batch = generate_loot_batch(42, actor_level=18, count=3, tunables=tunables)
    >>> len(batch.items)
    3

Modules:
    core: Configuration, logging, constants and exceptions.
    models: Pydantic V2 records (actors, items, skills, statuses).
    engine: Stat deriver, status engine, combat, loot and simulation.
"""

from __future__ import annotations

# Core
from rpg_rules.core.config import RulesSettings, get_settings
from rpg_rules.core.constants import RULE_VERSION
from rpg_rules.core.exceptions import RpgRulesError
from rpg_rules.core.logging import configure_logging, get_logger

# Models
from rpg_rules.models import (
    Actor,
    ActiveStatus,
    BaseStats,
    DerivedStats,
    EconomyContext,
    Item,
    Resistances,
    Skill,
    StatModifier,
    StatusEffectDefinition,
)

# Engine
from rpg_rules.engine import (
    SeededRng,
    SimBuild,
    Tunables,
    apply_status_effect,
    build_tunables,
    cleanse_statuses,
    compare_item,
    compute_hit_chance,
    derive_stats,
    expected_damage,
    generate_loot_batch,
    generate_loot_item,
    generate_shop_inventory,
    recompute_actor_stats,
    resolve_skill_use,
    roll_rarity,
    simulate_fight,
    tick_statuses,
    tunables_for_preset,
)


__version__ = "1.0.0"
__all__ = [
    # Version info
    "__version__",
    "RULE_VERSION",
    # Core
    "RpgRulesError",
    "RulesSettings",
    "get_settings",
    "configure_logging",
    "get_logger",
    # Models
    "Actor",
    "ActiveStatus",
    "BaseStats",
    "DerivedStats",
    "EconomyContext",
    "Item",
    "Resistances",
    "Skill",
    "StatModifier",
    "StatusEffectDefinition",
    # Engine
    "SeededRng",
    "SimBuild",
    "Tunables",
    "apply_status_effect",
    "build_tunables",
    "cleanse_statuses",
    "compare_item",
    "compute_hit_chance",
    "derive_stats",
    "expected_damage",
    "generate_loot_batch",
    "generate_loot_item",
    "generate_shop_inventory",
    "recompute_actor_stats",
    "resolve_skill_use",
    "roll_rarity",
    "simulate_fight",
    "tick_statuses",
    "tunables_for_preset",
]
