"""Rules engine for the rpg-rules core.

Every function here is pure: it takes records and a Tunables value and
returns new records. Randomness comes only from SeededRng, so identical
seeds and inputs always give identical outputs.

Submodules:
    tunables: Balance constants and the override merge
    rng: mulberry32 generator with an audit roll log
    stats: Stat deriver and diminishing-returns curve
    equipment: Item modifiers, set bonuses, equip checks and comparison
    status: Status application, ticking and cleansing
    skills: Skill cost and power formulas
    combat: Hit, crit and damage resolution
    leveling: XP curves and point grants
    actors: Recompute, equip and XP operations on actors
    loot: Rarity, item and batch generation
    economy: Shop prices and stock
    simulator: Two-build fight simulation
    balance: Batch trials and the balance command

Example:
    >>> from rpg_rules.engine import build_tunables, sample_duel, simulate_fight
    >>> tunables = build_tunables()
    >>> knight_a, knight_b = sample_duel(12, tunables)
    >>> result = simulate_fight(7, knight_a, knight_b, tunables=tunables)
    >>> result.winner in ("a", "b", "draw")
    True
"""

from __future__ import annotations

# =============================================================================
# Tunables
# =============================================================================
from rpg_rules.engine.tunables import Tunables, build_tunables, tunables_for_preset

# =============================================================================
# Randomness
# =============================================================================
from rpg_rules.engine.rng import RollRecord, SeededRng, derive_seed, normalize_seed, seeded_float

# =============================================================================
# Stats and Equipment
# =============================================================================
from rpg_rules.engine.stats import (
    DerivedStatsResult,
    apply_diminishing,
    clamp,
    curve_resistance,
    derive_stats,
    grow_base_stats,
)
from rpg_rules.engine.equipment import (
    DEFAULT_SET_BONUSES,
    EquipValidation,
    ItemComparison,
    SetBonus,
    aggregate_equipment_mods,
    can_equip_item,
    compare_item,
)

# =============================================================================
# Status Effects
# =============================================================================
from rpg_rules.engine.status import (
    StatusApplyResult,
    StatusTickResult,
    apply_status_effect,
    cleanse_statuses,
    compute_tick_amount,
    has_status_immunity,
    stat_mods_from_statuses,
    tick_statuses,
)

# =============================================================================
# Skills and Combat
# =============================================================================
from rpg_rules.engine.skills import compute_skill_mp_cost, compute_skill_power, power_summary
from rpg_rules.engine.combat import (
    compute_crit_chance,
    compute_hit_chance,
    expected_damage,
    resolve_skill_use,
)

# =============================================================================
# Progression and Actors
# =============================================================================
from rpg_rules.engine.leveling import LevelGainResult, apply_xp_gain, resolve_level_from_xp, xp_to_next
from rpg_rules.engine.actors import (
    effective_base_stats,
    equip_item,
    grant_xp,
    recompute_actor_stats,
    unequip_slot,
)

# =============================================================================
# Loot and Economy
# =============================================================================
from rpg_rules.engine.loot import (
    generate_gold_drop,
    generate_loot_batch,
    generate_loot_item,
    rarity_distribution,
    roll_rarity,
)
from rpg_rules.engine.economy import (
    compute_buy_price,
    compute_sell_price,
    generate_shop_inventory,
    inflation_multiplier,
)

# =============================================================================
# Simulation
# =============================================================================
from rpg_rules.engine.simulator import FightResult, SimBuild, simulate_fight
from rpg_rules.engine.balance import BalanceReport, build_sample_build, run_balance_trials, sample_duel


__all__ = [
    # Tunables
    "Tunables",
    "build_tunables",
    "tunables_for_preset",
    # Randomness
    "RollRecord",
    "SeededRng",
    "derive_seed",
    "normalize_seed",
    "seeded_float",
    # Stats and equipment
    "DerivedStatsResult",
    "apply_diminishing",
    "clamp",
    "curve_resistance",
    "derive_stats",
    "grow_base_stats",
    "DEFAULT_SET_BONUSES",
    "EquipValidation",
    "SetBonus",
    "aggregate_equipment_mods",
    "can_equip_item",
    "ItemComparison",
    "compare_item",
    # Status effects
    "StatusApplyResult",
    "StatusTickResult",
    "apply_status_effect",
    "cleanse_statuses",
    "compute_tick_amount",
    "has_status_immunity",
    "stat_mods_from_statuses",
    "tick_statuses",
    # Skills and combat
    "compute_skill_mp_cost",
    "compute_skill_power",
    "power_summary",
    "compute_crit_chance",
    "compute_hit_chance",
    "expected_damage",
    "resolve_skill_use",
    # Progression and actors
    "LevelGainResult",
    "apply_xp_gain",
    "resolve_level_from_xp",
    "xp_to_next",
    "effective_base_stats",
    "equip_item",
    "grant_xp",
    "recompute_actor_stats",
    "unequip_slot",
    # Loot and economy
    "generate_gold_drop",
    "generate_loot_batch",
    "generate_loot_item",
    "rarity_distribution",
    "roll_rarity",
    "compute_buy_price",
    "compute_sell_price",
    "generate_shop_inventory",
    "inflation_multiplier",
    # Simulation
    "FightResult",
    "SimBuild",
    "simulate_fight",
    "BalanceReport",
    "build_sample_build",
    "run_balance_trials",
    "sample_duel",
]
