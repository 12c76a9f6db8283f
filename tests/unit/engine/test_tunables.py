"""Tests for the Tunables tree and override merge."""

from __future__ import annotations

from typing import Any

import pytest
from pydantic import ValidationError

from rpg_rules.core.constants import RULE_VERSION
from rpg_rules.engine.tunables import (
    AffixDefinition,
    CapTunables,
    LevelTunables,
    MergeMode,
    PointGrant,
    Tunables,
    build_tunables,
    merge_mode_for,
    tunables_for_preset,
)
from rpg_rules.models import Rarity, Stat


class TestDefaults:
    """Tests for the default Tunables value."""

    def test_rule_version(self) -> None:
        """Test that tunables carry the rules version."""
        assert build_tunables().rule_version == RULE_VERSION

    def test_documented_defaults(self, tunables: Any) -> None:
        """Test a sample of the documented defaults."""
        assert tunables.caps.hit_min == 0.05
        assert tunables.caps.hit_max == 0.95
        assert tunables.caps.resist_min == -0.5
        assert tunables.caps.resist_max == 0.8
        assert tunables.diminishing_returns.defense.soft_cap == 180
        assert tunables.combat.crit_multiplier == 1.5
        assert tunables.loot.rarity_weights.get(Rarity.COMMON) == 54

    def test_rarity_pairs_in_tier_order(self, tunables: Any) -> None:
        """Test that rarity pairs follow tier order."""
        pairs = tunables.loot.rarity_weights.pairs()
        assert [rarity for rarity, _ in pairs] == list(Rarity)

    def test_frozen(self, tunables: Any) -> None:
        """Test that tunables cannot be mutated."""
        with pytest.raises(ValidationError):
            tunables.combat.crit_multiplier = 3.0

    def test_cap_ranges_validated(self) -> None:
        """Test that inverted caps are rejected."""
        with pytest.raises(ValidationError):
            CapTunables(hit_min=0.9, hit_max=0.5)

    def test_affix_needs_one_target(self) -> None:
        """Test that an affix targets exactly one stat or element."""
        with pytest.raises(ValidationError):
            AffixDefinition(id="odd", label="of Oddness", cost=1.0)
        assert AffixDefinition(id="might", label="of Might", stat=Stat.ATTACK, cost=1.0).stat == Stat.ATTACK


class TestMergeMode:
    """Tests for schema-driven merge behavior."""

    def test_modes_by_annotation(self) -> None:
        """Test how field types map to merge modes."""
        fields = LevelTunables.model_fields
        assert merge_mode_for(fields["xp_presets"].annotation) == MergeMode.MERGE
        assert merge_mode_for(fields["milestone_bonuses"].annotation) == MergeMode.MERGE_KEYS
        assert merge_mode_for(fields["default_max_level"].annotation) == MergeMode.REPLACE
        assert merge_mode_for(Tunables.model_fields["loot"].annotation) == MergeMode.MERGE


class TestBuildTunables:
    """Tests for build_tunables."""

    def test_no_overrides_returns_defaults(self) -> None:
        """Test that missing overrides yield the defaults."""
        assert build_tunables() == Tunables()
        assert build_tunables({}) == Tunables()

    def test_nested_override_keeps_siblings(self) -> None:
        """Test that a deep override preserves untouched fields."""
        tunables = build_tunables({"combat": {"crit_multiplier": 2.0}, "caps": {"hit_max": 0.9}})

        assert tunables.combat.crit_multiplier == 2.0
        assert tunables.combat.variance_pct == 0.1
        assert tunables.caps.hit_max == 0.9
        assert tunables.caps.hit_min == 0.05

    def test_rarity_table_partial_override(self) -> None:
        """Test overriding one tier of a table."""
        tunables = build_tunables({"loot": {"rarity_weights": {"mythic": 0}}})

        assert tunables.loot.rarity_weights.mythic == 0
        assert tunables.loot.rarity_weights.rare == 12

    def test_tuples_replaced_wholesale(self) -> None:
        """Test that sequence fields are replaced, not merged."""
        pool = [{"id": "might", "label": "of Might", "stat": "attack", "cost": 1.0}] * 5
        tunables = build_tunables({"loot": {"affix_pool": pool}})

        assert len(tunables.loot.affix_pool) == 5
        assert tunables.loot.affix_pool[0].id == "might"

    def test_dict_fields_merge_by_key(self) -> None:
        """Test that milestone bonuses merge key by key."""
        tunables = build_tunables({"levels": {"milestone_bonuses": {15: {"stat_points": 9}}}})

        assert tunables.levels.milestone_bonuses[15] == PointGrant(stat_points=9)
        assert tunables.levels.milestone_bonuses[5] == PointGrant(stat_points=2, skill_points=1)

    def test_unknown_keys_ignored(self) -> None:
        """Test that unknown override keys are skipped."""
        tunables = build_tunables({"combat": {"mana_burn": 3}, "weather": {"rain": 1}})

        assert tunables == Tunables()

    def test_invalid_value_keeps_default(self) -> None:
        """Test that a wrongly-typed value is dropped and the default kept."""
        tunables = build_tunables({"combat": {"crit_multiplier": "lots", "variance_pct": 0.2}})

        assert tunables.combat.crit_multiplier == 1.5
        assert tunables.combat.variance_pct == 0.2

    def test_out_of_range_value_keeps_base(self) -> None:
        """Test that a value outside its bounds leaves the base value in place."""
        base = build_tunables({"economy": {"sell_rate": 0.5}})
        tunables = build_tunables({"economy": {"sell_rate": 4.0}}, base=base)

        assert tunables.economy.sell_rate == 0.5

    def test_table_constraint_violation_keeps_defaults(self) -> None:
        """Test that cross-field table checks fall back to the current table."""
        tunables = build_tunables(
            {"loot": {"affix_share_min": 0.9, "affix_share_max": 0.3}, "combat": {"crit_multiplier": 2.0}}
        )

        assert tunables.loot == Tunables().loot
        assert tunables.combat.crit_multiplier == 2.0

    def test_non_mapping_section_ignored(self) -> None:
        """Test that a scalar in place of a section is dropped."""
        tunables = build_tunables({"caps": 3, "skills": {"mp_cost_max": 50.0}})

        assert tunables.caps == Tunables().caps
        assert tunables.skills.mp_cost_max == 50.0

    def test_base_is_respected(self) -> None:
        """Test layering overrides onto an existing value."""
        first = build_tunables({"combat": {"crit_multiplier": 2.0}})
        second = build_tunables({"combat": {"variance_pct": 0.2}}, base=first)

        assert second.combat.crit_multiplier == 2.0
        assert second.combat.variance_pct == 0.2


class TestTunablesForPreset:
    """Tests for tunables_for_preset."""

    def test_preset_sets_level_cap(self) -> None:
        """Test that the preset's cap becomes the default cap."""
        overrides = {"levels": {"xp_presets": {"fast": {"max_level": 30}}}}
        tunables = tunables_for_preset("fast", overrides)

        assert tunables.levels.default_max_level == 30

    def test_case_insensitive(self) -> None:
        """Test that preset names are case-insensitive."""
        assert tunables_for_preset("GRINDY").levels.default_max_level == 60

    def test_unknown_preset_falls_back(self) -> None:
        """Test that an unknown preset uses the standard curve."""
        overrides = {"levels": {"xp_presets": {"standard": {"max_level": 45}}}}
        tunables = tunables_for_preset("turbo", overrides)

        assert tunables.levels.default_max_level == 45
