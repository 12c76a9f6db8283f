"""Tests for XP curves and level resolution."""

from __future__ import annotations

from typing import Any

import pytest

from rpg_rules.engine.leveling import (
    apply_xp_gain,
    points_granted_for_level,
    resolve_level_from_xp,
    total_points_through_level,
    xp_to_next,
    xp_to_reach_level,
)
from rpg_rules.engine.tunables import PointGrant, build_tunables


class TestXpCurve:
    """Tests for xp_to_next and friends."""

    @pytest.mark.parametrize(
        ("preset", "expected"),
        [("fast", 62), ("standard", 92), ("grindy", 145)],
    )
    def test_first_level(self, preset: str, expected: int, tunables: Any) -> None:
        """Test the first step of each preset curve."""
        assert xp_to_next(1, preset=preset, tunables=tunables) == expected

    @pytest.mark.parametrize("preset", ["fast", "standard", "grindy"])
    def test_strictly_increasing(self, preset: str, tunables: Any) -> None:
        """Test that each level costs more than the one before."""
        costs = [xp_to_next(level, preset=preset, tunables=tunables) for level in range(1, 60)]
        assert all(later > earlier for earlier, later in zip(costs, costs[1:]))

    def test_presets_ordered(self, tunables: Any) -> None:
        """Test that grindy costs more than standard, which costs more than fast."""
        for level in (1, 10, 30, 59):
            fast = xp_to_next(level, preset="fast", tunables=tunables)
            standard = xp_to_next(level, preset="standard", tunables=tunables)
            grindy = xp_to_next(level, preset="grindy", tunables=tunables)
            assert fast < standard < grindy

    def test_zero_at_cap(self, tunables: Any) -> None:
        """Test that the level cap needs no more experience."""
        assert xp_to_next(60, tunables=tunables) == 0
        assert xp_to_next(75, tunables=tunables) == 0

    def test_cap_from_tunables(self) -> None:
        """Test a lowered level cap."""
        tunables = build_tunables({"levels": {"default_max_level": 10}})
        assert xp_to_next(10, tunables=tunables) == 0
        assert xp_to_next(9, tunables=tunables) > 0

    def test_reach_level_sums_steps(self, tunables: Any) -> None:
        """Test cumulative experience."""
        assert xp_to_reach_level(1, tunables=tunables) == 0
        assert xp_to_reach_level(3, tunables=tunables) == xp_to_next(1, tunables=tunables) + xp_to_next(
            2, tunables=tunables
        )


class TestPoints:
    """Tests for point grants."""

    def test_regular_level(self, tunables: Any) -> None:
        """Test the per-level grant."""
        assert points_granted_for_level(2, tunables) == PointGrant(stat_points=3, skill_points=1)

    def test_milestone(self, tunables: Any) -> None:
        """Test a milestone level adds its bonus."""
        assert points_granted_for_level(5, tunables) == PointGrant(stat_points=5, skill_points=2)

    def test_level_one_grants_nothing(self, tunables: Any) -> None:
        """Test the starting level."""
        assert points_granted_for_level(1, tunables) == PointGrant()

    def test_total_through_level(self, tunables: Any) -> None:
        """Test summing grants from level 2."""
        assert total_points_through_level(5, tunables) == PointGrant(stat_points=14, skill_points=5)


class TestLevelResolution:
    """Tests for resolve_level_from_xp and apply_xp_gain."""

    def test_round_trip(self, tunables: Any) -> None:
        """Test that the experience to reach a level resolves to that level."""
        total = xp_to_reach_level(12, tunables=tunables)

        assert resolve_level_from_xp(total, tunables=tunables) == (12, 0)
        assert resolve_level_from_xp(total + 5, tunables=tunables) == (12, 5)

    def test_negative_xp(self, tunables: Any) -> None:
        """Test that negative totals resolve to level 1."""
        assert resolve_level_from_xp(-50, tunables=tunables) == (1, 0)

    def test_single_level_up(self, tunables: Any) -> None:
        """Test gaining exactly one level."""
        gain = apply_xp_gain(1, 0, 92, tunables=tunables)

        assert gain.level == 2
        assert gain.xp == 0
        assert gain.levels_gained == 1
        assert gain.stat_points == 3
        assert gain.skill_points == 1
        assert gain.xp_to_next == xp_to_next(2, tunables=tunables)

    def test_multi_level_up_collects_milestones(self, tunables: Any) -> None:
        """Test crossing a milestone in one gain."""
        needed = xp_to_reach_level(6, tunables=tunables) - xp_to_reach_level(3, tunables=tunables)
        gain = apply_xp_gain(3, 0, needed + 1, tunables=tunables)

        assert gain.level == 6
        assert gain.xp == 1
        assert gain.stat_points == 3 + 5 + 3
        assert gain.skill_points == 1 + 2 + 1

    def test_partial_progress_kept(self, tunables: Any) -> None:
        """Test experience below the threshold accumulates."""
        gain = apply_xp_gain(4, 10, 20, tunables=tunables)

        assert gain.level == 4
        assert gain.xp == 30
        assert gain.levels_gained == 0

    def test_negative_gain_ignored(self, tunables: Any) -> None:
        """Test that negative gains change nothing."""
        gain = apply_xp_gain(4, 10, -500, tunables=tunables)
        assert (gain.level, gain.xp) == (4, 10)

    def test_stops_at_cap(self, tunables: Any) -> None:
        """Test that experience stops at the level cap."""
        gain = apply_xp_gain(59, 0, 10**9, tunables=tunables)

        assert gain.level == 60
        assert gain.xp == 0
        assert gain.xp_to_next == 0
