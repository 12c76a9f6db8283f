"""Tests for actor-level operations."""

from __future__ import annotations

from typing import Any

import pytest

from rpg_rules.core.exceptions import ValidationError
from rpg_rules.engine.actors import effective_base_stats, equip_item, grant_xp, recompute_actor_stats, unequip_slot
from rpg_rules.engine.leveling import xp_to_next
from rpg_rules.engine.status import apply_status_effect
from rpg_rules.models import (
    EquipmentSlot,
    Item,
    Resistances,
    StatModifier,
    StatusEffectDefinition,
    StatValues,
)


def _item(item_id: str, slot: EquipmentSlot, **fields: Any) -> Item:
    return Item(id=item_id, name=item_id.title(), slot=slot, **fields)


class TestRecompute:
    """Tests for recompute_actor_stats."""

    def test_growth_applied(self, make_actor: Any) -> None:
        """Test that level growth feeds the derived stats."""
        hero = make_actor()

        assert effective_base_stats(hero).vitality == 29
        assert hero.stats_derived.hp == 29 * 12 + 10 * 8

    def test_base_stats_untouched(self, make_actor: Any) -> None:
        """Test that the stored level-1 stats are never rewritten."""
        assert make_actor().stats_base.vitality == 20

    def test_statuses_feed_stats(self, make_actor: Any, tunables: Any) -> None:
        """Test that active status modifiers are included."""
        hero = make_actor()
        fury = StatusEffectDefinition(id="fury", category="buff", stat_mods=StatModifier(flat=StatValues(attack=15)))
        statuses = apply_status_effect(hero.statuses, fury, tunables=tunables).statuses

        buffed = recompute_actor_stats(hero.model_copy(update={"statuses": statuses}), tunables)

        assert buffed.stats_derived.attack == hero.stats_derived.attack + 15

    def test_innate_resistances(self, make_actor: Any) -> None:
        """Test that innate resistances flow into the derived ones."""
        hero = make_actor(resistances=Resistances(poison=0.3))
        assert hero.resistances_derived.poison == pytest.approx(0.3 + 23 * 0.0025)

    def test_barrier_preserved(self, make_actor: Any, tunables: Any) -> None:
        """Test that recomputing does not refill or clear the barrier."""
        hero = make_actor(barrier=12)
        assert recompute_actor_stats(hero, tunables).barrier == 12


class TestEquip:
    """Tests for equip_item and unequip_slot."""

    def test_equip_updates_stats(self, make_actor: Any, tunables: Any) -> None:
        """Test that equipping refreshes the derived stats."""
        hero = make_actor()
        sword = _item("sword", EquipmentSlot.WEAPON, stats_flat=StatModifier(flat=StatValues(attack=10)))

        armed = equip_item(hero, sword, tunables)

        assert armed.equipment.weapon == sword
        assert armed.stats_derived.attack == hero.stats_derived.attack + 10
        assert hero.equipment.weapon is None

    def test_equip_replaces(self, make_actor: Any, tunables: Any) -> None:
        """Test that equipping an occupied slot replaces the old item."""
        old = _item("old", EquipmentSlot.HEAD)
        new = _item("new", EquipmentSlot.HEAD)
        hero = equip_item(equip_item(make_actor(), old, tunables), new, tunables)

        assert hero.equipment.head == new

    def test_accessories_fill_both_slots(self, make_actor: Any, tunables: Any) -> None:
        """Test that a second ring goes into the free accessory slot."""
        hero = make_actor()
        hero = equip_item(hero, _item("ring_a", EquipmentSlot.ACCESSORY1), tunables)
        hero = equip_item(hero, _item("ring_b", EquipmentSlot.ACCESSORY1), tunables)

        assert hero.equipment.accessory1.id == "ring_a"
        assert hero.equipment.accessory2.id == "ring_b"

    def test_set_bonus_applied(self, make_actor: Any, tunables: Any) -> None:
        """Test that completing a set tier changes stats."""
        hero = make_actor()
        hero = equip_item(hero, _item("oak_helm", EquipmentSlot.HEAD, set_tag="oakguard"), tunables)
        one_piece = hero.stats_derived.hp
        hero = equip_item(hero, _item("oak_legs", EquipmentSlot.LEGS, set_tag="oakguard"), tunables)

        assert hero.stats_derived.hp == one_piece + 24

    def test_rejected_equip_raises(self, make_actor: Any, tunables: Any) -> None:
        """Test that invalid requests raise ValidationError."""
        hero = make_actor(level=2)
        heavy = _item("heavy", EquipmentSlot.CHEST, level_req=20)

        with pytest.raises(ValidationError) as exc_info:
            equip_item(hero, heavy, tunables)

        assert "level_too_low" in exc_info.value.message
        assert exc_info.value.details["field_name"] == "equipment"

    def test_unequip_restores(self, make_actor: Any, tunables: Any) -> None:
        """Test that unequipping reverses the stat change."""
        hero = make_actor()
        sword = _item("sword", EquipmentSlot.WEAPON, stats_flat=StatModifier(flat=StatValues(attack=10)))

        bare = unequip_slot(equip_item(hero, sword, tunables), "weapon", tunables)

        assert bare.equipment.weapon is None
        assert bare.stats_derived == hero.stats_derived


class TestGrantXp:
    """Tests for grant_xp."""

    def test_level_up(self, make_actor: Any, tunables: Any) -> None:
        """Test that a level-up refreshes stats and grants points."""
        hero = make_actor()
        leveled = grant_xp(hero, xp_to_next(10, tunables=tunables), tunables)

        assert leveled.level == 11
        assert leveled.xp == 0
        assert leveled.stat_points_available == hero.stat_points_available + 3
        assert leveled.skill_points_available == hero.skill_points_available + 1
        assert leveled.stats_derived.hp == hero.stats_derived.hp + 12 + 8

    def test_partial_gain(self, make_actor: Any, tunables: Any) -> None:
        """Test that small gains only add experience."""
        hero = make_actor()
        updated = grant_xp(hero, 5, tunables)

        assert updated.level == 10
        assert updated.xp == 5
        assert updated.stats_derived == hero.stats_derived

    def test_preset(self, make_actor: Any, tunables: Any) -> None:
        """Test that the preset changes the threshold."""
        hero = make_actor()
        amount = xp_to_next(10, preset="fast", tunables=tunables)

        assert grant_xp(hero, amount, tunables, preset="fast").level == 11
        assert grant_xp(hero, amount, tunables, preset="grindy").level == 10
