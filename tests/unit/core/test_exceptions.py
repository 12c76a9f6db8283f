"""Tests for the exception hierarchy."""

from __future__ import annotations

import pytest

from rpg_rules.core.exceptions import (
    ConfigurationError,
    RpgRulesError,
    RulesInvariantError,
    SimulationError,
    ValidationError,
)


class TestRpgRulesError:
    """Tests for the base RpgRulesError exception."""

    def test_basic_message(self) -> None:
        """Test exception with basic message."""
        exc = RpgRulesError("Test error message")
        assert exc.message == "Test error message"
        assert exc.details == {}
        assert str(exc) == "Test error message"

    def test_with_details(self) -> None:
        """Test exception with additional details."""
        exc = RpgRulesError("Test error", details={"key": "value", "count": 42})
        assert exc.details == {"key": "value", "count": 42}
        assert "key='value'" in str(exc)
        assert "count=42" in str(exc)

    def test_repr(self) -> None:
        """Test exception repr output."""
        repr_str = repr(RpgRulesError("Test", details={"x": 1}))
        assert "RpgRulesError" in repr_str
        assert "Test" in repr_str
        assert "x" in repr_str


class TestRulesExceptions:
    """Tests for rules engine exceptions."""

    def test_invariant_name(self) -> None:
        """Test RulesInvariantError records the violated contract."""
        exc = RulesInvariantError("Unknown tier", invariant="rarity_table")
        assert exc.details["invariant"] == "rarity_table"

    def test_simulation_error_context(self) -> None:
        """Test SimulationError with seed and turn."""
        exc = SimulationError("Bad build", seed=7, turn=3, invariant="damage_kind")
        assert exc.details == {"seed": 7, "turn": 3, "invariant": "damage_kind"}

    def test_simulation_error_keeps_zero_seed(self) -> None:
        """Test that a zero seed is still recorded."""
        exc = SimulationError("Bad build", seed=0)
        assert exc.details["seed"] == 0

    def test_inheritance(self) -> None:
        """Test exception inheritance chain."""
        exc = SimulationError("Error")
        assert isinstance(exc, RulesInvariantError)
        assert isinstance(exc, RpgRulesError)
        assert isinstance(exc, Exception)


class TestConfigurationExceptions:
    """Tests for configuration and validation exceptions."""

    def test_configuration_error_key(self) -> None:
        """Test ConfigurationError with config key."""
        exc = ConfigurationError("Bad override", config_key="combat.crit_multiplier")
        assert exc.details["config_key"] == "combat.crit_multiplier"

    def test_validation_error_fields(self) -> None:
        """Test ValidationError stores the field and a repr of the value."""
        exc = ValidationError("Cannot equip", field_name="equipment", invalid_value="itm-1")
        assert exc.details["field_name"] == "equipment"
        assert exc.details["invalid_value"] == "'itm-1'"

    def test_catch_base(self) -> None:
        """Test that every package error is caught by the base class."""
        with pytest.raises(RpgRulesError):
            raise ConfigurationError("boom")
