"""Core module providing configuration, logging, constants and exceptions.

Exports:
    Exceptions:
        RpgRulesError: Base exception for all package errors.
        RulesInvariantError: Internal rules contract violations.
        SimulationError: Fight simulator contract violations.
        ConfigurationError: Settings and rules version errors.
        ValidationError: Input record validation errors.

    Configuration:
        RulesSettings: Top-level settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up package logging.
        get_logger: Get a configured logger instance.
        bind_context: Add context to log entries.
        clear_context: Clear logging context.
"""

from __future__ import annotations

from rpg_rules.core.config import (
    RulesSettings,
    SimulationSettings,
    TunablesSettings,
    clear_settings_cache,
    get_settings,
)
from rpg_rules.core.constants import RULE_VERSION
from rpg_rules.core.exceptions import (
    ConfigurationError,
    RpgRulesError,
    RulesInvariantError,
    SimulationError,
    ValidationError,
)
from rpg_rules.core.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


__all__ = [
    # Base exception
    "RpgRulesError",
    # Rules exceptions
    "RulesInvariantError",
    "SimulationError",
    # Configuration exceptions
    "ConfigurationError",
    "ValidationError",
    # Configuration
    "RulesSettings",
    "SimulationSettings",
    "TunablesSettings",
    "get_settings",
    "clear_settings_cache",
    "RULE_VERSION",
    # Logging
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
