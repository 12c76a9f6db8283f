"""Custom exception hierarchy for the rpg-rules core.

The rules functions are total: bad numbers are coerced, and status
application reports a ``reason`` instead of raising. Exceptions are
reserved for the boundaries that genuinely cannot continue, such as
malformed configuration overrides or an internal contract violation.
All of them inherit from RpgRulesError so callers can handle the
package's failures in one place.

Example:
    >>> from rpg_rules.core.exceptions import ConfigurationError
    >>> raise ConfigurationError("Bad override", config_key="combat.crit_multiplier")
"""

from __future__ import annotations

from typing import Any


class RpgRulesError(Exception):
    """Base exception for all rpg-rules errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details.

        Returns:
            Formatted error message including any provided details.
        """
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        """Return a detailed string representation of the exception.

        Returns:
            String representation suitable for debugging.
        """
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Rules Engine Exceptions
# =============================================================================


class RulesInvariantError(RpgRulesError):
    """Raised when an internal rules contract is violated.

    This signals a programming error (for example an unknown rarity tier
    reaching a lookup table), never bad user input. It is not caught
    anywhere inside the package.
    """

    def __init__(
        self,
        message: str,
        *,
        invariant: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize invariant error with the violated contract name.

        Args:
            message: Human-readable error description.
            invariant: Short name of the violated contract.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if invariant:
            combined_details["invariant"] = invariant
        super().__init__(message, details=combined_details)


class SimulationError(RulesInvariantError):
    """Raised when the fight simulator is handed builds it cannot run."""

    def __init__(
        self,
        message: str,
        *,
        seed: int | None = None,
        turn: int | None = None,
        invariant: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize simulation error with seed and turn context.

        Args:
            message: Human-readable error description.
            seed: Seed of the failing simulation.
            turn: Turn at which the failure happened.
            invariant: Short name of the violated contract.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if seed is not None:
            combined_details["seed"] = seed
        if turn is not None:
            combined_details["turn"] = turn
        super().__init__(message, invariant=invariant, details=combined_details)


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationError(RpgRulesError):
    """Raised when settings or tunables overrides are invalid.

    Missing override keys never raise; only values that cannot be
    coerced into the declared field type do.
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with key context.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


class ValidationError(RpgRulesError):
    """Raised when an input record fails validation in a helper factory."""

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        invalid_value: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error with field context.

        Args:
            message: Human-readable error description.
            field_name: Name of the field that failed validation.
            invalid_value: The value that failed validation.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if field_name:
            combined_details["field_name"] = field_name
        if invalid_value is not None:
            combined_details["invalid_value"] = repr(invalid_value)
        super().__init__(message, details=combined_details)


__all__ = [
    "RpgRulesError",
    "RulesInvariantError",
    "SimulationError",
    "ConfigurationError",
    "ValidationError",
]
