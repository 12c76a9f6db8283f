"""Process settings for the rpg-rules balance harness.

Rules functions never read these settings: every coefficient they need
travels in an explicit Tunables value. Settings only drive the harness
and CLI (log level, trial counts, the default XP preset), loaded through
pydantic-settings from environment variables and an optional .env file.

Example:
    >>> from rpg_rules.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.simulation.max_turns
    40

Environment Variables:
    RPG_RULES_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    RPG_RULES_JSON_LOGS: Emit JSON log lines instead of console output
    RPG_RULES_RULE_VERSION: Rules version the harness expects
    RPG_RULES_SIM_MAX_TURNS: Turn cap for simulated fights
    RPG_RULES_SIM_TRIALS: Number of seeded trials per balance run
    RPG_RULES_SIM_SEED_BASE: First seed of a balance run
    RPG_RULES_TUNABLES_XP_PRESET: XP curve preset (fast, standard, grindy)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rpg_rules.core.constants import DEFAULT_MAX_TURNS, RULE_VERSION
from rpg_rules.core.exceptions import ConfigurationError


class SimulationSettings(BaseSettings):
    """Configuration for balance simulation runs.

    Attributes:
        max_turns: Turn cap applied to every simulated fight.
        trials: Number of seeded fights per balance run.
        seed_base: First seed of a run; trial i uses seed_base + i.
        ttk_band_min: Lower bound of the acceptable average time-to-kill.
        ttk_band_max: Upper bound of the acceptable average time-to-kill.
    """

    model_config = SettingsConfigDict(
        env_prefix="RPG_RULES_SIM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_turns: int = Field(
        default=DEFAULT_MAX_TURNS,
        ge=1,
        le=1000,
        description="Turn cap for simulated fights",
    )
    trials: int = Field(
        default=100,
        ge=1,
        le=100_000,
        description="Seeded fights per balance run",
    )
    seed_base: int = Field(
        default=1,
        ge=0,
        description="First seed of a balance run",
    )
    ttk_band_min: float = Field(
        default=4.0,
        gt=0,
        description="Lowest acceptable average time-to-kill",
    )
    ttk_band_max: float = Field(
        default=8.0,
        gt=0,
        description="Highest acceptable average time-to-kill",
    )

    @model_validator(mode="after")
    def validate_ttk_band(self) -> "SimulationSettings":
        """Ensure the time-to-kill band is not inverted.

        Returns:
            Self if validation passes.

        Raises:
            ConfigurationError: If ttk_band_min exceeds ttk_band_max.
        """
        if self.ttk_band_min > self.ttk_band_max:
            raise ConfigurationError(
                f"ttk_band_min ({self.ttk_band_min}) must not exceed "
                f"ttk_band_max ({self.ttk_band_max})",
                config_key="ttk_band_min",
            )
        return self


class TunablesSettings(BaseSettings):
    """Configuration for building the default Tunables value.

    Attributes:
        xp_preset: XP curve preset used when none is requested explicitly.
    """

    model_config = SettingsConfigDict(
        env_prefix="RPG_RULES_TUNABLES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    xp_preset: Literal["fast", "standard", "grindy"] = Field(
        default="standard",
        description="Default XP curve preset",
    )


class RulesSettings(BaseSettings):
    """Top-level settings aggregating every configuration group.

    Attributes:
        rule_version: Rules version the harness expects; a run against
            tunables of another version is refused.
        debug: Enable debug mode.
        log_level: Logging level.
        json_logs: Emit JSON log lines.
        simulation: Simulation run settings.
        tunables: Tunables construction settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="RPG_RULES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    rule_version: str = Field(
        default=RULE_VERSION,
        description="Rules version tag",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    json_logs: bool = Field(
        default=False,
        description="Emit JSON log lines",
    )

    simulation: SimulationSettings = Field(default_factory=SimulationSettings)
    tunables: TunablesSettings = Field(default_factory=TunablesSettings)

    @property
    def effective_log_level(self) -> str:
        """Log level after applying the debug switch.

        Returns:
            "DEBUG" in debug mode, otherwise the configured level.
        """
        return "DEBUG" if self.debug else self.log_level


@lru_cache(maxsize=1)
def get_settings() -> RulesSettings:
    """Get the settings singleton.

    Returns:
        The cached RulesSettings instance.

    Raises:
        ConfigurationError: If configuration is invalid.
    """
    try:
        return RulesSettings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load rules settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access.

    Example:
        >>> clear_settings_cache()
        >>> settings = get_settings()  # Reloads from environment
    """
    get_settings.cache_clear()


__all__ = [
    "SimulationSettings",
    "TunablesSettings",
    "RulesSettings",
    "get_settings",
    "clear_settings_cache",
]
