"""Configuration management for the dungeon combat engine.

This module provides centralized configuration management using
pydantic-settings, supporting environment variables, .env files, and
runtime overrides. Every tunable rule constant of the engine lives here so
hosts can rebalance combat without touching code.

Example:
    >>> from dungeon_combat.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.combat.flee_chance
    0.5

Environment Variables:
    DUNGEON_COMBAT_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    DUNGEON_COMBAT_COMBAT_FLEE_CHANCE: Probability that a flee attempt succeeds
    DUNGEON_COMBAT_COMBAT_AUTO_SURPRISE: Roll for surprise when none is given
    DUNGEON_COMBAT_AI_AREA_ATTACK_MIN_TARGETS: Targets needed before an area attack
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dungeon_combat.core.exceptions import ConfigurationError


class CombatSettings(BaseSettings):
    """Rule constants for attack, spell and flee resolution.

    Attributes:
        max_front_row: Capacity of the front formation row.
        max_back_row: Capacity of the back formation row.
        flee_chance: Probability that a flee attempt succeeds.
        crit_threshold: Minimum confirmation roll that doubles damage.
        instant_kill_percent: Percent chance of an instant kill on a perfect crit.
        defend_ac_bonus: Amount subtracted from armor class while defending.
        back_row_damage_taken: Damage multiplier for back-row weapon hits.
        spell_base_chance: Base percent chance for a spell to succeed.
        spell_min_chance: Lower bound of the spell success chance.
        spell_max_chance: Upper bound of the spell success chance.
        control_save_base: Base percent chance to resist a control spell.
        auto_surprise: Roll for surprise when the host provides none.
        default_experience: Experience granted by a monster without a value.
        max_rounds_per_wave: Rounds before a wave ends in a stalemate.
    """

    model_config = SettingsConfigDict(
        env_prefix="DUNGEON_COMBAT_COMBAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_front_row: int = Field(default=3, ge=1, le=6, description="Front row capacity")
    max_back_row: int = Field(default=3, ge=1, le=6, description="Back row capacity")
    flee_chance: float = Field(default=0.5, ge=0.0, le=1.0, description="Flee success chance")
    crit_threshold: int = Field(
        default=18,
        ge=1,
        le=20,
        description="Confirmation roll needed to double damage",
    )
    instant_kill_percent: int = Field(
        default=5,
        ge=0,
        le=100,
        description="Instant kill chance on a perfect critical",
    )
    defend_ac_bonus: int = Field(default=2, ge=0, description="Armor class reduction while defending")
    back_row_damage_taken: float = Field(
        default=0.75,
        gt=0.0,
        le=1.0,
        description="Damage multiplier for back-row targets",
    )
    spell_base_chance: int = Field(default=85, description="Base spell success percent")
    spell_min_chance: int = Field(default=5, ge=0, le=100, description="Minimum spell chance")
    spell_max_chance: int = Field(default=95, ge=0, le=100, description="Maximum spell chance")
    control_save_base: int = Field(
        default=50,
        ge=0,
        le=100,
        description="Base percent chance to resist a control spell",
    )
    auto_surprise: bool = Field(default=False, description="Roll surprise automatically")
    default_experience: int = Field(default=10, ge=0, description="Fallback monster XP")
    max_rounds_per_wave: int = Field(
        default=100,
        ge=1,
        description="Rounds before a wave is declared a stalemate",
    )

    @model_validator(mode="after")
    def validate_spell_bounds(self) -> "CombatSettings":
        """Ensure the spell chance window is not inverted.

        Returns:
            Self if validation passes.

        Raises:
            ConfigurationError: If spell_min_chance > spell_max_chance.
        """
        if self.spell_min_chance > self.spell_max_chance:
            raise ConfigurationError(
                f"spell_min_chance ({self.spell_min_chance}) must not exceed "
                f"spell_max_chance ({self.spell_max_chance})",
                config_key="spell_min_chance",
            )
        return self


class AISettings(BaseSettings):
    """Tunables for monster decision making.

    Attributes:
        area_attack_min_targets: Eligible targets needed to prefer an area attack.
        ranged_preference_percent: Chance to pick a ranged attack when one exists.
    """

    model_config = SettingsConfigDict(
        env_prefix="DUNGEON_COMBAT_AI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    area_attack_min_targets: int = Field(
        default=3,
        ge=1,
        description="Targets required before an area attack is preferred",
    )
    ranged_preference_percent: int = Field(
        default=30,
        ge=0,
        le=100,
        description="Chance to prefer a ranged attack",
    )


class Settings(BaseSettings):
    """Main settings aggregating all configuration domains.

    Attributes:
        app_name: Application name.
        log_level: Engine logging level.
        json_logs: Emit logs as JSON instead of console output.
        combat: Combat rule constants.
        ai: Monster AI tunables.
    """

    model_config = SettingsConfigDict(
        env_prefix="DUNGEON_COMBAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(default="Dungeon Combat", description="Application name")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    json_logs: bool = Field(default=False, description="Emit JSON logs")

    combat: CombatSettings = Field(default_factory=CombatSettings)
    ai: AISettings = Field(default_factory=AISettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the engine settings singleton.

    Returns:
        The cached Settings instance.

    Raises:
        ConfigurationError: If configuration is missing or invalid.
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load engine settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access."""
    get_settings.cache_clear()


__all__ = [
    "CombatSettings",
    "AISettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
