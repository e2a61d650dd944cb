"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        DungeonCombatError: Base exception for all engine errors.
        ActionRejectedError: Base for actions refused before resolution.
        ConfigurationError: Configuration-related errors.

    Configuration:
        Settings: Main settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up engine logging.
        get_logger: Get a configured logger instance.
        bind_context: Add context to log entries.
        clear_context: Clear logging context.
        encounter_context: Scope log context to a block.
"""

from __future__ import annotations

from dungeon_combat.core.config import (
    AISettings,
    CombatSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)
from dungeon_combat.core.exceptions import (
    ActionRejectedError,
    CombatError,
    ConfigurationError,
    DiceRollError,
    DungeonCombatError,
    EncounterAlreadyResolvedError,
    FormationError,
    GameEngineError,
    IllegalActionForActorError,
    InvalidGameStateError,
    InvalidTargetError,
    OutOfTurnActionError,
    ProviderError,
    RejectionKind,
    TurnManagementError,
    ValidationError,
)
from dungeon_combat.core.logging import (
    bind_context,
    clear_context,
    configure_from_settings,
    configure_logging,
    encounter_context,
    get_logger,
)


__all__ = [
    # Base exception
    "DungeonCombatError",
    # Configuration exceptions
    "ConfigurationError",
    "ValidationError",
    # Game engine exceptions
    "GameEngineError",
    "InvalidGameStateError",
    "CombatError",
    "DiceRollError",
    "TurnManagementError",
    "FormationError",
    # Rejections
    "RejectionKind",
    "ActionRejectedError",
    "OutOfTurnActionError",
    "InvalidTargetError",
    "IllegalActionForActorError",
    "EncounterAlreadyResolvedError",
    "ProviderError",
    # Configuration
    "Settings",
    "CombatSettings",
    "AISettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "bind_context",
    "clear_context",
    "encounter_context",
]
