"""Exception hierarchy for the dungeon combat engine.

Every error raised by the engine derives from :class:`DungeonCombatError`
and carries a ``details`` mapping with the identifiers needed to diagnose
it. Hosts can catch the base class at their boundary.

Refused actions form their own branch under :class:`ActionRejectedError`.
The engine catches that branch and turns it into a rejected outcome, so
these never escape ``process_action``.

Example:
    >>> from dungeon_combat.core.exceptions import InvalidTargetError
    >>> raise InvalidTargetError("Target is not eligible", combatant_id="kobold-w1-1")
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


def _with_context(details: dict[str, Any] | None, **context: Any) -> dict[str, Any]:
    """Merge keyword context into ``details``, skipping values left as None."""
    merged = dict(details or {})
    merged.update({key: value for key, value in context.items() if value is not None})
    return merged


class DungeonCombatError(Exception):
    """Base exception for all dungeon combat errors.

    Attributes:
        message: Human-readable error description.
        details: Identifiers and values describing the failure.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if not self.details:
            return self.message
        rendered = ", ".join(f"{key}={value!r}" for key, value in self.details.items())
        return f"{self.message} [{rendered}]"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Engine Errors
# =============================================================================


class GameEngineError(DungeonCombatError):
    """Base for errors raised while running an encounter."""


class InvalidGameStateError(GameEngineError):
    """Raised when an operation does not fit the encounter's phase.

    Covers starting without waves or without a living party member,
    starting twice, and submitting actions before ``start_combat``.
    """

    def __init__(
        self,
        message: str,
        *,
        current_state: str | None = None,
        expected_states: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            details=_with_context(details, current_state=current_state, expected_states=expected_states),
        )


class CombatError(GameEngineError):
    """Raised when an action cannot be resolved.

    Args:
        message: Human-readable error description.
        combatant_id: The acting or targeted combatant.
        round_number: Round in which the failure happened.
        details: Extra context.
    """

    def __init__(
        self,
        message: str,
        *,
        combatant_id: str | None = None,
        round_number: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            details=_with_context(details, combatant_id=combatant_id, round_number=round_number),
        )


class DiceRollError(GameEngineError):
    """Raised for malformed dice notation or an exhausted scripted source."""

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_with_context(details, expression=expression))


class TurnManagementError(GameEngineError):
    """Raised when the turn order is used before initiative is rolled."""


class FormationError(GameEngineError):
    """Raised for a formation layout that can never be legal.

    A full row during ``move_character`` is reported through the move
    result instead. This error covers explicit layouts naming unknown
    characters, placing one character twice or overfilling a row.
    """

    def __init__(
        self,
        message: str,
        *,
        row: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_with_context(details, row=row))


# =============================================================================
# Action Rejections
# =============================================================================


class RejectionKind(StrEnum):
    """Reasons an action can be refused before resolution."""

    OUT_OF_TURN = "out_of_turn"
    INVALID_TARGET = "invalid_target"
    ILLEGAL_ACTION_FOR_ACTOR = "illegal_action_for_actor"
    ENCOUNTER_ALREADY_RESOLVED = "encounter_already_resolved"


class ActionRejectedError(CombatError):
    """Base for actions refused before any state is touched.

    Subclasses pin ``kind`` so hosts can branch on the reason without
    matching message text.
    """

    kind: RejectionKind = RejectionKind.ILLEGAL_ACTION_FOR_ACTOR


class OutOfTurnActionError(ActionRejectedError):
    """The submitting combatant is not the current actor."""

    kind = RejectionKind.OUT_OF_TURN


class InvalidTargetError(ActionRejectedError):
    """The target is missing, down, on the wrong side, or out of reach."""

    kind = RejectionKind.INVALID_TARGET


class IllegalActionForActorError(ActionRejectedError):
    """The actor cannot perform this action at all.

    Examples are a back-row melee attack without a reach weapon, casting
    an unprepared spell, or a monster trying to flee.
    """

    kind = RejectionKind.ILLEGAL_ACTION_FOR_ACTOR


class EncounterAlreadyResolvedError(ActionRejectedError):
    """An action arrived after victory or defeat."""

    kind = RejectionKind.ENCOUNTER_ALREADY_RESOLVED


# =============================================================================
# Collaborators and Configuration
# =============================================================================


class ProviderError(DungeonCombatError):
    """Raised when a party, catalog or inventory provider cannot answer."""

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_with_context(details, provider=provider))


class ConfigurationError(DungeonCombatError):
    """Raised when settings cannot be loaded or contradict each other."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_with_context(details, config_key=config_key))


class ValidationError(DungeonCombatError):
    """Raised when a character or monster record cannot become a combatant.

    Args:
        message: Human-readable error description.
        field_name: The offending field, when a single one is at fault.
        invalid_value: The rejected value.
        details: Extra context.
    """

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        invalid_value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            details=_with_context(details, field_name=field_name, invalid_value=invalid_value),
        )


__all__ = [
    "DungeonCombatError",
    # Engine
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
    # Collaborators and configuration
    "ProviderError",
    "ConfigurationError",
    "ValidationError",
]
