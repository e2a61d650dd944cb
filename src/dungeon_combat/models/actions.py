"""Pydantic V2 schemas for actions and their resolution.

Actions are a discriminated union keyed by ``type``. Resolution produces
an :class:`ActionResult` describing what happened plus the list of
:class:`StateChange` records the engine applies afterwards, so resolution
itself never mutates a combatant.

Example:
    >>> action = parse_action({"type": "attack", "actor_id": "aldric", "target_id": "kobold-1"})
    >>> action.type
    'attack'
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from dungeon_combat.core.exceptions import RejectionKind
from dungeon_combat.models.enums import ActionType, EncounterPhase, LogKind


# =============================================================================
# Actions
# =============================================================================


class _ActionBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    actor_id: str = Field(min_length=1, description="Combatant taking the action")


class AttackAction(_ActionBase):
    """Weapon or natural attack.

    ``attack_index`` selects one of a monster's declared attacks; players
    leave it unset and attack with their weapon or bare hands. Area attacks
    need no ``target_id``.
    """

    type: Literal["attack"] = "attack"
    target_id: str | None = None
    attack_index: Annotated[int, Field(ge=0)] | None = None


class SpellAction(_ActionBase):
    """Cast a prepared spell."""

    type: Literal["spell"] = "spell"
    spell_id: str = Field(min_length=1)
    target_id: str | None = None


class ItemAction(_ActionBase):
    """Use a consumable from the party inventory."""

    type: Literal["item"] = "item"
    item_id: str = Field(min_length=1)
    target_id: str | None = None


class DefendAction(_ActionBase):
    """Take a defensive stance until attacked or the next turn."""

    type: Literal["defend"] = "defend"


class FleeAction(_ActionBase):
    """Attempt to escape the encounter."""

    type: Literal["flee"] = "flee"


ActionModel = Union[AttackAction, SpellAction, ItemAction, DefendAction, FleeAction]

Action = Annotated[ActionModel, Field(discriminator="type")]

_action_adapter: TypeAdapter[Any] = TypeAdapter(Action)


def parse_action(data: dict[str, Any]) -> ActionModel:
    """Validate a raw mapping into the matching action model.

    Args:
        data: Mapping with a ``type`` key.

    Returns:
        The concrete action instance.

    Raises:
        pydantic.ValidationError: If the type is unknown or fields are invalid.
    """
    return _action_adapter.validate_python(data)


# =============================================================================
# State Changes
# =============================================================================


class ChangeKind(StrEnum):
    """Mutations the engine knows how to apply."""

    DAMAGE = "damage"
    HEAL = "heal"
    SET_DEFENDING = "set_defending"
    CLEAR_DEFENDING = "clear_defending"
    CONSUME_SPELL = "consume_spell"
    CONSUME_ITEM = "consume_item"
    FLEE = "flee"
    BUFF = "buff"
    PROTECT = "protect"
    DISABLE = "disable"


class StateChange(BaseModel):
    """A single mutation requested by the resolver.

    Attributes:
        kind: What to change.
        combatant_id: Combatant to change.
        amount: Magnitude (damage, healing, bonus, turns).
        key: Spell or item ID for consumption changes.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: ChangeKind
    combatant_id: str
    amount: int = 0
    key: str | None = None


# =============================================================================
# Results
# =============================================================================


class LogLine(BaseModel):
    """A log message produced during resolution, before it is stamped."""

    model_config = ConfigDict(frozen=True)

    message: str
    kind: LogKind = LogKind.COMBAT
    icon: str = ""


class TargetOutcome(BaseModel):
    """What happened to one target of an action."""

    model_config = ConfigDict(frozen=True)

    target_id: str
    hit: bool = False
    attack_roll: int | None = None
    armor_class: int | None = None
    damage: int = 0
    healing: int = 0
    critical: bool = False
    instant: bool = False
    defeated: bool = False
    resisted: bool = False


class ActionResult(BaseModel):
    """Structured outcome of a resolved action.

    Game-rule failures (a miss, a fizzled spell, a failed flee) are results
    with ``success=False``; they are never errors.

    Attributes:
        action_type: Kind of action resolved.
        actor_id: Acting combatant.
        success: Whether the action achieved its aim.
        damage: Total damage dealt, when the action deals damage.
        critical: A critical hit occurred.
        instant: An instant kill occurred.
        message: One-line summary.
        outcomes: Per-target outcomes.
        changes: Mutations the engine applies, in order.
        lines: Log lines describing the resolution.
        counter_attack: Free attack provoked by a failed flee.
    """

    model_config = ConfigDict(frozen=True)

    action_type: ActionType
    actor_id: str
    success: bool
    damage: int | None = None
    critical: bool = False
    instant: bool = False
    message: str = ""
    outcomes: list[TargetOutcome] = Field(default_factory=list)
    changes: list[StateChange] = Field(default_factory=list)
    lines: list[LogLine] = Field(default_factory=list)
    counter_attack: ActionResult | None = None


class CombatLogEntry(BaseModel):
    """An append-only combat log entry."""

    model_config = ConfigDict(frozen=True)

    sequence: int = Field(ge=0)
    round: int = Field(ge=0)
    wave: int = Field(ge=0)
    message: str
    kind: LogKind = LogKind.COMBAT
    icon: str = ""
    timestamp: datetime


class TurnOrderEntry(BaseModel):
    """A slot in the initiative order."""

    model_config = ConfigDict(frozen=True)

    combatant_id: str
    name: str = ""
    initiative_score: int
    roll: int = 0


class ActionOutcome(BaseModel):
    """Return value of ``CombatEngine.process_action``.

    Attributes:
        accepted: False when the action was rejected before resolution.
        rejection: Reason for a rejection.
        reason: Human-readable rejection detail.
        result: Resolution result for accepted actions.
        log_tail: Log entries appended by this call.
        next_actor_id: Combatant whose turn is next, if any.
        phase: Encounter phase after the call.
    """

    model_config = ConfigDict(frozen=True)

    accepted: bool
    rejection: RejectionKind | None = None
    reason: str = ""
    result: ActionResult | None = None
    log_tail: list[CombatLogEntry] = Field(default_factory=list)
    next_actor_id: str | None = None
    phase: EncounterPhase = EncounterPhase.ACTIVE


__all__ = [
    "AttackAction",
    "SpellAction",
    "ItemAction",
    "DefendAction",
    "FleeAction",
    "Action",
    "ActionModel",
    "parse_action",
    "ChangeKind",
    "StateChange",
    "LogLine",
    "TargetOutcome",
    "ActionResult",
    "CombatLogEntry",
    "TurnOrderEntry",
    "ActionOutcome",
]
