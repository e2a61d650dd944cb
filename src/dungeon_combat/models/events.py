"""Closed set of events published by the combat engine.

Every event is a frozen pydantic model with a literal ``event`` tag, and
:data:`CombatEvent` is the discriminated union over all of them, so
subscribers can match on the concrete class instead of on string names.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field

from dungeon_combat.models.actions import Action, ActionResult, CombatLogEntry
from dungeon_combat.models.combatant import Combatant
from dungeon_combat.models.enums import Difficulty, Side
from dungeon_combat.models.formation import FormationSnapshot


class EncounterInfo(BaseModel):
    """Position within a multi-wave encounter."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    current_wave: int = Field(ge=1, description="1-based wave number")
    total_waves: int = Field(ge=1)
    enemies: list[str] = Field(default_factory=list, description="Active enemy IDs")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_final_wave(self) -> bool:
        return self.current_wave >= self.total_waves


class Rewards(BaseModel):
    """Spoils of a victorious encounter.

    Attributes:
        experience: Sum of the defeated enemies' experience values.
        gold: Gold rolled from the enemies' treasure types.
        items: Item IDs dropped by the enemies.
    """

    model_config = ConfigDict(frozen=True)

    experience: int = Field(default=0, ge=0)
    gold: int = Field(default=0, ge=0)
    items: list[str] = Field(default_factory=list)


class _EventBase(BaseModel):
    model_config = ConfigDict(frozen=True)


class CombatStartedEvent(_EventBase):
    """The encounter has begun and the first actor is known."""

    event: Literal["combat-started"] = "combat-started"
    encounter: EncounterInfo
    formation: FormationSnapshot
    difficulty: Difficulty
    first_actor: str | None = None
    surprise_round: Side | None = None


class WaveStartedEvent(_EventBase):
    """A new enemy wave entered the fight."""

    event: Literal["wave-started"] = "wave-started"
    encounter: EncounterInfo


class ActionProcessedEvent(_EventBase):
    """An accepted action was resolved and applied."""

    event: Literal["combat-action-processed"] = "combat-action-processed"
    action: Action
    result: ActionResult
    combat_log: list[CombatLogEntry] = Field(default_factory=list)
    next_actor: str | None = None


class CombatEndedEvent(_EventBase):
    """The party won."""

    event: Literal["combat-ended"] = "combat-ended"
    victory: Literal[True] = True
    rewards: Rewards
    casualties: list[str] = Field(default_factory=list)
    disconnected_characters: list[str] = Field(default_factory=list)


class PartyDefeatedEvent(_EventBase):
    """No party member is left standing.

    ``total_defeat`` is True when nobody escaped either.
    """

    event: Literal["party-defeated"] = "party-defeated"
    victory: Literal[False] = False
    casualties: list[str] = Field(default_factory=list)
    disconnected_characters: list[str] = Field(default_factory=list)
    total_defeat: bool = True


class CharacterUpdatedEvent(_EventBase):
    """A player combatant's persistent state changed."""

    event: Literal["character-updated"] = "character-updated"
    character: Combatant


CombatEvent = Annotated[
    Union[
        CombatStartedEvent,
        WaveStartedEvent,
        ActionProcessedEvent,
        CombatEndedEvent,
        PartyDefeatedEvent,
        CharacterUpdatedEvent,
    ],
    Field(discriminator="event"),
]


__all__ = [
    "EncounterInfo",
    "Rewards",
    "CombatStartedEvent",
    "WaveStartedEvent",
    "ActionProcessedEvent",
    "CombatEndedEvent",
    "PartyDefeatedEvent",
    "CharacterUpdatedEvent",
    "CombatEvent",
]
