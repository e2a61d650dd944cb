"""Pydantic V2 schemas describing party formation."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, computed_field

from dungeon_combat.models.enums import FormationRow, RowPriority


class FormationModifiers(BaseModel):
    """Combat modifiers granted by a row.

    Attributes:
        damage_bonus: Added to damage dealt.
        accuracy_bonus: Added to the attack roll.
        damage_taken_multiplier: Applied to weapon damage received.
        priority: How readily enemies single out the row.
    """

    model_config = ConfigDict(frozen=True)

    damage_bonus: int = 0
    accuracy_bonus: int = 0
    damage_taken_multiplier: float = 1.0
    priority: RowPriority = RowPriority.HIGH


class FormationSnapshot(BaseModel):
    """Row membership at a point in time, as lists of combatant IDs."""

    model_config = ConfigDict(frozen=True)

    front: list[str] = Field(default_factory=list)
    back: list[str] = Field(default_factory=list)
    max_front_row: int = 3
    max_back_row: int = 3

    def row_of(self, combatant_id: str) -> FormationRow | None:
        if combatant_id in self.front:
            return FormationRow.FRONT
        if combatant_id in self.back:
            return FormationRow.BACK
        return None


class MoveResult(BaseModel):
    """Outcome of a formation move request."""

    model_config = ConfigDict(frozen=True)

    success: bool
    message: str
    formation: FormationSnapshot


class FormationValidation(BaseModel):
    """Problems found in a formation layout."""

    model_config = ConfigDict(frozen=True)

    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_valid(self) -> bool:
        return not self.errors


class FormationStats(BaseModel):
    """Aggregate view of the formation.

    Attributes:
        front_row_count: Members in the front row.
        back_row_count: Members in the back row.
        front_row_ok: Front-row members still able to fight.
        back_row_ok: Back-row members still able to fight.
        melee_in_front: Melee classes standing in the front row.
        casters_in_back: Spellcasters standing in the back row.
        front_row_average_hp: Mean HP ratio of the front row.
        balance_score: 0-100 rating of the layout.
    """

    model_config = ConfigDict(frozen=True)

    front_row_count: int = 0
    back_row_count: int = 0
    front_row_ok: int = 0
    back_row_ok: int = 0
    melee_in_front: int = 0
    casters_in_back: int = 0
    front_row_average_hp: float = 0.0
    balance_score: int = 0


__all__ = [
    "FormationModifiers",
    "FormationSnapshot",
    "MoveResult",
    "FormationValidation",
    "FormationStats",
]
