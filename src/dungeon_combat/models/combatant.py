"""Pydantic V2 schemas for combatants.

This module defines the normalized in-combat representation shared by
player characters and monsters, together with the collaborator records
it is built from. Player and monster records never enter the engine
directly; :class:`~dungeon_combat.engine.adapter.CombatantAdapter` turns
both into :class:`Combatant`.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, model_validator

from dungeon_combat.core.constants import SPELLCASTER_CLASSES
from dungeon_combat.models.enums import (
    AIType,
    AttackRange,
    CombatStatus,
    FormationRow,
    Side,
    TreasureType,
)


def ability_modifier(score: int) -> int:
    """Return the combat modifier for an attribute score.

    Args:
        score: Raw attribute value.

    Returns:
        ``floor((score - 10) / 2)``.

    Example:
        >>> ability_modifier(16)
        3
        >>> ability_modifier(9)
        -1
    """
    return (score - 10) // 2


# =============================================================================
# Value Objects
# =============================================================================


class Attributes(BaseModel):
    """The six primary attributes.

    Attributes:
        strength: Adds to melee damage.
        intelligence: Drives arcane spell success.
        piety: Drives divine spell success.
        vitality: Toughness.
        agility: Drives initiative and armor class.
        luck: Fortune.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    strength: Annotated[int, Field(ge=1, le=30)] = 10
    intelligence: Annotated[int, Field(ge=1, le=30)] = 10
    piety: Annotated[int, Field(ge=1, le=30)] = 10
    vitality: Annotated[int, Field(ge=1, le=30)] = 10
    agility: Annotated[int, Field(ge=1, le=30)] = 10
    luck: Annotated[int, Field(ge=1, le=30)] = 10


class DamageDice(BaseModel):
    """A ``count`` d ``sides`` + ``bonus`` roll."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    count: Annotated[int, Field(ge=0)] = 1
    sides: Annotated[int, Field(ge=1)] = 6
    bonus: int = 0

    @property
    def notation(self) -> str:
        """Render the roll in dice notation, e.g. ``2d4+1``."""
        text = f"{self.count}d{self.sides}"
        if self.bonus > 0:
            text += f"+{self.bonus}"
        elif self.bonus < 0:
            text += str(self.bonus)
        return text


class AttackProfile(BaseModel):
    """A declared monster attack.

    Attributes:
        name: Display name ("Bite", "Fire Breath").
        dice: Damage roll on a hit.
        range: Melee, ranged or thrown.
        area_effect: Whether the attack strikes every eligible target.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    dice: DamageDice = Field(default_factory=DamageDice)
    range: AttackRange = AttackRange.MELEE
    area_effect: bool = False


class EquipmentBonuses(BaseModel):
    """Read-only equipment figures resolved by the Equipment provider.

    Attributes:
        weapon_name: Name of the wielded weapon, if any.
        weapon_type: Weapon category used for reach classification.
        weapon_range: Reach of the wielded weapon.
        weapon_attack_bonus: To-hit bonus of the weapon.
        weapon_damage_bonus: Damage bonus of the weapon.
        armor_ac_bonus: Amount body armor subtracts from armor class.
        shield_ac_bonus: Amount a shield subtracts from armor class.
        is_reach: Whether the weapon allows melee from the back row.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    weapon_name: str | None = None
    weapon_type: str | None = None
    weapon_range: AttackRange = AttackRange.MELEE
    weapon_attack_bonus: int = 0
    weapon_damage_bonus: int = 0
    armor_ac_bonus: int = 0
    shield_ac_bonus: int = 0
    is_reach: bool = False

    @property
    def has_weapon(self) -> bool:
        return self.weapon_name is not None


# =============================================================================
# Combatant
# =============================================================================


class Combatant(BaseModel):
    """Normalized participant in an encounter.

    Combat-scoped fields (``is_defending``, ``formation_row``, ``status``,
    the spell modifiers and ``turns_disabled``) live only for the duration
    of one encounter. ``current_hp`` and ``status`` are written back to the
    party at the end.

    Attributes:
        id: Stable identifier, unique within the encounter.
        name: Display name.
        side: Player or enemy.
        role: Character class for players, creature type for monsters.
        level: Character level or monster hit dice.
        current_hp: Current hit points, never negative.
        max_hp: Maximum hit points.
        attributes: Primary attributes.
        armor_class_base: Unmodified armor class.
        armor_class_is_final: The base already includes agility (monsters).
        equipment: Equipment bonuses.
        attack_bonus: Declared to-hit bonus (monsters).
        damage_bonus: Declared damage bonus (monsters).
        attacks: Declared attacks (monsters).
        ai_type: Monster targeting personality.
        experience_value: Experience granted when defeated.
        treasure_type: Loot table for monsters.
        prepared_spells: Remaining prepared instances per spell id.
        is_defending: Defensive stance active.
        formation_row: Current formation row.
        status: Combat status.
        ac_modifier: Amount protection magic subtracts from armor class.
        attack_modifier: To-hit improvement from buff magic.
        turns_disabled: Turns still lost to control magic.
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )

    id: str = Field(min_length=1, description="Stable combatant ID")
    name: str = Field(min_length=1, max_length=100, description="Display name")
    side: Side = Field(description="Player or enemy")
    role: str = Field(default="", description="Class or creature type")
    level: Annotated[int, Field(ge=1)] = 1
    current_hp: Annotated[int, Field(ge=0, description="Current HP")]
    max_hp: Annotated[int, Field(ge=1, description="Maximum HP")]
    attributes: Attributes = Field(default_factory=Attributes)
    armor_class_base: int = Field(default=10, description="Base armor class")
    armor_class_is_final: bool = False
    equipment: EquipmentBonuses = Field(default_factory=EquipmentBonuses)
    attack_bonus: int = 0
    damage_bonus: int = 0
    attacks: list[AttackProfile] = Field(default_factory=list)
    ai_type: AIType | None = None
    experience_value: Annotated[int, Field(ge=0)] | None = None
    treasure_type: TreasureType = TreasureType.NONE
    prepared_spells: dict[str, int] = Field(default_factory=dict)

    is_defending: bool = False
    formation_row: FormationRow = FormationRow.FRONT
    status: CombatStatus = CombatStatus.OK
    ac_modifier: int = 0
    attack_modifier: int = 0
    turns_disabled: Annotated[int, Field(ge=0)] = 0

    @model_validator(mode="after")
    def validate_hit_points(self) -> "Combatant":
        """Keep HP within bounds and out of the ok status at zero.

        Raises:
            ValueError: If current_hp exceeds max_hp, or a combatant with
                no hit points is still marked ok.
        """
        if self.current_hp > self.max_hp:
            raise ValueError(f"current_hp ({self.current_hp}) exceeds max_hp ({self.max_hp})")
        if self.current_hp == 0 and self.status is CombatStatus.OK:
            raise ValueError("a combatant with 0 HP cannot have status ok")
        return self

    @property
    def is_ok(self) -> bool:
        """Whether the combatant can still act and be targeted."""
        return self.status is CombatStatus.OK

    @property
    def is_player(self) -> bool:
        return self.side is Side.PLAYER

    @property
    def is_spellcaster(self) -> bool:
        return self.role in SPELLCASTER_CLASSES

    @property
    def hp_ratio(self) -> float:
        return self.current_hp / self.max_hp

    # -------------------------------------------------------------------------
    # Mutators (called only by the engine when applying state changes)
    # -------------------------------------------------------------------------

    def take_damage(self, amount: int) -> int:
        """Remove hit points, knocking the combatant out at zero.

        Args:
            amount: Damage to apply.

        Returns:
            The hit points actually lost.
        """
        lost = min(self.current_hp, max(0, amount))
        remaining = self.current_hp - lost
        if remaining == 0 and self.status is CombatStatus.OK:
            self.status = CombatStatus.UNCONSCIOUS
        self.current_hp = remaining
        return lost

    def heal(self, amount: int) -> int:
        """Restore hit points up to the maximum.

        Returns:
            The hit points actually restored.
        """
        restored = min(self.max_hp - self.current_hp, max(0, amount))
        self.current_hp += restored
        return restored

    def consume_spell(self, spell_id: str) -> None:
        """Remove one prepared instance of a spell."""
        remaining = self.prepared_spells.get(spell_id, 0) - 1
        spells = dict(self.prepared_spells)
        if remaining > 0:
            spells[spell_id] = remaining
        else:
            spells.pop(spell_id, None)
        self.prepared_spells = spells


# =============================================================================
# Collaborator Records
# =============================================================================


class CharacterRecord(BaseModel):
    """A party member as supplied by the Party provider.

    Attributes:
        id: Persistent character ID.
        name: Character name.
        character_class: Class name (Fighter, Mage, ...).
        level: Character level.
        current_hp: Hit points entering combat.
        max_hp: Maximum hit points.
        attributes: Primary attributes.
        base_armor_class: Armor class before agility and equipment.
        weapon_id: Equipped weapon, if any.
        armor_id: Equipped armor, if any.
        shield_id: Equipped shield, if any.
        prepared_spells: Prepared spell counts by spell id.
        status: Persistent status ("ok", "unconscious", "dead", ...).
        disoriented: Set when the character escaped combat and was sent
            back to town; the host decides when it wears off.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=100)
    character_class: str = Field(min_length=1)
    level: Annotated[int, Field(ge=1)] = 1
    current_hp: Annotated[int, Field(ge=0)]
    max_hp: Annotated[int, Field(ge=1)]
    attributes: Attributes = Field(default_factory=Attributes)
    base_armor_class: int = 10
    weapon_id: str | None = None
    armor_id: str | None = None
    shield_id: str | None = None
    prepared_spells: dict[str, int] = Field(default_factory=dict)
    status: str = "ok"
    disoriented: bool = False

    @property
    def is_alive(self) -> bool:
        return self.current_hp > 0 and self.status == "ok"


class MonsterRecord(BaseModel):
    """A monster template as supplied by the Monster provider.

    The declared ``armor_class`` is final: it already accounts for the
    creature's agility.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=100)
    creature_type: str = ""
    level: Annotated[int, Field(ge=1)] = 1
    hit_points: Annotated[int, Field(ge=1)]
    armor_class: int = 10
    attack_bonus: int = 0
    damage_bonus: int = 0
    attributes: Attributes = Field(default_factory=Attributes)
    attacks: list[AttackProfile] = Field(default_factory=list)
    ai_type: AIType = AIType.AGGRESSIVE
    experience_value: Annotated[int, Field(ge=0)] | None = None
    treasure_type: TreasureType = TreasureType.NONE
    prepared_spells: dict[str, int] = Field(default_factory=dict)


__all__ = [
    "ability_modifier",
    "Attributes",
    "DamageDice",
    "AttackProfile",
    "EquipmentBonuses",
    "Combatant",
    "CharacterRecord",
    "MonsterRecord",
]
