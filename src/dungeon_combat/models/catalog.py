"""Definitions served by the Equipment, Spell and Inventory providers."""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from dungeon_combat.models.combatant import DamageDice
from dungeon_combat.models.enums import AttackRange, SpellEffect, SpellSchool


class EquipmentSlot(StrEnum):
    """Where a piece of equipment is worn."""

    WEAPON = "weapon"
    ARMOR = "armor"
    SHIELD = "shield"


class EquipmentItem(BaseModel):
    """A weapon, armor or shield.

    Attributes:
        id: Catalog ID.
        name: Display name.
        slot: Equipment slot.
        weapon_type: Weapon category ("Sword", "Spear", ...), weapons only.
        range: Reach of a weapon.
        attack_bonus: To-hit bonus of a weapon.
        damage_bonus: Damage bonus of a weapon.
        ac_bonus: Amount armor or a shield subtracts from armor class.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    slot: EquipmentSlot
    weapon_type: str | None = None
    range: AttackRange = AttackRange.MELEE
    attack_bonus: int = 0
    damage_bonus: int = 0
    ac_bonus: int = 0


class SpellDefinition(BaseModel):
    """A castable spell.

    Attributes:
        id: Spell ID as stored in prepared spell lists.
        name: Display name.
        school: Arcane or divine.
        level: Spell level, compared against the caster level.
        effect: What the spell does on success.
        dice: Damage or healing roll.
        area_effect: Affects every eligible target on the affected side.
        bonus: To-hit improvement granted by buffs.
        ac_bonus: Amount protection subtracts from armor class.
        duration: Turns a control effect lasts.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    school: SpellSchool = SpellSchool.ARCANE
    level: Annotated[int, Field(ge=1, le=9)] = 1
    effect: SpellEffect
    dice: DamageDice | None = None
    area_effect: bool = False
    bonus: int = 1
    ac_bonus: int = 2
    duration: Annotated[int, Field(ge=1)] = 2


class ItemDefinition(BaseModel):
    """A consumable usable in combat, such as a potion or a bomb."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    effect: SpellEffect = SpellEffect.HEAL
    dice: DamageDice = Field(default_factory=lambda: DamageDice(count=1, sides=8))
    bonus: int = 1
    ac_bonus: int = 2
    duration: Annotated[int, Field(ge=1)] = 2


__all__ = [
    "EquipmentSlot",
    "EquipmentItem",
    "SpellDefinition",
    "ItemDefinition",
]
