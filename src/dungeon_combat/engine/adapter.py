"""Normalization of party members and monsters into combatants."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import ValidationError as PydanticValidationError

from dungeon_combat.core.exceptions import ValidationError
from dungeon_combat.core.logging import get_logger
from dungeon_combat.models.combatant import Combatant, EquipmentBonuses
from dungeon_combat.models.enums import AttackRange, CombatStatus, Side


if TYPE_CHECKING:
    from dungeon_combat.engine.providers import EquipmentProvider
    from dungeon_combat.models.combatant import CharacterRecord, MonsterRecord

logger = get_logger(__name__)


class CombatantAdapter:
    """Build :class:`Combatant` objects from collaborator records.

    Characters get their equipment resolved through the Equipment
    provider. Monsters are stamped with an ID that is unique per wave
    slot, so several kobolds from the same template can share a wave.

    Attributes:
        equipment: Provider resolving weapon, armor and shield bonuses.
    """

    def __init__(self, equipment: EquipmentProvider | None = None) -> None:
        self.equipment = equipment

    def from_character(self, record: CharacterRecord) -> Combatant:
        """Wrap a party member.

        Args:
            record: The character as supplied by the Party provider.

        Returns:
            A player-side combatant.

        Raises:
            ValidationError: If the record cannot form a valid combatant.
        """
        bonuses = self._equipment_for(record)
        status = CombatStatus.OK if record.is_alive else CombatStatus.UNCONSCIOUS
        try:
            return Combatant(
                id=record.id,
                name=record.name,
                side=Side.PLAYER,
                role=record.character_class,
                level=record.level,
                current_hp=min(record.current_hp, record.max_hp),
                max_hp=record.max_hp,
                attributes=record.attributes,
                armor_class_base=record.base_armor_class,
                equipment=bonuses,
                prepared_spells=dict(record.prepared_spells),
                status=status,
            )
        except PydanticValidationError as exc:
            raise ValidationError(
                f"Cannot build combatant for {record.name}: {exc}",
                field_name="character",
                invalid_value=record.id,
            ) from exc

    def from_monster(self, record: MonsterRecord, *, wave_index: int, slot: int) -> Combatant:
        """Wrap one monster of a wave.

        Args:
            record: The monster template.
            wave_index: 0-based wave the monster belongs to.
            slot: 0-based position within the wave.

        Returns:
            An enemy-side combatant whose declared armor class is final.
        """
        return Combatant(
            id=f"{record.id}-w{wave_index + 1}-{slot + 1}",
            name=record.name,
            side=Side.ENEMY,
            role=record.creature_type,
            level=record.level,
            current_hp=record.hit_points,
            max_hp=record.hit_points,
            attributes=record.attributes,
            armor_class_base=record.armor_class,
            armor_class_is_final=True,
            attack_bonus=record.attack_bonus,
            damage_bonus=record.damage_bonus,
            attacks=list(record.attacks),
            ai_type=record.ai_type,
            experience_value=record.experience_value,
            treasure_type=record.treasure_type,
            prepared_spells=dict(record.prepared_spells),
        )

    def wave_from_monsters(self, records: list[MonsterRecord], *, wave_index: int) -> list[Combatant]:
        return [self.from_monster(record, wave_index=wave_index, slot=slot) for slot, record in enumerate(records)]

    def _equipment_for(self, record: CharacterRecord) -> EquipmentBonuses:
        if self.equipment is None:
            return EquipmentBonuses()
        weapon = self.equipment.get_item(record.weapon_id) if record.weapon_id else None
        armor = self.equipment.get_item(record.armor_id) if record.armor_id else None
        shield = self.equipment.get_item(record.shield_id) if record.shield_id else None
        bonuses = EquipmentBonuses(
            weapon_name=weapon.name if weapon else None,
            weapon_type=weapon.weapon_type if weapon else None,
            weapon_range=weapon.range if weapon else AttackRange.MELEE,
            weapon_attack_bonus=weapon.attack_bonus if weapon else 0,
            weapon_damage_bonus=weapon.damage_bonus if weapon else 0,
            armor_ac_bonus=armor.ac_bonus if armor else 0,
            shield_ac_bonus=shield.ac_bonus if shield else 0,
            is_reach=self.equipment.is_reach_weapon(weapon) if weapon else False,
        )
        logger.debug("Equipment resolved", character=record.name, weapon=bonuses.weapon_name)
        return bonuses


__all__ = [
    "CombatantAdapter",
]
