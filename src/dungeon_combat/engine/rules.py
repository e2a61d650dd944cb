"""Pure rule formulas shared by the resolver, formation and monster AI.

Armor class is descending and an attack hits when
``d20 + attack bonus >= armor class``. The two combine into an inversion:
every term that lowers armor class (agility, armor, shield, protection,
defending) makes the wearer easier to hit, not harder.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dungeon_combat.core.constants import (
    INITIATIVE_CLASS_BONUS,
    UNARMED_CLASS_BONUS,
)
from dungeon_combat.models.combatant import ability_modifier
from dungeon_combat.models.enums import Side, SpellSchool


if TYPE_CHECKING:
    from dungeon_combat.models.catalog import SpellDefinition
    from dungeon_combat.models.combatant import Combatant


def armor_class(combatant: Combatant, *, defend_bonus: int = 2) -> int:
    """Current armor class of a combatant.

    Players: ``base - agility mod - armor - shield``. Monsters declare a
    final value. Both drop by ``defend_bonus`` while defending and by any
    protection magic. Since a hit needs ``roll >= armor class``, each drop
    lowers the roll an attacker needs.

    Args:
        combatant: The defender.
        defend_bonus: Armor class reduction while defending.

    Returns:
        The armor class an attack roll must meet.
    """
    if combatant.armor_class_is_final:
        ac = combatant.armor_class_base
    else:
        ac = (
            combatant.armor_class_base
            - ability_modifier(combatant.attributes.agility)
            - combatant.equipment.armor_ac_bonus
            - combatant.equipment.shield_ac_bonus
        )
    ac -= combatant.ac_modifier
    if combatant.is_defending:
        ac -= defend_bonus
    return ac


def unarmed_attack_bonus(combatant: Combatant) -> int:
    """To-hit bonus for a bare-handed player attack."""
    class_bonus = UNARMED_CLASS_BONUS.get(combatant.role, 0)
    return (combatant.attributes.agility - 10) // 4 + class_bonus // 2


def unarmed_damage_bonus(combatant: Combatant) -> int:
    return UNARMED_CLASS_BONUS.get(combatant.role, 0)


def attack_bonus(combatant: Combatant, *, accuracy_bonus: int = 0) -> int:
    """To-hit bonus for a weapon or natural attack.

    Monsters use their declared bonus. Players use their weapon bonus, or
    the unarmed bonus when they carry no weapon, plus the formation
    accuracy modifier.
    """
    if combatant.side is Side.ENEMY:
        base = combatant.attack_bonus
    elif combatant.equipment.has_weapon:
        base = combatant.equipment.weapon_attack_bonus
    else:
        base = unarmed_attack_bonus(combatant)
    return base + accuracy_bonus + combatant.attack_modifier


def initiative_class_bonus(role: str) -> int:
    return INITIATIVE_CLASS_BONUS.get(role, 0)


def spell_success_chance(
    caster: Combatant,
    spell: SpellDefinition,
    *,
    base: int = 85,
    minimum: int = 5,
    maximum: int = 95,
) -> int:
    """Percent chance that a spell goes off.

    ``base + (caster level - spell level) * 5 + attribute bonus``, where the
    attribute bonus is twice the distance of intelligence (arcane) or piety
    (divine) from 10, clamped to ``[minimum, maximum]``.

    Example:
        A level 1 mage with INT 16 casting a level 1 arcane spell:
        ``85 + 0 + 12 = 97`` clamps to 95.
    """
    score = caster.attributes.intelligence if spell.school is SpellSchool.ARCANE else caster.attributes.piety
    chance = base + (caster.level - spell.level) * 5 + (score - 10) * 2
    return max(minimum, min(maximum, chance))


def control_save_chance(target: Combatant, spell: SpellDefinition, *, base: int = 50) -> int:
    """Percent chance that a target shrugs off a control effect."""
    score = target.attributes.intelligence if spell.school is SpellSchool.ARCANE else target.attributes.piety
    return max(5, min(95, base + target.level * 5 + (score - 10)))


def estimated_hit_chance(attacker: Combatant, target: Combatant) -> int:
    """Rough percent chance for ``attacker`` to hit ``target`` with a d20."""
    needed = armor_class(target) - attacker.attack_bonus
    return max(0, min(100, (21 - needed) * 5))


def wound_description(current_hp: int, max_hp: int) -> str:
    ratio = current_hp / max_hp * 100
    if ratio > 75:
        return "slightly wounded"
    if ratio > 50:
        return "wounded"
    if ratio > 25:
        return "badly wounded"
    return "critically wounded"


def hit_description(damage: int, max_hp: int, *, unarmed: bool = False) -> str:
    if damage >= max_hp * 0.75:
        return "devastatingly"
    if damage >= max_hp * 0.5:
        return "brutally"
    if damage >= max_hp * 0.25:
        return "solidly"
    return "weakly" if unarmed else "lightly"


__all__ = [
    "armor_class",
    "attack_bonus",
    "unarmed_attack_bonus",
    "unarmed_damage_bonus",
    "initiative_class_bonus",
    "spell_success_chance",
    "control_save_chance",
    "estimated_hit_chance",
    "wound_description",
    "hit_description",
]
