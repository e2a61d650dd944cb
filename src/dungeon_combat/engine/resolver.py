"""Action resolution: the single source of combat rule truth.

The resolver validates an action against the current combatants and
formation, draws every random number the action needs from the injected
:class:`~dungeon_combat.engine.dice.RandomSource`, and describes the
outcome as an :class:`~dungeon_combat.models.actions.ActionResult`. It
never mutates a combatant: the requested mutations travel in
``ActionResult.changes`` and the engine applies them.

Draw order for a weapon attack is fixed: attack d20, damage dice, then
for a natural 20 the confirmation d20, then for a perfect confirmation
the instant-kill percentage.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from dungeon_combat.core.config import CombatSettings, get_settings
from dungeon_combat.core.constants import WEAPON_DAMAGE_DIE
from dungeon_combat.core.exceptions import (
    IllegalActionForActorError,
    InvalidTargetError,
)
from dungeon_combat.core.logging import get_logger
from dungeon_combat.engine.rules import (
    armor_class,
    attack_bonus,
    control_save_chance,
    hit_description,
    spell_success_chance,
    unarmed_damage_bonus,
    wound_description,
)
from dungeon_combat.models.actions import (
    ActionResult,
    AttackAction,
    ChangeKind,
    DefendAction,
    FleeAction,
    ItemAction,
    LogLine,
    SpellAction,
    StateChange,
    TargetOutcome,
)
from dungeon_combat.models.catalog import SpellDefinition
from dungeon_combat.models.combatant import AttackProfile, DamageDice, ability_modifier
from dungeon_combat.models.enums import ActionType, AttackRange, LogKind, Side, SpellEffect


if TYPE_CHECKING:
    from collections.abc import Mapping

    from dungeon_combat.engine.dice import RandomSource
    from dungeon_combat.engine.formation import Formation
    from dungeon_combat.engine.providers import InventoryProvider, SpellProvider
    from dungeon_combat.models.actions import ActionModel
    from dungeon_combat.models.catalog import ItemDefinition
    from dungeon_combat.models.combatant import Combatant

logger = get_logger(__name__)

NATURAL_STRIKE = AttackProfile(name="Strike", dice=DamageDice(count=1, sides=WEAPON_DAMAGE_DIE))
"""Fallback attack for monsters that declare none."""

_MISS_REASONS = (
    "{target} dodges nimbly!",
    "The attack glances off harmlessly!",
    "{target} steps back just in time!",
    "The blow goes wide!",
    "{target} deflects the attack!",
)


@dataclass
class _Resolution:
    """Accumulates outcomes, changes and log lines while resolving."""

    outcomes: list[TargetOutcome] = field(default_factory=list)
    changes: list[StateChange] = field(default_factory=list)
    lines: list[LogLine] = field(default_factory=list)

    def log(self, message: str, kind: LogKind = LogKind.COMBAT, icon: str = "") -> None:
        self.lines.append(LogLine(message=message, kind=kind, icon=icon))

    def change(self, kind: ChangeKind, combatant_id: str, amount: int = 0, key: str | None = None) -> None:
        self.changes.append(StateChange(kind=kind, combatant_id=combatant_id, amount=amount, key=key))

    @property
    def total_damage(self) -> int:
        return sum(outcome.damage for outcome in self.outcomes)


@dataclass(frozen=True)
class _Weapon:
    """The attack an actor is about to make."""

    name: str
    range: AttackRange
    dice: DamageDice | None
    area_effect: bool = False
    unarmed: bool = False


class ActionResolver:
    """Resolve actions against the current encounter state.

    Attributes:
        rng: Source of every random draw.
        formation: Row layout used for legality, targeting and modifiers.
        spells: Spell definitions.
        inventory: Party consumables.
        settings: Combat rule constants.
    """

    def __init__(
        self,
        rng: RandomSource,
        formation: Formation,
        *,
        spells: SpellProvider | None = None,
        inventory: InventoryProvider | None = None,
        settings: CombatSettings | None = None,
    ) -> None:
        self.rng = rng
        self.formation = formation
        self.spells = spells
        self.inventory = inventory
        self.settings = settings or get_settings().combat

    def resolve(
        self,
        action: ActionModel,
        actor: Combatant,
        combatants: Mapping[str, Combatant],
    ) -> ActionResult:
        """Validate and resolve one action.

        Args:
            action: The action to resolve.
            actor: The acting combatant (``action.actor_id``).
            combatants: Every combatant of the encounter by ID.

        Returns:
            The structured result, including the state changes to apply.

        Raises:
            IllegalActionForActorError: If the actor cannot take the action.
            InvalidTargetError: If the target is not eligible.
        """
        logger.debug("Resolving action", action=action.type, actor=actor.id)
        if isinstance(action, AttackAction):
            return self._resolve_attack(action, actor, combatants)
        if isinstance(action, SpellAction):
            return self._resolve_spell(action, actor, combatants)
        if isinstance(action, ItemAction):
            return self._resolve_item(action, actor, combatants)
        if isinstance(action, DefendAction):
            return self._resolve_defend(actor)
        if isinstance(action, FleeAction):
            return self._resolve_flee(actor)
        raise IllegalActionForActorError(f"Unsupported action {action!r}", combatant_id=actor.id)

    # =========================================================================
    # Attack
    # =========================================================================

    def weapon_for(self, actor: Combatant, attack_index: int | None = None) -> _Weapon:
        """Work out which attack the actor makes.

        Raises:
            IllegalActionForActorError: If ``attack_index`` names no attack.
        """
        if actor.side is Side.ENEMY:
            if not actor.attacks:
                if attack_index not in (None, 0):
                    raise IllegalActionForActorError(
                        f"{actor.name} has no attack {attack_index}",
                        combatant_id=actor.id,
                    )
                profile = NATURAL_STRIKE
            elif attack_index is not None and attack_index >= len(actor.attacks):
                raise IllegalActionForActorError(
                    f"{actor.name} has no attack {attack_index}",
                    combatant_id=actor.id,
                )
            else:
                profile = actor.attacks[attack_index or 0]
            return _Weapon(
                name=profile.name,
                range=profile.range,
                dice=profile.dice,
                area_effect=profile.area_effect,
            )
        if actor.equipment.has_weapon:
            return _Weapon(
                name=actor.equipment.weapon_name or "weapon",
                range=actor.equipment.weapon_range,
                dice=DamageDice(count=1, sides=WEAPON_DAMAGE_DIE),
            )
        return _Weapon(name="bare hands", range=AttackRange.MELEE, dice=None, unarmed=True)

    def _resolve_attack(
        self,
        action: AttackAction,
        actor: Combatant,
        combatants: Mapping[str, Combatant],
    ) -> ActionResult:
        weapon = self.weapon_for(actor, action.attack_index)
        if weapon.range.is_melee and not self.formation.can_melee(actor):
            raise IllegalActionForActorError(
                f"{actor.name} cannot reach the enemy from the back row",
                combatant_id=actor.id,
                details={"row": self.formation.row_of(actor.id).value},
            )

        eligible = self._opponents(actor)
        if weapon.area_effect:
            if not eligible:
                raise InvalidTargetError("No eligible targets", combatant_id=actor.id)
            targets = eligible
        else:
            targets = [self._single_target(action.target_id, actor, eligible, combatants)]

        resolution = _Resolution()
        if weapon.unarmed:
            resolution.log(f"{actor.name} throws a desperate punch!", icon="👊")
        else:
            resolution.log(f"{actor.name} attacks with {weapon.name}!", icon="⚔️")
        for target in targets:
            self._strike(actor, target, weapon, resolution)
        return self._attack_result(actor, resolution)

    def free_attack(self, attacker: Combatant, target: Combatant) -> ActionResult:
        """An immediate attack outside the turn order, with the first attack."""
        weapon = self.weapon_for(attacker)
        resolution = _Resolution()
        resolution.log(f"{attacker.name} strikes at {target.name}!", icon="⚔️")
        self._strike(attacker, target, weapon, resolution)
        return self._attack_result(attacker, resolution)

    def _attack_result(self, actor: Combatant, resolution: _Resolution) -> ActionResult:
        hits = [outcome for outcome in resolution.outcomes if outcome.hit]
        damage = resolution.total_damage
        return ActionResult(
            action_type=ActionType.ATTACK,
            actor_id=actor.id,
            success=bool(hits),
            damage=damage,
            critical=any(outcome.critical for outcome in hits),
            instant=any(outcome.instant for outcome in hits),
            message=f"Hit for {damage} damage!" if hits else "Missed!",
            outcomes=resolution.outcomes,
            changes=resolution.changes,
            lines=resolution.lines,
        )

    def _strike(
        self,
        attacker: Combatant,
        target: Combatant,
        weapon: _Weapon,
        resolution: _Resolution,
    ) -> None:
        attacker_mods = self.formation.modifiers_for(attacker, weapon.range)
        target_ac = armor_class(target, defend_bonus=self.settings.defend_ac_bonus)
        if target.is_defending:
            resolution.change(ChangeKind.CLEAR_DEFENDING, target.id)

        natural = self.rng.die(20)
        total = natural + attack_bonus(attacker, accuracy_bonus=attacker_mods.accuracy_bonus)
        resolution.log(f"Attack roll: {total} vs AC {target_ac}", LogKind.SYSTEM, "🎲")

        if total < target_ac:
            reason = _MISS_REASONS[natural % len(_MISS_REASONS)].format(target=target.name)
            resolution.log(f"💨 {attacker.name} misses! {reason}", icon="💨")
            resolution.outcomes.append(
                TargetOutcome(target_id=target.id, hit=False, attack_roll=total, armor_class=target_ac)
            )
            return

        damage = max(1, self._roll_weapon_damage(attacker, weapon) + attacker_mods.damage_bonus)

        critical = False
        instant = False
        if natural == 20:
            confirm = self.rng.die(20)
            if confirm >= self.settings.crit_threshold:
                critical = True
                damage *= 2
                resolution.log("🎯 CRITICAL HIT! Damage multiplied by 2!", LogKind.CRITICAL, "🎯")
            if confirm == 20 and self.rng.percent(self.settings.instant_kill_percent):
                instant = True

        if instant:
            damage = target.current_hp
            resolution.log(
                f"💀 DEVASTATING BLOW! {target.name} is slain instantly!",
                LogKind.CRITICAL,
                "💀",
            )
        else:
            multiplier = self.formation.modifiers_for(target, weapon.range).damage_taken_multiplier
            if multiplier != 1.0:
                damage = max(1, int(damage * multiplier))
            description = hit_description(damage, target.max_hp, unarmed=weapon.unarmed)
            resolution.log(
                f"💥 {attacker.name} hits {target.name} {description} for {damage} damage!",
                icon="💥",
            )

        remaining = max(0, target.current_hp - damage)
        defeated = remaining == 0
        resolution.change(ChangeKind.DAMAGE, target.id, damage)
        resolution.outcomes.append(
            TargetOutcome(
                target_id=target.id,
                hit=True,
                attack_roll=total,
                armor_class=target_ac,
                damage=damage,
                critical=critical,
                instant=instant,
                defeated=defeated,
            )
        )
        self._log_condition(target, remaining, resolution)
        logger.info(
            "Attack resolved",
            attacker=attacker.id,
            target=target.id,
            roll=natural,
            total=total,
            armor_class=target_ac,
            damage=damage,
            critical=critical,
            instant=instant,
        )

    def _roll_weapon_damage(self, attacker: Combatant, weapon: _Weapon) -> int:
        strength = ability_modifier(attacker.attributes.strength)
        if weapon.unarmed or weapon.dice is None:
            return 1 + strength + unarmed_damage_bonus(attacker)
        rolled = self.rng.dice(weapon.dice.count, weapon.dice.sides) + weapon.dice.bonus
        if attacker.side is Side.ENEMY:
            return rolled + strength + attacker.damage_bonus
        return rolled + strength + attacker.equipment.weapon_damage_bonus

    # =========================================================================
    # Spells and items
    # =========================================================================

    def _resolve_spell(
        self,
        action: SpellAction,
        actor: Combatant,
        combatants: Mapping[str, Combatant],
    ) -> ActionResult:
        spell = self.spells.get_spell(action.spell_id) if self.spells else None
        if spell is None:
            raise IllegalActionForActorError(f"Unknown spell {action.spell_id}", combatant_id=actor.id)
        if actor.prepared_spells.get(spell.id, 0) <= 0:
            raise IllegalActionForActorError(
                f"{actor.name} has no prepared {spell.name}",
                combatant_id=actor.id,
                details={"spell_id": spell.id},
            )
        targets = self._effect_targets(spell.effect, spell.area_effect, action.target_id, actor, combatants)

        resolution = _Resolution()
        resolution.change(ChangeKind.CONSUME_SPELL, actor.id, key=spell.id)
        resolution.log(f"✨ {actor.name} begins casting {spell.name}!", LogKind.SPELL, "✨")

        chance = spell_success_chance(
            actor,
            spell,
            base=self.settings.spell_base_chance,
            minimum=self.settings.spell_min_chance,
            maximum=self.settings.spell_max_chance,
        )
        if not self.rng.percent(chance):
            resolution.log(f"💥 The spell fizzles! {spell.name} is lost from memory", LogKind.SPELL, "💥")
            logger.info("Spell failed", caster=actor.id, spell=spell.id, chance=chance)
            return ActionResult(
                action_type=ActionType.SPELL,
                actor_id=actor.id,
                success=False,
                message=f"{spell.name} failed",
                changes=resolution.changes,
                lines=resolution.lines,
            )

        resolution.log(f"⚡ {spell.name} is successfully cast!", LogKind.SPELL, "⚡")
        self._apply_effect(spell, spell.name, targets, resolution)
        logger.info("Spell cast", caster=actor.id, spell=spell.id, targets=[t.id for t in targets])
        return ActionResult(
            action_type=ActionType.SPELL,
            actor_id=actor.id,
            success=True,
            damage=resolution.total_damage if spell.effect is SpellEffect.DAMAGE else None,
            message=f"{actor.name} successfully casts {spell.name}",
            outcomes=resolution.outcomes,
            changes=resolution.changes,
            lines=resolution.lines,
        )

    def _resolve_item(
        self,
        action: ItemAction,
        actor: Combatant,
        combatants: Mapping[str, Combatant],
    ) -> ActionResult:
        if actor.side is not Side.PLAYER:
            raise IllegalActionForActorError("Only party members can use items", combatant_id=actor.id)
        item = self.inventory.get_item(action.item_id) if self.inventory else None
        if item is None:
            raise IllegalActionForActorError(
                f"No {action.item_id} in the inventory",
                combatant_id=actor.id,
                details={"item_id": action.item_id},
            )
        targets = self._effect_targets(item.effect, False, action.target_id, actor, combatants)

        resolution = _Resolution()
        resolution.change(ChangeKind.CONSUME_ITEM, actor.id, key=item.id)
        resolution.log(f"🧪 {actor.name} uses {item.name}!", LogKind.ITEM, "🧪")
        self._apply_effect(item, item.name, targets, resolution)
        return ActionResult(
            action_type=ActionType.ITEM,
            actor_id=actor.id,
            success=True,
            damage=resolution.total_damage if item.effect is SpellEffect.DAMAGE else None,
            message=f"{actor.name} uses {item.name}",
            outcomes=resolution.outcomes,
            changes=resolution.changes,
            lines=resolution.lines,
        )

    def _apply_effect(
        self,
        source: SpellDefinition | ItemDefinition,
        name: str,
        targets: list[Combatant],
        resolution: _Resolution,
    ) -> None:
        dice = source.dice or DamageDice()
        for target in targets:
            if source.effect is SpellEffect.DAMAGE:
                damage = max(0, self.rng.dice(dice.count, dice.sides) + dice.bonus)
                remaining = max(0, target.current_hp - damage)
                resolution.change(ChangeKind.DAMAGE, target.id, damage)
                resolution.outcomes.append(
                    TargetOutcome(target_id=target.id, hit=True, damage=damage, defeated=remaining == 0)
                )
                resolution.log(f"{target.name} takes {damage} damage", LogKind.SPELL, "🔥")
                self._log_condition(target, remaining, resolution)
            elif source.effect is SpellEffect.HEAL:
                rolled = max(0, self.rng.dice(dice.count, dice.sides) + dice.bonus)
                healing = min(rolled, target.max_hp - target.current_hp)
                resolution.change(ChangeKind.HEAL, target.id, healing)
                resolution.outcomes.append(TargetOutcome(target_id=target.id, hit=True, healing=healing))
                resolution.log(f"{target.name} heals {healing} hit points", LogKind.SPELL, "💚")
            elif source.effect is SpellEffect.BUFF:
                resolution.change(ChangeKind.BUFF, target.id, source.bonus)
                resolution.outcomes.append(TargetOutcome(target_id=target.id, hit=True))
                resolution.log(f"{name} grants {target.name} +{source.bonus} to hit", LogKind.SPELL, "💪")
            elif source.effect is SpellEffect.PROTECTION:
                resolution.change(ChangeKind.PROTECT, target.id, source.ac_bonus)
                resolution.outcomes.append(TargetOutcome(target_id=target.id, hit=True))
                resolution.log(f"{target.name} gains magical protection", LogKind.SPELL, "🛡️")
            elif source.effect is SpellEffect.CONTROL:
                save = self._control_save(target, source)
                if self.rng.percent(save):
                    resolution.outcomes.append(TargetOutcome(target_id=target.id, resisted=True))
                    resolution.log(f"{target.name} resists {name}", LogKind.SPELL, "🚫")
                else:
                    resolution.change(ChangeKind.DISABLE, target.id, source.duration)
                    resolution.outcomes.append(TargetOutcome(target_id=target.id, hit=True))
                    resolution.log(f"{target.name} is affected by {name}", LogKind.SPELL, "💤")

    def _control_save(self, target: Combatant, source: SpellDefinition | ItemDefinition) -> int:
        if isinstance(source, SpellDefinition):
            return control_save_chance(target, source, base=self.settings.control_save_base)
        return max(5, min(95, self.settings.control_save_base + target.level * 5))

    # =========================================================================
    # Defend and flee
    # =========================================================================

    def _resolve_defend(self, actor: Combatant) -> ActionResult:
        resolution = _Resolution()
        resolution.change(ChangeKind.SET_DEFENDING, actor.id)
        resolution.log(f"🛡️ {actor.name} takes a defensive stance!", LogKind.DEFEND, "🛡️")
        resolution.log(
            f"{actor.name} gains +{self.settings.defend_ac_bonus} AC until next turn",
            LogKind.SYSTEM,
            "📊",
        )
        return ActionResult(
            action_type=ActionType.DEFEND,
            actor_id=actor.id,
            success=True,
            message=f"{actor.name} is defending",
            changes=resolution.changes,
            lines=resolution.lines,
        )

    def _resolve_flee(self, actor: Combatant) -> ActionResult:
        if actor.side is not Side.PLAYER:
            raise IllegalActionForActorError("Only party members can flee", combatant_id=actor.id)

        resolution = _Resolution()
        resolution.log(f"🏃 {actor.name} attempts to flee!", icon="🏃")
        if self.rng.chance(self.settings.flee_chance):
            resolution.change(ChangeKind.FLEE, actor.id)
            resolution.log(f"✅ {actor.name} escapes from combat!", LogKind.DISCONNECT, "✅")
            logger.info("Flee succeeded", combatant=actor.id)
            return ActionResult(
                action_type=ActionType.FLEE,
                actor_id=actor.id,
                success=True,
                message=f"{actor.name} fled",
                changes=resolution.changes,
                lines=resolution.lines,
            )

        resolution.log(f"❌ {actor.name} fails to flee!", LogKind.DISCONNECT, "❌")
        counter: ActionResult | None = None
        attacker = self.rng.choice(self.formation.eligible_targets_for_party())
        if attacker is not None:
            resolution.log(f"Enemies surround {actor.name}!", LogKind.SYSTEM, "⚔️")
            counter = self.free_attack(attacker, actor)
        logger.info("Flee failed", combatant=actor.id, counter_attacker=attacker.id if attacker else None)
        return ActionResult(
            action_type=ActionType.FLEE,
            actor_id=actor.id,
            success=False,
            message=f"{actor.name} failed to flee",
            changes=resolution.changes,
            lines=resolution.lines,
            counter_attack=counter,
        )

    # =========================================================================
    # Targeting
    # =========================================================================

    def _opponents(self, actor: Combatant) -> list[Combatant]:
        if actor.side is Side.ENEMY:
            return self.formation.eligible_targets_for_enemies()
        return self.formation.eligible_targets_for_party()

    def _allies(self, actor: Combatant, combatants: Mapping[str, Combatant]) -> list[Combatant]:
        if actor.side is Side.ENEMY:
            return self.formation.eligible_targets_for_party()
        return [c for c in combatants.values() if c.side is Side.PLAYER and c.is_ok]

    def _single_target(
        self,
        target_id: str | None,
        actor: Combatant,
        eligible: list[Combatant],
        combatants: Mapping[str, Combatant],
    ) -> Combatant:
        if target_id is None:
            raise InvalidTargetError("A target is required", combatant_id=actor.id)
        target = combatants.get(target_id)
        if target is None:
            raise InvalidTargetError(f"Unknown target {target_id}", combatant_id=actor.id)
        if not target.is_ok:
            raise InvalidTargetError(
                f"{target.name} is {target.status.value}",
                combatant_id=actor.id,
                details={"target_id": target_id},
            )
        if all(candidate.id != target_id for candidate in eligible):
            raise InvalidTargetError(
                f"{target.name} cannot be targeted",
                combatant_id=actor.id,
                details={"target_id": target_id},
            )
        return target

    def _effect_targets(
        self,
        effect: SpellEffect,
        area_effect: bool,
        target_id: str | None,
        actor: Combatant,
        combatants: Mapping[str, Combatant],
    ) -> list[Combatant]:
        if effect.targets_allies:
            eligible = self._allies(actor, combatants)
            if area_effect:
                return eligible
            return [self._single_target(target_id or actor.id, actor, eligible, combatants)]
        eligible = self._opponents(actor)
        if area_effect:
            if not eligible:
                raise InvalidTargetError("No eligible targets", combatant_id=actor.id)
            return eligible
        return [self._single_target(target_id, actor, eligible, combatants)]

    # =========================================================================
    # Log helpers
    # =========================================================================

    @staticmethod
    def _log_condition(target: Combatant, remaining: int, resolution: _Resolution) -> None:
        if remaining == 0:
            resolution.log(f"😵 {target.name} falls!", LogKind.DEATH, "😵")
        else:
            condition = wound_description(remaining, target.max_hp)
            resolution.log(
                f"❤️ {target.name} is {condition} ({remaining}/{target.max_hp} HP)",
                LogKind.STATUS,
                "❤️",
            )


__all__ = [
    "NATURAL_STRIKE",
    "ActionResolver",
]
