"""Target and attack selection for enemy combatants.

Each monster carries an :class:`~dungeon_combat.models.enums.AIType`
that decides whom it goes after. Attack selection is shared by every
policy. The AI only ever attacks: fleeing and items are left to the
party.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dungeon_combat.core.config import AISettings, get_settings
from dungeon_combat.core.constants import AC_SCORE_CEILING
from dungeon_combat.core.logging import get_logger
from dungeon_combat.engine.rules import armor_class, estimated_hit_chance
from dungeon_combat.models.actions import AttackAction, DefendAction
from dungeon_combat.models.enums import AIType, AttackRange, FormationRow


if TYPE_CHECKING:
    from dungeon_combat.engine.dice import RandomSource
    from dungeon_combat.engine.formation import Formation
    from dungeon_combat.models.actions import ActionModel
    from dungeon_combat.models.combatant import Combatant

logger = get_logger(__name__)

_MISSILE_RANGES = (AttackRange.RANGED, AttackRange.THROWN)


class MonsterAI:
    """Decide what an enemy does on its turn.

    Attributes:
        formation: Party formation; supplies the eligible targets.
        rng: Source of the random picks.
        settings: AI tunables.
    """

    def __init__(
        self,
        formation: Formation,
        rng: RandomSource,
        settings: AISettings | None = None,
    ) -> None:
        self.formation = formation
        self.rng = rng
        self.settings = settings or get_settings().ai

    def choose_action(self, actor: Combatant) -> ActionModel:
        """Pick the actor's action: an attack, or defend when nobody is reachable."""
        target = self.choose_target(actor)
        if target is None:
            logger.debug("No target available", actor=actor.id)
            return DefendAction(actor_id=actor.id)
        attack_index = self.choose_attack(actor)
        logger.debug("AI decision", actor=actor.id, ai=actor.ai_type, target=target.id, attack=attack_index)
        return AttackAction(actor_id=actor.id, target_id=target.id, attack_index=attack_index)

    def choose_target(self, actor: Combatant) -> Combatant | None:
        """Pick a party member according to the actor's AI type.

        Only targets enemies may currently reach are considered: the front
        row while anyone there stands, otherwise the back row.
        """
        eligible = self.formation.eligible_targets_for_enemies()
        if not eligible:
            return None

        if actor.ai_type is AIType.COWARDLY:
            return min(eligible, key=lambda target: target.current_hp)
        if actor.ai_type is AIType.TACTICAL:
            casters = [target for target in eligible if target.is_spellcaster]
            return casters[0] if casters else self._aggressive(eligible)
        if actor.ai_type is AIType.PACK:
            isolated = [target for target in eligible if self.formation.is_isolated(target)]
            return isolated[0] if isolated else self.rng.choice(eligible)
        if actor.ai_type is AIType.INTELLIGENT:
            scores = [self.target_score(actor, target) for target in eligible]
            return eligible[scores.index(max(scores))]
        return self._aggressive(eligible)

    def choose_attack(self, actor: Combatant) -> int | None:
        """Index of the declared attack to use, or None for the natural strike.

        An area attack is preferred when enough targets are reachable;
        otherwise a ranged attack is picked some of the time, and the first
        attack the rest of the time.
        """
        if not actor.attacks:
            return None
        reachable = len(self.formation.eligible_targets_for_enemies())
        if reachable >= self.settings.area_attack_min_targets:
            for index, attack in enumerate(actor.attacks):
                if attack.area_effect:
                    return index
        ranged = [index for index, attack in enumerate(actor.attacks) if attack.range in _MISSILE_RANGES]
        if ranged and self.rng.percent(self.settings.ranged_preference_percent):
            return ranged[0]
        return 0

    def target_score(self, actor: Combatant, target: Combatant) -> float:
        """Desirability of ``target`` for an intelligent monster."""
        score = (1 - target.hp_ratio) * 30
        if target.is_spellcaster:
            score += 20
        score += max(0, AC_SCORE_CEILING - armor_class(target)) * 2
        score += estimated_hit_chance(actor, target)
        return score

    def _aggressive(self, eligible: list[Combatant]) -> Combatant | None:
        front = [target for target in eligible if self.formation.row_of(target.id) is FormationRow.FRONT]
        return self.rng.choice(front) if front else self.rng.choice(eligible)


__all__ = [
    "MonsterAI",
]
