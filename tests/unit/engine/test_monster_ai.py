"""Tests for monster target and attack selection."""

from __future__ import annotations

import pytest

from dungeon_combat.core.config import Settings
from dungeon_combat.engine.adapter import CombatantAdapter
from dungeon_combat.engine.dice import SequenceRandom
from dungeon_combat.engine.formation import Formation
from dungeon_combat.engine.monster_ai import MonsterAI
from dungeon_combat.models.actions import AttackAction, DefendAction
from dungeon_combat.models.combatant import Combatant, MonsterRecord
from dungeon_combat.models.enums import AIType


@pytest.fixture
def ai(formation: Formation, scripted_rng: SequenceRandom, settings: Settings) -> MonsterAI:
    return MonsterAI(formation, scripted_rng, settings.ai)


@pytest.fixture
def kobold_actor(roster: dict[str, Combatant]) -> Combatant:
    return roster["kobold-w1-1"]


class TestChooseAction:
    """Tests for the overall decision."""

    def test_aggressive_attack(
        self, ai: MonsterAI, scripted_rng: SequenceRandom, kobold_actor: Combatant
    ) -> None:
        """Test the default policy attacks a front-row member."""
        scripted_rng.push_integers(0)

        action = ai.choose_action(kobold_actor)

        assert action == AttackAction(actor_id="kobold-w1-1", target_id="aldric", attack_index=0)

    def test_defends_without_targets(
        self,
        ai: MonsterAI,
        scripted_rng: SequenceRandom,
        kobold_actor: Combatant,
        party: list[Combatant],
    ) -> None:
        """Test a monster with nobody to attack defends."""
        for member in party:
            member.take_damage(100)

        assert isinstance(ai.choose_action(kobold_actor), DefendAction)
        assert scripted_rng.draws == []


class TestChooseTarget:
    """Tests for the targeting personalities."""

    def test_cowardly_picks_weakest(
        self, ai: MonsterAI, formation: Formation, kobold_actor: Combatant
    ) -> None:
        """Test cowardly monsters pick the lowest current HP."""
        kobold_actor.ai_type = AIType.COWARDLY
        formation.set_formation(["aldric", "mira"], ["tomas"])

        assert ai.choose_target(kobold_actor).id == "mira"

    def test_tactical_prefers_casters(
        self, ai: MonsterAI, formation: Formation, kobold_actor: Combatant
    ) -> None:
        """Test tactical monsters go for spellcasters first."""
        kobold_actor.ai_type = AIType.TACTICAL
        formation.set_formation(["aldric", "mira"], ["tomas"])

        assert ai.choose_target(kobold_actor).id == "mira"

    def test_tactical_falls_back(
        self, ai: MonsterAI, scripted_rng: SequenceRandom, kobold_actor: Combatant
    ) -> None:
        """Test tactical monsters without a caster in reach act aggressively."""
        kobold_actor.ai_type = AIType.TACTICAL
        scripted_rng.push_integers(0)

        assert ai.choose_target(kobold_actor).id == "aldric"
        assert scripted_rng.remaining == (0, 0)

    def test_pack_hunts_isolated(
        self, ai: MonsterAI, scripted_rng: SequenceRandom, kobold_actor: Combatant
    ) -> None:
        """Test pack monsters pick the lone front-row fighter without a roll."""
        kobold_actor.ai_type = AIType.PACK

        assert ai.choose_target(kobold_actor).id == "aldric"
        assert scripted_rng.draws == []

    def test_pack_random_when_nobody_isolated(
        self,
        ai: MonsterAI,
        scripted_rng: SequenceRandom,
        formation: Formation,
        kobold_actor: Combatant,
    ) -> None:
        """Test pack monsters pick at random among a full row."""
        kobold_actor.ai_type = AIType.PACK
        formation.set_formation(["aldric", "tomas"], ["mira"])
        scripted_rng.push_integers(1)

        assert ai.choose_target(kobold_actor).id == "tomas"

    def test_intelligent_scores(
        self,
        ai: MonsterAI,
        formation: Formation,
        kobold_actor: Combatant,
        roster: dict[str, Combatant],
    ) -> None:
        """Test the intelligent score weighs HP, role, armor and hit chance."""
        kobold_actor.ai_type = AIType.INTELLIGENT
        formation.set_formation(["aldric", "mira"], ["tomas"])

        assert ai.target_score(kobold_actor, roster["aldric"]) == 100.0
        assert ai.target_score(kobold_actor, roster["mira"]) == 85.0
        assert ai.choose_target(kobold_actor).id == "aldric"


class TestChooseAttack:
    """Tests for attack selection."""

    @pytest.fixture
    def dragon(self, adapter: CombatantAdapter, formation: Formation, dragonling: MonsterRecord) -> Combatant:
        dragon = adapter.from_monster(dragonling, wave_index=0, slot=0)
        formation.set_enemy_wave([dragon])
        return dragon

    def test_area_when_crowded(
        self,
        ai: MonsterAI,
        scripted_rng: SequenceRandom,
        formation: Formation,
        dragon: Combatant,
    ) -> None:
        """Test the breath is used once three targets are in reach."""
        formation.set_formation(["aldric", "mira", "tomas"], [])

        assert ai.choose_attack(dragon) == 1
        assert scripted_rng.draws == []

    def test_ranged_preference(self, ai: MonsterAI, scripted_rng: SequenceRandom, dragon: Combatant) -> None:
        """Test the ranged attack is picked when the preference roll succeeds."""
        scripted_rng.push_chances(True, False)

        assert ai.choose_attack(dragon) == 1
        assert ai.choose_attack(dragon) == 0

    def test_melee_only_monster_never_rolls(
        self, ai: MonsterAI, scripted_rng: SequenceRandom, kobold_actor: Combatant
    ) -> None:
        """Test monsters without missile attacks use their first attack."""
        assert ai.choose_attack(kobold_actor) == 0
        assert scripted_rng.draws == []

    def test_no_declared_attacks(self, ai: MonsterAI, adapter: CombatantAdapter) -> None:
        """Test monsters without attacks use the natural strike."""
        slime = adapter.from_monster(
            MonsterRecord(id="slime", name="Slime", hit_points=3, armor_class=9), wave_index=0, slot=0
        )

        assert ai.choose_attack(slime) is None
