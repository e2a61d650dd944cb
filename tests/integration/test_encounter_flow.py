"""Integration tests for complete encounters.

Each scenario scripts every draw an encounter makes, from initiative to
rewards, and drives the engine through its public API only.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from dungeon_combat.core.exceptions import RejectionKind
from dungeon_combat.engine.combat import CombatEngine
from dungeon_combat.engine.dice import DiceRoller, SequenceRandom
from dungeon_combat.engine.events import EventBus
from dungeon_combat.engine.providers import InMemoryInventory, InMemoryParty
from dungeon_combat.models.actions import AttackAction, DefendAction, FleeAction, SpellAction
from dungeon_combat.models.combatant import CharacterRecord, MonsterRecord
from dungeon_combat.models.enums import EncounterPhase


EngineFactory = Callable[..., CombatEngine]


@pytest.fixture
def solo_party(fighter_record: CharacterRecord) -> InMemoryParty:
    return InMemoryParty([fighter_record])


@pytest.fixture
def duo_party(fighter_record: CharacterRecord, mage_record: CharacterRecord) -> InMemoryParty:
    return InMemoryParty([fighter_record, mage_record])


def _tags(events: list[Any]) -> list[str]:
    return [event.event for event in events]


def _play_out(engine: CombatEngine) -> None:
    """Attack the first standing enemy on every party turn until combat ends."""
    while engine.phase is EncounterPhase.ACTIVE:
        actor = engine.get_current_actor()
        if actor is not None and actor.is_player:
            target = engine.formation.eligible_targets_for_party()[0]
            engine.process_action(AttackAction(actor_id=actor.id, target_id=target.id))
        else:
            engine.run_ai_turns()


class TestSingleWave:
    """Fights against a single wave."""

    def test_one_blow_victory(
        self,
        make_engine: EngineFactory,
        solo_party: InMemoryParty,
        scripted_rng: SequenceRandom,
        kobold: MonsterRecord,
        event_log: list[Any],
    ) -> None:
        """A fighter fells a kobold with a single sword stroke."""
        scripted_rng.push_integers(6, 1, 15, 4)
        engine = make_engine(solo_party, scripted_rng)
        engine.start_combat(enemy_waves=[[kobold]])

        outcome = engine.process_action(AttackAction(actor_id="aldric", target_id="kobold-w1-1"))

        assert outcome.accepted is True
        assert outcome.result is not None and outcome.result.damage == 7
        assert engine.get_combatant("kobold-w1-1").current_hp == 0
        assert outcome.phase is EncounterPhase.VICTORY
        assert outcome.next_actor_id is None
        assert engine.last_rewards is not None and engine.last_rewards.experience == 5
        assert _tags(event_log) == ["combat-started", "combat-action-processed", "combat-ended"]
        assert scripted_rng.remaining == (0, 0)

    def test_two_enemies(
        self,
        make_engine: EngineFactory,
        solo_party: InMemoryParty,
        scripted_rng: SequenceRandom,
        kobold: MonsterRecord,
        goblin: MonsterRecord,
    ) -> None:
        """The kobold falls, the goblin misses, then the goblin falls."""
        scripted_rng.push_integers(6, 1, 1)
        engine = make_engine(solo_party, scripted_rng)
        engine.start_combat(enemy_waves=[[kobold, goblin]])

        scripted_rng.push_integers(15, 4)
        first = engine.process_action(AttackAction(actor_id="aldric", target_id="kobold-w1-1"))
        assert first.next_actor_id == "goblin-w1-2"

        scripted_rng.push_integers(1)
        miss = engine.process_action(AttackAction(actor_id="goblin-w1-2", target_id="aldric"))
        assert miss.result is not None and miss.result.success is False
        assert miss.next_actor_id == "aldric"
        assert engine.current_round == 2

        scripted_rng.push_integers(15, 4)
        final = engine.process_action(AttackAction(actor_id="aldric", target_id="goblin-w1-2"))

        assert final.phase is EncounterPhase.VICTORY
        assert engine.last_rewards is not None and engine.last_rewards.experience == 15
        assert solo_party.get("aldric").current_hp == 12

    def test_back_row_melee_rejected(
        self,
        make_engine: EngineFactory,
        duo_party: InMemoryParty,
        scripted_rng: SequenceRandom,
        kobold: MonsterRecord,
    ) -> None:
        """A mage behind the fighter cannot punch and nothing changes."""
        scripted_rng.push_integers(6, 6, 1)
        engine = make_engine(duo_party, scripted_rng)
        engine.start_combat(enemy_waves=[[kobold]])
        engine.process_action(DefendAction(actor_id="aldric"))

        before = engine.combatants()
        log_size = len(engine.combat_log)
        draws = len(scripted_rng.draws)

        outcome = engine.process_action(AttackAction(actor_id="mira", target_id="kobold-w1-1"))

        assert outcome.accepted is False
        assert outcome.rejection is RejectionKind.ILLEGAL_ACTION_FOR_ACTOR
        assert outcome.next_actor_id == "mira"
        assert engine.combatants() == before
        assert len(engine.combat_log) == log_size
        assert len(scripted_rng.draws) == draws
        assert engine.get_combatant("aldric").is_defending is True

    def test_failed_flee_provokes_free_attack(
        self,
        make_engine: EngineFactory,
        solo_party: InMemoryParty,
        scripted_rng: SequenceRandom,
        kobold: MonsterRecord,
        event_log: list[Any],
    ) -> None:
        """A failed escape lets the kobold claw the fleeing fighter."""
        scripted_rng.push_integers(6, 1)
        engine = make_engine(solo_party, scripted_rng)
        engine.start_combat(enemy_waves=[[kobold]])

        scripted_rng.push_chances(False)
        scripted_rng.push_integers(0, 18, 3)
        outcome = engine.process_action(FleeAction(actor_id="aldric"))

        assert outcome.result is not None and outcome.result.counter_attack is not None
        assert engine.get_combatant("aldric").current_hp == 9
        assert outcome.next_actor_id == "kobold-w1-1"
        assert _tags(event_log)[-2:] == ["combat-action-processed", "character-updated"]
        assert event_log[-1].character.current_hp == 9

    def test_successful_flee_ends_in_partial_defeat(
        self,
        make_engine: EngineFactory,
        solo_party: InMemoryParty,
        scripted_rng: SequenceRandom,
        kobold: MonsterRecord,
        event_log: list[Any],
    ) -> None:
        """The last member escaping ends the fight without a total defeat."""
        scripted_rng.push_integers(6, 1)
        scripted_rng.push_chances(True)
        engine = make_engine(solo_party, scripted_rng)
        engine.start_combat(enemy_waves=[[kobold]])

        outcome = engine.process_action(FleeAction(actor_id="aldric"))

        assert outcome.phase is EncounterPhase.DEFEAT
        assert engine.disconnected_characters == ["aldric"]
        assert event_log[-1].event == "party-defeated"
        assert event_log[-1].total_defeat is False
        assert solo_party.get("aldric").status == "ok"
        assert solo_party.get("aldric").disoriented is True

    def test_escaped_member_can_fight_again(
        self,
        make_engine: EngineFactory,
        solo_party: InMemoryParty,
        scripted_rng: SequenceRandom,
        kobold: MonsterRecord,
    ) -> None:
        """A member who escaped is still in the party for the next encounter."""
        first = make_engine(solo_party, scripted_rng)
        scripted_rng.push_integers(6, 1)
        scripted_rng.push_chances(True)
        first.start_combat(enemy_waves=[[kobold]])
        first.process_action(FleeAction(actor_id="aldric"))

        assert [member.id for member in solo_party.living_members()] == ["aldric"]

        second = make_engine(solo_party, scripted_rng)
        scripted_rng.push_integers(6, 1)
        second.start_combat(enemy_waves=[[kobold]])

        assert second.phase is EncounterPhase.ACTIVE
        assert second.get_current_actor().id == "aldric"
        assert second.get_combatant("aldric").current_hp == 12

    def test_instant_kill(
        self,
        make_engine: EngineFactory,
        solo_party: InMemoryParty,
        scripted_rng: SequenceRandom,
        goblin_chief: MonsterRecord,
        inventory: InMemoryInventory,
    ) -> None:
        """A perfect critical slays the goblin chief outright."""
        scripted_rng.push_integers(6, 1, 20, 1, 20)
        scripted_rng.push_chances(True)
        engine = make_engine(solo_party, scripted_rng)
        engine.start_combat(enemy_waves=[[goblin_chief]])

        scripted_rng.push_integers(3, 4)
        outcome = engine.process_action(AttackAction(actor_id="aldric", target_id="goblin-chief-w1-1"))

        assert outcome.result is not None
        assert outcome.result.instant is True
        assert outcome.result.damage == 50
        assert engine.get_combatant("goblin-chief-w1-1").current_hp == 0
        assert engine.last_rewards is not None and engine.last_rewards.gold == 7
        assert inventory.gold == 7

    def test_total_defeat(
        self,
        make_engine: EngineFactory,
        fighter_record: CharacterRecord,
        scripted_rng: SequenceRandom,
        kobold: MonsterRecord,
        event_log: list[Any],
    ) -> None:
        """A wounded fighter falls to the kobold and the result is written back."""
        fighter_record.current_hp = 2
        party = InMemoryParty([fighter_record])
        scripted_rng.push_integers(1, 6, 0, 18, 3)
        engine = make_engine(party, scripted_rng)
        engine.start_combat(enemy_waves=[[kobold]])

        outcomes = engine.run_ai_turns()

        assert len(outcomes) == 1
        assert engine.phase is EncounterPhase.DEFEAT
        assert event_log[-1].event == "party-defeated"
        assert event_log[-1].total_defeat is True
        assert event_log[-1].casualties == ["aldric"]
        assert (fighter_record.current_hp, fighter_record.status) == (0, "unconscious")


class TestMultiWave:
    """Encounters made of several waves."""

    def test_wave_progression(
        self,
        make_engine: EngineFactory,
        solo_party: InMemoryParty,
        scripted_rng: SequenceRandom,
        kobold: MonsterRecord,
        goblin: MonsterRecord,
        event_log: list[Any],
    ) -> None:
        """Clearing a wave brings in the next one with fresh initiative."""
        scripted_rng.push_integers(6, 1, 15, 4, 6, 1)
        engine = make_engine(solo_party, scripted_rng)
        engine.start_combat(enemy_waves=[[kobold], [goblin]])

        outcome = engine.process_action(AttackAction(actor_id="aldric", target_id="kobold-w1-1"))

        assert outcome.phase is EncounterPhase.ACTIVE
        assert outcome.next_actor_id == "aldric"
        assert engine.encounter_info().current_wave == 2
        assert [entry.combatant_id for entry in engine.turn_order] == ["aldric", "goblin-w2-1"]
        assert _tags(event_log)[-2:] == ["combat-action-processed", "wave-started"]
        assert "✅ Wave 1 cleared!" in [entry.message for entry in outcome.log_tail]

        scripted_rng.push_integers(15, 4)
        final = engine.process_action(AttackAction(actor_id="aldric", target_id="goblin-w2-1"))

        assert final.phase is EncounterPhase.VICTORY
        assert engine.last_rewards is not None and engine.last_rewards.experience == 15
        assert engine.combat_log[-1].wave == 2


class TestSpellcasting:
    """Spells across several turns."""

    def test_spells_consumed_on_failure_and_success(
        self,
        make_engine: EngineFactory,
        duo_party: InMemoryParty,
        scripted_rng: SequenceRandom,
        goblin: MonsterRecord,
        event_log: list[Any],
    ) -> None:
        """A fizzled bolt is lost, the second bolt finishes the goblin."""
        scripted_rng.push_integers(1, 6, 1)
        engine = make_engine(duo_party, scripted_rng)
        engine.start_combat(enemy_waves=[[goblin]])

        scripted_rng.push_chances(False)
        fizzle = engine.process_action(SpellAction(actor_id="mira", spell_id="fire-bolt", target_id="goblin-w1-1"))
        assert fizzle.result is not None and fizzle.result.success is False
        assert engine.get_combatant("mira").prepared_spells["fire-bolt"] == 1
        assert event_log[-1].event == "character-updated"

        engine.process_action(DefendAction(actor_id="aldric"))
        engine.process_action(DefendAction(actor_id="goblin-w1-1"))

        scripted_rng.push_chances(True)
        scripted_rng.push_integers(3, 4)
        final = engine.process_action(SpellAction(actor_id="mira", spell_id="fire-bolt", target_id="goblin-w1-1"))

        assert final.phase is EncounterPhase.VICTORY
        assert "fire-bolt" not in engine.get_combatant("mira").prepared_spells


class TestDeterminism:
    """Replays from the same seed."""

    def test_same_seed_same_log(
        self,
        make_engine: EngineFactory,
        fighter_record: CharacterRecord,
        kobold: MonsterRecord,
        goblin: MonsterRecord,
    ) -> None:
        """Two engines seeded alike produce the same encounter."""
        logs = []
        for _ in range(2):
            party = InMemoryParty([fighter_record.model_copy(deep=True)])
            engine = make_engine(party, DiceRoller(seed=11), events=EventBus())
            engine.start_combat(enemy_waves=[[kobold, goblin]])
            _play_out(engine)
            logs.append(([entry.message for entry in engine.combat_log], engine.phase))

        assert logs[0] == logs[1]
        assert logs[0][1].is_resolved
