"""Tests for initiative rolling and turn order."""

from __future__ import annotations

import pytest

from dungeon_combat.core.exceptions import TurnManagementError
from dungeon_combat.engine.dice import SequenceRandom
from dungeon_combat.engine.initiative import InitiativeScheduler
from dungeon_combat.models.combatant import Combatant


@pytest.fixture
def combatants(roster: dict[str, Combatant]) -> list[Combatant]:
    """Aldric, Mira and the kobold."""
    return [roster["aldric"], roster["mira"], roster["kobold-w1-1"]]


class TestRoll:
    """Tests for rolling initiative."""

    def test_order_highest_first(self, combatants: list[Combatant]) -> None:
        """Test agility, class bonus and d6 decide the order."""
        scheduler = InitiativeScheduler(SequenceRandom(integers=[6, 1, 3]))

        order = scheduler.roll(combatants)

        assert [entry.combatant_id for entry in order] == ["aldric", "kobold-w1-1", "mira"]
        assert [entry.initiative_score for entry in order] == [17, 13, 10]
        assert scheduler.current_round == 1

    def test_ties_keep_roll_order(self, combatants: list[Combatant]) -> None:
        """Test equal scores keep the order combatants were rolled in."""
        scheduler = InitiativeScheduler(SequenceRandom(integers=[1, 3, 2]))

        order = scheduler.roll(combatants)

        assert [entry.combatant_id for entry in order] == ["aldric", "mira", "kobold-w1-1"]

    def test_skips_fallen(self, combatants: list[Combatant]) -> None:
        """Test combatants that are not ok do not roll."""
        combatants[1].take_damage(100)
        rng = SequenceRandom(integers=[6, 1])
        scheduler = InitiativeScheduler(rng)

        order = scheduler.roll(combatants)

        assert [entry.combatant_id for entry in order] == ["aldric", "kobold-w1-1"]
        assert rng.remaining == (0, 0)

    def test_surprise_round(self, combatants: list[Combatant]) -> None:
        """Test rolling can start at round 0."""
        scheduler = InitiativeScheduler(SequenceRandom(integers=[1, 1, 1]))

        scheduler.roll(combatants, first_round=0)

        assert scheduler.current_round == 0


class TestAdvance:
    """Tests for walking the turn order."""

    def test_wraps_into_new_round(self, combatants: list[Combatant]) -> None:
        """Test advancing past the last entry starts a new round."""
        scheduler = InitiativeScheduler(SequenceRandom(integers=[6, 1, 3]))
        scheduler.roll(combatants)

        assert scheduler.advance().combatant_id == "kobold-w1-1"
        assert scheduler.advance().combatant_id == "mira"
        assert scheduler.advance().combatant_id == "aldric"
        assert scheduler.current_round == 2

    def test_advance_before_roll(self) -> None:
        """Test advancing without an order is an error."""
        with pytest.raises(TurnManagementError):
            InitiativeScheduler(SequenceRandom()).advance()


class TestRemove:
    """Tests for dropping combatants from the order."""

    def test_remove_earlier_entry_keeps_pointer(self, combatants: list[Combatant]) -> None:
        """Test removing someone who already acted keeps the current actor."""
        scheduler = InitiativeScheduler(SequenceRandom(integers=[6, 1, 3]))
        scheduler.roll(combatants)
        scheduler.advance()

        assert scheduler.remove("aldric") is True
        assert scheduler.current().combatant_id == "kobold-w1-1"
        assert "aldric" not in scheduler

    def test_remove_current_last_wraps(self, combatants: list[Combatant]) -> None:
        """Test removing the current last entry moves to the next round."""
        scheduler = InitiativeScheduler(SequenceRandom(integers=[6, 1, 3]))
        scheduler.roll(combatants)
        scheduler.advance()
        scheduler.advance()

        scheduler.remove("mira")

        assert scheduler.current().combatant_id == "aldric"
        assert scheduler.current_round == 2

    def test_remove_unknown(self, combatants: list[Combatant]) -> None:
        """Test removing an absent ID reports False."""
        scheduler = InitiativeScheduler(SequenceRandom(integers=[6, 1, 3]))
        scheduler.roll(combatants)

        assert scheduler.remove("ghost") is False
