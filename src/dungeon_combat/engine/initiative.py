"""Initiative rolling and turn order for a wave.

This module provides the scheduler that orders every combatant of the
current wave and walks the engine through turns and rounds.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dungeon_combat.core.exceptions import TurnManagementError
from dungeon_combat.core.logging import get_logger
from dungeon_combat.engine.rules import initiative_class_bonus
from dungeon_combat.models.actions import TurnOrderEntry


if TYPE_CHECKING:
    from collections.abc import Iterable

    from dungeon_combat.engine.dice import RandomSource
    from dungeon_combat.models.combatant import Combatant

logger = get_logger(__name__)


class InitiativeScheduler:
    """Roll and track initiative order.

    ``initiative = agility + class bonus + d6``. Entries are sorted highest
    first; ties keep the order in which combatants were rolled, so the
    same inputs and draws always produce the same order.

    Example:
        >>> scheduler = InitiativeScheduler(DiceRoller(seed=1))
        >>> order = scheduler.roll([fighter, mage, kobold])
        >>> scheduler.current().combatant_id == order[0].combatant_id
        True
    """

    def __init__(self, rng: RandomSource) -> None:
        self._rng = rng
        self._entries: list[TurnOrderEntry] = []
        self._index = 0
        self._round = 0
        self._rolled = False

    @property
    def current_round(self) -> int:
        """Current round (0 is the surprise round, if any)."""
        return self._round

    @property
    def order(self) -> list[TurnOrderEntry]:
        return list(self._entries)

    def roll_for(self, combatant: Combatant) -> TurnOrderEntry:
        """Roll initiative for one combatant without queueing it."""
        roll = self._rng.die(6)
        score = combatant.attributes.agility + initiative_class_bonus(combatant.role) + roll
        logger.debug("Initiative rolled", combatant=combatant.name, roll=roll, score=score)
        return TurnOrderEntry(
            combatant_id=combatant.id,
            name=combatant.name,
            initiative_score=score,
            roll=roll,
        )

    def roll(self, combatants: Iterable[Combatant], *, first_round: int = 1) -> list[TurnOrderEntry]:
        """Roll initiative for a fresh wave and reset the turn pointer.

        Combatants that are not ok are left out.

        Args:
            combatants: Everyone taking part, in roll order.
            first_round: Round number to start at (0 for a surprise round).

        Returns:
            The sorted turn order.
        """
        rolled = [self.roll_for(combatant) for combatant in combatants if combatant.is_ok]
        self._entries = sorted(rolled, key=lambda entry: entry.initiative_score, reverse=True)
        self._index = 0
        self._round = first_round
        self._rolled = True
        logger.info(
            "Turn order set",
            order=[entry.combatant_id for entry in self._entries],
            round=self._round,
        )
        return self.order

    def current(self) -> TurnOrderEntry | None:
        if not self._entries:
            return None
        return self._entries[self._index]

    def advance(self) -> TurnOrderEntry | None:
        """Move to the next entry, starting a new round after the last.

        Raises:
            TurnManagementError: If initiative has not been rolled.
        """
        if not self._rolled:
            raise TurnManagementError("Initiative has not been rolled")
        if not self._entries:
            return None
        self._index += 1
        if self._index >= len(self._entries):
            self._index = 0
            self._round += 1
            logger.info("New round started", round=self._round)
        return self.current()

    def remove(self, combatant_id: str) -> bool:
        """Drop a combatant from the order for the rest of the wave.

        The pointer keeps designating the same upcoming combatant. When the
        current entry itself is removed, the next entry becomes current,
        wrapping into a new round if it was last.

        Returns:
            True if an entry was removed.
        """
        for position, entry in enumerate(self._entries):
            if entry.combatant_id == combatant_id:
                del self._entries[position]
                if position < self._index:
                    self._index -= 1
                if self._entries and self._index >= len(self._entries):
                    self._index = 0
                    self._round += 1
                    logger.info("New round started", round=self._round)
                elif not self._entries:
                    self._index = 0
                logger.debug("Removed from turn order", combatant_id=combatant_id)
                return True
        return False

    def __contains__(self, combatant_id: object) -> bool:
        return any(entry.combatant_id == combatant_id for entry in self._entries)


__all__ = [
    "InitiativeScheduler",
]
