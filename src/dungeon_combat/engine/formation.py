"""Party formation: row assignment, targeting restrictions and modifiers.

The party stands in two rows. Melee classes fill the front row, everyone
else the back row, and the rows shield each other: enemies can only
reach the back row once nobody in the front row is still standing, and
back-row characters can only fight in melee with a reach weapon or once
the front row has fallen. All enemies stand in a single front line.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dungeon_combat.core.config import CombatSettings, get_settings
from dungeon_combat.core.constants import (
    AC_SCORE_CEILING,
    FRONT_ROW_CLASSES,
    FRONT_ROW_PRIORITY,
    SPELLCASTER_CLASSES,
)
from dungeon_combat.core.exceptions import FormationError
from dungeon_combat.core.logging import get_logger
from dungeon_combat.engine.rules import armor_class
from dungeon_combat.models.enums import AttackRange, FormationRow, RowPriority, Side
from dungeon_combat.models.formation import (
    FormationModifiers,
    FormationSnapshot,
    FormationStats,
    FormationValidation,
    MoveResult,
)


if TYPE_CHECKING:
    from collections.abc import Iterable

    from dungeon_combat.models.combatant import Combatant

logger = get_logger(__name__)

FRONT_ROW_MODIFIERS = FormationModifiers(
    damage_bonus=0,
    accuracy_bonus=0,
    damage_taken_multiplier=1.0,
    priority=RowPriority.HIGH,
)

_BACKLINE_FIGHTERS = frozenset({"Fighter", "Lord", "Samurai"})
_DEFAULT_FRONT_PRIORITY = 5


class Formation:
    """Front/back row bookkeeping for one encounter.

    The formation holds references to the engine's combatant objects and
    reads their status live; it only ever writes ``formation_row``.

    Example:
        >>> formation = Formation()
        >>> snapshot = formation.setup_from_party(party)
        >>> formation.can_melee(mage)
        False
    """

    def __init__(self, settings: CombatSettings | None = None) -> None:
        """Initialize an empty formation.

        Args:
            settings: Combat settings; row capacities come from here.
        """
        self._settings = settings or get_settings().combat
        self._max_front = self._settings.max_front_row
        self._max_back = self._settings.max_back_row
        self._members: dict[str, Combatant] = {}
        self._front: list[str] = []
        self._back: list[str] = []
        self._enemies: list[Combatant] = []

    # =========================================================================
    # Setup
    # =========================================================================

    @staticmethod
    def should_be_in_front_row(combatant: Combatant) -> bool:
        """Whether the combatant's class belongs in the front row."""
        return combatant.role in FRONT_ROW_CLASSES

    def setup_from_party(self, party: Iterable[Combatant]) -> FormationSnapshot:
        """Assign rows from class, first come first served.

        Melee classes go to the front row and everyone else to the back
        row. A full row spills over into the other one.

        Args:
            party: Player combatants in party order.

        Returns:
            The resulting formation.

        Raises:
            FormationError: If the party does not fit in both rows.
        """
        self._members = {}
        self._front = []
        self._back = []
        for combatant in party:
            preferred = FormationRow.FRONT if self.should_be_in_front_row(combatant) else FormationRow.BACK
            row = preferred if self._has_room(preferred) else preferred.other
            if not self._has_room(row):
                raise FormationError(
                    f"No room in formation for {combatant.name}",
                    row=row.value,
                    details={"combatant_id": combatant.id},
                )
            self._place(combatant, row)

        logger.info("Formation set up", front=list(self._front), back=list(self._back))
        return self.snapshot()

    def set_formation(
        self,
        front_ids: Iterable[str],
        back_ids: Iterable[str],
    ) -> FormationSnapshot:
        """Replace the layout with an explicit one.

        Args:
            front_ids: Member IDs for the front row, in order.
            back_ids: Member IDs for the back row, in order.

        Returns:
            The new formation.

        Raises:
            FormationError: If an ID is unknown, listed twice, a member is
                left out, or a row is over capacity.
        """
        front = list(front_ids)
        back = list(back_ids)
        listed = front + back
        unknown = [member_id for member_id in listed if member_id not in self._members]
        if unknown:
            raise FormationError("Unknown formation members", details={"unknown": unknown})
        if len(set(listed)) != len(listed):
            raise FormationError("Character cannot be in multiple positions")
        if set(listed) != set(self._members):
            raise FormationError(
                "Every party member needs a position",
                details={"missing": sorted(set(self._members) - set(listed))},
            )
        if len(front) > self._max_front:
            raise FormationError(f"Too many characters in front row (max {self._max_front})", row="front")
        if len(back) > self._max_back:
            raise FormationError(f"Too many characters in back row (max {self._max_back})", row="back")

        members = self._members
        self._front, self._back = [], []
        for member_id in front:
            self._place(members[member_id], FormationRow.FRONT)
        for member_id in back:
            self._place(members[member_id], FormationRow.BACK)
        return self.snapshot()

    def set_enemy_wave(self, wave: Iterable[Combatant]) -> None:
        """Record the active enemy line. Every enemy stands in front."""
        self._enemies = list(wave)
        for enemy in self._enemies:
            enemy.formation_row = FormationRow.FRONT

    def move_character(self, combatant_id: str, target_row: FormationRow) -> MoveResult:
        """Move a party member to another row.

        A full target row is a normal failure, reported without changing
        anything.
        """
        combatant = self._members.get(combatant_id)
        if combatant is None:
            return MoveResult(success=False, message="Character not in formation", formation=self.snapshot())
        current = self.row_of(combatant_id)
        if current is target_row:
            return MoveResult(
                success=True,
                message=f"{combatant.name} is already in the {target_row.value} row",
                formation=self.snapshot(),
            )
        if not self._has_room(target_row):
            return MoveResult(
                success=False,
                message=f"The {target_row.value} row is full",
                formation=self.snapshot(),
            )

        self._row_list(current).remove(combatant_id)
        self._place(combatant, target_row)
        logger.info("Character moved", combatant=combatant.name, row=target_row.value)
        return MoveResult(
            success=True,
            message=f"{combatant.name} moves to the {target_row.value} row",
            formation=self.snapshot(),
        )

    # =========================================================================
    # Queries
    # =========================================================================

    def snapshot(self) -> FormationSnapshot:
        return FormationSnapshot(
            front=list(self._front),
            back=list(self._back),
            max_front_row=self._max_front,
            max_back_row=self._max_back,
        )

    def row_of(self, combatant_id: str) -> FormationRow:
        """Row of a party member; enemies always stand in front."""
        if combatant_id in self._back:
            return FormationRow.BACK
        return FormationRow.FRONT

    def members(self, row: FormationRow) -> list[Combatant]:
        return [self._members[member_id] for member_id in self._row_list(row)]

    def ok_members(self, row: FormationRow) -> list[Combatant]:
        return [member for member in self.members(row) if member.is_ok]

    @property
    def enemies(self) -> list[Combatant]:
        return list(self._enemies)

    def has_reach(self, combatant: Combatant) -> bool:
        return combatant.equipment.is_reach

    def can_melee(self, actor: Combatant) -> bool:
        """Whether ``actor`` may make a melee attack from its position.

        Front-row characters and enemies always can. A back-row character
        needs a reach weapon unless nobody in the front row still stands.
        """
        if actor.side is Side.ENEMY or self.row_of(actor.id) is FormationRow.FRONT:
            return True
        return not self.ok_members(FormationRow.FRONT) or self.has_reach(actor)

    def eligible_targets_for_enemies(self) -> list[Combatant]:
        """Party members an enemy may attack: the front row while it stands."""
        front = self.ok_members(FormationRow.FRONT)
        return front if front else self.ok_members(FormationRow.BACK)

    def eligible_targets_for_party(self) -> list[Combatant]:
        return [enemy for enemy in self._enemies if enemy.is_ok]

    def is_isolated(self, combatant: Combatant) -> bool:
        """Whether the combatant is the only one standing in its row."""
        if combatant.side is Side.ENEMY:
            return len(self.eligible_targets_for_party()) == 1
        return len(self.ok_members(self.row_of(combatant.id))) == 1

    def modifiers_for(
        self,
        combatant: Combatant,
        attack_range: AttackRange = AttackRange.MELEE,
    ) -> FormationModifiers:
        """Row modifiers for an action of the given range.

        Back row: -1 melee damage, -1 melee / +1 ranged accuracy, and
        reduced damage taken. Front row and enemies: no modifiers.
        """
        if combatant.side is Side.ENEMY or self.row_of(combatant.id) is FormationRow.FRONT:
            return FRONT_ROW_MODIFIERS
        return FormationModifiers(
            damage_bonus=-1 if attack_range.is_melee else 0,
            accuracy_bonus=-1 if attack_range.is_melee else 1,
            damage_taken_multiplier=self._settings.back_row_damage_taken,
            priority=RowPriority.LOW,
        )

    def target_priority(self) -> list[str]:
        """Member IDs in the order enemies prefer them.

        Standing front-row members first, leftmost first. The back row is
        only listed once the front row has fallen.
        """
        front = self.ok_members(FormationRow.FRONT)
        if front:
            return [member.id for member in front]
        return [member.id for member in self.ok_members(FormationRow.BACK)]

    # =========================================================================
    # Analysis
    # =========================================================================

    def validate(self) -> FormationValidation:
        errors: list[str] = []
        warnings: list[str] = []
        listed = self._front + self._back
        if not listed:
            errors.append("Formation cannot be empty")
        if len(self._front) > self._max_front:
            errors.append(f"Too many characters in front row (max {self._max_front})")
        if len(self._back) > self._max_back:
            errors.append(f"Too many characters in back row (max {self._max_back})")
        if len(set(listed)) != len(listed):
            errors.append("Character cannot be in multiple positions")
        if listed and not self._front:
            warnings.append("Nobody protects the back row")
        return FormationValidation(errors=errors, warnings=warnings)

    def balance_score(self) -> int:
        """0-100 rating; 100 when the rows are evenly split."""
        total = len(self._front) + len(self._back)
        if total == 0:
            return 0
        deviation = abs(len(self._front) / total - 0.5)
        return max(0, round(100 - deviation * 200))

    def stats(self) -> FormationStats:
        front = self.members(FormationRow.FRONT)
        back = self.members(FormationRow.BACK)
        return FormationStats(
            front_row_count=len(front),
            back_row_count=len(back),
            front_row_ok=sum(1 for member in front if member.is_ok),
            back_row_ok=sum(1 for member in back if member.is_ok),
            melee_in_front=sum(1 for member in front if member.role in FRONT_ROW_CLASSES),
            casters_in_back=sum(1 for member in back if member.role in SPELLCASTER_CLASSES),
            front_row_average_hp=(sum(member.hp_ratio for member in front) / len(front)) if front else 0.0,
            balance_score=self.balance_score(),
        )

    def suggest_improvements(self) -> list[str]:
        suggestions: list[str] = []
        front = self.members(FormationRow.FRONT)
        back = self.members(FormationRow.BACK)

        if not front:
            suggestions.append("Consider moving a fighter or tough character to the front row for protection")
        if not back and len(front) > 3:
            suggestions.append("Consider moving spellcasters to the back row for protection")
        if front and self.balance_score() < 50:
            suggestions.append("Formation is unbalanced - consider redistributing characters between rows")
        if any(member.role in SPELLCASTER_CLASSES for member in front):
            suggestions.append("Consider moving spellcasters to the back row for better protection")
        if sum(1 for member in back if member.role in _BACKLINE_FIGHTERS) > 1:
            suggestions.append("Consider moving some fighters to the front row for better offense")
        return suggestions

    def front_row_priority(self, combatant: Combatant) -> float:
        """Score used by :meth:`optimize`; higher means more suited to the front."""
        priority = float(FRONT_ROW_PRIORITY.get(combatant.role, _DEFAULT_FRONT_PRIORITY))
        priority += combatant.hp_ratio * 2
        priority += max(0, AC_SCORE_CEILING - armor_class(combatant, defend_bonus=0))
        return priority

    def optimize(self) -> FormationSnapshot:
        """Rearrange the party by front-row priority.

        Members are considered from highest to lowest priority; melee
        classes take front slots while they last and everyone else fills
        the back row, spilling forward when it is full.
        """
        ordered = sorted(self._members.values(), key=self.front_row_priority, reverse=True)
        self._front, self._back = [], []
        for member in ordered:
            if self.should_be_in_front_row(member) and self._has_room(FormationRow.FRONT):
                self._place(member, FormationRow.FRONT)
            elif self._has_room(FormationRow.BACK):
                self._place(member, FormationRow.BACK)
            else:
                self._place(member, FormationRow.FRONT)
        logger.info("Formation optimized", front=list(self._front), back=list(self._back))
        return self.snapshot()

    # =========================================================================
    # Internals
    # =========================================================================

    def _row_list(self, row: FormationRow) -> list[str]:
        return self._front if row is FormationRow.FRONT else self._back

    def _has_room(self, row: FormationRow) -> bool:
        limit = self._max_front if row is FormationRow.FRONT else self._max_back
        return len(self._row_list(row)) < limit

    def _place(self, combatant: Combatant, row: FormationRow) -> None:
        self._members[combatant.id] = combatant
        self._row_list(row).append(combatant.id)
        combatant.formation_row = row


__all__ = [
    "FRONT_ROW_MODIFIERS",
    "Formation",
]
