"""Enumerations shared across combat models."""

from __future__ import annotations

from enum import StrEnum


class Side(StrEnum):
    """Which side of the battle a combatant fights for."""

    PLAYER = "player"
    ENEMY = "enemy"

    @property
    def opponent(self) -> "Side":
        return Side.ENEMY if self is Side.PLAYER else Side.PLAYER


class CombatStatus(StrEnum):
    """Combat-scoped status of a combatant."""

    OK = "ok"
    UNCONSCIOUS = "unconscious"
    FLED = "fled"


class FormationRow(StrEnum):
    """Formation rows."""

    FRONT = "front"
    BACK = "back"

    @property
    def other(self) -> "FormationRow":
        return FormationRow.BACK if self is FormationRow.FRONT else FormationRow.FRONT


class RowPriority(StrEnum):
    """How readily enemies single out a row."""

    HIGH = "high"
    LOW = "low"


class ActionType(StrEnum):
    """Kinds of actions a combatant can take."""

    ATTACK = "attack"
    SPELL = "spell"
    ITEM = "item"
    DEFEND = "defend"
    FLEE = "flee"


class AttackRange(StrEnum):
    """Reach of an attack."""

    MELEE = "melee"
    RANGED = "ranged"
    THROWN = "thrown"
    SPELL = "spell"

    @property
    def is_melee(self) -> bool:
        return self is AttackRange.MELEE


class AIType(StrEnum):
    """Monster targeting personalities."""

    COWARDLY = "cowardly"
    AGGRESSIVE = "aggressive"
    TACTICAL = "tactical"
    PACK = "pack"
    INTELLIGENT = "intelligent"


class SpellSchool(StrEnum):
    """Schools of magic. Arcane scales with intelligence, divine with piety."""

    ARCANE = "arcane"
    DIVINE = "divine"


class SpellEffect(StrEnum):
    """What a spell does when it succeeds."""

    DAMAGE = "damage"
    HEAL = "heal"
    BUFF = "buff"
    PROTECTION = "protection"
    CONTROL = "control"

    @property
    def targets_allies(self) -> bool:
        return self in (SpellEffect.HEAL, SpellEffect.BUFF, SpellEffect.PROTECTION)


class TreasureType(StrEnum):
    """Loot tables a monster can drop from."""

    NONE = "none"
    POOR = "poor"
    STANDARD = "standard"
    RICH = "rich"
    HOARD = "hoard"


class EncounterPhase(StrEnum):
    """Lifecycle of an encounter."""

    NOT_STARTED = "not_started"
    ACTIVE = "active"
    WAVE_TRANSITION = "wave_transition"
    VICTORY = "victory"
    DEFEAT = "defeat"

    @property
    def is_resolved(self) -> bool:
        return self in (EncounterPhase.VICTORY, EncounterPhase.DEFEAT)


class TurnPhase(StrEnum):
    """Steps of a single turn."""

    INITIATIVE = "initiative"
    ACTION_SELECTION = "action_selection"
    RESOLUTION = "resolution"
    CLEANUP = "cleanup"


class Difficulty(StrEnum):
    """Encounter difficulty: enemy experience against the party's level and size."""

    TRIVIAL = "trivial"
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    DEADLY = "deadly"


class LogKind(StrEnum):
    """Categories of combat log entries."""

    COMBAT = "combat"
    SYSTEM = "system"
    WAVE = "wave"
    SURPRISE = "surprise"
    TURN = "turn"
    CRITICAL = "critical"
    STATUS = "status"
    DEATH = "death"
    SPELL = "spell"
    DEFEND = "defend"
    ITEM = "item"
    DISCONNECT = "disconnect"
    VICTORY = "victory"
    DEFEAT = "defeat"


__all__ = [
    "Side",
    "CombatStatus",
    "FormationRow",
    "RowPriority",
    "ActionType",
    "AttackRange",
    "AIType",
    "SpellSchool",
    "SpellEffect",
    "TreasureType",
    "EncounterPhase",
    "TurnPhase",
    "Difficulty",
    "LogKind",
]
