"""Pydantic V2 models for the combat engine.

Modules:
    enums: Shared enumerations.
    combatant: Combatant and the collaborator records it is built from.
    catalog: Equipment, spell and item definitions.
    actions: Actions, state changes, results and log entries.
    formation: Formation snapshots, modifiers and statistics.
    events: The closed set of engine events.
"""

from __future__ import annotations

from dungeon_combat.models.actions import (
    Action,
    ActionModel,
    ActionOutcome,
    ActionResult,
    AttackAction,
    ChangeKind,
    CombatLogEntry,
    DefendAction,
    FleeAction,
    ItemAction,
    LogLine,
    SpellAction,
    StateChange,
    TargetOutcome,
    TurnOrderEntry,
    parse_action,
)
from dungeon_combat.models.catalog import (
    EquipmentItem,
    EquipmentSlot,
    ItemDefinition,
    SpellDefinition,
)
from dungeon_combat.models.combatant import (
    AttackProfile,
    Attributes,
    CharacterRecord,
    Combatant,
    DamageDice,
    EquipmentBonuses,
    MonsterRecord,
    ability_modifier,
)
from dungeon_combat.models.enums import (
    ActionType,
    AIType,
    AttackRange,
    CombatStatus,
    Difficulty,
    EncounterPhase,
    FormationRow,
    LogKind,
    RowPriority,
    Side,
    SpellEffect,
    SpellSchool,
    TreasureType,
    TurnPhase,
)
from dungeon_combat.models.events import (
    ActionProcessedEvent,
    CharacterUpdatedEvent,
    CombatEndedEvent,
    CombatEvent,
    CombatStartedEvent,
    EncounterInfo,
    PartyDefeatedEvent,
    Rewards,
    WaveStartedEvent,
)
from dungeon_combat.models.formation import (
    FormationModifiers,
    FormationSnapshot,
    FormationStats,
    FormationValidation,
    MoveResult,
)


__all__ = [
    # Enums
    "ActionType",
    "AIType",
    "AttackRange",
    "CombatStatus",
    "Difficulty",
    "EncounterPhase",
    "FormationRow",
    "LogKind",
    "RowPriority",
    "Side",
    "SpellEffect",
    "SpellSchool",
    "TreasureType",
    "TurnPhase",
    # Combatants
    "ability_modifier",
    "Attributes",
    "DamageDice",
    "AttackProfile",
    "EquipmentBonuses",
    "Combatant",
    "CharacterRecord",
    "MonsterRecord",
    # Catalog
    "EquipmentSlot",
    "EquipmentItem",
    "SpellDefinition",
    "ItemDefinition",
    # Actions
    "AttackAction",
    "SpellAction",
    "ItemAction",
    "DefendAction",
    "FleeAction",
    "Action",
    "ActionModel",
    "parse_action",
    "ChangeKind",
    "StateChange",
    "LogLine",
    "TargetOutcome",
    "ActionResult",
    "CombatLogEntry",
    "TurnOrderEntry",
    "ActionOutcome",
    # Formation
    "FormationModifiers",
    "FormationSnapshot",
    "MoveResult",
    "FormationValidation",
    "FormationStats",
    # Events
    "EncounterInfo",
    "Rewards",
    "CombatStartedEvent",
    "WaveStartedEvent",
    "ActionProcessedEvent",
    "CombatEndedEvent",
    "PartyDefeatedEvent",
    "CharacterUpdatedEvent",
    "CombatEvent",
]
