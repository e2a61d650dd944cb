"""Dungeon Combat - turn-based combat engine for a party-based dungeon crawler.

The engine runs multi-wave encounters between a party arranged in a
front and a back row and waves of monsters. It owns the rules; the host
game supplies characters, monsters, equipment, spells and inventory
through provider interfaces, and listens to the events it publishes.

Example:
    >>> from dungeon_combat import CombatEngine, DiceRoller, InMemoryParty, AttackAction
    >>>
    >>> engine = CombatEngine(InMemoryParty(party), DiceRoller(seed=3))
    >>> engine.start_combat(enemy_waves=[[kobold]])
    >>> actor = engine.get_current_actor()
    >>> outcome = engine.process_action(AttackAction(actor_id=actor.id, target_id="kobold-w1-1"))

Modules:
    core: Configuration, logging, and base exceptions.
    models: Pydantic V2 schemas for combatants, actions and events.
    engine: Combat engine, formation rules, initiative, AI and dice.
"""

from __future__ import annotations

# Core
from dungeon_combat.core.config import Settings, get_settings
from dungeon_combat.core.exceptions import ActionRejectedError, DungeonCombatError, RejectionKind

# Engine
from dungeon_combat.engine import (
    CombatEngine,
    DiceRoller,
    EncounterDescriptor,
    EventBus,
    Formation,
    InMemoryEquipmentCatalog,
    InMemoryInventory,
    InMemoryMonsterCatalog,
    InMemoryParty,
    InMemorySpellBook,
    SequenceRandom,
    TableLootProvider,
)

# Models
from dungeon_combat.models import (
    AttackAction,
    CharacterRecord,
    Combatant,
    DefendAction,
    FleeAction,
    ItemAction,
    MonsterRecord,
    SpellAction,
    parse_action,
)


__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Core
    "Settings",
    "get_settings",
    "DungeonCombatError",
    "ActionRejectedError",
    "RejectionKind",
    # Engine
    "CombatEngine",
    "DiceRoller",
    "SequenceRandom",
    "EventBus",
    "Formation",
    "EncounterDescriptor",
    "InMemoryParty",
    "InMemoryMonsterCatalog",
    "InMemoryEquipmentCatalog",
    "InMemorySpellBook",
    "InMemoryInventory",
    "TableLootProvider",
    # Models
    "Combatant",
    "CharacterRecord",
    "MonsterRecord",
    "AttackAction",
    "SpellAction",
    "ItemAction",
    "DefendAction",
    "FleeAction",
    "parse_action",
]
