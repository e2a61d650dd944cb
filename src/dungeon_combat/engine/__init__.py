"""Combat engine for multi-wave dungeon encounters.

This module provides the encounter state machine together with the
components it is built from: dice, formation rules, initiative, action
resolution, monster AI and the collaborator interfaces.

Submodules:
    dice: Random sources (seedable d20-backed roller, scripted replay)
    rules: Pure rule formulas (armor class, to-hit, spell chances)
    formation: Front/back row rules and targeting restrictions
    adapter: Character and monster records into combatants
    initiative: Initiative rolls and turn order
    resolver: Action validation and resolution
    monster_ai: Enemy target and attack selection
    events: Publish/subscribe hub for engine events
    providers: Collaborator interfaces and in-memory implementations
    combat: The combat engine itself

Example:
    >>> from dungeon_combat.engine import CombatEngine, DiceRoller, InMemoryParty
    >>>
    >>> engine = CombatEngine(InMemoryParty(party), DiceRoller(seed=42))
    >>> engine.start_combat(enemy_waves=[[kobold, kobold]])
    >>> actor = engine.get_current_actor()
"""

from __future__ import annotations

# =============================================================================
# Dice Rolling
# =============================================================================
from dungeon_combat.engine.dice import (
    DiceRoller,
    RandomSource,
    SequenceRandom,
)

# =============================================================================
# Rules and Formation
# =============================================================================
from dungeon_combat.engine.formation import Formation
from dungeon_combat.engine.rules import (
    armor_class,
    attack_bonus,
    control_save_chance,
    estimated_hit_chance,
    initiative_class_bonus,
    spell_success_chance,
)

# =============================================================================
# Turn Flow
# =============================================================================
from dungeon_combat.engine.adapter import CombatantAdapter
from dungeon_combat.engine.initiative import InitiativeScheduler
from dungeon_combat.engine.monster_ai import MonsterAI
from dungeon_combat.engine.resolver import ActionResolver

# =============================================================================
# Collaborators and Events
# =============================================================================
from dungeon_combat.engine.events import EventBus
from dungeon_combat.engine.providers import (
    EncounterDescriptor,
    EquipmentProvider,
    InMemoryEquipmentCatalog,
    InMemoryInventory,
    InMemoryMonsterCatalog,
    InMemoryParty,
    InMemorySpellBook,
    InventoryProvider,
    LootProvider,
    MonsterProvider,
    PartyProvider,
    SpellProvider,
    TableLootProvider,
)

# =============================================================================
# Engine
# =============================================================================
from dungeon_combat.engine.combat import CombatEngine


__all__ = [
    # Dice
    "RandomSource",
    "DiceRoller",
    "SequenceRandom",
    # Rules
    "armor_class",
    "attack_bonus",
    "control_save_chance",
    "estimated_hit_chance",
    "initiative_class_bonus",
    "spell_success_chance",
    "Formation",
    # Turn flow
    "CombatantAdapter",
    "InitiativeScheduler",
    "ActionResolver",
    "MonsterAI",
    # Collaborators
    "EventBus",
    "EncounterDescriptor",
    "PartyProvider",
    "MonsterProvider",
    "EquipmentProvider",
    "SpellProvider",
    "InventoryProvider",
    "LootProvider",
    "InMemoryParty",
    "InMemoryMonsterCatalog",
    "InMemoryEquipmentCatalog",
    "InMemorySpellBook",
    "InMemoryInventory",
    "TableLootProvider",
    # Engine
    "CombatEngine",
]
