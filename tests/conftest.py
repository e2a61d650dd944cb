"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the dungeon combat test suite: a sample party, monster templates,
in-memory providers, scripted dice and a ready-to-wire engine factory.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import pytest

from dungeon_combat.core.config import Settings, clear_settings_cache
from dungeon_combat.engine.adapter import CombatantAdapter
from dungeon_combat.engine.combat import CombatEngine
from dungeon_combat.engine.dice import DiceRoller, SequenceRandom
from dungeon_combat.engine.events import EventBus
from dungeon_combat.engine.formation import Formation
from dungeon_combat.engine.providers import (
    InMemoryEquipmentCatalog,
    InMemoryInventory,
    InMemoryMonsterCatalog,
    InMemoryParty,
    InMemorySpellBook,
)
from dungeon_combat.models.catalog import EquipmentItem, EquipmentSlot, ItemDefinition, SpellDefinition
from dungeon_combat.models.combatant import (
    AttackProfile,
    Attributes,
    CharacterRecord,
    DamageDice,
    MonsterRecord,
)
from dungeon_combat.models.enums import AIType, AttackRange, SpellEffect, SpellSchool, TreasureType


if TYPE_CHECKING:
    from collections.abc import Callable, Generator

    from dungeon_combat.models.combatant import Combatant


FIXED_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings() -> Settings:
    """Provide default engine settings."""
    return Settings()


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up mock environment variables for testing.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "DUNGEON_COMBAT_LOG_LEVEL": "DEBUG",
        "DUNGEON_COMBAT_COMBAT_FLEE_CHANCE": "0.25",
        "DUNGEON_COMBAT_AI_RANGED_PREFERENCE_PERCENT": "50",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


# =============================================================================
# Catalog Fixtures
# =============================================================================


@pytest.fixture
def equipment_catalog() -> InMemoryEquipmentCatalog:
    """Provide weapons, armor and shields used by the sample party."""
    return InMemoryEquipmentCatalog(
        [
            EquipmentItem(id="training-sword", name="Training Sword", slot=EquipmentSlot.WEAPON, weapon_type="Sword"),
            EquipmentItem(
                id="long-sword",
                name="Long Sword",
                slot=EquipmentSlot.WEAPON,
                weapon_type="Sword",
                attack_bonus=1,
                damage_bonus=1,
            ),
            EquipmentItem(id="spear", name="Spear", slot=EquipmentSlot.WEAPON, weapon_type="Spear"),
            EquipmentItem(
                id="short-bow",
                name="Short Bow",
                slot=EquipmentSlot.WEAPON,
                weapon_type="Bow",
                range=AttackRange.RANGED,
            ),
            EquipmentItem(id="chain-mail", name="Chain Mail", slot=EquipmentSlot.ARMOR, ac_bonus=4),
            EquipmentItem(id="small-shield", name="Small Shield", slot=EquipmentSlot.SHIELD, ac_bonus=1),
        ]
    )


@pytest.fixture
def spell_book() -> InMemorySpellBook:
    """Provide one spell of every effect."""
    return InMemorySpellBook(
        [
            SpellDefinition(
                id="fire-bolt",
                name="Fire Bolt",
                effect=SpellEffect.DAMAGE,
                dice=DamageDice(count=2, sides=4),
            ),
            SpellDefinition(
                id="flame-wave",
                name="Flame Wave",
                level=2,
                effect=SpellEffect.DAMAGE,
                dice=DamageDice(count=1, sides=6),
                area_effect=True,
            ),
            SpellDefinition(id="sleep", name="Sleep", effect=SpellEffect.CONTROL, duration=2),
            SpellDefinition(
                id="heal",
                name="Heal",
                school=SpellSchool.DIVINE,
                effect=SpellEffect.HEAL,
                dice=DamageDice(count=1, sides=8),
            ),
            SpellDefinition(id="bless", name="Bless", school=SpellSchool.DIVINE, effect=SpellEffect.BUFF, bonus=1),
            SpellDefinition(
                id="shield",
                name="Shield",
                school=SpellSchool.DIVINE,
                effect=SpellEffect.PROTECTION,
                ac_bonus=2,
            ),
        ]
    )


@pytest.fixture
def inventory() -> InMemoryInventory:
    """Provide an inventory holding two healing potions."""
    return InMemoryInventory(
        [ItemDefinition(id="healing-potion", name="Healing Potion", dice=DamageDice(count=1, sides=8))],
        counts={"healing-potion": 2},
    )


# =============================================================================
# Party Fixtures
# =============================================================================


@pytest.fixture
def fighter_record() -> CharacterRecord:
    """A level 1 Fighter with STR 16 and AC 5 after equipment."""
    return CharacterRecord(
        id="aldric",
        name="Aldric",
        character_class="Fighter",
        current_hp=12,
        max_hp=12,
        attributes=Attributes(strength=16),
        weapon_id="training-sword",
        armor_id="chain-mail",
        shield_id="small-shield",
    )


@pytest.fixture
def mage_record() -> CharacterRecord:
    """A level 1 Mage with INT 16 and a handful of prepared spells."""
    return CharacterRecord(
        id="mira",
        name="Mira",
        character_class="Mage",
        current_hp=6,
        max_hp=6,
        attributes=Attributes(intelligence=16),
        prepared_spells={"fire-bolt": 2, "sleep": 1, "flame-wave": 1},
    )


@pytest.fixture
def priest_record() -> CharacterRecord:
    """A level 1 Priest with PIE 14."""
    return CharacterRecord(
        id="tomas",
        name="Tomas",
        character_class="Priest",
        current_hp=8,
        max_hp=8,
        attributes=Attributes(piety=14),
        prepared_spells={"heal": 1, "bless": 1, "shield": 1},
    )


@pytest.fixture
def party_records(
    fighter_record: CharacterRecord,
    mage_record: CharacterRecord,
    priest_record: CharacterRecord,
) -> list[CharacterRecord]:
    """Provide the sample party in marching order."""
    return [fighter_record, mage_record, priest_record]


@pytest.fixture
def party_provider(party_records: list[CharacterRecord]) -> InMemoryParty:
    return InMemoryParty(party_records)


# =============================================================================
# Monster Fixtures
# =============================================================================


@pytest.fixture
def kobold() -> MonsterRecord:
    """A weak kobold: 4 HP, AC 7."""
    return MonsterRecord(
        id="kobold",
        name="Kobold",
        creature_type="Humanoid",
        hit_points=4,
        armor_class=7,
        attacks=[AttackProfile(name="Claw", dice=DamageDice(count=1, sides=4))],
        experience_value=5,
    )


@pytest.fixture
def goblin() -> MonsterRecord:
    """A goblin: 6 HP, AC 6."""
    return MonsterRecord(
        id="goblin",
        name="Goblin",
        creature_type="Humanoid",
        hit_points=6,
        armor_class=6,
        attacks=[AttackProfile(name="Scimitar", dice=DamageDice(count=1, sides=6))],
        experience_value=10,
    )


@pytest.fixture
def goblin_chief() -> MonsterRecord:
    """A sturdy goblin chief carrying treasure."""
    return MonsterRecord(
        id="goblin-chief",
        name="Goblin Chief",
        creature_type="Humanoid",
        level=3,
        hit_points=50,
        armor_class=4,
        attack_bonus=2,
        damage_bonus=1,
        attacks=[AttackProfile(name="Axe", dice=DamageDice(count=1, sides=8))],
        experience_value=60,
        treasure_type=TreasureType.POOR,
    )


@pytest.fixture
def dragonling() -> MonsterRecord:
    """A young dragon with a breath attack that hits everyone."""
    return MonsterRecord(
        id="dragonling",
        name="Dragonling",
        creature_type="Dragon",
        level=4,
        hit_points=30,
        armor_class=3,
        attacks=[
            AttackProfile(name="Bite", dice=DamageDice(count=1, sides=6)),
            AttackProfile(
                name="Fire Breath",
                dice=DamageDice(count=2, sides=4),
                range=AttackRange.RANGED,
                area_effect=True,
            ),
        ],
        ai_type=AIType.INTELLIGENT,
        experience_value=100,
    )


@pytest.fixture
def monster_catalog(
    kobold: MonsterRecord,
    goblin: MonsterRecord,
    goblin_chief: MonsterRecord,
    dragonling: MonsterRecord,
) -> InMemoryMonsterCatalog:
    return InMemoryMonsterCatalog([kobold, goblin, goblin_chief, dragonling])


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def fixed_time() -> datetime:
    """The timestamp stamped on every log entry by ``make_engine`` engines."""
    return FIXED_TIME


@pytest.fixture
def scripted_rng() -> SequenceRandom:
    """Provide an empty scripted random source; tests push their draws."""
    return SequenceRandom()


@pytest.fixture
def dice_roller() -> DiceRoller:
    """Provide a seeded dice roller for reproducible rolls."""
    return DiceRoller(seed=42)


@pytest.fixture
def adapter(equipment_catalog: InMemoryEquipmentCatalog) -> CombatantAdapter:
    return CombatantAdapter(equipment_catalog)


@pytest.fixture
def party(adapter: CombatantAdapter, party_records: list[CharacterRecord]) -> list[Combatant]:
    """Provide the sample party as combatants."""
    return [adapter.from_character(record) for record in party_records]


@pytest.fixture
def formation(settings: Settings, party: list[Combatant]) -> Formation:
    """Provide a formation with the sample party in place."""
    formation = Formation(settings.combat)
    formation.setup_from_party(party)
    return formation


@pytest.fixture
def roster(
    formation: Formation,
    party: list[Combatant],
    adapter: CombatantAdapter,
    kobold: MonsterRecord,
    goblin: MonsterRecord,
) -> dict[str, Combatant]:
    """Provide the party plus a kobold and a goblin, keyed by ID.

    The enemy wave is registered with the ``formation`` fixture.
    """
    wave = adapter.wave_from_monsters([kobold, goblin], wave_index=0)
    formation.set_enemy_wave(wave)
    return {combatant.id: combatant for combatant in [*party, *wave]}


@pytest.fixture
def event_log() -> list[Any]:
    """Collects every event emitted on the ``event_bus`` fixture."""
    return []


@pytest.fixture
def event_bus(event_log: list[Any]) -> EventBus:
    bus = EventBus()
    bus.subscribe(event_log.append)
    return bus


@pytest.fixture
def make_engine(
    settings: Settings,
    equipment_catalog: InMemoryEquipmentCatalog,
    spell_book: InMemorySpellBook,
    inventory: InMemoryInventory,
    monster_catalog: InMemoryMonsterCatalog,
    event_bus: EventBus,
) -> Callable[..., CombatEngine]:
    """Factory building an engine around the shared providers.

    Returns:
        A callable ``make_engine(party_provider, rng, **overrides)``.
    """

    def _make(party_provider: InMemoryParty, rng: Any, **overrides: Any) -> CombatEngine:
        options: dict[str, Any] = {
            "monsters": monster_catalog,
            "equipment": equipment_catalog,
            "spells": spell_book,
            "inventory": inventory,
            "events": event_bus,
            "settings": settings,
            "clock": lambda: FIXED_TIME,
        }
        options.update(overrides)
        return CombatEngine(party_provider, rng, **options)

    return _make
