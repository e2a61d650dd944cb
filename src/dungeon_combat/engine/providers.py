"""Collaborator interfaces consumed by the combat engine.

The engine never reaches into global state; everything it needs from the
rest of the game arrives through these interfaces. Each one ships with an
in-memory implementation that hosts can use directly or as a model for
their own storage-backed versions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from dungeon_combat.core.constants import REACH_WEAPON_TYPES, TREASURE_ITEM_CHANCE
from dungeon_combat.core.exceptions import ProviderError
from dungeon_combat.core.logging import get_logger
from dungeon_combat.models.catalog import EquipmentItem, EquipmentSlot, ItemDefinition, SpellDefinition
from dungeon_combat.models.combatant import CharacterRecord, MonsterRecord
from dungeon_combat.models.enums import TreasureType


if TYPE_CHECKING:
    from dungeon_combat.engine.dice import RandomSource

logger = get_logger(__name__)


class EncounterDescriptor(BaseModel):
    """What to fight, as handed to the Monster provider.

    Attributes:
        name: Display name of the encounter.
        waves: Monster template IDs per wave, in order.
    """

    model_config = ConfigDict(frozen=True)

    name: str = "Encounter"
    waves: list[list[str]] = Field(min_length=1)


# =============================================================================
# Interfaces
# =============================================================================


class PartyProvider(ABC):
    """Source of party members and sink for their post-combat state."""

    @abstractmethod
    def members(self) -> list[CharacterRecord]:
        """All party members in marching order."""

    @abstractmethod
    def write_back(self, character_id: str, *, current_hp: int, status: str) -> None:
        """Persist a member's hit points and status after combat."""

    @abstractmethod
    def return_to_town(self, character_id: str) -> None:
        """Send a member who escaped combat back to town, disoriented.

        Called once per escaped member when the encounter ends, after
        ``write_back``. Escaping is not a persistent status: the member
        stays in the party.
        """

    def living_members(self) -> list[CharacterRecord]:
        return [member for member in self.members() if member.is_alive]


class MonsterProvider(ABC):
    """Source of monster templates."""

    @abstractmethod
    def get_monster(self, monster_id: str) -> MonsterRecord:
        """Look up a monster template.

        Raises:
            ProviderError: If the template is unknown.
        """

    def build_waves(self, descriptor: EncounterDescriptor) -> list[list[MonsterRecord]]:
        """Resolve an encounter descriptor into monster waves."""
        return [[self.get_monster(monster_id) for monster_id in wave] for wave in descriptor.waves]


class EquipmentProvider(ABC):
    """Source of weapon, armor and shield figures."""

    @abstractmethod
    def get_item(self, item_id: str) -> EquipmentItem:
        """Look up a piece of equipment.

        Raises:
            ProviderError: If the item is unknown.
        """

    def is_reach_weapon(self, item: EquipmentItem) -> bool:
        return item.slot is EquipmentSlot.WEAPON and item.weapon_type in REACH_WEAPON_TYPES


class SpellProvider(ABC):
    """Source of spell definitions."""

    @abstractmethod
    def get_spell(self, spell_id: str) -> SpellDefinition | None:
        """Look up a spell, or None if it does not exist."""


class InventoryProvider(ABC):
    """Party inventory: consumables in, spoils out."""

    @abstractmethod
    def get_item(self, item_id: str) -> ItemDefinition | None:
        """Definition of a consumable the party carries, or None."""

    @abstractmethod
    def consume(self, item_id: str) -> None:
        """Remove one unit of a consumable."""

    @abstractmethod
    def deposit(self, *, gold: int, items: list[str]) -> None:
        """Add combat spoils to the party inventory."""


class LootProvider(ABC):
    """Rolls item drops for defeated monsters."""

    @abstractmethod
    def roll_drop(self, treasure_type: TreasureType, level: int, rng: RandomSource) -> str | None:
        """Return a dropped item ID, or None for no drop."""


# =============================================================================
# In-memory implementations
# =============================================================================


class InMemoryParty(PartyProvider):
    """Party held in a dict, keyed by character ID."""

    def __init__(self, members: Iterable[CharacterRecord]) -> None:
        self._members: dict[str, CharacterRecord] = {member.id: member for member in members}

    def members(self) -> list[CharacterRecord]:
        return list(self._members.values())

    def get(self, character_id: str) -> CharacterRecord:
        try:
            return self._members[character_id]
        except KeyError as exc:
            raise ProviderError(f"Unknown character {character_id}", provider="party") from exc

    def write_back(self, character_id: str, *, current_hp: int, status: str) -> None:
        record = self.get(character_id)
        record.current_hp = current_hp
        record.status = status
        logger.debug("Character written back", character=record.name, hp=current_hp, status=status)

    def return_to_town(self, character_id: str) -> None:
        record = self.get(character_id)
        record.disoriented = True
        logger.info("Character returned to town", character=record.name)


class InMemoryMonsterCatalog(MonsterProvider):
    def __init__(self, monsters: Iterable[MonsterRecord]) -> None:
        self._monsters = {monster.id: monster for monster in monsters}

    def get_monster(self, monster_id: str) -> MonsterRecord:
        try:
            return self._monsters[monster_id]
        except KeyError as exc:
            raise ProviderError(f"Unknown monster {monster_id}", provider="monsters") from exc


class InMemoryEquipmentCatalog(EquipmentProvider):
    def __init__(self, items: Iterable[EquipmentItem]) -> None:
        self._items = {item.id: item for item in items}

    def get_item(self, item_id: str) -> EquipmentItem:
        try:
            return self._items[item_id]
        except KeyError as exc:
            raise ProviderError(f"Unknown equipment {item_id}", provider="equipment") from exc


class InMemorySpellBook(SpellProvider):
    def __init__(self, spells: Iterable[SpellDefinition]) -> None:
        self._spells = {spell.id: spell for spell in spells}

    def get_spell(self, spell_id: str) -> SpellDefinition | None:
        return self._spells.get(spell_id)


class InMemoryInventory(InventoryProvider):
    """Inventory with item counts, a gold purse and a loot bag.

    Attributes:
        gold: Gold carried by the party.
        loot: Item IDs received from combat.
    """

    def __init__(
        self,
        items: Iterable[ItemDefinition] = (),
        counts: Mapping[str, int] | None = None,
    ) -> None:
        self._definitions = {item.id: item for item in items}
        self._counts: dict[str, int] = dict(counts or {item_id: 1 for item_id in self._definitions})
        self.gold = 0
        self.loot: list[str] = []

    def count(self, item_id: str) -> int:
        return self._counts.get(item_id, 0)

    def get_item(self, item_id: str) -> ItemDefinition | None:
        if self.count(item_id) <= 0:
            return None
        return self._definitions.get(item_id)

    def consume(self, item_id: str) -> None:
        if self.count(item_id) <= 0:
            raise ProviderError(f"No {item_id} left to use", provider="inventory")
        self._counts[item_id] -= 1

    def deposit(self, *, gold: int, items: list[str]) -> None:
        self.gold += gold
        self.loot.extend(items)
        logger.info("Spoils deposited", gold=gold, items=len(items))


class TableLootProvider(LootProvider):
    """Drops a random item from a per-treasure-type table.

    The drop chance per treasure type comes from ``TREASURE_ITEM_CHANCE``.
    """

    def __init__(self, tables: Mapping[TreasureType, list[str]]) -> None:
        self._tables = {treasure: list(items) for treasure, items in tables.items()}

    def roll_drop(self, treasure_type: TreasureType, level: int, rng: RandomSource) -> str | None:
        chance = TREASURE_ITEM_CHANCE.get(treasure_type.value, 0)
        if chance <= 0 or not rng.percent(chance):
            return None
        return rng.choice(self._tables.get(treasure_type, []))


__all__ = [
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
]
