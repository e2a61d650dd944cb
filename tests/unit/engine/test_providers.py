"""Tests for collaborator interfaces and in-memory implementations."""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from dungeon_combat.core.exceptions import ProviderError
from dungeon_combat.engine.dice import SequenceRandom
from dungeon_combat.engine.providers import (
    EncounterDescriptor,
    InMemoryEquipmentCatalog,
    InMemoryInventory,
    InMemoryMonsterCatalog,
    InMemoryParty,
    TableLootProvider,
)
from dungeon_combat.models.enums import TreasureType


class TestParty:
    """Tests for the in-memory party."""

    def test_living_members(self, party_provider: InMemoryParty) -> None:
        """Test fallen members are filtered out."""
        party_provider.write_back("mira", current_hp=0, status="unconscious")

        assert [member.id for member in party_provider.living_members()] == ["aldric", "tomas"]

    def test_write_back(self, party_provider: InMemoryParty) -> None:
        """Test write-back updates the stored record."""
        party_provider.write_back("aldric", current_hp=3, status="ok")

        assert party_provider.get("aldric").current_hp == 3

    def test_unknown_member(self, party_provider: InMemoryParty) -> None:
        """Test write-back to an unknown member fails."""
        with pytest.raises(ProviderError):
            party_provider.write_back("ghost", current_hp=1, status="ok")

    def test_return_to_town(self, party_provider: InMemoryParty) -> None:
        """Test an escaped member is marked disoriented and stays in the party."""
        party_provider.return_to_town("mira")

        assert party_provider.get("mira").disoriented is True
        assert "mira" in [member.id for member in party_provider.living_members()]

    def test_return_unknown_member(self, party_provider: InMemoryParty) -> None:
        """Test sending an unknown member to town fails."""
        with pytest.raises(ProviderError):
            party_provider.return_to_town("ghost")


class TestMonsters:
    """Tests for the monster catalog."""

    def test_build_waves(self, monster_catalog: InMemoryMonsterCatalog) -> None:
        """Test a descriptor resolves into templates per wave."""
        descriptor = EncounterDescriptor(name="Goblin Camp", waves=[["kobold", "goblin"], ["goblin-chief"]])

        waves = monster_catalog.build_waves(descriptor)

        assert [[monster.id for monster in wave] for wave in waves] == [["kobold", "goblin"], ["goblin-chief"]]

    def test_unknown_monster(self, monster_catalog: InMemoryMonsterCatalog) -> None:
        """Test unknown templates raise."""
        with pytest.raises(ProviderError):
            monster_catalog.get_monster("beholder")

    def test_descriptor_needs_a_wave(self) -> None:
        """Test an encounter without waves is invalid."""
        with pytest.raises(PydanticValidationError):
            EncounterDescriptor(waves=[])


class TestEquipment:
    """Tests for the equipment catalog."""

    def test_reach_weapons(self, equipment_catalog: InMemoryEquipmentCatalog) -> None:
        """Test spears reach and swords do not."""
        assert equipment_catalog.is_reach_weapon(equipment_catalog.get_item("spear")) is True
        assert equipment_catalog.is_reach_weapon(equipment_catalog.get_item("long-sword")) is False


class TestInventory:
    """Tests for the in-memory inventory."""

    def test_consume(self, inventory: InMemoryInventory) -> None:
        """Test consuming counts down and hides exhausted items."""
        inventory.consume("healing-potion")
        inventory.consume("healing-potion")

        assert inventory.count("healing-potion") == 0
        assert inventory.get_item("healing-potion") is None

    def test_consume_missing(self, inventory: InMemoryInventory) -> None:
        """Test consuming an item the party lacks raises."""
        with pytest.raises(ProviderError):
            inventory.consume("elixir")

    def test_deposit(self, inventory: InMemoryInventory) -> None:
        """Test spoils land in the purse and the loot bag."""
        inventory.deposit(gold=12, items=["dagger"])

        assert inventory.gold == 12
        assert inventory.loot == ["dagger"]


class TestLoot:
    """Tests for table-driven drops."""

    def test_drop(self) -> None:
        """Test a successful drop picks from the table."""
        loot = TableLootProvider({TreasureType.RICH: ["ring", "amulet"]})
        rng = SequenceRandom(integers=[1], chances=[True])

        assert loot.roll_drop(TreasureType.RICH, 3, rng) == "amulet"

    def test_no_drop_for_poor(self) -> None:
        """Test treasure types without an item chance never draw."""
        loot = TableLootProvider({TreasureType.POOR: ["rags"]})
        rng = SequenceRandom()

        assert loot.roll_drop(TreasureType.POOR, 1, rng) is None
        assert rng.draws == []
