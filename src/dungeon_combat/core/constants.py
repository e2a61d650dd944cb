"""Rule tables for the dungeon combat engine.

This module collects the fixed class and equipment tables that the rules
consult. Tunable thresholds (chances, capacities) live in
:mod:`dungeon_combat.core.config` instead.
"""

from __future__ import annotations

# =============================================================================
# Character Classes
# =============================================================================

FRONT_ROW_CLASSES = frozenset({"Fighter", "Lord", "Samurai", "Thief", "Ninja"})
"""Classes that belong in the front row by default."""

SPELLCASTER_CLASSES = frozenset({"Mage", "Priest", "Bishop"})
"""Classes that monster AI treats as spellcasters."""

INITIATIVE_CLASS_BONUS: dict[str, int] = {
    "Ninja": 4,
    "Thief": 2,
    "Samurai": 2,
    "Fighter": 1,
    "Lord": 1,
    "Bishop": 0,
    "Mage": -1,
    "Priest": -1,
}
"""Initiative bonus per class. Unlisted roles (monsters) get 0."""

UNARMED_CLASS_BONUS: dict[str, int] = {
    "Fighter": 2,
    "Thief": 1,
    "Samurai": 3,
    "Lord": 2,
    "Ninja": 4,
    "Mage": 0,
    "Priest": 0,
    "Bishop": 1,
}
"""Unarmed damage bonus per class."""

FRONT_ROW_PRIORITY: dict[str, int] = {
    "Fighter": 10,
    "Lord": 9,
    "Samurai": 9,
    "Ninja": 7,
    "Thief": 6,
    "Priest": 3,
    "Mage": 2,
    "Bishop": 1,
}
"""Base score used when ranking candidates for the front row."""

# =============================================================================
# Equipment
# =============================================================================

REACH_WEAPON_TYPES = frozenset({"Spear", "Halberd", "Pike", "Poleaxe"})
"""Weapon types that let a back-row character make melee attacks."""

WEAPON_DAMAGE_DIE = 6
"""Sides of the damage die rolled for any equipped weapon."""

# =============================================================================
# Armor Class
# =============================================================================

BASE_ARMOR_CLASS = 10
"""Armor class of an unarmored character with average agility."""

AC_SCORE_CEILING = 15
"""Armor class at which targeting heuristics stop rewarding low AC."""

# =============================================================================
# Treasure
# =============================================================================

TREASURE_GOLD_DICE: dict[str, str] = {
    "none": "0",
    "poor": "2d6",
    "standard": "3d6*10",
    "rich": "1d6*100",
    "hoard": "2d6*100",
}
"""Gold roll per treasure type, in dice notation."""

TREASURE_ITEM_CHANCE: dict[str, int] = {
    "none": 0,
    "poor": 0,
    "standard": 25,
    "rich": 50,
    "hoard": 75,
}
"""Percent chance of an item drop per treasure type."""


__all__ = [
    "FRONT_ROW_CLASSES",
    "SPELLCASTER_CLASSES",
    "INITIATIVE_CLASS_BONUS",
    "UNARMED_CLASS_BONUS",
    "FRONT_ROW_PRIORITY",
    "REACH_WEAPON_TYPES",
    "WEAPON_DAMAGE_DIE",
    "BASE_ARMOR_CLASS",
    "AC_SCORE_CEILING",
    "TREASURE_GOLD_DICE",
    "TREASURE_ITEM_CHANCE",
]
