"""Creatures, collectibles and the player that populate the dungeon."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from dungeonmcp.dungeon import Dungeon


@dataclass
class Creature:
    """A monster or NPC standing in a room, with health and strength."""

    kind: ClassVar[str] = ""
    symbol: ClassVar[str] = "?"
    default_health: ClassVar[int] = 0
    default_strength: ClassVar[int] = 0
    is_monster: ClassVar[bool] = False

    id: str
    room_id: int
    health: int | None = None
    strength: int | None = None

    def __post_init__(self) -> None:
        if self.health is None:
            self.health = self.default_health
        if self.strength is None:
            self.strength = self.default_strength

    def move_to_room(self, dungeon: Dungeon, room_id: int) -> bool:
        """Move this creature to another room of the dungeon."""
        self.room_id = room_id
        return dungeon.move_object_to_room(self.id, room_id)


class Skeleton(Creature):
    kind = "skeleton"
    symbol = "S"
    default_health = 10
    default_strength = 5
    is_monster = True


class Goblin(Creature):
    kind = "goblin"
    symbol = "G"
    default_health = 10
    default_strength = 5
    is_monster = True


class Vampire(Creature):
    kind = "vampire"
    symbol = "V"
    default_health = 10
    default_strength = 5
    is_monster = True


class Sphinx(Creature):
    """Guardian of the exit; talks rather than fights."""

    kind = "sphinx"
    symbol = "X"
    default_health = 10
    default_strength = 5


class Elf(Creature):
    kind = "elf"
    symbol = "E"
    default_health = 15
    default_strength = 7


class Dwarf(Creature):
    kind = "dwarf"
    symbol = "D"
    default_health = 20
    default_strength = 10


class Human(Creature):
    kind = "human"
    symbol = "H"
    default_health = 15
    default_strength = 8


_CREATURE_TYPES: dict[str, type[Creature]] = {
    cls.kind: cls for cls in (Skeleton, Goblin, Vampire, Sphinx, Elf, Dwarf, Human)
}

MONSTER_KINDS = frozenset(k for k, c in _CREATURE_TYPES.items() if c.is_monster)
NPC_KINDS = frozenset(k for k, c in _CREATURE_TYPES.items() if not c.is_monster)


def _creature_type(kind: str) -> type[Creature]:
    try:
        return _CREATURE_TYPES[kind]
    except KeyError:
        raise ValueError(f"unknown creature kind: {kind!r}") from None


def default_stats(kind: str) -> tuple[int, int]:
    """Return the default (health, strength) of a creature kind."""
    cls = _creature_type(kind)
    return cls.default_health, cls.default_strength


def create_creature(
    kind: str,
    object_id: str,
    room_id: int,
    health: int | None = None,
    strength: int | None = None,
) -> Creature:
    """Build a creature of the given kind; missing stats take the kind's defaults."""
    cls = _creature_type(kind)
    return cls(id=object_id, room_id=room_id, health=health, strength=strength)


@dataclass
class GoldCoins:
    kind: ClassVar[str] = "gold"
    symbol: ClassVar[str] = "*"

    id: str
    room_id: int
    amount: int = 100


@dataclass
class MagicPotion:
    kind: ClassVar[str] = "potion"
    symbol: ClassVar[str] = "Y"

    id: str
    room_id: int
    health: int = 100


@dataclass
class Inventory:
    gold_coins: int = 0
    gold_ids: list[str] = field(default_factory=list)
    potions: int = 0
    potion_ids: list[str] = field(default_factory=list)


@dataclass
class Player:
    kind: ClassVar[str] = "player"
    potion_heal: ClassVar[int] = 5

    id: str
    room_id: int
    name: str = "Unknown Hero"
    race: str = "Human"
    class_: str = "Warrior"
    health: int = 50
    strength: int = 5
    inventory: Inventory = field(default_factory=Inventory)

    def collect_gold(self, amount: int, item_id: str) -> None:
        self.inventory.gold_coins += amount
        self.inventory.gold_ids.append(item_id)

    def collect_potion(self, item_id: str) -> None:
        self.inventory.potions += 1
        self.inventory.potion_ids.append(item_id)

    def drink_potion(self) -> bool:
        """Use up one potion to restore health; False if there is none."""
        if self.inventory.potions <= 0:
            return False
        self.inventory.potions -= 1
        if self.inventory.potion_ids:
            self.inventory.potion_ids.pop()
        self.health += self.potion_heal
        return True

    def inventory_report(self) -> str:
        """Describe the player's stats and inventory as text."""
        lines = [
            "=== Your Inventory ===",
            f"Name: {self.name}",
            f"Race: {self.race}",
            f"Class: {self.class_}",
            f"Health: {self.health} ❤️",
            f"Strength: {self.strength} 💪",
            f"Gold Coins: {self.inventory.gold_coins}",
        ]
        if self.inventory.gold_ids:
            lines.append("  Gold IDs:")
            lines.extend(f"    - {item_id}" for item_id in self.inventory.gold_ids)
        lines.append(f"Potions: {self.inventory.potions}")
        if self.inventory.potion_ids:
            lines.append("  Potion IDs:")
            lines.extend(f"    - {item_id}" for item_id in self.inventory.potion_ids)
        lines.append("=====================")
        return "\n".join(lines)

    def move_to_room(self, dungeon: Dungeon, room_id: int) -> bool:
        """Move the player to another room of the dungeon."""
        self.room_id = room_id
        return dungeon.move_object_to_room(self.id, room_id)