"""Exploration state of a running game: rooms, items, NPC talk and the riddle."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional, Union

from dungeonmcp.dungeon import Direction, Dungeon, Room
from dungeonmcp.entities import (
    MONSTER_KINDS,
    NPC_KINDS,
    Creature,
    GoldCoins,
    MagicPotion,
    Player,
)
from dungeonmcp.metadata import (
    DungeonMetadata,
    EntityMetadata,
    PlayerInventoryMetadata,
    save_metadata,
)

Collectible = Union[GoldCoins, MagicPotion]

_RIDDLE_ANSWERS = frozenset({"echo", "an echo"})
RIDDLE_CORRECT = (
    "Correct! You are wise indeed. The exit is now accessible to you. "
    "Go forth, brave adventurer!"
)
RIDDLE_WRONG = (
    "Wrong! That is not the answer I seek. You may try again when you return..."
)

_DIALOGUES = {
    "elf": (
        "Greetings, traveler! The ancient trees whisper of your quest. "
        "May the light of the stars guide your path through these dark halls."
    ),
    "dwarf": (
        "Aye, welcome to these forsaken halls! I've been mining here for years. "
        "Watch out for the monsters - they're tougher than they look! "
        "If you need strength, remember: a good meal and rest do wonders."
    ),
    "human": (
        "Hello there! I'm a fellow adventurer trapped in this dungeon. "
        "I've heard rumors of great treasures deeper within... "
        "Be careful, and may fortune favor you!"
    ),
}
_SPHINX_SOLVED = (
    "You have proven your wisdom, brave one. The path to freedom is now open to you."
)
_SPHINX_RIDDLE = (
    "Halt, mortal! I am the guardian of the exit. Answer my riddle correctly, "
    "and you may leave this dungeon. Fail, and you shall wander these halls "
    "forever... THE RIDDLE: I speak without a mouth and hear without ears. "
    "I have no body, but I come alive with wind. What am I?"
)

_SPOKEN_LINES = {
    "elf": [
        '"Greetings, traveler! The ancient trees whisper of your quest."',
        '"May the light of the stars guide your path through these dark halls."',
    ],
    "dwarf": [
        "\"Aye, welcome to these forsaken halls! I've been mining here for years.\"",
        "\"Watch out for the monsters - they're tougher than they look!\"",
        '"If you need strength, remember: a good meal and rest do wonders."',
    ],
    "human": [
        "\"Hello there! I'm a fellow adventurer trapped in this dungeon.\"",
        "\"I've heard rumors of great treasures deeper within...\"",
        '"Be careful, and may fortune favor you!"',
    ],
}

_MONSTER_LABELS = {"skeleton": "💀 Skeleton", "goblin": "👺 Goblin", "vampire": "🧛 Vampire"}
_NPC_LABELS = {"elf": ("🧝", "Elf"), "dwarf": ("🧔", "Dwarf"), "human": ("👤", "Human"),
               "sphinx": ("🦁", "Sphinx")}

_DIRECTION_WORDS = {
    "n": Direction.NORTH, "north": Direction.NORTH,
    "s": Direction.SOUTH, "south": Direction.SOUTH,
    "e": Direction.EAST, "east": Direction.EAST,
    "w": Direction.WEST, "west": Direction.WEST,
}

_HELP_LINES = [
    "📜 Available Commands:",
    "  n, north - Move north",
    "  s, south - Move south",
    "  e, east  - Move east",
    "  w, west  - Move west",
    "  c, collect - Collect items in current room",
    "  d, drink - Drink a potion to restore 5 health",
    "  t, talk - Talk to NPCs in current room",
    "  f, fight - Start/continue combat with monsters",
    "  i, inventory - Show your inventory",
    "  m, map - Show the dungeon map",
    "  l, look - Look around the current room",
    "  h, help - Show this help",
    "  q, quit - Quit the game",
    "",
    "💡 During combat:",
    "  f - Attack the monster",
    "  d - Drink a potion (monster attacks)",
    "  n/s/e/w - Flee from combat",
]


def parse_direction(text: str) -> Optional[Direction]:
    """Turn user input such as 'n' or 'North' into a direction, or None."""
    return _DIRECTION_WORDS.get(text.strip().lower())


def help_text() -> str:
    """The list of interactive commands."""
    return "\n".join(_HELP_LINES)


def _default_ask(prompt: str) -> Optional[str]:
    try:
        return input(prompt)
    except EOFError:
        return None


@dataclass
class NPCDialogue:
    npc_type: str
    npc_id: str
    dialogue: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass
class GameState:
    """Everything that changes while the game is played."""

    dungeon: Dungeon
    player: Optional[Player] = None
    collectibles: dict[str, Collectible] = field(default_factory=dict)
    monsters: dict[str, Creature] = field(default_factory=dict)
    npcs: dict[str, Creature] = field(default_factory=dict)
    in_combat: bool = False
    current_enemy: Optional[Creature] = None
    riddle_solved: bool = False

    def current_room(self) -> Optional[Room]:
        """The room the player stands in, or None."""
        if self.player is None:
            return None
        return self.dungeon.room(self.player.room_id)

    def _count_kinds(self, room_id: int, kinds: frozenset[str]) -> dict[str, int]:
        counts: dict[str, int] = {}
        room = self.dungeon.room(room_id)
        if room is None:
            return counts
        for char in room.chars:
            if char.kind in kinds:
                counts[char.kind] = counts.get(char.kind, 0) + 1
        return counts

    def monsters_in_room(self, room_id: int) -> dict[str, int]:
        """Count the monster occurrences of each kind in a room."""
        return self._count_kinds(room_id, MONSTER_KINDS)

    def npcs_in_room(self, room_id: int) -> dict[str, int]:
        """Count the NPC occurrences of each kind in a room."""
        return self._count_kinds(room_id, NPC_KINDS)

    def collectibles_in_room(self, room_id: int) -> dict[str, list[str]]:
        """Object ids of every gold and potion occurrence, duplicates included."""
        found: dict[str, list[str]] = {}
        room = self.dungeon.room(room_id)
        if room is None:
            return found
        for char in room.chars:
            if char.kind in ("gold", "potion"):
                found.setdefault(char.kind, []).append(char.object_id)
        return found

    def _unique_objects(self, room: Room, kinds: frozenset[str],
                        registry: dict[str, Creature]) -> list[Creature]:
        seen: set[str] = set()
        found = []
        for char in room.chars:
            if char.kind in kinds and char.object_id not in seen:
                seen.add(char.object_id)
                creature = registry.get(char.object_id)
                if creature is not None:
                    found.append(creature)
        return found

    def describe_room(self) -> str:
        """Text description of the current room, its exits and its contents."""
        room = self.current_room()
        if room is None:
            return "Error: Room not found!"
        lines = [
            "=" * 60,
            f"🏰 Room #{room.id}: {room.name}",
            "=" * 60,
            f"📖 {room.description}",
            "-" * 60,
            "",
            "🚪 Available exits:",
        ]
        if not room.connections:
            lines.append("  None - You're trapped!")
        for direction, target_id in room.connections.items():
            target = self.dungeon.room(target_id)
            target_name = target.name if target else "?"
            lines.append(f"  - {direction} (leads to Room #{target_id}: {target_name})")

        if self.monsters_in_room(room.id):
            lines += ["", "⚔️  Monsters in this room:"]
            for monster in self._unique_objects(room, MONSTER_KINDS, self.monsters):
                label = _MONSTER_LABELS.get(monster.kind, monster.kind)
                lines.append(
                    f"  - {label} [Health: {monster.health} ❤️, "
                    f"Strength: {monster.strength} 💪]"
                )
            if self.player is not None:
                lines += [
                    "",
                    "🛡️  Your Stats:",
                    f"  - Health: {self.player.health} ❤️, "
                    f"Strength: {self.player.strength} 💪",
                ]
            if not self.in_combat:
                lines += [
                    "",
                    "⚠️  DANGER! Type 'f' or 'fight' to engage in combat",
                    "💬 Or move to another room to avoid the fight",
                ]

        if self.npcs_in_room(room.id):
            lines += ["", "👥 NPCs in this room:"]
            for npc in self._unique_objects(room, NPC_KINDS, self.npcs):
                emoji, label = _NPC_LABELS[npc.kind]
                suffix = " - Guards the exit with a riddle" if npc.kind == "sphinx" else ""
                lines.append(f"  - {emoji} {npc.id} ({label}){suffix}")
            lines.append("💬 Type 't' or 'talk' to speak with them")

        items = self.collectibles_in_room(room.id)
        if items:
            lines += ["", "💎 Items available:"]
            lines.extend(f"  - {kind}" for kind in items)

        lines.append("=" * 60)
        return "\n".join(lines)

    def move_player(self, direction: Direction) -> bool:
        """Move the player through an exit of the current room."""
        room = self.current_room()
        if room is None or self.player is None:
            return False
        target_id = room.connections.get(direction)
        if target_id is None:
            return False
        return self.player.move_to_room(self.dungeon, target_id)

    def collect_items(self) -> list[dict[str, Any]]:
        """Pick up every gold and potion occurrence in the current room.

        Returns one entry per occurrence collected.
        """
        room = self.current_room()
        if room is None or self.player is None:
            return []
        found = self.collectibles_in_room(room.id)
        collected: list[dict[str, Any]] = []
        for gold_id in found.get("gold", []):
            gold = self.collectibles.get(gold_id)
            if isinstance(gold, GoldCoins):
                self.player.collect_gold(gold.amount, gold_id)
                self.dungeon.remove_char_object(room.id, gold_id)
                collected.append({"type": "gold", "id": gold_id, "amount": gold.amount})
        for potion_id in found.get("potion", []):
            potion = self.collectibles.get(potion_id)
            if isinstance(potion, MagicPotion):
                self.player.collect_potion(potion_id)
                self.dungeon.remove_char_object(room.id, potion_id)
                collected.append({"type": "potion", "id": potion_id})
        return collected

    def _dialogue_for(self, npc: Creature) -> str:
        if npc.kind == "sphinx":
            return _SPHINX_SOLVED if self.riddle_solved else _SPHINX_RIDDLE
        return _DIALOGUES.get(npc.kind, "")

    def npc_dialogues(self, npc_type: Optional[str] = None) -> list[NPCDialogue]:
        """What each NPC in the room says, optionally only NPCs of one kind."""
        room = self.current_room()
        if room is None:
            return []
        wanted = npc_type.strip().lower() if npc_type else ""
        return [
            NPCDialogue(npc_type=npc.kind, npc_id=npc.id, dialogue=self._dialogue_for(npc))
            for npc in self._unique_objects(room, NPC_KINDS, self.npcs)
            if not wanted or npc.kind == wanted
        ]

    def talk_to_npcs(self, ask: Callable[[str], Optional[str]] = _default_ask) -> str:
        """Talk to every NPC in the room; the Sphinx asks its riddle through ``ask``.

        ``ask`` receives a prompt and returns the answer, or None when there is none.
        Returns the transcript of the conversation.
        """
        room = self.current_room()
        if room is None:
            return ""
        npcs = self._unique_objects(room, NPC_KINDS, self.npcs)
        if not npcs:
            return "❌ There are no NPCs in this room to talk to."
        lines: list[str] = []
        for npc in npcs:
            emoji, label = _NPC_LABELS[npc.kind]
            lines += ["", f"{emoji} {npc.id} ({label}) says:"]
            if npc.kind != "sphinx":
                lines.extend(f"   {line}" for line in _SPOKEN_LINES[npc.kind])
                continue
            if self.riddle_solved:
                lines += [
                    '   "You have proven your wisdom, brave one."',
                    '   "The path to freedom is now open to you."',
                ]
                continue
            lines += [
                '   "Halt, mortal! I am the guardian of the exit."',
                '   "Answer my riddle correctly, and you may leave this dungeon."',
                '   "Fail, and you shall wander these halls forever..."',
                "",
                "   🔮 THE RIDDLE:",
                '   "I speak without a mouth and hear without ears.',
                "   I have no body, but I come alive with wind.",
                '   What am I?"',
            ]
            answer = ask("\n   Your answer: ")
            if answer is None:
                continue
            correct, _ = self.answer_riddle(answer)
            if correct:
                lines += [
                    "",
                    '   ✨ "Correct! You are wise indeed."',
                    '   "The exit is now accessible to you. Go forth, brave adventurer!"',
                    "",
                    "🎉 Congratulations! You have solved the Sphinx's riddle!",
                    "You can now exit the dungeon to complete your quest!",
                ]
            else:
                lines += [
                    "",
                    '   ❌ "Wrong! That is not the answer I seek."',
                    '   "You may try again when you return..."',
                ]
        return "\n".join(lines)

    def answer_riddle(self, answer: str) -> tuple[bool, str]:
        """Check an answer to the Sphinx's riddle; a right one solves it."""
        if answer.strip().lower() in _RIDDLE_ANSWERS:
            self.riddle_solved = True
            return True, RIDDLE_CORRECT
        return False, RIDDLE_WRONG

    def save(self, dungeon_path: Union[str, Path], metadata_path: Union[str, Path]) -> None:
        """Write the dungeon and the entity metadata to two JSON files."""
        if self.player is None:
            raise ValueError("cannot save a game without a player")
        try:
            self.dungeon.save(dungeon_path)
        except OSError as exc:
            raise OSError(f"error saving dungeon: {exc}") from exc

        metadata = DungeonMetadata(riddle_solved=self.riddle_solved)
        player = self.player
        metadata.add(EntityMetadata(
            id=player.id,
            type="player",
            name=player.name,
            race=player.race,
            class_=player.class_,
            health=player.health,
            strength=player.strength,
            inventory=PlayerInventoryMetadata(
                gold_coins=player.inventory.gold_coins,
                gold_ids=list(player.inventory.gold_ids),
                potions=player.inventory.potions,
                potion_ids=list(player.inventory.potion_ids),
            ),
        ))
        for object_id, monster in self.monsters.items():
            if monster.kind in ("skeleton", "goblin", "vampire", "sphinx"):
                metadata.add(EntityMetadata(id=object_id, type=monster.kind,
                                            health=monster.health, strength=monster.strength))
        for object_id, npc in self.npcs.items():
            if npc.kind in ("elf", "dwarf", "human"):
                metadata.add(EntityMetadata(id=object_id, type=npc.kind,
                                            health=npc.health, strength=npc.strength))
        try:
            save_metadata(metadata, metadata_path)
        except OSError as exc:
            raise OSError(f"error saving metadata: {exc}") from exc