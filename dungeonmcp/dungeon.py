"""Rooms, their connections and the characters placed in them."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterable


class Direction(str, Enum):
    """A compass direction linking one room to another."""

    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class CharObject:
    """One occurrence of an object in a room: its kind and its object id."""

    kind: str
    object_id: str


@dataclass
class Room:
    """A room of the dungeon."""

    id: int
    name: str
    description: str = ""
    connections: dict[Direction, int] = field(default_factory=dict)
    chars: list[CharObject] = field(default_factory=list)


_MAP_SYMBOLS = {
    "player": "@",
    "skeleton": "S",
    "goblin": "G",
    "vampire": "V",
    "sphinx": "X",
    "elf": "E",
    "dwarf": "D",
    "human": "H",
    "gold": "*",
    "potion": "Y",
}


class Dungeon:
    """A set of rooms indexed by id, kept in insertion order."""

    def __init__(self, rooms: Iterable[Room] = ()) -> None:
        self._rooms: dict[int, Room] = {}
        for room in rooms:
            if room.id in self._rooms:
                raise ValueError(f"duplicate room id: {room.id}")
            self._rooms[room.id] = room

    @property
    def rooms(self) -> list[Room]:
        return list(self._rooms.values())

    def room(self, room_id: int) -> Room | None:
        """Return the room with this id, or None."""
        return self._rooms.get(room_id)

    def remove_char_object(self, room_id: int, object_id: str) -> bool:
        """Remove every occurrence of an object from a room.

        Returns True if anything was removed.
        """
        room = self._rooms.get(room_id)
        if room is None:
            return False
        kept = [char for char in room.chars if char.object_id != object_id]
        removed = len(kept) != len(room.chars)
        room.chars = kept
        return removed

    def move_object_to_room(self, object_id: str, room_id: int) -> bool:
        """Move every occurrence of an object to another room.

        Returns False if the target room or the object does not exist.
        """
        target = self._rooms.get(room_id)
        if target is None:
            return False
        moved: list[CharObject] = []
        found = False
        for room in self._rooms.values():
            matching = [c for c in room.chars if c.object_id == object_id]
            if not matching:
                continue
            found = True
            if room is target:
                continue
            room.chars = [c for c in room.chars if c.object_id != object_id]
            moved.extend(matching)
        target.chars.extend(moved)
        return found

    def render_map(self, player_room_id: int) -> str:
        """Render a text map of all rooms, marking the player's room."""
        lines = []
        for room in self._rooms.values():
            marker = "@" if room.id == player_room_id else " "
            lines.append(f"{marker} Room #{room.id}: {room.name}")
            if room.connections:
                exits = ", ".join(
                    f"{direction}->#{target}"
                    for direction, target in room.connections.items()
                )
            else:
                exits = "none"
            lines.append(f"    exits: {exits}")
            seen: set[str] = set()
            symbols = []
            for char in room.chars:
                if char.object_id in seen:
                    continue
                seen.add(char.object_id)
                symbols.append(_MAP_SYMBOLS.get(char.kind, "?"))
            if symbols:
                lines.append(f"    contents: {' '.join(symbols)}")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rooms": [
                {
                    "id": room.id,
                    "name": room.name,
                    "description": room.description,
                    "connections": {
                        direction.value: target
                        for direction, target in room.connections.items()
                    },
                    "chars": [
                        {"kind": char.kind, "object_id": char.object_id}
                        for char in room.chars
                    ],
                }
                for room in self._rooms.values()
            ]
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Dungeon:
        try:
            rooms = [
                Room(
                    id=int(entry["id"]),
                    name=str(entry.get("name", "")),
                    description=str(entry.get("description", "")),
                    connections={
                        Direction(direction): int(target)
                        for direction, target in (entry.get("connections") or {}).items()
                    },
                    chars=[
                        CharObject(kind=str(c["kind"]), object_id=str(c["object_id"]))
                        for c in entry.get("chars") or []
                    ],
                )
                for entry in data.get("rooms") or []
            ]
        except KeyError as exc:
            raise ValueError(f"missing field in dungeon data: {exc}") from exc
        dungeon = cls(rooms)
        for room in rooms:
            for direction, target in room.connections.items():
                if target not in dungeon._rooms:
                    raise ValueError(
                        f"room #{room.id} connects {direction} to unknown room #{target}"
                    )
        return dungeon

    def save(self, path: str | Path) -> None:
        Path(path).write_text(
            json.dumps(self.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8"
        )

    @classmethod
    def load(cls, path: str | Path) -> Dungeon:
        return cls.from_dict(json.loads(Path(path).read_text(encoding="utf-8")))