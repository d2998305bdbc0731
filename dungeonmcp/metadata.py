"""Saved state of entities: health, strength, player details and inventory."""

from __future__ import annotations

import glob
import json
import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any


@dataclass
class PlayerInventoryMetadata:
    gold_coins: int = 0
    gold_ids: list[str] = field(default_factory=list)
    potions: int = 0
    potion_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "gold_coins": self.gold_coins,
            "gold_ids": list(self.gold_ids),
            "potions": self.potions,
            "potion_ids": list(self.potion_ids),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PlayerInventoryMetadata:
        return cls(
            gold_coins=int(data.get("gold_coins") or 0),
            gold_ids=list(data.get("gold_ids") or []),
            potions=int(data.get("potions") or 0),
            potion_ids=list(data.get("potion_ids") or []),
        )


@dataclass
class EntityMetadata:
    """Stored state of one entity; name, race, class and inventory are player-only."""

    id: str
    type: str
    health: int = 0
    strength: int = 0
    name: str = ""
    race: str = ""
    class_: str = ""
    inventory: PlayerInventoryMetadata | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "type": self.type}
        if self.name:
            data["name"] = self.name
        if self.race:
            data["race"] = self.race
        if self.class_:
            data["class"] = self.class_
        data["health"] = self.health
        data["strength"] = self.strength
        if self.inventory is not None:
            data["inventory"] = self.inventory.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EntityMetadata:
        inventory = data.get("inventory")
        return cls(
            id=str(data.get("id") or ""),
            type=str(data.get("type") or ""),
            health=int(data.get("health") or 0),
            strength=int(data.get("strength") or 0),
            name=str(data.get("name") or ""),
            race=str(data.get("race") or ""),
            class_=str(data.get("class") or ""),
            inventory=PlayerInventoryMetadata.from_dict(inventory) if inventory else None,
        )


@dataclass
class DungeonMetadata:
    entities: list[EntityMetadata] = field(default_factory=list)
    riddle_solved: bool = False

    def get(self, entity_id: str) -> EntityMetadata | None:
        """Return the metadata of an entity, or None."""
        return next((e for e in self.entities if e.id == entity_id), None)

    def add(self, entity: EntityMetadata) -> None:
        """Add an entity, replacing any entry with the same id."""
        for index, existing in enumerate(self.entities):
            if existing.id == entity.id:
                self.entities[index] = entity
                return
        self.entities.append(entity)

    def to_dict(self) -> dict[str, Any]:
        return {
            "entities": [entity.to_dict() for entity in self.entities],
            "riddle_solved": self.riddle_solved,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DungeonMetadata:
        return cls(
            entities=[EntityMetadata.from_dict(e) for e in data.get("entities") or []],
            riddle_solved=bool(data.get("riddle_solved", False)),
        )


def save_metadata(metadata: DungeonMetadata, path: str | Path) -> None:
    Path(path).write_text(
        json.dumps(metadata.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8"
    )


def load_metadata(path: str | Path) -> DungeonMetadata:
    """Read metadata from a JSON file; raises OSError or ValueError."""
    return DungeonMetadata.from_dict(json.loads(Path(path).read_text(encoding="utf-8")))


def _split_ext(name: str) -> tuple[str, str]:
    dot = name.rfind(".")
    if dot > name.rfind("/"):
        return name[:dot], name[dot:]
    return name, ""


def timestamped_filename(base_name: str, now: datetime | None = None) -> str:
    """Insert a _YYYYMMDD_HHMMSS timestamp before the extension."""
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    stem, ext = _split_ext(base_name)
    return f"{stem}_{stamp}{ext}"


def find_most_recent_save(data_dir: str | Path, base_filename: str) -> str:
    """Return the newest timestamped save, or the default file path if none."""
    stem, ext = _split_ext(base_filename)
    pattern = os.path.join(str(data_dir), f"{stem}_*{ext}")
    matches = sorted(glob.glob(pattern))
    if not matches:
        return os.path.join(str(data_dir), base_filename)
    return matches[-1]