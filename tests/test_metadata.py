import json
from datetime import datetime

import pytest

from dungeonmcp.metadata import (
    DungeonMetadata,
    EntityMetadata,
    PlayerInventoryMetadata,
    find_most_recent_save,
    load_metadata,
    save_metadata,
    timestamped_filename,
)


def player_entity():
    return EntityMetadata(
        id="hero",
        type="player",
        health=50,
        strength=5,
        name="Bob",
        race="Human",
        class_="Warrior",
        inventory=PlayerInventoryMetadata(
            gold_coins=100, gold_ids=["gold-1"], potions=1, potion_ids=["potion-1"]
        ),
    )


def test_get_returns_entity_or_none():
    meta = DungeonMetadata(entities=[player_entity()])
    assert meta.get("hero").name == "Bob"
    assert meta.get("missing") is None


def test_add_replaces_existing_entity():
    meta = DungeonMetadata()
    meta.add(EntityMetadata(id="gob-1", type="goblin", health=10, strength=5))
    meta.add(EntityMetadata(id="gob-1", type="goblin", health=3, strength=5))
    meta.add(EntityMetadata(id="sk-1", type="skeleton", health=10, strength=5))
    assert [e.id for e in meta.entities] == ["gob-1", "sk-1"]
    assert meta.get("gob-1").health == 3


def test_to_dict_omits_empty_player_fields():
    data = EntityMetadata(id="gob-1", type="goblin", health=10, strength=5).to_dict()
    assert "name" not in data
    assert "inventory" not in data
    assert player_entity().to_dict()["class"] == "Warrior"


def test_dict_round_trip():
    meta = DungeonMetadata(entities=[player_entity()], riddle_solved=True)
    assert DungeonMetadata.from_dict(meta.to_dict()) == meta


def test_from_dict_handles_null_id_lists():
    data = {
        "entities": [
            {
                "id": "hero",
                "type": "player",
                "health": 1,
                "strength": 2,
                "inventory": {"gold_coins": 5, "gold_ids": None, "potions": 0, "potion_ids": None},
            }
        ]
    }
    meta = DungeonMetadata.from_dict(data)
    assert meta.get("hero").inventory.gold_ids == []
    assert meta.riddle_solved is False


def test_save_and_load(tmp_path):
    meta = DungeonMetadata(entities=[player_entity()], riddle_solved=True)
    path = tmp_path / "meta.json"
    save_metadata(meta, path)
    assert json.loads(path.read_text(encoding="utf-8"))["riddle_solved"] is True
    assert load_metadata(path) == meta


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_metadata(tmp_path / "absent.json")


def test_load_invalid_json(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        load_metadata(path)


def test_timestamped_filename():
    now = datetime(2024, 1, 2, 3, 4, 5)
    assert timestamped_filename("save.json", now) == "save_20240102_030405.json"
    assert timestamped_filename("temp", now).startswith("temp_")


def test_find_most_recent_save(tmp_path):
    for stamp in ("20240101_000000", "20240301_000000", "20240201_000000"):
        (tmp_path / f"dungeon_{stamp}.json").write_text("{}", encoding="utf-8")
    result = find_most_recent_save(tmp_path, "dungeon.json")
    assert result.endswith("dungeon_20240301_000000.json")


def test_find_most_recent_save_falls_back_to_default(tmp_path):
    result = find_most_recent_save(tmp_path, "dungeon.json")
    assert result == str(tmp_path / "dungeon.json")