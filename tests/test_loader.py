import pytest

from dungeonmcp.dungeon import CharObject, Direction, Dungeon, Room
from dungeonmcp.entities import Goblin, GoldCoins, MagicPotion, Sphinx, default_stats
from dungeonmcp.game import GameState
from dungeonmcp.loader import find_player, initialize_game, load_entities
from dungeonmcp.metadata import (
    DungeonMetadata,
    EntityMetadata,
    PlayerInventoryMetadata,
    save_metadata,
)


def _dungeon(with_player=True):
    first = [CharObject("gold", "gold1"), CharObject("potion", "pot1")]
    if with_player:
        first.insert(0, CharObject("player", "hero"))
    return Dungeon([
        Room(1, "Hall", connections={Direction.EAST: 2}, chars=first),
        Room(2, "Lair", connections={Direction.WEST: 1}, chars=[
            CharObject("goblin", "gob1"),
            CharObject("sphinx", "sph1"),
            CharObject("elf", "elf1"),
        ]),
    ])


def test_load_entities_defaults():
    state = GameState(dungeon=_dungeon())
    load_entities(state, DungeonMetadata())
    gold = state.collectibles["gold1"]
    potion = state.collectibles["pot1"]
    assert isinstance(gold, GoldCoins) and gold.amount == 100
    assert isinstance(potion, MagicPotion) and potion.health == 50
    goblin = state.monsters["gob1"]
    assert isinstance(goblin, Goblin) and goblin.room_id == 2
    assert (goblin.health, goblin.strength) == default_stats("goblin")
    assert isinstance(state.npcs["sph1"], Sphinx)
    assert set(state.npcs) == {"sph1", "elf1"}
    assert set(state.monsters) == {"gob1"}


def test_load_entities_uses_metadata():
    metadata = DungeonMetadata()
    metadata.add(EntityMetadata(id="gob1", type="goblin", health=3, strength=9))
    state = GameState(dungeon=_dungeon())
    load_entities(state, metadata)
    goblin = state.monsters["gob1"]
    assert (goblin.health, goblin.strength) == (3, 9)


def test_find_player_defaults():
    player = find_player(_dungeon(), DungeonMetadata())
    assert player.id == "hero" and player.room_id == 1
    assert (player.name, player.race, player.class_) == ("Unknown Hero", "Human", "Warrior")
    assert player.health == 50 and player.inventory.potions == 0


def test_find_player_from_metadata():
    metadata = DungeonMetadata()
    metadata.add(EntityMetadata(
        id="hero", type="player", name="Aria", race="Elf", health=30, strength=7,
        inventory=PlayerInventoryMetadata(gold_coins=200, gold_ids=["a", "b"],
                                          potions=1, potion_ids=["p"]),
    ))
    player = find_player(_dungeon(), metadata)
    assert (player.name, player.race, player.class_) == ("Aria", "Elf", "Warrior")
    assert (player.health, player.strength) == (30, 7)
    assert player.inventory.gold_ids == ["a", "b"]
    assert player.inventory.potion_ids == ["p"]


def test_find_player_missing():
    assert find_player(_dungeon(with_player=False), DungeonMetadata()) is None


def test_initialize_game_round_trip(tmp_path):
    dungeon_file = tmp_path / "dungeon.json"
    metadata_file = tmp_path / "meta.json"
    _dungeon().save(dungeon_file)
    metadata = DungeonMetadata(riddle_solved=True)
    metadata.add(EntityMetadata(id="hero", type="player", name="Aria",
                                health=42, strength=6))
    save_metadata(metadata, metadata_file)

    state = initialize_game(dungeon_file, metadata_file)
    assert state.player.name == "Aria"
    assert state.player.health == 42
    assert state.riddle_solved is True
    assert set(state.collectibles) == {"gold1", "pot1"}


def test_initialize_game_after_save(tmp_path):
    dungeon_file = tmp_path / "dungeon.json"
    _dungeon().save(dungeon_file)
    state = initialize_game(dungeon_file, tmp_path / "missing.json")
    state.player.health = 17
    state.monsters["gob1"].health = 4
    state.collect_items()
    saved_dungeon = tmp_path / "saved.json"
    saved_meta = tmp_path / "saved_meta.json"
    state.save(saved_dungeon, saved_meta)

    restored = initialize_game(saved_dungeon, saved_meta)
    assert restored.player.health == 17
    assert restored.monsters["gob1"].health == 4
    assert restored.player.inventory.gold_ids == ["gold1"]
    assert restored.collectibles == {}


def test_initialize_game_without_metadata_uses_defaults(tmp_path):
    dungeon_file = tmp_path / "dungeon.json"
    _dungeon().save(dungeon_file)
    state = initialize_game(dungeon_file, tmp_path / "missing.json")
    assert state.player.name == "Unknown Hero"
    assert state.riddle_solved is False


def test_initialize_game_without_player(tmp_path):
    dungeon_file = tmp_path / "dungeon.json"
    _dungeon(with_player=False).save(dungeon_file)
    with pytest.raises(ValueError):
        initialize_game(dungeon_file, tmp_path / "missing.json")


def test_initialize_game_missing_dungeon(tmp_path):
    with pytest.raises(FileNotFoundError):
        initialize_game(tmp_path / "nope.json", tmp_path / "missing.json")