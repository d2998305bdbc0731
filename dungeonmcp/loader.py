"""Building a game state from saved dungeon and metadata files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from dungeonmcp.dungeon import Dungeon
from dungeonmcp.entities import (
    Inventory,
    GoldCoins,
    MagicPotion,
    MONSTER_KINDS,
    NPC_KINDS,
    Player,
    create_creature,
)
from dungeonmcp.game import GameState
from dungeonmcp.metadata import DungeonMetadata, load_metadata

log = logging.getLogger(__name__)

DEFAULT_DUNGEON_FILE = "./data/dungeon_generated.json"
DEFAULT_METADATA_FILE = "./data/dungeon_metadata.json"


def load_entities(state: GameState, metadata: DungeonMetadata) -> None:
    """Register every collectible, monster and NPC found in the dungeon's rooms."""
    for room in state.dungeon.rooms:
        for char in room.chars:
            kind, object_id = char.kind, char.object_id
            if kind == "gold":
                state.collectibles[object_id] = GoldCoins(object_id, room.id, amount=100)
            elif kind == "potion":
                state.collectibles[object_id] = MagicPotion(object_id, room.id, health=50)
            elif kind in MONSTER_KINDS or kind in NPC_KINDS:
                meta = metadata.get(object_id)
                creature = create_creature(
                    kind,
                    object_id,
                    room.id,
                    meta.health if meta else None,
                    meta.strength if meta else None,
                )
                registry = state.monsters if kind in MONSTER_KINDS else state.npcs
                registry[object_id] = creature


def find_player(dungeon: Dungeon, metadata: DungeonMetadata) -> Optional[Player]:
    """Build the player from the first player mark in the dungeon, or None."""
    for room in dungeon.rooms:
        for char in room.chars:
            if char.kind != "player":
                continue
            player = Player(id=char.object_id, room_id=room.id)
            meta = metadata.get(char.object_id)
            if meta is not None:
                player.name = meta.name or player.name
                player.race = meta.race or player.race
                player.class_ = meta.class_ or player.class_
                player.health = meta.health
                player.strength = meta.strength
                if meta.inventory is not None:
                    player.inventory = Inventory(
                        gold_coins=meta.inventory.gold_coins,
                        gold_ids=list(meta.inventory.gold_ids),
                        potions=meta.inventory.potions,
                        potion_ids=list(meta.inventory.potion_ids),
                    )
            return player
    return None


def initialize_game(
    dungeon_file: Union[str, Path] = DEFAULT_DUNGEON_FILE,
    metadata_file: Union[str, Path] = DEFAULT_METADATA_FILE,
) -> GameState:
    """Load a dungeon and its metadata into a ready-to-play game state.

    A missing or unreadable metadata file falls back to defaults; a dungeon
    without a player raises ValueError.
    """
    dungeon = Dungeon.load(dungeon_file)
    try:
        metadata = load_metadata(metadata_file)
    except (OSError, ValueError) as exc:
        log.warning("could not load metadata file: %s", exc)
        metadata = DungeonMetadata()

    state = GameState(dungeon=dungeon)
    load_entities(state, metadata)
    player = find_player(dungeon, metadata)
    if player is None:
        raise ValueError("player not found in dungeon")
    state.player = player
    state.riddle_solved = metadata.riddle_solved
    log.info(
        "dungeon loaded: %d rooms, player: %s (%s %s)",
        len(dungeon.rooms), player.name, player.race, player.class_,
    )
    return state