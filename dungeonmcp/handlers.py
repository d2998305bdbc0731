"""The game's tools: each takes JSON-like arguments and returns a JSON-ready result."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Callable, Optional

from dungeonmcp.combat import combat_round, counter_attack, flee, start_combat
from dungeonmcp.entities import MONSTER_KINDS, NPC_KINDS, Player
from dungeonmcp.game import GameState, parse_direction
from dungeonmcp.metadata import timestamped_filename

Arguments = Optional[dict[str, Any]]

_HELP_COMMANDS: dict[str, list[dict[str, str]]] = {
    "status": [
        {
            "tool": "get_game_status",
            "description": "Get current game status (combat state, riddle status, player info)",
            "parameters": "none",
            "example": "get_game_status",
        },
        {
            "tool": "save_game",
            "description": "Save current game state to file",
            "parameters": "filename_prefix (optional)",
            "example": "save_game",
        },
    ],
    "query": [
        {
            "tool": "get_current_room",
            "description": "Get detailed information about current room (exits, monsters, NPCs, items)",
            "parameters": "none",
            "example": "get_current_room",
        },
        {
            "tool": "get_inventory",
            "description": "View player stats and inventory (health, strength, gold, potions)",
            "parameters": "none",
            "example": "get_inventory",
        },
        {
            "tool": "get_map",
            "description": "Display ASCII art map of entire dungeon with player position",
            "parameters": "none",
            "example": "get_map",
        },
        {
            "tool": "get_help",
            "description": "Show this help information with all available commands",
            "parameters": "none",
            "example": "get_help",
        },
    ],
    "actions": [
        {
            "tool": "move",
            "description": "Move player in a direction (flees from combat if in combat)",
            "parameters": "direction: north|south|east|west",
            "example": "move direction=north",
        },
        {
            "tool": "collect_items",
            "description": "Collect all items in current room (gold and potions)",
            "parameters": "none",
            "example": "collect_items",
        },
        {
            "tool": "drink_potion",
            "description": "Drink a health potion to restore 20 HP (monster attacks if in combat)",
            "parameters": "none",
            "example": "drink_potion",
        },
        {
            "tool": "talk_to_npcs",
            "description": "Talk to all NPCs in current room (elf, dwarf, human, sphinx)",
            "parameters": "none",
            "example": "talk_to_npcs",
        },
        {
            "tool": "answer_riddle",
            "description": "Answer the Sphinx's riddle (hint: what speaks without a mouth?)",
            "parameters": "answer: string",
            "example": "answer_riddle answer=echo",
        },
    ],
    "combat": [
        {
            "tool": "start_combat",
            "description": "Initiate combat with a monster in current room",
            "parameters": "none",
            "example": "start_combat",
        },
        {
            "tool": "attack",
            "description": "Attack current enemy (must be in combat)",
            "parameters": "none",
            "example": "attack",
        },
    ],
}

_HELP_TIPS = [
    "Use get_current_room to see what's in your current location",
    "Talk to NPCs for hints and information",
    "Collect potions before entering combat",
    "The Sphinx's riddle answer is: echo",
    "Moving while in combat will flee the battle",
    "Check get_game_status to see if you're in combat",
]


def generate_timestamp(now: Optional[datetime] = None) -> str:
    """A YYYYMMDD_HHMMSS timestamp for save file names."""
    return timestamped_filename("temp", now)[5:20]


def _to_json(value: Any) -> str:
    try:
        return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError):
        return '{"error": "failed to marshal JSON"}'


def _string_param(arguments: Arguments, key: str) -> str:
    args = arguments or {}
    if key not in args:
        raise ValueError(f"missing required parameter: {key}")
    value = args[key]
    if not isinstance(value, str):
        raise ValueError(f"parameter {key} must be a string")
    return value


class DungeonTools:
    """The tool handlers of one single-player game.

    Handlers return plain dicts; ``call`` dispatches by tool name and returns
    JSON text. A fatal blow to the player raises ``combat.GameOver``.
    """

    def __init__(self, state: GameState, rng: Any = None, data_dir: str = "./data") -> None:
        self.state = state
        self.rng = rng
        self.data_dir = data_dir.rstrip("/") or "."
        self._handlers: dict[str, Callable[[Arguments], dict[str, Any]]] = {
            "get_game_status": lambda _: self.get_game_status(),
            "save_game": self.save_game,
            "get_current_room": lambda _: self.get_current_room(),
            "get_inventory": lambda _: self.get_inventory(),
            "get_map": lambda _: self.get_map(),
            "get_help": lambda _: self.get_help(),
            "move": self.move,
            "collect_items": lambda _: self.collect_items(),
            "drink_potion": lambda _: self.drink_potion(),
            "talk_to_npcs": self.talk_to_npcs,
            "answer_riddle": self.answer_riddle,
            "start_combat": lambda _: self.start_combat(),
            "attack": lambda _: self.attack(),
        }

    @property
    def tool_names(self) -> list[str]:
        return list(self._handlers)

    @property
    def _player(self) -> Player:
        if self.state.player is None:
            raise ValueError("no player in the game")
        return self.state.player

    def call(self, name: str, arguments: Arguments = None) -> str:
        """Run a tool by name and return its result as JSON text."""
        handler = self._handlers.get(name)
        if handler is None:
            raise ValueError(f"unknown tool: {name}")
        return _to_json(handler(arguments))

    # Status

    def get_game_status(self) -> dict[str, Any]:
        player = self._player
        return {
            "in_combat": self.state.in_combat,
            "riddle_solved": self.state.riddle_solved,
            "player": {
                "name": player.name,
                "race": player.race,
                "class": player.class_,
                "health": player.health,
                "strength": player.strength,
            },
        }

    def save_game(self, arguments: Arguments = None) -> dict[str, Any]:
        prefix = "dungeon_generated"
        value = (arguments or {}).get("filename_prefix")
        if isinstance(value, str) and value:
            prefix = value
        dungeon_path = f"{self.data_dir}/{prefix}_{generate_timestamp()}.json"
        metadata_path = f"{self.data_dir}/{prefix}_metadata_{generate_timestamp()}.json"
        result: dict[str, Any] = {
            "success": True,
            "dungeon_path": dungeon_path,
            "metadata_path": metadata_path,
        }
        try:
            self.state.save(dungeon_path, metadata_path)
        except (OSError, ValueError) as exc:
            result["success"] = False
            result["error"] = str(exc)
        return result

    # Queries

    def get_current_room(self) -> dict[str, Any]:
        room = self.state.current_room()
        if room is None:
            return {"error": "room not found"}

        exits = []
        for direction, target_id in room.connections.items():
            target = self.state.dungeon.room(target_id)
            exits.append({
                "direction": direction.value,
                "target_room_id": target_id,
                "target_name": target.name if target else "",
            })

        monsters = []
        npcs = []
        seen_monsters: set[str] = set()
        seen_npcs: set[str] = set()
        for char in room.chars:
            if char.kind in MONSTER_KINDS and char.object_id not in seen_monsters:
                seen_monsters.add(char.object_id)
                monster = self.state.monsters.get(char.object_id)
                if monster is not None:
                    monsters.append({
                        "type": char.kind,
                        "health": monster.health,
                        "strength": monster.strength,
                    })
            elif char.kind in NPC_KINDS and char.object_id not in seen_npcs:
                seen_npcs.add(char.object_id)
                npcs.append({"type": char.kind, "id": char.object_id})

        items = [
            {"type": kind, "count": len(ids)}
            for kind, ids in self.state.collectibles_in_room(room.id).items()
        ]

        return {
            "room": {
                "id": room.id,
                "name": room.name,
                "description": room.description,
                "exits": exits,
                "monsters": monsters,
                "npcs": npcs,
                "items": items,
            }
        }

    def get_inventory(self) -> dict[str, Any]:
        player = self._player
        return {
            "player": {
                "name": player.name,
                "race": player.race,
                "class": player.class_,
                "health": player.health,
                "strength": player.strength,
                "inventory": {
                    "gold_coins": player.inventory.gold_coins,
                    "potions": player.inventory.potions,
                },
            }
        }

    def get_map(self) -> dict[str, Any]:
        return {"map": self.state.dungeon.render_map(self._player.room_id)}

    def get_help(self) -> dict[str, Any]:
        in_combat = self.state.in_combat
        player = self._player
        if in_combat:
            actions = ["attack", "drink_potion", "move (to flee)"]
        else:
            actions = ["move", "collect_items", "talk_to_npcs", "start_combat",
                       "get_current_room", "get_map"]
        return {
            "game_name": "Dungeon RPG",
            "version": "1.0.0",
            "current_mode": "combat" if in_combat else "exploration",
            "commands": {group: [dict(e) for e in entries]
                         for group, entries in _HELP_COMMANDS.items()},
            "current_context": {
                "in_combat": in_combat,
                "riddle_solved": self.state.riddle_solved,
                "player_health": player.health,
                "player_potions": player.inventory.potions,
                "available_actions": actions,
            },
            "tips": list(_HELP_TIPS),
        }

    # Actions

    def move(self, arguments: Arguments = None) -> dict[str, Any]:
        try:
            text = _string_param(arguments, "direction")
        except ValueError as exc:
            return {"success": False, "message": str(exc)}
        direction = parse_direction(text)
        if direction is None:
            return {"success": False,
                    "message": "Invalid direction. Use: north, south, east, or west"}

        fled = self.state.in_combat
        if fled:
            flee(self.state)
        success = self.state.move_player(direction)
        result: dict[str, Any] = {"success": success, "fled_combat": fled and success}
        if success:
            room = self.state.current_room()
            if room is not None:
                result["new_room"] = {
                    "id": room.id,
                    "name": room.name,
                    "description": room.description,
                }
                result["message"] = f"Moved {direction.value} to {room.name}"
        else:
            result["message"] = "Cannot move in that direction"
        return result

    def collect_items(self) -> dict[str, Any]:
        if self.state.current_room() is None:
            return {"items_collected": []}
        collected = self.state.collect_items()
        player = self._player
        return {
            "items_collected": collected,
            "inventory": {
                "gold_coins": player.inventory.gold_coins,
                "potions": player.inventory.potions,
            },
        }

    def drink_potion(self) -> dict[str, Any]:
        player = self._player
        if player.inventory.potions <= 0:
            return {"success": False, "message": "No potions available", "potions_left": 0}
        old_health = player.health
        success = player.drink_potion()
        result: dict[str, Any] = {
            "success": success,
            "health_gained": player.health - old_health,
            "current_health": player.health,
            "potions_left": player.inventory.potions,
        }
        if self.state.in_combat:
            result["monster_attacked"] = True
            counter_attack(self.state, self.rng)
        else:
            result["monster_attacked"] = False
        return result

    def talk_to_npcs(self, arguments: Arguments = None) -> dict[str, Any]:
        value = (arguments or {}).get("npc_type")
        target = value.strip().lower() if isinstance(value, str) else ""

        room = self.state.current_room()
        if room is None:
            return {"success": False, "message": "Room not found"}

        found_types: list[str] = []
        seen: set[str] = set()
        for char in room.chars:
            if char.kind in NPC_KINDS and char.object_id not in seen:
                seen.add(char.object_id)
                found_types.append(char.kind)

        dialogues = [d.to_dict() for d in self.state.npc_dialogues(target or None)]

        if target and not dialogues:
            return {
                "success": False,
                "message": f"NPC type '{target}' not found in this room",
                "available_npcs": found_types,
                "conversations": [],
            }
        if not found_types:
            return {
                "success": False,
                "message": "No NPCs in this room",
                "available_npcs": [],
                "conversations": [],
            }
        return {"success": True, "conversations": dialogues, "available_npcs": found_types}

    def answer_riddle(self, arguments: Arguments = None) -> dict[str, Any]:
        try:
            answer = _string_param(arguments, "answer")
        except ValueError:
            return {"correct": False, "message": "Answer required"}
        correct, message = self.state.answer_riddle(answer)
        return {"correct": correct, "message": message,
                "riddle_solved": self.state.riddle_solved}

    # Combat

    def start_combat(self) -> dict[str, Any]:
        if self.state.current_room() is None:
            return {"success": False, "message": "Room not found"}
        if self.state.in_combat:
            return {"success": False, "message": "Already in combat"}
        monster = start_combat(self.state)
        if monster is None:
            return {"success": False, "message": "No monsters in this room"}
        player = self._player
        return {
            "success": True,
            "enemy": {"type": monster.kind, "health": monster.health,
                      "strength": monster.strength},
            "player": {"health": player.health, "strength": player.strength},
        }

    def attack(self) -> dict[str, Any]:
        if not self.state.in_combat or self.state.current_enemy is None:
            return {"combat_ended": True, "message": "Not in combat"}
        try:
            combat_round(self.state, self.rng)
        except ValueError:
            pass
        ended = not self.state.in_combat
        victor = ""
        if ended:
            victor = "player" if self._player.health > 0 else "monster"
        return {"combat_ended": ended, "victor": victor}