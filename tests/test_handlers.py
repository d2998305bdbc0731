import json
from datetime import datetime
from pathlib import Path

import pytest

from dungeonmcp.dungeon import CharObject, Direction, Dungeon, Room
from dungeonmcp.game import GameState, RIDDLE_CORRECT
from dungeonmcp.handlers import DungeonTools, generate_timestamp
from dungeonmcp.loader import find_player, load_entities
from dungeonmcp.metadata import DungeonMetadata


class FixedRng:
    def __init__(self, values):
        self.values = list(values)
        self.index = 0

    def randint(self, a, b):
        value = self.values[self.index % len(self.values)]
        self.index += 1
        return value


def make_state():
    hall = Room(
        id=1,
        name="Hall",
        description="A wide hall",
        connections={Direction.NORTH: 2},
        chars=[
            CharObject("player", "p1"),
            CharObject("gold", "g1"),
            CharObject("gold", "g2"),
            CharObject("potion", "y1"),
            CharObject("elf", "e1"),
            CharObject("sphinx", "x1"),
            CharObject("sphinx", "x1"),
        ],
    )
    crypt = Room(
        id=2,
        name="Crypt",
        description="Cold and dark",
        connections={Direction.SOUTH: 1},
        chars=[CharObject("goblin", "m1")],
    )
    dungeon = Dungeon([hall, crypt])
    metadata = DungeonMetadata()
    state = GameState(dungeon=dungeon)
    load_entities(state, metadata)
    state.player = find_player(dungeon, metadata)
    return state


@pytest.fixture
def tools():
    return DungeonTools(make_state(), rng=FixedRng([6]))


def test_generate_timestamp_format():
    assert generate_timestamp(datetime(2024, 1, 2, 3, 4, 5)) == "20240102_030405"


def test_game_status(tools):
    status = tools.get_game_status()
    assert status["in_combat"] is False
    assert status["riddle_solved"] is False
    assert status["player"]["name"] == "Unknown Hero"
    assert status["player"]["class"] == "Warrior"


def test_current_room(tools):
    room = tools.get_current_room()["room"]
    assert room["id"] == 1
    assert room["exits"] == [
        {"direction": "north", "target_room_id": 2, "target_name": "Crypt"}
    ]
    assert room["npcs"] == [{"type": "elf", "id": "e1"}, {"type": "sphinx", "id": "x1"}]
    assert room["monsters"] == []
    assert {i["type"]: i["count"] for i in room["items"]} == {"gold": 2, "potion": 1}


def test_collect_items_updates_inventory(tools):
    result = tools.collect_items()
    assert [i["id"] for i in result["items_collected"]] == ["g1", "g2", "y1"]
    assert result["inventory"]["potions"] == 1
    assert result["inventory"]["gold_coins"] == 200
    assert tools.get_current_room()["room"]["items"] == []
    assert tools.get_inventory()["player"]["inventory"] == result["inventory"]


def test_drink_potion_without_potions(tools):
    assert tools.drink_potion() == {
        "success": False, "message": "No potions available", "potions_left": 0
    }


def test_drink_potion_after_collecting(tools):
    tools.collect_items()
    before = tools.get_game_status()["player"]["health"]
    result = tools.drink_potion()
    assert result["success"] is True
    assert result["current_health"] == before + result["health_gained"]
    assert result["potions_left"] == 0
    assert result["monster_attacked"] is False


def test_move_errors(tools):
    assert tools.move({}) == {
        "success": False, "message": "missing required parameter: direction"
    }
    assert tools.move({"direction": 3})["message"] == "parameter direction must be a string"
    assert tools.move({"direction": "up"})["success"] is False
    blocked = tools.move({"direction": "east"})
    assert blocked["success"] is False
    assert blocked["message"] == "Cannot move in that direction"


def test_move_north(tools):
    result = tools.move({"direction": "N"})
    assert result["success"] is True
    assert result["fled_combat"] is False
    assert result["new_room"]["id"] == 2
    assert result["message"] == "Moved north to Crypt"
    assert tools.state.player.room_id == 2


def test_talk_to_all_npcs(tools):
    result = tools.talk_to_npcs()
    assert result["success"] is True
    assert result["available_npcs"] == ["elf", "sphinx"]
    assert [c["npc_id"] for c in result["conversations"]] == ["e1", "x1"]


def test_talk_to_missing_npc_type(tools):
    result = tools.talk_to_npcs({"npc_type": " Dwarf "})
    assert result["success"] is False
    assert result["message"] == "NPC type 'dwarf' not found in this room"
    assert result["available_npcs"] == ["elf", "sphinx"]


def test_talk_in_room_without_npcs(tools):
    tools.move({"direction": "north"})
    result = tools.talk_to_npcs()
    assert result["message"] == "No NPCs in this room"
    assert result["conversations"] == []


def test_answer_riddle(tools):
    assert tools.answer_riddle({}) == {"correct": False, "message": "Answer required"}
    result = tools.answer_riddle({"answer": " Echo "})
    assert result == {"correct": True, "message": RIDDLE_CORRECT, "riddle_solved": True}
    sphinx = tools.talk_to_npcs({"npc_type": "sphinx"})["conversations"][0]
    assert sphinx["dialogue"].startswith("You have proven your wisdom")


def test_start_combat(tools):
    assert tools.start_combat()["message"] == "No monsters in this room"
    tools.move({"direction": "north"})
    result = tools.start_combat()
    assert result["success"] is True
    assert result["enemy"]["type"] == "goblin"
    assert tools.start_combat()["message"] == "Already in combat"
    assert tools.get_help()["current_mode"] == "combat"


def test_attack_outside_combat(tools):
    assert tools.attack() == {"combat_ended": True, "message": "Not in combat"}


def test_attack_until_victory():
    state = make_state()
    tools = DungeonTools(state, rng=FixedRng([6, 6, 6, 1, 1, 1]))
    tools.move({"direction": "north"})
    tools.start_combat()
    results = [tools.attack() for _ in range(10) if state.in_combat]
    assert results[-1] == {"combat_ended": True, "victor": "player"}
    assert all(r["combat_ended"] is False for r in results[:-1])
    assert "m1" not in state.monsters
    assert tools.get_current_room()["room"]["monsters"] == []


def test_move_flees_combat(tools):
    tools.move({"direction": "north"})
    tools.start_combat()
    result = tools.move({"direction": "south"})
    assert result["fled_combat"] is True
    assert tools.state.in_combat is False


def test_drink_in_combat_triggers_counter_attack():
    state = make_state()
    tools = DungeonTools(state, rng=FixedRng([1]))
    tools.collect_items()
    tools.move({"direction": "north"})
    tools.start_combat()
    before = state.player.health
    result = tools.drink_potion()
    assert result["monster_attacked"] is True
    assert state.player.health < result["current_health"]
    assert state.player.health < before + result["health_gained"]


def test_save_game(tmp_path):
    tools = DungeonTools(make_state(), data_dir=str(tmp_path))
    result = tools.save_game({"filename_prefix": "run"})
    assert result["success"] is True
    assert Path(result["dungeon_path"]).name.startswith("run_")
    assert Path(result["metadata_path"]).name.startswith("run_metadata_")
    saved = json.loads(Path(result["metadata_path"]).read_text(encoding="utf-8"))
    assert saved["entities"][0]["id"] == "p1"
    assert Dungeon.load(result["dungeon_path"]).room(1).name == "Hall"


def test_save_game_failure(tmp_path):
    tools = DungeonTools(make_state(), data_dir=str(tmp_path / "missing"))
    result = tools.save_game()
    assert result["success"] is False
    assert result["error"].startswith("error saving dungeon")
    assert "dungeon_generated_" in result["dungeon_path"]


def test_get_map_and_help(tools):
    assert "Room #1: Hall" in tools.get_map()["map"]
    help_data = tools.get_help()
    assert help_data["current_mode"] == "exploration"
    assert "The Sphinx's riddle answer is: echo" in help_data["tips"]
    assert [c["tool"] for c in help_data["commands"]["combat"]] == ["start_combat", "attack"]


def test_call_returns_json(tools):
    text = tools.call("move", {"direction": "north"})
    assert json.loads(text)["new_room"]["name"] == "Crypt"
    assert json.loads(tools.call("get_game_status")) == tools.get_game_status()


def test_call_unknown_tool(tools):
    with pytest.raises(ValueError, match="unknown tool"):
        tools.call("dance")