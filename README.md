# dungeonmcp

A small dungeon role-playing game meant to be played by an AI agent through
tool calls, together with two command-line clients for OpenAI-compatible chat
engines: one shows plain function calling, the other lets a model explore a
dungeon through the tools of an MCP server.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## The game as a library

A game is loaded from two JSON files: the dungeon (rooms, their exits and the
characters and items placed in them) and the entity metadata (health,
strength, player details and inventory, riddle status).

```python
from dungeonmcp.loader import initialize_game
from dungeonmcp.handlers import DungeonTools

state = initialize_game("./data/dungeon_generated.json", "./data/dungeon_metadata.json")
tools = DungeonTools(state)

print(tools.call("get_current_room"))
print(tools.call("move", {"direction": "north"}))
```

`initialize_game` falls back to default stats when the metadata file is
missing or unreadable, and raises `ValueError` when the dungeon holds no player.

`DungeonTools.call(name, arguments)` runs a tool by name and returns its result
as JSON text; each tool is also a method returning a plain dict. A blow that
brings the player's health to zero raises `dungeonmcp.combat.GameOver`.

| Tool | Arguments | What it does |
|------|-----------|--------------|
| `get_game_status` | — | Combat state, riddle state and player info |
| `save_game` | `filename_prefix` (optional) | Saves dungeon and metadata to timestamped files in the data directory (default `./data`) |
| `get_current_room` | — | Exits, monsters, NPCs and items of the current room |
| `get_inventory` | — | Player stats, gold and potions |
| `get_map` | — | Text map of the whole dungeon, marking the player's room |
| `get_help` | — | All commands, the current mode and tips |
| `move` | `direction`: north, south, east or west (or n, s, e, w) | Moves the player; moving during combat flees it |
| `collect_items` | — | Picks up all gold and potions in the room |
| `drink_potion` | — | Restores 5 health; a monster in combat strikes back |
| `talk_to_npcs` | `npc_type` (optional) | Dialogue from the elf, dwarf, human or sphinx in the room |
| `answer_riddle` | `answer` | Answers the sphinx's riddle |
| `start_combat` | — | Engages the first monster in the room |
| `attack` | — | Plays one combat round |

Combat rounds roll 3d6 plus strength for each side; the higher total wins the
round and deals half the difference, rounded up, as damage. Pass a
`random.Random` as `rng` to `DungeonTools` for repeatable fights.

The pieces underneath can be used on their own: `dungeonmcp.dungeon.Dungeon`
(rooms, loading and saving, `render_map`), `dungeonmcp.game.GameState`
(exploration, items, NPC talk, the riddle, `describe_room` and the interactive
`talk_to_npcs`), `dungeonmcp.combat` and `dungeonmcp.metadata`.

## Function-calling demo

```
dungeonmcp-hello [--model MODEL]
```

Sends one question to an OpenAI-compatible chat engine with two tools,
`say_hello` and `vulcan_salute`, and prints the result of every tool call the
model makes. The engine address comes from `ENGINE_BASE_URL`
(default `http://localhost:11434/v1/`); the model defaults to `qwen2:0.5b`.

## Dungeon explorer

```
dungeonmcp-explorer
```

Connects to an MCP server over streamable HTTP, lists its tools and then reads
questions from the terminal. Each question goes to a tool-calling model, whose
calls are run against the server; the results are then turned into a report by
a second model and streamed back. A `get_map` result is printed straight to the
terminal instead. Type `/bye` to leave.

Settings come from the environment:

- `MCP_GATEWAY_URL` — MCP server address (default `http://localhost:9011`)
- `ENGINE_BASE_URL` — chat engine address (default `http://localhost:11434/v1`)
- `TOOLS_MODEL` — model that makes the tool calls (default `qwen2:0.5b`)
- `BUDDY_MODEL` — model that writes the report (default `qwen2:0.5b`)

## What is not included

The package has no server command: it does not serve the game's tools over
HTTP or MCP itself. The game runs in-process through `DungeonTools`, and the
explorer needs an MCP server that is run separately.