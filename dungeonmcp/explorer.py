"""An interactive explorer: a chat model plays the dungeon through its MCP tools."""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any, Iterator, Optional, Union

import httpx

DEFAULT_GATEWAY_URL = "http://localhost:9011"
DEFAULT_ENGINE_URL = "http://localhost:11434/v1"
DEFAULT_MODEL = "qwen2:0.5b"
PROTOCOL_VERSION = "2025-03-26"

MAP_DISPLAYED = '{"map": "Displayed in terminal"}'
TOOL_FAILED = '{"error":"I think the Dungeon Master is drunk"}'
MAX_TOOL_ROUNDS = 10

_GREEN = "\033[32m"
_BLUE = "\033[34m"
_RESET = "\033[0m"
_SEPARATOR = "─" * 50

BUDDY_INSTRUCTIONS = """\
You are Bud, a helpful AI assistant.
You are an expert to create fancy reports about a text-based adventure game
based on the interactions of another AI agent called Zephyr with the game world.
You will receive information in a JSON format about the actions taken by Zephyr and the results of those actions.
Your goal is to create a comprehensive and engaging report of the adventure so far.
The format of the report need to be very user friendly and engaging.
Use markdown formatting where appropriate to enhance readability.
Add a touch of humor and personality to make the report more enjoyable to read.
Add emojis where appropriate to enhance the tone of the report.
"""

ZEPHYR_INSTRUCTIONS = """\
You are Zephyr, a helpful AI assistant.
You are playing a text-based adventure game where you can call functions to interact with the game world.
Use the functions to explore the dungeon, move around, and get information about your surroundings.
I repeat here the list of the available functions you can call:

- answer_riddle - Answer the Sphinx's riddle
- attack - Attack the current enemy (must be in combat)
- collect_items - Collect all items (gold, potions) in the current room
- drink_potion - Drink a potion to restore health (costs 1 potion, restores 5 health)
- get_current_room - Get detailed information about the current room
- get_game_status - Get current game status including combat state, riddle state, and player info
- get_help - Get comprehensive help about available commands, their usage, and current game context
- get_inventory - Get player inventory and stats
- get_map - Get ASCII art map of the entire dungeon
- move - Move the player in a direction (north, south, east, west)
- save_game - Save the current game state to files
- start_combat - Initiate combat with a monster in the current room
- talk_to_npcs - Talk to NPCs in the current room
"""


def _read_message(response: httpx.Response, request_id: int) -> dict[str, Any]:
    """The JSON-RPC answer in a plain JSON or an event-stream response."""
    content_type = response.headers.get("content-type", "")
    if not content_type.startswith("text/event-stream"):
        return response.json()
    data_lines: list[str] = []
    for line in response.text.splitlines() + [""]:
        if line.startswith("data:"):
            data_lines.append(line[5:].lstrip())
        elif not line and data_lines:
            message = json.loads("\n".join(data_lines))
            data_lines = []
            if isinstance(message, dict) and message.get("id") == request_id:
                return message
    raise ValueError("no answer to the request in the event stream")


class McpClient:
    """A client for an MCP server over streamable HTTP."""

    def __init__(self, url: str, http_client: Optional[httpx.Client] = None,
                 timeout: float = 30.0) -> None:
        self.url = url
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout)
        self._session_id: Optional[str] = None
        self._next_id = 0
        self._initialized = False

    def __enter__(self) -> McpClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def _post(self, payload: dict[str, Any]) -> httpx.Response:
        headers = {"Accept": "application/json, text/event-stream"}
        if self._session_id:
            headers["Mcp-Session-Id"] = self._session_id
        response = self._http.post(self.url, json=payload, headers=headers)
        response.raise_for_status()
        session_id = response.headers.get("mcp-session-id")
        if session_id:
            self._session_id = session_id
        return response

    def _request(self, method: str, params: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        if method != "initialize":
            self._ensure_initialized()
        self._next_id += 1
        request_id = self._next_id
        payload: dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "method": method}
        if params is not None:
            payload["params"] = params
        message = _read_message(self._post(payload), request_id)
        error = message.get("error")
        if error:
            raise RuntimeError(f"{method} failed: {error.get('message', error)}")
        return message.get("result") or {}

    def _ensure_initialized(self) -> None:
        if self._initialized:
            return
        self._request("initialize", {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {},
            "clientInfo": {"name": "dungeon-explorer", "version": "1.0.0"},
        })
        self._post({"jsonrpc": "2.0", "method": "notifications/initialized"})
        self._initialized = True

    def list_tools(self) -> list[dict[str, Any]]:
        """Every tool the server offers."""
        tools: list[dict[str, Any]] = []
        cursor: Optional[str] = None
        while True:
            result = self._request("tools/list", {"cursor": cursor} if cursor else None)
            tools.extend(result.get("tools") or [])
            cursor = result.get("nextCursor")
            if not cursor:
                return tools

    def call_tool(self, name: str, arguments: Union[str, dict[str, Any], None]) -> str:
        """Call a tool and return its text content; a tool error raises RuntimeError."""
        if isinstance(arguments, str):
            arguments = json.loads(arguments) if arguments.strip() else {}
        result = self._request("tools/call", {"name": name, "arguments": arguments or {}})
        text = "".join(
            part.get("text", "") for part in result.get("content") or []
            if part.get("type") == "text"
        )
        if result.get("isError"):
            raise RuntimeError(text or f"tool {name} failed")
        return text


class ChatEngine:
    """An OpenAI-compatible chat completion endpoint with fixed model settings."""

    def __init__(self, base_url: str, model: str, temperature: Optional[float] = None,
                 top_p: Optional[float] = None, parallel_tool_calls: Optional[bool] = None,
                 system_instructions: str = "", http_client: Optional[httpx.Client] = None,
                 timeout: float = 120.0) -> None:
        self.url = base_url.rstrip("/") + "/chat/completions"
        self.model = model
        self.temperature = temperature
        self.top_p = top_p
        self.parallel_tool_calls = parallel_tool_calls
        self.system_instructions = system_instructions
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout)

    def __enter__(self) -> ChatEngine:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def _body(self, messages: list[dict[str, Any]], **extra: Any) -> dict[str, Any]:
        full = list(messages)
        if self.system_instructions:
            full.insert(0, {"role": "system", "content": self.system_instructions})
        body: dict[str, Any] = {"model": self.model, "messages": full}
        if self.temperature is not None:
            body["temperature"] = self.temperature
        if self.top_p is not None:
            body["top_p"] = self.top_p
        body.update({k: v for k, v in extra.items() if v is not None})
        return body

    def complete(self, messages: list[dict[str, Any]],
                 tools: Optional[list[dict[str, Any]]] = None) -> dict[str, Any]:
        """The assistant message answering ``messages``."""
        body = self._body(messages)
        if tools:
            body["tools"] = tools
            if self.parallel_tool_calls is not None:
                body["parallel_tool_calls"] = self.parallel_tool_calls
        response = self._http.post(self.url, json=body)
        response.raise_for_status()
        choices = response.json().get("choices") or []
        if not choices:
            raise ValueError("completion has no choices")
        return choices[0].get("message") or {}

    def stream(self, messages: list[dict[str, Any]]) -> Iterator[tuple[str, str, str]]:
        """Yield ("reasoning" | "content", chunk, finish_reason) as the answer streams in."""
        body = self._body(messages, stream=True)
        with self._http.stream("POST", self.url, json=body) as response:
            response.raise_for_status()
            for line in response.iter_lines():
                if not line.startswith("data:"):
                    continue
                data = line[5:].strip()
                if data == "[DONE]":
                    return
                chunk = json.loads(data)
                for choice in chunk.get("choices") or []:
                    delta = choice.get("delta") or {}
                    finish = choice.get("finish_reason") or ""
                    reasoning = delta.get("reasoning_content") or delta.get("reasoning") or ""
                    content = delta.get("content") or ""
                    if reasoning:
                        yield "reasoning", reasoning, ""
                    if content or finish:
                        yield "content", content, finish


def extract_map(json_result: str) -> str:
    """The map text held in a get_map result."""
    data = json.loads(json_result)
    if not isinstance(data, dict):
        raise ValueError("map result is not a JSON object")
    value = data.get("map", "")
    if not isinstance(value, str):
        raise ValueError("map field is not a string")
    return value


def execute_tool(client: McpClient, name: str, arguments: str) -> str:
    """Run a tool call for the model; maps are shown on the terminal instead.

    A failing call gives an error JSON text; an unreadable map raises ValueError.
    """
    print(f"{_GREEN}🟢 Executing function: {name} with arguments: {arguments}{_RESET}")
    try:
        result = client.call_tool(name, arguments)
    except (httpx.HTTPError, RuntimeError, ValueError) as exc:
        print(f"Failed when executing {name}, {arguments}: {exc}", file=sys.stderr)
        return TOOL_FAILED
    if name == "get_map":
        try:
            text = extract_map(result)
        except ValueError as exc:
            raise ValueError(f"failed to display map: {exc}") from exc
        print(_SEPARATOR)
        print(text)
        print(_SEPARATOR)
        return MAP_DISPLAYED
    return result


def _as_openai_tool(tool: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": tool.get("name", ""),
            "description": tool.get("description", ""),
            "parameters": tool.get("inputSchema") or {"type": "object", "properties": {}},
        },
    }


def _run_tools(engine: ChatEngine, client: McpClient, tools: list[dict[str, Any]],
               question: str) -> list[str]:
    messages: list[dict[str, Any]] = [{"role": "user", "content": question}]
    results: list[str] = []
    for _ in range(MAX_TOOL_ROUNDS):
        message = engine.complete(messages, tools)
        calls = message.get("tool_calls") or []
        if not calls:
            break
        messages.append({"role": "assistant", "content": message.get("content") or "",
                         "tool_calls": calls})
        for call in calls:
            function = call.get("function") or {}
            output = execute_tool(client, function.get("name", ""),
                                  function.get("arguments") or "{}")
            results.append(output)
            messages.append({"role": "tool", "tool_call_id": call.get("id", ""),
                             "content": output})
    return results


def _report(buddy: ChatEngine, results: list[str]) -> None:
    print(_SEPARATOR)
    messages = [
        {"role": "system", "content": ",".join(results)},
        {"role": "user", "content": "Make a report from the above data."},
    ]
    for kind, chunk, finish in buddy.stream(messages):
        if kind == "reasoning":
            print(f"{_BLUE}{chunk}{_RESET}", end="", flush=True)
            continue
        if chunk:
            print(chunk, end="", flush=True)
        if finish:
            print()
            print(f"Response finish reason: {finish}")


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="dungeon-explorer", description="Let a chat model explore the dungeon.")
    parser.parse_args(argv)

    gateway = os.environ.get("MCP_GATEWAY_URL") or DEFAULT_GATEWAY_URL
    engine_url = os.environ.get("ENGINE_BASE_URL") or DEFAULT_ENGINE_URL
    tools_model = os.environ.get("TOOLS_MODEL") or DEFAULT_MODEL
    buddy_model = os.environ.get("BUDDY_MODEL") or DEFAULT_MODEL

    with McpClient(gateway) as client, \
            ChatEngine(engine_url, buddy_model, temperature=0.8, top_p=0.9,
                       system_instructions=BUDDY_INSTRUCTIONS) as buddy, \
            ChatEngine(engine_url, tools_model, temperature=0.0, parallel_tool_calls=True,
                       system_instructions=ZEPHYR_INSTRUCTIONS) as zephyr:
        mcp_tools = client.list_tools()
        for tool in mcp_tools:
            print("Tool:", tool.get("name", ""), "-", tool.get("description", ""))
        print("=" * 50)
        tools = [_as_openai_tool(tool) for tool in mcp_tools]

        while True:
            try:
                question = input("🤖 Ask me something? ")
            except EOFError as exc:
                print(f"failed to get input: {exc or 'end of input'}", file=sys.stderr)
                return 0
            if question.startswith("/bye"):
                print("👋 Goodbye!")
                break
            try:
                results = _run_tools(zephyr, client, tools, question)
            except (httpx.HTTPError, ValueError, KeyError) as exc:
                print(f"Error calling tools agent: {exc}", file=sys.stderr)
                continue
            print(results)
            if not results or results[0] != MAP_DISPLAYED:
                try:
                    _report(buddy, results)
                except (httpx.HTTPError, ValueError) as exc:
                    print(f"Error calling buddy agent: {exc}", file=sys.stderr)
    return 0