"""Asking a chat model to call two greeting tools, then running the calls it makes."""

from __future__ import annotations

import argparse
import json
import os
from typing import Any, Callable, Optional

import httpx

DEFAULT_ENGINE_URL = "http://localhost:11434/v1/"
MODEL_ID = "qwen2:0.5b"

USER_QUESTION = """
		Say hello to Jean-Luc Picard 
		and Say hello to James Kirk 
		and make a Vulcan salute to Spock
	"""


def json_string_to_map(text: str) -> dict[str, Any]:
    """Decode a JSON object; raises ValueError for anything else."""
    result = json.loads(text)
    if result is None:
        return {}
    if not isinstance(result, dict):
        raise ValueError("JSON value is not an object")
    return result


def say_hello(arguments: Optional[dict[str, Any]]) -> str:
    name = (arguments or {}).get("name")
    return "Hello " + name if isinstance(name, str) else ""


def vulcan_salute(arguments: Optional[dict[str, Any]]) -> str:
    name = (arguments or {}).get("name")
    return "Live long and prosper " + name if isinstance(name, str) else ""


_TOOL_HANDLERS: dict[str, Callable[[Optional[dict[str, Any]]], str]] = {
    "say_hello": say_hello,
    "vulcan_salute": vulcan_salute,
}


def dispatch_tool_call(name: str, arguments: str) -> str:
    """Run one tool call given its name and JSON-encoded arguments."""
    handler = _TOOL_HANDLERS.get(name)
    if handler is None:
        return f"Unknown function call: {name}"
    try:
        args = json_string_to_map(arguments)
    except ValueError:
        args = {}
    return handler(args)


def _name_tool(name: str, description: str) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": {"name": {"type": "string"}},
                "required": ["name"],
            },
        },
    }


def build_request(model: str = MODEL_ID) -> dict[str, Any]:
    """The chat completion request offering both tools."""
    return {
        "model": model,
        "messages": [{"role": "user", "content": USER_QUESTION}],
        "tools": [
            _name_tool("say_hello", "Say hello to the given person name"),
            _name_tool("vulcan_salute", "Give a vulcan salute to the given person name"),
        ],
        "parallel_tool_calls": True,
        "temperature": 0.0,
    }


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="function-calling", description="Let a chat model call greeting tools.")
    parser.add_argument("--model", default=MODEL_ID)
    args = parser.parse_args(argv)

    base_url = os.environ.get("ENGINE_BASE_URL") or DEFAULT_ENGINE_URL
    with httpx.Client(timeout=120.0) as client:
        response = client.post(base_url.rstrip("/") + "/chat/completions",
                               json=build_request(args.model))
        response.raise_for_status()
        completion = response.json()

    tool_calls = completion["choices"][0]["message"].get("tool_calls") or []
    if not tool_calls:
        print("😡 No function call")
        print()
        return 0
    for call in tool_calls:
        function = call.get("function") or {}
        print(dispatch_tool_call(function.get("name", ""), function.get("arguments") or ""))
    return 0