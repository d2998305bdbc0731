import json

import httpx
import pytest
import respx

from dungeonmcp.function_calling import (
    MODEL_ID,
    build_request,
    dispatch_tool_call,
    json_string_to_map,
    main,
    say_hello,
    vulcan_salute,
)


def test_json_string_to_map_object():
    assert json_string_to_map('{"name": "Spock"}') == {"name": "Spock"}


def test_json_string_to_map_null_is_empty():
    assert json_string_to_map("null") == {}


@pytest.mark.parametrize("text", ["not json", "[1, 2]", ""])
def test_json_string_to_map_rejects(text):
    with pytest.raises(ValueError):
        json_string_to_map(text)


def test_say_hello():
    assert say_hello({"name": "Jean-Luc Picard"}) == "Hello Jean-Luc Picard"
    assert say_hello({"name": 3}) == ""
    assert say_hello(None) == ""


def test_vulcan_salute():
    assert vulcan_salute({"name": "Spock"}) == "Live long and prosper Spock"
    assert vulcan_salute({}) == ""


def test_dispatch_known_and_unknown():
    assert dispatch_tool_call("say_hello", '{"name": "James Kirk"}') == "Hello James Kirk"
    assert dispatch_tool_call("beam_up", "{}") == "Unknown function call: beam_up"


def test_dispatch_bad_arguments_gives_empty_result():
    assert dispatch_tool_call("vulcan_salute", "{broken") == ""


def test_build_request():
    request = build_request("some-model")
    assert request["model"] == "some-model"
    assert [t["function"]["name"] for t in request["tools"]] == ["say_hello", "vulcan_salute"]
    assert request["parallel_tool_calls"] is True
    assert request["temperature"] == 0.0
    assert request["messages"][0]["role"] == "user"


def _tool_call(call_id, name, arguments):
    return {"id": call_id, "type": "function",
            "function": {"name": name, "arguments": json.dumps(arguments)}}


def test_main_runs_tool_calls(monkeypatch, capsys):
    monkeypatch.setenv("ENGINE_BASE_URL", "http://engine.test/v1/")
    completion = {"choices": [{"message": {"role": "assistant", "content": "", "tool_calls": [
        _tool_call("a", "say_hello", {"name": "James Kirk"}),
        _tool_call("b", "vulcan_salute", {"name": "Spock"}),
        _tool_call("c", "warp", {}),
    ]}}]}
    with respx.mock() as router:
        route = router.post("http://engine.test/v1/chat/completions").mock(
            return_value=httpx.Response(200, json=completion))
        assert main([]) == 0
        sent = json.loads(route.calls.last.request.content)
    assert sent["model"] == MODEL_ID
    lines = capsys.readouterr().out.splitlines()
    assert lines == ["Hello James Kirk", "Live long and prosper Spock",
                     "Unknown function call: warp"]


def test_main_without_tool_calls(monkeypatch, capsys):
    monkeypatch.setenv("ENGINE_BASE_URL", "http://engine.test/v1")
    completion = {"choices": [{"message": {"role": "assistant", "content": "hi"}}]}
    with respx.mock() as router:
        router.post("http://engine.test/v1/chat/completions").mock(
            return_value=httpx.Response(200, json=completion))
        assert main([]) == 0
    assert "😡 No function call" in capsys.readouterr().out


def test_main_raises_on_server_error(monkeypatch):
    monkeypatch.setenv("ENGINE_BASE_URL", "http://engine.test/v1")
    with respx.mock() as router:
        router.post("http://engine.test/v1/chat/completions").mock(
            return_value=httpx.Response(500))
        with pytest.raises(httpx.HTTPStatusError):
            main([])