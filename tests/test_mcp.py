import pytest

from bytevision_mcp.mcp import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PROTOCOL_VERSION,
    ToolRegistry,
    text_response,
)

SCHEMA = {"type": "object", "properties": {"text": {"type": "string"}}}


def _echo(arguments):
    text = arguments.get("text", "")
    if not isinstance(text, str):
        raise ValueError("text must be a string")
    return text_response(text)


@pytest.fixture
def registry():
    reg = ToolRegistry(name="test-server", version="9.9")
    reg.register("echo", "Echo text back", SCHEMA, _echo)
    return reg


def _request(method, params=None, request_id=1):
    message = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        message["params"] = params
    return message


def test_text_response_shape():
    assert text_response("hi") == {"content": [{"type": "text", "text": "hi"}]}


def test_initialize_reports_server(registry):
    reply = registry.handle_message(_request("initialize", {"protocolVersion": PROTOCOL_VERSION}))
    assert reply["id"] == 1
    assert reply["result"]["protocolVersion"] == PROTOCOL_VERSION
    assert reply["result"]["serverInfo"] == {"name": "test-server", "version": "9.9"}
    assert "tools" in reply["result"]["capabilities"]


def test_ping_returns_empty_result(registry):
    assert registry.handle_message(_request("ping", request_id="abc")) == {
        "jsonrpc": "2.0",
        "id": "abc",
        "result": {},
    }


def test_tools_list(registry):
    reply = registry.handle_message(_request("tools/list"))
    assert reply["result"]["tools"] == [
        {"name": "echo", "description": "Echo text back", "inputSchema": SCHEMA}
    ]


def test_tools_call_runs_handler(registry):
    reply = registry.handle_message(
        _request("tools/call", {"name": "echo", "arguments": {"text": "hello"}})
    )
    assert reply["result"] == text_response("hello")


def test_tools_call_without_arguments(registry):
    reply = registry.handle_message(_request("tools/call", {"name": "echo"}))
    assert reply["result"] == text_response("")


def test_unknown_tool_is_invalid_params(registry):
    reply = registry.handle_message(_request("tools/call", {"name": "nope"}))
    assert reply["error"]["code"] == INVALID_PARAMS
    assert "nope" in reply["error"]["message"]


def test_handler_value_error_is_invalid_params(registry):
    reply = registry.handle_message(
        _request("tools/call", {"name": "echo", "arguments": {"text": 5}})
    )
    assert reply["error"]["code"] == INVALID_PARAMS
    assert reply["error"]["message"] == "text must be a string"


def test_handler_crash_is_internal_error():
    reg = ToolRegistry()

    def broken(arguments):
        raise RuntimeError("exploded")

    reg.register("broken", "", {}, broken)
    reply = reg.handle_message(_request("tools/call", {"name": "broken"}))
    assert reply["error"]["code"] == INTERNAL_ERROR


def test_non_object_arguments_rejected(registry):
    reply = registry.handle_message(_request("tools/call", {"name": "echo", "arguments": [1]}))
    assert reply["error"]["code"] == INVALID_PARAMS


def test_unknown_method(registry):
    reply = registry.handle_message(_request("resources/list", request_id=7))
    assert reply["id"] == 7
    assert reply["error"]["code"] == METHOD_NOT_FOUND


def test_notification_gets_no_reply(registry):
    assert registry.handle_message({"jsonrpc": "2.0", "method": "notifications/initialized"}) is None
    assert registry.handle_message({"jsonrpc": "2.0", "method": "unknown/thing"}) is None


@pytest.mark.parametrize(
    "message",
    [
        {"id": 1, "method": "ping"},
        {"jsonrpc": "1.0", "id": 1, "method": "ping"},
        {"jsonrpc": "2.0", "id": 1},
        [1, 2],
        "ping",
    ],
)
def test_invalid_request(registry, message):
    reply = registry.handle_message(message)
    assert reply["error"]["code"] == INVALID_REQUEST


def test_params_must_be_object(registry):
    reply = registry.handle_message(_request("tools/list", params=[1]))
    assert reply["error"]["code"] == INVALID_PARAMS


def test_duplicate_registration_rejected(registry):
    with pytest.raises(ValueError):
        registry.register("echo", "again", SCHEMA, _echo)