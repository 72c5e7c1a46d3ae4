"""A small Model Context Protocol tool server speaking JSON-RPC 2.0."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

_log = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

ToolHandler = Callable[[dict[str, Any]], dict[str, Any]]


def text_response(text: str) -> dict[str, Any]:
    """Build a tool result holding a single piece of text content."""
    return {"content": [{"type": "text", "text": text}]}


def error_message(request_id: Any, code: int, message: str) -> dict[str, Any]:
    """Build a JSON-RPC error response."""
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "error": {"code": code, "message": message},
    }


@dataclass(frozen=True)
class _Tool:
    name: str
    description: str
    schema: Mapping[str, Any]
    handler: ToolHandler


class _RpcError(Exception):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class ToolRegistry:
    """Holds the tools a server offers and answers MCP requests about them."""

    def __init__(self, name: str = "bytevision-mcp", version: str = "0.1.0") -> None:
        self.name = name
        self.version = version
        self._tools: dict[str, _Tool] = {}

    def register(
        self,
        name: str,
        description: str,
        schema: Mapping[str, Any],
        handler: ToolHandler,
    ) -> None:
        """Add a tool; its handler receives the call's arguments and returns a result."""
        if not name:
            raise ValueError("tool name must not be empty")
        if name in self._tools:
            raise ValueError(f"tool {name!r} is already registered")
        self._tools[name] = _Tool(name, description, dict(schema), handler)

    def handle_message(self, message: Any) -> dict[str, Any] | None:
        """Answer one decoded JSON-RPC message; notifications get ``None``."""
        if (
            not isinstance(message, dict)
            or message.get("jsonrpc") != JSONRPC_VERSION
            or not isinstance(message.get("method"), str)
        ):
            request_id = message.get("id") if isinstance(message, dict) else None
            return error_message(request_id, INVALID_REQUEST, "Invalid Request")

        is_notification = "id" not in message
        request_id = message.get("id")
        try:
            result = self._dispatch(message["method"], message.get("params"))
        except _RpcError as exc:
            if is_notification:
                return None
            return error_message(request_id, exc.code, exc.message)
        if is_notification:
            return None
        return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}

    def _dispatch(self, method: str, params: Any) -> dict[str, Any]:
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise _RpcError(INVALID_PARAMS, "params must be an object")

        if method == "initialize":
            return {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {"tools": {}},
                "serverInfo": {"name": self.name, "version": self.version},
            }
        if method == "ping" or method.startswith("notifications/"):
            return {}
        if method == "tools/list":
            return {
                "tools": [
                    {
                        "name": tool.name,
                        "description": tool.description,
                        "inputSchema": dict(tool.schema),
                    }
                    for tool in self._tools.values()
                ]
            }
        if method == "tools/call":
            return self._call_tool(params)
        raise _RpcError(METHOD_NOT_FOUND, f"Method not found: {method}")

    def _call_tool(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        tool = self._tools.get(name) if isinstance(name, str) else None
        if tool is None:
            raise _RpcError(INVALID_PARAMS, f"Unknown tool: {name}")
        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise _RpcError(INVALID_PARAMS, "arguments must be an object")
        try:
            return tool.handler(arguments)
        except (TypeError, ValueError) as exc:
            raise _RpcError(INVALID_PARAMS, str(exc)) from exc
        except Exception as exc:
            _log.exception("Tool %s failed", tool.name)
            raise _RpcError(INTERNAL_ERROR, str(exc)) from exc