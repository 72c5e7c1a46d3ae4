"""The completion service, its MCP tool and the HTTP server that carries it."""

from __future__ import annotations

import argparse
import json
import logging
import os
import signal
import sys
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

from dotenv import load_dotenv

from .config import DEFAULT_TIMEOUT_SECONDS, AppConfig, load_app_config
from .llama_args import LlamaCliArgs, load_llama_args
from .mcp import PARSE_ERROR, ToolRegistry, error_message, text_response
from .runner import CompletionError, CompletionTimeout, run_completion

SHUTDOWN_TIMEOUT = 30.0
DEFAULT_CONFIG_FILE = "byte-vision-cfg.env"
TOOL_NAME = "generate_completion"
TOOL_DESCRIPTION = "Generate text completion using the local LLM"
TOOL_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "prompt": {
            "type": "string",
            "description": "The prompt text to generate completion for",
        }
    },
    "required": ["prompt"],
}

_LOG_FORMAT = "[APP] %(asctime)s %(filename)s:%(lineno)d: %(message)s"
_DATE_FORMAT = "%Y/%m/%d %H:%M:%S"

_log = logging.getLogger("bytevision_mcp")

Runner = Callable[[str, Sequence[str], float], str]


@dataclass
class CompletionService:
    """Turns a prompt into a llama-cli run and wraps the outcome as a tool result."""

    app: AppConfig
    llama: LlamaCliArgs
    runner: Runner = field(default=run_completion)

    def prepare_args(self, prompt: str) -> list[str]:
        """Configured arguments with any ``--prompt`` pair replaced by ``prompt`` at the end."""
        args: list[str] = []
        configured = iter(self.llama.to_argv())
        for arg in configured:
            if arg == "--prompt":
                next(configured, None)
                continue
            args.append(arg)
        args.extend(("--prompt", prompt))
        _log.info("Prepared llama args with %d parameters", len(args))
        return args

    def complete(self, prompt: str) -> dict[str, Any]:
        """Run a completion for ``prompt``; failures come back as error text."""
        started = time.monotonic()
        try:
            return self._complete(prompt)
        finally:
            _log.info("Request completed in %.3fs", time.monotonic() - started)

    def _complete(self, prompt: str) -> dict[str, Any]:
        if prompt == "":
            _log.info("Empty prompt received")
            return text_response("Error: Prompt cannot be empty")

        _log.info("Handling completion request for prompt: %s...", prompt[:100])
        timeout = self.app.timeout_seconds
        if timeout <= 0:
            timeout = DEFAULT_TIMEOUT_SECONDS
        _log.info("Starting completion with timeout of %d seconds", timeout)

        args = self.prepare_args(prompt)
        try:
            output = self.runner(self.app.llama_cli_path, args, timeout)
        except CompletionTimeout:
            _log.info("Completion timed out after %d seconds", timeout)
            return text_response(f"Error: Completion timed out after {timeout} seconds")
        except CompletionError as exc:
            _log.info("Error generating completion: %s", exc)
            return text_response(f"Error generating completion: {exc}")

        _log.info("Completion generated successfully, output length: %d chars", len(output))
        return text_response(output)


def _close_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def setup_logging(config: AppConfig) -> logging.Logger:
    """Send the package's log to stdout and to the configured log file."""
    os.makedirs(config.app_log_path, exist_ok=True)
    log_file_path = os.path.join(config.app_log_path, config.app_log_file_name)
    file_handler = logging.FileHandler(log_file_path, mode="a", encoding="utf-8")

    formatter = logging.Formatter(_LOG_FORMAT, _DATE_FORMAT)
    console_handler = logging.StreamHandler(sys.stdout)
    _close_handlers(_log)
    for handler in (console_handler, file_handler):
        handler.setFormatter(formatter)
        _log.addHandler(handler)
    _log.setLevel(logging.INFO)
    _log.propagate = False

    _log.info("Logging initialized - writing to %s", log_file_path)
    return _log


def build_registry(service: CompletionService) -> ToolRegistry:
    """A registry offering the completion tool backed by ``service``."""

    def handle(arguments: dict[str, Any]) -> dict[str, Any]:
        prompt = arguments.get("prompt", "")
        if not isinstance(prompt, str):
            raise ValueError("prompt must be a string")
        return service.complete(prompt)

    registry = ToolRegistry()
    registry.register(TOOL_NAME, TOOL_DESCRIPTION, TOOL_SCHEMA, handle)
    return registry


def _parse_address(text: str) -> tuple[str, int]:
    if not text:
        return "", 80
    host, colon, port = text.rpartition(":")
    if not colon:
        raise ValueError(f"missing port in address {text!r}")
    if not port.isdigit():
        raise ValueError(f"invalid port in address {text!r}")
    return host.strip("[]"), int(port)


def make_http_server(config: AppConfig, registry: ToolRegistry) -> ThreadingHTTPServer:
    """An HTTP server that answers MCP messages posted to the configured endpoint."""
    address = _parse_address(config.http_port)
    endpoint = config.endpoint or "/"

    class _Handler(BaseHTTPRequestHandler):
        server_version = "bytevision-mcp"

        def _path(self) -> str:
            return self.path.split("?", 1)[0]

        def _send(self, status: int, body: bytes, content_type: str = "text/plain") -> None:
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def do_POST(self) -> None:  # noqa: N802
            if self._path() != endpoint:
                self._send(404, b"not found")
                return
            try:
                length = int(self.headers.get("Content-Length") or 0)
            except ValueError:
                self._send(400, b"bad content length")
                return
            body = self.rfile.read(length)
            try:
                message = json.loads(body)
            except ValueError:
                response = error_message(None, PARSE_ERROR, "Parse error")
            else:
                response = registry.handle_message(message)
            if response is None:
                self._send(202, b"")
                return
            self._send(200, json.dumps(response).encode("utf-8"), "application/json")

        def do_GET(self) -> None:  # noqa: N802
            if self._path() == endpoint:
                self._send(405, b"method not allowed")
            else:
                self._send(404, b"not found")

        def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
            _log.debug("%s - %s", self.address_string(), format % args)

    httpd = ThreadingHTTPServer(address, _Handler)
    httpd.daemon_threads = True
    return httpd


def main(argv: Sequence[str] | None = None) -> int:
    """Load configuration, serve the completion tool and shut down on a signal."""
    parser = argparse.ArgumentParser(
        prog="bytevision-mcp",
        description="Serve text completions from a local model over MCP.",
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG_FILE, help="environment file to load")
    options = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format=_LOG_FORMAT, datefmt=_DATE_FORMAT)
    if os.path.isfile(options.config):
        load_dotenv(options.config)
    else:
        _log.warning("Warning: Error loading .env file: %s not found", options.config)

    app = load_app_config()
    llama = load_llama_args()
    try:
        setup_logging(app)
    except OSError as exc:
        _log.critical("Failed to setup logging: %s", exc)
        return 1

    try:
        return _serve(app, llama)
    finally:
        _log.info("Closing log file...")
        _close_handlers(_log)


def _serve(app: AppConfig, llama: LlamaCliArgs) -> int:
    _log.info("Application starting...")
    registry = build_registry(CompletionService(app, llama))
    try:
        httpd = make_http_server(app, registry)
    except (OSError, ValueError) as exc:
        _log.error("Server error: %s", exc)
        return 1

    stop = threading.Event()
    failures: list[BaseException] = []

    def serve() -> None:
        try:
            httpd.serve_forever()
        except Exception as exc:
            failures.append(exc)
        finally:
            stop.set()

    def on_signal(signum: int, frame: Any) -> None:
        stop.set()

    previous = {sig: signal.signal(sig, on_signal) for sig in (signal.SIGINT, signal.SIGTERM)}
    _log.info("Starting MCP HTTP server on %s%s", app.http_port, app.endpoint)
    threading.Thread(target=serve, name="mcp-http", daemon=True).start()
    try:
        while not stop.wait(0.5):
            pass
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    if failures:
        _log.error("Server error: %s", failures[0])
    else:
        _log.info("Received shutdown signal...")

    _log.info("Shutting down server...")
    stopper = threading.Thread(target=httpd.shutdown, daemon=True)
    stopper.start()
    stopper.join(SHUTDOWN_TIMEOUT)
    if stopper.is_alive():
        _log.info("Forced shutdown after timeout")
    else:
        _log.info("Server shutdown complete")
    httpd.server_close()
    _log.info("Application shutdown complete")
    return 0