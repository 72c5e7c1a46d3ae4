import json
import threading
import urllib.error
import urllib.request

import pytest

from bytevision_mcp.config import AppConfig
from bytevision_mcp.llama_args import LlamaCliArgs
from bytevision_mcp.mcp import PARSE_ERROR, ToolRegistry, text_response
from bytevision_mcp.runner import CompletionError, CompletionTimeout
from bytevision_mcp.server import (
    CompletionService,
    build_registry,
    make_http_server,
    setup_logging,
)


class FakeRunner:
    def __init__(self, output="", error=None):
        self.output = output
        self.error = error
        self.calls = []

    def __call__(self, executable, args, timeout):
        self.calls.append((executable, list(args), timeout))
        if self.error is not None:
            raise self.error
        return self.output


def _llama():
    return LlamaCliArgs(
        model_cmd="--model",
        model_full_path="m.gguf",
        prompt_cmd="--prompt",
        prompt_text="old prompt",
        temperature_cmd="--temp",
        temperature_val="0.7",
    )


def test_prepare_args_replaces_configured_prompt():
    service = CompletionService(AppConfig(), _llama(), runner=FakeRunner())
    assert service.prepare_args("new prompt") == [
        "--model", "m.gguf", "--temp", "0.7", "--prompt", "new prompt",
    ]


def test_prepare_args_without_configured_prompt():
    service = CompletionService(AppConfig(), LlamaCliArgs(), runner=FakeRunner())
    assert service.prepare_args("hi") == ["--prompt", "hi"]


def test_empty_prompt_is_rejected_without_running():
    runner = FakeRunner(output="never")
    service = CompletionService(AppConfig(), _llama(), runner=runner)
    assert service.complete("") == text_response("Error: Prompt cannot be empty")
    assert runner.calls == []


def test_complete_returns_output_and_uses_configuration():
    runner = FakeRunner(output="the answer")
    app = AppConfig(llama_cli_path="/opt/llama-cli", timeout_seconds=42)
    service = CompletionService(app, _llama(), runner=runner)
    assert service.complete("question") == text_response("the answer")
    executable, args, timeout = runner.calls[0]
    assert executable == "/opt/llama-cli"
    assert args[-2:] == ["--prompt", "question"]
    assert timeout == 42


def test_non_positive_timeout_falls_back_to_default():
    runner = FakeRunner(output="x")
    service = CompletionService(AppConfig(timeout_seconds=0), _llama(), runner=runner)
    service.complete("q")
    assert runner.calls[0][2] == 300


def test_timeout_becomes_error_text():
    runner = FakeRunner(error=CompletionTimeout(5))
    service = CompletionService(AppConfig(timeout_seconds=5), _llama(), runner=runner)
    assert service.complete("q") == text_response("Error: Completion timed out after 5 seconds")


def test_failure_becomes_error_text():
    runner = FakeRunner(error=CompletionError("boom"))
    service = CompletionService(AppConfig(), _llama(), runner=runner)
    assert service.complete("q") == text_response("Error generating completion: boom")


def test_registry_offers_completion_tool():
    service = CompletionService(AppConfig(), _llama(), runner=FakeRunner(output="done"))
    registry = build_registry(service)
    listing = registry.handle_message({"jsonrpc": "2.0", "id": 1, "method": "tools/list"})
    tools = listing["result"]["tools"]
    assert [tool["name"] for tool in tools] == ["generate_completion"]
    assert tools[0]["description"] == "Generate text completion using the local LLM"

    reply = registry.handle_message({
        "jsonrpc": "2.0",
        "id": 2,
        "method": "tools/call",
        "params": {"name": "generate_completion", "arguments": {"prompt": "q"}},
    })
    assert reply["result"] == text_response("done")


def test_registry_rejects_non_string_prompt():
    service = CompletionService(AppConfig(), _llama(), runner=FakeRunner())
    registry = build_registry(service)
    reply = registry.handle_message({
        "jsonrpc": "2.0",
        "id": 3,
        "method": "tools/call",
        "params": {"name": "generate_completion", "arguments": {"prompt": 12}},
    })
    assert reply["error"]["code"] == -32602


def test_setup_logging_writes_file(tmp_path):
    config = AppConfig(app_log_path=str(tmp_path / "logs"), app_log_file_name="app.log")
    logger = setup_logging(config)
    try:
        logger.info("first entry")
        for handler in logger.handlers:
            handler.flush()
        text = (tmp_path / "logs" / "app.log").read_text(encoding="utf-8")
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
    assert "Logging initialized - writing to" in text
    assert "[APP]" in text
    assert "first entry" in text


def test_setup_logging_fails_without_directory():
    with pytest.raises(OSError):
        setup_logging(AppConfig(app_log_path="", app_log_file_name="app.log"))


@pytest.fixture
def base_url():
    registry = ToolRegistry()
    registry.register("echo", "Echo", {"type": "object"}, lambda a: text_response(a.get("text", "")))
    httpd = make_http_server(AppConfig(http_port="127.0.0.1:0", endpoint="/mcp"), registry)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{httpd.server_address[1]}"
    finally:
        httpd.shutdown()
        httpd.server_close()


def _open(request):
    try:
        with urllib.request.urlopen(request, timeout=10) as response:
            return response.status, response.read()
    except urllib.error.HTTPError as err:
        with err:
            return err.code, err.read()


def _post(url, body):
    request = urllib.request.Request(
        url, data=body, headers={"Content-Type": "application/json"}, method="POST"
    )
    return _open(request)


def test_http_tool_call(base_url):
    message = {
        "jsonrpc": "2.0",
        "id": 9,
        "method": "tools/call",
        "params": {"name": "echo", "arguments": {"text": "over http"}},
    }
    status, body = _post(base_url + "/mcp", json.dumps(message).encode())
    assert status == 200
    reply = json.loads(body)
    assert reply["id"] == 9
    assert reply["result"] == text_response("over http")


def test_http_notification_is_accepted(base_url):
    message = {"jsonrpc": "2.0", "method": "notifications/initialized"}
    status, body = _post(base_url + "/mcp", json.dumps(message).encode())
    assert status == 202
    assert body == b""


def test_http_parse_error(base_url):
    status, body = _post(base_url + "/mcp", b"{not json")
    assert status == 200
    assert json.loads(body)["error"]["code"] == PARSE_ERROR


def test_http_wrong_path(base_url):
    status, _ = _post(base_url + "/other", b"{}")
    assert status == 404


def test_http_get_not_allowed(base_url):
    status, _ = _open(urllib.request.Request(base_url + "/mcp", method="GET"))
    assert status == 405


def test_bad_port_rejected():
    with pytest.raises(ValueError):
        make_http_server(AppConfig(http_port="localhost:http", endpoint="/mcp"), ToolRegistry())