# bytevision-mcp

An HTTP server that speaks the Model Context Protocol (MCP) over JSON-RPC 2.0
and offers one tool, `generate_completion`. Each call to the tool runs a local
`llama-cli` executable with the prompt it was given and returns what the
program printed.

## Installation

```
pip install .
```

For the tests:

```
pip install .[test]
pytest
```

## Running

```
bytevision-mcp
bytevision-mcp --config path/to/settings.env
```

Before anything else the server loads the environment file named by
`--config` (default `byte-vision-cfg.env` in the current directory). If the
file is missing it logs a warning and carries on. Variables already set in the
process environment take precedence over those in the file.

Log lines go to the console and to the log file. Press Ctrl+C or send SIGTERM
to stop the server; it waits up to 30 seconds for the HTTP server to shut down.

## Configuration

Application settings:

| Variable         | Meaning                                                        |
|------------------|----------------------------------------------------------------|
| `LLamaCliPath`   | Path to the `llama-cli` executable                             |
| `HttpPort`       | Listen address as `host:port` or `:port`; port 80 if empty     |
| `EndPoint`       | HTTP path for MCP requests, e.g. `/mcp-completion`; `/` if empty |
| `AppLogPath`     | Directory for the log file, created if missing (required)      |
| `AppLogFileName` | Name of the log file inside `AppLogPath`                       |
| `TimeOutSeconds` | Time limit per completion; 300 if unset, not an integer, or not positive |
| `ModelPath`, `PromptCachePath` | Read into the configuration, not otherwise used  |

If the log directory or file cannot be created, the command exits with status 1.

Options for `llama-cli` come in pairs. A `...Cmd` variable holds the flag and a
matching variable holds its value, for example `ModelCmd=--model` with
`ModelFullPathVal=/models/model.gguf`, or `TemperatureCmd=--temp` with
`TemperatureVal=0.7`. A pair is passed on only when its value is non-empty.
A switch such as `FlashAttentionCmd=--flash-attn` is passed on only when its
`...Enabled` variable (here `FlashAttentionCmdEnabled`) is one of `1`, `t`,
`T`, `true`, `True`, `TRUE`. The prompt from each request always goes last as
`--prompt <text>`, and any `--prompt` pair from the configuration is dropped.

## HTTP interface

- `POST <EndPoint>` with a JSON-RPC message: answered with the JSON-RPC
  response, or `202` with an empty body for a notification. A body that is not
  JSON gets a parse error (`-32700`).
- `GET <EndPoint>`: `405`. Any other path: `404`.

Supported methods are `initialize`, `ping`, `tools/list`, `tools/call` and
`notifications/...`.

## Tool

`generate_completion` takes one argument:

```json
{"prompt": "Write a haiku about autumn"}
```

The result is a single text content item holding the completion, or one of
these messages: `Error: Prompt cannot be empty`,
`Error: Completion timed out after N seconds`, or
`Error generating completion: ...`. A prompt that is not a string is rejected
with an invalid-params error (`-32602`).

## Using it from Python

```python
from bytevision_mcp.config import load_app_config
from bytevision_mcp.llama_args import load_llama_args
from bytevision_mcp.runner import run_completion

config = load_app_config()          # or load_app_config({"LLamaCliPath": ...})
argv = load_llama_args().to_argv()
output = run_completion(config.llama_cli_path, argv + ["--prompt", "Hello"], 60)
```

`run_completion` raises `CompletionTimeout` when the time limit runs out and
`CompletionError` when the executable cannot be started or exits non-zero.

`bytevision_mcp.server` also offers `CompletionService`, `build_registry`,
`make_http_server` and `setup_logging` for embedding the server, and
`bytevision_mcp.mcp.ToolRegistry` for registering other tools.

## What it does not do

The server answers each request with a single JSON response: there is no
stdio transport, no server-sent events and no streaming of partial output.
Settings such as `PromptCacheAllCmd` are read but not passed to `llama-cli`.