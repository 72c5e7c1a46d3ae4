"""MCP server that generates text completions with a local llama-cli executable."""

__version__ = "0.1.0"
__all__ = ["config", "llama_args", "runner", "mcp", "server"]