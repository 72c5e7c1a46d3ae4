"""Application-level settings read from environment variables."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass

DEFAULT_TIMEOUT_SECONDS = 300

_TRUE_WORDS = frozenset({"1", "t", "T", "true", "TRUE", "True"})
_FALSE_WORDS = frozenset({"0", "f", "F", "false", "FALSE", "False"})
_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_INT_MIN = -(2**63)
_INT_MAX = 2**63 - 1


def parse_bool(value: str | None, fallback: bool) -> bool:
    """Interpret a textual boolean, returning ``fallback`` when it is empty or unknown."""
    if not value:
        return fallback
    if value in _TRUE_WORDS:
        return True
    if value in _FALSE_WORDS:
        return False
    return fallback


def env_int(environ: Mapping[str, str], key: str, fallback: int) -> int:
    """Read ``key`` from ``environ`` as a strict decimal integer, else ``fallback``."""
    raw = environ.get(key, "")
    if not raw or not _INT_PATTERN.fullmatch(raw):
        return fallback
    number = int(raw)
    if not _INT_MIN <= number <= _INT_MAX:
        return fallback
    return number


@dataclass(frozen=True)
class AppConfig:
    """General server settings that do not concern the model runner itself."""

    model_path: str = ""
    app_log_path: str = ""
    app_log_file_name: str = ""
    prompt_cache_path: str = ""
    llama_cli_path: str = ""
    http_port: str = ""
    endpoint: str = ""
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS


def load_app_config(environ: Mapping[str, str] | None = None) -> AppConfig:
    """Build an :class:`AppConfig` from ``environ`` (the process environment by default)."""
    env = os.environ if environ is None else environ
    return AppConfig(
        model_path=env.get("ModelPath", ""),
        app_log_path=env.get("AppLogPath", ""),
        app_log_file_name=env.get("AppLogFileName", ""),
        prompt_cache_path=env.get("PromptCachePath", ""),
        llama_cli_path=env.get("LLamaCliPath", ""),
        http_port=env.get("HttpPort", ""),
        endpoint=env.get("EndPoint", ""),
        timeout_seconds=env_int(env, "TimeOutSeconds", DEFAULT_TIMEOUT_SECONDS),
    )