"""Run the llama-cli executable and collect what it prints."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence

_log = logging.getLogger(__name__)


class CompletionError(Exception):
    """The completion program could not be started or did not finish cleanly."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class CompletionTimeout(CompletionError):
    """The completion program ran longer than it was allowed to."""

    def __init__(self, timeout: float | None) -> None:
        super().__init__(f"completion timed out after {timeout} seconds")
        self.timeout = timeout


def run_completion(
    executable: str,
    args: Sequence[str],
    timeout: float | None = None,
) -> str:
    """Run ``executable`` with ``args`` and return its standard output as text.

    The child is killed when ``timeout`` seconds pass; that raises
    :class:`CompletionTimeout`. A failure to start or a non-zero exit
    raises :class:`CompletionError`.
    """
    command = [executable, *args]
    try:
        finished = subprocess.run(
            command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        raise CompletionTimeout(timeout) from exc
    except (OSError, ValueError) as exc:
        raise CompletionError(f"failed to start {executable!r}: {exc}") from exc

    stderr = finished.stderr.decode("utf-8", errors="replace")
    if finished.returncode != 0:
        _log.debug("Completion program failed: %s", stderr.strip())
        raise CompletionError(
            f"exit status {finished.returncode}",
            returncode=finished.returncode,
            stderr=stderr,
        )
    return finished.stdout.decode("utf-8", errors="replace")