"""
vocord.transcribe.runner - External process invocation with a watchdog.

Backends are opaque executables that print one result per run: either a
JSON envelope ({"text": ...} or {"error": ...}) or plain text. This module
spawns them, enforces the timeout, turns their output into a string or a
typed error, and always deletes the audio file it was handed.
"""

from __future__ import annotations

import json
import os
import signal
import subprocess
import time
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from vocord.exceptions import (
    BackendError,
    EmptyOutputError,
    OutputParseError,
    SpawnError,
    SubprocessTimeoutError,
    ToolNotFoundError,
)
from vocord.logging import logger
from vocord.utils import extended_env
from vocord.workspace import discard

SUBPROCESS_TIMEOUT_SECONDS = 5 * 60
KILL_GRACE_SECONDS = 2.0


class SubprocessResult(BaseModel):
    """Everything one external process produced."""

    exit_code: int | None
    stdout: bytes
    stderr: bytes
    timed_out: bool = False

    @property
    def stdout_text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace")


def spawn(
    argv: Sequence[str],
    timeout: float = SUBPROCESS_TIMEOUT_SECONDS,
    env: dict[str, str] | None = None,
) -> SubprocessResult:
    """Run a process to completion or until the timeout kills it.

    Output is collected in full. When the watchdog fires, the process and
    everything it started in its session are killed, and the result is
    marked timed_out regardless of what it printed. Descendants that
    escaped the session and still hold the pipes get KILL_GRACE_SECONDS
    before the pipes are abandoned.

    Raises:
        OSError: If the process cannot be started
    """
    proc = subprocess.Popen(
        list(argv),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env=env if env is not None else extended_env(),
        start_new_session=os.name == "posix",
    )
    try:
        stdout, stderr = proc.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        _kill_tree(proc)
        try:
            stdout, stderr = proc.communicate(timeout=KILL_GRACE_SECONDS)
        except subprocess.TimeoutExpired:
            logger.debug("Abandoning output pipes of pid %d", proc.pid)
            _close_pipes(proc)
            proc.wait()
            stdout, stderr = b"", b""
        return SubprocessResult(
            exit_code=proc.returncode,
            stdout=stdout or b"",
            stderr=stderr or b"",
            timed_out=True,
        )

    return SubprocessResult(exit_code=proc.returncode, stdout=stdout or b"", stderr=stderr or b"")


def _kill_tree(proc: subprocess.Popen) -> None:
    if os.name == "posix":
        try:
            os.killpg(proc.pid, signal.SIGKILL)
            return
        except OSError as e:
            logger.debug("killpg(%d) failed: %s", proc.pid, e)
    proc.kill()


def _close_pipes(proc: subprocess.Popen) -> None:
    for pipe in (proc.stdout, proc.stderr):
        if pipe is not None:
            pipe.close()


def _last_line(text: str) -> str:
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    return lines[-1] if lines else ""


def parse_envelope(output: str) -> dict[str, Any] | None:
    """Parse a JSON object from process output, or None if it is not one."""
    try:
        data = json.loads(output.strip())
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def parse_result(
    result: SubprocessResult,
    label: str,
    error_stream: str = "stdout",
    raw_output: bool = False,
    timeout: float | None = None,
) -> str:
    """Turn a finished process into its transcript text.

    Args:
        result: The finished process
        label: Tool name used in messages
        error_stream: Stream holding the JSON error on non-zero exit
            ("stdout" or "stderr")
        raw_output: Treat stdout as plain text instead of a JSON envelope
        timeout: Timeout that was applied, for the timeout message

    Returns:
        Transcript text

    Raises:
        SubprocessTimeoutError: If the watchdog killed the process
        BackendError: If the tool reported an error or exited non-zero
        EmptyOutputError: If raw output mode produced nothing
        OutputParseError: If the JSON envelope is malformed
    """
    if result.timed_out:
        after = f" after {timeout:g}s" if timeout is not None else ""
        raise SubprocessTimeoutError(f"{label} timed out{after}")

    stderr = result.stderr_text

    if result.exit_code != 0:
        error_output = stderr if error_stream == "stderr" else result.stdout_text
        envelope = parse_envelope(error_output)
        if envelope and envelope.get("error"):
            raise BackendError(str(envelope["error"]))
        raise BackendError(_last_line(stderr) or f"{label} exited with code {result.exit_code}")

    trimmed = result.stdout_text.strip()

    if raw_output:
        if not trimmed:
            raise EmptyOutputError(f"{label} produced no output")
        return trimmed

    envelope = parse_envelope(trimmed)
    if envelope is None:
        raise OutputParseError(f"Failed to parse {label} output: {trimmed}", raw=trimmed)
    if envelope.get("error"):
        raise BackendError(str(envelope["error"]))
    text = envelope.get("text")
    if not isinstance(text, str):
        raise OutputParseError(f"{label} output missing 'text' field: {trimmed}", raw=trimmed)
    return text


def run_subprocess(
    command: str | Path,
    args: Sequence[str],
    *,
    cleanup_path: Path | None,
    label: str,
    error_stream: str = "stdout",
    install_hint: str | None = None,
    raw_output: bool = False,
    timeout: float = SUBPROCESS_TIMEOUT_SECONDS,
) -> str:
    """Spawn a backend, parse its result and delete the audio file.

    Args:
        command: Executable name or path
        args: Arguments after the executable
        cleanup_path: File to delete once the process is done, on every path
        label: Tool name used in messages
        error_stream: Stream holding the JSON error on non-zero exit
        install_hint: Appended to the message when the executable is missing
        raw_output: Treat stdout as plain text instead of a JSON envelope
        timeout: Seconds before the process is killed

    Returns:
        Transcript text

    Raises:
        ToolNotFoundError: If the executable does not exist
        SpawnError: If the process cannot be started for another reason
        BackendError: Any of its subclasses, see parse_result()
    """
    argv = [str(command), *args]
    started = time.monotonic()
    try:
        try:
            result = spawn(argv, timeout=timeout)
        except FileNotFoundError as e:
            raise ToolNotFoundError(label, "not found", install_hint) from e
        except OSError as e:
            raise SpawnError(str(e)) from e

        logger.debug(
            "%s exited with %s in %.1fs%s",
            label,
            result.exit_code,
            time.monotonic() - started,
            " (killed by watchdog)" if result.timed_out else "",
        )
        return parse_result(
            result,
            label,
            error_stream=error_stream,
            raw_output=raw_output,
            timeout=timeout,
        )
    finally:
        discard(cleanup_path)
