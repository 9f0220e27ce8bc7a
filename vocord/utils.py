"""
vocord.utils - Shared utility functions.

Contains helpers used by both the converter and the subprocess runner.
"""

from __future__ import annotations

import os

EXTRA_BIN_DIRS = ("/opt/homebrew/bin", "/usr/local/bin", "/usr/bin", "/bin")


def extended_env(base: dict[str, str] | None = None) -> dict[str, str]:
    """Return a copy of the environment with common install dirs on PATH.

    GUI-launched parents often run with a minimal PATH that misses
    Homebrew and /usr/local, where ffmpeg and friends usually live.

    Args:
        base: Environment to extend (defaults to os.environ)

    Returns:
        New environment dict; the input is not modified
    """
    env = dict(os.environ if base is None else base)
    current = env.get("PATH", "")
    parts = current.split(os.pathsep) if current else []
    extras = [d for d in EXTRA_BIN_DIRS if d not in parts]
    env["PATH"] = os.pathsep.join(extras + parts)
    return env


def preview(text: str, limit: int = 50) -> str:
    """Shorten text for log lines."""
    if len(text) > limit:
        return f"{text[:limit]}..."
    return text
