"""
vocord.workspace - Scratch directory management.

Every pipeline run keeps its intermediate audio in one directory under the
platform temp dir. Names are unique per call so concurrent runs never share
a file; stale leftovers from crashed runs are swept on the next run.
"""

from __future__ import annotations

import secrets
import shutil
import time
from pathlib import Path

from vocord.config import DEFAULT_TEMP_DIR
from vocord.logging import logger

MAX_AGE_SECONDS = 60 * 60


def ensure_workspace(
    path: Path | None = None,
    max_age: float = MAX_AGE_SECONDS,
    now: float | None = None,
) -> Path:
    """Create the scratch directory, or sweep stale entries if it exists.

    Args:
        path: Scratch directory (defaults to <tempdir>/vocord)
        max_age: Entries whose mtime is older than this many seconds are removed
        now: Reference time for the age check (defaults to time.time())

    Returns:
        The scratch directory path
    """
    workspace = path if path is not None else DEFAULT_TEMP_DIR

    if not workspace.exists():
        workspace.mkdir(parents=True, exist_ok=True)
        return workspace

    cutoff = (now if now is not None else time.time()) - max_age
    try:
        entries = list(workspace.iterdir())
    except OSError as e:
        logger.debug("Could not list %s: %s", workspace, e)
        return workspace

    for entry in entries:
        # Another run may delete or replace the entry between listing and removal.
        try:
            if entry.lstat().st_mtime >= cutoff:
                continue
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()
            logger.debug("Removed stale scratch entry %s", entry.name)
        except OSError as e:
            logger.debug("Skipped %s during sweep: %s", entry.name, e)

    return workspace


def scratch_path(workspace: Path, suffix: str = ".ogg", prefix: str = "audio") -> Path:
    """Return a unique, not yet created file path inside the workspace."""
    stamp = int(time.time() * 1000)
    return workspace / f"{prefix}_{stamp}_{secrets.token_hex(4)}{suffix}"


def discard(path: Path | None) -> None:
    """Delete a scratch file if it is still there."""
    if path is None:
        return
    path.unlink(missing_ok=True)
