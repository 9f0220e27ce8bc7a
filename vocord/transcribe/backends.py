"""
vocord.transcribe.backends - Transcription backend selection.

Two local backends are supported: mlx-whisper on Apple Silicon and
transcribe-cli (whisper.cpp via transcribe-rs) everywhere else. The choice
comes from the request, then the installer's backend file, then the
platform.
"""

from __future__ import annotations

import platform
from enum import Enum
from pathlib import Path


class Backend(str, Enum):
    """Transcription backend identifiers, as stored in the backend file."""

    MLX_WHISPER = "mlx-whisper"
    TRANSCRIBE_RS = "transcribe-rs"

    @property
    def requires_conversion(self) -> bool:
        """Whether audio must be converted to WAV before invocation."""
        return self is Backend.TRANSCRIBE_RS

    @property
    def label(self) -> str:
        return "mlx-whisper" if self is Backend.MLX_WHISPER else "transcribe-cli"


AUTO = "auto"


def parse_backend(value: str | Backend | None) -> Backend | None:
    """Turn a user-supplied backend value into a Backend.

    Returns None for "auto", empty strings and None.

    Raises:
        ConfigError: If the value names no known backend
    """
    if value is None or isinstance(value, Backend):
        return value

    cleaned = value.strip().lower()
    if not cleaned or cleaned == AUTO:
        return None

    try:
        return Backend(cleaned)
    except ValueError as e:
        from vocord.exceptions import ConfigError

        valid = ", ".join([b.value for b in Backend] + [AUTO])
        raise ConfigError(f"Unknown backend '{value}'. Choose one of: {valid}") from e


def is_apple_silicon(system: str | None = None, machine: str | None = None) -> bool:
    system = system if system is not None else platform.system()
    machine = machine if machine is not None else platform.machine()
    return system == "Darwin" and machine.lower() in {"arm64", "aarch64"}


def read_backend_file(path: Path) -> Backend | None:
    """Read the persisted backend choice. Missing or unknown values yield None."""
    try:
        value = path.read_text(encoding="utf-8").strip()
    except OSError:
        return None

    try:
        return Backend(value)
    except ValueError:
        return None


def write_backend_file(path: Path, backend: Backend | None) -> None:
    """Persist a backend choice, or remove it when backend is None."""
    if backend is None:
        path.unlink(missing_ok=True)
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"{backend.value}\n", encoding="utf-8")


def platform_default(system: str | None = None, machine: str | None = None) -> Backend:
    if is_apple_silicon(system, machine):
        return Backend.MLX_WHISPER
    return Backend.TRANSCRIBE_RS


def resolve_backend(
    override: str | Backend | None = None,
    backend_file: Path | None = None,
    system: str | None = None,
    machine: str | None = None,
) -> Backend:
    """Pick the backend for one request.

    Precedence: explicit override, then the backend file, then platform
    detection.

    Args:
        override: Backend requested by the caller ("auto" or None for none)
        backend_file: Installer-written file holding one backend identifier
        system: Platform name override for detection (platform.system())
        machine: Architecture override for detection (platform.machine())

    Returns:
        The selected Backend
    """
    explicit = parse_backend(override)
    if explicit is not None:
        return explicit

    if backend_file is not None:
        persisted = read_backend_file(backend_file)
        if persisted is not None:
            return persisted

    return platform_default(system, machine)
