"""Tests for vocord.transcribe.backends module."""

from __future__ import annotations

from pathlib import Path

import pytest

from vocord.exceptions import ConfigError
from vocord.transcribe.backends import (
    Backend,
    is_apple_silicon,
    parse_backend,
    read_backend_file,
    resolve_backend,
    write_backend_file,
)


@pytest.fixture
def backend_file(tmp_path: Path) -> Path:
    return tmp_path / "backend"


class TestBackend:
    def test_only_generic_backend_needs_conversion(self) -> None:
        assert Backend.TRANSCRIBE_RS.requires_conversion
        assert not Backend.MLX_WHISPER.requires_conversion

    def test_labels(self) -> None:
        assert Backend.TRANSCRIBE_RS.label == "transcribe-cli"
        assert Backend.MLX_WHISPER.label == "mlx-whisper"


class TestParseBackend:
    def test_auto_and_empty_mean_none(self) -> None:
        assert parse_backend(None) is None
        assert parse_backend("") is None
        assert parse_backend("auto") is None
        assert parse_backend(" AUTO ") is None

    def test_known_values(self) -> None:
        assert parse_backend("mlx-whisper") is Backend.MLX_WHISPER
        assert parse_backend("Transcribe-RS") is Backend.TRANSCRIBE_RS
        assert parse_backend(Backend.MLX_WHISPER) is Backend.MLX_WHISPER

    def test_unknown_value_raises(self) -> None:
        with pytest.raises(ConfigError, match="Unknown backend"):
            parse_backend("faster-whisper")


class TestPlatformDetection:
    def test_apple_silicon(self) -> None:
        assert is_apple_silicon("Darwin", "arm64")

    @pytest.mark.parametrize(
        ("system", "machine"),
        [("Darwin", "x86_64"), ("Linux", "arm64"), ("Linux", "x86_64"), ("Windows", "AMD64")],
    )
    def test_other_platforms(self, system: str, machine: str) -> None:
        assert not is_apple_silicon(system, machine)


class TestBackendFile:
    def test_missing_file(self, backend_file: Path) -> None:
        assert read_backend_file(backend_file) is None

    def test_trims_whitespace(self, backend_file: Path) -> None:
        backend_file.write_text("  mlx-whisper\n")
        assert read_backend_file(backend_file) is Backend.MLX_WHISPER

    def test_unknown_value_ignored(self, backend_file: Path) -> None:
        backend_file.write_text("whisperx\n")
        assert read_backend_file(backend_file) is None

    def test_write_and_clear(self, backend_file: Path) -> None:
        write_backend_file(backend_file, Backend.TRANSCRIBE_RS)
        assert backend_file.read_text() == "transcribe-rs\n"

        write_backend_file(backend_file, None)
        assert not backend_file.exists()


class TestResolveBackend:
    def test_override_wins(self, backend_file: Path) -> None:
        backend_file.write_text("mlx-whisper")
        result = resolve_backend(
            "transcribe-rs", backend_file=backend_file, system="Darwin", machine="arm64"
        )
        assert result is Backend.TRANSCRIBE_RS

    def test_file_beats_platform(self, backend_file: Path) -> None:
        backend_file.write_text("mlx-whisper")
        result = resolve_backend(backend_file=backend_file, system="Linux", machine="x86_64")
        assert result is Backend.MLX_WHISPER

    def test_auto_override_falls_through(self, backend_file: Path) -> None:
        backend_file.write_text("transcribe-rs")
        result = resolve_backend(
            "auto", backend_file=backend_file, system="Darwin", machine="arm64"
        )
        assert result is Backend.TRANSCRIBE_RS

    def test_platform_detection(self, backend_file: Path) -> None:
        assert (
            resolve_backend(backend_file=backend_file, system="Darwin", machine="arm64")
            is Backend.MLX_WHISPER
        )
        assert (
            resolve_backend(backend_file=backend_file, system="Darwin", machine="x86_64")
            is Backend.TRANSCRIBE_RS
        )

    def test_does_not_write_anything(self, tmp_path: Path) -> None:
        resolve_backend(backend_file=tmp_path / "backend", system="Linux", machine="x86_64")
        assert list(tmp_path.iterdir()) == []
