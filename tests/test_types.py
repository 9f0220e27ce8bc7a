"""Tests for vocord.types module."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from vocord.transcribe.backends import Backend
from vocord.types import TranscriptionRequest, TranscriptionResult


class TestTranscriptionRequest:
    def test_defaults(self) -> None:
        request = TranscriptionRequest(source_url="https://cdn.discordapp.com/a.ogg")
        assert request.language is None
        assert request.backend_override is None
        assert request.model is None

    def test_blank_strings_mean_unset(self) -> None:
        request = TranscriptionRequest(
            source_url="https://cdn.discordapp.com/a.ogg",
            language="  ",
            model="",
            backend_override="auto",
        )
        assert request.language is None
        assert request.model is None
        assert request.backend_override is None

    def test_backend_string_is_parsed(self) -> None:
        request = TranscriptionRequest(
            source_url="https://cdn.discordapp.com/a.ogg", backend_override="mlx-whisper"
        )
        assert request.backend_override is Backend.MLX_WHISPER

    def test_unknown_backend_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Unknown backend"):
            TranscriptionRequest(
                source_url="https://cdn.discordapp.com/a.ogg", backend_override="whisperx"
            )

    def test_immutable(self) -> None:
        request = TranscriptionRequest(source_url="https://cdn.discordapp.com/a.ogg")
        with pytest.raises(ValidationError):
            request.language = "fr"


class TestTranscriptionResult:
    def test_text(self) -> None:
        result = TranscriptionResult(text="bonjour")
        assert result.ok
        assert result.to_dict() == {"text": "bonjour"}

    def test_empty_text_is_still_text(self) -> None:
        assert TranscriptionResult(text="").to_dict() == {"text": ""}

    def test_error(self) -> None:
        result = TranscriptionResult(error="ffmpeg not found")
        assert not result.ok
        assert result.to_dict() == {"error": "ffmpeg not found"}

    def test_both_rejected(self) -> None:
        with pytest.raises(ValidationError):
            TranscriptionResult(text="a", error="b")

    def test_neither_rejected(self) -> None:
        with pytest.raises(ValidationError):
            TranscriptionResult()
