"""
vocord.types - Request and result models for the transcribe operation.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from vocord.transcribe.backends import Backend, parse_backend


class TranscriptionRequest(BaseModel):
    """One transcription request. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    source_url: str
    language: str | None = None
    backend_override: Backend | None = None
    model: str | None = None

    @field_validator("language", "model", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    @field_validator("backend_override", mode="before")
    @classmethod
    def validate_backend(cls, v: Any) -> Backend | None:
        from vocord.exceptions import ConfigError

        try:
            return parse_backend(v)
        except ConfigError as e:
            raise ValueError(str(e)) from e


class TranscriptionResult(BaseModel):
    """Either the transcript text or an error message, never both."""

    model_config = ConfigDict(frozen=True)

    text: str | None = None
    error: str | None = None

    @model_validator(mode="after")
    def exactly_one(self) -> TranscriptionResult:
        if (self.text is None) == (self.error is None):
            raise ValueError("exactly one of text or error must be set")
        return self

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, str]:
        if self.error is not None:
            return {"error": self.error}
        return {"text": self.text or ""}
