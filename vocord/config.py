"""
vocord.config - YAML config loading and validation.

Handles loading the optional vocord.yaml from the data directory. Every
path the pipeline touches (models, runtimes, scratch space) is derived
from here.
"""

from __future__ import annotations

import sys
import tempfile
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

DEFAULT_DATA_DIR = Path.home() / ".local" / "share" / "vocord"
DEFAULT_TEMP_DIR = Path(tempfile.gettempdir()) / "vocord"
DEFAULT_GGML_MODEL = "ggml-large-v3-turbo.bin"
DEFAULT_MLX_MODEL = "mlx-community/whisper-large-v3-turbo"
DEFAULT_ALLOWED_HOSTS = ("cdn.discordapp.com", "media.discordapp.net")

CONFIG_FILENAME = "vocord.yaml"
BACKEND_FILENAME = "backend"


class VocordConfig(BaseModel):
    """Resolved configuration for the transcription pipeline."""

    data_dir: Path = DEFAULT_DATA_DIR
    temp_dir: Path = DEFAULT_TEMP_DIR

    model_path: Path | None = None
    mlx_model: str = DEFAULT_MLX_MODEL
    language: str | None = None
    ffmpeg_path: str = "ffmpeg"

    allowed_hosts: list[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_HOSTS))
    max_redirects: int = Field(default=5, ge=0)

    download_timeout: float = Field(default=30.0, gt=0.0)
    convert_timeout: float = Field(default=30.0, gt=0.0)
    subprocess_timeout: float = Field(default=300.0, gt=0.0)
    temp_max_age: float = Field(default=3600.0, gt=0.0)

    @field_validator("data_dir", "temp_dir", "model_path")
    @classmethod
    def expand_path(cls, v: Path | None) -> Path | None:
        if v is None:
            return v
        return v.expanduser()

    @field_validator("ffmpeg_path")
    @classmethod
    def default_ffmpeg(cls, v: str) -> str:
        return v.strip() or "ffmpeg"

    @field_validator("language")
    @classmethod
    def blank_language(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("allowed_hosts")
    @classmethod
    def validate_hosts(cls, v: list[str]) -> list[str]:
        hosts = [h.strip().lower() for h in v if h.strip()]
        if not hosts:
            raise ValueError("allowed_hosts must contain at least one host")
        return hosts

    @property
    def backend_file(self) -> Path:
        return self.data_dir / BACKEND_FILENAME

    @property
    def venv_python(self) -> Path:
        return self.data_dir / "venv" / "bin" / "python"

    @property
    def transcribe_cli_path(self) -> Path:
        name = "transcribe-cli.exe" if sys.platform == "win32" else "transcribe-cli"
        return self.data_dir / name

    @property
    def ggml_model_path(self) -> Path:
        if self.model_path is not None:
            return self.model_path
        return self.data_dir / DEFAULT_GGML_MODEL


def load_config(path: Path | None = None) -> VocordConfig:
    """Load and validate configuration.

    Args:
        path: Config file to read. Defaults to vocord.yaml in the default
            data directory. A missing file yields the defaults.

    Returns:
        Validated VocordConfig

    Raises:
        ConfigError: If the file is unreadable, not YAML, or has bad values
    """
    from vocord.exceptions import ConfigError

    config_file = path if path is not None else DEFAULT_DATA_DIR / CONFIG_FILENAME
    if not config_file.exists():
        return VocordConfig()

    try:
        with open(config_file, encoding="utf-8") as f:
            raw_config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not read {config_file}: {e}") from e

    if not isinstance(raw_config, dict):
        raise ConfigError(f"{config_file} must contain a mapping of settings")

    try:
        return VocordConfig(**raw_config)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_file}: {e}") from e


def config_to_dict(config: VocordConfig) -> dict[str, Any]:
    """Serialize a config into plain YAML-friendly values."""
    data = config.model_dump(exclude_none=True)
    for key, value in data.items():
        if isinstance(value, Path):
            data[key] = str(value)
    return data


def write_config(config: VocordConfig, path: Path) -> None:
    """Write configuration to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(config_to_dict(config), f, default_flow_style=False, sort_keys=False)
