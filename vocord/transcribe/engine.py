"""
vocord.transcribe.engine - Voice message transcription pipeline.

Resolves the backend, downloads the audio, converts it when the backend
needs WAV, and runs the backend executable. transcribe() is the boundary
towards the UI: it never raises and always returns a TranscriptionResult.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from vocord.config import VocordConfig, load_config
from vocord.convert.audio import convert_to_wav
from vocord.exceptions import BackendError, ModelNotFoundError, ToolNotFoundError, VocordError
from vocord.fetch import fetch_audio
from vocord.logging import logger
from vocord.transcribe.backends import Backend, resolve_backend
from vocord.transcribe.runner import run_subprocess
from vocord.types import TranscriptionRequest, TranscriptionResult
from vocord.utils import preview
from vocord.workspace import discard

# Paths and model ids travel through argv, never through the script source.
MLX_SCRIPT = (
    "import mlx_whisper, sys; "
    "kw = {'language': sys.argv[3]} if len(sys.argv) > 3 else {}; "
    "r = mlx_whisper.transcribe(sys.argv[1], path_or_hf_repo=sys.argv[2], **kw); "
    "print(r['text'].strip())"
)
MLX_INSTALL_HINT = "Re-run the Vocord installer or: pip install mlx-whisper"
TRANSCRIBE_CLI_INSTALL_HINT = "Build it with: cd transcribe-cli && cargo build --release"
MLX_MISSING_SIGNATURE = "No module named 'mlx_whisper'"


class BackendInvocation(BaseModel):
    """How to run one backend: executable, model and output conventions."""

    backend: Backend
    command: str
    model: str
    install_hint: str
    error_stream: str = "stdout"
    raw_output: bool = False

    def arguments(self, audio_path: Path, language: str | None = None) -> list[str]:
        if self.backend is Backend.MLX_WHISPER:
            args = ["-c", MLX_SCRIPT, str(audio_path), self.model]
            if language:
                args.append(language)
            return args

        args = ["--audio", str(audio_path), "--model", self.model]
        if language:
            args += ["--language", language]
        return args


def _looks_like_path(model: str) -> bool:
    return model.startswith(("/", "~", "./", "../", ".\\")) or (
        len(model) > 2 and model[1] == ":" and model[2] in "\\/"
    )


def prepare_backend(
    backend: Backend,
    config: VocordConfig,
    model: str | None = None,
) -> BackendInvocation:
    """Locate the executable and model for a backend.

    Args:
        backend: Selected backend
        config: Pipeline configuration
        model: Model requested for this call (GGML path or mlx repo/path)

    Returns:
        BackendInvocation ready to run

    Raises:
        ModelNotFoundError: If the model artifact is missing
    """
    if backend is Backend.MLX_WHISPER:
        mlx_model = model or config.mlx_model
        if _looks_like_path(mlx_model):
            local = Path(mlx_model).expanduser()
            if not local.exists():
                raise ModelNotFoundError(
                    f"mlx-whisper model not found at {local}. "
                    "Use a Hugging Face repo id or an existing model directory."
                )
            mlx_model = str(local)
        python = config.venv_python if config.venv_python.exists() else "python3"
        return BackendInvocation(
            backend=backend,
            command=str(python),
            model=mlx_model,
            install_hint=MLX_INSTALL_HINT,
            raw_output=True,
        )

    model_path = Path(model).expanduser() if model else config.ggml_model_path
    if not model_path.is_file():
        raise ModelNotFoundError(
            f"Whisper model not found at {model_path}. Re-run the Vocord installer."
        )
    return BackendInvocation(
        backend=backend,
        command=str(config.transcribe_cli_path),
        model=str(model_path),
        install_hint=TRANSCRIBE_CLI_INSTALL_HINT,
        error_stream="stderr",
    )


def transcribe(
    request: TranscriptionRequest,
    config: VocordConfig | None = None,
    client: httpx.Client | None = None,
) -> TranscriptionResult:
    """Transcribe one voice message.

    Args:
        request: URL, language hint, backend override and model
        config: Pipeline configuration (loaded from vocord.yaml if None)
        client: Optional httpx client for the download

    Returns:
        TranscriptionResult with either text or a one-line error message
    """
    owned: Path | None = None
    try:
        config = config if config is not None else load_config()
        backend = resolve_backend(request.backend_override, backend_file=config.backend_file)
        invocation = prepare_backend(backend, config, request.model)
        language = request.language or config.language

        logger.info("Backend: %s | Downloading audio...", backend.value)
        owned = fetch_audio(
            request.source_url,
            workspace=config.temp_dir,
            client=client,
            allowed_hosts=config.allowed_hosts,
            max_redirects=config.max_redirects,
            timeout=config.download_timeout,
            max_age=config.temp_max_age,
        )

        if backend.requires_conversion:
            logger.info("Converting audio to WAV...")
            source, owned = owned, None
            owned = convert_to_wav(
                source,
                ffmpeg=config.ffmpeg_path,
                timeout=config.convert_timeout,
            )

        audio, owned = owned, None
        logger.info("Transcribing with %s, model: %s", backend.label, invocation.model)
        try:
            text = run_subprocess(
                invocation.command,
                invocation.arguments(audio, language),
                cleanup_path=audio,
                label=backend.label,
                error_stream=invocation.error_stream,
                install_hint=invocation.install_hint,
                raw_output=invocation.raw_output,
                timeout=config.subprocess_timeout,
            )
        except BackendError as e:
            if backend is Backend.MLX_WHISPER and MLX_MISSING_SIGNATURE in str(e):
                raise ToolNotFoundError("mlx-whisper", "not found", MLX_INSTALL_HINT) from e
            raise

        logger.info("Transcription complete: %s", preview(text))
        return TranscriptionResult(text=text)

    except VocordError as e:
        logger.error("Transcription failed: %s", e)
        return TranscriptionResult(error=str(e) or type(e).__name__)
    except Exception as e:
        logger.exception("Unexpected transcription error")
        detail = str(e).strip().splitlines()[0] if str(e).strip() else type(e).__name__
        return TranscriptionResult(error=f"Unexpected error: {detail}")
    finally:
        discard(owned)


def transcribe_url(
    url: str,
    language: str | None = None,
    backend: str | Backend | None = None,
    model: str | None = None,
    config: VocordConfig | None = None,
    client: httpx.Client | None = None,
) -> dict[str, Any]:
    """Transcribe a voice message URL and return {"text": ...} or {"error": ...}."""
    try:
        request = TranscriptionRequest(
            source_url=url,
            language=language,
            backend_override=backend,
            model=model,
        )
    except ValidationError as e:
        errors = e.errors()
        message = errors[0]["msg"] if errors else str(e)
        return {"error": message.removeprefix("Value error, ")}

    return transcribe(request, config=config, client=client).to_dict()
