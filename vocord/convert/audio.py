"""
vocord.convert.audio - FFmpeg audio conversion.

Converts downloaded voice messages (usually Ogg/Opus) into the 16kHz mono
16-bit WAV that whisper.cpp based backends read.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from vocord.utils import extended_env

CONVERT_TIMEOUT_SECONDS = 30
FFMPEG_INSTALL_HINT = "Install it: brew install ffmpeg (macOS) / sudo apt install ffmpeg (Linux)"
MISSING_SIGNATURES = ("command not found", "no such executable", "not recognized as")


def wav_path_for(input_path: Path) -> Path:
    """Derive the WAV output path for an input file.

    The extension is swapped for .wav; an input that already is .wav gets
    a distinct name so ffmpeg never reads and writes the same file.
    """
    output = input_path.with_suffix(".wav")
    if output == input_path:
        output = input_path.with_suffix(".converted.wav")
    return output


def build_ffmpeg_command(ffmpeg: str, input_path: Path, output_path: Path) -> list[str]:
    return [
        ffmpeg,
        "-i",
        str(input_path),
        "-ar",
        "16000",
        "-ac",
        "1",
        "-sample_fmt",
        "s16",
        "-y",
        str(output_path),
    ]


def convert_to_wav(
    input_path: Path,
    ffmpeg: str = "ffmpeg",
    timeout: float = CONVERT_TIMEOUT_SECONDS,
) -> Path:
    """Convert an audio file to 16kHz mono 16-bit WAV using FFmpeg.

    The input file is consumed: it is deleted once FFmpeg has run, whether
    the conversion succeeded or not. On failure the partial output is
    removed too.

    Args:
        input_path: Audio file to convert
        ffmpeg: FFmpeg executable name or path
        timeout: Seconds before FFmpeg is killed

    Returns:
        Path of the WAV file. The caller owns it from here on.

    Raises:
        ToolNotFoundError: If FFmpeg is not installed
        ConversionError: If FFmpeg fails or times out
    """
    from vocord.exceptions import ConversionError, ToolNotFoundError

    output_path = wav_path_for(input_path)
    cmd = build_ffmpeg_command(ffmpeg, input_path, output_path)

    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
            env=extended_env(),
        )
    except FileNotFoundError as e:
        output_path.unlink(missing_ok=True)
        raise ToolNotFoundError("ffmpeg", "not found", FFMPEG_INSTALL_HINT) from e
    except subprocess.TimeoutExpired as e:
        output_path.unlink(missing_ok=True)
        raise ConversionError(f"ffmpeg conversion timed out after {timeout:g}s") from e
    except OSError as e:
        output_path.unlink(missing_ok=True)
        raise ConversionError(f"ffmpeg conversion failed: {e}") from e
    finally:
        input_path.unlink(missing_ok=True)

    if proc.returncode != 0:
        output_path.unlink(missing_ok=True)
        stderr = proc.stderr or ""
        if proc.returncode == 127 or _looks_missing(stderr):
            raise ToolNotFoundError("ffmpeg", "not found", FFMPEG_INSTALL_HINT)
        raise ConversionError(f"ffmpeg conversion failed: {_last_line(stderr, proc.returncode)}")

    return output_path


def _looks_missing(stderr: str) -> bool:
    lowered = stderr.lower()
    return any(sig in lowered for sig in MISSING_SIGNATURES)


def _last_line(stderr: str, returncode: int) -> str:
    lines = [line.strip() for line in stderr.splitlines() if line.strip()]
    if lines:
        return lines[-1]
    return f"exit code {returncode}"
