"""
vocord.cli - Typer CLI entry point.

Exposes the transcription pipeline for manual use and the backend toggle
the UI offers, plus workspace housekeeping.
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from vocord import __version__
from vocord.config import VocordConfig, load_config
from vocord.exceptions import ConfigError
from vocord.logging import configure_logging

app = typer.Typer(
    name="vocord",
    help="Local voice message transcription.\n\n"
    "Downloads a voice message from a trusted media host and transcribes it "
    "with mlx-whisper or transcribe-cli.",
    add_completion=False,
)
console = Console()

CONFIG_OPTION_HELP = "Path to vocord.yaml (defaults to the data directory)"


def load_cli_config(config_path: str | None) -> VocordConfig:
    """Load configuration or exit with a readable error."""
    try:
        return load_config(Path(config_path).expanduser() if config_path else None)
    except ConfigError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)


def version_callback(value: bool) -> None:
    if value:
        console.print(f"vocord {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Vocord - local voice message transcription."""
    pass


@app.command("init")
def init_cmd(
    config_path: str | None = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
) -> None:
    """Write a vocord.yaml holding the default settings."""
    from vocord.config import CONFIG_FILENAME, DEFAULT_DATA_DIR, write_config

    path = Path(config_path).expanduser() if config_path else DEFAULT_DATA_DIR / CONFIG_FILENAME
    if path.exists() and not force:
        console.print(f"[red]Error: config already exists: {escape(str(path))} (use --force)[/red]")
        raise typer.Exit(1)

    try:
        write_config(VocordConfig(), path)
    except OSError as e:
        console.print(f"[red]Error writing config: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] Wrote default settings to {path}")


@app.command("transcribe")
def transcribe_cmd(
    url: str = typer.Argument(..., help="HTTPS URL of the voice message"),
    language: str | None = typer.Option(
        None, "--language", "-l", help="Language code (auto-detect if not set)"
    ),
    backend: str | None = typer.Option(
        None, "--backend", "-b", help="Backend: mlx-whisper, transcribe-rs or auto"
    ),
    model: str | None = typer.Option(
        None, "--model", "-m", help="GGML model path or mlx-whisper model id"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result object"),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logging"),
    config_path: str | None = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
) -> None:
    """Download and transcribe one voice message."""
    configure_logging(verbose)
    config = load_cli_config(config_path)

    from vocord.transcribe.engine import transcribe_url

    result = transcribe_url(url, language=language, backend=backend, model=model, config=config)

    if as_json:
        typer.echo(json.dumps(result, ensure_ascii=False))
    elif "text" in result:
        typer.echo(result["text"])
    else:
        console.print(f"[red]Transcription failed: {escape(result['error'])}[/red]")

    if "error" in result:
        raise typer.Exit(1)


@app.command("backend")
def backend_cmd(
    set_to: str | None = typer.Option(
        None, "--set", "-s", help="Persist a backend: mlx-whisper, transcribe-rs or auto"
    ),
    config_path: str | None = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
) -> None:
    """Show the backend in use, or persist a new choice."""
    from vocord.transcribe.backends import (
        parse_backend,
        platform_default,
        read_backend_file,
        write_backend_file,
    )

    config = load_cli_config(config_path)

    if set_to is not None:
        try:
            chosen = parse_backend(set_to)
        except ConfigError as e:
            console.print(f"[red]Error: {escape(str(e))}[/red]")
            raise typer.Exit(1)
        write_backend_file(config.backend_file, chosen)
        if chosen is None:
            console.print("[green]✓[/green] Backend set to auto-detect")
        else:
            console.print(f"[green]✓[/green] Backend set to {chosen.value}")
        return

    persisted = read_backend_file(config.backend_file)
    if persisted is not None:
        console.print(f"{persisted.value} [dim](from {config.backend_file})[/dim]")
    else:
        console.print(f"{platform_default().value} [dim](auto-detected)[/dim]")


@app.command("clean")
def clean_cmd(
    max_age: float | None = typer.Option(
        None, "--max-age", help="Remove scratch files older than this many seconds"
    ),
    config_path: str | None = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
) -> None:
    """Remove stale scratch files left by interrupted runs."""
    from vocord.workspace import ensure_workspace

    config = load_cli_config(config_path)
    workspace = config.temp_dir
    before = len(list(workspace.iterdir())) if workspace.exists() else 0

    ensure_workspace(workspace, max_age=max_age if max_age is not None else config.temp_max_age)

    after = len(list(workspace.iterdir()))
    console.print(f"[green]✓[/green] Removed {before - after} stale file(s) from {workspace}")


@app.command("status")
def status_cmd(
    config_path: str | None = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
) -> None:
    """Check that the tools and models the pipeline needs are installed."""
    from vocord.exceptions import ModelNotFoundError
    from vocord.transcribe.backends import Backend, resolve_backend
    from vocord.transcribe.engine import prepare_backend
    from vocord.utils import extended_env

    config = load_cli_config(config_path)
    backend = resolve_backend(backend_file=config.backend_file)
    search_path = extended_env().get("PATH")

    table = Table(title="Vocord Status")
    table.add_column("Component", style="cyan")
    table.add_column("Location", style="green")
    table.add_column("Status", style="yellow")

    table.add_row("Backend", backend.value, "[green]✓[/green]")

    problems = 0
    try:
        invocation = prepare_backend(backend, config)
        table.add_row("Model", invocation.model, "[green]✓[/green]")
        executable = shutil.which(invocation.command, path=search_path)
        if executable:
            table.add_row(backend.label, executable, "[green]✓[/green]")
        else:
            table.add_row(backend.label, invocation.command, "[red]Not found[/red]")
            problems += 1
    except ModelNotFoundError as e:
        table.add_row("Model", "-", f"[red]{e}[/red]")
        problems += 1

    if backend is Backend.TRANSCRIBE_RS:
        ffmpeg = shutil.which(config.ffmpeg_path, path=search_path)
        if ffmpeg:
            table.add_row("ffmpeg", ffmpeg, "[green]✓[/green]")
        else:
            table.add_row("ffmpeg", config.ffmpeg_path, "[red]Not found[/red]")
            problems += 1

    table.add_row("Scratch dir", str(config.temp_dir), "[dim]-[/dim]")
    console.print(table)

    if problems:
        raise typer.Exit(1)
