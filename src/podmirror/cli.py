"""CLI entry point for podmirror."""

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from podmirror.config.logging import setup_logging
from podmirror.config.manager import load_sync_config
from podmirror.config.schema import SyncConfig
from podmirror.sync.backend import FfmpegBackend
from podmirror.sync.engine import SyncEngine, SyncReport
from podmirror.ui import get_theme
from podmirror.utils.errors import ConfigError

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="podmirror",
    help="Mirror music playlists and podcast feeds into a local directory",
    no_args_is_help=True,
)
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose (DEBUG) logging"
    ),
    log_file: Path | None = typer.Option(
        None, "--log-file", help="Write logs to file"
    ),
) -> None:
    """podmirror - keep playlists and podcasts mirrored on disk."""
    setup_logging(verbose=verbose, log_file=log_file)


@app.command("version")
def show_version() -> None:
    """Show version information."""
    from podmirror import __version__

    console.print(f"[bold cyan]podmirror[/bold cyan] v{__version__}")


def _load_config_or_exit(config_path: Path) -> SyncConfig:
    theme = get_theme()
    console.print(theme.info_text(f"Loading config: {config_path}"))
    try:
        return load_sync_config(config_path)
    except ConfigError as e:
        console.print(theme.error_text(str(e)))
        raise typer.Exit(code=1) from e


@app.command("check")
def check_config(
    config_path: Path = typer.Option(
        ..., "--config", "-c", help="Path to the sync configuration"
    ),
) -> None:
    """Validate a configuration file and show what it would sync."""
    config = _load_config_or_exit(config_path)
    theme = get_theme()

    table = Table(
        show_header=True,
        header_style=theme.table_header,
        border_style=theme.table_border,
    )
    table.add_column("Set", style=theme.primary)
    table.add_column("Name")
    table.add_column("Keep", justify="right")
    table.add_column("Speed", justify="right")
    table.add_column("URL", overflow="fold")

    for playlist in config.playlists:
        table.add_row("(playlist)", playlist.name, "", "", playlist.url)
    for podcast_set in config.podcasts:
        for podcast in podcast_set.podcasts:
            table.add_row(
                podcast_set.name,
                podcast.name,
                str(podcast.keep_latest),
                f"{podcast.playback_speed:g}x",
                podcast.url,
            )

    console.print(table)
    console.print(
        theme.success_text(
            f"{len(config.playlists)} playlist(s), {len(config.podcasts)} podcast set(s)"
        )
    )


def _print_summary(report: SyncReport) -> None:
    theme = get_theme()
    failures = report.failures()
    if not failures:
        console.print(theme.success_text("Sync complete"))
        return

    console.print(f"\n[bold]{len(failures)} failure(s):[/bold]")
    for message in failures:
        console.print(theme.error_text(message))


@app.command("sync")
def sync(
    config_path: Path = typer.Option(
        ..., "--config", "-c", help="Path to the sync configuration"
    ),
    output_dir: Path = typer.Option(
        ..., "--output-dir", "-o", help="Root directory for synced content"
    ),
    prune: bool = typer.Option(
        False, "--prune", help="Delete episodes that fell out of the keep-latest window"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Show what would be synced without changing anything"
    ),
    ffmpeg: str = typer.Option("ffmpeg", "--ffmpeg", help="ffmpeg executable"),
    spotdl: str = typer.Option("spotdl", "--spotdl", help="spotdl executable"),
) -> None:
    """Sync all playlists and podcast sets from a configuration file.

    Examples:
        podmirror sync --config sync.yaml --output-dir ~/Music/sync

        podmirror sync -c sync.json -o /media/player --prune
    """
    config = _load_config_or_exit(config_path)

    engine = SyncEngine(
        output_dir=output_dir,
        backend=FfmpegBackend(ffmpeg=ffmpeg),
        prune=prune,
        dry_run=dry_run,
        spotdl=spotdl,
        console=console,
    )
    report = asyncio.run(engine.run(config))

    _print_summary(report)
    if not report.ok:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
