"""
relmirror status - Show the local state of mirrored artifacts.

Reads only the download path; no network access.
"""

from datetime import datetime, timezone
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from relmirror.config.duration import format_duration
from relmirror.exceptions import ConfigurationError
from relmirror.sync.types import ReleaseSource, parse_artifact_list, staging_path

app = typer.Typer(name="status", help="Show local state of mirrored artifacts", invoke_without_command=True)

console = Console()


def _format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    value = float(size)
    for unit in ("KiB", "MiB", "GiB"):
        value /= 1024
        if value < 1024 or unit == "GiB":
            break
    return f"{value:.1f} {unit}"


@app.callback()
def status(
    ctx: typer.Context,
    config_file: Path | None = typer.Option(None, "--config", "-c", help="YAML settings file"),
) -> None:
    """
    List each configured artifact with its local size and modification time.
    """
    if ctx.invoked_subcommand is not None:
        return

    from relmirror.config.loader import load_settings

    try:
        settings = load_settings(config_file=config_file)
    except ConfigurationError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from None

    source = ReleaseSource(owner=settings.owner, repository=settings.repository, host=settings.host)
    names = parse_artifact_list(settings.artifacts)

    console.print(f"\n[bold blue]{settings.owner}/{settings.repository}[/bold blue] -> {settings.download_path}")
    if settings.run_once:
        console.print("[dim]Mode: run once[/dim]\n")
    else:
        console.print(f"[dim]Mode: every {format_duration(settings.check_interval)}[/dim]\n")

    table = Table(title=f"Artifacts ({len(names)})", show_header=True)
    table.add_column("Name", style="cyan")
    table.add_column("Present", justify="center")
    table.add_column("Size", justify="right")
    table.add_column("Modified (UTC)", style="green")
    table.add_column("Staging file", justify="center")
    table.add_column("Source", style="dim")

    for name in names:
        path = settings.download_path / name
        try:
            st = path.stat()
        except OSError:
            st = None

        if st is not None:
            present = "[green]Yes[/green]"
            size = _format_size(st.st_size)
            modified = datetime.fromtimestamp(st.st_mtime, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        else:
            present = "[red]No[/red]"
            size = "-"
            modified = "-"

        stray = "[yellow]Yes[/yellow]" if staging_path(settings.download_path, name).exists() else "No"
        table.add_row(name, present, size, modified, stray, source.url_for(name))

    console.print(table)
