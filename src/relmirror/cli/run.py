"""
relmirror run - Mirror release assets.

Runs one pass immediately, then repeats on CHECK_INTERVAL until SIGINT/SIGTERM.
With an empty or zero interval (or --once) it exits after the first pass.
"""

from pathlib import Path

import typer

from relmirror.exceptions import ConfigurationError
from relmirror.utils.logging import get_logger, setup_logging

logger = get_logger("relmirror.cli.run")

app = typer.Typer(name="run", help="Mirror release assets into the download path", invoke_without_command=True)


@app.callback()
def run(
    ctx: typer.Context,
    once: bool = typer.Option(False, "--once", help="Run a single pass and exit (overrides CHECK_INTERVAL)"),
    interval: str | None = typer.Option(None, "--interval", "-i", help="Check interval, e.g. 10m or 1h30m"),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="YAML settings file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
    plain: bool = typer.Option(False, "--plain", help="Plain log lines instead of rich console output"),
) -> None:
    """
    Mirror the configured release assets.

    Settings come from GITHUB_OWNER, GITHUB_REPOSITORY, GITHUB_ARTEFACTS,
    DOWNLOAD_PATH and CHECK_INTERVAL (plus optional RELMIRROR_* variables).
    """
    if ctx.invoked_subcommand is not None:
        return

    from relmirror.config.loader import load_settings
    from relmirror.service.scheduler import run_service

    overrides = {"check_interval": "0" if once else interval}
    try:
        settings = load_settings(config_file=config_file, overrides=overrides)
    except ConfigurationError as e:
        setup_logging(level="INFO", use_rich=not plain)
        logger.error(f"Configuration error: {e}")
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from None

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_file=settings.log_file,
        use_rich=not plain,
    )
    run_service(settings)
