"""
Main CLI entry point.
"""

import typer

from relmirror import __version__
from relmirror.cli import run, status


def version_callback(value: bool):
    """Callback to display version and exit."""
    if value:
        typer.echo(f"relmirror version {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="relmirror",
    help="relmirror - keep a local directory in sync with the latest release assets",
    add_completion=False,
)

# Register subcommands
app.add_typer(run.app, name="run")
app.add_typer(status.app, name="status")


@app.callback(invoke_without_command=True)
def entrypoint(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
):
    """
    relmirror - keep a local directory in sync with the latest release assets.

    Run 'relmirror <command> --help' for help on a specific command.
    """
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def main():
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
