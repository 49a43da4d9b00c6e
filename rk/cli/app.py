from __future__ import annotations

import typer

from rk import __version__
from rk.cli.commands.release_cmd import next_version, notes, release


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


app.command()(release)
app.command("next-version")(next_version)
app.command()(notes)


def _print_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit.",
        callback=_print_version,
        is_eager=True,
    ),
) -> None:
    """Commit-driven semantic releases for git repositories."""


def main() -> None:
    app()
