from __future__ import annotations

import sys

import typer

from gpuenv import __description__
from gpuenv.configuration import ConfigurationError
from gpuenv.logging import print_error

from .commands import register as register_commands
from .command_classes import GpuenvGroup
from .common import print_version
from .help import show_root_help

app = typer.Typer(
    name="gpuenv",
    help=__description__,
    context_settings={"help_option_names": []},
    rich_markup_mode="rich",
    cls=GpuenvGroup,
)

register_commands(app)


@app.callback(invoke_without_command=True)
def _root_command(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "-v",
        "--version",
        help="Show CLI version and exit.",
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "-V",
        "--verbose",
        help="Show raw tool output and echo executed commands.",
    ),
    help_: bool = typer.Option(
        False,
        "--help",
        "-h",
        help="Show this message and exit.",
        is_eager=True,
    ),
) -> None:
    # Store verbose flag in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    if version:
        print_version()
        raise typer.Exit()
    if help_:
        show_root_help(ctx)
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        show_root_help(ctx)


def main() -> None:
    try:
        app()
    except ConfigurationError as exc:
        print_error(str(exc))
        sys.exit(1)


__all__ = ["app", "main"]
