from __future__ import annotations

import typer

from ..common import COMMAND_CONTEXT
from ..help import show_root_help
from ...type_defs import CommandMap


def register(app: typer.Typer) -> CommandMap:
    @app.command(name="help", context_settings=COMMAND_CONTEXT)
    def help_command(ctx: typer.Context) -> None:
        """Show this help overview."""
        show_root_help(ctx.find_root())

    return {"help": help_command}
