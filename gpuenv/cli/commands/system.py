"""System information report."""

from __future__ import annotations

import typer

from ..common import COMMAND_CONTEXT, build_options, is_verbose_mode, run_check
from ..help import command_help_option, maybe_show_command_help
from ...type_defs import CommandMap


def register(app: typer.Typer) -> CommandMap:
    @app.command(name="sys", context_settings=COMMAND_CONTEXT)
    def sys_(
        ctx: typer.Context,
        help_: bool = command_help_option(),
    ) -> None:
        """Report OS, CPU, memory, disks and machine identifiers."""
        maybe_show_command_help(ctx, help_)
        run_check(build_options(mode="sys", verbose=is_verbose_mode(ctx)))

    return {"sys": sys_}
