"""GPU environment check, optionally followed by system information."""

from __future__ import annotations

from typing import Optional

import typer

from gpuenv.logging import print_error

from ..common import (
    COMMAND_CONTEXT,
    EXIT_USAGE_ERROR,
    ConflictingFlagsError,
    build_options,
    is_verbose_mode,
    resolve_mode,
    run_check,
)
from ..help import command_help_option, maybe_show_command_help
from ...type_defs import CommandMap


def register(app: typer.Typer) -> CommandMap:
    @app.command(context_settings=COMMAND_CONTEXT)
    def gpu(
        ctx: typer.Context,
        gpu_only: bool = typer.Option(
            False, "--gpu-only", help="Only check GPU tooling and AI frameworks."
        ),
        sys_only: bool = typer.Option(
            False, "--sys-only", help="Only report system information."
        ),
        no_python: bool = typer.Option(
            False, "--no-python", help="Skip PyTorch/TensorFlow checks."
        ),
        verbose: bool = typer.Option(
            False, "--verbose", help="Include raw tool output and miss reasons."
        ),
        python_executable: Optional[str] = typer.Option(
            None,
            "--py",
            metavar="INTERPRETER",
            help="Python interpreter used for the framework checks.",
        ),
        help_: bool = command_help_option(),
    ) -> None:
        """Check GPU drivers, CUDA and ML frameworks, then system information."""
        maybe_show_command_help(ctx, help_)
        try:
            mode = resolve_mode(gpu_only=gpu_only, sys_only=sys_only)
        except ConflictingFlagsError as exc:
            print_error(str(exc))
            raise typer.Exit(code=EXIT_USAGE_ERROR)

        options = build_options(
            mode=mode,
            verbose=verbose or is_verbose_mode(ctx),
            python=False if no_python else None,
            python_executable=python_executable,
        )
        run_check(options)

    return {"gpu": gpu}
