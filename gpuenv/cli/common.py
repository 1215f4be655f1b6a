from __future__ import annotations

from typing import Optional

import typer

from gpuenv import __version__, ui
from gpuenv.configuration import CheckOptions, ConfigurationError, get_config
from gpuenv.configuration.schema import Mode
from gpuenv.logging import console, print_error, status_spinner
from gpuenv.orchestrator import build_report
from gpuenv.system import Host

HELP_OPTION_NAMES = ("-h", "--help")
COMMAND_CONTEXT = {"help_option_names": []}

EXIT_CONFIG_ERROR = 1
EXIT_USAGE_ERROR = 2


class ConflictingFlagsError(ValueError):
    """Raised when mutually exclusive report modes are requested together."""


def resolve_mode(*, gpu_only: bool, sys_only: bool) -> Mode:
    if gpu_only and sys_only:
        raise ConflictingFlagsError("--gpu-only and --sys-only cannot be used together")
    if gpu_only:
        return "gpu"
    if sys_only:
        return "sys"
    return "all"


def is_verbose_mode(ctx: typer.Context) -> bool:
    """Check if verbose mode is enabled from context."""
    return bool(ctx.obj and ctx.obj.get("verbose", False))


def print_version() -> None:
    console.print(f"[bold]gpuenv[/bold] [accent]v{__version__}[/]")


def build_options(
    *,
    mode: Mode,
    verbose: bool,
    python: Optional[bool] = None,
    python_executable: Optional[str] = None,
) -> CheckOptions:
    """Merge command-line flags over the configuration file."""
    try:
        config = get_config()
    except ConfigurationError as exc:
        print_error(str(exc))
        raise typer.Exit(code=EXIT_CONFIG_ERROR)
    return CheckOptions.from_config(
        config,
        mode=mode,
        verbose=verbose,
        python=python,
        python_executable=python_executable,
    )


def run_check(options: CheckOptions) -> None:
    """Inspect the machine and print the report."""
    host = Host(verbose=options.verbose)
    ui.show_banner()
    with status_spinner("Inspecting machine..."):
        report = build_report(host, options)
    ui.show_report(report, verbose=options.verbose)
    console.print()
    ui.success_panel("Check complete")
