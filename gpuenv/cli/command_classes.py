"""Custom Typer/Click command classes for the gpuenv CLI."""

from __future__ import annotations

import errno
import sys
from typing import Any, Optional, Sequence, TextIO, cast

import click
import typer
from rich.markup import escape
from typer import rich_utils

from gpuenv.logging import err_console


def show_usage_error(exc: click.UsageError) -> None:
    """Print the usage line, the error and a ``--help`` hint on stderr."""
    ctx = exc.ctx or click.get_current_context(silent=True)
    if ctx is not None:
        usage = ctx.command.get_usage(ctx)
        err_console.print(f"[muted]{escape(usage)}[/]", highlight=False)
    err_console.print(f"[error]Error:[/] {escape(exc.format_message())}", highlight=False)
    if ctx is not None:
        err_console.print(
            f"[info]Try '{ctx.command_path or 'gpuenv'} --help' for more information.[/]",
            highlight=False,
        )


class GpuenvGroup(typer.core.TyperGroup):
    """Root group that reports bad invocations as a short themed usage hint.

    Mirrors ``click.Command.main`` in standalone mode, except that usage
    errors never dump the full help text.
    """

    def main(
        self,
        args: Optional[Sequence[str]] = None,
        prog_name: Optional[str] = None,
        complete_var: Optional[str] = None,
        standalone_mode: bool = True,
        windows_expand_args: bool = True,
        **extra: Any,
    ) -> Any:
        args = sys.argv[1:] if args is None else list(args)
        if prog_name is None:
            prog_name = click.utils._detect_program_name()
        self._main_shell_completion(extra, prog_name, complete_var)

        try:
            try:
                with self.make_context(prog_name, args, **extra) as ctx:
                    rv = self.invoke(ctx)
                    if not standalone_mode:
                        return rv
                    ctx.exit()
            except (EOFError, KeyboardInterrupt) as exc:
                click.echo(file=sys.stderr)
                raise click.Abort() from exc
            except click.ClickException as exc:
                if not standalone_mode:
                    raise
                if isinstance(exc, click.UsageError):
                    show_usage_error(exc)
                elif self.rich_markup_mode is not None:
                    rich_utils.rich_format_error(exc)
                else:
                    exc.show()
                sys.exit(exc.exit_code)
            except OSError as exc:
                if exc.errno != errno.EPIPE:
                    raise
                sys.stdout = cast(TextIO, click.utils.PacifyFlushWrapper(sys.stdout))
                sys.stderr = cast(TextIO, click.utils.PacifyFlushWrapper(sys.stderr))
                sys.exit(1)
        except click.exceptions.Exit as exc:
            if standalone_mode:
                sys.exit(exc.exit_code)
            return exc.exit_code
        except click.Abort:
            if not standalone_mode:
                raise
            if self.rich_markup_mode is not None:
                rich_utils.rich_abort_error()
            else:
                click.echo("Aborted!", file=sys.stderr)
            sys.exit(1)
