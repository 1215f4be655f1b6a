"""Rich help screens for the gpuenv CLI.

Click's plain formatter is replaced by a single themed panel holding the
description, usage line, command and option tables, and a few examples.
"""

from __future__ import annotations

import inspect
from typing import Iterable, List, Sequence, Tuple

import click
import typer
from rich.console import Group, RenderableType
from rich.table import Table
from rich.text import Text

from gpuenv import __description__, ui
from gpuenv.logging import PALETTE, console

from .common import HELP_OPTION_NAMES

EXAMPLES = (
    ("gpuenv gpu", "GPU environment followed by system information"),
    ("gpuenv gpu --gpu-only --no-python", "GPU tooling only, skip framework checks"),
    ("gpuenv gpu --py ~/venv/bin/python", "Check PyTorch/TensorFlow in another interpreter"),
    ("gpuenv gpu --verbose", "Include raw tool output and why values are missing"),
    ("gpuenv sys", "System information only"),
)

NAME_STYLE = {"style": f"bold {PALETTE['bright_green']}", "no_wrap": True}
OPTION_STYLE = {"style": f"bold {PALETTE['bright_yellow']}", "no_wrap": True}
SHORT_STYLE = {"style": f"bold {PALETTE['bright_orange']}", "no_wrap": True}
TEXT_STYLE = {"style": PALETTE["fg"]}
MUTED_STYLE = {"style": PALETTE["fg_muted"]}

Rows = Iterable[Tuple[str, ...]]


def command_help_option() -> bool:
    """Shared ``-h/--help`` option; commands pass it to :func:`maybe_show_command_help`."""
    return typer.Option(
        False,
        *HELP_OPTION_NAMES,
        help="Show this message and exit.",
        is_eager=True,
    )


def maybe_show_command_help(ctx: typer.Context, help_requested: bool) -> None:
    if help_requested:
        show_command_help(ctx)
        raise typer.Exit()


def show_root_help(ctx: typer.Context) -> None:
    _render_panel(
        [
            Text(__description__, style=PALETTE["fg"]),
            ("Usage", Text("  gpuenv [OPTIONS] COMMAND [ARGS]...", style=PALETTE["fg"])),
            ("Commands", _table(command_rows(ctx), (NAME_STYLE, OPTION_STYLE, TEXT_STYLE))),
            ("Options", _table(option_rows(ctx), (OPTION_STYLE, SHORT_STYLE, TEXT_STYLE))),
            ("Examples", _table(EXAMPLES, (NAME_STYLE, MUTED_STYLE))),
        ]
    )


def show_command_help(ctx: typer.Context) -> None:
    command = ctx.command
    if command is None:
        return
    parts: list = []
    description = describe(command)
    if description:
        parts.append(Text(description, style=PALETTE["fg"]))
    parts.append(("Usage", Text(f"  {usage_line(ctx)}", style=PALETTE["fg"])))
    rows = option_rows(ctx)
    if rows:
        parts.append(("Options", _table(rows, (OPTION_STYLE, SHORT_STYLE, TEXT_STYLE))))
    _render_panel(parts)


def command_rows(ctx: typer.Context) -> List[Tuple[str, str, str]]:
    """(name, first option, summary) for every visible subcommand."""
    group = ctx.command
    if not isinstance(group, click.Group):
        return []
    rows = []
    for name in group.list_commands(ctx):
        command = group.get_command(ctx, name)
        if command is None or command.hidden:
            continue
        options = [
            param
            for param in command.params
            if isinstance(param, click.Option) and not _is_help(param)
        ]
        hint = long_name(options[0]) if options else ""
        rows.append((name, hint, describe(command)))
    return rows


def option_rows(ctx: typer.Context) -> List[Tuple[str, str, str]]:
    if ctx.command is None:
        return []
    return [
        (long_name(param), short_names(param), (param.help or "").strip())
        for param in ctx.command.params
        if isinstance(param, click.Option)
    ]


def long_name(param: click.Option) -> str:
    for opt in param.opts:
        if opt.startswith("--"):
            return opt
    return param.opts[0] if param.opts else ""


def short_names(param: click.Option) -> str:
    shorts: list[str] = []
    for opt in [*param.opts, *param.secondary_opts]:
        if opt.startswith("-") and not opt.startswith("--") and opt not in shorts:
            shorts.append(opt)
    return ", ".join(shorts)


def usage_line(ctx: typer.Context) -> str:
    """Usage for ``ctx`` spelled with ``gpuenv`` whatever the program name was."""
    names = []
    current = ctx
    while current.parent is not None:
        names.append(current.info_name or "")
        current = current.parent
    pieces = ctx.command.collect_usage_pieces(ctx)
    return " ".join(["gpuenv", *reversed(names), *pieces])


def describe(command: click.Command) -> str:
    """First line of the command help, falling back to the callback docstring."""
    text = (command.help or command.short_help or "").strip()
    if not text and command.callback is not None:
        text = inspect.getdoc(command.callback) or ""
    return text.splitlines()[0].strip() if text else ""


def _is_help(param: click.Option) -> bool:
    names = set(param.opts) | set(param.secondary_opts)
    return any(name in names for name in HELP_OPTION_NAMES)


def _table(rows: Rows, columns: Sequence[dict]) -> Table:
    table = ui.themed_grid(padding=(0, 3))
    for column in columns:
        table.add_column(**column)
    for row in rows:
        table.add_row(*row)
    return table


def _render_panel(parts: Sequence) -> None:
    """Lay out plain renderables and titled ``(title, body)`` sections in one panel."""
    renderables: List[RenderableType] = []
    for part in parts:
        if isinstance(part, tuple):
            title, body = part
            if renderables:
                renderables.append(Text(""))
            renderables.extend([Text(title, style="section"), body])
        else:
            renderables.append(part)
    console.print(
        ui.themed_panel(
            Group(*renderables),
            border_color=PALETTE["fg_muted"],
            text_style=PALETTE["fg"],
        )
    )
