"""UI utilities for consistently themed Rich console output."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Tuple

from rich.console import RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from gpuenv.logging import PALETTE, console
from gpuenv.report import Note, Raw, Report, Row, Section


def themed_grid(*, padding: Tuple[int, int] = (0, 3), expand: bool = False) -> Table:
    """Return a Rich grid table honoring the shared palette."""
    table = Table.grid(padding=padding, expand=expand)
    table.style = PALETTE["fg"]
    return table


def themed_panel(
    message: RenderableType,
    *,
    border_color: str,
    text_style: str | None = None,
) -> Panel:
    """Return a Rich Panel styled with the shared palette."""
    return Panel.fit(
        message, border_style=border_color, style=text_style or PALETTE["fg"]
    )


def show_banner(now: Optional[datetime] = None) -> None:
    """Print the run title and timestamp above the report."""
    stamp = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    console.print(Text("GPU/System Check (gpuenv)", style="bold"), soft_wrap=True)
    console.print(Text(f"Time: {stamp}", style="muted"), soft_wrap=True)


def show_report(report: Report, *, verbose: bool = False) -> None:
    """Print the report line by line; the plain text matches ``Report.render``."""
    for entry in report.entries:
        if isinstance(entry, Section):
            console.print()
            console.print(Text(entry.header(), style="section"), soft_wrap=True)
            for item in entry.entries:
                _print_entry(item, verbose)
        else:
            _print_entry(entry, verbose)


def _print_entry(entry, verbose: bool) -> None:
    if isinstance(entry, Raw):
        if verbose:
            for line in entry.lines():
                console.print(Text(line, style="muted"), soft_wrap=True)
    elif isinstance(entry, Note):
        console.print(Text(entry.text(verbose), style=entry.level), soft_wrap=True)
    elif isinstance(entry, Row):
        style = "text" if entry.fact.present else "muted"
        console.print(Text(entry.text(verbose), style=style), soft_wrap=True)


def success_panel(message: str) -> None:
    """Display a success message with standard styling."""
    console.print(Text(f"[OK] {message}", style="ok"), soft_wrap=True)
