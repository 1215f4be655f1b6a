from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.theme import Theme


# One Dark-inspired palette tuned for Rich output with enhanced contrast
PALETTE = {
    "fg": "#d7dae0",
    "fg_muted": "#7f848e",
    "bg": "#1e222a",
    "green": "#98c379",
    "bright_green": "#a9d98c",  # Commands
    "yellow": "#e5c07b",
    "bright_yellow": "#f0d399",  # Options
    "orange": "#d19a66",
    "bright_orange": "#e0ac7a",
    "blue": "#61afef",
    "cyan": "#56b6c2",
    "bright_cyan": "#6ecbd5",  # Arguments
    "purple": "#c678dd",
    "red": "#e06c75",
}

_theme = Theme(
    {
        "text": PALETTE["fg"],
        "muted": PALETTE["fg_muted"],
        "accent": PALETTE["orange"],
        "ok": PALETTE["green"],
        "warn": PALETTE["yellow"],
        "error": f"bold {PALETTE['red']}",
        "info": PALETTE["blue"],
        "section": f"bold {PALETTE['bright_orange']}",
    }
)

console = Console(theme=_theme, style=PALETTE["fg"])
err_console = Console(theme=_theme, stderr=True)


def status_spinner(message: str):
    """Return a Rich status spinner context manager."""
    return console.status(f"[info]{message}[/]")


def log_command(argv: list[str] | tuple[str, ...]) -> None:
    """Echo an external command in muted style on stderr."""
    err_console.print(f"[muted]$ {escape(' '.join(argv))}[/]", highlight=False)


def print_error(message: str) -> None:
    err_console.print(f"[error]{escape(message)}[/]", highlight=False, soft_wrap=True)
