from __future__ import annotations

import typer

from . import gpu, system, usage, version
from ...type_defs import CommandMap

COMMAND_MODULES = [
    gpu,
    system,
    usage,
    version,
]


def register(app: typer.Typer) -> CommandMap:
    """Attach all CLI subcommands to the shared Typer app."""
    command_map: CommandMap = {}
    for module in COMMAND_MODULES:
        command_map.update(module.register(app))
    return command_map
