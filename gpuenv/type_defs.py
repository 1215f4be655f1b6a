from __future__ import annotations

from typing import Callable, Dict

CommandMap = Dict[str, Callable[..., None]]
