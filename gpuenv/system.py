from __future__ import annotations

import glob as _glob
import os
import platform
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from .logging import log_command

DEFAULT_COMMAND_TIMEOUT = 10.0


@dataclass(frozen=True)
class CommandResult:
    argv: Tuple[str, ...]
    returncode: Optional[int]
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    missing: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out and not self.missing


def command_exists(name: str) -> bool:
    """Return True when ``name`` resolves on PATH; the tool itself is never run."""
    return shutil.which(name) is not None


def _run_command(args: Sequence[str], timeout: float) -> CommandResult:
    argv = tuple(args)
    try:
        proc = subprocess.run(
            list(argv),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdin=subprocess.DEVNULL,
            text=True,
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        return CommandResult(argv=argv, returncode=None, timed_out=True)
    except FileNotFoundError:
        return CommandResult(argv=argv, returncode=None, missing=True)
    except OSError as exc:
        return CommandResult(argv=argv, returncode=None, stderr=str(exc))
    return CommandResult(
        argv=argv, returncode=proc.returncode, stdout=proc.stdout, stderr=proc.stderr
    )


class Host:
    """Read-only view of the local machine used by every detector.

    Command results are cached for the lifetime of the instance so that facts
    scraped from the same tool output only run the tool once.
    """

    def __init__(self, *, verbose: bool = False, system: Optional[str] = None):
        self.verbose = verbose
        self.system = system or platform.system() or "unknown"
        self._results: Dict[Tuple[Tuple[str, ...], float], CommandResult] = {}

    def has_command(self, name: str) -> bool:
        if os.sep in name:
            return os.path.isfile(name) and os.access(name, os.X_OK)
        return command_exists(name)

    def run(
        self, argv: Sequence[str], timeout: float = DEFAULT_COMMAND_TIMEOUT
    ) -> CommandResult:
        key = (tuple(argv), timeout)
        cached = self._results.get(key)
        if cached is not None:
            return cached
        if self.verbose:
            log_command(key[0])
        result = self._execute(key[0], timeout)
        self._results[key] = result
        return result

    def _execute(self, argv: Tuple[str, ...], timeout: float) -> CommandResult:
        return _run_command(argv, timeout)

    def read_text(self, path: str) -> Optional[str]:
        try:
            return Path(path).read_text(encoding="utf-8", errors="replace")
        except OSError:
            return None

    def is_file(self, path: str) -> bool:
        return Path(path).is_file()

    def is_dir(self, path: str) -> bool:
        return Path(path).is_dir()

    def glob(self, pattern: str) -> List[str]:
        return sorted(_glob.glob(pattern))

    def getenv(self, name: str) -> Optional[str]:
        return os.environ.get(name) or None

    def hostname(self) -> str:
        return platform.node()

    def uname(self) -> Tuple[str, str, str]:
        """Return (system, release, machine)."""
        info = platform.uname()
        return info.system, info.release, info.machine
