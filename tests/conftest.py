from __future__ import annotations

import fnmatch
from typing import Dict, Iterable, Mapping, Optional, Tuple, Union

import pytest
from typer.testing import CliRunner

from gpuenv.configuration import CheckOptions
from gpuenv.configuration.loader import locate_config_file, reload_config
from gpuenv.detectors.base import DetectionContext
from gpuenv.system import CommandResult, Host

Output = Union[str, CommandResult]


class FakeHost(Host):
    """Scripted machine: tools on PATH, command outputs, files and environment."""

    def __init__(
        self,
        *,
        system: str = "Linux",
        commands: Iterable[str] = (),
        outputs: Optional[Mapping[Tuple[str, ...], Output]] = None,
        files: Optional[Mapping[str, str]] = None,
        dirs: Iterable[str] = (),
        env: Optional[Mapping[str, str]] = None,
        timeouts: Iterable[Tuple[str, ...]] = (),
        hostname: str = "testbox",
        uname: Tuple[str, str, str] = ("Linux", "6.1.0", "x86_64"),
    ):
        super().__init__(system=system)
        self.commands = set(commands)
        self.outputs: Dict[Tuple[str, ...], Output] = dict(outputs or {})
        self.files = dict(files or {})
        self.dirs = set(dirs)
        self.env = dict(env or {})
        self.timeouts = set(timeouts)
        self._hostname = hostname
        self._uname = uname
        self.calls: list[Tuple[str, ...]] = []

    def has_command(self, name: str) -> bool:
        return name in self.commands

    def _execute(self, argv, timeout):
        self.calls.append(argv)
        if argv[0] not in self.commands:
            return CommandResult(argv=argv, returncode=None, missing=True)
        if argv in self.timeouts:
            return CommandResult(argv=argv, returncode=None, timed_out=True)
        output = self.outputs.get(argv)
        if output is None:
            return CommandResult(argv=argv, returncode=1, stdout="")
        if isinstance(output, CommandResult):
            return output
        return CommandResult(argv=argv, returncode=0, stdout=output)

    def read_text(self, path: str) -> Optional[str]:
        return self.files.get(path)

    def is_file(self, path: str) -> bool:
        return path in self.files

    def is_dir(self, path: str) -> bool:
        return path in self.dirs

    def glob(self, pattern: str):
        candidates = set(self.dirs) | set(self.files)
        return sorted(path for path in candidates if fnmatch.fnmatch(path, pattern))

    def getenv(self, name: str) -> Optional[str]:
        return self.env.get(name) or None

    def hostname(self) -> str:
        return self._hostname

    def uname(self) -> Tuple[str, str, str]:
        return self._uname


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def make_ctx():
    def _make(host: Host, **options) -> DetectionContext:
        return DetectionContext(host=host, options=CheckOptions(**options))

    return _make


@pytest.fixture(autouse=True)
def isolate_config(tmp_path, monkeypatch):
    """Keep user configuration files out of every test."""
    monkeypatch.delenv("GPUENV_CONFIG", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    locate_config_file.cache_clear()
    reload_config()
    yield
    locate_config_file.cache_clear()


@pytest.fixture
def fake_host():
    """Factory for scripted hosts: ``fake_host(commands=[...], outputs={...})``."""
    return FakeHost
