"""Ordered fallback chains: try each source until one yields a value."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, NamedTuple, Optional, Protocol, Sequence, Tuple

from .extract import Fact, MissReason, Rule, extract, extract_values
from .system import DEFAULT_COMMAND_TIMEOUT, Host


class SourceOutput(NamedTuple):
    text: Optional[str]
    miss: Optional[MissReason] = None


class Source(Protocol):
    label: str
    rule: Optional[Rule]

    def fetch(self, host: Host) -> SourceOutput:
        ...


@dataclass(frozen=True)
class CommandSource:
    """Run ``argv`` and apply ``rule`` to its output.

    The source is skipped without running anything when ``requires`` (default:
    ``argv[0]``) is not on PATH.
    Only stdout is parsed; with ``stderr_fallback`` an empty stdout is replaced
    by stderr, for tools that print their version there.
    """

    argv: Tuple[str, ...]
    rule: Optional[Rule] = None
    timeout: float = DEFAULT_COMMAND_TIMEOUT
    requires: Optional[str] = None
    label: str = ""
    stderr_fallback: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "argv", tuple(self.argv))
        if not self.label:
            object.__setattr__(self, "label", " ".join(self.argv))

    def fetch(self, host: Host) -> SourceOutput:
        if not host.has_command(self.requires or self.argv[0]):
            return SourceOutput(None, MissReason.TOOL_UNAVAILABLE)
        result = host.run(self.argv, timeout=self.timeout)
        if result.timed_out:
            return SourceOutput(None, MissReason.TIMEOUT)
        if result.missing:
            return SourceOutput(None, MissReason.TOOL_UNAVAILABLE)
        if not result.ok:
            return SourceOutput(None, MissReason.COMMAND_FAILED)
        if self.stderr_fallback and not result.stdout.strip():
            return SourceOutput(result.stderr)
        return SourceOutput(result.stdout)


@dataclass(frozen=True)
class FileSource:
    path: str
    rule: Optional[Rule] = None
    label: str = ""

    def __post_init__(self) -> None:
        if not self.label:
            object.__setattr__(self, "label", self.path)

    def fetch(self, host: Host) -> SourceOutput:
        text = host.read_text(self.path)
        if text is None:
            return SourceOutput(None, MissReason.TOOL_UNAVAILABLE)
        return SourceOutput(text)


@dataclass(frozen=True)
class EnvSource:
    variable: str
    rule: Optional[Rule] = None
    label: str = ""

    def __post_init__(self) -> None:
        if not self.label:
            object.__setattr__(self, "label", f"${self.variable}")

    def fetch(self, host: Host) -> SourceOutput:
        value = host.getenv(self.variable)
        if value is None:
            return SourceOutput(None, MissReason.TOOL_UNAVAILABLE)
        return SourceOutput(value)


@dataclass(frozen=True)
class TextSource:
    """Text fetched earlier, such as a single CSV row of a query."""

    text: str
    rule: Optional[Rule] = None
    label: str = "text"

    def fetch(self, host: Host) -> SourceOutput:
        return SourceOutput(self.text)


@dataclass(frozen=True)
class ComputedSource:
    """Produce a Fact from other facts, e.g. free = total - used."""

    compute: Callable[[Host], Fact]
    label: str = "derived"
    rule: Optional[Rule] = None

    def fetch(self, host: Host) -> SourceOutput:
        fact = self.compute(host)
        if not fact.present:
            return SourceOutput(None, fact.miss or MissReason.NOT_DERIVABLE)
        return SourceOutput(fact.value)


def resolve(name: str, sources: Sequence[Source], host: Host) -> Fact:
    """Return the first present Fact produced by ``sources`` in declared order.

    A source that errors, times out or returns nothing is skipped. When every
    source misses, the Fact is absent and carries the last miss reason.
    """
    miss = MissReason.NO_SOURCES
    for source in sources:
        output = source.fetch(host)
        if output.text is None:
            miss = output.miss or MissReason.COMMAND_FAILED
            continue
        fact = extract(output.text, source.rule, name=name)
        if fact.present:
            return fact.with_source(source.label)
        miss = MissReason.PARSE_MISS
    return Fact.absent(name, miss)


def resolve_values(sources: Sequence[Source], host: Host) -> List[str]:
    """Multi-valued variant of :func:`resolve`: the first non-empty list wins."""
    for source in sources:
        output = source.fetch(host)
        if output.text is None:
            continue
        values = extract_values(output.text, source.rule)
        if values:
            return values
    return []
