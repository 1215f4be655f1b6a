"""Line-oriented report made of ordered sections of key/value rows."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Literal, Optional, Union

from .extract import Fact

UNAVAILABLE = "unavailable"

NoteLevel = Literal["ok", "warn"]

NOTE_PREFIXES = {"ok": "[OK]", "warn": "[WARN]"}


@dataclass(frozen=True)
class Row:
    label: str
    fact: Fact
    hint: Optional[str] = None

    def text(self, verbose: bool = False) -> str:
        if self.fact.present:
            return f"  - {self.label}: {self.fact.value}"
        value = UNAVAILABLE
        if self.hint:
            value = f"{value} ({self.hint})"
        elif verbose and self.fact.miss is not None:
            value = f"{value} ({self.fact.miss.value})"
        return f"  - {self.label}: {value}"


@dataclass(frozen=True)
class Note:
    level: NoteLevel
    message: str

    def text(self, verbose: bool = False) -> str:
        return f"{NOTE_PREFIXES[self.level]} {self.message}"


@dataclass(frozen=True)
class Raw:
    """Verbatim tool output, shown in verbose mode only."""

    content: str

    def lines(self) -> List[str]:
        return [f"    {line}".rstrip() for line in self.content.rstrip().splitlines()]


Entry = Union[Row, Note, Raw]


@dataclass
class Section:
    name: str
    entries: List[Entry] = field(default_factory=list)

    def emit(
        self, label: str, fact: Union[Fact, str, None], *, hint: Optional[str] = None
    ) -> None:
        """Append a row; plain strings become present Facts, None an absent one."""
        if not isinstance(fact, Fact):
            fact = Fact(name=label, value=fact or None)
        self.entries.append(Row(label, fact, hint))

    def note(self, level: NoteLevel, message: str) -> None:
        self.entries.append(Note(level, message))

    def raw(self, content: Optional[str]) -> None:
        if content and content.strip():
            self.entries.append(Raw(content))

    @property
    def rows(self) -> List[Row]:
        return [entry for entry in self.entries if isinstance(entry, Row)]

    @property
    def notes(self) -> List[Note]:
        return [entry for entry in self.entries if isinstance(entry, Note)]

    def header(self) -> str:
        return f"== {self.name} =="

    def lines(self, verbose: bool = False) -> Iterator[str]:
        yield ""
        yield self.header()
        for entry in self.entries:
            if isinstance(entry, Raw):
                if verbose:
                    yield from entry.lines()
            else:
                yield entry.text(verbose)


@dataclass
class Report:
    entries: List[Union[Section, Note]] = field(default_factory=list)

    def begin_section(self, name: str) -> Section:
        section = Section(name)
        self.entries.append(section)
        return section

    def note(self, level: NoteLevel, message: str) -> None:
        self.entries.append(Note(level, message))

    @property
    def sections(self) -> List[Section]:
        return [entry for entry in self.entries if isinstance(entry, Section)]

    def section(self, name: str) -> Optional[Section]:
        for section in self.sections:
            if section.name == name:
                return section
        return None

    def lines(self, verbose: bool = False) -> Iterator[str]:
        for entry in self.entries:
            if isinstance(entry, Section):
                yield from entry.lines(verbose)
            else:
                yield entry.text(verbose)

    def render(self, verbose: bool = False) -> str:
        return "\n".join(self.lines(verbose)) + "\n"
