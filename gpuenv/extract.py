"""Declarative extraction of named facts from semi-structured tool output.

Rules never raise on bad input: empty text, garbled text, malformed JSON or
XML all produce an empty candidate list, which :func:`extract` turns into an
absent :class:`Fact` tagged ``MissReason.PARSE_MISS``.

Numbers are only understood as plain integers with an optional unit suffix.
Thousands separators, decimals and locale formatting are not handled.
"""

from __future__ import annotations

import json
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Iterable, List, Literal, NamedTuple, Optional, Union

Pick = Literal["first", "last", "all"]

# Placeholders vendor tools print instead of a value.
MISSING_MARKERS = frozenset({"n/a", "[n/a]", "not supported", "[not supported]"})


class MissReason(str, Enum):
    TOOL_UNAVAILABLE = "tool unavailable"
    COMMAND_FAILED = "command failed"
    TIMEOUT = "timeout"
    PARSE_MISS = "no match"
    NOT_DERIVABLE = "not derivable"
    NO_SOURCES = "no sources"


@dataclass(frozen=True)
class Fact:
    """A named, optional value. Absence is a normal outcome, not an error."""

    name: str
    value: Optional[str] = None
    source: Optional[str] = None
    miss: Optional[MissReason] = None

    @property
    def present(self) -> bool:
        return bool(self.value)

    @classmethod
    def absent(cls, name: str, reason: MissReason) -> "Fact":
        return cls(name=name, miss=reason)

    def with_source(self, source: str) -> "Fact":
        return replace(self, source=source)


@dataclass(frozen=True)
class Pattern:
    """Regular expression; yields ``group`` of every match."""

    regex: str
    group: Union[int, str] = 1
    flags: int = re.MULTILINE
    pick: Pick = "first"

    def candidates(self, text: str) -> List[str]:
        compiled = re.compile(self.regex, self.flags)
        group = self.group if compiled.groups else 0
        return [match.group(group) or "" for match in compiled.finditer(text)]


@dataclass(frozen=True)
class Column:
    """Split each line on ``delimiter`` (regex, whitespace when None) and take ``index``."""

    index: int
    delimiter: Optional[str] = r",\s*"
    line_filter: Optional[str] = None
    skip_header: bool = False
    pick: Pick = "first"

    def candidates(self, text: str) -> List[str]:
        lines = [line for line in text.splitlines() if line.strip()]
        if self.skip_header:
            lines = lines[1:]
        if self.line_filter:
            lines = [line for line in lines if re.search(self.line_filter, line)]
        values = []
        for line in lines:
            stripped = line.strip()
            if self.delimiter is None:
                parts = stripped.split()
            else:
                parts = re.split(self.delimiter, stripped)
            if -len(parts) <= self.index < len(parts):
                values.append(parts[self.index])
        return values


@dataclass(frozen=True)
class KeyValue:
    """``Label: value`` lines whose label matches ``key`` (case-insensitive regex)."""

    key: str
    separator: str = ":"
    pick: Pick = "first"

    def candidates(self, text: str) -> List[str]:
        compiled = re.compile(self.key, re.IGNORECASE)
        values = []
        for line in text.splitlines():
            label, sep, value = line.partition(self.separator)
            if sep and compiled.search(label.strip()):
                values.append(value)
        return values


@dataclass(frozen=True)
class JsonKey:
    """Dotted path into a JSON document; ``*`` fans out over dict values or list items."""

    path: str
    pick: Pick = "first"

    def candidates(self, text: str) -> List[str]:
        try:
            data = json.loads(text)
        except ValueError:
            return []
        nodes: List[Any] = [data]
        for part in self.path.split("."):
            nodes = list(_descend(nodes, part))
        values = []
        for node in nodes:
            if isinstance(node, list):
                values.extend(_scalar(item) for item in node if _is_scalar(item))
            elif _is_scalar(node):
                values.append(_scalar(node))
        return values


def _descend(nodes: Iterable[Any], part: str) -> Iterable[Any]:
    for node in nodes:
        if part == "*":
            if isinstance(node, dict):
                yield from node.values()
            elif isinstance(node, list):
                yield from node
        elif isinstance(node, dict) and part in node:
            yield node[part]
        elif isinstance(node, list) and part.lstrip("-").isdigit():
            index = int(part)
            if -len(node) <= index < len(node):
                yield node[index]


def _is_scalar(value: Any) -> bool:
    return value is not None and not isinstance(value, (dict, list))


def _scalar(value: Any) -> str:
    return str(value)


@dataclass(frozen=True)
class XmlPath:
    """ElementTree path (relative to the document root); yields element text."""

    path: str
    pick: Pick = "first"

    def candidates(self, text: str) -> List[str]:
        try:
            root = ET.fromstring(text)
        except ET.ParseError:
            return []
        return [element.text or "" for element in root.findall(self.path)]


@dataclass(frozen=True)
class Block:
    """Scope ``rule`` to the lines below the first header matching ``start``.

    The block ends at a blank line or at the first line indented no deeper
    than the header.
    """

    start: str
    rule: "Rule"
    pick: Pick = "first"

    def candidates(self, text: str) -> List[str]:
        lines = text.splitlines()
        header = re.compile(self.start, re.IGNORECASE)
        for position, line in enumerate(lines):
            if not header.search(line):
                continue
            indent = _indent(line)
            body = []
            for following in lines[position + 1 :]:
                if not following.strip() or _indent(following) <= indent:
                    break
                body.append(following)
            return self.rule.candidates("\n".join(body))
        return []


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip())


Rule = Union[Pattern, Column, KeyValue, JsonKey, XmlPath, Block]


def _usable(value: str) -> bool:
    return bool(value) and value.lower() not in MISSING_MARKERS


def extract_values(text: Optional[str], rule: Optional[Rule]) -> List[str]:
    """Return every usable candidate value for ``rule`` in ``text``, in order."""
    if not text:
        return []
    if rule is None:
        raw = text.splitlines()
    else:
        raw = rule.candidates(text)
    return [value for value in (item.strip() for item in raw) if _usable(value)]


def extract(text: Optional[str], rule: Optional[Rule], name: str = "") -> Fact:
    """Apply ``rule`` to ``text`` and return a single Fact.

    ``rule=None`` takes the first non-empty line. Otherwise the rule's ``pick``
    decides between the first, last, or all (comma-joined) candidates.
    """
    values = extract_values(text, rule)
    if not values:
        return Fact.absent(name, MissReason.PARSE_MISS)
    pick = rule.pick if rule is not None else "first"
    if pick == "last":
        value = values[-1]
    elif pick == "all":
        value = ", ".join(values)
    else:
        value = values[0]
    return Fact(name=name, value=value)


class Quantity(NamedTuple):
    number: int
    spacing: str
    unit: str


_QUANTITY_PATTERN = re.compile(r"^\s*(-?\d+)(\s*)([A-Za-z]*)\s*$")


def parse_quantity(value: Optional[str]) -> Optional[Quantity]:
    """Parse ``"16384MiB"``, ``"16384 MiB"`` or ``"8192"``; anything else is None."""
    if not value:
        return None
    match = _QUANTITY_PATTERN.match(value)
    if not match:
        return None
    return Quantity(int(match.group(1)), match.group(2), match.group(3))


def derive_difference(name: str, total: Fact, used: Fact) -> Fact:
    """Compute ``total - used`` keeping the unit and spacing of ``total``.

    Only integers sharing a unit are subtracted; otherwise the Fact stays absent.
    """
    total_qty = parse_quantity(total.value)
    used_qty = parse_quantity(used.value)
    if total_qty is None or used_qty is None:
        return Fact.absent(name, MissReason.NOT_DERIVABLE)
    if total_qty.unit.lower() != used_qty.unit.lower():
        return Fact.absent(name, MissReason.NOT_DERIVABLE)
    difference = total_qty.number - used_qty.number
    return Fact(
        name=name,
        value=f"{difference}{total_qty.spacing}{total_qty.unit}",
        source="derived",
    )
