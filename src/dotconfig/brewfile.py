"""Structured parsing and OS filtering of Homebrew ``Brewfile`` manifests."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator

from .errors import ManifestMissingError
from .models import OSKind

# Directives whose packages only exist on macOS.
MACOS_ONLY_KINDS = frozenset({"cask", "mas"})

_ENTRY_RE = re.compile(
    r"""
    ^\s*
    (?P<kind>[a-z_]+)           # directive
    \s*\(?\s*
    (?P<quote>["'])(?P<name>[^"']+)(?P=quote)
    """,
    re.VERBOSE,
)


@dataclass(frozen=True, slots=True)
class BrewfileEntry:
    """A single package directive."""

    kind: str
    name: str
    line: str
    platforms: frozenset[OSKind] = field(default_factory=frozenset)

    def supports(self, os_kind: OSKind) -> bool:
        return not self.platforms or os_kind in self.platforms


def platforms_for(kind: str) -> frozenset[OSKind]:
    if kind in MACOS_ONLY_KINDS:
        return frozenset({OSKind.MACOS})
    return frozenset()


def _continues(text: str) -> bool:
    """Return ``True`` if ``text`` ends inside an open bracket or after a comma."""

    depth = 0
    quote: str | None = None
    last = ""
    for line in text.splitlines():
        for char in line:
            if quote is not None:
                if char == quote:
                    quote = None
            elif char in "\"'":
                quote = char
            elif char == "#":
                break
            elif char in "([{":
                depth += 1
            elif char in ")]}":
                depth -= 1
            if quote is not None or not char.isspace():
                last = char
    return depth > 0 or last == ","


def logical_lines(text: str) -> Iterator[str]:
    """Yield Brewfile directives, joining the continuation lines of multi-line ones."""

    pending: list[str] = []
    for line in text.splitlines():
        if not pending and (not line.strip() or line.strip().startswith("#")):
            yield line
            continue
        pending.append(line)
        if not _continues("\n".join(pending)):
            yield "\n".join(pending)
            pending = []
    if pending:
        yield "\n".join(pending)


def parse_line(line: str) -> BrewfileEntry | None:
    """Parse one directive; comments and blank lines yield ``None``.

    A directive may span several lines; the whole text is kept in
    ``BrewfileEntry.line`` so it is rendered or dropped as a unit.
    """

    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return None

    match = _ENTRY_RE.match(stripped)
    if match is None:
        # Keep unrecognised directives rather than dropping them.
        kind = stripped.split(None, 1)[0]
        name = stripped.splitlines()[0]
        return BrewfileEntry(kind=kind, name=name, line=stripped, platforms=platforms_for(kind))

    kind = match.group("kind")
    return BrewfileEntry(kind=kind, name=match.group("name"), line=stripped, platforms=platforms_for(kind))


class Brewfile:
    """An ordered collection of Brewfile entries."""

    def __init__(self, entries: Iterable[BrewfileEntry], path: Path | None = None) -> None:
        self.path = path
        self._entries: tuple[BrewfileEntry, ...] = tuple(entries)

    @classmethod
    def parse(cls, text: str, path: Path | None = None) -> "Brewfile":
        entries = [entry for entry in (parse_line(line) for line in logical_lines(text)) if entry is not None]
        return cls(entries, path)

    @classmethod
    def load(cls, path: Path) -> "Brewfile":
        if not path.is_file():
            raise ManifestMissingError(path)
        return cls.parse(path.read_text(encoding="utf-8"), path)

    def entries(self) -> tuple[BrewfileEntry, ...]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def for_os(self, os_kind: OSKind) -> "Brewfile":
        """Return a copy without entries that are unsupported on ``os_kind``."""

        return Brewfile((entry for entry in self._entries if entry.supports(os_kind)), self.path)

    def excluded_for(self, os_kind: OSKind) -> tuple[BrewfileEntry, ...]:
        return tuple(entry for entry in self._entries if not entry.supports(os_kind))

    def render(self) -> str:
        return "".join(f"{entry.line}\n" for entry in self._entries)
