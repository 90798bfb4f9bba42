"""Shared models and enums for dotconfig."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class OSKind(str, Enum):
    """Operating systems dotconfig knows how to set up."""

    MACOS = "macos"
    LINUX = "linux"

    @classmethod
    def current(cls) -> "OSKind":
        return cls.MACOS if sys.platform == "darwin" else cls.LINUX


class LinkMode(str, Enum):
    """How a configured link is materialised."""

    SINGLE = "single"
    CHILDREN = "children"


class LinkAction(str, Enum):
    """Outcome of linking a single target."""

    ALREADY_LINKED = "already_linked"
    LINKED = "linked"
    BACKED_UP_AND_LINKED = "backed_up_and_linked"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class LinkResult:
    """Result emitted for each target handled by the linker."""

    source: Path
    target: Path
    action: LinkAction
    backup: Path | None = None
    details: str | None = None


class LinkState(str, Enum):
    """States reported by ``dotconfig status``."""

    LINKED = "linked"
    MISSING = "missing"
    CONFLICT = "conflict"
    UNMANAGED = "unmanaged"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class LinkStatus:
    """Non-mutating view of a configured link."""

    source: Path
    target: Path
    state: LinkState
    details: str | None = None


class PatchAction(str, Enum):
    """Outcome of patching a shell resource file."""

    ALREADY_PATCHED = "already_patched"
    CREATED = "created"


@dataclass(frozen=True, slots=True)
class PatchResult:
    path: Path
    action: PatchAction
    created_file: bool = False


class InstallStatus(str, Enum):
    """Outcome of a package installation pass."""

    SKIPPED = "skipped"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"


@dataclass(frozen=True, slots=True)
class InstallResult:
    status: InstallStatus
    manifest: Path
    reason: str | None = None
    entries: int | None = None
    returncode: int | None = None


class UpdateStatus(str, Enum):
    """Outcome of ``dotconfig update``."""

    SKIPPED = "skipped"
    UP_TO_DATE = "up_to_date"
    CANCELLED = "cancelled"
    UPDATED = "updated"


@dataclass(frozen=True, slots=True)
class UpdateResult:
    status: UpdateStatus
    local: str | None = None
    remote: str | None = None
    reran_setup: bool = False


@dataclass(frozen=True, slots=True)
class SetupReport:
    """Everything ``dotconfig setup`` did, in execution order."""

    links: tuple[LinkResult, ...]
    patch: PatchResult
    install: InstallResult
