"""Filesystem helpers for dotconfig."""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path

BACKUP_TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


def ensure_parent(path: Path) -> None:
    """Ensure the parent directory exists."""

    path.parent.mkdir(parents=True, exist_ok=True)


def exists_or_link(path: Path) -> bool:
    """Return ``True`` for existing paths and for broken symlinks."""

    return path.exists() or path.is_symlink()


def read_link(path: Path) -> str:
    return os.readlink(path)


def symlink_points_to(link: Path, target: Path) -> bool:
    """Return ``True`` if ``link`` is a symlink resolving to ``target``."""

    if not link.is_symlink():
        return False
    current = Path(os.readlink(link))
    current_resolved = (link.parent / current).resolve(strict=False)
    target_resolved = target.resolve(strict=False)
    return current_resolved == target_resolved


def backup_path(target: Path, now: datetime) -> Path:
    """Return a free ``{target}.backup.{timestamp}`` path for ``target``.

    Two backups taken within the same second get a numeric suffix so an
    earlier backup is never overwritten.
    """

    stamp = now.strftime(BACKUP_TIMESTAMP_FORMAT)
    candidate = target.with_name(f"{target.name}.backup.{stamp}")
    counter = 0
    while exists_or_link(candidate):
        counter += 1
        candidate = target.with_name(f"{target.name}.backup.{stamp}.{counter}")
    return candidate


def move_aside(target: Path, now: datetime) -> Path:
    """Rename ``target`` to its backup path and return that path."""

    destination = backup_path(target, now)
    os.rename(target, destination)
    return destination


def create_symlink(link: Path, source: Path) -> None:
    """Create ``link`` pointing at the absolute ``source`` path."""

    ensure_parent(link)
    link.symlink_to(source, target_is_directory=source.is_dir())
