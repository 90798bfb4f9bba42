"""Idempotent symlink management with backup-on-conflict."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable

from . import log
from .config import LinkSpec
from .errors import ConflictError
from .filesystem import (
    create_symlink,
    exists_or_link,
    move_aside,
    read_link,
    symlink_points_to,
)
from .models import LinkAction, LinkMode, LinkResult, LinkState, LinkStatus, OSKind

Clock = Callable[[], datetime]


class Linker:
    """Ensures home-directory paths are symlinks into the repository."""

    def __init__(self, clock: Clock = datetime.now) -> None:
        self.clock = clock

    def link(self, source: Path, target: Path, *, mode: LinkMode = LinkMode.SINGLE) -> LinkResult:
        """Make ``target`` a symlink to ``source``.

        A symlink at ``target`` pointing elsewhere (or nowhere) is a
        conflict. In ``single`` mode it raises ``ConflictError`` without
        touching the filesystem; in ``children`` mode the foreign link is
        moved to a backup path like any other pre-existing entry.
        """

        backup: Path | None = None

        if target.is_symlink():
            if symlink_points_to(target, source):
                log.info(f"{target} is already linked to {source}")
                return LinkResult(source=source, target=target, action=LinkAction.ALREADY_LINKED)

            current = read_link(target)
            if mode is LinkMode.SINGLE:
                raise ConflictError(target, current)

            log.warn(f"{target} is a symlink to a different location: {current}")
            backup = self._backup(target)
        elif exists_or_link(target):
            log.warn(f"Existing {target} found. Backing up.")
            backup = self._backup(target)

        create_symlink(target, source)
        log.info(f"Created symlink: {target} -> {source}")

        action = LinkAction.BACKED_UP_AND_LINKED if backup is not None else LinkAction.LINKED
        return LinkResult(source=source, target=target, action=action, backup=backup)

    def link_children(self, source_dir: Path, target_dir: Path) -> list[LinkResult]:
        """Link every immediate child of ``source_dir`` into ``target_dir``."""

        self._prepare_target_dir(source_dir, target_dir)

        results: list[LinkResult] = []
        for child in sorted(source_dir.iterdir(), key=lambda item: item.name):
            results.append(self.link(child, target_dir / child.name, mode=LinkMode.CHILDREN))
        return results

    def apply(self, spec: LinkSpec, os_kind: OSKind) -> list[LinkResult]:
        """Apply a configured link for ``os_kind``."""

        if not spec.supports(os_kind):
            log.info(f"Skipping {spec.target}: not used on {os_kind.value}")
            return [
                LinkResult(
                    source=spec.source,
                    target=spec.target,
                    action=LinkAction.SKIPPED,
                    details=f"not used on {os_kind.value}",
                )
            ]

        if not exists_or_link(spec.source):
            log.warn(f"Source {spec.source} not found. Skipping {spec.target}.")
            return [
                LinkResult(
                    source=spec.source,
                    target=spec.target,
                    action=LinkAction.SKIPPED,
                    details="source missing from repository",
                )
            ]

        if spec.mode is LinkMode.CHILDREN:
            return self.link_children(spec.source, spec.target)
        return [self.link(spec.source, spec.target, mode=LinkMode.SINGLE)]

    def inspect(self, spec: LinkSpec, os_kind: OSKind) -> list[LinkStatus]:
        """Report the state of a configured link without changing anything."""

        if not spec.supports(os_kind):
            return [LinkStatus(spec.source, spec.target, LinkState.SKIPPED, f"not used on {os_kind.value}")]
        if not exists_or_link(spec.source):
            return [LinkStatus(spec.source, spec.target, LinkState.SKIPPED, "source missing from repository")]

        if spec.mode is LinkMode.SINGLE:
            return [_link_status(spec.source, spec.target)]

        if symlink_points_to(spec.target, spec.source):
            return [
                LinkStatus(
                    spec.source,
                    spec.target,
                    LinkState.CONFLICT,
                    "legacy whole-directory link; run setup to migrate",
                )
            ]
        return [
            _link_status(child, spec.target / child.name)
            for child in sorted(spec.source.iterdir(), key=lambda item: item.name)
        ]

    # ------------------------------------------------------------------
    # Internal helpers

    def _backup(self, target: Path) -> Path:
        backup = move_aside(target, self.clock())
        log.info(f"Backup created at {backup}")
        return backup

    def _prepare_target_dir(self, source_dir: Path, target_dir: Path) -> None:
        if target_dir.is_symlink():
            if symlink_points_to(target_dir, source_dir):
                log.warn(f"{target_dir} is a whole-directory link to {source_dir}. Migrating to per-entry links.")
                target_dir.unlink()
            else:
                log.warn(f"{target_dir} is a symlink to a different location: {read_link(target_dir)}")
                self._backup(target_dir)
        elif exists_or_link(target_dir) and not target_dir.is_dir():
            log.warn(f"{target_dir} is not a directory. Backing up.")
            self._backup(target_dir)

        target_dir.mkdir(parents=True, exist_ok=True)


def _link_status(source: Path, target: Path) -> LinkStatus:
    if target.is_symlink():
        if symlink_points_to(target, source):
            return LinkStatus(source, target, LinkState.LINKED)
        return LinkStatus(source, target, LinkState.CONFLICT, f"points to {read_link(target)}")
    if target.exists():
        return LinkStatus(source, target, LinkState.UNMANAGED, "real file or directory; setup will back it up")
    return LinkStatus(source, target, LinkState.MISSING)
