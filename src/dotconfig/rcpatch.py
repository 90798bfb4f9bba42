"""Marker-guarded, append-only patching of shell resource files."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from . import log
from .filesystem import ensure_parent
from .models import PatchAction, PatchResult


def patch(rc_file: Path, marker: str, lines: Iterable[str]) -> PatchResult:
    """Append ``marker`` followed by ``lines`` to ``rc_file`` once.

    The marker is the only idempotence guard: if it already appears
    anywhere in the file nothing is written, even when ``lines`` differ
    from what follows the marker. Existing content is never rewritten.
    """

    created_file = False
    if not rc_file.exists():
        log.warn(f"{rc_file} not found. Creating new file.")
        ensure_parent(rc_file)
        rc_file.touch()
        created_file = True

    content = rc_file.read_bytes()
    if marker.encode("utf-8") in content:
        log.info(f"Shell settings already configured in {rc_file}")
        return PatchResult(path=rc_file, action=PatchAction.ALREADY_PATCHED, created_file=created_file)

    block = ["", marker, *lines]
    with rc_file.open("a", encoding="utf-8") as handle:
        for line in block:
            handle.write(f"{line}\n")

    log.info(f"Added shell settings to {rc_file}")
    return PatchResult(path=rc_file, action=PatchAction.CREATED, created_file=created_file)
