"""Throttled, fire-and-forget check for dotconfig and package updates."""

from __future__ import annotations

import shutil
import subprocess
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Sequence

from . import log
from .errors import ExternalToolError, ToolMissingError
from .filesystem import ensure_parent
from .git import GitRepository

Clock = Callable[[], datetime]
Runner = Callable[..., subprocess.CompletedProcess]
Which = Callable[[str], str | None]
Popen = Callable[..., subprocess.Popen]


class UpdateCheckThrottle:
    """Limits update checks to one per ``interval`` using a timestamp file."""

    def __init__(self, cache_file: Path, interval: timedelta = timedelta(hours=24), clock: Clock = datetime.now) -> None:
        self.cache_file = cache_file
        self.interval = interval
        self.clock = clock

    def last_check(self) -> datetime | None:
        try:
            raw = self.cache_file.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        try:
            return datetime.fromtimestamp(int(raw))
        except (ValueError, OverflowError, OSError):
            log.debug(f"Ignoring unreadable timestamp in {self.cache_file}")
            return None

    def is_due(self) -> bool:
        last = self.last_check()
        if last is None:
            return True
        return self.clock() - last >= self.interval

    def record(self) -> None:
        ensure_parent(self.cache_file)
        self.cache_file.write_text(f"{int(self.clock().timestamp())}\n", encoding="utf-8")


def collect_update_messages(
    repo: GitRepository,
    *,
    remote: str = "origin",
    branch: str = "main",
    tool: str | None = "brew",
    runner: Runner = subprocess.run,
    which: Which = shutil.which,
) -> list[str]:
    """Probe for pending updates. Every probe is best-effort."""

    messages: list[str] = []

    try:
        repo.fetch(remote, branch, quiet=True)
        local = repo.rev_parse("HEAD")
        upstream = repo.rev_parse(f"{remote}/{branch}")
    except (ExternalToolError, ToolMissingError) as exc:
        log.debug(f"dotconfig update probe failed: {exc}")
    else:
        if local and upstream and local != upstream:
            messages.append("[dotconfig] updates available: run `dotconfig update`")

    executable = which(tool) if tool else None
    if executable is not None:
        try:
            runner([executable, "update", "--quiet"], capture_output=True, text=True, check=False)
            outdated = runner([executable, "outdated", "--quiet"], capture_output=True, text=True, check=False)
        except OSError as exc:
            log.debug(f"{tool} update probe failed: {exc}")
            return messages
        if outdated.returncode == 0:
            packages = [line for line in outdated.stdout.splitlines() if line.strip()]
            if packages:
                messages.append(f"[{tool}] {len(packages)} packages can be upgraded: {tool} upgrade")

    return messages


def spawn_background_check(argv: Sequence[str], *, popen: Popen = subprocess.Popen) -> int:
    """Start ``argv`` detached from the current session and return its pid.

    The child is never waited on; its outcome cannot affect the caller.
    """

    process = popen(
        list(argv),
        stdin=subprocess.DEVNULL,
        start_new_session=True,
        close_fds=True,
    )
    # Mark it reaped so Popen.__del__ does not warn about a live child.
    process.returncode = 0
    log.debug(f"Started background update check (pid {process.pid})")
    return process.pid


def schedule_update_check(
    throttle: UpdateCheckThrottle,
    repo: GitRepository,
    argv: Sequence[str],
    *,
    force: bool = False,
    popen: Popen = subprocess.Popen,
) -> bool:
    """Spawn a background check if one is due. Returns ``True`` when spawned."""

    if not repo.is_repository():
        log.debug(f"{repo.path} is not a git checkout; skipping update check")
        return False
    if not force and not throttle.is_due():
        log.debug("Update check ran recently; skipping")
        return False

    throttle.record()
    spawn_background_check(argv, popen=popen)
    return True
