"""Thin wrapper around the ``git`` command line."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable

from . import log
from .errors import ExternalToolError, ToolMissingError

Runner = Callable[..., subprocess.CompletedProcess]


class GitRepository:
    """Runs git commands inside ``path``."""

    def __init__(self, path: Path, *, runner: Runner = subprocess.run, executable: str = "git") -> None:
        self.path = path
        self.runner = runner
        self.executable = executable

    def is_repository(self) -> bool:
        return (self.path / ".git").exists()

    def has_local_changes(self) -> bool:
        """Return ``True`` when the worktree or the index has uncommitted changes."""

        unstaged = self._run("diff", "--quiet", check=False)
        staged = self._run("diff", "--cached", "--quiet", check=False)
        return unstaged.returncode != 0 or staged.returncode != 0

    def status_short(self) -> str:
        return self._run("status", "--short").stdout

    def stash(self, message: str) -> None:
        self._run("stash", "push", "-m", message)

    def fetch(self, remote: str, branch: str, *, quiet: bool = False) -> None:
        args = ["fetch", remote, branch]
        if quiet:
            args.append("--quiet")
        self._run(*args)

    def rev_parse(self, ref: str) -> str:
        return self._run("rev-parse", ref).stdout.strip()

    def log_oneline(self, revision_range: str) -> list[str]:
        output = self._run("log", "--oneline", revision_range).stdout
        return [line for line in output.splitlines() if line.strip()]

    def pull(self, remote: str, branch: str) -> None:
        self._run("pull", remote, branch)

    def _run(self, *args: str, check: bool = True) -> subprocess.CompletedProcess:
        command = [self.executable, *args]
        log.debug("Running: " + " ".join(command))
        try:
            completed = self.runner(command, cwd=self.path, capture_output=True, text=True, check=False)
        except FileNotFoundError as exc:
            raise ToolMissingError(self.executable) from exc
        if check and completed.returncode != 0:
            raise ExternalToolError(command, completed.returncode, completed.stderr)
        return completed
