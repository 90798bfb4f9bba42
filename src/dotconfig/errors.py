"""Exception hierarchy for dotconfig."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence


class DotconfigError(RuntimeError):
    """Raised when dotconfig encounters an unrecoverable state."""


class ConflictError(DotconfigError):
    """An existing path at a link target does not match the expected link."""

    def __init__(self, target: Path, current: str | None = None) -> None:
        self.target = target
        self.current = current
        if current is None:
            message = f"'{target}' exists and is not the expected link"
        else:
            message = f"'{target}' is a symlink to a different location: {current}"
        super().__init__(message)


class ToolMissingError(DotconfigError):
    """An external executable could not be found on ``PATH``."""

    def __init__(self, tool: str) -> None:
        self.tool = tool
        super().__init__(f"'{tool}' was not found on PATH")


class ManifestMissingError(DotconfigError):
    """A declared package manifest does not exist."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Manifest '{path}' does not exist")


class ExternalToolError(DotconfigError):
    """An external process exited with a non-zero status."""

    def __init__(self, command: Sequence[str], returncode: int, stderr: str | None = None) -> None:
        self.command = tuple(command)
        self.returncode = returncode
        self.stderr = stderr
        message = f"Command '{' '.join(self.command)}' failed with exit code {returncode}"
        if stderr:
            message = f"{message}: {stderr.strip()}"
        super().__init__(message)


class UpdateAborted(DotconfigError):
    """The operator declined a step that the update cannot proceed without."""
