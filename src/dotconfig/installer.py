"""Conditional package installation from a Brewfile."""

from __future__ import annotations

import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Callable, Sequence

from . import log
from .brewfile import Brewfile
from .errors import ExternalToolError
from .models import InstallResult, InstallStatus, OSKind

Runner = Callable[..., subprocess.CompletedProcess]
Which = Callable[[str], str | None]


class PackageInstaller:
    """Runs ``<tool> bundle`` against a manifest authored for ``primary_os``.

    On the primary OS the manifest is used as-is and a failing install is
    fatal. On any other OS entries restricted to the primary OS are
    filtered into a temporary manifest and failures are only reported.
    """

    def __init__(
        self,
        tool: str = "brew",
        primary_os: OSKind = OSKind.MACOS,
        *,
        runner: Runner = subprocess.run,
        which: Which = shutil.which,
    ) -> None:
        self.tool = tool
        self.primary_os = primary_os
        self.runner = runner
        self.which = which

    def install(self, manifest: Path, os_kind: OSKind) -> InstallResult:
        executable = self.which(self.tool)
        if executable is None:
            log.warn(f"{self.tool} is not installed. Skipping package installation.")
            return InstallResult(InstallStatus.SKIPPED, manifest, reason="tool not found")

        if not manifest.is_file():
            log.warn(f"{manifest} not found. Skipping package installation.")
            return InstallResult(InstallStatus.SKIPPED, manifest, reason="manifest not found")

        if os_kind is self.primary_os:
            return self._install_primary(executable, manifest)
        return self._install_filtered(executable, manifest, os_kind)

    def _install_primary(self, executable: str, manifest: Path) -> InstallResult:
        log.info(f"Installing packages from {manifest}...")
        command = self._bundle_command(executable, manifest)
        completed = self._run(command)
        if completed.returncode != 0:
            raise ExternalToolError(command, completed.returncode)
        log.info("Package installation complete")
        return InstallResult(InstallStatus.COMPLETED, manifest, returncode=0)

    def _install_filtered(self, executable: str, manifest: Path, os_kind: OSKind) -> InstallResult:
        brewfile = Brewfile.load(manifest)
        filtered = brewfile.for_os(os_kind)
        excluded = brewfile.excluded_for(os_kind)
        if excluded:
            log.info(
                f"Excluding {len(excluded)} {self.primary_os.value}-only entries on {os_kind.value}: "
                + ", ".join(entry.name for entry in excluded)
            )

        log.info(f"Installing packages from {manifest} ({len(filtered)} entries)...")
        with tempfile.TemporaryDirectory(prefix="dotconfig-") as staging:
            filtered_path = Path(staging) / manifest.name
            filtered_path.write_text(filtered.render(), encoding="utf-8")
            completed = self._run(self._bundle_command(executable, filtered_path))

        if completed.returncode != 0:
            log.warn(
                f"{self.tool} bundle exited with code {completed.returncode}; "
                "some packages may not be available on this platform"
            )
            return InstallResult(
                InstallStatus.COMPLETED_WITH_ERRORS,
                manifest,
                reason=f"{self.tool} exited with code {completed.returncode}",
                entries=len(filtered),
                returncode=completed.returncode,
            )

        log.info("Package installation complete")
        return InstallResult(InstallStatus.COMPLETED, manifest, entries=len(filtered), returncode=0)

    def _bundle_command(self, executable: str, manifest: Path) -> list[str]:
        return [executable, "bundle", f"--file={manifest}"]

    def _run(self, command: Sequence[str]) -> subprocess.CompletedProcess:
        log.debug("Running: " + " ".join(command))
        return self.runner(list(command), check=False)
