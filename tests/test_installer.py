from __future__ import annotations

import subprocess
from pathlib import Path
from textwrap import dedent

import pytest

from dotconfig.brewfile import Brewfile
from dotconfig.errors import ExternalToolError
from dotconfig.installer import PackageInstaller
from dotconfig.models import InstallStatus, OSKind

BREWFILE = dedent(
    """
    tap "homebrew/bundle"
    brew "git"
    brew "ripgrep"
    cask "wezterm"
    cask "raycast"
    mas "Things 3", id: 904280696
    """
)


class RecordingRunner:
    """Stands in for ``subprocess.run`` and remembers what it was asked to do."""

    def __init__(self, returncode: int = 0) -> None:
        self.returncode = returncode
        self.calls: list[list[str]] = []
        self.manifests: list[str] = []
        self.manifest_paths: list[Path] = []

    def __call__(self, command, **_kwargs) -> subprocess.CompletedProcess:  # noqa: ANN001
        self.calls.append(list(command))
        manifest = Path(command[-1].split("=", 1)[1])
        self.manifest_paths.append(manifest)
        self.manifests.append(manifest.read_text())
        return subprocess.CompletedProcess(command, self.returncode)


def _which_brew(name: str) -> str | None:
    return "/opt/homebrew/bin/brew" if name == "brew" else None


@pytest.fixture
def brewfile(tmp_path: Path) -> Path:
    path = tmp_path / "Brewfile"
    path.write_text(BREWFILE)
    return path


def test_skips_when_tool_missing(brewfile: Path) -> None:
    runner = RecordingRunner()
    installer = PackageInstaller(runner=runner, which=lambda _name: None)

    result = installer.install(brewfile, OSKind.MACOS)

    assert result.status is InstallStatus.SKIPPED
    assert result.reason == "tool not found"
    assert runner.calls == []


def test_skips_when_manifest_missing(tmp_path: Path) -> None:
    runner = RecordingRunner()
    installer = PackageInstaller(runner=runner, which=_which_brew)

    result = installer.install(tmp_path / "Brewfile", OSKind.MACOS)

    assert result.status is InstallStatus.SKIPPED
    assert result.reason == "manifest not found"
    assert runner.calls == []


def test_primary_os_uses_manifest_directly(brewfile: Path) -> None:
    runner = RecordingRunner()
    installer = PackageInstaller(runner=runner, which=_which_brew)

    result = installer.install(brewfile, OSKind.MACOS)

    assert result.status is InstallStatus.COMPLETED
    assert runner.calls == [["/opt/homebrew/bin/brew", "bundle", f"--file={brewfile}"]]


def test_primary_os_failure_is_fatal(brewfile: Path) -> None:
    installer = PackageInstaller(runner=RecordingRunner(returncode=1), which=_which_brew)

    with pytest.raises(ExternalToolError) as excinfo:
        installer.install(brewfile, OSKind.MACOS)

    assert excinfo.value.returncode == 1


def test_secondary_os_installs_filtered_entries(brewfile: Path) -> None:
    runner = RecordingRunner()
    installer = PackageInstaller(runner=runner, which=_which_brew)

    result = installer.install(brewfile, OSKind.LINUX)

    total = len(Brewfile.load(brewfile))
    restricted = len(Brewfile.load(brewfile).excluded_for(OSKind.LINUX))
    invoked = Brewfile.parse(runner.manifests[0])

    assert result.status is InstallStatus.COMPLETED
    assert result.entries == total - restricted == 3
    assert len(invoked) == total - restricted
    assert all(entry.kind != "cask" for entry in invoked.entries())
    assert runner.manifest_paths[0] != brewfile
    assert brewfile.read_text() == BREWFILE


def test_secondary_os_removes_temporary_manifest(brewfile: Path) -> None:
    runner = RecordingRunner()
    PackageInstaller(runner=runner, which=_which_brew).install(brewfile, OSKind.LINUX)

    assert not runner.manifest_paths[0].exists()
    assert not runner.manifest_paths[0].parent.exists()


def test_secondary_os_failure_is_tolerated(brewfile: Path) -> None:
    runner = RecordingRunner(returncode=1)

    result = PackageInstaller(runner=runner, which=_which_brew).install(brewfile, OSKind.LINUX)

    assert result.status is InstallStatus.COMPLETED_WITH_ERRORS
    assert result.returncode == 1
    assert not runner.manifest_paths[0].exists()


def test_temporary_manifest_removed_when_runner_raises(brewfile: Path) -> None:
    seen: list[Path] = []

    def exploding_runner(command, **_kwargs):  # noqa: ANN001
        seen.append(Path(command[-1].split("=", 1)[1]))
        raise OSError("exec failed")

    installer = PackageInstaller(runner=exploding_runner, which=_which_brew)

    with pytest.raises(OSError):
        installer.install(brewfile, OSKind.LINUX)

    assert seen and not seen[0].exists()


def test_primary_os_can_be_linux(brewfile: Path) -> None:
    runner = RecordingRunner()
    installer = PackageInstaller(primary_os=OSKind.LINUX, runner=runner, which=_which_brew)

    installer.install(brewfile, OSKind.LINUX)

    assert runner.manifest_paths == [brewfile]
