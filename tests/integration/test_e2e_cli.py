from __future__ import annotations

import os
import stat
from pathlib import Path
from textwrap import dedent

import pytest
from typer.testing import CliRunner

from dotconfig.brewfile import Brewfile
from dotconfig.cli import app
from dotconfig.models import OSKind

runner = CliRunner()

BREWFILE = dedent(
    """
    tap "homebrew/bundle"
    brew "git"
    brew "ghq"
    brew "fzf"
    cask "wezterm"
    cask "hammerspoon"
    """
)


@pytest.fixture
def fake_brew(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Put a ``brew`` on PATH that copies the manifest it is given into a log file."""

    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    log_file = tmp_path / "brew.log"
    script = bin_dir / "brew"
    script.write_text(
        dedent(
            f"""\
            #!/bin/sh
            manifest="${{2#--file=}}"
            cat "$manifest" > "{log_file}"
            exit 0
            """
        )
    )
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
    return log_file


@pytest.fixture
def linux(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(OSKind, "current", classmethod(lambda cls: OSKind.LINUX))


@pytest.mark.usefixtures("linux")
def test_fresh_home_full_setup(repo: Path, fake_home: Path, fake_brew: Path) -> None:
    (repo / "Brewfile").write_text(BREWFILE)
    assert not (fake_home / ".config").exists()
    assert not (fake_home / ".zshrc").exists()

    result = runner.invoke(app, ["setup", "--repo", str(repo)])

    assert result.exit_code == 0, result.output
    config_link = fake_home / ".config"
    assert config_link.is_symlink()
    assert config_link.resolve() == (repo / ".config").resolve()

    zshrc = (fake_home / ".zshrc").read_text()
    assert zshrc.count("# dotconfig zsh settings") == 1
    assert "[ -f ~/.config/zsh/.zshrc ] && source ~/.config/zsh/.zshrc" in zshrc

    installed = Brewfile.parse(fake_brew.read_text())
    assert len(installed) == 4
    assert all(entry.kind != "cask" for entry in installed.entries())


@pytest.mark.usefixtures("linux")
def test_setup_twice_changes_nothing(repo: Path, fake_home: Path, tmp_path: Path, monkeypatch) -> None:
    empty_bin = tmp_path / "empty-bin"
    empty_bin.mkdir()
    monkeypatch.setenv("PATH", str(empty_bin))
    existing = fake_home / ".config" / "gh"
    existing.mkdir(parents=True)
    (existing / "hosts.yml").write_text("github.com: {}\n")

    first = runner.invoke(app, ["setup", "--repo", str(repo)])
    zshrc_first = (fake_home / ".zshrc").read_text()
    backups_first = sorted(fake_home.glob(".config.backup.*"))
    second = runner.invoke(app, ["setup", "--repo", str(repo)])

    assert first.exit_code == 0 and second.exit_code == 0
    assert "packages: skipped (tool not found)" in first.stdout
    assert len(backups_first) == 1
    assert (backups_first[0] / "gh" / "hosts.yml").read_text() == "github.com: {}\n"
    assert sorted(fake_home.glob(".config.backup.*")) == backups_first
    assert (fake_home / ".zshrc").read_text() == zshrc_first
