from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture
def fake_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    monkeypatch.delenv("DOTCONFIG_DIR", raising=False)
    return home


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    root = tmp_path / "dotconfig"
    (root / ".config" / "zsh").mkdir(parents=True)
    (root / ".config" / "zsh" / ".zshrc").write_text("alias ll='ls -l'\n")
    (root / ".config" / "wezterm").mkdir()
    (root / ".config" / "wezterm" / "wezterm.lua").write_text("return {}\n")
    return root
