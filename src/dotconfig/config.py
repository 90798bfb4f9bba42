"""TOML configuration loading for dotconfig."""

from __future__ import annotations

import copy
import os
import tomllib
from datetime import timedelta
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import DotconfigError
from .models import LinkMode, OSKind

DEFAULT_CONFIG_FILENAME = "dotconfig.toml"
REPO_ENV_VAR = "DOTCONFIG_DIR"

DEFAULT_CONFIG: dict[str, Any] = {
    "settings": {
        "home": "~",
        "cache_file": "~/.cache/dotconfig-last-check",
        "check_interval_hours": 24,
        "remote": "origin",
        "branch": "main",
    },
    "links": [
        {"source": ".config", "target": "~/.config", "mode": "single", "platforms": []},
        {"source": ".claude/CLAUDE.md", "target": "~/.claude/CLAUDE.md", "mode": "single", "platforms": []},
        {"source": ".hammerspoon", "target": "~/.hammerspoon", "mode": "single", "platforms": ["macos"]},
    ],
    "zshrc": {
        "path": "~/.zshrc",
        "marker": "# dotconfig zsh settings",
        "lines": ["[ -f ~/.config/zsh/.zshrc ] && source ~/.config/zsh/.zshrc"],
    },
    "packages": {
        "manifest": "Brewfile",
        "tool": "brew",
        "primary_os": "macos",
    },
}


class ConfigError(DotconfigError):
    """Raised when a configuration file cannot be parsed or validated."""


def _expand_home_path(raw: str | os.PathLike[str], *, home: Path) -> Path:
    """Expand ``~`` against ``home`` and environment variables; anchor relatives at ``home``."""

    text = os.path.expandvars(str(raw))
    if text == "~":
        return home
    if text.startswith("~/"):
        return home / text[2:]
    expanded = Path(text).expanduser()
    if expanded.is_absolute():
        return expanded
    return home / expanded


def _repo_path(raw: str, *, repo_root: Path, what: str) -> Path:
    candidate = Path(str(raw))
    if candidate.is_absolute():
        raise ConfigError(f"{what} '{candidate}' must be relative to the repository root")
    if ".." in candidate.parts:
        raise ConfigError(f"{what} '{candidate}' must not escape the repository root")
    return repo_root / candidate


class Settings(BaseModel):
    """Global configuration options."""

    model_config = ConfigDict(frozen=True)

    repo_root: Path
    home: Path
    cache_file: Path
    check_interval: timedelta = Field(default=timedelta(hours=24))
    remote: str = "origin"
    branch: str = "main"

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any], *, repo_root: Path) -> "Settings":
        home = Path(os.path.expandvars(str(raw.get("home", "~")))).expanduser()
        cache_file = _expand_home_path(raw.get("cache_file", "~/.cache/dotconfig-last-check"), home=home)
        hours = raw.get("check_interval_hours", 24)
        if not isinstance(hours, (int, float)) or hours < 0:
            raise ConfigError("settings.check_interval_hours must be a non-negative number")
        return cls(
            repo_root=repo_root,
            home=home,
            cache_file=cache_file,
            check_interval=timedelta(hours=hours),
            remote=str(raw.get("remote", "origin")),
            branch=str(raw.get("branch", "main")),
        )

    @property
    def remote_ref(self) -> str:
        return f"{self.remote}/{self.branch}"


class LinkSpec(BaseModel):
    """A symlink from a home-directory path into the repository."""

    model_config = ConfigDict(frozen=True)

    source: Path
    target: Path
    mode: LinkMode = LinkMode.SINGLE
    platforms: frozenset[OSKind] = frozenset()

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any], *, settings: Settings) -> "LinkSpec":
        if "source" not in raw or "target" not in raw:
            raise ConfigError("Each [[links]] table must define 'source' and 'target'")
        return cls(
            source=_repo_path(raw["source"], repo_root=settings.repo_root, what="Link source"),
            target=_expand_home_path(raw["target"], home=settings.home),
            mode=raw.get("mode", LinkMode.SINGLE),
            platforms=frozenset(raw.get("platforms") or ()),
        )

    def supports(self, os_kind: OSKind) -> bool:
        return not self.platforms or os_kind in self.platforms


class ZshrcConfig(BaseModel):
    """Marker-guarded lines appended to the shell resource file."""

    model_config = ConfigDict(frozen=True)

    path: Path
    marker: str
    lines: tuple[str, ...]

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any], *, settings: Settings) -> "ZshrcConfig":
        defaults = DEFAULT_CONFIG["zshrc"]
        marker = str(raw.get("marker", defaults["marker"]))
        if not marker.strip():
            raise ConfigError("zshrc.marker must not be empty")
        lines = raw.get("lines", defaults["lines"])
        if not isinstance(lines, list) or not all(isinstance(line, str) for line in lines):
            raise ConfigError("zshrc.lines must be an array of strings")
        return cls(
            path=_expand_home_path(raw.get("path", defaults["path"]), home=settings.home),
            marker=marker,
            lines=tuple(lines),
        )


class PackagesConfig(BaseModel):
    """Package manager invocation settings."""

    model_config = ConfigDict(frozen=True)

    manifest: Path
    tool: str = "brew"
    primary_os: OSKind = OSKind.MACOS

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any], *, settings: Settings) -> "PackagesConfig":
        defaults = DEFAULT_CONFIG["packages"]
        return cls(
            manifest=_repo_path(
                raw.get("manifest", defaults["manifest"]), repo_root=settings.repo_root, what="Package manifest"
            ),
            tool=str(raw.get("tool", defaults["tool"])),
            primary_os=raw.get("primary_os", defaults["primary_os"]),
        )


class Config(BaseModel):
    """Fully parsed configuration."""

    model_config = ConfigDict(frozen=True)

    config_path: Path | None
    settings: Settings
    links: tuple[LinkSpec, ...]
    zshrc: ZshrcConfig
    packages: PackagesConfig


def _repo_from_config_link(home: Path) -> Path | None:
    """Return the checkout that ``~/.config`` (or one of its entries) links into."""

    config_dir = home / ".config"
    if config_dir.is_symlink():
        return (config_dir.parent / os.readlink(config_dir)).parent
    if not config_dir.is_dir():
        return None

    for child in sorted(config_dir.iterdir(), key=lambda item: item.name):
        if not child.is_symlink():
            continue
        linked_parent = (child.parent / os.readlink(child)).parent
        if linked_parent.name == ".config":
            return linked_parent.parent
    return None


def resolve_repo_root(repo: Path | None = None) -> Path:
    """Pick the repository root.

    Order: ``repo``, ``$DOTCONFIG_DIR``, the checkout ``~/.config`` links
    into, then the current directory.
    """

    if repo is None:
        env_value = os.environ.get(REPO_ENV_VAR)
        if env_value:
            repo = Path(env_value).expanduser()
        else:
            linked = _repo_from_config_link(Path.home())
            repo = linked if linked is not None and linked.is_dir() else Path.cwd()
    repo = Path(repo)
    if not repo.is_dir():
        raise ConfigError(f"Repository directory '{repo}' does not exist")
    return repo.resolve(strict=False)


def load_config(path: Path | None = None, *, repo: Path | None = None) -> Config:
    """Load and validate configuration.

    Args:
        path: Optional TOML file (or a directory holding ``dotconfig.toml``).
            Defaults to ``dotconfig.toml`` in the repository root; when that
            file is absent the built-in defaults are used.
        repo: Optional repository root. Falls back to ``$DOTCONFIG_DIR``,
            the checkout ``~/.config`` links into, then the current
            working directory.
    """

    repo_root = resolve_repo_root(repo)
    config_path = _resolve_config_path(path, repo_root)

    if config_path is None:
        data: Mapping[str, Any] = copy.deepcopy(DEFAULT_CONFIG)
    else:
        try:
            with config_path.open("rb") as handle:
                data = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Configuration file '{config_path}' is not valid TOML: {exc}") from exc

    try:
        return _build_config(data, config_path=config_path, repo_root=repo_root)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


def _build_config(data: Mapping[str, Any], *, config_path: Path | None, repo_root: Path) -> Config:
    settings = Settings.from_raw(data.get("settings") or {}, repo_root=repo_root)

    links_section = data.get("links", DEFAULT_CONFIG["links"])
    if not isinstance(links_section, list):
        raise ConfigError("'links' must be an array of tables ([[links]])")
    links = tuple(LinkSpec.from_raw(raw, settings=settings) for raw in links_section)

    return Config(
        config_path=config_path,
        settings=settings,
        links=links,
        zshrc=ZshrcConfig.from_raw(data.get("zshrc") or {}, settings=settings),
        packages=PackagesConfig.from_raw(data.get("packages") or {}, settings=settings),
    )


def _resolve_config_path(path: Path | None, repo_root: Path) -> Path | None:
    if path is None:
        candidate = repo_root / DEFAULT_CONFIG_FILENAME
        return candidate.resolve(strict=False) if candidate.exists() else None

    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Configuration file '{path}' does not exist")
    if path.is_dir():
        candidate = path / DEFAULT_CONFIG_FILENAME
        if not candidate.exists():
            raise ConfigError(f"Expected to find '{DEFAULT_CONFIG_FILENAME}' inside '{path}', but none was located")
        path = candidate

    return path.resolve(strict=False)
