"""Core package for the dotconfig project."""

from .brewfile import Brewfile, BrewfileEntry
from .cli import app, run
from .config import Config, ConfigError, LinkSpec, PackagesConfig, Settings, ZshrcConfig, load_config
from .errors import (
    ConflictError,
    DotconfigError,
    ExternalToolError,
    ManifestMissingError,
    ToolMissingError,
    UpdateAborted,
)
from .installer import PackageInstaller
from .linker import Linker
from .manager import DotconfigManager
from .models import (
    InstallResult,
    InstallStatus,
    LinkAction,
    LinkMode,
    LinkResult,
    LinkState,
    LinkStatus,
    OSKind,
    PatchAction,
    PatchResult,
    SetupReport,
    UpdateResult,
    UpdateStatus,
)
from .rcpatch import patch

__all__ = [
    "Brewfile",
    "BrewfileEntry",
    "Config",
    "ConfigError",
    "LinkSpec",
    "PackagesConfig",
    "Settings",
    "ZshrcConfig",
    "load_config",
    "ConflictError",
    "DotconfigError",
    "ExternalToolError",
    "ManifestMissingError",
    "ToolMissingError",
    "UpdateAborted",
    "PackageInstaller",
    "Linker",
    "DotconfigManager",
    "InstallResult",
    "InstallStatus",
    "LinkAction",
    "LinkMode",
    "LinkResult",
    "LinkState",
    "LinkStatus",
    "OSKind",
    "PatchAction",
    "PatchResult",
    "SetupReport",
    "UpdateResult",
    "UpdateStatus",
    "patch",
    "app",
    "run",
]
