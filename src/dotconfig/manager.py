"""High level orchestration for ``dotconfig setup`` and ``status``."""

from __future__ import annotations

from .config import Config, LinkSpec
from .installer import PackageInstaller
from .linker import Linker
from .models import LinkResult, LinkStatus, OSKind, SetupReport
from .rcpatch import patch


class DotconfigManager:
    """Runs the setup stages in order: links, shell rc, packages, platform links."""

    def __init__(
        self,
        config: Config,
        *,
        os_kind: OSKind | None = None,
        linker: Linker | None = None,
        installer: PackageInstaller | None = None,
    ) -> None:
        self.config = config
        self.os_kind = os_kind or OSKind.current()
        self.linker = linker or Linker()
        self.installer = installer or PackageInstaller(
            tool=config.packages.tool,
            primary_os=config.packages.primary_os,
        )

    def setup(self) -> SetupReport:
        common, platform_specific = self._partition_links()

        links: list[LinkResult] = []
        for spec in common:
            links.extend(self.linker.apply(spec, self.os_kind))

        zshrc = self.config.zshrc
        patch_result = patch(zshrc.path, zshrc.marker, zshrc.lines)

        install_result = self.installer.install(self.config.packages.manifest, self.os_kind)

        for spec in platform_specific:
            links.extend(self.linker.apply(spec, self.os_kind))

        return SetupReport(links=tuple(links), patch=patch_result, install=install_result)

    def status(self) -> tuple[LinkStatus, ...]:
        entries: list[LinkStatus] = []
        for spec in self.config.links:
            entries.extend(self.linker.inspect(spec, self.os_kind))
        return tuple(entries)

    # ------------------------------------------------------------------
    # Internal helpers

    def _partition_links(self) -> tuple[list[LinkSpec], list[LinkSpec]]:
        common = [spec for spec in self.config.links if not spec.platforms]
        platform_specific = [spec for spec in self.config.links if spec.platforms]
        return common, platform_specific
