"""What an installer is given to work with."""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Tuple

from ..apt import PackageCache
from ..config.settings import Settings
from ..download import Downloader
from ..runner import CommandRunner
from ..system import Architecture


@dataclass(frozen=True)
class Selection:
    """Which installers to run. No flags at all means every installer."""

    node: bool = False
    tunnel: bool = False
    proxy: bool = False

    @classmethod
    def from_flags(cls, node: bool, tunnel: bool, proxy: bool) -> "Selection":
        if not (node or tunnel or proxy):
            return cls(node=True, tunnel=True, proxy=True)
        return cls(node=node, tunnel=tunnel, proxy=proxy)

    def labels(self) -> Tuple[str, ...]:
        names = []
        if self.node:
            names.append("Marzban Node")
        if self.tunnel:
            names.append("Warp (wgcf + WireGuard)")
        if self.proxy:
            names.append("Nginx + TLS")
        return tuple(names)

    def __bool__(self) -> bool:
        return self.node or self.tunnel or self.proxy


@dataclass(frozen=True)
class InstallContext:
    settings: Settings
    arch: Architecture
    runner: CommandRunner
    packages: PackageCache
    downloader: Downloader
    prompt: Callable[[str], str]

    def path(self, host_path: str) -> Path:
        return self.settings.path(host_path)
