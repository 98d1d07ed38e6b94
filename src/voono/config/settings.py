"""Immutable settings built once from the loaded configuration."""

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Tuple

from ..errors import ConfigError
from .manager import DEFAULTS


@dataclass(frozen=True)
class AptSettings:
    stamp: str
    max_age: int


@dataclass(frozen=True)
class NodeSettings:
    packages: Tuple[str, ...]
    docker_script_url: str
    repo_url: str
    repo_dir: str
    image: str
    node_data_dir: str
    data_dir: str
    assets_dir: str
    xray_dir: str
    cert_name: str
    service_port: int
    api_port: int
    assets: Tuple[Tuple[str, str], ...]
    xray_urls: Dict[str, Tuple[str, ...]]

    @property
    def cert_file(self) -> str:
        return f"{self.node_data_dir}/{self.cert_name}"

    @property
    def xray_executable(self) -> str:
        return f"{self.xray_dir}/xray"

    @property
    def compose_file(self) -> str:
        return f"{self.repo_dir}/docker-compose.yml"


@dataclass(frozen=True)
class TunnelSettings:
    packages: Tuple[str, ...]
    wgcf_version: str
    wgcf_url: str
    wgcf_path: str
    work_dir: str
    profile_name: str
    wireguard_dir: str
    interface: str
    resolv_conf: str
    nameservers: Tuple[str, ...]

    def wgcf_download_url(self, arch: str) -> str:
        return self.wgcf_url.format(version=self.wgcf_version, arch=arch)

    @property
    def unit(self) -> str:
        return f"wg-quick@{self.interface}"

    @property
    def profile_dest(self) -> str:
        return f"{self.wireguard_dir}/{self.interface}.conf"


@dataclass(frozen=True)
class ProxySettings:
    domain: str
    packages: Tuple[str, ...]
    certbot_path: str
    snap_certbot: str
    nginx_conf: str
    site_config: str
    web_root: str
    index_url: str
    letsencrypt_live: str
    stream_listen: str
    tls_listen: str
    clear_fallback: str
    firewall_ports: Tuple[str, ...]


@dataclass(frozen=True)
class Settings:
    """Everything the installers need to know about the host.

    Paths are host paths as they appear inside generated files. File
    operations go through ``path()``, which places them under ``root``.
    """

    root: Path
    log_level: str
    apt: AptSettings
    node: NodeSettings
    tunnel: TunnelSettings
    proxy: ProxySettings

    def path(self, host_path: str) -> Path:
        return self.root / str(host_path).lstrip("/")

    @property
    def verbose(self) -> bool:
        return self.log_level.lower() == "debug"

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "Settings":
        try:
            return cls._build(config)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration: {e!r}") from e

    @classmethod
    def _build(cls, config: Dict[str, Any]) -> "Settings":
        node = dict(config["node"])
        node["packages"] = tuple(node["packages"])
        node["assets"] = tuple(node["assets"].items())
        node["xray_urls"] = {arch: tuple(urls) for arch, urls in node["xray_urls"].items()}

        tunnel = dict(config["tunnel"])
        tunnel["packages"] = tuple(tunnel["packages"])
        tunnel["nameservers"] = tuple(tunnel["nameservers"])
        tunnel["wgcf_version"] = str(tunnel["wgcf_version"])

        proxy = dict(config["proxy"])
        proxy["packages"] = tuple(proxy["packages"])
        proxy["firewall_ports"] = tuple(proxy["firewall_ports"])
        proxy["domain"] = (proxy.get("domain") or "").strip()

        return cls(
            root=Path(config.get("root") or "/"),
            log_level=str(config.get("logging", {}).get("level", "info")),
            apt=AptSettings(**config["apt"]),
            node=NodeSettings(**node),
            tunnel=TunnelSettings(**tunnel),
            proxy=ProxySettings(**proxy),
        )

    @classmethod
    def defaults(cls) -> "Settings":
        return cls.from_config(copy.deepcopy(DEFAULTS))
