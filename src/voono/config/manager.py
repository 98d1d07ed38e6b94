"""Configuration management for voono"""

import copy
import os
from pathlib import Path
from typing import Any, Dict

import yaml

from ..errors import ConfigError

DEFAULT_CONFIG_PATH = Path("/etc/voono/config.yaml")

DEFAULTS: Dict[str, Any] = {
    "root": "/",
    "logging": {
        "level": "info",
    },
    "apt": {
        "stamp": "/var/lib/apt/periodic/update-success-stamp",
        "max_age": 3600,
    },
    "node": {
        "packages": ["curl", "socat", "git", "wget", "unzip"],
        "docker_script_url": "https://get.docker.com",
        "repo_url": "https://github.com/Gozargah/Marzban-node",
        "repo_dir": "/root/Marzban-node",
        "image": "gozargah/marzban-node:latest",
        "node_data_dir": "/var/lib/marzban-node",
        "data_dir": "/var/lib/marzban",
        "assets_dir": "/var/lib/marzban/assets",
        "xray_dir": "/var/lib/marzban/xray-core",
        "cert_name": "voono.pem",
        "service_port": 63050,
        "api_port": 63051,
        "assets": {
            "geosite.dat": "https://github.com/v2fly/domain-list-community/releases/latest/download/dlc.dat",
            "geoip.dat": "https://github.com/v2fly/geoip/releases/latest/download/geoip.dat",
            "iran.dat": "https://github.com/bootmortis/iran-hosted-domains/releases/latest/download/iran.dat",
        },
        "xray_urls": {
            "amd64": [
                "https://github.com/XTLS/xray-core/releases/latest/download/Xray-linux-64.zip",
            ],
            "arm64": [
                "https://github.com/XTLS/Xray-core/releases/latest/download/Xray-linux-arm64-v8a.zip",
                "https://github.com/XTLS/xray-core/releases/latest/download/Xray-linux-arm64-v8a.zip",
            ],
        },
    },
    "tunnel": {
        "packages": ["wireguard"],
        "wgcf_version": "2.2.29",
        "wgcf_url": "https://github.com/ViRb3/wgcf/releases/download/v{version}/wgcf_{version}_linux_{arch}",
        "wgcf_path": "/usr/bin/wgcf",
        "work_dir": "/root",
        "profile_name": "wgcf-profile.conf",
        "wireguard_dir": "/etc/wireguard",
        "interface": "warp",
        "resolv_conf": "/etc/resolv.conf",
        "nameservers": ["1.1.1.1", "8.8.8.8"],
    },
    "proxy": {
        "domain": "",
        "packages": ["nginx", "nginx-full"],
        "certbot_path": "/usr/bin/certbot",
        "snap_certbot": "/snap/bin/certbot",
        "nginx_conf": "/etc/nginx/nginx.conf",
        "site_config": "/etc/nginx/sites-available/default",
        "web_root": "/var/www/html",
        "index_url": "https://raw.githubusercontent.com/voono/waffle/refs/heads/main/index.html",
        "letsencrypt_live": "/etc/letsencrypt/live",
        "stream_listen": "127.0.0.1:8443",
        "tls_listen": "127.0.0.1:5000",
        "clear_fallback": "127.0.0.1:80",
        "firewall_ports": ["80/tcp", "443/tcp"],
    },
}


class ConfigManager:
    """Manage voono configuration"""

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH):
        self.config_path = Path(config_path)

    def load(self) -> Dict[str, Any]:
        """Load configuration from file and environment"""
        config = self._load_defaults()

        # Load from file if exists
        if self.config_path.exists():
            try:
                with open(self.config_path) as f:
                    file_config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigError(f"Cannot read {self.config_path}: {e}") from e

            if not isinstance(file_config, dict):
                raise ConfigError(f"{self.config_path} must contain a mapping")
            config = self._merge(config, file_config)

            for key, default in DEFAULTS.items():
                if isinstance(default, dict) and not isinstance(config[key], dict):
                    raise ConfigError(f"{self.config_path}: section '{key}' must be a mapping")

        # Override with environment variables
        config = self._apply_env_overrides(config)

        return config

    def save(self, config: Dict[str, Any]) -> None:
        """Save configuration to file"""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.config_path, "w") as f:
            yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)

    def _load_defaults(self) -> Dict[str, Any]:
        """Load default configuration"""
        return copy.deepcopy(DEFAULTS)

    def _merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Merge two configuration dictionaries"""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides"""
        if root := os.getenv("VOONO_ROOT"):
            config["root"] = root

        if domain := os.getenv("VOONO_DOMAIN"):
            config["proxy"]["domain"] = domain

        if level := os.getenv("VOONO_LOG_LEVEL"):
            config["logging"]["level"] = level

        return config
