"""Configuration loading"""

from .manager import ConfigManager
from .settings import Settings

__all__ = ["ConfigManager", "Settings"]
