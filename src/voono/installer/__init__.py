"""Installers for the node, tunnel and proxy subsystems."""

from .bootstrap import run_selected
from .context import InstallContext, Selection
from .node import install_node
from .proxy import install_proxy
from .tunnel import install_tunnel

__all__ = [
    "InstallContext",
    "Selection",
    "install_node",
    "install_proxy",
    "install_tunnel",
    "run_selected",
]
