"""Host checks done once before any installer runs."""

import os
from enum import Enum
from typing import Callable

from .errors import PrivilegeError, UnsupportedArchitectureError
from .runner import Command, CommandRunner


class Architecture(str, Enum):
    AMD64 = "amd64"
    ARM64 = "arm64"


_ARCH_ALIASES = {
    "amd64": Architecture.AMD64,
    "x86_64": Architecture.AMD64,
    "arm64": Architecture.ARM64,
    "aarch64": Architecture.ARM64,
}


def require_root(geteuid: Callable[[], int] = os.geteuid) -> None:
    """Fail unless running with uid 0."""
    if geteuid() != 0:
        raise PrivilegeError("Please run as root (e.g., sudo voono).")


def normalize_arch(raw: str) -> Architecture:
    """Map a platform architecture name to a supported Architecture."""
    value = raw.strip().lower()
    try:
        return _ARCH_ALIASES[value]
    except KeyError:
        raise UnsupportedArchitectureError(value) from None


def detect_arch(runner: CommandRunner) -> Architecture:
    """Ask dpkg for the host architecture."""
    result = runner.run(Command.of("dpkg", "--print-architecture"))
    return normalize_arch(result.stdout)
