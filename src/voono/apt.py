"""apt index refresh throttling and package installation."""

import time
from pathlib import Path
from typing import Callable

from . import console
from .runner import Command, CommandRunner

APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


class PackageCache:
    """Refreshes the apt index at most once per hour (and once per run).

    The freshness marker is the stamp file apt's periodic hook touches after a
    successful ``apt-get update``.
    """

    def __init__(
        self,
        runner: CommandRunner,
        stamp: Path,
        max_age: int = 3600,
        clock: Callable[[], float] = time.time,
    ):
        self.runner = runner
        self.stamp = Path(stamp)
        self.max_age = max_age
        self.clock = clock
        self._refreshed = False

    def age(self):
        """Seconds since the marker was touched, or None without a marker."""
        if not self.stamp.is_file():
            return None
        return self.clock() - self.stamp.stat().st_mtime

    def is_stale(self) -> bool:
        age = self.age()
        return age is None or age > self.max_age

    def update_once(self) -> bool:
        """Run ``apt-get update`` if the index is stale. Returns True if it ran."""
        if self._refreshed or not self.is_stale():
            console.log("Apt cache is fresh enough; skipping update.")
            return False

        console.log("Updating apt cache...")
        self.runner.run(Command.of("apt-get", "update", "-y", env=APT_ENV))
        self._refreshed = True
        return True

    def install(self, *packages: str, tolerate: bool = False) -> bool:
        """Install packages with apt-get.

        Failures are fatal unless ``tolerate`` is set, in which case a warning
        is logged and False returned.
        """
        command = Command.of("apt-get", "-y", "install", *packages, env=APT_ENV)
        if tolerate:
            return self.runner.tolerate(command, f"apt install {' '.join(packages)}").ok
        self.runner.run(command)
        return True
