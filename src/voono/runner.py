"""Typed external commands and the one place that executes them."""

import os
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from . import console
from .errors import CommandError


@dataclass(frozen=True)
class Command:
    """An external tool invocation.

    ``ok_codes`` lists the exit statuses that count as success. ``input`` is
    piped to stdin. ``interactive`` commands inherit the terminal instead of
    having their output captured.
    """

    argv: tuple
    input: Optional[str] = None
    cwd: Optional[Path] = None
    env: tuple = ()
    ok_codes: tuple = (0,)
    interactive: bool = False

    @classmethod
    def of(cls, *argv: str, **kwargs) -> "Command":
        if "env" in kwargs and isinstance(kwargs["env"], dict):
            kwargs["env"] = tuple(sorted(kwargs["env"].items()))
        return cls(argv=tuple(str(a) for a in argv), **kwargs)

    @property
    def binary(self) -> str:
        return self.argv[0]

    def __str__(self) -> str:
        return shlex.join(self.argv)


@dataclass(frozen=True)
class CommandResult:
    command: Command
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode in self.command.ok_codes


class CommandRunner:
    """Runs ``Command`` descriptors with subprocess.

    ``run`` treats a failure as fatal, ``tolerate`` logs it and carries on,
    ``first_success`` gives each command in a fallback chain one attempt.
    """

    def execute(self, command: Command) -> CommandResult:
        """Run a command and return its result without judging it."""
        console.debug(f"Running: {command}")

        env = None
        if command.env:
            env = os.environ.copy()
            env.update(dict(command.env))

        capture = not command.interactive
        try:
            proc = subprocess.run(
                list(command.argv),
                input=command.input,
                cwd=command.cwd,
                env=env,
                capture_output=capture,
                text=True,
                check=False,
            )
        except FileNotFoundError:
            return CommandResult(command, 127, "", f"{command.binary}: command not found")

        result = CommandResult(command, proc.returncode, proc.stdout or "", proc.stderr or "")
        if result.stdout:
            console.debug(result.stdout.rstrip())
        return result

    def run(self, command: Command) -> CommandResult:
        result = self.execute(command)
        if not result.ok:
            raise CommandError(command, result.returncode, result.stderr)
        return result

    def tolerate(self, command: Command, reason: Optional[str] = None) -> CommandResult:
        """Run a command whose failure must not abort the run."""
        result = self.execute(command)
        if not result.ok:
            what = reason or str(command)
            console.warn(f"{what} failed (exit {result.returncode}); continuing.")
        return result

    def try_each(self, *commands: Command) -> CommandResult:
        """Run commands in order until one succeeds; return the last result."""
        if not commands:
            raise ValueError("try_each needs at least one command")

        result = None
        for command in commands:
            result = self.execute(command)
            if result.ok:
                return result
            console.debug(f"{command} failed (exit {result.returncode})")
        return result

    def first_success(self, *commands: Command) -> CommandResult:
        """Like ``try_each``, but raise ``CommandError`` if nothing succeeded."""
        result = self.try_each(*commands)
        if not result.ok:
            raise CommandError(result.command, result.returncode, result.stderr)
        return result

    def succeeds(self, command: Command) -> bool:
        """Probe: True when the command exits with an accepted status."""
        return self.execute(command).ok

    def which(self, name: str) -> Optional[str]:
        return shutil.which(name)
