#!/usr/bin/env python3
"""voono CLI - Main entry point"""

import sys
from pathlib import Path

import click

from voono import __version__, console
from voono.apt import PackageCache
from voono.config.manager import DEFAULT_CONFIG_PATH, ConfigManager
from voono.config.settings import Settings
from voono.download import Downloader
from voono.errors import VoonoError
from voono.installer.bootstrap import run_selected
from voono.installer.context import InstallContext, Selection
from voono.runner import CommandRunner
from voono.system import detect_arch, require_root

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"], "allow_extra_args": True}

EPILOG = """\b
No options     Full install: Marzban Node + Warp + Nginx
-m             Install Marzban Node
-w             Install Warp (WireGuard + wgcf)
-n             Install Nginx (TLS, redirect, static index)
"""


class UnknownOptionError(click.ClickException):
    """Unrecognised command line token; exits 1 like every other failure"""

    exit_code = 1

    def __init__(self, token: str):
        super().__init__(f"Unknown option: {token}")
        self.token = token


class InstallCommand(click.Command):
    """Command that reports stray tokens as unknown options."""

    def parse_args(self, ctx, args):
        # Flags are separate tokens; "-nm" is not "-n -m".
        for token in args:
            if token.startswith("-") and not token.startswith("--") and len(token) > 2:
                raise UnknownOptionError(token)
        try:
            rest = super().parse_args(ctx, args)
        except click.NoSuchOption as e:
            raise UnknownOptionError(e.option_name) from e
        except click.UsageError as e:
            e.exit_code = 1
            raise
        if ctx.args:
            raise UnknownOptionError(ctx.args[0])
        return rest


def prompt_domain(text: str) -> str:
    return click.prompt(text, default="", show_default=False)


def build_context(settings: Settings, runner: CommandRunner) -> InstallContext:
    """Detect the architecture and wire up the installer dependencies."""
    arch = detect_arch(runner)
    packages = PackageCache(runner, settings.path(settings.apt.stamp), max_age=settings.apt.max_age)
    return InstallContext(
        settings=settings,
        arch=arch,
        runner=runner,
        packages=packages,
        downloader=Downloader(),
        prompt=prompt_domain,
    )


@click.command(cls=InstallCommand, context_settings=CONTEXT_SETTINGS, epilog=EPILOG)
@click.option("-m", "node", is_flag=True, help="Install Marzban Node")
@click.option("-w", "tunnel", is_flag=True, help="Install Warp (WireGuard + wgcf)")
@click.option("-n", "proxy", is_flag=True, help="Install Nginx (TLS, redirect, static index)")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    help="Config file path",
)
@click.option("--domain", envvar="VOONO_DOMAIN", help="Domain for the TLS certificate (skips the prompt)")
@click.option("-v", "--verbose", is_flag=True, help="Show every external command")
@click.version_option(__version__, prog_name="voono")
def cli(node, tunnel, proxy, config_path, domain, verbose):
    """Provision this VPS: Marzban node, WARP tunnel and nginx TLS front.

    Must be run as root. With no options, everything is installed.
    """
    selection = Selection.from_flags(node, tunnel, proxy)

    try:
        require_root()

        cfg = ConfigManager(config_path).load()
        if domain:
            cfg["proxy"]["domain"] = domain
        settings = Settings.from_config(cfg)
        console.set_verbose(verbose or settings.verbose)

        ctx = build_context(settings, CommandRunner())
        run_selected(ctx, selection)
    except VoonoError as e:
        console.error(str(e))
        sys.exit(1)


def main():
    cli(prog_name="voono")


if __name__ == "__main__":
    main()
