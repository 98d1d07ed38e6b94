"""Prefixed terminal output for the provisioning steps."""

from rich.console import Console
from rich.markup import escape

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)

PREFIX = "\\[voono]"

_verbose = False


def set_verbose(enabled: bool) -> None:
    """Show debug lines (external commands) when enabled."""
    global _verbose
    _verbose = enabled


def log(message: str) -> None:
    console.print(f"[bold green]{PREFIX}[/bold green] {escape(message)}")


def success(message: str) -> None:
    console.print(f"[bold green]{PREFIX}[/bold green] [green]✓ {escape(message)}[/green]")


def warn(message: str) -> None:
    console.print(f"[bold yellow]{PREFIX}[/bold yellow] {escape(message)}")


def error(message: str) -> None:
    err_console.print(f"[bold red]{PREFIX} ERROR:[/bold red] {escape(message)}")


def debug(message: str) -> None:
    if _verbose:
        console.print(f"[dim]{escape(message)}[/dim]")


def output(text: str) -> None:
    """Echo an external tool's output verbatim."""
    console.print(text.rstrip(), markup=False)


def item(message: str) -> None:
    """Print an indented list entry under the last log line."""
    console.print(f"  - {escape(message)}")
