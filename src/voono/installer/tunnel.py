"""Cloudflare WARP over WireGuard, registered with wgcf."""

import shutil
import tempfile
from pathlib import Path

from .. import console
from ..errors import ProfileMissingError, ResolverError
from ..patch import WIREGUARD_TABLE_OFF
from ..runner import Command
from ..templates import resolv_conf
from .context import InstallContext


def install_wgcf(ctx: InstallContext) -> Path:
    tunnel = ctx.settings.tunnel
    url = tunnel.wgcf_download_url(ctx.arch.value)
    dest = ctx.path(tunnel.wgcf_path)

    with tempfile.TemporaryDirectory() as tmp:
        downloaded = ctx.downloader.fetch(url, Path(tmp) / "wgcf")
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(downloaded), str(dest))
    dest.chmod(0o755)
    return dest


def register(ctx: InstallContext, wgcf: Path, work_dir: Path) -> bool:
    """Register a WARP account; a failure here is logged, not fatal.

    The first attempt pipes a newline to accept the terms prompt, the second
    leaves the prompt to the user.
    """
    console.log("Registering wgcf (may briefly prompt; auto-accepting if possible)...")
    result = ctx.runner.try_each(
        Command.of(wgcf, "register", input="\n", cwd=work_dir),
        Command.of(wgcf, "register", cwd=work_dir, interactive=True),
    )
    if not result.ok:
        console.warn(f"wgcf register failed (exit {result.returncode}); continuing.")
    return result.ok


def generate_profile(ctx: InstallContext, wgcf: Path, work_dir: Path) -> Path:
    tunnel = ctx.settings.tunnel
    console.log("Generating wgcf profile...")
    ctx.runner.run(Command.of(wgcf, "generate", cwd=work_dir))

    profile = work_dir / tunnel.profile_name
    if not profile.is_file():
        raise ProfileMissingError(f"{tunnel.profile_name} not found; wgcf generate may have failed.")
    return profile


def patch_profile(profile: Path) -> None:
    """Drop the DNS directive and keep wg-quick away from the routing table."""
    console.log(f"Adjusting {profile.name} (remove DNS, add Table=off)...")
    result = WIREGUARD_TABLE_OFF.apply_to_file(profile)
    if result.inserted:
        console.debug(f"Table = off inserted {result.anchor}")


def write_resolver(ctx: InstallContext) -> Path:
    """Pin the resolver to fixed nameservers and make the file immutable.

    chattr is not supported on every filesystem, so its failures are tolerated.
    """
    tunnel = ctx.settings.tunnel
    resolv = ctx.path(tunnel.resolv_conf)

    if resolv.exists() or resolv.is_symlink():
        ctx.runner.tolerate(Command.of("chattr", "-i", str(resolv)), "chattr -i")
    try:
        if resolv.exists() or resolv.is_symlink():
            resolv.unlink()
        resolv.parent.mkdir(parents=True, exist_ok=True)
        resolv.write_text(resolv_conf(tunnel.nameservers))
    except OSError as e:
        raise ResolverError(f"Cannot replace {tunnel.resolv_conf}: {e}") from e
    ctx.runner.tolerate(Command.of("chattr", "+i", str(resolv)), "chattr +i")
    return resolv


def install_tunnel(ctx: InstallContext) -> None:
    """Register WARP, install the profile as wg-quick@<interface> and start it."""
    tunnel = ctx.settings.tunnel

    console.log("Installing Warp (wgcf + wireguard)...")
    ctx.packages.update_once()
    ctx.packages.install(*tunnel.packages)

    wgcf = install_wgcf(ctx)

    work_dir = ctx.path(tunnel.work_dir)
    work_dir.mkdir(parents=True, exist_ok=True)
    register(ctx, wgcf, work_dir)
    profile = generate_profile(ctx, wgcf, work_dir)
    patch_profile(profile)

    dest = ctx.path(tunnel.profile_dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(str(profile), str(dest))

    write_resolver(ctx)

    ctx.runner.run(Command.of("systemctl", "enable", "--now", tunnel.unit))
    status = ctx.runner.tolerate(
        Command.of("systemctl", "status", tunnel.unit, "--no-pager"), "systemctl status"
    )
    if status.stdout:
        console.output(status.stdout)

    console.success("WireGuard Warp installed and configured successfully.")
