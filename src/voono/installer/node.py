"""Marzban node: docker, the node checkout, routing assets and the Xray core."""

import tempfile
import zipfile
from pathlib import Path

from .. import console
from ..errors import ConfigError, DownloadError
from ..runner import Command
from ..templates import CLIENT_CERT, compose_definition, render_compose
from .context import InstallContext


def ensure_docker(ctx: InstallContext) -> None:
    """Install docker with the upstream convenience script if it is missing."""
    if ctx.runner.which("docker"):
        console.log("Docker already installed.")
        return

    console.log("Installing Docker...")
    with tempfile.TemporaryDirectory() as tmp:
        script = ctx.downloader.fetch(ctx.settings.node.docker_script_url, Path(tmp) / "get-docker.sh")
        ctx.runner.run(Command.of("sh", str(script)))


def ensure_compose_plugin(ctx: InstallContext) -> None:
    if ctx.runner.succeeds(Command.of("docker", "compose", "version")):
        return
    console.warn("Docker 'compose' plugin not detected. Attempting to install via apt...")
    ctx.packages.install("docker-compose-plugin", tolerate=True)


def sync_checkout(ctx: InstallContext) -> None:
    """Clone the node repository, or fast-forward an existing checkout."""
    node = ctx.settings.node
    repo = ctx.path(node.repo_dir)

    if not repo.is_dir():
        console.log("Cloning Marzban-node repo...")
        ctx.runner.run(Command.of("git", "clone", node.repo_url, str(repo)))
        return

    console.log("Marzban-node already present. Pulling latest...")
    ctx.runner.tolerate(Command.of("git", "-C", str(repo), "pull", "--ff-only"), "git pull")


def write_compose_file(ctx: InstallContext) -> Path:
    node = ctx.settings.node
    path = ctx.path(node.compose_file)
    console.log("Writing docker-compose.yml...")

    definition = compose_definition(
        image=node.image,
        service_port=node.service_port,
        api_port=node.api_port,
        node_data_dir=node.node_data_dir,
        data_dir=node.data_dir,
        assets_dir=node.assets_dir,
        xray_executable=node.xray_executable,
        cert_file=node.cert_file,
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_compose(definition))
    return path


def write_client_cert(ctx: InstallContext) -> Path:
    """Write the panel's client certificate unless one is already there."""
    path = ctx.path(ctx.settings.node.cert_file)
    if path.exists():
        console.log("Certificate already exists; skipping write.")
        return path

    console.log(f"Writing {ctx.settings.node.cert_file}...")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(CLIENT_CERT)
    path.chmod(0o644)
    return path


def download_assets(ctx: InstallContext) -> None:
    node = ctx.settings.node
    console.log("Downloading Marzban assets (geosite/geoip/iran)...")
    assets_dir = ctx.path(node.assets_dir)
    for name, url in node.assets:
        ctx.downloader.fetch(url, assets_dir / name)


def install_xray(ctx: InstallContext) -> Path:
    """Download and unpack the Xray core build for this architecture."""
    node = ctx.settings.node
    urls = node.xray_urls.get(ctx.arch.value)
    if not urls:
        raise ConfigError(f"No Xray download URL configured for {ctx.arch.value}")

    console.log(f"Installing Xray core for {ctx.arch.value}...")
    xray_dir = ctx.path(node.xray_dir)
    xray_dir.mkdir(parents=True, exist_ok=True)
    for stale in xray_dir.glob("Xray-linux-*.zip"):
        stale.unlink()

    archive = ctx.downloader.fetch_any(urls, xray_dir / "Xray.zip")
    try:
        with zipfile.ZipFile(archive) as zf:
            zf.extractall(xray_dir)
    except zipfile.BadZipFile as e:
        raise DownloadError(f"Xray archive is not a valid zip file: {e}") from e
    finally:
        archive.unlink()

    binary = xray_dir / "xray"
    if binary.exists():
        binary.chmod(0o755)
    else:
        console.warn(f"{node.xray_executable} not found in the Xray archive.")
    return binary


def install_node(ctx: InstallContext) -> None:
    """Bring up the Marzban node container on the host network."""
    node = ctx.settings.node

    console.log("Installing Marzban Node prerequisites...")
    ctx.packages.update_once()
    ctx.packages.install(*node.packages)

    ensure_docker(ctx)
    ensure_compose_plugin(ctx)
    sync_checkout(ctx)

    for directory in (node.node_data_dir, node.assets_dir, node.xray_dir):
        ctx.path(directory).mkdir(parents=True, exist_ok=True)

    write_compose_file(ctx)
    write_client_cert(ctx)
    download_assets(ctx)
    install_xray(ctx)

    console.log("Starting Marzban Node (docker compose up -d)...")
    ctx.runner.run(Command.of("docker", "compose", "up", "-d", cwd=ctx.path(node.repo_dir)))

    console.success("Marzban-Node installed and configured successfully.")
