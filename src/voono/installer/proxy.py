"""nginx TLS front: certbot certificate, SNI pre-read stream block and static site."""

from datetime import datetime
from pathlib import Path

from .. import console
from ..errors import CertificateError, ConfigValidationError, DomainRequiredError
from ..patch import nginx_stream_patch
from ..runner import Command
from ..templates import site_config, stream_block
from .context import InstallContext

DOMAIN_PROMPT = "Enter your domain for TLS (e.g. example.com)"


def ensure_certbot(ctx: InstallContext) -> None:
    """Install certbot from apt, falling back to the snap."""
    if ctx.runner.which("certbot"):
        console.log("certbot already installed.")
        return

    ctx.packages.install("certbot", tolerate=True)
    if ctx.runner.which("certbot"):
        return

    console.warn("certbot not available from apt; installing the snap.")
    ctx.packages.install("snapd", tolerate=True)
    ctx.runner.run(Command.of("snap", "install", "--classic", "certbot"))

    proxy = ctx.settings.proxy
    link = ctx.path(proxy.certbot_path)
    link.parent.mkdir(parents=True, exist_ok=True)
    if link.exists() or link.is_symlink():
        link.unlink()
    link.symlink_to(proxy.snap_certbot)


def ask_domain(ctx: InstallContext) -> str:
    domain = ctx.settings.proxy.domain or ctx.prompt(DOMAIN_PROMPT)
    domain = (domain or "").strip()
    if not domain:
        raise DomainRequiredError("Domain is required for Nginx step.")
    return domain


def issue_certificate(ctx: InstallContext, domain: str) -> None:
    console.log(f"Requesting certificate for {domain} (standalone)...")
    # certbot may ask whether to keep an existing certificate; it needs the terminal.
    result = ctx.runner.execute(
        Command.of(
            "certbot", "certonly", "--standalone", "--agree-tos",
            "--register-unsafely-without-email", "-d", domain,
            interactive=True,
        )
    )
    if not result.ok:
        raise CertificateError(
            f"certbot failed (exit {result.returncode}); aborting Nginx installation."
        )


def inject_stream_block(ctx: InstallContext) -> bool:
    """Add the stream block to nginx.conf once, keeping a timestamped backup.

    Returns True if the file was changed.
    """
    proxy = ctx.settings.proxy
    conf = ctx.path(proxy.nginx_conf)
    patch = nginx_stream_patch(
        stream_block(
            listen=proxy.stream_listen,
            tls_terminator=proxy.tls_listen,
            clear_fallback=proxy.clear_fallback,
        )
    )

    console.log(f"Injecting stream block into {proxy.nginx_conf} (non-destructive)...")
    if not conf.is_file():
        raise ConfigValidationError(f"{proxy.nginx_conf} not found; is nginx installed?")
    if patch.is_applied(conf.read_text()):
        console.log("Stream block already present; skipping injection.")
        return False

    backup = conf.with_name(f"{conf.name}.{datetime.now():%Y%m%d%H%M%S}.bak")
    result = patch.apply_to_file(conf, backup=backup)
    console.debug(f"Stream block inserted {result.anchor}; backup at {backup}")
    return result.changed


def write_site(ctx: InstallContext, domain: str) -> Path:
    proxy = ctx.settings.proxy

    console.log("Fetching index.html...")
    web_root = ctx.path(proxy.web_root)
    web_root.mkdir(parents=True, exist_ok=True)
    ctx.downloader.fetch(proxy.index_url, web_root / "index.html")

    console.log(f"Writing {proxy.site_config}...")
    site = ctx.path(proxy.site_config)
    site.parent.mkdir(parents=True, exist_ok=True)
    site.write_text(
        site_config(
            domain,
            tls_listen=proxy.tls_listen,
            web_root=proxy.web_root,
            cert_dir=proxy.letsencrypt_live,
        )
    )
    return site


def reload_nginx(ctx: InstallContext) -> None:
    console.log("Testing nginx config...")
    result = ctx.runner.execute(Command.of("nginx", "-t"))
    if not result.ok:
        raise ConfigValidationError(f"nginx -t failed:\n{result.stderr.strip()}")

    ctx.runner.run(Command.of("systemctl", "enable", "--now", "nginx"))
    ctx.runner.first_success(
        Command.of("systemctl", "reload", "nginx"),
        Command.of("systemctl", "restart", "nginx"),
    )


def open_firewall(ctx: InstallContext) -> None:
    """Allow HTTP/HTTPS through ufw, only when ufw is installed and active."""
    if not ctx.runner.which("ufw"):
        return
    status = ctx.runner.execute(Command.of("ufw", "status"))
    if "Status: active" not in status.stdout:
        return
    for port in ctx.settings.proxy.firewall_ports:
        ctx.runner.tolerate(Command.of("ufw", "allow", port), f"ufw allow {port}")


def install_proxy(ctx: InstallContext) -> None:
    """Issue a certificate and put nginx in front of the node."""
    proxy = ctx.settings.proxy

    ctx.packages.update_once()
    ensure_certbot(ctx)

    domain = ask_domain(ctx)
    issue_certificate(ctx, domain)

    console.log("Installing nginx (with stream module via nginx-full)...")
    ctx.packages.install(*proxy.packages)

    inject_stream_block(ctx)
    write_site(ctx, domain)
    reload_nginx(ctx)
    open_firewall(ctx)

    console.success("Nginx is installed and configured successfully.")
