"""Shared fixtures: a recording command runner and an offline downloader."""

import copy
import io
import zipfile
from pathlib import Path

import pytest

from voono.apt import PackageCache
from voono.config.manager import DEFAULTS
from voono.config.settings import Settings
from voono.download import Downloader
from voono.errors import DownloadError
from voono.installer.context import InstallContext
from voono.runner import CommandResult, CommandRunner
from voono.system import Architecture

WGCF_PROFILE = """\
[Interface]
PrivateKey = aGVsbG8td29ybGQtcHJpdmF0ZS1rZXktMDAwMDAwMDA=
Address = 172.16.0.2/32
Address = 2606:4700:110:8a36:df92:102a:9602:fa18/128
DNS = 1.1.1.1, 1.0.0.1, 2606:4700:4700::1111, 2606:4700:4700::1001
MTU = 1280

[Peer]
PublicKey = bmXOC+F1FxEMF9dyiK2H5/1SUtzH0JuVo51h2wPfgyo=
AllowedIPs = 0.0.0.0/0
AllowedIPs = ::/0
Endpoint = engage.cloudflareclient.com:2408
"""


class FakeRunner(CommandRunner):
    """Records commands instead of running them.

    Responses are registered per argv prefix with ``on``; the longest matching
    prefix wins. Several responses for one prefix are consumed in order, the
    last one repeating.
    """

    def __init__(self, available=("docker", "certbot")):
        self.commands = []
        self.available = set(available)
        self.responses = {}

    def on(self, *prefix, returncode=0, stdout="", stderr="", effect=None):
        self.responses.setdefault(tuple(prefix), []).append((returncode, stdout, stderr, effect))
        return self

    def execute(self, command):
        self.commands.append(command)
        for prefix in sorted(self.responses, key=len, reverse=True):
            if command.argv[: len(prefix)] != prefix:
                continue
            queue = self.responses[prefix]
            returncode, stdout, stderr, effect = queue.pop(0) if len(queue) > 1 else queue[0]
            if effect is not None:
                effect(command)
            return CommandResult(command, returncode, stdout, stderr)
        return CommandResult(command, 0, "", "")

    def which(self, name):
        return f"/usr/bin/{name}" if name in self.available else None

    @property
    def argvs(self):
        return [c.argv for c in self.commands]

    def ran(self, *prefix):
        return any(argv[: len(prefix)] == prefix for argv in self.argvs)

    def find(self, *prefix):
        return [c for c in self.commands if c.argv[: len(prefix)] == prefix]


class FakeDownloader(Downloader):
    """Writes canned payloads instead of touching the network."""

    def __init__(self, payloads=None, failing=()):
        super().__init__()
        self.payloads = dict(payloads or {})
        self.failing = set(failing)
        self.fetched = []

    def fetch(self, url, dest):
        dest = Path(dest)
        self.fetched.append((url, dest))
        if url in self.failing:
            raise DownloadError(f"Download failed: {url}: 404 Not Found")
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(self.payloads.get(url, b"payload"))
        return dest

    @property
    def urls(self):
        return [url for url, _ in self.fetched]


def xray_zip() -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr("xray", "#!/bin/sh\necho xray\n")
        zf.writestr("geoip.dat", "geoip")
        zf.writestr("LICENSE", "MPL")
    return buf.getvalue()


@pytest.fixture
def config(tmp_path):
    cfg = copy.deepcopy(DEFAULTS)
    cfg["root"] = str(tmp_path)
    return cfg


@pytest.fixture
def settings(config):
    return Settings.from_config(config)


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def downloader():
    payloads = {}
    for urls in DEFAULTS["node"]["xray_urls"].values():
        for url in urls:
            payloads[url] = xray_zip()
    return FakeDownloader(payloads)


@pytest.fixture
def make_ctx(settings, runner, downloader):
    """Build an InstallContext; keyword arguments replace the defaults."""

    def factory(**overrides):
        values = {
            "settings": settings,
            "arch": Architecture.AMD64,
            "runner": runner,
            "downloader": downloader,
            "prompt": lambda text: "example.com",
        }
        values.update(overrides)
        s = values["settings"]
        values.setdefault("packages", PackageCache(values["runner"], s.path(s.apt.stamp)))
        return InstallContext(**values)

    return factory


@pytest.fixture
def wgcf_profile():
    return WGCF_PROFILE
