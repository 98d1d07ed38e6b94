"""HTTP downloads for assets, binaries and install scripts."""

import os
from pathlib import Path
from typing import Iterable, Optional

import httpx

from . import console
from .errors import DownloadError


class Downloader:
    """Fetches URLs to files with httpx, following redirects."""

    def __init__(self, timeout: float = 30.0, transport: Optional[httpx.BaseTransport] = None):
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self.transport,
        )

    def fetch(self, url: str, dest: Path) -> Path:
        """Download ``url`` to ``dest``, replacing it only on success."""
        dest = Path(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        partial = dest.with_name(dest.name + ".part")

        console.debug(f"GET {url} -> {dest}")
        try:
            with self._client() as client:
                with client.stream("GET", url) as response:
                    response.raise_for_status()
                    with open(partial, "wb") as f:
                        for chunk in response.iter_bytes():
                            f.write(chunk)
        except httpx.HTTPError as e:
            if partial.exists():
                partial.unlink()
            raise DownloadError(f"Download failed: {url}: {e}") from e

        os.replace(partial, dest)
        return dest

    def fetch_any(self, urls: Iterable[str], dest: Path) -> Path:
        """Try each URL in turn; raise the last failure if none works."""
        last_error = None
        for url in urls:
            try:
                return self.fetch(url, dest)
            except DownloadError as e:
                console.debug(str(e))
                last_error = e
        if last_error is None:
            raise DownloadError(f"No URL to download {Path(dest).name} from")
        raise last_error
