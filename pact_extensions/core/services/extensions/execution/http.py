"""
L4 Execution — HTTP fetches.

The single place where the extension manager talks to the network.
Requests block until complete; there is no retry.  Transport errors
surface as ``NetworkError``.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from pathlib import Path
from typing import Any

from pact_extensions import __version__
from pact_extensions.core.errors import FilesystemError, NetworkError, ParseError

logger = logging.getLogger(__name__)

USER_AGENT = f"pact-cli/{__version__}"

_CHUNK = 64 * 1024


class HttpClient:
    """Thin urllib wrapper: fetch text, JSON, or stream bytes to a file."""

    def __init__(self, timeout: int = 30, github_token: str | None = None) -> None:
        self.timeout = timeout
        self.github_token = github_token

    def _request(self, url: str, accept: str) -> urllib.request.Request:
        headers = {"User-Agent": USER_AGENT, "Accept": accept}
        if self.github_token and url.startswith("https://api.github.com/"):
            headers["Authorization"] = f"Bearer {self.github_token}"
        return urllib.request.Request(url, headers=headers)

    def _open(self, url: str, accept: str):
        logger.debug("GET %s", url)
        try:
            return urllib.request.urlopen(self._request(url, accept), timeout=self.timeout)
        except urllib.error.HTTPError as e:
            raise NetworkError(url, f"HTTP {e.code} {e.reason}", status=e.code) from e
        except urllib.error.URLError as e:
            raise NetworkError(url, str(e.reason)) from e
        except (OSError, ValueError) as e:
            raise NetworkError(url, str(e)) from e

    def get_text(self, url: str) -> str:
        """GET ``url`` and return the decoded body."""
        with self._open(url, "text/plain, */*") as resp:
            try:
                body = resp.read()
            except OSError as e:
                raise NetworkError(url, str(e)) from e
        return body.decode("utf-8", errors="replace")

    def get_json(self, url: str) -> Any:
        """GET ``url`` and parse the body as JSON."""
        with self._open(url, "application/vnd.github+json, application/json") as resp:
            try:
                body = resp.read()
            except OSError as e:
                raise NetworkError(url, str(e)) from e
        try:
            return json.loads(body)
        except ValueError as e:
            raise ParseError(f"Invalid JSON from {url}: {e}") from e

    def download(self, url: str, dest: Path) -> int:
        """Stream ``url`` into ``dest``.  Returns the number of bytes written.

        Raises:
            NetworkError: Request failed or the stream broke mid-way.
            FilesystemError: ``dest`` could not be written.
        """
        written = 0
        with self._open(url, "application/octet-stream, */*") as resp:
            try:
                f = open(dest, "wb")
            except OSError as e:
                raise FilesystemError(dest, f"Cannot create download file ({e.strerror or e})") from e
            with f:
                while True:
                    try:
                        chunk = resp.read(_CHUNK)
                    except OSError as e:
                        raise NetworkError(url, f"download interrupted: {e}") from e
                    if not chunk:
                        break
                    try:
                        f.write(chunk)
                    except OSError as e:
                        raise FilesystemError(dest, f"Cannot write download ({e.strerror or e})") from e
                    written += len(chunk)
        logger.debug("Downloaded %d bytes from %s", written, url)
        return written
