"""
L2 Resolver — installed and latest extension versions.

Two upstream shapes are supported:

- ``direct-endpoint``: a URL whose whole body is the latest version.
- ``release-api``: a GitHub-style release resource with ``tag_name``
  and an ``assets`` list.

Versions are opaque tags: "update available" means "not equal".
"""

from __future__ import annotations

import logging
import re
import subprocess
from collections.abc import Callable
from dataclasses import dataclass

from pact_extensions.core.errors import AssetNotFoundError, NetworkError, ParseError
from pact_extensions.core.models.extension import ExtensionDescriptor
from pact_extensions.core.models.platform import Platform
from pact_extensions.core.persistence.registry_file import Registry
from pact_extensions.core.services.extensions.domain.assets import (
    asset_name,
    download_url,
    latest_url,
    release_api_url,
)
from pact_extensions.core.services.extensions.execution.http import HttpClient

logger = logging.getLogger(__name__)

LATEST = "latest"

_VERSION_RE = re.compile(r"\bv?(\d+\.\d+(?:\.\d+)?(?:[-+][0-9A-Za-z.\-]+)?)")

VersionRunner = Callable[[list[str]], tuple[int, str]]


@dataclass
class ReleaseInfo:
    """A concrete version and where its platform asset lives."""

    version: str
    asset_name: str
    download_url: str


def run_version_command(cmd: list[str]) -> tuple[int, str]:
    """Run ``cmd`` and return ``(returncode, stdout)``."""
    r = subprocess.run(cmd, capture_output=True, text=True, timeout=15)
    return r.returncode, r.stdout or ""


def parse_version_output(output: str) -> str | None:
    """Pull a version token out of ``--version`` output.

    ``pactflow-ai 1.11.4`` → ``1.11.4``.  Falls back to the second
    whitespace-separated word when no dotted version is present.
    """
    match = _VERSION_RE.search(output)
    if match:
        return match.group(1)
    words = output.split()
    return words[1] if len(words) >= 2 else None


def is_update_available(installed: str | None, latest: str | None) -> bool:
    """Tag inequality; unknown on either side is never an update."""
    if not installed or not latest:
        return False
    return installed != latest


class VersionResolver:
    """Resolve installed and latest versions for extension descriptors."""

    def __init__(
        self,
        http: HttpClient,
        registry: Registry,
        runner: VersionRunner = run_version_command,
    ) -> None:
        self.http = http
        self.registry = registry
        self.runner = runner

    # ── Installed ───────────────────────────────────────────────

    def resolve_installed(self, descriptor: ExtensionDescriptor) -> str | None:
        """Version of the installed extension, or None when not installed.

        Single binaries are asked via their version flag; bundles (whose
        members have no common version flag) report the recorded version.
        """
        record = self.registry.get(descriptor.name)
        if record is None:
            return None

        if descriptor.kind == "bundle":
            return record.version

        binary = record.binary_paths.get(descriptor.aliases[0])
        if not binary:
            return record.version

        try:
            code, stdout = self.runner([binary, descriptor.version_flag])
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug("Cannot run %s %s: %s", binary, descriptor.version_flag, e)
            return record.version

        reported = parse_version_output(stdout) if code == 0 else None
        if reported is None:
            logger.debug(
                "%s gave no version (exit %d) — using recorded %s",
                descriptor.name, code, record.version,
            )
            return record.version
        return reported

    # ── Latest / pinned ─────────────────────────────────────────

    def resolve_latest(self, descriptor: ExtensionDescriptor, platform: Platform) -> str:
        """Latest upstream version for ``platform``.

        Raises:
            NetworkError: The version source could not be reached.
            ParseError: The response had no usable version.
            AssetNotFoundError: (release-api) no asset for this platform.
        """
        return self.resolve_release(descriptor, platform, LATEST).version

    def resolve_release(
        self,
        descriptor: ExtensionDescriptor,
        platform: Platform,
        version: str = LATEST,
    ) -> ReleaseInfo:
        """Resolve ``version`` (or latest) to a downloadable asset."""
        if descriptor.version_source == "direct-endpoint":
            return self._resolve_direct(descriptor, platform, version)
        return self._resolve_release_api(descriptor, platform, version)

    def _resolve_direct(
        self, descriptor: ExtensionDescriptor, platform: Platform, version: str
    ) -> ReleaseInfo:
        if version == LATEST:
            url = latest_url(descriptor, platform)
            token = self.http.get_text(url).strip()
            if not token or len(token.split()) != 1:
                raise ParseError(f"Unexpected version response from {url}: {token[:80]!r}")
            version = token
            logger.info("Latest %s for %s is %s", descriptor.name, platform, version)

        return ReleaseInfo(
            version=version,
            asset_name=asset_name(descriptor, platform, version),
            download_url=download_url(descriptor, platform, version),
        )

    def _resolve_release_api(
        self, descriptor: ExtensionDescriptor, platform: Platform, version: str
    ) -> ReleaseInfo:
        url = release_api_url(descriptor, version)
        try:
            data = self.http.get_json(url)
        except NetworkError as e:
            if e.status == 404 and version != LATEST:
                raise AssetNotFoundError(descriptor.name, version, str(platform)) from e
            raise

        if not isinstance(data, dict):
            raise ParseError(f"Expected a release object from {url}")

        tag = data.get("tag_name")
        if not isinstance(tag, str) or not tag.strip():
            raise ParseError(f"No tag_name found in release from {url}")
        tag = tag.strip()

        expected = asset_name(descriptor, platform, tag)
        assets = data.get("assets") or []
        if not isinstance(assets, list):
            raise ParseError(f"Expected an assets list in release from {url}")
        matched = next(
            (a for a in assets if isinstance(a, dict) and a.get("name") == expected),
            None,
        )
        if matched is None:
            available = [a.get("name") for a in assets[:10] if isinstance(a, dict)]
            logger.debug("Assets in %s %s: %s", descriptor.release_repo, tag, available)
            raise AssetNotFoundError(descriptor.name, tag, str(platform), expected)

        logger.info("Resolved %s %s asset %s", descriptor.name, tag, expected)
        return ReleaseInfo(
            version=tag,
            asset_name=expected,
            download_url=matched.get("browser_download_url")
            or download_url(descriptor, platform, tag, expected),
        )
