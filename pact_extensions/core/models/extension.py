"""
Extension models — static descriptors and installed records.

``ExtensionDescriptor`` says what an extension is and where it comes
from.  ``InstalledExtensionRecord`` is what the registry remembers
after a successful install.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from pact_extensions.core.models.platform import Platform

ExtensionKind = Literal["single-binary", "bundle"]
VersionSource = Literal["direct-endpoint", "release-api"]

DEFAULT_ASSET_PATTERN = "{tool}-{arch}-{os}{libc}{exe}"
GITHUB_DOWNLOAD_URL = "https://github.com/{repo}/releases/download/{version}/{asset}"


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class ExtensionDescriptor(BaseModel):
    """Static description of an installable extension.

    URL and asset templates accept these placeholders:

        {tool}     extension name
        {version}  version / tag as resolved
        {bare}     version without a leading ``v``
        {arch}     x86_64 | aarch64
        {os}       macos | linux | windows
        {libc}     ``-gnu`` / ``-musl`` on linux, empty elsewhere
        {exe}      ``.exe`` on windows, empty elsewhere
        {archive}  ``zip`` on windows, ``tar.gz`` elsewhere
        {target}   vendor target token from ``targets`` (falls back to ``{arch}-{os}``)
        {repo}     ``release_repo``
        {asset}    resolved asset name (download_url only)
    """

    name: str
    kind: ExtensionKind
    version_source: VersionSource
    description: str = ""

    # Version source: direct-endpoint
    latest_url: str = ""
    # Version source: release-api
    release_repo: str = ""
    api_base: str = "https://api.github.com"

    download_url: str = ""
    asset_pattern: str = DEFAULT_ASSET_PATTERN
    targets: dict[str, str] = Field(default_factory=dict)

    # single-binary: the one alias; bundle: alias -> member binary name
    aliases: list[str] = Field(default_factory=list)
    members: dict[str, str] = Field(default_factory=dict)
    member_dir: str = "bin"
    windows_suffix: str = ".exe"

    version_flag: str = "--version"

    @model_validator(mode="after")
    def _check_shape(self) -> ExtensionDescriptor:
        if not self.aliases:
            if self.kind == "bundle":
                self.aliases = list(self.members)
            else:
                self.aliases = [self.name]
        if self.kind == "bundle":
            missing = [a for a in self.aliases if a not in self.members]
            if missing:
                raise ValueError(f"bundle {self.name}: aliases without a member binary: {missing}")
        elif len(self.aliases) != 1:
            raise ValueError(f"single-binary {self.name} must provide exactly one alias")
        if self.version_source == "direct-endpoint":
            if not self.latest_url or not self.download_url:
                raise ValueError(f"{self.name}: direct-endpoint source needs latest_url and download_url")
        elif not self.release_repo:
            raise ValueError(f"{self.name}: release-api source needs release_repo")
        elif not self.download_url:
            self.download_url = GITHUB_DOWNLOAD_URL
        return self

    def member_name(self, alias: str, platform: Platform) -> str:
        """File name of the binary backing ``alias`` on ``platform``."""
        base = self.members.get(alias, self.name) if self.kind == "bundle" else self.name
        suffix = self.windows_suffix if platform.os == "windows" else ""
        return f"{base}{suffix}"


class InstalledExtensionRecord(BaseModel):
    """Registry entry for one installed extension."""

    name: str
    kind: ExtensionKind
    version: str
    installed_at: str = Field(default_factory=_now_iso)
    binary_paths: dict[str, str] = Field(default_factory=dict)  # alias -> absolute path
    platform: Platform
