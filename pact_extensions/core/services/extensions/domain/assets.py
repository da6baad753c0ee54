"""
L1 Domain — asset naming and URL templates (pure).

No I/O, no network.  Turns a descriptor + platform + version into
the concrete names and URLs the resolver and installer need.
"""

from __future__ import annotations

from pact_extensions.core.models.extension import ExtensionDescriptor
from pact_extensions.core.models.platform import Platform


def bare_version(version: str) -> str:
    """Strip a leading ``v`` from a tag (``v2.4.1`` → ``2.4.1``)."""
    return version[1:] if version[:1] in ("v", "V") else version


def target_for(descriptor: ExtensionDescriptor, platform: Platform) -> str:
    """Vendor target token for ``platform``.

    Looks up ``os-arch-libc`` first, then ``os-arch``, and falls back to
    ``arch-os`` when the descriptor has no table entry.
    """
    if platform.libc:
        specific = descriptor.targets.get(f"{platform.key}-{platform.libc}")
        if specific:
            return specific
    return descriptor.targets.get(platform.key, f"{platform.arch}-{platform.os}")


def template_values(
    descriptor: ExtensionDescriptor,
    platform: Platform,
    version: str = "",
) -> dict[str, str]:
    """Placeholder values shared by every URL and asset template."""
    return {
        "tool": descriptor.name,
        "version": version,
        "bare": bare_version(version),
        "arch": platform.arch,
        "os": platform.os,
        "libc": f"-{platform.libc}" if platform.libc else "",
        "exe": platform.exe_suffix,
        "archive": platform.archive_ext,
        "target": target_for(descriptor, platform),
        "repo": descriptor.release_repo,
    }


def asset_name(descriptor: ExtensionDescriptor, platform: Platform, version: str = "") -> str:
    """Expected release asset name, e.g. ``tool-x86_64-linux-musl``."""
    return descriptor.asset_pattern.format(**template_values(descriptor, platform, version))


def latest_url(descriptor: ExtensionDescriptor, platform: Platform) -> str:
    """URL of the bare latest-version endpoint (direct-endpoint sources)."""
    return descriptor.latest_url.format(**template_values(descriptor, platform))


def release_api_url(descriptor: ExtensionDescriptor, version: str = "latest") -> str:
    """GitHub-style release resource: latest, or a specific tag."""
    base = f"{descriptor.api_base.rstrip('/')}/repos/{descriptor.release_repo}/releases"
    if version == "latest":
        return f"{base}/latest"
    return f"{base}/tags/{version}"


def download_url(
    descriptor: ExtensionDescriptor,
    platform: Platform,
    version: str,
    asset: str = "",
) -> str:
    """Download URL for a pinned version's platform asset."""
    values = template_values(descriptor, platform, version)
    values["asset"] = asset or asset_name(descriptor, platform, version)
    return descriptor.download_url.format(**values)


def fmt_size(n: int | float) -> str:
    """Format byte count to human-readable string."""
    for unit in ("B", "KB", "MB", "GB"):
        if n < 1024:
            return f"{n:.1f} {unit}"
        n /= 1024
    return f"{n:.1f} TB"
