"""
Environment use case — what ``pact extension env`` reports.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from pact_extensions.core.config.loader import ENV_STORAGE_ROOT
from pact_extensions.core.models.platform import Platform
from pact_extensions.core.services.extensions.session import ExtensionSession


@dataclass
class EnvironmentInfo:
    """Storage layout and platform for the current invocation."""

    storage_root: Path
    manifest_path: Path
    bin_dir: Path
    platform: Platform
    root_overridden: bool
    bin_on_path: bool
    installed: int

    def to_dict(self) -> dict:
        return {
            "storage_root": str(self.storage_root),
            "manifest": str(self.manifest_path),
            "bin_dir": str(self.bin_dir),
            "platform": {
                "os": self.platform.os,
                "arch": self.platform.arch,
                "libc": self.platform.libc,
            },
            "env_var": ENV_STORAGE_ROOT,
            "root_overridden": self.root_overridden,
            "bin_on_path": self.bin_on_path,
            "installed": self.installed,
        }


def describe_environment(session: ExtensionSession) -> EnvironmentInfo:
    settings = session.settings
    path_entries = [Path(p) for p in os.environ.get("PATH", "").split(os.pathsep) if p]
    return EnvironmentInfo(
        storage_root=settings.storage_root,
        manifest_path=settings.manifest_path,
        bin_dir=settings.bin_dir,
        platform=session.manager.platform,
        root_overridden=bool(os.environ.get(ENV_STORAGE_ROOT, "").strip()),
        bin_on_path=settings.bin_dir in path_entries,
        installed=len(session.registry.records),
    )
