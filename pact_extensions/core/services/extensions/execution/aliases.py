"""
L4 Execution — alias entries under ``<storage-root>/bin``.

POSIX: one symlink per alias, swapped in atomically.
Windows: one ``<alias>.cmd`` shim per alias (symlinks need privileges).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pact_extensions.core.errors import FilesystemError

logger = logging.getLogger(__name__)


def alias_entry(bin_dir: Path, alias: str, os_name: str) -> Path:
    """Path of the alias entry for ``alias``."""
    return bin_dir / (f"{alias}.cmd" if os_name == "windows" else alias)


def link_alias(bin_dir: Path, alias: str, target: Path, os_name: str) -> Path:
    """Create or replace the alias entry pointing at ``target``."""
    entry = alias_entry(bin_dir, alias, os_name)
    try:
        bin_dir.mkdir(parents=True, exist_ok=True)
        if os_name == "windows":
            entry.write_text(f'@echo off\r\n"{target}" %*\r\n', encoding="utf-8")
        else:
            tmp = bin_dir / f".{alias}.tmp"
            tmp.unlink(missing_ok=True)
            tmp.symlink_to(target)
            os.replace(tmp, entry)
    except OSError as e:
        raise FilesystemError(entry, f"Cannot create alias ({e.strerror or e})") from e
    logger.debug("Alias %s -> %s", entry, target)
    return entry


def unlink_alias(bin_dir: Path, alias: str, os_name: str) -> bool:
    """Remove an alias entry. Returns True if something was removed."""
    entry = alias_entry(bin_dir, alias, os_name)
    if not os.path.lexists(entry):
        return False
    try:
        entry.unlink()
    except OSError as e:
        raise FilesystemError(entry, f"Cannot remove alias ({e.strerror or e})") from e
    logger.debug("Removed alias %s", entry)
    return True


def alias_is_live(bin_dir: Path, alias: str, target: Path, os_name: str) -> bool:
    """True when the alias entry exists and its target binary is present."""
    entry = alias_entry(bin_dir, alias, os_name)
    return os.path.lexists(entry) and target.is_file()
