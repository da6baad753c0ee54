"""
L4 Execution — bundle archive extraction.

Bundles ship as ``.tar.gz`` (macOS/Linux) or ``.zip`` (Windows) with a
single top-level directory.  That directory is stripped on
extraction, like ``tar --strip-components=1``.
"""

from __future__ import annotations

import gzip
import logging
import os
import shutil
import tarfile
import zipfile
import zlib
from pathlib import Path, PurePosixPath

from pact_extensions.core.errors import CorruptArchiveError, FilesystemError

logger = logging.getLogger(__name__)


def _strip_first(name: str) -> PurePosixPath | None:
    """Drop the leading path component; None for the root entry itself.

    Raises:
        CorruptArchiveError: Member escapes the extraction directory.
    """
    parts = PurePosixPath(name.replace("\\", "/")).parts
    if parts and parts[0] == "/":
        raise CorruptArchiveError(f"Archive member has an absolute path: {name}")
    if ".." in parts:
        raise CorruptArchiveError(f"Archive member escapes extraction dir: {name}")
    if len(parts) <= 1:
        return None
    return PurePosixPath(*parts[1:])


def _extract_tar(archive: Path, dest: Path) -> int:
    count = 0
    with tarfile.open(archive, "r:*") as tar:
        for member in tar:
            rel = _strip_first(member.name)
            if rel is None:
                continue
            target = dest / rel
            if member.isdir():
                target.mkdir(parents=True, exist_ok=True)
                continue
            if member.issym():
                resolved = os.path.normpath(target.parent / member.linkname)
                if os.path.isabs(member.linkname) or not resolved.startswith(str(dest) + os.sep):
                    raise CorruptArchiveError(f"Archive link escapes extraction dir: {member.name}")
                target.parent.mkdir(parents=True, exist_ok=True)
                target.unlink(missing_ok=True)
                target.symlink_to(member.linkname)
                count += 1
                continue
            if member.islnk():
                linked = _strip_first(member.linkname)
                if linked is None:
                    raise CorruptArchiveError(f"Bad hard link in archive: {member.name}")
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(dest / linked, target)
                count += 1
                continue
            if not member.isfile():
                continue
            src = tar.extractfile(member)
            if src is None:
                raise CorruptArchiveError(f"Unreadable archive member: {member.name}")
            target.parent.mkdir(parents=True, exist_ok=True)
            with src, open(target, "wb") as out:
                shutil.copyfileobj(src, out)
            target.chmod(member.mode & 0o777 or 0o644)
            count += 1
    return count


def _extract_zip(archive: Path, dest: Path) -> int:
    count = 0
    with zipfile.ZipFile(archive) as zf:
        for info in zf.infolist():
            rel = _strip_first(info.filename)
            if rel is None:
                continue
            target = dest / rel
            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            with zf.open(info) as src, open(target, "wb") as out:
                shutil.copyfileobj(src, out)
            mode = (info.external_attr >> 16) & 0o777
            if mode:
                target.chmod(mode)
            count += 1
    return count


def extract_bundle(archive: Path, dest: Path) -> int:
    """Extract ``archive`` into ``dest`` (top-level dir stripped).

    Returns:
        Number of files written.

    Raises:
        CorruptArchiveError: Unreadable archive or unsafe member paths.
        FilesystemError: Extraction could not write to ``dest``.
    """
    if dest.exists():
        shutil.rmtree(dest)
    dest.mkdir(parents=True)

    name = archive.name.lower()
    try:
        if name.endswith(".zip"):
            count = _extract_zip(archive, dest)
        else:
            count = _extract_tar(archive, dest)
    except (tarfile.TarError, zipfile.BadZipFile, gzip.BadGzipFile, zlib.error, EOFError) as e:
        raise CorruptArchiveError(f"Cannot read archive {archive.name}: {e}") from e
    except OSError as e:
        raise FilesystemError(dest, f"Cannot extract {archive.name} ({e.strerror or e})") from e

    logger.info("Extracted %d file(s) from %s", count, archive.name)
    return count


def verify_members(root: Path, members: dict[str, str]) -> dict[str, Path]:
    """Check that every expected member binary exists under ``root``.

    Args:
        root: Extracted bundle directory.
        members: alias → path of the member relative to ``root``.

    Returns:
        alias → absolute path.

    Raises:
        CorruptArchiveError: A member is missing or not a regular file.
    """
    found: dict[str, Path] = {}
    missing: list[str] = []
    for alias, rel in members.items():
        path = root / rel
        if path.is_file():
            found[alias] = path
        else:
            missing.append(rel)
    if missing:
        raise CorruptArchiveError(f"Bundle is missing expected member(s): {', '.join(missing)}")
    return found
