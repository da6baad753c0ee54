"""
L4 Execution — install, update and uninstall extensions.

Ordering is what keeps the storage root consistent:

    install:    resolve → download to staging → extract/verify
                → move into place → aliases → registry record
    uninstall:  aliases → binaries → registry record

A crash mid-install leaves either no record (retry) or a complete
installation with its record.  The previous installation is only
moved aside once the new payload is fully staged, and is restored
if anything between the swap and the registry write fails.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Iterable
from pathlib import Path

from pact_extensions.core.config.loader import Settings
from pact_extensions.core.errors import (
    AlreadyInstalledError,
    AliasConflictError,
    AssetNotFoundError,
    FilesystemError,
    NetworkError,
    NotInstalledError,
    UnknownExtensionError,
)
from pact_extensions.core.models.extension import ExtensionDescriptor, InstalledExtensionRecord
from pact_extensions.core.models.platform import Platform
from pact_extensions.core.persistence.registry_file import Registry
from pact_extensions.core.services.extensions.detection.platform import detect
from pact_extensions.core.services.extensions.domain.assets import fmt_size
from pact_extensions.core.services.extensions.execution.aliases import link_alias, unlink_alias
from pact_extensions.core.services.extensions.execution.archive import extract_bundle, verify_members
from pact_extensions.core.services.extensions.execution.http import HttpClient
from pact_extensions.core.services.extensions.resolver.versions import (
    LATEST,
    VersionResolver,
    is_update_available,
)

logger = logging.getLogger(__name__)


def _make_executable(path: Path) -> None:
    try:
        path.chmod(path.stat().st_mode | 0o755)
    except OSError as e:
        raise FilesystemError(path, f"Cannot set executable permission ({e.strerror or e})") from e


def _rmtree(path: Path) -> None:
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        raise FilesystemError(path, f"Cannot remove directory ({e.strerror or e})") from e


class InstallManager:
    """Orchestrates the extension lifecycle against one storage root."""

    def __init__(
        self,
        settings: Settings,
        registry: Registry,
        catalog: dict[str, ExtensionDescriptor],
        resolver: VersionResolver,
        http: HttpClient,
        platform: Platform | None = None,
        reserved_names: Iterable[str] = (),
    ) -> None:
        self.settings = settings
        self.registry = registry
        self.catalog = catalog
        self.resolver = resolver
        self.http = http
        self._platform = platform
        self.reserved_names = frozenset(reserved_names)

    @property
    def platform(self) -> Platform:
        if self._platform is None:
            self._platform = detect()
        return self._platform

    # ── Lookup ──────────────────────────────────────────────────

    def descriptor(self, name: str) -> ExtensionDescriptor:
        """Catalog entry for ``name``.

        Raises:
            UnknownExtensionError: ``name`` is not in the catalog.
        """
        descriptor = self.catalog.get(name)
        if descriptor is None:
            raise UnknownExtensionError(name, sorted(self.catalog))
        return descriptor

    def owner_of(self, name: str) -> str:
        """Resolve an alias to the extension that provides it."""
        if self.registry.get(name) is not None:
            return name
        owner = self.registry.aliases().get(name)
        if owner and owner != name:
            logger.info("'%s' is provided by extension '%s'", name, owner)
            return owner
        return name

    def _check_aliases(self, descriptor: ExtensionDescriptor) -> None:
        claimed = self.registry.aliases()
        for alias in descriptor.aliases:
            if alias in self.reserved_names:
                raise AliasConflictError(
                    f"Extension '{descriptor.name}' alias '{alias}' clashes with a built-in command"
                )
            owner = claimed.get(alias)
            if owner and owner != descriptor.name:
                raise AliasConflictError(
                    f"Alias '{alias}' of '{descriptor.name}' is already provided by "
                    f"installed extension '{owner}'"
                )

    # ── Install ─────────────────────────────────────────────────

    def install(
        self,
        descriptor: ExtensionDescriptor,
        requested_version: str = LATEST,
        force: bool = False,
    ) -> InstalledExtensionRecord:
        """Install ``descriptor`` at ``requested_version`` (or latest).

        Raises:
            AlreadyInstalledError: Installed already and ``force`` not set.
            AliasConflictError: An alias is taken by something else.
            NetworkError, ParseError, AssetNotFoundError: Resolution/download.
            CorruptArchiveError: Bundle unreadable or incomplete.
            FilesystemError: Staging or placement failed.
        """
        name = descriptor.name
        existing = self.registry.get(name)
        if existing is not None and not force:
            raise AlreadyInstalledError(name, existing.version)
        self._check_aliases(descriptor)

        platform = self.platform
        release = self.resolver.resolve_release(descriptor, platform, requested_version)
        logger.info("Installing %s %s for %s", name, release.version, platform)

        staging = self.settings.staging_dir / name
        _rmtree(staging)
        try:
            staging.mkdir(parents=True)
        except OSError as e:
            raise FilesystemError(staging, f"Cannot create staging directory ({e.strerror or e})") from e

        downloaded = staging / release.asset_name
        try:
            size = self.http.download(release.download_url, downloaded)
        except NetworkError as e:
            if e.status == 404:
                raise AssetNotFoundError(name, release.version, str(platform), release.asset_name) from e
            raise
        logger.info("Downloaded %s (%s)", release.asset_name, fmt_size(size))

        payload = staging / "payload"
        if descriptor.kind == "bundle":
            extract_bundle(downloaded, payload)
            relative = {
                alias: f"{descriptor.member_dir}/{descriptor.member_name(alias, platform)}"
                for alias in descriptor.aliases
            }
            verify_members(payload, relative)
        else:
            alias = descriptor.aliases[0]
            binary_name = descriptor.member_name(alias, platform)
            relative = {alias: binary_name}
            try:
                payload.mkdir()
                os.replace(downloaded, payload / binary_name)
            except OSError as e:
                raise FilesystemError(payload, f"Cannot stage binary ({e.strerror or e})") from e

        final = self.settings.install_dir(descriptor.kind, name)
        previous = staging / "previous"
        moved_aside = self._swap_into_place(payload, final, previous)

        try:
            binary_paths: dict[str, str] = {}
            for alias, rel in relative.items():
                target = (final / rel).absolute()
                _make_executable(target)
                binary_paths[alias] = str(target)

            for alias, target in binary_paths.items():
                link_alias(self.settings.bin_dir, alias, Path(target), platform.os)

            record = InstalledExtensionRecord(
                name=name,
                kind=descriptor.kind,
                version=release.version,
                binary_paths=binary_paths,
                platform=platform,
            )
            self.registry.put(record)
        except Exception:
            self._roll_back(final, previous if moved_aside else None, existing, list(relative), platform)
            raise

        _rmtree(staging)
        logger.info("Installed %s %s", name, release.version)
        return record

    def _swap_into_place(self, payload: Path, final: Path, previous: Path) -> bool:
        """Replace ``final`` with ``payload``, restoring the old tree on failure.

        Returns:
            True when an earlier installation was moved to ``previous``.
        """
        _rmtree(previous)
        moved_aside = False
        try:
            final.parent.mkdir(parents=True, exist_ok=True)
            if final.exists():
                os.replace(final, previous)
                moved_aside = True
            os.replace(payload, final)
        except OSError as e:
            if moved_aside and not final.exists():
                os.replace(previous, final)
                logger.warning("Restored previous installation at %s", final)
            raise FilesystemError(final, f"Cannot place extension ({e.strerror or e})") from e
        return moved_aside

    def _roll_back(
        self,
        final: Path,
        previous: Path | None,
        existing: InstalledExtensionRecord | None,
        new_aliases: list[str],
        platform: Platform,
    ) -> None:
        """Undo a placement whose aliases or record could not be written.

        The new tree gives way to the moved-aside one, if any, and the old
        record's aliases are re-linked.  Failures here are logged; the
        caller re-raises the original error.
        """
        bin_dir = self.settings.bin_dir
        try:
            _rmtree(final)
            if previous is not None:
                os.replace(previous, final)
                logger.warning("Restored previous installation at %s", final)
        except (OSError, FilesystemError) as e:
            logger.error("Cannot restore previous installation at %s: %s", final, e)

        old_aliases = existing.binary_paths if existing is not None and previous is not None else {}
        for alias in new_aliases:
            if alias in old_aliases:
                continue
            try:
                unlink_alias(bin_dir, alias, platform.os)
            except FilesystemError as e:
                logger.error("Cannot remove alias %s: %s", alias, e)
        for alias, target in old_aliases.items():
            try:
                link_alias(bin_dir, alias, Path(target), existing.platform.os)
            except FilesystemError as e:
                logger.error("Cannot re-link alias %s: %s", alias, e)

    def install_all(self, requested_version: str = LATEST, force: bool = False) -> list[InstalledExtensionRecord]:
        """Install every catalog extension that is not installed yet."""
        records = []
        for name, descriptor in self.catalog.items():
            if self.registry.get(name) is not None and not force:
                logger.info("%s already installed — skipping", name)
                continue
            records.append(self.install(descriptor, requested_version, force=force))
        return records

    # ── Update ──────────────────────────────────────────────────

    def update(self, name: str) -> InstalledExtensionRecord:
        """Bring an installed extension to the latest version.

        No download happens when installed already equals latest; the
        existing record is returned unchanged.

        Raises:
            NotInstalledError: ``name`` is not installed.
        """
        name = self.owner_of(name)
        record = self.registry.get(name)
        if record is None:
            raise NotInstalledError(name)
        descriptor = self.descriptor(name)

        installed = self.resolver.resolve_installed(descriptor)
        latest = self.resolver.resolve_latest(descriptor, self.platform)
        if installed is not None and not is_update_available(installed, latest):
            logger.info("%s is up to date (%s)", name, installed)
            return record

        logger.info("Updating %s %s → %s", name, installed or "?", latest)
        return self.install(descriptor, latest, force=True)

    def update_all(self) -> list[tuple[InstalledExtensionRecord, InstalledExtensionRecord]]:
        """Update every installed extension.

        Returns:
            ``(before, after)`` record pairs; identical objects mean no change.
        """
        results = []
        for name, before in self.registry.records.items():
            results.append((before, self.update(name)))
        return results

    # ── Uninstall ───────────────────────────────────────────────

    def uninstall(self, name: str) -> InstalledExtensionRecord:
        """Remove aliases, then binaries, then the registry record.

        Raises:
            NotInstalledError: ``name`` is not installed.
        """
        name = self.owner_of(name)
        record = self.registry.get(name)
        if record is None:
            raise NotInstalledError(name)

        for alias in record.binary_paths:
            unlink_alias(self.settings.bin_dir, alias, record.platform.os)

        _rmtree(self.settings.install_dir(record.kind, name))
        self.registry.remove(name)

        logger.info("Uninstalled %s", name)
        return record

    def uninstall_all(self) -> list[InstalledExtensionRecord]:
        return [self.uninstall(name) for name in list(self.registry.records)]
