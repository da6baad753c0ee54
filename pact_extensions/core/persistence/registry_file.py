"""
Registry persistence — atomic read/write of installed extension records.

The registry is stored as JSON in ``<storage-root>/config.json``.
Writes are atomic (write to temp file, then replace) so a crash
mid-write never leaves a half-written manifest behind.

The registry is loaded fresh by every command; nothing is cached
across invocations.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pact_extensions.core.errors import FilesystemError
from pact_extensions.core.models.extension import InstalledExtensionRecord
from pact_extensions.core.models.registry import RegistryManifest

logger = logging.getLogger(__name__)

MANIFEST_FILE = "config.json"


def default_manifest_path(storage_root: Path) -> Path:
    """Get the manifest path for a storage root."""
    return storage_root / MANIFEST_FILE


class Registry:
    """Installed extensions keyed by name, backed by the manifest file.

    ``put`` and ``remove`` persist immediately.  The in-memory copy only
    lives as long as the command that loaded it.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._records: dict[str, InstalledExtensionRecord] = {}

    @classmethod
    def open(cls, path: Path) -> Registry:
        """Create a registry and load it from disk."""
        registry = cls(path)
        registry.load()
        return registry

    @property
    def records(self) -> dict[str, InstalledExtensionRecord]:
        return dict(self._records)

    def load(self) -> dict[str, InstalledExtensionRecord]:
        """Load records from the manifest.

        Returns:
            Records keyed by extension name. A missing manifest is an
            empty registry, not an error.
        """
        if not self.path.is_file():
            logger.debug("No manifest at %s — empty registry", self.path)
            self._records = {}
            return self.records

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            manifest = RegistryManifest.model_validate(data)
        except json.JSONDecodeError as e:
            logger.warning("Corrupt manifest %s: %s — treating as empty", self.path, e)
            manifest = RegistryManifest()
        except Exception as e:
            logger.warning("Cannot load manifest %s: %s — treating as empty", self.path, e)
            manifest = RegistryManifest()

        self._records = dict(manifest.extensions)
        logger.debug("Loaded %d extension record(s) from %s", len(self._records), self.path)
        return self.records

    def save(self, records: dict[str, InstalledExtensionRecord] | None = None) -> None:
        """Write the manifest atomically.

        Args:
            records: Replacement record set. Defaults to the in-memory copy.
                The in-memory copy only changes once the write succeeded.
        """
        pending = dict(self._records if records is None else records)

        manifest = RegistryManifest(extensions=dict(sorted(pending.items())))
        content = json.dumps(manifest.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n"

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent,
                prefix=".config_",
                suffix=".tmp",
            )
            os.close(fd)
            tmp = Path(tmp_path)
            try:
                tmp.write_text(content, encoding="utf-8")
                os.replace(tmp, self.path)
                logger.debug("Manifest saved to %s", self.path)
            except Exception:
                tmp.unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.error("Failed to save manifest to %s: %s", self.path, e)
            raise FilesystemError(self.path, f"Cannot write registry manifest ({e.strerror or e})") from e

        self._records = pending

    def get(self, name: str) -> InstalledExtensionRecord | None:
        return self._records.get(name)

    def put(self, record: InstalledExtensionRecord) -> None:
        """Insert or replace a record and persist."""
        self.save({**self._records, record.name: record})

    def remove(self, name: str) -> InstalledExtensionRecord | None:
        """Drop a record and persist. Returns the removed record, if any."""
        record = self._records.get(name)
        if record is not None:
            self.save({k: v for k, v in self._records.items() if k != name})
        return record

    def find_alias(self, alias: str) -> tuple[InstalledExtensionRecord, Path] | None:
        """Find the installed record providing ``alias`` and its binary path."""
        for record in self._records.values():
            target = record.binary_paths.get(alias)
            if target:
                return record, Path(target)
        return None

    def aliases(self) -> dict[str, str]:
        """Map every installed alias to the extension that owns it."""
        return {
            alias: record.name
            for record in self._records.values()
            for alias in record.binary_paths
        }
