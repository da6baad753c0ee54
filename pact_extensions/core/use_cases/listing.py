"""
Listing use case — the rows behind ``pact extension list``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from pact_extensions.core.errors import ExtensionError
from pact_extensions.core.models.platform import Platform
from pact_extensions.core.services.extensions.data.catalog import KIND_LABELS
from pact_extensions.core.services.extensions.resolver.versions import is_update_available
from pact_extensions.core.services.extensions.session import ExtensionSession

logger = logging.getLogger(__name__)

STATUS_INSTALLED = "installed"
STATUS_UPDATE = "update available"
STATUS_MISSING = "not installed"


@dataclass
class ExtensionRow:
    """One line of the extension table."""

    name: str
    kind: str
    description: str = ""
    installed_version: str | None = None
    latest_version: str | None = None
    status: str = STATUS_MISSING
    aliases: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "type": self.kind,
            "description": self.description,
            "installed": self.installed_version,
            "latest": self.latest_version,
            "status": self.status,
            "aliases": self.aliases,
        }


@dataclass
class ListResult:
    """Everything ``extension list`` shows."""

    platform: Platform
    rows: list[ExtensionRow] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "platform": str(self.platform),
            "extensions": [row.to_dict() for row in self.rows],
        }


def list_extensions(session: ExtensionSession, installed_only: bool = False) -> ListResult:
    """Build the extension table.

    Latest versions are looked up for every entry; an entry whose
    version source cannot be reached shows no latest version instead
    of failing the whole listing.
    """
    platform = session.manager.platform
    result = ListResult(platform=platform)
    records = session.registry.records

    names = list(session.catalog)
    names += [name for name in records if name not in session.catalog]

    for name in names:
        record = records.get(name)
        if installed_only and record is None:
            continue

        descriptor = session.catalog.get(name)
        if descriptor is None:
            # Installed from a catalog entry that has since been removed
            result.rows.append(ExtensionRow(
                name=name,
                kind=KIND_LABELS.get(record.kind, record.kind),
                installed_version=record.version,
                status=STATUS_INSTALLED,
                aliases=sorted(record.binary_paths),
            ))
            continue

        installed = session.resolver.resolve_installed(descriptor) if record else None
        try:
            latest = session.resolver.resolve_latest(descriptor, platform)
        except ExtensionError as e:
            logger.warning("Cannot resolve latest %s: %s", name, e)
            latest = None

        if record is None:
            status = STATUS_MISSING
        elif is_update_available(installed, latest):
            status = STATUS_UPDATE
        else:
            status = STATUS_INSTALLED

        result.rows.append(ExtensionRow(
            name=name,
            kind=KIND_LABELS.get(descriptor.kind, descriptor.kind),
            description=descriptor.description,
            installed_version=installed,
            latest_version=latest,
            status=status,
            aliases=list(descriptor.aliases),
        ))

    return result
