"""
Registry manifest — the document serialized to ``<root>/config.json``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from pact_extensions.core.models.extension import InstalledExtensionRecord


class RegistryManifest(BaseModel):
    """Root of the persisted registry."""

    schema_version: int = 1
    extensions: dict[str, InstalledExtensionRecord] = Field(default_factory=dict)
