"""
Domain models — Pydantic types for the extension manager.

    from pact_extensions.core.models import Platform, ExtensionDescriptor, InstalledExtensionRecord
"""

from pact_extensions.core.models.extension import (
    ExtensionDescriptor,
    ExtensionKind,
    InstalledExtensionRecord,
    VersionSource,
)
from pact_extensions.core.models.platform import Platform
from pact_extensions.core.models.registry import RegistryManifest

__all__ = [
    # extension.py
    "ExtensionDescriptor",
    "ExtensionKind",
    "InstalledExtensionRecord",
    # platform.py
    "Platform",
    # registry.py
    "RegistryManifest",
    "VersionSource",
]
