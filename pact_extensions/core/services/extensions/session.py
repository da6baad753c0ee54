"""
Extension session — the services one command invocation works with.

Built fresh per invocation from settings: the registry is loaded from
disk here and nowhere else, and the session is dropped when the
command returns.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from pact_extensions.core.config.loader import Settings, load_catalog, load_settings
from pact_extensions.core.models.extension import ExtensionDescriptor
from pact_extensions.core.models.platform import Platform
from pact_extensions.core.persistence.registry_file import Registry
from pact_extensions.core.services.extensions.execution.http import HttpClient
from pact_extensions.core.services.extensions.execution.install import InstallManager
from pact_extensions.core.services.extensions.resolver.versions import (
    VersionResolver,
    VersionRunner,
    run_version_command,
)


@dataclass
class ExtensionSession:
    """Registry, catalog, resolver and installer for one invocation."""

    settings: Settings
    registry: Registry
    catalog: dict[str, ExtensionDescriptor]
    http: HttpClient
    resolver: VersionResolver
    manager: InstallManager

    @classmethod
    def open(
        cls,
        settings: Settings | None = None,
        *,
        registry: Registry | None = None,
        http: HttpClient | None = None,
        runner: VersionRunner = run_version_command,
        platform: Platform | None = None,
        reserved_names: Iterable[str] = (),
    ) -> ExtensionSession:
        settings = settings or load_settings()
        registry = registry or Registry.open(settings.manifest_path)
        catalog = load_catalog(settings)
        http = http or HttpClient(timeout=settings.http_timeout, github_token=settings.github_token)
        resolver = VersionResolver(http, registry, runner=runner)
        manager = InstallManager(
            settings,
            registry,
            catalog,
            resolver,
            http,
            platform=platform,
            reserved_names=reserved_names,
        )
        return cls(
            settings=settings,
            registry=registry,
            catalog=catalog,
            http=http,
            resolver=resolver,
            manager=manager,
        )
