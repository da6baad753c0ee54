"""
Top-level dispatch for the ``pact`` command.

Each invocation is resolved once into a route:

    BuiltinRoute      → click (host commands, help, version)
    ManagementRoute   → click ``extension`` group
    AliasRoute        → exec an installed extension binary, or a
                        ``pact-<name>`` executable for ``extension <name>``
    UnknownRoute      → UnknownCommandError

The registry is loaded fresh here and handed to whatever runs next.
This is also the one place domain errors are turned into a message
and an exit code.
"""

from __future__ import annotations

import functools
import logging
import shutil
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import click

from pact_extensions.core.config.loader import ENV_STORAGE_ROOT, Settings, load_settings
from pact_extensions.core.errors import ExtensionError, FilesystemError, UnknownCommandError
from pact_extensions.core.observability.logging_config import configure_logging
from pact_extensions.core.persistence.registry_file import Registry
from pact_extensions.core.services.extensions.execution.aliases import alias_is_live
from pact_extensions.core.services.extensions.execution.process import ProcessLauncher
from pact_extensions.core.services.extensions.session import ExtensionSession
from pact_extensions.ui.cli.builtins import HOST_TOOLS

logger = logging.getLogger(__name__)

MANAGEMENT_VERBS = frozenset({"list", "install", "update", "uninstall", "env"})
BUILTIN_NAMES = frozenset({"extension", *HOST_TOOLS})
GLOBAL_FLAGS = frozenset({"-v", "--verbose", "-q", "--quiet", "--debug"})


# ── Routes ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class BuiltinRoute:
    argv: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ManagementRoute:
    argv: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class AliasRoute:
    alias: str
    binary: Path
    args: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class UnknownRoute:
    command: str


Route = BuiltinRoute | ManagementRoute | AliasRoute | UnknownRoute


EXTERNAL_PREFIX = "pact-"


def _external_route(name: str, args: list[str]) -> AliasRoute | None:
    """Route ``extension <name>`` to a ``pact-<name>`` executable on PATH."""
    path = shutil.which(f"{EXTERNAL_PREFIX}{name}")
    if not path:
        return None
    logger.debug("Using external extension %s", path)
    return AliasRoute(alias=name, binary=Path(path), args=args)


def split_global_flags(argv: Sequence[str]) -> tuple[list[str], list[str]]:
    """Split leading global flags from the rest of the command line."""
    flags: list[str] = []
    for i, token in enumerate(argv):
        if token not in GLOBAL_FLAGS:
            return flags, list(argv[i:])
        flags.append(token)
    return flags, []


class Dispatcher:
    """Resolve ``argv`` to a route and run it."""

    def __init__(
        self,
        settings: Settings | None = None,
        launcher: ProcessLauncher | None = None,
        session_factory: Callable[[], ExtensionSession] | None = None,
    ) -> None:
        self.settings = settings
        self.launcher = launcher or ProcessLauncher()
        self.session_factory = session_factory

    # ── Resolve ─────────────────────────────────────────────────

    def resolve(self, argv: Sequence[str], registry: Registry, bin_dir: Path) -> Route:
        argv = list(argv)
        _flags, rest = split_global_flags(argv)
        if not rest or rest[0].startswith("-"):
            return BuiltinRoute(argv)

        head, tail = rest[0], rest[1:]

        if head == "extension":
            if tail and not tail[0].startswith("-") and tail[0] not in MANAGEMENT_VERBS:
                return (
                    self._alias_route(tail[0], tail[1:], registry, bin_dir)
                    or _external_route(tail[0], tail[1:])
                    or UnknownRoute(tail[0])
                )
            return ManagementRoute(argv)

        if head == "pactflow" and tail and not tail[0].startswith("-"):
            route = self._alias_route(f"pactflow-{tail[0]}", tail[1:], registry, bin_dir)
            if route is not None:
                return route

        if head in BUILTIN_NAMES:
            return BuiltinRoute(argv)

        return self._alias_route(head, tail, registry, bin_dir) or UnknownRoute(head)

    def _alias_route(
        self,
        alias: str,
        args: list[str],
        registry: Registry,
        bin_dir: Path,
    ) -> AliasRoute | None:
        found = registry.find_alias(alias)
        if found is None:
            return None
        record, binary = found
        if not alias_is_live(bin_dir, alias, binary, record.platform.os):
            logger.warning(
                "Alias '%s' of %s is missing on disk — reinstall with "
                "'pact extension install %s --force'",
                alias, record.name, record.name,
            )
            return None
        return AliasRoute(alias=alias, binary=binary, args=args)

    # ── Run ─────────────────────────────────────────────────────

    def run(self, argv: Sequence[str]) -> int:
        """Run one invocation and return the process exit code."""
        argv = list(argv)
        flags, _rest = split_global_flags(argv)
        configure_logging(
            debug="--debug" in flags,
            verbose="-v" in flags or "--verbose" in flags,
            quiet="-q" in flags or "--quiet" in flags,
        )

        try:
            settings = self.settings or load_settings()
            registry = Registry.open(settings.manifest_path)
            route = self.resolve(argv, registry, settings.bin_dir)
            logger.debug("Route: %s", route)

            if isinstance(route, AliasRoute):
                return self._run_alias(route, settings)
            if isinstance(route, UnknownRoute):
                raise UnknownCommandError(route.command)
            return self._run_click(route.argv, settings, registry)
        except ExtensionError as e:
            logger.debug("Command failed", exc_info=True)
            click.secho(f"❌ {e}", fg="red", err=True)
            return e.exit_code

    def _run_alias(self, route: AliasRoute, settings: Settings) -> int:
        cmd = [str(route.binary), *route.args]
        try:
            return self.launcher.run(cmd, env={ENV_STORAGE_ROOT: str(settings.storage_root)})
        except OSError as e:
            raise FilesystemError(route.binary, f"Cannot launch {route.alias} ({e.strerror or e})") from e

    def _run_click(self, args: list[str], settings: Settings, registry: Registry) -> int:
        from pact_extensions.main import cli

        factory = self.session_factory or functools.partial(
            ExtensionSession.open,
            settings,
            registry=registry,
            reserved_names=BUILTIN_NAMES,
        )
        obj = {"settings": settings, "launcher": self.launcher, "session_factory": factory}

        try:
            rv = cli.main(args, prog_name="pact", standalone_mode=False, obj=obj)
        except click.ClickException as e:
            e.show()
            return e.exit_code
        except click.Abort:
            click.echo("Aborted!", err=True)
            return 1
        except SystemExit as e:
            if e.code is None or isinstance(e.code, int):
                return e.code or 0
            click.echo(e.code, err=True)
            return 1
        return rv if isinstance(rv, int) else 0
