"""
Extension errors — the failure taxonomy shared by every layer.

Services raise these; nothing below the dispatcher catches them.
The dispatcher maps each kind to a human-readable message and its
``exit_code``.
"""

from __future__ import annotations


class ExtensionError(Exception):
    """Base class for every failure the extension manager reports."""

    exit_code: int = 1


class UnsupportedPlatformError(ExtensionError):
    """Running OS/arch combination is outside the support matrix."""

    exit_code = 3

    def __init__(self, os_name: str, arch: str) -> None:
        self.os_name = os_name
        self.arch = arch
        super().__init__(f"Unsupported platform: {os_name}-{arch}")


class NetworkError(ExtensionError):
    """An upstream request failed (transport error or HTTP status)."""

    exit_code = 4

    def __init__(self, url: str, reason: str, status: int | None = None) -> None:
        self.url = url
        self.reason = reason
        self.status = status
        super().__init__(f"Request to {url} failed: {reason}")


class ParseError(ExtensionError):
    """An upstream response could not be interpreted."""

    exit_code = 4


class AssetNotFoundError(ExtensionError):
    """The resolved version publishes no asset for this platform."""

    exit_code = 5

    def __init__(self, extension: str, version: str, platform: str, asset: str = "") -> None:
        self.extension = extension
        self.version = version
        self.platform = platform
        self.asset = asset
        detail = f" (expected asset '{asset}')" if asset else ""
        super().__init__(
            f"No {extension} asset for platform {platform} at version {version}{detail}"
        )


class CorruptArchiveError(ExtensionError):
    """A downloaded bundle is unreadable or misses an expected member."""

    exit_code = 6


class FilesystemError(ExtensionError):
    """Staging or placement failed on disk."""

    exit_code = 7

    def __init__(self, path: object, reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"{reason}: {path}")


class AlreadyInstalledError(ExtensionError):
    """Install requested for an extension that is already installed."""

    exit_code = 8

    def __init__(self, name: str, version: str) -> None:
        self.name = name
        self.version = version
        super().__init__(
            f"Extension '{name}' is already installed (version {version}). "
            f"Use 'pact extension update {name}' or pass --force."
        )


class AliasConflictError(ExtensionError):
    """Two extensions (or an extension and a built-in) claim one alias."""

    exit_code = 9


class NotInstalledError(ExtensionError):
    """Update/uninstall requested for an extension that is not installed."""

    exit_code = 10

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"Extension '{name}' is not installed. "
            f"Run 'pact extension install {name}' first."
        )


class UnknownExtensionError(ExtensionError):
    """Name is not in the extension catalog."""

    exit_code = 11

    def __init__(self, name: str, known: list[str] | None = None) -> None:
        self.name = name
        hint = f" Available: {', '.join(known)}." if known else ""
        super().__init__(f"Unknown extension: {name}.{hint}")


class ConfigError(ExtensionError):
    """The extension catalog override file is invalid."""

    exit_code = 12


class UnknownCommandError(ExtensionError):
    """Dispatch matched no built-in command and no installed alias."""

    exit_code = 127

    def __init__(self, command: str) -> None:
        self.command = command
        super().__init__(
            f"Unknown command '{command}'. Run 'pact --help' for built-in commands "
            "or 'pact extension list' for available extensions."
        )


class ToolNotFoundError(ExtensionError):
    """A built-in host command's executable is not on PATH."""

    exit_code = 13

    def __init__(self, command: str, candidates: list[str]) -> None:
        self.command = command
        self.candidates = candidates
        super().__init__(
            f"'{command}' needs one of {', '.join(candidates)} on PATH, but none was found."
        )
