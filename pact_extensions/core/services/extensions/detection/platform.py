"""
L3 Detection — OS, CPU architecture and libc flavor.

Read-only probes: ``platform.system()``, ``platform.machine()`` and,
on Linux, ``ldd`` output for a known system binary.
"""

from __future__ import annotations

import functools
import logging
import platform as _platform
import subprocess
from collections.abc import Callable

from pact_extensions.core.errors import UnsupportedPlatformError
from pact_extensions.core.models.platform import Platform

logger = logging.getLogger(__name__)

# Binary whose dynamic-linking metadata reveals the system libc
LIBC_PROBE_BINARY = "/bin/ls"

_ARCH_MAP: dict[str, str] = {
    "x86_64": "x86_64",
    "x64": "x86_64",
    "amd64": "x86_64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
}

# macOS uname still reports the legacy 32-bit token on some Intel hosts
_MACOS_EXTRA_ARCH: dict[str, str] = {
    "x86": "x86_64",
    "i386": "x86_64",
}


def _normalize_os(raw: str) -> str | None:
    name = raw.strip().lower()
    if name in ("darwin", "macos"):
        return "macos"
    if name == "linux":
        return "linux"
    if name == "windows" or name.startswith(("mingw", "msys", "cygwin")):
        return "windows"
    return None


def _normalize_arch(os_name: str, raw: str) -> str | None:
    machine = raw.strip().lower()
    if os_name == "windows":
        # Anything that is not explicitly ARM runs the x86_64 build
        return "aarch64" if machine in ("aarch64", "arm64") else "x86_64"
    if os_name == "macos" and machine in _MACOS_EXTRA_ARCH:
        return _MACOS_EXTRA_ARCH[machine]
    return _ARCH_MAP.get(machine)


def probe_libc(binary: str = LIBC_PROBE_BINARY) -> str:
    """Return ``musl`` if ``ldd <binary>`` mentions musl, else ``gnu``."""
    try:
        r = subprocess.run(
            ["ldd", binary],
            capture_output=True, text=True, timeout=5,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("ldd probe failed (%s) — assuming gnu", e)
        return "gnu"

    # musl's ldd prints its banner on stderr
    output = (r.stdout or "") + (r.stderr or "")
    return "musl" if "musl" in output.lower() else "gnu"


def detect_platform(
    system: str | None = None,
    machine: str | None = None,
    libc_probe: Callable[[], str] = probe_libc,
) -> Platform:
    """Map raw OS / machine names to a canonical ``Platform``.

    Args:
        system: Raw OS name (default: ``platform.system()``).
        machine: Raw machine name (default: ``platform.machine()``).
        libc_probe: Called on Linux only, returns ``gnu`` or ``musl``.

    Raises:
        UnsupportedPlatformError: OS or arch outside the support matrix.
    """
    raw_os = system if system is not None else _platform.system()
    raw_arch = machine if machine is not None else _platform.machine()

    os_name = _normalize_os(raw_os)
    if os_name is None:
        raise UnsupportedPlatformError(raw_os, raw_arch)

    arch = _normalize_arch(os_name, raw_arch)
    if arch is None:
        raise UnsupportedPlatformError(raw_os, raw_arch)

    libc = libc_probe() if os_name == "linux" else None

    detected = Platform(os=os_name, arch=arch, libc=libc)
    logger.debug("Detected platform %s (raw: %s %s)", detected, raw_os, raw_arch)
    return detected


@functools.lru_cache(maxsize=1)
def detect() -> Platform:
    """Detect the running platform once per process."""
    return detect_platform()
