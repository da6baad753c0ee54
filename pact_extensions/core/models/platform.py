"""
Platform — the (os, arch, libc) tuple used to pick a binary asset.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, model_validator

OsName = Literal["macos", "linux", "windows"]
ArchName = Literal["x86_64", "aarch64"]
LibcName = Literal["gnu", "musl"]


class Platform(BaseModel):
    """Canonical platform identity. Immutable for the process lifetime."""

    model_config = ConfigDict(frozen=True)

    os: OsName
    arch: ArchName
    libc: LibcName | None = None  # linux only

    @model_validator(mode="after")
    def _libc_only_on_linux(self) -> Platform:
        if self.os != "linux" and self.libc is not None:
            raise ValueError(f"libc flavor is only meaningful on linux, got {self.libc} on {self.os}")
        return self

    @property
    def key(self) -> str:
        """``os-arch`` key used by descriptor target tables."""
        return f"{self.os}-{self.arch}"

    @property
    def exe_suffix(self) -> str:
        return ".exe" if self.os == "windows" else ""

    @property
    def archive_ext(self) -> str:
        return "zip" if self.os == "windows" else "tar.gz"

    def __str__(self) -> str:
        parts = [self.arch, self.os]
        if self.libc:
            parts.append(self.libc)
        return "-".join(parts)
