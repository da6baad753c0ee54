"""
Tests for the extension models and alias entries.
"""

import os
from pathlib import Path

import pytest
from fakes import LINUX_GNU, MACOS_ARM
from pydantic import ValidationError

from pact_extensions.core.models import ExtensionDescriptor, InstalledExtensionRecord, Platform
from pact_extensions.core.services.extensions.data.catalog import PACT_LEGACY, PACTFLOW_AI
from pact_extensions.core.services.extensions.execution.aliases import (
    alias_entry,
    alias_is_live,
    link_alias,
    unlink_alias,
)


class TestExtensionDescriptor:
    def test_single_binary_alias_defaults_to_name(self):
        d = ExtensionDescriptor(
            name="tool", kind="single-binary", version_source="release-api", release_repo="acme/tool",
        )
        assert d.aliases == ["tool"]

    def test_bundle_aliases_from_members(self):
        assert PACT_LEGACY.aliases == [
            "pact-broker-legacy",
            "pactflow-legacy",
            "message-legacy",
            "mock-legacy",
            "verifier-legacy",
            "stub-legacy",
        ]

    def test_bundle_alias_without_member(self):
        with pytest.raises(ValidationError):
            ExtensionDescriptor(
                name="b", kind="bundle", version_source="release-api", release_repo="a/b",
                members={"x": "x"}, aliases=["x", "y"],
            )

    def test_single_binary_needs_one_alias(self):
        with pytest.raises(ValidationError):
            ExtensionDescriptor(
                name="t", kind="single-binary", version_source="release-api", release_repo="a/t",
                aliases=["t", "t2"],
            )

    def test_direct_endpoint_needs_urls(self):
        with pytest.raises(ValidationError):
            ExtensionDescriptor(name="t", kind="single-binary", version_source="direct-endpoint")

    def test_release_api_needs_repo(self):
        with pytest.raises(ValidationError):
            ExtensionDescriptor(name="t", kind="single-binary", version_source="release-api")

    def test_member_name(self):
        win = Platform(os="windows", arch="x86_64")
        assert PACT_LEGACY.member_name("stub-legacy", LINUX_GNU) == "pact-stub-service"
        assert PACT_LEGACY.member_name("stub-legacy", win) == "pact-stub-service.bat"
        assert PACTFLOW_AI.member_name("pactflow-ai", win) == "pactflow-ai.exe"
        assert PACTFLOW_AI.member_name("pactflow-ai", MACOS_ARM) == "pactflow-ai"


class TestInstalledExtensionRecord:
    def test_installed_at_defaults(self):
        r = InstalledExtensionRecord(name="t", kind="single-binary", version="1", platform=MACOS_ARM)
        assert r.installed_at
        assert r.binary_paths == {}

    def test_json_roundtrip(self):
        r = InstalledExtensionRecord(
            name="t", kind="bundle", version="v1", binary_paths={"a": "/x/a"}, platform=LINUX_GNU,
        )
        assert InstalledExtensionRecord.model_validate(r.model_dump(mode="json")) == r


class TestAliases:
    """Tests for alias entries under <root>/bin."""

    def test_symlink(self, tmp_path: Path):
        target = tmp_path / "tool"
        target.write_text("#!/bin/sh\n")
        bin_dir = tmp_path / "bin"

        entry = link_alias(bin_dir, "tool", target, "linux")

        assert entry == bin_dir / "tool"
        assert entry.is_symlink()
        assert entry.resolve() == target.resolve()
        assert alias_is_live(bin_dir, "tool", target, "linux")

    def test_relink_replaces(self, tmp_path: Path):
        old, new = tmp_path / "old", tmp_path / "new"
        old.write_text("old")
        new.write_text("new")
        bin_dir = tmp_path / "bin"
        link_alias(bin_dir, "tool", old, "linux")
        link_alias(bin_dir, "tool", new, "linux")
        assert (bin_dir / "tool").read_text() == "new"
        assert sorted(p.name for p in bin_dir.iterdir()) == ["tool"]

    def test_windows_shim(self, tmp_path: Path):
        target = tmp_path / "pact-broker.bat"
        entry = link_alias(tmp_path / "bin", "pact-broker-legacy", target, "windows")
        assert entry == alias_entry(tmp_path / "bin", "pact-broker-legacy", "windows")
        assert entry.name == "pact-broker-legacy.cmd"
        assert f'"{target}" %*' in entry.read_text()

    def test_unlink(self, tmp_path: Path):
        target = tmp_path / "tool"
        target.write_text("x")
        bin_dir = tmp_path / "bin"
        link_alias(bin_dir, "tool", target, "linux")

        assert unlink_alias(bin_dir, "tool", "linux") is True
        assert not os.path.lexists(bin_dir / "tool")
        assert unlink_alias(bin_dir, "tool", "linux") is False

    def test_dangling_is_not_live(self, tmp_path: Path):
        target = tmp_path / "tool"
        target.write_text("x")
        bin_dir = tmp_path / "bin"
        link_alias(bin_dir, "tool", target, "linux")
        target.unlink()
        assert not alias_is_live(bin_dir, "tool", target, "linux")
