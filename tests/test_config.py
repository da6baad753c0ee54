"""
Tests for configuration — environment settings and the catalog file.
"""

import textwrap
from pathlib import Path

import pytest

from pact_extensions.core.config.loader import (
    DEFAULT_HTTP_TIMEOUT,
    Settings,
    load_catalog,
    load_settings,
)
from pact_extensions.core.errors import ConfigError


class TestLoadSettings:
    """Tests for load_settings."""

    def test_defaults(self):
        s = load_settings({})
        assert s.storage_root == Path.home() / ".pact" / "extensions"
        assert s.http_timeout == DEFAULT_HTTP_TIMEOUT
        assert s.github_token is None

    def test_storage_root_override(self, tmp_path: Path):
        s = load_settings({"PACT_CLI_EXTENSIONS_HOME": str(tmp_path / "ext")})
        assert s.storage_root == tmp_path / "ext"
        assert s.manifest_path == tmp_path / "ext" / "config.json"
        assert s.bin_dir == tmp_path / "ext" / "bin"
        assert s.install_dir("bundle", "pact-legacy") == tmp_path / "ext" / "bundle" / "pact-legacy"

    def test_blank_override_ignored(self):
        s = load_settings({"PACT_CLI_EXTENSIONS_HOME": "  "})
        assert s.storage_root == Path.home() / ".pact" / "extensions"

    def test_timeout(self):
        assert load_settings({"PACT_HTTP_TIMEOUT": "5"}).http_timeout == 5
        assert load_settings({"PACT_HTTP_TIMEOUT": "0"}).http_timeout == 1
        assert load_settings({"PACT_HTTP_TIMEOUT": "soon"}).http_timeout == DEFAULT_HTTP_TIMEOUT

    def test_github_token(self):
        assert load_settings({"GITHUB_TOKEN": "t1"}).github_token == "t1"
        assert load_settings({"GH_TOKEN": "t2", "GITHUB_TOKEN": "t1"}).github_token == "t2"

    def test_reads_os_environ(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("PACT_CLI_EXTENSIONS_HOME", str(tmp_path))
        assert load_settings().storage_root == tmp_path


class TestLoadCatalog:
    """Tests for the optional extensions.yml catalog."""

    def _settings(self, tmp_path: Path, content: str | None = None) -> Settings:
        settings = Settings(storage_root=tmp_path)
        if content is not None:
            settings.catalog_path.write_text(textwrap.dedent(content))
        return settings

    def test_builtins_only(self, tmp_path: Path):
        catalog = load_catalog(self._settings(tmp_path))
        assert list(catalog) == ["pactflow-ai", "pact-legacy"]

    def test_adds_entries(self, tmp_path: Path):
        catalog = load_catalog(self._settings(tmp_path, """\
            extensions:
              - name: my-tool
                kind: single-binary
                version_source: release-api
                release_repo: acme/my-tool
              - name: my-bundle
                kind: bundle
                version_source: direct-endpoint
                latest_url: https://dl.example/{target}/latest
                download_url: https://dl.example/{target}/{version}/bundle.{archive}
                members:
                  my-a: a
                  my-b: b
        """))

        tool = catalog["my-tool"]
        assert tool.aliases == ["my-tool"]
        assert tool.download_url.startswith("https://github.com/{repo}/releases/download/")
        assert catalog["my-bundle"].aliases == ["my-a", "my-b"]

    def test_empty_file(self, tmp_path: Path):
        assert len(load_catalog(self._settings(tmp_path, ""))) == 2

    def test_invalid_yaml(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_catalog(self._settings(tmp_path, "extensions: [unclosed\n"))

    def test_wrong_shape(self, tmp_path: Path):
        with pytest.raises(ConfigError):
            load_catalog(self._settings(tmp_path, "extensions: my-tool\n"))

    def test_invalid_entry(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="my-tool"):
            load_catalog(self._settings(tmp_path, """\
                extensions:
                  - name: my-tool
                    kind: single-binary
                    version_source: direct-endpoint
            """))

    def test_builtin_cannot_be_redefined(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="built-in"):
            load_catalog(self._settings(tmp_path, """\
                extensions:
                  - name: pactflow-ai
                    kind: single-binary
                    version_source: release-api
                    release_repo: evil/pactflow-ai
            """))
