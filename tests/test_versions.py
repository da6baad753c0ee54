"""
Tests for version resolution — installed, latest and pinned releases.
"""

import subprocess

import pytest
from fakes import LINUX_GNU, MACOS_ARM, FakeHttp, FakeRunner

from pact_extensions.core.errors import AssetNotFoundError, NetworkError, ParseError
from pact_extensions.core.models.extension import InstalledExtensionRecord
from pact_extensions.core.persistence.registry_file import Registry
from pact_extensions.core.services.extensions.data.catalog import PACT_LEGACY, PACTFLOW_AI
from pact_extensions.core.services.extensions.resolver.versions import (
    VersionResolver,
    is_update_available,
    parse_version_output,
)

AI_LATEST = "https://download.pactflow.io/ai/dist/aarch64-apple-darwin/latest"
RELEASES = "https://api.github.com/repos/pact-foundation/pact-standalone/releases"


@pytest.fixture
def registry(tmp_path):
    return Registry.open(tmp_path / "config.json")


def _resolver(registry, http=None, runner=None) -> VersionResolver:
    return VersionResolver(http or FakeHttp(), registry, runner=runner or FakeRunner())


class TestParsing:
    @pytest.mark.parametrize("output,expected", [
        ("pactflow-ai 1.11.4", "1.11.4"),
        ("pactflow-ai 1.11.4\n", "1.11.4"),
        ("tool v2.0.0-beta.1 (abc123)", "2.0.0-beta.1"),
        ("tool 0.9", "0.9"),
        ("tool nightly", "nightly"),
        ("", None),
        ("tool", None),
    ])
    def test_parse_version_output(self, output, expected):
        assert parse_version_output(output) == expected

    def test_update_available_is_inequality(self):
        assert is_update_available("1.11.4", "1.12.0") is True
        assert is_update_available("1.12.0", "1.11.4") is True
        assert is_update_available("1.11.4", "1.11.4") is False
        assert is_update_available(None, "1.11.4") is False
        assert is_update_available("1.11.4", None) is False


class TestDirectEndpoint:
    """Tests for pactflow-ai style version endpoints."""

    def test_latest(self, registry):
        http = FakeHttp()
        http.texts[AI_LATEST] = "1.11.4\n"
        release = _resolver(registry, http).resolve_release(PACTFLOW_AI, MACOS_ARM)
        assert release.version == "1.11.4"
        assert release.download_url.endswith("/aarch64-apple-darwin/1.11.4/pactflow-ai")

    @pytest.mark.parametrize("body", ["", "  \n", "<html>Not Found</html> page"])
    def test_bad_body(self, registry, body):
        http = FakeHttp()
        http.texts[AI_LATEST] = body
        with pytest.raises(ParseError):
            _resolver(registry, http).resolve_latest(PACTFLOW_AI, MACOS_ARM)

    def test_unreachable(self, registry):
        with pytest.raises(NetworkError):
            _resolver(registry).resolve_latest(PACTFLOW_AI, MACOS_ARM)


class TestReleaseApi:
    """Tests for GitHub release resolution."""

    def _release(self, tag="v2.4.1", assets=None):
        if assets is None:
            assets = [{"name": "pact-2.4.1-linux-x86_64.tar.gz", "browser_download_url": "https://dl/x"}]
        return {"tag_name": tag, "assets": assets}

    def test_latest(self, registry):
        http = FakeHttp()
        http.json[f"{RELEASES}/latest"] = self._release()
        release = _resolver(registry, http).resolve_release(PACT_LEGACY, LINUX_GNU)
        assert release.version == "v2.4.1"
        assert release.asset_name == "pact-2.4.1-linux-x86_64.tar.gz"
        assert release.download_url == "https://dl/x"

    def test_template_url_without_browser_url(self, registry):
        http = FakeHttp()
        http.json[f"{RELEASES}/latest"] = self._release(assets=[{"name": "pact-2.4.1-linux-x86_64.tar.gz"}])
        release = _resolver(registry, http).resolve_release(PACT_LEGACY, LINUX_GNU)
        assert release.download_url == (
            "https://github.com/pact-foundation/pact-standalone/releases/download/"
            "v2.4.1/pact-2.4.1-linux-x86_64.tar.gz"
        )

    def test_pinned_tag(self, registry):
        http = FakeHttp()
        http.json[f"{RELEASES}/tags/v2.0.0"] = self._release(
            "v2.0.0", [{"name": "pact-2.0.0-linux-x86_64.tar.gz", "browser_download_url": "https://dl/old"}],
        )
        release = _resolver(registry, http).resolve_release(PACT_LEGACY, LINUX_GNU, "v2.0.0")
        assert release.version == "v2.0.0"

    def test_pinned_tag_missing(self, registry):
        with pytest.raises(AssetNotFoundError) as exc:
            _resolver(registry).resolve_release(PACT_LEGACY, LINUX_GNU, "v0.0.1")
        assert exc.value.version == "v0.0.1"
        assert exc.value.platform == "x86_64-linux-gnu"

    def test_no_asset_for_platform(self, registry):
        http = FakeHttp()
        http.json[f"{RELEASES}/latest"] = self._release()
        with pytest.raises(AssetNotFoundError) as exc:
            _resolver(registry, http).resolve_latest(PACT_LEGACY, MACOS_ARM)
        assert exc.value.asset == "pact-2.4.1-osx-arm64.tar.gz"

    def test_missing_tag(self, registry):
        http = FakeHttp()
        http.json[f"{RELEASES}/latest"] = {"assets": []}
        with pytest.raises(ParseError):
            _resolver(registry, http).resolve_latest(PACT_LEGACY, LINUX_GNU)

    def test_not_an_object(self, registry):
        http = FakeHttp()
        http.json[f"{RELEASES}/latest"] = ["v2.4.1"]
        with pytest.raises(ParseError):
            _resolver(registry, http).resolve_latest(PACT_LEGACY, LINUX_GNU)

    def test_assets_not_a_list(self, registry):
        http = FakeHttp()
        http.json[f"{RELEASES}/latest"] = {"tag_name": "v2.4.1", "assets": {"name": "x"}}
        with pytest.raises(ParseError, match="assets list"):
            _resolver(registry, http).resolve_latest(PACT_LEGACY, LINUX_GNU)


class TestInstalledVersion:
    """Tests for resolve_installed."""

    def _put(self, registry, descriptor, version):
        registry.put(InstalledExtensionRecord(
            name=descriptor.name,
            kind=descriptor.kind,
            version=version,
            binary_paths={alias: f"/ext/{alias}" for alias in descriptor.aliases},
            platform=MACOS_ARM,
        ))

    def test_not_installed(self, registry):
        assert _resolver(registry).resolve_installed(PACTFLOW_AI) is None

    def test_single_binary_asks_binary(self, registry):
        self._put(registry, PACTFLOW_AI, "1.11.4")
        runner = FakeRunner("pactflow-ai 1.12.0\n")
        assert _resolver(registry, runner=runner).resolve_installed(PACTFLOW_AI) == "1.12.0"
        assert runner.calls == [["/ext/pactflow-ai", "--version"]]

    def test_single_binary_failure_uses_record(self, registry):
        self._put(registry, PACTFLOW_AI, "1.11.4")
        runner = FakeRunner("", code=1)
        assert _resolver(registry, runner=runner).resolve_installed(PACTFLOW_AI) == "1.11.4"

    def test_single_binary_unrunnable_uses_record(self, registry):
        self._put(registry, PACTFLOW_AI, "1.11.4")

        def _boom(cmd):
            raise subprocess.TimeoutExpired(cmd, 15)

        resolver = VersionResolver(FakeHttp(), registry, runner=_boom)
        assert resolver.resolve_installed(PACTFLOW_AI) == "1.11.4"

    def test_bundle_uses_record(self, registry):
        self._put(registry, PACT_LEGACY, "v2.4.1")
        runner = FakeRunner("ignored 9.9.9")
        assert _resolver(registry, runner=runner).resolve_installed(PACT_LEGACY) == "v2.4.1"
        assert runner.calls == []
