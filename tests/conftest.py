"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest
from fakes import MACOS_ARM, FakeHttp, FakeRunner

from pact_extensions.core.config.loader import Settings
from pact_extensions.core.models.platform import Platform
from pact_extensions.core.services.extensions.session import ExtensionSession


@pytest.fixture
def storage_root(tmp_path: Path) -> Path:
    """Return a temporary extension storage root."""
    return tmp_path / "extensions"


@pytest.fixture
def settings(storage_root: Path) -> Settings:
    return Settings(storage_root=storage_root)


@pytest.fixture
def fake_http() -> FakeHttp:
    return FakeHttp()


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def make_session(settings, fake_http, fake_runner):
    """Factory for sessions wired to the fakes above."""

    def _make(platform: Platform = MACOS_ARM, **kwargs) -> ExtensionSession:
        return ExtensionSession.open(
            settings,
            http=fake_http,
            runner=fake_runner,
            platform=platform,
            **kwargs,
        )

    return _make
