"""
Configuration loader — environment settings and the extension catalog.

Settings come from environment variables only.  The catalog is the
compiled-in descriptor set, optionally extended by a YAML file at
``<storage-root>/extensions.yml``:

    extensions:
      - name: my-tool
        kind: single-binary
        version_source: release-api
        release_repo: acme/my-tool
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from pact_extensions.core.errors import ConfigError
from pact_extensions.core.models.extension import ExtensionDescriptor
from pact_extensions.core.persistence.registry_file import default_manifest_path
from pact_extensions.core.services.extensions.data.catalog import BUILTIN_EXTENSIONS

logger = logging.getLogger(__name__)

ENV_STORAGE_ROOT = "PACT_CLI_EXTENSIONS_HOME"
ENV_HTTP_TIMEOUT = "PACT_HTTP_TIMEOUT"
CATALOG_FILE = "extensions.yml"

DEFAULT_HTTP_TIMEOUT = 30


def default_storage_root() -> Path:
    """``~/.pact/extensions`` for the current user."""
    return Path.home() / ".pact" / "extensions"


class Settings(BaseModel):
    """Process settings resolved from the environment."""

    storage_root: Path = Field(default_factory=default_storage_root)
    http_timeout: int = DEFAULT_HTTP_TIMEOUT
    github_token: str | None = None

    @property
    def manifest_path(self) -> Path:
        return default_manifest_path(self.storage_root)

    @property
    def bin_dir(self) -> Path:
        return self.storage_root / "bin"

    @property
    def staging_dir(self) -> Path:
        return self.storage_root / ".staging"

    @property
    def catalog_path(self) -> Path:
        return self.storage_root / CATALOG_FILE

    def install_dir(self, kind: str, name: str) -> Path:
        """Final location of an extension's binaries."""
        return self.storage_root / kind / name


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    """Build settings from environment variables.

    Args:
        environ: Mapping to read from (default: ``os.environ``).
    """
    env = os.environ if environ is None else environ

    root_override = (env.get(ENV_STORAGE_ROOT) or "").strip()
    storage_root = Path(root_override).expanduser() if root_override else default_storage_root()

    timeout = DEFAULT_HTTP_TIMEOUT
    raw_timeout = (env.get(ENV_HTTP_TIMEOUT) or "").strip()
    if raw_timeout:
        try:
            timeout = max(1, int(raw_timeout))
        except ValueError:
            logger.warning("Ignoring non-numeric %s=%r", ENV_HTTP_TIMEOUT, raw_timeout)

    token = (env.get("GH_TOKEN") or env.get("GITHUB_TOKEN") or "").strip() or None

    return Settings(storage_root=storage_root, http_timeout=timeout, github_token=token)


def load_catalog(settings: Settings) -> dict[str, ExtensionDescriptor]:
    """Return every known extension descriptor keyed by name.

    Raises:
        ConfigError: If the catalog file exists but is invalid.
    """
    catalog = dict(BUILTIN_EXTENSIONS)

    path = settings.catalog_path
    if not path.is_file():
        return catalog

    logger.debug("Loading extension catalog from %s", path)

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return catalog
    if not isinstance(data, dict) or not isinstance(data.get("extensions", []), list):
        raise ConfigError(f"Expected a mapping with an 'extensions' list in {path}")

    for entry in data.get("extensions", []):
        try:
            descriptor = ExtensionDescriptor.model_validate(entry)
        except ValidationError as e:
            raise ConfigError(f"Invalid extension entry in {path}: {e}") from e
        if descriptor.name in BUILTIN_EXTENSIONS:
            raise ConfigError(f"{path}: '{descriptor.name}' is a built-in extension and cannot be redefined")
        catalog[descriptor.name] = descriptor

    logger.info("Loaded %d extension descriptor(s)", len(catalog))
    return catalog
