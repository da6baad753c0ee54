"""
L0 Data — built-in extension catalog.

Pure data, no logic.  See ``ExtensionDescriptor`` for the meaning of
the template placeholders.
"""

from __future__ import annotations

from pact_extensions.core.models.extension import ExtensionDescriptor

PACTFLOW_AI = ExtensionDescriptor(
    name="pactflow-ai",
    kind="single-binary",
    version_source="direct-endpoint",
    description="PactFlow AI",
    latest_url="https://download.pactflow.io/ai/dist/{target}/latest",
    download_url="https://download.pactflow.io/ai/dist/{target}/{version}/pactflow-ai",
    targets={
        "macos-aarch64": "aarch64-apple-darwin",
        "macos-x86_64": "x86_64-apple-darwin",
        "windows-aarch64": "aarch64-pc-windows-msvc",
        "windows-x86_64": "x86_64-pc-windows-msvc",
        "linux-aarch64": "aarch64-unknown-linux-gnu",
        "linux-x86_64": "x86_64-unknown-linux-gnu",
    },
    aliases=["pactflow-ai"],
)

PACT_LEGACY = ExtensionDescriptor(
    name="pact-legacy",
    kind="bundle",
    version_source="release-api",
    description="Pact Legacy (pact-standalone)",
    release_repo="pact-foundation/pact-standalone",
    download_url="https://github.com/{repo}/releases/download/{version}/{asset}",
    asset_pattern="pact-{bare}-{target}.{archive}",
    targets={
        "macos-aarch64": "osx-arm64",
        "macos-x86_64": "osx-x86_64",
        "windows-aarch64": "windows-x86_64",  # no arm64 windows build upstream
        "windows-x86_64": "windows-x86_64",
        "linux-aarch64": "linux-arm64",
        "linux-x86_64": "linux-x86_64",
    },
    members={
        "pact-broker-legacy": "pact-broker",
        "pactflow-legacy": "pactflow",
        "message-legacy": "pact-message",
        "mock-legacy": "pact-mock-service",
        "verifier-legacy": "pact-provider-verifier",
        "stub-legacy": "pact-stub-service",
    },
    member_dir="bin",
    windows_suffix=".bat",
)

BUILTIN_EXTENSIONS: dict[str, ExtensionDescriptor] = {
    PACTFLOW_AI.name: PACTFLOW_AI,
    PACT_LEGACY.name: PACT_LEGACY,
}

# Display names for `extension list`
KIND_LABELS: dict[str, str] = {
    "single-binary": "Binary",
    "bundle": "Bundle",
}
