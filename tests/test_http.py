"""
Tests for the HTTP client.
"""

import io
import urllib.error
from pathlib import Path
from unittest import mock

import pytest

from pact_extensions.core.errors import FilesystemError, NetworkError, ParseError
from pact_extensions.core.services.extensions.execution.http import USER_AGENT, HttpClient

_URLOPEN = "pact_extensions.core.services.extensions.execution.http.urllib.request.urlopen"


class TestHttpClient:
    def test_get_text(self):
        with mock.patch(_URLOPEN, return_value=io.BytesIO(b"1.11.4\n")) as urlopen:
            assert HttpClient(timeout=7).get_text("https://dl.example/latest") == "1.11.4\n"
        request = urlopen.call_args.args[0]
        assert request.get_header("User-agent") == USER_AGENT
        assert urlopen.call_args.kwargs["timeout"] == 7

    def test_get_json(self):
        with mock.patch(_URLOPEN, return_value=io.BytesIO(b'{"tag_name": "v2.4.1"}')):
            assert HttpClient().get_json("https://api.github.com/x") == {"tag_name": "v2.4.1"}

    def test_get_json_invalid(self):
        with mock.patch(_URLOPEN, return_value=io.BytesIO(b"<html>")):
            with pytest.raises(ParseError):
                HttpClient().get_json("https://api.github.com/x")

    def test_http_error_status(self):
        error = urllib.error.HTTPError("https://dl.example/x", 404, "Not Found", {}, None)
        with mock.patch(_URLOPEN, side_effect=error):
            with pytest.raises(NetworkError) as exc:
                HttpClient().get_text("https://dl.example/x")
        assert exc.value.status == 404
        assert exc.value.exit_code == 4

    def test_transport_error(self):
        with mock.patch(_URLOPEN, side_effect=urllib.error.URLError("no route to host")):
            with pytest.raises(NetworkError, match="no route to host"):
                HttpClient().get_text("https://dl.example/x")

    def test_token_only_for_github_api(self):
        client = HttpClient(github_token="secret")
        with mock.patch(_URLOPEN, return_value=io.BytesIO(b"{}")) as urlopen:
            client.get_json("https://api.github.com/repos/a/b/releases/latest")
        assert urlopen.call_args.args[0].get_header("Authorization") == "Bearer secret"

        with mock.patch(_URLOPEN, return_value=io.BytesIO(b"1")) as urlopen:
            client.get_text("https://download.pactflow.io/ai/dist/x/latest")
        assert urlopen.call_args.args[0].get_header("Authorization") is None

    def test_download(self, tmp_path: Path):
        payload = b"x" * 200_000
        dest = tmp_path / "asset"
        with mock.patch(_URLOPEN, return_value=io.BytesIO(payload)):
            assert HttpClient().download("https://dl.example/asset", dest) == len(payload)
        assert dest.read_bytes() == payload

    def test_download_unwritable(self, tmp_path: Path):
        with mock.patch(_URLOPEN, return_value=io.BytesIO(b"x")):
            with pytest.raises(FilesystemError):
                HttpClient().download("https://dl.example/asset", tmp_path / "missing" / "asset")
