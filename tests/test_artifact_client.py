"""Tests for the static artifact host client."""

from unittest.mock import MagicMock

import pytest
import requests

from buildboard.exit_codes import ArtifactFetchError
from buildboard.infra.artifact_client import ArtifactClient


def client_returning(status_code=200, text=""):
    session = MagicMock()
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    session.get.return_value = response
    return ArtifactClient(timeout=5, session=session), session


class TestGetText:
    def test_ok(self):
        client, session = client_returning(text="<html></html>")
        assert client.get_text("https://static.example/pkg/") == "<html></html>"
        session.get.assert_called_once_with("https://static.example/pkg/", timeout=5)

    def test_not_found_raises(self):
        client, _ = client_returning(status_code=404)
        with pytest.raises(ArtifactFetchError) as exc_info:
            client.get_text("https://static.example/pkg/")
        assert exc_info.value.status_code == 404

    def test_network_error_raises(self):
        client, session = client_returning()
        session.get.side_effect = requests.Timeout("slow")
        with pytest.raises(ArtifactFetchError):
            client.get_text("https://static.example/pkg/")


class TestGetToml:
    def test_parses_document(self):
        client, _ = client_returning(text='name = "relibc"\nsource_identifier = "abc"\n')
        assert client.get_toml("https://static.example/relibc.toml") == {
            'name': 'relibc',
            'source_identifier': 'abc',
        }

    def test_missing_document(self):
        client, _ = client_returning(status_code=404)
        assert client.get_toml("https://static.example/relibc.toml") is None

    def test_invalid_toml(self):
        client, _ = client_returning(text="name = ")
        with pytest.raises(ArtifactFetchError):
            client.get_toml("https://static.example/relibc.toml")

    def test_server_error(self):
        client, _ = client_returning(status_code=503)
        with pytest.raises(ArtifactFetchError) as exc_info:
            client.get_toml("https://static.example/relibc.toml")
        assert exc_info.value.status_code == 503
