"""
Unit tests for the GitHub REST client.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from gha_inspector.github_client import GitHubClient


def _response(status_code=200, payload=None):
    response = MagicMock(status_code=status_code)
    response.json.return_value = payload or {}
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Error")
    return response


@pytest.fixture
def mock_gh():
    gh = MagicMock()
    gh.auth_token.return_value = "gho_from_gh"
    return gh


@pytest.fixture(autouse=True)
def no_env_token(monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)


class TestTokenResolution:
    """Test where the client finds its token."""

    def test_explicit_token_wins(self, mock_gh):
        client = GitHubClient(token="ghp_explicit", gh=mock_gh)

        assert client.token == "ghp_explicit"
        mock_gh.auth_token.assert_not_called()

    def test_env_token(self, mock_gh, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_env")

        assert GitHubClient(gh=mock_gh).token == "ghp_env"

    def test_falls_back_to_gh(self, mock_gh):
        client = GitHubClient(gh=mock_gh)

        assert client.token == "gho_from_gh"
        assert client.headers["Authorization"] == "token gho_from_gh"

    def test_no_token_anywhere(self, mock_gh):
        mock_gh.auth_token.return_value = None

        with pytest.raises(ValueError, match="gh auth login"):
            GitHubClient(gh=mock_gh)

    def test_refresh_after_switch(self, mock_gh):
        client = GitHubClient(gh=mock_gh)
        mock_gh.auth_token.return_value = "gho_other_account"

        client.refresh_token()

        assert client.token == "gho_other_account"

    def test_refresh_keeps_explicit_token(self, mock_gh):
        client = GitHubClient(token="ghp_explicit", gh=mock_gh)

        client.refresh_token()

        assert client.token == "ghp_explicit"


class TestEndpoints:
    """Test REST calls with requests mocked out."""

    @pytest.fixture
    def client(self, mock_gh):
        return GitHubClient(token="t", api_url="https://ghe.example.com/api/v3/", gh=mock_gh)

    @patch("gha_inspector.github_client.requests.get")
    def test_list_workflows(self, mock_get, client):
        mock_get.return_value = _response(payload={
            "total_count": 2,
            "workflows": [
                {"id": 1, "name": "CI", "state": "active", "path": ".github/workflows/ci.yml"},
                {"id": 2, "name": "Release", "state": "disabled_manually", "path": ".github/workflows/release.yml"},
            ],
        })

        total, workflows = client.list_workflows("octo", "hello")

        assert total == 2
        assert [w.name for w in workflows] == ["CI", "Release"]
        assert mock_get.call_args.args[0] == "https://ghe.example.com/api/v3/repos/octo/hello/actions/workflows"

    @patch("gha_inspector.github_client.requests.get")
    def test_has_access(self, mock_get, client):
        mock_get.return_value = _response(payload={"full_name": "octo/hello"})

        assert client.has_repository_access("octo", "hello")

    @pytest.mark.parametrize("status_code", [403, 404])
    @patch("gha_inspector.github_client.requests.get")
    def test_no_access(self, mock_get, status_code, client):
        mock_get.return_value = _response(status_code=status_code)

        assert not client.has_repository_access("octo", "secret")

    @patch("gha_inspector.github_client.requests.get")
    def test_server_error_propagates(self, mock_get, client):
        mock_get.return_value = _response(status_code=500)

        with pytest.raises(requests.HTTPError):
            client.has_repository_access("octo", "hello")
