"""
GitHub REST API client for gha_inspector.
"""

import logging
import os
from typing import Dict, List, Optional, Tuple

import requests

from . import __version__
from .gh_cli import GhCLI
from .models import Workflow

logger = logging.getLogger(__name__)


class GitHubClient:
    """Client for the parts of the GitHub API that gh run does not cover."""

    def __init__(
        self,
        token: Optional[str] = None,
        api_url: str = "https://api.github.com",
        gh: Optional[GhCLI] = None,
        timeout: float = 30.0,
    ):
        """
        Initialize GitHub client.

        Args:
            token: GitHub personal access token. If None, will try to use
                   GITHUB_TOKEN env var or gh CLI authentication.
            api_url: Base URL of the REST API (GitHub Enterprise uses its own)
            gh: gh wrapper used to look up the token
            timeout: Request timeout in seconds
        """
        self.base_url = api_url.rstrip("/")
        self.gh = gh or GhCLI()
        self.timeout = timeout
        self._explicit_token = token or os.getenv("GITHUB_TOKEN")
        self.token = self._explicit_token or self.gh.auth_token()

        if not self.token:
            raise ValueError(
                "GitHub authentication required. Either:\n"
                "1. Set GITHUB_TOKEN environment variable\n"
                "2. Configure github_token in .gha_inspector.yml\n"
                "3. Authenticate with 'gh auth login'"
            )

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"token {self.token}",
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": f"gha_inspector/{__version__}",
        }

    def refresh_token(self) -> None:
        """Pick up the token of whichever account gh is now logged in as."""
        if self._explicit_token:
            logger.debug("Token was given explicitly; not refreshing from gh")
            return
        token = self.gh.auth_token()
        if token:
            self.token = token

    def _get(self, path: str, params: Optional[Dict] = None) -> requests.Response:
        url = f"{self.base_url}/{path.lstrip('/')}"
        logger.debug(f"GET {url}")
        return requests.get(url, headers=self.headers, params=params, timeout=self.timeout)

    def get_repository(self, owner: str, repo: str) -> Dict:
        """
        Get repository information.

        Args:
            owner: Repository owner
            repo: Repository name

        Returns:
            Repository object
        """
        response = self._get(f"repos/{owner}/{repo}")
        response.raise_for_status()
        return response.json()

    def has_repository_access(self, owner: str, repo: str) -> bool:
        """
        Check whether the current token can see a repository.

        GitHub answers 404 rather than 403 for private repositories the
        caller cannot see, so both count as "no access".
        """
        response = self._get(f"repos/{owner}/{repo}")
        if response.status_code in (403, 404):
            return False
        response.raise_for_status()
        return True

    def list_workflows(self, owner: str, repo: str) -> Tuple[int, List[Workflow]]:
        """
        List the workflows registered for a repository.

        Returns:
            (total_count, workflows)
        """
        response = self._get(f"repos/{owner}/{repo}/actions/workflows", params={"per_page": 100})
        response.raise_for_status()

        data = response.json()
        workflows = [Workflow.from_api(item) for item in data.get("workflows", [])]
        return data.get("total_count", len(workflows)), workflows
