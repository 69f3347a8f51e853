"""
Local git repository detection.
"""

import logging
import re
import subprocess
from pathlib import Path
from typing import List, Optional, Union

from .exceptions import NoOriginRemoteError, NotAGitHubRepositoryError, NotAGitRepositoryError
from .models import RepoInfo

logger = logging.getLogger(__name__)

# Owner and name as the shell helper extracted them; the name stops at the first dot
_REMOTE_RE = re.compile(r"github\.com[:/]([^/]+)/([^.]+)(\.git)?")

WORKFLOWS_DIR = Path(".github") / "workflows"

PathLike = Union[str, Path]


def _git(args: List[str], cwd: Optional[PathLike] = None) -> Optional[str]:
    """Run a git command and return stripped stdout, or None if it failed."""
    logger.debug(f"git {' '.join(args)}")
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=True,
        )
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        logger.debug(f"git {args[0]} failed: {e}")
        return None
    return result.stdout.strip()


def parse_remote_url(url: str) -> RepoInfo:
    """
    Extract owner and repository name from a GitHub remote URL.

    Handles HTTPS (https://github.com/owner/repo.git) and SSH
    (git@github.com:owner/repo.git) forms.

    Raises:
        NotAGitHubRepositoryError: If the URL does not point at github.com
    """
    if "github.com" not in url:
        raise NotAGitHubRepositoryError(url)

    match = _REMOTE_RE.search(url)
    if not match:
        raise NotAGitHubRepositoryError(url)

    return RepoInfo(owner=match.group(1), name=match.group(2), remote_url=url)


def detect_github_repo(cwd: Optional[PathLike] = None) -> RepoInfo:
    """
    Detect the GitHub repository the working directory belongs to.

    Raises:
        NotAGitRepositoryError: Outside a git work tree
        NoOriginRemoteError: No origin remote is configured
        NotAGitHubRepositoryError: The origin remote is not on github.com
    """
    if _git(["rev-parse", "--git-dir"], cwd) is None:
        raise NotAGitRepositoryError()

    remote_url = _git(["remote", "get-url", "origin"], cwd)
    if not remote_url:
        raise NoOriginRemoteError()

    return parse_remote_url(remote_url)


def count_local_workflows(cwd: Optional[PathLike] = None) -> Optional[int]:
    """
    Count workflow files under .github/workflows.

    Returns None when the directory is missing or empty, so callers can fall
    back to asking the API.
    """
    workflows_dir = Path(cwd or Path.cwd()) / WORKFLOWS_DIR
    if not workflows_dir.is_dir() or not any(workflows_dir.iterdir()):
        return None

    return sum(
        1
        for path in workflows_dir.rglob("*")
        if path.suffix in (".yml", ".yaml")
    )


def current_branch(cwd: Optional[PathLike] = None) -> Optional[str]:
    """Name of the checked out branch, None when detached or outside git."""
    return _git(["branch", "--show-current"], cwd) or None


def head_sha(cwd: Optional[PathLike] = None) -> str:
    """Commit SHA of HEAD."""
    sha = _git(["rev-parse", "HEAD"], cwd)
    if not sha:
        raise NotAGitRepositoryError()
    return sha
