"""
Exception types raised by gha_inspector.
"""

from typing import List


class InspectorError(RuntimeError):
    """Base class for errors reported to the user by the CLI."""


class NotAGitRepositoryError(InspectorError):
    def __init__(self):
        super().__init__("Not a git repository")


class NoOriginRemoteError(InspectorError):
    def __init__(self):
        super().__init__("No origin remote configured")


class NotAGitHubRepositoryError(InspectorError):
    def __init__(self, remote_url: str):
        self.remote_url = remote_url
        super().__init__(f"Not a GitHub repository (remote: {remote_url})")


class GhNotInstalledError(InspectorError):
    def __init__(self, executable: str = "gh"):
        super().__init__(
            f"{executable} CLI is not installed\n"
            "Install from: https://cli.github.com/"
        )


class GhNotAuthenticatedError(InspectorError):
    def __init__(self):
        super().__init__("gh is not authenticated\nRun: gh auth login")


class GhCommandError(InspectorError):
    """A gh invocation exited non-zero or produced unusable output."""

    def __init__(self, args: List[str], returncode: int, stderr: str = ""):
        self.args_list = list(args)
        self.returncode = returncode
        self.stderr = stderr.strip()
        message = f"gh {' '.join(self.args_list)} failed with exit code {returncode}"
        if self.stderr:
            message += f": {self.stderr}"
        super().__init__(message)


class NoWorkflowsError(InspectorError):
    def __init__(self):
        super().__init__("No GitHub Actions workflows found")


class NoRunsFoundError(InspectorError):
    pass


class NoFailedLogsError(InspectorError):
    def __init__(self, run_id: int):
        self.run_id = run_id
        super().__init__(
            "No failed logs found (run may have succeeded or be in progress)"
        )


class RepoAccessError(InspectorError):
    def __init__(self, repo: str, reason: str = ""):
        self.repo = repo
        message = f"No access to repository {repo}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class NoCurrentBranchError(InspectorError):
    def __init__(self):
        super().__init__("No current branch (detached HEAD); pass --branch")
