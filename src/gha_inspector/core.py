"""
Core gha_inspector functionality.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

import requests
from rich.console import Console

from . import repo as repo_detection
from .accounts import AccountSwitcher
from .analyzers import FailurePattern, LogAnalyzer
from .config import Config
from .exceptions import InspectorError, NoCurrentBranchError, NoFailedLogsError, NoRunsFoundError, NoWorkflowsError
from .gh_cli import GhCLI
from .github_client import GitHubClient
from .models import FailureReport, Job, LatestStatus, RepoInfo, Workflow, WorkflowRun, WorkflowSource

logger = logging.getLogger(__name__)

COMMIT_RUN_FIELDS = ["databaseId", "status", "conclusion", "workflowName", "createdAt"]
FAILED_RUN_FIELDS = ["databaseId", "conclusion", "workflowName", "createdAt"]
RECENT_RUN_FIELDS = ["databaseId", "status", "conclusion", "workflowName", "headBranch", "createdAt", "event"]

# check_latest_status exit codes
STATUS_SUCCESS = 0
STATUS_FAILURE = 1
STATUS_IN_PROGRESS = 2
STATUS_OTHER = 3


@dataclass
class ActionsInspector:
    """Answers questions about a repository's GitHub Actions runs."""

    config: Config
    cwd: Optional[Path] = None
    console: Console = field(default_factory=Console)

    def __post_init__(self):
        """Initialize components after dataclass creation."""
        self.gh = GhCLI(
            executable=self.config.gh.executable,
            repo=self.config.repo,
            timeout=self.config.gh.timeout,
        )
        extra = [FailurePattern(p.name, p.description, p.regex) for p in self.config.analysis.extra_patterns]
        self.analyzer = LogAnalyzer.with_extra_patterns(extra, max_excerpts=self.config.analysis.max_excerpts)
        self._github_client: Optional[GitHubClient] = None

    @property
    def github_client(self) -> GitHubClient:
        # Created on first use; most operations only need gh itself
        if self._github_client is None:
            self._github_client = GitHubClient(
                token=self.config.github_token,
                api_url=self.config.api_url,
                gh=self.gh,
            )
        return self._github_client

    @property
    def accounts(self) -> AccountSwitcher:
        return AccountSwitcher(self.gh, self.github_client, console=self.console)

    def resolve_repo(self) -> RepoInfo:
        """The configured repository, or the one the origin remote points at."""
        if self.config.repo:
            owner, name = self.config.repo.split("/", 1)
            return RepoInfo(owner=owner, name=name)
        return repo_detection.detect_github_repo(self.cwd)

    # Repository detection

    def check_github_actions_enabled(self) -> WorkflowSource:
        """
        Check whether the repository has GitHub Actions workflows.

        Local workflow files are looked at first, unless a repository is
        configured explicitly; otherwise the API is asked, and only if gh is
        installed and authenticated.

        Raises:
            NoWorkflowsError: Neither source reports any workflow
        """
        # Local files describe the clone, not a configured repository
        if not self.config.repo:
            local_count = repo_detection.count_local_workflows(self.cwd)
            if local_count is not None:
                return WorkflowSource(count=local_count, source="local")

        if self.gh.is_usable():
            try:
                repo = self.resolve_repo()
                total_count, _ = self.github_client.list_workflows(repo.owner, repo.name)
            except (requests.RequestException, ValueError, InspectorError) as e:
                logger.debug(f"Workflow lookup via API failed: {e}")
            else:
                if total_count > 0:
                    return WorkflowSource(count=total_count, source="api")

        raise NoWorkflowsError()

    def check_github_actions_repo(self) -> Tuple[RepoInfo, WorkflowSource]:
        """Detect the GitHub repository and confirm it uses Actions."""
        repo = self.resolve_repo()
        logger.info(f"Detected GitHub repository: {repo.full_name}")
        return repo, self.check_github_actions_enabled()

    # Run queries

    def get_latest_run_for_commit(self, commit_sha: str) -> List[WorkflowRun]:
        """
        Get the workflow runs for a specific commit, newest first.

        Raises:
            ValueError: commit_sha is empty
            NoRunsFoundError: No run was triggered for the commit
        """
        if not commit_sha:
            raise ValueError("Commit SHA required")

        self.gh.check_available()
        runs = self.gh.list_runs(commit=commit_sha, limit=10, fields=COMMIT_RUN_FIELDS)
        if not runs:
            raise NoRunsFoundError(f"No workflow runs found for commit {commit_sha}")
        return runs

    def get_failed_runs(self, branch: Optional[str] = None) -> List[WorkflowRun]:
        """
        Get failed runs for a branch, defaulting to the current branch.

        Raises:
            NoCurrentBranchError: No branch given and HEAD is detached
            NoRunsFoundError: The branch has no failed runs
        """
        if not branch:
            branch = repo_detection.current_branch(self.cwd)
            if not branch:
                raise NoCurrentBranchError()

        self.gh.check_available()
        runs = self.gh.list_runs(branch=branch, status="failure", limit=10, fields=FAILED_RUN_FIELDS)
        if not runs:
            raise NoRunsFoundError(f"No failed runs found for branch {branch}")
        return runs

    def list_runs(
        self,
        commit: Optional[str] = None,
        branch: Optional[str] = None,
        status: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[WorkflowRun]:
        """List runs with any combination of filters."""
        self.gh.check_available()
        return self.gh.list_runs(
            commit=commit,
            branch=branch,
            status=status,
            limit=limit or self.config.default_limit,
        )

    def get_recent_runs(self, limit: Optional[int] = None) -> List[WorkflowRun]:
        self.gh.check_available()
        return self.gh.list_runs(limit=limit or self.config.default_limit, fields=RECENT_RUN_FIELDS)

    def get_current_commit_run(self) -> int:
        """Run ID of the newest run for the HEAD commit."""
        runs = self.get_latest_run_for_commit(repo_detection.head_sha(self.cwd))
        return runs[0].run_id

    def check_latest_status(self) -> LatestStatus:
        """
        Status of the most recent workflow run.

        The exit code is 0 for success, 1 for failure, 2 while still in
        progress and 3 for any other conclusion.
        """
        self.gh.check_available()
        runs = self.gh.list_runs(limit=1, fields=["status", "conclusion"])
        if not runs:
            raise NoRunsFoundError("No workflow runs found")

        latest = runs[0]
        if latest.conclusion == "success":
            exit_code = STATUS_SUCCESS
        elif latest.conclusion == "failure":
            exit_code = STATUS_FAILURE
        elif latest.in_progress:
            exit_code = STATUS_IN_PROGRESS
        else:
            exit_code = STATUS_OTHER

        return LatestStatus(status=latest.status, conclusion=latest.conclusion, exit_code=exit_code)

    # Run details

    def get_run_summary(self, run_id: Optional[int]) -> str:
        if not run_id:
            raise ValueError("Run ID required")
        self.gh.check_available()
        return self.gh.view_run(run_id, verbose=True)

    def get_failed_jobs(self, run_id: int) -> List[Job]:
        """Jobs of a run that did not succeed or get skipped."""
        if not run_id:
            raise ValueError("Run ID required")
        self.gh.check_available()
        return [job for job in self.gh.view_run_jobs(run_id) if job.failed]

    def analyze_failure_logs(self, run_id: Optional[int]) -> FailureReport:
        """
        Fetch the failed-step logs of a run and look for known failure patterns.

        Raises:
            ValueError: run_id is empty
            NoFailedLogsError: The run has no failed logs
        """
        if not run_id:
            raise ValueError("Run ID required")

        self.gh.check_available()
        logger.info(f"Fetching failed logs for run {run_id}...")

        logs = self.gh.failed_logs(run_id)
        if not logs.strip():
            raise NoFailedLogsError(run_id)

        return FailureReport(run_id=run_id, logs=logs, matches=self.analyzer.classify(logs))

    # Workflows

    def list_workflows(self) -> List[Workflow]:
        self.gh.check_available()
        repo = self.resolve_repo()
        _, workflows = self.github_client.list_workflows(repo.owner, repo.name)
        return workflows
