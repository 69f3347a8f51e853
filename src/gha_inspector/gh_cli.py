"""
Wrapper around the GitHub CLI (gh).
"""

import json
import logging
import shutil
import subprocess
from typing import Any, List, Optional

from .exceptions import GhCommandError, GhNotAuthenticatedError, GhNotInstalledError
from .models import RUN_FIELDS, Job, WorkflowRun

logger = logging.getLogger(__name__)


class GhCLI:
    """Runs gh subcommands and parses what they print."""

    def __init__(self, executable: str = "gh", repo: Optional[str] = None, timeout: float = 120.0):
        """
        Initialize the wrapper.

        Args:
            executable: Name or path of the gh binary
            repo: owner/name to pass as --repo; None lets gh use the current directory
            timeout: Seconds to wait for any single gh invocation
        """
        self.executable = executable
        self.repo = repo
        self.timeout = timeout

    def _invoke(self, args: List[str]) -> subprocess.CompletedProcess:
        logger.debug(f"{self.executable} {' '.join(args)}")
        try:
            return subprocess.run(
                [self.executable, *args],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            raise GhNotInstalledError(self.executable)
        except subprocess.TimeoutExpired:
            raise GhCommandError(args, -1, f"timed out after {self.timeout:g}s")

    def run(self, args: List[str]) -> str:
        """Run gh and return its stdout, raising GhCommandError on failure."""
        result = self._invoke(args)
        if result.returncode != 0:
            raise GhCommandError(args, result.returncode, result.stderr)
        return result.stdout

    def run_json(self, args: List[str]) -> Any:
        """Run gh and parse its stdout as JSON."""
        output = self.run(args)
        if not output.strip():
            return None
        try:
            return json.loads(output)
        except json.JSONDecodeError as e:
            raise GhCommandError(args, 0, f"could not parse JSON output: {e}")

    def _with_repo(self, args: List[str]) -> List[str]:
        if self.repo:
            return [*args, "--repo", self.repo]
        return args

    def is_installed(self) -> bool:
        return shutil.which(self.executable) is not None

    def check_available(self) -> None:
        """
        Make sure gh is installed and authenticated.

        Raises:
            GhNotInstalledError: gh is not on PATH
            GhNotAuthenticatedError: `gh auth status` reports no usable login
        """
        if not self.is_installed():
            raise GhNotInstalledError(self.executable)

        if self._invoke(["auth", "status"]).returncode != 0:
            raise GhNotAuthenticatedError()

    def is_usable(self) -> bool:
        try:
            self.check_available()
        except (GhNotInstalledError, GhNotAuthenticatedError):
            return False
        return True

    # Runs

    def list_runs(
        self,
        commit: Optional[str] = None,
        branch: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 10,
        fields: Optional[List[str]] = None,
    ) -> List[WorkflowRun]:
        """
        List workflow runs, newest first.

        Args:
            commit: Only runs for this commit SHA
            branch: Only runs on this branch
            status: Only runs with this status or conclusion (e.g. failure)
            limit: Maximum number of runs to return
            fields: JSON fields to request; databaseId is always included
        """
        fields = list(fields or RUN_FIELDS)
        if "databaseId" not in fields:
            fields.insert(0, "databaseId")

        args = ["run", "list"]
        if commit:
            args += ["--commit", commit]
        if branch:
            args += ["--branch", branch]
        if status:
            args += ["--status", status]
        args += ["--json", ",".join(fields), "--limit", str(limit)]

        runs = self.run_json(self._with_repo(args)) or []
        return [WorkflowRun.from_gh(run) for run in runs]

    def view_run(self, run_id: int, verbose: bool = True) -> str:
        """Human-readable run summary as printed by `gh run view`."""
        args = ["run", "view", str(run_id)]
        if verbose:
            args.append("--verbose")
        return self.run(self._with_repo(args))

    def view_run_jobs(self, run_id: int) -> List[Job]:
        data = self.run_json(self._with_repo(["run", "view", str(run_id), "--json", "jobs"])) or {}
        return [Job.from_gh(job) for job in data.get("jobs", [])]

    def failed_logs(self, run_id: int) -> str:
        """Logs of the failed steps of a run; empty when nothing failed."""
        return self.run(self._with_repo(["run", "view", str(run_id), "--log-failed"]))

    def api(self, path: str, jq: Optional[str] = None) -> str:
        args = ["api", path]
        if jq:
            args += ["--jq", jq]
        return self.run(args)

    # Authentication

    def auth_status_text(self) -> str:
        """
        Output of `gh auth status`.

        Depending on the gh version the report goes to stdout or stderr, and
        the exit code is non-zero when any stored token is invalid, so both
        streams are returned and the exit code is ignored.
        """
        result = self._invoke(["auth", "status"])
        return "\n".join(part for part in (result.stdout, result.stderr) if part)

    def auth_token(self) -> Optional[str]:
        try:
            token = self.run(["auth", "token"]).strip()
        except GhCommandError:
            return None
        return token or None

    def current_login(self) -> str:
        """Login of the account gh is currently using."""
        return self.api("user", jq=".login").strip()

    def switch_account(self, login: str, hostname: str = "github.com") -> None:
        self.run(["auth", "switch", "--hostname", hostname, "--user", login])
