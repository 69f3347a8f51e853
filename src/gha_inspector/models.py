"""
Data models for gha_inspector.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


# Fields requested from `gh run list --json`
RUN_FIELDS = [
    "databaseId",
    "status",
    "conclusion",
    "workflowName",
    "headBranch",
    "headSha",
    "event",
    "displayTitle",
    "createdAt",
    "url",
]


@dataclass
class RepoInfo:
    """A GitHub repository resolved from the origin remote."""
    owner: str
    name: str
    remote_url: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass
class WorkflowRun:
    """One execution of a GitHub Actions workflow."""
    run_id: int
    status: str
    conclusion: str
    workflow_name: str
    created_at: str
    head_branch: Optional[str] = None
    head_sha: Optional[str] = None
    event: Optional[str] = None
    title: Optional[str] = None
    url: Optional[str] = None

    @classmethod
    def from_gh(cls, data: Dict[str, Any]) -> "WorkflowRun":
        """Build a run from one element of `gh run list --json` output."""
        return cls(
            run_id=int(data["databaseId"]),
            status=data.get("status") or "",
            conclusion=data.get("conclusion") or "",
            workflow_name=data.get("workflowName") or "",
            created_at=data.get("createdAt") or "",
            head_branch=data.get("headBranch"),
            head_sha=data.get("headSha"),
            event=data.get("event"),
            title=data.get("displayTitle"),
            url=data.get("url"),
        )

    @property
    def in_progress(self) -> bool:
        return not self.conclusion

    def to_dict(self) -> dict:
        return {
            "databaseId": self.run_id,
            "status": self.status,
            "conclusion": self.conclusion,
            "workflowName": self.workflow_name,
            "createdAt": self.created_at,
            "headBranch": self.head_branch,
            "headSha": self.head_sha,
            "event": self.event,
            "displayTitle": self.title,
            "url": self.url,
        }


@dataclass
class Job:
    """A job inside a workflow run."""
    job_id: int
    name: str
    status: str
    conclusion: Optional[str]
    url: Optional[str] = None

    @classmethod
    def from_gh(cls, data: Dict[str, Any]) -> "Job":
        return cls(
            job_id=int(data.get("databaseId") or 0),
            name=data.get("name") or "",
            status=data.get("status") or "",
            conclusion=data.get("conclusion") or None,
            url=data.get("url"),
        )

    @property
    def failed(self) -> bool:
        return self.conclusion not in ("success", "skipped", None)


@dataclass
class Workflow:
    """A workflow definition registered with GitHub Actions."""
    workflow_id: int
    name: str
    state: str
    path: str

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Workflow":
        return cls(
            workflow_id=int(data["id"]),
            name=data.get("name", ""),
            state=data.get("state", ""),
            path=data.get("path", ""),
        )


@dataclass
class WorkflowSource:
    """How many workflows were found and where."""
    count: int
    source: str  # local, api

    def describe(self) -> str:
        if self.source == "local":
            return f"Found {self.count} workflow file(s) in .github/workflows/"
        return f"Found {self.count} workflow(s) via GitHub API"


@dataclass
class GhAccount:
    """An account known to `gh auth status`."""
    host: str
    login: str
    active: bool = False


@dataclass
class PatternMatch:
    """A failure pattern that matched somewhere in a log."""
    name: str
    description: str
    excerpts: List[str] = field(default_factory=list)


@dataclass
class FailureReport:
    """Failed-step logs of a run and the patterns found in them."""
    run_id: int
    logs: str
    matches: List[PatternMatch] = field(default_factory=list)

    @property
    def categories(self) -> List[str]:
        return [match.name for match in self.matches]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "run_id": self.run_id,
            "matches": [
                {
                    "name": match.name,
                    "description": match.description,
                    "excerpts": match.excerpts,
                }
                for match in self.matches
            ],
        }


@dataclass
class LatestStatus:
    """Status of the most recent run and the exit code it maps to."""
    status: str
    conclusion: str
    exit_code: int
