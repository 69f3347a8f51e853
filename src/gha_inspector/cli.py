"""
Command-line interface for gha_inspector.
"""

import functools
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__
from .config import Config, load_config
from .core import ActionsInspector
from .exceptions import InspectorError
from .models import FailureReport, WorkflowRun
from .repo import head_sha

console = Console()

STATUS_STYLES = {
    "success": "green",
    "failure": "red",
    "cancelled": "yellow",
    "skipped": "dim",
}


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def handle_errors(func):
    """Report library errors the same way for every subcommand."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        ctx = click.get_current_context()
        try:
            return func(*args, **kwargs)
        except (click.exceptions.Abort, click.ClickException):
            raise
        except KeyboardInterrupt:
            console.print("\n❌ Interrupted by user")
            sys.exit(1)
        except (InspectorError, ValueError) as e:
            console.print(f"❌ Error: {e}")
            sys.exit(1)
        except Exception as e:
            console.print(f"❌ Error: {e}")
            if ctx.obj and ctx.obj.get("verbose"):
                console.print_exception()
            sys.exit(1)

    return wrapper


@click.group()
@click.option(
    "--repo",
    "-R",
    help="Repository as owner/name (defaults to the origin remote)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="gha-inspector")
@click.pass_context
def main(ctx: click.Context, repo: Optional[str], config_path: Optional[Path], verbose: bool) -> None:
    """
    Inspect GitHub Actions workflow runs through the gh CLI.

    Examples:

        # Is this a GitHub repository with workflows?
        gha-inspector detect

        # Failed runs on the current branch
        gha-inspector failed

        # Which known failure patterns show up in a run's logs
        gha-inspector analyze 123456789
    """
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    try:
        config = load_config(config_path)
        if repo:
            config = Config.model_validate({**config.model_dump(), "repo": repo})
    except ValueError as e:
        console.print(f"❌ Error: {e}")
        sys.exit(1)

    ctx.obj["inspector"] = ActionsInspector(config=config, console=console)


def _inspector() -> ActionsInspector:
    return click.get_current_context().obj["inspector"]


def _print_runs(runs: List[WorkflowRun], title: str) -> None:
    table = Table(title=title)
    table.add_column("Run ID", justify="right")
    table.add_column("Workflow", style="bold")
    table.add_column("Status")
    table.add_column("Conclusion")
    table.add_column("Branch")
    table.add_column("Event")
    table.add_column("Created")

    for run in runs:
        style = STATUS_STYLES.get(run.conclusion, "")
        conclusion = f"[{style}]{run.conclusion}[/]" if style else run.conclusion or "-"
        table.add_row(
            str(run.run_id),
            run.workflow_name,
            run.status or "-",
            conclusion,
            run.head_branch or "-",
            run.event or "-",
            run.created_at,
        )

    console.print(table)


def _emit_runs(runs: List[WorkflowRun], json_output: bool, title: str) -> None:
    if json_output:
        print(json.dumps([run.to_dict() for run in runs], indent=2))
    else:
        _print_runs(runs, title)


@main.command()
@handle_errors
def detect() -> None:
    """Check that this is a GitHub repository with Actions workflows."""
    repo, source = _inspector().check_github_actions_repo()
    console.print(f"Detected GitHub repository: [bold]{repo.full_name}[/]")
    console.print(source.describe())


@main.command()
@click.option("--commit", "-c", help="Only runs for this commit SHA")
@click.option("--branch", "-b", help="Only runs on this branch")
@click.option("--status", "-s", help="Only runs with this status (e.g. failure, in_progress)")
@click.option("--limit", "-L", type=click.IntRange(min=1), help="Maximum number of runs")
@click.option("--json", "json_output", is_flag=True, help="Output results as JSON")
@handle_errors
def runs(commit: Optional[str], branch: Optional[str], status: Optional[str], limit: Optional[int], json_output: bool) -> None:
    """List recent workflow runs."""
    inspector = _inspector()
    if commit or branch or status:
        found = inspector.list_runs(commit=commit, branch=branch, status=status, limit=limit)
    else:
        found = inspector.get_recent_runs(limit=limit)
    _emit_runs(found, json_output, "Workflow Runs")


@main.command()
@click.option("--branch", "-b", help="Branch to look at (defaults to the current branch)")
@click.option("--json", "json_output", is_flag=True, help="Output results as JSON")
@handle_errors
def failed(branch: Optional[str], json_output: bool) -> None:
    """List failed runs on a branch."""
    _emit_runs(_inspector().get_failed_runs(branch), json_output, "Failed Runs")


@main.command("commit-run")
@click.argument("commit_sha", required=False)
@click.option("--json", "json_output", is_flag=True, help="Output all runs for the commit as JSON")
@handle_errors
def commit_run(commit_sha: Optional[str], json_output: bool) -> None:
    """Print the newest run ID for a commit (defaults to HEAD)."""
    inspector = _inspector()
    if json_output:
        found = inspector.get_latest_run_for_commit(commit_sha or head_sha(inspector.cwd))
        print(json.dumps([run.to_dict() for run in found], indent=2))
    elif commit_sha:
        print(inspector.get_latest_run_for_commit(commit_sha)[0].run_id)
    else:
        print(inspector.get_current_commit_run())


def _print_report(report: FailureReport, show_logs: bool) -> None:
    if show_logs:
        console.print(report.logs, markup=False, highlight=False)
        console.print()

    console.print("[bold]=== Common Error Patterns ===[/]")
    if not report.matches:
        console.print("No known error patterns found")
        return

    for match in report.matches:
        console.print(f"⚠️  Found: {match.description}")
        for excerpt in match.excerpts:
            console.print(f"     {excerpt}", markup=False, highlight=False, style="dim")


@main.command()
@click.argument("run_id", type=int)
@click.option("--logs/--no-logs", "show_logs", default=None, help="Print the failed logs before the findings")
@click.option("--json", "json_output", is_flag=True, help="Output findings as JSON")
@handle_errors
def analyze(run_id: int, show_logs: Optional[bool], json_output: bool) -> None:
    """Fetch a run's failed logs and report common error patterns."""
    inspector = _inspector()
    if not json_output:
        console.print(f"Fetching failed logs for run {run_id}...\n")

    report = inspector.analyze_failure_logs(run_id)

    if json_output:
        print(json.dumps(report.to_dict(), indent=2))
        return

    if show_logs is None:
        show_logs = inspector.config.analysis.show_logs
    _print_report(report, show_logs)


@main.command()
@click.argument("run_id", type=int)
@handle_errors
def summary(run_id: int) -> None:
    """Show gh's verbose summary of a run."""
    inspector = _inspector()
    click.echo(inspector.get_run_summary(run_id), nl=False)

    failed_jobs = inspector.get_failed_jobs(run_id)
    if failed_jobs:
        console.print(f"\n[red]{len(failed_jobs)} failed job(s):[/]")
        for job in failed_jobs:
            console.print(f"  ❌ {job.name} ({job.conclusion})")


@main.command()
@handle_errors
def workflows() -> None:
    """List the workflows registered in the repository."""
    found = _inspector().list_workflows()

    table = Table(title="Available workflows")
    table.add_column("ID", justify="right")
    table.add_column("Name", style="bold")
    table.add_column("State")
    table.add_column("Path", style="italic")
    for workflow in found:
        table.add_row(str(workflow.workflow_id), workflow.name, workflow.state, workflow.path)

    console.print(table)


@main.command()
@handle_errors
def status() -> None:
    """
    Show the status of the most recent run.

    Exits 0 on success, 1 on failure, 2 while in progress, 3 otherwise.
    """
    latest = _inspector().check_latest_status()
    console.print(f"Status: {latest.status}")
    console.print(f"Conclusion: {latest.conclusion}")
    sys.exit(latest.exit_code)


@main.command()
@handle_errors
def accounts() -> None:
    """List the accounts gh is logged in with."""
    found = _inspector().accounts.list_accounts()
    if not found:
        console.print("No authenticated gh accounts found. Run: gh auth login")
        sys.exit(1)

    for account in found:
        marker = " [green](active)[/]" if account.active else ""
        console.print(f"{account.login} ({account.host}){marker}")


@main.command()
@handle_errors
def whoami() -> None:
    """Print the login gh is currently using."""
    print(_inspector().accounts.get_gh_account())


@main.command()
@click.argument("repository")
@click.option(
    "--switch/--no-switch",
    default=True,
    help="Offer to switch gh account when access is missing",
    show_default=True,
)
@handle_errors
def access(repository: str, switch: bool) -> None:
    """Check that gh can access REPOSITORY (owner/name)."""
    switcher = _inspector().accounts
    if not switch:
        if not switcher.check_repo_access(repository):
            console.print(f"❌ No access to {repository}")
            sys.exit(1)
        console.print(f"✅ Access to {repository} confirmed")
        return

    account = switcher.ensure_repo_access(repository, interactive=sys.stdin.isatty())
    console.print(f"✅ {account.login} can access {repository}")


@main.command()
@click.argument("login", required=False)
@handle_errors
def switch(login: Optional[str]) -> None:
    """Switch the active gh account, choosing from a menu if LOGIN is omitted."""
    switcher = _inspector().accounts
    found = switcher.list_accounts()

    if login:
        chosen = next((a for a in found if a.login == login), None)
        if chosen is None:
            console.print(f"❌ Error: {login} is not logged in with gh")
            sys.exit(1)
    else:
        if len(found) < 2:
            console.print("Only one gh account is logged in; nothing to switch to")
            return
        chosen = switcher.choose_account(found)
        if chosen is None:
            console.print("Cancelled")
            return

    if chosen.active:
        console.print(f"{chosen.login} is already the active account")
        return

    switcher.switch_to(chosen)
    console.print(f"✅ Switched to {chosen.login} ({chosen.host})")


if __name__ == "__main__":
    main()
