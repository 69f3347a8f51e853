"""
Switching between accounts authenticated with gh.

gh can hold several logins per host. When the active one cannot see a
repository, the user is offered the others and gh is switched to the one
they pick.
"""

import logging
import re
from typing import Callable, List, Optional

import click
from rich.console import Console

from .exceptions import RepoAccessError
from .gh_cli import GhCLI
from .github_client import GitHubClient
from .models import GhAccount

logger = logging.getLogger(__name__)

# "Logged in to github.com account alice (keyring)" on current gh,
# "Logged in to github.com as alice (oauth_token)" on older releases
_LOGIN_RE = re.compile(r"Logged in to (\S+) (?:account|as) (\S+)")
# Any account entry, including ones gh could not log in with
_ENTRY_RE = re.compile(r"(?:Failed to log in|Logged in) to ", re.IGNORECASE)
_ACTIVE_RE = re.compile(r"Active account:\s*(true|false)", re.IGNORECASE)


def parse_auth_status(text: str) -> List[GhAccount]:
    """Extract the logged in accounts from `gh auth status` output."""
    accounts: List[GhAccount] = []
    current: Optional[GhAccount] = None
    saw_active_marker = False

    for line in text.splitlines():
        login = _LOGIN_RE.search(line)
        if login:
            current = GhAccount(host=login.group(1), login=login.group(2))
            accounts.append(current)
            continue
        if _ENTRY_RE.search(line):
            # failed entries are skipped along with their detail lines
            current = None
            continue

        active = _ACTIVE_RE.search(line)
        if active:
            saw_active_marker = True
            if current is not None:
                current.active = active.group(1).lower() == "true"

    if not saw_active_marker:
        seen_hosts = set()
        for account in accounts:
            account.active = account.host not in seen_hosts
            seen_hosts.add(account.host)

    return accounts


def _split_repo(repo: str):
    owner, _, name = repo.partition("/")
    if not owner or not name:
        raise ValueError(f"Repository must look like owner/name, got {repo!r}")
    return owner, name


class AccountSwitcher:
    """Lists gh accounts and switches between them."""

    def __init__(
        self,
        gh: GhCLI,
        client: GitHubClient,
        console: Optional[Console] = None,
        prompt: Optional[Callable[..., int]] = None,
    ):
        self.gh = gh
        self.client = client
        self.console = console or Console()
        self.prompt = prompt or click.prompt

    def list_accounts(self) -> List[GhAccount]:
        return parse_auth_status(self.gh.auth_status_text())

    def get_gh_account(self) -> str:
        """Login of the account gh is using right now."""
        return self.gh.current_login()

    def check_repo_access(self, repo: str) -> bool:
        owner, name = _split_repo(repo)
        return self.client.has_repository_access(owner, name)

    def choose_account(self, accounts: List[GhAccount], title: str = "Select a GitHub account") -> Optional[GhAccount]:
        """
        Show a numbered menu of accounts and return the one picked.

        Returns None when the user enters 0 to cancel.
        """
        self.console.print(f"\n[bold]{title}:[/]")
        for index, account in enumerate(accounts, 1):
            marker = " [green](active)[/]" if account.active else ""
            self.console.print(f"  {index}. {account.login} ({account.host}){marker}")
        self.console.print("  0. Cancel")

        choice = self.prompt("Account number", type=click.IntRange(0, len(accounts)), default=0)
        if choice == 0:
            return None
        return accounts[choice - 1]

    def switch_to(self, account: GhAccount) -> None:
        logger.info(f"Switching gh to {account.login} on {account.host}")
        self.gh.switch_account(account.login, account.host)
        self.client.refresh_token()

    def ensure_repo_access(self, repo: str, interactive: bool = True) -> GhAccount:
        """
        Make sure the active account can see a repository.

        If it cannot and other accounts are logged in, the user is asked to
        pick one, gh is switched to it and access is checked again.

        Returns:
            The account that has access

        Raises:
            RepoAccessError: No account could be found that sees the repository
        """
        accounts = self.list_accounts()
        active = next((a for a in accounts if a.active), None)

        if self.check_repo_access(repo):
            return active or GhAccount(host="github.com", login=self.get_gh_account(), active=True)

        current = active.login if active else "the current account"
        self.console.print(f"⚠️  [yellow]{current} cannot access {repo}[/]")

        others = [a for a in accounts if not a.active]
        if not others:
            raise RepoAccessError(repo, "no other gh accounts are logged in")
        if not interactive:
            raise RepoAccessError(repo, f"{current} has no access; run 'gha-inspector switch' to change account")

        chosen = self.choose_account(accounts, title=f"Choose an account with access to {repo}")
        if chosen is None:
            raise RepoAccessError(repo, "account selection cancelled")

        if not chosen.active:
            self.switch_to(chosen)
            for account in accounts:
                account.active = account is chosen

        if not self.check_repo_access(repo):
            raise RepoAccessError(repo, f"{chosen.login} has no access either")

        self.console.print(f"✅ Switched to {chosen.login}, access to {repo} confirmed")
        return chosen
