"""
Unit tests for gh account listing and switching.
"""

import io
from unittest.mock import MagicMock

import pytest
from rich.console import Console

from gha_inspector.accounts import AccountSwitcher, parse_auth_status
from gha_inspector.exceptions import RepoAccessError
from gha_inspector.models import GhAccount

CURRENT_GH_STATUS = """\
github.com
  ✓ Logged in to github.com account alice (keyring)
  - Active account: true
  - Git operations protocol: https
  - Token: gho_************************************
  - Token scopes: 'gist', 'read:org', 'repo', 'workflow'

  ✓ Logged in to github.com account bob-work (keyring)
  - Active account: false
  - Git operations protocol: ssh
  - Token: gho_************************************
"""

OLD_GH_STATUS = """\
github.com
  ✓ Logged in to github.com as alice (/home/alice/.config/gh/hosts.yml)
  ✓ Git operations for github.com configured to use https protocol.
ghe.example.com
  ✓ Logged in to ghe.example.com as alice-corp (oauth_token)
"""


class TestParseAuthStatus:
    """Test parsing of `gh auth status` output."""

    def test_current_format(self):
        accounts = parse_auth_status(CURRENT_GH_STATUS)

        assert accounts == [
            GhAccount(host="github.com", login="alice", active=True),
            GhAccount(host="github.com", login="bob-work", active=False),
        ]

    def test_old_format_marks_first_per_host_active(self):
        accounts = parse_auth_status(OLD_GH_STATUS)

        assert [(a.host, a.login, a.active) for a in accounts] == [
            ("github.com", "alice", True),
            ("ghe.example.com", "alice-corp", True),
        ]

    def test_failed_logins_are_skipped(self):
        text = (
            "github.com\n"
            "  X Failed to log in to github.com account stale (keyring)\n"
            "  - Active account: true\n"
        )

        assert parse_auth_status(text) == []

    def test_failed_login_after_active_account(self):
        """The detail lines of a failed entry do not touch the entry before it."""
        text = (
            "github.com\n"
            "  ✓ Logged in to github.com account alice (keyring)\n"
            "  - Active account: true\n"
            "  - Git operations protocol: https\n"
            "\n"
            "  X Failed to log in to github.com account bob (keyring)\n"
            "  - Active account: false\n"
            "  - The token in keyring is invalid.\n"
        )

        accounts = parse_auth_status(text)

        assert accounts == [GhAccount(host="github.com", login="alice", active=True)]

    def test_not_logged_in(self):
        assert parse_auth_status("You are not logged into any GitHub hosts. To log in, run: gh auth login") == []


class TestAccountSwitcher:
    """Test the interactive switcher."""

    @pytest.fixture
    def gh(self):
        gh = MagicMock()
        gh.auth_status_text.return_value = CURRENT_GH_STATUS
        gh.current_login.return_value = "alice"
        return gh

    @pytest.fixture
    def client(self):
        return MagicMock()

    @pytest.fixture
    def prompt(self):
        return MagicMock(return_value=2)

    @pytest.fixture
    def switcher(self, gh, client, prompt):
        return AccountSwitcher(gh, client, console=Console(file=io.StringIO()), prompt=prompt)

    def test_get_gh_account(self, switcher):
        assert switcher.get_gh_account() == "alice"

    def test_check_repo_access_splits_name(self, switcher, client):
        client.has_repository_access.return_value = True

        assert switcher.check_repo_access("cli/cli")
        client.has_repository_access.assert_called_once_with("cli", "cli")

    def test_check_repo_access_rejects_bad_name(self, switcher):
        with pytest.raises(ValueError):
            switcher.check_repo_access("just-a-name")

    def test_choose_account(self, switcher, prompt):
        accounts = switcher.list_accounts()

        chosen = switcher.choose_account(accounts)

        assert chosen.login == "bob-work"
        assert prompt.call_args.kwargs["type"].max == 2

    def test_choose_account_cancel(self, switcher, prompt):
        prompt.return_value = 0

        assert switcher.choose_account(switcher.list_accounts()) is None

    def test_switch_refreshes_token(self, switcher, gh, client):
        switcher.switch_to(GhAccount(host="github.com", login="bob-work"))

        gh.switch_account.assert_called_once_with("bob-work", "github.com")
        client.refresh_token.assert_called_once()

    def test_access_already_available(self, switcher, client, prompt, gh):
        client.has_repository_access.return_value = True

        account = switcher.ensure_repo_access("octo/hello")

        assert account.login == "alice"
        prompt.assert_not_called()
        gh.switch_account.assert_not_called()

    def test_switches_and_revalidates(self, switcher, client, gh):
        client.has_repository_access.side_effect = [False, True]

        account = switcher.ensure_repo_access("corp/private")

        assert account.login == "bob-work"
        assert account.active
        gh.switch_account.assert_called_once_with("bob-work", "github.com")
        assert client.has_repository_access.call_count == 2

    def test_still_no_access_after_switch(self, switcher, client):
        client.has_repository_access.return_value = False

        with pytest.raises(RepoAccessError, match="bob-work has no access either"):
            switcher.ensure_repo_access("corp/private")

    def test_user_cancels(self, switcher, client, prompt, gh):
        client.has_repository_access.return_value = False
        prompt.return_value = 0

        with pytest.raises(RepoAccessError, match="cancelled"):
            switcher.ensure_repo_access("corp/private")

        gh.switch_account.assert_not_called()

    def test_non_interactive_does_not_prompt(self, switcher, client, prompt):
        client.has_repository_access.return_value = False

        with pytest.raises(RepoAccessError):
            switcher.ensure_repo_access("corp/private", interactive=False)

        prompt.assert_not_called()

    def test_single_account_cannot_switch(self, switcher, gh, client, prompt):
        gh.auth_status_text.return_value = OLD_GH_STATUS.split("ghe.example.com\n")[0]
        client.has_repository_access.return_value = False

        with pytest.raises(RepoAccessError, match="no other gh accounts"):
            switcher.ensure_repo_access("corp/private")

        prompt.assert_not_called()
