"""Shared test configuration and fixtures."""

import json
import os
from pathlib import Path

import pytest

from prkit.config import ConfigManager
from prkit.integrations.git import GitRepository
from prkit.integrations.github import GitHubCLI
from prkit.utils.shell import ShellResult


class FakeExecutor:
    """Shell executor that records commands and replays scripted results.

    Responses are matched on a command prefix; the most recently registered
    matching prefix wins. Unscripted commands succeed with empty output.
    """

    def __init__(self, installed=()):
        self.calls = []
        self.cwds = []
        self.installed = set(installed)
        self._responses = []

    def on(self, *prefix, stdout="", stderr="", returncode=0):
        """Script the result of every command starting with ``prefix``."""
        self._responses.insert(0, (tuple(prefix), stdout, stderr, returncode))
        return self

    def run(self, command, args=(), cwd=None, check=True, title=None, quiet=False):
        full = [command, *args]
        self.calls.append(full)
        self.cwds.append(cwd)

        stdout, stderr, returncode = "", "", 0
        for prefix, out, err, code in self._responses:
            if tuple(full[:len(prefix)]) == prefix:
                stdout, stderr, returncode = out, err, code
                break

        result = ShellResult(returncode, stdout, stderr, full, Path(cwd) if cwd else None)
        if check:
            result.check()
        return result

    def which(self, name):
        return f"/usr/bin/{name}" if name in self.installed else None

    def ran(self, *prefix):
        """Whether any recorded command starts with ``prefix``."""
        return any(tuple(call[:len(prefix)]) == prefix for call in self.calls)

    def calls_to(self, *prefix):
        """Recorded commands starting with ``prefix``."""
        return [call for call in self.calls if tuple(call[:len(prefix)]) == prefix]

    def index_of(self, *prefix):
        """Position of the first recorded command starting with ``prefix``."""
        for i, call in enumerate(self.calls):
            if tuple(call[:len(prefix)]) == prefix:
                return i
        raise AssertionError(f"{' '.join(prefix)} was never run")


def pr_data(**overrides):
    """JSON object as printed by ``gh pr view --json``."""
    data = {
        "number": 7,
        "title": "feat: add thing",
        "body": "",
        "url": "https://github.com/owner/repo/pull/7",
        "state": "OPEN",
        "baseRefName": "main",
        "headRefName": "feat-add-thing",
        "author": {"login": "octocat"},
    }
    data.update(overrides)
    return data


@pytest.fixture
def temp_home(tmp_path):
    """Create a temporary home directory for tests."""
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def isolated_config_manager(temp_home, monkeypatch):
    """ConfigManager that never reads real config files."""
    monkeypatch.setattr(Path, "home", lambda: temp_home)
    monkeypatch.setattr("prkit.config.get_git_root", lambda: None)

    manager = ConfigManager()
    manager._user_config_path = temp_home / ".prkit" / "config.yaml"
    manager._project_config_path = None
    manager._config = None
    return manager


@pytest.fixture(autouse=True)
def mock_global_config_manager(isolated_config_manager, monkeypatch):
    """Replace the global config_manager for all tests."""
    import prkit.cli
    import prkit.config

    monkeypatch.setattr(prkit.config, "config_manager", isolated_config_manager)
    monkeypatch.setattr(prkit.cli, "config_manager", isolated_config_manager)

    for key in list(os.environ):
        if key.startswith("PRKIT_"):
            monkeypatch.delenv(key)

    return isolated_config_manager


@pytest.fixture
def fake_executor():
    """Recording executor with nothing installed."""
    return FakeExecutor()


@pytest.fixture
def repo_root(tmp_path):
    """Directory standing in for the repository root."""
    root = tmp_path / "repo"
    root.mkdir()
    return root


@pytest.fixture
def repo(fake_executor, repo_root):
    """Git facade on the fake executor."""
    return GitRepository(fake_executor, repo_root)


@pytest.fixture
def github(fake_executor, repo_root):
    """GitHub facade on the fake executor."""
    return GitHubCLI(fake_executor, cwd=repo_root)


@pytest.fixture
def scripted_repo(fake_executor):
    """Executor scripted as a repo on 'feat-add-thing' whose default branch is 'main'."""
    fake_executor.on("gh", "repo", "view", stdout=json.dumps({"defaultBranchRef": {"name": "main"}}))
    fake_executor.on("git", "branch", "--show-current", stdout="feat-add-thing\n")
    fake_executor.on("gh", "pr", "list", stdout="[]")
    fake_executor.on("gh", "pr", "create", stdout="https://github.com/owner/repo/pull/7\n")
    fake_executor.on("gh", "pr", "view", stdout=json.dumps(pr_data()))
    return fake_executor


@pytest.fixture
def runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner
    return CliRunner()


@pytest.fixture
def pr_json():
    """Builder for ``gh pr view --json`` output."""
    return lambda **overrides: json.dumps(pr_data(**overrides))
