"""Tests for CLI interface."""

import json
from unittest.mock import Mock, patch

from prkit.cli import cli
from prkit.core import PrkitCore
from prkit.errors import ExecutionError, UsageError
from prkit.models import (
    Agent,
    CommitInfo,
    Config,
    GitHubConfig,
    PullRequest,
    WorkflowRun,
)
from prkit.workflows.open_pr import OpenPrResult
from prkit.workflows.squash import SquashPlan, SquashResult

PR = PullRequest(
    number=7,
    title="feat: add thing",
    url="https://github.com/owner/repo/pull/7",
    head_branch="feat-add-thing",
)


def squash_result(dry_run):
    plan = SquashPlan(
        pull_request=PR,
        branch="feat-add-thing",
        default_branch="main",
        upstream="origin/main",
        merge_base="base123",
        commits=[
            CommitInfo(sha="a1", subject="wip", author_name="Ada", author_email="ada@x.org"),
            CommitInfo(sha="b2", subject="fix", author_name="Bob", author_email="bob@x.org"),
        ],
        authors=["Ada <ada@x.org>", "Bob <bob@x.org>"],
        author="Ada <ada@x.org>",
        committer="Ada <ada@x.org>",
        co_authors=["Bob <bob@x.org>"],
        message="feat: add thing\n\nCo-authored-by: Bob <bob@x.org>",
    )
    return SquashResult(plan=plan, dry_run=dry_run, pushed=not dry_run, run=WorkflowRun(name="squash"))


class TestCLI:
    """Test CLI commands."""

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "prkit version" in result.output

    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("open-pr", "squash", "review", "checkout", "config"):
            assert command in result.output

    @patch("prkit.cli.get_core")
    def test_open_pr(self, mock_get_core, runner):
        core = mock_get_core.return_value
        core.open_pr_workflow.return_value.run.return_value = OpenPrResult(
            pull_request=PR, branch="feat-add-thing", created=True, run=WorkflowRun(name="open-pr")
        )

        result = runner.invoke(cli, ["open-pr", "-m", "feat: add thing", "--agent", "gemini"])

        assert result.exit_code == 0
        assert "Created PR #7: https://github.com/owner/repo/pull/7" in result.output
        core.open_pr_workflow.assert_called_once_with(agent=Agent.GEMINI, model=None)
        core.open_pr_workflow.return_value.run.assert_called_once_with(message="feat: add thing")

    def test_open_pr_rejects_unknown_agent(self, runner):
        result = runner.invoke(cli, ["open-pr", "--agent", "claude"])
        assert result.exit_code == 2

    @patch("prkit.cli.get_core")
    def test_open_pr_usage_error(self, mock_get_core, runner):
        mock_get_core.return_value.open_pr_workflow.return_value.run.side_effect = UsageError(
            "Nothing to commit"
        )

        result = runner.invoke(cli, ["open-pr", "-m", "x"])

        assert result.exit_code == 1
        assert "Error: Nothing to commit" in result.output

    @patch("prkit.cli.get_core")
    def test_squash(self, mock_get_core, runner):
        mock_get_core.return_value.squash_workflow.return_value.run.return_value = squash_result(False)

        result = runner.invoke(cli, ["squash"])

        assert result.exit_code == 0
        assert "Squashed 2 commit(s) of PR #7" in result.output
        assert "Author: Ada <ada@x.org>" in result.output
        assert "Co-authors: Bob <bob@x.org>" in result.output

    @patch("prkit.cli.get_core")
    def test_squash_dry_run(self, mock_get_core, runner):
        workflow = mock_get_core.return_value.squash_workflow.return_value
        workflow.run.return_value = squash_result(True)

        result = runner.invoke(cli, ["squash", "--dry-run"])

        assert result.exit_code == 0
        workflow.run.assert_called_once_with(dry_run=True)
        assert "DRY RUN" in result.output
        assert "Co-authored-by: Bob <bob@x.org>" in result.output

    @patch("prkit.cli.get_core")
    def test_review_with_url(self, mock_get_core, runner):
        core = mock_get_core.return_value

        result = runner.invoke(
            cli, ["review", "https://github.com/o/r/pull/1", "--agent", "gemini", "--model", "m"]
        )

        assert result.exit_code == 0
        core.review_workflow.assert_called_once_with(inside_repo=False)
        core.review_workflow.return_value.run.assert_called_once_with(
            pr_url="https://github.com/o/r/pull/1", agent=Agent.GEMINI, model="m"
        )

    @patch("prkit.cli.get_core")
    def test_review_current_branch(self, mock_get_core, runner):
        runner.invoke(cli, ["review"])
        mock_get_core.return_value.review_workflow.assert_called_once_with(inside_repo=True)

    @patch("prkit.cli.get_core")
    def test_checkout(self, mock_get_core, runner, tmp_path):
        run_result = Mock(repo_dir=tmp_path)
        run_result.pr.number = 42
        mock_get_core.return_value.checkout_workflow.return_value.run.return_value = run_result

        result = runner.invoke(cli, ["checkout", "https://github.com/o/r/pull/42"])

        assert result.exit_code == 0
        assert "Checked out PR #42" in result.output

    def test_checkout_requires_url(self, runner):
        result = runner.invoke(cli, ["checkout"])
        assert result.exit_code == 2


class TestCLIEndToEnd:
    """Run commands against a scripted executor."""

    def make_core(self, executor, tmp_path):
        executor.on("git", "rev-parse", "--show-toplevel", stdout=f"{tmp_path}\n")
        executor.on("git", "remote", stdout="origin\n")
        executor.on("gh", "repo", "set-default", "--view", stdout="owner/repo\n")
        return PrkitCore(
            config=Config(github=GitHubConfig(open_in_browser=False)),
            executor=executor,
            cwd=tmp_path,
        )

    def test_open_pr_push_failure(self, runner, scripted_repo, tmp_path):
        """A failed push exits 1 and shows git's stderr."""
        core = self.make_core(scripted_repo, tmp_path)
        scripted_repo.on("git", "diff", "--name-only", "--cached", stdout="a.py\n")
        scripted_repo.on("git", "push", stderr="fatal: Authentication failed", returncode=128)

        with patch("prkit.cli.get_core", return_value=core):
            result = runner.invoke(cli, ["open-pr", "-m", "feat: add thing"])

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "fatal: Authentication failed" in result.output
        assert not scripted_repo.ran("gh", "pr", "create")

    def test_open_pr(self, runner, scripted_repo, tmp_path):
        core = self.make_core(scripted_repo, tmp_path)
        scripted_repo.on("git", "diff", "--name-only", "--cached", stdout="a.py\n")

        with patch("prkit.cli.get_core", return_value=core):
            result = runner.invoke(cli, ["open-pr", "-m", "feat: add thing"])

        assert result.exit_code == 0
        assert "Created PR #7" in result.output

    def test_review_missing_agent(self, runner, fake_executor, tmp_path):
        core = PrkitCore(config=Config(), executor=fake_executor, cwd=tmp_path)

        with patch("prkit.cli.get_core", return_value=core):
            result = runner.invoke(cli, ["review", "https://github.com/o/r/pull/1"])

        assert result.exit_code == 1
        assert "copilot CLI is not installed" in result.output
        assert fake_executor.calls == []

    def test_not_a_repository(self, runner, fake_executor, tmp_path):
        fake_executor.on("git", "rev-parse", stderr="fatal: not a git repository", returncode=128)
        core = PrkitCore(config=Config(), executor=fake_executor, cwd=tmp_path)

        with patch("prkit.cli.get_core", return_value=core):
            result = runner.invoke(cli, ["squash"])

        assert result.exit_code == 1
        assert "fatal: not a git repository" in result.output


class TestConfigCommands:
    """Test config subcommands."""

    def test_config_get(self, runner):
        result = runner.invoke(cli, ["config", "get", "ai.review_agent"])
        assert result.exit_code == 0
        assert "ai.review_agent: copilot" in result.output

    def test_config_get_missing(self, runner):
        result = runner.invoke(cli, ["config", "get", "nope.key"])
        assert result.exit_code == 1
        assert "Configuration key not found: nope.key" in result.output

    def test_config_show_json(self, runner):
        result = runner.invoke(cli, ["config", "show", "--format", "json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["workflows"]["max_title_length"] == 70

    def test_config_show_table(self, runner):
        result = runner.invoke(cli, ["config", "show"])
        assert result.exit_code == 0
        assert "github.remote" in result.output


def test_execution_error_message():
    error = ExecutionError(["git", "push"], 1, stderr="rejected\n")
    assert str(error) == "Command 'git push' failed with exit code 1: rejected"
