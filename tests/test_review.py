"""Tests for the review workflow."""

import pytest

from prkit.errors import ExecutionError, UsageError
from prkit.integrations.ai import AgentRunner
from prkit.models import AIConfig, Agent
from prkit.workflows.review import ReviewWorkflow

PR_URL = "https://github.com/owner/repo/pull/7"
REVIEW = "## Summary\n\n    unchanged indentation\n\nNo issues found.\n\n"


@pytest.fixture
def review_executor(scripted_repo):
    scripted_repo.installed.update({"copilot", "gemini"})
    scripted_repo.on("gh", "pr", "diff", stdout="diff --git a/x b/x\n+1\n")
    scripted_repo.on("copilot", stdout=REVIEW)
    scripted_repo.on("gemini", stdout=REVIEW)
    return scripted_repo


@pytest.fixture
def output():
    return []


def make_workflow(executor, github, output, repo=None, config=None):
    return ReviewWorkflow(
        github,
        AgentRunner(executor, config or AIConfig()),
        config or AIConfig(),
        repo=repo,
        output=output.append,
    )


class TestReviewWorkflow:
    """Test ReviewWorkflow."""

    def test_review_is_passed_through(self, review_executor, github, output):
        result = make_workflow(review_executor, github, output).run(PR_URL)

        assert output == [REVIEW]
        assert result.review == REVIEW
        assert result.target.pr_url == PR_URL
        assert result.run.history == [
            "start",
            "resolve_pr_url",
            "select_agent",
            "select_model",
            "invoke_agent",
            "stream_output",
            "done",
        ]

    def test_default_output_writes_review_verbatim(self, review_executor, github, capsys):
        ReviewWorkflow(github, AgentRunner(review_executor, AIConfig()), AIConfig()).run(PR_URL)

        assert capsys.readouterr().out == REVIEW

    def test_default_agent_and_model(self, review_executor, github, output):
        result = make_workflow(review_executor, github, output).run(PR_URL)

        assert result.target.agent == Agent.COPILOT
        assert result.target.model == "gpt-5.2-codex"
        call = review_executor.calls_to("copilot")[0]
        assert call[:4] == ["copilot", "--silent", "--model", "gpt-5.2-codex"]

    def test_prompt_contains_metadata_and_diff(self, review_executor, github, output):
        make_workflow(review_executor, github, output).run(PR_URL)

        prompt = review_executor.calls_to("copilot")[0][-1]
        assert f"PR URL: {PR_URL}" in prompt
        assert '"headRefName": "feat-add-thing"' in prompt
        assert "diff --git a/x b/x" in prompt

    def test_agent_and_model_override(self, review_executor, github, output):
        result = make_workflow(review_executor, github, output).run(
            PR_URL, agent=Agent.GEMINI, model="gemini-custom"
        )

        assert result.target.model == "gemini-custom"
        assert review_executor.calls_to("gemini")[0][:4] == [
            "gemini", "--model", "gemini-custom", "--sandbox",
        ]

    def test_configured_agent(self, review_executor, github, output):
        config = AIConfig(review_agent=Agent.GEMINI, gemini_review_model="g-review")

        result = make_workflow(review_executor, github, output, config=config).run(PR_URL)

        assert result.target.agent == Agent.GEMINI
        assert result.target.model == "g-review"

    def test_url_is_canonicalized(self, review_executor, github, output):
        result = make_workflow(review_executor, github, output).run(
            "github.com/owner/repo/pull/7/files#diff-1"
        )
        assert result.target.pr_url == PR_URL

    def test_malformed_url(self, review_executor, github, output):
        with pytest.raises(UsageError):
            make_workflow(review_executor, github, output).run("https://github.com/owner/repo")
        assert review_executor.calls == []
        assert output == []

    def test_agent_not_installed(self, review_executor, github, output):
        review_executor.installed.clear()

        with pytest.raises(UsageError, match="copilot CLI is not installed"):
            make_workflow(review_executor, github, output).run(PR_URL)

        assert not review_executor.ran("gh", "pr", "diff")

    def test_agent_failure(self, review_executor, github, output):
        review_executor.on("copilot", stderr="authentication required", returncode=1)

        with pytest.raises(ExecutionError, match="authentication required"):
            make_workflow(review_executor, github, output).run(PR_URL)

        assert output == []

    def test_current_branch_pr(self, review_executor, github, repo, output, pr_json):
        review_executor.on("gh", "pr", "list", stdout=f"[{pr_json()}]")

        result = make_workflow(review_executor, github, output, repo=repo).run()

        assert result.target.pr_url == PR_URL
        assert review_executor.calls_to("gh", "pr", "list")[0][4] == "feat-add-thing"

    def test_current_branch_without_pr(self, review_executor, github, repo, output):
        with pytest.raises(UsageError, match="no open pull request"):
            make_workflow(review_executor, github, output, repo=repo).run()

    def test_no_url_outside_repository(self, review_executor, github, output):
        with pytest.raises(UsageError, match="not inside a git repository"):
            make_workflow(review_executor, github, output).run()
