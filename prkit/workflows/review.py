"""
Review Workflow

Hands a pull request to an AI agent for review and passes the agent's
Markdown review through to the user untouched.
"""

from dataclasses import dataclass
from typing import Callable, Optional

import click

from ..errors import UsageError
from ..integrations.ai import AgentRunner
from ..integrations.git import GitRepository
from ..integrations.github import GitHubCLI
from ..integrations.prompts import build_review_prompt
from ..models import AIConfig, Agent, GitHubPRRef, ReviewStep, ReviewTarget, WorkflowRun
from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ReviewResult:
    """Outcome of a review run."""

    target: ReviewTarget
    review: str
    run: WorkflowRun


class ReviewWorkflow:
    """Sequences the review steps."""

    def __init__(
        self,
        github: GitHubCLI,
        agents: AgentRunner,
        config: AIConfig,
        repo: Optional[GitRepository] = None,
        output: Optional[Callable[[str], None]] = None,
    ):
        """Initialize review workflow.

        Args:
            github: GitHub facade used to read the PR
            agents: Agent runner
            config: AI configuration (default agent and models)
            repo: Repository used to find the current branch's PR when no URL is given
            output: Sink for the review text (written to stdout as is by default)
        """
        self.github = github
        self.agents = agents
        self.config = config
        self.repo = repo
        self.output = output or (lambda text: click.echo(text, nl=False))

    def run(
        self,
        pr_url: Optional[str] = None,
        agent: Optional[Agent] = None,
        model: Optional[str] = None,
    ) -> ReviewResult:
        """Execute the workflow.

        Raises:
            UsageError: If the URL is malformed, no PR can be found or the
                agent is not installed
            ExecutionError: If gh or the agent fails
        """
        run = WorkflowRun(name="review")
        run.enter(ReviewStep.START)

        run.enter(ReviewStep.RESOLVE_PR_URL)
        url = self.resolve_pr_url(pr_url)

        run.enter(ReviewStep.SELECT_AGENT)
        agent = agent or self.config.review_agent

        run.enter(ReviewStep.SELECT_MODEL)
        model = model or self.config.review_model(agent)

        target = ReviewTarget(pr_url=url, agent=agent, model=model)

        run.enter(ReviewStep.INVOKE_AGENT)
        self.agents.require(agent)
        metadata = self.github.pr_metadata(url)
        diff = self.github.pr_diff(url)
        review = self.agents.review(target, build_review_prompt(url, metadata, diff))

        run.enter(ReviewStep.STREAM_OUTPUT)
        self.output(review)

        run.enter(ReviewStep.DONE)
        return ReviewResult(target=target, review=review, run=run)

    def resolve_pr_url(self, pr_url: Optional[str]) -> str:
        """Validated PR URL, or the URL of the current branch's open PR."""
        if pr_url:
            return GitHubPRRef.parse(pr_url).url

        if self.repo is None:
            raise UsageError("No PR URL given and not inside a git repository")
        branch = self.repo.current_branch()
        pull_request = self.github.find_open_pr(branch)
        if pull_request is None:
            raise UsageError(f"No PR URL given and no open pull request for branch '{branch}'")
        return pull_request.url
