"""Wires configuration, the shell executor and the facades into workflows."""

from pathlib import Path
from typing import Optional

from prkit.config import get_config
from prkit.integrations.ai import AgentRunner
from prkit.integrations.git import GitRepository
from prkit.integrations.github import GitHubCLI
from prkit.models import Agent, Config
from prkit.utils.logger import get_logger
from prkit.utils.shell import ShellExecutor
from prkit.workflows.checkout import CheckoutWorkflow
from prkit.workflows.commit_message import CommitMessageDeriver
from prkit.workflows.open_pr import OpenPrWorkflow
from prkit.workflows.review import ReviewWorkflow
from prkit.workflows.squash import SquashWorkflow

logger = get_logger(__name__)


class PrkitCore:
    """Builds workflows for the current repository."""

    def __init__(
        self,
        config: Optional[Config] = None,
        executor: Optional[ShellExecutor] = None,
        cwd: Optional[Path] = None,
    ):
        """Initialize core.

        Args:
            config: Configuration (loaded from disk if None)
            executor: Shell executor shared by every integration
            cwd: Directory to look for the repository in
        """
        self.config = config or get_config()
        self.executor = executor or ShellExecutor()
        self.cwd = cwd
        self._repo: Optional[GitRepository] = None

    @property
    def repo(self) -> GitRepository:
        """Repository containing ``cwd``."""
        if self._repo is None:
            self._repo = GitRepository.discover(
                self.executor, self.cwd, remote=self.config.github.remote
            )
        return self._repo

    def github(self) -> GitHubCLI:
        """GitHub facade bound to the repository, with gh's default repo set."""
        github = GitHubCLI(self.executor, cwd=self.repo.root)
        github.ensure_default_repo(self.repo.remotes())
        return github

    def agents(self, cwd: Optional[Path] = None) -> AgentRunner:
        """Agent runner."""
        return AgentRunner(self.executor, self.config.ai, cwd=cwd)

    def open_pr_workflow(
        self, agent: Optional[Agent] = None, model: Optional[str] = None
    ) -> OpenPrWorkflow:
        """open-pr workflow; ``agent`` overrides ``ai.commit_agent``."""
        workflows = self.config.workflows
        deriver = CommitMessageDeriver(
            self.repo,
            agents=self.agents(self.repo.root),
            agent=agent or self.config.ai.commit_agent,
            model=model,
            agent_explicit=agent is not None,
            max_title_length=workflows.max_title_length,
            branch_max_length=workflows.branch_max_length,
        )
        return OpenPrWorkflow(
            self.repo,
            self.github(),
            deriver,
            open_in_browser=self.config.github.open_in_browser,
        )

    def squash_workflow(self) -> SquashWorkflow:
        """squash workflow."""
        return SquashWorkflow(
            self.repo, self.github(), open_in_browser=self.config.github.open_in_browser
        )

    def review_workflow(self, inside_repo: bool = True) -> ReviewWorkflow:
        """review workflow; outside a repository only explicit URLs work."""
        if inside_repo:
            return ReviewWorkflow(
                self.github(), self.agents(self.repo.root), self.config.ai, repo=self.repo
            )
        return ReviewWorkflow(GitHubCLI(self.executor, cwd=self.cwd), self.agents(self.cwd), self.config.ai)

    def checkout_workflow(self) -> CheckoutWorkflow:
        """checkout workflow."""
        return CheckoutWorkflow(self.executor, self.config.workflows)


def get_core() -> PrkitCore:
    """Create a core for the current directory."""
    return PrkitCore()
