"""
Open PR Workflow

Commits the current changes on a new branch named after the commit message,
pushes it and opens a pull request for it.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..errors import UsageError
from ..integrations.git import GitRepository
from ..integrations.github import GitHubCLI
from ..models import CommitMessage, DerivedMessage, OpenPrStep, PullRequest, WorkflowRun
from ..utils.logger import get_logger
from .commit_message import CommitMessageDeriver

logger = get_logger(__name__)


@dataclass
class Changeset:
    """Files that go into the PR commit."""

    files: List[str]
    staged: bool


@dataclass
class OpenPrResult:
    """Outcome of a successful open-pr run."""

    pull_request: PullRequest
    branch: str
    created: bool
    run: WorkflowRun

    @property
    def url(self) -> str:
        """PR URL."""
        return self.pull_request.url


class OpenPrWorkflow:
    """Sequences the open-pr steps over the git and GitHub facades.

    Any failing step aborts the run. Nothing is rolled back: branches,
    commits and pushes made before the failure stay in place.
    """

    def __init__(
        self,
        repo: GitRepository,
        github: GitHubCLI,
        deriver: CommitMessageDeriver,
        open_in_browser: bool = False,
    ):
        self.repo = repo
        self.github = github
        self.deriver = deriver
        self.open_in_browser = open_in_browser

    def run(self, message: Optional[str] = None) -> OpenPrResult:
        """Execute the workflow.

        Args:
            message: Commit message; prompted for (or generated) when None

        Returns:
            The created (or already existing) pull request

        Raises:
            UsageError: If there is nothing to commit or the branch exists
            ExecutionError: If any git or gh call fails
        """
        run = WorkflowRun(name="open-pr")
        run.enter(OpenPrStep.START)

        run.enter(OpenPrStep.DETERMINE_CHANGESET)
        changeset = self.determine_changeset()

        run.enter(OpenPrStep.DERIVE_MESSAGE)
        derived = self.deriver.derive(message)

        run.enter(OpenPrStep.CREATE_BRANCH)
        default_branch = self.create_branch(derived.branch_name)

        run.enter(OpenPrStep.COMMIT)
        self.commit(changeset, derived.message)

        run.enter(OpenPrStep.PUSH)
        self.push(derived.branch_name, default_branch)

        run.enter(OpenPrStep.CREATE_PR)
        pull_request, created = self.create_pr(derived, default_branch)

        if self.open_in_browser:
            self.github.open_in_browser(pull_request.url)

        run.enter(OpenPrStep.DONE)
        return OpenPrResult(
            pull_request=pull_request,
            branch=derived.branch_name,
            created=created,
            run=run,
        )

    def determine_changeset(self) -> Changeset:
        """Staged files if there are any, otherwise every working-tree change."""
        staged = self.repo.staged_files()
        logger.info(f"ℹ️ Staged files: {staged}")
        if staged:
            return Changeset(files=staged, staged=True)

        changed = self.repo.changed_files()
        if not changed:
            raise UsageError("Nothing to commit")
        return Changeset(files=changed, staged=False)

    def create_branch(self, branch: str) -> str:
        """Create ``branch`` from an up-to-date default branch.

        Returns:
            Name of the default branch

        Raises:
            UsageError: If the branch already exists locally or on the remote
        """
        if self.repo.branch_exists_locally(branch):
            raise UsageError(
                f"Branch '{branch}' already exists locally. "
                "Please use a different commit message or delete the existing branch."
            )
        if self.repo.branch_exists_remotely(branch):
            raise UsageError(
                f"Branch '{branch}' already exists on remote. "
                "Please use a different commit message or delete the remote branch."
            )

        default_branch = self.github.default_branch()
        self.repo.checkout(default_branch)
        self.repo.pull(ff_only=True)
        self.repo.checkout(branch, create=True)
        return default_branch

    def commit(self, changeset: Changeset, message: CommitMessage) -> None:
        """Commit the changeset.

        A staged changeset is committed exactly as it sits in the index, so
        unstaged edits never leak into the PR.
        """
        if not changeset.staged:
            self.repo.add(changeset.files)
        self.repo.commit(message.text)

    def push(self, branch: str, default_branch: str) -> None:
        """Push the new branch, refusing to push the default branch."""
        ensure_not_on_default_branch(self.repo, default_branch)
        self.repo.push(branch)

    def create_pr(self, derived: DerivedMessage, default_branch: str) -> Tuple[PullRequest, bool]:
        """Reuse the branch's open PR or create one titled after the commit."""
        existing = self.github.find_open_pr(derived.branch_name)
        if existing is not None:
            logger.info(f"PR already exists: {existing.url}")
            return existing, False

        pull_request = self.github.create_pr(
            title=derived.pr_title,
            body=derived.message.body,
            base=default_branch,
            head=derived.branch_name,
        )
        logger.info(f"Created PR #{pull_request.number}: {pull_request.url}")
        return pull_request, True


def ensure_not_on_default_branch(repo: GitRepository, default_branch: str) -> str:
    """Return the current branch, refusing the default branch.

    Raises:
        UsageError: If HEAD is the default branch
    """
    current = repo.current_branch()
    if current == default_branch:
        raise UsageError(
            f"Cannot push to default branch '{default_branch}'. Switch to a feature branch first."
        )
    return current
