"""
Squash Workflow

Squashes the commits of the current branch's pull request into a single
commit titled after the PR, with the other original authors credited as
co-authors, then force-pushes it. A dry run stops before touching the branch
and reports what the squash would produce.
"""

from dataclasses import dataclass
from typing import List, Optional

from rich.console import Console

from ..errors import UsageError
from ..integrations.git import GitRepository, distinct_authors
from ..integrations.github import GitHubCLI
from ..models import CommitInfo, PullRequest, SquashStep, WorkflowRun
from ..utils.logger import get_logger
from .open_pr import ensure_not_on_default_branch

logger = get_logger(__name__)

SEPARATOR = "━" * 79


def format_co_authors(co_authors: List[str]) -> str:
    """Co-authored-by trailers, preceded by the blank line git expects."""
    if not co_authors:
        return ""
    trailers = "\n".join(f"Co-authored-by: {author}" for author in co_authors)
    return f"\n\n{trailers}"


def build_squash_message(title: str, co_authors: List[str]) -> str:
    """Commit message of the squashed commit."""
    return f"{title}{format_co_authors(co_authors)}"


@dataclass
class SquashPlan:
    """Everything the squash is going to do, computed without side effects."""

    pull_request: PullRequest
    branch: str
    default_branch: str
    upstream: str
    merge_base: str
    commits: List[CommitInfo]
    authors: List[str]
    author: Optional[str]
    committer: str
    co_authors: List[str]
    message: str


@dataclass
class SquashResult:
    """Outcome of a squash run."""

    plan: SquashPlan
    dry_run: bool
    pushed: bool
    run: WorkflowRun


class SquashWorkflow:
    """Sequences the squash steps over the git and GitHub facades."""

    def __init__(self, repo: GitRepository, github: GitHubCLI, open_in_browser: bool = False):
        self.repo = repo
        self.github = github
        self.open_in_browser = open_in_browser

    def run(self, dry_run: bool = False) -> SquashResult:
        """Execute the workflow.

        Args:
            dry_run: Compute and report the squash without changing anything

        Raises:
            UsageError: If the tree is dirty, HEAD is the default branch, the
                branch has no open PR or there is nothing to squash
            ExecutionError: If any git or gh call fails (e.g. a rebase conflict)
        """
        run = WorkflowRun(name="squash")
        run.enter(SquashStep.START)

        if not self.repo.is_clean():
            raise UsageError("Repository is not clean")
        branch = self.repo.current_branch()
        default_branch = self.github.default_branch()
        if branch == default_branch:
            raise UsageError("You are on the default branch. Switch to a feature branch to squash")

        run.enter(SquashStep.LOCATE_OPEN_PR)
        pull_request = self.locate_open_pr(branch)

        run.enter(SquashStep.LIST_ORIGINAL_AUTHORS)
        plan = self.plan(pull_request, branch, default_branch)

        if dry_run:
            run.enter(SquashStep.PREVIEW)
            run.enter(SquashStep.DONE)
            return SquashResult(plan=plan, dry_run=True, pushed=False, run=run)

        if not plan.commits:
            raise UsageError("No commits to squash (already at merge base)")

        run.enter(SquashStep.SQUASH_COMMITS)
        self.repo.reset_soft(plan.merge_base)

        run.enter(SquashStep.REWRITE_COMMIT_MESSAGE)
        self.repo.commit(plan.message, author=plan.author)

        run.enter(SquashStep.REBASE_ONTO_DEFAULT_BRANCH)
        self.repo.rebase_onto(plan.upstream)

        run.enter(SquashStep.FORCE_PUSH)
        ensure_not_on_default_branch(self.repo, default_branch)
        self.repo.push(branch, force=True)

        if self.open_in_browser:
            self.github.open_in_browser(pull_request.url)

        run.enter(SquashStep.DONE)
        return SquashResult(plan=plan, dry_run=False, pushed=True, run=run)

    def locate_open_pr(self, branch: str) -> PullRequest:
        """Open PR for ``branch``.

        Raises:
            UsageError: If the branch has no open PR
        """
        pull_request = self.github.find_open_pr(branch)
        if pull_request is None:
            raise UsageError(f"No open pull request found for branch '{branch}'")
        logger.info(f"Squashing PR #{pull_request.number}: {pull_request.title}")
        return pull_request

    def plan(self, pull_request: PullRequest, branch: str, default_branch: str) -> SquashPlan:
        """Find the commits to squash and compose the new message.

        The first original author becomes the author of the squashed commit and
        the others its co-authors, in order of first appearance. The user
        running the squash is only the committer.
        """
        self.repo.fetch(default_branch)
        upstream = f"{self.repo.remote}/{default_branch}"
        merge_base = self.repo.merge_base("HEAD", upstream)

        commits = self.repo.commits_between(merge_base, "HEAD")
        authors = distinct_authors(commits)
        author = authors[0] if authors else None
        co_authors = authors[1:]

        return SquashPlan(
            pull_request=pull_request,
            branch=branch,
            default_branch=default_branch,
            upstream=upstream,
            merge_base=merge_base,
            commits=commits,
            authors=authors,
            author=author,
            committer=self.repo.current_user(),
            co_authors=co_authors,
            message=build_squash_message(pull_request.title, co_authors),
        )


def render_preview(plan: SquashPlan, console: Console) -> None:
    """Print what a dry run would squash."""
    console.print("\n🔍 DRY RUN: The following commits would be squashed:")
    console.print(SEPARATOR)
    if not plan.commits:
        console.print("⚠️  No commits to squash (already at merge base)")
    for i, commit in enumerate(plan.commits, start=1):
        console.print(f"{i:2}. {commit.sha} {commit.subject} (by {commit.author})", markup=False)

    console.print("\n📝 The resulting commit message would be:")
    console.print(SEPARATOR)
    console.print(plan.message, markup=False, highlight=False)
    console.print(SEPARATOR)

    if plan.author:
        console.print(f"\n✍️  Author: {plan.author} (committed by {plan.committer})", markup=False)
    if plan.co_authors:
        console.print(f"\n👥 Co-authors detected: {len(plan.co_authors)}")

    console.print("\n💡 To perform the actual squash, run without --dry-run")
