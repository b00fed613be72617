"""
Checkout Workflow

Clones a pull request's repository into ``<projects_root>/<owner>/<repo>``
when needed, brings the default branch up to date, checks the PR out and
opens an editor on it.
"""

from dataclasses import dataclass
from pathlib import Path

from ..errors import ExecutionError, UsageError
from ..integrations.git import GitRepository
from ..integrations.github import GitHubCLI
from ..models import CheckoutStep, GitHubPRRef, WorkflowsConfig, WorkflowRun
from ..utils.logger import get_logger
from ..utils.shell import ShellExecutor

logger = get_logger(__name__)

VSCODE_FALLBACK = ["open", "-a", "Visual Studio Code", "."]


@dataclass
class CheckoutResult:
    """Outcome of a checkout run."""

    pr: GitHubPRRef
    repo_dir: Path
    cloned: bool
    run: WorkflowRun


class CheckoutWorkflow:
    """Sequences the checkout steps."""

    def __init__(self, executor: ShellExecutor, config: WorkflowsConfig):
        self.executor = executor
        self.config = config

    def local_repo_dir(self, pr: GitHubPRRef) -> Path:
        """Where the PR's repository lives locally."""
        return Path(self.config.projects_root).expanduser() / pr.owner / pr.repo

    def run(self, pr_url: str) -> CheckoutResult:
        """Execute the workflow.

        Raises:
            UsageError: If the URL is malformed, the target path is not a git
                repository or the repository has uncommitted changes
            ExecutionError: If git, gh or the editor fails
        """
        run = WorkflowRun(name="checkout")
        run.enter(CheckoutStep.START)

        run.enter(CheckoutStep.PARSE_URL)
        pr = GitHubPRRef.parse(pr_url)
        repo_dir = self.local_repo_dir(pr)

        run.enter(CheckoutStep.ENSURE_CLONED)
        cloned = self.ensure_cloned(pr, repo_dir)

        repo = GitRepository(self.executor, repo_dir)
        github = GitHubCLI(self.executor, cwd=repo_dir)

        run.enter(CheckoutStep.ENSURE_CLEAN)
        if not repo.is_clean():
            raise UsageError("Repository is not clean. Commit or stash changes first.")

        run.enter(CheckoutStep.UPDATE_DEFAULT_BRANCH)
        default_branch = github.default_branch()
        repo.fetch(prune=True)
        repo.checkout(default_branch)
        repo.pull(ff_only=True)

        run.enter(CheckoutStep.CHECKOUT_PR)
        github.checkout_pr(pr.url)

        run.enter(CheckoutStep.OPEN_EDITOR)
        self.open_editor(repo_dir)

        run.enter(CheckoutStep.DONE)
        return CheckoutResult(pr=pr, repo_dir=repo_dir, cloned=cloned, run=run)

    def ensure_cloned(self, pr: GitHubPRRef, repo_dir: Path) -> bool:
        """Clone the repository unless it is already there.

        Returns:
            True if a clone was made
        """
        if repo_dir.exists():
            if not (repo_dir / ".git").exists():
                raise UsageError(f"Path exists but is not a git repository: {repo_dir}")
            return False

        repo_dir.parent.mkdir(parents=True, exist_ok=True)
        GitHubCLI(self.executor).clone_repo(pr.full_name, repo_dir)
        return True

    def open_editor(self, repo_dir: Path) -> None:
        """Open the editor on ``repo_dir``, falling back to VS Code on macOS."""
        editor = self.config.editor_command
        if self._try_run([editor, "."], repo_dir, f"🧑‍💻 {editor} ."):
            return

        logger.debug(f"'{editor} .' failed, trying 'open -a \"Visual Studio Code\" .'")
        if self._try_run(VSCODE_FALLBACK, repo_dir, '🧑‍💻 open -a "Visual Studio Code" .'):
            return

        raise ExecutionError(
            VSCODE_FALLBACK,
            1,
            message=(
                f"Failed to open editor (tried `{editor} .` and "
                "`open -a 'Visual Studio Code' .`)"
            ),
        )

    def _try_run(self, command: list, cwd: Path, title: str) -> bool:
        try:
            result = self.executor.run(command[0], command[1:], cwd=cwd, check=False, title=title)
        except ExecutionError as e:
            # Binary missing
            logger.debug(str(e))
            return False
        return result.success
