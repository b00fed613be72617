"""GitHub integration via gh CLI."""

import json
from pathlib import Path
from typing import Any, List, Optional

from pydantic import ValidationError

from prkit.errors import ParseError
from prkit.models import PullRequest
from prkit.utils.logger import get_logger
from prkit.utils.shell import ShellExecutor, ShellResult

logger = get_logger(__name__)

PR_FIELDS = "number,title,body,url,state,baseRefName,headRefName,author"

# Everything the review prompt gets to see about a PR
REVIEW_METADATA_FIELDS = (
    "title,body,author,baseRefName,headRefName,createdAt,updatedAt,labels,assignees,"
    "reviewRequests,reviews,comments,commits,files,additions,deletions,state,mergeable,url"
)


def _parse_json(result: ShellResult) -> Any:
    """Decode gh's JSON output.

    Raises:
        ParseError: If output is not valid JSON
    """
    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise ParseError(f"Failed to parse output of '{' '.join(result.command)}': {e}")


def _to_pull_request(data: Any) -> PullRequest:
    if not isinstance(data, dict):
        raise ParseError(f"Expected a pull request object, got: {data!r}")
    try:
        return PullRequest.from_gh(data)
    except (KeyError, ValidationError) as e:
        raise ParseError(f"Unexpected pull request data: {e}")


class GitHubCLI:
    """GitHub operations for one repository, implemented with ``gh``."""

    def __init__(self, executor: ShellExecutor, cwd: Optional[Path] = None):
        """Initialize GitHub integration.

        Args:
            executor: Executor used for every gh invocation
            cwd: Directory gh runs in (selects the repository)
        """
        self.executor = executor
        self.cwd = cwd

    def gh(self, *args: str, check: bool = True, quiet: bool = False) -> ShellResult:
        """Run a gh subcommand."""
        return self.executor.run("gh", list(args), cwd=self.cwd, check=check, quiet=quiet)

    def create_pr(self, title: str, body: str, base: str, head: str) -> PullRequest:
        """Create a pull request and return it.

        ``gh pr create`` only prints the new PR's URL, so the PR is read back
        with :meth:`view_pr`.

        Raises:
            ExecutionError: If gh fails
            ParseError: If gh does not print a PR URL
        """
        logger.info(f"Creating PR: {title}")
        result = self.gh(
            "pr", "create",
            "--title", title,
            "--body", body,
            "--base", base,
            "--head", head,
        )

        urls = [line for line in result.lines() if line.startswith("https://")]
        if not urls:
            raise ParseError(f"gh pr create did not print a PR URL: {result.output!r}")

        return self.view_pr(urls[-1])

    def view_pr(self, identifier: Optional[str] = None) -> PullRequest:
        """Fetch a pull request by URL, number or branch (current branch if None)."""
        args = ["pr", "view"]
        if identifier:
            args.append(identifier)
        args.extend(["--json", PR_FIELDS])
        return _to_pull_request(_parse_json(self.gh(*args, quiet=True)))

    def find_open_pr(self, head: str) -> Optional[PullRequest]:
        """Open pull request whose head is ``head``, if any."""
        result = self.gh(
            "pr", "list",
            "--head", head,
            "--state", "open",
            "--json", PR_FIELDS,
            quiet=True,
        )
        data = _parse_json(result)
        if not isinstance(data, list):
            raise ParseError(f"Expected a list of pull requests, got: {data!r}")
        if not data:
            return None
        return _to_pull_request(data[0])

    def default_branch(self) -> str:
        """Name of the repository's default branch."""
        data = _parse_json(self.gh("repo", "view", "--json", "defaultBranchRef", quiet=True))
        try:
            name = data["defaultBranchRef"]["name"]
        except (KeyError, TypeError):
            raise ParseError(f"Unexpected repository data: {data!r}")
        if not name:
            raise ParseError("Repository has no default branch")
        return name

    def pr_metadata(self, identifier: str) -> str:
        """Raw JSON describing a PR, for the review prompt."""
        result = self.gh("pr", "view", identifier, "--json", REVIEW_METADATA_FIELDS, quiet=True)
        if not result.output:
            raise ParseError(f"gh returned no metadata for {identifier}")
        return result.output

    def pr_diff(self, identifier: str) -> str:
        """Unified diff of a PR."""
        result = self.gh("pr", "diff", identifier, "--color=never", quiet=True)
        if not result.output:
            raise ParseError(f"gh returned an empty diff for {identifier}")
        return result.stdout

    def open_in_browser(self, identifier: Optional[str] = None) -> None:
        """Open a PR (the current branch's if None) in the web browser."""
        args = ["pr", "view", "--web"]
        if identifier:
            args.insert(2, identifier)
        self.gh(*args)

    def ensure_default_repo(self, remotes: List[str]) -> None:
        """Make sure gh knows which remote is the base repository.

        Forks usually have an ``upstream`` remote; it wins over ``origin``.
        """
        current = self.gh("repo", "set-default", "--view", check=False, quiet=True)
        if current.success and current.output:
            return

        remote = "upstream" if "upstream" in remotes else "origin"
        logger.info(f"Setting default gh repository to remote '{remote}'")
        self.gh("repo", "set-default", remote)

    def checkout_pr(self, url: str) -> None:
        """Check out a PR's head branch in ``cwd``."""
        self.executor.run("gh", ["pr", "checkout", url], cwd=self.cwd, title="📥 gh pr checkout ...")

    def clone_repo(self, full_name: str, dest: Path) -> None:
        """Clone ``owner/repo`` into ``dest``."""
        self.executor.run(
            "gh",
            ["repo", "clone", full_name, str(dest)],
            title=f"📦 gh repo clone {full_name} ...",
        )
