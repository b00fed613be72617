"""Git operations via the git CLI."""

from pathlib import Path
from typing import Iterable, List, Optional

from prkit.errors import ParseError
from prkit.models import CommitInfo
from prkit.utils.logger import get_logger
from prkit.utils.shell import ShellExecutor, ShellResult

logger = get_logger(__name__)

# Field separator for git log --format, never present in names or subjects
_FIELD_SEP = "\x1f"


class GitRepository:
    """A local git repository driven through an injected executor."""

    def __init__(self, executor: ShellExecutor, root: Path, remote: str = "origin"):
        """Initialize repository facade.

        Args:
            executor: Executor used for every git invocation
            root: Repository root directory
            remote: Remote that branches are pushed to
        """
        self.executor = executor
        self.root = Path(root)
        self.remote = remote

    @classmethod
    def discover(
        cls, executor: ShellExecutor, cwd: Optional[Path] = None, remote: str = "origin"
    ) -> "GitRepository":
        """Locate the repository containing ``cwd``.

        Raises:
            ExecutionError: If not inside a git repository
        """
        result = executor.run("git", ["rev-parse", "--show-toplevel"], cwd=cwd)
        if not result.output:
            raise ParseError("git rev-parse --show-toplevel returned no path")
        return cls(executor, Path(result.output), remote=remote)

    def git(self, *args: str, check: bool = True, quiet: bool = False) -> ShellResult:
        """Run a git subcommand in the repository root."""
        return self.executor.run("git", list(args), cwd=self.root, check=check, quiet=quiet)

    def staged_files(self) -> List[str]:
        """Files with changes in the index."""
        return self.git("diff", "--name-only", "--cached").lines()

    def changed_files(self) -> List[str]:
        """All working-tree changes, untracked files included.

        Paths are read NUL-separated so git neither quotes nor escapes them.
        Type changes are skipped; for renames and copies the new path is
        returned.
        """
        result = self.git("status", "--porcelain", "-z", "--untracked-files=all")
        entries = iter(result.stdout.split("\0"))
        files = []
        for entry in entries:
            if not entry:
                continue
            if len(entry) < 4 or entry[2] != " ":
                raise ParseError(f"Unexpected git status entry: {entry!r}")
            status, path = entry[:2], entry[3:]
            if "R" in status or "C" in status:
                # The source path follows as its own field
                if next(entries, None) is None:
                    raise ParseError(f"Missing source path for git status entry: {entry!r}")
            if "T" in status:
                continue
            files.append(path)
        return files

    def is_clean(self) -> bool:
        """Whether the working tree has no changes at all."""
        return not self.git("status", "--porcelain").output

    def diff(self, staged_only: bool = False) -> str:
        """Diff of the index (staged_only) or of the working tree."""
        args = ["diff", "--cached"] if staged_only else ["diff"]
        return self.git(*args, quiet=True).stdout

    def add(self, paths: Iterable[str]) -> None:
        """Stage the given paths."""
        paths = list(paths)
        if not paths:
            raise ParseError("No files to add")
        self.git("add", "--", *paths)

    def commit(self, message: str, author: Optional[str] = None) -> None:
        """Commit the index, optionally as ``author`` (``Name <email>``).

        The configured user stays the committer.

        Raises:
            ExecutionError: If git refuses, including when there is nothing to commit
        """
        args = ["commit", "-m", message]
        if author:
            args.append(f"--author={author}")
        self.git(*args)

    def checkout(self, branch: str, create: bool = False) -> None:
        """Switch to ``branch``, creating it from HEAD when ``create``."""
        if create:
            self.git("checkout", "-b", branch)
        else:
            self.git("checkout", branch)

    def pull(self, ff_only: bool = True) -> None:
        """Pull the current branch."""
        if ff_only:
            self.git("pull", "--ff-only")
        else:
            self.git("pull")

    def fetch(self, branch: Optional[str] = None, prune: bool = False) -> None:
        """Fetch from the remote, optionally a single branch."""
        args = ["fetch"]
        if prune:
            args.append("--prune")
        args.append(self.remote)
        if branch:
            args.append(branch)
        self.git(*args)

    def rebase_onto(self, base: str) -> None:
        """Rebase the current branch onto ``base``."""
        self.git("rebase", base)

    def reset_soft(self, ref: str) -> None:
        """Move HEAD to ``ref`` keeping index and working tree."""
        self.git("reset", "--soft", ref)

    def merge_base(self, a: str, b: str) -> str:
        """Best common ancestor of two refs."""
        sha = self.git("merge-base", a, b).output
        if not sha:
            raise ParseError(f"git merge-base {a} {b} returned nothing")
        return sha

    def push(self, branch: str, force: bool = False) -> None:
        """Push ``branch`` to the remote.

        A normal push sets the upstream; a forced push uses
        ``--force-with-lease`` so unseen remote commits are never overwritten.
        """
        if force:
            self.git("push", "--force-with-lease", self.remote, branch)
        else:
            self.git("push", "-u", self.remote, branch)

    def current_branch(self) -> str:
        """Name of the checked-out branch.

        Raises:
            ParseError: On a detached HEAD
        """
        branch = self.git("branch", "--show-current", quiet=True).output
        if not branch:
            raise ParseError("HEAD is detached; check out a branch first")
        return branch

    def commits_between(self, base: str, head: str = "HEAD") -> List[CommitInfo]:
        """Commits reachable from ``head`` but not ``base``, oldest first."""
        fmt = _FIELD_SEP.join(["%h", "%s", "%an", "%ae"])
        result = self.git("log", "--reverse", f"--format={fmt}", f"{base}..{head}", quiet=True)

        commits = []
        for line in result.stdout.splitlines():
            if not line.strip():
                continue
            fields = line.split(_FIELD_SEP)
            if len(fields) != 4:
                raise ParseError(f"Unexpected git log line: {line!r}")
            sha, subject, name, email = fields
            commits.append(
                CommitInfo(sha=sha, subject=subject, author_name=name, author_email=email)
            )
        return commits

    def authors_between(self, base: str, head: str = "HEAD") -> List[str]:
        """Distinct ``Name <email>`` authors of a range, in order of first appearance."""
        return distinct_authors(self.commits_between(base, head))

    def current_user(self) -> str:
        """Configured committer as ``Name <email>``.

        Raises:
            ExecutionError: If user.name or user.email is not configured
        """
        name = self.git("config", "user.name", quiet=True).output
        email = self.git("config", "user.email", quiet=True).output
        return f"{name} <{email}>"

    def branch_exists_locally(self, branch: str) -> bool:
        """Whether a local branch with this name exists."""
        return bool(self.git("branch", "--list", branch, quiet=True).output)

    def branch_exists_remotely(self, branch: str) -> bool:
        """Whether the remote has a branch with this name."""
        return bool(self.git("ls-remote", "--heads", self.remote, branch).output)

    def remotes(self) -> List[str]:
        """Configured remote names."""
        return self.git("remote", quiet=True).lines()



def distinct_authors(commits: Iterable[CommitInfo]) -> List[str]:
    """``Name <email>`` of each author once, in order of first appearance."""
    authors: List[str] = []
    for commit in commits:
        if commit.author not in authors:
            authors.append(commit.author)
    return authors
