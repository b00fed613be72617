"""Data models for prkit."""

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from prkit.errors import UsageError


class Agent(str, Enum):
    """Supported AI agent command line tools."""

    COPILOT = "copilot"
    GEMINI = "gemini"


class PRState(str, Enum):
    """Pull request state as reported by gh."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"
    MERGED = "MERGED"


class CommitMessage(BaseModel):
    """Commit message split into a title line and an optional body."""

    title: str = Field(description="First line, used as PR title")
    body: str = Field(default="", description="Remaining lines")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Title must be a single non-empty line."""
        v = v.strip()
        if not v:
            raise ValueError("Commit message title cannot be empty")
        if "\n" in v or "\r" in v:
            raise ValueError("Commit message title must be a single line")
        return v

    @field_validator("body")
    @classmethod
    def validate_body(cls, v: str) -> str:
        """Strip surrounding blank lines from the body."""
        return v.strip("\n").rstrip()

    @classmethod
    def parse(cls, text: str) -> "CommitMessage":
        """Parse free text: first line is the title, the rest is the body."""
        lines = text.strip().splitlines()
        if not lines:
            raise UsageError("Commit message cannot be empty")
        try:
            return cls(title=lines[0], body="\n".join(lines[1:]))
        except ValueError as e:
            raise UsageError(str(e)) from None

    @property
    def text(self) -> str:
        """Full message as passed to git commit."""
        if self.body:
            return f"{self.title}\n\n{self.body}"
        return self.title


class DerivedMessage(BaseModel):
    """Commit message together with the branch name derived from it."""

    message: CommitMessage = Field(description="Commit message")
    branch_name: str = Field(description="Branch name slug")

    @property
    def pr_title(self) -> str:
        """PR title (the commit title)."""
        return self.message.title


class PullRequest(BaseModel):
    """Pull request model."""

    number: int = Field(description="PR number")
    title: str = Field(description="PR title")
    body: str = Field(default="", description="PR description/body")
    url: str = Field(description="PR URL")
    state: PRState = Field(default=PRState.OPEN, description="PR state")
    base_branch: str = Field(default="main", description="Base branch")
    head_branch: str = Field(description="Head branch")
    author: str | None = Field(default=None, description="PR author login")

    @classmethod
    def from_gh(cls, data: dict[str, Any]) -> "PullRequest":
        """Build from the JSON emitted by ``gh pr view/list --json``."""
        author = data.get("author") or {}
        return cls(
            number=data["number"],
            title=data["title"],
            body=data.get("body") or "",
            url=data["url"],
            state=data.get("state", "OPEN"),
            base_branch=data.get("baseRefName", "main"),
            head_branch=data["headRefName"],
            author=author.get("login") if isinstance(author, dict) else None,
        )


class GitHubPRRef(BaseModel):
    """Owner, repository and number parsed from a PR URL."""

    owner: str = Field(description="Repository owner")
    repo: str = Field(description="Repository name")
    number: int = Field(description="PR number")

    @property
    def full_name(self) -> str:
        """Get full repository name (owner/repo)."""
        return f"{self.owner}/{self.repo}"

    @property
    def url(self) -> str:
        """Canonical PR URL."""
        return f"https://github.com/{self.owner}/{self.repo}/pull/{self.number}"

    @classmethod
    def parse(cls, url: str) -> "GitHubPRRef":
        """Parse a github.com pull request URL.

        Accepts URLs with or without scheme, with a ``www.`` prefix, and with
        trailing path segments, query strings or fragments, e.g.
        ``https://github.com/o/r/pull/42/files#diff``.

        Raises:
            UsageError: If the URL is not a github.com PR URL
        """
        s = url.strip().split("#", 1)[0].split("?", 1)[0]
        s = re.sub(r"^https?://", "", s)

        for prefix in ("github.com/", "www.github.com/"):
            if s.startswith(prefix):
                s = s[len(prefix):]
                break
        else:
            raise UsageError(f"Expected a github.com PR URL: {url}")

        parts = [p for p in s.split("/") if p]
        if len(parts) < 4:
            raise UsageError(f"Invalid PR URL format (expected /OWNER/REPO/pull/NUMBER): {url}")
        if parts[2] != "pull":
            raise UsageError(f"Invalid PR URL (missing /pull/): {url}")
        if not parts[3].isdigit():
            raise UsageError(f"Invalid PR number: {parts[3]}")

        return cls(owner=parts[0], repo=parts[1], number=int(parts[3]))


class ReviewTarget(BaseModel):
    """What to review and with which agent."""

    pr_url: str = Field(description="PR URL")
    agent: Agent = Field(description="Review agent")
    model: str = Field(description="Model passed to the agent")


class CommitInfo(BaseModel):
    """Single commit from git log."""

    sha: str = Field(description="Abbreviated commit hash")
    subject: str = Field(description="Commit subject line")
    author_name: str = Field(description="Author name")
    author_email: str = Field(description="Author email")

    @property
    def author(self) -> str:
        """Author in trailer form: ``Name <email>``."""
        return f"{self.author_name} <{self.author_email}>"


class OpenPrStep(str, Enum):
    """Steps of the open-pr workflow."""

    START = "start"
    DETERMINE_CHANGESET = "determine_changeset"
    DERIVE_MESSAGE = "derive_message"
    CREATE_BRANCH = "create_branch"
    COMMIT = "commit"
    PUSH = "push"
    CREATE_PR = "create_pr"
    DONE = "done"


class SquashStep(str, Enum):
    """Steps of the squash workflow."""

    START = "start"
    LOCATE_OPEN_PR = "locate_open_pr"
    LIST_ORIGINAL_AUTHORS = "list_original_authors"
    PREVIEW = "preview"
    SQUASH_COMMITS = "squash_commits"
    REWRITE_COMMIT_MESSAGE = "rewrite_commit_message"
    REBASE_ONTO_DEFAULT_BRANCH = "rebase_onto_default_branch"
    FORCE_PUSH = "force_push"
    DONE = "done"


class ReviewStep(str, Enum):
    """Steps of the review workflow."""

    START = "start"
    RESOLVE_PR_URL = "resolve_pr_url"
    SELECT_AGENT = "select_agent"
    SELECT_MODEL = "select_model"
    INVOKE_AGENT = "invoke_agent"
    STREAM_OUTPUT = "stream_output"
    DONE = "done"


class CheckoutStep(str, Enum):
    """Steps of the checkout workflow."""

    START = "start"
    PARSE_URL = "parse_url"
    ENSURE_CLONED = "ensure_cloned"
    ENSURE_CLEAN = "ensure_clean"
    UPDATE_DEFAULT_BRANCH = "update_default_branch"
    CHECKOUT_PR = "checkout_pr"
    OPEN_EDITOR = "open_editor"
    DONE = "done"


class WorkflowRun(BaseModel):
    """Step history of a single workflow invocation."""

    name: str = Field(description="Workflow name")
    history: list[str] = Field(default_factory=list, description="Steps entered, in order")

    def enter(self, step: Enum) -> None:
        """Record entering a step."""
        self.history.append(step.value)

    @property
    def step(self) -> str | None:
        """Current step."""
        return self.history[-1] if self.history else None


class AIConfig(BaseModel):
    """AI agent configuration."""

    commit_agent: Agent | None = Field(
        default=Agent.COPILOT,
        description="Agent used to suggest commit messages (only if installed)",
    )
    review_agent: Agent = Field(default=Agent.COPILOT, description="Default review agent")
    copilot_commit_model: str = Field(default="gpt-5-mini", description="Copilot commit model")
    copilot_review_model: str = Field(default="gpt-5.2-codex", description="Copilot review model")
    gemini_commit_model: str = Field(
        default="gemini-3-flash-preview", description="Gemini commit model"
    )
    gemini_review_model: str = Field(
        default="gemini-3-pro-preview", description="Gemini review model"
    )

    def commit_model(self, agent: Agent) -> str:
        """Default commit-message model for an agent."""
        return self.gemini_commit_model if agent == Agent.GEMINI else self.copilot_commit_model

    def review_model(self, agent: Agent) -> str:
        """Default review model for an agent."""
        return self.gemini_review_model if agent == Agent.GEMINI else self.copilot_review_model


class GitHubConfig(BaseModel):
    """GitHub configuration."""

    open_in_browser: bool = Field(default=True, description="Open PRs in the browser")
    remote: str = Field(default="origin", description="Remote to push branches to")


class WorkflowsConfig(BaseModel):
    """Workflow configuration."""

    max_title_length: int = Field(default=70, description="Maximum commit title length")
    branch_max_length: int = Field(default=60, description="Maximum branch name length")
    projects_root: str = Field(default="~/proj", description="Where checkout clones repos")
    editor_command: str = Field(default="code", description="Editor opened after checkout")

    @field_validator("max_title_length", "branch_max_length")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Lengths must be positive."""
        if v < 1:
            raise ValueError("Length limits must be positive")
        return v


class Config(BaseModel):
    """Main configuration model."""

    version: str = Field(default="1.0", description="Config version")
    ai: AIConfig = Field(default_factory=AIConfig, description="AI settings")
    github: GitHubConfig = Field(default_factory=GitHubConfig, description="GitHub settings")
    workflows: WorkflowsConfig = Field(
        default_factory=WorkflowsConfig, description="Workflow settings"
    )

    model_config = {"extra": "allow"}
