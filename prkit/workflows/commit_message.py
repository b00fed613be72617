"""
Commit Message Derivation

Turns a user supplied, typed or agent generated commit message into the
commit title, body and branch name used by the open-pr workflow.
"""

import re
from typing import Callable, Optional

import click

from ..errors import UsageError
from ..integrations.ai import AgentRunner
from ..integrations.git import GitRepository
from ..models import Agent, CommitMessage, DerivedMessage
from ..utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_TITLE_LENGTH = 70
DEFAULT_BRANCH_MAX_LENGTH = 60

PromptFn = Callable[[str], str]


def slugify(title: str, max_length: int = DEFAULT_BRANCH_MAX_LENGTH) -> str:
    """Derive a branch name from a commit title.

    Lowercases the title, collapses every run of characters other than
    ``a-z0-9`` into a single ``-``, trims dashes at both ends and truncates to
    ``max_length``. ``"feat: add thing"`` becomes ``"feat-add-thing"``.

    Raises:
        UsageError: If nothing usable remains
    """
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
    slug = slug[:max_length].rstrip("-")
    if not slug:
        raise UsageError(f"Cannot derive a branch name from {title!r}")
    return slug


def validate_title(title: str, max_length: int = DEFAULT_MAX_TITLE_LENGTH) -> Optional[str]:
    """Return an error description for an invalid title, or None."""
    title = title.strip()
    if not title or len(title) > max_length:
        return (
            f"Commit message size should be between 1 and {max_length} characters. "
            f"Current size: {len(title)}"
        )
    return None


def check_commit_message(text: str, max_length: int = DEFAULT_MAX_TITLE_LENGTH) -> CommitMessage:
    """Parse and validate a commit message.

    Raises:
        UsageError: If the title is empty or too long
    """
    message = CommitMessage.parse(text)
    error = validate_title(message.title, max_length)
    if error:
        raise UsageError(error)
    return message


EDIT_HINT = (
    "\n\n# Edit the commit message above; the first line is the title."
    "\n# Lines starting with '#' are ignored.\n"
)


def strip_comments(text: str) -> str:
    """Drop ``#`` comment lines left over from the editor template."""
    return "\n".join(line for line in text.splitlines() if not line.startswith("#")).strip()


def edit_commit_message(draft: str, max_length: int = DEFAULT_MAX_TITLE_LENGTH) -> str:
    """Open ``draft`` in the user's editor until it holds a valid message.

    Closing the editor without saving keeps the text as it was.
    """
    text = draft
    while True:
        edited = click.edit(text + EDIT_HINT)
        if edited is not None:
            text = strip_comments(edited)
        try:
            check_commit_message(text, max_length)
        except UsageError as e:
            click.echo(f"Error: {e}", err=True)
            continue
        return text


def prompt_commit_message(initial_value: str = "", max_length: int = DEFAULT_MAX_TITLE_LENGTH) -> str:
    """Ask for a commit message, editing ``initial_value`` when there is one.

    Without a draft the message is typed on the terminal.
    """
    if initial_value:
        return edit_commit_message(initial_value, max_length)

    def value_proc(value: str) -> str:
        error = validate_title(value, max_length)
        if error:
            raise click.BadParameter(error)
        return value.strip()

    return click.prompt("Commit message", value_proc=value_proc)


class CommitMessageDeriver:
    """Produces the commit message and branch name for a new PR."""

    def __init__(
        self,
        repo: GitRepository,
        agents: Optional[AgentRunner] = None,
        agent: Optional[Agent] = None,
        model: Optional[str] = None,
        agent_explicit: bool = False,
        prompt: Optional[PromptFn] = None,
        max_title_length: int = DEFAULT_MAX_TITLE_LENGTH,
        branch_max_length: int = DEFAULT_BRANCH_MAX_LENGTH,
    ):
        """Initialize deriver.

        Args:
            repo: Repository whose diff feeds the agent
            agents: Agent runner, None disables generation
            agent: Agent to ask for a message
            model: Model override for the agent
            agent_explicit: Agent was requested by the user, so it must be installed
            prompt: Interactive editor, receives the initial value
            max_title_length: Maximum commit title length
            branch_max_length: Maximum branch name length
        """
        self.repo = repo
        self.agents = agents
        self.agent = agent
        self.model = model
        self.agent_explicit = agent_explicit
        self.max_title_length = max_title_length
        self.branch_max_length = branch_max_length
        self.prompt = prompt or (
            lambda initial: prompt_commit_message(initial, max_title_length)
        )

    def derive(self, message: Optional[str] = None) -> DerivedMessage:
        """Resolve the commit message and derive the branch name.

        An explicit ``message`` is used as-is after validation. Otherwise an
        available agent drafts a message from the diff, and the user edits it
        (or types one from scratch when no agent is available).

        Raises:
            UsageError: If the message is invalid
            ExecutionError: If the agent call fails
        """
        if message is not None:
            commit_message = check_commit_message(message, self.max_title_length)
        else:
            draft = self._generate_draft()
            commit_message = check_commit_message(self.prompt(draft), self.max_title_length)

        branch_name = slugify(commit_message.title, self.branch_max_length)
        logger.debug(f"Derived branch name '{branch_name}' from '{commit_message.title}'")
        return DerivedMessage(message=commit_message, branch_name=branch_name)

    def _generate_draft(self) -> str:
        """Agent-written draft, or an empty string when no agent applies."""
        if self.agents is None or self.agent is None:
            return ""

        if not self.agents.is_installed(self.agent):
            if self.agent_explicit:
                raise UsageError(f"{self.agent.value} CLI is not installed")
            logger.debug(f"{self.agent.value} not installed, asking for a message instead")
            return ""

        diff = self.repo.diff(staged_only=True)
        if not diff.strip():
            diff = self.repo.diff()
        if not diff.strip():
            # Untracked files only; git diff has nothing to show the agent
            logger.warning("No diff to describe, asking for a message instead")
            return ""

        return self.agents.generate_commit_message(
            self.agent, diff, model=self.model, max_length=self.max_title_length
        )
