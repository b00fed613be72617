"""
AI Integration Module

Runs the GitHub Copilot CLI or the Gemini CLI non-interactively to write
commit messages and PR reviews.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..errors import AgentError, UsageError
from ..models import AIConfig, Agent, ReviewTarget
from ..utils.logger import get_logger
from ..utils.shell import ShellExecutor
from .prompts import build_commit_prompt

logger = get_logger(__name__)


@dataclass
class AgentInvocation:
    """Command line for one agent call."""

    command: str
    args: List[str]
    title: str


def build_invocation(agent: Agent, model: str, prompt: str, plain_text: bool = True) -> AgentInvocation:
    """Build the non-interactive command line for ``agent``.

    The prompt is left out of the title so huge diffs are not logged.
    """
    if agent == Agent.GEMINI:
        if plain_text:
            args = ["--model", model, "--sandbox", "--output-format", "text", "--prompt", prompt]
            title = f"🚀 gemini --model {model} --sandbox --output-format text --prompt ..."
        else:
            args = ["--model", model, "--sandbox", prompt]
            title = f"🚀 gemini --model {model} --sandbox ..."
        return AgentInvocation("gemini", args, title)

    return AgentInvocation(
        "copilot",
        ["--silent", "--model", model, "--prompt", prompt],
        f"🚀 copilot --silent --model {model} --prompt ...",
    )


def clean_commit_message(output: str) -> str:
    """First non-empty line of agent output, without quotes or code fences."""
    for line in output.splitlines():
        line = line.strip().strip("`").strip()
        if len(line) >= 2 and line[0] == line[-1] and line[0] in "\"'":
            line = line[1:-1].strip()
        if line:
            return line
    return ""


class AgentRunner:
    """Invokes AI agent CLIs through the shell executor."""

    def __init__(self, executor: ShellExecutor, config: AIConfig, cwd: Optional[Path] = None):
        """Initialize agent runner.

        Args:
            executor: Executor used to run the agent binaries
            config: AI configuration (default models)
            cwd: Directory the agents run in
        """
        self.executor = executor
        self.config = config
        self.cwd = cwd

    def is_installed(self, agent: Agent) -> bool:
        """Whether the agent's binary is on PATH."""
        return self.executor.which(agent.value) is not None

    def require(self, agent: Agent) -> None:
        """Raise unless the agent is installed.

        Raises:
            UsageError: If the agent binary is missing
        """
        if not self.is_installed(agent):
            raise UsageError(f"{agent.value} CLI is not installed")

    def run(self, agent: Agent, model: str, prompt: str, plain_text: bool = True) -> str:
        """Run the agent once and return its standard output as printed.

        Raises:
            ExecutionError: If the agent exits non-zero
            AgentError: If the agent prints nothing
        """
        invocation = build_invocation(agent, model, prompt, plain_text=plain_text)
        result = self.executor.run(
            invocation.command, invocation.args, cwd=self.cwd, title=invocation.title
        )
        if not result.output:
            raise AgentError(
                [invocation.command, *invocation.args[:-1], "..."],
                result.returncode,
                result.stderr,
                message=f"{agent.value} returned an empty response",
            )
        return result.stdout

    def generate_commit_message(
        self,
        agent: Agent,
        diff: str,
        model: Optional[str] = None,
        max_length: int = 70,
    ) -> str:
        """Ask the agent for a one-line commit message describing ``diff``.

        Raises:
            AgentError: If the agent answers with nothing usable
        """
        self.require(agent)
        model = model or self.config.commit_model(agent)
        logger.info(f"🤖 Generating commit message with {agent.value}...")

        output = self.run(agent, model, build_commit_prompt(diff, max_length))
        message = clean_commit_message(output)
        if not message:
            raise AgentError(
                [agent.value], 0, message=f"{agent.value} generated an empty commit message"
            )
        return message

    def review(self, target: ReviewTarget, prompt: str) -> str:
        """Ask the agent to review a PR; returns the review text unchanged."""
        self.require(target.agent)
        logger.info(f"🤖 Reviewing {target.pr_url} with {target.agent.value} ({target.model})...")
        return self.run(target.agent, target.model, prompt, plain_text=False)
