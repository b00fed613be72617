"""Click CLI interface for prkit."""

import json
import sys
from typing import Optional

import click
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from prkit import __version__
from prkit.config import ConfigError, config_manager
from prkit.core import get_core
from prkit.errors import PrkitError
from prkit.models import Agent
from prkit.utils.logger import enable_verbose_logging, get_logger
from prkit.workflows.squash import render_preview

logger = get_logger(__name__)
console = Console(soft_wrap=True)

AGENT_CHOICE = click.Choice([agent.value for agent in Agent])


def fail(error: Exception) -> None:
    """Report an error and exit non-zero."""
    console.print(f"[red]Error:[/red] {escape(str(error))}", highlight=False)
    sys.exit(1)


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version and exit")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, version: bool, verbose: bool) -> None:
    """prkit - pull request workflow helpers.

    Opens PRs from local changes, squashes PRs into one co-authored commit
    and asks AI agents for PR reviews, using git and gh.
    """
    if version:
        click.echo(f"prkit version {__version__}")
        sys.exit(0)

    if verbose:
        enable_verbose_logging()

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command("open-pr")
@click.option("--message", "-m", help="Commit message (skips interactive prompt)")
@click.option("--agent", type=AGENT_CHOICE, default=None, help="Agent that drafts the commit message")
@click.option("--model", default=None, help="Model used by the agent")
def open_pr(message: Optional[str], agent: Optional[str], model: Optional[str]) -> None:
    """Create a branch from the current changes and open a pull request.

    Staged files are committed as they are; with nothing staged every
    working-tree change is committed.
    """
    try:
        workflow = get_core().open_pr_workflow(
            agent=Agent(agent) if agent else None, model=model
        )
        result = workflow.run(message=message)
    except (PrkitError, ConfigError) as e:
        fail(e)

    verb = "Created" if result.created else "Found existing"
    console.print(f"[green]✓[/green] {verb} PR #{result.pull_request.number}: {result.url}")


@cli.command()
@click.option("--dry-run", is_flag=True, help="Show what would be squashed without actually performing the operation")
def squash(dry_run: bool) -> None:
    """Squash the current branch's PR into a single commit and force-push it."""
    try:
        result = get_core().squash_workflow().run(dry_run=dry_run)
    except (PrkitError, ConfigError) as e:
        fail(e)

    if result.dry_run:
        render_preview(result.plan, console)
        return

    plan = result.plan
    console.print(
        f"[green]✓[/green] Squashed {len(plan.commits)} commit(s) of PR #{plan.pull_request.number}"
    )
    if plan.author:
        console.print(f"✍️  Author: {plan.author}", markup=False)
    if plan.co_authors:
        console.print(f"👥 Co-authors: {', '.join(plan.co_authors)}", markup=False)


@cli.command()
@click.argument("pr_url", required=False)
@click.option("--agent", type=AGENT_CHOICE, default=None, help="Review agent (default from config)")
@click.option("--model", default=None, help="Model used by the agent")
def review(pr_url: Optional[str], agent: Optional[str], model: Optional[str]) -> None:
    """Ask an AI agent to review a pull request.

    PR_URL defaults to the open PR of the current branch.
    """
    try:
        workflow = get_core().review_workflow(inside_repo=pr_url is None)
        workflow.run(pr_url=pr_url, agent=Agent(agent) if agent else None, model=model)
    except (PrkitError, ConfigError) as e:
        fail(e)


@cli.command()
@click.argument("pr_url")
def checkout(pr_url: str) -> None:
    """Clone (if needed) and check out a pull request, then open an editor."""
    try:
        result = get_core().checkout_workflow().run(pr_url)
    except (PrkitError, ConfigError) as e:
        fail(e)

    console.print(f"[green]✓[/green] Checked out PR #{result.pr.number} in {result.repo_dir}")


@cli.group()
def config() -> None:
    """Configuration management."""
    pass


@config.command("get")
@click.argument("key")
def config_get(key: str) -> None:
    """Get configuration value by KEY (e.g. 'ai.review_agent')."""
    try:
        value = config_manager.get_config_value(key)
    except ConfigError as e:
        fail(e)
    console.print(f"{key}: {value}", markup=False, highlight=False)


@config.command("show")
@click.option("--format", "-f", "fmt", type=click.Choice(["table", "yaml", "json"]), default="table", help="Output format (default: table)")
def config_show(fmt: str) -> None:
    """Show the effective configuration."""
    try:
        data = config_manager.get_config().model_dump(mode="json")
    except ConfigError as e:
        fail(e)

    if fmt == "yaml":
        click.echo(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))
        return
    if fmt == "json":
        click.echo(json.dumps(data, indent=2))
        return

    table = Table(title="Configuration")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for section, values in data.items():
        if isinstance(values, dict):
            for key, value in values.items():
                table.add_row(f"{section}.{key}", str(value))
        else:
            table.add_row(section, str(values))
    console.print(table)

    for kind, path in config_manager.list_config_files().items():
        console.print(f"[dim]{kind} config: {path or 'not found'}[/dim]")


if __name__ == "__main__":
    cli()
