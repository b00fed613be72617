"""Prompt templates for the AI agents."""

COMMIT_PROMPT = (
    "Don't ask me questions or confirmation. "
    "Write a git commit message (max {max_length} characters) for these changes in one line: "
    "{diff}"
)

REVIEW_PROMPT = """You are an expert code reviewer. Review this GitHub pull request and write your review in Markdown.

Rules:
- Do not ask questions unless information is missing.
- Be concise but specific.
- Include a short summary, then a list of issues (if any) with severity labels (BLOCKER, MAJOR, MINOR), and then suggestions.
- If there are no issues, say so explicitly.
- Refer to files and code hunks where possible.

PR URL: {pr_url}

PR METADATA (JSON):
{metadata}

PR DIFF:
{diff}
"""


def build_commit_prompt(diff: str, max_length: int = 70) -> str:
    """Prompt asking for a one-line commit message describing ``diff``."""
    return COMMIT_PROMPT.format(max_length=max_length, diff=diff.strip())


def build_review_prompt(pr_url: str, metadata: str, diff: str) -> str:
    """Prompt asking for a Markdown review of a PR."""
    return REVIEW_PROMPT.format(pr_url=pr_url, metadata=metadata.strip(), diff=diff.rstrip())
