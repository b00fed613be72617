"""Workflow modules for the prkit commands."""

from prkit.workflows.checkout import CheckoutResult, CheckoutWorkflow
from prkit.workflows.commit_message import (
    CommitMessageDeriver,
    check_commit_message,
    prompt_commit_message,
    slugify,
)
from prkit.workflows.open_pr import (
    Changeset,
    OpenPrResult,
    OpenPrWorkflow,
    ensure_not_on_default_branch,
)
from prkit.workflows.review import ReviewResult, ReviewWorkflow
from prkit.workflows.squash import (
    SquashPlan,
    SquashResult,
    SquashWorkflow,
    build_squash_message,
    format_co_authors,
    render_preview,
)
