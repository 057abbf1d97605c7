"""Observability helpers: structured logging with per-submission context."""

from .logging import (
    bind_submission_context,
    clear_submission_context,
    get_current_intent,
    get_current_submission_id,
    get_logger,
    setup_structured_logging,
)

__all__ = [
    "bind_submission_context",
    "clear_submission_context",
    "get_current_intent",
    "get_current_submission_id",
    "get_logger",
    "setup_structured_logging",
]
