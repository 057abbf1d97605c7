"""Structured logging with per-submission context using structlog and contextvars."""

import logging
import sys
from contextvars import ContextVar

import structlog

# Context variables for the submission being processed
current_submission_id: ContextVar[str | None] = ContextVar("current_submission_id", default=None)
current_intent: ContextVar[str | None] = ContextVar("current_intent", default=None)

NOISY_LOGGERS = ("httpx", "httpcore", "google_genai", "browser_use", "asyncio")

_configured = False


def setup_structured_logging(level: str = "WARNING") -> None:
    """Configure structlog with JSON output on stderr and per-submission context.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
    """
    global _configured
    if _configured:
        return

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,  # Inject submission context
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Keep stdout free for the chat transcript
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stderr,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True


def bind_submission_context(submission_id: str, intent: str) -> None:
    """Bind submission context for all subsequent logs in this async context."""
    current_submission_id.set(submission_id)
    current_intent.set(intent)
    structlog.contextvars.bind_contextvars(submission_id=submission_id, intent=intent)


def clear_submission_context() -> None:
    """Clear submission context after the submission completes."""
    current_submission_id.set(None)
    current_intent.set(None)
    structlog.contextvars.clear_contextvars()


def get_logger(name: str = "alfreyaa") -> structlog.stdlib.BoundLogger:
    """Get a structlog logger carrying the submission context."""
    return structlog.get_logger(name)


def get_current_submission_id() -> str | None:
    return current_submission_id.get()


def get_current_intent() -> str | None:
    return current_intent.get()
