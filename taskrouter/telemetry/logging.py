"""Structured logging configuration for routing observability.

Configures structlog with JSON output in production and a colored console
renderer in development. Task and user identifiers bound through the
context helpers below are attached to every log entry emitted while a task
is being processed.

Log format (production):
    {
        "timestamp": "2026-03-04T08:12:09.551204Z",
        "level": "info",
        "logger": "taskrouter.llm.selection",
        "event": "model_selection.selected",
        "task_id": "task_789...",
        "task_type": "COGNITIVE_PROFILING",
        "model_id": "llama3-70b",
        "score": 1.7
    }
"""

from __future__ import annotations

import logging
import sys

import structlog
from structlog.types import Processor


def configure_logging(
    *,
    json_logs: bool = False,
    log_level: str = "INFO",
) -> None:
    """Configure structured logging for the process.

    Args:
        json_logs: Render one JSON object per event instead of console lines
        log_level: Minimum stdlib level name; routing debug events need DEBUG
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_logs:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# ------------------------------------------------------------------ #
# Context Binding Helpers
# ------------------------------------------------------------------ #


def bind_task_context(task_id: str, task_type: str) -> None:
    """Bind the task being processed to log context.

    Args:
        task_id: Agent task identifier
        task_type: Agent task type tag
    """
    structlog.contextvars.bind_contextvars(task_id=task_id, task_type=task_type)


def bind_user_context(user_id: str) -> None:
    """Bind the owning user ID to log context.

    Args:
        user_id: User identifier
    """
    structlog.contextvars.bind_contextvars(user_id=str(user_id))


def unbind_task_context() -> None:
    """Drop task-scoped keys once a task finishes."""
    structlog.contextvars.unbind_contextvars("task_id", "task_type", "user_id")


def clear_context() -> None:
    """Drop every bound context variable, task-scoped or not."""
    structlog.contextvars.clear_contextvars()
