"""Telemetry package for observability.

This package contains structured logging with per-task context binding.
"""

from __future__ import annotations

from taskrouter.telemetry.logging import (
    bind_task_context,
    bind_user_context,
    clear_context,
    configure_logging,
    unbind_task_context,
)

__all__ = [
    "bind_task_context",
    "bind_user_context",
    "clear_context",
    "configure_logging",
    "unbind_task_context",
]
