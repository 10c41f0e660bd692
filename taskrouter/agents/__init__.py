"""Agent-facing layer: task vocabulary, task integration and task monitoring."""

from __future__ import annotations

from taskrouter.agents.integration import (
    AgentTaskIntegration,
    build_prompt,
    estimate_complexity,
    map_task_type,
)
from taskrouter.agents.task_monitor import TaskMonitor, TaskProcessingRecord
from taskrouter.agents.types import (
    AgentMessage,
    AgentTask,
    AgentType,
    MessageType,
    TaskPriority,
    TaskStatus,
)

__all__ = [
    "AgentMessage",
    "AgentTask",
    "AgentTaskIntegration",
    "AgentType",
    "MessageType",
    "TaskMonitor",
    "TaskPriority",
    "TaskProcessingRecord",
    "TaskStatus",
    "build_prompt",
    "estimate_complexity",
    "map_task_type",
]
