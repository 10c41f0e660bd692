"""Work items handed over by the multi-agent coordination layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class TaskPriority(StrEnum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def _missing_(cls, value: object) -> TaskPriority | None:
        # Upstream agents send upper-case tags ("HIGH").
        if isinstance(value, str):
            lowered = value.lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class TaskStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class AgentType(StrEnum):
    """Agents of the coordination layer."""

    COGNITIVE_PROFILE = "COGNITIVE_PROFILE"
    LEARNING_PATH = "LEARNING_PATH"
    CONTENT_ADAPTATION = "CONTENT_ADAPTATION"
    ASSESSMENT = "ASSESSMENT"
    ENGAGEMENT = "ENGAGEMENT"
    FEEDBACK = "FEEDBACK"
    UI_UX = "UI_UX"
    SCHEDULING = "SCHEDULING"


@dataclass
class AgentTask:
    """A unit of work from the coordination layer.

    Attributes:
        task_id: Unique task identifier
        user_id: Owning user
        task_type: Upstream task-type tag (e.g. "COGNITIVE_PROFILING")
        description: Free-text description
        priority: Scheduling priority; drives complexity estimation
        context: Ordered context tags
        data: Structured payload, serialized into the prompt
        created_at: Creation timestamp
        status: Processing status, None until first seen
        target_agent_types: Agents the task is addressed to
    """

    task_id: str
    user_id: str
    task_type: str
    description: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    context: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    status: TaskStatus | None = None
    target_agent_types: list[AgentType] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.task_id:
            raise ValueError("task_id cannot be empty")
        if not self.task_type:
            raise ValueError("task_type cannot be empty")
        self.priority = TaskPriority(self.priority)
        if self.status is not None:
            self.status = TaskStatus(self.status)
        self.target_agent_types = [AgentType(a) for a in self.target_agent_types]


class MessageType(StrEnum):
    NOTIFICATION = "NOTIFICATION"
    TASK = "TASK"
    SYSTEM = "SYSTEM"
    INFO = "INFO"


@dataclass
class AgentMessage:
    """Free-form message exchanged between agents."""

    message_type: MessageType
    content: str
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        self.message_type = MessageType(self.message_type)
