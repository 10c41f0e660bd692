"""Per-task processing records for debugging and performance analysis."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import structlog

from taskrouter.agents.types import AgentTask, AgentType, TaskStatus

log = structlog.get_logger(__name__)

TASK_STARTED = "TASK_STARTED"
TASK_COMPLETED = "TASK_COMPLETED"


@dataclass
class TaskEvent:
    time: datetime
    event: str
    details: Any = None


@dataclass
class TaskProcessingRecord:
    task_id: str
    task_type: str
    user_id: str
    start_time: datetime
    status: TaskStatus
    target_agents: list[AgentType] = field(default_factory=list)
    end_time: datetime | None = None
    result: Any = None
    events: list[TaskEvent] = field(default_factory=list)

    @property
    def duration_ms(self) -> float | None:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds() * 1000.0


class TaskMonitor:
    """Tracks the lifecycle of submitted tasks.

    Events for unknown task ids are logged and dropped; monitoring never
    interrupts task processing.

    Args:
        enabled: Whether records are kept at all
        max_records: Optional bound on retained records, oldest started
            first out; None keeps every record for the process lifetime
    """

    def __init__(self, enabled: bool = True, max_records: int | None = None) -> None:
        if max_records is not None and max_records < 1:
            raise ValueError("max_records must be positive")
        self._records: dict[str, TaskProcessingRecord] = {}
        self._enabled = enabled
        self._max_records = max_records

    @property
    def enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled
        log.info("task_monitor.toggled", enabled=enabled)

    def record_task_start(self, task: AgentTask) -> None:
        if not self._enabled:
            return

        now = datetime.now(UTC)
        self._records.pop(task.task_id, None)
        self._records[task.task_id] = TaskProcessingRecord(
            task_id=task.task_id,
            task_type=task.task_type,
            user_id=task.user_id,
            start_time=now,
            status=task.status or TaskStatus.PENDING,
            target_agents=list(task.target_agent_types),
            events=[
                TaskEvent(
                    time=now,
                    event=TASK_STARTED,
                    details=f"Task {task.task_id} ({task.task_type}) processing started",
                )
            ],
        )
        if self._max_records is not None:
            while len(self._records) > self._max_records:
                evicted = next(iter(self._records))
                del self._records[evicted]
                log.debug("task_monitor.record_evicted", task_id=evicted)
        log.debug("task_monitor.task_started", task_id=task.task_id)

    def record_task_event(self, task_id: str, event: str, details: Any = None) -> None:
        if not self._enabled:
            return

        record = self._records.get(task_id)
        if record is None:
            log.warning("task_monitor.unknown_task", task_id=task_id, task_event=event)
            return
        record.events.append(
            TaskEvent(time=datetime.now(UTC), event=event, details=details or event)
        )

    def record_task_completion(
        self,
        task_id: str,
        status: TaskStatus,
        result: Any = None,
    ) -> None:
        if not self._enabled:
            return

        record = self._records.get(task_id)
        if record is None:
            log.warning(
                "task_monitor.unknown_task", task_id=task_id, task_event=TASK_COMPLETED
            )
            return

        now = datetime.now(UTC)
        record.end_time = now
        record.status = TaskStatus(status)
        record.result = result
        record.events.append(
            TaskEvent(
                time=now,
                event=TASK_COMPLETED,
                details=f"Task {task_id} completed with status: {record.status.value}",
            )
        )
        log.info(
            "task_monitor.task_completed",
            task_id=task_id,
            status=record.status.value,
            duration_ms=round(record.duration_ms or 0.0, 2),
        )

    def get_task_record(self, task_id: str) -> TaskProcessingRecord | None:
        return self._records.get(task_id)

    def get_user_task_records(self, user_id: str) -> list[TaskProcessingRecord]:
        return [r for r in self._records.values() if r.user_id == user_id]
