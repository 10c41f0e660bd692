"""Live runtime state: active agents, task queue and rolling metrics.

SystemState is created once per runtime and mutated in place through
SystemStateManager. Readers get deep-copied snapshots.
"""

from __future__ import annotations

import copy
from collections import Counter, deque
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import structlog

from taskrouter.agents.types import AgentTask, AgentType, TaskStatus

log = structlog.get_logger(__name__)


@dataclass
class SystemMetrics:
    """Rolling task metrics.

    Attributes:
        tasks_completed: Tasks that finished, successfully or not
        average_response_time_ms: Streaming mean of task response times
        success_rate: Streaming fraction of successful completions
        completion_rate: Completed / (completed + still queued)
        user_satisfaction: Latest satisfaction score (0.0-1.0)
    """

    tasks_completed: int = 0
    average_response_time_ms: float = 0.0
    success_rate: float = 0.0
    completion_rate: float = 0.0
    user_satisfaction: float = 0.0


@dataclass
class SystemState:
    active_agents: set[AgentType] = field(default_factory=set)
    task_queue: list[AgentTask] = field(default_factory=list)
    completed_tasks: deque[AgentTask] = field(default_factory=deque)
    metrics: SystemMetrics = field(default_factory=SystemMetrics)
    variables: dict[str, Any] = field(default_factory=dict)
    last_updated: datetime = field(default_factory=lambda: datetime.now(UTC))


class SystemStateManager:
    """Owns the SystemState and every mutation of it.

    Agent activations are reference counted: an agent targeted by several
    in-flight tasks stays active until the last of them releases it.

    Args:
        registered_agents: Agents known to the coordination layer
        completed_capacity: Optional bound on retained completed tasks;
            None keeps every completed task for the process lifetime
    """

    def __init__(
        self,
        registered_agents: Iterable[AgentType] = (),
        completed_capacity: int | None = None,
    ) -> None:
        if completed_capacity is not None and completed_capacity < 1:
            raise ValueError("completed_capacity must be positive")
        self._state = SystemState(completed_tasks=deque(maxlen=completed_capacity))
        self._registered_agents = frozenset(AgentType(a) for a in registered_agents)
        self._activations: Counter[AgentType] = Counter()

    @property
    def registered_agents(self) -> frozenset[AgentType]:
        return self._registered_agents

    def _touch(self) -> None:
        self._state.last_updated = datetime.now(UTC)

    # ---------------------------------------------------------------- #
    # Agents
    # ---------------------------------------------------------------- #

    def activate_agent(self, agent: AgentType) -> bool:
        """Take one activation on an agent.

        Returns:
            True if the agent became active, False if it already was
        """
        agent = AgentType(agent)
        self._activations[agent] += 1
        if self._activations[agent] > 1:
            return False
        self._state.active_agents.add(agent)
        self._touch()
        log.info("system_state.agent_activated", agent_type=agent.value)
        return True

    def deactivate_agent(self, agent: AgentType) -> bool:
        """Release one activation on an agent.

        Returns:
            True if the last activation was released and the agent is now
            inactive, False otherwise
        """
        agent = AgentType(agent)
        if self._activations[agent] == 0:
            return False
        self._activations[agent] -= 1
        if self._activations[agent] > 0:
            log.debug(
                "system_state.agent_still_in_use",
                agent_type=agent.value,
                activations=self._activations[agent],
            )
            return False
        del self._activations[agent]
        self._state.active_agents.discard(agent)
        self._touch()
        log.info("system_state.agent_deactivated", agent_type=agent.value)
        return True

    def is_active(self, agent: AgentType) -> bool:
        return AgentType(agent) in self._state.active_agents

    def activation_count(self, agent: AgentType) -> int:
        return self._activations[AgentType(agent)]

    # ---------------------------------------------------------------- #
    # Tasks
    # ---------------------------------------------------------------- #

    def enqueue_task(self, task: AgentTask) -> None:
        task.status = TaskStatus.PENDING
        self._state.task_queue.append(task)
        self._refresh_completion_rate()
        self._touch()

    def start_task(self, task_id: str) -> AgentTask | None:
        task = self._find_queued(task_id)
        if task is not None:
            task.status = TaskStatus.IN_PROGRESS
            self._touch()
        return task

    def complete_task(self, task_id: str, success: bool = True) -> AgentTask | None:
        """Move a queued task to the completed tasks, evicting the oldest at capacity.

        Returns:
            The task, or None if it was not queued
        """
        task = self._find_queued(task_id)
        if task is None:
            log.warning("system_state.task_not_queued", task_id=task_id)
            return None
        self._state.task_queue.remove(task)
        task.status = TaskStatus.COMPLETED if success else TaskStatus.FAILED
        self._state.completed_tasks.append(task)
        self._touch()
        return task

    def _find_queued(self, task_id: str) -> AgentTask | None:
        for task in self._state.task_queue:
            if task.task_id == task_id:
                return task
        return None

    # ---------------------------------------------------------------- #
    # Metrics & variables
    # ---------------------------------------------------------------- #

    def update_metrics_after_task_completion(
        self,
        response_time_ms: float,
        success: bool,
    ) -> SystemMetrics:
        """Fold one finished task into the streaming averages."""
        metrics = self._state.metrics
        count = metrics.tasks_completed

        metrics.average_response_time_ms = (
            metrics.average_response_time_ms * count + response_time_ms
        ) / (count + 1)
        metrics.success_rate = (metrics.success_rate * count + (1.0 if success else 0.0)) / (
            count + 1
        )
        metrics.tasks_completed = count + 1
        self._refresh_completion_rate()
        self._touch()

        log.debug(
            "system_state.metrics_updated",
            tasks_completed=metrics.tasks_completed,
            average_response_time_ms=round(metrics.average_response_time_ms, 2),
            success_rate=round(metrics.success_rate, 4),
        )
        return copy.copy(metrics)

    def set_user_satisfaction(self, score: float) -> None:
        self._state.metrics.user_satisfaction = max(0.0, min(1.0, score))
        self._touch()

    def _refresh_completion_rate(self) -> None:
        metrics = self._state.metrics
        total = metrics.tasks_completed + len(self._state.task_queue)
        metrics.completion_rate = metrics.tasks_completed / total if total else 0.0

    def set_variable(self, key: str, value: Any) -> None:
        self._state.variables[key] = value
        self._touch()

    def get_variable(self, key: str, default: Any = None) -> Any:
        return self._state.variables.get(key, default)

    def snapshot(self) -> SystemState:
        """Deep copy of the current state; safe to hand to readers."""
        return copy.deepcopy(self._state)
