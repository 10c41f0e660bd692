"""Control program - top-level coordinator for submitted agent tasks.

The control program ties task bookkeeping to routing:
1. Record the task in the task monitor and queue it in system state
2. If model orchestration is enabled, mark target agents active and route
   the task through agent integration
3. Move the task to completed/failed and fold its response time into the
   rolling metrics
4. Return the produced text, or re-raise the failure

With orchestration disabled, tasks stay queued for another consumer.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

import structlog

from taskrouter.agents.integration import AgentTaskIntegration
from taskrouter.agents.task_monitor import TaskMonitor
from taskrouter.agents.types import (
    AgentMessage,
    AgentTask,
    AgentType,
    TaskPriority,
    TaskStatus,
)
from taskrouter.llm.execution import now_ms
from taskrouter.system.monitoring import VAR_LLM_AVAILABLE, SystemMonitor
from taskrouter.system.state import SystemState, SystemStateManager

log = structlog.get_logger(__name__)

VAR_ORCHESTRATION_ENABLED = "llm_orchestration_enabled"
VAR_LAST_BROADCAST = "last_broadcast"

INITIAL_TASK_TYPE = "COGNITIVE_PROFILING"
INITIAL_TASK_CONTEXT = ("initial_setup", "user_profile")


class ControlProgram:
    """Coordinates task submission, state bookkeeping and routing."""

    def __init__(
        self,
        state: SystemStateManager,
        integration: AgentTaskIntegration,
        system_monitor: SystemMonitor,
        task_monitor: TaskMonitor,
        orchestration_enabled: bool = True,
    ) -> None:
        self._state = state
        self._integration = integration
        self._system_monitor = system_monitor
        self._task_monitor = task_monitor
        self._orchestration_enabled = orchestration_enabled

    async def submit_task(self, task: AgentTask) -> str | None:
        """Queue a task and, when orchestration is on, process it.

        Returns:
            Model output text, or None if the task was only queued

        Raises:
            Any failure from agent integration, after bookkeeping
        """
        log.info(
            "control_program.task_submitted",
            task_id=task.task_id,
            task_type=task.task_type,
            priority=task.priority.value,
            target_agents=[a.value for a in task.target_agent_types],
        )
        self._task_monitor.record_task_start(task)
        self._state.enqueue_task(task)

        if not self._orchestration_enabled:
            self._task_monitor.record_task_event(task.task_id, "QUEUED", "orchestration disabled")
            return None

        targets = list(task.target_agent_types)
        for agent in targets:
            self._state.activate_agent(agent)
        self._state.start_task(task.task_id)
        self._task_monitor.record_task_event(task.task_id, "ROUTED")

        start = now_ms()
        try:
            text = await self._integration.process_agent_task(task)
        except Exception as exc:
            elapsed = now_ms() - start
            self._state.complete_task(task.task_id, success=False)
            self._state.update_metrics_after_task_completion(elapsed, success=False)
            self._task_monitor.record_task_completion(task.task_id, TaskStatus.FAILED, str(exc))
            raise
        else:
            elapsed = now_ms() - start
            self._state.complete_task(task.task_id, success=True)
            self._state.update_metrics_after_task_completion(elapsed, success=True)
            self._task_monitor.record_task_completion(task.task_id, TaskStatus.COMPLETED, text)
            return text
        finally:
            for agent in targets:
                self._state.deactivate_agent(agent)

    async def initialize_for_user(self, user_id: str) -> str | None:
        """Submit the initial cognitive profiling task for a new user.

        Returns:
            Model output text, or None if orchestration is disabled

        Raises:
            ValueError: If user_id is empty
        """
        if not user_id:
            raise ValueError("user_id cannot be empty")

        log.info("control_program.initializing_user", user_id=user_id)
        task = AgentTask(
            task_id=f"initial-cognitive-profiling-{uuid.uuid4().hex[:12]}",
            user_id=user_id,
            task_type=INITIAL_TASK_TYPE,
            description="Initial cognitive profiling for user",
            priority=TaskPriority.HIGH,
            context=list(INITIAL_TASK_CONTEXT),
            target_agent_types=[AgentType.COGNITIVE_PROFILE],
        )
        return await self.submit_task(task)

    def get_system_state(self) -> SystemState:
        """Snapshot of system state including orchestration status."""
        state = self._state.snapshot()
        state.variables[VAR_LLM_AVAILABLE] = self._system_monitor.is_llm_system_initialized()
        state.variables[VAR_ORCHESTRATION_ENABLED] = self._orchestration_enabled
        return state

    def set_orchestration_enabled(self, enabled: bool) -> None:
        self._orchestration_enabled = enabled
        log.info("control_program.orchestration_toggled", enabled=enabled)
        self.broadcast_message(
            AgentMessage(
                message_type="SYSTEM",
                content=f"LLM orchestration has been {'enabled' if enabled else 'disabled'}",
                data={VAR_ORCHESTRATION_ENABLED: enabled},
            )
        )

    def is_orchestration_enabled(self) -> bool:
        return self._orchestration_enabled

    def broadcast_message(
        self,
        message: AgentMessage,
        target_agents: list[AgentType] | None = None,
    ) -> None:
        """Publish a message to all (or selected) agents via system state."""
        targets = sorted(a.value for a in target_agents) if target_agents else "all"
        self._state.set_variable(
            VAR_LAST_BROADCAST,
            {
                "type": message.message_type.value,
                "content": message.content,
                "data": dict(message.data),
                "targets": targets,
                "timestamp": datetime.now(UTC).isoformat(),
            },
        )
        log.info(
            "control_program.message_broadcast",
            message_type=message.message_type.value,
            targets=targets,
        )

    def get_llm_performance_metrics(self) -> dict[str, Any]:
        return self._system_monitor.get_llm_performance_metrics()
