"""Agent task integration - maps coordination-layer tasks onto routing.

The integration layer sits between the agent coordination layer and model
execution:
1. Task type -> task category (static table, text generation otherwise)
2. Priority, context and payload size -> complexity estimate in [0, 1]
3. Category preamble + task fields + JSON payload -> prompt
4. Execute on the best model with base domain tags + task context
5. Record the outcome (and a placeholder evaluation) in performance
   monitoring

This is the only place execution failures are caught: they are logged,
recorded as failed executions and re-raised unchanged.
"""

from __future__ import annotations

import json
from collections.abc import Iterable

import structlog

from taskrouter.agents.types import AgentMessage, AgentTask, MessageType, TaskPriority
from taskrouter.llm.execution import ModelExecutor, now_ms
from taskrouter.llm.monitoring import PerformanceMonitor
from taskrouter.llm.orchestration import ModelOrchestrator
from taskrouter.llm.types import ExecutionRecord, TaskCategory, TaskRequest, clamp_unit
from taskrouter.telemetry import bind_task_context, bind_user_context, unbind_task_context

log = structlog.get_logger(__name__)

UNKNOWN_MODEL = "unknown"
MESSAGE_COMPLEXITY = 0.4

TASK_TYPE_CATEGORIES: dict[str, TaskCategory] = {
    "COGNITIVE_PROFILING": TaskCategory.CLASSIFICATION,
    "LEARNING_PATH_GENERATION": TaskCategory.CONTENT_CREATION,
    "CONTENT_ADAPTATION": TaskCategory.TEXT_GENERATION,
    "ASSESSMENT_GENERATION": TaskCategory.QUESTION_ANSWERING,
    "ENGAGEMENT_OPTIMIZATION": TaskCategory.REASONING,
    "FEEDBACK_GENERATION": TaskCategory.TEXT_GENERATION,
    "UI_OPTIMIZATION": TaskCategory.CLASSIFICATION,
    "SCHEDULE_OPTIMIZATION": TaskCategory.REASONING,
    "FLASHCARD_OPTIMIZATION": TaskCategory.CONTENT_CREATION,
}

PRIORITY_WEIGHTS: dict[TaskPriority, float] = {
    TaskPriority.CRITICAL: 0.9,
    TaskPriority.HIGH: 0.7,
    TaskPriority.MEDIUM: 0.5,
    TaskPriority.LOW: 0.3,
}

CATEGORY_PREAMBLES: dict[TaskCategory, str] = {
    TaskCategory.CLASSIFICATION: (
        "You are a precise classifier. Assign the input to the most fitting "
        "category and state your confidence."
    ),
    TaskCategory.CONTENT_CREATION: (
        "You are an instructional designer. Produce well-structured learning "
        "content tailored to the learner."
    ),
    TaskCategory.QUESTION_ANSWERING: (
        "You are an assessment author. Write clear questions with correct, "
        "unambiguous answers."
    ),
    TaskCategory.REASONING: (
        "You are an analytical planner. Reason step by step and justify the "
        "recommendation you reach."
    ),
    TaskCategory.SUMMARIZATION: "You are a concise summarizer. Keep only what matters.",
    TaskCategory.CODE_GENERATION: "You are a careful programmer. Return working code.",
    TaskCategory.TRANSLATION: "You are a faithful translator. Preserve meaning and tone.",
    TaskCategory.TEXT_GENERATION: "You are a helpful assistant for a learning platform.",
}

# Fixed figures until real user feedback is wired into evaluations.
PLACEHOLDER_EVALUATION = {
    "accuracy": 0.85,
    "quality_score": 0.8,
    "resource_efficiency": 0.75,
    "user_satisfaction": 0.8,
}

_PAYLOAD_KEY_THRESHOLD = 5


def map_task_type(task_type: str) -> TaskCategory:
    """Map an upstream task-type tag onto a task category."""
    return TASK_TYPE_CATEGORIES.get(task_type.upper(), TaskCategory.TEXT_GENERATION)


def estimate_complexity(task: AgentTask) -> float:
    """Estimate task complexity from priority, context and payload size.

    complexity = 0.5 * priority_weight
               + 0.3 * min(0.1 * context_count, 0.5)
               + 0.2 * (0.2 if payload has more than 5 keys else 0.1)
    """
    priority_weight = PRIORITY_WEIGHTS[task.priority]
    context_factor = min(0.1 * len(task.context), 0.5)
    payload_factor = 0.2 if len(task.data) > _PAYLOAD_KEY_THRESHOLD else 0.1
    return clamp_unit(0.5 * priority_weight + 0.3 * context_factor + 0.2 * payload_factor)


def build_prompt(task: AgentTask, category: TaskCategory) -> str:
    """Render an agent task into a model prompt."""
    description = task.description or "No description provided"
    context = ", ".join(task.context) if task.context else "none"
    payload = json.dumps(task.data, indent=2, sort_keys=True, default=str)

    return (
        f"{CATEGORY_PREAMBLES[category]}\n"
        "\n"
        f"Task: {task.task_type}\n"
        f"Description: {description}\n"
        f"Context: {context}\n"
        f"Priority: {task.priority.value.upper()}\n"
        f"User ID: {task.user_id}\n"
        "\n"
        "Task Data:\n"
        f"{payload}\n"
        "\n"
        "Please process this task and provide a complete response.\n"
    )


class AgentTaskIntegration:
    """Translates agent tasks into routing requests and executes them."""

    def __init__(
        self,
        orchestrator: ModelOrchestrator,
        executor: ModelExecutor,
        monitor: PerformanceMonitor,
        base_domain_tags: Iterable[str] = ("education", "learning"),
    ) -> None:
        self._orchestrator = orchestrator
        self._executor = executor
        self._monitor = monitor
        self._base_domain_tags = tuple(base_domain_tags)

    def to_request(self, task: AgentTask) -> TaskRequest:
        """Build the generic routing request for an agent task."""
        return TaskRequest(
            category=map_task_type(task.task_type),
            complexity=estimate_complexity(task),
            domain_context=self._base_domain_tags + tuple(task.context),
        )

    async def process_agent_task(self, task: AgentTask) -> str:
        """Execute an agent task on the best model and return its text.

        Raises:
            Any execution failure, after it has been logged and recorded
        """
        bind_task_context(task.task_id, task.task_type)
        bind_user_context(task.user_id)
        try:
            return await self._process(task)
        finally:
            unbind_task_context()

    async def _process(self, task: AgentTask) -> str:
        request = self.to_request(task)
        prompt = build_prompt(task, request.category)

        log.info(
            "agent_integration.task_received",
            category=request.category.value,
            complexity=round(request.complexity, 4),
            priority=task.priority.value,
        )

        start = now_ms()
        try:
            result = await self._executor.execute_with_optimal_model(
                prompt,
                request.category,
                request.complexity,
                request.domain_context,
            )
        except Exception as exc:
            end = now_ms()
            log.error(
                "agent_integration.task_failed",
                category=request.category.value,
                error_type=type(exc).__name__,
                error_message=str(exc),
            )
            self._monitor.record_execution(
                ExecutionRecord(
                    model_id=UNKNOWN_MODEL,
                    task_id=task.task_id,
                    start_time=start,
                    end_time=end,
                    success=False,
                    error_message=str(exc) or type(exc).__name__,
                )
            )
            raise

        self._monitor.record_execution(
            ExecutionRecord(
                model_id=result.model_id,
                task_id=task.task_id,
                start_time=start,
                end_time=now_ms(),
                input_tokens=result.token_count.input,
                output_tokens=result.token_count.output,
                success=True,
            )
        )
        self._monitor.record_evaluation(
            result.model_id,
            request.category,
            latency=result.execution_time_ms,
            **PLACEHOLDER_EVALUATION,
        )

        log.info(
            "agent_integration.task_completed",
            model_id=result.model_id,
            execution_time_ms=round(result.execution_time_ms, 2),
        )
        return result.text

    async def process_agent_message(self, message: AgentMessage) -> str:
        """Answer a free-form agent message with the best model.

        Raises:
            NoSuitableModelError: If no model supports the message category
        """
        if message.message_type == MessageType.NOTIFICATION:
            category = TaskCategory.CLASSIFICATION
        elif message.message_type == MessageType.TASK:
            category = TaskCategory.REASONING
        else:
            category = TaskCategory.TEXT_GENERATION

        payload = json.dumps(message.data, sort_keys=True, default=str)
        prompt = f"{message.content}\n\nAdditional data: {payload}"

        log.info(
            "agent_integration.message_received",
            message_type=message.message_type.value,
            category=category.value,
        )
        result = await self._executor.execute_with_optimal_model(
            prompt, category, MESSAGE_COMPLEXITY
        )
        return result.text

    def get_optimal_model_for_task_type(self, task_type: str) -> str | None:
        """Identity of the model a task type would be routed to right now.

        Read-only: nothing is executed or recorded.
        """
        descriptor = self._orchestrator.select_model_for_task(map_task_type(task_type))
        return descriptor.model_id if descriptor else None
