"""Model execution - invoke a model with merged parameters.

Execution shapes a request for the pluggable inference backend and
accounts for it:
1. Resolve the model (unknown identity fails before any side effect)
2. Merge the category overlay with caller overrides
3. Invoke the backend and measure wall-clock time
4. Estimate token counts from content length (4 characters per token)
5. Push the observed latency into the selector's metrics

Execution does not catch backend failures; they propagate to the caller.
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from typing import Any

import structlog

from taskrouter.errors import NoSuitableModelError
from taskrouter.llm.backends import InferenceBackend
from taskrouter.llm.orchestration import ModelOrchestrator
from taskrouter.llm.types import (
    ExecutionResult,
    ResourceCeiling,
    TaskCategory,
    TokenCount,
)

log = structlog.get_logger(__name__)

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Rough token estimate used when the backend reports no usage."""
    return len(text) // CHARS_PER_TOKEN


def now_ms() -> float:
    """Wall-clock time in epoch milliseconds."""
    return time.time() * 1000.0


class ModelExecutor:
    """Runs prompts on registered models through an inference backend."""

    def __init__(
        self,
        orchestrator: ModelOrchestrator,
        backend: InferenceBackend,
    ) -> None:
        self._orchestrator = orchestrator
        self._backend = backend

    @property
    def backend(self) -> InferenceBackend:
        return self._backend

    async def execute_task(
        self,
        model_id: str,
        prompt: str,
        category: TaskCategory,
        overrides: dict[str, Any] | None = None,
    ) -> ExecutionResult:
        """Execute a prompt on a specific model.

        Args:
            model_id: Registry identity of the model
            prompt: Prompt text
            category: Task category, used for the parameter overlay
            overrides: Caller parameter overrides applied last

        Returns:
            ExecutionResult with text, timing and token accounting

        Raises:
            ModelNotFoundError: If the model is not registered
            InferenceError: If the backend fails
        """
        category = TaskCategory(category)
        descriptor = self._orchestrator.registry.require(model_id)
        parameters = self._orchestrator.get_optimized_parameters(model_id, category).merged(
            overrides
        )

        log.info(
            "model_execution.started",
            model_id=model_id,
            category=category.value,
            temperature=parameters.temperature,
            max_tokens=parameters.max_tokens,
        )

        start = now_ms()
        text = await self._backend.invoke(descriptor, prompt, category, parameters)
        elapsed = now_ms() - start

        token_count = TokenCount(input=estimate_tokens(prompt), output=estimate_tokens(text))
        truncated = token_count.output > parameters.max_tokens

        self._orchestrator.update_model_metrics(model_id, latency=elapsed)

        log.info(
            "model_execution.completed",
            model_id=model_id,
            execution_time_ms=round(elapsed, 2),
            input_tokens=token_count.input,
            output_tokens=token_count.output,
            truncated=truncated,
        )

        return ExecutionResult(
            text=text,
            model_id=model_id,
            execution_time_ms=elapsed,
            token_count=token_count,
            truncated=truncated,
        )

    async def execute_with_optimal_model(
        self,
        prompt: str,
        category: TaskCategory,
        complexity: float = 0.5,
        domain_context: Iterable[str] = (),
        overrides: dict[str, Any] | None = None,
        ceiling: ResourceCeiling | None = None,
    ) -> ExecutionResult:
        """Select the best model for the task and execute on it.

        Raises:
            NoSuitableModelError: If no registered model supports the category
        """
        category = TaskCategory(category)
        descriptor = self._orchestrator.select_model_for_task(
            category, complexity, domain_context, ceiling
        )
        if descriptor is None:
            log.error("model_execution.no_suitable_model", category=category.value)
            raise NoSuitableModelError(category.value)

        return await self.execute_task(descriptor.model_id, prompt, category, overrides)
