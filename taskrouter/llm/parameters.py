"""Task-specific parameter overlays and the model preload marker.

Overlay per category, applied on a copy of the model defaults:
- classification: temperature 0.3 (deterministic labels)
- summarization: temperature 0.5, max_tokens capped at 512
- code_generation: temperature 0.2, top_p 0.95
- reasoning: temperature 0.8, top_p 0.9
Other categories keep the model defaults.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog

from taskrouter.llm.types import ModelParameters, TaskCategory

if TYPE_CHECKING:
    from taskrouter.llm.registry import ModelRegistry

log = structlog.get_logger(__name__)

SUMMARY_MAX_TOKENS = 512

_CATEGORY_OVERLAYS: dict[TaskCategory, dict[str, Any]] = {
    TaskCategory.CLASSIFICATION: {"temperature": 0.3},
    TaskCategory.SUMMARIZATION: {"temperature": 0.5},
    TaskCategory.CODE_GENERATION: {"temperature": 0.2, "top_p": 0.95},
    TaskCategory.REASONING: {"temperature": 0.8, "top_p": 0.9},
}


class ParameterOptimizer:
    """Derives per-invocation parameter overlays from registry defaults."""

    def __init__(self, registry: ModelRegistry) -> None:
        self._registry = registry
        self._preloaded: dict[str, datetime] = {}

    def get_optimized_parameters(
        self,
        model_id: str,
        category: TaskCategory,
    ) -> ModelParameters:
        """Return the model defaults adjusted for a task category.

        Raises:
            ModelNotFoundError: If the model is not registered
        """
        descriptor = self._registry.require(model_id)
        category = TaskCategory(category)
        params = descriptor.default_parameters

        overlay = dict(_CATEGORY_OVERLAYS.get(category, {}))
        if category == TaskCategory.SUMMARIZATION:
            overlay["max_tokens"] = min(params.max_tokens, SUMMARY_MAX_TOKENS)

        if overlay:
            params = replace(params, **overlay)
        return params

    # ---------------------------------------------------------------- #
    # Preload marker
    # ---------------------------------------------------------------- #

    def preload_model(self, model_id: str) -> None:
        """Mark a model as warmed up.

        The marker is a readiness signal only; nothing is loaded.

        Raises:
            ModelNotFoundError: If the model is not registered
        """
        self._registry.require(model_id)
        self._preloaded[model_id] = datetime.now(UTC)
        log.info("model_parameters.model_preloaded", model_id=model_id)

    def is_preloaded(self, model_id: str) -> bool:
        return model_id in self._preloaded

    def preloaded_at(self, model_id: str) -> datetime | None:
        return self._preloaded.get(model_id)

    def evict(self, model_id: str) -> bool:
        """Drop the preload marker; returns whether one was present."""
        removed = self._preloaded.pop(model_id, None) is not None
        if removed:
            log.info("model_parameters.model_evicted", model_id=model_id)
        return removed
