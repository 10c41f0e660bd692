"""Orchestration facade over registry, selection and parameters.

Callers that only need "which model, with which knobs" talk to this one
object instead of wiring the three components themselves.
"""

from __future__ import annotations

from collections.abc import Iterable

from taskrouter.llm.parameters import ParameterOptimizer
from taskrouter.llm.registry import ModelRegistry
from taskrouter.llm.selection import ModelSelector, SelectionOutcome
from taskrouter.llm.types import (
    ModelDescriptor,
    ModelEvaluation,
    ModelParameters,
    ResourceCeiling,
    TaskCategory,
)


class ModelOrchestrator:
    """Single entry point composing the model registry, selector and
    parameter optimizer."""

    def __init__(
        self,
        registry: ModelRegistry,
        selector: ModelSelector,
        parameters: ParameterOptimizer,
    ) -> None:
        self.registry = registry
        self.selector = selector
        self.parameters = parameters

    def register_model(self, descriptor: ModelDescriptor) -> None:
        self.registry.register(descriptor)

    def get_model(self, model_id: str) -> ModelDescriptor | None:
        return self.registry.get(model_id)

    def list_models(self) -> list[ModelDescriptor]:
        return self.registry.list_models()

    def select_model_for_task(
        self,
        category: TaskCategory,
        complexity: float = 0.5,
        domain_context: Iterable[str] = (),
        ceiling: ResourceCeiling | None = None,
    ) -> ModelDescriptor | None:
        return self.selector.select(category, complexity, domain_context, ceiling)

    def explain_selection(
        self,
        category: TaskCategory,
        complexity: float = 0.5,
        domain_context: Iterable[str] = (),
        ceiling: ResourceCeiling | None = None,
    ) -> SelectionOutcome:
        return self.selector.select_with_details(category, complexity, domain_context, ceiling)

    def update_model_metrics(self, model_id: str, **partial: float) -> ModelEvaluation:
        return self.selector.update_metrics(model_id, **partial)

    def get_model_metrics(self, model_id: str) -> ModelEvaluation | None:
        return self.selector.get_metrics(model_id)

    def get_optimized_parameters(
        self,
        model_id: str,
        category: TaskCategory,
    ) -> ModelParameters:
        return self.parameters.get_optimized_parameters(model_id, category)

    def preload_model(self, model_id: str) -> None:
        self.parameters.preload_model(model_id)

    def is_preloaded(self, model_id: str) -> bool:
        return self.parameters.is_preloaded(model_id)
