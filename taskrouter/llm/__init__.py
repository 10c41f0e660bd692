"""Model routing: registry, selection, parameters, execution and monitoring.

This package selects the most suitable registered model for a task using
capability, resource, complexity, observed-performance and domain factors,
runs it through a pluggable inference backend, and feeds execution outcomes
and evaluations back into future selections.
"""

from __future__ import annotations

from taskrouter.llm.backends import InferenceBackend, LiteLLMBackend, SimulatedBackend
from taskrouter.llm.execution import ModelExecutor
from taskrouter.llm.monitoring import PerformanceMonitor
from taskrouter.llm.orchestration import ModelOrchestrator
from taskrouter.llm.parameters import ParameterOptimizer
from taskrouter.llm.providers import ProviderConfig, ProviderIntegration
from taskrouter.llm.registry import ModelRegistry
from taskrouter.llm.selection import ModelSelector, SelectionOutcome
from taskrouter.llm.types import (
    ExecutionRecord,
    ExecutionResult,
    ModelDescriptor,
    ModelEvaluation,
    ModelParameters,
    ResourceCeiling,
    ResourceRequirements,
    TaskCategory,
    TaskRequest,
    TokenCount,
)

__all__ = [
    "ExecutionRecord",
    "ExecutionResult",
    "InferenceBackend",
    "LiteLLMBackend",
    "ModelDescriptor",
    "ModelEvaluation",
    "ModelExecutor",
    "ModelOrchestrator",
    "ModelParameters",
    "ModelRegistry",
    "ModelSelector",
    "ParameterOptimizer",
    "PerformanceMonitor",
    "ProviderConfig",
    "ProviderIntegration",
    "ResourceCeiling",
    "ResourceRequirements",
    "SelectionOutcome",
    "SimulatedBackend",
    "TaskCategory",
    "TaskRequest",
    "TokenCount",
]
