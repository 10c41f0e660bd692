"""
Shared test fixtures for pytest.

Provides common instances for all test modules:
- test_settings: Test environment configuration (no simulated delay)
- registry: Registry pre-loaded with the built-in catalog
- selector / orchestrator / monitor: Components wired to that registry
- runtime: Fully wired Runtime on a zero-delay simulated backend
- make_descriptor / make_task: Builders for test data
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

import pytest

from taskrouter.agents.types import AgentTask, TaskPriority
from taskrouter.config import Environment, Settings, get_settings
from taskrouter.llm.backends import SimulatedBackend
from taskrouter.llm.monitoring import PerformanceMonitor
from taskrouter.llm.orchestration import ModelOrchestrator
from taskrouter.llm.parameters import ParameterOptimizer
from taskrouter.llm.registry import ModelRegistry
from taskrouter.llm.selection import ModelSelector
from taskrouter.llm.types import (
    ModelDescriptor,
    ModelParameters,
    ResourceRequirements,
    TaskCategory,
)
from taskrouter.runtime import Runtime, build_runtime
from taskrouter.telemetry import clear_context


# ------------------------------------------------------------------ #
# Session-scoped: clear settings cache between test sessions
# ------------------------------------------------------------------ #

@pytest.fixture(autouse=True, scope="session")
def _clear_settings_cache():
    """Clear the lru_cache on get_settings so test overrides take effect."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _clear_log_context():
    yield
    clear_context()


# ------------------------------------------------------------------ #
# Builders
# ------------------------------------------------------------------ #

def build_descriptor(
    model_id: str,
    capabilities: Iterable[TaskCategory],
    memory: float = 4,
    compute_units: float = 2,
    **kwargs,
) -> ModelDescriptor:
    """Create a descriptor with sensible defaults for tests."""
    return ModelDescriptor(
        model_id=model_id,
        name=kwargs.pop("name", model_id),
        provider=kwargs.pop("provider", "test"),
        capabilities=frozenset(capabilities),
        resources=ResourceRequirements(memory=memory, compute_units=compute_units),
        default_parameters=kwargs.pop(
            "default_parameters",
            ModelParameters(temperature=0.7, max_tokens=1024, top_p=0.9),
        ),
        **kwargs,
    )


@pytest.fixture
def make_descriptor() -> Callable[..., ModelDescriptor]:
    return build_descriptor


@pytest.fixture
def make_task() -> Callable[..., AgentTask]:
    def _make(
        task_type: str = "COGNITIVE_PROFILING",
        priority: TaskPriority | str = TaskPriority.MEDIUM,
        context: list[str] | None = None,
        data: dict | None = None,
        task_id: str = "task-1",
        **kwargs,
    ) -> AgentTask:
        return AgentTask(
            task_id=task_id,
            user_id=kwargs.pop("user_id", "user-1"),
            task_type=task_type,
            description=kwargs.pop("description", "Profile the learner"),
            priority=priority,
            context=context if context is not None else [],
            data=data if data is not None else {},
            **kwargs,
        )

    return _make


# ------------------------------------------------------------------ #
# Settings & component fixtures
# ------------------------------------------------------------------ #

@pytest.fixture
def test_settings() -> Settings:
    """Settings for a fast, deterministic test runtime."""
    return Settings(
        environment=Environment.TEST,
        simulated_latency_per_compute_unit_ms=0,
        execution_history_capacity=100,
        health_poll_interval_seconds=0.01,
    )


@pytest.fixture
def registry() -> ModelRegistry:
    return ModelRegistry.with_defaults()


@pytest.fixture
def selector(registry: ModelRegistry) -> ModelSelector:
    return ModelSelector(registry, domain_affinity={"accounting": "llama3"})


@pytest.fixture
def orchestrator(registry: ModelRegistry, selector: ModelSelector) -> ModelOrchestrator:
    return ModelOrchestrator(registry, selector, ParameterOptimizer(registry))


@pytest.fixture
def monitor(selector: ModelSelector) -> PerformanceMonitor:
    return PerformanceMonitor(selector, execution_capacity=100)


@pytest.fixture
def runtime(test_settings: Settings) -> Runtime:
    """Fully wired runtime on the built-in catalog with no simulated delay."""
    return build_runtime(test_settings, backend=SimulatedBackend(0))
