"""Runtime wiring - builds every component once and threads them together.

There are no module-level singletons: a Runtime owns one instance of each
component and hands references to the components that need them. Tests
build their own Runtime with a fast backend.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import structlog

from taskrouter.agents.integration import AgentTaskIntegration
from taskrouter.agents.task_monitor import TaskMonitor
from taskrouter.agents.types import AgentType
from taskrouter.config import Settings, get_settings
from taskrouter.llm.backends import InferenceBackend, build_backend
from taskrouter.llm.execution import ModelExecutor
from taskrouter.llm.monitoring import PerformanceMonitor
from taskrouter.llm.orchestration import ModelOrchestrator
from taskrouter.llm.parameters import ParameterOptimizer
from taskrouter.llm.providers import ProviderIntegration, default_providers
from taskrouter.llm.registry import ModelRegistry
from taskrouter.llm.selection import ModelSelector
from taskrouter.system.control import ControlProgram
from taskrouter.system.monitoring import SystemMonitor
from taskrouter.system.state import SystemStateManager
from taskrouter.telemetry import configure_logging

log = structlog.get_logger(__name__)


@dataclass
class Runtime:
    settings: Settings
    registry: ModelRegistry
    selector: ModelSelector
    parameters: ParameterOptimizer
    orchestrator: ModelOrchestrator
    executor: ModelExecutor
    performance: PerformanceMonitor
    providers: ProviderIntegration
    integration: AgentTaskIntegration
    task_monitor: TaskMonitor
    state: SystemStateManager
    system_monitor: SystemMonitor
    control: ControlProgram

    async def start(self) -> None:
        """Take an initial health snapshot and start periodic polling."""
        self.system_monitor.poll()
        await self.system_monitor.start()

    async def stop(self) -> None:
        await self.system_monitor.stop()


def build_runtime(
    settings: Settings | None = None,
    *,
    registry: ModelRegistry | None = None,
    backend: InferenceBackend | None = None,
) -> Runtime:
    """Construct a fully wired Runtime.

    Args:
        settings: Settings to use; defaults to get_settings()
        registry: Pre-built registry; defaults to the built-in catalog
        backend: Inference backend; defaults to the one named in settings

    Returns:
        Runtime with every component constructed exactly once
    """
    settings = settings or get_settings()
    registry = registry if registry is not None else ModelRegistry.with_defaults()

    selector = ModelSelector(registry, domain_affinity=settings.domain_affinity)
    parameters = ParameterOptimizer(registry)
    orchestrator = ModelOrchestrator(registry, selector, parameters)
    executor = ModelExecutor(orchestrator, backend or build_backend(settings))
    performance = PerformanceMonitor(
        selector,
        execution_capacity=settings.execution_history_capacity,
        evaluation_capacity=settings.evaluation_history_capacity,
    )
    providers = ProviderIntegration(registry, default_providers())
    integration = AgentTaskIntegration(
        orchestrator,
        executor,
        performance,
        base_domain_tags=settings.agent_base_domain_tags,
    )
    task_monitor = TaskMonitor(max_records=settings.task_record_capacity)
    state = SystemStateManager(
        registered_agents=list(AgentType),
        completed_capacity=settings.completed_task_capacity,
    )
    system_monitor = SystemMonitor(
        state,
        registry,
        performance,
        interval_seconds=settings.health_poll_interval_seconds,
        recent_window=settings.health_recent_window,
    )
    control = ControlProgram(
        state,
        integration,
        system_monitor,
        task_monitor,
        orchestration_enabled=settings.llm_orchestration_enabled,
    )

    log.info(
        "runtime.built",
        environment=settings.environment.value,
        models=len(registry),
        backend=type(executor.backend).__name__,
    )

    return Runtime(
        settings=settings,
        registry=registry,
        selector=selector,
        parameters=parameters,
        orchestrator=orchestrator,
        executor=executor,
        performance=performance,
        providers=providers,
        integration=integration,
        task_monitor=task_monitor,
        state=state,
        system_monitor=system_monitor,
        control=control,
    )


@asynccontextmanager
async def lifespan(settings: Settings | None = None) -> AsyncIterator[Runtime]:
    """Process lifespan: configure logging, build, run health polling.

    Usage::

        async with lifespan() as runtime:
            text = await runtime.control.submit_task(task)
    """
    settings = settings or get_settings()

    # Configure structured logging first (before any log calls)
    configure_logging(
        json_logs=settings.log_json or settings.is_prod,
        log_level="DEBUG" if settings.debug else settings.log_level,
    )

    runtime = build_runtime(settings)
    await runtime.start()
    log.info("runtime.started", environment=settings.environment.value)
    try:
        yield runtime
    finally:
        await runtime.stop()
        log.info("runtime.stopped")
