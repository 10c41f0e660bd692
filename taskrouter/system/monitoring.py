"""Periodic system health snapshots.

SystemMonitor polls the model registry and performance monitor at a fixed
interval and writes the results into SystemState variables. The snapshots
are advisory telemetry for dashboards; selection never reads them.

Usage::

    monitor = SystemMonitor(state, registry, performance, interval_seconds=60)
    await monitor.start()   # background asyncio task
    ...
    await monitor.stop()
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import Any

import structlog

from taskrouter.llm.monitoring import PerformanceMonitor
from taskrouter.llm.registry import ModelRegistry
from taskrouter.system.state import SystemStateManager

log = structlog.get_logger(__name__)

VAR_LLM_AVAILABLE = "llm_system_available"
VAR_LAST_HEALTH_CHECK = "last_health_check"
VAR_RECENT_EXECUTIONS = "recent_executions"
VAR_RECENT_FAILURES = "recent_failures"
VAR_REGISTERED_MODELS = "registered_models"


class SystemMonitor:
    """Health poller writing snapshots into system state.

    Args:
        state: State manager receiving snapshot variables
        registry: Registry whose non-emptiness defines health
        performance: Source of recent execution counts
        interval_seconds: Seconds between polls
        recent_window: How many recent executions each snapshot covers
    """

    def __init__(
        self,
        state: SystemStateManager,
        registry: ModelRegistry,
        performance: PerformanceMonitor,
        interval_seconds: float = 60.0,
        recent_window: int = 100,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._state = state
        self._registry = registry
        self._performance = performance
        self._interval = interval_seconds
        self._recent_window = recent_window

        self._running = False
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._running

    def is_llm_system_initialized(self) -> bool:
        return len(self._registry) > 0

    def poll(self) -> dict[str, Any]:
        """Take one health snapshot and store it in the state variables."""
        recent = self._performance.get_recent_executions(self._recent_window)
        snapshot = {
            VAR_LLM_AVAILABLE: self.is_llm_system_initialized(),
            VAR_REGISTERED_MODELS: len(self._registry),
            VAR_RECENT_EXECUTIONS: len(recent),
            VAR_RECENT_FAILURES: sum(1 for r in recent if not r.success),
            VAR_LAST_HEALTH_CHECK: datetime.now(UTC).isoformat(),
        }
        for key, value in snapshot.items():
            self._state.set_variable(key, value)

        log.debug("system_monitor.health_polled", **snapshot)
        return snapshot

    def get_llm_performance_metrics(self) -> dict[str, Any]:
        """Per-model aggregated evaluations plus an execution summary."""
        models: dict[str, dict[str, float]] = {}
        for model_id in self._performance.evaluated_models():
            performance = self._performance.get_model_performance(model_id)
            if performance is not None:
                models[model_id] = performance.as_metrics()
        return {
            "models": models,
            "executions": self._performance.execution_summary(self._recent_window),
        }

    # ---------------------------------------------------------------- #
    # Background loop
    # ---------------------------------------------------------------- #

    async def start(self) -> None:
        """Start polling every ``interval_seconds`` until stop() is called."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._poll_loop())
        log.info("system_monitor.started", interval_seconds=self._interval)

    async def stop(self) -> None:
        """Stop the background polling task."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        log.info("system_monitor.stopped")

    async def _poll_loop(self) -> None:
        while self._running:
            try:
                self.poll()
            except Exception as exc:  # noqa: BLE001
                log.error("system_monitor.poll_error", error=str(exc))
            await asyncio.sleep(self._interval)
