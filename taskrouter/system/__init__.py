"""System state, health monitoring and the task control program."""

from __future__ import annotations

from taskrouter.system.control import ControlProgram
from taskrouter.system.monitoring import SystemMonitor
from taskrouter.system.state import SystemMetrics, SystemState, SystemStateManager

__all__ = [
    "ControlProgram",
    "SystemMetrics",
    "SystemMonitor",
    "SystemState",
    "SystemStateManager",
]
