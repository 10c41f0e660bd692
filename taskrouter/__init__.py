"""Adaptive task routing and model orchestration.

Selects, executes and re-evaluates pluggable inference backends for work
items handed over by a multi-agent coordination layer. Build a fully wired
instance graph with :func:`taskrouter.runtime.build_runtime`.
"""

from __future__ import annotations

__version__ = "0.1.0"
