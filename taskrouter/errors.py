"""Domain exceptions for routing, execution and provider lookups.

Lookup failures surface immediately and are never retried inside the
core; recovery policy belongs to the caller.
"""

from __future__ import annotations


class TaskRouterError(Exception):
    """Base exception for all task routing failures."""


class ModelNotFoundError(TaskRouterError):
    """A model identity is not present in the registry."""

    def __init__(self, model_id: str) -> None:
        super().__init__(f"Model not found: {model_id}")
        self.model_id = model_id


class ProviderNotFoundError(TaskRouterError):
    """A provider name is not registered."""

    def __init__(self, provider_name: str) -> None:
        super().__init__(f"Provider not found: {provider_name}")
        self.provider_name = provider_name


class NoSuitableModelError(TaskRouterError):
    """Model selection produced no candidate for an execution request."""

    def __init__(self, category: str) -> None:
        super().__init__(f"No suitable model found for task: {category}")
        self.category = category


class InferenceError(TaskRouterError):
    """The pluggable inference backend failed to produce output."""
