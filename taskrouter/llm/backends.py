"""Pluggable inference capabilities used by model execution.

Execution never talks to a model runtime directly; it hands the prompt and
the merged parameters to an InferenceBackend. Two backends ship:

- SimulatedBackend: fixed-format text after a delay proportional to the
  model's compute units. Default for dev and tests.
- LiteLLMBackend: real completions through a LiteLLM proxy, which keeps
  provider keys out of this process and lets models be swapped by config.

Backends do not retry. A failure is normalized to InferenceError and
propagates to the caller.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Protocol, runtime_checkable

import litellm
import structlog

from taskrouter.config import Settings
from taskrouter.errors import InferenceError
from taskrouter.llm.types import ModelDescriptor, ModelParameters, TaskCategory

log = structlog.get_logger(__name__)

_PROMPT_PREVIEW_SUMMARY = 50
_PROMPT_PREVIEW_GENERIC = 30


@runtime_checkable
class InferenceBackend(Protocol):
    """Anything that can turn a prompt into text for a given model."""

    async def invoke(
        self,
        descriptor: ModelDescriptor,
        prompt: str,
        category: TaskCategory,
        parameters: ModelParameters,
    ) -> str: ...


class SimulatedBackend:
    """Deterministic stand-in for a model runtime.

    Args:
        latency_per_compute_unit_ms: Delay per compute unit of the model.
            Zero disables sleeping entirely.
    """

    def __init__(self, latency_per_compute_unit_ms: float = 100.0) -> None:
        if latency_per_compute_unit_ms < 0:
            raise ValueError("latency_per_compute_unit_ms cannot be negative")
        self._latency_per_unit_ms = latency_per_compute_unit_ms

    async def invoke(
        self,
        descriptor: ModelDescriptor,
        prompt: str,
        category: TaskCategory,
        parameters: ModelParameters,
    ) -> str:
        if category == TaskCategory.SUMMARIZATION:
            text = f"[Summary from {descriptor.name}]: {prompt[:_PROMPT_PREVIEW_SUMMARY]}..."
        elif category == TaskCategory.CLASSIFICATION:
            text = f"[Classification from {descriptor.name}]: Category A (95% confidence)"
        else:
            text = (
                f"This is a response from {descriptor.name} to the prompt: "
                f'"{prompt[:_PROMPT_PREVIEW_GENERIC]}..."'
            )

        delay_ms = descriptor.resources.compute_units * self._latency_per_unit_ms
        if delay_ms > 0:
            await asyncio.sleep(delay_ms / 1000.0)
        return text


class LiteLLMBackend:
    """Chat completions through a LiteLLM proxy.

    Args:
        settings: Settings carrying the proxy URL and API key
        model_map: Optional registry identity -> LiteLLM model string.
            Unmapped identities are sent as-is.
    """

    def __init__(
        self,
        settings: Settings,
        model_map: Mapping[str, str] | None = None,
    ) -> None:
        self._api_base = settings.litellm_base_url
        self._api_key = settings.litellm_api_key.get_secret_value()
        self._model_map = dict(model_map or {})

    def resolve_model(self, descriptor: ModelDescriptor) -> str:
        return self._model_map.get(descriptor.model_id, descriptor.model_id)

    async def invoke(
        self,
        descriptor: ModelDescriptor,
        prompt: str,
        category: TaskCategory,
        parameters: ModelParameters,
    ) -> str:
        model = self.resolve_model(descriptor)
        log.debug(
            "llm_backend.completion_request",
            model=model,
            category=category.value,
            max_tokens=parameters.max_tokens,
        )

        try:
            response = await litellm.acompletion(
                model=model,
                messages=[{"role": "user", "content": prompt}],
                api_base=self._api_base,
                api_key=self._api_key,
                **parameters.to_dict(),
            )
        except Exception as exc:
            raise InferenceError(f"Inference failed for {descriptor.model_id}: {exc}") from exc

        usage = getattr(response, "usage", None)
        if usage:
            log.info(
                "llm_backend.completion_done",
                model=model,
                prompt_tokens=usage.prompt_tokens,
                completion_tokens=usage.completion_tokens,
            )

        try:
            return response.choices[0].message.content or ""
        except (AttributeError, IndexError, KeyError):
            return ""


def build_backend(settings: Settings) -> InferenceBackend:
    """Construct the backend named by settings.inference_backend."""
    if settings.inference_backend == "litellm":
        return LiteLLMBackend(settings)
    return SimulatedBackend(settings.simulated_latency_per_compute_unit_ms)
