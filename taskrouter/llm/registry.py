"""Model registry - static catalog of inference backends.

Each model is described by a ModelDescriptor declaring its capabilities,
resource needs and default execution parameters. Selection, parameter
optimization and execution all read from the same registry instance.

Default catalog:
- llama3-8b: small general model (text, QA, classification)
- llama3-70b: large model for reasoning and code generation
- mistral-7b: small model with summarization support
- mixtral-8x7b: mid-size mixture model for reasoning and summarization
"""

from __future__ import annotations

import structlog

from taskrouter.errors import ModelNotFoundError
from taskrouter.llm.types import (
    ModelDescriptor,
    ModelParameters,
    ResourceRequirements,
    TaskCategory,
)

log = structlog.get_logger(__name__)


def default_catalog() -> list[ModelDescriptor]:
    """Built-in descriptors registered at process start."""
    return [
        ModelDescriptor(
            model_id="llama3-8b",
            name="Llama 3 8B",
            provider="Meta",
            capabilities=frozenset(
                {
                    TaskCategory.TEXT_GENERATION,
                    TaskCategory.QUESTION_ANSWERING,
                    TaskCategory.CLASSIFICATION,
                }
            ),
            resources=ResourceRequirements(memory=4, compute_units=2),
            default_parameters=ModelParameters(temperature=0.7, max_tokens=1024, top_p=0.9),
            context_length=8192,
        ),
        ModelDescriptor(
            model_id="llama3-70b",
            name="Llama 3 70B",
            provider="Meta",
            capabilities=frozenset(
                {
                    TaskCategory.TEXT_GENERATION,
                    TaskCategory.QUESTION_ANSWERING,
                    TaskCategory.CLASSIFICATION,
                    TaskCategory.REASONING,
                    TaskCategory.CODE_GENERATION,
                }
            ),
            resources=ResourceRequirements(memory=35, compute_units=8),
            default_parameters=ModelParameters(temperature=0.7, max_tokens=2048, top_p=0.9),
            context_length=8192,
        ),
        ModelDescriptor(
            model_id="mistral-7b",
            name="Mistral 7B",
            provider="Mistral AI",
            capabilities=frozenset(
                {
                    TaskCategory.TEXT_GENERATION,
                    TaskCategory.CLASSIFICATION,
                    TaskCategory.SUMMARIZATION,
                }
            ),
            resources=ResourceRequirements(memory=4, compute_units=2),
            default_parameters=ModelParameters(temperature=0.7, max_tokens=1024, top_p=0.9),
            context_length=32768,
        ),
        ModelDescriptor(
            model_id="mixtral-8x7b",
            name="Mixtral 8x7B",
            provider="Mistral AI",
            capabilities=frozenset(
                {
                    TaskCategory.TEXT_GENERATION,
                    TaskCategory.QUESTION_ANSWERING,
                    TaskCategory.CLASSIFICATION,
                    TaskCategory.REASONING,
                    TaskCategory.SUMMARIZATION,
                }
            ),
            resources=ResourceRequirements(memory=24, compute_units=6),
            default_parameters=ModelParameters(temperature=0.8, max_tokens=1536, top_p=0.9),
            context_length=32768,
        ),
    ]


class ModelRegistry:
    """Catalog of available models keyed by model identity.

    Registration is idempotent by identity: registering a descriptor whose
    model_id is already present replaces the previous entry.
    """

    def __init__(self, models: list[ModelDescriptor] | None = None) -> None:
        self._models: dict[str, ModelDescriptor] = {}
        for descriptor in models or []:
            self.register(descriptor)

    @classmethod
    def with_defaults(cls) -> ModelRegistry:
        """Create a registry pre-populated with the built-in catalog."""
        return cls(default_catalog())

    def register(self, descriptor: ModelDescriptor) -> None:
        """Register or overwrite a model descriptor.

        Args:
            descriptor: The model descriptor to register
        """
        replaced = descriptor.model_id in self._models
        self._models[descriptor.model_id] = descriptor
        log.info(
            "model_registry.model_registered",
            model_id=descriptor.model_id,
            name=descriptor.name,
            provider=descriptor.provider,
            capabilities=sorted(descriptor.capabilities),
            replaced=replaced,
        )

    def get(self, model_id: str) -> ModelDescriptor | None:
        """Get a model descriptor by identity.

        Returns:
            ModelDescriptor if found, None otherwise
        """
        return self._models.get(model_id)

    def require(self, model_id: str) -> ModelDescriptor:
        """Get a model descriptor or raise.

        Raises:
            ModelNotFoundError: If the identity is not registered
        """
        descriptor = self._models.get(model_id)
        if descriptor is None:
            log.warning("model_registry.model_not_found", model_id=model_id)
            raise ModelNotFoundError(model_id)
        return descriptor

    def list_models(self) -> list[ModelDescriptor]:
        """Return every registered descriptor (order not significant)."""
        return list(self._models.values())

    def find_by_capability(self, category: TaskCategory) -> list[ModelDescriptor]:
        """Find all models declaring support for a task category."""
        return [d for d in self._models.values() if d.supports(category)]

    def __contains__(self, model_id: object) -> bool:
        return model_id in self._models

    def __len__(self) -> int:
        return len(self._models)
