"""Provider integration - external model sources and model import.

Providers advertise model identifiers; importing one creates a registry
descriptor with conservative defaults. Discovery returns the configured
identifier list; no network call is made from this module.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from enum import StrEnum

import structlog
from pydantic import SecretStr

from taskrouter.errors import ProviderNotFoundError
from taskrouter.llm.registry import ModelRegistry
from taskrouter.llm.types import (
    ModelDescriptor,
    ModelParameters,
    ResourceRequirements,
    TaskCategory,
)

log = structlog.get_logger(__name__)

IMPORTED_MEMORY = 4
IMPORTED_COMPUTE_UNITS = 2


class AuthType(StrEnum):
    NONE = "none"
    API_KEY = "api_key"
    OAUTH = "oauth"


@dataclass(frozen=True)
class ProviderConfig:
    """Connection details for an external model source.

    Attributes:
        name: Unique provider name (registry key)
        endpoint: Base URL of the provider API
        auth_type: How requests authenticate
        available_models: Identifiers the provider offers
        api_key: Credential set through configure_credentials()
    """

    name: str
    endpoint: str
    auth_type: AuthType = AuthType.NONE
    available_models: tuple[str, ...] = ()
    api_key: SecretStr | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("name cannot be empty")
        object.__setattr__(self, "auth_type", AuthType(self.auth_type))
        object.__setattr__(self, "available_models", tuple(self.available_models))

    @property
    def has_credentials(self) -> bool:
        return self.api_key is not None and bool(self.api_key.get_secret_value())


def default_providers() -> list[ProviderConfig]:
    return [
        ProviderConfig(
            name="huggingface",
            endpoint="https://api-inference.huggingface.co/models",
            auth_type=AuthType.API_KEY,
            available_models=(
                "meta-llama/Meta-Llama-3-8B",
                "meta-llama/Meta-Llama-3-70B",
                "mistralai/Mistral-7B-v0.1",
                "mistralai/Mixtral-8x7B-v0.1",
            ),
        ),
        ProviderConfig(
            name="ollama",
            endpoint="http://localhost:11434/api",
            auth_type=AuthType.NONE,
            available_models=("llama3:8b", "llama3:70b", "mistral:7b", "mixtral:8x7b"),
        ),
    ]


def imported_model_id(provider_name: str, identifier: str) -> str:
    """Registry identity for a model imported from a provider."""
    return f"{provider_name}-{identifier.replace('/', '-')}"


class ProviderIntegration:
    """Manages model providers and imports their models into a registry."""

    def __init__(
        self,
        registry: ModelRegistry,
        providers: list[ProviderConfig] | None = None,
    ) -> None:
        self._registry = registry
        self._providers: dict[str, ProviderConfig] = {}
        for provider in providers or []:
            self.register_provider(provider)

    def register_provider(self, config: ProviderConfig) -> None:
        """Register or replace a provider by name."""
        self._providers[config.name] = config
        log.info(
            "provider_integration.provider_registered",
            provider=config.name,
            endpoint=config.endpoint,
            auth_type=config.auth_type.value,
            model_count=len(config.available_models),
        )

    def get_provider(self, name: str) -> ProviderConfig | None:
        return self._providers.get(name)

    def list_providers(self) -> list[ProviderConfig]:
        return list(self._providers.values())

    def _require(self, name: str) -> ProviderConfig:
        provider = self._providers.get(name)
        if provider is None:
            log.warning("provider_integration.provider_not_found", provider=name)
            raise ProviderNotFoundError(name)
        return provider

    async def discover_models(self, provider_name: str) -> list[str]:
        """List model identifiers a provider offers.

        Raises:
            ProviderNotFoundError: If the provider is not registered
        """
        provider = self._require(provider_name)
        log.info(
            "provider_integration.models_discovered",
            provider=provider_name,
            count=len(provider.available_models),
        )
        return list(provider.available_models)

    async def import_model(
        self,
        provider_name: str,
        identifier: str,
        capabilities: Iterable[TaskCategory] | None = None,
    ) -> bool:
        """Create a registry entry for a provider model.

        Args:
            provider_name: Registered provider name
            identifier: Provider-side model identifier
            capabilities: Categories the model serves; text generation when omitted

        Returns:
            True if imported, False if the derived identity already exists

        Raises:
            ProviderNotFoundError: If the provider is not registered
        """
        provider = self._require(provider_name)
        model_id = imported_model_id(provider.name, identifier)

        if model_id in self._registry:
            log.info("provider_integration.model_already_present", model_id=model_id)
            return False

        descriptor = ModelDescriptor(
            model_id=model_id,
            name=identifier.rsplit("/", 1)[-1] or identifier,
            provider=provider.name,
            capabilities=frozenset(capabilities or {TaskCategory.TEXT_GENERATION}),
            resources=ResourceRequirements(
                memory=IMPORTED_MEMORY,
                compute_units=IMPORTED_COMPUTE_UNITS,
            ),
            default_parameters=ModelParameters(temperature=0.7, max_tokens=1024, top_p=0.9),
        )
        self._registry.register(descriptor)
        log.info(
            "provider_integration.model_imported",
            provider=provider.name,
            identifier=identifier,
            model_id=model_id,
        )
        return True

    def configure_credentials(self, provider_name: str, api_key: str) -> None:
        """Attach an API key to a provider.

        Raises:
            ProviderNotFoundError: If the provider is not registered
        """
        provider = self._require(provider_name)
        self._providers[provider_name] = replace(provider, api_key=SecretStr(api_key))
        log.info("provider_integration.credentials_configured", provider=provider_name)
