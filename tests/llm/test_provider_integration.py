"""Tests for ProviderIntegration discovery, import and credentials."""

from __future__ import annotations

import pytest

from taskrouter.errors import ProviderNotFoundError
from taskrouter.llm.providers import (
    AuthType,
    ProviderConfig,
    ProviderIntegration,
    default_providers,
    imported_model_id,
)
from taskrouter.llm.types import TaskCategory


@pytest.fixture
def providers(registry) -> ProviderIntegration:
    return ProviderIntegration(registry, default_providers())


def test_default_providers_registered(providers):
    names = [p.name for p in providers.list_providers()]
    assert names == ["huggingface", "ollama"]
    assert providers.get_provider("huggingface").auth_type == AuthType.API_KEY


def test_imported_model_id_replaces_slashes():
    assert imported_model_id("huggingface", "mistralai/Mistral-7B-v0.1") == (
        "huggingface-mistralai-Mistral-7B-v0.1"
    )
    assert imported_model_id("ollama", "llama3:8b") == "ollama-llama3:8b"


@pytest.mark.asyncio
async def test_discover_models(providers):
    models = await providers.discover_models("ollama")
    assert models == ["llama3:8b", "llama3:70b", "mistral:7b", "mixtral:8x7b"]


@pytest.mark.asyncio
async def test_discover_unknown_provider(providers):
    with pytest.raises(ProviderNotFoundError, match="Provider not found: openai"):
        await providers.discover_models("openai")


@pytest.mark.asyncio
async def test_import_model_registers_defaults(providers, registry):
    imported = await providers.import_model("huggingface", "mistralai/Mistral-7B-v0.1")

    assert imported is True
    descriptor = registry.get("huggingface-mistralai-Mistral-7B-v0.1")
    assert descriptor is not None
    assert descriptor.provider == "huggingface"
    assert descriptor.capabilities == {TaskCategory.TEXT_GENERATION}
    assert descriptor.resources.memory == 4
    assert descriptor.resources.compute_units == 2


@pytest.mark.asyncio
async def test_import_model_with_capabilities(providers, registry):
    await providers.import_model(
        "ollama", "phi3:mini", capabilities=[TaskCategory.SUMMARIZATION]
    )
    assert registry.get("ollama-phi3:mini").supports(TaskCategory.SUMMARIZATION)


@pytest.mark.asyncio
async def test_import_twice_returns_false(providers, registry):
    assert await providers.import_model("ollama", "llama3:8b") is True
    count = len(registry)

    assert await providers.import_model("ollama", "llama3:8b") is False
    assert len(registry) == count


@pytest.mark.asyncio
async def test_import_unknown_provider(providers):
    with pytest.raises(ProviderNotFoundError):
        await providers.import_model("openai", "gpt-4")


def test_configure_credentials(providers):
    assert providers.get_provider("huggingface").has_credentials is False

    providers.configure_credentials("huggingface", "hf_secret")

    provider = providers.get_provider("huggingface")
    assert provider.has_credentials is True
    assert provider.api_key.get_secret_value() == "hf_secret"
    assert "hf_secret" not in repr(provider)


def test_configure_credentials_unknown_provider(providers):
    with pytest.raises(ProviderNotFoundError):
        providers.configure_credentials("openai", "sk-123")


def test_register_provider_replaces_by_name(providers):
    providers.register_provider(
        ProviderConfig(name="ollama", endpoint="http://gpu-box:11434/api")
    )
    assert providers.get_provider("ollama").endpoint == "http://gpu-box:11434/api"
    assert len(providers.list_providers()) == 2


def test_provider_name_required():
    with pytest.raises(ValueError, match="name cannot be empty"):
        ProviderConfig(name="", endpoint="http://localhost")
