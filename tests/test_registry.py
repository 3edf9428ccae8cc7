"""Tests for provider configuration, adapter creation and caching."""

import pytest

from config.settings import LLMSettings
from intelligence.llm import DeepSeekLLM, OpenAILLM, ProviderRegistry, create_provider
from models import ProviderConfig, ProviderId
from utils.exceptions import ConfigurationError


def test_resolve_without_key_raises():
    registry = ProviderRegistry()

    with pytest.raises(ConfigurationError) as exc_info:
        registry.resolve("openai")
    assert exc_info.value.details == {"provider": "openai"}


def test_resolve_builds_and_caches_adapter():
    registry = ProviderRegistry(
        configs={ProviderId.DEEPSEEK: ProviderConfig(api_key="sk-1", model="deepseek-reasoner")}
    )

    adapter = registry.resolve(ProviderId.DEEPSEEK)

    assert isinstance(adapter, DeepSeekLLM)
    assert adapter.model == "deepseek-reasoner"
    assert adapter.fallback_model == "deepseek-chat"
    assert registry.resolve("deepseek") is adapter


def test_update_config_replaces_cached_adapter():
    registry = ProviderRegistry(configs={"openai": ProviderConfig(api_key="sk-1", model="gpt-4o")})
    first = registry.resolve("openai")

    updated = registry.update_config("openai", model="gpt-4o-mini")
    second = registry.resolve("openai")

    assert updated.model == "gpt-4o-mini"
    assert second is not first
    assert second.model == "gpt-4o-mini"


def test_update_config_can_clear_key():
    registry = ProviderRegistry(configs={"openai": ProviderConfig(api_key="sk-1", model="gpt-4o")})
    registry.resolve("openai")

    registry.update_config("openai", api_key="")

    with pytest.raises(ConfigurationError):
        registry.resolve("openai")


def test_from_settings_and_enabled_providers():
    settings = LLMSettings(
        gemini_api_key=None,
        deepseek_api_key="sk-deep",
        claude_api_key=None,
        openai_api_key="sk-open",
        openai_enabled=False,
        fallback_models={"deepseek": "deepseek-lite"},
        timeout=42,
    )

    registry = ProviderRegistry.from_settings(settings)

    assert registry.enabled_providers() == [ProviderId.DEEPSEEK]
    assert registry.get_config("openai").api_key == "sk-open"
    adapter = registry.resolve("deepseek")
    assert adapter.fallback_model == "deepseek-lite"
    assert adapter.timeout == 42


def test_register_installs_prebuilt_adapter(fake_llm_cls):
    registry = ProviderRegistry()
    fake = fake_llm_cls(ProviderId.CLAUDE, model="claude-test")

    registry.register(fake)

    assert registry.resolve("claude") is fake
    assert registry.get_config("claude").model == "claude-test"
    assert ProviderId.CLAUDE in registry.enabled_providers()


@pytest.mark.asyncio
async def test_send_and_test_all(fake_llm_cls, registry_factory):
    ok = fake_llm_cls(ProviderId.DEEPSEEK, replies=["OK"])
    broken = fake_llm_cls(ProviderId.OPENAI, replies=[RuntimeError("unauthorized")])
    registry = registry_factory(ok, broken)

    response = await registry.send("deepseek", "ping")
    results = await registry.test_all()

    assert response.content == "OK"
    assert results == {"deepseek": True, "openai": False}
    assert await registry.test_connection("gemini") is False


@pytest.mark.asyncio
async def test_aclose_releases_current_and_replaced_adapters(fake_llm_cls, registry_factory):
    fake = fake_llm_cls(ProviderId.DEEPSEEK)
    registry = registry_factory(fake)
    registry.update_config("deepseek", model="deepseek-chat")

    await registry.aclose()

    assert fake.closed is True


def test_factory_rejects_unknown_provider():
    with pytest.raises(ValueError, match="Unsupported LLM provider"):
        create_provider("mistral", ProviderConfig(api_key="k", model="m"))


def test_factory_passes_settings_through():
    adapter = create_provider(
        "openai",
        ProviderConfig(api_key="k", model="gpt-4o"),
        fallback_model="gpt-4o-mini",
        temperature=0.1,
        max_tokens=128,
    )

    assert isinstance(adapter, OpenAILLM)
    assert adapter.temperature == 0.1
    assert adapter.max_tokens == 128
    assert adapter.fallback_model == "gpt-4o-mini"
