"""
Provider Registry
Per-provider configuration plus cached adapters.
"""
import asyncio
import logging
from typing import Dict, List, Optional, Union

from config.settings import DEFAULT_FALLBACK_MODELS, DEFAULT_MODELS, LLMSettings
from models.schemas import AIResponse, ProviderConfig, ProviderId
from utils.exceptions import ConfigurationError

from .base import BaseLLM
from .factory import create_provider


logger = logging.getLogger(__name__)

ProviderKey = Union[str, ProviderId]


class ProviderRegistry:
    """
    Owns the ProviderConfig of every backend and hands out adapters.

    Adapters are created lazily and cached until their config changes.
    """

    def __init__(
        self,
        configs: Optional[Dict[ProviderId, ProviderConfig]] = None,
        fallback_models: Optional[Dict[str, str]] = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        timeout: float = 120.0,
    ):
        self._configs: Dict[ProviderId, ProviderConfig] = {
            pid: ProviderConfig(model=DEFAULT_MODELS[pid.value]) for pid in ProviderId
        }
        if configs:
            for key, config in configs.items():
                self._configs[ProviderId(key)] = config
        self.fallback_models = dict(DEFAULT_FALLBACK_MODELS)
        if fallback_models:
            self.fallback_models.update(fallback_models)
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._adapters: Dict[ProviderId, BaseLLM] = {}
        self._stale_adapters: List[BaseLLM] = []

    @classmethod
    def from_settings(cls, settings: LLMSettings) -> "ProviderRegistry":
        return cls(
            configs=settings.provider_configs(),
            fallback_models=settings.fallback_models,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
            timeout=settings.timeout,
        )

    def get_config(self, provider_id: ProviderKey) -> ProviderConfig:
        return self._configs[ProviderId(provider_id)]

    def update_config(self, provider_id: ProviderKey, **changes) -> ProviderConfig:
        """Replace fields of a provider's config; drops its cached adapter"""
        pid = ProviderId(provider_id)
        updated = self._configs[pid].model_copy(update=changes)
        self._configs[pid] = updated
        stale = self._adapters.pop(pid, None)
        if stale is not None:
            self._stale_adapters.append(stale)
        return updated

    def register(self, adapter: BaseLLM) -> None:
        """Install a prebuilt adapter (e.g. a custom endpoint or a test double)"""
        self._adapters[adapter.provider_id] = adapter
        current = self._configs[adapter.provider_id]
        self._configs[adapter.provider_id] = current.model_copy(
            update={"api_key": adapter.api_key or current.api_key, "model": adapter.model}
        )

    def enabled_providers(self) -> List[ProviderId]:
        """Providers that are enabled and have an API key"""
        return [pid for pid, cfg in self._configs.items() if cfg.enabled and cfg.is_configured]

    def resolve(self, provider_id: ProviderKey) -> BaseLLM:
        """
        Get the adapter for a provider.

        Raises:
            ConfigurationError: no API key configured
        """
        pid = ProviderId(provider_id)
        adapter = self._adapters.get(pid)
        if adapter is not None:
            return adapter

        config = self._configs[pid]
        if not config.is_configured:
            raise ConfigurationError(
                f"API key not configured for {pid.value}",
                {"provider": pid.value},
            )

        adapter = create_provider(
            pid.value,
            config,
            fallback_model=self.fallback_models.get(pid.value),
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            timeout=self.timeout,
        )
        self._adapters[pid] = adapter
        return adapter

    async def send(self, provider_id: ProviderKey, message: str) -> AIResponse:
        return await self.resolve(provider_id).send_message(message)

    async def test_connection(self, provider_id: ProviderKey) -> bool:
        try:
            adapter = self.resolve(provider_id)
        except ConfigurationError as e:
            logger.warning(str(e))
            return False
        return await adapter.test_connection()

    async def test_all(self) -> Dict[str, bool]:
        providers = self.enabled_providers()
        results = await asyncio.gather(*(self.test_connection(pid) for pid in providers))
        return {pid.value: ok for pid, ok in zip(providers, results)}

    async def aclose(self) -> None:
        adapters = list(self._adapters.values()) + self._stale_adapters
        self._adapters.clear()
        self._stale_adapters.clear()
        for adapter in adapters:
            await adapter.aclose()
