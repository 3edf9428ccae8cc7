"""
LLM Factory
工厂函数 - 根据供应商 ID 与配置创建 LLM 实例
"""
from typing import Dict, Optional, Type
import logging

from models.schemas import ProviderConfig, ProviderId

from .base import BaseLLM
from .openai_llm import OpenAILLM
from .anthropic_llm import AnthropicLLM
from .deepseek_llm import DeepSeekLLM
from .gemini_llm import GeminiLLM


logger = logging.getLogger(__name__)


ADAPTERS: Dict[ProviderId, Type[BaseLLM]] = {
    ProviderId.GEMINI: GeminiLLM,
    ProviderId.DEEPSEEK: DeepSeekLLM,
    ProviderId.CLAUDE: AnthropicLLM,
    ProviderId.OPENAI: OpenAILLM,
}


def create_provider(
    provider_id: str,
    config: ProviderConfig,
    fallback_model: Optional[str] = None,
    **kwargs,
) -> BaseLLM:
    """
    Create an adapter instance.

    Args:
        provider_id: gemini, deepseek, claude or openai
        config: API key and model
        fallback_model: model retried once on quota errors
        **kwargs: temperature, max_tokens, timeout, base_url ...

    Raises:
        ValueError: unknown provider id
    """
    try:
        pid = ProviderId(provider_id)
    except ValueError:
        raise ValueError(f"Unsupported LLM provider: {provider_id}")

    adapter_cls = ADAPTERS[pid]
    logger.debug(f"Creating {adapter_cls.__name__} with model {config.model}")
    return adapter_cls(
        model=config.model,
        api_key=config.api_key,
        fallback_model=fallback_model,
        **kwargs,
    )
