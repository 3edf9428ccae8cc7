"""
DeepSeek LLM
支持 DeepSeek-V3, DeepSeek-R1 等模型 (OpenAI 兼容接口)
"""
from typing import Optional

from models.schemas import ProviderId

from .openai_llm import OpenAILLM


class DeepSeekLLM(OpenAILLM):
    """
    DeepSeek adapter

    Models:
    - deepseek-chat (DeepSeek-V3, default and fallback)
    - deepseek-reasoner (DeepSeek-R1)
    """

    DEFAULT_BASE_URL = "https://api.deepseek.com"

    def __init__(
        self,
        model: str = "deepseek-chat",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        timeout: float = 120.0,  # R1 answers slowly
        **kwargs,
    ):
        super().__init__(model, api_key, base_url, temperature, max_tokens, timeout, **kwargs)

    @property
    def provider_id(self) -> ProviderId:
        return ProviderId.DEEPSEEK
