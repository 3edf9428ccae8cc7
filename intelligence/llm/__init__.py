"""
LLM Module
LLM 模块 - 统一接口的供应商适配器与注册表
"""
from .base import BaseLLM, LLMResponse, Message, MessageRole
from .openai_llm import OpenAILLM
from .anthropic_llm import AnthropicLLM
from .deepseek_llm import DeepSeekLLM
from .gemini_llm import GeminiLLM
from .factory import create_provider
from .registry import ProviderRegistry

__all__ = [
    "BaseLLM",
    "LLMResponse",
    "Message",
    "MessageRole",
    "OpenAILLM",
    "AnthropicLLM",
    "DeepSeekLLM",
    "GeminiLLM",
    "create_provider",
    "ProviderRegistry",
]
