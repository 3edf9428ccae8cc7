"""
Intelligence Module
Provider adapters, dialectical cross-validation and the research pipeline.
"""
from .llm import (
    BaseLLM,
    OpenAILLM,
    AnthropicLLM,
    DeepSeekLLM,
    GeminiLLM,
    ProviderRegistry,
    create_provider,
)
from .dialectical import DialecticalCoordinator
from .pipeline import ResearchPipeline
from .prompt_enhancer import PromptEnhancer, should_suggest_enhancement

__all__ = [
    # LLM
    "BaseLLM",
    "OpenAILLM",
    "AnthropicLLM",
    "DeepSeekLLM",
    "GeminiLLM",
    "ProviderRegistry",
    "create_provider",
    # Orchestration
    "DialecticalCoordinator",
    "ResearchPipeline",
    "PromptEnhancer",
    "should_suggest_enhancement",
]
