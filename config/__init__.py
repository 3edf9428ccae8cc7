"""
Configuration Management Module
配置管理模块
"""
from .settings import (
    DEFAULT_FALLBACK_MODELS,
    DEFAULT_MODELS,
    AggregatorSettings,
    ExternalAgentSettings,
    LLMSettings,
    Settings,
    get_settings,
)

__all__ = [
    "DEFAULT_FALLBACK_MODELS",
    "DEFAULT_MODELS",
    "AggregatorSettings",
    "ExternalAgentSettings",
    "LLMSettings",
    "Settings",
    "get_settings",
]
