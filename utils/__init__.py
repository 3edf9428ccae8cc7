"""
Utils Module
工具模块 - 日志与异常
"""
from .logger import setup_logger, get_logger
from .exceptions import (
    ResearchAgentError,
    ConfigurationError,
    ProviderError,
    RemoteError,
    ProviderTimeoutError,
    InsufficientProvidersError,
    PhaseTransitionError,
    PhaseExecutionError,
    ExternalJobError,
    ExternalJobStartError,
    JobCancelledError,
    PollTimeoutError,
)

__all__ = [
    "setup_logger",
    "get_logger",
    "ResearchAgentError",
    "ConfigurationError",
    "ProviderError",
    "RemoteError",
    "ProviderTimeoutError",
    "InsufficientProvidersError",
    "PhaseTransitionError",
    "PhaseExecutionError",
    "ExternalJobError",
    "ExternalJobStartError",
    "JobCancelledError",
    "PollTimeoutError",
]
