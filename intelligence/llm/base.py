"""
Base LLM
LLM 抽象基类
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from models.schemas import AIResponse, ProviderId
from utils.exceptions import (
    ConfigurationError,
    ProviderError,
    ProviderTimeoutError,
    RemoteError,
)


logger = logging.getLogger(__name__)

EMPTY_RESPONSE_TEXT = "No response generated."
CONNECTION_TEST_PROMPT = 'Hello, respond with "OK"'


class MessageRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    """对话消息"""
    role: MessageRole
    content: str

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=MessageRole.USER, content=content)


@dataclass
class LLMResponse:
    """LLM 响应 (后端原始返回)"""
    content: str
    model: str
    usage: Dict[str, int] = field(default_factory=dict)
    finish_reason: Optional[str] = None

    @property
    def total_tokens(self) -> Optional[int]:
        return self.usage.get("total_tokens") or None


class BaseLLM(ABC):
    """
    Base class for provider adapters.

    Subclasses implement ``acomplete`` against their SDK and ``_map_error``
    to translate SDK exceptions into the ProviderError family. Everything
    else (key checks, quota fallback, connection test) lives here.
    """

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        timeout: float = 60.0,
        fallback_model: Optional[str] = None,
        **kwargs,
    ):
        self.model = model
        self.api_key = api_key
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.fallback_model = fallback_model
        self.extra_config = kwargs

    @property
    @abstractmethod
    def provider_id(self) -> ProviderId:
        pass

    @property
    def provider(self) -> str:
        return self.provider_id.value

    @abstractmethod
    async def acomplete(
        self,
        messages: List[Message],
        model: Optional[str] = None,
        **kwargs,
    ) -> LLMResponse:
        """
        Call the backend once.

        Args:
            messages: conversation
            model: overrides ``self.model`` for this call
        """
        pass

    def _map_error(self, exc: Exception) -> ProviderError:
        """Translate an SDK exception; subclasses add SDK-specific cases"""
        if isinstance(exc, asyncio.TimeoutError):
            return ProviderTimeoutError(f"{self.provider} request timed out", self.provider)
        return RemoteError(str(exc) or exc.__class__.__name__, self.provider)

    def _ensure_configured(self) -> None:
        if not self.api_key or not self.api_key.strip():
            raise ConfigurationError(
                f"API key not configured for {self.provider}",
                {"provider": self.provider},
            )

    async def _generate(self, messages: List[Message], model: str) -> LLMResponse:
        self._ensure_configured()
        try:
            return await self.acomplete(messages, model=model)
        except ProviderError:
            raise
        except Exception as exc:
            raise self._map_error(exc) from exc

    async def send_message(self, message: str) -> AIResponse:
        """
        Send one prompt; on a quota failure retry once with the fallback model.

        Returns:
            AIResponse whose ``model`` is the model that answered
        """
        model = self.model
        try:
            response = await self._generate([Message.user(message)], model)
        except RemoteError as exc:
            fallback = self.fallback_model
            if not exc.is_quota_error or not fallback or fallback == model:
                raise
            logger.warning(f"{self.provider}: quota exhausted on {model}, retrying with {fallback}")
            model = fallback
            response = await self._generate([Message.user(message)], model)

        return AIResponse(
            content=response.content or EMPTY_RESPONSE_TEXT,
            provider=self.provider_id,
            model=model,
            tokens_used=response.total_tokens,
        )

    async def test_connection(self) -> bool:
        try:
            await self.send_message(CONNECTION_TEST_PROMPT)
            return True
        except Exception as e:
            logger.warning(f"{self.provider} connection test failed: {e}")
            return False

    async def achat(self, user_message: str, system_prompt: Optional[str] = None) -> str:
        messages = []
        if system_prompt:
            messages.append(Message.system(system_prompt))
        messages.append(Message.user(user_message))
        response = await self._generate(messages, self.model)
        return response.content

    def complete(self, messages: List[Message], **kwargs) -> LLMResponse:
        """Sync wrapper: one backend call with the configured model"""
        self._ensure_configured()
        return asyncio.run(self.acomplete(messages, **kwargs))

    def chat(self, user_message: str, system_prompt: Optional[str] = None) -> str:
        """同步版本的 achat"""
        return asyncio.run(self.achat(user_message, system_prompt))

    async def aclose(self) -> None:
        """释放 SDK 客户端 (默认无操作)"""
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model}, provider={self.provider})"
