"""
OpenAI LLM
支持 GPT-4o 系列模型
"""
from typing import List, Optional
import inspect
import logging

from models.schemas import ProviderId
from utils.exceptions import ProviderError, ProviderTimeoutError, RemoteError

from .base import BaseLLM, Message, LLMResponse


logger = logging.getLogger(__name__)


def map_openai_error(exc: Exception, provider: str) -> Optional[ProviderError]:
    """Translate openai SDK exceptions (also used by OpenAI-compatible backends)"""
    import openai

    if isinstance(exc, openai.APITimeoutError):
        return ProviderTimeoutError(f"{provider} request timed out", provider)
    if isinstance(exc, openai.APIStatusError):
        body = exc.body if isinstance(exc.body, str) else str(exc.body or "")
        return RemoteError(exc.message, provider, status=exc.status_code, body=body)
    if isinstance(exc, openai.APIError):
        return RemoteError(exc.message, provider)
    return None


class OpenAILLM(BaseLLM):
    """
    OpenAI chat completions adapter

    Models: gpt-4o (default), gpt-4o-mini (fallback)
    """

    DEFAULT_BASE_URL: Optional[str] = None

    def __init__(
        self,
        model: str = "gpt-4o",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        timeout: float = 60.0,
        **kwargs,
    ):
        super().__init__(model, api_key, temperature, max_tokens, timeout, **kwargs)
        self.base_url = base_url or self.DEFAULT_BASE_URL
        self._async_client = None

    @property
    def provider_id(self) -> ProviderId:
        return ProviderId.OPENAI

    def _get_async_client(self):
        if self._async_client is None:
            from openai import AsyncOpenAI
            self._async_client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                # send_message owns the only retry (quota -> fallback model)
                max_retries=0,
                http_client=self.extra_config.get("http_client"),
            )
        return self._async_client

    async def acomplete(
        self,
        messages: List[Message],
        model: Optional[str] = None,
        **kwargs,
    ) -> LLMResponse:
        client = self._get_async_client()

        response = await client.chat.completions.create(
            model=model or self.model,
            messages=[m.to_dict() for m in messages],
            temperature=kwargs.get("temperature", self.temperature),
            max_tokens=kwargs.get("max_tokens", self.max_tokens),
        )

        if not response.choices:
            raise RemoteError("Response contained no choices", self.provider)
        choice = response.choices[0]

        return LLMResponse(
            content=choice.message.content or "",
            model=response.model or (model or self.model),
            usage={
                "prompt_tokens": response.usage.prompt_tokens if response.usage else 0,
                "completion_tokens": response.usage.completion_tokens if response.usage else 0,
                "total_tokens": response.usage.total_tokens if response.usage else 0,
            },
            finish_reason=choice.finish_reason,
        )

    def _map_error(self, exc: Exception) -> ProviderError:
        return map_openai_error(exc, self.provider) or super()._map_error(exc)

    async def aclose(self) -> None:
        client = self._async_client
        if client is None:
            return
        try:
            close_fn = getattr(client, "close", None)
            if callable(close_fn):
                maybe_awaitable = close_fn()
                if inspect.isawaitable(maybe_awaitable):
                    await maybe_awaitable
        except Exception as e:
            logger.debug(f"{self.provider} client close failed: {e}")
        self._async_client = None
