"""
Anthropic LLM
支持 Claude 系列模型
"""
from typing import List, Optional
import inspect
import logging

from models.schemas import ProviderId
from utils.exceptions import ProviderError, ProviderTimeoutError, RemoteError

from .base import BaseLLM, Message, MessageRole, LLMResponse


logger = logging.getLogger(__name__)


class AnthropicLLM(BaseLLM):
    """
    Anthropic Claude adapter (provider id ``claude``)

    Models:
    - claude-3-5-sonnet-20241022 (default)
    - claude-3-haiku-20240307 (fallback)
    """

    def __init__(
        self,
        model: str = "claude-3-5-sonnet-20241022",
        api_key: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        timeout: float = 60.0,
        **kwargs,
    ):
        super().__init__(model, api_key, temperature, max_tokens, timeout, **kwargs)
        self._async_client = None

    @property
    def provider_id(self) -> ProviderId:
        return ProviderId.CLAUDE

    def _get_async_client(self):
        if self._async_client is None:
            from anthropic import AsyncAnthropic
            self._async_client = AsyncAnthropic(
                api_key=self.api_key,
                timeout=self.timeout,
                # send_message owns the only retry (quota -> fallback model)
                max_retries=0,
                http_client=self.extra_config.get("http_client"),
            )
        return self._async_client

    def _convert_messages(self, messages: List[Message]) -> tuple:
        """Split out the system prompt; Anthropic takes it as a separate field"""
        system_prompt = None
        converted = []
        for msg in messages:
            if msg.role == MessageRole.SYSTEM:
                system_prompt = msg.content
            else:
                converted.append({"role": msg.role.value, "content": msg.content})
        return system_prompt, converted

    async def acomplete(
        self,
        messages: List[Message],
        model: Optional[str] = None,
        **kwargs,
    ) -> LLMResponse:
        client = self._get_async_client()
        system_prompt, converted_messages = self._convert_messages(messages)

        request_params = {
            "model": model or self.model,
            "messages": converted_messages,
            "temperature": kwargs.get("temperature", self.temperature),
            "max_tokens": kwargs.get("max_tokens", self.max_tokens),
        }
        if system_prompt:
            request_params["system"] = system_prompt

        response = await client.messages.create(**request_params)

        content = "".join(block.text for block in response.content if block.type == "text")

        return LLMResponse(
            content=content,
            model=response.model,
            usage={
                "prompt_tokens": response.usage.input_tokens,
                "completion_tokens": response.usage.output_tokens,
                "total_tokens": response.usage.input_tokens + response.usage.output_tokens,
            },
            finish_reason=response.stop_reason,
        )

    def _map_error(self, exc: Exception) -> ProviderError:
        import anthropic

        if isinstance(exc, anthropic.APITimeoutError):
            return ProviderTimeoutError(f"{self.provider} request timed out", self.provider)
        if isinstance(exc, anthropic.APIStatusError):
            body = exc.body if isinstance(exc.body, str) else str(exc.body or "")
            return RemoteError(exc.message, self.provider, status=exc.status_code, body=body)
        if isinstance(exc, anthropic.APIError):
            return RemoteError(exc.message, self.provider)
        return super()._map_error(exc)

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
