"""
Google Gemini LLM
支持 Gemini 1.5 系列模型
"""
from typing import List, Optional
import logging

from models.schemas import ProviderId
from utils.exceptions import ProviderError, ProviderTimeoutError, RemoteError

from .base import BaseLLM, Message, MessageRole, LLMResponse


logger = logging.getLogger(__name__)


class GeminiLLM(BaseLLM):
    """
    Google Gemini adapter

    Models:
    - gemini-1.5-flash (default and fallback)
    - gemini-1.5-pro
    """

    def __init__(
        self,
        model: str = "gemini-1.5-flash",
        api_key: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        timeout: float = 60.0,
        **kwargs,
    ):
        super().__init__(model, api_key, temperature, max_tokens, timeout, **kwargs)

    @property
    def provider_id(self) -> ProviderId:
        return ProviderId.GEMINI

    def _convert_messages(self, messages: List[Message]) -> tuple:
        """
        Convert to Gemini chat format.

        Returns:
            (system_instruction, history, last_message)
        """
        system_instruction = None
        history = []
        last_message = None

        for msg in messages:
            if msg.role == MessageRole.SYSTEM:
                system_instruction = msg.content
            elif msg.role == MessageRole.USER:
                last_message = msg.content
            elif msg.role == MessageRole.ASSISTANT:
                if last_message:
                    history.append({"role": "user", "parts": [last_message]})
                    last_message = None
                history.append({"role": "model", "parts": [msg.content]})

        return system_instruction, history, last_message

    async def acomplete(
        self,
        messages: List[Message],
        model: Optional[str] = None,
        **kwargs,
    ) -> LLMResponse:
        import google.generativeai as genai

        genai.configure(api_key=self.api_key)
        system_instruction, history, last_message = self._convert_messages(messages)
        model_name = model or self.model

        generative_model = genai.GenerativeModel(
            model_name=model_name,
            generation_config={
                "temperature": kwargs.get("temperature", self.temperature),
                "max_output_tokens": kwargs.get("max_tokens", self.max_tokens),
            },
            system_instruction=system_instruction,
        )
        chat = generative_model.start_chat(history=history)
        response = await chat.send_message_async(
            last_message or "",
            request_options={"timeout": self.timeout},
        )

        # response.text raises when the candidate was blocked or empty
        try:
            content = response.text or ""
        except ValueError:
            content = ""

        usage = {}
        if getattr(response, "usage_metadata", None):
            usage = {
                "prompt_tokens": response.usage_metadata.prompt_token_count,
                "completion_tokens": response.usage_metadata.candidates_token_count,
                "total_tokens": response.usage_metadata.total_token_count,
            }

        return LLMResponse(
            content=content,
            model=model_name,
            usage=usage,
            finish_reason=response.candidates[0].finish_reason.name if response.candidates else None,
        )

    def _map_error(self, exc: Exception) -> ProviderError:
        from google.api_core import exceptions as google_exceptions

        if isinstance(exc, google_exceptions.DeadlineExceeded):
            return ProviderTimeoutError(f"{self.provider} request timed out", self.provider)
        if isinstance(exc, google_exceptions.GoogleAPICallError):
            return RemoteError(exc.message or str(exc), self.provider, status=exc.code, body=str(exc))
        return super()._map_error(exc)
