"""
Companion chat provider protocol.

The conversational model is an opaque text service: one message in, one
reply out. This allows swapping providers without changing business logic.
"""
from typing import Optional, Protocol

import groq

from reliefanchor.core.config import settings


class ChatProvider(Protocol):
    def send(self, message: str, system_instruction: str) -> str:
        """
        Send one user message and return the model's reply text.

        Raises:
            ChatProviderError: If the provider is unreachable or misconfigured
        """
        ...


class ChatProviderError(Exception):
    """Base exception for chat provider errors."""
    pass


class OfflineChatProvider:
    """Used when no chat backend is configured; every send fails cleanly."""

    def send(self, message: str, system_instruction: str) -> str:
        raise ChatProviderError("Chat provider not configured")


def default_chat_provider() -> ChatProvider:
    if not settings.GROQ_API_KEY:
        return OfflineChatProvider()
    return GroqChatProvider()


class GroqChatProvider:
    """Groq chat completions backend."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        client: Optional[groq.Groq] = None,
    ):
        key = api_key or settings.GROQ_API_KEY
        if client is None and not key:
            raise ChatProviderError("GROQ_API_KEY not configured")
        self._client = client or groq.Groq(api_key=key)
        self._model = model or settings.GROQ_MODEL
        self._temperature = settings.CHAT_TEMPERATURE if temperature is None else temperature

    def send(self, message: str, system_instruction: str) -> str:
        try:
            completion = self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": system_instruction},
                    {"role": "user", "content": message},
                ],
                temperature=self._temperature,
            )
        except groq.GroqError as exc:
            raise ChatProviderError(f"Groq request failed: {exc}") from exc
        return completion.choices[0].message.content or ""
