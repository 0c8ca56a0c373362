"""
Adapter used by llm_chat: exposes ChatCompletionService.complete backed by llm_service.client.
"""
from __future__ import annotations

import logging
import uuid
from types import SimpleNamespace
from typing import Any

from llm_service.client import completion
from llm_service.conf import get_api_key, get_default_model, get_max_tokens, get_temperature
from llm_service.errors import LLMConfigurationError, LLMProviderError
from llm_service.models import LLMCallLog

logger = logging.getLogger(__name__)


def _text_from_response(response: Any) -> str:
    """Return choices[0].message.content or raise if the payload has no message."""
    choices = getattr(response, "choices", None)
    if not choices:
        raise LLMProviderError("Invalid response format from API")
    message = getattr(choices[0], "message", None)
    if message is None:
        raise LLMProviderError("Invalid response format from API")
    return getattr(message, "content", None) or ""


def _call_log(request_id: str) -> LLMCallLog | None:
    return LLMCallLog.objects.filter(request_id=request_id).order_by("-created_at").first()


class ChatCompletionService:
    """
    Single authenticated, non-streaming request to the chat-completion endpoint.

    The payload is {model, messages, max_tokens, temperature, stream: false}.
    Returns a namespace with .text, .model and .call_log.
    """

    def complete(
        self,
        *,
        messages: list[dict[str, Any]],
        model: str | None = None,
        user: Any = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> SimpleNamespace:
        if not get_api_key():
            raise LLMConfigurationError("LLM_API_KEY is not configured")

        model = model or get_default_model()
        request_id = str(uuid.uuid4())
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens if max_tokens is not None else get_max_tokens(),
            "temperature": temperature if temperature is not None else get_temperature(),
            "stream": False,
            "metadata": {**(metadata or {}), "request_id": request_id},
            "user": user,
        }
        logger.info("Requesting completion model=%s messages=%s", model, len(messages))

        response = completion(**kwargs)
        text = _text_from_response(response)
        return SimpleNamespace(
            text=text,
            model=model,
            call_log=_call_log(request_id),
        )
