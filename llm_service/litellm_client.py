"""
LiteLLM implementation of BaseLLMClient, pointed at the OpenAI-compatible endpoint.
"""
import logging
from typing import Any

from llm_service.base import BaseLLMClient
from llm_service.conf import get_api_base, get_api_key, get_request_timeout

logger = logging.getLogger(__name__)


class LiteLLMClient(BaseLLMClient):
    """
    Client that delegates to litellm.completion.

    Model ids are passed through untouched; the "openai" provider makes LiteLLM
    POST to <api_base>/chat/completions with a bearer token.
    """

    def completion(self, **kwargs: Any) -> Any:
        kwargs.setdefault("timeout", get_request_timeout())
        kwargs.setdefault("api_base", get_api_base())
        kwargs.setdefault("api_key", get_api_key())
        kwargs.setdefault("custom_llm_provider", "openai")
        import litellm
        logger.debug("POST %s/chat/completions model=%s", kwargs["api_base"], kwargs.get("model"))
        return litellm.completion(**kwargs)
