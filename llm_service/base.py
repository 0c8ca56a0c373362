"""
Base interface for the completion backend. Swap LiteLLM for another implementation without changing callers.
"""
from abc import ABC, abstractmethod
from typing import Any


class BaseLLMClient(ABC):
    """Abstract client for chat completion. Implementations: LiteLLMClient."""

    @abstractmethod
    def completion(self, **kwargs: Any) -> Any:
        """Send one non-streaming chat completion request and return the raw response."""
        ...
