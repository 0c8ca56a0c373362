from __future__ import annotations


class LLMError(Exception):
    """Base error type for all completion service failures."""


class LLMPolicyDenied(LLMError):
    """Request violates policy (e.g. disallowed model, blocked by a pre-call hook)."""


class LLMConfigurationError(LLMError):
    """Misconfiguration of the completion endpoint or credentials."""


class LLMProviderError(LLMError):
    """The external service answered with an error or an unusable payload."""

    def __init__(self, message: str, *, http_status: int | None = None) -> None:
        super().__init__(message)
        self.http_status = http_status


class LLMTimeoutError(LLMError):
    """Timeout while waiting for the external service."""


__all__ = [
    "LLMError",
    "LLMPolicyDenied",
    "LLMConfigurationError",
    "LLMProviderError",
    "LLMTimeoutError",
]
