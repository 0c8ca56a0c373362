"""
Completion service configuration from Django settings.
"""
from django.conf import settings


def get_api_base() -> str:
    """Base URL of the OpenAI-compatible endpoint (without /chat/completions)."""
    return getattr(settings, "LLM_API_BASE", "https://api-ai2.secry.me/v1")


def get_api_key() -> str:
    return getattr(settings, "LLM_API_KEY", "") or ""


def get_default_model() -> str:
    return getattr(settings, "LLM_DEFAULT_MODEL", "auto")


def get_allowed_models() -> list[str]:
    """List of upstream model ids that are explicitly allowed. Empty = no restriction."""
    return list(getattr(settings, "LLM_ALLOWED_MODELS", []))


def is_model_allowed(model: str | None) -> bool:
    allowed = get_allowed_models()
    if not allowed:
        return True
    return model in allowed if model else False


def get_max_tokens() -> int:
    return int(getattr(settings, "LLM_MAX_TOKENS", 100000))


def get_temperature() -> float:
    return float(getattr(settings, "LLM_TEMPERATURE", 0.7))


def get_request_timeout() -> float:
    """Request timeout in seconds."""
    return float(getattr(settings, "LLM_REQUEST_TIMEOUT", 60.0))


def get_max_retries() -> int:
    return int(getattr(settings, "LLM_MAX_RETRIES", 0))


def get_pre_call_hooks():
    """List of callables(request: LLMRequest) -> None; raise to block."""
    return list(getattr(settings, "LLM_PRE_CALL_HOOKS", []))


def get_post_call_hooks():
    """List of callables(result: LLMResult) -> None; raise to block."""
    return list(getattr(settings, "LLM_POST_CALL_HOOKS", []))
