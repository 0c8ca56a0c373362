"""
Chat configuration from Django settings.
"""
from django.conf import settings

DEFAULT_SYSTEM_PROMPT = "You are a helpful AI assistant. You were created by UVEVE.ID"
DEFAULT_AUTO_MODEL_ID = "meta-llama/Meta-Llama-3.1-405B-Instruct"


def get_system_prompt() -> str:
    return getattr(settings, "CHAT_SYSTEM_PROMPT", DEFAULT_SYSTEM_PROMPT)


def get_catalog_path() -> str | None:
    """Path to the bundled model list (OpenAI /models format). None means the packaged models.json."""
    return getattr(settings, "CHAT_MODEL_CATALOG_PATH", None)


def get_auto_model_id() -> str:
    """Upstream model the "auto" alias points at."""
    return getattr(settings, "CHAT_AUTO_MODEL_ID", DEFAULT_AUTO_MODEL_ID)


def get_history_token_limit() -> int | None:
    """Token budget for history sent upstream. None sends the full history."""
    return getattr(settings, "CHAT_HISTORY_TOKEN_LIMIT", None)


def get_title_max_length() -> int:
    return int(getattr(settings, "CHAT_TITLE_MAX_LENGTH", 80))
