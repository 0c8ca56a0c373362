"""
Token counting with tiktoken.

Upstream models behind the relay are not OpenAI models, so counts are an
estimate: OpenAI-style names get their own encoding, everything else uses
cl100k_base.
"""
from __future__ import annotations

import logging

import tiktoken

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "cl100k_base"


def encoding_name_for_model(model_name: str | None) -> str:
    """Return a tiktoken encoding name for a given model id."""
    if not model_name:
        return DEFAULT_ENCODING
    m = model_name.lower().split("/")[-1]
    if "gpt-4o" in m or "4o-mini" in m or m.startswith("gpt-5"):
        return "o200k_base"
    return DEFAULT_ENCODING


def count_tokens(text: str, *, model_name: str | None = None) -> int:
    """
    Count tokens in text. Returns 0 for empty text or when the encoding
    cannot be loaded (tiktoken fetches encodings on first use).
    """
    if not text:
        return 0
    try:
        enc = tiktoken.get_encoding(encoding_name_for_model(model_name))
    except Exception as e:
        logger.debug("tiktoken encoding unavailable: %s", e)
        return 0
    return len(enc.encode(text, disallowed_special=()))


def messages_to_text(messages: list) -> str:
    """Serialize chat messages to a single string for input token counting."""
    parts = []
    for m in messages:
        if not isinstance(m, dict):
            continue
        content = m.get("content", "")
        if not isinstance(content, str):
            content = str(content) if content is not None else ""
        parts.append(f"{m.get('role', '')}: {content}")
    return "\n".join(parts)
