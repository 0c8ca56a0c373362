"""
Entry points: completion(**kwargs), get_client().
Applies policy (allowed models, hooks, retry), logs to LLMCallLog, proxies to BaseLLMClient.
"""
import hashlib
import json
import logging
import time
from decimal import Decimal
from typing import Any

from llm_service.base import BaseLLMClient
from llm_service.conf import (
    get_allowed_models,
    get_default_model,
    get_max_retries,
    get_post_call_hooks,
    get_pre_call_hooks,
    is_model_allowed,
)
from llm_service.errors import LLMError, LLMPolicyDenied, LLMProviderError, LLMTimeoutError
from llm_service.litellm_client import LiteLLMClient
from llm_service.models import LLMCallLog
from llm_service.request_result import LLMRequest, LLMResult
from llm_service.tokens import count_tokens, messages_to_text

logger = logging.getLogger(__name__)

# Module-level client instance (lazy)
_client: BaseLLMClient | None = None


def get_client() -> BaseLLMClient:
    """Return the configured completion client (LiteLLM by default)."""
    global _client
    if _client is None:
        _client = LiteLLMClient()
    return _client


def _kwargs_to_request(**kwargs: Any) -> LLMRequest:
    """Build LLMRequest from completion(**kwargs)."""
    model = kwargs.pop("model", None) or get_default_model()
    messages = kwargs.pop("messages", [])
    kwargs.pop("stream", None)
    metadata = kwargs.pop("metadata", None) or {}
    user = kwargs.pop("user", None)
    request_id = kwargs.pop("request_id", None)
    if request_id is not None and "request_id" not in metadata:
        metadata = {**metadata, "request_id": str(request_id)}
    return LLMRequest(
        model=model,
        messages=messages,
        metadata=metadata,
        raw_kwargs=kwargs,
        user=user,
    )


def _response_to_result(response: Any) -> LLMResult:
    """Build LLMResult from a completion response (LiteLLM ModelResponse or lookalike)."""
    usage = {}
    if getattr(response, "usage", None):
        u = response.usage
        usage = {
            "input_tokens": getattr(u, "prompt_tokens", 0) or getattr(u, "input_tokens", 0) or 0,
            "output_tokens": getattr(u, "completion_tokens", 0) or getattr(u, "output_tokens", 0) or 0,
            "total_tokens": getattr(u, "total_tokens", 0) or 0,
        }
    hidden = getattr(response, "_hidden_params", None) or {}
    cost = hidden.get("response_cost") if isinstance(hidden, dict) else None
    text = None
    if getattr(response, "choices", None) and len(response.choices) > 0:
        c = response.choices[0]
        if getattr(c, "message", None) and getattr(c.message, "content", None):
            text = c.message.content
    return LLMResult(
        text=text,
        usage=usage or None,
        cost=cost,
        raw_response=response,
        provider_response_id=getattr(response, "id", None),
        response_model=getattr(response, "model", None),
    )


def _truncate(s: str, max_len: int = 2000) -> str:
    if not s or len(s) <= max_len:
        return s or ""
    return s[:max_len] + "..."


def _user_message_preview(messages: list) -> str:
    """Last user message content, truncated to 300 chars for list display."""
    for m in reversed(messages or []):
        if isinstance(m, dict) and m.get("role") == "user":
            content = m.get("content")
            return _truncate(content if isinstance(content, str) else str(content or ""), 300)
    return ""


def _object_to_json_serializable(obj: Any) -> Any:
    """Convert a LiteLLM-style response object to JSON-serializable dict/list."""
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj
    if hasattr(obj, "model_dump"):
        try:
            return obj.model_dump()
        except Exception:
            pass
    if isinstance(obj, (list, tuple)):
        return [_object_to_json_serializable(x) for x in obj]
    if isinstance(obj, dict):
        return {k: _object_to_json_serializable(v) for k, v in obj.items()}
    out = {}
    for key in ("id", "object", "created", "model", "usage", "choices"):
        if hasattr(obj, key):
            out[key] = _object_to_json_serializable(getattr(obj, key))
    return out if out else str(obj)


def _serialize_raw_response(raw_response: Any) -> str:
    if raw_response is None:
        return ""
    payload = _object_to_json_serializable(raw_response)
    try:
        return json.dumps(payload, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(payload)[:100000]


def _hash_preview(s: str, max_len: int = 64) -> str:
    if not s:
        return ""
    return hashlib.sha256(s.encode("utf-8", errors="replace")).hexdigest()[:max_len]


def _sanitize_kwargs(kwargs: dict) -> dict:
    """Remove credentials; truncate large values."""
    out = {}
    skip = {"api_key", "api_key_id", "credentials"}
    for k, v in kwargs.items():
        if k.lower() in skip:
            continue
        if isinstance(v, str) and len(v) > 500:
            out[k] = _truncate(v, 500)
        elif isinstance(v, (list, dict)) and len(str(v)) > 1000:
            out[k] = "<truncated>"
        elif isinstance(v, (str, int, float, bool)) or v is None or isinstance(v, (list, dict)):
            out[k] = v
        else:
            out[k] = str(v)
    return out


def _usage_from_tiktoken(messages: list, model: str, output_text: str) -> dict:
    """Estimate input/output/total tokens when the provider does not report usage."""
    input_tokens = count_tokens(messages_to_text(messages), model_name=model)
    output_tokens = count_tokens(output_text, model_name=model)
    return {
        "input_tokens": input_tokens,
        "output_tokens": output_tokens,
        "total_tokens": input_tokens + output_tokens,
    }


def _write_log(
    request: LLMRequest,
    result: LLMResult,
    duration_ms: int | None,
    status: str = LLMCallLog.Status.SUCCESS,
    error_type: str | None = None,
    error_message: str = "",
    http_status: int | None = None,
    retry_count: int = 0,
) -> LLMCallLog | None:
    """Write a full LLMCallLog row. Returns None on failure (caller writes a minimal row)."""
    try:
        prompt_preview = _truncate(
            "\n".join(str(m.get("content", ""))[:500] for m in request.messages[:5] if isinstance(m, dict)),
            2000,
        )
        input_tokens = result.input_tokens
        output_tokens = result.output_tokens
        if input_tokens == 0 and output_tokens == 0 and request.messages and status == LLMCallLog.Status.SUCCESS:
            estimated = _usage_from_tiktoken(request.messages, request.model, result.text or "")
            input_tokens = estimated["input_tokens"]
            output_tokens = estimated["output_tokens"]
        return LLMCallLog.objects.create(
            model=request.model,
            user=request.user if getattr(request.user, "pk", None) else None,
            metadata=request.metadata or {},
            request_id=(request.metadata or {}).get("request_id", ""),
            duration_ms=duration_ms,
            request_kwargs=_sanitize_kwargs(request.raw_kwargs),
            prompt_hash=_hash_preview(prompt_preview),
            prompt_preview=prompt_preview,
            user_message_preview=_user_message_preview(request.messages),
            provider_response_id=result.provider_response_id,
            response_model=result.response_model,
            response_preview=_truncate(result.text or "", 2000),
            raw_response_payload=_serialize_raw_response(result.raw_response),
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=input_tokens + output_tokens,
            cost_usd=Decimal(str(result.cost)) if result.cost is not None else None,
            status=status,
            error_type=error_type,
            error_message=_truncate(error_message, 2000),
            http_status=http_status,
            retry_count=retry_count,
        )
    except Exception as e:
        logger.warning("LLMCallLog full write failed: %s", e)
        return None


def _write_minimal_log(request: LLMRequest, note: str) -> None:
    """Fallback: minimal row with primitives only when full log fails."""
    try:
        LLMCallLog.objects.create(
            model=request.model or "unknown",
            status=LLMCallLog.Status.LOGGING_FAILED,
            error_message=_truncate(note, 500),
        )
    except Exception as e:
        logger.warning("LLMCallLog minimal write failed: %s", e)


def _save_log(request: LLMRequest, result: LLMResult, duration_ms: int | None, **fields: Any) -> LLMCallLog | None:
    log = _write_log(request, result, duration_ms, **fields)
    if log is None:
        _write_minimal_log(request, "log write failed")
    return log


def _run_pre_hooks(request: LLMRequest) -> None:
    for hook in get_pre_call_hooks():
        try:
            hook(request)
        except Exception as e:
            logger.info("Pre-call hook blocked: %s", e)
            _save_log(
                request, LLMResult(error=e), None,
                status=LLMCallLog.Status.BLOCKED,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            raise


def _run_post_hooks(result: LLMResult) -> None:
    for hook in get_post_call_hooks():
        try:
            hook(result)
        except Exception as e:
            logger.info("Post-call hook blocked: %s", e)
            raise


def _http_status(e: Exception) -> int | None:
    status = getattr(e, "status_code", None)
    return status if isinstance(status, int) else None


def _is_retryable(e: Exception) -> bool:
    status = _http_status(e)
    if status in (429, 500, 502, 503):
        return True
    s = str(e).lower()
    return "rate limit" in s or "timeout" in s or "timed out" in s


def _is_timeout(e: Exception) -> bool:
    if isinstance(e, TimeoutError):
        return True
    name = type(e).__name__.lower()
    return "timeout" in name or "timed out" in str(e).lower()


def _to_llm_error(e: Exception) -> LLMError:
    if _is_timeout(e):
        return LLMTimeoutError(str(e))
    return LLMProviderError(str(e), http_status=_http_status(e))


def completion(**kwargs: Any) -> Any:
    """
    Sync, non-streaming completion. Validates model, runs pre/post hooks, retries, logs.

    Returns the raw provider response. Provider failures are re-raised as LLMError
    subclasses after an error row has been logged.
    """
    request = _kwargs_to_request(**kwargs)
    if not is_model_allowed(request.model):
        raise LLMPolicyDenied(f"Model not allowed: {request.model}. Allowed: {get_allowed_models()}")
    _run_pre_hooks(request)
    client = get_client()
    start = time.perf_counter()
    max_retries = get_max_retries()
    for attempt in range(max_retries + 1):
        try:
            resp = client.completion(**request.to_completion_kwargs())
        except Exception as e:
            if attempt < max_retries and _is_retryable(e):
                logger.info("Retryable completion error (attempt %s/%s): %s", attempt + 1, max_retries + 1, e)
                time.sleep(min(2 ** attempt, 60))
                continue
            duration_ms = int((time.perf_counter() - start) * 1000)
            _save_log(
                request, LLMResult(error=e), duration_ms,
                status=LLMCallLog.Status.ERROR,
                error_type=type(e).__name__,
                error_message=str(e),
                http_status=_http_status(e),
                retry_count=attempt,
            )
            if isinstance(e, LLMError):
                raise
            raise _to_llm_error(e) from e
        duration_ms = int((time.perf_counter() - start) * 1000)
        result = _response_to_result(resp)
        _run_post_hooks(result)
        _save_log(request, result, duration_ms, retry_count=attempt)
        return resp
