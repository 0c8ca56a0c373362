"""
Chat model catalog: the "auto" alias followed by every model listed in models.json.

The JSON file uses the OpenAI /models list shape ({"data": [{"id": ...}, ...]}).
"""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path

from .conf import get_auto_model_id, get_catalog_path

logger = logging.getLogger(__name__)

DEFAULT_CHAT_MODEL = "auto"
DEFAULT_IMAGE = "/static/llm_chat/model-icons/default.svg"
BUNDLED_CATALOG = Path(__file__).resolve().parent / "models.json"

_models: list[ChatModel] | None = None


@dataclass(frozen=True)
class ChatModel:
    id: str
    name: str
    description: str = ""
    image: str = DEFAULT_IMAGE
    linked_model_id: str | None = None

    def as_dict(self) -> dict:
        return asdict(self)


def model_display_name(model_id: str) -> str:
    """meta-llama/Meta-Llama-3.1-8B-Instruct -> Meta Llama 3.1 8B Instruct."""
    last = model_id.split("/")[-1]
    return " ".join(word[:1].upper() + word[1:] for word in last.replace("-", " ").split(" "))


def _short_name(model_id: str) -> str:
    name = model_display_name(model_id)
    return name[: -len(" Instruct")] if name.endswith(" Instruct") else name


def _read_catalog_ids(path: Path) -> list[str]:
    with open(path, encoding="utf-8") as f:
        payload = json.load(f)
    return [entry["id"] for entry in payload.get("data", []) if entry.get("id")]


def load_models() -> list[ChatModel]:
    """Build the catalog from disk. "auto" is always first."""
    auto_target = get_auto_model_id()
    models = [
        ChatModel(
            id=DEFAULT_CHAT_MODEL,
            name="Auto",
            description=f"Automatically uses the best model ({_short_name(auto_target)})",
            linked_model_id=auto_target,
        )
    ]
    path = Path(get_catalog_path() or BUNDLED_CATALOG)
    seen = {DEFAULT_CHAT_MODEL}
    for model_id in _read_catalog_ids(path):
        if model_id in seen:
            continue
        seen.add(model_id)
        models.append(
            ChatModel(
                id=model_id,
                name=model_display_name(model_id),
                description=f"Provider: {model_id.split('/')[0]}",
            )
        )
    logger.debug("Loaded %s chat models from %s", len(models), path)
    return models


def get_models() -> list[ChatModel]:
    global _models
    if _models is None:
        _models = load_models()
    return _models


def clear_cache() -> None:
    global _models
    _models = None


def get_default_model() -> ChatModel:
    return get_models()[0]


def is_known_model(model_id: str | None) -> bool:
    return any(m.id == model_id for m in get_models())


def get_model_by_id(model_id: str | None) -> ChatModel:
    """Return the catalog entry for model_id, or the default ("auto") entry."""
    for m in get_models():
        if m.id == model_id:
            return m
    return get_default_model()


def get_actual_model_id(model_id: str | None) -> str:
    """Upstream id to send: the linked target for aliases, else the model's own id."""
    model = get_model_by_id(model_id)
    return model.linked_model_id or model.id


def badge_label(model_id: str | None) -> str:
    """Label shown above an assistant reply."""
    if not model_id:
        return "AI Model"
    if model_id == DEFAULT_CHAT_MODEL:
        return f"Auto ({_short_name(get_model_by_id(model_id).linked_model_id or get_auto_model_id())})"
    for m in get_models():
        if m.id == model_id:
            return m.name
    return model_id
