"""
Request bodies accepted by the chat API, validated with pydantic.

Messages follow the browser's UI message shape: parts are either bare strings
or objects with a "text" field (other part types are carried but contribute no text).
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class TextPart(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str | None = None
    text: str | None = None


class UIMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    role: str
    parts: list[Union[str, TextPart]] = Field(default_factory=list)
    created_at: datetime | None = Field(default=None, alias="createdAt")
    experimental_attachments: list[dict[str, Any]] = Field(default_factory=list)


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: uuid.UUID
    messages: list[UIMessage]
    selected_chat_model: str = Field(default="auto", alias="selectedChatModel")


class VoteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chat_id: uuid.UUID = Field(alias="chatId")
    message_id: uuid.UUID = Field(alias="messageId")
    type: Literal["up", "down"]


class VisibilityRequest(BaseModel):
    visibility: Literal["private", "public"]


class PreferredModelRequest(BaseModel):
    model: str


def part_text(part: str | TextPart) -> str:
    if isinstance(part, str):
        return part
    return part.text or ""


def message_text(message: UIMessage, sep: str = " ") -> str:
    """Join the text of every part of a message."""
    return sep.join(part_text(p) for p in message.parts)
