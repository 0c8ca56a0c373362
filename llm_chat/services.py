from __future__ import annotations

import logging
import uuid
from typing import Any, Iterable

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from accounts.models import UserSettings
from core.logging import log_data
from llm_service.conf import get_default_model
from llm_service.errors import LLMError
from llm_service.services import ChatCompletionService
from llm_service.tokens import count_tokens

from . import catalog
from .conf import get_history_token_limit, get_system_prompt, get_title_max_length
from .models import Chat, ChatMessage, Vote
from .schemas import UIMessage, message_text, part_text

logger = logging.getLogger(__name__)


DEFAULT_TITLE = "New chat"
API_ERROR_REPLY = (
    "Sorry, something went wrong while contacting the API. "
    "Please try again later. (Error: {error})"
)
FORWARDED_ROLES = (ChatMessage.Role.USER, ChatMessage.Role.ASSISTANT)


class ChatServiceError(Exception):
    """Base for chat pipeline errors that map to an HTTP status."""


class NoUserMessage(ChatServiceError):
    pass


class ChatNotFound(ChatServiceError):
    pass


class ChatAccessDenied(ChatServiceError):
    pass


def generate_title_from_user_message(message: UIMessage | None) -> str:
    """Title from the first part of the message, cut to CHAT_TITLE_MAX_LENGTH."""
    if message is None or not message.parts:
        return DEFAULT_TITLE
    title = part_text(message.parts[0]).strip()
    return (title or DEFAULT_TITLE)[: get_title_max_length()]


def get_most_recent_user_message(messages: Iterable[UIMessage]) -> UIMessage | None:
    user_messages = [m for m in messages if m.role == ChatMessage.Role.USER]
    return user_messages[-1] if user_messages else None


def get_user_chat_model(user) -> str:
    """Return the user's stored chat model if it is in the catalog, else the default."""
    try:
        stored = (user.settings.chat_model or "").strip()
    except UserSettings.DoesNotExist:
        stored = ""
    if stored and catalog.is_known_model(stored):
        return stored
    return get_default_model()


def _trim_history(history: list[dict[str, str]], limit: int, model: str | None) -> list[dict[str, str]]:
    """Drop the oldest messages until the history fits in limit tokens. The latest message is kept."""
    counts = [count_tokens(m["content"], model_name=model) for m in history]
    total = sum(counts)
    start = 0
    while total > limit and start < len(history) - 1:
        total -= counts[start]
        start += 1
    if start:
        logger.info("Trimmed %s history messages to fit %s tokens", start, limit)
    return history[start:]


def build_api_messages(
    messages: Iterable[UIMessage],
    *,
    system_prompt: str | None = None,
    model: str | None = None,
) -> list[dict[str, str]]:
    """
    Payload messages for the completion endpoint.

    System prompt first, then user and assistant messages only, each part
    joined by a single space. Other roles are dropped.
    """
    history = [
        {"role": m.role, "content": message_text(m, " ")}
        for m in messages
        if m.role in FORWARDED_ROLES
    ]
    limit = get_history_token_limit()
    if limit and history:
        history = _trim_history(history, limit, model)
    prompt = system_prompt if system_prompt is not None else get_system_prompt()
    return [{"role": "system", "content": prompt}, *history]


def serialize_message(message: ChatMessage) -> dict[str, Any]:
    return {
        "id": str(message.id),
        "role": message.role,
        "parts": message.parts,
        "createdAt": message.created_at.isoformat(),
    }


def serialize_chat(chat: Chat) -> dict[str, Any]:
    return {
        "id": str(chat.id),
        "title": chat.title,
        "visibility": chat.visibility,
        "createdAt": chat.created_at.isoformat(),
        "lastMessageAt": chat.last_message_at.isoformat() if chat.last_message_at else None,
    }


class ChatService:
    """
    Request-forward-persist pipeline for the chat API.

    One user turn produces exactly two rows: the user's message and the
    assistant's reply (or an apology when the upstream call fails).
    """

    def __init__(self) -> None:
        self.completion_service = ChatCompletionService()

    def _owned_chat(self, chat_id, user) -> Chat:
        chat = Chat.objects.filter(id=chat_id).first()
        if chat is None:
            raise ChatNotFound(f"Chat {chat_id} not found")
        if chat.user_id != user.id:
            logger.warning("User %s denied access to chat %s", user.id, chat_id)
            raise ChatAccessDenied("Unauthorized")
        return chat

    def _get_or_create_chat(self, chat_id, user, first_message: UIMessage) -> Chat:
        chat = Chat.objects.filter(id=chat_id).first()
        if chat is None:
            title = generate_title_from_user_message(first_message)
            chat = Chat.objects.create(id=chat_id, user=user, title=title)
            logger.info("Created chat %s titled %r", chat.id, title)
            return chat
        if chat.user_id != user.id:
            logger.warning("User %s denied access to chat %s", user.id, chat_id)
            raise ChatAccessDenied("Unauthorized")
        return chat

    def _save_user_message(self, chat: Chat, message: UIMessage) -> ChatMessage:
        existing = ChatMessage.objects.filter(id=message.id).first()
        if existing is not None and existing.chat_id == chat.id:
            return existing
        return ChatMessage.objects.create(
            # A clashing id from another chat gets a fresh one.
            id=message.id if existing is None else uuid.uuid4(),
            chat=chat,
            role=ChatMessage.Role.USER,
            content=message_text(message, "\n"),
            attachments=message.experimental_attachments,
        )

    def send_message(
        self,
        *,
        chat_id,
        user,
        messages: list[UIMessage],
        selected_model: str | None = None,
    ) -> dict[str, Any]:
        user_message = get_most_recent_user_message(messages)
        if user_message is None:
            raise NoUserMessage("No user message found")

        with transaction.atomic():
            chat = self._get_or_create_chat(chat_id, user, user_message)
            self._save_user_message(chat, user_message)

        model = catalog.get_model_by_id(selected_model or catalog.DEFAULT_CHAT_MODEL)
        actual_model = catalog.get_actual_model_id(model.id)
        api_messages = build_api_messages(messages, model=actual_model)
        logger.info("Forwarding %s messages for chat %s to %s", len(api_messages), chat.id, actual_model)
        log_data(logger, {"model": actual_model, "messages": api_messages}, label="Completion payload")

        status = ChatMessage.Status.FINAL
        error = ""
        call_log = None
        try:
            result = self.completion_service.complete(
                messages=api_messages,
                model=actual_model,
                user=user,
                metadata={"feature": "chat", "chat_id": str(chat.id)},
            )
            reply = result.text
            call_log = result.call_log
        except LLMError as e:
            logger.error("Completion failed for chat %s: %s", chat.id, e)
            reply = API_ERROR_REPLY.format(error=e)
            status = ChatMessage.Status.ERROR
            error = str(e)

        assistant_message = ChatMessage.objects.create(
            chat=chat,
            role=ChatMessage.Role.ASSISTANT,
            status=status,
            content=reply,
            error=error,
            model=model.id,
            llm_call_log=call_log,
        )
        chat.last_message_at = timezone.now()
        chat.save(update_fields=["last_message_at", "updated_at"])

        return {
            "messages": [serialize_message(assistant_message)],
            "id": str(assistant_message.id),
        }

    def delete_chat(self, *, chat_id, user) -> None:
        chat = self._owned_chat(chat_id, user)
        chat.delete()
        logger.info("Chat deleted: %s", chat_id)

    def delete_trailing_messages(self, *, message_id, user) -> int:
        """Delete a message and every later message of its chat. Returns the number removed."""
        message = (
            ChatMessage.objects.select_related("chat")
            .filter(id=message_id, chat__user=user)
            .first()
        )
        if message is None:
            logger.error("Message not found: %s", message_id)
            return 0
        logger.debug("Deleting trailing messages from %s", message_id)
        _, per_model = ChatMessage.objects.filter(
            chat=message.chat, created_at__gte=message.created_at
        ).delete()
        return per_model.get(ChatMessage._meta.label, 0)

    def update_visibility(self, *, chat_id, user, visibility: str) -> Chat:
        chat = self._owned_chat(chat_id, user)
        chat.visibility = visibility
        chat.save(update_fields=["visibility", "updated_at"])
        logger.debug("Chat %s visibility set to %s", chat_id, visibility)
        return chat

    def vote(self, *, chat_id, message_id, user, up: bool) -> Vote:
        chat = self._owned_chat(chat_id, user)
        message = ChatMessage.objects.filter(id=message_id, chat=chat).first()
        if message is None:
            raise ChatNotFound(f"Message {message_id} not found")
        vote, _ = Vote.objects.update_or_create(
            chat=chat, message=message, defaults={"is_upvoted": up}
        )
        return vote

    def votes_for(self, *, chat_id, user) -> list[dict[str, Any]]:
        chat = self._owned_chat(chat_id, user)
        return [
            {"chatId": str(v.chat_id), "messageId": str(v.message_id), "isUpvoted": v.is_upvoted}
            for v in Vote.objects.filter(chat=chat)
        ]

    def history(self, *, user) -> list[Chat]:
        return list(Chat.objects.filter(user=user).order_by(F("last_message_at").desc(nulls_last=True), "-created_at"))
