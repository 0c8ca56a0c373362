import uuid

from django.conf import settings
from django.db import models

from llm_service.tokens import count_tokens


class Chat(models.Model):
    class Visibility(models.TextChoices):
        PRIVATE = "private", "Private"
        PUBLIC = "public", "Public"

    # The browser generates the id before the first message is sent.
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="chats",
    )

    title = models.CharField(max_length=255, blank=True, default="")
    visibility = models.CharField(
        max_length=16, choices=Visibility.choices, default=Visibility.PRIVATE
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    last_message_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = [models.F("last_message_at").desc(nulls_last=True), "-created_at"]
        indexes = [
            models.Index(fields=["user", "-last_message_at", "-created_at"], name="chat_user_recent_idx"),
            models.Index(fields=["user", "-created_at"], name="chat_user_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.title or 'Untitled chat'} ({self.id})"


class ChatMessage(models.Model):
    class Role(models.TextChoices):
        USER = "user", "User"
        ASSISTANT = "assistant", "Assistant"
        SYSTEM = "system", "System"

    class Status(models.TextChoices):
        FINAL = "final", "Final"
        ERROR = "error", "Error"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    chat = models.ForeignKey(
        Chat,
        on_delete=models.CASCADE,
        related_name="messages",
    )

    role = models.CharField(max_length=20, choices=Role.choices)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.FINAL)

    content = models.TextField(blank=True, default="")
    attachments = models.JSONField(default=list, blank=True)
    error = models.TextField(blank=True, default="")

    token_count = models.PositiveIntegerField(default=0)

    # Catalog id selected for an assistant reply ("auto" stays "auto").
    model = models.CharField(max_length=255, blank=True, default="")

    llm_call_log = models.ForeignKey(
        "llm_service.LLMCallLog",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="chat_messages",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["chat", "created_at", "id"], name="chatmsg_chat_created_idx"),
            models.Index(fields=["chat", "role", "created_at", "id"], name="chatmsg_chat_role_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.role} ({self.status}) in {self.chat_id}"

    @property
    def parts(self) -> list[dict]:
        return [{"text": self.content}]

    def save(self, *args, **kwargs):
        # Keep token_count in sync with content.
        self.token_count = count_tokens(self.content, model_name=self.model or None)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "content" in update_fields:
            kwargs["update_fields"] = set(update_fields) | {"token_count"}
        super().save(*args, **kwargs)


class Vote(models.Model):
    chat = models.ForeignKey(Chat, on_delete=models.CASCADE, related_name="votes")
    message = models.ForeignKey(ChatMessage, on_delete=models.CASCADE, related_name="votes")
    is_upvoted = models.BooleanField()

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["chat", "message"], name="uniq_vote_per_chat_message"),
        ]

    def __str__(self) -> str:
        return f"{'up' if self.is_upvoted else 'down'} on {self.message_id}"
