from django.contrib import admin

from .models import Chat, ChatMessage, Vote


class ChatMessageInline(admin.TabularInline):
    model = ChatMessage
    extra = 0
    readonly_fields = ("id", "created_at", "token_count")
    fields = ("id", "role", "status", "model", "content", "error", "token_count", "llm_call_log", "created_at")
    ordering = ("created_at", "id")


@admin.register(Chat)
class ChatAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "user", "visibility", "created_at", "last_message_at")
    list_filter = ("visibility", "created_at", "last_message_at")
    search_fields = ("title", "user__email", "id")
    readonly_fields = ("id", "created_at", "updated_at")
    inlines = [ChatMessageInline]


@admin.register(Vote)
class VoteAdmin(admin.ModelAdmin):
    list_display = ("message", "chat", "is_upvoted")
    list_filter = ("is_upvoted",)
