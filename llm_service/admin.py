from django.contrib import admin
from django.utils.html import format_html

from .models import LLMCallLog


@admin.register(LLMCallLog)
class LLMCallLogAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "created_at",
        "model",
        "status",
        "user_message_preview",
        "total_tokens",
        "cost_usd",
        "duration_ms",
        "user",
        "request_id",
    )
    list_filter = ("status", "model")
    search_fields = ("request_id", "model", "error_message", "user_message_preview", "prompt_preview")
    readonly_fields = (
        "id",
        "created_at",
        "model",
        "request_kwargs",
        "prompt_hash",
        "prompt_preview",
        "user_message_preview",
        "provider_response_id",
        "response_model",
        "response_preview",
        "raw_response_formatted",
        "input_tokens",
        "output_tokens",
        "total_tokens",
        "cost_usd",
        "status",
        "error_type",
        "error_message",
        "http_status",
        "retry_count",
        "metadata",
        "request_id",
        "duration_ms",
        "user",
    )
    fieldsets = (
        (None, {"fields": ("id", "created_at", "duration_ms", "status", "user", "request_id", "metadata")}),
        ("Request", {"fields": ("model", "request_kwargs", "prompt_hash", "prompt_preview", "user_message_preview")}),
        ("Response", {"fields": ("provider_response_id", "response_model", "response_preview")}),
        ("Raw response", {"fields": ("raw_response_formatted",)}),
        ("Usage / cost", {"fields": ("input_tokens", "output_tokens", "total_tokens", "cost_usd")}),
        ("Errors", {"fields": ("error_type", "error_message", "http_status", "retry_count")}),
    )
    ordering = ["-created_at"]
    date_hierarchy = "created_at"

    @admin.display(description="Raw response (JSON)")
    def raw_response_formatted(self, obj):
        if not obj.raw_response_payload:
            return "-"
        return format_html(
            '<pre style="max-height: 60em; overflow: auto; white-space: pre-wrap; word-break: break-all;">{}</pre>',
            obj.raw_response_payload,
        )
