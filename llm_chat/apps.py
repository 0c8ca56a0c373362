from django.apps import AppConfig


class LlmChatConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "llm_chat"
    verbose_name = "Chat"
