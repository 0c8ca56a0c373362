from django.apps import AppConfig


class LlmServiceConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "llm_service"
    verbose_name = "Completion Service"
