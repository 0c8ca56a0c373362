import logging
import os
import sys

from django.apps import AppConfig
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db.utils import OperationalError, ProgrammingError

logger = logging.getLogger(__name__)


class CoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core"

    def ready(self) -> None:
        if not settings.DEBUG or "runserver" not in sys.argv:
            return
        # The autoreloader imports apps twice; only the child process does the work.
        if os.environ.get("RUN_MAIN") not in {"true", "True", "1"} and "--noreload" not in sys.argv:
            return
        ensure_dev_superuser()


def ensure_dev_superuser() -> None:
    """Create or promote the superuser named by DJANGO_USER_NAME / DJANGO_PASSWORD."""
    email = os.environ.get("DJANGO_USER_NAME")
    password = os.environ.get("DJANGO_PASSWORD")
    if not email or not password:
        return

    try:
        user_model = get_user_model()
        user = user_model.objects.filter(**{user_model.USERNAME_FIELD: email}).first()
        if user is None:
            user_model.objects.create_superuser(email=email, password=password)
            logger.info("Created development superuser %s", email)
            return
        if not (user.is_staff and user.is_superuser):
            user.is_staff = True
            user.is_superuser = True
            user.save(update_fields=["is_staff", "is_superuser"])
            logger.info("Promoted %s to superuser", email)
    except (OperationalError, ProgrammingError):
        logger.warning("Database not migrated yet; skipping development superuser")
