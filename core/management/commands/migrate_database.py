import logging
import os
import time

from django.core.management import call_command
from django.core.management.base import BaseCommand, CommandError

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Apply database migrations to the database named by DATABASE_URL, logging elapsed time."

    def handle(self, *args, **options):
        if not os.environ.get("DATABASE_URL"):
            raise CommandError("DATABASE_URL is not defined")

        logger.info("Running migrations...")
        start = time.perf_counter()
        try:
            call_command("migrate", interactive=False, verbosity=options.get("verbosity", 1))
        except Exception as e:
            logger.error("Migration failed: %s", e)
            raise CommandError(f"Migration failed: {e}") from e

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        logger.info("Migrations completed in %s ms", elapsed_ms)
        self.stdout.write(self.style.SUCCESS(f"Migrations completed in {elapsed_ms} ms"))
