import logging
import os

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

logger = logging.getLogger(__name__)

User = get_user_model()


class Command(BaseCommand):
    help = "Create the chief editor account unless one already exists."

    def add_arguments(self, parser):
        parser.add_argument(
            "--email",
            default=os.environ.get("CHIEF_EDITOR_EMAIL"),
            help="Login email. Defaults to $CHIEF_EDITOR_EMAIL.",
        )
        parser.add_argument(
            "--password",
            default=os.environ.get("CHIEF_EDITOR_PASSWORD"),
            help="Initial password. Defaults to $CHIEF_EDITOR_PASSWORD.",
        )
        parser.add_argument(
            "--first-name",
            dest="first_name",
            default=os.environ.get("CHIEF_EDITOR_FIRST_NAME", "Chief"),
        )
        parser.add_argument(
            "--last-name",
            dest="last_name",
            default=os.environ.get("CHIEF_EDITOR_LAST_NAME", "Editor"),
        )

    def handle(self, *args, **options):
        existing = User.objects.filter(role=User.Role.CHIEF_EDITOR).first()
        if existing is not None:
            self.stdout.write(
                f"Chief editor already exists ({existing.email}), no new entry created.")
            return

        email = (options.get("email") or "").strip()
        password = options.get("password") or ""
        if not email or not password:
            raise CommandError(
                "Provide --email and --password or set CHIEF_EDITOR_EMAIL and CHIEF_EDITOR_PASSWORD.")
        if User.objects.filter(email__iexact=email).exists():
            raise CommandError(f"A user with email '{email}' already exists.")

        user = User.objects.create_user(
            email=email,
            password=password,
            role=User.Role.CHIEF_EDITOR,
            first_name=options["first_name"],
            last_name=options["last_name"],
            is_staff=True,
        )
        logger.info("Created chief editor %s", user.pk)
        self.stdout.write(self.style.SUCCESS(
            f"Chief editor {user.email} created."))
