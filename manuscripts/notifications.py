from __future__ import annotations

import logging
import smtplib
from typing import Iterable, Literal

from django.conf import settings
from django.core.mail import send_mail
from django.template.loader import render_to_string

from .models import ReviewAssignment, User
from .utils import build_frontend_url

logger = logging.getLogger(__name__)

EmailTemplate = Literal["section_head_welcome", "assignment"]

SUBJECTS = {
    "section_head_welcome": "Your section head account has been created",
    "assignment": "A paper has been assigned to you for review",
}


def _from_email() -> str:
    return getattr(settings, "DEFAULT_FROM_EMAIL", "no-reply@journal-review.local")


def send_user_email(template: EmailTemplate, user: User, context: dict) -> None:
    context = {"user": user, **context}
    message = render_to_string(f"emails/{template}.txt", context)
    html_message = render_to_string(f"emails/{template}.html", context)
    send_mail(SUBJECTS[template], message, _from_email(),
              [user.email], html_message=html_message)


def send_section_head_credentials(user: User, password: str) -> None:
    send_user_email(
        "section_head_welcome",
        user,
        {"password": password, "action_url": build_frontend_url("auth/login")},
    )


def notify_assignments(assignments: Iterable[ReviewAssignment]) -> None:
    """Tell each section head about their new assignment.

    The paper has already changed status when this runs, so a mail failure is
    logged and does not propagate.
    """
    for assignment in assignments:
        section_head = assignment.section_head
        try:
            send_user_email(
                "assignment",
                section_head,
                {
                    "paper": assignment.paper,
                    "action_url": build_frontend_url(f"section-head/papers/{assignment.paper_id}"),
                },
            )
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning(
                "Could not notify section head %s about paper %s: %s",
                section_head.pk,
                assignment.paper_id,
                exc,
            )
