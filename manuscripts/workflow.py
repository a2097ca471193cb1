"""Paper lifecycle: submission, editorial transitions and section head decisions.

Every status change goes through :meth:`Paper.record_status` or
:meth:`ReviewAssignment.record_status` so the last ``status_history`` entry
always matches the current status.

Nothing in this module opens a transaction. Each save commits on its own, so
the ``assigned`` fan-out is fail-fast: when a section head id is rejected the
assignments already created for earlier ids stay in place and the paper keeps
its previous status.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Iterable, Optional

from . import assignments, notifications
from .exceptions import Forbidden, InvalidInput, InvalidState, NotFound
from .models import Paper, ReviewAssignment, User, status_entry

logger = logging.getLogger(__name__)

ACTION_ACCEPT_AND_PUBLISH = "acceptAndPublish"
ACTION_REJECTED = "rejected"
ACTION_ASSIGNED = "assigned"

ACTION_TARGETS = {
    ACTION_ACCEPT_AND_PUBLISH: Paper.Status.PUBLISHED,
    ACTION_REJECTED: Paper.Status.REJECTED,
    ACTION_ASSIGNED: Paper.Status.UNDER_REVIEW,
}

CONTRIBUTOR_FIELDS = ("fullName", "affiliation", "country", "email")
MIN_SUGGESTED_REVIEWERS = 3


@dataclasses.dataclass
class TransitionResult:
    paper: Paper
    assignments: list[ReviewAssignment] = dataclasses.field(
        default_factory=list)


def _get_user(user_id, label: str = "User") -> User:
    try:
        return User.objects.get(pk=user_id)
    except (User.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"{label} not found") from None


def _get_paper(paper_id) -> Paper:
    try:
        return Paper.objects.get(pk=paper_id)
    except (Paper.DoesNotExist, ValueError, TypeError):
        raise NotFound("Paper not found") from None


def _validate_contributors(entries: Any, label: str, minimum: int) -> list[dict]:
    if not isinstance(entries, list) or len(entries) < minimum:
        if minimum == 1:
            raise InvalidInput(
                f"{label} information must be provided as a non-empty list.")
        raise InvalidInput(f"At least {minimum} {label.lower()} are required.")
    cleaned = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise InvalidInput(f"Each entry in {label.lower()} must be an object.")
        missing = [
            field for field in CONTRIBUTOR_FIELDS
            if not str(entry.get(field) or "").strip()
        ]
        if missing:
            raise InvalidInput(
                f"Each entry in {label.lower()} must have fullName, affiliation, country and email."
            )
        cleaned.append({field: str(entry[field]).strip()
                       for field in CONTRIBUTOR_FIELDS})
    return cleaned


def submit_paper(author: User, data: dict[str, Any]) -> Paper:
    """Create a ``submitted`` paper owned by ``author``.

    ``data`` holds model field values, including the uploaded files.
    """
    if not author.has_role(User.Role.AUTHOR):
        raise Forbidden("Only authors can submit papers.")

    fields = dict(data)
    fields["authors"] = _validate_contributors(
        fields.get("authors"), "Authors", 1)
    fields["reviewers"] = _validate_contributors(
        fields.get("reviewers"), "Reviewers", MIN_SUGGESTED_REVIEWERS)
    if not fields.get("main_manuscript"):
        raise InvalidInput("The main manuscript file is required.")

    paper = Paper.objects.create(
        user=author,
        paper_status=Paper.Status.SUBMITTED,
        status_history=[status_entry(
            Paper.Status.SUBMITTED, "Paper submitted")],
        **fields,
    )
    logger.info("Paper %s submitted by author %s", paper.pk, author.pk)
    return paper


def transition_paper_status(
    paper_id,
    actor_id,
    action: str,
    comment: Optional[str] = None,
    date=None,
    section_head_ids: Optional[Iterable] = None,
) -> TransitionResult:
    """Apply an editorial ``action`` to a paper on behalf of the chief editor.

    Redundant transitions are allowed: a paper already under review may be
    assigned again and a published paper may be published again.
    """
    paper = _get_paper(paper_id)
    actor = _get_user(actor_id)
    if not actor.has_role(User.Role.CHIEF_EDITOR):
        raise Forbidden("Only a chief editor can update the paper status")

    target = ACTION_TARGETS.get(action)
    if target is None:
        raise InvalidInput(f"Invalid action '{action}'.")

    created: list[ReviewAssignment] = []
    if action == ACTION_ASSIGNED:
        ids = list(section_head_ids or [])
        if not ids:
            raise InvalidInput(
                "sectionHeadIds must be a non-empty list when assigning.")
        for section_head_id in ids:
            section_head = _get_user(section_head_id, "Section head")
            if not section_head.has_role(User.Role.SECTION_HEAD):
                raise NotFound(f"Section head {section_head_id} not found")
            created.append(assignments.create_assignment(
                paper, section_head, date))

    previous = paper.paper_status
    paper.record_status(target, comment, date)
    logger.info(
        "Paper %s moved from %s to %s by %s",
        paper.pk,
        previous,
        target,
        actor.pk,
    )

    if created:
        notifications.notify_assignments(created)
    return TransitionResult(paper=paper, assignments=created)


def record_section_head_decision(
    paper_id,
    section_head_id,
    status: str,
    comment: Optional[str] = None,
    date=None,
) -> ReviewAssignment:
    """Record a section head's decision on their assignment.

    Only the assignment changes; the paper's own status and history are left
    untouched.
    """
    section_head = _get_user(section_head_id, "Section head")
    if not section_head.has_role(User.Role.SECTION_HEAD):
        raise Forbidden("Only a section head can record a review decision")

    paper = _get_paper(paper_id)
    if paper.paper_status != Paper.Status.UNDER_REVIEW:
        raise InvalidState(
            f"Paper is '{paper.paper_status}', decisions are only accepted while it is under review."
        )
    if status not in ReviewAssignment.Status.values:
        raise InvalidInput(f"Invalid decision status '{status}'.")

    assignment = assignments.latest_assignment(paper, section_head)
    if assignment is None:
        raise NotFound("Review assignment not found")

    assignment.record_status(status, comment, date)
    logger.info(
        "Section head %s recorded %s on paper %s (assignment %s)",
        section_head.pk,
        status,
        paper.pk,
        assignment.pk,
    )
    return assignment
