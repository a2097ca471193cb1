"""Creation and listing of section head review assignments."""

from __future__ import annotations

import logging

from django.db.models import OuterRef, Subquery

from .exceptions import InvalidInput
from .models import Paper, ReviewAssignment, User, status_entry
from .pagination import Pagination

logger = logging.getLogger(__name__)


def create_assignment(paper: Paper, section_head: User, date=None) -> ReviewAssignment:
    """Create one ``assigned`` review assignment for ``section_head``.

    Repeated calls for the same pair create additional rows; nothing here
    looks for an existing assignment.
    """
    comment = f"Assigned to section head: {section_head.full_name}"
    assignment = ReviewAssignment.objects.create(
        paper=paper,
        section_head=section_head,
        status=ReviewAssignment.Status.ASSIGNED,
        status_history=[
            status_entry(ReviewAssignment.Status.ASSIGNED, comment, date)],
    )
    logger.info(
        "Paper %s assigned to section head %s (assignment %s)",
        paper.pk,
        section_head.pk,
        assignment.pk,
    )
    return assignment


def _check_status(status: str | None) -> None:
    if status and status not in ReviewAssignment.Status.values:
        raise InvalidInput(f"Invalid assignment status '{status}'.")


def filter_assignments(*, paper_id=None, section_head_id=None, status: str | None = None):
    _check_status(status)
    queryset = ReviewAssignment.objects.select_related("section_head")
    if paper_id is not None:
        queryset = queryset.filter(paper_id=paper_id)
    if section_head_id is not None:
        queryset = queryset.filter(section_head_id=section_head_id)
    if status:
        queryset = queryset.filter(status=status)
    return queryset


def list_assignments(
    *,
    paper_id=None,
    section_head_id=None,
    status: str | None = None,
    pagination: Pagination | None = None,
) -> tuple[list[ReviewAssignment], int]:
    queryset = filter_assignments(
        paper_id=paper_id, section_head_id=section_head_id, status=status)
    return (pagination or Pagination()).apply(queryset)


def latest_assignment(paper: Paper, section_head: User) -> ReviewAssignment | None:
    """The newest row for the pair; older duplicates are history."""
    return (
        ReviewAssignment.objects.filter(paper=paper, section_head=section_head)
        .order_by("-created_at", "-id")
        .first()
    )


def papers_assigned_to(section_head: User, status: str | None = None):
    """Distinct papers assigned to ``section_head``.

    Each paper is annotated with ``latest_assignment_id`` and
    ``latest_assignment_status`` from its newest assignment row, and
    ``status`` filters on that newest row.
    """
    _check_status(status)
    latest = ReviewAssignment.objects.filter(
        paper=OuterRef("pk"), section_head=section_head,
    ).order_by("-created_at", "-id")
    queryset = Paper.objects.filter(
        pk__in=ReviewAssignment.objects.filter(
            section_head=section_head).values("paper_id"),
    ).annotate(
        latest_assignment_id=Subquery(latest.values("pk")[:1]),
        latest_assignment_status=Subquery(latest.values("status")[:1]),
        latest_assigned_at=Subquery(latest.values("created_at")[:1]),
    )
    if status:
        queryset = queryset.filter(latest_assignment_status=status)
    return queryset.order_by("-latest_assigned_at", "-id")


def assignments_for_papers(paper_ids) -> list[ReviewAssignment]:
    """All assignment rows for ``paper_ids`` with their section heads loaded."""
    return list(
        ReviewAssignment.objects.filter(paper_id__in=list(paper_ids))
        .select_related("section_head")
        .order_by("created_at", "id")
    )
