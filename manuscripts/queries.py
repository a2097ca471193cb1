"""Role-scoped, paginated read views over papers and review assignments."""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Optional

from django.db.models import Q
from django.utils import timezone

from . import assignments
from .exceptions import InvalidInput, NotFound
from .models import Paper, ReviewAssignment, User
from .pagination import Pagination
from .serializers import AssignedPaperSerializer, PaperSerializer, PublicProfileSerializer

STATUS_KEYWORDS = {
    "accepted": Paper.Status.PUBLISHED,
    "submitted": Paper.Status.SUBMITTED,
    "rejected": Paper.Status.REJECTED,
    "assigned": Paper.Status.UNDER_REVIEW,
}

PUBLIC_LISTING_ARCHIVE = "archive"
PUBLIC_LISTING_IN_PRESS = "inPress"
IN_PRESS_WINDOW = timedelta(days=30)


def parse_id(value, name: str) -> Optional[int]:
    if value is None or str(value).strip() == "":
        return None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise InvalidInput(f"{name} must be an integer.") from None


def resolve_status_keyword(keyword: Optional[str]) -> Optional[str]:
    if keyword is None or keyword == "":
        return None
    try:
        return STATUS_KEYWORDS[keyword]
    except KeyError:
        raise InvalidInput(f"Invalid status '{keyword}'.") from None


def _assigned_section_heads(paper_ids) -> dict[int, list[User]]:
    """Map paper id to the distinct section heads assigned to it."""
    by_paper: dict[int, dict[int, User]] = {}
    for row in assignments.assignments_for_papers(paper_ids):
        by_paper.setdefault(row.paper_id, {}).setdefault(
            row.section_head_id, row.section_head)
    return {paper_id: list(heads.values()) for paper_id, heads in by_paper.items()}


def get_papers_by_status(
    status_param: Optional[str],
    paper_id=None,
    pagination: Optional[Pagination] = None,
) -> dict[str, Any]:
    pagination = pagination or Pagination()
    status = resolve_status_keyword(status_param)
    paper_id = parse_id(paper_id, "paperId")

    queryset = Paper.objects.all()
    if status:
        queryset = queryset.filter(paper_status=status)
    if paper_id is not None:
        queryset = queryset.filter(pk=paper_id)

    papers, total = pagination.apply(queryset)
    results = PaperSerializer(papers, many=True).data

    if status == Paper.Status.UNDER_REVIEW or (status is None and paper_id is not None):
        heads = _assigned_section_heads(paper.pk for paper in papers)
        for paper, data in zip(papers, results):
            data["assignedTo"] = PublicProfileSerializer(
                heads.get(paper.pk, []), many=True).data

    return {"papers": results, "pagination": pagination.metadata(total)}


def get_assigned_papers_for_section_head(
    section_head_id,
    status: Optional[str] = None,
    pagination: Optional[Pagination] = None,
) -> dict[str, Any]:
    pagination = pagination or Pagination()
    section_head_id = parse_id(section_head_id, "sectionHeadId")
    if section_head_id is None:
        raise InvalidInput("sectionHeadId is required.")
    section_head = User.objects.filter(
        pk=section_head_id, role=User.Role.SECTION_HEAD).first()
    if section_head is None:
        raise NotFound("Section head not found")

    papers, total = pagination.apply(
        assignments.papers_assigned_to(section_head, status or None))

    assigned_papers = []
    for paper in papers:
        data = dict(AssignedPaperSerializer(paper).data)
        data["reviewerStatus"] = paper.latest_assignment_status
        data["assignmentId"] = paper.latest_assignment_id
        assigned_papers.append(data)

    profile = dict(PublicProfileSerializer(section_head).data)
    profile["totalAssignedPapers"] = total
    return {
        "sectionHead": profile,
        "assignedPapers": assigned_papers,
        "pagination": pagination.metadata(total),
    }


def get_papers_for_author(
    *,
    user_id=None,
    title: Optional[str] = None,
    name: Optional[str] = None,
    manuscript_title: Optional[str] = None,
    pagination: Optional[Pagination] = None,
) -> dict[str, Any]:
    pagination = pagination or Pagination()
    user_id = parse_id(user_id, "userId")

    queryset = Paper.objects.select_related("user")
    if user_id is not None:
        queryset = queryset.filter(user_id=user_id)
    if manuscript_title:
        queryset = queryset.filter(manuscript_title__icontains=manuscript_title)
    if title:
        queryset = queryset.filter(user__title__icontains=title)
    if name:
        queryset = queryset.filter(
            Q(user__first_name__icontains=name) | Q(user__last_name__icontains=name))

    papers, total = pagination.apply(queryset)
    if total == 0:
        raise NotFound("No papers found for this author.")

    results = []
    for paper in papers:
        data = dict(PaperSerializer(paper).data)
        data["author"] = PublicProfileSerializer(paper.user).data
        results.append(data)
    return {"papers": results, "pagination": pagination.metadata(total)}


def list_public_papers(
    listing_type: Optional[str] = None,
    pagination: Optional[Pagination] = None,
) -> dict[str, Any]:
    """Published papers, optionally split into archive and in-press.

    Both filters are computed from the same cut-off instant, so ``inPress``
    means "published paper created within the last 30 days".
    """
    pagination = pagination or Pagination()
    queryset = Paper.objects.filter(paper_status=Paper.Status.PUBLISHED)
    cutoff = timezone.now() - IN_PRESS_WINDOW
    if listing_type == PUBLIC_LISTING_ARCHIVE:
        queryset = queryset.filter(created_at__lt=cutoff)
    elif listing_type == PUBLIC_LISTING_IN_PRESS:
        queryset = queryset.filter(created_at__gt=cutoff)
    elif listing_type:
        raise InvalidInput(f"Invalid type '{listing_type}'.")

    papers, total = pagination.apply(queryset)
    if total == 0:
        raise NotFound("No papers found matching the criteria.")
    return {
        "papers": PaperSerializer(papers, many=True).data,
        "pagination": pagination.metadata(total),
    }


def get_paper(paper_id, viewer: Optional[User] = None) -> Paper:
    """Fetch one paper, hiding it from viewers who may not see it."""
    paper_id = parse_id(paper_id, "paperId")
    paper = Paper.objects.filter(pk=paper_id).first() if paper_id is not None else None
    if paper is None or not can_view_paper(paper, viewer):
        raise NotFound("Paper not found")
    return paper


def can_view_paper(paper: Paper, viewer: Optional[User]) -> bool:
    if paper.paper_status == Paper.Status.PUBLISHED:
        return True
    if viewer is None or not viewer.is_authenticated:
        return False
    if viewer.role == User.Role.CHIEF_EDITOR:
        return True
    if viewer.role == User.Role.SECTION_HEAD:
        return ReviewAssignment.objects.filter(paper=paper, section_head=viewer).exists()
    return paper.user_id == viewer.pk
