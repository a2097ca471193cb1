from __future__ import annotations

import math
from dataclasses import dataclass

from rest_framework.pagination import LimitOffsetPagination
from rest_framework.response import Response

from .exceptions import InvalidInput

DEFAULT_OFFSET = 0
DEFAULT_LIMIT = 10


@dataclass(frozen=True)
class Pagination:
    """Offset/limit window used by every list operation."""

    offset: int = DEFAULT_OFFSET
    limit: int = DEFAULT_LIMIT

    @classmethod
    def from_params(cls, params) -> "Pagination":
        offset = _parse_int(params.get("offset"), "offset", DEFAULT_OFFSET)
        limit = _parse_int(params.get("limit"), "limit", DEFAULT_LIMIT)
        if offset < 0:
            raise InvalidInput("offset must be a non-negative integer.")
        if limit < 1:
            raise InvalidInput("limit must be a positive integer.")
        return cls(offset=offset, limit=limit)

    def apply(self, queryset) -> tuple[list, int]:
        total = queryset.count()
        return list(queryset[self.offset:self.offset + self.limit]), total

    def metadata(self, total: int) -> dict[str, int]:
        return {
            "total": total,
            "offset": self.offset,
            "limit": self.limit,
            "totalPages": math.ceil(total / self.limit),
            "currentPage": self.offset // self.limit + 1,
        }


def _parse_int(raw, name: str, default: int) -> int:
    if raw is None or str(raw).strip() == "":
        return default
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        raise InvalidInput(f"{name} must be an integer.") from None


class OffsetLimitPagination(LimitOffsetPagination):
    """DRF paginator for plain list endpoints.

    Reads ``offset`` and ``limit`` with the same rules as :class:`Pagination`
    and responds with ``{<results_key>: [...], "pagination": {...}}``, where
    ``results_key`` is taken from the view.
    """

    default_limit = DEFAULT_LIMIT
    results_key = "results"

    def paginate_queryset(self, queryset, request, view=None):
        self.window = Pagination.from_params(request.query_params)
        self.results_key = getattr(view, "results_key", self.results_key)
        return super().paginate_queryset(queryset, request, view)

    def get_limit(self, request):
        return self.window.limit

    def get_offset(self, request):
        return self.window.offset

    def get_paginated_response(self, data):
        return Response({
            self.results_key: data,
            "pagination": self.window.metadata(self.count),
        })
