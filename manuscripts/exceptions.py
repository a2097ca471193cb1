"""Error kinds raised by the review workflow and their HTTP translation."""

from __future__ import annotations

import logging

from django.db import DatabaseError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class WorkflowError(Exception):
    kind = "fault"
    default_message = "Server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(WorkflowError):
    kind = "not_found"
    default_message = "Not found."


class Forbidden(WorkflowError):
    kind = "forbidden"
    default_message = "You do not have permission to perform this action."


class InvalidInput(WorkflowError):
    kind = "invalid_input"
    default_message = "Invalid input."


class InvalidState(WorkflowError):
    kind = "invalid_state"
    default_message = "Operation is not valid for the current status."


class Conflict(WorkflowError):
    kind = "conflict"
    default_message = "Conflicting request."


class Fault(WorkflowError):
    pass


STATUS_CODES = {
    NotFound.kind: status.HTTP_404_NOT_FOUND,
    Forbidden.kind: status.HTTP_403_FORBIDDEN,
    InvalidInput.kind: status.HTTP_400_BAD_REQUEST,
    InvalidState.kind: status.HTTP_400_BAD_REQUEST,
    Conflict.kind: status.HTTP_409_CONFLICT,
    Fault.kind: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def workflow_exception_handler(exc, context):
    """DRF exception handler that knows about :class:`WorkflowError`."""
    if isinstance(exc, Fault):
        logger.error("Workflow fault in %s: %s", _view_name(context), exc.message)
        return _error_response(Fault())
    if isinstance(exc, WorkflowError):
        return _error_response(exc)
    if isinstance(exc, DatabaseError):
        logger.exception("Database error in %s", _view_name(context))
        return _error_response(Fault())
    return drf_exception_handler(exc, context)


def _error_response(exc: WorkflowError) -> Response:
    code = STATUS_CODES.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response({"detail": exc.message, "code": exc.kind}, status=code)


def _view_name(context) -> str:
    view = (context or {}).get("view")
    return type(view).__name__ if view is not None else "unknown view"
