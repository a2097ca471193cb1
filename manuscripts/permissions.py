from rest_framework import permissions

from .models import User


class HasRole(permissions.IsAuthenticated):
    role: str = ""
    message = "Your role does not allow this action."

    def has_permission(self, request, view):
        if not super().has_permission(request, view):
            return False
        return getattr(request.user, "role", None) == self.role


class IsAuthor(HasRole):
    role = User.Role.AUTHOR
    message = "Only authors can perform this action."


class IsChiefEditor(HasRole):
    role = User.Role.CHIEF_EDITOR
    message = "Only the chief editor can perform this action."


class IsSectionHead(HasRole):
    role = User.Role.SECTION_HEAD
    message = "Only section heads can perform this action."
