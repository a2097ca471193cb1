from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _

from .models import Paper, ReviewAssignment, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    ordering = ("email",)
    list_display = ("email", "first_name", "last_name",
                    "role", "is_staff", "is_active")
    list_filter = ("role", "is_staff", "is_superuser", "is_active")
    search_fields = ("email", "first_name", "last_name")
    fieldsets = (
        (None, {"fields": ("email", "password", "role")}),
        (
            _("Personal info"),
            {"fields": ("title", "first_name", "last_name", "country",
                        "specialization", "affiliation", "phone")},
        ),
        (
            _("Permissions"),
            {"fields": ("is_active", "is_staff", "is_superuser",
                        "groups", "user_permissions")},
        ),
        (_("Important dates"), {"fields": ("last_login", "date_joined")}),
    )
    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("email", "first_name", "role", "password1", "password2", "is_staff"),
            },
        ),
    )
    filter_horizontal = ("groups", "user_permissions")


class ReviewAssignmentInline(admin.TabularInline):
    model = ReviewAssignment
    extra = 0
    can_delete = False
    fields = ("section_head", "status", "created_at", "updated_at")
    readonly_fields = fields
    ordering = ("-created_at",)
    verbose_name_plural = "Review assignments"

    def has_add_permission(self, request, obj=None):
        """Assignments are created through the status workflow."""
        return False


@admin.register(Paper)
class PaperAdmin(admin.ModelAdmin):
    list_display = ("manuscript_title", "user", "paper_status",
                    "subject", "created_at")
    list_filter = ("paper_status", "manuscript_type", "apcs")
    search_fields = ("manuscript_title", "running_title",
                     "corresponding_author_name", "user__email")
    readonly_fields = ("paper_status", "status_history",
                       "created_at", "updated_at")
    inlines = (ReviewAssignmentInline,)


@admin.register(ReviewAssignment)
class ReviewAssignmentAdmin(admin.ModelAdmin):
    list_display = ("paper", "section_head", "status", "created_at")
    list_filter = ("status",)
    search_fields = ("paper__manuscript_title", "section_head__email")
    readonly_fields = (
        "paper",
        "section_head",
        "status",
        "status_history",
        "created_at",
        "updated_at",
    )
    ordering = ("-created_at", "-id")

    def has_add_permission(self, request):
        return False
