from __future__ import annotations

from django.conf import settings
from django.contrib.auth.base_user import AbstractBaseUser, BaseUserManager
from django.contrib.auth.models import PermissionsMixin
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils import timezone


class UserManager(BaseUserManager):
    def create_user(self, email: str, password: str | None = None, **extra_fields):
        if not email:
            raise ValueError("Users must have an email address")
        email = self.normalize_email(email)
        extra_fields.setdefault("role", User.Role.AUTHOR)
        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_superuser(self, email: str, password: str, **extra_fields):
        if not password:
            raise ValueError("Superusers must have a password.")
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("is_active", True)
        extra_fields.setdefault("role", User.Role.CHIEF_EDITOR)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self.create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    class Role(models.TextChoices):
        AUTHOR = "author", "Author"
        CHIEF_EDITOR = "chiefEditor", "Chief editor"
        SECTION_HEAD = "sectionHead", "Section head"

    email = models.EmailField(unique=True)
    role = models.CharField(max_length=16, choices=Role.choices)
    title = models.CharField(max_length=64, blank=True)
    first_name = models.CharField(max_length=150)
    last_name = models.CharField(max_length=150, blank=True)
    country = models.CharField(max_length=128, blank=True)
    specialization = models.CharField(max_length=255, blank=True)
    affiliation = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=32, blank=True)
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    date_joined = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = "email"
    EMAIL_FIELD = "email"
    REQUIRED_FIELDS: list[str] = ["first_name"]

    objects = UserManager()

    class Meta:
        ordering = ("-date_joined",)

    def __str__(self) -> str:
        return self.email

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part).strip()

    def has_role(self, role: str) -> bool:
        return self.role == role


def status_entry(status: str, comment: str | None = None, date=None) -> dict:
    """Build one ``status_history`` ledger entry."""
    when = date or timezone.now()
    return {
        "status": status,
        "comment": comment,
        "date": when.isoformat() if hasattr(when, "isoformat") else str(when),
    }


class Paper(models.Model):
    class Status(models.TextChoices):
        SUBMITTED = "submitted", "Submitted"
        UNDER_REVIEW = "underReview", "Under review"
        PUBLISHED = "published", "Published"
        REJECTED = "rejected", "Rejected"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="papers",
        on_delete=models.PROTECT,
    )
    manuscript_title = models.CharField(max_length=512)
    manuscript_type = models.CharField(max_length=128)
    running_title = models.CharField(max_length=255)
    subject = models.CharField(max_length=255)
    abstract = models.TextField()
    corresponding_author_name = models.CharField(max_length=255)
    corresponding_author_email = models.EmailField()
    number_of_authors = models.PositiveIntegerField()
    authors = models.JSONField(default=list)
    reviewers = models.JSONField(default=list)
    authors_conflict = models.TextField(blank=True)
    data_availability = models.TextField(blank=True)
    main_manuscript = models.FileField(upload_to="assets/", max_length=512)
    cover_letter = models.FileField(
        upload_to="assets/", max_length=512, blank=True)
    supplementary_file = models.FileField(
        upload_to="assets/", max_length=512, blank=True)
    paper_status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.SUBMITTED,
    )
    status_history = models.JSONField(default=list, encoder=DjangoJSONEncoder)
    apcs = models.BooleanField(default=False)
    studied_and_understood = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created_at", "-id")
        indexes = [
            models.Index(fields=("paper_status", "created_at"),
                         name="paper_status_created_idx"),
        ]

    def __str__(self) -> str:
        return self.manuscript_title

    def record_status(self, status: str, comment: str | None = None, date=None) -> None:
        """Move to ``status`` and append the matching ledger entry."""
        self.paper_status = status
        self.status_history = [
            *(self.status_history or []),
            status_entry(status, comment, date),
        ]
        self.save(update_fields=["paper_status",
                  "status_history", "updated_at"])


class ReviewAssignment(models.Model):
    class Status(models.TextChoices):
        ASSIGNED = "assigned", "Assigned"
        ACCEPTED = "accepted", "Accepted"
        REJECTED = "rejected", "Rejected"

    paper = models.ForeignKey(
        Paper,
        related_name="review_assignments",
        on_delete=models.PROTECT,
    )
    section_head = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="review_assignments",
        on_delete=models.PROTECT,
    )
    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.ASSIGNED,
    )
    status_history = models.JSONField(default=list, encoder=DjangoJSONEncoder)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created_at", "-id")
        indexes = [
            models.Index(fields=("paper", "section_head"),
                         name="assignment_paper_head_idx"),
            models.Index(fields=("section_head", "status"),
                         name="assignment_head_status_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.paper_id} -> {self.section_head_id} ({self.status})"

    def record_status(self, status: str, comment: str | None = None, date=None) -> None:
        self.status = status
        self.status_history = [
            *(self.status_history or []),
            status_entry(status, comment, date),
        ]
        self.save(update_fields=["status", "status_history", "updated_at"])
