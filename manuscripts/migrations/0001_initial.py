# Generated manually for the journal review workflow
from __future__ import annotations

from django.conf import settings
from django.db import migrations, models
import django.core.serializers.json
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="User",
            fields=[
                ("id", models.BigAutoField(auto_created=True,
                 primary_key=True, serialize=False, verbose_name="ID")),
                ("password", models.CharField(
                    max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(
                    blank=True, null=True, verbose_name="last login")),
                (
                    "is_superuser",
                    models.BooleanField(
                        default=False,
                        help_text="Designates that this user has all permissions without explicitly assigning them.",
                        verbose_name="superuser status",
                    ),
                ),
                ("email", models.EmailField(max_length=254, unique=True)),
                (
                    "role",
                    models.CharField(
                        choices=[
                            ("author", "Author"),
                            ("chiefEditor", "Chief editor"),
                            ("sectionHead", "Section head"),
                        ],
                        max_length=16,
                    ),
                ),
                ("title", models.CharField(blank=True, max_length=64)),
                ("first_name", models.CharField(max_length=150)),
                ("last_name", models.CharField(blank=True, max_length=150)),
                ("country", models.CharField(blank=True, max_length=128)),
                ("specialization", models.CharField(blank=True, max_length=255)),
                ("affiliation", models.CharField(blank=True, max_length=255)),
                ("phone", models.CharField(blank=True, max_length=32)),
                ("is_active", models.BooleanField(default=True)),
                ("is_staff", models.BooleanField(default=False)),
                ("date_joined", models.DateTimeField(
                    default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "groups",
                    models.ManyToManyField(
                        blank=True,
                        help_text="The groups this user belongs to. A user will get all permissions granted to each of their groups.",
                        related_name="user_set",
                        related_query_name="user",
                        to="auth.group",
                        verbose_name="groups",
                    ),
                ),
                (
                    "user_permissions",
                    models.ManyToManyField(
                        blank=True,
                        help_text="Specific permissions for this user.",
                        related_name="user_set",
                        related_query_name="user",
                        to="auth.permission",
                        verbose_name="user permissions",
                    ),
                ),
            ],
            options={
                "ordering": ("-date_joined",),
            },
        ),
        migrations.CreateModel(
            name="Paper",
            fields=[
                ("id", models.BigAutoField(auto_created=True,
                 primary_key=True, serialize=False, verbose_name="ID")),
                ("manuscript_title", models.CharField(max_length=512)),
                ("manuscript_type", models.CharField(max_length=128)),
                ("running_title", models.CharField(max_length=255)),
                ("subject", models.CharField(max_length=255)),
                ("abstract", models.TextField()),
                ("corresponding_author_name", models.CharField(max_length=255)),
                ("corresponding_author_email", models.EmailField(max_length=254)),
                ("number_of_authors", models.PositiveIntegerField()),
                ("authors", models.JSONField(default=list)),
                ("reviewers", models.JSONField(default=list)),
                ("authors_conflict", models.TextField(blank=True)),
                ("data_availability", models.TextField(blank=True)),
                ("main_manuscript", models.FileField(
                    max_length=512, upload_to="assets/")),
                ("cover_letter", models.FileField(
                    blank=True, max_length=512, upload_to="assets/")),
                ("supplementary_file", models.FileField(
                    blank=True, max_length=512, upload_to="assets/")),
                (
                    "paper_status",
                    models.CharField(
                        choices=[
                            ("submitted", "Submitted"),
                            ("underReview", "Under review"),
                            ("published", "Published"),
                            ("rejected", "Rejected"),
                        ],
                        default="submitted",
                        max_length=16,
                    ),
                ),
                ("status_history", models.JSONField(
                    default=list, encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ("apcs", models.BooleanField(default=False)),
                ("studied_and_understood", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(
                    default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "user",
                    models.ForeignKey(on_delete=django.db.models.deletion.PROTECT,
                                      related_name="papers", to=settings.AUTH_USER_MODEL),
                ),
            ],
            options={
                "ordering": ("-created_at", "-id"),
                "indexes": [
                    models.Index(fields=["paper_status", "created_at"],
                                 name="paper_status_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReviewAssignment",
            fields=[
                ("id", models.BigAutoField(auto_created=True,
                 primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("assigned", "Assigned"),
                            ("accepted", "Accepted"),
                            ("rejected", "Rejected"),
                        ],
                        default="assigned",
                        max_length=16,
                    ),
                ),
                ("status_history", models.JSONField(
                    default=list, encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ("created_at", models.DateTimeField(
                    default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "paper",
                    models.ForeignKey(on_delete=django.db.models.deletion.PROTECT,
                                      related_name="review_assignments", to="manuscripts.paper"),
                ),
                (
                    "section_head",
                    models.ForeignKey(on_delete=django.db.models.deletion.PROTECT,
                                      related_name="review_assignments", to=settings.AUTH_USER_MODEL),
                ),
            ],
            options={
                "ordering": ("-created_at", "-id"),
                "indexes": [
                    models.Index(fields=["paper", "section_head"],
                                 name="assignment_paper_head_idx"),
                    models.Index(fields=["section_head", "status"],
                                 name="assignment_head_status_idx"),
                ],
            },
        ),
    ]
