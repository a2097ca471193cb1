from __future__ import annotations

import json
import secrets

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.db import transaction
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from .models import Paper, ReviewAssignment
from .notifications import send_section_head_credentials
from .utils import build_file_url

User = get_user_model()

SECTION_HEAD_PASSWORD_BYTES = 12


class UserSerializer(serializers.ModelSerializer):
    firstName = serializers.CharField(source="first_name")
    lastName = serializers.CharField(source="last_name", required=False, allow_blank=True)
    dateJoined = serializers.DateTimeField(source="date_joined", read_only=True)

    class Meta:
        model = User
        fields = ("id", "email", "role", "title", "firstName", "lastName", "country",
                  "specialization", "affiliation", "phone", "dateJoined")
        read_only_fields = ("id", "role", "dateJoined")


class PublicProfileSerializer(serializers.ModelSerializer):
    """Profile fields that may be shown to other users."""

    firstName = serializers.CharField(source="first_name")
    lastName = serializers.CharField(source="last_name")

    class Meta:
        model = User
        fields = ("id", "title", "firstName", "lastName", "email",
                  "specialization", "affiliation", "country")
        read_only_fields = fields


class RegistrationSerializer(serializers.ModelSerializer):
    firstName = serializers.CharField(source="first_name")
    lastName = serializers.CharField(source="last_name", required=False, allow_blank=True)
    password = serializers.CharField(write_only=True)

    class Meta:
        model = User
        fields = ("email", "password", "title", "firstName", "lastName", "country",
                  "specialization", "affiliation", "phone")
        extra_kwargs = {"phone": {"required": True, "allow_blank": False}}

    def validate_email(self, value: str) -> str:
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError(
                "A user with this email already exists")
        return value

    def validate(self, attrs):
        validate_password(password=attrs["password"])
        return attrs

    def create(self, validated_data):
        password = validated_data.pop("password")
        return User.objects.create_user(
            password=password, role=User.Role.AUTHOR, **validated_data)


class SectionHeadCreateSerializer(serializers.ModelSerializer):
    firstName = serializers.CharField(source="first_name")
    lastName = serializers.CharField(source="last_name", required=False, allow_blank=True)

    class Meta:
        model = User
        fields = ("email", "title", "firstName", "lastName", "phone",
                  "specialization", "affiliation", "country")

    def validate_email(self, value: str) -> str:
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError(
                "User with this email already exists")
        return value

    def create(self, validated_data):
        password = secrets.token_urlsafe(SECTION_HEAD_PASSWORD_BYTES)
        with transaction.atomic():
            user = User.objects.create_user(
                password=password, role=User.Role.SECTION_HEAD, **validated_data)
            send_section_head_credentials(user, password)
        return user


class EmailTokenObtainPairSerializer(TokenObtainPairSerializer):
    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token["role"] = user.role
        return token

    def validate(self, attrs):
        data = super().validate(attrs)
        data["user"] = UserSerializer(self.user).data
        return data


class ContributorListField(serializers.Field):
    """List of contributor objects, accepted as JSON text in multipart forms."""

    default_error_messages = {
        "invalid": "Expected a list of objects or its JSON encoding.",
    }

    def to_internal_value(self, data):
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except ValueError:
                self.fail("invalid")
        if not isinstance(data, list):
            self.fail("invalid")
        return data

    def to_representation(self, value):
        return value


class PaperSubmissionSerializer(serializers.Serializer):
    manuScriptTitle = serializers.CharField(source="manuscript_title", max_length=512)
    manuScriptType = serializers.CharField(source="manuscript_type", max_length=128)
    runningTitle = serializers.CharField(source="running_title", max_length=255)
    subject = serializers.CharField(max_length=255)
    abstract = serializers.CharField()
    correspondingAuthorName = serializers.CharField(
        source="corresponding_author_name", max_length=255)
    correspondingAuthorEmail = serializers.EmailField(source="corresponding_author_email")
    noOfAuthors = serializers.IntegerField(source="number_of_authors", min_value=1)
    authors = ContributorListField()
    reviewers = ContributorListField()
    authorsConflict = serializers.CharField(
        source="authors_conflict", required=False, allow_blank=True)
    dataAvailability = serializers.CharField(
        source="data_availability", required=False, allow_blank=True)
    mainManuscript = serializers.FileField(source="main_manuscript")
    coverLetter = serializers.FileField(source="cover_letter", required=False)
    supplementaryFile = serializers.FileField(source="supplementary_file", required=False)
    apcs = serializers.BooleanField(required=False, default=False)
    studiedAndUnderstood = serializers.BooleanField(
        source="studied_and_understood", required=False, default=False)


class PaperSerializer(serializers.ModelSerializer):
    userId = serializers.IntegerField(source="user_id", read_only=True)
    manuScriptTitle = serializers.CharField(source="manuscript_title")
    manuScriptType = serializers.CharField(source="manuscript_type")
    runningTitle = serializers.CharField(source="running_title")
    correspondingAuthorName = serializers.CharField(source="corresponding_author_name")
    correspondingAuthorEmail = serializers.EmailField(source="corresponding_author_email")
    noOfAuthors = serializers.IntegerField(source="number_of_authors")
    authorsConflict = serializers.CharField(source="authors_conflict")
    dataAvailability = serializers.CharField(source="data_availability")
    mainManuscript = serializers.SerializerMethodField()
    coverLetter = serializers.SerializerMethodField()
    supplementaryFile = serializers.SerializerMethodField()
    paperStatus = serializers.CharField(source="paper_status")
    statusHistory = serializers.JSONField(source="status_history")
    studiedAndUnderstood = serializers.BooleanField(source="studied_and_understood")
    createdAt = serializers.DateTimeField(source="created_at")
    updatedAt = serializers.DateTimeField(source="updated_at")

    class Meta:
        model = Paper
        fields = (
            "id",
            "userId",
            "manuScriptTitle",
            "manuScriptType",
            "runningTitle",
            "subject",
            "abstract",
            "correspondingAuthorName",
            "correspondingAuthorEmail",
            "noOfAuthors",
            "authors",
            "reviewers",
            "authorsConflict",
            "dataAvailability",
            "mainManuscript",
            "coverLetter",
            "supplementaryFile",
            "paperStatus",
            "statusHistory",
            "apcs",
            "studiedAndUnderstood",
            "createdAt",
            "updatedAt",
        )
        read_only_fields = fields

    def get_mainManuscript(self, obj: Paper) -> str | None:
        return build_file_url(obj.main_manuscript.name)

    def get_coverLetter(self, obj: Paper) -> str | None:
        return build_file_url(obj.cover_letter.name)

    def get_supplementaryFile(self, obj: Paper) -> str | None:
        return build_file_url(obj.supplementary_file.name)


class AssignedPaperSerializer(PaperSerializer):
    """Paper fields shown to a section head in their review queue."""

    class Meta(PaperSerializer.Meta):
        fields = (
            "id",
            "manuScriptTitle",
            "manuScriptType",
            "runningTitle",
            "subject",
            "abstract",
            "noOfAuthors",
            "authors",
            "mainManuscript",
            "coverLetter",
            "supplementaryFile",
            "paperStatus",
            "createdAt",
        )
        read_only_fields = fields


class ReviewAssignmentSerializer(serializers.ModelSerializer):
    paperId = serializers.IntegerField(source="paper_id", read_only=True)
    sectionHeadId = serializers.IntegerField(source="section_head_id", read_only=True)
    sectionHead = PublicProfileSerializer(source="section_head", read_only=True)
    statusHistory = serializers.JSONField(source="status_history")
    createdAt = serializers.DateTimeField(source="created_at")
    updatedAt = serializers.DateTimeField(source="updated_at")

    class Meta:
        model = ReviewAssignment
        fields = ("id", "paperId", "sectionHeadId", "sectionHead", "status",
                  "statusHistory", "createdAt", "updatedAt")
        read_only_fields = fields


class StatusTransitionSerializer(serializers.Serializer):
    action = serializers.CharField()
    comment = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    date = serializers.DateTimeField(required=False, allow_null=True)
    sectionHeadIds = serializers.ListField(
        source="section_head_ids",
        child=serializers.IntegerField(),
        required=False,
        allow_empty=True,
    )


class SectionHeadDecisionSerializer(serializers.Serializer):
    status = serializers.CharField()
    comment = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    date = serializers.DateTimeField(required=False, allow_null=True)
