from django.contrib.auth import get_user_model
from rest_framework import generics, mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView, TokenVerifyView

from . import assignments, queries, workflow
from .exceptions import Forbidden
from .models import Paper
from .pagination import OffsetLimitPagination, Pagination
from .permissions import IsAuthor, IsChiefEditor, IsSectionHead
from .serializers import (
    EmailTokenObtainPairSerializer,
    PaperSerializer,
    PaperSubmissionSerializer,
    PublicProfileSerializer,
    RegistrationSerializer,
    ReviewAssignmentSerializer,
    SectionHeadCreateSerializer,
    SectionHeadDecisionSerializer,
    StatusTransitionSerializer,
    UserSerializer,
)

User = get_user_model()


class RegistrationView(generics.CreateAPIView):
    serializer_class = RegistrationSerializer
    permission_classes = (permissions.AllowAny,)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


class EmailTokenObtainPairView(TokenObtainPairView):
    serializer_class = EmailTokenObtainPairSerializer


class UserTokenRefreshView(TokenRefreshView):
    pass


class UserTokenVerifyView(TokenVerifyView):
    pass


class ProfileView(APIView):
    permission_classes = (permissions.IsAuthenticated,)

    def get(self, request, *args, **kwargs):
        serializer = UserSerializer(request.user)
        return Response(serializer.data)


class SectionHeadViewSet(mixins.CreateModelMixin, viewsets.GenericViewSet):
    queryset = User.objects.filter(role=User.Role.SECTION_HEAD)
    serializer_class = PublicProfileSerializer
    permission_classes = (IsChiefEditor,)
    pagination_class = OffsetLimitPagination
    results_key = "sectionHeads"

    def get_permissions(self):
        if self.action == "papers":
            return [(IsChiefEditor | IsSectionHead)()]
        return super().get_permissions()

    def get_serializer_class(self):
        if self.action == "create":
            return SectionHeadCreateSerializer
        return super().get_serializer_class()

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        return Response(PublicProfileSerializer(user).data, status=status.HTTP_201_CREATED)

    def list(self, request, *args, **kwargs):
        queryset = self.get_queryset().order_by("first_name", "last_name", "id")
        page = self.paginate_queryset(queryset)
        return self.get_paginated_response(PublicProfileSerializer(page, many=True).data)

    @action(detail=True, methods=["get"], url_path="papers")
    def papers(self, request, pk=None):
        user = request.user
        if user.role == User.Role.SECTION_HEAD and str(user.pk) != str(pk):
            raise Forbidden("Section heads can only view their own assigned papers.")
        data = queries.get_assigned_papers_for_section_head(
            pk,
            status=request.query_params.get("status"),
            pagination=Pagination.from_params(request.query_params),
        )
        return Response(data)


class PaperViewSet(viewsets.GenericViewSet):
    queryset = Paper.objects.all()
    serializer_class = PaperSerializer
    permission_classes = (permissions.IsAuthenticated,)
    parser_classes = (JSONParser, MultiPartParser, FormParser)
    pagination_class = None

    def get_permissions(self):
        if self.action in {"public", "retrieve"}:
            return [permissions.AllowAny()]
        if self.action in {"create", "mine"}:
            return [IsAuthor()]
        if self.action in {"by_status", "by_author"}:
            return [IsChiefEditor()]
        return super().get_permissions()

    def get_serializer_class(self):
        if self.action == "create":
            return PaperSubmissionSerializer
        if self.action == "update_status":
            return StatusTransitionSerializer
        if self.action == "decision":
            return SectionHeadDecisionSerializer
        return super().get_serializer_class()

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        paper = workflow.submit_paper(request.user, serializer.validated_data)
        return Response(
            {"message": "Paper added successfully!",
                "paper": PaperSerializer(paper).data},
            status=status.HTTP_201_CREATED,
        )

    def retrieve(self, request, pk=None, *args, **kwargs):
        paper = queries.get_paper(pk, request.user)
        return Response(PaperSerializer(paper).data)

    @action(detail=True, methods=["post"], url_path="status", url_name="status")
    def update_status(self, request, pk=None):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = workflow.transition_paper_status(
            pk,
            request.user.pk,
            data["action"],
            comment=data.get("comment"),
            date=data.get("date"),
            section_head_ids=data.get("section_head_ids"),
        )
        return Response({
            "message": "Paper status updated successfully",
            "paper": PaperSerializer(result.paper).data,
            "assignments": ReviewAssignmentSerializer(result.assignments, many=True).data,
        })

    @action(detail=True, methods=["post"], url_path="decision")
    def decision(self, request, pk=None):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        assignment = workflow.record_section_head_decision(
            pk,
            request.user.pk,
            data["status"],
            comment=data.get("comment"),
            date=data.get("date"),
        )
        return Response({
            "message": "Review status updated successfully",
            "assignment": ReviewAssignmentSerializer(assignment).data,
        })

    @action(detail=False, methods=["get"], url_path="by-status")
    def by_status(self, request):
        params = request.query_params
        data = queries.get_papers_by_status(
            params.get("status"),
            paper_id=params.get("paperId"),
            pagination=Pagination.from_params(params),
        )
        return Response(data)

    @action(detail=False, methods=["get"], url_path="mine")
    def mine(self, request):
        params = request.query_params
        data = queries.get_papers_for_author(
            user_id=request.user.pk,
            manuscript_title=params.get("manuScriptTitle"),
            pagination=Pagination.from_params(params),
        )
        return Response(data)

    @action(detail=False, methods=["get"], url_path="by-author")
    def by_author(self, request):
        params = request.query_params
        data = queries.get_papers_for_author(
            user_id=params.get("userId"),
            title=params.get("title"),
            name=params.get("name"),
            manuscript_title=params.get("manuScriptTitle"),
            pagination=Pagination.from_params(params),
        )
        return Response(data)

    @action(detail=False, methods=["get"], url_path="public")
    def public(self, request):
        params = request.query_params
        data = queries.list_public_papers(
            params.get("type"),
            pagination=Pagination.from_params(params),
        )
        return Response(data)


class ReviewAssignmentViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    serializer_class = ReviewAssignmentSerializer
    permission_classes = (IsChiefEditor | IsSectionHead,)
    pagination_class = OffsetLimitPagination
    results_key = "assignments"

    def get_queryset(self):
        params = self.request.query_params
        section_head_id = params.get("sectionHeadId") or None
        if self.request.user.role == User.Role.SECTION_HEAD:
            section_head_id = self.request.user.pk
        return assignments.filter_assignments(
            paper_id=queries.parse_id(params.get("paperId"), "paperId"),
            section_head_id=queries.parse_id(section_head_id, "sectionHeadId"),
            status=params.get("status") or None,
        )
