from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import (
    EmailTokenObtainPairView,
    PaperViewSet,
    ProfileView,
    RegistrationView,
    ReviewAssignmentViewSet,
    SectionHeadViewSet,
    UserTokenRefreshView,
    UserTokenVerifyView,
)

router = DefaultRouter()
router.register(r"papers", PaperViewSet, basename="paper")
router.register(r"section-heads", SectionHeadViewSet,
                basename="section-head")
router.register(r"assignments", ReviewAssignmentViewSet,
                basename="assignment")

urlpatterns = [
    path("auth/register/", RegistrationView.as_view(), name="auth-register"),
    path("auth/token/", EmailTokenObtainPairView.as_view(), name="auth-token"),
    path("auth/token/refresh/", UserTokenRefreshView.as_view(),
         name="auth-token-refresh"),
    path("auth/token/verify/", UserTokenVerifyView.as_view(),
         name="auth-token-verify"),
    path("me/", ProfileView.as_view(), name="user-profile"),
    path("", include(router.urls)),
]
