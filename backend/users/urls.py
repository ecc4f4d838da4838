from django.urls import path

from .api import MeView, PublicProfileView, SignupView, TokenObtainView, TokenRefreshEnvelopeView

app_name = "users"

urlpatterns = [
    path("signup/", SignupView.as_view(), name="signup"),
    path("token/", TokenObtainView.as_view(), name="token_obtain_pair"),
    path("token/refresh/", TokenRefreshEnvelopeView.as_view(), name="token_refresh"),
    path("me/", MeView.as_view(), name="me"),
    path("<int:pk>/", PublicProfileView.as_view(), name="public_profile"),
]
