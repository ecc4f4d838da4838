from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .api import MessageViewSet

router = DefaultRouter()
router.include_root_view = False
router.register("", MessageViewSet, basename="message")

urlpatterns = [
    path("", include(router.urls)),
]
