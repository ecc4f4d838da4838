from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .api import CategoryViewSet

router = DefaultRouter()
router.include_root_view = False
router.register("", CategoryViewSet, basename="category")

urlpatterns = [
    path("", include(router.urls)),
]
