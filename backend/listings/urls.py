from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .api import ListingViewSet

router = DefaultRouter()
router.include_root_view = False
router.register("", ListingViewSet, basename="listing")

urlpatterns = [
    path("", include(router.urls)),
]
