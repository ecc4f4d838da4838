from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .api import RentalAgreementViewSet

router = DefaultRouter()
router.include_root_view = False
router.register("", RentalAgreementViewSet, basename="agreement")

urlpatterns = [
    path("", include(router.urls)),
]
