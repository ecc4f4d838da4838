from django.conf import settings
from django.contrib import admin
from django.urls import include, path

from core.health import HealthView

urlpatterns = [
    path("api/health/", HealthView.as_view(), name="health"),
    path("api/users/", include("users.urls")),
    path("api/listings/", include("listings.urls")),
    path("api/categories/", include("listings.category_urls")),
    path("api/bookings/", include(("bookings.urls", "bookings"), namespace="bookings")),
    path("api/search/", include("search.urls")),
    path("api/reviews/", include("reviews.urls")),
    path("api/agreements/", include("agreements.urls")),
    path("api/messages/", include("messaging.urls")),
    path("api/analytics/", include("analytics.urls")),
    path("api/ai/", include("assistant.urls")),
]

if settings.ENABLE_DJANGO_ADMIN:
    urlpatterns.insert(0, path("admin/", admin.site.urls))
