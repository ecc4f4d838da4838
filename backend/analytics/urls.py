from django.urls import path

from .api import MarketAnalyticsView, PersonalAnalyticsView

urlpatterns = [
    path("", MarketAnalyticsView.as_view(), name="analytics_market"),
    path("personal/", PersonalAnalyticsView.as_view(), name="analytics_personal"),
]
