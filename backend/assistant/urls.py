from django.urls import path

from .api import GenerateContentView, PriceSuggestionView

urlpatterns = [
    path("generate-content/", GenerateContentView.as_view(), name="ai_generate_content"),
    path("price-suggestions/", PriceSuggestionView.as_view(), name="ai_price_suggestions"),
]
