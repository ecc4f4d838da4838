from django.urls import path

from .api import SearchSuggestionsView, SearchView

urlpatterns = [
    path("", SearchView.as_view(), name="search"),
    path("suggestions/", SearchSuggestionsView.as_view(), name="search_suggestions"),
]
