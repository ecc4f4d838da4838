"""Listing search and autocomplete endpoints."""

from __future__ import annotations

import logging

from rest_framework import generics, permissions

from core.envelope import success_response
from core.pagination import EnvelopePagination
from listings.services import parse_tags

from . import tasks as search_tasks
from .geo import Point
from .serializers import SearchQuerySerializer, SearchResultSerializer, SuggestionQuerySerializer
from .services import SearchParams, search_listings, search_suggestions

logger = logging.getLogger(__name__)


class SearchPagination(EnvelopePagination):
    page_size = 20
    max_page_size = 50


class SearchView(generics.GenericAPIView):
    """Public listing search with text, facet and radius filters."""

    permission_classes = [permissions.AllowAny]
    serializer_class = SearchResultSerializer
    pagination_class = SearchPagination

    def get(self, request, *args, **kwargs):
        query = SearchQuerySerializer(data=request.query_params.dict())
        query.is_valid(raise_exception=True)
        data = query.validated_data

        center = None
        if data.get("latitude") is not None:
            center = Point(data["latitude"], data["longitude"])
        params = SearchParams(
            query=data.get("query", ""),
            category=data.get("category"),
            location=data.get("location"),
            center=center,
            radius_km=data["radius"],
            min_price=data.get("minPrice"),
            max_price=data.get("maxPrice"),
            condition=data.get("condition"),
            tags=parse_tags(data.get("tags")),
            available_from=data.get("available_from"),
            available_to=data.get("available_to"),
            sort_by=data["sortBy"],
            sort_order=data.get("sortOrder"),
        )
        results = search_listings(params)

        page = self.paginate_queryset(results)
        payload = self.get_serializer(page, many=True).data

        if params.query.strip():
            user_id = request.user.id if request.user.is_authenticated else None
            try:
                search_tasks.log_search_query.delay(
                    params.query.strip(),
                    len(results),
                    params.log_filters(),
                    user_id,
                )
            except Exception:
                logger.info("search: could not queue log_search_query", exc_info=True)

        return self.get_paginated_response(payload)


class SearchSuggestionsView(generics.GenericAPIView):
    permission_classes = [permissions.AllowAny]
    serializer_class = SuggestionQuerySerializer

    def get(self, request, *args, **kwargs):
        query = self.get_serializer(data=request.query_params.dict())
        query.is_valid(raise_exception=True)
        data = query.validated_data

        term = (data.get("query") or "").strip()
        if len(term) < 2:
            return success_response([], "Query too short for suggestions")

        suggestions = search_suggestions(term, kind=data["type"], limit=data["limit"])
        return success_response(suggestions, f"Found {len(suggestions)} suggestions")
