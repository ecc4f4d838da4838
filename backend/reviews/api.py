from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import mixins, permissions, status, viewsets

from core.envelope import success_response
from core.pagination import EnvelopePagination

from .filters import ReviewFilter
from .models import Review
from .serializers import ReviewCreateSerializer, ReviewQuerySerializer, ReviewSerializer
from .services import create_review


class ReviewPagination(EnvelopePagination):
    page_size = 10


class ReviewViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    """Public review listings; participants of completed bookings may post."""

    serializer_class = ReviewSerializer
    pagination_class = ReviewPagination
    filter_backends = [DjangoFilterBackend]
    filterset_class = ReviewFilter
    permission_classes = [permissions.IsAuthenticatedOrReadOnly]

    def get_queryset(self):
        return Review.objects.select_related("reviewer", "reviewee", "booking", "booking__listing")

    def list(self, request, *args, **kwargs):
        query = ReviewQuerySerializer(data=request.query_params.dict())
        query.is_valid(raise_exception=True)
        params = query.validated_data

        qs = self.filter_queryset(self.get_queryset())
        prefix = "" if params["sortOrder"] == "asc" else "-"
        qs = qs.order_by(f"{prefix}{params['sortBy']}", f"{prefix}id")
        page = self.paginate_queryset(qs)
        return self.get_paginated_response(self.get_serializer(page, many=True).data)

    def retrieve(self, request, *args, **kwargs):
        return success_response(self.get_serializer(self.get_object()).data)

    def create(self, request, *args, **kwargs):
        serializer = ReviewCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        review = create_review(author=request.user, **serializer.validated_data)
        review = self.get_queryset().get(pk=review.pk)
        return success_response(
            self.get_serializer(review).data,
            "Review submitted successfully",
            status=status.HTTP_201_CREATED,
        )
