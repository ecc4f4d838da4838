"""Page/limit pagination that renders the response envelope."""

from __future__ import annotations

from rest_framework.pagination import PageNumberPagination

from .envelope import pagination_meta, success_response


class EnvelopePagination(PageNumberPagination):
    """Page/limit pagination rendered inside the success envelope."""

    page_size = 20
    page_query_param = "page"
    page_size_query_param = "limit"
    max_page_size = 100
    message = None

    def get_paginated_response(self, data):
        return success_response(
            data,
            self.message,
            pagination=pagination_meta(
                page=self.page.number,
                limit=self.page.paginator.per_page,
                total=self.page.paginator.count,
            ),
        )
