"""Celery tasks for search analytics."""

from __future__ import annotations

import logging
from typing import Any, Optional

from celery import shared_task

from .models import SearchQueryLog

logger = logging.getLogger(__name__)


@shared_task(name="search.log_search_query", ignore_result=True)
def log_search_query(
    query: str,
    results_count: int,
    filters: Optional[dict[str, Any]] = None,
    user_id: Optional[int] = None,
) -> int:
    entry = SearchQueryLog.objects.create(
        query=(query or "")[:200],
        results_count=results_count,
        filters=filters or {},
        user_id=user_id,
    )
    logger.debug("search: logged query %r (%s results)", entry.query, results_count)
    return entry.pk
