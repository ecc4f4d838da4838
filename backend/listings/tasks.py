"""Celery tasks for listings."""

from __future__ import annotations

import logging

from celery import shared_task

from .services import record_listing_view

logger = logging.getLogger(__name__)


@shared_task(name="listings.track_listing_view", ignore_result=True)
def track_listing_view(listing_id: int) -> bool:
    """
    Count one view of a listing (lifetime counter plus the daily analytics row).

    Queued fire-and-forget from the detail endpoint; never retried.
    """
    recorded = record_listing_view(listing_id)
    if not recorded:
        logger.info("listings: view for missing listing %s dropped", listing_id)
    return recorded
