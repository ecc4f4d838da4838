"""Celery tasks for rental agreements."""

from __future__ import annotations

import logging

from celery import shared_task

from .services import expire_sent_agreements as _expire_sent_agreements

logger = logging.getLogger(__name__)


@shared_task(name="agreements.expire_sent_agreements", ignore_result=True)
def expire_sent_agreements() -> int:
    """Mark sent agreements past their expiry as expired; scheduled by beat."""
    expired = _expire_sent_agreements()
    if expired:
        logger.info("agreements: expired %s unsigned agreements", expired)
    return expired
