"""Celery tasks for assistant usage analytics."""

from __future__ import annotations

import logging
from typing import Any, Optional

from celery import shared_task

from .models import AIUsageLog

logger = logging.getLogger(__name__)


@shared_task(name="assistant.log_ai_usage", ignore_result=True)
def log_ai_usage(
    user_id: Optional[int],
    action: str,
    *,
    content_type: str = "",
    success: bool = True,
    error_message: str = "",
    metadata: Optional[dict[str, Any]] = None,
) -> int:
    entry = AIUsageLog.objects.create(
        user_id=user_id,
        action=action,
        content_type=content_type,
        success=success,
        error_message=error_message[:2000],
        metadata=metadata or {},
    )
    return entry.pk


def queue_usage_log(user_id: Optional[int], action: str, **kwargs: Any) -> None:
    """Queue a usage row; failures to enqueue are logged and dropped."""
    try:
        log_ai_usage.delay(user_id, action, **kwargs)
    except Exception:
        logger.info("assistant: could not queue log_ai_usage for %s", action, exc_info=True)
