from __future__ import annotations

import logging
import time
from typing import Any, Dict

from django.conf import settings
from django.db import connection
from django.utils import timezone
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .envelope import success_payload

logger = logging.getLogger(__name__)


def _error_payload(exc: Exception) -> str:
    message = str(exc) or exc.__class__.__name__
    return f"{exc.__class__.__name__}: {message}"


def check_database() -> Dict[str, Any]:
    started = time.monotonic()
    payload: Dict[str, Any] = {"ok": False}
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        payload["ok"] = True
    except Exception as exc:
        logger.warning("health: database check failed", exc_info=True)
        payload["error"] = _error_payload(exc)
    payload["latency_ms"] = round((time.monotonic() - started) * 1000, 2)
    return payload


class HealthView(APIView):
    """Public liveness report with a database round-trip."""

    permission_classes = [permissions.AllowAny]
    authentication_classes = []
    http_method_names = ["get"]

    def get(self, request):
        checks = {"database": check_database()}
        healthy = all(check["ok"] for check in checks.values())
        data = {
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": timezone.now().isoformat(),
            "version": settings.APP_VERSION,
            "checks": checks,
        }
        payload = success_payload(data)
        payload["success"] = healthy
        return Response(
            payload,
            status=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        )
