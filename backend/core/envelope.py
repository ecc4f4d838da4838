"""Response envelope helpers shared by every API view."""

from __future__ import annotations

from typing import Any

from rest_framework import status as http_status
from rest_framework.response import Response


def success_payload(data: Any, message: str | None = None, **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {"success": True, "data": data}
    if message:
        payload["message"] = message
    payload.update(extra)
    return payload


def success_response(
    data: Any,
    message: str | None = None,
    *,
    status: int = http_status.HTTP_200_OK,
    **extra: Any,
) -> Response:
    """Wrap ``data`` as {"success": true, "data": ..., "message"?: ...}."""
    return Response(success_payload(data, message, **extra), status=status)


def error_response(
    code: str,
    message: str,
    *,
    status: int = http_status.HTTP_400_BAD_REQUEST,
    details: Any = None,
) -> Response:
    payload: dict[str, Any] = {"success": False, "error": code, "message": message}
    if details is not None:
        payload["details"] = details
    return Response(payload, status=status)


def pagination_meta(*, page: int, limit: int, total: int) -> dict[str, Any]:
    total_pages = (total + limit - 1) // limit if limit else 0
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": total_pages,
        "hasNextPage": page < total_pages,
        "hasPreviousPage": page > 1,
    }
