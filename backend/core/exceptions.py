"""API error types and the DRF exception handler that renders them."""

from __future__ import annotations

import logging
from typing import Any

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.views import exception_handler as drf_exception_handler

from .envelope import error_response

logger = logging.getLogger(__name__)


class ErrorCode:
    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    AUTHORIZATION_ERROR = "AUTHORIZATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    RATE_LIMIT = "RATE_LIMIT"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    BAD_REQUEST = "BAD_REQUEST"


STATUS_CODES = {
    status.HTTP_400_BAD_REQUEST: ErrorCode.BAD_REQUEST,
    status.HTTP_401_UNAUTHORIZED: ErrorCode.AUTHENTICATION_ERROR,
    status.HTTP_403_FORBIDDEN: ErrorCode.AUTHORIZATION_ERROR,
    status.HTTP_404_NOT_FOUND: ErrorCode.NOT_FOUND,
    status.HTTP_409_CONFLICT: ErrorCode.CONFLICT,
    status.HTTP_429_TOO_MANY_REQUESTS: ErrorCode.RATE_LIMIT,
}


class ApiError(exceptions.APIException):
    """Base class for business-rule failures that carry an error code."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = ErrorCode.BAD_REQUEST
    default_detail = "Bad request"

    def __init__(self, message: str | None = None, *, details: Any = None):
        super().__init__(detail=message or self.default_detail)
        self.message = str(self.detail)
        self.details = details


class BusinessRuleError(ApiError):
    pass


class AuthorizationError(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = ErrorCode.AUTHORIZATION_ERROR
    default_detail = "Access denied"


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = ErrorCode.NOT_FOUND
    default_detail = "Resource not found"


class ConflictError(ApiError):
    status_code = status.HTTP_409_CONFLICT
    error_code = ErrorCode.CONFLICT
    default_detail = "Resource conflict"


def _flatten_errors(data: Any, prefix: str = "") -> list[dict[str, str]]:
    """Turn DRF's nested error structure into a list of {field, message, code}."""
    items: list[dict[str, str]] = []
    if isinstance(data, dict):
        for key, value in data.items():
            field = f"{prefix}.{key}" if prefix else str(key)
            items.extend(_flatten_errors(value, field))
    elif isinstance(data, (list, tuple)):
        for index, value in enumerate(data):
            if isinstance(value, (dict, list, tuple)):
                items.extend(_flatten_errors(value, f"{prefix}.{index}" if prefix else str(index)))
            else:
                items.extend(_flatten_errors(value, prefix))
    else:
        items.append(
            {
                "field": prefix or "non_field_errors",
                "message": str(data),
                "code": getattr(data, "code", None) or "invalid",
            }
        )
    return items


def _django_validation_detail(exc: DjangoValidationError) -> Any:
    if hasattr(exc, "error_dict"):
        return exc.message_dict
    return {"non_field_errors": exc.messages}


def api_exception_handler(exc, context):
    """
    Render every API failure as {"success": false, "error", "message", "details"}.

    Unknown exceptions become a logged 500 with a generic message.
    """
    if isinstance(exc, DjangoValidationError):
        exc = exceptions.ValidationError(detail=_django_validation_detail(exc))

    if isinstance(exc, ApiError):
        return error_response(
            exc.error_code,
            exc.message,
            status=exc.status_code,
            details=exc.details,
        )

    response = drf_exception_handler(exc, context)
    if response is None:
        view = context.get("view") if context else None
        logger.exception(
            "api: unhandled error in %s",
            view.__class__.__name__ if view is not None else "unknown view",
        )
        return error_response(
            ErrorCode.INTERNAL_ERROR,
            "An unexpected error occurred",
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, exceptions.ValidationError):
        return error_response(
            ErrorCode.VALIDATION_ERROR,
            "Invalid request data",
            status=response.status_code,
            details=_flatten_errors(response.data),
        )

    if isinstance(exc, (Http404, DjangoPermissionDenied)):
        message = "Resource not found" if isinstance(exc, Http404) else "Access denied"
    else:
        message = str(response.data.get("detail", "")) if isinstance(response.data, dict) else ""

    code = STATUS_CODES.get(response.status_code, ErrorCode.BAD_REQUEST)
    if response.status_code >= 500:
        code = ErrorCode.INTERNAL_ERROR
    error = error_response(
        code,
        message or code.replace("_", " ").capitalize(),
        status=response.status_code,
    )
    for header in ("WWW-Authenticate", "Retry-After", "Allow"):
        if header in response:
            error[header] = response[header]
    return error
