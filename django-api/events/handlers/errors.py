"""Map domain errors to HTTP responses without leaking internals."""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from events.domain.errors import DomainError, ErrorCode, ScheduleConflictError, StoreUnavailableError

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    ErrorCode.EVENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.SESSION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INVALID_EVENT_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_EVENT_HIERARCHY: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_SESSION: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_DATE_RANGE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_RECURRENCE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NO_SESSIONS_GENERATED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_CURSOR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.DUPLICATE_ENROLLMENT: status.HTTP_409_CONFLICT,
    ErrorCode.SCHEDULE_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.SESSION_FULL: status.HTTP_409_CONFLICT,
    ErrorCode.STORE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def error_body(error: DomainError) -> dict:
    body = {"code": error.code.value, "message": error.message}
    if isinstance(error, ScheduleConflictError):
        body["details"] = {"event_name": error.event_name, "time_range": error.time_range}
    return body


def exception_handler(exc, context):
    """DRF exception handler that understands DomainError."""
    if isinstance(exc, DomainError):
        if isinstance(exc, StoreUnavailableError):
            logger.exception("[http] store failure view=%s", context.get("view").__class__.__name__)
            body = {"code": exc.code.value, "message": "Service temporarily unavailable"}
            return Response(body, status=status.HTTP_503_SERVICE_UNAVAILABLE)
        return Response(error_body(exc), status=STATUS_BY_CODE.get(exc.code, status.HTTP_400_BAD_REQUEST))
    return drf_exception_handler(exc, context)
