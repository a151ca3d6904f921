"""DRF exception handler that renders ride service errors as JSON."""

import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler

from services.ride_management.exceptions import RideServiceError

logger = logging.getLogger(__name__)


def ride_exception_handler(exc, context):
    if isinstance(exc, RideServiceError):
        logger.info("%s: %s", exc.error_code, exc.message)
        body = {
            "success": False,
            "error": exc.error_code,
            "message": exc.message,
        }
        if exc.errors:
            body["errors"] = exc.errors
        return Response(body, status=exc.status_code)

    return exception_handler(exc, context)
