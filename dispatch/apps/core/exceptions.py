"""
Error taxonomy shared by the dispatch engine.

Services raise these synchronously; the DRF handler below turns them into
``{"error": code, "detail": message}`` responses.
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class DispatchError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "dispatch_error"

    def __init__(self, message=None):
        super().__init__(message or self.code)
        self.message = message or self.code


class LocationUnavailable(DispatchError):
    """Customer position is missing or the provider reported a reason."""

    code = "location_unavailable"


class ValidationError(DispatchError):
    """Required order fields missing for the chosen order type."""

    code = "validation_error"

    def __init__(self, message=None, fields=None):
        super().__init__(message)
        self.fields = fields or {}


class IllegalTransition(DispatchError):
    """State guard violation. Rendered as "already handled" to clients."""

    status_code = status.HTTP_409_CONFLICT
    code = "already_handled"

    def __init__(self, order_id, current, target, message=None):
        self.order_id = str(order_id)
        self.current = current
        self.target = target
        super().__init__(
            message or f"Order {order_id} cannot move from {current} to {target}"
        )


class NotFound(DispatchError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class TransportDisconnected(DispatchError):
    """The change feed is unreachable."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "transport_disconnected"


def dispatch_exception_handler(exc, context):
    if isinstance(exc, DispatchError):
        logger.info("Request failed with %s: %s", exc.code, exc.message)
        body = {"error": exc.code, "detail": exc.message}
        if isinstance(exc, ValidationError) and exc.fields:
            body["fields"] = exc.fields
        if isinstance(exc, IllegalTransition):
            body["current_status"] = exc.current
        return Response(body, status=exc.status_code)
    return exception_handler(exc, context)
