import logging

from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class BookingConflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Bookings are already made for this date from another postcode area."
    default_code = "booking_conflict"


class UnserviceableArea(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "We do not currently service this postcode area."
    default_code = "unserviceable_area"


class InvalidSelection(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid service selection. Please check your options."
    default_code = "invalid_selection"


class InvalidState(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The booking cannot be changed in its current state."
    default_code = "invalid_state"


class InternalError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Something went wrong. Please try again later."
    default_code = "internal_error"


def _first_message(detail):
    if isinstance(detail, dict):
        for value in detail.values():
            return _first_message(value)
    if isinstance(detail, list) and detail:
        return _first_message(detail[0])
    return str(detail)


def api_exception_handler(exc, context):
    """
    Renders every error as {"success": false, "message": ...}.
    Anything DRF does not know about becomes a generic 500.
    """
    response = exception_handler(exc, context)

    if response is None:
        view = context.get("view")
        logger.exception(
            "Unhandled error in %s", view.__class__.__name__ if view else "view",
            exc_info=exc,
        )
        return Response(
            {"success": False, "message": InternalError.default_detail},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, ValidationError):
        body = {
            "success": False,
            "message": f"Validation failed: {_first_message(response.data)}",
            "errors": response.data,
        }
    else:
        detail = getattr(exc, "detail", response.data)
        body = {"success": False, "message": _first_message(detail)}

    response.data = body
    return response
