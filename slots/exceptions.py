from rest_framework import status
from rest_framework.exceptions import APIException


class SlotUnavailable(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The selected time slot is not available."
    default_code = "slot_unavailable"


class SlotNotFound(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "No time slots found for the given date."
    default_code = "slot_not_found"


class SlotNotBlocked(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Slot is not blocked."
    default_code = "slot_not_blocked"


class Forbidden(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You cannot unblock a slot you didn't block."
    default_code = "forbidden"
