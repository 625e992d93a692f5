from rest_framework.permissions import BasePermission


class IsBookingAdmin(BasePermission):
    """
    Grants access to users allowed to manage the calendar and bookings.
    """
    message = "Only admins can perform this action."

    def has_permission(self, request, view):
        user = request.user
        return bool(
            user
            and user.is_authenticated
            and getattr(user, "is_booking_admin", False)
        )
