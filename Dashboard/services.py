from math import ceil

from Bookings.models import Booking


class AdminDashboardService:
    """
    All dashboard-related queries live here.
    Views should NOT touch the database directly.
    """

    @staticmethod
    def list_bookings(page=1, limit=10, search=""):
        bookings = Booking.objects.search(search).order_by("-created_at", "-id")

        total = bookings.count()
        offset = (page - 1) * limit

        return {
            "bookings": list(bookings[offset:offset + limit]),
            "total_bookings": total,
            "total_pages": ceil(total / limit) if total else 0,
            "current_page": page,
        }
