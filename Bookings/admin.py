# Bookings/admin.py

from django.contrib import admin
from .models import Booking


# -------------------------------
# BOOKING ADMIN
# -------------------------------
# Read-mostly view; state changes go through the admin API so the
# slot calendar stays in step with the booking
@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "customer_name",
        "selected_date",
        "selected_time_slot",
        "postcode_group",
        "total_price",
        "payment_method",
        "payment_status",
        "refund_status",
    )

    list_filter = (
        "payment_status",
        "payment_method",
        "refund_status",
        "selected_date",
    )

    search_fields = (
        "customer_name",
        "email",
        "postcode",
        "paypal_order_id",
        "mollie_payment_id",
    )

    ordering = ("-created_at",)

    readonly_fields = (
        "total_price",
        "postcode_group",
        "selected_date",
        "selected_time_slot",
        "payment_status",
        "paypal_order_id",
        "mollie_payment_id",
        "capture_id",
        "refund_id",
        "refund_status",
        "refund_amount",
        "refund_date",
        "created_at",
        "updated_at",
    )

    # Deleting here would bypass the slot release
    def has_delete_permission(self, request, obj=None):
        return False
