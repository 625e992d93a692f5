import logging

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)


class BookingNotifier:
    """
    Best-effort booking emails.
    A failed send is logged and never fails the booking operation.
    """

    def __init__(self, from_email=None, admin_email=None):
        self.from_email = from_email or settings.DEFAULT_FROM_EMAIL
        self.admin_email = admin_email or settings.BOOKING_ADMIN_EMAIL

    def _send(self, subject, body, recipient, kind, booking):
        try:
            send_mail(
                subject,
                body,
                self.from_email,
                [recipient],
                fail_silently=False,
            )
        except Exception:
            logger.exception(
                "Failed to send %s email for booking %s", kind, booking.pk
            )
            return False

        logger.info("Sent %s email for booking %s", kind, booking.pk)
        return True

    # ---------------------------------
    # Confirmation
    # ---------------------------------

    def send_confirmation(self, booking, details):
        body = (
            f"Dear {booking.customer_name},\n\n"
            f"Your booking is confirmed.\n\n"
            f"Service: {details['service']}\n"
            f"Date: {details['date']}\n"
            f"Time: {details['time_slot']}\n"
            f"Amount paid: £{details['amount']}\n\n"
            f"Thank you for choosing us."
        )
        return self._send(
            "Booking Confirmation", body, booking.email, "confirmation", booking
        )

    def send_admin_notification(self, booking, details, payment):
        body = (
            f"New booking received.\n\n"
            f"Customer: {booking.customer_name} ({booking.email}, {booking.contact_number})\n"
            f"Address: {booking.first_line_of_address}, {booking.town}, {booking.postcode}\n"
            f"Service: {details['service']}\n"
            f"Date: {details['date']}\n"
            f"Time: {details['time_slot']}\n"
            f"Amount: £{details['amount']}\n"
            f"Payment method: {payment.get('method')}\n"
            f"Transaction: {payment.get('transaction_id') or '-'}"
        )
        return self._send(
            "New Booking Notification", body, self.admin_email, "admin notification", booking
        )

    # ---------------------------------
    # Refund
    # ---------------------------------

    def send_refund_notice(self, booking, refund):
        body = (
            f"Dear {booking.customer_name},\n\n"
            f"A refund of £{refund.amount} has been issued for your booking "
            f"on {booking.selected_date} ({booking.selected_time_slot}).\n"
            f"Refund reference: {refund.refund_id}"
        )
        return self._send(
            "Refund Processed", body, booking.email, "refund", booking
        )

    def send_admin_refund_notice(self, booking, refund):
        body = (
            f"Refund issued.\n\n"
            f"Booking: {booking.pk}\n"
            f"Customer: {booking.customer_name} ({booking.email})\n"
            f"Amount: £{refund.amount}\n"
            f"Reason: {booking.refund_reason or '-'}\n"
            f"Refund reference: {refund.refund_id}"
        )
        return self._send(
            "Refund Notification", body, self.admin_email, "admin refund", booking
        )
