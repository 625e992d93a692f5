from decimal import Decimal
from unittest import mock

import pytest

from Bookings.notifications import BookingNotifier
from payments import RefundResult
from tests.conftest import make_booking

pytestmark = pytest.mark.django_db


@pytest.fixture
def notifier():
    return BookingNotifier(from_email="bookings@example.com", admin_email="office@example.com")


def confirmation_details(booking):
    return {
        "service": booking.select_service,
        "date": booking.selected_date,
        "time_slot": booking.selected_time_slot,
        "amount": booking.total_price,
    }


def test_confirmation_goes_to_customer(notifier, mailoutbox):
    booking = make_booking()

    assert notifier.send_confirmation(booking, confirmation_details(booking))

    assert len(mailoutbox) == 1
    message = mailoutbox[0]
    assert message.to == ["jane@example.com"]
    assert message.from_email == "bookings@example.com"
    assert "9:00-9:45 AM" in message.body
    assert "£69" in message.body


def test_admin_notification_includes_transaction(notifier, mailoutbox):
    booking = make_booking(capture_id="tx_1")

    notifier.send_admin_notification(
        booking,
        confirmation_details(booking),
        {"method": "Mollie", "transaction_id": "tx_1"},
    )

    assert mailoutbox[0].to == ["office@example.com"]
    assert "Transaction: tx_1" in mailoutbox[0].body


def test_refund_notices(notifier, mailoutbox):
    booking = make_booking(refund_reason="Rained off")
    refund = RefundResult(refund_id="re_1", status="completed", amount=Decimal("20.00"))

    notifier.send_refund_notice(booking, refund)
    notifier.send_admin_refund_notice(booking, refund)

    assert [m.to for m in mailoutbox] == [["jane@example.com"], ["office@example.com"]]
    assert "Reason: Rained off" in mailoutbox[1].body


def test_send_failure_is_logged_not_raised(notifier, caplog):
    booking = make_booking()

    with mock.patch("Bookings.notifications.send_mail", side_effect=OSError("smtp down")):
        sent = notifier.send_confirmation(booking, confirmation_details(booking))

    assert sent is False
    assert "Failed to send confirmation email" in caplog.text
