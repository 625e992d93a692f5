"""Booking lifecycle: reservation, payment outcomes, cancellation, refunds, admin edits."""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from rest_framework.exceptions import NotFound, ValidationError

from Bookings.exceptions import BookingConflict, InvalidSelection, InvalidState, UnserviceableArea
from Bookings.models import Booking
from payments import CASH, MOLLIE, PAYPAL, GatewayError, ProviderStatus
from slots.exceptions import SlotNotFound, SlotUnavailable
from slots.models import DayCalendar, Slot
from slots.services import SlotCalendarService
from tests.conftest import (
    NOW,
    SATURDAY,
    SUNDAY,
    TODAY,
    TUESDAY,
    WEDNESDAY,
    booking_data,
    make_booking,
)

pytestmark = pytest.mark.django_db


def slot_holder(day_date, label):
    slot = SlotCalendarService.find_slot(day_date, label)
    return slot.booked_by_id if slot else None


def paid_booking(service, gateways, **overrides):
    booking = service.request_booking(booking_data(**overrides)).booking
    gateway = gateways[booking.payment_method]
    gateway.statuses[booking.provider_payment_id] = ProviderStatus.PAID
    service.apply_provider_status(booking.payment_method, booking.provider_payment_id)
    booking.refresh_from_db()
    return booking


class TestEndToEnd:

    def test_mollie_booking_paid_by_webhook(
        self, service, gateways, notifier, django_capture_on_commit_callbacks
    ):
        result = service.request_booking(booking_data())
        booking = result.booking

        assert booking.total_price == Decimal("69")
        assert booking.postcode_group == "Crawley"
        assert booking.payment_status == Booking.PENDING
        assert booking.is_locked
        assert booking.lock_expires_at == NOW + timedelta(minutes=30)
        assert booking.mollie_payment_id == "mollie_1"
        assert result.redirect_url == "https://pay.example.com/mollie_1"
        assert gateways[MOLLIE].intents == [("mollie_1", Decimal("69"), booking.pk)]
        assert slot_holder(TUESDAY, "9:00-9:45 AM") == booking.pk

        gateways[MOLLIE].statuses["mollie_1"] = ProviderStatus.PAID
        with django_capture_on_commit_callbacks(execute=True):
            service.apply_provider_status(MOLLIE, "mollie_1")

        booking.refresh_from_db()
        assert booking.payment_status == Booking.COMPLETED
        assert booking.is_booked
        assert not booking.is_locked
        assert booking.lock_expires_at is None
        assert booking.capture_id == "tx_mollie_1"
        assert slot_holder(TUESDAY, "9:00-9:45 AM") == booking.pk
        assert notifier.sent == [("confirmation", booking.pk), ("admin", booking.pk)]

        # duplicate delivery
        with django_capture_on_commit_callbacks(execute=True):
            service.apply_provider_status(MOLLIE, "mollie_1")

        booking.refresh_from_db()
        assert booking.payment_status == Booking.COMPLETED
        assert len(notifier.sent) == 2


class TestReservationGuards:

    def test_same_slot_cannot_be_booked_twice(self, service):
        service.request_booking(booking_data())

        with pytest.raises(SlotUnavailable):
            service.request_booking(booking_data(email="second@example.com"))

        assert Booking.objects.count() == 1

    def test_losing_a_reservation_race_leaves_no_booking(self, service, monkeypatch):
        winner = make_booking(selected_date=WEDNESDAY)
        SlotCalendarService.set_booked_by(TUESDAY, "9:00-9:45 AM", winner)
        # the loser read the slot before the winner wrote it
        monkeypatch.setattr(SlotCalendarService, "find_slot", staticmethod(lambda d, label: None))

        with pytest.raises(SlotUnavailable):
            service.request_booking(booking_data())

        assert not Booking.objects.filter(selected_date=TUESDAY).exists()
        assert Slot.objects.get(day__date=TUESDAY).booked_by_id == winner.pk

    def test_blocked_slot_rejected(self, service, admin_user):
        SlotCalendarService.block(TUESDAY, "9:00-9:45 AM", admin_user)

        with pytest.raises(SlotUnavailable):
            service.request_booking(booking_data())

    def test_other_group_rejected_on_same_day(self, service):
        service.request_booking(booking_data())

        with pytest.raises(BookingConflict):
            service.request_booking(booking_data(
                postcode="RH12 3CC", selected_time_slot="9:45-10:30 AM"
            ))

        same_group = service.request_booking(booking_data(
            postcode="RH11 2BB", selected_time_slot="9:45-10:30 AM"
        ))
        assert same_group.booking.postcode_group == "Crawley"

    def test_other_group_allowed_on_another_day(self, service):
        service.request_booking(booking_data())
        other = service.request_booking(booking_data(postcode="RH12 3CC", selected_date=WEDNESDAY))
        assert other.booking.postcode_group == "Horsham"

    @pytest.mark.parametrize("day", [TODAY, SATURDAY, SUNDAY, date(2026, 3, 6)])
    def test_today_weekends_and_past_rejected(self, service, day):
        with pytest.raises(ValidationError):
            service.request_booking(booking_data(selected_date=day))

        assert not DayCalendar.objects.exists()
        assert not Booking.objects.exists()

    def test_unserviced_postcode(self, service):
        with pytest.raises(UnserviceableArea):
            service.request_booking(booking_data(postcode="GU1 1AA"))

    def test_zero_price_rejected_before_touching_slots(self, service, gateways):
        with pytest.raises(InvalidSelection):
            service.request_booking(booking_data(
                select_home_style="Town House/3 Stories",
                number_of_bedrooms="2 Bedroom",
            ))

        assert not Slot.objects.exists()
        assert not Booking.objects.exists()
        assert gateways[MOLLIE].intents == []

    def test_failed_intent_releases_slot(self, service, gateways):
        gateways[MOLLIE].fail_intent = True

        with pytest.raises(GatewayError):
            service.request_booking(booking_data())

        assert not Booking.objects.exists()
        assert slot_holder(TUESDAY, "9:00-9:45 AM") is None

        gateways[MOLLIE].fail_intent = False
        assert service.request_booking(booking_data()).booking.pk

    def test_check_availability_reserves_nothing(self, service):
        quote = service.check_availability(booking_data())

        assert quote["postcode_group"] == "Crawley"
        assert quote["total_price"] == Decimal("69")
        assert quote["gross"] == Decimal("82.80")
        assert not Booking.objects.exists()
        assert not Slot.objects.exists()


class TestCash:

    def test_cash_booking_waits_for_settlement(self, service, gateways):
        result = service.request_booking(booking_data(payment_method=CASH))

        assert result.redirect_url is None
        assert result.booking.payment_status == Booking.PENDING
        assert result.booking.is_locked
        assert gateways[MOLLIE].intents == []
        assert gateways[PAYPAL].intents == []

        booking = service.settle_cash(result.booking)

        assert booking.payment_status == Booking.COMPLETED
        assert booking.is_booked

    def test_only_cash_can_be_settled(self, service):
        booking = service.request_booking(booking_data()).booking
        with pytest.raises(InvalidState):
            service.settle_cash(booking)


class TestProviderStatus:

    def test_expired_payment_releases_slot(self, service, gateways):
        booking = service.request_booking(booking_data()).booking
        gateways[MOLLIE].statuses["mollie_1"] = ProviderStatus.EXPIRED

        outcome = service.apply_provider_status(MOLLIE, "mollie_1")

        assert outcome.discarded
        assert not Booking.objects.filter(pk=booking.pk).exists()
        assert slot_holder(TUESDAY, "9:00-9:45 AM") is None
        assert service.request_booking(booking_data(email="next@example.com")).booking.pk

    def test_expiry_with_missing_slot_fails_loudly(self, service, gateways):
        booking = service.request_booking(booking_data()).booking
        Slot.objects.filter(day__date=TUESDAY, time="9:00-9:45 AM").delete()
        gateways[MOLLIE].statuses["mollie_1"] = ProviderStatus.EXPIRED

        with pytest.raises(SlotNotFound):
            service.apply_provider_status(MOLLIE, "mollie_1")

        booking.refresh_from_db()
        assert booking.payment_status == Booking.PENDING

    @pytest.mark.parametrize("status", [ProviderStatus.CANCELLED, ProviderStatus.FAILED])
    def test_cancelled_or_failed_payment_releases_slot(self, service, gateways, status):
        booking = service.request_booking(booking_data()).booking
        gateways[MOLLIE].statuses["mollie_1"] = status

        service.apply_provider_status(MOLLIE, "mollie_1")

        assert not Booking.objects.filter(pk=booking.pk).exists()
        assert slot_holder(TUESDAY, "9:00-9:45 AM") is None

    def test_pending_payment_changes_nothing(self, service):
        booking = service.request_booking(booking_data()).booking

        outcome = service.apply_provider_status(MOLLIE, "mollie_1")

        assert outcome.state.status == ProviderStatus.PENDING
        booking.refresh_from_db()
        assert booking.payment_status == Booking.PENDING

    def test_late_expiry_does_not_touch_completed_booking(self, service, gateways):
        booking = paid_booking(service, gateways)
        gateways[MOLLIE].statuses["mollie_1"] = ProviderStatus.EXPIRED

        service.apply_provider_status(MOLLIE, "mollie_1")

        booking.refresh_from_db()
        assert booking.payment_status == Booking.COMPLETED
        assert slot_holder(TUESDAY, "9:00-9:45 AM") == booking.pk

    def test_unknown_payment_is_ignored(self, service, gateways):
        assert service.apply_provider_status(MOLLIE, "tr_unknown") is None


class TestPayPalCapture:

    def test_capture_completes_booking_once(self, service, gateways, notifier, django_capture_on_commit_callbacks):
        booking = service.request_booking(booking_data(payment_method=PAYPAL)).booking
        assert booking.paypal_order_id == "paypal_1"
        gateways[PAYPAL].statuses["paypal_1"] = ProviderStatus.PAID

        with django_capture_on_commit_callbacks(execute=True):
            captured = service.capture(PAYPAL, "paypal_1")
            again = service.capture(PAYPAL, "paypal_1")

        assert captured.payment_status == Booking.COMPLETED
        assert captured.capture_id == "tx_paypal_1"
        assert again.payment_status == Booking.COMPLETED
        assert len(notifier.sent) == 2

    def test_failed_capture_discards_booking(self, service, gateways):
        booking = service.request_booking(booking_data(payment_method=PAYPAL)).booking
        gateways[PAYPAL].statuses["paypal_1"] = ProviderStatus.FAILED

        with pytest.raises(GatewayError):
            service.capture(PAYPAL, "paypal_1")

        assert not Booking.objects.filter(pk=booking.pk).exists()
        assert slot_holder(TUESDAY, "9:00-9:45 AM") is None

    def test_unapproved_order_stays_pending(self, service):
        booking = service.request_booking(booking_data(payment_method=PAYPAL)).booking

        with pytest.raises(InvalidState):
            service.capture(PAYPAL, "paypal_1")

        booking.refresh_from_db()
        assert booking.payment_status == Booking.PENDING

    def test_capture_unknown_order(self, service):
        with pytest.raises(NotFound):
            service.capture(PAYPAL, "nope")


class TestCancel:

    def test_cancel_pending_booking(self, service):
        booking = service.request_booking(booking_data()).booking

        service.cancel(MOLLIE, "mollie_1")

        assert not Booking.objects.filter(pk=booking.pk).exists()
        assert slot_holder(TUESDAY, "9:00-9:45 AM") is None

    def test_completed_booking_cannot_be_cancelled(self, service, gateways):
        booking = paid_booking(service, gateways)

        with pytest.raises(InvalidState):
            service.cancel(MOLLIE, booking.mollie_payment_id)

        assert slot_holder(TUESDAY, "9:00-9:45 AM") == booking.pk


class TestRefund:

    def test_refund_keeps_slot(self, service, gateways, notifier):
        booking = paid_booking(service, gateways)

        booking, result = service.refund(booking, Decimal("69"), "Rained off")

        assert booking.refund_status == Booking.REFUND_COMPLETED
        assert booking.refund_id == result.refund_id
        assert booking.refund_amount == Decimal("69")
        assert booking.refund_reason == "Rained off"
        assert booking.refund_date == NOW
        assert not booking.is_booked
        assert gateways[MOLLIE].refunds == [("tx_mollie_1", Decimal("69"), "Rained off")]
        assert slot_holder(TUESDAY, "9:00-9:45 AM") == booking.pk
        assert ("refund", booking.pk) in notifier.sent
        assert ("admin_refund", booking.pk) in notifier.sent

    def test_pending_booking_cannot_be_refunded(self, service):
        booking = service.request_booking(booking_data()).booking
        with pytest.raises(InvalidState):
            service.refund(booking, Decimal("10"), "Too early")

    def test_refund_above_total_rejected(self, service, gateways):
        booking = paid_booking(service, gateways)
        with pytest.raises(ValidationError):
            service.refund(booking, Decimal("70"), "Too much")

    def test_gateway_failure_marks_refund_failed(self, service, gateways):
        booking = paid_booking(service, gateways)
        gateways[MOLLIE].fail_refund = True

        with pytest.raises(GatewayError):
            service.refund(booking, Decimal("10"), "Partial")

        booking.refresh_from_db()
        assert booking.refund_status == Booking.REFUND_FAILED
        assert booking.is_booked

    def test_second_refund_rejected(self, service, gateways):
        booking = paid_booking(service, gateways)
        service.refund(booking, Decimal("10"), "Partial")

        with pytest.raises(InvalidState):
            service.refund(booking, Decimal("10"), "Again")


class TestAdminBookings:

    def test_admin_booking_is_completed_immediately(self, service, gateways):
        booking = service.create_admin_booking(booking_data(payment_method=CASH))

        assert booking.payment_status == Booking.COMPLETED
        assert booking.is_booked
        assert not booking.is_locked
        assert booking.booked_by == Booking.BY_ADMIN
        assert slot_holder(TUESDAY, "9:00-9:45 AM") == booking.pk

    def test_admin_booking_respects_group_rule(self, service):
        service.request_booking(booking_data())
        with pytest.raises(BookingConflict):
            service.create_admin_booking(booking_data(
                postcode="RH13 4DD", selected_time_slot="1:30-2:15 PM"
            ))

    def test_move_booking_swaps_slots(self, service, gateways):
        booking = paid_booking(service, gateways)

        moved = service.update_booking(booking, {
            "selected_date": WEDNESDAY,
            "selected_time_slot": "9:45-10:30 AM",
        })

        assert moved.selected_date == WEDNESDAY
        assert moved.total_price == Decimal("69")
        assert slot_holder(TUESDAY, "9:00-9:45 AM") is None
        assert slot_holder(WEDNESDAY, "9:45-10:30 AM") == booking.pk

    def test_contact_edit_keeps_slot(self, service, gateways):
        booking = paid_booking(service, gateways)

        updated = service.update_booking(booking, {"customer_name": "Janet Doe"})

        assert updated.customer_name == "Janet Doe"
        assert slot_holder(TUESDAY, "9:00-9:45 AM") == booking.pk

    def test_move_into_other_group_day_rejected(self, service, gateways):
        booking = paid_booking(service, gateways)
        service.request_booking(booking_data(postcode="RH12 3CC", selected_date=WEDNESDAY))

        with pytest.raises(BookingConflict):
            service.update_booking(booking, {"selected_date": WEDNESDAY})

        assert slot_holder(TUESDAY, "9:00-9:45 AM") == booking.pk

    def test_move_to_weekend_rejected(self, service, gateways):
        booking = paid_booking(service, gateways)
        with pytest.raises(ValidationError):
            service.update_booking(booking, {"selected_date": SATURDAY})

    def test_delete_releases_slot(self, service, gateways):
        booking = paid_booking(service, gateways)

        service.delete_booking(booking)

        assert not Booking.objects.exists()
        assert slot_holder(TUESDAY, "9:00-9:45 AM") is None
