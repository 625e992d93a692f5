import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from Bookings.exceptions import (
    BookingConflict,
    InvalidSelection,
    InvalidState,
    UnserviceableArea,
)
from Bookings.models import Booking
from Bookings.pricing import calculate_total_price, vat_breakdown
from Bookings.utils import resolve_postcode_group, slot_window
from payments import CASH, GatewayError, PaymentState, ProviderStatus
from slots.exceptions import SlotUnavailable
from slots.services import SlotCalendarService

logger = logging.getLogger(__name__)

WEEKEND_DAYS = {5, 6}  # Saturday, Sunday

BOOKING_FIELDS = (
    "customer_name",
    "email",
    "contact_number",
    "first_line_of_address",
    "town",
    "postcode",
    "select_service",
    "gutter_cleaning_options",
    "gutter_repairs_options",
    "select_home_style",
    "select_home_type",
    "number_of_bedrooms",
    "number_of_stories",
    "message",
    "photos",
    "terms_conditions",
    "selected_date",
    "selected_time_slot",
    "payment_method",
)

ADMIN_EDITABLE_FIELDS = (
    "customer_name",
    "email",
    "contact_number",
    "first_line_of_address",
    "town",
    "postcode",
    "message",
    "selected_date",
    "selected_time_slot",
)


@dataclass(frozen=True)
class BookingResult:
    booking: Booking
    redirect_url: Optional[str] = None


@dataclass(frozen=True)
class PaymentOutcome:
    state: PaymentState
    booking: Optional[Booking]
    discarded: bool = False


class BookingService:
    """
    Drives a booking from request to payment confirmation, cancellation,
    expiry or refund, keeping the slot calendar consistent with it.

    Every slot mutation goes through SlotCalendarService. Payment
    providers are reached only through the injected gateways.
    """

    def __init__(self, gateways, notifier, clock=timezone.now):
        self.gateways = gateways
        self.notifier = notifier
        self.clock = clock

    def gateway_for(self, provider):
        try:
            return self.gateways[provider]
        except KeyError:
            raise ValidationError(f"Unsupported payment method: {provider}")

    # =========================
    # GUARDS
    # =========================

    def _check_date(self, day_date):
        today = timezone.localdate(self.clock())

        if day_date < today:
            raise ValidationError("Selected date must be in the future.")
        if day_date == today:
            raise ValidationError("Bookings for today are not allowed.")
        if day_date.weekday() in WEEKEND_DAYS:
            raise ValidationError("Bookings are only allowed from Monday to Friday.")

    def _resolve_group(self, postcode):
        group = resolve_postcode_group(postcode)
        if group is None:
            raise UnserviceableArea()
        return group

    def _check_day(self, day_date, label, group, exclude=None):
        existing = Booking.objects.on_date(day_date)
        if exclude is not None:
            existing = existing.exclude(pk=exclude.pk)

        first = existing.first()
        if first is not None and first.postcode_group != group:
            raise BookingConflict(
                "Bookings are already made for this date. Only customers from "
                f"the same postcode area group ({first.postcode_group}) can "
                "book for this date."
            )

        if existing.filter(selected_time_slot=label).exists():
            raise SlotUnavailable(f"The selected time slot is already booked: {label}")

        slot = SlotCalendarService.find_slot(day_date, label)
        if slot is None:
            return
        held_by_self = exclude is not None and slot.booked_by_id == exclude.pk
        if slot.blocked_by_id or (slot.booked_by_id and not held_by_self):
            raise SlotUnavailable()

    def _check_slot_time(self, day_date, label):
        window = slot_window(day_date, label)
        if window is None:
            raise ValidationError("Please select a valid time slot.")

        start, end = window
        now = self.clock()
        if start <= now <= end:
            raise ValidationError(
                "The selected time slot is currently in progress. "
                "Please select a different time slot."
            )
        if start < now:
            raise ValidationError(
                "The selected time slot is in the past. Please select a future time slot."
            )

    def _price(self, data):
        price = calculate_total_price(data)
        if price <= 0:
            raise InvalidSelection()
        return price

    def _validate_request(self, data):
        day_date = data["selected_date"]
        label = data["selected_time_slot"]

        self._check_date(day_date)
        group = self._resolve_group(data["postcode"])
        self._check_day(day_date, label, group)
        self._check_slot_time(day_date, label)
        price = self._price(data)

        return group, price

    # =========================
    # REQUEST
    # =========================

    def check_availability(self, data):
        """Runs every booking guard without reserving anything."""
        group, price = self._validate_request(data)
        return {
            "postcode_group": group,
            "total_price": price,
            **vat_breakdown(price),
        }

    def _reserve(self, data, group, price, **state):
        day_date = data["selected_date"]
        label = data["selected_time_slot"]

        with transaction.atomic():
            # Serializes group and slot checks per date
            SlotCalendarService.get_or_create_day(day_date, lock=True)
            self._check_day(day_date, label, group)

            booking = Booking.objects.create(
                **{f: data[f] for f in BOOKING_FIELDS if f in data},
                postcode_group=group,
                total_price=price,
                **state,
            )
            SlotCalendarService.set_booked_by(day_date, label, booking)

        return booking

    def request_booking(self, data):
        group, price = self._validate_request(data)
        gateway = self.gateway_for(data["payment_method"])

        booking = self._reserve(
            data,
            group,
            price,
            payment_status=Booking.PENDING,
            is_locked=True,
            lock_expires_at=self.clock() + timedelta(minutes=settings.BOOKING_LOCK_MINUTES),
            booked_by=Booking.BY_CUSTOMER,
        )
        logger.info(
            "Booking %s reserved %s on %s for %s",
            booking.pk, booking.selected_time_slot, booking.selected_date, booking.email,
        )

        if booking.payment_method == CASH:
            return BookingResult(booking=booking)

        try:
            intent = gateway.create_intent(price, booking)
        except GatewayError:
            logger.warning(
                "Payment intent failed for booking %s, releasing its slot", booking.pk
            )
            self._discard(booking, "intent failed")
            raise

        field = booking.set_provider_payment_id(intent.provider_payment_id)
        booking.save(update_fields=[field, "updated_at"])

        return BookingResult(booking=booking, redirect_url=intent.redirect_url)

    # =========================
    # PAYMENT OUTCOMES
    # =========================

    def confirm_payment(self, booking, state=None):
        """Pending -> Completed. Safe to call again for the same booking."""
        with transaction.atomic():
            locked = Booking.objects.select_for_update().get(pk=booking.pk)

            if locked.payment_status == Booking.COMPLETED:
                logger.info("Booking %s already completed", locked.pk)
                return locked

            if locked.payment_status != Booking.PENDING:
                raise InvalidState(
                    f"Booking {locked.pk} is {locked.payment_status} and cannot be confirmed."
                )

            locked.payment_status = Booking.COMPLETED
            locked.is_booked = True
            locked.is_locked = False
            locked.lock_expires_at = None
            if state is not None and state.transaction_id:
                locked.capture_id = state.transaction_id
            locked.save()

            transaction.on_commit(lambda: self._notify_confirmed(locked, state))

        logger.info("Booking %s completed via %s", locked.pk, locked.payment_method)
        return locked

    def _notify_confirmed(self, booking, state):
        amount = state.amount if state is not None and state.amount else booking.total_price
        details = {
            "service": booking.select_service,
            "date": booking.selected_date,
            "time_slot": booking.selected_time_slot,
            "amount": amount,
        }
        payment = {
            "method": booking.payment_method,
            "transaction_id": booking.capture_id,
        }
        self.notifier.send_confirmation(booking, details)
        self.notifier.send_admin_notification(booking, details, payment)

    def _get_by_provider(self, provider, payment_id):
        booking = Booking.objects.for_provider(provider, payment_id)
        if booking is None:
            raise NotFound("Booking not found for this payment.")
        return booking

    def capture(self, provider, payment_id):
        booking = self._get_by_provider(provider, payment_id)

        if booking.payment_status == Booking.COMPLETED:
            return booking
        if booking.payment_status != Booking.PENDING:
            raise InvalidState()

        state = self.gateway_for(provider).capture_or_query(payment_id)

        if state.status == ProviderStatus.PAID:
            return self.confirm_payment(booking, state)

        if state.status in (
            ProviderStatus.FAILED,
            ProviderStatus.CANCELLED,
            ProviderStatus.EXPIRED,
        ):
            self._discard(booking, state.status.value)
            raise GatewayError(
                f"Payment capture {state.status.value}.",
                provider=provider,
                status_code=400,
            )

        raise InvalidState("Payment has not been approved yet.")

    def apply_provider_status(self, provider, payment_id):
        """
        Webhook and polling entry point: asks the provider for the current
        status and applies it. Unknown payment ids are ignored.
        """
        booking = Booking.objects.for_provider(provider, payment_id)
        if booking is None:
            logger.warning("Ignoring %s status for unknown payment %s", provider, payment_id)
            return None

        state = self.gateway_for(provider).query_status(payment_id)
        return self.apply_state(booking, state)

    def apply_state(self, booking, state):
        if state.status == ProviderStatus.PAID:
            return PaymentOutcome(state, self.confirm_payment(booking, state))

        if state.status == ProviderStatus.PENDING:
            return PaymentOutcome(state, booking)

        if booking.payment_status == Booking.COMPLETED:
            logger.warning(
                "Ignoring %s status for completed booking %s", state.status.value, booking.pk
            )
            return PaymentOutcome(state, booking)

        if state.status == ProviderStatus.EXPIRED:
            self.expire(booking)
        else:
            self._discard(booking, state.status.value)

        return PaymentOutcome(state, None, discarded=True)

    def _discard(self, booking, reason):
        with transaction.atomic():
            locked = Booking.objects.select_for_update().filter(pk=booking.pk).first()
            if locked is None:
                logger.info("Booking %s already removed", booking.pk)
                return

            # the slot must be cleared first, it protects its booking
            SlotCalendarService.release(
                locked.selected_date, locked.selected_time_slot, locked
            )
            locked.delete()

        logger.info("Booking %s removed (%s), slot released", booking.pk, reason)

    def expire(self, booking):
        self._discard(booking, "expired")

    # =========================
    # CANCEL
    # =========================

    def cancel(self, provider, payment_id):
        return self.cancel_booking(self._get_by_provider(provider, payment_id))

    def cancel_booking(self, booking):
        with transaction.atomic():
            locked = Booking.objects.select_for_update().get(pk=booking.pk)
            if locked.payment_status != Booking.PENDING:
                raise InvalidState(
                    "This booking's payment has already been processed or cancelled."
                )
            SlotCalendarService.release(
                locked.selected_date, locked.selected_time_slot, locked
            )
            locked.delete()

        logger.info("Booking %s cancelled by customer, slot released", booking.pk)
        return booking

    # =========================
    # REFUND
    # =========================

    def refund(self, booking, amount, reason=""):
        """
        Refunds a completed booking. The slot stays booked: the visit
        record is kept for the admin.
        """
        with transaction.atomic():
            locked = Booking.objects.select_for_update().get(pk=booking.pk)
            if locked.payment_status != Booking.COMPLETED or not locked.capture_id:
                raise InvalidState("Only completed, captured payments can be refunded.")
            if locked.refund_status in (Booking.REFUND_PENDING, Booking.REFUND_COMPLETED):
                raise InvalidState(f"Refund already {locked.refund_status}.")
            if amount > locked.total_price:
                raise ValidationError("Refund amount cannot exceed the booking total.")

            locked.refund_status = Booking.REFUND_PENDING
            locked.save(update_fields=["refund_status", "updated_at"])

        gateway = self.gateway_for(locked.payment_method)
        try:
            result = gateway.refund(locked.capture_id, amount, reason)
        except GatewayError:
            locked.refund_status = Booking.REFUND_FAILED
            locked.save(update_fields=["refund_status", "updated_at"])
            logger.error("Refund failed for booking %s", locked.pk)
            raise

        locked.refund_status = Booking.REFUND_COMPLETED
        locked.refund_id = result.refund_id
        locked.refund_amount = amount
        locked.refund_reason = reason
        locked.refund_date = self.clock()
        locked.is_booked = False
        locked.is_locked = False
        locked.lock_expires_at = None
        locked.save()

        logger.info("Booking %s refunded %s", locked.pk, amount)
        self.notifier.send_refund_notice(locked, result)
        self.notifier.send_admin_refund_notice(locked, result)
        return locked, result

    # =========================
    # ADMIN
    # =========================

    def create_admin_booking(self, data):
        group, price = self._validate_request(data)

        booking = self._reserve(
            data,
            group,
            price,
            payment_status=Booking.COMPLETED,
            is_booked=True,
            is_locked=False,
            booked_by=Booking.BY_ADMIN,
        )
        logger.info("Admin booking %s created for %s", booking.pk, booking.selected_date)
        return booking

    def update_booking(self, booking, data):
        changes = {f: data[f] for f in ADMIN_EDITABLE_FIELDS if f in data}

        new_date = changes.get("selected_date", booking.selected_date)
        new_label = changes.get("selected_time_slot", booking.selected_time_slot)
        group = self._resolve_group(changes.get("postcode", booking.postcode))

        moving = (new_date, new_label) != (booking.selected_date, booking.selected_time_slot)
        if moving:
            self._check_date(new_date)
            self._check_slot_time(new_date, new_label)

        with transaction.atomic():
            locked = Booking.objects.select_for_update().get(pk=booking.pk)
            SlotCalendarService.get_or_create_day(new_date, lock=True)
            self._check_day(new_date, new_label, group, exclude=locked)

            if moving:
                SlotCalendarService.release(
                    locked.selected_date, locked.selected_time_slot, locked
                )
                SlotCalendarService.set_booked_by(new_date, new_label, locked)

            for field, value in changes.items():
                setattr(locked, field, value)
            locked.postcode_group = group
            locked.save()

        if moving:
            logger.info(
                "Booking %s moved to %s %s", locked.pk, new_date, new_label
            )
        return locked

    def delete_booking(self, booking):
        with transaction.atomic():
            locked = Booking.objects.select_for_update().get(pk=booking.pk)
            slot = SlotCalendarService.find_slot(
                locked.selected_date, locked.selected_time_slot
            )
            if slot is not None and slot.booked_by_id == locked.pk:
                SlotCalendarService.release(
                    locked.selected_date, locked.selected_time_slot, locked
                )
            locked.delete()

        logger.info("Booking %s deleted by admin", booking.pk)

    def settle_cash(self, booking):
        if booking.payment_method != CASH:
            raise InvalidState("Only cash bookings can be settled by hand.")
        return self.confirm_payment(booking)
