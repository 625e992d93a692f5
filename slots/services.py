import logging

from django.db import IntegrityError, transaction
from django.db.models import Count, Q
from django.utils import timezone

from .constants import SlotStatus, time_slot_labels, time_slots
from .exceptions import Forbidden, SlotNotBlocked, SlotNotFound, SlotUnavailable
from .models import DayCalendar, Slot

logger = logging.getLogger(__name__)


class SlotCalendarService:
    """
    All slot reads and writes live here.
    Views and the booking engine should NOT touch Slot rows directly.
    """

    @staticmethod
    def ensure_label(label):
        if label not in time_slot_labels():
            raise SlotNotFound(f"Unknown time slot: {label}")

    @staticmethod
    def get_or_create_day(day_date, lock=False):
        # get_or_create retries the read when a concurrent insert wins
        day, _ = DayCalendar.objects.get_or_create(date=day_date)
        if lock:
            day = DayCalendar.objects.select_for_update().get(pk=day.pk)
        return day

    @staticmethod
    def find_slot(day_date, label):
        return (
            Slot.objects
            .select_related("day")
            .filter(day__date=day_date, time=label)
            .first()
        )

    @staticmethod
    def set_booked_by(day_date, label, booking):
        """
        Compare-and-swap: the slot is taken only if nobody booked or
        blocked it. Two concurrent callers cannot both succeed.
        """
        SlotCalendarService.ensure_label(label)
        day = SlotCalendarService.get_or_create_day(day_date)

        updated = Slot.objects.filter(
            day=day,
            time=label,
            booked_by__isnull=True,
            blocked_by__isnull=True,
        ).update(booked_by=booking, updated_at=timezone.now())

        if updated:
            return

        if Slot.objects.filter(day=day, time=label).exists():
            raise SlotUnavailable()

        try:
            with transaction.atomic():
                Slot.objects.create(day=day, time=label, booked_by=booking)
        except IntegrityError:
            # Another request created the row first
            raise SlotUnavailable()

    @staticmethod
    def release(day_date, label, booking=None):
        with transaction.atomic():
            if not DayCalendar.objects.filter(date=day_date).exists():
                raise SlotNotFound("No time slots found for the given date.")

            slot = (
                Slot.objects
                .select_for_update()
                .filter(day__date=day_date, time=label)
                .first()
            )
            if slot is None:
                raise SlotNotFound(f"Slot {label} not found on this date.")

            if not slot.booked_by_id:
                raise SlotNotBlocked(f"Slot {label} is already unblocked.")

            if booking is not None and slot.booked_by_id != booking.pk:
                raise SlotNotBlocked(
                    f"Slot {label} is not held by booking {booking.pk}."
                )

            slot.booked_by = None
            slot.save(update_fields=["booked_by", "updated_at"])

        logger.info("Time slot %s on %s released", label, day_date)
        return slot

    @staticmethod
    def block(day_date, label, admin):
        SlotCalendarService.ensure_label(label)

        with transaction.atomic():
            day = SlotCalendarService.get_or_create_day(day_date)
            slot, created = Slot.objects.select_for_update().get_or_create(
                day=day,
                time=label,
                defaults={"blocked_by": admin},
            )
            if created:
                return slot

            if slot.booked_by_id:
                raise SlotUnavailable(
                    f"Slot {label} is already booked and cannot be blocked."
                )
            if slot.blocked_by_id:
                raise SlotUnavailable(f"Slot {label} is already blocked.")

            slot.blocked_by = admin
            slot.save(update_fields=["blocked_by", "updated_at"])

        return slot

    @staticmethod
    def unblock(day_date, label, admin):
        with transaction.atomic():
            if not DayCalendar.objects.filter(date=day_date).exists():
                raise SlotNotFound("No time slots found for the given date.")

            slot = (
                Slot.objects
                .select_for_update()
                .filter(day__date=day_date, time=label)
                .first()
            )
            if slot is None:
                raise SlotNotFound(f"Slot {label} not found on this date.")

            if not slot.blocked_by_id:
                raise SlotNotBlocked(f"Slot {label} is not blocked.")

            if slot.blocked_by_id != admin.pk:
                raise Forbidden()

            slot.blocked_by = None
            slot.save(update_fields=["blocked_by", "updated_at"])

        return slot

    @staticmethod
    def list_availability(day_date):
        stored = {
            slot.time: slot
            for slot in Slot.objects.filter(day__date=day_date)
        }

        availability = []
        for time_slot in time_slots():
            slot = stored.get(time_slot.label)

            if slot and slot.booked_by_id:
                status, who = SlotStatus.BOOKED, slot.booked_by_id
            elif slot and slot.blocked_by_id:
                status, who = SlotStatus.BLOCKED, slot.blocked_by_id
            else:
                status, who = SlotStatus.AVAILABLE, None

            availability.append({
                "time": time_slot.label,
                "status": status,
                "who": who,
            })

        return availability

    @staticmethod
    def list_fully_unavailable_dates(range_start, range_end):
        """Dates where every label of the day is blocked by an admin."""
        labels = time_slot_labels()
        in_day = Q(slots__time__in=labels)

        days = (
            DayCalendar.objects
            .filter(date__gte=range_start, date__lte=range_end)
            .annotate(
                total=Count("slots", filter=in_day),
                blocked=Count(
                    "slots",
                    filter=in_day & Q(slots__blocked_by__isnull=False)
                ),
            )
            .filter(total=len(labels), blocked=len(labels))
            .order_by("date")
        )
        return list(days.values_list("date", flat=True))
