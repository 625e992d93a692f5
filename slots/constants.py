# slots/constants.py
from collections import namedtuple
from datetime import datetime, timedelta

from django.conf import settings


class SlotStatus:
    AVAILABLE = "Available"
    BOOKED = "Booked"
    BLOCKED = "Blocked"

    CHOICES = (
        (AVAILABLE, "Available"),
        (BOOKED, "Booked"),
        (BLOCKED, "Blocked"),
    )


TimeSlot = namedtuple("TimeSlot", ["label", "start", "end"])


def _clock(t):
    return f"{t.hour % 12 or 12}:{t.minute:02d}"


def generate_time_slots(day_start, slot_minutes, count):
    """
    Builds the working day as consecutive windows, labelled the way
    customers see them, e.g. "9:00-9:45 AM" or "12:45-1:30 PM".
    """
    current = datetime.strptime(day_start, "%H:%M")

    slots = []
    for _ in range(count):
        end = current + timedelta(minutes=slot_minutes)
        meridiem = "AM" if end.hour < 12 else "PM"
        slots.append(TimeSlot(
            label=f"{_clock(current)}-{_clock(end)} {meridiem}",
            start=current.time(),
            end=end.time(),
        ))
        current = end

    return tuple(slots)


def time_slots():
    return generate_time_slots(
        settings.BOOKING_DAY_START,
        settings.BOOKING_SLOT_MINUTES,
        settings.BOOKING_SLOTS_PER_DAY,
    )


def time_slot_labels():
    return [slot.label for slot in time_slots()]


def get_time_slot(label):
    for slot in time_slots():
        if slot.label == label:
            return slot
    return None
