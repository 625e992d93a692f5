# Bookings/utils.py
from datetime import datetime

from django.conf import settings
from django.utils import timezone

from slots.constants import get_time_slot


def resolve_postcode_group(postcode, groups=None, agnostic_prefix=None):
    """
    Service group for a postcode, or None when the area is not serviced.

    Groups are checked in order. A group matches when it lists the first
    4 characters of the postcode, or when the postcode starts with the
    group agnostic prefix.
    """
    if groups is None:
        groups = settings.BOOKING_POSTCODE_GROUPS
    if agnostic_prefix is None:
        agnostic_prefix = settings.BOOKING_GROUP_AGNOSTIC_PREFIX

    postcode = (postcode or "").strip().upper()
    short_prefix = postcode[:3]
    long_prefix = postcode[:4]

    for group, prefixes in groups.items():
        if long_prefix in prefixes or short_prefix == agnostic_prefix.upper():
            return group

    return None


def slot_window(day_date, label):
    """Aware (start, end) datetimes of a slot label on a date."""
    time_slot = get_time_slot(label)
    if time_slot is None:
        return None

    tz = timezone.get_current_timezone()
    start = timezone.make_aware(datetime.combine(day_date, time_slot.start), tz)
    end = timezone.make_aware(datetime.combine(day_date, time_slot.end), tz)
    return start, end
