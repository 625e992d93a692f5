# slots/models.py
from django.conf import settings
from django.db import models
from django.db.models import Q

from .constants import SlotStatus


class DayCalendar(models.Model):
    """
    Slot states for one calendar date.
    Created on the first block or booking attempt for the date.
    """
    date = models.DateField(unique=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["date"]

    def __str__(self):
        return str(self.date)


class Slot(models.Model):
    """
    One fixed time window of a day. Rows are created lazily; a label
    with no row is available.
    """
    day = models.ForeignKey(
        DayCalendar,
        on_delete=models.CASCADE,
        related_name="slots"
    )

    time = models.CharField(max_length=20)

    # Non-owning reference; the booking store owns the booking lifecycle.
    # PROTECT forces the slot to be released before its booking is deleted.
    booked_by = models.ForeignKey(
        "Bookings.Booking",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="slots"
    )

    blocked_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="blocked_slots"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["day__date", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["day", "time"],
                name="unique_slot_per_day"
            ),
            models.CheckConstraint(
                condition=Q(booked_by__isnull=True) | Q(blocked_by__isnull=True),
                name="slot_not_booked_and_blocked"
            ),
        ]

    @property
    def status(self):
        if self.booked_by_id:
            return SlotStatus.BOOKED
        if self.blocked_by_id:
            return SlotStatus.BLOCKED
        return SlotStatus.AVAILABLE

    def __str__(self):
        return f"{self.day.date} | {self.time}"
