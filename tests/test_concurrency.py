"""Concurrent requests for the same slot, on real database connections."""

import threading
from collections import Counter

import pytest
from django.db import connections

from Bookings.models import Booking
from slots.exceptions import SlotUnavailable
from slots.services import SlotCalendarService
from tests.conftest import TUESDAY, booking_data

CONTENDERS = 6


@pytest.mark.django_db(transaction=True)
def test_one_winner_when_requests_race_for_a_slot(service):
    barrier = threading.Barrier(CONTENDERS)
    outcomes = []

    def contend(n):
        try:
            barrier.wait()
            service.request_booking(booking_data(email=f"racer{n}@example.com"))
            outcomes.append("booked")
        except SlotUnavailable:
            outcomes.append("unavailable")
        except Exception as exc:
            outcomes.append(f"{type(exc).__name__}: {exc}")
        finally:
            connections.close_all()

    threads = [threading.Thread(target=contend, args=(n,)) for n in range(CONTENDERS)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert Counter(outcomes) == {"booked": 1, "unavailable": CONTENDERS - 1}

    winner = Booking.objects.get()
    assert SlotCalendarService.find_slot(TUESDAY, "9:00-9:45 AM").booked_by_id == winner.pk
