from django.urls import path
from .views import (
    BlockSlotsView,
    DisabledDatesView,
    SlotAvailabilityView,
    UnblockSlotsView,
)

urlpatterns = [
    path("slots/", SlotAvailabilityView.as_view()),
    path("slots/disabled-dates/", DisabledDatesView.as_view()),
    path("slots/block/", BlockSlotsView.as_view()),
    path("slots/unblock/", UnblockSlotsView.as_view()),
]
