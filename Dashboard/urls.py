# dashboard/urls.py
from django.urls import path
from .views import AdminBookingListView

urlpatterns = [
    path("admin/dashboard/bookings/", AdminBookingListView.as_view()),
]
