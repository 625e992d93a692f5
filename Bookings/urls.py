from django.urls import path
from .views import (
    AdminBookingCreateView,
    AdminBookingDetailView,
    AdminSettleCashView,
    BookingCheckView,
    BookingCreateView,
    BookingDetailView,
    MollieWebhookView,
    PaymentCancelView,
    PaymentStatusView,
    PayPalCaptureView,
    RefundView,
)

urlpatterns = [
    # Customer booking flow
    path("bookings/check/", BookingCheckView.as_view()),
    path("bookings/", BookingCreateView.as_view()),
    path("bookings/<int:booking_id>/", BookingDetailView.as_view()),

    # Payment callbacks
    path("payments/paypal/capture/", PayPalCaptureView.as_view()),
    path("payments/mollie/webhook/", MollieWebhookView.as_view()),
    path("payments/refund/", RefundView.as_view()),
    path("payments/<str:provider>/<str:payment_id>/cancel/", PaymentCancelView.as_view()),
    path("payments/<str:provider>/<str:payment_id>/status/", PaymentStatusView.as_view()),

    # Admin
    path("admin/bookings/", AdminBookingCreateView.as_view()),
    path("admin/bookings/<int:booking_id>/", AdminBookingDetailView.as_view()),
    path("admin/bookings/<int:booking_id>/settle/", AdminSettleCashView.as_view()),
]
