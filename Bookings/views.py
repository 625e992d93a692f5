import logging

from django.apps import apps
from django.db import DatabaseError
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.exceptions import APIException, NotFound
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from Accounts.permissions import IsBookingAdmin
from payments import MOLLIE, PAYPAL
from .models import Booking
from .pricing import vat_breakdown
from .serializers import (
    AdminBookingUpdateSerializer,
    BookingRequestSerializer,
    BookingSerializer,
    CaptureSerializer,
    PublicBookingSerializer,
    RefundSerializer,
    WebhookSerializer,
)
from .uploads import submit_with_photos

logger = logging.getLogger(__name__)

PROVIDER_SLUGS = {
    "paypal": PAYPAL,
    "mollie": MOLLIE,
}


def booking_service():
    return apps.get_app_config("Bookings").service


def provider_from_slug(slug):
    provider = PROVIDER_SLUGS.get(slug.lower())
    if provider is None:
        raise NotFound(f"Unknown payment provider: {slug}")
    return provider


# -------------------------------------------------------------------
# CUSTOMER BOOKING FLOW
# -------------------------------------------------------------------
class BookingCheckView(APIView):
    """
    Public API
    Runs every booking rule and returns the price, reserves nothing
    """
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = BookingRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        quote = booking_service().check_availability(serializer.validated_data)

        return Response({
            "success": True,
            "message": "Check Availability successful",
            "data": quote,
        })


class BookingCreateView(APIView):
    """
    Public API
    Reserves the slot and starts the payment with the chosen provider
    """
    permission_classes = [AllowAny]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    def post(self, request):
        serializer = BookingRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = submit_with_photos(
            request, serializer.validated_data, booking_service().request_booking
        )
        booking = result.booking

        return Response(
            {
                "success": True,
                "message": "Booking created successfully",
                "data": {
                    "booking": PublicBookingSerializer(booking).data,
                    "price": vat_breakdown(booking.total_price),
                    "payment_id": booking.provider_payment_id,
                    "redirect_url": result.redirect_url,
                },
            },
            status=status.HTTP_201_CREATED
        )


class BookingDetailView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, booking_id):
        booking = get_object_or_404(Booking, pk=booking_id)
        return Response({
            "success": True,
            "message": "Booking fetched successfully",
            "data": PublicBookingSerializer(booking).data,
        })


# -------------------------------------------------------------------
# PAYMENT CALLBACKS
# -------------------------------------------------------------------
class PayPalCaptureView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = CaptureSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = booking_service().capture(
            PAYPAL, serializer.validated_data["order_id"]
        )

        return Response({
            "success": True,
            "message": "Payment captured successfully",
            "data": PublicBookingSerializer(booking).data,
        })


class PaymentCancelView(APIView):
    permission_classes = [AllowAny]

    def post(self, request, provider, payment_id):
        booking_service().cancel(provider_from_slug(provider), payment_id)

        return Response({
            "success": True,
            "message": "Payment cancellation and time slot unblocking processed successfully.",
            "data": None,
        })


class PaymentStatusView(APIView):
    """
    Public API
    Polls the provider and applies the result, for customers returning
    from checkout before the webhook arrives
    """
    permission_classes = [AllowAny]

    def get(self, request, provider, payment_id):
        outcome = booking_service().apply_provider_status(
            provider_from_slug(provider), payment_id
        )
        if outcome is None:
            raise NotFound("Booking not found for this payment.")

        booking = outcome.booking
        return Response({
            "success": True,
            "message": "Payment status fetched successfully",
            "data": {
                "status": outcome.state.status.value,
                "booking": PublicBookingSerializer(booking).data if booking else None,
            },
        })


class MollieWebhookView(APIView):
    """
    Mollie posts only the payment id; the status is always fetched back
    from Mollie. Answers quickly, a 500 makes Mollie retry.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = WebhookSerializer(data=request.data)
        if not serializer.is_valid():
            logger.warning("Received invalid Mollie webhook payload: %s", request.data)
            return Response(
                {"success": False, "message": "Invalid webhook payload"},
                status=status.HTTP_400_BAD_REQUEST
            )

        payment_id = serializer.validated_data["id"]
        try:
            outcome = booking_service().apply_provider_status(MOLLIE, payment_id)
        except (APIException, DatabaseError):
            logger.exception("Error processing Mollie webhook for %s", payment_id)
            return Response(
                {"success": False, "message": "Error processing webhook"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        logger.info(
            "Mollie webhook processed for %s (%s)",
            payment_id,
            outcome.state.status.value if outcome else "unknown payment",
        )
        return Response({"success": True, "message": "Webhook received"})


# -------------------------------------------------------------------
# ADMIN
# -------------------------------------------------------------------
class RefundView(APIView):
    permission_classes = [IsBookingAdmin]

    def post(self, request):
        serializer = RefundSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = get_object_or_404(Booking, pk=serializer.validated_data["booking_id"])
        booking, refund = booking_service().refund(
            booking,
            serializer.validated_data["amount"],
            serializer.validated_data["reason"],
        )

        return Response({
            "success": True,
            "message": "Payment refunded successfully",
            "data": {
                "refund_id": refund.refund_id,
                "refund_status": refund.status,
                "booking": BookingSerializer(booking).data,
            },
        })


class AdminBookingCreateView(APIView):
    permission_classes = [IsBookingAdmin]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    def post(self, request):
        serializer = BookingRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = submit_with_photos(
            request, serializer.validated_data, booking_service().create_admin_booking
        )

        return Response(
            {
                "success": True,
                "message": "Booking created successfully",
                "data": BookingSerializer(booking).data,
            },
            status=status.HTTP_201_CREATED
        )


class AdminBookingDetailView(APIView):
    permission_classes = [IsBookingAdmin]

    def get(self, request, booking_id):
        booking = get_object_or_404(Booking, pk=booking_id)
        return Response({
            "success": True,
            "message": "Booking fetched successfully",
            "data": BookingSerializer(booking).data,
        })

    def patch(self, request, booking_id):
        booking = get_object_or_404(Booking, pk=booking_id)

        serializer = AdminBookingUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = booking_service().update_booking(booking, serializer.validated_data)

        return Response({
            "success": True,
            "message": "Booking updated successfully",
            "data": BookingSerializer(booking).data,
        })

    def delete(self, request, booking_id):
        booking = get_object_or_404(Booking, pk=booking_id)
        booking_service().delete_booking(booking)

        return Response({
            "success": True,
            "message": "Booking deleted successfully",
            "data": None,
        })


class AdminSettleCashView(APIView):
    permission_classes = [IsBookingAdmin]

    def post(self, request, booking_id):
        booking = get_object_or_404(Booking, pk=booking_id)
        booking = booking_service().settle_cash(booking)

        return Response({
            "success": True,
            "message": "Cash payment recorded",
            "data": BookingSerializer(booking).data,
        })
