import re
from decimal import Decimal

from django.conf import settings
from rest_framework import serializers

from slots.constants import time_slot_labels
from .models import Booking
from .pricing import CLEANING_OPTION_PRICES, REPAIR_OPTIONS

PHONE_RE = re.compile(r"^\+?[1-9]\d{1,14}$")
POSTCODE_RE = re.compile(r"^[A-Z0-9\s]{5,10}$")

HOME_STYLES = (
    "Terrace",
    "Semi-Detached",
    "Detached",
    "Bungalow",
    "Town House/3 Stories",
)

HOME_TYPES = (
    "Bungalow",
    "1 Bedroom",
    "2 Bedroom",
    "3 Bedroom",
    "4 Bedroom",
    "Town House/3 Stories",
)

BEDROOMS = ("2 Bedroom", "3 Bedroom", "4 Bedroom", "5 Bedroom", "Ground")

STORIES = ("1", "2", "3", "4")


# =========================================================
# BOOKING REQUEST
# Shape checks only; business rules live in BookingService
# =========================================================
class BookingRequestSerializer(serializers.Serializer):
    customer_name = serializers.CharField(min_length=2, max_length=100)
    email = serializers.EmailField()
    contact_number = serializers.CharField(max_length=20)

    first_line_of_address = serializers.CharField(min_length=3, max_length=100)
    town = serializers.CharField(min_length=2, max_length=50)
    postcode = serializers.CharField(max_length=10)

    selected_date = serializers.DateField()
    selected_time_slot = serializers.CharField()

    select_service = serializers.ChoiceField(choices=Booking.SERVICE_CHOICES)
    gutter_cleaning_options = serializers.ListField(
        child=serializers.ChoiceField(choices=list(CLEANING_OPTION_PRICES)),
        required=False,
        default=list,
    )
    gutter_repairs_options = serializers.ListField(
        child=serializers.ChoiceField(choices=list(REPAIR_OPTIONS)),
        required=False,
        default=list,
    )

    select_home_style = serializers.ChoiceField(choices=HOME_STYLES)
    select_home_type = serializers.ChoiceField(
        choices=HOME_TYPES, required=False, allow_blank=True, default=""
    )
    number_of_bedrooms = serializers.ChoiceField(
        choices=BEDROOMS, required=False, allow_blank=True, default=""
    )
    number_of_stories = serializers.ChoiceField(
        choices=STORIES, required=False, allow_blank=True, default=""
    )

    message = serializers.CharField(
        max_length=500, required=False, allow_blank=True, default=""
    )
    photos = serializers.ListField(
        child=serializers.FileField(allow_empty_file=False),
        required=False,
        default=list,
    )
    terms_conditions = serializers.BooleanField(required=False, default=False)

    payment_method = serializers.ChoiceField(choices=Booking.PAYMENT_METHOD_CHOICES)

    def validate_contact_number(self, value):
        value = value.strip()
        if not PHONE_RE.match(value):
            raise serializers.ValidationError("Please provide a valid phone number")
        return value

    def validate_postcode(self, value):
        value = value.strip().upper()
        if not POSTCODE_RE.match(value):
            raise serializers.ValidationError("Please provide a valid postcode")
        return value

    def validate_selected_time_slot(self, value):
        if value not in time_slot_labels():
            raise serializers.ValidationError("Please select a valid time slot")
        return value

    def validate_photos(self, value):
        if len(value) > settings.BOOKING_UPLOAD_MAX_FILES:
            raise serializers.ValidationError(
                f"You can upload at most {settings.BOOKING_UPLOAD_MAX_FILES} photos"
            )

        for upload in value:
            if upload.size > settings.BOOKING_UPLOAD_MAX_FILE_SIZE:
                raise serializers.ValidationError(f"{upload.name} is too large")
            if upload.content_type not in settings.BOOKING_UPLOAD_ALLOWED_TYPES:
                raise serializers.ValidationError(
                    f"{upload.name} has an unsupported file type"
                )
        return value


class AdminBookingUpdateSerializer(serializers.Serializer):
    """Fields an admin may edit on an existing booking. Price is fixed."""
    customer_name = serializers.CharField(min_length=2, max_length=100, required=False)
    email = serializers.EmailField(required=False)
    contact_number = serializers.CharField(max_length=20, required=False)

    first_line_of_address = serializers.CharField(min_length=3, max_length=100, required=False)
    town = serializers.CharField(min_length=2, max_length=50, required=False)
    postcode = serializers.CharField(max_length=10, required=False)

    message = serializers.CharField(max_length=500, required=False, allow_blank=True)

    selected_date = serializers.DateField(required=False)
    selected_time_slot = serializers.CharField(required=False)

    validate_contact_number = BookingRequestSerializer.validate_contact_number
    validate_postcode = BookingRequestSerializer.validate_postcode
    validate_selected_time_slot = BookingRequestSerializer.validate_selected_time_slot

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("No fields to update")
        return attrs


# =========================================================
# PAYMENT REQUESTS
# =========================================================
class CaptureSerializer(serializers.Serializer):
    order_id = serializers.CharField(max_length=100)


class WebhookSerializer(serializers.Serializer):
    id = serializers.CharField(max_length=100)


class RefundSerializer(serializers.Serializer):
    booking_id = serializers.IntegerField()
    amount = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal("0.01")
    )
    reason = serializers.CharField(max_length=200)


# =========================================================
# BOOKING OUTPUT
# =========================================================
class BookingSerializer(serializers.ModelSerializer):

    class Meta:
        model = Booking
        fields = [
            "id",
            "customer_name",
            "email",
            "contact_number",
            "first_line_of_address",
            "town",
            "postcode",
            "postcode_group",
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
            "total_price",
            "payment_method",
            "payment_status",
            "paypal_order_id",
            "mollie_payment_id",
            "capture_id",
            "refund_id",
            "refund_status",
            "refund_amount",
            "refund_reason",
            "refund_date",
            "is_locked",
            "lock_expires_at",
            "is_booked",
            "booked_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class PublicBookingSerializer(serializers.ModelSerializer):
    """What a customer may see about their booking."""

    class Meta:
        model = Booking
        fields = [
            "id",
            "customer_name",
            "select_service",
            "selected_date",
            "selected_time_slot",
            "total_price",
            "payment_method",
            "payment_status",
            "is_booked",
        ]
        read_only_fields = fields
