# dashboard/serializers.py
from rest_framework import serializers

from Bookings.serializers import BookingSerializer


class BookingListQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False, default=10)
    search = serializers.CharField(required=False, allow_blank=True, default="")


class BookingListSerializer(serializers.Serializer):
    bookings = BookingSerializer(many=True)
    total_bookings = serializers.IntegerField()
    total_pages = serializers.IntegerField()
    current_page = serializers.IntegerField()
