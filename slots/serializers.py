# slots/serializers.py
from calendar import monthrange
from datetime import date

from rest_framework import serializers

from .constants import time_slot_labels


class SlotDateQuerySerializer(serializers.Serializer):
    date = serializers.DateField()


class MonthQuerySerializer(serializers.Serializer):
    year = serializers.IntegerField(min_value=2000, max_value=2100)
    month = serializers.IntegerField(min_value=1, max_value=12)

    def validate(self, attrs):
        last_day = monthrange(attrs["year"], attrs["month"])[1]
        attrs["start"] = date(attrs["year"], attrs["month"], 1)
        attrs["end"] = date(attrs["year"], attrs["month"], last_day)
        return attrs


class SlotBlockSerializer(serializers.Serializer):
    date = serializers.DateField()
    time_slots = serializers.ListField(
        child=serializers.CharField(),
        min_length=1
    )

    def validate_time_slots(self, slots):
        labels = time_slot_labels()
        invalid = [slot for slot in slots if slot not in labels]

        if invalid:
            raise serializers.ValidationError(
                f"Invalid time slots: {', '.join(invalid)}"
            )

        if len(set(slots)) != len(slots):
            raise serializers.ValidationError("Duplicate time slots")

        return slots


class SlotAvailabilitySerializer(serializers.Serializer):
    time = serializers.CharField()
    status = serializers.CharField()
    who = serializers.SerializerMethodField()

    def get_who(self, row):
        # booking and admin ids are only shown to admins
        request = self.context.get("request")
        user = getattr(request, "user", None)
        if getattr(user, "is_booking_admin", False):
            return row["who"]
        return None
