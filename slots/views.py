import logging

from django.db import transaction
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from Accounts.permissions import IsBookingAdmin
from slots.serializers import (
    MonthQuerySerializer,
    SlotAvailabilitySerializer,
    SlotBlockSerializer,
    SlotDateQuerySerializer,
)
from slots.services import SlotCalendarService

logger = logging.getLogger(__name__)


class SlotAvailabilityView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        query = SlotDateQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        selected_date = query.validated_data["date"]
        availability = SlotCalendarService.list_availability(selected_date)

        return Response({
            "success": True,
            "message": "Time slots fetched successfully",
            "data": {
                "date": selected_date,
                "time_slots": SlotAvailabilitySerializer(
                    availability, many=True, context={"request": request}
                ).data,
            }
        })


class DisabledDatesView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        query = MonthQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        dates = SlotCalendarService.list_fully_unavailable_dates(
            query.validated_data["start"],
            query.validated_data["end"],
        )

        return Response({
            "success": True,
            "message": "Disabled dates fetched successfully",
            "data": [d.isoformat() for d in dates]
        })


class BlockSlotsView(APIView):
    permission_classes = [IsBookingAdmin]

    @transaction.atomic
    def post(self, request):
        serializer = SlotBlockSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        selected_date = serializer.validated_data["date"]
        labels = serializer.validated_data["time_slots"]

        # all-or-nothing: any failure rolls back the whole request
        for label in labels:
            SlotCalendarService.block(selected_date, label, request.user)

        logger.info(
            "Admin %s blocked %s on %s", request.user.pk, labels, selected_date
        )

        return Response(
            {
                "success": True,
                "message": "Time slots blocked successfully",
                "data": SlotCalendarService.list_availability(selected_date)
            },
            status=status.HTTP_200_OK
        )


class UnblockSlotsView(APIView):
    permission_classes = [IsBookingAdmin]

    @transaction.atomic
    def post(self, request):
        serializer = SlotBlockSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        selected_date = serializer.validated_data["date"]
        labels = serializer.validated_data["time_slots"]

        for label in labels:
            SlotCalendarService.unblock(selected_date, label, request.user)

        logger.info(
            "Admin %s unblocked %s on %s", request.user.pk, labels, selected_date
        )

        return Response(
            {
                "success": True,
                "message": "Time slots unblocked successfully",
                "data": SlotCalendarService.list_availability(selected_date)
            },
            status=status.HTTP_200_OK
        )
