from rest_framework.views import APIView
from rest_framework.response import Response

from Accounts.permissions import IsBookingAdmin
from .serializers import BookingListQuerySerializer, BookingListSerializer
from .services import AdminDashboardService


class AdminBookingListView(APIView):
    permission_classes = [IsBookingAdmin]

    def get(self, request):
        query = BookingListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        listing = AdminDashboardService.list_bookings(**query.validated_data)

        return Response(
            {
                "success": True,
                "message": "Bookings fetched successfully",
                "data": BookingListSerializer(listing).data,
            },
            status=200
        )
