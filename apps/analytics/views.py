"""API views for analytics."""

from __future__ import annotations

from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.bookings.serializers import BookingSerializer
from apps.users.permissions import IsPlatformAdmin

from . import services


class AdminDashboardView(APIView):
    """Platform-wide statistics for administrators.

    ``?period=7|30|90|365`` selects the window for the period totals.
    """

    permission_classes = [IsPlatformAdmin]

    def get(self, request, format=None):  # type: ignore
        period = services.parse_period(request.query_params.get("period"))
        data = services.dashboard(period)
        data["recent_bookings"] = BookingSerializer(data["recent_bookings"], many=True).data
        return Response(data)
