"""API views for the booking domain."""

from __future__ import annotations

from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.context import Caller

from . import services
from .serializers import (
    AvailabilityQuerySerializer,
    BookingCancelSerializer,
    BookingCreateSerializer,
    BookingSerializer,
)


class BookingViewSet(viewsets.GenericViewSet):
    """Create, list and move bookings through their lifecycle.

    Every handler resolves the caller once and delegates to
    ``apps.bookings.services``; authorization lives there.
    """

    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAuthenticated]
    lookup_value_regex = r"\d+"

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return BookingCreateSerializer
        if self.action == "cancel":
            return BookingCancelSerializer
        if self.action == "availability":
            return AvailabilityQuerySerializer
        return BookingSerializer

    def _render(self, booking, status_code=status.HTTP_200_OK) -> Response:
        return Response(BookingSerializer(booking, context=self.get_serializer_context()).data, status=status_code)

    def create(self, request, *args, **kwargs):  # type: ignore
        caller = Caller.from_request(request)
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = services.create_booking(caller, **serializer.validated_data)
        return self._render(booking, status.HTTP_201_CREATED)

    def list(self, request, *args, **kwargs):  # type: ignore
        caller = Caller.from_request(request)
        params = request.query_params
        page = services.list_bookings(
            caller,
            role=params.get("role") or None,
            status=params.get("status") or None,
            page=params.get("page"),
            limit=params.get("limit"),
        )
        data = BookingSerializer(page.items, many=True, context=self.get_serializer_context()).data
        return Response({"bookings": data, "pagination": page.meta()})

    def retrieve(self, request, pk=None, *args, **kwargs):  # type: ignore
        booking = services.get_booking_for(Caller.from_request(request), pk)
        return self._render(booking)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        serializer = BookingCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = services.cancel_booking(
            Caller.from_request(request), pk, reason=serializer.validated_data["reason"]
        )
        return self._render(booking)

    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):  # type: ignore
        booking = services.complete_booking(Caller.from_request(request), pk)
        return self._render(booking)

    @action(detail=False, methods=["get"])
    def stats(self, request):  # type: ignore
        return Response(services.booking_stats(Caller.from_request(request)))

    @action(detail=False, methods=["get"])
    def upcoming(self, request):  # type: ignore
        bookings = services.upcoming_bookings(Caller.from_request(request))
        return Response(BookingSerializer(bookings, many=True, context=self.get_serializer_context()).data)

    @action(detail=False, methods=["get"])
    def availability(self, request):  # type: ignore
        serializer = AvailabilityQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        available = services.is_slot_available(
            serializer.validated_data["service_id"],
            date=serializer.validated_data["date"],
            start_time=serializer.validated_data.get("start_time"),
            end_time=serializer.validated_data.get("end_time"),
        )
        return Response({"available": available})
