"""Payment API views."""

from __future__ import annotations

import json
import logging

from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.context import Caller

from . import services
from .serializers import MpesaPaymentSerializer, TransactionSerializer
from .webhooks import SIGNATURE_HEADER, map_callback_status, verify_signature

logger = logging.getLogger(__name__)


class PaymentViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """Transactions of the current user plus the M-Pesa payment flow.

    - `mpesa` starts a payment for a booking
    - `verify` polls a transaction and settles it when the provider confirms
    - `mpesa_callback` is the signed provider webhook
    """

    serializer_class = TransactionSerializer
    permission_classes = [permissions.IsAuthenticated]
    lookup_value_regex = r"\d+"

    def get_queryset(self):  # type: ignore
        qs = services.transactions_visible_to(Caller.from_request(self.request))
        status_filter = self.request.query_params.get("status")
        if status_filter:
            qs = qs.filter(status=status_filter)
        return qs.order_by("-created_at", "-id")

    def retrieve(self, request, pk=None):  # type: ignore
        txn = services.get_transaction_for(Caller.from_request(request), pk)
        return Response(TransactionSerializer(txn).data)

    @action(detail=False, methods=["post"], url_path="mpesa")
    def mpesa(self, request):  # type: ignore
        caller = Caller.from_request(request)
        serializer = MpesaPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        txn = services.initiate_payment(
            caller,
            booking_id=serializer.validated_data["booking_id"],
            phone_number=serializer.validated_data["phone_number"],
        )
        txn = services.get_transaction_for(caller, txn.pk)
        return Response(
            {
                "success": True,
                "data": {
                    "transaction": TransactionSerializer(txn).data,
                    "message": services.INITIATED_MESSAGE,
                },
            },
            status=status.HTTP_200_OK,
        )

    @action(detail=True, methods=["get"])
    def verify(self, request, pk=None):  # type: ignore
        txn = services.confirm_payment(Caller.from_request(request), pk)
        return Response(TransactionSerializer(txn).data)

    @action(
        detail=False,
        methods=["post"],
        url_path="mpesa/callback",
        permission_classes=[permissions.AllowAny],
        authentication_classes=[],
    )
    def mpesa_callback(self, request):  # type: ignore
        body = request.body
        if not verify_signature(body, request.headers.get(SIGNATURE_HEADER)):
            logger.error("M-Pesa callback with invalid signature rejected")
            return Response({"status": "error", "message": "Invalid signature"}, status=status.HTTP_403_FORBIDDEN)

        try:
            data = json.loads(body or b"{}")
        except json.JSONDecodeError:
            logger.error("M-Pesa callback: invalid JSON")
            return Response({"status": "error", "message": "Invalid JSON"}, status=status.HTTP_400_BAD_REQUEST)
        if not isinstance(data, dict):
            logger.error("M-Pesa callback: body is not a JSON object")
            return Response({"status": "error", "message": "Invalid JSON"}, status=status.HTTP_400_BAD_REQUEST)

        reference = data.get("reference")
        raw_status = data.get("status")
        if not reference:
            return Response({"status": "error", "message": "'reference' is required"}, status=status.HTTP_400_BAD_REQUEST)
        if not raw_status:
            return Response({"status": "error", "message": "'status' is required"}, status=status.HTTP_400_BAD_REQUEST)

        mapped = map_callback_status(raw_status)
        if mapped is None:
            logger.warning(f"M-Pesa callback for {reference} with unknown status {raw_status}")
            return Response({"status": "success", "message": "Status not processed"})

        logger.info(f"M-Pesa callback for {reference}: {raw_status}")
        txn = services.handle_gateway_callback(
            reference=reference,
            status=mapped,
            receipt_number=data.get("receipt_number", ""),
            reason=data.get("reason", ""),
        )
        return Response({"status": "success", "transaction_status": txn.status})
