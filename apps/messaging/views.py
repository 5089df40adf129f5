"""API views for direct messaging."""

from __future__ import annotations

from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.context import Caller
from shared.domain.exceptions import ValidationError
from shared.infrastructure.pagination import pagination_for

from . import services
from .models import Message
from .serializers import ConversationSerializer, MessageCreateSerializer, MessageSerializer


class MessageViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Messages of the authenticated user.

    ``?with=<user id>`` narrows the list to one conversation.
    """

    serializer_class = MessageSerializer
    permission_classes = [permissions.IsAuthenticated]
    pagination_class = pagination_for("messages")
    lookup_value_regex = r"\d+"

    def get_queryset(self):  # type: ignore
        user_id = self.request.user.pk
        other = self.request.query_params.get("with")
        if other is not None:
            if not other.isdigit():
                raise ValidationError("'with' must be a numeric user id")
            qs = Message.objects.between(user_id, int(other))
        else:
            qs = Message.objects.involving(user_id)
        return qs.select_related("sender", "recipient")

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        message = services.send_message(
            Caller.from_request(request),
            recipient_id=data["recipient"],
            content=data["content"],
            booking_id=data.get("booking"),
        )
        return Response(MessageSerializer(message).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"])
    def conversations(self, request):  # type: ignore
        conversations = services.conversations_for(request.user.pk)
        return Response({"conversations": ConversationSerializer(conversations, many=True).data})

    @action(detail=True, methods=["post"])
    def mark_read(self, request, pk=None):  # type: ignore
        message = services.mark_read(Caller.from_request(request), pk)
        return Response(MessageSerializer(message).data)

    @action(detail=False, methods=["post"], url_path=r"conversations/(?P<user_id>\d+)/read")
    def read_conversation(self, request, user_id=None):  # type: ignore
        updated = services.mark_conversation_read(Caller.from_request(request), int(user_id))
        return Response({"updated": updated})

    @action(detail=False, methods=["get"], url_path="unread-count")
    def unread_count(self, request):  # type: ignore
        return Response({"unread": services.unread_count(request.user.pk)})
