"""Direct messaging endpoints: send, list conversations and read a thread."""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.db.models import Q
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action

from core.envelope import pagination_meta, success_response
from core.exceptions import NotFoundError
from core.pagination import EnvelopePagination
from users.serializers import UserSummarySerializer

from .filters import MessageFilter
from .models import Message
from .serializers import (
    ConversationSerializer,
    MessageCreateSerializer,
    MessageQuerySerializer,
    MessageSerializer,
)
from .services import (
    conversation_key,
    latest_conversations,
    message_queryset,
    send_message,
    thread_between,
)

User = get_user_model()


class MessagePagination(EnvelopePagination):
    page_size = 50


class MessageViewSet(viewsets.GenericViewSet):
    serializer_class = MessageSerializer
    pagination_class = MessagePagination
    filter_backends = [DjangoFilterBackend]
    filterset_class = MessageFilter
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        user = self.request.user
        if not user.is_authenticated:
            return Message.objects.none()
        return message_queryset().filter(Q(sender=user) | Q(recipient=user))

    def _query_params(self, request) -> dict:
        query = MessageQuerySerializer(data=request.query_params.dict())
        query.is_valid(raise_exception=True)
        return query.validated_data

    def _thread_page(self, request, other_id: int, sort_order: str):
        qs = self.filter_queryset(thread_between(request.user, other_id))
        prefix = "" if sort_order == "asc" else "-"
        page = self.paginate_queryset(qs.order_by(f"{prefix}created_at", f"{prefix}id"))
        return self.get_serializer(page, many=True).data

    def list(self, request, *args, **kwargs):
        """Conversations by default; a single thread when ``conversation_with`` is given."""
        params = self._query_params(request)
        other_id = params.get("conversation_with")
        if other_id:
            return self.get_paginated_response(
                self._thread_page(request, other_id, params["sortOrder"])
            )
        conversations = latest_conversations(request.user)
        return success_response(
            {
                "conversations": ConversationSerializer(conversations, many=True).data,
                "total": len(conversations),
            }
        )

    def create(self, request, *args, **kwargs):
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        message = send_message(request.user, **serializer.validated_data)
        return success_response(
            self.get_serializer(message_queryset().get(pk=message.pk)).data,
            "Message sent successfully",
            status=status.HTTP_201_CREATED,
        )

    @action(detail=False, methods=["get"], url_path=r"conversations/(?P<user_id>\d+)")
    def conversation(self, request, user_id=None, *args, **kwargs):
        other = User.objects.filter(pk=user_id).first()
        if other is None:
            raise NotFoundError("User not found")
        params = self._query_params(request)
        messages = self._thread_page(request, other.pk, params["sortOrder"])
        page = self.paginator.page
        return success_response(
            {
                "conversation": {
                    "id": conversation_key(request.user.id, other.pk),
                    "other_user": UserSummarySerializer(other).data,
                    "message_count": page.paginator.count,
                },
                "messages": messages,
            },
            pagination=pagination_meta(
                page=page.number,
                limit=page.paginator.per_page,
                total=page.paginator.count,
            ),
        )
