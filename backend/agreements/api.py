"""Rental agreement endpoints: generate, list, send and sign."""

from __future__ import annotations

import logging

from django.db.models import Q
from django.shortcuts import get_object_or_404
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action

from assistant.client import build_completion_client
from core.envelope import success_response
from core.exceptions import AuthorizationError

from .filters import AgreementFilter
from .models import RentalAgreement
from .serializers import (
    GenerateAgreementSerializer,
    RentalAgreementSerializer,
    SignAgreementSerializer,
)
from .services import generate_agreement, send_agreement, sign_agreement

logger = logging.getLogger(__name__)


def _client_ip(request) -> str:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR") or "unknown"


class IsAgreementParty(permissions.BasePermission):
    message = "Unauthorized to access this agreement"

    def has_object_permission(self, request, view, obj: RentalAgreement) -> bool:
        return obj.booking.is_participant(request.user)


class RentalAgreementViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = RentalAgreementSerializer
    permission_classes = (permissions.IsAuthenticated, IsAgreementParty)
    pagination_class = None
    filter_backends = [DjangoFilterBackend]
    filterset_class = AgreementFilter
    client_factory = staticmethod(build_completion_client)

    def get_queryset(self):
        user = self.request.user
        if not user.is_authenticated:
            return RentalAgreement.objects.none()
        return RentalAgreement.objects.select_related("booking", "booking__listing").filter(
            Q(booking__owner=user) | Q(booking__renter=user)
        )

    def get_object(self):
        obj = get_object_or_404(
            RentalAgreement.objects.select_related("booking", "booking__listing"),
            pk=self.kwargs["pk"],
        )
        self.check_object_permissions(self.request, obj)
        return obj

    def permission_denied(self, request, message=None, code=None):
        if request.authenticators and not request.successful_authenticator:
            return super().permission_denied(request, message=message, code=code)
        raise AuthorizationError(message)

    def _reload(self, agreement: RentalAgreement) -> dict:
        fresh = self.get_queryset().get(pk=agreement.pk)
        return self.get_serializer(fresh).data

    def list(self, request, *args, **kwargs):
        qs = self.filter_queryset(self.get_queryset())
        return success_response(self.get_serializer(qs.order_by("-created_at", "-id"), many=True).data)

    def retrieve(self, request, *args, **kwargs):
        return success_response(self.get_serializer(self.get_object()).data)

    @action(detail=False, methods=["post"], url_path="generate")
    def generate(self, request, *args, **kwargs):
        serializer = GenerateAgreementSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        agreement = generate_agreement(
            data["booking_id"],
            user=request.user,
            client=self.client_factory(),
            custom_terms=data.get("custom_terms", ""),
            delivery_method=data.get("delivery_method"),
            late_fee_per_day=data.get("late_fee_per_day"),
        )
        return success_response(
            self._reload(agreement),
            "Rental agreement generated successfully",
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["post"], url_path="send")
    def send(self, request, *args, **kwargs):
        agreement = send_agreement(self.get_object(), request.user)
        return success_response(self._reload(agreement), "Agreement sent for signature")

    @action(detail=True, methods=["post"], url_path="sign")
    def sign(self, request, *args, **kwargs):
        agreement = self.get_object()
        serializer = SignAgreementSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        agreement, role = sign_agreement(
            agreement.pk,
            request.user,
            signature_data=serializer.validated_data["signature_data"],
            agreed_to_terms=serializer.validated_data["agreed_to_terms"],
            ip_address=_client_ip(request),
            user_agent=request.META.get("HTTP_USER_AGENT", "unknown"),
        )
        message = (
            "Agreement fully signed"
            if agreement.fully_signed
            else f"Agreement signed by {role}"
        )
        return success_response(self._reload(agreement), message, role=role)
