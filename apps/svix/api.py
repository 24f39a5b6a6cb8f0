"""Admin API for Svix destinations."""

from __future__ import annotations

import logging
from typing import Any, Dict

from django.core.exceptions import ImproperlyConfigured
from django.http import HttpRequest
from rest_framework import permissions, serializers, status
from rest_framework.views import APIView

from apps.common.api import error_response, ok_response
from apps.common.security import mask_secret
from apps.processors.models import PaymentProcessor
from apps.svix.client import SvixApiError
from apps.svix.models import SvixDestination
from apps.svix.registry import DestinationRegistry
from apps.svix.services import SvixServiceError, SvixWebhookService

logger = logging.getLogger(__name__)


def _masked_secret(destination: SvixDestination) -> str | None:
    try:
        return mask_secret(destination.get_signing_secret())
    except ImproperlyConfigured:
        logger.error("svix.secret_decrypt_failed", extra={"id": destination.pk})
        return None


def _serialize_destination(destination: SvixDestination) -> Dict[str, Any]:
    processor = destination.payment_processor
    return {
        "id": destination.id,
        "source_id": destination.source_id,
        "svix_destination_id": destination.svix_destination_id,
        "payment_processor_id": destination.payment_processor_id,
        "processor_type": processor.processor_type.name,
        "processor_is_active": processor.is_active,
        "signing_secret": _masked_secret(destination),
        "created_by": destination.created_by,
        "created_at": destination.created_at.isoformat(),
    }


class RegisterDestinationSerializer(serializers.Serializer):
    processor_type = serializers.CharField()
    payment_processor_id = serializers.IntegerField()
    routing_value = serializers.CharField()

    def validate_payment_processor_id(self, value: int) -> int:
        if not PaymentProcessor.objects.filter(pk=value).exists():
            raise serializers.ValidationError("Payment processor not found.")
        return value


class VerifyWebhookSerializer(serializers.Serializer):
    payload = serializers.CharField(trim_whitespace=False)
    headers = serializers.DictField(child=serializers.CharField(allow_blank=True))
    secret = serializers.CharField()


class DestinationListView(APIView):
    """List stored destinations, optionally for one processor."""

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request: HttpRequest):
        processor_id = request.query_params.get("payment_processor_id")
        if processor_id is not None and not processor_id.isdigit():
            return error_response("INVALID_PROCESSOR_ID")
        destinations = DestinationRegistry().list(
            int(processor_id) if processor_id is not None else None
        )
        return ok_response([_serialize_destination(item) for item in destinations])


class DestinationDetailView(APIView):
    """Read or delete one stored destination."""

    def get_permissions(self):
        if self.request.method == "DELETE":
            return [permissions.IsAdminUser()]
        return [permissions.IsAuthenticated()]

    def get(self, request: HttpRequest, pk: int):
        destination = DestinationRegistry().list().filter(pk=pk).first()
        if destination is None:
            return error_response("NOT_FOUND", status_code=status.HTTP_404_NOT_FOUND)
        return ok_response(_serialize_destination(destination))

    def delete(self, request: HttpRequest, pk: int):
        if not DestinationRegistry().delete_by_id(pk):
            return error_response("NOT_FOUND", status_code=status.HTTP_404_NOT_FOUND)
        return ok_response({"deleted": pk})


class RegisterDestinationView(APIView):
    """Register a Svix destination for a payment processor."""

    permission_classes = [permissions.IsAdminUser]

    def post(self, request: HttpRequest):
        serializer = RegisterDestinationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            destination_id = SvixWebhookService().register_destination(
                data["processor_type"],
                data["payment_processor_id"],
                data["routing_value"],
                created_by=request.user.get_username(),
            )
        except SvixServiceError as exc:
            return error_response(str(exc))
        except ImproperlyConfigured as exc:
            return error_response(str(exc), status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
        except SvixApiError as exc:
            logger.error(
                "svix.register_failed",
                extra={
                    "processor_type": data["processor_type"],
                    "payment_processor_id": data["payment_processor_id"],
                    "error": str(exc),
                },
            )
            return error_response(str(exc), status_code=status.HTTP_502_BAD_GATEWAY)
        return ok_response(
            {"svix_destination_id": destination_id},
            status_code=status.HTTP_201_CREATED,
        )


class VerifyWebhookView(APIView):
    """Check a payload/headers pair against an explicit signing secret."""

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request: HttpRequest):
        serializer = VerifyWebhookSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = SvixWebhookService().verify_with_secret(data["payload"], data["headers"], data["secret"])
        return ok_response(result.as_dict())


class ConfigurationStatusView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request: HttpRequest):
        return ok_response(SvixWebhookService().get_configuration_status())
