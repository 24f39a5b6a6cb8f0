"""Svix destination registration, verification and removal."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from django.core.exceptions import ImproperlyConfigured
from django.db import DatabaseError
from django.http import HttpRequest
from svix.webhooks import WebhookVerificationError

from apps.accounts.middleware import current_identity
from apps.svix.client import SvixClient
from apps.svix.config import SvixConfig
from apps.svix.filters import SimpleFieldFilter
from apps.svix.processors import ProcessorConfig, get_processor_config, webhook_path_for
from apps.svix.registry import DestinationRegistry

logger = logging.getLogger(__name__)

SVIX_ID_HEADER = "svix-id"
SVIX_TIMESTAMP_HEADER = "svix-timestamp"
SVIX_SIGNATURE_HEADER = "svix-signature"
SVIX_HEADERS = (SVIX_ID_HEADER, SVIX_TIMESTAMP_HEADER, SVIX_SIGNATURE_HEADER)


class SvixServiceError(RuntimeError):
    """Base class for registration failures caused by local configuration."""


class UnsupportedProcessor(SvixServiceError):
    """The processor type has no Svix routing configuration."""


class MissingSourceConfiguration(SvixServiceError):
    """The shared Svix source id for a processor family is not set."""


@dataclass(slots=True)
class VerificationResult:
    valid: bool
    message: str
    error: str | None = None

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def normalize_url(url: str) -> str:
    return (url or "").rstrip("?/")


def get_svix_headers(request: HttpRequest | None) -> Dict[str, str]:
    """Extract the three Svix headers; missing ones become empty strings."""
    if request is None:
        return {name: "" for name in SVIX_HEADERS}
    return {name: request.headers.get(name, "") or "" for name in SVIX_HEADERS}


def is_svix_request(request: HttpRequest | None) -> bool:
    return bool(get_svix_headers(request)[SVIX_SIGNATURE_HEADER])


class SvixWebhookService:
    """Register, verify and delete Svix destinations for payment processors.

    Processor integrations typically call :meth:`register_destination` when a
    processor is onboarded, and :meth:`verify` from their webhook endpoint::

        service = SvixWebhookService()
        if is_svix_request(request):
            result = service.verify(request.body, "Stripe Connect", request=request)
            if not result.valid:
                return error_json(result.error, status=401)

    The remote client is created lazily, so verification and lookups work
    without an API key.
    """

    def __init__(
        self,
        config: SvixConfig | None = None,
        registry: DestinationRegistry | None = None,
        client_factory: Callable[[SvixConfig], SvixClient] | None = None,
    ) -> None:
        self.config = config or SvixConfig.load()
        self.registry = registry or DestinationRegistry()
        self.client_factory = client_factory or SvixClient
        self._client: SvixClient | None = None

    @property
    def client(self) -> SvixClient:
        if self._client is None:
            self._client = self.client_factory(self.config)
        return self._client

    # Configuration

    def get_configuration_status(self) -> Dict[str, Any]:
        if not self.config.has_api_key:
            return {"configured": False, "message": "Svix API key is not configured."}
        return {"configured": True, "message": "Svix is configured."}

    def is_configured(self) -> bool:
        return self.get_configuration_status()["configured"]

    def webhook_url_for(self, processor_type: str) -> str:
        return self.config.absolute_url(webhook_path_for(processor_type))

    # Registration

    def register_destination(
        self,
        processor_type: str,
        payment_processor_id: int,
        routing_value: str,
        created_by: str | None = None,
    ) -> str:
        """Create the Svix destination for one processor and store its secret.

        Existing active destinations for the same webhook URL are disabled
        first. Nothing is stored locally unless every remote call succeeds;
        disabled destinations stay disabled if a later step fails.
        """
        config = get_processor_config(processor_type)
        if config is None:
            raise UnsupportedProcessor(f"Unsupported processor type for Svix: {processor_type}")

        source_id = self.config.source_id(config.source_id_setting)
        if source_id is None:
            raise MissingSourceConfiguration(
                f"Svix source ID not configured for {processor_type}. "
                f"Set the '{config.source_id_setting}' setting."
            )

        webhook_url = self.webhook_url_for(processor_type)
        self._disable_existing_destinations(source_id, webhook_url)
        return self._create_new_destination(
            config,
            source_id,
            webhook_url,
            routing_value,
            payment_processor_id,
            created_by,
        )

    def _disable_existing_destinations(self, source_id: str, webhook_url: str) -> int:
        destinations = self.client.list_destinations(source_id)
        compare_url = normalize_url(webhook_url)
        logger.debug(
            "svix.disable_scan",
            extra={
                "source_id": source_id,
                "webhook_url": compare_url,
                "total_destinations": len(destinations),
            },
        )
        disabled = 0
        for destination in destinations:
            if normalize_url(destination.get("url", "")) != compare_url:
                continue
            if destination.get("disabled"):
                continue
            logger.info(
                "svix.disabling_existing_destination",
                extra={
                    "source_id": source_id,
                    "destination_id": destination.get("id"),
                    "webhook_url": compare_url,
                },
            )
            if self.client.disable_destination(source_id, destination["id"]):
                disabled += 1
        return disabled

    def _create_new_destination(
        self,
        config: ProcessorConfig,
        source_id: str,
        webhook_url: str,
        routing_value: str,
        payment_processor_id: int,
        created_by: str | None,
    ) -> str:
        filter_script = SimpleFieldFilter(config.routing_field, routing_value).build()
        description = config.describe(routing_value)

        destination = self.client.create_destination(source_id, webhook_url, description)
        destination_id = destination["id"]
        self.client.set_transformation(source_id, destination_id, filter_script)
        signing_secret = self.client.get_destination_secret(source_id, destination_id)

        self.registry.create(
            source_id=source_id,
            svix_destination_id=destination_id,
            signing_secret=signing_secret,
            payment_processor_id=payment_processor_id,
            created_by=created_by or current_identity(),
        )
        logger.info(
            "svix.destination_registered",
            extra={
                "routing_value": routing_value,
                "destination_id": destination_id,
                "payment_processor_id": payment_processor_id,
            },
        )
        return destination_id

    # Verification

    def get_secret_for_processor_type(self, processor_type: str) -> Optional[str]:
        try:
            destination = self.registry.get_by_processor_type(processor_type, active_only=True)
        except DatabaseError as exc:
            logger.error(
                "svix.secret_lookup_failed",
                extra={"processor_type": processor_type, "error": str(exc)},
            )
            return None
        if destination is None or not destination.signing_secret:
            logger.info("svix.secret_missing", extra={"processor_type": processor_type})
            return None
        try:
            return destination.get_signing_secret()
        except ImproperlyConfigured:
            logger.error("svix.secret_lookup_failed", extra={"processor_type": processor_type})
            return None

    def is_enabled_for_processor_type(self, processor_type: str) -> bool:
        return self.get_secret_for_processor_type(processor_type) is not None

    def verify(
        self,
        payload: bytes | str,
        processor_type: str,
        headers: Mapping[str, str] | None = None,
        request: HttpRequest | None = None,
    ) -> VerificationResult:
        """Check a Svix-forwarded payload against the stored signing secret.

        ``payload`` must be the raw request body. Headers default to the ones
        on ``request``. Never raises for a bad signature or missing secret.
        """
        if headers is None:
            headers = get_svix_headers(request)

        secret = self.get_secret_for_processor_type(processor_type)
        if secret is None:
            return VerificationResult(
                valid=False,
                message="No Svix signing secret found for processor type",
                error=f"No Svix destination configured for processor type: {processor_type}",
            )

        try:
            SvixClient.verify_webhook(payload, headers, secret)
        except WebhookVerificationError as exc:
            logger.warning(
                "svix.verification_failed",
                extra={"processor_type": processor_type, "error": str(exc)},
            )
            return VerificationResult(
                valid=False,
                message="Webhook signature verification failed",
                error=str(exc),
            )
        return VerificationResult(valid=True, message="Webhook signature verified successfully")

    def verify_with_secret(
        self,
        payload: bytes | str,
        headers: Mapping[str, str],
        secret: str,
    ) -> VerificationResult:
        try:
            SvixClient.verify_webhook(payload, headers, secret)
        except WebhookVerificationError as exc:
            return VerificationResult(
                valid=False,
                message=f"Webhook verification failed: {exc}",
                error=str(exc),
            )
        return VerificationResult(valid=True, message="Webhook signature is valid")

    # Deletion

    def delete_destination(self, payment_processor_id: int) -> bool:
        """Remove a processor's destination locally; the remote side follows via signal."""
        destination = self.registry.get_by_processor_id(payment_processor_id)
        if destination is None:
            logger.debug(
                "svix.delete_missing",
                extra={"payment_processor_id": payment_processor_id},
            )
            return False
        destination_id = destination.svix_destination_id
        self.registry.delete_by_id(destination.pk)
        logger.info(
            "svix.destination_removed",
            extra={"destination_id": destination_id, "payment_processor_id": payment_processor_id},
        )
        return True
