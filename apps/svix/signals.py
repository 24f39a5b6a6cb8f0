"""Signals sent and handled by the svix app."""

from __future__ import annotations

import logging
from functools import partial

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import transaction
from django.dispatch import Signal

from apps.svix.client import SvixApiError, SvixClient

logger = logging.getLogger(__name__)

# Sent after an inbound Svix webhook passed signature verification.
# Receivers get ``processor_type``, ``payload`` (decoded JSON) and ``headers``.
webhook_verified = Signal()


def client_for_cleanup() -> SvixClient:
    return SvixClient()


def delete_remote_destination(sender, instance, **kwargs) -> None:
    """Remove the Svix side of a destination whose row was just deleted.

    Runs for explicit deletes and for cascades from the owning processor.
    The remote call waits for the surrounding transaction to commit, so a
    rolled-back delete leaves the Svix destination in place.
    """
    if not getattr(settings, "SVIX_DELETE_REMOTE_ON_DELETE", True):
        return
    source_id = instance.source_id
    destination_id = instance.svix_destination_id
    if not source_id or not destination_id:
        logger.warning(
            "svix.remote_delete_skipped",
            extra={"id": instance.pk, "source_id": source_id, "destination_id": destination_id},
        )
        return
    transaction.on_commit(partial(_delete_remote, instance.pk, source_id, destination_id))


def _delete_remote(pk, source_id: str, destination_id: str) -> None:
    # Failures are logged only: the local row is already gone.
    try:
        deleted = client_for_cleanup().delete_destination(source_id, destination_id)
    except (ImproperlyConfigured, SvixApiError) as exc:
        logger.error(
            "svix.remote_delete_failed",
            extra={
                "id": pk,
                "source_id": source_id,
                "destination_id": destination_id,
                "error": str(exc),
            },
        )
        return
    if deleted:
        logger.info(
            "svix.remote_delete_completed",
            extra={"id": pk, "source_id": source_id, "destination_id": destination_id},
        )
