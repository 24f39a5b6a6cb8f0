"""Inbound endpoint for webhooks forwarded by Svix."""

from __future__ import annotations

import json
import logging

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from apps.common.utils import error_json, minimal_ok
from apps.svix.processors import FALLBACK_WEBHOOK_PATH, get_processor_config_by_slug
from apps.svix.services import SvixWebhookService, get_svix_headers, is_svix_request
from apps.svix.signals import webhook_verified

logger = logging.getLogger(__name__)

FALLBACK_SLUG = FALLBACK_WEBHOOK_PATH.rsplit("/", 1)[-1]


@csrf_exempt
@require_POST
def processor_webhook(request: HttpRequest, slug: str) -> JsonResponse:
    config = get_processor_config_by_slug(slug)
    if config is None:
        # The generic path has no family of its own, so nothing can verify it.
        if slug == FALLBACK_SLUG:
            return error_json("processor type required", status=400)
        return error_json("unknown processor", status=404)

    if not is_svix_request(request):
        return error_json("not a svix request", status=400)

    result = SvixWebhookService().verify(request.body, config.family, request=request)
    if not result.valid:
        return error_json(result.error or result.message, status=401)

    try:
        payload = json.loads(request.body.decode("utf-8") or "{}")
    except (UnicodeDecodeError, json.JSONDecodeError):
        return error_json("invalid json", status=400)

    webhook_verified.send(
        sender=processor_webhook,
        processor_type=str(config.family),
        payload=payload,
        headers=get_svix_headers(request),
    )
    logger.info(
        "svix.webhook_accepted",
        extra={"processor_type": str(config.family), "svix_id": request.headers.get("svix-id", "")},
    )
    return minimal_ok()
