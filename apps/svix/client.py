"""REST client for the Svix Ingest API.

Destination management goes through plain REST calls; webhook signature
verification is delegated to the ``svix`` SDK.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

import requests
from django.core.exceptions import ImproperlyConfigured
from svix.webhooks import Webhook, WebhookVerificationError

from apps.svix.config import SvixConfig

logger = logging.getLogger(__name__)


class SvixApiError(RuntimeError):
    """Raised when a Svix API call fails or cannot be made."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SvixClient:
    """Wrapper around the Svix Ingest source endpoint API."""

    USER_AGENT = "crm-svix-client/1.0"

    def __init__(self, config: SvixConfig | None = None) -> None:
        self.config = config or SvixConfig.load()
        if not self.config.has_api_key:
            raise ImproperlyConfigured(
                "Svix API key not configured. Set the 'svix_api_key' setting "
                "or the SVIX_API_KEY environment variable."
            )
        self.api_base = self.config.api_base.rstrip("/")
        self.timeout = self.config.timeout

    def _endpoints_path(self, source_id: str) -> str:
        return f"/ingest/api/v1/source/{source_id}/endpoint"

    def _endpoint_path(self, source_id: str, destination_id: str) -> str:
        return f"{self._endpoints_path(source_id)}/{destination_id}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": self.USER_AGENT,
        }
        try:
            response = requests.request(
                method,
                f"{self.api_base}{path}",
                json=json,
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise SvixApiError(f"Svix API request failed: {exc}") from exc

        if response.status_code >= 400:
            raise SvixApiError(self._error_message(response), status_code=response.status_code)
        if response.status_code == 204 or not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise SvixApiError(f"Failed to decode Svix API response: {exc}", response.status_code) from exc

    @staticmethod
    def _error_message(response) -> str:
        message = f"Svix API error ({response.status_code})"
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and (body.get("message") or body.get("detail")):
            return f"{message}: {body.get('message') or body.get('detail')}"
        if response.text:
            return f"{message}: {response.text}"
        return message

    def create_destination(
        self,
        source_id: str,
        url: str,
        description: str,
        filter_script: str | None = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"url": url, "description": description}
        if filter_script:
            payload["transformation"] = filter_script
        try:
            data = self._request("POST", self._endpoints_path(source_id), json=payload)
        except SvixApiError as exc:
            logger.error(
                "svix.destination_create_failed",
                extra={"source_id": source_id, "url": url, "error": str(exc)},
            )
            raise
        logger.info(
            "svix.destination_created",
            extra={"source_id": source_id, "destination_id": data.get("id"), "url": url},
        )
        return data

    def list_destinations(self, source_id: str) -> List[Dict[str, Any]]:
        """Return every destination of ``source_id``, following pagination."""
        destinations: List[Dict[str, Any]] = []
        iterator: str | None = None
        while True:
            params = {"iterator": iterator} if iterator else None
            data = self._request("GET", self._endpoints_path(source_id), params=params)
            destinations.extend(data.get("data", []))
            iterator = data.get("iterator")
            if data.get("done", True) or not iterator:
                break
        return destinations

    def get_destination(self, source_id: str, destination_id: str) -> Optional[Dict[str, Any]]:
        try:
            return self._request("GET", self._endpoint_path(source_id, destination_id))
        except SvixApiError as exc:
            if exc.status_code == 404:
                return None
            raise

    def set_transformation(self, source_id: str, destination_id: str, code: str) -> None:
        self._request(
            "PATCH",
            f"{self._endpoint_path(source_id, destination_id)}/transformation",
            json={"code": code, "enabled": True},
        )
        logger.info(
            "svix.transformation_set",
            extra={"source_id": source_id, "destination_id": destination_id},
        )

    def get_destination_secret(self, source_id: str, destination_id: str) -> str:
        data = self._request("GET", f"{self._endpoint_path(source_id, destination_id)}/secret")
        secret = data.get("key")
        if not secret:
            raise SvixApiError("Svix API returned no signing secret")
        return secret

    def disable_destination(self, source_id: str, destination_id: str) -> bool:
        """Flip the ``disabled`` flag, keeping the destination's URL and description."""
        current = self.get_destination(source_id, destination_id)
        if current is None:
            logger.warning(
                "svix.destination_disable_missing",
                extra={"source_id": source_id, "destination_id": destination_id},
            )
            return False
        payload = {
            "url": current.get("url"),
            "description": current.get("description", ""),
            "disabled": True,
        }
        self._request("PUT", self._endpoint_path(source_id, destination_id), json=payload)
        logger.info(
            "svix.destination_disabled",
            extra={"source_id": source_id, "destination_id": destination_id},
        )
        return True

    def delete_destination(self, source_id: str, destination_id: str) -> bool:
        try:
            self._request("DELETE", self._endpoint_path(source_id, destination_id))
        except SvixApiError as exc:
            logger.error(
                "svix.destination_delete_failed",
                extra={
                    "source_id": source_id,
                    "destination_id": destination_id,
                    "status_code": exc.status_code,
                    "error": str(exc),
                },
            )
            return False
        logger.info(
            "svix.destination_deleted",
            extra={"source_id": source_id, "destination_id": destination_id},
        )
        return True

    @staticmethod
    def verify_webhook(payload: bytes | str, headers: Mapping[str, str], secret: str) -> bool:
        """Check a Svix signature; raises ``WebhookVerificationError`` when invalid.

        Malformed base64 in the secret or a signature token surfaces from the
        SDK as ``binascii.Error``; it is reported as a verification failure.
        """
        try:
            Webhook(secret).verify(payload, dict(headers))
        except ValueError as exc:
            raise WebhookVerificationError(f"Malformed signature or secret: {exc}") from exc
        return True
