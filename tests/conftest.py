import base64
import hashlib
import hmac
import time

import pytest

from apps.common.models import Setting
from apps.processors.models import PaymentProcessor, PaymentProcessorType
from apps.svix.config import SvixConfig

SIGNING_KEY = b"svix-test-signing-key-0123456789"
SIGNING_SECRET = "whsec_" + base64.b64encode(SIGNING_KEY).decode()


class FakeSvixClient:
    """In-memory stand-in for SvixClient that records every call."""

    def __init__(self, config=None, destinations=None):
        self.config = config
        self.destinations = {item["id"]: dict(item) for item in destinations or []}
        self.calls = []
        self.transformations = {}
        self.fail_on = set()
        self._counter = 0

    def _record(self, name, *args):
        self.calls.append((name, *args))
        if name in self.fail_on:
            from apps.svix.client import SvixApiError

            raise SvixApiError(f"{name} failed", status_code=500)

    def call_names(self):
        return [call[0] for call in self.calls]

    def list_destinations(self, source_id):
        self._record("list_destinations", source_id)
        return [dict(item) for item in self.destinations.values()]

    def disable_destination(self, source_id, destination_id):
        self._record("disable_destination", source_id, destination_id)
        self.destinations[destination_id]["disabled"] = True
        return True

    def create_destination(self, source_id, url, description, filter_script=None):
        self._record("create_destination", source_id, url, description)
        self._counter += 1
        destination_id = f"ep_new_{self._counter}"
        destination = {"id": destination_id, "url": url, "description": description, "disabled": False}
        self.destinations[destination_id] = destination
        return dict(destination)

    def set_transformation(self, source_id, destination_id, code):
        self._record("set_transformation", source_id, destination_id)
        self.transformations[destination_id] = code

    def get_destination_secret(self, source_id, destination_id):
        self._record("get_destination_secret", source_id, destination_id)
        return SIGNING_SECRET

    def delete_destination(self, source_id, destination_id):
        self._record("delete_destination", source_id, destination_id)
        self.destinations.pop(destination_id, None)
        return True

    def active_for(self, url):
        return [item for item in self.destinations.values() if item["url"] == url and not item["disabled"]]


@pytest.fixture(autouse=True)
def _no_ambient_svix_key(monkeypatch, settings):
    monkeypatch.delenv("SVIX_API_KEY", raising=False)
    settings.SVIX_API_KEY = ""
    settings.SITE_BASE_URL = "https://crm.example.org"
    settings.ENCRYPTION_KEY = "test-encryption-key"


@pytest.fixture
def stripe_type(db):
    return PaymentProcessorType.objects.create(name="Stripe Connect", title="Stripe Connect")


@pytest.fixture
def gocardless_type(db):
    return PaymentProcessorType.objects.create(name="GoCardless", title="GoCardless")


@pytest.fixture
def stripe_processor(stripe_type):
    return PaymentProcessor.objects.create(name="Stripe live", processor_type=stripe_type)


@pytest.fixture
def svix_settings(db):
    Setting.set_value("svix_api_key", "sk_test_key")
    Setting.set_value("svix_source_stripe_connect", "src_stripe_123")
    Setting.set_value("svix_source_gocardless", "src_gc_456")
    return SvixConfig.load()


@pytest.fixture
def fake_client():
    return FakeSvixClient()


@pytest.fixture
def remote_cleanup(monkeypatch):
    """Capture remote deletes triggered by the post-delete handler."""
    client = FakeSvixClient()
    monkeypatch.setattr("apps.svix.signals.client_for_cleanup", lambda: client)
    return client


@pytest.fixture
def svix_signature():
    def _sign(payload: bytes, msg_id: str = "msg_test", timestamp: str | None = None):
        timestamp = timestamp or str(int(time.time()))
        signed = f"{msg_id}.{timestamp}.".encode() + payload
        digest = hmac.new(SIGNING_KEY, signed, hashlib.sha256).digest()
        return {
            "svix-id": msg_id,
            "svix-timestamp": timestamp,
            "svix-signature": "v1," + base64.b64encode(digest).decode(),
        }

    return _sign
