import pytest
from django.db import IntegrityError, transaction

from apps.processors.models import PaymentProcessor
from apps.svix.models import SvixDestination
from apps.svix.registry import DestinationRegistry
from apps.svix.services import SvixWebhookService
from tests.conftest import SIGNING_SECRET

pytestmark = pytest.mark.django_db


def _destination(processor, destination_id="ep_1", source_id="src_stripe_123"):
    return SvixDestination.objects.create(
        source_id=source_id,
        svix_destination_id=destination_id,
        signing_secret=SIGNING_SECRET,
        payment_processor=processor,
    )


def test_deleting_processor_cascades_and_cleans_remote(
    stripe_processor, remote_cleanup, django_capture_on_commit_callbacks
):
    _destination(stripe_processor)

    with django_capture_on_commit_callbacks(execute=True):
        stripe_processor.delete()

    assert SvixDestination.objects.count() == 0
    assert remote_cleanup.calls == [("delete_destination", "src_stripe_123", "ep_1")]


def test_remote_delete_waits_for_commit(stripe_processor, remote_cleanup, django_capture_on_commit_callbacks):
    _destination(stripe_processor)

    with django_capture_on_commit_callbacks() as callbacks:
        stripe_processor.delete()

    assert len(callbacks) == 1
    assert remote_cleanup.calls == []


def test_rolled_back_delete_keeps_remote(stripe_processor, remote_cleanup, django_capture_on_commit_callbacks):
    _destination(stripe_processor)

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        with pytest.raises(IntegrityError), transaction.atomic():
            stripe_processor.delete()
            raise IntegrityError("abort")

    assert callbacks == []
    assert remote_cleanup.calls == []
    assert SvixDestination.objects.filter(svix_destination_id="ep_1").exists()


def test_delete_by_missing_id_is_noop(remote_cleanup):
    assert DestinationRegistry().delete_by_id(9999) is False
    assert remote_cleanup.calls == []


def test_service_delete_destination(
    svix_settings, stripe_processor, remote_cleanup, django_capture_on_commit_callbacks
):
    _destination(stripe_processor)
    service = SvixWebhookService(config=svix_settings)

    with django_capture_on_commit_callbacks(execute=True):
        assert service.delete_destination(stripe_processor.id) is True
    assert SvixDestination.objects.count() == 0
    assert remote_cleanup.call_names() == ["delete_destination"]


def test_service_delete_without_destination(svix_settings, stripe_processor, remote_cleanup):
    assert SvixWebhookService(config=svix_settings).delete_destination(stripe_processor.id) is False
    assert remote_cleanup.calls == []


def test_remote_failure_does_not_block_local_delete(
    stripe_processor, remote_cleanup, django_capture_on_commit_callbacks
):
    remote_cleanup.fail_on.add("delete_destination")
    destination = _destination(stripe_processor)

    with django_capture_on_commit_callbacks(execute=True):
        destination.delete()

    assert SvixDestination.objects.count() == 0
    assert remote_cleanup.call_names() == ["delete_destination"]


def test_missing_api_key_does_not_block_local_delete(stripe_processor, django_capture_on_commit_callbacks):
    destination = _destination(stripe_processor)

    with django_capture_on_commit_callbacks(execute=True):
        destination.delete()

    assert not SvixDestination.objects.filter(svix_destination_id="ep_1").exists()


def test_rows_without_source_are_skipped(stripe_processor, remote_cleanup):
    _destination(stripe_processor, source_id="").delete()
    assert remote_cleanup.calls == []


def test_remote_cleanup_can_be_disabled(settings, stripe_processor, remote_cleanup):
    settings.SVIX_DELETE_REMOTE_ON_DELETE = False
    _destination(stripe_processor).delete()
    assert remote_cleanup.calls == []


def test_registry_lookups(stripe_processor, gocardless_type, remote_cleanup):
    other = PaymentProcessor.objects.create(name="GC", processor_type=gocardless_type)
    stripe_row = _destination(stripe_processor, "ep_stripe")
    _destination(other, "ep_gc", "src_gc_456")
    registry = DestinationRegistry()

    assert registry.get_by_processor_id(stripe_processor.id) == stripe_row
    assert registry.get_by_processor_type("Stripe Connect") == stripe_row
    assert registry.get_by_processor_type("GoCardless").svix_destination_id == "ep_gc"

    other.is_active = False
    other.save(update_fields=["is_active", "updated_at"])
    assert registry.get_by_processor_type("GoCardless") is None
    assert registry.get_by_processor_type("GoCardless", active_only=False).svix_destination_id == "ep_gc"
    assert [row.svix_destination_id for row in registry.list(stripe_processor.id)] == ["ep_stripe"]


def test_destination_id_is_unique(stripe_processor):
    _destination(stripe_processor)
    with pytest.raises(IntegrityError), transaction.atomic():
        _destination(stripe_processor)
