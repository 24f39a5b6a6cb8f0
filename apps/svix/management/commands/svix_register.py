"""Management command to register a Svix destination for a payment processor."""

from django.core.exceptions import ImproperlyConfigured
from django.core.management.base import BaseCommand, CommandError

from apps.processors.models import PaymentProcessor
from apps.svix.client import SvixApiError
from apps.svix.services import SvixServiceError, SvixWebhookService


class Command(BaseCommand):
    help = "Register (or re-register) the Svix destination for a payment processor."

    def add_arguments(self, parser):
        parser.add_argument("payment_processor_id", type=int, help="Payment processor primary key.")
        parser.add_argument("routing_value", help="Value matched in the inbound payload, e.g. acct_123.")
        parser.add_argument(
            "--processor-type",
            help="Processor family name. Defaults to the processor's own type.",
        )
        parser.add_argument("--created-by", default="manage.py", help="Identity recorded on the row.")

    def handle(self, *args, **options):
        processor = (
            PaymentProcessor.objects.select_related("processor_type")
            .filter(pk=options["payment_processor_id"])
            .first()
        )
        if processor is None:
            raise CommandError(f"Payment processor not found: {options['payment_processor_id']}")

        processor_type = options.get("processor_type") or processor.processor_type.name
        try:
            destination_id = SvixWebhookService().register_destination(
                processor_type,
                processor.pk,
                options["routing_value"],
                created_by=options["created_by"],
            )
        except (SvixServiceError, SvixApiError, ImproperlyConfigured) as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(self.style.SUCCESS(f"Registered Svix destination {destination_id}"))
