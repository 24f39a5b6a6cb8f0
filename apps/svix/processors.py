"""Processor families that route their webhooks through Svix.

Each family has one shared Svix source (configured per site as a setting)
and a field in the provider payload that identifies which site an event
belongs to. Adding a family means adding a ``ProcessorFamily`` member and a
``PROCESSOR_CONFIGS`` entry.
"""

from __future__ import annotations

from dataclasses import dataclass

from django.db import models

FALLBACK_WEBHOOK_PATH = "webhooks/payment"


class ProcessorFamily(models.TextChoices):
    STRIPE_CONNECT = "Stripe Connect", "Stripe Connect"
    GOCARDLESS = "GoCardless", "GoCardless"


@dataclass(frozen=True, slots=True)
class ProcessorConfig:
    family: ProcessorFamily
    routing_field: str
    source_id_setting: str
    description_template: str
    slug: str

    @property
    def webhook_path(self) -> str:
        return f"webhooks/{self.slug}"

    def describe(self, routing_value: str) -> str:
        return self.description_template.replace("{value}", routing_value)


PROCESSOR_CONFIGS: dict[str, ProcessorConfig] = {
    ProcessorFamily.STRIPE_CONNECT.value: ProcessorConfig(
        family=ProcessorFamily.STRIPE_CONNECT,
        routing_field="account",
        source_id_setting="svix_source_stripe_connect",
        description_template="CRM Stripe - {value}",
        slug="stripe",
    ),
    ProcessorFamily.GOCARDLESS.value: ProcessorConfig(
        family=ProcessorFamily.GOCARDLESS,
        routing_field="links.organisation",
        source_id_setting="svix_source_gocardless",
        description_template="CRM GoCardless - {value}",
        slug="gocardless",
    ),
}


def get_processor_config(processor_type: str) -> ProcessorConfig | None:
    return PROCESSOR_CONFIGS.get(str(processor_type))


def get_processor_config_by_slug(slug: str) -> ProcessorConfig | None:
    for config in PROCESSOR_CONFIGS.values():
        if config.slug == slug:
            return config
    return None


def webhook_path_for(processor_type: str) -> str:
    config = get_processor_config(processor_type)
    return config.webhook_path if config else FALLBACK_WEBHOOK_PATH


def source_id_settings() -> list[str]:
    return [config.source_id_setting for config in PROCESSOR_CONFIGS.values()]
