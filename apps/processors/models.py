"""Payment processors that own Svix destinations."""

from django.db import models

from apps.common.models import TimeStampedModel


class PaymentProcessorType(TimeStampedModel):
    """A processor family such as "Stripe Connect" or "GoCardless"."""

    name = models.CharField(max_length=128, unique=True)
    title = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.title or self.name


class PaymentProcessor(TimeStampedModel):
    """A configured processor instance, live or test."""

    name = models.CharField(max_length=255)
    processor_type = models.ForeignKey(
        PaymentProcessorType, on_delete=models.PROTECT, related_name="processors"
    )
    is_active = models.BooleanField(default=True)
    is_test = models.BooleanField(default=False)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        mode = "test" if self.is_test else "live"
        return f"{self.name} ({self.processor_type.name}, {mode})"
