"""Domain models for the svix module."""

from django.db import models

from apps.common.models import TimeStampedModel
from apps.common.security import decrypt_secret, encrypt_secret, is_encrypted_secret
from apps.processors.models import PaymentProcessor


class SvixDestination(TimeStampedModel):
    """A Svix Ingest destination routing one processor's webhooks to this site."""

    source_id = models.CharField(max_length=255)
    svix_destination_id = models.CharField(max_length=255, unique=True)
    signing_secret = models.TextField()
    payment_processor = models.ForeignKey(
        PaymentProcessor,
        on_delete=models.CASCADE,
        related_name="svix_destinations",
        db_index=True,
    )
    created_by = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        db_table = "svix_destination"
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:
        return f"{self.svix_destination_id} ({self.source_id})"

    def save(self, *args, **kwargs):
        if self.signing_secret and not is_encrypted_secret(self.signing_secret):
            self.signing_secret = encrypt_secret(self.signing_secret)
        super().save(*args, **kwargs)

    def get_signing_secret(self) -> str:
        return decrypt_secret(self.signing_secret)
