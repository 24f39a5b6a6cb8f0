from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model with created/updated tracking."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Setting(TimeStampedModel):
    """Persisted site setting, looked up by name."""

    name = models.CharField(max_length=255, unique=True)
    value = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name

    @classmethod
    def get_value(cls, name: str) -> str | None:
        """Return the stored value, or None when unset or blank."""
        value = cls.objects.filter(name=name).values_list("value", flat=True).first()
        if value is None or not value.strip():
            return None
        return value.strip()

    @classmethod
    def set_value(cls, name: str, value: str | None) -> None:
        if value is None:
            cls.objects.filter(name=name).delete()
            return
        cls.objects.update_or_create(name=name, defaults={"value": value})
