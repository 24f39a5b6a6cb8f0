"""Lookup and persistence of Svix destination records."""

from __future__ import annotations

from django.db.models import QuerySet

from apps.svix.models import SvixDestination


class DestinationRegistry:
    """Storage-facing operations on :class:`SvixDestination` rows."""

    def create(
        self,
        *,
        source_id: str,
        svix_destination_id: str,
        signing_secret: str,
        payment_processor_id: int,
        created_by: str = "",
    ) -> SvixDestination:
        return SvixDestination.objects.create(
            source_id=source_id,
            svix_destination_id=svix_destination_id,
            signing_secret=signing_secret,
            payment_processor_id=payment_processor_id,
            created_by=created_by or "",
        )

    def get_by_processor_type(self, processor_type: str, active_only: bool = True) -> SvixDestination | None:
        """Newest destination whose processor belongs to ``processor_type``.

        Test and live processors are both considered.
        """
        queryset = SvixDestination.objects.select_related(
            "payment_processor", "payment_processor__processor_type"
        ).filter(payment_processor__processor_type__name=processor_type)
        if active_only:
            queryset = queryset.filter(payment_processor__is_active=True)
        return queryset.order_by("-created_at", "-id").first()

    def get_by_processor_id(self, payment_processor_id: int) -> SvixDestination | None:
        return (
            SvixDestination.objects.filter(payment_processor_id=payment_processor_id)
            .order_by("-created_at", "-id")
            .first()
        )

    def get(self, destination_pk: int) -> SvixDestination | None:
        return SvixDestination.objects.filter(pk=destination_pk).first()

    def list(self, payment_processor_id: int | None = None) -> QuerySet[SvixDestination]:
        queryset = SvixDestination.objects.select_related(
            "payment_processor", "payment_processor__processor_type"
        )
        if payment_processor_id is not None:
            queryset = queryset.filter(payment_processor_id=payment_processor_id)
        return queryset

    def delete_by_id(self, destination_pk: int) -> bool:
        """Delete one row; a missing id is a no-op returning False."""
        destination = self.get(destination_pk)
        if destination is None:
            return False
        destination.delete()
        return True
