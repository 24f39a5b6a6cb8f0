from django.apps import AppConfig
from django.db.models.signals import post_delete


class SvixAppConfig(AppConfig):
    name = "apps.svix"
    label = "svix"
    verbose_name = "Svix webhook routing"

    def ready(self) -> None:
        from apps.svix.models import SvixDestination
        from apps.svix.signals import delete_remote_destination

        post_delete.connect(
            delete_remote_destination,
            sender=SvixDestination,
            dispatch_uid="svix.delete_remote_destination",
        )
