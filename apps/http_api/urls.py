from django.urls import include, path

from apps.svix.views import processor_webhook

urlpatterns = [
    path("webhooks/<slug:slug>", processor_webhook, name="svix-processor-webhook"),
    path("svix/", include("apps.svix.urls")),
]
