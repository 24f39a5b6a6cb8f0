from django.urls import path

from apps.svix.api import (
    ConfigurationStatusView,
    DestinationDetailView,
    DestinationListView,
    RegisterDestinationView,
    VerifyWebhookView,
)

urlpatterns = [
    path("destinations", DestinationListView.as_view(), name="svix-destination-list"),
    path("destinations/register", RegisterDestinationView.as_view(), name="svix-destination-register"),
    path("destinations/<int:pk>", DestinationDetailView.as_view(), name="svix-destination-detail"),
    path("verify", VerifyWebhookView.as_view(), name="svix-verify"),
    path("status", ConfigurationStatusView.as_view(), name="svix-status"),
]
