import pytest

from apps.common.models import Setting
from apps.svix.config import SvixConfig
from apps.svix.services import SvixWebhookService

pytestmark = pytest.mark.django_db


def test_persisted_setting_wins_over_environment(monkeypatch):
    Setting.set_value("svix_api_key", "key_from_settings")
    monkeypatch.setenv("SVIX_API_KEY", "key_from_env")

    assert SvixConfig.load().api_key == "key_from_settings"


def test_environment_used_as_fallback(monkeypatch):
    monkeypatch.setenv("SVIX_API_KEY", "key_from_env")

    assert SvixConfig.load().api_key == "key_from_env"


def test_blank_setting_falls_through(monkeypatch):
    Setting.set_value("svix_api_key", "   ")
    monkeypatch.setenv("SVIX_API_KEY", "key_from_env")

    assert SvixConfig.load().api_key == "key_from_env"


def test_source_ids_only_from_persisted_settings(monkeypatch):
    monkeypatch.setenv("svix_source_stripe_connect", "src_env")
    Setting.set_value("svix_source_gocardless", "src_gc")

    config = SvixConfig.load()
    assert config.source_id("svix_source_stripe_connect") is None
    assert config.source_id("svix_source_gocardless") == "src_gc"


def test_configuration_status():
    assert SvixWebhookService(config=SvixConfig()).get_configuration_status() == {
        "configured": False,
        "message": "Svix API key is not configured.",
    }
    service = SvixWebhookService(config=SvixConfig(api_key="sk"))
    assert service.is_configured() is True
    assert service.get_configuration_status()["message"] == "Svix is configured."


def test_absolute_url_joins_cleanly():
    config = SvixConfig(site_base_url="https://crm.example.org/")
    assert config.absolute_url("/webhooks/stripe") == "https://crm.example.org/webhooks/stripe"
