"""Svix configuration resolved from persisted settings and the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from django.conf import settings

from apps.common.models import Setting
from apps.svix.processors import source_id_settings

API_KEY_SETTING = "svix_api_key"
API_KEY_ENV = "SVIX_API_KEY"


@dataclass(frozen=True)
class SvixConfig:
    api_key: str = ""
    api_base: str = "https://api.svix.com"
    timeout: int = 30
    site_base_url: str = "http://localhost:8000"
    source_ids: dict[str, str] = field(default_factory=dict)

    @classmethod
    def load(cls) -> "SvixConfig":
        """Snapshot the current configuration.

        The persisted ``svix_api_key`` setting wins over the ``SVIX_API_KEY``
        environment variable. Source ids come from persisted settings only.
        """
        source_ids = {}
        for name in source_id_settings():
            value = Setting.get_value(name)
            if value:
                source_ids[name] = value
        return cls(
            api_key=resolve_api_key(),
            api_base=getattr(settings, "SVIX_API_BASE", "https://api.svix.com").rstrip("/"),
            timeout=int(getattr(settings, "SVIX_HTTP_TIMEOUT", 30)),
            site_base_url=getattr(settings, "SITE_BASE_URL", "http://localhost:8000"),
            source_ids=source_ids,
        )

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    def source_id(self, setting_name: str) -> str | None:
        return self.source_ids.get(setting_name) or None

    def absolute_url(self, path: str) -> str:
        return f"{self.site_base_url.rstrip('/')}/{path.lstrip('/')}"


def resolve_api_key() -> str:
    key = Setting.get_value(API_KEY_SETTING)
    if not key:
        key = os.environ.get(API_KEY_ENV, "").strip()
    if not key:
        key = (getattr(settings, "SVIX_API_KEY", "") or "").strip()
    return key
