"""Utility helpers shared across apps."""

from __future__ import annotations

from typing import Any, Dict

from django.http import JsonResponse


def minimal_ok(**extra: Any) -> JsonResponse:
    """Return the default JSON envelope."""
    payload: Dict[str, Any] = {"ok": True}
    payload.update(extra)
    return JsonResponse(payload)


def error_json(message: str, status: int = 400) -> JsonResponse:
    return JsonResponse({"ok": False, "error": message}, status=status)
