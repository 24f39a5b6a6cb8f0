"""Request middleware exposing the acting user to service code."""

from __future__ import annotations

from contextvars import ContextVar
from typing import Callable, Optional

_current_user: ContextVar[Optional[object]] = ContextVar("current_user", default=None)


class CurrentUserMiddleware:
    """Record the authenticated user for the duration of a request."""

    def __init__(self, get_response: Callable):
        self.get_response = get_response

    def __call__(self, request):
        user = getattr(request, "user", None)
        token = _current_user.set(user if user is not None and user.is_authenticated else None)
        try:
            return self.get_response(request)
        finally:
            _current_user.reset(token)


def get_current_user():
    return _current_user.get()


def set_current_user(user) -> None:
    """Bind ``user`` outside the request cycle (management commands, tests)."""
    _current_user.set(user)


def current_identity() -> str:
    """Best label for the acting user: username, then email, then empty."""
    user = get_current_user()
    if user is None:
        return ""
    return getattr(user, "get_username", lambda: "")() or getattr(user, "email", "") or ""
