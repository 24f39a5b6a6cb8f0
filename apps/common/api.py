"""Common DRF helpers shared by the plugin's API views."""

from __future__ import annotations

from typing import Any, Dict, Iterable

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler


def ok_response(data: Dict[str, Any] | Iterable[Any], status_code: int = status.HTTP_200_OK) -> Response:
    """Return a standardized success envelope."""

    return Response({"ok": True, "data": data}, status=status_code)


def error_response(message: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> Response:
    """Return a standardized error envelope."""

    return Response({"ok": False, "error": message}, status=status_code)


def _first_error(data: Any) -> str:
    if isinstance(data, dict):
        if "detail" in data:
            return str(data["detail"])
        for field, errors in data.items():
            return f"{field}: {_first_error(errors)}"
        return "ERROR"
    if isinstance(data, (list, tuple)) and data:
        return _first_error(data[0])
    return str(data) if data else "ERROR"


def exception_handler(exc, context):
    """Ensure DRF errors follow the {ok:false,error:...} contract.

    Serializer errors collapse to the first offending field, e.g.
    ``"routing_value: This field is required."``.
    """

    response = drf_exception_handler(exc, context)
    if response is None:
        return response
    response.data = {"ok": False, "error": _first_error(response.data)}
    return response
