"""Routing filter scripts evaluated by Svix for every inbound event.

A filter is a JavaScript function named ``handler`` that receives the decoded
webhook payload as ``input`` and returns ``null`` to drop the event or
``{ payload: input }`` to forward it unchanged to the destination.
"""

from __future__ import annotations

import re
from typing import Iterable, Mapping, Protocol, runtime_checkable

ACCEPT_WRAPPER = "return { payload: input };"
REJECT_VALUE = "null"

_SEGMENT_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_SIMPLE_ESCAPES = {
    "\\": "\\\\",
    "'": "\\'",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}
_SIMPLE_UNESCAPES = {"\\": "\\", "'": "'", "n": "\n", "r": "\r", "t": "\t"}


@runtime_checkable
class FilterStrategy(Protocol):
    """Anything that can render itself as a Svix filter script."""

    def build(self) -> str:
        ...


def escape_js_string(value: str) -> str:
    """Escape ``value`` for use inside a single-quoted JavaScript literal."""
    parts: list[str] = []
    for char in value:
        if char in _SIMPLE_ESCAPES:
            parts.append(_SIMPLE_ESCAPES[char])
        elif ord(char) < 0x20 or ord(char) == 0x7F or char in "\u2028\u2029":
            parts.append(f"\\u{ord(char):04x}")
        else:
            parts.append(char)
    return "".join(parts)


def unescape_js_string(escaped: str) -> str:
    """Reverse :func:`escape_js_string`."""
    result: list[str] = []
    index = 0
    length = len(escaped)
    while index < length:
        char = escaped[index]
        if char != "\\":
            result.append(char)
            index += 1
            continue
        if index + 1 >= length:
            raise ValueError("Dangling escape at end of literal")
        code = escaped[index + 1]
        if code in _SIMPLE_UNESCAPES:
            result.append(_SIMPLE_UNESCAPES[code])
            index += 2
        elif code == "u":
            digits = escaped[index + 2:index + 6]
            if len(digits) != 4:
                raise ValueError(f"Truncated unicode escape at offset {index}")
            result.append(chr(int(digits, 16)))
            index += 6
        else:
            raise ValueError(f"Unknown escape sequence \\{code} at offset {index}")
    return "".join(result)


def extract_literals(script: str) -> list[str]:
    """Return the raw (still escaped) content of every single-quoted literal."""
    literals: list[str] = []
    index = 0
    length = len(script)
    while index < length:
        if script[index] != "'":
            index += 1
            continue
        start = index + 1
        index = start
        while index < length and script[index] != "'":
            index += 2 if script[index] == "\\" else 1
        if index >= length:
            raise ValueError("Unterminated string literal in filter script")
        literals.append(script[start:index])
        index += 1
    return literals


def extract_literal(script: str) -> str:
    literals = extract_literals(script)
    if not literals:
        raise ValueError("Filter script contains no string literal")
    return literals[0]


def validate_field_path(field: str) -> str:
    segments = field.split(".") if field else []
    if not segments or not all(_SEGMENT_RE.match(segment) for segment in segments):
        raise ValueError(f"Invalid routing field path: {field!r}")
    return field


def _render(conditions: Iterable[tuple[str, str]]) -> str:
    checks = [
        f"    if (input.{field} !== '{escape_js_string(value)}') return {REJECT_VALUE};"
        for field, value in conditions
    ]
    lines = ["function handler(input) {", *checks, f"    {ACCEPT_WRAPPER}", "}"]
    return "\n".join(lines)


class SimpleFieldFilter:
    """Forward events whose ``input.<field>`` equals ``value``.

    ``field`` may be a nested path such as ``links.organisation``.
    """

    def __init__(self, field: str, value: str) -> None:
        self.field = validate_field_path(field)
        self.value = str(value)

    def build(self) -> str:
        return _render([(self.field, self.value)])


class MultiFieldFilter:
    """Forward events only when every field matches its expected value."""

    def __init__(self, conditions: Mapping[str, str]) -> None:
        if not conditions:
            raise ValueError("MultiFieldFilter requires at least one condition")
        self.conditions = [
            (validate_field_path(field), str(value)) for field, value in conditions.items()
        ]

    def build(self) -> str:
        return _render(self.conditions)


def build_routing_filter(field: str, value: str) -> str:
    return SimpleFieldFilter(field, value).build()
