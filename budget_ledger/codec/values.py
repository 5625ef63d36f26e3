"""
Scalar value codec for the settings frontmatter.

Converts between the textual form of a value (`true`, `12`, `42.50`,
`"Food"`, `["USD", "EUR"]`) and typed Python values.

Numbers with a fractional part decode to `Decimal` (never float) so that
`42.50` is written back as `42.50`.
"""

import re
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

_INT_RE = re.compile(r"^-?\d+$")
_DECIMAL_RE = re.compile(r"^-?\d+\.\d*$")


def parse_value(text: str, as_string: bool = False) -> Any:
    """
    Decode one scalar (or inline list) value.

    Unknown shapes come back as the trimmed plain string. With `as_string`
    only surrounding quotes are removed, so an id like `2024` stays a string.
    """
    trimmed = text.strip()

    if as_string:
        return _unquote(trimmed)

    if trimmed == "true":
        return True
    if trimmed == "false":
        return False

    if _INT_RE.match(trimmed):
        return int(trimmed)
    if _DECIMAL_RE.match(trimmed):
        try:
            return Decimal(trimmed)
        except InvalidOperation:
            return trimmed

    if _is_quoted(trimmed):
        return trimmed[1:-1]

    if trimmed.startswith("[") and trimmed.endswith("]"):
        inner = trimmed[1:-1].strip()
        if not inner:
            return []
        return [parse_value(item) for item in _split_inline_list(inner)]

    return trimmed


def _is_quoted(text: str) -> bool:
    return len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'"


def _unquote(text: str) -> str:
    return text[1:-1] if _is_quoted(text) else text


def _split_inline_list(inner: str) -> list[str]:
    """Split on commas that are not inside quotes."""
    items: list[str] = []
    current = []
    quote = None
    for char in inner:
        if quote:
            current.append(char)
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
            current.append(char)
        elif char == ",":
            items.append("".join(current))
            current = []
        else:
            current.append(char)
    items.append("".join(current))
    return [item for item in items if item.strip()]


def format_value(value: Any, quote: bool = False) -> str:
    """
    Encode a value for the frontmatter.

    Strings are written bare unless `quote` is set; lists are always inline
    with quoted items.
    """
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, Decimal)):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(format_value(item, quote=True) for item in value) + "]"
    if value is None:
        return ""
    text = str(value)
    return f'"{text}"' if quote else text
