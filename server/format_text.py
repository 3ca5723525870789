"""Sanitize, validate and transport-encode formatted text before it is stored."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass

from format_parser import MARKER, lookup

DEFAULT_MAX_LINES = 2


class TransportError(ValueError):
    """Encoded text could not be decoded back into text."""


@dataclass(frozen=True)
class ValidationError:
    reason: str


def purify(raw: str) -> str:
    """Drop unknown codes and markers without a selector.

    An unknown alphanumeric selector goes with its marker; any other
    character after a marker is kept and only the marker is dropped. Lone
    surrogates become U+FFFD so the result always encodes as UTF-8. Every
    marker left in the result is followed by a known selector, so
    ``purify(purify(s)) == purify(s)``.
    """
    out: list[str] = []
    i = 0
    n = len(raw)
    while i < n:
        ch = raw[i]
        if ch != MARKER:
            out.append(_REPLACEMENT if _is_surrogate(ch) else ch)
            i += 1
            continue
        if i + 1 >= n:
            break
        nxt = raw[i + 1]
        if lookup(nxt) is not None:
            out.append(ch + nxt)
            i += 2
        elif nxt.isalnum():
            i += 2
        else:
            i += 1
    return "".join(out)


_REPLACEMENT = "\ufffd"


def _is_surrogate(ch: str) -> bool:
    return "\ud800" <= ch <= "\udfff"


def validate(
    text: str,
    max_lines: int | None = DEFAULT_MAX_LINES,
    allow_empty: bool = False,
) -> ValidationError | None:
    """Check caller-side constraints on already purified text."""
    if not allow_empty and not text:
        return ValidationError("Text must not be empty")
    if max_lines is not None and text.count("\n") + 1 > max_lines:
        return ValidationError(f"Text may have at most {max_lines} lines")
    return None


def transform_text(sanitized: str) -> bytes:
    return sanitized.encode("utf-8")


def encode(sanitized: str) -> str:
    """Encode text as base64 of its UTF-8 bytes (ASCII, no control chars)."""
    return base64.b64encode(transform_text(sanitized)).decode("ascii")


def decode(encoded: str) -> str:
    try:
        data = base64.b64decode(encoded.encode("ascii"), validate=True)
    except (UnicodeEncodeError, binascii.Error) as exc:
        raise TransportError(f"Invalid encoded text: {exc}") from exc
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise TransportError("Encoded text is not valid UTF-8") from exc
