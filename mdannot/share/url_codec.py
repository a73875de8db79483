"""Carry Markdown inside URLs as URL-safe base64."""

from __future__ import annotations

import base64
import binascii
import re
from urllib.parse import unquote

_BASE64_RE = re.compile(r"^[A-Za-z0-9+/]+={0,2}$")


def encode_markdown_for_url(markdown: str) -> str:
    """Return ``markdown`` as unpadded URL-safe base64 of its UTF-8 bytes."""

    encoded = base64.urlsafe_b64encode(markdown.encode("utf-8")).decode()
    return encoded.rstrip("=")


def decode_markdown_from_url(param: str | None) -> str:
    """Decode a URL parameter produced by ``encode_markdown_for_url``.

    Values that are not base64, or whose bytes are not UTF-8, are taken
    to be plain percent-encoded Markdown and returned as such.

    Args:
        param: Raw query parameter value.

    Returns:
        The decoded Markdown.
    """

    if not param:
        return ""

    decoded = unquote(param)

    # Form encoding turns ``+`` into spaces; undo that first.
    standard = decoded.replace(" ", "+").replace("-", "+").replace("_", "/")
    if not _BASE64_RE.match(standard):
        return decoded

    remainder = len(standard) % 4
    if remainder == 1:
        return decoded

    padded = standard + "=" * ((4 - remainder) % 4)
    try:
        return base64.b64decode(padded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return decoded
