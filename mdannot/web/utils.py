"""Utility helpers for web routes."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Any

from fastapi.responses import JSONResponse  # type: ignore[import-not-found]

from mdannot.anchoring import Annotation
from mdannot.anchoring.types import AnnotationList
from mdannot.share import MemoryShareStore

JSONDict = dict[str, Any]

# Address of the front end, used to build share links.
FRONTEND_URL = os.environ.get("MDANNOT_FRONTEND_URL", "http://localhost:5173")

# Largest accepted share body, in UTF-8 bytes.
MAX_SHARE_BYTES = 500 * 1024

# Maximum number of attempts at drawing an unused share code.
MAX_CODE_ATTEMPTS = 3

# Process-wide share store.
SHARE_STORE = MemoryShareStore()


def get_share_store() -> MemoryShareStore:
    """Return the share store used by the routes."""

    return SHARE_STORE


def error_response(code: str, message: str, status_code: int) -> JSONResponse:
    """Return the JSON body used for every share service error.

    Args:
        code: Machine-readable error code.
        message: Human readable explanation.
        status_code: HTTP status of the response.

    Returns:
        Response carrying ``{"error": code, "message": message}``.
    """

    return JSONResponse(
        {"error": code, "message": message}, status_code=status_code
    )


def iso_timestamp(seconds: float) -> str:
    """Format epoch ``seconds`` as an ISO 8601 UTC timestamp."""

    moment = datetime.fromtimestamp(seconds, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def annotations_from_payload(items: list[JSONDict]) -> AnnotationList:
    """Build annotations from request items in the portable format."""

    return [Annotation.from_dict(item) for item in items]
