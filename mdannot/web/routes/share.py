"""Store and retrieve shared Markdown documents."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request  # type: ignore[import-not-found]
from fastapi.responses import JSONResponse  # type: ignore[import-not-found]

from mdannot.share import generate_code, is_valid_code, normalize_code

from .. import utils

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/share")


@router.post("")
async def create_share(request: Request) -> JSONResponse:
    """Store the raw request body under a new share code.

    Args:
        request: Incoming request whose body is the Markdown text.

    Returns:
        The code, its share URL and expiry, or an error body.
    """

    raw = await request.body()

    # The size limit applies to the body as sent.
    if len(raw) > utils.MAX_SHARE_BYTES:
        return utils.error_response(
            "content_too_large", "Markdown content exceeds 500KB limit", 413
        )

    body = raw.decode("utf-8", errors="replace")
    if not body.strip():
        return utils.error_response(
            "invalid_request", "Request body must contain markdown", 400
        )

    store = utils.get_share_store()

    # Draw codes until an unused one turns up.
    code = None
    for _ in range(utils.MAX_CODE_ATTEMPTS):
        candidate = generate_code()
        if not store.exists(candidate):
            code = candidate
            break

    if code is None:
        logger.error("Failed to generate a unique share code")
        return utils.error_response(
            "server_error", "Failed to generate unique code", 500
        )

    record = store.put(code, body)
    logger.info("Created share %s (%d characters)", code, len(body))

    return JSONResponse(
        {
            "code": code,
            "url": f"{utils.FRONTEND_URL}?c={code}",
            "expiresAt": utils.iso_timestamp(record.expires_at),
        },
        status_code=201,
    )


@router.get("/{code}")
async def get_share(code: str) -> JSONResponse:
    """Return the document shared under ``code``.

    Args:
        code: Share code; letter case does not matter.

    Returns:
        The Markdown with creation and expiry times, or an error body.
    """

    normalized = normalize_code(code)
    if not is_valid_code(normalized):
        return utils.error_response(
            "invalid_code",
            "Share code must be 6 characters from [2-9A-HJKMNP-Z]",
            400,
        )

    record = utils.get_share_store().get(normalized)
    if record is None:
        return utils.error_response("not_found", "Share code not found", 404)

    return JSONResponse(
        {
            "markdown": record.markdown,
            "createdAt": utils.iso_timestamp(record.created_at),
            "expiresAt": utils.iso_timestamp(record.expires_at),
        }
    )
