"""Share service errors and their user-facing messages."""

from __future__ import annotations

from typing import Any

# Messages tailored to the operation the user attempted.
CONTEXT_MESSAGES: dict[str, dict[str, str]] = {
    "create": {
        "invalid_request": "Add some markdown before creating a share.",
        "content_too_large": (
            "This document is too large to share (max 500KB). "
            "Try trimming it or use a Share URL instead."
        ),
        "server_error": (
            "The share service had a problem creating your code. "
            "Please try again."
        ),
    },
    "load": {
        "invalid_code": (
            "That share code looks invalid. "
            "Use a 6-character code like X7KM3P."
        ),
        "not_found": (
            "We couldn't find that share code. "
            "It may have expired after 7 days."
        ),
        "server_error": (
            "The share service is having trouble loading that code. "
            "Please try again."
        ),
    },
}

BASE_MESSAGES = {
    "network": "Network error. Check your connection and try again.",
    "server_error": "The share service is having trouble. Please try again.",
    "unknown": "Something went wrong. Please try again.",
}


class ShareError(Exception):
    """Failure talking to the share service.

    Attributes:
        code: Machine-readable error code such as ``not_found``.
        message: Message suitable for showing to the user.
    """

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


def share_error_message(code: str, context: str | None = None) -> str:
    """Return the message for ``code`` in the given context.

    Args:
        code: Error code reported by the service.
        context: Either ``"create"`` or ``"load"``.

    Returns:
        The contextual message, the generic one, or a catch-all.
    """

    if context and code in CONTEXT_MESSAGES.get(context, {}):
        return CONTEXT_MESSAGES[context][code]
    return BASE_MESSAGES.get(code, BASE_MESSAGES["unknown"])


def error_from_response(
    data: Any,  # noqa: ANN401
    status: int,
    context: str | None = None,
) -> ShareError:
    """Build the error for an unsuccessful service response.

    Args:
        data: Decoded JSON body, or ``None`` when it was not JSON.
        status: HTTP status code.
        context: Operation that failed.

    Returns:
        ``ShareError`` carrying the reported or inferred code.
    """

    code = None
    if isinstance(data, dict):
        code = data.get("error") or data.get("code")

    if not code:
        code = "server_error" if status >= 500 else "unknown"
    return ShareError(code, share_error_message(code, context))


def network_error(context: str | None = None) -> ShareError:
    return ShareError("network", share_error_message("network", context))
