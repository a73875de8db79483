"""HTTP client for the share service."""

from __future__ import annotations

import os
from typing import Any

import requests  # type: ignore[import-untyped]

from .codes import normalize_code
from .errors import ShareError, error_from_response, network_error

# Base URL of the share service.
API_URL = os.environ.get("MDANNOT_API_URL", "http://localhost:8787")

REQUEST_TIMEOUT = 30


def _decode_json(response: Any) -> Any:  # noqa: ANN401
    """Return the JSON body of ``response`` or ``None`` if it has none."""

    try:
        return response.json()
    except ValueError:
        return None


def create_share(markdown: str, api_url: str | None = None) -> dict[str, Any]:
    """Upload ``markdown`` and return the created share.

    Args:
        markdown: Document text to share.
        api_url: Base URL of the service; defaults to ``API_URL``.

    Returns:
        Mapping with ``code``, ``url`` and ``expiresAt``.

    Throws:
        ShareError: When the service is unreachable or rejects the text.
    """

    url = f"{api_url or API_URL}/api/share"
    try:
        response = requests.post(
            url,
            data=markdown.encode("utf-8"),
            headers={"Content-Type": "text/plain; charset=utf-8"},
            timeout=REQUEST_TIMEOUT,
        )
    except requests.RequestException as exc:
        raise network_error("create") from exc

    data = _decode_json(response)
    if not response.ok:
        raise error_from_response(data, response.status_code, "create")

    if not isinstance(data, dict) or not isinstance(data.get("code"), str):
        raise ShareError(
            "server_error", "Unexpected response from share service."
        )
    return data


def fetch_shared_content(
    code: str, api_url: str | None = None
) -> dict[str, str]:
    """Download the document shared under ``code``.

    Args:
        code: Share code, in any letter case.
        api_url: Base URL of the service; defaults to ``API_URL``.

    Returns:
        Mapping with the ``markdown`` text and the normalized
        ``shareCode``.

    Throws:
        ShareError: When the service is unreachable or the code unknown.
    """

    code = normalize_code(code)
    url = f"{api_url or API_URL}/api/share/{code}"
    try:
        response = requests.get(url, timeout=REQUEST_TIMEOUT)
    except requests.RequestException as exc:
        raise network_error("load") from exc

    data = _decode_json(response)
    if not response.ok:
        raise error_from_response(data, response.status_code, "load")

    markdown = data.get("markdown") if isinstance(data, dict) else None
    if not markdown or not isinstance(markdown, str):
        raise ShareError(
            "server_error", "Unexpected response from share service."
        )

    return {"markdown": markdown, "shareCode": code}
