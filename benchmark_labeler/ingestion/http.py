"""
Shared HTTP plumbing for the API clients.

The endpoints report failures as JSON error objects in the body, so the
clients read the body regardless of HTTP status and let the pagination
layer decide what an error means.  Auth and proxy pages sometimes come
back as an HTML document instead of JSON; ``decode_json_body()`` turns
those into an empty successful response (``{}``).
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

_HTML_MARKERS = ("<!doctype html", "<html")


def is_html_document(text: str) -> bool:
    """True if ``text`` starts with an HTML document marker."""
    return text.lstrip()[:20].lower().startswith(_HTML_MARKERS)


def decode_json_body(text: str) -> dict[str, Any]:
    """Decode a response body into a dict.

    Returns:
        ``{}`` for an HTML interstitial or an empty body, otherwise the
        parsed JSON object.

    Raises:
        json.JSONDecodeError: The body is neither HTML nor valid JSON.
    """
    if not text.strip():
        return {}
    if is_html_document(text):
        logger.warning("Received an HTML page instead of JSON; treating as empty response.")
        return {}
    data = json.loads(text)
    return data if isinstance(data, dict) else {"results": data}


def build_http_client(
    headers: dict[str, str],
    timeout_seconds: float,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    """Create an ``httpx.Client`` with JSON content type and the given headers.

    ``transport`` lets tests plug in ``httpx.MockTransport``.
    """
    return httpx.Client(
        headers={"Content-Type": "application/json", **headers},
        timeout=timeout_seconds,
        transport=transport,
    )
