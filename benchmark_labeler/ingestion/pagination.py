"""
Cursor-driven pagination with a bounded, per-endpoint retry policy.

Every paginated endpoint used here answers a request with either::

    {"<items_key>": [...], "nextPageToken": "...", "totalResultsCount": N}

or an error object::

    {"error": {"code": 500, "message": "..."}}

``fetch_all_pages()`` walks the cursor from the first page until no
``nextPageToken`` is returned, concatenating each page's items in arrival
order.  The transport is passed in as a ``fetch_page(page_token)`` callable,
so the same loop serves the report search, the product listing and the Ads
search.

Error handling per ``RetryPolicy``
----------------------------------
- Reported code in ``retryable_codes``: re-request the **same** page token
  immediately (no backoff).  The retry budget is ``max_retries`` for the
  whole fetch; spending it raises ``RetriesExhaustedError`` with the number
  of rows accumulated so far.
- Any other code: ``on_permanent_error="stop"`` logs and returns the rows
  accumulated so far; ``"raise"`` raises ``PermanentApiError``.

Each call site chooses its policy explicitly in ``ApiConfig``:

    report_retry   3 retries on 500, stop on other errors
    listing_retry  0 retries on 500, stop on other errors
    ads_retry      no retryable codes, raise on any error
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from benchmark_labeler.config import RetryPolicy

logger = logging.getLogger(__name__)

PageFetcher = Callable[[Optional[str]], dict[str, Any]]


# ── Exceptions ────────────────────────────────────────────────────────────────


class ApiError(RuntimeError):
    """An error object reported by an endpoint.

    Attributes:
        code:    Numeric error code from the response (``None`` if absent).
        message: Error message from the response.
    """

    def __init__(self, code: Optional[int], message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"Error({code}): {message}")


class TransientServerError(ApiError):
    """A reported error whose code the call site's policy treats as retryable."""


class RetriesExhaustedError(TransientServerError):
    """Retryable errors outlasted the retry budget; the run cannot continue.

    Attributes:
        partial_count: Rows accumulated before giving up (diagnostics only —
                       those rows are discarded).
        attempts:      Retries issued before giving up.
    """

    def __init__(
        self, code: Optional[int], message: str, partial_count: int, attempts: int
    ) -> None:
        super().__init__(code, message)
        self.partial_count = partial_count
        self.attempts = attempts
        self.args = (
            f"Internal error getting report after {attempts} retries "
            f"({partial_count} rows fetched so far). Please try again later. "
            f"Last error({code}): {message}",
        )


class PermanentApiError(ApiError):
    """A non-retryable reported error at a call site that propagates errors."""


# ── Result type ───────────────────────────────────────────────────────────────


@dataclass
class FetchResult:
    """Everything a paginated fetch returned.

    Attributes:
        records:        All page items concatenated in arrival order.
        total_count:    ``totalResultsCount`` from the last page, if reported.
        pages:          Successful page responses received.
        retry_attempts: Retries issued across the whole fetch.
        stopped_early:  True when a permanent error ended the loop under
                        ``on_permanent_error="stop"``.
        stopped_on_error: Code of that error, ``None`` when it had none.
    """

    records:          list[dict[str, Any]] = field(default_factory=list)
    total_count:      Optional[int] = None
    pages:            int = 0
    retry_attempts:   int = 0
    stopped_early:    bool = False
    stopped_on_error: Optional[int] = None

    def __len__(self) -> int:
        return len(self.records)


# ── Fetch loop ────────────────────────────────────────────────────────────────


def _error_fields(error: Any) -> tuple[Optional[int], str]:
    """Pull ``(code, message)`` out of an endpoint error object."""
    if isinstance(error, dict):
        code = error.get("code")
        try:
            code = int(code) if code is not None else None
        except (TypeError, ValueError):
            code = None
        return code, str(error.get("message", ""))
    return None, str(error)


def fetch_all_pages(
    fetch_page: PageFetcher,
    policy: RetryPolicy,
    items_key: str = "results",
    count_only: bool = False,
    source: str = "report",
) -> FetchResult:
    """Fetch every page of a cursor-paginated endpoint.

    Args:
        fetch_page: Called with the current page token (``None`` for the
            first page); returns the decoded response dict.
        policy:     Retry/propagation policy for this call site.
        items_key:  Response key holding the page's items
            (``"results"`` or ``"resources"``).
        count_only: Stop after the first successful page; the caller wants
            ``total_count`` rather than every row.
        source:     Label used in log lines.

    Returns:
        ``FetchResult`` with all accumulated records.

    Raises:
        RetriesExhaustedError: Retry budget spent on retryable errors.
        PermanentApiError: Non-retryable error under ``on_permanent_error="raise"``.
    """
    result = FetchResult()
    page_token: Optional[str] = None

    while True:
        response = fetch_page(page_token)

        if response.get("error") is not None:
            code, message = _error_fields(response["error"])
            logger.warning("%s: Error(%s): %s", source, code, message)

            if code in policy.retryable_codes:
                if result.retry_attempts < policy.max_retries:
                    result.retry_attempts += 1
                    logger.info(
                        "%s: Internal error. Trying again #%d",
                        source, result.retry_attempts,
                    )
                    continue
                logger.error("%s: Got %d rows so far...", source, len(result.records))
                raise RetriesExhaustedError(
                    code, message,
                    partial_count=len(result.records),
                    attempts=result.retry_attempts,
                )

            if policy.on_permanent_error == "raise":
                raise PermanentApiError(code, message)
            result.stopped_early = True
            result.stopped_on_error = code
            break

        result.pages += 1
        result.records.extend(response.get(items_key) or [])
        if response.get("totalResultsCount") is not None:
            result.total_count = int(response["totalResultsCount"])

        next_token = response.get("nextPageToken")
        if count_only or not next_token:
            break
        page_token = next_token

    logger.info("%s: Final results: %d rows.", source, len(result.records))
    return result
