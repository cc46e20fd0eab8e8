"""
Google Ads API search client — used for the per-label performance report.

API:   https://googleads.googleapis.com/{version}/customers/{customerId}/googleAds:search

Credential setup (.env, gitignored):
  ADS_DEVELOPER_TOKEN=your_developer_token
  ADS_ACCESS_TOKEN=...          # OAuth2 bearer; falls back to MERCHANT_ACCESS_TOKEN

Every request carries ``developer-token``, ``Authorization`` and
``login-customer-id`` (the manager account) headers.  Search responses are
paginated with ``nextPageToken``; ``returnTotalResultsCount`` is always
requested so a count-only search can stop after the first page.

Unlike the Merchant Center report path, any error object returned by the
search is raised (``config.api.ads_retry``).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

import httpx

from benchmark_labeler.ingestion.http import build_http_client, decode_json_body
from benchmark_labeler.ingestion.pagination import FetchResult, fetch_all_pages

if TYPE_CHECKING:
    from benchmark_labeler.config import AppConfig

logger = logging.getLogger(__name__)


class GoogleAdsClient:
    """Ads API search transport for one manager account.

    Args:
        config:          Application config (base URL, version, page size,
                         manager customer id, retry policy).
        developer_token: Ads API developer token.
        access_token:    OAuth2 bearer token.
        transport:       Optional ``httpx`` transport (tests).
    """

    def __init__(
        self,
        config: "AppConfig",
        developer_token: str,
        access_token: str,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = (
            f"{config.api.ads_base_url.rstrip('/')}/{config.api.ads_api_version}/customers"
        )
        self.page_size = config.api.ads_page_size
        self.policy = config.api.ads_retry
        self._http = build_http_client(
            headers={
                "developer-token": developer_token,
                "Authorization": f"Bearer {access_token}",
                "login-customer-id": config.ads.manager_customer_id,
            },
            timeout_seconds=config.api.timeout_seconds,
            transport=transport,
        )

    def __enter__(self) -> "GoogleAdsClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def search_page(
        self, query: str, customer_id: str, page_token: Optional[str] = None
    ) -> dict[str, Any]:
        """Run one page of googleAds:search."""
        payload: dict[str, Any] = {
            "query": query,
            "pageSize": self.page_size,
            "returnTotalResultsCount": True,
        }
        if page_token:
            payload["pageToken"] = page_token
        resp = self._http.post(
            f"{self.base_url}/{customer_id}/googleAds:search", json=payload
        )
        return decode_json_body(resp.text)

    def execute_search(
        self, query: str, customer_id: str, count_only: bool = False
    ) -> FetchResult:
        """Run a query to completion (or just its first page when ``count_only``).

        Returns:
            ``FetchResult`` with ``records`` and ``total_count``.

        Raises:
            PermanentApiError: The API returned an error object.
        """
        return fetch_all_pages(
            lambda token: self.search_page(query, customer_id, token),
            self.policy,
            items_key="results",
            count_only=count_only,
            source="googleAds:search",
        )
