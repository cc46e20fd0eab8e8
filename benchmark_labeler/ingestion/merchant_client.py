"""
Merchant Center Content API client and the three fetches built on it.

API:   https://shoppingcontent.googleapis.com/content/v2.1/
Auth:  OAuth2 bearer token (``MERCHANT_ACCESS_TOKEN`` in .env).  Token
       acquisition is outside this package; the client only sends it.

Endpoints used:
  Report search:
    POST /{merchantId}/reports/search
      body: {"query": "...", "pageSize": 1000, "pageToken": "..."}
  Product listing:
    GET  /{merchantId}/products?maxResults=N&pageToken=...
  Batch product lookup:
    POST /products/batch
      body: {"entries": [{"batchId": 0, "merchantId": "...",
                          "method": "get", "productId": "..."}, ...]}

The client methods return the decoded JSON body as-is (error objects
included).  ``download_report()``, ``list_all_products()`` and
``batch_get_products()`` turn those bodies into typed results.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

import httpx

from benchmark_labeler.config import RetryPolicy
from benchmark_labeler.ingestion.http import build_http_client, decode_json_body
from benchmark_labeler.ingestion.pagination import FetchResult, fetch_all_pages
from benchmark_labeler.models.records import ProductRecord, StockValue

if TYPE_CHECKING:
    from benchmark_labeler.config import AppConfig, StockConfig

logger = logging.getLogger(__name__)


class EmptyInputError(RuntimeError):
    """Raised when a lookup is asked to run with no input ids."""


# ── Client ─────────────────────────────────────────────────────────────────────


class MerchantCenterClient:
    """Thin Content API v2.1 transport bound to one merchant account.

    Usage::

        with MerchantCenterClient(config, access_token=token) as client:
            body = client.search_report(query, page_size=1000)

    Args:
        config:       Application config (base URL, merchant id, timeout).
        access_token: OAuth2 bearer token.
        transport:    Optional ``httpx`` transport (tests use ``MockTransport``).
    """

    def __init__(
        self,
        config: "AppConfig",
        access_token: str,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = config.api.merchant_base_url.rstrip("/")
        self.merchant_id = config.merchant.merchant_id
        self._http = build_http_client(
            headers={"Authorization": f"Bearer {access_token}"},
            timeout_seconds=config.api.timeout_seconds,
            transport=transport,
        )

    def __enter__(self) -> "MerchantCenterClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def search_report(
        self, query: str, page_size: int, page_token: Optional[str] = None
    ) -> dict[str, Any]:
        """Run one page of a reports.search query."""
        payload: dict[str, Any] = {"query": query, "pageSize": page_size}
        if page_token:
            payload["pageToken"] = page_token
        resp = self._http.post(
            f"{self.base_url}/{self.merchant_id}/reports/search", json=payload
        )
        return decode_json_body(resp.text)

    def list_products(
        self, max_results: int, page_token: Optional[str] = None
    ) -> dict[str, Any]:
        """Fetch one page of products.list."""
        params: dict[str, Any] = {"maxResults": max_results}
        if page_token:
            params["pageToken"] = page_token
        resp = self._http.get(
            f"{self.base_url}/{self.merchant_id}/products", params=params
        )
        return decode_json_body(resp.text)

    def custom_batch(self, entries: list[dict[str, Any]]) -> dict[str, Any]:
        """Send one products.custombatch request."""
        resp = self._http.post(
            f"{self.base_url}/products/batch", json={"entries": entries}
        )
        return decode_json_body(resp.text)


# ── Fetches ────────────────────────────────────────────────────────────────────


def download_report(
    client: MerchantCenterClient,
    query: str,
    policy: RetryPolicy,
    page_size: int,
) -> FetchResult:
    """Download every row of a report query.

    Args:
        client:    Merchant Center client.
        query:     Report query string.
        policy:    Retry policy (``config.api.report_retry``).
        page_size: Rows per page.

    Returns:
        ``FetchResult`` whose ``records`` are the raw nested report rows.

    Raises:
        RetriesExhaustedError: Persistent retryable errors.
    """
    logger.info("Downloading report for merchant %s", client.merchant_id)
    return fetch_all_pages(
        lambda token: client.search_report(query, page_size, token),
        policy,
        items_key="results",
        source="reports.search",
    )


def list_all_products(
    client: MerchantCenterClient,
    policy: RetryPolicy,
    max_results: int,
) -> FetchResult:
    """List every product resource in the account.

    Uses ``config.api.listing_retry`` (no retries by default): a 500 aborts
    the run, any other error stops the listing with what was fetched.
    """
    return fetch_all_pages(
        lambda token: client.list_products(max_results, token),
        policy,
        items_key="resources",
        source="products.list",
    )


def extract_stock_value(product: dict[str, Any], attribute: str) -> StockValue:
    """Return the value of the custom attribute named ``attribute``.

    Malformed ``customAttributes`` are logged and yield ``""``; the product
    still gets a record (and later fails the stock gate as quantity 0).
    """
    value: StockValue = ""
    try:
        for att in product.get("customAttributes") or []:
            if att.get("name") == attribute and att.get("value") is not None:
                value = att["value"]
    except (AttributeError, TypeError) as exc:
        logger.warning(
            "Could not read custom attribute '%s' for product %s: %s",
            attribute, product.get("id"), exc,
        )
        return ""
    return value


def batch_get_products(
    client: MerchantCenterClient,
    product_ids: list[str],
    batch_size: int,
    stock: "StockConfig",
) -> dict[str, ProductRecord]:
    """Look up availability (and stock) for each product id via custombatch.

    Ids are sent in chunks of ``batch_size``.  A chunk whose response is an
    error object is logged and skipped; the rest of the run continues with
    the products that were returned.

    Args:
        client:      Merchant Center client.
        product_ids: Product ids to look up (already de-duplicated).
        batch_size:  Entries per custombatch call.
        stock:       Stock settings; the attribute is read only when enabled.

    Returns:
        Mapping of product id → ``ProductRecord``.

    Raises:
        EmptyInputError: ``product_ids`` is empty.
    """
    if not product_ids:
        raise EmptyInputError("No products returned from the price benchmark query")

    responses: list[dict[str, Any]] = []
    for start in range(0, len(product_ids), batch_size):
        chunk = product_ids[start:start + batch_size]
        entries = [
            {
                "batchId": start + offset,
                "merchantId": client.merchant_id,
                "method": "get",
                "productId": product_id,
            }
            for offset, product_id in enumerate(chunk)
        ]
        body = client.custom_batch(entries)
        if body.get("error") is not None:
            logger.error("Error occurred on custombatch call: %s", body["error"])
            continue
        responses.extend(body.get("entries") or [])

    products: dict[str, ProductRecord] = {}
    for entry in responses:
        product = entry.get("product")
        if not product:
            logger.warning(
                "custombatch entry %s returned no product: %s",
                entry.get("batchId"), entry.get("errors"),
            )
            continue
        stock_value = extract_stock_value(product, stock.attribute) if stock.enabled else ""
        products[str(product["id"])] = ProductRecord(
            product_id=str(product["id"]),
            availability=product.get("availability", ""),
            stock_quantity=stock_value,
        )

    logger.info(
        "custombatch: %d products requested | %d returned",
        len(product_ids), len(products),
    )
    return products
