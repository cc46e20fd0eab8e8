"""
Shared pytest fixtures for the benchmark labeler test suite.

Provides:
  - ``app_config`` / ``make_config``: ``AppConfig`` instances with a test
    merchant id and the output directory under ``tmp_path``.
  - Raw report row builders and typed record factories used across
    the ingestion, pipeline and reporting tests.
  - ``json_transport``: an ``httpx.MockTransport`` that replays queued JSON
    bodies and records every request it served.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Optional

import httpx
import pytest

from benchmark_labeler.config import (
    AppConfig,
    LabelConfig,
    MerchantConfig,
    OutputConfig,
    StockConfig,
)
from benchmark_labeler.models.records import BenchmarkRecord, ProductRecord, StatRecord


# ── Config fixtures ───────────────────────────────────────────────────────────

@pytest.fixture
def make_config(tmp_path) -> Callable[..., AppConfig]:
    """Factory: ``make_config(labels=..., stock=...)`` with output under tmp_path."""

    def _make(
        labels: Optional[LabelConfig] = None,
        stock: Optional[StockConfig] = None,
        **overrides: Any,
    ) -> AppConfig:
        fields: dict[str, Any] = {
            "merchant": MerchantConfig(merchant_id="123456"),
            "labels": labels or LabelConfig(),
            "stock": stock or StockConfig(),
            "output": OutputConfig(output_dir=str(tmp_path / "outputs")),
        }
        fields.update(overrides)
        return AppConfig(**fields)

    return _make


@pytest.fixture
def app_config(make_config) -> AppConfig:
    """Default thresholds, labels exported, stock tracking off."""
    return make_config(labels=LabelConfig(activate_labels=True))


# ── Raw row builders ──────────────────────────────────────────────────────────

def benchmark_row(
    product_id: str = "online:en:US:O1",
    offer_id: str = "O1",
    price_micros: int | str = 1_100_000,
    benchmark_micros: int | str = 1_000_000,
    title: str = "T",
    brand: str = "B",
) -> dict[str, Any]:
    """A nested ``PriceCompetitivenessProductView`` report row."""
    return {
        "productView": {
            "id": product_id,
            "offerId": offer_id,
            "title": title,
            "brand": brand,
            "priceMicros": str(price_micros),
            "currencyCode": "USD",
        },
        "priceCompetitiveness": {
            "countryCode": "US",
            "benchmarkPriceMicros": str(benchmark_micros),
            "benchmarkPriceCurrencyCode": "USD",
        },
    }


def stat_row(offer_id: str = "O1", impressions: int = 10, clicks: int = 2) -> dict[str, Any]:
    """A nested ``MerchantPerformanceView`` report row (int64 as strings)."""
    return {
        "segments": {"offerId": offer_id},
        "metrics": {"impressions": str(impressions), "clicks": str(clicks)},
    }


def product_resource(
    product_id: str = "online:en:US:O1",
    availability: str = "in stock",
    custom_attributes: Optional[list[dict[str, Any]]] = None,
    **extra: Any,
) -> dict[str, Any]:
    """A Content API product resource."""
    resource: dict[str, Any] = {"id": product_id, "availability": availability, **extra}
    if custom_attributes is not None:
        resource["customAttributes"] = custom_attributes
    return resource


# ── Typed record factories ────────────────────────────────────────────────────

@pytest.fixture
def sample_benchmark() -> BenchmarkRecord:
    """Priced 10% over its benchmark."""
    return BenchmarkRecord(
        product_id="1",
        offer_id="O1",
        title="T",
        brand="B",
        price_micros=1_100_000,
        currency_code="USD",
        benchmark_price_micros=1_000_000,
        benchmark_currency_code="USD",
        country_code="US",
    )


@pytest.fixture
def sample_product() -> ProductRecord:
    return ProductRecord(product_id="1", availability="in stock", stock_quantity=5)


@pytest.fixture
def sample_stat() -> StatRecord:
    return StatRecord(offer_id="O1", impressions=10, clicks=2)


# ── HTTP mock ─────────────────────────────────────────────────────────────────

class JsonReplay:
    """Callable ``MockTransport`` handler returning queued bodies in order.

    Each queued body is either a dict (sent as JSON) or a str (sent raw).
    Served requests are kept in ``requests`` for assertions.
    """

    def __init__(self, bodies: list[Any]) -> None:
        self.bodies = list(bodies)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.bodies:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        body = self.bodies.pop(0)
        if isinstance(body, str):
            return httpx.Response(200, text=body)
        return httpx.Response(200, json=body)

    def json_payloads(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests if r.content]


@pytest.fixture
def json_transport() -> Callable[[list[Any]], tuple[httpx.MockTransport, JsonReplay]]:
    """Factory: ``transport, replay = json_transport([body1, body2, ...])``."""

    def _make(bodies: list[Any]) -> tuple[httpx.MockTransport, JsonReplay]:
        replay = JsonReplay(bodies)
        return httpx.MockTransport(replay), replay

    return _make


# ── Row builder fixtures ──────────────────────────────────────────────────────

@pytest.fixture
def make_benchmark_row() -> Callable[..., dict[str, Any]]:
    return benchmark_row


@pytest.fixture
def make_stat_row() -> Callable[..., dict[str, Any]]:
    return stat_row


@pytest.fixture
def make_product() -> Callable[..., dict[str, Any]]:
    return product_resource
