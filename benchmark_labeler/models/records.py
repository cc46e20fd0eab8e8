"""
Input record models — the typed boundary over raw API payloads.

Three feeds are joined by the Reconciler, on two different keys:

  ``BenchmarkRecord``  — one row of the price-competitiveness report.
  ``ProductRecord``    — stock/availability for a product id (batch lookup).
  ``StatRecord``       — impressions/clicks for an offer id (performance report).

``BenchmarkRecord.product_id`` joins to ``ProductRecord``;
``BenchmarkRecord.offer_id`` joins to ``StatRecord``.  The two keys are
not interchangeable.

Report rows arrive as nested JSON (``{"productView": {...},
"priceCompetitiveness": {...}}``).  ``from_report_row()`` runs them through
the flattener once and reads the dotted paths; no untyped dict travels past
this module.

All models are frozen after construction.
"""

from __future__ import annotations

from typing import Any, Mapping, Union

from pydantic import BaseModel, ConfigDict

from benchmark_labeler.transform.flatten import flatten

MICROS_PER_UNIT = 1_000_000

StockValue = Union[int, float, str]


def _micros(value: Any) -> int:
    """Report APIs serialise int64 micros as strings; missing → 0.

    Integer strings are parsed exactly; only decimal or exponent forms go
    through ``float``.
    """
    if value in (None, ""):
        return 0
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return int(float(value))


class BenchmarkRecord(BaseModel):
    """One product's price against its benchmark in one country.

    Attributes:
        product_id: Catalog id, ``channel:lang:country:offerId``.
        offer_id: Merchant-assigned offer id.
        price_micros: Current price in currency micros.
        benchmark_price_micros: Benchmark price in currency micros (0 when
            the report has no benchmark for this product).
    """

    model_config = ConfigDict(frozen=True)

    product_id: str
    offer_id: str
    title: str = ""
    brand: str = ""
    price_micros: int
    currency_code: str = ""
    benchmark_price_micros: int = 0
    benchmark_currency_code: str = ""
    country_code: str = ""

    @property
    def price(self) -> float:
        """Price in major currency units."""
        return self.price_micros / MICROS_PER_UNIT

    @property
    def benchmark_price(self) -> float:
        """Benchmark price in major currency units."""
        return self.benchmark_price_micros / MICROS_PER_UNIT

    @classmethod
    def from_report_row(cls, row: Mapping[str, Any]) -> "BenchmarkRecord":
        """Build a record from a nested ``PriceCompetitivenessProductView`` row."""
        flat = flatten(row)
        return cls(
            product_id=str(flat.get("productView.id", "")),
            offer_id=str(flat.get("productView.offerId", "")),
            title=flat.get("productView.title") or "",
            brand=flat.get("productView.brand") or "",
            price_micros=_micros(flat.get("productView.priceMicros")),
            currency_code=flat.get("productView.currencyCode") or "",
            benchmark_price_micros=_micros(
                flat.get("priceCompetitiveness.benchmarkPriceMicros")
            ),
            benchmark_currency_code=flat.get(
                "priceCompetitiveness.benchmarkPriceCurrencyCode"
            ) or "",
            country_code=flat.get("priceCompetitiveness.countryCode") or "",
        )


class ProductRecord(BaseModel):
    """Availability and (optional) stock quantity for one product id.

    ``stock_quantity`` holds the custom attribute value exactly as read
    (often a string); ``""`` when stock tracking is off or the attribute is
    missing.
    """

    model_config = ConfigDict(frozen=True)

    product_id: str
    availability: str = ""
    stock_quantity: StockValue = ""

    @property
    def is_in_stock(self) -> bool:
        return self.availability == "in stock"


class StatRecord(BaseModel):
    """Performance metrics for one offer id over the reporting window."""

    model_config = ConfigDict(frozen=True)

    offer_id: str
    impressions: int = 0
    clicks: int = 0

    @classmethod
    def from_report_row(cls, row: Mapping[str, Any]) -> "StatRecord":
        """Build a record from a nested ``MerchantPerformanceView`` row."""
        flat = flatten(row)
        return cls(
            offer_id=str(flat.get("segments.offerId", "")),
            impressions=int(flat.get("metrics.impressions") or 0),
            clicks=int(flat.get("metrics.clicks") or 0),
        )


class AdsMetricRecord(BaseModel):
    """One ``shopping_performance_view`` row: a day, a label, its metrics.

    ``cost`` is already converted from micros.  Average CPC is derived per
    (date, label) bucket after summing, so the row's own value is not kept.
    """

    model_config = ConfigDict(frozen=True)

    date: str
    label: str
    clicks: int = 0
    impressions: int = 0
    cost: float = 0.0
    conversions: float = 0.0
    conversions_value: float = 0.0
    all_conversions: float = 0.0
    all_conversions_value: float = 0.0

    @classmethod
    def from_search_row(cls, row: Mapping[str, Any]) -> "AdsMetricRecord":
        """Build a record from a nested Ads search result row."""
        flat = flatten(row)
        return cls(
            date=str(flat.get("segments.date", "")),
            label=str(flat.get("segments.productCustomAttribute1") or ""),
            clicks=int(flat.get("metrics.clicks") or 0),
            impressions=int(flat.get("metrics.impressions") or 0),
            cost=float(flat.get("metrics.costMicros") or 0) / MICROS_PER_UNIT,
            conversions=float(flat.get("metrics.conversions") or 0),
            conversions_value=float(flat.get("metrics.conversionsValue") or 0),
            all_conversions=float(flat.get("metrics.allConversions") or 0),
            all_conversions_value=float(flat.get("metrics.allConversionsValue") or 0),
        )
