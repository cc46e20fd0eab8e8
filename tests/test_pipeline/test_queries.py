"""Tests for benchmark_labeler.pipeline.queries."""

from __future__ import annotations

from datetime import date

from benchmark_labeler.pipeline.queries import (
    ads_performance_query,
    ads_performance_window,
    benchmark_query,
    offer_id_from_product_id,
    performance_query,
)


# ── Merchant Center report queries ────────────────────────────────────────────


def test_benchmark_query_filters() -> None:
    q = benchmark_query("US", "USD")
    assert q.startswith("SELECT product_view.id, product_view.offer_id")
    assert "FROM PriceCompetitivenessProductView" in q
    assert "price_competitiveness.country_code = 'US'" in q
    assert "product_view.currency_code = 'USD'" in q
    assert "price_competitiveness.benchmark_price_currency_code = 'USD'" in q


def test_quotes_escaped() -> None:
    q = performance_query(["it's"], "US")
    assert "'it\\'s'" in q


def test_offer_id_from_product_id() -> None:
    assert offer_id_from_product_id("online:en:US:SKU-1") == "SKU-1"


def test_offer_id_keeps_colons_after_third_separator() -> None:
    assert offer_id_from_product_id("online:en:US:A:B") == "A:B"


def test_offer_id_without_separators_returned_as_is() -> None:
    assert offer_id_from_product_id("SKU-1") == "SKU-1"


def test_performance_query() -> None:
    q = performance_query(["A", "B", "A"], "DE")
    assert "FROM MerchantPerformanceView" in q
    assert "segments.date DURING LAST_30_DAYS" in q
    assert "metrics.impressions > 0" in q
    assert "segments.offer_id IN ('A','B')" in q
    assert "segments.customer_country_code = 'DE'" in q


# ── Ads report query ──────────────────────────────────────────────────────────


def test_ads_window_ends_yesterday() -> None:
    first, last = ads_performance_window(date(2024, 3, 31), 90)
    assert last == date(2024, 3, 30)
    assert first == date(2023, 12, 31)
    assert (last - first).days + 1 == 91


def test_ads_performance_query() -> None:
    q = ads_performance_query(date(2024, 1, 1), date(2024, 3, 30))
    assert "FROM shopping_performance_view" in q
    assert "segments.product_custom_attribute1" in q
    assert "segments.date >= '2024-01-01'" in q
    assert "segments.date <= '2024-03-30'" in q
